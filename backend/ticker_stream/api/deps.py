"""Shared request helpers for the HTTP routes."""

from __future__ import annotations

import logging
import re
from collections.abc import Awaitable, Callable
from typing import Any

from fastapi import Request

from ..auth import TokenError, TokenService, extract_token

logger = logging.getLogger(__name__)

_LEADING_INT = re.compile(r"\s*([+-]?\d+)")


def lenient_int(value: str | None, default: int, maximum: int | None = None) -> int:
    """Parse a numeric query parameter, falling back to `default`.

    Like JavaScript's parseInt, only the leading integer counts: "10abc" is 10
    and "1.5" is 1. Missing, non-numeric and non-positive values all yield
    the default.
    """
    match = _LEADING_INT.match(value) if value is not None else None
    parsed = int(match.group(1)) if match else 0
    if parsed <= 0:
        parsed = default
    if maximum is not None:
        parsed = min(parsed, maximum)
    return parsed


def optional_auth(tokens: TokenService) -> Callable[[Request], Awaitable[dict[str, Any] | None]]:
    """Dependency that decodes a bearer token when present but never rejects."""

    async def claims(request: Request) -> dict[str, Any] | None:
        token = extract_token(request.headers)
        if token is None:
            return None
        try:
            return tokens.verify(token)
        except TokenError:
            logger.debug("Ignoring invalid token on %s", request.url.path)
            return None

    return claims
