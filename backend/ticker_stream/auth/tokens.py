"""Signed bearer tokens (HS256 JWT)."""

from __future__ import annotations

import time
from collections.abc import Mapping
from typing import Any

import jwt

from .users import User


class TokenError(Exception):
    """Token is malformed, has a bad signature, or has expired."""


class TokenService:
    """Issues and verifies the tokens clients present to HTTP and WebSocket endpoints."""

    def __init__(
        self,
        secret: str,
        expires_in: int = 24 * 60 * 60,
        algorithm: str = "HS256",
    ) -> None:
        if not secret:
            raise ValueError("Token secret must not be empty")
        self._secret = secret
        self._expires_in = expires_in
        self._algorithm = algorithm

    def issue(self, user: User) -> str:
        now = int(time.time())
        payload = {
            "userId": user.id,
            "username": user.username,
            "iat": now,
            "exp": now + self._expires_in,
        }
        return jwt.encode(payload, self._secret, algorithm=self._algorithm)

    def verify(self, token: str) -> dict[str, Any]:
        """Return the token's claims or raise TokenError."""
        try:
            return jwt.decode(token, self._secret, algorithms=[self._algorithm])
        except jwt.PyJWTError as e:
            raise TokenError(str(e)) from e


def extract_token(
    headers: Mapping[str, str],
    query_params: Mapping[str, str] | None = None,
) -> str | None:
    """Pull a token from `Authorization: Bearer <token>`, falling back to `?token=`."""
    auth_header = headers.get("authorization", "")
    scheme, _, credentials = auth_header.partition(" ")
    if scheme.lower() == "bearer" and credentials.strip():
        return credentials.strip()

    if query_params is not None:
        token = (query_params.get("token") or "").strip()
        if token:
            return token
    return None
