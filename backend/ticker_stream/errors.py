"""Client-visible error taxonomy.

Every error carries a fixed, safe message. Handlers in main.py render them as
``{"error": message}`` with the matching status code.
"""

from __future__ import annotations

from typing import Any


class ServiceError(Exception):
    status_code = 500
    message = "Internal server error"

    def __init__(self, message: str | None = None, **extra: Any) -> None:
        self.message = message or self.message
        self.extra = extra
        super().__init__(self.message)

    def to_dict(self) -> dict:
        return {"error": self.message, **self.extra}


class BadRequestError(ServiceError):
    status_code = 400
    message = "Bad request"


class UnauthorizedError(ServiceError):
    status_code = 401
    message = "Unauthorized"


class ForbiddenError(ServiceError):
    status_code = 403
    message = "Forbidden"


class NotFoundError(ServiceError):
    status_code = 404
    message = "Not found"


class TickerNotFoundError(NotFoundError):
    message = "Ticker not found"

    def __init__(self, symbol: str | None = None) -> None:
        self.symbol = symbol
        super().__init__()


class InternalServiceError(ServiceError):
    status_code = 500
