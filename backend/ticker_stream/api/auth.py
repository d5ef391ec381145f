"""Login and token verification endpoints."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Request
from pydantic import BaseModel, ValidationError

from ..auth import TokenError, TokenService, UserDirectory, extract_token
from ..errors import BadRequestError, ForbiddenError, UnauthorizedError

logger = logging.getLogger(__name__)


class LoginRequest(BaseModel):
    username: str | None = None
    password: str | None = None


def create_auth_router(tokens: TokenService, users: UserDirectory) -> APIRouter:
    router = APIRouter(prefix="/api/auth", tags=["auth"])

    @router.post("/login")
    async def login(request: Request) -> dict:
        # Parsed by hand so malformed or mistyped bodies get the same 400 as missing fields
        try:
            body = LoginRequest.model_validate_json(await request.body() or b"{}")
        except ValidationError:
            raise BadRequestError("Username and password required")
        if not body.username or not body.password:
            raise BadRequestError("Username and password required")

        user = users.authenticate(body.username, body.password)
        if user is None:
            logger.info("Login failed for %r", body.username)
            raise UnauthorizedError("Invalid credentials")

        logger.info("Login succeeded for %s", user.username)
        return {"token": tokens.issue(user), "user": user.to_dict()}

    @router.get("/verify")
    async def verify(request: Request) -> dict:
        token = extract_token(request.headers)
        if token is None:
            raise UnauthorizedError("No token provided")
        try:
            claims = tokens.verify(token)
        except TokenError:
            raise ForbiddenError("Invalid token", valid=False)
        return {"valid": True, "user": claims}

    return router
