"""Authentication for the ticker stream.

Public API:
    TokenService   - Issues and verifies signed bearer tokens
    TokenError     - Raised when a token fails verification
    extract_token  - Pull a token out of request headers / query params
    User           - Public user record
    UserDirectory  - In-memory credential store
"""

from .tokens import TokenError, TokenService, extract_token
from .users import User, UserDirectory

__all__ = [
    "TokenService",
    "TokenError",
    "extract_token",
    "User",
    "UserDirectory",
]
