"""In-memory user directory with the demo account."""

from __future__ import annotations

import hmac
import uuid
from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class User:
    id: str
    username: str
    email: str

    def to_dict(self) -> dict:
        return {"id": self.id, "username": self.username, "email": self.email}


class UserDirectory:
    """Username -> (user, password) lookup. There is no persistence."""

    def __init__(self) -> None:
        self._users: dict[str, tuple[User, str]] = {}

    @classmethod
    def with_demo_user(cls) -> UserDirectory:
        directory = cls()
        directory.add("demo", "demo@example.com", "demo123")
        return directory

    def add(self, username: str, email: str, password: str) -> User:
        user = User(id=str(uuid.uuid4()), username=username, email=email)
        self._users[username] = (user, password)
        return user

    def authenticate(self, username: str, password: str) -> User | None:
        """Return the user if the password matches, else None."""
        record = self._users.get(username)
        if record is None:
            return None
        user, expected = record
        if not hmac.compare_digest(expected.encode(), password.encode()):
            return None
        return user

    def __len__(self) -> int:
        return len(self._users)
