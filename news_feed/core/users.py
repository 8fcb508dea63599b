"""
Registered accounts for the sign-in flow.

Registration rejects blank fields and duplicate usernames; login failures
raise AuthError so the HTTP layer answers 401.
"""

from __future__ import annotations

from typing import Any, Iterator

from ..errors import AuthError, ValidationError
from .types import User


class UserRegistry:
    """Registered accounts. Passwords are opaque and compared as given."""

    def __init__(self, users: list[User] | None = None):
        self._users: dict[str, User] = {}
        for user in users or []:
            self._users.setdefault(user.username, user)

    def register(self, username: str | None, password: str | None) -> User:
        if not username or not password:
            raise ValidationError("Username and password are required")
        if username in self._users:
            raise ValidationError("Username already exists")
        user = User(username=username, password=password)
        self._users[username] = user
        return user

    def authenticate(self, username: str | None, password: str | None) -> User:
        if not username or not password:
            raise ValidationError("Username and password are required")
        user = self._users.get(username)
        if user is None or user.password != password:
            raise AuthError("Invalid username or password")
        return user

    def __len__(self) -> int:
        return len(self._users)

    def __iter__(self) -> Iterator[User]:
        return iter(self._users.values())

    def to_persisted(self) -> list[dict[str, Any]]:
        return [{"username": u.username, "password": u.password} for u in self._users.values()]

    @classmethod
    def from_persisted(cls, data: list[dict[str, Any]] | None) -> "UserRegistry":
        users = [
            User(username=item["username"], password=item.get("password", ""))
            for item in data or []
            if isinstance(item, dict) and item.get("username")
        ]
        return cls(users)
