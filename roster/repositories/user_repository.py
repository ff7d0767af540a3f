# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Repository: User account data access (admins and controllers).
Pure CRUD over an in-memory store keyed by user id.
"""

from typing import Any, Optional


class UserRepository:
    """In-memory user storage."""

    def __init__(self) -> None:
        self._store: dict[str, dict[str, Any]] = {}

    # ── Read ──

    def get_all(self, role: Optional[str] = None) -> list[dict[str, Any]]:
        users = list(self._store.values())
        if role:
            users = [u for u in users if u["role"] == role]
        return users

    def get_by_id(self, user_id: str) -> Optional[dict[str, Any]]:
        return self._store.get(user_id)

    def get_by_email(self, email: str) -> Optional[dict[str, Any]]:
        wanted = email.strip().lower()
        for user in self._store.values():
            if user["email"].lower() == wanted:
                return user
        return None

    def exists(self, user_id: str) -> bool:
        return user_id in self._store

    def count(self) -> int:
        return len(self._store)

    # ── Write ──

    def save(self, user_id: str, user: dict[str, Any]) -> None:
        self._store[user_id] = user

    def delete(self, user_id: str) -> Optional[dict[str, Any]]:
        return self._store.pop(user_id, None)

    # ── Bulk / internal ──

    def clear(self) -> None:
        self._store.clear()
