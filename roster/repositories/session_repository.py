# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Repository: Session data access.
Maps opaque API keys to user ids. Sessions live only as long as the process.
"""

import secrets
from typing import Optional


class SessionRepository:
    """In-memory API key -> user id storage."""

    def __init__(self) -> None:
        self._store: dict[str, str] = {}

    def create(self, user_id: str) -> str:
        api_key = secrets.token_urlsafe(32)
        self._store[api_key] = user_id
        return api_key

    def resolve(self, api_key: str) -> Optional[str]:
        return self._store.get(api_key)

    def revoke(self, api_key: str) -> bool:
        return self._store.pop(api_key, None) is not None

    def revoke_user(self, user_id: str) -> int:
        """Drop every session of a user. Returns how many were dropped."""
        keys = [k for k, uid in self._store.items() if uid == user_id]
        for k in keys:
            del self._store[k]
        return len(keys)

    def count(self) -> int:
        return len(self._store)

    def clear(self) -> None:
        self._store.clear()
