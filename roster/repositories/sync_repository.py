# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Repository: Sync history data access.
Bounded append-only log of spreadsheet / fixture synchronisation runs.
"""

from typing import Any, Optional

from roster.core.config import settings


class SyncRepository:
    """In-memory sync run log (bounded ring buffer), newest last."""

    def __init__(self) -> None:
        self._log: list[dict[str, Any]] = []

    # ── Read ──

    def get_all(self, limit: Optional[int] = None) -> list[dict[str, Any]]:
        effective_limit = limit or settings.DEFAULT_HISTORY_LIMIT
        return self._log[-effective_limit:]

    def last(self) -> Optional[dict[str, Any]]:
        return self._log[-1] if self._log else None

    def last_successful(self) -> Optional[dict[str, Any]]:
        for item in reversed(self._log):
            if item["status"] == "success":
                return item
        return None

    def count(self) -> int:
        return len(self._log)

    # ── Write ──

    def append(self, record: dict[str, Any]) -> None:
        self._log.append(record)
        if len(self._log) > settings.MAX_SYNC_HISTORY:
            del self._log[: len(self._log) - settings.MAX_SYNC_HISTORY]

    # ── Bulk / internal ──

    def clear(self) -> None:
        self._log.clear()
