# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Repository: Runtime admin settings.
Seeded from the environment, editable through the admin API.
"""

from typing import Any

from roster.core.config import settings


def _defaults() -> dict[str, Any]:
    return {
        "sheet_url": settings.SHEET_URL,
        "auto_sync": False,
        "sync_interval_minutes": 30,
        "notify_controllers": True,
    }


class SettingsRepository:
    """In-memory settings record."""

    def __init__(self) -> None:
        self._settings: dict[str, Any] = _defaults()

    def get(self) -> dict[str, Any]:
        return dict(self._settings)

    def update(self, changes: dict[str, Any]) -> dict[str, Any]:
        self._settings.update(changes)
        return self.get()

    def reset(self) -> None:
        self._settings = _defaults()
