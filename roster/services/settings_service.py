# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Service: Admin settings — validation and change tracking.
The stored sync interval is informational; nothing schedules syncs.
"""

from typing import Any, Optional

from roster.core.errors import ValidationError
from roster.core.logging import get_logger
from roster.repositories.history_repository import HistoryRepository
from roster.repositories.settings_repository import SettingsRepository
from roster.services.ingestion import extract_sheet_id

logger = get_logger(__name__)


class SettingsService:
    def __init__(self, settings_repo: SettingsRepository, history_repo: HistoryRepository):
        self._settings = settings_repo
        self._history = history_repo

    def get_settings(self) -> dict[str, Any]:
        current = self._settings.get()
        current["sheet_id"] = extract_sheet_id(current["sheet_url"])
        return current

    def update_settings(
        self,
        actor: str,
        sheet_url: Optional[str] = None,
        auto_sync: Optional[bool] = None,
        sync_interval_minutes: Optional[int] = None,
        notify_controllers: Optional[bool] = None,
    ) -> dict[str, Any]:
        """Apply the given changes. Raises ValidationError, leaving settings untouched."""
        current = self._settings.get()
        changes: dict[str, Any] = {}

        if sheet_url is not None:
            sheet_url = sheet_url.strip()
            if sheet_url and not sheet_url.startswith(("http://", "https://")):
                raise ValidationError("Sheet URL must be an http(s) URL")
            if sheet_url != current["sheet_url"]:
                changes["sheet_url"] = sheet_url
        if sync_interval_minutes is not None:
            if sync_interval_minutes <= 0:
                raise ValidationError("Sync interval must be a positive number of minutes")
            changes["sync_interval_minutes"] = sync_interval_minutes
        if auto_sync is not None:
            changes["auto_sync"] = auto_sync
        if notify_controllers is not None:
            changes["notify_controllers"] = notify_controllers

        self._settings.update(changes)
        if changes:
            self._history.record_event(
                "settings_updated", None, {"actor": actor, "fields": sorted(changes)}
            )
            logger.info("Settings updated: fields=%s, actor=%s", sorted(changes), actor)
        return self.get_settings()
