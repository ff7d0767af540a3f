# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Service: Synchronisation — runs ingestions against the configured source
and keeps a history of each run (status, duration, change counts).
"""

import time
import uuid
from datetime import datetime, timezone
from typing import Any, Optional

import httpx

from roster.core.config import settings
from roster.core.errors import IngestionError
from roster.core.logging import get_logger
from roster.models.domain import Participant
from roster.repositories.bus_repository import BusRepository
from roster.repositories.settings_repository import SettingsRepository
from roster.repositories.sync_repository import SyncRepository
from roster.services.ingestion import FixtureIngestionSource, SheetIngestionSource
from roster.services.roster_store import RosterStore

logger = get_logger(__name__)


def diff_snapshots(
    before: dict[str, Participant], after: dict[str, Participant]
) -> dict[str, int]:
    """Count added, updated, and removed participants between two snapshots."""
    added = sum(1 for pid in after if pid not in before)
    removed = sum(1 for pid in before if pid not in after)
    updated = sum(1 for pid, p in after.items() if pid in before and before[pid] != p)
    return {"added": added, "updated": updated, "removed": removed}


class SyncService:
    """Business logic for refreshing the roster from its source."""

    def __init__(
        self,
        store: RosterStore,
        bus_repo: BusRepository,
        settings_repo: SettingsRepository,
        sync_repo: SyncRepository,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self._store = store
        self._buses = bus_repo
        self._settings = settings_repo
        self._sync = sync_repo
        self._transport = transport

    # ── Sources ──

    def build_source(self):
        """Spreadsheet when a URL is configured, generated fixtures otherwise."""
        sheet_url = self._settings.get()["sheet_url"]
        if sheet_url:
            return SheetIngestionSource(sheet_url, transport=self._transport)
        return self.fixture_source()

    def fixture_source(self) -> FixtureIngestionSource:
        return FixtureIngestionSource([b.id for b in self._buses.get_all()])

    def set_transport(self, transport: Optional[httpx.BaseTransport]) -> None:
        self._transport = transport

    # ── Commands ──

    def run(self, triggered_by: str = "system", source=None) -> dict[str, Any]:
        """
        Run one ingestion and record it. Raises IngestionError after recording
        the failed run; the store keeps its previous snapshot in that case.
        """
        source = source or self.build_source()
        before = self._store.snapshot()
        start = time.monotonic()
        record: dict[str, Any] = {
            "id": str(uuid.uuid4()),
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "status": "success",
            "source": source.name,
            "changes": {"added": 0, "updated": 0, "removed": 0},
            "duration": 0.0,
            "error": None,
            "triggered_by": triggered_by,
        }
        try:
            self._store.ingest(source)
        except IngestionError as exc:
            record["status"] = "error"
            record["error"] = str(exc)
            record["duration"] = round(time.monotonic() - start, 3)
            self._sync.append(record)
            logger.warning("Sync failed: source=%s, error=%s", source.name, exc)
            raise

        record["changes"] = diff_snapshots(before, self._store.snapshot())
        record["duration"] = round(time.monotonic() - start, 3)
        self._sync.append(record)
        logger.info(
            "Sync completed: source=%s, added=%d, updated=%d, removed=%d, duration=%.3fs",
            source.name,
            record["changes"]["added"],
            record["changes"]["updated"],
            record["changes"]["removed"],
            record["duration"],
        )
        return record

    def initial_load(self) -> Optional[dict[str, Any]]:
        """
        Startup ingestion. A failed spreadsheet fetch falls back to fixtures
        when STARTUP_FIXTURE_FALLBACK is on; later refreshes never fall back.
        """
        if not self._settings.get()["sheet_url"] and not settings.SEED_FIXTURES:
            logger.info("No spreadsheet configured and fixtures disabled, roster starts empty")
            return None
        try:
            return self.run(triggered_by="startup")
        except IngestionError:
            if not (self._settings.get()["sheet_url"] and settings.STARTUP_FIXTURE_FALLBACK):
                logger.error("Startup ingestion failed, roster is empty")
                return None
            logger.warning("Spreadsheet unavailable at startup, loading demo fixtures")
            return self.run(triggered_by="startup", source=self.fixture_source())

    # ── Queries ──

    def get_history(self, limit: Optional[int] = None) -> list[dict[str, Any]]:
        return self._sync.get_all(limit)

    def get_sync_status(self) -> dict[str, Any]:
        last = self._sync.last()
        last_ok = self._sync.last_successful()
        return {
            "total_syncs": self._sync.count(),
            "last_sync": last,
            "last_successful_sync_at": last_ok["timestamp"] if last_ok else None,
            "store": self._store.get_status(),
        }
