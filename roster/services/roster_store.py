# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Service: Roster store — the authoritative participant/bus assignment model.

All mutations go through this class and are serialized behind one lock, so
concurrent requests (FastAPI runs sync endpoints in a thread pool) never see
a half-applied change. Conflicting assignments of the same participant are
applied in lock order: last writer wins, and both land in the audit history.

Ingestion fetches outside the lock and swaps the new snapshot in under it,
so reads keep returning the previous snapshot until the swap completes.
"""

import threading
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable, Optional

from roster.core.config import settings
from roster.core.errors import (
    IngestionError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)
from roster.core.logging import get_logger
from roster.metrics.prometheus import (
    ASSIGNMENTS_TOTAL,
    BUS_OCCUPANCY,
    INGESTION_DURATION,
    INGESTIONS_TOTAL,
    OVER_CAPACITY_ASSIGNMENTS,
    PARTICIPANTS_TOTAL,
    REMOVALS_TOTAL,
    SEARCHES_TOTAL,
)
from roster.models.domain import Bus, Identity, Participant, Role
from roster.repositories.bus_repository import BusRepository
from roster.repositories.history_repository import HistoryRepository
from roster.repositories.participant_repository import ParticipantRepository

logger = get_logger(__name__)

VIEW_MODES = ("all", "assigned", "unassigned")


class StoreStatus(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    READY = "ready"
    ERRORED = "errored"


@dataclass(frozen=True)
class AssignmentResult:
    """Outcome of an assign or remove call."""

    participant: Participant
    previous_bus_id: Optional[int]
    changed: bool
    over_capacity: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "participant": self.participant.to_dict(),
            "previous_bus_id": self.previous_bus_id,
            "changed": self.changed,
            "over_capacity": self.over_capacity,
        }


def matches_query(participant: Participant, normalized_query: str) -> bool:
    """Case-insensitive substring match on first, last, "first last", and ticket id."""
    first = participant.first_name.lower()
    last = participant.last_name.lower()
    return (
        normalized_query in first
        or normalized_query in last
        or normalized_query in participant.ticket_id.lower()
        or normalized_query in f"{first} {last}"
    )


class RosterStore:
    """Query and mutation operations over buses and participants."""

    def __init__(
        self,
        participant_repo: ParticipantRepository,
        bus_repo: BusRepository,
        history_repo: HistoryRepository,
        enforce_controller_scope: Optional[bool] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        self._participants = participant_repo
        self._buses = bus_repo
        self._history = history_repo
        self._enforce_scope = (
            settings.ENFORCE_CONTROLLER_SCOPE
            if enforce_controller_scope is None
            else enforce_controller_scope
        )
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self._lock = threading.RLock()
        self._status = StoreStatus.IDLE
        self._last_error: Optional[str] = None
        self._last_ingested_at: Optional[datetime] = None
        self._last_source: Optional[str] = None

    # ── Status ──

    @property
    def status(self) -> StoreStatus:
        return self._status

    def get_status(self) -> dict[str, Any]:
        with self._lock:
            return {
                "status": self._status.value,
                "last_error": self._last_error,
                "last_ingested_at": (
                    self._last_ingested_at.isoformat() if self._last_ingested_at else None
                ),
                "source": self._last_source,
                "participants": self._participants.count(),
            }

    # ── Ingestion ──

    def ingest(self, source) -> list[Participant]:
        """
        Fetch a snapshot from ``source`` and replace the whole collection with it.
        Raises IngestionError; on failure the previous snapshot stays in place.
        """
        with self._lock:
            self._status = StoreStatus.LOADING
        start = time.monotonic()
        try:
            snapshot = source.fetch()
        except IngestionError as exc:
            self._mark_failed(source.name, exc)
            raise
        except Exception as exc:
            error = IngestionError(f"Ingestion source '{source.name}' failed: {exc}")
            self._mark_failed(source.name, error)
            raise error from exc

        try:
            stored = self.ingest_snapshot(snapshot, source_name=source.name)
        except IngestionError as exc:
            self._mark_failed(source.name, exc)
            raise
        INGESTION_DURATION.labels(source=source.name).observe(time.monotonic() - start)
        return stored

    def ingest_snapshot(
        self, snapshot: list[Participant], source_name: str = "snapshot"
    ) -> list[Participant]:
        """
        Atomically replace all participants with ``snapshot`` (full replace, not merge).
        Returns the participants as stored, with unknown buses cleared.
        """
        cleaned: list[Participant] = []
        for participant in snapshot:
            if participant.bus_id is not None and not self._buses.exists(participant.bus_id):
                logger.warning(
                    "Ingested participant %s references unknown bus %s, left unassigned",
                    participant.id,
                    participant.bus_id,
                    extra={"participant_id": participant.id, "bus_id": participant.bus_id},
                )
                participant = participant.unassigned()
            cleaned.append(participant)

        with self._lock:
            try:
                self._participants.replace_all(cleaned)
            except ValueError as exc:
                raise IngestionError(str(exc)) from exc
            self._status = StoreStatus.READY
            self._last_error = None
            self._last_ingested_at = self._clock()
            self._last_source = source_name
            self._refresh_gauges()

        INGESTIONS_TOTAL.labels(source=source_name, status="success").inc()
        self._history.record_event(
            "roster_ingested",
            None,
            {"source": source_name, "participants": len(cleaned)},
        )
        logger.info(
            "Roster ingested: source=%s, participants=%d",
            source_name,
            len(cleaned),
            extra={"source": source_name},
        )
        return cleaned

    def _mark_failed(self, source_name: str, exc: Exception) -> None:
        with self._lock:
            self._status = StoreStatus.ERRORED
            self._last_error = str(exc)
        INGESTIONS_TOTAL.labels(source=source_name, status="error").inc()
        self._history.record_event(
            "ingestion_failed", None, {"source": source_name, "error": str(exc)}
        )
        logger.error(
            "Ingestion failed: source=%s, error=%s", source_name, exc, extra={"source": source_name}
        )

    # ── Commands ──

    def assign_participant(
        self, participant_id: str, bus_id: int, actor: Identity
    ) -> AssignmentResult:
        """
        Put a participant on a bus, moving it off its previous bus if any.
        Capacity is informational: over-capacity assignments succeed and are flagged.
        Raises NotFoundError, PermissionDeniedError.
        """
        with self._lock:
            participant = self._require_participant(participant_id)
            bus = self._require_bus(bus_id)
            self._check_scope(actor, bus_id)

            previous_bus_id = participant.bus_id
            if previous_bus_id == bus_id:
                return AssignmentResult(
                    participant=participant,
                    previous_bus_id=previous_bus_id,
                    changed=False,
                    over_capacity=self._participants.count_by_bus(bus_id) > bus.capacity,
                )

            updated = participant.assigned_to(bus_id, self._clock(), actor.display_name)
            self._participants.save(updated)
            used = self._participants.count_by_bus(bus_id)
            over_capacity = used > bus.capacity
            self._refresh_gauges()

        ASSIGNMENTS_TOTAL.labels(bus=str(bus_id)).inc()
        event_type = "participant_moved" if previous_bus_id is not None else "participant_assigned"
        self._history.record_event(
            event_type,
            bus_id,
            {
                "participant_id": participant_id,
                "ticket_id": updated.ticket_id,
                "from_bus_id": previous_bus_id,
                "actor": actor.display_name,
                "used": used,
                "capacity": bus.capacity,
            },
        )
        if over_capacity:
            OVER_CAPACITY_ASSIGNMENTS.labels(bus=str(bus_id)).inc()
            logger.warning(
                "Bus over capacity: bus=%d, used=%d, capacity=%d, participant=%s",
                bus_id,
                used,
                bus.capacity,
                participant_id,
            )
        logger.info(
            "Participant assigned: participant=%s, bus=%d, from=%s, actor=%s",
            participant_id,
            bus_id,
            previous_bus_id,
            actor.display_name,
            extra={"participant_id": participant_id, "bus_id": bus_id, "actor": actor.display_name},
        )
        return AssignmentResult(
            participant=updated,
            previous_bus_id=previous_bus_id,
            changed=True,
            over_capacity=over_capacity,
        )

    def remove_participant(
        self, participant_id: str, bus_id: int, actor: Identity
    ) -> AssignmentResult:
        """
        Take a participant off ``bus_id``. If the participant is not on that bus
        this is a no-op that returns it unchanged.
        Raises NotFoundError, PermissionDeniedError.
        """
        with self._lock:
            participant = self._require_participant(participant_id)
            self._require_bus(bus_id)
            self._check_scope(actor, bus_id)

            if participant.bus_id != bus_id:
                logger.info(
                    "Removal ignored: participant=%s not on bus=%d (current=%s)",
                    participant_id,
                    bus_id,
                    participant.bus_id,
                )
                return AssignmentResult(
                    participant=participant,
                    previous_bus_id=participant.bus_id,
                    changed=False,
                )

            updated = participant.unassigned()
            self._participants.save(updated)
            self._refresh_gauges()

        REMOVALS_TOTAL.labels(bus=str(bus_id)).inc()
        self._history.record_event(
            "participant_removed",
            bus_id,
            {
                "participant_id": participant_id,
                "ticket_id": updated.ticket_id,
                "actor": actor.display_name,
            },
        )
        logger.info(
            "Participant removed: participant=%s, bus=%d, actor=%s",
            participant_id,
            bus_id,
            actor.display_name,
            extra={"participant_id": participant_id, "bus_id": bus_id, "actor": actor.display_name},
        )
        return AssignmentResult(participant=updated, previous_bus_id=bus_id, changed=True)

    # ── Queries ──

    def search(self, query: str) -> list[Participant]:
        """Blank queries return nothing; search never means "list everything"."""
        normalized = (query or "").strip().lower()
        if not normalized:
            return []
        SEARCHES_TOTAL.inc()
        with self._lock:
            participants = self._participants.get_all()
        return [p for p in participants if matches_query(p, normalized)]

    def list_participants(
        self,
        query: Optional[str] = None,
        bus_id: Optional[int] = None,
        view: str = "all",
    ) -> list[Participant]:
        """Admin listing: blank query means no text filter here."""
        if view not in VIEW_MODES:
            raise ValidationError(f"view must be one of {VIEW_MODES}")
        with self._lock:
            result = self._participants.get_all()
        normalized = (query or "").strip().lower()
        if normalized:
            result = [p for p in result if matches_query(p, normalized)]
        if bus_id is not None:
            result = [p for p in result if p.bus_id == bus_id]
        if view == "assigned":
            result = [p for p in result if p.bus_id is not None]
        elif view == "unassigned":
            result = [p for p in result if p.bus_id is None]
        return result

    def get_participants_by_bus(self, bus_id: int) -> list[Participant]:
        with self._lock:
            return self._participants.get_by_bus(bus_id)

    def get_participant_by_id(self, participant_id: str) -> Participant:
        with self._lock:
            return self._require_participant(participant_id)

    def get_bus_by_id(self, bus_id: int) -> Bus:
        return self._require_bus(bus_id)

    def get_buses(self) -> list[Bus]:
        return self._buses.get_all()

    def get_bus_capacities(self) -> list[dict[str, Any]]:
        with self._lock:
            return [
                {
                    "id": bus.id,
                    "name": bus.name,
                    "used": self._participants.count_by_bus(bus.id),
                    "capacity": bus.capacity,
                }
                for bus in self._buses.get_all()
            ]

    def get_stats(self) -> dict[str, Any]:
        """Aggregated dashboard statistics."""
        capacities = self.get_bus_capacities()
        with self._lock:
            total = self._participants.count()
        assigned = sum(c["used"] for c in capacities)
        total_capacity = sum(c["capacity"] for c in capacities)
        return {
            "total_participants": total,
            "assigned": assigned,
            "unassigned": total - assigned,
            "total_capacity": total_capacity,
            "buses": [
                {**c, "available": c["capacity"] - c["used"], "full": c["used"] >= c["capacity"]}
                for c in capacities
            ],
            "status": self._status.value,
            "event_types": self._history.count_by_type(),
        }

    def snapshot(self) -> dict[str, Participant]:
        """Current participants keyed by id, for diffing."""
        with self._lock:
            return {p.id: p for p in self._participants.get_all()}

    # ── Internals ──

    def _require_participant(self, participant_id: str) -> Participant:
        participant = self._participants.get_by_id(participant_id)
        if participant is None:
            raise NotFoundError(f"No participant found with id '{participant_id}'")
        return participant

    def _require_bus(self, bus_id: int) -> Bus:
        bus = self._buses.get_by_id(bus_id)
        if bus is None:
            raise NotFoundError(f"No bus found with id {bus_id}")
        return bus

    def _check_scope(self, actor: Identity, bus_id: int) -> None:
        if not self._enforce_scope or actor.role != Role.CONTROLLER:
            return
        if actor.bus_id != bus_id:
            raise PermissionDeniedError(
                f"Controller '{actor.display_name}' manages bus {actor.bus_id}, not bus {bus_id}"
            )

    def _refresh_gauges(self) -> None:
        PARTICIPANTS_TOTAL.set(self._participants.count())
        for bus in self._buses.get_all():
            BUS_OCCUPANCY.labels(bus=str(bus.id)).set(self._participants.count_by_bus(bus.id))
