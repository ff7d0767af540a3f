# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Repository: Participant data access.
Owns the ordered participant collection and the derived bus -> participant index.
NO business rules here — the index is the only thing kept in sync.
"""

from typing import Optional

from roster.models.domain import Participant


class ParticipantRepository:
    """In-memory participant storage, ordered by ingestion."""

    def __init__(self) -> None:
        self._store: dict[str, Participant] = {}
        self._by_bus: dict[int, list[str]] = {}

    # ── Read ──

    def get_all(self) -> list[Participant]:
        return list(self._store.values())

    def get_by_id(self, participant_id: str) -> Optional[Participant]:
        return self._store.get(participant_id)

    def get_by_bus(self, bus_id: int) -> list[Participant]:
        return [self._store[pid] for pid in self._by_bus.get(bus_id, [])]

    def exists(self, participant_id: str) -> bool:
        return participant_id in self._store

    def count(self) -> int:
        return len(self._store)

    def count_by_bus(self, bus_id: int) -> int:
        return len(self._by_bus.get(bus_id, []))

    def ids(self) -> set[str]:
        return set(self._store)

    # ── Write ──

    def save(self, participant: Participant) -> None:
        """Store a participant value, moving it in the bus index if needed."""
        previous = self._store.get(participant.id)
        if previous is not None and previous.bus_id is not None:
            members = self._by_bus.get(previous.bus_id, [])
            if participant.id in members:
                members.remove(participant.id)
        self._store[participant.id] = participant
        if participant.bus_id is not None:
            self._by_bus.setdefault(participant.bus_id, []).append(participant.id)

    def replace_all(self, snapshot: list[Participant]) -> None:
        """Swap in a whole new collection. Raises ValueError on duplicate ids."""
        store: dict[str, Participant] = {}
        by_bus: dict[int, list[str]] = {}
        for participant in snapshot:
            if participant.id in store:
                raise ValueError(f"Duplicate participant id '{participant.id}'")
            store[participant.id] = participant
            if participant.bus_id is not None:
                by_bus.setdefault(participant.bus_id, []).append(participant.id)
        self._store, self._by_bus = store, by_bus

    # ── Bulk / internal ──

    def clear(self) -> None:
        self._store = {}
        self._by_bus = {}
