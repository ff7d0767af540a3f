# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Repository: Bus data access.
The bus set is fixed at configuration time; there is no write path.
"""

from typing import Optional

from roster.core.config import settings
from roster.models.domain import Bus


class BusRepository:
    """Read-only bus storage, in configuration order."""

    def __init__(self, buses: Optional[list[Bus]] = None) -> None:
        if buses is None:
            buses = [
                Bus(id=bus_id, name=name, capacity=capacity)
                for bus_id, name, capacity in settings.BUSES
            ]
        self._buses: list[Bus] = list(buses)
        self._by_id: dict[int, Bus] = {b.id: b for b in self._buses}

    def get_all(self) -> list[Bus]:
        return list(self._buses)

    def get_by_id(self, bus_id: int) -> Optional[Bus]:
        return self._by_id.get(bus_id)

    def exists(self, bus_id: int) -> bool:
        return bus_id in self._by_id

    def count(self) -> int:
        return len(self._buses)
