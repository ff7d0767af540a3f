# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Service: Roster export — render a bus roster as CSV.
"""

import csv
import io

from roster.services.roster_store import RosterStore

EXPORT_COLUMNS = ["ticket_id", "first_name", "last_name", "bus", "assigned_at", "assigned_by"]


def export_bus_csv(store: RosterStore, bus_id: int) -> str:
    """CSV of everyone on ``bus_id``, sorted by last then first name. Raises NotFoundError."""
    bus = store.get_bus_by_id(bus_id)
    participants = sorted(
        store.get_participants_by_bus(bus_id),
        key=lambda p: (p.last_name.lower(), p.first_name.lower()),
    )
    buffer = io.StringIO()
    writer = csv.DictWriter(buffer, fieldnames=EXPORT_COLUMNS)
    writer.writeheader()
    for p in participants:
        writer.writerow(
            {
                "ticket_id": p.ticket_id,
                "first_name": p.first_name,
                "last_name": p.last_name,
                "bus": bus.name,
                "assigned_at": p.assigned_at.isoformat() if p.assigned_at else "",
                "assigned_by": p.assigned_by or "",
            }
        )
    return buffer.getvalue()
