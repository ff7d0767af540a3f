# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Controller: Buses and participants — the endpoints both roles use.
Thin HTTP layer — delegates ALL logic to RosterStore.
"""

from fastapi import APIRouter, Depends, HTTPException, Query
from starlette.responses import Response

from roster.core.dependencies import get_current_identity, get_roster_store
from roster.core.errors import NotFoundError, PermissionDeniedError
from roster.models.domain import Identity
from roster.schemas.roster import (
    AssignmentResponse,
    AssignRequest,
    BusCapacityResponse,
    BusResponse,
    ParticipantResponse,
    RemoveRequest,
)
from roster.services.export import export_bus_csv
from roster.services.roster_store import RosterStore

router = APIRouter(prefix="/api/v1", tags=["Roster"])


# ── Buses ──

@router.get("/buses", response_model=list[BusCapacityResponse])
def list_buses(
    identity: Identity = Depends(get_current_identity),
    store: RosterStore = Depends(get_roster_store),
):
    """All buses with their current occupancy."""
    return store.get_bus_capacities()


@router.get("/buses/capacity", response_model=list[BusCapacityResponse])
def bus_capacities(
    identity: Identity = Depends(get_current_identity),
    store: RosterStore = Depends(get_roster_store),
):
    return store.get_bus_capacities()


@router.get("/buses/{bus_id}", response_model=BusResponse)
def get_bus(
    bus_id: int,
    identity: Identity = Depends(get_current_identity),
    store: RosterStore = Depends(get_roster_store),
):
    try:
        return store.get_bus_by_id(bus_id).model_dump()
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.get("/buses/{bus_id}/participants", response_model=list[ParticipantResponse])
def bus_participants(
    bus_id: int,
    identity: Identity = Depends(get_current_identity),
    store: RosterStore = Depends(get_roster_store),
):
    """Everyone currently assigned to a bus."""
    try:
        store.get_bus_by_id(bus_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return [p.to_dict() for p in store.get_participants_by_bus(bus_id)]


@router.get("/buses/{bus_id}/export")
def export_bus(
    bus_id: int,
    identity: Identity = Depends(get_current_identity),
    store: RosterStore = Depends(get_roster_store),
):
    """Download a bus roster as CSV."""
    try:
        content = export_bus_csv(store, bus_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return Response(
        content=content,
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="bus-{bus_id}-roster.csv"'},
    )


# ── Participants ──

@router.get("/participants/search", response_model=list[ParticipantResponse])
def search_participants(
    q: str = Query(default="", description="Name or ticket id fragment"),
    identity: Identity = Depends(get_current_identity),
    store: RosterStore = Depends(get_roster_store),
):
    """Case-insensitive search. A blank query returns an empty list."""
    return [p.to_dict() for p in store.search(q)]


@router.get("/participants/{participant_id}", response_model=ParticipantResponse)
def get_participant(
    participant_id: str,
    identity: Identity = Depends(get_current_identity),
    store: RosterStore = Depends(get_roster_store),
):
    try:
        return store.get_participant_by_id(participant_id).to_dict()
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.post("/participants/{participant_id}/assign", response_model=AssignmentResponse)
def assign_participant(
    participant_id: str,
    payload: AssignRequest,
    identity: Identity = Depends(get_current_identity),
    store: RosterStore = Depends(get_roster_store),
):
    """Put a participant on a bus, moving them off any previous bus."""
    try:
        result = store.assign_participant(participant_id, payload.bus_id, identity)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except PermissionDeniedError as e:
        raise HTTPException(status_code=403, detail=str(e))
    return result.to_dict()


@router.post("/participants/{participant_id}/remove", response_model=AssignmentResponse)
def remove_participant(
    participant_id: str,
    payload: RemoveRequest,
    identity: Identity = Depends(get_current_identity),
    store: RosterStore = Depends(get_roster_store),
):
    """Take a participant off a bus. No-op if they are not on that bus."""
    try:
        result = store.remove_participant(participant_id, payload.bus_id, identity)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except PermissionDeniedError as e:
        raise HTTPException(status_code=403, detail=str(e))
    return result.to_dict()


@router.get("/roster/status")
def roster_status(
    identity: Identity = Depends(get_current_identity),
    store: RosterStore = Depends(get_roster_store),
):
    """Load state of the roster: idle, loading, ready, or errored."""
    return store.get_status()
