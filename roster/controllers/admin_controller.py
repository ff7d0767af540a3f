# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Controller: Admin endpoints — participant listing, stats, controller accounts,
settings, synchronisation, and the audit log. Every route requires the admin role.
"""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from roster.core.dependencies import (
    get_controller_service,
    get_history_repo,
    get_roster_store,
    get_settings_service,
    get_sync_service,
    require_admin,
)
from roster.core.errors import IngestionError, NotFoundError, ValidationError
from roster.models.domain import Identity
from roster.repositories.history_repository import HistoryRepository
from roster.schemas.roster import (
    ControllerCreateRequest,
    ControllerUpdateRequest,
    ParticipantResponse,
    SettingsResponse,
    SettingsUpdateRequest,
    UserResponse,
)
from roster.services.controller_service import ControllerService
from roster.services.roster_store import RosterStore
from roster.services.settings_service import SettingsService
from roster.services.sync_service import SyncService

router = APIRouter(prefix="/api/v1", tags=["Admin"], dependencies=[Depends(require_admin)])


# ── Participants & stats ──

@router.get("/participants", response_model=list[ParticipantResponse])
def list_participants(
    q: Optional[str] = Query(default=None, description="Name or ticket id fragment"),
    bus_id: Optional[int] = Query(default=None),
    view: str = Query(default="all", description="all, assigned, or unassigned"),
    store: RosterStore = Depends(get_roster_store),
):
    try:
        return [p.to_dict() for p in store.list_participants(q, bus_id, view)]
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.get("/roster/stats")
def roster_stats(store: RosterStore = Depends(get_roster_store)):
    """Dashboard totals and per-bus occupancy."""
    return store.get_stats()


# ── Controllers ──

@router.get("/controllers", response_model=list[UserResponse])
def list_controllers(service: ControllerService = Depends(get_controller_service)):
    return service.list_controllers()


@router.post("/controllers", status_code=201, response_model=UserResponse)
def create_controller(
    payload: ControllerCreateRequest,
    service: ControllerService = Depends(get_controller_service),
):
    try:
        return service.create_controller(
            name=payload.name,
            email=payload.email,
            password=payload.password,
            bus_id=payload.bus_id,
        )
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.get("/controllers/{controller_id}", response_model=UserResponse)
def get_controller(
    controller_id: str,
    service: ControllerService = Depends(get_controller_service),
):
    try:
        return service.get_controller(controller_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.patch("/controllers/{controller_id}", response_model=UserResponse)
def update_controller(
    controller_id: str,
    payload: ControllerUpdateRequest,
    service: ControllerService = Depends(get_controller_service),
):
    try:
        return service.update_controller(
            controller_id,
            name=payload.name,
            email=payload.email,
            bus_id=payload.bus_id,
        )
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.delete("/controllers/{controller_id}")
def delete_controller(
    controller_id: str,
    service: ControllerService = Depends(get_controller_service),
):
    """Delete a controller account and invalidate its API keys."""
    try:
        return service.delete_controller(controller_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))


# ── Settings ──

@router.get("/settings", response_model=SettingsResponse)
def get_settings(service: SettingsService = Depends(get_settings_service)):
    return service.get_settings()


@router.patch("/settings", response_model=SettingsResponse)
def update_settings(
    payload: SettingsUpdateRequest,
    identity: Identity = Depends(require_admin),
    service: SettingsService = Depends(get_settings_service),
):
    try:
        return service.update_settings(
            actor=identity.display_name,
            sheet_url=payload.sheet_url,
            auto_sync=payload.auto_sync,
            sync_interval_minutes=payload.sync_interval_minutes,
            notify_controllers=payload.notify_controllers,
        )
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))


# ── Sync ──

@router.post("/sync")
def trigger_sync(
    identity: Identity = Depends(require_admin),
    service: SyncService = Depends(get_sync_service),
):
    """Re-ingest from the configured source. The roster is untouched on failure."""
    try:
        return service.run(triggered_by=identity.display_name)
    except IngestionError as e:
        raise HTTPException(status_code=502, detail=str(e))


@router.get("/sync/history")
def sync_history(
    limit: Optional[int] = Query(default=None, ge=1),
    service: SyncService = Depends(get_sync_service),
):
    return {
        "status": service.get_sync_status(),
        "runs": service.get_history(limit),
    }


# ── Audit history ──

@router.get("/history")
def get_history(
    bus_id: Optional[int] = Query(default=None),
    event_type: Optional[str] = Query(default=None),
    limit: Optional[int] = Query(default=None, ge=1),
    history_repo: HistoryRepository = Depends(get_history_repo),
):
    """Audit log of assignments, removals, ingestions, and admin changes."""
    events = history_repo.get_all(bus_id=bus_id, event_type=event_type, limit=limit)
    return {"total": len(events), "events": events}
