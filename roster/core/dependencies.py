# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
FastAPI dependency injection — wire repositories and services,
and resolve the acting identity from the X-API-Key header.
"""

from typing import Optional

from fastapi import Depends, Header, HTTPException

from roster.core.errors import AuthenticationError
from roster.models.domain import Identity
from roster.repositories.bus_repository import BusRepository
from roster.repositories.history_repository import HistoryRepository
from roster.repositories.participant_repository import ParticipantRepository
from roster.repositories.session_repository import SessionRepository
from roster.repositories.settings_repository import SettingsRepository
from roster.repositories.sync_repository import SyncRepository
from roster.repositories.user_repository import UserRepository
from roster.services.auth_service import AuthService
from roster.services.controller_service import ControllerService
from roster.services.roster_store import RosterStore
from roster.services.settings_service import SettingsService
from roster.services.sync_service import SyncService

# ── Singleton repository instances (in-memory stores) ──
_participant_repo = ParticipantRepository()
_bus_repo = BusRepository()
_history_repo = HistoryRepository()
_sync_repo = SyncRepository()
_user_repo = UserRepository()
_session_repo = SessionRepository()
_settings_repo = SettingsRepository()

# ── Service instances (with injected dependencies) ──
_roster_store = RosterStore(
    participant_repo=_participant_repo,
    bus_repo=_bus_repo,
    history_repo=_history_repo,
)
_sync_service = SyncService(
    store=_roster_store,
    bus_repo=_bus_repo,
    settings_repo=_settings_repo,
    sync_repo=_sync_repo,
)
_auth_service = AuthService(user_repo=_user_repo, session_repo=_session_repo)
_controller_service = ControllerService(
    user_repo=_user_repo,
    session_repo=_session_repo,
    bus_repo=_bus_repo,
    history_repo=_history_repo,
)
_settings_service = SettingsService(settings_repo=_settings_repo, history_repo=_history_repo)


# ── FastAPI dependency functions ──
def get_roster_store() -> RosterStore:
    return _roster_store


def get_sync_service() -> SyncService:
    return _sync_service


def get_auth_service() -> AuthService:
    return _auth_service


def get_controller_service() -> ControllerService:
    return _controller_service


def get_settings_service() -> SettingsService:
    return _settings_service


def get_participant_repo() -> ParticipantRepository:
    return _participant_repo


def get_bus_repo() -> BusRepository:
    return _bus_repo


def get_history_repo() -> HistoryRepository:
    return _history_repo


def get_sync_repo() -> SyncRepository:
    return _sync_repo


def get_user_repo() -> UserRepository:
    return _user_repo


def get_session_repo() -> SessionRepository:
    return _session_repo


def get_settings_repo() -> SettingsRepository:
    return _settings_repo


# ── Identity ──
def get_api_key(x_api_key: Optional[str] = Header(default=None)) -> Optional[str]:
    return x_api_key


def get_current_identity(
    api_key: Optional[str] = Depends(get_api_key),
    auth: AuthService = Depends(get_auth_service),
) -> Identity:
    """401 when the key is missing, unknown, or belongs to a deleted account."""
    try:
        return auth.authenticate(api_key)
    except AuthenticationError as e:
        raise HTTPException(status_code=401, detail=str(e))


def require_admin(identity: Identity = Depends(get_current_identity)) -> Identity:
    if not identity.is_admin:
        raise HTTPException(status_code=403, detail="Admin role required")
    return identity
