# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Service: Controller account management — business logic for admin CRUD.
Coordinates user writes with session revocation, history, and validation.
"""

import uuid
from datetime import datetime, timezone
from typing import Any, Optional

from roster.core.errors import NotFoundError, ValidationError
from roster.core.logging import get_logger
from roster.models.domain import Role
from roster.repositories.bus_repository import BusRepository
from roster.repositories.history_repository import HistoryRepository
from roster.repositories.session_repository import SessionRepository
from roster.repositories.user_repository import UserRepository
from roster.services.auth_service import hash_password, public_user

logger = get_logger(__name__)


class ControllerService:
    """Business logic for controller accounts."""

    def __init__(
        self,
        user_repo: UserRepository,
        session_repo: SessionRepository,
        bus_repo: BusRepository,
        history_repo: HistoryRepository,
    ) -> None:
        self._users = user_repo
        self._sessions = session_repo
        self._buses = bus_repo
        self._history = history_repo

    # ── Commands ──

    def create_controller(
        self, name: str, email: str, password: str, bus_id: Optional[int]
    ) -> dict[str, Any]:
        """Create a controller bound to one bus. Raises ValidationError."""
        name, email = (name or "").strip(), (email or "").strip()
        if not name or not email or not password or bus_id is None:
            raise ValidationError("All fields are required")
        self._check_email_free(email)
        self._check_bus(bus_id)

        user_id = str(uuid.uuid4())
        record: dict[str, Any] = {
            "id": user_id,
            "name": name,
            "email": email,
            "password_hash": hash_password(password),
            "role": Role.CONTROLLER.value,
            "bus_id": bus_id,
            "created_at": datetime.now(timezone.utc).isoformat(),
            "last_login": None,
        }
        self._users.save(user_id, record)
        self._history.record_event(
            "controller_created", bus_id, {"controller_id": user_id, "email": email}
        )
        logger.info("Controller created: id=%s, bus=%d", user_id, bus_id)
        return public_user(record)

    def update_controller(
        self,
        controller_id: str,
        name: Optional[str] = None,
        email: Optional[str] = None,
        bus_id: Optional[int] = None,
    ) -> dict[str, Any]:
        """Partially update a controller. Raises NotFoundError / ValidationError."""
        record = self._require_controller(controller_id)
        changes: dict[str, Any] = {}

        if name is not None:
            name = name.strip()
            if not name:
                raise ValidationError("All fields are required")
            changes["name"] = name
        if email is not None:
            email = email.strip()
            if not email:
                raise ValidationError("All fields are required")
            self._check_email_free(email, exclude_id=controller_id)
            changes["email"] = email
        if bus_id is not None:
            self._check_bus(bus_id)
            changes["bus_id"] = bus_id

        record.update(changes)
        if changes:
            self._history.record_event(
                "controller_updated",
                record["bus_id"],
                {"controller_id": controller_id, "fields": sorted(changes)},
            )
            logger.info("Controller updated: id=%s, fields=%s", controller_id, sorted(changes))
        return public_user(record)

    def delete_controller(self, controller_id: str) -> dict[str, str]:
        """Delete a controller and end its sessions. Raises NotFoundError."""
        record = self._require_controller(controller_id)
        self._users.delete(controller_id)
        revoked = self._sessions.revoke_user(controller_id)
        self._history.record_event(
            "controller_deleted", record["bus_id"], {"controller_id": controller_id}
        )
        logger.info("Controller deleted: id=%s, sessions_revoked=%d", controller_id, revoked)
        return {"status": "deleted", "id": controller_id}

    # ── Queries ──

    def list_controllers(self) -> list[dict[str, Any]]:
        return [public_user(u) for u in self._users.get_all(role=Role.CONTROLLER.value)]

    def get_controller(self, controller_id: str) -> dict[str, Any]:
        return public_user(self._require_controller(controller_id))

    # ── Seed ──

    def seed_defaults(self) -> None:
        """Create the demo admin and controllers so the service is usable immediately."""
        now = datetime.now(timezone.utc).isoformat()
        default_users = [
            ("1", "Admin User", "admin@example.com", "admin123", Role.ADMIN, None),
            ("2", "Ahmed", "controller@example.com", "controller123", Role.CONTROLLER, 3),
            ("3", "Controller 1", "controller1@example.com", "controller123", Role.CONTROLLER, 1),
            ("4", "Controller 2", "controller2@example.com", "controller123", Role.CONTROLLER, 2),
            ("5", "Controller 3", "controller3@example.com", "controller123", Role.CONTROLLER, 3),
            ("6", "Controller 4", "controller4@example.com", "controller123", Role.CONTROLLER, 4),
        ]
        seeded = 0
        for user_id, name, email, password, role, bus_id in default_users:
            if bus_id is not None and not self._buses.exists(bus_id):
                continue
            self._users.save(
                user_id,
                {
                    "id": user_id,
                    "name": name,
                    "email": email,
                    "password_hash": hash_password(password),
                    "role": role.value,
                    "bus_id": bus_id,
                    "created_at": now,
                    "last_login": None,
                },
            )
            seeded += 1
        logger.info("Seeded %d default users", seeded)

    # ── Internals ──

    def _require_controller(self, controller_id: str) -> dict[str, Any]:
        record = self._users.get_by_id(controller_id)
        if record is None or record["role"] != Role.CONTROLLER.value:
            raise NotFoundError(f"No controller found with id '{controller_id}'")
        return record

    def _check_email_free(self, email: str, exclude_id: Optional[str] = None) -> None:
        existing = self._users.get_by_email(email)
        if existing is not None and existing["id"] != exclude_id:
            raise ValidationError("Email is already in use")

    def _check_bus(self, bus_id: int) -> None:
        if not self._buses.exists(bus_id):
            raise ValidationError(f"Unknown bus id {bus_id}")
