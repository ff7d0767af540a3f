# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Domain errors — raised by services, translated to HTTP by controllers.
Every failure is local and recoverable; none of these is fatal to the process.
"""


class RosterError(Exception):
    """Base class for all roster domain errors."""


class NotFoundError(RosterError):
    """Unknown participant, bus, controller, or session."""


class ValidationError(RosterError):
    """Caller supplied invalid input (missing field, duplicate email, bad URL)."""


class IngestionError(RosterError):
    """Ingestion source unreachable, timed out, or fully unparseable."""


class PermissionDeniedError(RosterError):
    """Actor is authenticated but not allowed to perform the operation."""


class AuthenticationError(RosterError):
    """Missing, unknown, or revoked credentials."""
