# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Core configuration — all env-driven, zero hardcode.
Single source of truth for every tunable parameter.
"""

import os


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


def parse_bus_config(raw: str) -> list[tuple[int, str, int]]:
    """
    Parse "Bus 1:50,Bus 2:50" into [(1, "Bus 1", 50), (2, "Bus 2", 50)].
    Bus ids are positional (1-based) and follow configuration order.
    """
    buses: list[tuple[int, str, int]] = []
    for entry in raw.split(","):
        entry = entry.strip()
        if not entry:
            continue
        name, _, capacity = entry.rpartition(":")
        if not name:
            raise ValueError(f"Invalid bus entry '{entry}', expected 'name:capacity'")
        buses.append((len(buses) + 1, name.strip(), int(capacity)))
    return buses


class Settings:
    """Application settings loaded from environment variables."""

    SERVICE_NAME: str = os.getenv("SERVICE_NAME", "roster-service")
    SERVICE_VERSION: str = os.getenv("SERVICE_VERSION", "1.0.0")
    SERVICE_PORT: int = int(os.getenv("SERVICE_PORT", "8000"))

    BUSES: list[tuple[int, str, int]] = parse_bus_config(
        os.getenv("BUSES", "Bus 1:50,Bus 2:50,Bus 3:50,Bus 4:50")
    )

    SHEET_URL: str = os.getenv("SHEET_URL", "")
    INGESTION_TIMEOUT: float = float(os.getenv("INGESTION_TIMEOUT", "10.0"))
    STARTUP_FIXTURE_FALLBACK: bool = _env_bool("STARTUP_FIXTURE_FALLBACK", "true")
    IMPORT_ACTOR_NAME: str = os.getenv("IMPORT_ACTOR_NAME", "Spreadsheet import")

    SEED_FIXTURES: bool = _env_bool("SEED_FIXTURES", "true")
    FIXTURE_COUNT: int = int(os.getenv("FIXTURE_COUNT", "200"))
    FIXTURE_SEED: int | None = (
        int(os.environ["FIXTURE_SEED"]) if os.getenv("FIXTURE_SEED") else None
    )
    SEED_DEFAULT_USERS: bool = _env_bool("SEED_DEFAULT_USERS", "true")
    PASSWORD_HASH_ROUNDS: int = int(os.getenv("PASSWORD_HASH_ROUNDS", "12"))

    ENFORCE_CONTROLLER_SCOPE: bool = _env_bool("ENFORCE_CONTROLLER_SCOPE", "true")

    DEFAULT_HISTORY_LIMIT: int = int(os.getenv("DEFAULT_HISTORY_LIMIT", "100"))
    MAX_HISTORY_SIZE: int = int(os.getenv("MAX_HISTORY_SIZE", "10000"))
    MAX_SYNC_HISTORY: int = int(os.getenv("MAX_SYNC_HISTORY", "500"))

    CORS_ORIGINS: list[str] = os.getenv("CORS_ORIGINS", "*").split(",")
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()


settings = Settings()
