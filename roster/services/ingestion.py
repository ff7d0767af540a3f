# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Service: Ingestion sources — produce full participant snapshots.

A source exposes ``name`` and ``fetch() -> list[Participant]`` and raises
IngestionError when it cannot produce a snapshot at all. Individual bad rows
are skipped, never fatal.
"""

import csv
import io
import random
import re
from datetime import datetime, timezone
from typing import Optional

import httpx

from roster.core.config import settings
from roster.core.errors import IngestionError
from roster.core.logging import get_logger
from roster.metrics.prometheus import MALFORMED_ROWS
from roster.models.domain import Participant
from roster.services.fixtures import generate_participants

logger = get_logger(__name__)

SHEET_ID_PATTERN = re.compile(r"/d/([a-zA-Z0-9_-]+)")
LEADING_INT_PATTERN = re.compile(r"\s*([+-]?\d+)")
SHEET_COLUMNS = ("ticket_id", "first_name", "last_name", "bus_id", "assigned_at", "assigned_by")


def extract_sheet_id(url: str) -> Optional[str]:
    """Pull the spreadsheet id out of a Google Sheets URL, if it is one."""
    match = SHEET_ID_PATTERN.search(url or "")
    return match.group(1) if match else None


def csv_export_url(url: str) -> str:
    """Google Sheets URLs map to their CSV export; anything else is fetched as-is."""
    sheet_id = extract_sheet_id(url)
    if sheet_id and "docs.google.com" in url:
        return f"https://docs.google.com/spreadsheets/d/{sheet_id}/gviz/tq?tqx=out:csv"
    return url


def _parse_bus_id(raw: str) -> Optional[int]:
    """Leading integer of the cell, so "3.0" and "3 (north)" both mean bus 3."""
    match = LEADING_INT_PATTERN.match(raw)
    return int(match.group(1)) if match else None


def _parse_timestamp(raw: str) -> Optional[datetime]:
    if not raw:
        return None
    try:
        parsed = datetime.fromisoformat(raw)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def parse_sheet_csv(
    text: str,
    import_actor: Optional[str] = None,
    now: Optional[datetime] = None,
) -> tuple[list[Participant], int]:
    """
    Parse a spreadsheet CSV export into participants.

    The first row is a header. Columns, in order: ticket id, first name,
    last name, then optionally bus id, assignment timestamp, assigning actor.
    Returns (participants, malformed_row_count).
    Raises IngestionError when there are data rows but none of them parse.
    """
    import_actor = import_actor or settings.IMPORT_ACTOR_NAME
    now = now or datetime.now(timezone.utc)
    participants: list[Participant] = []
    malformed = 0
    data_rows = 0

    rows = list(csv.reader(io.StringIO(text)))
    if not any(any(cell.strip() for cell in row) for row in rows):
        raise IngestionError("Spreadsheet is empty: no header and no rows")
    for index, row in enumerate(rows):
        if index == 0:
            continue
        cells = [cell.strip() for cell in row]
        if not any(cells):
            continue
        data_rows += 1
        if len(cells) < 3:
            malformed += 1
            logger.warning("Skipping malformed sheet row %d: %d columns", index + 1, len(cells))
            continue

        cells += [""] * (len(SHEET_COLUMNS) - len(cells))
        ticket_id, first_name, last_name, bus_raw, at_raw, by_raw = cells[: len(SHEET_COLUMNS)]
        participant = Participant(
            id=f"p{1000 + index}",
            first_name=first_name,
            last_name=last_name,
            ticket_id=ticket_id or f"T{1000 + index}",
        )
        bus_id = _parse_bus_id(bus_raw)
        if bus_id is not None and bus_id > 0:
            participant = participant.assigned_to(
                bus_id,
                _parse_timestamp(at_raw) or now,
                by_raw or import_actor,
            )
        participants.append(participant)

    if data_rows and not participants:
        raise IngestionError(f"Spreadsheet is unparseable: 0 of {data_rows} rows usable")
    if malformed:
        MALFORMED_ROWS.inc(malformed)
    return participants, malformed


class SheetIngestionSource:
    """Fetch participants from a spreadsheet CSV export over HTTP."""

    name = "sheet"

    def __init__(
        self,
        url: str,
        timeout: Optional[float] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        if not url:
            raise IngestionError("No spreadsheet URL configured")
        self.url = url
        self.export_url = csv_export_url(url)
        self._timeout = timeout if timeout is not None else settings.INGESTION_TIMEOUT
        self._transport = transport

    def fetch(self) -> list[Participant]:
        try:
            with httpx.Client(
                timeout=self._timeout,
                transport=self._transport,
                follow_redirects=True,
            ) as client:
                resp = client.get(self.export_url)
                resp.raise_for_status()
                if "text/html" in resp.headers.get("content-type", ""):
                    raise IngestionError(
                        "Spreadsheet URL returned an HTML page instead of CSV; check sharing settings"
                    )
                body = resp.text
        except httpx.TimeoutException as exc:
            raise IngestionError(
                f"Spreadsheet fetch timed out after {self._timeout}s"
            ) from exc
        except httpx.HTTPStatusError as exc:
            raise IngestionError(
                f"Spreadsheet fetch failed with HTTP {exc.response.status_code}"
            ) from exc
        except httpx.HTTPError as exc:
            raise IngestionError(f"Spreadsheet unreachable: {exc}") from exc

        participants, malformed = parse_sheet_csv(body)
        logger.info(
            "Spreadsheet fetched: url=%s, participants=%d, malformed=%d",
            self.export_url,
            len(participants),
            malformed,
        )
        return participants


class FixtureIngestionSource:
    """Generate demo participants locally."""

    name = "fixtures"

    def __init__(
        self,
        bus_ids: list[int],
        count: Optional[int] = None,
        seed: Optional[int] = None,
    ) -> None:
        self._bus_ids = list(bus_ids)
        self._count = count if count is not None else settings.FIXTURE_COUNT
        self._seed = seed if seed is not None else settings.FIXTURE_SEED

    def fetch(self) -> list[Participant]:
        rng = random.Random(self._seed)
        return generate_participants(self._count, self._bus_ids, rng)
