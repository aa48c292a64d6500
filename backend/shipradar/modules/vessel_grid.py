"""Vessel grid presentation: column definitions, paging, CSV export and rich rendering."""
from __future__ import annotations

import csv
import io
import math
from dataclasses import dataclass
from datetime import datetime, tzinfo
from typing import Callable, Optional, Sequence

from rich.table import Table

from shipradar.modules.tracked_vessels import NOT_AVAILABLE
from shipradar.schemas.tracked_vessel import VesselRow

EMPTY_STATE_MESSAGE = "No vessels data to display"

# Row colour per geofence type; other types use the default style
GEOFENCE_TYPE_STYLE: dict[str, str] = {
    "Berth": "red",
    "Terminal": "blue",
    "Anchorage": "green",
}

HEADER_STYLE = "bold #0F67B1"


def _text(value: str) -> str:
    return value


def render_eta(value: Optional[str], tz: Optional[tzinfo] = None) -> str:
    """Render an ISO-8601 ETA as ``Jan 05 2024, 14:30 UTC`` in ``tz`` (local time by default).

    Values without an offset are read as local time. Unparseable values are shown as-is.
    """
    if not value or value == NOT_AVAILABLE:
        return NOT_AVAILABLE
    try:
        parsed = datetime.fromisoformat(value.strip())
    except ValueError:
        return value
    local = parsed.astimezone(tz)
    return f"{local:%b %d %Y}, {local:%H:%M} {local.tzname() or ''}".rstrip()


@dataclass(frozen=True)
class Column:
    header: str
    key: str
    render: Callable[[str], str] = _text

    def cell(self, row: VesselRow) -> str:
        return self.render(row.model_dump(by_alias=True)[self.key])


COLUMNS: tuple[Column, ...] = (
    Column("Case Id", "CaseId"),
    Column("IMO Number", "IMO"),
    Column("Vessel Name", "AISName"),
    Column("ETA", "ETA", render_eta),
    Column("Destination", "Destination"),
    Column("Region Name", "GeofenceType"),
    Column("Location", "GeofenceStatus"),
)


def row_style(row: VesselRow) -> str:
    return GEOFENCE_TYPE_STYLE.get(row.geofence_type, "")


def total_pages(total: int, page_size: int) -> int:
    return max(1, math.ceil(total / page_size)) if page_size > 0 else 1


def paginate(rows: Sequence[VesselRow], page: int = 1, page_size: int = 5) -> list[VesselRow]:
    """Return the 1-based ``page`` of ``rows``; out-of-range pages are empty."""
    if page < 1 or page_size < 1:
        raise ValueError("page and page_size must be >= 1")
    start = (page - 1) * page_size
    return list(rows[start:start + page_size])


def rows_to_csv(rows: Sequence[VesselRow]) -> str:
    """Export every row field, in row order, with the wire field names as header."""
    buf = io.StringIO()
    fieldnames = [field.alias for field in VesselRow.model_fields.values()]
    writer = csv.DictWriter(buf, fieldnames=fieldnames)
    writer.writeheader()
    for row in rows:
        writer.writerow(row.model_dump(by_alias=True))
    return buf.getvalue()


def build_table(
    rows: Sequence[VesselRow],
    page: int = 1,
    page_size: int = 5,
    columns: Sequence[Column] = COLUMNS,
) -> Table:
    """Render one page of rows. Row numbers are positions in the full sorted list."""
    pages = total_pages(len(rows), page_size)
    table = Table(
        title="Tracked Vessels",
        caption=f"Page {page} of {pages}, {len(rows)} vessels",
        header_style=HEADER_STYLE,
    )
    table.add_column("#", justify="right")
    for column in columns:
        table.add_column(column.header, justify="center")

    offset = (page - 1) * page_size
    for i, row in enumerate(paginate(rows, page, page_size), start=offset + 1):
        table.add_row(str(i), *(column.cell(row) for column in columns), style=row_style(row) or None)
    return table
