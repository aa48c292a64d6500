"""Tracked vessel feed: fetch, format and rank the vessels list shown in the radar grid.

Rows are rebuilt from scratch on every fetch:

  1. ``TrackedVesselFeed.fetch`` pulls the raw list from the tracking service.
     Any transport or decoding failure is logged and yields an empty list.
  2. ``format_entries`` turns each record into a ``VesselRow`` (missing values
     replaced by display sentinels) and orders rows by geofence type:
     Berth, Terminal, Anchorage, "N/A", then everything else.
  3. ``select_row`` maps a row the user picked back to the caller's full
     vessel object by display name.
"""
from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any, Callable, Iterable, Optional, Sequence

import httpx
from pydantic import ValidationError

from shipradar.config import settings
from shipradar.schemas.tracked_vessel import TrackedVessel, VesselRow
from shipradar.utils.http_retry import retry_request

logger = logging.getLogger(__name__)

TRACKED_VESSELS_PATH = "/api/get-tracked-vessels"

NOT_AVAILABLE = "N/A"
UNKNOWN_VESSEL = "Unknown Vessel"
NO_VALUE = "-"

GEOFENCE_TYPE_RANK: dict[str, int] = {
    "Berth": 1,
    "Terminal": 2,
    "Anchorage": 3,
    NOT_AVAILABLE: 4,
}
UNRANKED = 5


class TrackedVesselFeed:
    """Client for the upstream tracked-vessel endpoint.

    ``base_url`` is fixed at construction; pass ``client`` to reuse an
    existing ``httpx.Client`` (its lifecycle stays with the caller).
    """

    def __init__(
        self,
        base_url: str | None = None,
        timeout: float | None = None,
        delays: Sequence[float] | None = None,
        client: httpx.Client | None = None,
    ):
        self.base_url = (base_url if base_url is not None else settings.API_BASE_URL).rstrip("/")
        self.timeout = timeout if timeout is not None else settings.TRACKED_VESSELS_TIMEOUT
        self.delays = list(delays if delays is not None else settings.TRACKED_VESSELS_RETRY_DELAYS)
        self._client = client

    @property
    def url(self) -> str:
        return f"{self.base_url}{TRACKED_VESSELS_PATH}"

    def fetch(self) -> list[dict]:
        """Return the raw tracked-vessel records, or [] when the service is unavailable."""
        try:
            if self._client is not None:
                data = self._get(self._client)
            else:
                with httpx.Client(timeout=self.timeout, follow_redirects=True) as client:
                    data = self._get(client)
        except httpx.HTTPStatusError as exc:
            logger.error("Error fetching tracked vessels: HTTP %d from %s",
                         exc.response.status_code, self.url)
            return []
        except httpx.HTTPError as exc:
            logger.error("Error fetching tracked vessels from %s: %s", self.url, exc)
            return []
        except ValueError as exc:
            logger.error("Tracked vessels response from %s is not valid JSON: %s", self.url, exc)
            return []

        if not isinstance(data, list):
            logger.error("Tracked vessels response is %s, expected a list", type(data).__name__)
            return []

        logger.info("Fetched %d tracked vessels", len(data))
        return data

    def load_rows(self) -> list[VesselRow]:
        return format_entries(self.fetch())

    def _get(self, client: httpx.Client) -> Any:
        resp = retry_request(client.get, self.url, delays=self.delays)
        return resp.json()


def _or(value: Optional[str], sentinel: str) -> str:
    return value if value else sentinel


def build_row(vessel: TrackedVessel) -> VesselRow:
    """Apply the display defaults to one tracked vessel."""
    ais = vessel.ais
    return VesselRow(
        imo=_or(ais.imo if ais else None, NOT_AVAILABLE),
        ais_name=_or(ais.name if ais else None, UNKNOWN_VESSEL),
        geofence_status=_or(vessel.geofence_status, NO_VALUE),
        eta=_or(ais.eta if ais else None, NOT_AVAILABLE),
        destination=_or(ais.destination if ais else None, NOT_AVAILABLE),
        geofence_type=_or(vessel.geofence_type, NO_VALUE),
        case_id=_or(vessel.case_id, NO_VALUE),
        info1=_or(vessel.info1, NO_VALUE),
        eta_time=_or(vessel.eta_time, NO_VALUE),
        eta_date=_or(vessel.eta_date, NO_VALUE),
        agent=_or(vessel.agent, NOT_AVAILABLE),
        agent_name=_or(vessel.agent_name, NOT_AVAILABLE),
    )


def geofence_rank(geofence_type: str) -> int:
    return GEOFENCE_TYPE_RANK.get(geofence_type, UNRANKED)


def _parse(record: Any) -> TrackedVessel:
    if isinstance(record, TrackedVessel):
        return record
    if not isinstance(record, Mapping):
        logger.warning("Tracked vessel record is %s, treating as empty", type(record).__name__)
        return TrackedVessel()
    try:
        return TrackedVessel.model_validate(record)
    except ValidationError as exc:
        logger.warning("Malformed tracked vessel record, treating as empty: %s", exc)
        return TrackedVessel()


def format_entries(tracked_vessels: Iterable[Any] | None = None) -> list[VesselRow]:
    """Build one display row per record, Berth rows first.

    ``sorted`` is stable, so rows of equal rank keep their input order.
    """
    rows = [build_row(_parse(record)) for record in tracked_vessels or []]
    return sorted(rows, key=lambda row: geofence_rank(row.geofence_type))


def _vessel_name(vessel: Any) -> Optional[str]:
    if isinstance(vessel, Mapping):
        name = vessel.get("name")
    else:
        name = getattr(vessel, "name", None)
    return name if isinstance(name, str) else None


def select_row(row: VesselRow | Mapping | str, vessels: Iterable[Any]) -> Any | None:
    """Find the caller's vessel whose trimmed name equals the row's trimmed AIS name.

    ``row`` may be a VesselRow, a row mapping keyed by ``AISName``, or the
    name itself. Returns None (and logs a warning) when the name is empty or
    no vessel matches.
    """
    if isinstance(row, VesselRow):
        raw_name = row.ais_name
    elif isinstance(row, Mapping):
        raw_name = row.get("AISName")
    else:
        raw_name = row
    selected_name = raw_name.strip() if isinstance(raw_name, str) else ""
    if not selected_name:
        logger.warning("AISName is undefined or empty in row: %r", row)
        return None

    for vessel in vessels or []:
        name = _vessel_name(vessel)
        if name is not None and name.strip() == selected_name:
            return vessel

    logger.warning("Vessel data not found for: %s", selected_name)
    return None


VIEW_VESSEL_DETAILS = "View Vessel Details"


def view_vessel_details(
    row: VesselRow | Mapping | str,
    vessels: Iterable[Any],
    on_row_click: Callable[[Any], None],
) -> bool:
    """Row action: hand the matching vessel to ``on_row_click``. Returns False on a miss."""
    vessel = select_row(row, vessels)
    if vessel is None:
        return False
    on_row_click(vessel)
    return True
