from __future__ import annotations

from typing import Any, Optional

from fastapi import APIRouter, Body, Depends, HTTPException, Query
from fastapi.responses import StreamingResponse
from sqlalchemy.orm import Session

from shipradar.config import settings
from shipradar.database import get_db
from shipradar.modules import custom_fields as store
from shipradar.modules.tracked_vessels import TrackedVesselFeed
from shipradar.modules.vessel_grid import paginate, rows_to_csv, total_pages
from shipradar.schemas.custom_field import CustomFieldList, CustomFieldRead
from shipradar.schemas.tracked_vessel import VesselRowPage

router = APIRouter()


def get_feed() -> TrackedVesselFeed:
    return TrackedVesselFeed(base_url=settings.API_BASE_URL)


# ---------------------------------------------------------------------------
# Tracked vessels
# ---------------------------------------------------------------------------


@router.get("/tracked-vessels", response_model=VesselRowPage, tags=["vessels"])
def list_tracked_vessels(
    page: int = Query(1, ge=1),
    page_size: Optional[int] = Query(None, ge=1),
    feed: TrackedVesselFeed = Depends(get_feed),
):
    """Formatted tracked-vessel rows, Berth first. Upstream failure yields an empty page."""
    page_size = min(page_size or settings.GRID_PAGE_SIZE, settings.MAX_QUERY_LIMIT)
    rows = feed.load_rows()
    return VesselRowPage(
        items=paginate(rows, page, page_size),
        total=len(rows),
        page=page,
        page_size=page_size,
        total_pages=total_pages(len(rows), page_size),
    )


@router.get("/tracked-vessels/export", tags=["vessels"])
def export_tracked_vessels(feed: TrackedVesselFeed = Depends(get_feed)):
    """Download all formatted rows as CSV."""
    content = rows_to_csv(feed.load_rows())
    return StreamingResponse(
        iter([content]),
        media_type="text/csv",
        headers={"Content-Disposition": "attachment; filename=tracked_vessels.csv"},
    )


# ---------------------------------------------------------------------------
# Custom fields
# ---------------------------------------------------------------------------


def _get_or_404(db: Session, custom_field_id: int):
    field = store.get_custom_field(db, custom_field_id)
    if not field:
        raise HTTPException(status_code=404, detail="Custom field not found")
    return field


@router.post("/custom-fields", response_model=CustomFieldRead, status_code=201, tags=["custom-fields"])
def create_custom_field(body: Any = Body(...), db: Session = Depends(get_db)):
    """Create a custom field. All required attributes are checked before anything is stored."""
    field = store.create_custom_field(db, body)
    return CustomFieldRead.from_model(field)


@router.get("/custom-fields", response_model=CustomFieldList, tags=["custom-fields"])
def list_custom_fields(
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=500),
    db: Session = Depends(get_db),
):
    limit = min(limit, settings.MAX_QUERY_LIMIT)
    fields, total = store.list_custom_fields(db, skip=skip, limit=limit)
    return CustomFieldList(items=[CustomFieldRead.from_model(f) for f in fields], total=total)


@router.get("/custom-fields/{custom_field_id}", response_model=CustomFieldRead, tags=["custom-fields"])
def get_custom_field(custom_field_id: int, db: Session = Depends(get_db)):
    return CustomFieldRead.from_model(_get_or_404(db, custom_field_id))


@router.patch("/custom-fields/{custom_field_id}", response_model=CustomFieldRead, tags=["custom-fields"])
def update_custom_field(custom_field_id: int, body: dict = Body(...), db: Session = Depends(get_db)):
    """Rename the header or change its value type."""
    field = _get_or_404(db, custom_field_id)
    field = store.update_custom_field(db, field, body)
    return CustomFieldRead.from_model(field)


@router.post("/custom-fields/{custom_field_id}/entries", response_model=CustomFieldRead, tags=["custom-fields"])
def add_custom_field_entries(custom_field_id: int, body: Any = Body(...), db: Session = Depends(get_db)):
    """Append entries. Body is a list of {imoNumber, data}, {"customData": [...]} or one entry."""
    field = _get_or_404(db, custom_field_id)
    if isinstance(body, dict):
        entries = body.get("customData") if "customData" in body else [body]
    else:
        entries = body
    field = store.append_entries(db, field, entries)
    return CustomFieldRead.from_model(field)


@router.put(
    "/custom-fields/{custom_field_id}/entries/{index}",
    response_model=CustomFieldRead,
    tags=["custom-fields"],
)
def edit_custom_field_entry(
    custom_field_id: int, index: int, body: Any = Body(...), db: Session = Depends(get_db)
):
    field = _get_or_404(db, custom_field_id)
    try:
        field = store.replace_entry(db, field, index, body)
    except IndexError:
        raise HTTPException(status_code=404, detail="Custom field entry not found")
    return CustomFieldRead.from_model(field)


@router.get("/vessels/{imo_number}/custom-fields", tags=["custom-fields"])
def custom_fields_for_vessel(imo_number: str, db: Session = Depends(get_db)):
    """Custom field values recorded for one vessel."""
    return {
        "imoNumber": imo_number,
        "fields": [
            {"header": header, "data": data}
            for header, data in store.list_fields_for_imo(db, imo_number)
        ],
    }
