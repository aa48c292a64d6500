"""Pydantic schemas for tracked vessels: upstream records and the display rows built from them."""
from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


def _coerce_text(v: Any) -> Optional[str]:
    """Upstream sends IMO numbers as ints on some records; keep everything as text."""
    if v is None or isinstance(v, str):
        return v
    return str(v)


class AISData(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    imo: Optional[str] = Field(None, alias="IMO")
    name: Optional[str] = Field(None, alias="NAME")
    eta: Optional[str] = Field(None, alias="ETA")
    destination: Optional[str] = Field(None, alias="DESTINATION")

    @field_validator("*", mode="before")
    @classmethod
    def text_fields(cls, v: Any) -> Optional[str]:
        return _coerce_text(v)


class TrackedVessel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    ais: Optional[AISData] = Field(None, alias="AIS")
    geofence_status: Optional[str] = Field(None, alias="GeofenceStatus")
    geofence_type: Optional[str] = Field(None, alias="GeofenceType")
    case_id: Optional[str] = Field(None, alias="CaseId")
    info1: Optional[str] = Field(None, alias="Info1")
    eta_time: Optional[str] = Field(None, alias="ETATime")
    eta_date: Optional[str] = Field(None, alias="ETADate")
    agent: Optional[str] = Field(None, alias="Agent")
    agent_name: Optional[str] = Field(None, alias="AgentName")

    @field_validator("ais", mode="before")
    @classmethod
    def ais_must_be_object(cls, v: Any) -> Any:
        return v if isinstance(v, (dict, AISData)) else None

    @field_validator(
        "geofence_status", "geofence_type", "case_id", "info1",
        "eta_time", "eta_date", "agent", "agent_name",
        mode="before",
    )
    @classmethod
    def text_fields(cls, v: Any) -> Optional[str]:
        return _coerce_text(v)


class VesselRow(BaseModel):
    """Display-ready grid row. Every field is a non-empty string."""

    model_config = ConfigDict(populate_by_name=True)

    imo: str = Field(alias="IMO")
    ais_name: str = Field(alias="AISName")
    geofence_status: str = Field(alias="GeofenceStatus")
    eta: str = Field(alias="ETA")
    destination: str = Field(alias="Destination")
    geofence_type: str = Field(alias="GeofenceType")
    case_id: str = Field(alias="CaseId")
    info1: str = Field(alias="Info1")
    eta_time: str = Field(alias="ETATime")
    eta_date: str = Field(alias="ETADate")
    agent: str = Field(alias="Agent")
    agent_name: str = Field(alias="AgentName")


class VesselRowPage(BaseModel):
    items: list[VesselRow]
    total: int
    page: int
    page_size: int
    total_pages: int
