"""Pydantic schemas for CustomField: wire shape used by the API and CLI."""
from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class CustomFieldEntryRead(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    imo_number: str = Field(alias="imoNumber")
    data: str


class CustomFieldRead(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: int
    header: str
    headertype: str
    custom_data: list[CustomFieldEntryRead] = Field(default_factory=list, alias="customData")
    created_at: Optional[datetime] = Field(None, alias="createdAt")
    updated_at: Optional[datetime] = Field(None, alias="updatedAt")

    @classmethod
    def from_model(cls, field) -> "CustomFieldRead":
        return cls(
            id=field.custom_field_id,
            header=field.header,
            headertype=field.headertype,
            custom_data=[CustomFieldEntryRead(imo_number=e.imo_number, data=e.data) for e in field.entries],
            created_at=field.created_at,
            updated_at=field.updated_at,
        )


class CustomFieldList(BaseModel):
    items: list[CustomFieldRead]
    total: int
