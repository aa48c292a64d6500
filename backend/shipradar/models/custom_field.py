"""CustomField entity: user-defined column attached to vessels by IMO number."""
from __future__ import annotations

from datetime import datetime

from sqlalchemy import Integer, String, Text, DateTime, ForeignKey, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column, relationship
from shipradar.models.base import Base


class CustomField(Base):
    __tablename__ = "custom_fields"

    custom_field_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    header: Mapped[str] = mapped_column(String(255), nullable=False)
    headertype: Mapped[str] = mapped_column(String(100), nullable=False)
    # Set once at insert; updated_at starts equal to it
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=func.now(), onupdate=func.now()
    )

    entries: Mapped[list["CustomFieldEntry"]] = relationship(
        "CustomFieldEntry",
        back_populates="custom_field",
        cascade="all, delete-orphan",
        order_by="CustomFieldEntry.position",
    )


class CustomFieldEntry(Base):
    __tablename__ = "custom_field_entries"
    __table_args__ = (
        UniqueConstraint("custom_field_id", "position", name="uq_custom_field_entry_position"),
    )

    entry_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    custom_field_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("custom_fields.custom_field_id"), nullable=False, index=True
    )
    position: Mapped[int] = mapped_column(Integer, nullable=False)
    imo_number: Mapped[str] = mapped_column(String, nullable=False, index=True)
    data: Mapped[str] = mapped_column(Text, nullable=False)

    custom_field: Mapped["CustomField"] = relationship("CustomField", back_populates="entries")
