"""Standard error response schemas."""
from __future__ import annotations

from pydantic import BaseModel


class ViolationRead(BaseModel):
    field: str
    message: str


class ErrorResponse(BaseModel):
    error: str
    detail: str
    violations: list[ViolationRead] = []
