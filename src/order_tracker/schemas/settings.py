"""Settings API schemas: SLA thresholds and the holiday calendar."""

from __future__ import annotations

from datetime import date
from typing import Optional

from pydantic import BaseModel, Field


class SlaSettingsModel(BaseModel):
    max_business_days: int = Field(..., ge=0)
    picking_hours: float = Field(..., ge=0.0)
    packing_hours: float = Field(..., ge=0.0)
    available_hours: float = Field(..., ge=0.0)
    billed_hours: float = Field(..., ge=0.0)
    dispatched_hours: float = Field(..., ge=0.0)
    delivered_hours: float = Field(..., ge=0.0)


class HolidayModel(BaseModel):
    id: Optional[int | str] = None
    day: date
    description: str


class HolidayCreate(BaseModel):
    day: date
    description: str = Field(..., min_length=1)


class HolidayImportResult(BaseModel):
    year: int
    fetched: int
    saved: int
