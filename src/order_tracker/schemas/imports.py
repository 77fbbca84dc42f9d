"""Import run API schemas."""

from __future__ import annotations

from datetime import datetime
from typing import List, Literal

from pydantic import BaseModel


class ImportSummaryModel(BaseModel):
    import_id: str
    kind: Literal["both", "xlsx", "csv"]
    erp_rows: int
    logistics_rows: int
    processed: int
    skipped: int
    matched: int
    duplicates: int
    overrides_applied: int
    saved: int
    picking_tracked: int
    file_names: List[str]


class ImportStatusModel(BaseModel):
    level: Literal["info", "success", "error"]
    message: str
    timestamp: datetime
