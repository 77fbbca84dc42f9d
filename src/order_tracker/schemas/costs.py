"""Route cost API schemas."""

from __future__ import annotations

from typing import List

from pydantic import BaseModel, Field


class RouteCostRowModel(BaseModel):
    route: str
    quantity: int
    unit_cost: float
    total_cost: float


class RouteCostReport(BaseModel):
    rows: List[RouteCostRowModel]
    total_orders: int
    total_cost: float


class RouteCostModel(BaseModel):
    route: str = Field(..., min_length=1)
    cost: float = Field(..., ge=0.0)
