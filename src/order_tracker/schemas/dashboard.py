"""Dashboard and production API schemas."""

from __future__ import annotations

from typing import Dict, List, Optional

from pydantic import BaseModel


class PhaseCountModel(BaseModel):
    phase: str
    count: int


class RouteStatsModel(BaseModel):
    route: str
    total: int
    on_time: int
    late: int
    rate: float


class DashboardResponse(BaseModel):
    total: int
    phase_counts: List[PhaseCountModel]
    delivered_total: int
    delivered_on_time: int
    delivered_late: int
    on_time_rate: float
    late_rate: float
    route_stats: List[RouteStatsModel]
    peak_day: Optional[str] = None
    peak_count: int = 0
    sla_distribution: Dict[str, int]


class ProductionOrderModel(BaseModel):
    internal_id: str
    person_name: Optional[str] = None
    current_phase: str
    approved_at: Optional[str] = None
    is_picking: bool
    is_completed: bool


class ProductionResponse(BaseModel):
    reference_date: str
    total: int
    in_picking: int
    completed: int
    orders: List[ProductionOrderModel]
