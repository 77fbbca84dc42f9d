"""Order list, kanban and returns API schemas."""

from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, Field

from ..models.domain import ReturnResolution


class OrderModel(BaseModel):
    internal_id: str
    external_id: Optional[str] = None
    logistics_id: Optional[str] = None
    current_phase: str
    manual_override_phase: Optional[str] = None
    person_name: Optional[str] = None
    route: Optional[str] = None
    driver: str
    carrier: Optional[str] = None
    location: Optional[str] = None
    last_occurrence: Optional[str] = None
    commercial_status: Optional[str] = None
    approved_at: Optional[str] = None
    billed_at: Optional[str] = None
    dispatched_at: Optional[str] = None
    delivered_at: Optional[str] = None
    business_days: int = 0
    sla_status: str
    sla_label: str
    sla_alerts: List[str] = Field(default_factory=list)
    delivered_late: bool = False


class OrdersResponse(BaseModel):
    items: List[OrderModel]
    total: int


class KanbanCardModel(OrderModel):
    phase_overdue: bool = False
    overdue_message: Optional[str] = None
    display_alerts: List[str] = Field(default_factory=list)


class KanbanColumnModel(BaseModel):
    phase: str
    count: int
    cards: List[KanbanCardModel]


class KanbanResponse(BaseModel):
    columns: List[KanbanColumnModel]


class ReturnModel(OrderModel):
    reason: Optional[str] = None
    resolution: Optional[ReturnResolution] = None


class ReturnsResponse(BaseModel):
    items: List[ReturnModel]
    total: int


class ReturnRequest(BaseModel):
    reason: str = Field(..., min_length=1, description="Why the order is being returned.")


class ResolutionRequest(BaseModel):
    resolution: Optional[ReturnResolution] = Field(None, description="Cancelled, Redelivery or null to clear.")


class OverrideModel(BaseModel):
    internal_id: str
    phase: str
    reason: Optional[str] = None
    resolution: Optional[ReturnResolution] = None
