"""Shared loading for read-side views: live overrides, live SLA and resolved route."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Optional, Sequence

from ...data.route_sheet import resolve_route
from ...models.domain import ConsolidatedOrder, ManualOverride, serialize_timestamp
from ...persistence import repositories
from ...persistence.store import Filter, RecordStore
from ..classification import apply_override
from ..consolidation import PipelineConfig
from ..sla import SlaAssessment, assess_sla

NO_ROUTE = "-"


@dataclass(slots=True)
class OrderView:
    order: ConsolidatedOrder
    assessment: SlaAssessment
    route: Optional[str]
    override: Optional[ManualOverride] = None

    @property
    def route_label(self) -> str:
        return self.route or NO_ROUTE

    @property
    def driver_label(self) -> str:
        return self.order.driver or self.order.carrier or NO_ROUTE


def apply_live_override(order: ConsolidatedOrder, override: Optional[ManualOverride]) -> ConsolidatedOrder:
    """Effective phase from the classifier's phase and the current override, if any."""
    base = order.computed_phase or order.current_phase
    order.current_phase = apply_override(base, override)
    order.manual_override_phase = override.phase if override else None
    return order


def load_live_orders(
    store: RecordStore,
    config: PipelineConfig,
    filters: Sequence[Filter] = (),
) -> list[tuple[ConsolidatedOrder, Optional[ManualOverride]]]:
    overrides = repositories.load_overrides(store)
    pairs = []
    for order in repositories.load_consolidated_orders(store, config.tz_name, filters):
        override = overrides.get(order.internal_id)
        pairs.append((apply_live_override(order, override), override))
    return pairs


def load_order_views(
    store: RecordStore,
    config: PipelineConfig,
    sheet: Mapping[str, str],
    filters: Sequence[Filter] = (),
) -> list[OrderView]:
    """Stored orders with overrides re-applied and SLA assessed against ``config``."""
    views: list[OrderView] = []
    for order, override in load_live_orders(store, config, filters):
        assessment = assess_sla(order, config.thresholds, config.holidays, config.now)
        views.append(
            OrderView(
                order=order,
                assessment=assessment,
                route=resolve_route(order.route, order.person_name, sheet),
                override=override,
            )
        )
    return views


def matches_search(order: ConsolidatedOrder, term: Optional[str]) -> bool:
    if not term:
        return True
    needle = term.strip().lower()
    return any(needle in (value or "").lower() for value in (order.internal_id, order.external_id, order.person_name))


def order_payload(view: OrderView, tz_name: str) -> dict[str, Any]:
    order = view.order
    return {
        "internal_id": order.internal_id,
        "external_id": order.external_id,
        "logistics_id": order.logistics_id,
        "current_phase": order.current_phase.value,
        "manual_override_phase": order.manual_override_phase.value if order.manual_override_phase else None,
        "person_name": order.person_name,
        "route": view.route,
        "driver": view.driver_label,
        "carrier": order.carrier,
        "location": order.location,
        "last_occurrence": order.last_occurrence,
        "commercial_status": order.commercial_status,
        "approved_at": serialize_timestamp(order.approved_at, tz_name),
        "billed_at": serialize_timestamp(order.billed_at, tz_name),
        "dispatched_at": serialize_timestamp(order.dispatched_at, tz_name),
        "delivered_at": serialize_timestamp(order.delivered_at, tz_name),
        "business_days": view.assessment.business_days,
        "sla_status": view.assessment.status.value,
        "sla_label": view.assessment.label,
        "sla_alerts": list(view.assessment.alerts),
        "delivered_late": view.assessment.delivered_late,
    }
