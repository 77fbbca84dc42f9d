"""Orders list and kanban board."""

from __future__ import annotations

from typing import Mapping, Optional

from ...models.domain import PIPELINE_PHASES, Phase
from ...persistence.store import RecordStore
from ..consolidation import PipelineConfig
from ..sla import phase_deadline_alert
from .common import OrderView, load_order_views, matches_search, order_payload


def list_orders(
    store: RecordStore,
    config: PipelineConfig,
    sheet: Mapping[str, str],
    *,
    search: Optional[str] = None,
    phase: Optional[Phase] = None,
    route: Optional[str] = None,
    driver: Optional[str] = None,
    missing_delivery_date: bool = False,
) -> dict:
    """Filtered orders, oldest approval first; returned orders only when asked for."""
    items = []
    for view in load_order_views(store, config, sheet):
        order = view.order
        if phase is None and order.current_phase == Phase.RETURNED:
            continue
        if phase is not None and order.current_phase != phase:
            continue
        if not matches_search(order, search):
            continue
        if route and view.route != route:
            continue
        if driver and view.driver_label != driver:
            continue
        if missing_delivery_date and not (order.current_phase == Phase.DELIVERED and order.delivered_at is None):
            continue
        items.append(order_payload(view, config.tz_name))

    return {"items": items, "total": len(items)}


def _card(view: OrderView, config: PipelineConfig) -> dict:
    """Order payload plus the column deadline flag; a breached deadline replaces the displayed alerts."""
    payload = order_payload(view, config.tz_name)
    overdue = phase_deadline_alert(view.order, config.thresholds, config.now, view.assessment.is_late)
    payload["phase_overdue"] = overdue is not None
    payload["overdue_message"] = overdue
    payload["display_alerts"] = [overdue] if overdue else list(view.assessment.alerts)
    return payload


def kanban_board(
    store: RecordStore,
    config: PipelineConfig,
    sheet: Mapping[str, str],
    *,
    search: Optional[str] = None,
    route: Optional[str] = None,
) -> dict:
    columns: dict[Phase, list[dict]] = {phase: [] for phase in PIPELINE_PHASES}
    for view in load_order_views(store, config, sheet):
        cards = columns.get(view.order.current_phase)
        if cards is None:
            continue
        if not matches_search(view.order, search) or (route and view.route != route):
            continue
        cards.append(_card(view, config))

    return {
        "columns": [
            {"phase": phase.value, "count": len(cards), "cards": cards}
            for phase, cards in columns.items()
        ]
    }
