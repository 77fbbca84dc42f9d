"""Daily production: orders seen in picking today and how many moved on."""

from __future__ import annotations

from datetime import date
from typing import Optional

from ...models.domain import Phase, serialize_timestamp
from ...persistence import repositories
from ...persistence.store import RecordStore
from ..consolidation import PipelineConfig
from .common import load_live_orders

# Phases that do not count as having passed picking.
_NOT_COMPLETED = {Phase.PICKING, Phase.APPROVED, Phase.CANCELLED}


def production_summary(store: RecordStore, config: PipelineConfig, reference_date: Optional[date] = None) -> dict:
    day = reference_date or config.now.date()
    tracked = repositories.load_daily_picking(store, day)
    if not tracked:
        return {"reference_date": day.isoformat(), "total": 0, "in_picking": 0, "completed": 0, "orders": []}

    current = {order.internal_id: order for order, _ in load_live_orders(store, config, [("internal_id", "in", tracked)])}
    in_picking = completed = 0
    orders = []
    for internal_id in tracked:
        order = current.get(internal_id)
        if order is None:
            continue
        is_picking = order.current_phase == Phase.PICKING
        is_completed = order.current_phase not in _NOT_COMPLETED
        in_picking += is_picking
        completed += is_completed
        orders.append(
            {
                "internal_id": order.internal_id,
                "person_name": order.person_name,
                "current_phase": order.current_phase.value,
                "approved_at": serialize_timestamp(order.approved_at, config.tz_name),
                "is_picking": is_picking,
                "is_completed": is_completed,
            }
        )

    return {
        "reference_date": day.isoformat(),
        "total": len(tracked),
        "in_picking": in_picking,
        "completed": completed,
        "orders": orders,
    }
