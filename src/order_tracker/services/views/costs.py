"""Cost aggregation per delivery route over a date range."""

from __future__ import annotations

from collections import Counter
from datetime import date, datetime
from typing import Mapping, Optional

from ...data.route_sheet import resolve_route
from ...models.domain import ConsolidatedOrder, Phase
from ...persistence import repositories
from ...persistence.store import RecordStore
from ..consolidation import PipelineConfig
from ..identity import normalize_text
from .common import load_live_orders

NO_ROUTE_DEFINED = "No route defined"
NO_ROUTE = "NO ROUTE"

# Carrier statuses for loads that have no driver assigned yet.
_AWAITING_MARKERS = ("aguardando motorista", "aguardando geracao")


def check_range(start: date, end: date) -> None:
    if start > end:
        raise ValueError(f"Start date {start.isoformat()} is after end date {end.isoformat()}.")


def _within(value: Optional[datetime], start: date, end: date) -> bool:
    return value is not None and start <= value.date() <= end


def _is_awaiting(order: ConsolidatedOrder) -> bool:
    texts = (normalize_text(order.current_phase.value), normalize_text(order.commercial_status))
    return any(marker in text for text in texts for marker in _AWAITING_MARKERS)


def _rows(counts: Counter, unit_costs: Mapping[str, float]) -> dict:
    rows = []
    for route, quantity in counts.items():
        unit_cost = unit_costs.get(route, 0.0)
        rows.append({"route": route, "quantity": quantity, "unit_cost": unit_cost, "total_cost": round(quantity * unit_cost, 2)})
    rows.sort(key=lambda row: -row["total_cost"])
    return {
        "rows": rows,
        "total_orders": sum(counts.values()),
        "total_cost": round(sum(row["total_cost"] for row in rows), 2),
    }


def route_table_costs(store: RecordStore, config: PipelineConfig, start: date, end: date) -> dict:
    """Orders imported in the range, grouped by the route registered for their neighborhood."""
    check_range(start, end)
    route_table = repositories.load_route_table(store)
    unit_costs = {cost.route: cost.cost for cost in repositories.load_route_costs(store)}

    counts: Counter[str] = Counter()
    for order, _ in load_live_orders(store, config):
        if not _within(order.imported_at, start, end):
            continue
        if order.current_phase == Phase.CANCELLED or _is_awaiting(order):
            continue
        key = repositories.route_table_key(order.municipality, order.neighborhood)
        counts[route_table.get(key, NO_ROUTE_DEFINED)] += 1
    return _rows(counts, unit_costs)


def delivered_route_costs(
    store: RecordStore,
    config: PipelineConfig,
    sheet: Mapping[str, str],
    start: date,
    end: date,
) -> dict:
    """Orders delivered in the range, grouped by carrier route, else the sheet route for the customer."""
    check_range(start, end)
    unit_costs = {cost.route.strip().upper(): cost.cost for cost in repositories.load_route_costs(store)}

    counts: Counter[str] = Counter()
    for order, _ in load_live_orders(store, config):
        if order.current_phase != Phase.DELIVERED or not _within(order.delivered_at, start, end):
            continue
        route = resolve_route(order.route, order.person_name, sheet)
        counts[route.strip().upper() if route else NO_ROUTE] += 1
    return _rows(counts, unit_costs)
