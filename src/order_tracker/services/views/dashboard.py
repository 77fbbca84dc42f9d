"""Dashboard aggregates computed from the live SLA view of every order."""

from __future__ import annotations

from collections import Counter
from typing import Mapping

from ...models.domain import PIPELINE_PHASES, Phase
from ...persistence.store import RecordStore
from ..business_time import business_days_between
from ..consolidation import PipelineConfig
from .common import load_order_views

DISTRIBUTION_BUCKETS = ("1", "2", "3", "4", "5", "6", "7", ">7")
_MAX_BUCKET = 7


def _rate(part: int, whole: int) -> float:
    return round(part / whole * 100, 1) if whole else 0.0


def distribution_bucket(days: int) -> str:
    """Business days to delivery; same-day deliveries count as day 1."""
    if days > _MAX_BUCKET:
        return ">7"
    return str(max(days, 1))


def dashboard_stats(store: RecordStore, config: PipelineConfig, sheet: Mapping[str, str]) -> dict:
    views = load_order_views(store, config, sheet)

    phase_counts = Counter(view.order.current_phase for view in views)
    routes: dict[str, dict] = {}
    peak_days: Counter[str] = Counter()
    distribution = {bucket: 0 for bucket in DISTRIBUTION_BUCKETS}
    delivered_total = delivered_late = 0

    for view in views:
        order = view.order
        stats = routes.setdefault(view.route_label, {"route": view.route_label, "total": 0, "on_time": 0, "late": 0})
        stats["total"] += 1
        if order.current_phase != Phase.DELIVERED:
            continue

        delivered_total += 1
        if view.assessment.is_late:
            delivered_late += 1
            stats["late"] += 1
        else:
            stats["on_time"] += 1

        if order.delivered_at is not None:
            peak_days[order.delivered_at.date().isoformat()] += 1
            if order.approved_at is not None:
                days = business_days_between(order.approved_at, order.delivered_at, config.holidays)
                distribution[distribution_bucket(days)] += 1

    route_stats = sorted(routes.values(), key=lambda item: -item["total"])
    for stats in route_stats:
        stats["rate"] = _rate(stats["on_time"], stats["on_time"] + stats["late"])

    peak_day, peak_count = peak_days.most_common(1)[0] if peak_days else (None, 0)
    on_time = delivered_total - delivered_late
    return {
        "total": len(views),
        "phase_counts": [{"phase": phase.value, "count": phase_counts.get(phase, 0)} for phase in PIPELINE_PHASES],
        "delivered_total": delivered_total,
        "delivered_on_time": on_time,
        "delivered_late": delivered_late,
        "on_time_rate": _rate(on_time, delivered_total),
        "late_rate": _rate(delivered_late, delivered_total),
        "route_stats": route_stats,
        "peak_day": peak_day,
        "peak_count": peak_count,
        "sla_distribution": distribution,
    }
