"""SLA breach evaluation for consolidated orders.

Every function here is a pure function of the order snapshot, the thresholds,
the holiday calendar and a reference "now", so it gives the same answer at
import time and when a view recomputes it with current settings.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import AbstractSet, Optional

from ..models.domain import ConsolidatedOrder, Phase, SlaStatus, SlaThresholds
from .business_time import business_days_between, business_hours_between
from .classification import CANCEL_STEM
from .identity import normalize_text


@dataclass(frozen=True, slots=True)
class Milestone:
    attribute: str
    threshold: str
    alert: str


MILESTONES: tuple[Milestone, ...] = (
    Milestone("picking_at", "picking_hours", "Picking start delayed (>{hours} business hours)"),
    Milestone("packing_at", "packing_hours", "Packing delayed (>{hours} business hours)"),
    Milestone("available_for_billing_at", "available_hours", "Availability for billing delayed (>{hours} business hours)"),
    Milestone("billed_at", "billed_hours", "Billing delayed (>{hours} business hours)"),
    Milestone("dispatched_at", "dispatched_hours", "Transport delayed (>{hours} business hours)"),
    Milestone("delivered_at", "delivered_hours", "Delivery delayed (>{hours} business hours)"),
)


def _format_hours(value: float) -> str:
    return f"{value:g}"


def is_cancelled(order: ConsolidatedOrder) -> bool:
    if order.current_phase == Phase.CANCELLED:
        return True
    return CANCEL_STEM in normalize_text(order.commercial_status) or CANCEL_STEM in normalize_text(
        order.last_occurrence
    )


def _reached(order: ConsolidatedOrder, position: int) -> bool:
    return any(getattr(order, milestone.attribute) is not None for milestone in MILESTONES[position:])


def evaluate_sla(
    order: ConsolidatedOrder,
    thresholds: SlaThresholds,
    holidays: AbstractSet[date] = frozenset(),
    now: Optional[datetime] = None,
) -> list[str]:
    """Alerts for every milestone still pending past its threshold."""
    if is_cancelled(order) or order.approved_at is None:
        return []

    reference = now or datetime.now()
    elapsed = business_hours_between(order.approved_at, reference, holidays)
    alerts: list[str] = []
    for position, milestone in enumerate(MILESTONES):
        if _reached(order, position):
            continue
        limit = getattr(thresholds, milestone.threshold)
        if elapsed > limit:
            alerts.append(milestone.alert.format(hours=_format_hours(limit)))
    return alerts


def delivered_late(
    order: ConsolidatedOrder,
    thresholds: SlaThresholds,
    holidays: AbstractSet[date] = frozenset(),
) -> bool:
    """Whether an already-delivered order took longer than the delivery threshold."""
    if order.approved_at is None or order.delivered_at is None:
        return False
    hours = business_hours_between(order.approved_at, order.delivered_at, holidays)
    return hours > thresholds.delivered_hours


def snapshot_sla_status(business_days: int, thresholds: SlaThresholds) -> SlaStatus:
    return SlaStatus.LATE if business_days > thresholds.max_business_days else SlaStatus.ON_TIME


@dataclass(slots=True)
class SlaAssessment:
    alerts: list[str] = field(default_factory=list)
    business_days: int = 0
    is_late: bool = False
    delivered_late: bool = False
    label: str = "On time"

    @property
    def status(self) -> SlaStatus:
        return SlaStatus.LATE if self.is_late else SlaStatus.ON_TIME


def assess_sla(
    order: ConsolidatedOrder,
    thresholds: SlaThresholds,
    holidays: AbstractSet[date] = frozenset(),
    now: Optional[datetime] = None,
) -> SlaAssessment:
    """Live SLA view of an order: alerts, elapsed business days and a display label."""
    if is_cancelled(order):
        return SlaAssessment(label="Cancelled")
    if order.approved_at is None:
        return SlaAssessment(label="No approval date")

    reference = now or datetime.now()
    alerts = evaluate_sla(order, thresholds, holidays, reference)
    days = business_days_between(order.approved_at, order.delivered_at or reference, holidays)
    over_budget = days > thresholds.max_business_days
    late_delivery = delivered_late(order, thresholds, holidays)

    if order.current_phase == Phase.DELIVERED:
        is_late = over_budget
        label = "Delivered late" if (is_late or late_delivery) else "Delivered on time"
    else:
        is_late = bool(alerts) or over_budget
        label = "Late" if is_late else "On time"

    return SlaAssessment(
        alerts=alerts,
        business_days=days,
        is_late=is_late,
        delivered_late=late_delivery,
        label=label,
    )


# Kanban deadline per column: the hour limit of the milestone that ends the phase.
PHASE_DEADLINES: dict[Phase, tuple[str, str]] = {
    Phase.APPROVED: ("picking_hours", "Order past the approval deadline"),
    Phase.PICKING: ("packing_hours", "Order past the picking deadline"),
    Phase.PACKING: ("available_hours", "Order past the packing deadline"),
    Phase.AVAILABLE_FOR_BILLING: ("dispatched_hours", "Order past the availability deadline"),
    Phase.IN_TRANSIT: ("delivered_hours", "Order past the transport deadline"),
}


def phase_deadline_alert(
    order: ConsolidatedOrder,
    thresholds: SlaThresholds,
    now: Optional[datetime] = None,
    is_late: bool = False,
) -> Optional[str]:
    """Deadline message for the order's current column, or ``None`` while it is within it.

    Elapsed time is wall-clock hours since approval. An order already assessed
    as late is flagged in any column that has a deadline.
    """
    deadline = PHASE_DEADLINES.get(order.current_phase)
    if deadline is None or order.approved_at is None:
        return None
    threshold, message = deadline
    limit = getattr(thresholds, threshold)
    if not limit:
        return None
    elapsed = ((now or datetime.now()) - order.approved_at).total_seconds() / 3600
    if elapsed > limit or is_late:
        return message
    return None
