"""Domain models for consolidated orders and their configuration records."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Any, Optional
from zoneinfo import ZoneInfo


class Phase(str, Enum):
    """Pipeline stage of an order."""

    APPROVED = "Approved"
    PICKING = "Picking"
    PACKING = "Packing"
    AVAILABLE_FOR_BILLING = "AvailableForBilling"
    IN_TRANSIT = "InTransit"
    DELIVERED = "Delivered"
    CANCELLED = "Cancelled"
    RETURNED = "Returned"
    UNKNOWN = "Unknown"

    @classmethod
    def parse(cls, value: Any) -> Optional["Phase"]:
        """Resolve a stored value (enum value or member name, any case) to a phase."""
        if value is None:
            return None
        if isinstance(value, Phase):
            return value
        text = str(value).strip()
        if not text:
            return None
        for member in cls:
            if text.lower() in (member.value.lower(), member.name.lower()):
                return member
        return None


# Board order of the delivery pipeline; Cancelled/Returned/Unknown sit outside it.
PIPELINE_PHASES: tuple[Phase, ...] = (
    Phase.APPROVED,
    Phase.PICKING,
    Phase.PACKING,
    Phase.AVAILABLE_FOR_BILLING,
    Phase.IN_TRANSIT,
    Phase.DELIVERED,
)


class SlaStatus(str, Enum):
    ON_TIME = "on-time"
    LATE = "late"


class ReturnResolution(str, Enum):
    CANCELLED = "Cancelled"
    REDELIVERY = "Redelivery"


class MatchMethod(str, Enum):
    MATCHED = "matched"
    NONE = "none"


@dataclass(frozen=True, slots=True)
class SlaThresholds:
    """Configured SLA limits: one global day budget and per-milestone hour budgets."""

    max_business_days: int = 5
    picking_hours: float = 24.0
    packing_hours: float = 24.0
    available_hours: float = 48.0
    billed_hours: float = 48.0
    dispatched_hours: float = 96.0
    delivered_hours: float = 120.0

    def to_dict(self) -> dict[str, Any]:
        return {
            "max_business_days": self.max_business_days,
            "picking_hours": self.picking_hours,
            "packing_hours": self.packing_hours,
            "available_hours": self.available_hours,
            "billed_hours": self.billed_hours,
            "dispatched_hours": self.dispatched_hours,
            "delivered_hours": self.delivered_hours,
        }

    @classmethod
    def from_dict(cls, payload: dict[str, Any], defaults: "SlaThresholds | None" = None) -> "SlaThresholds":
        base = (defaults or cls()).to_dict()
        for key in base:
            if payload.get(key) is not None:
                base[key] = payload[key]
        base["max_business_days"] = int(base["max_business_days"])
        return cls(**base)


@dataclass(slots=True)
class Holiday:
    day: date
    description: str
    id: Optional[int | str] = None


@dataclass(slots=True)
class ManualOverride:
    """Operator-entered phase that supersedes the classifier for one order."""

    internal_id: str
    phase: Phase
    reason: Optional[str] = None
    resolution: Optional[ReturnResolution] = None


@dataclass(slots=True)
class RouteCost:
    route: str
    cost: float


def serialize_timestamp(value: Optional[datetime], tz_name: str) -> Optional[str]:
    """Render a naive local datetime as an offset-aware ISO string for storage."""
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=ZoneInfo(tz_name))
    return value.isoformat()


def parse_timestamp(value: Any, tz_name: str) -> Optional[datetime]:
    """Parse a stored timestamp back into a naive local datetime."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        parsed = value
    else:
        try:
            parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
        except ValueError:
            return None
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(ZoneInfo(tz_name)).replace(tzinfo=None)
    return parsed


_TIMESTAMP_FIELDS = (
    "approved_at",
    "picking_at",
    "packing_at",
    "available_for_billing_at",
    "billed_at",
    "dispatched_at",
    "delivered_at",
    "imported_at",
)


@dataclass(slots=True)
class ConsolidatedOrder:
    """One reconciled order: ERP row, its matched logistics row and derived SLA data."""

    internal_id: str
    current_phase: Phase
    external_id: Optional[str] = None
    logistics_id: Optional[str] = None
    erp_csv_id: Optional[str] = None

    approved_at: Optional[datetime] = None
    picking_at: Optional[datetime] = None
    packing_at: Optional[datetime] = None
    available_for_billing_at: Optional[datetime] = None
    billed_at: Optional[datetime] = None
    dispatched_at: Optional[datetime] = None
    delivered_at: Optional[datetime] = None

    business_days_since_approval: int = 0
    business_hours_to_available: Optional[float] = None
    business_hours_to_billed: Optional[float] = None
    business_hours_in_transport: Optional[float] = None

    sla_status: SlaStatus = SlaStatus.ON_TIME
    sla_alerts: list[str] = field(default_factory=list)

    carrier: Optional[str] = None
    route: Optional[str] = None
    driver: Optional[str] = None
    last_occurrence: Optional[str] = None
    location: Optional[str] = None
    municipality: Optional[str] = None
    neighborhood: Optional[str] = None
    person_name: Optional[str] = None
    commercial_status: Optional[str] = None
    match_method: MatchMethod = MatchMethod.NONE
    manual_override_phase: Optional[Phase] = None
    # Classifier output before any override; current_phase is the effective phase.
    computed_phase: Optional[Phase] = None
    imported_at: Optional[datetime] = None

    def to_record(self, tz_name: str) -> dict[str, Any]:
        """Flatten into a JSON-safe row for the record store."""
        record: dict[str, Any] = {
            "internal_id": self.internal_id,
            "external_id": self.external_id,
            "logistics_id": self.logistics_id,
            "erp_csv_id": self.erp_csv_id,
            "current_phase": self.current_phase.value,
            "business_days_since_approval": self.business_days_since_approval,
            "business_hours_to_available": self.business_hours_to_available,
            "business_hours_to_billed": self.business_hours_to_billed,
            "business_hours_in_transport": self.business_hours_in_transport,
            "sla_status": self.sla_status.value,
            "sla_alerts": list(self.sla_alerts),
            "carrier": self.carrier,
            "route": self.route,
            "driver": self.driver,
            "last_occurrence": self.last_occurrence,
            "location": self.location,
            "municipality": self.municipality,
            "neighborhood": self.neighborhood,
            "person_name": self.person_name,
            "commercial_status": self.commercial_status,
            "match_method": self.match_method.value,
            "manual_override_phase": self.manual_override_phase.value if self.manual_override_phase else None,
            "computed_phase": self.computed_phase.value if self.computed_phase else None,
        }
        for name in _TIMESTAMP_FIELDS:
            record[name] = serialize_timestamp(getattr(self, name), tz_name)
        return record

    @classmethod
    def from_record(cls, record: dict[str, Any], tz_name: str) -> "ConsolidatedOrder":
        phase = Phase.parse(record.get("current_phase")) or Phase.UNKNOWN
        alerts = record.get("sla_alerts") or []
        if isinstance(alerts, dict):
            alerts = alerts.get("alerts") or []
        try:
            sla_status = SlaStatus(record.get("sla_status") or SlaStatus.ON_TIME.value)
        except ValueError:
            sla_status = SlaStatus.ON_TIME
        try:
            match_method = MatchMethod(record.get("match_method") or MatchMethod.NONE.value)
        except ValueError:
            match_method = MatchMethod.NONE
        order = cls(
            internal_id=str(record.get("internal_id") or ""),
            current_phase=phase,
            external_id=record.get("external_id"),
            logistics_id=record.get("logistics_id"),
            erp_csv_id=record.get("erp_csv_id"),
            business_days_since_approval=int(record.get("business_days_since_approval") or 0),
            business_hours_to_available=record.get("business_hours_to_available"),
            business_hours_to_billed=record.get("business_hours_to_billed"),
            business_hours_in_transport=record.get("business_hours_in_transport"),
            sla_status=sla_status,
            sla_alerts=[str(alert) for alert in alerts],
            carrier=record.get("carrier"),
            route=record.get("route"),
            driver=record.get("driver"),
            last_occurrence=record.get("last_occurrence"),
            location=record.get("location"),
            municipality=record.get("municipality"),
            neighborhood=record.get("neighborhood"),
            person_name=record.get("person_name"),
            commercial_status=record.get("commercial_status"),
            match_method=match_method,
            manual_override_phase=Phase.parse(record.get("manual_override_phase")),
            computed_phase=Phase.parse(record.get("computed_phase")),
        )
        for name in _TIMESTAMP_FIELDS:
            setattr(order, name, parse_timestamp(record.get(name), tz_name))
        return order
