"""Batch consolidation of ERP rows and carrier rows into one record per order."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Iterable, Mapping, Optional, Sequence

from ..data.rows import (
    ERP_APPROVED_AT,
    ERP_AVAILABLE_AT,
    ERP_BILLED_AT,
    ERP_COMMERCIAL_DETAIL,
    ERP_COMMERCIAL_STATUS,
    ERP_DELIVERY_DATE,
    ERP_EXTERNAL_CODE,
    ERP_MUNICIPALITY,
    ERP_NEIGHBORHOOD,
    ERP_ORDER_CODE,
    ERP_PERSON_NAME,
    LOG_CARRIER,
    LOG_CITY,
    LOG_DELIVERY_DATE,
    LOG_DRIVER,
    LOG_ERP_ORDER,
    LOG_LAST_OCCURRENCE,
    LOG_NEIGHBORHOOD,
    LOG_ORDER,
    LOG_PICKUP_DATE,
    LOG_ROUTE,
    SourceRow,
    parse_source_datetime,
)
from ..config import settings
from ..models.domain import (
    ConsolidatedOrder,
    ManualOverride,
    MatchMethod,
    Phase,
    SlaThresholds,
)
from ..persistence.filesystem import SettingsStore
from ..persistence.repositories import holiday_dates
from ..persistence.store import RecordStore
from .business_time import business_days_between, business_hours_between, local_now
from .classification import apply_override, classify_phase
from .identity import normalize_id
from .matching import MatchIndex
from .sla import evaluate_sla, snapshot_sla_status

logger = logging.getLogger(__name__)

LOCATION_NOT_PROVIDED = "Location not provided"
_STATE_SUFFIX = "/RJ"


@dataclass(frozen=True)
class PipelineConfig:
    """Everything a consolidation run or a view reads, loaded once per call."""

    thresholds: SlaThresholds = field(default_factory=SlaThresholds)
    holidays: frozenset[date] = frozenset()
    now: datetime = field(default_factory=datetime.now)
    tz_name: str = "America/Sao_Paulo"
    fallback_phase: Phase = Phase.UNKNOWN
    delivery_column_index: Optional[int] = 28


@dataclass
class ConsolidationResult:
    orders: list[ConsolidatedOrder]
    processed: int = 0
    skipped: int = 0
    matched: int = 0
    duplicates: int = 0
    overrides_applied: int = 0


def _optional_text(value: Any) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    text = str(value).strip()
    return text or None


def _first_datetime(values: Iterable[Any]) -> Optional[datetime]:
    for value in values:
        parsed = parse_source_datetime(value)
        if parsed is not None:
            return parsed
    return None


def resolve_delivered_at(
    erp_row: SourceRow,
    logistics_row: Optional[SourceRow],
    delivery_column_index: Optional[int],
) -> Optional[datetime]:
    """Carrier positional column, then carrier headers, then the ERP delivery date. Never "now"."""
    candidates: list[Any] = []
    if logistics_row is not None:
        if delivery_column_index is not None:
            candidates.append(logistics_row.positional(delivery_column_index))
        candidates.extend(logistics_row.lookup(key) for key in LOG_DELIVERY_DATE)
    candidates.append(erp_row.lookup(*ERP_DELIVERY_DATE))
    return _first_datetime(candidates)


def _hours_if_both(start: Optional[datetime], end: Optional[datetime], holidays: frozenset[date]) -> Optional[float]:
    if start is None or end is None:
        return None
    return business_hours_between(start, end, holidays)


def _location(neighborhood: Optional[str], municipality: Optional[str]) -> str:
    parts = [part for part in (neighborhood, municipality) if part and part.strip()]
    joined = " - ".join(part.strip() for part in parts).replace(_STATE_SUFFIX, "").strip()
    return joined or LOCATION_NOT_PROVIDED


def build_order(
    erp_row: SourceRow,
    match: Optional[SourceRow],
    config: PipelineConfig,
    override: Optional[ManualOverride] = None,
) -> Optional[ConsolidatedOrder]:
    """Assemble the consolidated record for one ERP row, or ``None`` when it has no order code."""
    internal_id = normalize_id(erp_row.lookup(*ERP_ORDER_CODE))
    if not internal_id:
        return None

    computed = classify_phase(
        erp_row,
        match,
        fallback=config.fallback_phase,
        delivery_column_index=config.delivery_column_index,
    )
    phase = apply_override(computed, override)

    approved_at = parse_source_datetime(erp_row.lookup(*ERP_APPROVED_AT))
    available_at = parse_source_datetime(erp_row.lookup(*ERP_AVAILABLE_AT))
    billed_at = parse_source_datetime(erp_row.lookup(*ERP_BILLED_AT))
    dispatched_at = parse_source_datetime(match.lookup(*LOG_PICKUP_DATE)) if match else None
    delivered_at = resolve_delivered_at(erp_row, match, config.delivery_column_index)

    holidays = config.holidays
    days = business_days_between(approved_at, delivered_at, holidays) if approved_at and delivered_at else 0

    neighborhood = _optional_text(erp_row.lookup(*ERP_NEIGHBORHOOD)) or (
        _optional_text(match.lookup(*LOG_NEIGHBORHOOD)) if match else None
    )
    municipality = _optional_text(erp_row.lookup(*ERP_MUNICIPALITY)) or (
        _optional_text(match.lookup(*LOG_CITY)) if match else None
    )
    occurrence_parts = [
        _optional_text(erp_row.lookup(*ERP_COMMERCIAL_DETAIL)),
        _optional_text(match.lookup(*LOG_LAST_OCCURRENCE)) if match else None,
    ]

    order = ConsolidatedOrder(
        internal_id=internal_id,
        current_phase=phase,
        external_id=_optional_text(erp_row.lookup(*ERP_EXTERNAL_CODE)),
        logistics_id=_optional_text(match.lookup(*LOG_ORDER)) if match else None,
        erp_csv_id=_optional_text(match.lookup(*LOG_ERP_ORDER)) if match else None,
        approved_at=approved_at,
        available_for_billing_at=available_at,
        billed_at=billed_at,
        dispatched_at=dispatched_at,
        delivered_at=delivered_at,
        business_days_since_approval=days,
        business_hours_to_available=_hours_if_both(approved_at, available_at, holidays),
        business_hours_to_billed=_hours_if_both(available_at, billed_at, holidays),
        business_hours_in_transport=_hours_if_both(dispatched_at, delivered_at, holidays),
        sla_status=snapshot_sla_status(days, config.thresholds),
        carrier=_optional_text(match.lookup(*LOG_CARRIER)) if match else None,
        route=_optional_text(match.lookup(*LOG_ROUTE)) if match else None,
        driver=_optional_text(match.lookup(*LOG_DRIVER)) if match else None,
        last_occurrence=" | ".join(part for part in occurrence_parts if part) or None,
        location=_location(neighborhood, municipality),
        municipality=municipality,
        neighborhood=neighborhood,
        person_name=_optional_text(erp_row.lookup(*ERP_PERSON_NAME)),
        commercial_status=_optional_text(erp_row.lookup(*ERP_COMMERCIAL_STATUS)),
        match_method=MatchMethod.MATCHED if match is not None else MatchMethod.NONE,
        manual_override_phase=override.phase if override else None,
        computed_phase=computed,
        imported_at=config.now,
    )
    order.sla_alerts = evaluate_sla(order, config.thresholds, holidays, config.now)
    return order


def deduplicate(orders: Iterable[ConsolidatedOrder]) -> list[ConsolidatedOrder]:
    """One record per internal id; a later record replaces an earlier one."""
    unique: dict[str, ConsolidatedOrder] = {}
    for order in orders:
        unique[order.internal_id] = order
    return list(unique.values())


def consolidate(
    erp_rows: Sequence[SourceRow],
    logistics_rows: Sequence[SourceRow],
    config: PipelineConfig,
    overrides: Optional[Mapping[str, ManualOverride]] = None,
) -> ConsolidationResult:
    """Match, classify and assemble every ERP row in source order."""
    overrides = overrides or {}
    index = MatchIndex(logistics_rows)
    built: list[ConsolidatedOrder] = []
    skipped = matched = applied = 0

    for erp_row in erp_rows:
        match = index.find(erp_row)
        internal_id = normalize_id(erp_row.lookup(*ERP_ORDER_CODE))
        override = overrides.get(internal_id) if internal_id else None
        order = build_order(erp_row, match, config, override)
        if order is None:
            skipped += 1
            continue
        if match is not None:
            matched += 1
        if override is not None:
            applied += 1
            logger.debug(f"Order {internal_id} uses manual override: {override.phase.value}")
        built.append(order)

    orders = deduplicate(built)
    result = ConsolidationResult(
        orders=orders,
        processed=len(erp_rows),
        skipped=skipped,
        matched=matched,
        duplicates=len(built) - len(orders),
        overrides_applied=applied,
    )
    logger.info(
        f"Consolidated {len(orders)} orders from {len(erp_rows)} ERP rows "
        f"({matched} matched, {skipped} skipped, {result.duplicates} duplicates, {applied} overrides)"
    )
    return result


def load_pipeline_config(
    store: RecordStore,
    settings_store: SettingsStore,
    now: Optional[datetime] = None,
) -> PipelineConfig:
    """Read holidays and thresholds once for a batch or a view call."""
    tz_name = settings.timezone
    fallback = Phase.parse(settings.unrecognized_phase)
    if fallback is None:
        logger.warning(f"Unrecognized fallback phase '{settings.unrecognized_phase}', using {Phase.UNKNOWN.value}")
        fallback = Phase.UNKNOWN
    return PipelineConfig(
        thresholds=settings_store.load_thresholds(),
        holidays=holiday_dates(store),
        now=now or local_now(tz_name),
        tz_name=tz_name,
        fallback_phase=fallback,
        delivery_column_index=settings.logistics_delivery_column_index,
    )
