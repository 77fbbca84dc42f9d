"""Phase classification: an ordered rule table over ERP and carrier status text.

Rules are evaluated top to bottom and the first match wins. Cancellation is
checked first, strict delivered/in-transit combinations next, then the
date- and carrier-based fallbacks, then the warehouse stages. Anything left
over resolves to the configured fallback phase.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Optional

from ..data.rows import (
    ERP_COMMERCIAL_DETAIL,
    ERP_COMMERCIAL_STATUS,
    ERP_DELIVERY_DATE,
    ERP_FISCAL_STATUS,
    LOG_DELIVERY_DATE,
    LOG_LAST_OCCURRENCE,
    LOG_PICKUP_DATE,
    LOG_STATUS,
    SourceRow,
)
from ..models.domain import ManualOverride, Phase
from .identity import normalize_text

RULESET_VERSION = "2025-02-invoice-issued-separation-is-transit"

CANCEL_STEM = "cancelad"

FISCAL_INVOICE_ISSUED = "nf emitida"
FISCAL_NOT_BILLED = "nao faturado"
FISCAL_BILLABLE = frozenset({"disp. faturamento", "disponivel para faturamento", FISCAL_NOT_BILLED})

COMMERCIAL_DELIVERED = "entregue"
COMMERCIAL_TRANSPORT = "transporte"
COMMERCIAL_SEPARATION = "separacao"
COMMERCIAL_APPROVED = "aprovado"

DETAIL_DELIVERED_TO_RESELLER = "entregue para revendedor"
DETAIL_AVAILABLE_FOR_PICKUP = "disponivel para retirada/entrega"
DETAIL_IN_PACKING = "em packing"
DETAIL_IN_PICKING = "em picking"
DETAIL_APPROVED = "aprovado"

CARRIER_DELIVERED = frozenset({"entregue", "entregue."})
CARRIER_IN_TRANSIT = frozenset({"em transito", "no cliente", "no cliente."})


@dataclass(frozen=True, slots=True)
class PhaseInputs:
    """Normalized fields the rule table reads."""

    fiscal: str = ""
    commercial: str = ""
    detail: str = ""
    carrier_status: str = ""
    carrier_occurrence: str = ""
    has_erp_delivery_date: bool = False
    has_carrier_delivery_date: bool = False
    has_pickup_date: bool = False

    @property
    def has_delivery_date(self) -> bool:
        return self.has_erp_delivery_date or self.has_carrier_delivery_date


def _filled(value) -> bool:
    if value is None:
        return False
    return bool(str(value).strip())


def carrier_delivery_value(logistics_row: Optional[SourceRow], delivery_column_index: Optional[int] = 28):
    """Delivery timestamp cell of a carrier row: positional column first, then named headers."""
    if logistics_row is None:
        return None
    return logistics_row.first_filled(delivery_column_index, *LOG_DELIVERY_DATE)


def extract_inputs(
    erp_row: SourceRow,
    logistics_row: Optional[SourceRow],
    delivery_column_index: Optional[int] = 28,
) -> PhaseInputs:
    if logistics_row is None:
        carrier_status = carrier_occurrence = ""
        has_pickup = False
    else:
        carrier_status = normalize_text(logistics_row.lookup(*LOG_STATUS))
        carrier_occurrence = normalize_text(logistics_row.lookup(*LOG_LAST_OCCURRENCE))
        has_pickup = _filled(logistics_row.lookup(*LOG_PICKUP_DATE))

    return PhaseInputs(
        fiscal=normalize_text(erp_row.lookup(*ERP_FISCAL_STATUS)),
        commercial=normalize_text(erp_row.lookup(*ERP_COMMERCIAL_STATUS)),
        detail=normalize_text(erp_row.lookup(*ERP_COMMERCIAL_DETAIL)),
        carrier_status=carrier_status,
        carrier_occurrence=carrier_occurrence,
        has_erp_delivery_date=_filled(erp_row.lookup(*ERP_DELIVERY_DATE)),
        has_carrier_delivery_date=_filled(carrier_delivery_value(logistics_row, delivery_column_index)),
        has_pickup_date=has_pickup,
    )


def _is_cancelled(i: PhaseInputs) -> bool:
    return any(
        CANCEL_STEM in text
        for text in (i.fiscal, i.commercial, i.detail, i.carrier_status, i.carrier_occurrence)
    )


def _is_delivered_strict(i: PhaseInputs) -> bool:
    erp_delivered = (
        i.fiscal == FISCAL_INVOICE_ISSUED
        and i.commercial == COMMERCIAL_DELIVERED
        and i.detail == DETAIL_DELIVERED_TO_RESELLER
    )
    return erp_delivered or i.carrier_status in CARRIER_DELIVERED


def _is_in_transit_strict(i: PhaseInputs) -> bool:
    return i.fiscal == FISCAL_INVOICE_ISSUED and i.commercial == COMMERCIAL_TRANSPORT


def _has_delivery_date(i: PhaseInputs) -> bool:
    return i.has_delivery_date


def _is_in_transit_fallback(i: PhaseInputs) -> bool:
    issued_awaiting_pickup = (
        i.fiscal == FISCAL_INVOICE_ISSUED
        and i.commercial == COMMERCIAL_SEPARATION
        and i.detail == DETAIL_AVAILABLE_FOR_PICKUP
    )
    return issued_awaiting_pickup or i.has_pickup_date or i.carrier_status in CARRIER_IN_TRANSIT


def _is_available_for_billing(i: PhaseInputs) -> bool:
    return (
        i.fiscal in FISCAL_BILLABLE
        and i.commercial == COMMERCIAL_SEPARATION
        and i.detail == DETAIL_AVAILABLE_FOR_PICKUP
    )


def _separation_stage(detail: str) -> Callable[[PhaseInputs], bool]:
    def predicate(i: PhaseInputs) -> bool:
        return i.fiscal == FISCAL_NOT_BILLED and i.commercial == COMMERCIAL_SEPARATION and i.detail == detail

    return predicate


def _is_approved(i: PhaseInputs) -> bool:
    return i.fiscal == FISCAL_NOT_BILLED and i.commercial == COMMERCIAL_APPROVED and i.detail == DETAIL_APPROVED


@dataclass(frozen=True, slots=True)
class PhaseRule:
    name: str
    predicate: Callable[[PhaseInputs], bool]
    phase: Phase


PHASE_RULES: tuple[PhaseRule, ...] = (
    PhaseRule("cancelled", _is_cancelled, Phase.CANCELLED),
    PhaseRule("delivered-strict", _is_delivered_strict, Phase.DELIVERED),
    PhaseRule("in-transit-strict", _is_in_transit_strict, Phase.IN_TRANSIT),
    PhaseRule("delivered-by-date", _has_delivery_date, Phase.DELIVERED),
    PhaseRule("in-transit-by-carrier", _is_in_transit_fallback, Phase.IN_TRANSIT),
    PhaseRule("available-for-billing", _is_available_for_billing, Phase.AVAILABLE_FOR_BILLING),
    PhaseRule("packing", _separation_stage(DETAIL_IN_PACKING), Phase.PACKING),
    PhaseRule("picking", _separation_stage(DETAIL_IN_PICKING), Phase.PICKING),
    PhaseRule("approved", _is_approved, Phase.APPROVED),
)


def match_rule(inputs: PhaseInputs) -> Optional[PhaseRule]:
    for rule in PHASE_RULES:
        if rule.predicate(inputs):
            return rule
    return None


def classify_inputs(inputs: PhaseInputs, fallback: Phase = Phase.UNKNOWN) -> Phase:
    rule = match_rule(inputs)
    return rule.phase if rule else fallback


def classify_phase(
    erp_row: SourceRow,
    logistics_row: Optional[SourceRow],
    *,
    fallback: Phase = Phase.UNKNOWN,
    delivery_column_index: Optional[int] = 28,
) -> Phase:
    """Derive the pipeline phase of an ERP row and its (optional) carrier row."""
    return classify_inputs(extract_inputs(erp_row, logistics_row, delivery_column_index), fallback)


def apply_override(phase: Phase, override: Optional[ManualOverride]) -> Phase:
    """An operator override replaces the computed phase outright."""
    if override is None:
        return phase
    return override.phase
