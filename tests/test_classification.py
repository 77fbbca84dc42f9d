import pytest

from src.order_tracker.data.rows import SourceRow
from src.order_tracker.models.domain import ManualOverride, Phase
from src.order_tracker.services.classification import (
    PHASE_RULES,
    PhaseInputs,
    apply_override,
    classify_inputs,
    classify_phase,
    match_rule,
)


def _erp(fiscal="", commercial="", detail="", delivery=None) -> SourceRow:
    fields = {
        "CodigoPedido": "100",
        "SituaçãoFiscal": fiscal,
        "SituaçãoComercial": commercial,
        "DetalheSituaçãoComercial": detail,
    }
    if delivery is not None:
        fields["DataEntrega"] = delivery
    return SourceRow(fields)


def _carrier(status="", occurrence="", pickup="", delivered_cell="") -> SourceRow:
    fields = {
        "Pedido": "100",
        "Status": status,
        "Última Ocorrência": occurrence,
        "Data de Coleta": pickup,
    }
    raw = [""] * 30
    raw[28] = delivered_cell
    return SourceRow(fields, raw)


@pytest.mark.parametrize(
    ("erp", "carrier", "expected"),
    [
        (_erp("Não Faturado", "Aprovado", "Aprovado"), None, Phase.APPROVED),
        (_erp("Não Faturado", "Separação", "Em Picking"), None, Phase.PICKING),
        (_erp("Não Faturado", "Separação", "Em Packing"), None, Phase.PACKING),
        (_erp("Disp. Faturamento", "Separação", "Disponível para retirada/entrega"), None, Phase.AVAILABLE_FOR_BILLING),
        (_erp("NF Emitida", "Transporte", "Qualquer"), None, Phase.IN_TRANSIT),
        (_erp("NF Emitida", "Entregue", "Entregue para revendedor"), None, Phase.DELIVERED),
        (_erp("Não Faturado", "Aprovado", "Aprovado"), _carrier(status="Entregue."), Phase.DELIVERED),
        (_erp("Não Faturado", "Aprovado", "Aprovado"), _carrier(status="Em Trânsito"), Phase.IN_TRANSIT),
        (_erp("Não Faturado", "Aprovado", "Aprovado"), _carrier(pickup="01/03/2024"), Phase.IN_TRANSIT),
    ],
)
def test_classify_phase_table(erp, carrier, expected) -> None:
    assert classify_phase(erp, carrier) == expected


def test_invoice_issued_and_available_for_pickup_is_in_transit() -> None:
    erp = _erp("NF Emitida", "Separação", "Disponível para retirada/entrega")
    assert classify_phase(erp, None) == Phase.IN_TRANSIT
    assert match_rule(PhaseInputs(fiscal="nf emitida", commercial="separacao", detail="disponivel para retirada/entrega")).name == "in-transit-by-carrier"


@pytest.mark.parametrize(
    "erp",
    [
        _erp("NF Emitida", "Cancelado", "Entregue para revendedor", delivery="01/03/2024"),
        _erp("Não Faturado", "Cancelado", "Aprovado"),
        _erp("", "cancelado", ""),
    ],
)
def test_cancelled_commercial_status_wins(erp) -> None:
    assert classify_phase(erp, _carrier(status="Entregue", pickup="01/03/2024")) == Phase.CANCELLED


def test_cancellation_in_carrier_occurrence() -> None:
    erp = _erp("Não Faturado", "Aprovado", "Aprovado")
    assert classify_phase(erp, _carrier(occurrence="Entrega CANCELADA pelo cliente")) == Phase.CANCELLED


def test_delivery_date_wins_over_unrecognized_statuses() -> None:
    erp = _erp("Bloqueado", "Pendente", "Aguardando", delivery="05/03/2024")
    assert classify_phase(erp, None) == Phase.DELIVERED


def test_carrier_positional_delivery_cell_counts_as_delivery_date() -> None:
    erp = _erp("Bloqueado", "Pendente", "")
    assert classify_phase(erp, _carrier(delivered_cell="05/03/2024 14:00")) == Phase.DELIVERED
    assert classify_phase(erp, _carrier(delivered_cell="")) == Phase.UNKNOWN


def test_unrecognized_statuses_use_fallback() -> None:
    erp = _erp("Bloqueado", "Pendente", "")
    assert classify_phase(erp, None) == Phase.UNKNOWN
    assert classify_phase(erp, None, fallback=Phase.CANCELLED) == Phase.CANCELLED


def test_rule_table_order() -> None:
    assert [rule.name for rule in PHASE_RULES][:3] == ["cancelled", "delivered-strict", "in-transit-strict"]
    assert classify_inputs(PhaseInputs()) == Phase.UNKNOWN


def test_override_replaces_phase() -> None:
    override = ManualOverride(internal_id="100", phase=Phase.RETURNED, reason="damaged")
    assert apply_override(Phase.IN_TRANSIT, override) == Phase.RETURNED
    assert apply_override(Phase.IN_TRANSIT, None) == Phase.IN_TRANSIT
