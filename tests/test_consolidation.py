from datetime import datetime, timedelta

from src.order_tracker.data.rows import SourceRow
from src.order_tracker.models.domain import ManualOverride, MatchMethod, Phase, SlaStatus, SlaThresholds
from src.order_tracker.services.consolidation import (
    LOCATION_NOT_PROVIDED,
    PipelineConfig,
    build_order,
    consolidate,
    deduplicate,
)

MONDAY = datetime(2024, 3, 4, 0, 0)


def _erp(code="100", **fields) -> SourceRow:
    values = {
        "CodigoPedido": code,
        "SituaçãoFiscal": "Não Faturado",
        "SituaçãoComercial": "Aprovado",
        "DetalheSituaçãoComercial": "Aprovado",
        "Data Aprovação": "04/03/2024 00:00",
    }
    values.update(fields)
    return SourceRow(values)


def _carrier(order="100", delivered_cell="", **fields) -> SourceRow:
    values = {"Pedido": order, "Status": "", "Transportadora": "Fast Cargo"}
    values.update(fields)
    raw = [""] * 30
    raw[28] = delivered_cell
    return SourceRow(values, raw)


def _config(**kwargs) -> PipelineConfig:
    kwargs.setdefault("now", MONDAY + timedelta(hours=30))
    return PipelineConfig(**kwargs)


def test_approved_order_without_match_gets_picking_alert() -> None:
    order = build_order(_erp(), None, _config(thresholds=SlaThresholds(picking_hours=24)))

    assert order.current_phase == Phase.APPROVED
    assert order.match_method == MatchMethod.NONE
    assert any(alert.startswith("Picking start delayed") for alert in order.sla_alerts)
    assert order.delivered_at is None
    assert order.location == LOCATION_NOT_PROVIDED


def test_delivered_across_weekend_is_on_time() -> None:
    erp = _erp(
        **{
            "SituaçãoFiscal": "NF Emitida",
            "SituaçãoComercial": "Entregue",
            "DetalheSituaçãoComercial": "Entregue para revendedor",
            "Data Aprovação": "07/03/2024 10:00",
            "DataEntrega": "13/03/2024 15:00",
        }
    )
    order = build_order(erp, None, _config(thresholds=SlaThresholds(max_business_days=5)))

    assert order.current_phase == Phase.DELIVERED
    assert order.business_days_since_approval == 4
    assert order.sla_status == SlaStatus.ON_TIME


def test_carrier_fields_and_delivery_column() -> None:
    erp = _erp(Bairro="Centro", Município="Macaé/RJ", NomePessoa="*Loja Azul*")
    carrier = _carrier(
        delivered_cell="05/03/2024 16:30",
        Rota="ROTA 7",
        Motorista="João",
        **{"Data de Coleta": "05/03/2024 08:00", "Última Ocorrência": "Entregue ao cliente", "Pedido ERP": "A1"},
    )
    order = build_order(erp, carrier, _config())

    assert order.match_method == MatchMethod.MATCHED
    assert order.current_phase == Phase.DELIVERED
    assert order.delivered_at == datetime(2024, 3, 5, 16, 30)
    assert order.dispatched_at == datetime(2024, 3, 5, 8, 0)
    assert order.business_hours_in_transport == 8.5
    assert order.carrier == "Fast Cargo"
    assert order.route == "ROTA 7"
    assert order.driver == "João"
    assert order.location == "Centro - Macaé"
    assert order.last_occurrence == "Aprovado | Entregue ao cliente"
    assert order.erp_csv_id == "A1"


def test_unparseable_delivery_cell_falls_back_to_named_columns() -> None:
    carrier = _carrier(delivered_cell="n/a", **{"Status (hora efetuada)": "06/03/2024 10:00"})
    order = build_order(_erp(), carrier, _config())
    assert order.delivered_at == datetime(2024, 3, 6, 10, 0)


def test_row_without_code_is_skipped() -> None:
    result = consolidate([_erp(code="---"), _erp(code="7")], [], _config())
    assert result.skipped == 1
    assert [order.internal_id for order in result.orders] == ["7"]


def test_duplicate_internal_ids_keep_the_later_record() -> None:
    rows = [
        _erp(code="00100", NomePessoa="First"),
        _erp(code="200", NomePessoa="Other"),
        _erp(code="100", NomePessoa="Second"),
    ]
    result = consolidate(rows, [], _config())

    matching = [order for order in result.orders if order.internal_id == "100"]
    assert len(matching) == 1
    assert matching[0].person_name == "Second"
    assert result.duplicates == 1
    assert len(result.orders) == 2


def test_deduplicate_is_last_write_wins() -> None:
    first = build_order(_erp(NomePessoa="A"), None, _config())
    second = build_order(_erp(NomePessoa="B"), None, _config())
    assert deduplicate([first, second]) == [second]


def test_overrides_replace_computed_phase() -> None:
    overrides = {"100": ManualOverride(internal_id="100", phase=Phase.RETURNED, reason="Customer refused")}
    result = consolidate([_erp()], [], _config(), overrides)

    order = result.orders[0]
    assert order.current_phase == Phase.RETURNED
    assert order.manual_override_phase == Phase.RETURNED
    assert order.computed_phase == Phase.APPROVED
    assert result.overrides_applied == 1


def test_matching_uses_first_carrier_row() -> None:
    carriers = [_carrier(order="100", Rota="FIRST"), _carrier(order="100", Rota="SECOND")]
    result = consolidate([_erp()], carriers, _config())
    assert result.matched == 1
    assert result.orders[0].route == "FIRST"
