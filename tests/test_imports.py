from datetime import date, datetime
from io import BytesIO
from pathlib import Path

import pytest
from openpyxl import Workbook

from src.order_tracker.models.domain import ManualOverride, Phase
from src.order_tracker.persistence import repositories
from src.order_tracker.persistence.filesystem import SettingsStore
from src.order_tracker.persistence.store import MemoryRecordStore
from src.order_tracker.services.consolidation import PipelineConfig
from src.order_tracker.services import imports
from src.order_tracker.services.imports import (
    ImportInProgressError,
    ImportRunError,
    ImportStatusTracker,
    UnsupportedFileError,
    UploadedFile,
    run_import,
)
from src.order_tracker.services.views import clear_override, list_orders, mark_returned

NOW = datetime(2024, 3, 5, 10, 0)
TZ = "America/Sao_Paulo"

ERP_HEADER = [
    "CodigoPedido",
    "Cód Externo Pedido",
    "SituaçãoFiscal",
    "SituaçãoComercial",
    "DetalheSituaçãoComercial",
    "Data Aprovação",
    "NomePessoa",
    "Bairro",
    "Município",
]
ERP_ROWS = [
    ["001", "E-1", "Não Faturado", "Separação", "Em Picking", "04/03/2024 08:00", "Loja Azul", "Centro", "Macaé"],
    ["002", "E-2", "NF Emitida", "Transporte", "Saiu para entrega", "04/03/2024 08:00", "Mercado", "Lagoa", "Macaé"],
    ["", "E-3", "Não Faturado", "Aprovado", "Aprovado", "04/03/2024 08:00", "Sem Codigo", None, None],
    ["004", "E-4", "Não Faturado", "Cancelado", "Cancelado", "04/03/2024 08:00", "Cliente", None, None],
]
CARRIER_CSV = "Pedido;Pedido ERP;Status;Data de Coleta;Rota\n900;X-2;Em transito;04/03/2024 16:00;ROTA 2\n"


def _erp_file(rows=ERP_ROWS) -> UploadedFile:
    wb = Workbook()
    ws = wb.active
    ws.title = "Pag"
    ws.append(ERP_HEADER)
    for row in rows:
        ws.append(row)
    buffer = BytesIO()
    wb.save(buffer)
    return UploadedFile(name="pedidos.xlsx", payload=buffer.getvalue())


def _carrier_file() -> UploadedFile:
    return UploadedFile(name="logistica.csv", payload=CARRIER_CSV.encode("utf-8"))


@pytest.fixture
def store() -> MemoryRecordStore:
    return MemoryRecordStore()


@pytest.fixture
def settings_store(tmp_path: Path) -> SettingsStore:
    return SettingsStore(root=tmp_path)


def test_run_import_rebuilds_snapshot(store: MemoryRecordStore, settings_store: SettingsStore) -> None:
    tracker = ImportStatusTracker()
    repositories.save_override(store, ManualOverride(internal_id="4", phase=Phase.RETURNED, reason="Refused"))
    store.insert(repositories.CONSOLIDATED_ORDERS, [{"internal_id": "stale", "current_phase": "Approved"}])

    summary = run_import(store, settings_store, _erp_file(), _carrier_file(), now=NOW, tracker=tracker)

    assert summary.kind == "both"
    assert summary.erp_rows == 4
    assert summary.logistics_rows == 1
    assert summary.skipped == 1
    assert summary.matched == 1
    assert summary.saved == 3
    assert summary.overrides_applied == 1
    assert summary.picking_tracked == 1

    orders = {order.internal_id: order for order in repositories.load_consolidated_orders(store, TZ)}
    assert set(orders) == {"1", "2", "4"}
    assert orders["1"].current_phase == Phase.PICKING
    assert orders["2"].current_phase == Phase.IN_TRANSIT
    assert orders["2"].route == "ROTA 2"
    assert orders["4"].current_phase == Phase.RETURNED
    assert orders["1"].imported_at == NOW

    assert len(store.select_all(repositories.RAW_ERP_ROWS)) == 4
    assert len(store.select_all(repositories.RAW_LOGISTICS_ROWS)) == 1
    assert len(store.select_all(repositories.IMPORTS)) == 1
    assert repositories.load_daily_picking(store, date(2024, 3, 5)) == ["1"]
    assert tracker.latest().level == "success"


def test_run_import_accepts_single_file(store: MemoryRecordStore, settings_store: SettingsStore) -> None:
    summary = run_import(store, settings_store, erp_file=_erp_file(), now=NOW, tracker=ImportStatusTracker())
    assert summary.kind == "xlsx"
    assert summary.matched == 0

    summary = run_import(store, settings_store, logistics_file=_carrier_file(), now=NOW, tracker=ImportStatusTracker())
    assert summary.kind == "csv"
    assert summary.saved == 0
    assert repositories.load_consolidated_orders(store, TZ) == []


def test_run_import_requires_a_file(store: MemoryRecordStore, settings_store: SettingsStore) -> None:
    with pytest.raises(ValueError):
        run_import(store, settings_store)


def test_run_import_rejects_wrong_extension(store: MemoryRecordStore, settings_store: SettingsStore) -> None:
    with pytest.raises(UnsupportedFileError):
        run_import(store, settings_store, erp_file=UploadedFile(name="pedidos.csv", payload=b""))


def test_concurrent_run_is_rejected(store: MemoryRecordStore, settings_store: SettingsStore) -> None:
    assert imports._run_lock.acquire(blocking=False)
    try:
        with pytest.raises(ImportInProgressError):
            run_import(store, settings_store, logistics_file=_carrier_file(), now=NOW)
    finally:
        imports._run_lock.release()


def test_failure_is_reported_and_wrapped(
    store: MemoryRecordStore, settings_store: SettingsStore, monkeypatch: pytest.MonkeyPatch
) -> None:
    tracker = ImportStatusTracker()

    def broken(*args, **kwargs):
        raise RuntimeError("disk full")

    monkeypatch.setattr(imports, "consolidate", broken)

    with pytest.raises(ImportRunError, match="disk full"):
        run_import(store, settings_store, _erp_file(), now=NOW, tracker=tracker)
    assert tracker.latest().level == "error"
    assert "disk full" in tracker.latest().message
    assert not imports._run_lock.locked()

    monkeypatch.undo()
    run_import(store, settings_store, logistics_file=_carrier_file(), now=NOW, tracker=tracker)
    assert tracker.latest().level == "success"


def test_removed_override_restores_computed_phase(store: MemoryRecordStore, settings_store: SettingsStore) -> None:
    config = PipelineConfig(now=NOW, tz_name=TZ)
    mark_returned(store, "1", "Refused at door")
    run_import(store, settings_store, _erp_file(), now=NOW, tracker=ImportStatusTracker())

    stored = {order.internal_id: order for order in repositories.load_consolidated_orders(store, TZ)}
    assert stored["1"].current_phase == Phase.RETURNED
    assert stored["1"].computed_phase == Phase.PICKING
    assert [item["internal_id"] for item in list_orders(store, config, {}, phase=Phase.RETURNED)["items"]] == ["1"]

    clear_override(store, "1")

    assert list_orders(store, config, {}, phase=Phase.RETURNED)["items"] == []
    items = {item["internal_id"]: item for item in list_orders(store, config, {})["items"]}
    assert items["1"]["current_phase"] == "Picking"
    assert items["1"]["manual_override_phase"] is None
