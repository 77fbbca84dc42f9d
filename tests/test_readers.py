from datetime import datetime
from io import BytesIO

from openpyxl import Workbook

from src.order_tracker.data.readers import detect_delimiter, read_erp_workbook, read_logistics_csv
from src.order_tracker.data.rows import SourceRow, parse_source_datetime


def _workbook_bytes(sheets: dict[str, list[list]]) -> bytes:
    wb = Workbook()
    wb.remove(wb.active)
    for title, rows in sheets.items():
        ws = wb.create_sheet(title)
        for row in rows:
            ws.append(row)
    buffer = BytesIO()
    wb.save(buffer)
    return buffer.getvalue()


def test_erp_reader_prefers_named_sheet_and_skips_blank_rows() -> None:
    payload = _workbook_bytes(
        {
            "Resumo": [["Other"], ["ignored"]],
            "Pag": [
                ["CodigoPedido", "NomePessoa", "Data Aprovação"],
                ["00123", "Loja Azul", datetime(2024, 3, 4, 9, 30)],
                [None, None, None],
                ["456", None, None],
            ],
        }
    )
    rows = read_erp_workbook(payload, "Pag")

    assert len(rows) == 2
    assert rows[0].lookup("CodigoPedido") == "00123"
    assert rows[0].lookup("Data Aprovação") == datetime(2024, 3, 4, 9, 30)
    assert rows[1].lookup("NomePessoa") is None


def test_erp_reader_falls_back_to_first_sheet() -> None:
    payload = _workbook_bytes({"Plan1": [["CodigoPedido"], [42]]})
    rows = read_erp_workbook(payload, "Pag")
    assert rows[0].lookup("codigopedido") is None
    assert rows[0].lookup("CodigoPedido") == 42


def test_detect_delimiter() -> None:
    assert detect_delimiter("Pedido;Status;Rota") == ";"
    assert detect_delimiter("Pedido,Status,Rota") == ","
    assert detect_delimiter("Pedido;Status,Rota,Motorista") == ","


def test_logistics_reader_semicolon_with_quotes_and_positions() -> None:
    header = ["Pedido", "Pedido ERP", "Status", "Última Ocorrência"] + [f"C{i}" for i in range(4, 28)] + ["Entrega"]
    values = ["123", "A-9", "Entregue", '"Cliente; ausente"'] + [""] * 24 + ["05/03/2024 10:00"]
    text = ";".join(header) + "\n" + ";".join(values) + "\n\n"
    rows = read_logistics_csv(text.encode("utf-8"))

    assert len(rows) == 1
    row = rows[0]
    assert row.lookup("Última Ocorrência") == "Cliente; ausente"
    assert row.positional(28) == "05/03/2024 10:00"
    assert row.lookup("Pedido ERP") == "A-9"


def test_logistics_reader_latin1_fallback() -> None:
    text = "Pedido,Última Ocorrência\n1,Saiu para entrega\n"
    rows = read_logistics_csv(text.encode("latin-1"))
    assert rows[0].lookup("Última Ocorrência") == "Saiu para entrega"


def test_logistics_reader_empty_payload() -> None:
    assert read_logistics_csv(b"") == []


def test_source_row_lookup_is_case_tolerant() -> None:
    row = SourceRow({"PEDIDO": "1", "status": "ok"})
    assert row.lookup("Pedido") == "1"
    assert row.lookup("Status") == "ok"
    assert row.lookup("Missing", "status") == "ok"


def test_parse_source_datetime_formats() -> None:
    assert parse_source_datetime("05/03/2024 10:15") == datetime(2024, 3, 5, 10, 15)
    assert parse_source_datetime("05/03/2024") == datetime(2024, 3, 5)
    assert parse_source_datetime("2024-03-05T10:15:00-03:00") == datetime(2024, 3, 5, 10, 15)
    assert parse_source_datetime("not a date") is None
    assert parse_source_datetime("") is None
