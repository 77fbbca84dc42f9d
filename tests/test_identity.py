import pytest

from src.order_tracker.services.identity import normalize_id, normalize_name, normalize_text


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("007", "7"),
        (None, ""),
        ("A-12B", "12"),
        ("", ""),
        ("000", "000"),
        (12345, "12345"),
        (123.0, "123"),
        ("  00123 ", "123"),
    ],
)
def test_normalize_id(raw, expected) -> None:
    assert normalize_id(raw) == expected


@pytest.mark.parametrize("raw", ["007", "A-12B", None, "000", " 42 ", "PED-000981"])
def test_normalize_id_is_idempotent(raw) -> None:
    once = normalize_id(raw)
    assert normalize_id(once) == once


def test_normalize_name_strips_marker_and_uppercases() -> None:
    assert normalize_name(" *Maria da Silva* ") == "MARIA DA SILVA"
    assert normalize_name(None) == ""


def test_normalize_text_removes_accents_and_collapses_spaces() -> None:
    assert normalize_text("  Separação ") == "separacao"
    assert normalize_text("Não   Faturado") == "nao faturado"
    assert normalize_text("Disponível para retirada/entrega") == "disponivel para retirada/entrega"
    assert normalize_text(None) == ""
