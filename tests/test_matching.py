from src.order_tracker.data.rows import SourceRow
from src.order_tracker.services.matching import MatchIndex, find_match


def _erp(code, external=None) -> SourceRow:
    fields = {"CodigoPedido": code}
    if external is not None:
        fields["Cód Externo Pedido"] = external
    return SourceRow(fields)


def _carrier(order=None, erp_order=None, tag="") -> SourceRow:
    return SourceRow({"Pedido": order, "Pedido ERP": erp_order, "Tag": tag})


def test_match_on_order_code() -> None:
    rows = [_carrier(order="999"), _carrier(order="00123", tag="hit")]
    assert find_match(_erp("123"), rows)["Tag"] == "hit"


def test_match_on_erp_order_against_external_code() -> None:
    rows = [_carrier(order="1", erp_order="A-555", tag="hit")]
    assert find_match(_erp("2", external="555"), rows)["Tag"] == "hit"


def test_match_on_order_against_external_code() -> None:
    rows = [_carrier(order="777", tag="hit")]
    assert find_match(_erp("2", external="777"), rows)["Tag"] == "hit"


def test_first_row_in_source_order_wins() -> None:
    rows = [
        _carrier(order="5", tag="by-external"),
        _carrier(order="10", tag="by-code"),
    ]
    erp = _erp("10", external="5")
    assert find_match(erp, rows)["Tag"] == "by-external"
    assert MatchIndex(rows).find(erp)["Tag"] == "by-external"


def test_empty_identifiers_never_match() -> None:
    rows = [_carrier(order="", erp_order=""), _carrier(order=None)]
    erp = _erp("ABC", external="")
    assert find_match(erp, rows) is None
    assert MatchIndex(rows).find(erp) is None


def test_index_agrees_with_scan() -> None:
    rows = [
        _carrier(order="1", erp_order="50", tag="a"),
        _carrier(order="2", erp_order="60", tag="b"),
        _carrier(order="60", tag="c"),
        _carrier(order="3", erp_order="2", tag="d"),
    ]
    index = MatchIndex(rows)
    for erp in (_erp("2"), _erp("9", external="60"), _erp("3", external="2"), _erp("4", external="70"), _erp("1")):
        assert index.find(erp) is find_match(erp, rows)
