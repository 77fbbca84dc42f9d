from datetime import date

import httpx

from src.order_tracker.data.holidays_api import fetch_public_holidays
from src.order_tracker.data.route_sheet import fetch_route_sheet, parse_route_sheet, resolve_route, route_labels

SHEET = (
    "Codigo,Nome,Bairro,Cidade,Rota\n"
    '1,*Loja Azul*,Centro,Macaé,ROTA 1\n'
    '2,"Mercado Dois, Ltda",Lagoa,Macaé,ROTA 2\n'
    "3,Sem Rota,Centro,Macaé,#N/A\n"
    "4,Incompleto,Centro\n"
    "5,Cidade Como Rota,Centro,Macaé,MACAÉ\n"
)


def _client(handler) -> httpx.Client:
    return httpx.Client(transport=httpx.MockTransport(handler))


def test_parse_route_sheet_normalizes_names_and_skips_placeholders() -> None:
    mapping = parse_route_sheet(SHEET)
    assert mapping == {"LOJA AZUL": "ROTA 1", "MERCADO DOIS, LTDA": "ROTA 2"}
    assert route_labels(mapping) == ["ROTA 1", "ROTA 2"]


def test_fetch_route_sheet_uses_http_client() -> None:
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(str(request.url))
        return httpx.Response(200, text=SHEET)

    mapping = fetch_route_sheet("https://sheets.example/export?format=csv", client=_client(handler))
    assert mapping["LOJA AZUL"] == "ROTA 1"
    assert seen == ["https://sheets.example/export?format=csv"]


def test_fetch_route_sheet_failure_returns_empty_mapping() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(503, text="unavailable")

    assert fetch_route_sheet("https://sheets.example/export", client=_client(handler)) == {}


def test_resolve_route_prefers_carrier_route() -> None:
    sheet = {"LOJA AZUL": "ROTA 1"}
    assert resolve_route("ROTA 9", "Loja Azul", sheet) == "ROTA 9"
    assert resolve_route("  ", "*loja azul*", sheet) == "ROTA 1"
    assert resolve_route(None, "Unknown", sheet) is None
    assert resolve_route(None, None, sheet) is None


def test_fetch_public_holidays() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path.endswith("/2024/BR")
        return httpx.Response(
            200,
            json=[
                {"date": "2024-04-21", "localName": "Tiradentes", "name": "Tiradentes"},
                {"date": "bad", "localName": "Broken"},
                {"date": "2024-12-25", "name": "Christmas Day"},
            ],
        )

    holidays = fetch_public_holidays(2024, "br", client=_client(handler))
    assert [(h.day, h.description) for h in holidays] == [
        (date(2024, 4, 21), "Tiradentes"),
        (date(2024, 12, 25), "Christmas Day"),
    ]


def test_fetch_public_holidays_failure_returns_empty_list() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("offline", request=request)

    assert fetch_public_holidays(2024, client=_client(handler)) == []
