"""Loosely-typed source rows with case-tolerant and positional field access."""

from __future__ import annotations

from collections.abc import Mapping
from datetime import date, datetime
from typing import Any, Iterator, Optional, Sequence

# ERP export headers (two header spellings have been observed across exports)
ERP_ORDER_CODE = ("CodigoPedido", "Pedido", "Código Pedido")
ERP_EXTERNAL_CODE = ("Cód Externo Pedido", "CodExterno", "Cód. Externo Pedido")
ERP_FISCAL_STATUS = ("SituaçãoFiscal", "Situação Fiscal")
ERP_COMMERCIAL_STATUS = ("SituaçãoComercial", "Situação Comercial", "SituacaoComercial")
ERP_COMMERCIAL_DETAIL = ("DetalheSituaçãoComercial", "Detalhe da Situação Comercial", "DetalheSituacaoComercial")
ERP_DELIVERY_DATE = ("DataEntrega", "Data Entrega", "Data de Entrega")
ERP_APPROVED_AT = ("Data Aprovação", "DataAprovação", "Data de Aprovação")
ERP_BILLED_AT = ("DataFaturamento", "Data Faturamento", "Data de Faturamento")
ERP_AVAILABLE_AT = (
    "DataAutorizaçãoFaturamento",
    "Data Autorização Faturamento",
    "Data de Autorização Faturamento",
    "DataAutorização",
)
ERP_NEIGHBORHOOD = ("Bairro",)
ERP_MUNICIPALITY = ("Município", "Municipio", "Cidade")
ERP_PERSON_NAME = ("NomePessoa", "Nome Pessoa")

# Carrier CSV headers
LOG_ORDER = ("Pedido",)
LOG_ERP_ORDER = ("Pedido ERP",)
LOG_STATUS = ("Status",)
LOG_LAST_OCCURRENCE = ("Última Ocorrência", "Ultima Ocorrencia")
LOG_PICKUP_DATE = ("Data de Coleta",)
LOG_DELIVERY_DATE = ("Status (hora efetuada)", "Data de Entrega", "Data Entrega")
LOG_CARRIER = ("Transportadora",)
LOG_ROUTE = ("Rota",)
LOG_DRIVER = ("Motorista",)
LOG_NEIGHBORHOOD = ("Bairro",)
LOG_CITY = ("Cidade",)

_DATE_FORMATS = (
    "%d/%m/%Y %H:%M:%S",
    "%d/%m/%Y %H:%M",
    "%Y-%m-%d %H:%M:%S",
    "%d/%m/%Y",
    "%Y-%m-%d",
)


class SourceRow(Mapping):
    """One row from a spreadsheet or CSV export.

    Named lookups try each candidate header as written, upper-cased and
    lower-cased. ``positional`` reads the raw cell list, which is needed for
    columns whose headers are not reliable across exports.
    """

    __slots__ = ("_fields", "_raw_values")

    def __init__(self, fields: Mapping[str, Any], raw_values: Sequence[Any] = ()) -> None:
        self._fields = dict(fields)
        self._raw_values = tuple(raw_values)

    def __getitem__(self, key: str) -> Any:
        return self._fields[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._fields)

    def __len__(self) -> int:
        return len(self._fields)

    def __repr__(self) -> str:
        return f"SourceRow({self._fields!r})"

    @property
    def raw_values(self) -> tuple[Any, ...]:
        return self._raw_values

    def lookup(self, *keys: str) -> Any:
        """Return the first present value among ``keys``, tolerating header case."""
        for key in keys:
            for variant in (key, key.upper(), key.lower()):
                if variant in self._fields:
                    return self._fields[variant]
        return None

    def text(self, *keys: str) -> str:
        value = self.lookup(*keys)
        if value is None:
            return ""
        return str(value).strip()

    def positional(self, index: int) -> Any:
        if 0 <= index < len(self._raw_values):
            return self._raw_values[index]
        return None

    def first_filled(self, index: Optional[int], *keys: str) -> Any:
        """Positional cell first (when ``index`` is given), then named fields; empty cells skipped."""
        candidates: list[Any] = []
        if index is not None:
            candidates.append(self.positional(index))
        for key in keys:
            candidates.append(self.lookup(key))
        for value in candidates:
            if _is_filled(value):
                return value
        return None

    def to_json(self) -> dict[str, Any]:
        """Named fields with dates rendered as ISO strings, for raw-row storage."""
        return {key: _json_value(value) for key, value in self._fields.items()}


def _is_filled(value: Any) -> bool:
    if value is None:
        return False
    if isinstance(value, str):
        return bool(value.strip())
    return True


def _json_value(value: Any) -> Any:
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if value is None or isinstance(value, (str, int, float, bool)):
        return value
    return str(value)


def parse_source_datetime(value: Any) -> Optional[datetime]:
    """Parse a spreadsheet/CSV cell into a naive local datetime.

    Unparseable or empty values yield ``None``; callers must treat that as an
    absent milestone.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.replace(tzinfo=None) if value.tzinfo else value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    text = str(value).strip()
    if not text:
        return None
    for fmt in _DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt)
        except ValueError:
            continue
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    return parsed.replace(tzinfo=None) if parsed.tzinfo else parsed
