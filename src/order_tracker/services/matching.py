"""Pairing ERP rows with carrier rows by normalized order identifiers."""

from __future__ import annotations

from typing import Iterable, Optional

from ..data.rows import ERP_EXTERNAL_CODE, ERP_ORDER_CODE, LOG_ERP_ORDER, LOG_ORDER, SourceRow
from .identity import normalize_id


def find_match(erp_row: SourceRow, logistics_rows: Iterable[SourceRow]) -> Optional[SourceRow]:
    """Return the first carrier row sharing an identifier with ``erp_row``.

    A carrier row matches when its order equals the ERP order code, its ERP
    order equals the ERP external code, or its order equals the ERP external
    code. Rows are scanned in source order and the first hit wins.
    """
    erp_order = normalize_id(erp_row.lookup(*ERP_ORDER_CODE))
    erp_external = normalize_id(erp_row.lookup(*ERP_EXTERNAL_CODE))

    for candidate in logistics_rows:
        carrier_order = normalize_id(candidate.lookup(*LOG_ORDER))
        carrier_erp_order = normalize_id(candidate.lookup(*LOG_ERP_ORDER))
        if carrier_order and carrier_order == erp_order:
            return candidate
        if carrier_erp_order and carrier_erp_order == erp_external:
            return candidate
        if carrier_order and carrier_order == erp_external:
            return candidate
    return None


class MatchIndex:
    """Precomputed identifier index over the carrier rows of one import.

    Gives the same answer as :func:`find_match` (first row in source order
    satisfying any key condition) without rescanning every row per ERP order.
    """

    def __init__(self, logistics_rows: Iterable[SourceRow]) -> None:
        self.rows: list[SourceRow] = list(logistics_rows)
        self._by_order: dict[str, int] = {}
        self._by_erp_order: dict[str, int] = {}
        for position, row in enumerate(self.rows):
            carrier_order = normalize_id(row.lookup(*LOG_ORDER))
            carrier_erp_order = normalize_id(row.lookup(*LOG_ERP_ORDER))
            if carrier_order:
                self._by_order.setdefault(carrier_order, position)
            if carrier_erp_order:
                self._by_erp_order.setdefault(carrier_erp_order, position)

    def find(self, erp_row: SourceRow) -> Optional[SourceRow]:
        erp_order = normalize_id(erp_row.lookup(*ERP_ORDER_CODE))
        erp_external = normalize_id(erp_row.lookup(*ERP_EXTERNAL_CODE))

        positions = []
        if erp_order and erp_order in self._by_order:
            positions.append(self._by_order[erp_order])
        if erp_external and erp_external in self._by_erp_order:
            positions.append(self._by_erp_order[erp_external])
        if erp_external and erp_external in self._by_order:
            positions.append(self._by_order[erp_external])
        if not positions:
            return None
        return self.rows[min(positions)]
