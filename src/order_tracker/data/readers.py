"""Readers turning uploaded ERP workbooks and carrier CSV exports into source rows."""

from __future__ import annotations

import csv
import io
import logging
from typing import Optional

from openpyxl import load_workbook

from .rows import SourceRow

logger = logging.getLogger(__name__)


def read_erp_workbook(payload: bytes, sheet_name: Optional[str] = "Pag") -> list[SourceRow]:
    """Read the ERP order workbook, preferring ``sheet_name`` over the first sheet."""

    wb = load_workbook(io.BytesIO(payload), data_only=True, read_only=True)
    try:
        if sheet_name and sheet_name in wb.sheetnames:
            sheet = wb[sheet_name]
        else:
            sheet = wb[wb.sheetnames[0]]
        rows = sheet.iter_rows(min_row=1, values_only=True)
        header = next(rows, None)
        if header is None:
            raise ValueError("ERP workbook is empty.")

        headers = [str(name).strip() if name is not None else "" for name in header]
        records: list[SourceRow] = []
        for values in rows:
            if values is None or all(cell is None or str(cell).strip() == "" for cell in values):
                continue
            fields = {
                name: values[idx]
                for idx, name in enumerate(headers)
                if name and idx < len(values) and values[idx] is not None
            }
            records.append(SourceRow(fields, values))
    finally:
        wb.close()

    logger.info(f"Read {len(records)} ERP rows from sheet '{sheet.title}'")
    return records


def _decode(payload: bytes) -> str:
    try:
        return payload.decode("utf-8-sig")
    except UnicodeDecodeError:
        return payload.decode("latin-1")


def detect_delimiter(header_line: str) -> str:
    """Semicolon when it outnumbers commas in the header, comma otherwise."""
    if ";" in header_line and header_line.count(";") > header_line.count(","):
        return ";"
    return ","


def read_logistics_csv(payload: bytes) -> list[SourceRow]:
    """Read the carrier CSV export, keeping raw positional values for each row."""

    text = _decode(payload)
    if not text.strip():
        return []

    first_line = text.splitlines()[0]
    delimiter = detect_delimiter(first_line)
    reader = csv.reader(io.StringIO(text, newline=""), delimiter=delimiter, quotechar='"')

    header = next(reader, None)
    if not header:
        return []
    headers = [name.strip() for name in header]

    records: list[SourceRow] = []
    for values in reader:
        if not values or all(not value.strip() for value in values):
            continue
        cleaned = [value.strip() for value in values]
        fields = {name: cleaned[idx] if idx < len(cleaned) else None for idx, name in enumerate(headers) if name}
        records.append(SourceRow(fields, cleaned))

    logger.info(f"Read {len(records)} logistics rows (delimiter '{delimiter}')")
    return records
