"""Identifier and free-text normalization shared by matching and classification."""

from __future__ import annotations

import re
import unicodedata
from typing import Any

_NON_DIGITS = re.compile(r"\D")
_LEADING_ZEROS = re.compile(r"^0+")

# Decorative marker the commercial team puts around some customer names.
NAME_MARKER = "*"


def normalize_id(raw: Any) -> str:
    """Digits only, without leading zeros; all-zero input keeps its zeros.

    >>> normalize_id("007")
    '7'
    >>> normalize_id("A-12B")
    '12'
    """
    if raw is None:
        return ""
    if isinstance(raw, float) and raw.is_integer():
        raw = int(raw)
    digits = _NON_DIGITS.sub("", str(raw).strip())
    return _LEADING_ZEROS.sub("", digits) or digits


def normalize_name(raw: Any) -> str:
    """Key used for person-name route lookups."""
    if raw is None:
        return ""
    return str(raw).replace(NAME_MARKER, "").strip().upper()


def normalize_text(raw: Any) -> str:
    """Trimmed, lower-cased, accent-free form of a status field."""
    if raw is None:
        return ""
    decomposed = unicodedata.normalize("NFKD", str(raw))
    stripped = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    return " ".join(stripped.lower().split())
