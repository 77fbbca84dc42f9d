"""Operator returns: mark an order returned, resolve it, or drop the override."""

from __future__ import annotations

import logging
from typing import Mapping, Optional

from ...models.domain import ManualOverride, Phase, ReturnResolution
from ...persistence import repositories
from ...persistence.store import RecordStore
from ..consolidation import PipelineConfig
from ..identity import normalize_id
from .common import load_order_views, matches_search, order_payload

logger = logging.getLogger(__name__)


class OverrideNotFoundError(LookupError):
    """No manual override exists for the order."""


def _clean_id(internal_id: str) -> str:
    cleaned = normalize_id(internal_id)
    if not cleaned:
        raise ValueError(f"Invalid order id '{internal_id}'.")
    return cleaned


def mark_returned(store: RecordStore, internal_id: str, reason: str) -> ManualOverride:
    if not reason or not reason.strip():
        raise ValueError("A reason is required to send an order to returns.")
    override = ManualOverride(internal_id=_clean_id(internal_id), phase=Phase.RETURNED, reason=reason.strip())
    repositories.save_override(store, override)
    logger.info(f"Order {override.internal_id} sent to returns: {override.reason}")
    return override


def set_resolution(
    store: RecordStore,
    internal_id: str,
    resolution: Optional[ReturnResolution],
) -> ManualOverride:
    cleaned = _clean_id(internal_id)
    current = repositories.load_overrides(store, Phase.RETURNED).get(cleaned)
    if current is None:
        raise OverrideNotFoundError(f"Order {cleaned} is not in returns.")
    repositories.set_return_resolution(store, cleaned, resolution)
    current.resolution = resolution
    logger.info(f"Return {cleaned} resolution set to {resolution.value if resolution else None}")
    return current


def clear_override(store: RecordStore, internal_id: str) -> None:
    cleaned = _clean_id(internal_id)
    if cleaned not in repositories.load_overrides(store):
        raise OverrideNotFoundError(f"Order {cleaned} has no manual override.")
    repositories.delete_override(store, cleaned)
    logger.info(f"Manual override removed for order {cleaned}")


def list_returns(
    store: RecordStore,
    config: PipelineConfig,
    sheet: Mapping[str, str],
    search: Optional[str] = None,
) -> dict:
    items = []
    for view in load_order_views(store, config, sheet):
        if view.override is None or view.override.phase != Phase.RETURNED:
            continue
        if not matches_search(view.order, search):
            continue
        payload = order_payload(view, config.tz_name)
        payload["reason"] = view.override.reason
        payload["resolution"] = view.override.resolution.value if view.override.resolution else None
        items.append(payload)
    return {"items": items, "total": len(items)}
