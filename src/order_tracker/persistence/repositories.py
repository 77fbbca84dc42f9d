"""Table-level persistence for imports, consolidated orders and reference data."""

from __future__ import annotations

import logging
import uuid
from datetime import date, datetime
from typing import Any, Iterable, Optional, Sequence

from ..models.domain import (
    ConsolidatedOrder,
    Holiday,
    ManualOverride,
    Phase,
    ReturnResolution,
    RouteCost,
    serialize_timestamp,
)
from ..data.rows import SourceRow
from .store import Filter, RecordStore

logger = logging.getLogger(__name__)

IMPORTS = "imports"
RAW_ERP_ROWS = "raw_erp_rows"
RAW_LOGISTICS_ROWS = "raw_logistics_rows"
CONSOLIDATED_ORDERS = "consolidated_orders"
ORDER_OVERRIDES = "order_overrides"
HOLIDAYS = "holidays"
ROUTE_COSTS = "route_costs"
ROUTES = "routes"
DAILY_PICKING_TRACKER = "daily_picking_tracker"

# Import tables are cleared in dependency order; each filter matches every row.
_IMPORT_TABLES: tuple[tuple[str, Filter], ...] = (
    (CONSOLIDATED_ORDERS, ("internal_id", "neq", "")),
    (RAW_ERP_ROWS, ("import_id", "neq", "")),
    (RAW_LOGISTICS_ROWS, ("import_id", "neq", "")),
    (IMPORTS, ("id", "neq", "")),
)


def clear_import_tables(store: RecordStore) -> None:
    """Drop the previous snapshot: consolidated orders, raw rows and import records."""
    for table, match_all in _IMPORT_TABLES:
        store.delete(table, [match_all])
        logger.info(f"Cleared table '{table}'")


def create_import_record(store: RecordStore, kind: str, file_names: Sequence[str], created_at: datetime, tz_name: str) -> str:
    import_id = uuid.uuid4().hex
    store.insert(
        IMPORTS,
        [
            {
                "id": import_id,
                "kind": kind,
                "file_names": " | ".join(name for name in file_names if name),
                "created_at": serialize_timestamp(created_at, tz_name),
            }
        ],
    )
    return import_id


def save_raw_rows(store: RecordStore, table: str, import_id: str, rows: Iterable[SourceRow]) -> int:
    records = [{"import_id": import_id, "data": row.to_json()} for row in rows]
    if not records:
        return 0
    return store.insert(table, records)


def save_consolidated_orders(store: RecordStore, orders: Sequence[ConsolidatedOrder], tz_name: str) -> int:
    records = [order.to_record(tz_name) for order in orders]
    if not records:
        return 0
    return store.upsert(CONSOLIDATED_ORDERS, records, on_conflict="internal_id")


def load_consolidated_orders(
    store: RecordStore,
    tz_name: str,
    filters: Sequence[Filter] = (),
) -> list[ConsolidatedOrder]:
    rows = store.select_all(CONSOLIDATED_ORDERS, filters, order_by="approved_at", ascending=True)
    return [ConsolidatedOrder.from_record(row, tz_name) for row in rows]


def load_holidays(store: RecordStore) -> list[Holiday]:
    holidays: list[Holiday] = []
    for row in store.select_all(HOLIDAYS, order_by="day", ascending=True):
        try:
            day = row["day"] if isinstance(row["day"], date) else date.fromisoformat(str(row["day"])[:10])
        except (KeyError, ValueError, TypeError) as e:
            logger.warning(f"Skipping invalid holiday row: {e}")
            continue
        holidays.append(Holiday(day=day, description=str(row.get("description") or ""), id=row.get("id")))
    return holidays


def holiday_dates(store: RecordStore) -> frozenset[date]:
    return frozenset(holiday.day for holiday in load_holidays(store))


def add_holidays(store: RecordStore, holidays: Iterable[Holiday]) -> int:
    records = [{"day": holiday.day.isoformat(), "description": holiday.description} for holiday in holidays]
    if not records:
        return 0
    return store.upsert(HOLIDAYS, records, on_conflict="day", ignore_duplicates=True)


def delete_holiday(store: RecordStore, holiday_id: int | str) -> None:
    store.delete(HOLIDAYS, [("id", "eq", holiday_id)])


def _override_from_row(row: dict[str, Any]) -> Optional[ManualOverride]:
    phase = Phase.parse(row.get("phase"))
    internal_id = str(row.get("internal_id") or "").strip()
    if phase is None or not internal_id:
        logger.warning(f"Ignoring override with unrecognized phase {row.get('phase')!r} for order {internal_id!r}")
        return None
    resolution = None
    if row.get("resolution"):
        try:
            resolution = ReturnResolution(row["resolution"])
        except ValueError:
            logger.warning(f"Ignoring unknown return resolution {row['resolution']!r} for order {internal_id}")
    return ManualOverride(internal_id=internal_id, phase=phase, reason=row.get("reason"), resolution=resolution)


def load_overrides(store: RecordStore, phase: Optional[Phase] = None) -> dict[str, ManualOverride]:
    filters: list[Filter] = [("phase", "eq", phase.value)] if phase else []
    overrides: dict[str, ManualOverride] = {}
    for row in store.select_all(ORDER_OVERRIDES, filters):
        override = _override_from_row(row)
        if override is not None:
            overrides[override.internal_id] = override
    return overrides


def save_override(store: RecordStore, override: ManualOverride) -> None:
    store.upsert(
        ORDER_OVERRIDES,
        [
            {
                "internal_id": override.internal_id,
                "phase": override.phase.value,
                "reason": override.reason,
                "resolution": override.resolution.value if override.resolution else None,
            }
        ],
        on_conflict="internal_id",
    )


def set_return_resolution(store: RecordStore, internal_id: str, resolution: Optional[ReturnResolution]) -> None:
    store.update(
        ORDER_OVERRIDES,
        {"resolution": resolution.value if resolution else None},
        [("internal_id", "eq", internal_id)],
    )


def delete_override(store: RecordStore, internal_id: str) -> None:
    store.delete(ORDER_OVERRIDES, [("internal_id", "eq", internal_id)])


def load_route_costs(store: RecordStore) -> list[RouteCost]:
    costs: list[RouteCost] = []
    for row in store.select_all(ROUTE_COSTS, columns="route,cost"):
        if not row.get("route"):
            continue
        try:
            costs.append(RouteCost(route=str(row["route"]), cost=float(row.get("cost") or 0)))
        except (TypeError, ValueError) as e:
            logger.warning(f"Skipping invalid route cost for {row.get('route')!r}: {e}")
    return costs


def save_route_costs(store: RecordStore, costs: Sequence[RouteCost], updated_at: datetime, tz_name: str) -> int:
    stamp = serialize_timestamp(updated_at, tz_name)
    records = [{"route": cost.route, "cost": cost.cost, "updated_at": stamp} for cost in costs]
    if not records:
        return 0
    return store.upsert(ROUTE_COSTS, records, on_conflict="route")


def route_table_key(municipality: Any, neighborhood: Any) -> str:
    return f"{str(municipality or '').strip().upper()} - {str(neighborhood or '').strip().upper()}"


def load_route_table(store: RecordStore) -> dict[str, str]:
    """Local route table keyed by "MUNICIPALITY - NEIGHBORHOOD"."""
    lookup: dict[str, str] = {}
    for row in store.select_all(ROUTES, columns="municipality,neighborhood,name"):
        if row.get("municipality") and row.get("neighborhood") and row.get("name"):
            lookup[route_table_key(row["municipality"], row["neighborhood"])] = str(row["name"])
    return lookup


def track_daily_picking(store: RecordStore, internal_ids: Iterable[str], reference_date: date) -> int:
    records = [{"internal_id": internal_id, "reference_date": reference_date.isoformat()} for internal_id in internal_ids]
    if not records:
        return 0
    return store.upsert(
        DAILY_PICKING_TRACKER, records, on_conflict="internal_id,reference_date", ignore_duplicates=True
    )


def load_daily_picking(store: RecordStore, reference_date: date) -> list[str]:
    rows = store.select_all(
        DAILY_PICKING_TRACKER,
        [("reference_date", "eq", reference_date.isoformat())],
        columns="internal_id",
    )
    return [str(row["internal_id"]) for row in rows if row.get("internal_id")]
