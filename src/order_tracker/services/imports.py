"""Import run: parse uploads, rebuild the consolidated snapshot and track today's picking."""

from __future__ import annotations

import logging
import threading
from dataclasses import asdict, dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Optional

from ..config import settings
from ..data.readers import read_erp_workbook, read_logistics_csv
from ..data.rows import SourceRow
from ..models.domain import Phase
from ..persistence import repositories
from ..persistence.filesystem import SettingsStore
from ..persistence.store import RecordStore
from .business_time import local_now
from .consolidation import consolidate, load_pipeline_config

logger = logging.getLogger(__name__)

ERP_SUFFIXES = {".xlsx"}
LOGISTICS_SUFFIXES = {".csv"}


class ImportRunError(RuntimeError):
    """The import failed after validation; the message is shown to the operator."""


class ImportInProgressError(RuntimeError):
    """Another import run holds the lock."""


class UnsupportedFileError(ValueError):
    """Upload with an extension the importer cannot read."""


@dataclass(slots=True)
class UploadedFile:
    name: str
    payload: bytes


@dataclass(slots=True)
class ImportStatus:
    level: str
    message: str
    timestamp: datetime


@dataclass(slots=True)
class ImportSummary:
    import_id: str
    kind: str
    erp_rows: int = 0
    logistics_rows: int = 0
    processed: int = 0
    skipped: int = 0
    matched: int = 0
    duplicates: int = 0
    overrides_applied: int = 0
    saved: int = 0
    picking_tracked: int = 0
    file_names: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return asdict(self)


class ImportStatusTracker:
    """Latest import status (info, success or error) shared across requests."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._status: Optional[ImportStatus] = None

    def set(self, level: str, message: str, timestamp: Optional[datetime] = None) -> ImportStatus:
        status = ImportStatus(level=level, message=message, timestamp=timestamp or local_now(settings.timezone))
        with self._lock:
            self._status = status
        return status

    def latest(self) -> Optional[ImportStatus]:
        with self._lock:
            return self._status


status_tracker = ImportStatusTracker()
_run_lock = threading.Lock()


def import_kind(erp_file: Optional[UploadedFile], logistics_file: Optional[UploadedFile]) -> str:
    """Validate the uploads and name the run: both, xlsx or csv."""
    if erp_file is None and logistics_file is None:
        raise ValueError("Select at least one file to import (ERP .xlsx or logistics .csv).")
    if erp_file is not None and Path(erp_file.name).suffix.lower() not in ERP_SUFFIXES:
        raise UnsupportedFileError(f"ERP file must be .xlsx, got '{erp_file.name}'.")
    if logistics_file is not None and Path(logistics_file.name).suffix.lower() not in LOGISTICS_SUFFIXES:
        raise UnsupportedFileError(f"Logistics file must be .csv, got '{logistics_file.name}'.")
    if erp_file is not None and logistics_file is not None:
        return "both"
    return "xlsx" if erp_file is not None else "csv"


def _parse(
    erp_file: Optional[UploadedFile],
    logistics_file: Optional[UploadedFile],
) -> tuple[list[SourceRow], list[SourceRow]]:
    erp_rows = read_erp_workbook(erp_file.payload, settings.erp_sheet_name) if erp_file else []
    logistics_rows = read_logistics_csv(logistics_file.payload) if logistics_file else []
    return erp_rows, logistics_rows


def run_import(
    store: RecordStore,
    settings_store: SettingsStore,
    erp_file: Optional[UploadedFile] = None,
    logistics_file: Optional[UploadedFile] = None,
    *,
    now: Optional[datetime] = None,
    tracker: ImportStatusTracker = status_tracker,
) -> ImportSummary:
    """Replace the consolidated snapshot with one built from the uploaded files.

    Raises ``ValueError`` for invalid uploads, ``ImportInProgressError`` when another
    run is active and ``ImportRunError`` for any failure during the run.
    """
    kind = import_kind(erp_file, logistics_file)
    if not _run_lock.acquire(blocking=False):
        raise ImportInProgressError("An import is already running.")

    file_names = [f.name for f in (erp_file, logistics_file) if f is not None]
    try:
        tracker.set("info", f"Importing {', '.join(file_names)}...")
        logger.info(f"Import started ({kind}): {file_names}")
        try:
            erp_rows, logistics_rows = _parse(erp_file, logistics_file)
            config = load_pipeline_config(store, settings_store, now)

            repositories.clear_import_tables(store)
            import_id = repositories.create_import_record(store, kind, file_names, config.now, config.tz_name)
            repositories.save_raw_rows(store, repositories.RAW_ERP_ROWS, import_id, erp_rows)
            repositories.save_raw_rows(store, repositories.RAW_LOGISTICS_ROWS, import_id, logistics_rows)

            overrides = repositories.load_overrides(store)
            result = consolidate(erp_rows, logistics_rows, config, overrides)
            saved = repositories.save_consolidated_orders(store, result.orders, config.tz_name)

            picking_ids = [order.internal_id for order in result.orders if order.current_phase == Phase.PICKING]
            tracked = repositories.track_daily_picking(store, picking_ids, config.now.date())
        except Exception as exc:
            logger.exception(f"Import failed: {exc}")
            tracker.set("error", f"Import failed: {exc}")
            raise ImportRunError(str(exc)) from exc

        summary = ImportSummary(
            import_id=import_id,
            kind=kind,
            erp_rows=len(erp_rows),
            logistics_rows=len(logistics_rows),
            processed=result.processed,
            skipped=result.skipped,
            matched=result.matched,
            duplicates=result.duplicates,
            overrides_applied=result.overrides_applied,
            saved=saved,
            picking_tracked=tracked,
            file_names=file_names,
        )
        tracker.set("success", f"Import finished: {saved} orders consolidated ({result.skipped} rows skipped).")
        logger.info(f"Import finished: {summary.to_dict()}")
        return summary
    finally:
        _run_lock.release()
