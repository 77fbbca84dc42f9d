"""Import endpoints: upload ERP/logistics exports and poll the latest status."""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile, status
from fastapi.concurrency import run_in_threadpool

from ...persistence.filesystem import SettingsStore
from ...persistence.store import RecordStore
from ...schemas.imports import ImportStatusModel, ImportSummaryModel
from ...services.imports import (
    ImportInProgressError,
    ImportRunError,
    UnsupportedFileError,
    UploadedFile,
    run_import,
    status_tracker,
)
from ..dependencies import get_settings_store, get_store

router = APIRouter(prefix="/imports", tags=["imports"])


async def _read_upload(upload: Optional[UploadFile]) -> Optional[UploadedFile]:
    if upload is None or not upload.filename:
        return None
    return UploadedFile(name=upload.filename, payload=await upload.read())


@router.post("", response_model=ImportSummaryModel, status_code=status.HTTP_201_CREATED)
async def create_import(
    erp_file: UploadFile | None = File(default=None, description="ERP order export (.xlsx)"),
    logistics_file: UploadFile | None = File(default=None, description="Carrier export (.csv)"),
    store: RecordStore = Depends(get_store),
    settings_store: SettingsStore = Depends(get_settings_store),
) -> ImportSummaryModel:
    """Rebuild the consolidated orders from the uploaded files.

    The run is blocking and executes in the worker threadpool.
    """
    erp = await _read_upload(erp_file)
    logistics = await _read_upload(logistics_file)
    try:
        summary = await run_in_threadpool(run_import, store, settings_store, erp, logistics)
    except UnsupportedFileError as exc:
        raise HTTPException(status_code=status.HTTP_415_UNSUPPORTED_MEDIA_TYPE, detail=str(exc)) from exc
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except ImportInProgressError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    except ImportRunError as exc:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc)) from exc
    return ImportSummaryModel(**summary.to_dict())


@router.get("/status", response_model=ImportStatusModel | None)
def get_import_status() -> ImportStatusModel | None:
    latest = status_tracker.latest()
    if latest is None:
        return None
    return ImportStatusModel(level=latest.level, message=latest.message, timestamp=latest.timestamp)
