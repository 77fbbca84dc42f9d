"""Request-scoped collaborators shared by the routers."""

from __future__ import annotations

from fastapi import Depends

from ..data.route_sheet import fetch_route_sheet
from ..persistence.filesystem import SettingsStore
from ..persistence.store import RecordStore, get_record_store
from ..services.consolidation import PipelineConfig, load_pipeline_config


def get_store() -> RecordStore:
    return get_record_store()


def get_settings_store() -> SettingsStore:
    return SettingsStore()


def get_route_sheet() -> dict[str, str]:
    return fetch_route_sheet()


def get_pipeline_config(
    store: RecordStore = Depends(get_store),
    settings_store: SettingsStore = Depends(get_settings_store),
) -> PipelineConfig:
    return load_pipeline_config(store, settings_store)
