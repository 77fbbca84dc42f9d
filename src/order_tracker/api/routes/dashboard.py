"""Dashboard and production endpoints."""

from __future__ import annotations

from datetime import date

from fastapi import APIRouter, Depends, Query

from ...persistence.store import RecordStore
from ...schemas.dashboard import DashboardResponse, ProductionResponse
from ...services.consolidation import PipelineConfig
from ...services.views import dashboard_stats, production_summary
from ..dependencies import get_pipeline_config, get_route_sheet, get_store

router = APIRouter(tags=["dashboard"])


@router.get("/dashboard", response_model=DashboardResponse)
def get_dashboard(
    store: RecordStore = Depends(get_store),
    config: PipelineConfig = Depends(get_pipeline_config),
    sheet: dict[str, str] = Depends(get_route_sheet),
) -> DashboardResponse:
    return DashboardResponse.model_validate(dashboard_stats(store, config, sheet))


@router.get("/production", response_model=ProductionResponse)
def get_production(
    day: date | None = Query(default=None, description="Reference day (defaults to today)"),
    store: RecordStore = Depends(get_store),
    config: PipelineConfig = Depends(get_pipeline_config),
) -> ProductionResponse:
    return ProductionResponse.model_validate(production_summary(store, config, day))
