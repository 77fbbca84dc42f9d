"""Route cost reports."""

from __future__ import annotations

import calendar
from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Query, status

from ...persistence.store import RecordStore
from ...schemas.costs import RouteCostReport
from ...services.consolidation import PipelineConfig
from ...services.views import delivered_route_costs, route_table_costs
from ..dependencies import get_pipeline_config, get_route_sheet, get_store

router = APIRouter(prefix="/costs", tags=["costs"])


def _range(start: date | None, end: date | None, today: date) -> tuple[date, date]:
    """Missing bounds default to the current month."""
    first = start or today.replace(day=1)
    last = end or today.replace(day=calendar.monthrange(today.year, today.month)[1])
    return first, last


@router.get("/routes", response_model=RouteCostReport)
def get_route_table_costs(
    start: date | None = Query(default=None, description="First import day (inclusive)"),
    end: date | None = Query(default=None, description="Last import day (inclusive)"),
    store: RecordStore = Depends(get_store),
    config: PipelineConfig = Depends(get_pipeline_config),
) -> RouteCostReport:
    first, last = _range(start, end, config.now.date())
    try:
        return RouteCostReport.model_validate(route_table_costs(store, config, first, last))
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc


@router.get("/delivered", response_model=RouteCostReport)
def get_delivered_costs(
    start: date | None = Query(default=None, description="First delivery day (inclusive)"),
    end: date | None = Query(default=None, description="Last delivery day (inclusive)"),
    store: RecordStore = Depends(get_store),
    config: PipelineConfig = Depends(get_pipeline_config),
    sheet: dict[str, str] = Depends(get_route_sheet),
) -> RouteCostReport:
    first, last = _range(start, end, config.now.date())
    try:
        return RouteCostReport.model_validate(delivered_route_costs(store, config, sheet, first, last))
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
