"""Order list, kanban and per-order override endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Path, Query, status

from ...models.domain import Phase
from ...persistence.store import RecordStore
from ...schemas.orders import KanbanResponse, OrdersResponse, OverrideModel, ReturnRequest
from ...services.consolidation import PipelineConfig
from ...services.views import OverrideNotFoundError, clear_override, kanban_board, list_orders, mark_returned
from ..dependencies import get_pipeline_config, get_route_sheet, get_store

router = APIRouter(prefix="/orders", tags=["orders"])


def _parse_phase(value: str | None) -> Phase | None:
    if not value:
        return None
    phase = Phase.parse(value)
    if phase is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"Unknown phase '{value}'.")
    return phase


@router.get("", response_model=OrdersResponse)
def get_orders(
    search: str | None = Query(default=None, description="Match on internal id, external id or customer name"),
    phase: str | None = Query(default=None, description="Phase filter (e.g. Picking, InTransit)"),
    route: str | None = Query(default=None, description="Resolved route label"),
    driver: str | None = Query(default=None, description="Driver, or carrier when no driver is set"),
    missing_delivery_date: bool = Query(default=False, description="Only delivered orders without a delivery date"),
    store: RecordStore = Depends(get_store),
    config: PipelineConfig = Depends(get_pipeline_config),
    sheet: dict[str, str] = Depends(get_route_sheet),
) -> OrdersResponse:
    result = list_orders(
        store,
        config,
        sheet,
        search=search,
        phase=_parse_phase(phase),
        route=route,
        driver=driver,
        missing_delivery_date=missing_delivery_date,
    )
    return OrdersResponse.model_validate(result)


@router.get("/kanban", response_model=KanbanResponse)
def get_kanban(
    search: str | None = Query(default=None),
    route: str | None = Query(default=None),
    store: RecordStore = Depends(get_store),
    config: PipelineConfig = Depends(get_pipeline_config),
    sheet: dict[str, str] = Depends(get_route_sheet),
) -> KanbanResponse:
    return KanbanResponse.model_validate(kanban_board(store, config, sheet, search=search, route=route))


@router.post("/{internal_id}/return", response_model=OverrideModel, status_code=status.HTTP_201_CREATED)
def send_to_returns(
    payload: ReturnRequest,
    internal_id: str = Path(..., description="Order internal id"),
    store: RecordStore = Depends(get_store),
) -> OverrideModel:
    try:
        override = mark_returned(store, internal_id, payload.reason)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    return OverrideModel(
        internal_id=override.internal_id,
        phase=override.phase.value,
        reason=override.reason,
        resolution=override.resolution,
    )


@router.delete("/{internal_id}/override", status_code=status.HTTP_204_NO_CONTENT)
def remove_override(
    internal_id: str = Path(..., description="Order internal id"),
    store: RecordStore = Depends(get_store),
) -> None:
    try:
        clear_override(store, internal_id)
    except OverrideNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
