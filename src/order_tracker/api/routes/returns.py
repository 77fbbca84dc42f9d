"""Returns endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Path, Query, status

from ...persistence.store import RecordStore
from ...schemas.orders import OverrideModel, ResolutionRequest, ReturnsResponse
from ...services.consolidation import PipelineConfig
from ...services.views import OverrideNotFoundError, list_returns, set_resolution
from ..dependencies import get_pipeline_config, get_route_sheet, get_store

router = APIRouter(prefix="/returns", tags=["returns"])


@router.get("", response_model=ReturnsResponse)
def get_returns(
    search: str | None = Query(default=None),
    store: RecordStore = Depends(get_store),
    config: PipelineConfig = Depends(get_pipeline_config),
    sheet: dict[str, str] = Depends(get_route_sheet),
) -> ReturnsResponse:
    return ReturnsResponse.model_validate(list_returns(store, config, sheet, search))


@router.patch("/{internal_id}", response_model=OverrideModel)
def update_resolution(
    payload: ResolutionRequest,
    internal_id: str = Path(..., description="Order internal id"),
    store: RecordStore = Depends(get_store),
) -> OverrideModel:
    try:
        override = set_resolution(store, internal_id, payload.resolution)
    except OverrideNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    return OverrideModel(
        internal_id=override.internal_id,
        phase=override.phase.value,
        reason=override.reason,
        resolution=override.resolution,
    )
