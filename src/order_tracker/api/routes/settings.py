"""Settings endpoints: SLA thresholds, holidays and route costs."""

from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, HTTPException, Path, status

from ...data.holidays_api import fetch_public_holidays
from ...data.route_sheet import route_labels
from ...models.domain import Holiday, RouteCost, SlaThresholds
from ...persistence import repositories
from ...persistence.filesystem import SettingsStore
from ...persistence.store import RecordStore
from ...schemas.costs import RouteCostModel
from ...schemas.settings import HolidayCreate, HolidayImportResult, HolidayModel, SlaSettingsModel
from ...services.business_time import local_now
from ...config import settings
from ..dependencies import get_route_sheet, get_settings_store, get_store

router = APIRouter(prefix="/settings", tags=["settings"])


@router.get("/sla", response_model=SlaSettingsModel)
def get_sla_settings(settings_store: SettingsStore = Depends(get_settings_store)) -> SlaSettingsModel:
    return SlaSettingsModel(**settings_store.load_thresholds().to_dict())


@router.put("/sla", response_model=SlaSettingsModel)
def put_sla_settings(
    payload: SlaSettingsModel,
    settings_store: SettingsStore = Depends(get_settings_store),
) -> SlaSettingsModel:
    saved = settings_store.save_thresholds(SlaThresholds(**payload.model_dump()))
    return SlaSettingsModel(**saved.to_dict())


@router.get("/holidays", response_model=List[HolidayModel])
def list_holidays(store: RecordStore = Depends(get_store)) -> List[HolidayModel]:
    return [
        HolidayModel(id=holiday.id, day=holiday.day, description=holiday.description)
        for holiday in repositories.load_holidays(store)
    ]


@router.post("/holidays", response_model=List[HolidayModel], status_code=status.HTTP_201_CREATED)
def add_holiday(payload: HolidayCreate, store: RecordStore = Depends(get_store)) -> List[HolidayModel]:
    repositories.add_holidays(store, [Holiday(day=payload.day, description=payload.description)])
    return list_holidays(store)


@router.delete("/holidays/{holiday_id}", status_code=status.HTTP_204_NO_CONTENT)
def remove_holiday(
    holiday_id: str = Path(..., description="Holiday record id"),
    store: RecordStore = Depends(get_store),
) -> None:
    repositories.delete_holiday(store, int(holiday_id) if holiday_id.isdigit() else holiday_id)


@router.post("/holidays/import/{year}", response_model=HolidayImportResult)
def import_public_holidays(
    year: int = Path(..., ge=1900, le=2100),
    store: RecordStore = Depends(get_store),
) -> HolidayImportResult:
    holidays = fetch_public_holidays(year)
    if not holidays:
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=f"No public holidays returned for {settings.holidays_country_code} {year}.",
        )
    saved = repositories.add_holidays(store, holidays)
    return HolidayImportResult(year=year, fetched=len(holidays), saved=saved)


@router.get("/route-costs", response_model=List[RouteCostModel])
def get_route_costs(store: RecordStore = Depends(get_store)) -> List[RouteCostModel]:
    costs = sorted(repositories.load_route_costs(store), key=lambda cost: cost.route)
    return [RouteCostModel(route=cost.route, cost=cost.cost) for cost in costs]


@router.put("/route-costs", response_model=List[RouteCostModel])
def put_route_costs(payload: List[RouteCostModel], store: RecordStore = Depends(get_store)) -> List[RouteCostModel]:
    costs = [RouteCost(route=item.route.strip(), cost=item.cost) for item in payload]
    repositories.save_route_costs(store, costs, local_now(settings.timezone), settings.timezone)
    return get_route_costs(store)


@router.get("/routes", response_model=List[str])
def list_routes(sheet: dict[str, str] = Depends(get_route_sheet)) -> List[str]:
    return route_labels(sheet)
