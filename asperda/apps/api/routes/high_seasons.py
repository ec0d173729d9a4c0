from __future__ import annotations

from datetime import date

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, ConfigDict, Field

from asperda.apps.api.deps import get_profile, get_store
from asperda.domain.state import CallerProfile
from asperda.persistence.store import RecordStore
from asperda.services import high_seasons as high_seasons_service
from asperda.services.pricing import high_season_surcharge


router = APIRouter(prefix="/high-seasons", tags=["high-seasons"])


class HighSeasonRequest(BaseModel):
    name: str
    start_date: date
    end_date: date
    price_increase: int = Field(ge=0)

    model_config = {"extra": "forbid"}


class HighSeasonResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    start_date: date
    end_date: date
    price_increase: int


class SurchargeResponse(BaseModel):
    amount: int
    season_names: list[str]


@router.get("", response_model=list[HighSeasonResponse])
async def list_high_seasons(
    profile: CallerProfile = Depends(get_profile),
    store: RecordStore = Depends(get_store),
) -> list[HighSeasonResponse]:
    rows = await high_seasons_service.list_high_seasons(store, profile)
    return [HighSeasonResponse.model_validate(row) for row in rows]


@router.post("", response_model=HighSeasonResponse, status_code=201)
async def create_high_season(
    payload: HighSeasonRequest,
    profile: CallerProfile = Depends(get_profile),
    store: RecordStore = Depends(get_store),
) -> HighSeasonResponse:
    season = await high_seasons_service.create_high_season(store, profile, **payload.model_dump())
    return HighSeasonResponse.model_validate(season)


@router.delete("/{season_id}", status_code=204)
async def delete_high_season(
    season_id: str,
    profile: CallerProfile = Depends(get_profile),
    store: RecordStore = Depends(get_store),
) -> None:
    await high_seasons_service.delete_high_season(store, profile, season_id)


@router.get("/surcharge", response_model=SurchargeResponse)
async def surcharge(
    start: date = Query(...),
    days: int = Query(..., ge=1, le=366),
    profile: CallerProfile = Depends(get_profile),
    store: RecordStore = Depends(get_store),
) -> SurchargeResponse:
    seasons = await high_seasons_service.list_high_seasons(store, profile)
    result = high_season_surcharge(seasons, start, days)
    return SurchargeResponse(amount=result.amount, season_names=result.season_names)
