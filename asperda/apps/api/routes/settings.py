from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel

from asperda.apps.api.deps import get_profile, get_store
from asperda.domain.enums import Action, ResourceKind
from asperda.domain.state import CallerProfile
from asperda.persistence.store import RecordStore
from asperda.services.app_settings import AppSettings, load_app_settings, save_app_settings
from asperda.services.authz.policy import authorize
from asperda.services.pricing import apply_markup


router = APIRouter(prefix="/settings", tags=["settings"])


class MarkupQuoteResponse(BaseModel):
    base_price: int
    agent_price: int
    customer_price: int


@router.get("", response_model=AppSettings)
async def get_app_settings(
    profile: CallerProfile = Depends(get_profile),
    store: RecordStore = Depends(get_store),
) -> AppSettings:
    scope = authorize(profile, ResourceKind.APP_SETTINGS, Action.READ)
    return await load_app_settings(store, scope.value)


@router.put("", response_model=AppSettings)
async def put_app_settings(
    payload: AppSettings,
    profile: CallerProfile = Depends(get_profile),
    store: RecordStore = Depends(get_store),
) -> AppSettings:
    scope = authorize(profile, ResourceKind.APP_SETTINGS, Action.WRITE)
    await save_app_settings(store, scope.value, payload)
    return payload


@router.get("/markup-quote", response_model=MarkupQuoteResponse)
async def markup_quote(
    amount: int = Query(..., ge=0),
    profile: CallerProfile = Depends(get_profile),
    store: RecordStore = Depends(get_store),
) -> MarkupQuoteResponse:
    # Agent and customer prices derive from the company's configured markups.
    scope = authorize(profile, ResourceKind.APP_SETTINGS, Action.READ)
    settings = await load_app_settings(store, scope.value)
    return MarkupQuoteResponse(
        base_price=amount,
        agent_price=apply_markup(amount, settings.agent_markup_value, settings.agent_markup_type),
        customer_price=apply_markup(amount, settings.customer_markup_value, settings.customer_markup_type),
    )
