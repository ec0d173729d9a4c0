from __future__ import annotations

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from asperda.apps.api.deps import get_bearer_token, get_profile, get_store
from asperda.apps.api.routes.admin import CompanyResponse, company_response
from asperda.domain.state import CallerProfile
from asperda.persistence.store import RecordStore
from asperda.services import account as account_service


router = APIRouter(prefix="/account", tags=["account"])


class CompanyUpdateRequest(BaseModel):
    name: str | None = None
    owner_name: str | None = None
    phone: str | None = None
    address: str | None = None
    logo_url: str | None = None

    # Region, membership and verification are reviewer-owned and rejected here.
    model_config = {"extra": "forbid"}


class ProfileUpdateRequest(BaseModel):
    full_name: str

    model_config = {"extra": "forbid"}


class PasswordChangeRequest(BaseModel):
    current_password: str
    new_password: str


class PasswordChangeResponse(BaseModel):
    sessions_revoked: int


@router.get("/company", response_model=CompanyResponse)
async def get_own_company(
    profile: CallerProfile = Depends(get_profile),
    store: RecordStore = Depends(get_store),
) -> CompanyResponse:
    details = await account_service.get_company(store, profile)
    return company_response(details.company, details.region)


@router.get("/company/{company_id}", response_model=CompanyResponse)
async def get_company(
    company_id: str,
    profile: CallerProfile = Depends(get_profile),
    store: RecordStore = Depends(get_store),
) -> CompanyResponse:
    details = await account_service.get_company(store, profile, company_id)
    return company_response(details.company, details.region)


@router.patch("/company", response_model=CompanyResponse)
async def update_own_company(
    payload: CompanyUpdateRequest,
    profile: CallerProfile = Depends(get_profile),
    store: RecordStore = Depends(get_store),
) -> CompanyResponse:
    details = await account_service.update_company(store, profile, **payload.model_dump(exclude_unset=True))
    return company_response(details.company, details.region)


@router.patch("/profile")
async def update_own_profile(
    payload: ProfileUpdateRequest,
    profile: CallerProfile = Depends(get_profile),
    store: RecordStore = Depends(get_store),
) -> dict[str, str]:
    full_name = await account_service.update_profile(store, profile, full_name=payload.full_name)
    return {"id": profile.id, "full_name": full_name}


@router.post("/password", response_model=PasswordChangeResponse)
async def change_password(
    payload: PasswordChangeRequest,
    token: str | None = Depends(get_bearer_token),
    profile: CallerProfile = Depends(get_profile),
    store: RecordStore = Depends(get_store),
) -> PasswordChangeResponse:
    revoked = await account_service.change_password(
        store,
        profile,
        current_password=payload.current_password,
        new_password=payload.new_password,
        keep_token=token,
    )
    return PasswordChangeResponse(sessions_revoked=revoked)
