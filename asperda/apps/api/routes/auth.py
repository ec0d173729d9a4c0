from __future__ import annotations

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from asperda.apps.api.deps import get_bearer_token, get_profile, get_store
from asperda.domain.state import CallerProfile
from asperda.persistence.store import RecordStore
from asperda.services import regions as regions_service
from asperda.services.auth import sessions as auth_service


router = APIRouter(prefix="/auth", tags=["auth"])


class LoginRequest(BaseModel):
    email: str
    password: str


class ProfileResponse(BaseModel):
    id: str
    email: str
    full_name: str
    role: str
    company_id: str | None
    company_dpc_id: str | None


class LoginResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    profile: ProfileResponse


class RegisterRequest(BaseModel):
    email: str
    password: str = Field(min_length=1)
    full_name: str
    company_name: str
    phone: str
    address: str = ""
    dpc_id: str

    model_config = {"extra": "forbid"}


class RegionResponse(BaseModel):
    id: str
    name: str
    province: str


def _profile_response(profile: CallerProfile) -> ProfileResponse:
    return ProfileResponse(
        id=profile.id,
        email=profile.email,
        full_name=profile.full_name,
        role=profile.role.value,
        company_id=profile.company_id,
        company_dpc_id=profile.company_dpc_id,
    )


def _registration(payload: RegisterRequest) -> auth_service.Registration:
    return auth_service.Registration(**payload.model_dump())


@router.post("/login", response_model=LoginResponse)
async def login(payload: LoginRequest, store: RecordStore = Depends(get_store)) -> LoginResponse:
    result = await auth_service.login(store, payload.email, payload.password)
    return LoginResponse(access_token=result.token, profile=_profile_response(result.profile))


@router.post("/logout", status_code=204)
async def logout(
    token: str | None = Depends(get_bearer_token),
    store: RecordStore = Depends(get_store),
) -> None:
    await auth_service.logout(store, token)


@router.get("/me", response_model=ProfileResponse)
async def me(profile: CallerProfile = Depends(get_profile)) -> ProfileResponse:
    return _profile_response(profile)


@router.post("/register/owner", response_model=ProfileResponse, status_code=201)
async def register_owner(payload: RegisterRequest, store: RecordStore = Depends(get_store)) -> ProfileResponse:
    profile = await auth_service.register_owner(store, _registration(payload))
    return _profile_response(profile)


@router.post("/register/partner", response_model=ProfileResponse, status_code=201)
async def register_partner(payload: RegisterRequest, store: RecordStore = Depends(get_store)) -> ProfileResponse:
    profile = await auth_service.register_partner(store, _registration(payload))
    return _profile_response(profile)


@router.get("/regions", response_model=list[RegionResponse])
async def list_regions(store: RecordStore = Depends(get_store)) -> list[RegionResponse]:
    # Public: the registration form needs regions before any session exists.
    return [RegionResponse(**region) for region in await regions_service.list_regions(store)]
