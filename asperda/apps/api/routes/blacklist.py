from __future__ import annotations

from datetime import datetime

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile
from pydantic import BaseModel, ConfigDict

from asperda.apps.api.deps import get_profile, get_storage, get_store
from asperda.apps.api.routes.admin import BlacklistReportResponse
from asperda.apps.api.uploads import read_upload
from asperda.domain.state import CallerProfile
from asperda.persistence.store import RecordStore
from asperda.services import blacklist as blacklist_service
from asperda.services.storage import FileStorage


router = APIRouter(prefix="/blacklist", tags=["blacklist"])


class GlobalBlacklistResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    full_name: str
    nik: str
    phone: str
    reason: str
    evidence_url: str | None
    reported_by_company_id: str | None
    created_at: datetime | None


@router.get("", response_model=list[GlobalBlacklistResponse])
async def search_blacklist(
    q: str | None = Query(default=None, max_length=128),
    profile: CallerProfile = Depends(get_profile),
    store: RecordStore = Depends(get_store),
) -> list[GlobalBlacklistResponse]:
    rows = await blacklist_service.search_global_blacklist(store, profile, q)
    return [GlobalBlacklistResponse.model_validate(row) for row in rows]


@router.post("/reports", response_model=BlacklistReportResponse, status_code=201)
async def submit_report(
    target_name: str = Form(...),
    target_nik: str = Form(...),
    reason: str = Form(...),
    target_phone: str = Form(default=""),
    evidence: UploadFile | None = File(default=None),
    profile: CallerProfile = Depends(get_profile),
    store: RecordStore = Depends(get_store),
    storage: FileStorage = Depends(get_storage),
) -> BlacklistReportResponse:
    report = await blacklist_service.submit_report(
        store,
        profile,
        target_name=target_name,
        target_nik=target_nik,
        reason=reason,
        target_phone=target_phone,
        evidence=await read_upload(evidence),
        storage=storage,
    )
    return BlacklistReportResponse.model_validate(report)
