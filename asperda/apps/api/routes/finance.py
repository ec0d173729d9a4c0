from __future__ import annotations

from datetime import date, datetime

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile
from pydantic import BaseModel, ConfigDict

from asperda.apps.api.deps import get_profile, get_storage, get_store
from asperda.apps.api.uploads import read_upload
from asperda.domain.enums import FinanceStatus, FinanceType
from asperda.domain.state import CallerProfile
from asperda.persistence.store import RecordStore
from asperda.services import finance as finance_service
from asperda.services.storage import FileStorage


router = APIRouter(prefix="/finance", tags=["finance"])


class FinanceRecordResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    company_id: str
    transaction_date: date
    type: str
    category: str
    amount: int
    description: str | None
    proof_image_url: str | None
    status: str
    created_at: datetime | None


class FinanceSummaryResponse(BaseModel):
    total_income: int
    total_expense: int
    balance: int


@router.get("/records", response_model=list[FinanceRecordResponse])
async def list_records(
    month: int | None = Query(default=None, ge=1, le=12),
    year: int | None = Query(default=None, ge=2000, le=2100),
    profile: CallerProfile = Depends(get_profile),
    store: RecordStore = Depends(get_store),
) -> list[FinanceRecordResponse]:
    rows = await finance_service.list_records(store, profile, month=month, year=year)
    return [FinanceRecordResponse.model_validate(row) for row in rows]


@router.post("/records", response_model=FinanceRecordResponse, status_code=201)
async def add_record(
    transaction_date: date = Form(...),
    type: FinanceType = Form(...),
    category: str = Form(...),
    amount: int = Form(...),
    description: str | None = Form(default=None),
    status: FinanceStatus = Form(default=FinanceStatus.PAID),
    proof: UploadFile | None = File(default=None),
    profile: CallerProfile = Depends(get_profile),
    store: RecordStore = Depends(get_store),
    storage: FileStorage = Depends(get_storage),
) -> FinanceRecordResponse:
    # company_id is never accepted from the form; it comes from the caller's profile.
    entry = finance_service.FinanceEntry(
        transaction_date=transaction_date,
        type=type,
        category=category,
        amount=amount,
        description=description,
        status=status,
    )
    record = await finance_service.add_record(
        store, profile, entry, proof=await read_upload(proof), storage=storage
    )
    return FinanceRecordResponse.model_validate(record)


@router.delete("/records/{record_id}", status_code=204)
async def delete_record(
    record_id: str,
    profile: CallerProfile = Depends(get_profile),
    store: RecordStore = Depends(get_store),
) -> None:
    await finance_service.delete_record(store, profile, record_id)


@router.get("/summary", response_model=FinanceSummaryResponse)
async def summary(
    profile: CallerProfile = Depends(get_profile),
    store: RecordStore = Depends(get_store),
) -> FinanceSummaryResponse:
    result = await finance_service.get_summary(store, profile)
    return FinanceSummaryResponse(
        total_income=result.total_income,
        total_expense=result.total_expense,
        balance=result.balance,
    )
