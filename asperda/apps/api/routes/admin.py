from __future__ import annotations

from datetime import datetime

from fastapi import APIRouter, Depends
from pydantic import BaseModel, ConfigDict

from asperda.apps.api.deps import get_profile, get_store
from asperda.domain.enums import MembershipStatus, VerificationStatus
from asperda.domain.models import Company, DpcRegion
from asperda.domain.state import CallerProfile
from asperda.persistence.store import RecordStore
from asperda.services import members as members_service
from asperda.services import regions as regions_service
from asperda.services.blacklist import BlacklistApprovalWorkflow, list_pending_reports


router = APIRouter(prefix="/admin", tags=["admin"])


class RegionSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    name: str
    province: str


class CompanyResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    owner_name: str
    phone: str
    address: str
    dpc_id: str
    logo_url: str | None
    membership_status: str
    verification_status: str
    kpi_response_time_minutes: float | None
    kpi_cancellation_rate: float | None
    kpi_order_success_ratio: float | None
    kpi_rating: float | None
    created_at: datetime | None
    dpc_region: RegionSummary | None = None


def company_response(company: Company, region: DpcRegion | None) -> CompanyResponse:
    response = CompanyResponse.model_validate(company)
    if region is not None:
        response.dpc_region = RegionSummary.model_validate(region)
    return response


async def _company_responses(store: RecordStore, rows: list[Company]) -> list[CompanyResponse]:
    # Attach region name and province the way reviewers see members on screen.
    regions = await regions_service.regions_by_id(store, (row.dpc_id for row in rows))
    return [company_response(row, regions.get(row.dpc_id)) for row in rows]


class MemberStatusRequest(BaseModel):
    status: MembershipStatus


class MemberComplianceRequest(BaseModel):
    verification_status: VerificationStatus

    # Only the verification flag may change through this endpoint.
    model_config = {"extra": "forbid"}


class BlacklistReportResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    reported_by_company_id: str
    target_name: str
    target_nik: str
    target_phone: str
    reason: str
    evidence_url: str | None
    status: str
    created_at: datetime | None


class ReportDecisionResponse(BaseModel):
    report_id: str
    status: str
    global_entry_id: str | None = None


class RegionCreateRequest(BaseModel):
    name: str
    province: str


class RegionResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    province: str


@router.get("/members/pending", response_model=list[CompanyResponse])
async def pending_members(
    profile: CallerProfile = Depends(get_profile),
    store: RecordStore = Depends(get_store),
) -> list[CompanyResponse]:
    rows = await members_service.list_pending_members(store, profile)
    return await _company_responses(store, rows)


@router.get("/members/active", response_model=list[CompanyResponse])
async def active_members(
    profile: CallerProfile = Depends(get_profile),
    store: RecordStore = Depends(get_store),
) -> list[CompanyResponse]:
    rows = await members_service.list_active_members(store, profile)
    return await _company_responses(store, rows)


@router.post("/members/{company_id}/status")
async def set_member_status(
    company_id: str,
    payload: MemberStatusRequest,
    profile: CallerProfile = Depends(get_profile),
    store: RecordStore = Depends(get_store),
) -> dict[str, str]:
    status = await members_service.update_member_status(store, profile, company_id, payload.status)
    return {"company_id": company_id, "membership_status": status.value}


@router.post("/members/{company_id}/compliance")
async def set_member_compliance(
    company_id: str,
    payload: MemberComplianceRequest,
    profile: CallerProfile = Depends(get_profile),
    store: RecordStore = Depends(get_store),
) -> dict[str, str]:
    status = await members_service.update_member_compliance(
        store, profile, company_id, payload.verification_status
    )
    return {"company_id": company_id, "verification_status": status.value}


@router.get("/blacklist-reports", response_model=list[BlacklistReportResponse])
async def pending_reports(
    profile: CallerProfile = Depends(get_profile),
    store: RecordStore = Depends(get_store),
) -> list[BlacklistReportResponse]:
    rows = await list_pending_reports(store, profile)
    return [BlacklistReportResponse.model_validate(row) for row in rows]


@router.post("/blacklist-reports/{report_id}/approve", response_model=ReportDecisionResponse)
async def approve_report(
    report_id: str,
    profile: CallerProfile = Depends(get_profile),
    store: RecordStore = Depends(get_store),
) -> ReportDecisionResponse:
    outcome = await BlacklistApprovalWorkflow(store).approve(profile, report_id)
    return ReportDecisionResponse(
        report_id=outcome.report_id,
        status=outcome.status.value,
        global_entry_id=outcome.global_entry_id,
    )


@router.post("/blacklist-reports/{report_id}/reject", response_model=ReportDecisionResponse)
async def reject_report(
    report_id: str,
    profile: CallerProfile = Depends(get_profile),
    store: RecordStore = Depends(get_store),
) -> ReportDecisionResponse:
    status = await BlacklistApprovalWorkflow(store).reject(profile, report_id)
    return ReportDecisionResponse(report_id=report_id, status=status.value)


@router.post("/regions", response_model=RegionResponse, status_code=201)
async def create_region(
    payload: RegionCreateRequest,
    profile: CallerProfile = Depends(get_profile),
    store: RecordStore = Depends(get_store),
) -> RegionResponse:
    region = await regions_service.create_region(store, profile, payload.name, payload.province)
    return RegionResponse.model_validate(region)


@router.delete("/regions/{region_id}", status_code=204)
async def delete_region(
    region_id: str,
    profile: CallerProfile = Depends(get_profile),
    store: RecordStore = Depends(get_store),
) -> None:
    await regions_service.delete_region(store, profile, region_id)
