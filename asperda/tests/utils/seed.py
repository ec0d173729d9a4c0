from __future__ import annotations

from datetime import datetime
from uuid import uuid4

from asperda.domain.enums import ReportStatus, UserRole
from asperda.domain.models import BlacklistReport, Company, DpcRegion, Profile
from asperda.domain.state import CallerProfile
from asperda.persistence.store import RecordStore
from asperda.services.auth.passwords import hash_password


DEFAULT_PASSWORD = "rahasia123"


async def create_region(store: RecordStore, *, name: str = "Malang Raya", province: str = "Jawa Timur") -> str:
    region = await store.insert(DpcRegion(id=uuid4().hex, name=name, province=province))
    return region.id


async def create_company(
    store: RecordStore,
    *,
    dpc_id: str,
    name: str = "Rental Sejahtera",
    membership_status: str = "pending",
    created_at: datetime | None = None,
) -> str:
    company = Company(
        id=uuid4().hex,
        name=name,
        owner_name="Pak Owner",
        phone="08123456789",
        address="Jl. Ijen 1",
        dpc_id=dpc_id,
        membership_status=membership_status,
    )
    if created_at is not None:
        company.created_at = created_at
    await store.insert(company)
    return company.id


async def create_profile(
    store: RecordStore,
    *,
    role: UserRole,
    company_id: str | None = None,
    email: str | None = None,
    password: str = DEFAULT_PASSWORD,
) -> str:
    profile = await store.insert(
        Profile(
            id=uuid4().hex,
            email=email or f"{uuid4().hex[:10]}@asperda.test",
            full_name=f"Test {role.value}",
            role=role.value,
            company_id=company_id,
            password_hash=hash_password(password),
        )
    )
    return profile.id


async def create_report(
    store: RecordStore,
    *,
    company_id: str,
    target_name: str = "Budi",
    target_nik: str = "3573010101900001",
    status: ReportStatus = ReportStatus.PENDING,
    report_id: str | None = None,
) -> str:
    report = await store.insert(
        BlacklistReport(
            id=report_id or uuid4().hex,
            reported_by_company_id=company_id,
            target_name=target_name,
            target_nik=target_nik,
            target_phone="0811111111",
            reason="Mobil tidak dikembalikan",
            evidence_url=None,
            status=status.value,
        )
    )
    return report.id


def caller(
    role: UserRole,
    *,
    company_id: str | None = None,
    dpc_id: str | None = None,
    profile_id: str | None = None,
) -> CallerProfile:
    # Build a resolved caller without a session round trip.
    return CallerProfile(
        id=profile_id or uuid4().hex,
        email=f"{role.value}@asperda.test",
        full_name=f"Test {role.value}",
        role=role,
        company_id=company_id,
        company_dpc_id=dpc_id,
    )
