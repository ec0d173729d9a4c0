from __future__ import annotations

from dataclasses import dataclass
import logging
from typing import Any

from asperda.core.errors import AccessDenied, NotFound, ValidationError
from asperda.domain.enums import Action, ResourceKind
from asperda.domain.models import AuthSession, Company, DpcRegion, Profile
from asperda.domain.state import CallerProfile
from asperda.persistence.store import RecordStore
from asperda.services.auth.passwords import hash_password, hash_token, verify_password
from asperda.services.auth.profiles import utc_now
from asperda.services.auth.sessions import validate_password
from asperda.services.authz.policy import authorize


logger = logging.getLogger(__name__)

# Tenant-editable company fields; dpc_id, statuses and KPIs belong to reviewers.
EDITABLE_COMPANY_FIELDS = frozenset({"name", "owner_name", "phone", "address", "logo_url"})
_REQUIRED_COMPANY_FIELDS = frozenset({"name", "owner_name", "phone"})


@dataclass(frozen=True)
class CompanyDetails:
    company: Company
    region: DpcRegion | None


async def get_company(
    store: RecordStore,
    profile: CallerProfile,
    company_id: str | None = None,
) -> CompanyDetails:
    # Defaults to the caller's own company; other ids must fall inside the caller's scope.
    scope = authorize(profile, ResourceKind.COMPANY_PROFILE, Action.READ)
    target_id = company_id or profile.company_id
    if not target_id:
        raise AccessDenied("Account is not linked to a rental company")
    company = await store.get(Company, target_id, scope.clause(Company))
    if company is None:
        raise NotFound("Company not found", company_id=target_id)
    region = await store.get(DpcRegion, company.dpc_id)
    return CompanyDetails(company=company, region=region)


def _clean_company_changes(changes: dict[str, Any]) -> dict[str, Any]:
    unknown = sorted(set(changes) - EDITABLE_COMPANY_FIELDS)
    if unknown:
        raise ValidationError("Company fields cannot be changed here", fields=unknown)
    cleaned: dict[str, Any] = {}
    for field, value in changes.items():
        if isinstance(value, str):
            value = value.strip()
        if field in _REQUIRED_COMPANY_FIELDS and not value:
            raise ValidationError(f"{field} is required", field=field)
        if field == "logo_url" and value == "":
            value = None
        if field == "address" and value is None:
            value = ""
        cleaned[field] = value
    return cleaned


async def update_company(store: RecordStore, profile: CallerProfile, **changes: Any) -> CompanyDetails:
    scope = authorize(profile, ResourceKind.COMPANY_PROFILE, Action.WRITE)
    patch = _clean_company_changes(changes)
    if patch:
        updated = await store.update(
            Company,
            profile.company_id,
            patch,
            where=[scope.clause(Company)],
        )
        if updated == 0:
            raise NotFound("Company not found", company_id=profile.company_id)
        logger.info(
            "company_profile_updated company_id=%s fields=%s",
            profile.company_id,
            ",".join(sorted(patch)),
        )
    return await get_company(store, profile)


async def update_profile(store: RecordStore, profile: CallerProfile, *, full_name: str) -> str:
    # Callers edit only their own display name; email and role are not self-service.
    name = full_name.strip()
    if not name:
        raise ValidationError("full_name is required", field="full_name")
    if await store.update(Profile, profile.id, {"full_name": name}) == 0:
        raise NotFound("Profile not found", profile_id=profile.id)
    logger.info("profile_updated profile_id=%s", profile.id)
    return name


async def change_password(
    store: RecordStore,
    profile: CallerProfile,
    *,
    current_password: str,
    new_password: str,
    keep_token: str | None = None,
) -> int:
    """Replace the caller's password and sign out their other sessions.

    Returns the number of sessions revoked. The session identified by
    ``keep_token`` (usually the one making the request) stays valid.
    """
    row = await store.get(Profile, profile.id)
    if row is None:
        raise NotFound("Profile not found", profile_id=profile.id)
    if not verify_password(current_password, row.password_hash):
        raise ValidationError("Current password is incorrect", field="current_password")
    validate_password(new_password)
    keep_hash = hash_token(keep_token) if keep_token else None
    active = await store.select(
        AuthSession,
        AuthSession.profile_id == profile.id,
        AuthSession.revoked_at.is_(None),
    )
    revoked = 0
    async with store.transaction():
        await store.update(Profile, profile.id, {"password_hash": hash_password(new_password)})
        now = utc_now()
        for auth_session in active:
            if auth_session.token_hash == keep_hash:
                continue
            revoked += await store.update(
                AuthSession,
                auth_session.id,
                {"revoked_at": now},
                where=[AuthSession.revoked_at.is_(None)],
            )
    logger.info("password_changed profile_id=%s sessions_revoked=%s", profile.id, revoked)
    return revoked
