from __future__ import annotations

import logging

from asperda.core.errors import InvalidTransition, NotFound, ValidationError
from asperda.domain.enums import Action, MembershipStatus, ResourceKind, VerificationStatus
from asperda.domain.models import Company
from asperda.domain.state import CallerProfile
from asperda.persistence.store import RecordStore
from asperda.services.authz.policy import ScopePredicate, authorize


logger = logging.getLogger(__name__)

# Registration creates PENDING; admins move members between these two states.
_ADMIN_TARGET_STATUSES = frozenset({MembershipStatus.ACTIVE, MembershipStatus.INACTIVE})


async def list_pending_members(store: RecordStore, profile: CallerProfile) -> list[Company]:
    scope = authorize(profile, ResourceKind.MEMBERS, Action.READ)
    return await store.select(
        Company,
        Company.membership_status == MembershipStatus.PENDING.value,
        scope.clause(Company),
        order_by=[Company.created_at.desc(), Company.id.asc()],
    )


async def list_active_members(store: RecordStore, profile: CallerProfile) -> list[Company]:
    scope = authorize(profile, ResourceKind.MEMBERS, Action.READ)
    return await store.select(
        Company,
        Company.membership_status == MembershipStatus.ACTIVE.value,
        scope.clause(Company),
        order_by=[Company.name.asc(), Company.id.asc()],
    )


async def _get_scoped_company(store: RecordStore, scope: ScopePredicate, company_id: str) -> Company:
    # Out-of-region companies read as missing so their existence is not leaked.
    company = await store.get(Company, company_id, scope.clause(Company))
    if company is None:
        raise NotFound("Member company not found", company_id=company_id)
    return company


async def update_member_status(
    store: RecordStore,
    profile: CallerProfile,
    company_id: str,
    status: MembershipStatus | str,
) -> MembershipStatus:
    scope = authorize(profile, ResourceKind.MEMBERS, Action.WRITE)
    try:
        target = MembershipStatus(status)
    except ValueError as exc:
        raise ValidationError(f"Unknown membership status: {status}", field="status") from exc
    if target not in _ADMIN_TARGET_STATUSES:
        raise InvalidTransition("Members cannot be moved back to pending", company_id=company_id)
    company = await _get_scoped_company(store, scope, company_id)
    previous = company.membership_status
    updated = await store.update(
        Company,
        company_id,
        {"membership_status": target.value},
        where=[scope.clause(Company)],
    )
    if updated == 0:
        raise NotFound("Member company not found", company_id=company_id)
    logger.info(
        "member_status_changed company_id=%s from=%s to=%s reviewer_id=%s",
        company_id,
        previous,
        target.value,
        profile.id,
    )
    return target


async def update_member_compliance(
    store: RecordStore,
    profile: CallerProfile,
    company_id: str,
    verification_status: VerificationStatus | str,
) -> VerificationStatus:
    # Only the verification flag is writable here; profile fields stay with the tenant.
    scope = authorize(profile, ResourceKind.MEMBERS, Action.WRITE)
    try:
        target = VerificationStatus(verification_status)
    except ValueError as exc:
        raise ValidationError(
            f"Unknown verification status: {verification_status}", field="verification_status"
        ) from exc
    await _get_scoped_company(store, scope, company_id)
    await store.update(
        Company,
        company_id,
        {"verification_status": target.value},
        where=[scope.clause(Company)],
    )
    logger.info("member_verification_changed company_id=%s to=%s", company_id, target.value)
    return target
