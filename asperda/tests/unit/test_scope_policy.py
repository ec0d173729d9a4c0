from __future__ import annotations

import pytest

from asperda.core.errors import AccessDenied
from asperda.domain.enums import Action, ResourceKind, UserRole
from asperda.domain.models import Company
from asperda.services.authz.policy import Scope, authorize
from asperda.tests.utils.seed import caller, create_company, create_region


_NON_ADMIN_ROLES = [
    UserRole.OWNER,
    UserRole.ADMIN,
    UserRole.DRIVER,
    UserRole.MITRA,
    UserRole.PARTNER,
]


@pytest.mark.parametrize("role", _NON_ADMIN_ROLES)
def test_non_admin_roles_cannot_read_members(role: UserRole) -> None:
    profile = caller(role, company_id="c1", dpc_id="r1")
    with pytest.raises(AccessDenied):
        authorize(profile, "members")


@pytest.mark.parametrize("role", _NON_ADMIN_ROLES)
def test_non_admin_roles_cannot_review_reports(role: UserRole) -> None:
    profile = caller(role, company_id="c1", dpc_id="r1")
    with pytest.raises(AccessDenied):
        authorize(profile, ResourceKind.BLACKLIST_REPORTS, Action.WRITE)


def test_owner_members_access_denied() -> None:
    # Owner of c1 asking for the member list gets no administrative visibility.
    profile = caller(UserRole.OWNER, company_id="c1")
    with pytest.raises(AccessDenied) as exc_info:
        authorize(profile, "members")
    assert exc_info.value.details["resource"] == "members"


def test_super_admin_is_unscoped() -> None:
    scope = authorize(caller(UserRole.SUPER_ADMIN), ResourceKind.MEMBERS)
    assert scope.scope is Scope.ALL
    assert scope.is_unrestricted
    assert scope.matches({"dpc_id": "anything"})


def test_dpc_admin_scope_matches_only_own_region() -> None:
    profile = caller(UserRole.DPC_ADMIN, company_id="c1", dpc_id="r-malang")
    scope = authorize(profile, ResourceKind.MEMBERS)
    assert scope.scope is Scope.REGION
    assert scope.matches({"dpc_id": "r-malang"})
    assert not scope.matches({"dpc_id": "r-bandung"})
    assert not scope.matches({"dpc_id": None})


def test_dpc_admin_without_region_is_denied() -> None:
    profile = caller(UserRole.DPC_ADMIN, company_id="c1", dpc_id=None)
    with pytest.raises(AccessDenied):
        authorize(profile, ResourceKind.MEMBERS)


def test_dpc_admin_report_review_is_delegated() -> None:
    scope = authorize(caller(UserRole.DPC_ADMIN, dpc_id="r1"), ResourceKind.BLACKLIST_REPORTS, Action.READ)
    assert scope.scope is Scope.DELEGATED
    assert scope.matches({"reported_by_company_id": "any"})


def test_region_writes_are_super_admin_only() -> None:
    authorize(caller(UserRole.SUPER_ADMIN), ResourceKind.DPC_REGIONS, Action.WRITE)
    with pytest.raises(AccessDenied):
        authorize(caller(UserRole.DPC_ADMIN, dpc_id="r1"), ResourceKind.DPC_REGIONS, Action.WRITE)
    # Everyone may read regions for the registration form.
    authorize(caller(UserRole.DRIVER), ResourceKind.DPC_REGIONS, Action.READ)


@pytest.mark.parametrize("role", list(UserRole))
def test_finance_is_scoped_to_own_company(role: UserRole) -> None:
    scope = authorize(caller(role, company_id="c1", dpc_id="r1"), ResourceKind.FINANCE_RECORDS, Action.WRITE)
    assert scope.scope is Scope.OWN_COMPANY
    assert scope.value == "c1"
    assert scope.matches({"company_id": "c1"})
    assert not scope.matches({"company_id": "c2"})


def test_finance_without_company_is_denied() -> None:
    with pytest.raises(AccessDenied):
        authorize(caller(UserRole.SUPER_ADMIN), ResourceKind.FINANCE_RECORDS)


def test_high_season_writes_exclude_drivers_and_partners() -> None:
    authorize(caller(UserRole.OWNER, company_id="c1"), ResourceKind.HIGH_SEASONS, Action.WRITE)
    with pytest.raises(AccessDenied):
        authorize(caller(UserRole.DRIVER, company_id="c1"), ResourceKind.HIGH_SEASONS, Action.WRITE)
    authorize(caller(UserRole.DRIVER, company_id="c1"), ResourceKind.HIGH_SEASONS, Action.READ)


def test_unknown_resource_kind_is_rejected() -> None:
    with pytest.raises(ValueError):
        authorize(caller(UserRole.SUPER_ADMIN), "vehicles")


@pytest.mark.asyncio
async def test_dpc_admin_clause_excludes_other_regions(store) -> None:
    malang = await create_region(store, name="Malang Raya")
    bandung = await create_region(store, name="Bandung", province="Jawa Barat")
    local_id = await create_company(store, dpc_id=malang, name="Malang Trans")
    await create_company(store, dpc_id=bandung, name="Bandung Trans")

    scope = authorize(caller(UserRole.DPC_ADMIN, company_id=local_id, dpc_id=malang), ResourceKind.MEMBERS)
    rows = await store.select(Company, scope.clause(Company))
    assert [row.id for row in rows] == [local_id]

    everything = authorize(caller(UserRole.SUPER_ADMIN), ResourceKind.MEMBERS)
    assert len(await store.select(Company, everything.clause(Company))) == 2


@pytest.mark.asyncio
async def test_scope_with_no_matching_rows_is_empty_not_error(store) -> None:
    region = await create_region(store)
    scope = authorize(caller(UserRole.DPC_ADMIN, company_id="c-x", dpc_id=region), ResourceKind.MEMBERS)
    assert await store.select(Company, scope.clause(Company)) == []
