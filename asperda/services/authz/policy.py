from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Mapping

from sqlalchemy import true

from asperda.core.errors import AccessDenied
from asperda.domain.enums import Action, ResourceKind, UserRole
from asperda.domain.state import CallerProfile


class Scope(str, Enum):
    # Every row of the resource.
    ALL = "all"
    # Rows whose region column equals the caller company's region.
    REGION = "region"
    # Rows whose tenant column equals the caller's company.
    OWN_COMPANY = "own_company"
    # No client-side narrowing; the database row policy decides.
    DELEGATED = "delegated"


@dataclass(frozen=True)
class PolicyRule:
    scope: Scope
    # Column the scope value is compared against (REGION / OWN_COMPANY only).
    column: str | None = None


_EVERY_ROLE = tuple(UserRole)
_MANAGER_ROLES = (UserRole.SUPER_ADMIN, UserRole.DPC_ADMIN, UserRole.OWNER, UserRole.ADMIN)


def _for_roles(roles: tuple[UserRole, ...], rule: PolicyRule) -> dict[UserRole, PolicyRule]:
    return {role: rule for role in roles}


_MEMBER_RULES = {
    UserRole.SUPER_ADMIN: PolicyRule(Scope.ALL),
    UserRole.DPC_ADMIN: PolicyRule(Scope.REGION, "dpc_id"),
}
_REPORT_REVIEW_RULES = {
    UserRole.SUPER_ADMIN: PolicyRule(Scope.ALL),
    UserRole.DPC_ADMIN: PolicyRule(Scope.DELEGATED),
}

# (resource, action) -> role -> rule. Roles missing from a row are denied.
POLICY: dict[tuple[ResourceKind, Action], dict[UserRole, PolicyRule]] = {
    (ResourceKind.MEMBERS, Action.READ): _MEMBER_RULES,
    (ResourceKind.MEMBERS, Action.WRITE): _MEMBER_RULES,
    (ResourceKind.BLACKLIST_REPORTS, Action.READ): _REPORT_REVIEW_RULES,
    (ResourceKind.BLACKLIST_REPORTS, Action.WRITE): _REPORT_REVIEW_RULES,
    (ResourceKind.BLACKLIST_REPORTS, Action.SUBMIT): _for_roles(
        _EVERY_ROLE, PolicyRule(Scope.OWN_COMPANY, "reported_by_company_id")
    ),
    (ResourceKind.GLOBAL_BLACKLIST, Action.READ): _for_roles(_EVERY_ROLE, PolicyRule(Scope.ALL)),
    (ResourceKind.DPC_REGIONS, Action.READ): _for_roles(_EVERY_ROLE, PolicyRule(Scope.ALL)),
    (ResourceKind.DPC_REGIONS, Action.WRITE): {UserRole.SUPER_ADMIN: PolicyRule(Scope.ALL)},
    (ResourceKind.FINANCE_RECORDS, Action.READ): _for_roles(
        _EVERY_ROLE, PolicyRule(Scope.OWN_COMPANY, "company_id")
    ),
    (ResourceKind.FINANCE_RECORDS, Action.WRITE): _for_roles(
        _EVERY_ROLE, PolicyRule(Scope.OWN_COMPANY, "company_id")
    ),
    (ResourceKind.HIGH_SEASONS, Action.READ): _for_roles(
        _EVERY_ROLE, PolicyRule(Scope.OWN_COMPANY, "company_id")
    ),
    # Seasonal pricing is a company management concern; drivers and partners only read it.
    (ResourceKind.HIGH_SEASONS, Action.WRITE): _for_roles(
        _MANAGER_ROLES, PolicyRule(Scope.OWN_COMPANY, "company_id")
    ),
    (ResourceKind.APP_SETTINGS, Action.READ): _for_roles(
        _EVERY_ROLE, PolicyRule(Scope.OWN_COMPANY, "company_id")
    ),
    (ResourceKind.APP_SETTINGS, Action.WRITE): _for_roles(
        _MANAGER_ROLES, PolicyRule(Scope.OWN_COMPANY, "company_id")
    ),
    # Reviewers read member companies in their scope; everyone else reads their own.
    (ResourceKind.COMPANY_PROFILE, Action.READ): {
        **_for_roles(_EVERY_ROLE, PolicyRule(Scope.OWN_COMPANY, "id")),
        **_MEMBER_RULES,
    },
    # Tenants edit only their own company; membership and verification stay with reviewers.
    (ResourceKind.COMPANY_PROFILE, Action.WRITE): _for_roles(
        _MANAGER_ROLES, PolicyRule(Scope.OWN_COMPANY, "id")
    ),
}


@dataclass(frozen=True)
class ScopePredicate:
    """Request-shaping filter for one resource kind.

    The persistence layer enforces its own row policy on top of this, so
    the predicate narrows queries but is never the only access check.
    """

    resource: ResourceKind
    scope: Scope
    column: str | None = None
    value: str | None = None

    @property
    def is_unrestricted(self) -> bool:
        return self.scope in {Scope.ALL, Scope.DELEGATED}

    def clause(self, model) -> Any:
        # Render as a SQLAlchemy criterion for RecordStore.select/update/delete.
        if self.is_unrestricted:
            return true()
        return getattr(model, self.column) == self.value

    def matches(self, row: Any) -> bool:
        # Evaluate the same predicate against an in-memory row or mapping.
        if self.is_unrestricted:
            return True
        if isinstance(row, Mapping):
            return row.get(self.column) == self.value
        return getattr(row, self.column, None) == self.value


def authorize(
    profile: CallerProfile,
    resource: ResourceKind | str,
    action: Action | str = Action.READ,
) -> ScopePredicate:
    # Resolve the caller's scope once per list/action from the policy table.
    resource = ResourceKind(resource)
    action = Action(action)
    rule = POLICY.get((resource, action), {}).get(profile.role)
    if rule is None:
        raise AccessDenied(
            f"Role {profile.role.value} cannot {action.value} {resource.value}",
            resource=resource.value,
            action=action.value,
        )
    if rule.scope is Scope.REGION:
        if not profile.company_dpc_id:
            raise AccessDenied(
                "Region-scoped access requires a company with a DPC region",
                resource=resource.value,
                action=action.value,
            )
        return ScopePredicate(resource, rule.scope, rule.column, profile.company_dpc_id)
    if rule.scope is Scope.OWN_COMPANY:
        if not profile.company_id:
            raise AccessDenied(
                "Account is not linked to a rental company",
                resource=resource.value,
                action=action.value,
            )
        return ScopePredicate(resource, rule.scope, rule.column, profile.company_id)
    return ScopePredicate(resource, rule.scope)
