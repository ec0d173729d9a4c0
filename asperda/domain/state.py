from __future__ import annotations

from dataclasses import dataclass

from asperda.domain.enums import UserRole


@dataclass(frozen=True)
class CallerProfile:
    # Resolved identity used for role checks and tenant scoping.
    id: str
    email: str
    full_name: str
    role: UserRole
    company_id: str | None = None
    # Region of the caller's company, resolved alongside the profile.
    company_dpc_id: str | None = None

    @property
    def is_super_admin(self) -> bool:
        return self.role is UserRole.SUPER_ADMIN

    @property
    def is_dpc_admin(self) -> bool:
        return self.role is UserRole.DPC_ADMIN
