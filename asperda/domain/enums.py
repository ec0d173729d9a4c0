from __future__ import annotations

from enum import Enum


class UserRole(str, Enum):
    SUPER_ADMIN = "super_admin"
    DPC_ADMIN = "dpc_admin"
    OWNER = "owner"
    ADMIN = "admin"
    DRIVER = "driver"
    MITRA = "mitra"
    PARTNER = "partner"


class MembershipStatus(str, Enum):
    PENDING = "pending"
    ACTIVE = "active"
    INACTIVE = "inactive"


class VerificationStatus(str, Enum):
    UNVERIFIED = "unverified"
    PENDING = "pending"
    VERIFIED = "verified"
    BLACKLISTED = "blacklisted"


class ReportStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


TERMINAL_REPORT_STATUSES = frozenset({ReportStatus.APPROVED, ReportStatus.REJECTED})


class FinanceType(str, Enum):
    INCOME = "income"
    EXPENSE = "expense"


class FinanceStatus(str, Enum):
    PAID = "paid"
    PENDING = "pending"


class ResourceKind(str, Enum):
    MEMBERS = "members"
    BLACKLIST_REPORTS = "blacklist_reports"
    GLOBAL_BLACKLIST = "global_blacklist"
    DPC_REGIONS = "dpc_regions"
    FINANCE_RECORDS = "finance_records"
    HIGH_SEASONS = "high_seasons"
    APP_SETTINGS = "app_settings"
    COMPANY_PROFILE = "company_profile"


class Action(str, Enum):
    READ = "read"
    WRITE = "write"
    # Tenants filing a blacklist report for review.
    SUBMIT = "submit"


def normalize_role(role: str | UserRole) -> UserRole:
    # Accept raw strings from storage or headers with a stable lowercased vocabulary.
    if isinstance(role, UserRole):
        return role
    try:
        return UserRole(str(role).strip().lower())
    except ValueError as exc:
        raise ValueError(f"Unsupported role: {role}") from exc
