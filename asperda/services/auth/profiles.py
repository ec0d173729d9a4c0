from __future__ import annotations

from datetime import datetime, timezone
import logging

from asperda.core.errors import AccessDenied, Unauthenticated
from asperda.domain.enums import normalize_role
from asperda.domain.models import AuthSession, Company, Profile
from asperda.domain.state import CallerProfile
from asperda.persistence.store import RecordStore
from asperda.services.auth.passwords import hash_token


logger = logging.getLogger(__name__)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    # Some drivers (sqlite) hand back naive timestamps; stored values are always UTC.
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


async def load_caller_profile(store: RecordStore, profile_id: str) -> CallerProfile | None:
    profile = await store.get(Profile, profile_id)
    if profile is None:
        return None
    company_dpc_id = None
    if profile.company_id:
        company = await store.get(Company, profile.company_id)
        company_dpc_id = company.dpc_id if company is not None else None
    try:
        role = normalize_role(profile.role)
    except ValueError as exc:
        # A role outside the known vocabulary must not grant or crash; deny it.
        logger.warning("profile_role_unsupported profile_id=%s role=%s", profile.id, profile.role)
        raise AccessDenied("Account role is not recognised. Contact the system administrator.") from exc
    return CallerProfile(
        id=profile.id,
        email=profile.email,
        full_name=profile.full_name,
        role=role,
        company_id=profile.company_id,
        company_dpc_id=company_dpc_id,
    )


async def resolve_profile(store: RecordStore, token: str | None) -> CallerProfile:
    """Resolve a bearer session token into the caller's profile.

    Raises ``Unauthenticated`` when there is no usable session and lets
    ``UpstreamFailure`` from the store propagate, so callers can tell a
    re-login apart from a retry.
    """
    if not token:
        raise Unauthenticated()
    sessions = await store.select(AuthSession, AuthSession.token_hash == hash_token(token), limit=1)
    if not sessions:
        raise Unauthenticated()
    auth_session = sessions[0]
    if auth_session.revoked_at is not None:
        raise Unauthenticated("Session was signed out. Please log in again.")
    if as_utc(auth_session.expires_at) <= utc_now():
        raise Unauthenticated("Session expired. Please log in again.")
    profile = await load_caller_profile(store, auth_session.profile_id)
    if profile is None:
        # Sessions can outlive deleted profiles; treat them as signed out.
        logger.warning("profile_missing_for_session session_id=%s", auth_session.id)
        raise Unauthenticated()
    return profile


class CallerContext:
    """Memoizes the resolved profile for one logical operation."""

    def __init__(self, store: RecordStore, token: str | None) -> None:
        self._store = store
        self._token = token
        self._profile: CallerProfile | None = None

    @property
    def store(self) -> RecordStore:
        return self._store

    async def profile(self) -> CallerProfile:
        if self._profile is None:
            self._profile = await resolve_profile(self._store, self._token)
        return self._profile
