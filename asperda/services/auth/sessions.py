from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta
import logging
from uuid import uuid4

from asperda.core.config import get_settings
from asperda.core.errors import (
    ConflictError,
    InvalidCredentials,
    Unauthenticated,
    UpstreamFailure,
    ValidationError,
)
from asperda.domain.enums import MembershipStatus, UserRole, VerificationStatus
from asperda.domain.models import AuthSession, Company, Profile
from asperda.domain.state import CallerProfile
from asperda.persistence.store import RecordStore
from asperda.services.auth.passwords import (
    generate_session_token,
    MAX_PASSWORD_BYTES,
    hash_password,
    hash_token,
    verify_password,
)
from asperda.services.auth.profiles import load_caller_profile, resolve_profile, utc_now
from asperda.services.regions import ensure_region


logger = logging.getLogger(__name__)

_MIN_PASSWORD_LENGTH = 8


@dataclass(frozen=True)
class LoginResult:
    token: str
    profile: CallerProfile


@dataclass(frozen=True)
class Registration:
    email: str
    password: str
    full_name: str
    company_name: str
    phone: str
    address: str
    dpc_id: str


def _normalize_email(email: str) -> str:
    return email.strip().lower()


async def login(store: RecordStore, email: str, password: str) -> LoginResult:
    # Keep the failure message identical for unknown emails and bad passwords.
    profiles = await store.select(Profile, Profile.email == _normalize_email(email), limit=1)
    if not profiles or not verify_password(password, profiles[0].password_hash):
        raise InvalidCredentials()
    profile = profiles[0]
    raw_token, token_hash = generate_session_token()
    settings = get_settings()
    await store.insert(
        AuthSession(
            id=uuid4().hex,
            profile_id=profile.id,
            token_hash=token_hash,
            expires_at=utc_now() + timedelta(hours=settings.session_ttl_hours),
        )
    )
    caller = await load_caller_profile(store, profile.id)
    if caller is None:
        raise InvalidCredentials()
    logger.info("auth_login_succeeded profile_id=%s role=%s", caller.id, caller.role.value)
    return LoginResult(token=raw_token, profile=caller)


async def current_profile(store: RecordStore, token: str | None) -> CallerProfile | None:
    # Null-returning variant of resolve_profile for screens that render signed-out states.
    try:
        return await resolve_profile(store, token)
    except Unauthenticated:
        return None


async def logout(store: RecordStore, token: str | None) -> None:
    # Revoke rather than delete so session history stays auditable.
    if not token:
        return
    sessions = await store.select(AuthSession, AuthSession.token_hash == hash_token(token), limit=1)
    if not sessions:
        return
    await store.update(
        AuthSession,
        sessions[0].id,
        {"revoked_at": utc_now()},
        where=[AuthSession.revoked_at.is_(None)],
    )


def validate_password(password: str) -> None:
    if len(password) < _MIN_PASSWORD_LENGTH:
        raise ValidationError(
            f"Password must be at least {_MIN_PASSWORD_LENGTH} characters", field="password"
        )
    if len(password.encode("utf-8")) > MAX_PASSWORD_BYTES:
        raise ValidationError(
            f"Password must be at most {MAX_PASSWORD_BYTES} bytes", field="password"
        )


def _validate_registration(form: Registration) -> None:
    if "@" not in form.email:
        raise ValidationError("A valid email address is required", field="email")
    validate_password(form.password)
    for field in ("full_name", "company_name", "phone", "dpc_id"):
        if not getattr(form, field).strip():
            raise ValidationError(f"{field} is required", field=field)


async def _register(store: RecordStore, form: Registration, role: UserRole) -> CallerProfile:
    # New companies always start PENDING; only an admin action activates them.
    _validate_registration(form)
    email = _normalize_email(form.email)
    if not await ensure_region(store, form.dpc_id):
        raise ValidationError("Unknown DPC region", field="dpc_id")
    if await store.select(Profile, Profile.email == email, limit=1):
        raise ConflictError("Email is already registered", field="email")
    company_id = uuid4().hex
    profile_id = uuid4().hex
    try:
        async with store.transaction():
            await store.insert(
                Company(
                    id=company_id,
                    name=form.company_name.strip(),
                    owner_name=form.full_name.strip(),
                    phone=form.phone.strip(),
                    address=form.address.strip(),
                    dpc_id=form.dpc_id,
                    membership_status=MembershipStatus.PENDING.value,
                    verification_status=VerificationStatus.UNVERIFIED.value,
                )
            )
            await store.insert(
                Profile(
                    id=profile_id,
                    email=email,
                    full_name=form.full_name.strip(),
                    role=role.value,
                    company_id=company_id,
                    password_hash=hash_password(form.password),
                )
            )
    except UpstreamFailure as exc:
        if exc.is_unique_violation:
            raise ConflictError("Email is already registered", field="email") from exc
        raise
    logger.info("company_registered company_id=%s role=%s dpc_id=%s", company_id, role.value, form.dpc_id)
    return CallerProfile(
        id=profile_id,
        email=email,
        full_name=form.full_name.strip(),
        role=role,
        company_id=company_id,
        company_dpc_id=form.dpc_id,
    )


async def register_owner(store: RecordStore, form: Registration) -> CallerProfile:
    return await _register(store, form, UserRole.OWNER)


async def register_partner(store: RecordStore, form: Registration) -> CallerProfile:
    # Tourism partners (travel agents, hotels) onboard through the same pending flow.
    return await _register(store, form, UserRole.PARTNER)
