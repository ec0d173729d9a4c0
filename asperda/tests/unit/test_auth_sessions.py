from __future__ import annotations

from datetime import timedelta

import pytest

from asperda.core.errors import (
    AccessDenied,
    ConflictError,
    InvalidCredentials,
    Unauthenticated,
    UpstreamFailure,
    ValidationError,
)
from asperda.domain.enums import UserRole
from asperda.domain.models import AuthSession, Company, DpcRegion, Profile
from asperda.services.auth import sessions as auth_service
from asperda.services.auth.passwords import hash_password, hash_token, verify_password
from asperda.services.auth.profiles import CallerContext, resolve_profile, utc_now
from asperda.services.regions import list_regions
from asperda.tests.utils.seed import DEFAULT_PASSWORD, create_company, create_profile, create_region


def _registration(dpc_id: str, **overrides) -> auth_service.Registration:
    values = {
        "email": "Owner@Rental.test",
        "password": "rahasia123",
        "full_name": "Bu Owner",
        "company_name": "Rental Maju",
        "phone": "0812000000",
        "address": "Jl. Merdeka 5",
        "dpc_id": dpc_id,
    }
    values.update(overrides)
    return auth_service.Registration(**values)


def test_password_hash_verifies_only_the_original() -> None:
    encoded = hash_password("rahasia123", rounds=4)
    assert encoded.startswith("$2b$04$")
    assert verify_password("rahasia123", encoded)
    assert not verify_password("rahasia124", encoded)
    assert not verify_password("rahasia123", "not-a-hash")


@pytest.mark.asyncio
async def test_login_resolves_profile_with_company_region(store) -> None:
    region = await create_region(store)
    company_id = await create_company(store, dpc_id=region)
    await create_profile(store, role=UserRole.DPC_ADMIN, company_id=company_id, email="dpc@asperda.test")

    result = await auth_service.login(store, " DPC@asperda.test ", DEFAULT_PASSWORD)

    assert result.token.startswith("asp_")
    assert result.profile.role is UserRole.DPC_ADMIN
    assert result.profile.company_dpc_id == region
    resolved = await resolve_profile(store, result.token)
    assert resolved == result.profile


@pytest.mark.asyncio
async def test_login_failures_share_one_error(store) -> None:
    await create_profile(store, role=UserRole.OWNER, email="owner@asperda.test")
    with pytest.raises(InvalidCredentials):
        await auth_service.login(store, "owner@asperda.test", "wrong-password")
    with pytest.raises(InvalidCredentials):
        await auth_service.login(store, "nobody@asperda.test", DEFAULT_PASSWORD)


@pytest.mark.asyncio
async def test_resolver_rejects_missing_revoked_and_expired_sessions(store) -> None:
    await create_profile(store, role=UserRole.OWNER, email="owner@asperda.test")
    result = await auth_service.login(store, "owner@asperda.test", DEFAULT_PASSWORD)

    with pytest.raises(Unauthenticated):
        await resolve_profile(store, None)
    with pytest.raises(Unauthenticated):
        await resolve_profile(store, "asp_unknown")

    session_row = (await store.select(AuthSession, AuthSession.token_hash == hash_token(result.token)))[0]
    await store.update(AuthSession, session_row.id, {"expires_at": utc_now() - timedelta(minutes=1)})
    with pytest.raises(Unauthenticated):
        await resolve_profile(store, result.token)

    fresh = await auth_service.login(store, "owner@asperda.test", DEFAULT_PASSWORD)
    await auth_service.logout(store, fresh.token)
    with pytest.raises(Unauthenticated):
        await resolve_profile(store, fresh.token)
    assert await auth_service.current_profile(store, fresh.token) is None


@pytest.mark.asyncio
async def test_resolver_propagates_store_failures(store, monkeypatch) -> None:
    async def broken_select(*args, **kwargs):
        raise UpstreamFailure("connection reset")

    monkeypatch.setattr(store, "select", broken_select)
    with pytest.raises(UpstreamFailure):
        await resolve_profile(store, "asp_token")


@pytest.mark.asyncio
async def test_caller_context_resolves_once(store, monkeypatch) -> None:
    await create_profile(store, role=UserRole.OWNER, email="owner@asperda.test")
    result = await auth_service.login(store, "owner@asperda.test", DEFAULT_PASSWORD)
    context = CallerContext(store, result.token)
    calls = {"count": 0}
    original = store.select

    async def counting_select(*args, **kwargs):
        calls["count"] += 1
        return await original(*args, **kwargs)

    monkeypatch.setattr(store, "select", counting_select)
    first = await context.profile()
    after_first = calls["count"]
    second = await context.profile()

    assert first is second
    assert calls["count"] == after_first


@pytest.mark.asyncio
async def test_register_owner_creates_pending_company(store) -> None:
    region = await create_region(store)

    profile = await auth_service.register_owner(store, _registration(region))

    assert profile.role is UserRole.OWNER
    assert profile.email == "owner@rental.test"
    assert profile.company_dpc_id == region
    company = await store.get(Company, profile.company_id)
    assert company.membership_status == "pending"
    assert company.verification_status == "unverified"
    assert company.dpc_id == region
    login = await auth_service.login(store, "owner@rental.test", "rahasia123")
    assert login.profile.id == profile.id


@pytest.mark.asyncio
async def test_register_partner_uses_partner_role(store) -> None:
    region = await create_region(store)
    profile = await auth_service.register_partner(store, _registration(region, email="hotel@partner.test"))
    assert profile.role is UserRole.PARTNER


@pytest.mark.asyncio
async def test_registration_validation(store) -> None:
    region = await create_region(store)
    await auth_service.register_owner(store, _registration(region))

    with pytest.raises(ConflictError):
        await auth_service.register_owner(store, _registration(region, email="OWNER@rental.test"))
    with pytest.raises(ValidationError):
        await auth_service.register_owner(store, _registration(region, email="x@y.test", password="short"))
    with pytest.raises(ValidationError):
        await auth_service.register_owner(store, _registration("no-such-region", email="x@y.test"))
    with pytest.raises(ValidationError):
        await auth_service.register_owner(store, _registration(region, email="x@y.test", company_name=" "))
    assert len(await store.select(Company)) == 1


@pytest.mark.asyncio
async def test_overlong_password_is_rejected_at_registration(store) -> None:
    region = await create_region(store)
    with pytest.raises(ValidationError):
        await auth_service.register_owner(store, _registration(region, password="a" * 73))
    assert await store.select(Company) == []


@pytest.mark.asyncio
async def test_registration_accepts_region_served_from_empty_table(store) -> None:
    regions = await list_regions(store)
    chosen = regions[0]

    profile = await auth_service.register_owner(store, _registration(chosen["id"]))

    assert profile.company_dpc_id == chosen["id"]
    stored = await store.get(DpcRegion, chosen["id"])
    assert stored is not None
    assert (stored.name, stored.province) == (chosen["name"], chosen["province"])
    # The seeded row now backs the list; a second company reuses it.
    second = await auth_service.register_partner(store, _registration(chosen["id"], email="hotel@partner.test"))
    assert second.company_dpc_id == chosen["id"]
    assert [region["id"] for region in await list_regions(store)] == [chosen["id"]]


@pytest.mark.asyncio
async def test_unsupported_stored_role_is_denied(store) -> None:
    profile_id = await create_profile(store, role=UserRole.OWNER, email="owner@asperda.test")
    result = await auth_service.login(store, "owner@asperda.test", DEFAULT_PASSWORD)
    await store.update(Profile, profile_id, {"role": "guest"})

    with pytest.raises(AccessDenied):
        await resolve_profile(store, result.token)
    with pytest.raises(AccessDenied):
        await auth_service.login(store, "owner@asperda.test", DEFAULT_PASSWORD)
