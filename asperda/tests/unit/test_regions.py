from __future__ import annotations

import pytest

from asperda.core.config import get_settings
from asperda.core.errors import AccessDenied, ConflictError, NotFound, UpstreamFailure, ValidationError
from asperda.domain.enums import UserRole
from asperda.services import regions as regions_service
from asperda.tests.utils.seed import caller, create_company, create_region


@pytest.mark.asyncio
async def test_empty_region_table_serves_fallback_list(store) -> None:
    regions = await regions_service.list_regions(store)
    assert [region["name"] for region in regions] == [
        region["name"] for region in regions_service.FALLBACK_DPC_REGIONS
    ]


@pytest.mark.asyncio
async def test_store_failure_serves_fallback_list(store, monkeypatch) -> None:
    async def broken_select(*args, **kwargs):
        raise UpstreamFailure("connection refused")

    monkeypatch.setattr(store, "select", broken_select)
    regions = await regions_service.list_regions(store)
    assert len(regions) == len(regions_service.FALLBACK_DPC_REGIONS)


@pytest.mark.asyncio
async def test_store_failure_propagates_when_fallback_disabled(store, monkeypatch) -> None:
    monkeypatch.setenv("REGIONS_FALLBACK_ENABLED", "false")
    get_settings.cache_clear()

    async def broken_select(*args, **kwargs):
        raise UpstreamFailure("connection refused")

    monkeypatch.setattr(store, "select", broken_select)
    with pytest.raises(UpstreamFailure):
        await regions_service.list_regions(store)


@pytest.mark.asyncio
async def test_stored_regions_are_sorted_by_name(store) -> None:
    await create_region(store, name="Surabaya")
    await create_region(store, name="Bandung", province="Jawa Barat")
    names = [region["name"] for region in await regions_service.list_regions(store)]
    assert names == ["Bandung", "Surabaya"]


@pytest.mark.asyncio
async def test_only_super_admin_manages_regions(store) -> None:
    dpc_admin = caller(UserRole.DPC_ADMIN, company_id="c1", dpc_id="r1")
    with pytest.raises(AccessDenied):
        await regions_service.create_region(store, dpc_admin, "Kediri", "Jawa Timur")

    region = await regions_service.create_region(store, caller(UserRole.SUPER_ADMIN), " Kediri ", "Jawa Timur")
    assert region.name == "Kediri"
    with pytest.raises(ValidationError):
        await regions_service.create_region(store, caller(UserRole.SUPER_ADMIN), "", "Jawa Timur")


@pytest.mark.asyncio
async def test_region_with_members_cannot_be_deleted(store) -> None:
    admin = caller(UserRole.SUPER_ADMIN)
    occupied = await create_region(store, name="Malang Raya")
    empty = await create_region(store, name="Blitar")
    await create_company(store, dpc_id=occupied)

    with pytest.raises(ConflictError):
        await regions_service.delete_region(store, admin, occupied)
    await regions_service.delete_region(store, admin, empty)
    with pytest.raises(NotFound):
        await regions_service.delete_region(store, admin, empty)


@pytest.mark.asyncio
async def test_ensure_region_seeds_only_built_in_ids(store) -> None:
    built_in = regions_service.FALLBACK_DPC_REGIONS[1]
    assert await regions_service.ensure_region(store, built_in["id"]) is True
    assert await regions_service.ensure_region(store, built_in["id"]) is True
    assert await regions_service.ensure_region(store, "no-such-region") is False
    stored = await regions_service.list_regions(store)
    assert stored == [dict(built_in)]


@pytest.mark.asyncio
async def test_ensure_region_refuses_built_in_ids_when_fallback_disabled(store, monkeypatch) -> None:
    monkeypatch.setenv("REGIONS_FALLBACK_ENABLED", "false")
    get_settings.cache_clear()
    built_in = regions_service.FALLBACK_DPC_REGIONS[0]
    assert await regions_service.ensure_region(store, built_in["id"]) is False
    assert await regions_service.list_regions(store) == []


@pytest.mark.asyncio
async def test_regions_by_id_batches_lookup(store) -> None:
    malang = await create_region(store, name="Malang Raya")
    bali = await create_region(store, name="Denpasar", province="Bali")
    found = await regions_service.regions_by_id(store, [malang, bali, malang, "missing"])
    assert {region_id: row.name for region_id, row in found.items()} == {
        malang: "Malang Raya",
        bali: "Denpasar",
    }
    assert await regions_service.regions_by_id(store, []) == {}
