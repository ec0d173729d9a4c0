from __future__ import annotations

import logging
from typing import Iterable
from uuid import uuid4

from asperda.core.config import get_settings
from asperda.core.errors import ConflictError, NotFound, UpstreamFailure, ValidationError
from asperda.domain.enums import Action, ResourceKind
from asperda.domain.models import Company, DpcRegion
from asperda.domain.state import CallerProfile
from asperda.persistence.store import RecordStore
from asperda.services.authz.policy import authorize


logger = logging.getLogger(__name__)

# Served when the regions table is empty or unreachable so registration never dead-ends.
FALLBACK_DPC_REGIONS: tuple[dict[str, str], ...] = (
    {"id": "11111111-1111-1111-1111-111111111111", "name": "Malang Raya", "province": "Jawa Timur"},
    {"id": "22222222-2222-2222-2222-222222222222", "name": "Jakarta Pusat", "province": "DKI Jakarta"},
    {"id": "33333333-3333-3333-3333-333333333333", "name": "Yogyakarta", "province": "DI Yogyakarta"},
    {"id": "44444444-4444-4444-4444-444444444444", "name": "Bandung", "province": "Jawa Barat"},
    {"id": "55555555-5555-5555-5555-555555555555", "name": "Denpasar", "province": "Bali"},
)


async def list_regions(store: RecordStore) -> list[dict[str, str]]:
    # Public lookup used by the registration form; no caller profile required.
    settings = get_settings()
    try:
        rows = await store.select(DpcRegion, order_by=[DpcRegion.name.asc()])
    except UpstreamFailure as exc:
        if not settings.regions_fallback_enabled:
            raise
        logger.warning("dpc_regions_fallback reason=upstream_failure", exc_info=exc)
        return [dict(region) for region in FALLBACK_DPC_REGIONS]
    if not rows and settings.regions_fallback_enabled:
        return [dict(region) for region in FALLBACK_DPC_REGIONS]
    return [{"id": row.id, "name": row.name, "province": row.province} for row in rows]


async def create_region(store: RecordStore, profile: CallerProfile, name: str, province: str) -> DpcRegion:
    authorize(profile, ResourceKind.DPC_REGIONS, Action.WRITE)
    if not name.strip() or not province.strip():
        raise ValidationError("Region name and province are required")
    region = await store.insert(DpcRegion(id=uuid4().hex, name=name.strip(), province=province.strip()))
    logger.info("dpc_region_created region_id=%s name=%s", region.id, region.name)
    return region


async def delete_region(store: RecordStore, profile: CallerProfile, region_id: str) -> None:
    authorize(profile, ResourceKind.DPC_REGIONS, Action.WRITE)
    # Every company must keep a region, so occupied regions cannot be removed.
    if await store.select(Company, Company.dpc_id == region_id, limit=1):
        raise ConflictError("Region still has member companies", region_id=region_id)
    if await store.delete(DpcRegion, region_id) == 0:
        raise NotFound("DPC region not found", region_id=region_id)
    logger.info("dpc_region_deleted region_id=%s", region_id)


async def ensure_region(store: RecordStore, region_id: str) -> bool:
    """Make sure ``region_id`` exists as a stored region.

    Registration forms are fed from ``list_regions``, which serves the
    built-in list while the table is still empty. Picking one of those ids
    seeds the matching row so the company keeps a real region reference.
    Returns False for ids that are neither stored nor built in.
    """
    if await store.get(DpcRegion, region_id) is not None:
        return True
    if not get_settings().regions_fallback_enabled:
        return False
    fallback = next((region for region in FALLBACK_DPC_REGIONS if region["id"] == region_id), None)
    if fallback is None:
        return False
    try:
        await store.insert(DpcRegion(**fallback))
    except UpstreamFailure as exc:
        # A concurrent registration seeded the same region first.
        if not exc.is_unique_violation:
            raise
        return await store.get(DpcRegion, region_id) is not None
    logger.info("dpc_region_seeded region_id=%s name=%s", region_id, fallback["name"])
    return True


async def regions_by_id(store: RecordStore, region_ids: Iterable[str]) -> dict[str, DpcRegion]:
    # Batch lookup so company listings can show region names without one query per row.
    ids = sorted({region_id for region_id in region_ids if region_id})
    if not ids:
        return {}
    rows = await store.select(DpcRegion, DpcRegion.id.in_(ids))
    return {row.id: row for row in rows}
