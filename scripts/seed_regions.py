from __future__ import annotations

import asyncio

from asperda.domain.models import DpcRegion
from asperda.persistence.db import SessionLocal
from asperda.persistence.store import RecordStore
from asperda.services.regions import FALLBACK_DPC_REGIONS


async def seed() -> None:
    # Insert the built-in regions with their fixed ids so fallback-era registrations stay valid.
    async with SessionLocal() as session:
        store = RecordStore(session)
        created = 0
        async with store.transaction():
            for region in FALLBACK_DPC_REGIONS:
                if await store.get(DpcRegion, region["id"]) is not None:
                    continue
                await store.insert(DpcRegion(**region))
                created += 1
        print(f"seeded_dpc_regions={created}")


if __name__ == "__main__":
    asyncio.run(seed())
