from __future__ import annotations

from dataclasses import dataclass
from datetime import date

import pytest

from asperda.core.errors import AccessDenied, NotFound, ValidationError
from asperda.domain.enums import UserRole
from asperda.services import high_seasons as high_seasons_service
from asperda.services.pricing import apply_markup, high_season_surcharge
from asperda.tests.utils.seed import caller, create_company, create_region


@dataclass
class _Season:
    name: str
    start_date: date
    end_date: date
    price_increase: int


def test_surcharge_counts_each_covered_day() -> None:
    lebaran = _Season("Lebaran", date(2024, 4, 8), date(2024, 4, 10), 100000)
    # Rental of 4 days starting the day before the season: 3 days fall inside.
    result = high_season_surcharge([lebaran], date(2024, 4, 7), 4)
    assert result.amount == 300000
    assert result.season_names == ["Lebaran"]


def test_overlapping_seasons_use_first_match() -> None:
    first = _Season("Libur Sekolah", date(2024, 6, 20), date(2024, 7, 10), 50000)
    second = _Season("Akhir Pekan Panjang", date(2024, 7, 1), date(2024, 7, 3), 200000)
    result = high_season_surcharge([first, second], date(2024, 7, 1), 2)
    assert result.amount == 100000
    assert result.season_names == ["Libur Sekolah"]


def test_no_days_no_surcharge() -> None:
    season = _Season("Natal", date(2024, 12, 24), date(2024, 12, 26), 75000)
    assert high_season_surcharge([season], date(2024, 12, 24), 0).amount == 0
    assert high_season_surcharge([season], date(2024, 1, 1), 5).season_names == []


def test_apply_markup_percent_and_nominal() -> None:
    assert apply_markup(400000, 25, "Percent") == 500000
    assert apply_markup(400000, 50000, "Nominal") == 450000
    with pytest.raises(ValueError):
        apply_markup(400000, 10, "Ratio")


@pytest.mark.asyncio
async def test_high_seasons_are_company_scoped(store) -> None:
    region = await create_region(store)
    first = await create_company(store, dpc_id=region)
    second = await create_company(store, dpc_id=region)
    owner = caller(UserRole.OWNER, company_id=first)

    season = await high_seasons_service.create_high_season(
        store,
        owner,
        name="Lebaran",
        start_date=date(2024, 4, 8),
        end_date=date(2024, 4, 14),
        price_increase=100000,
    )
    season_id = season.id

    assert season.company_id == first
    other_rows = await high_seasons_service.list_high_seasons(store, caller(UserRole.OWNER, company_id=second))
    assert other_rows == []
    with pytest.raises(NotFound):
        await high_seasons_service.delete_high_season(store, caller(UserRole.OWNER, company_id=second), season_id)

    await high_seasons_service.delete_high_season(store, owner, season_id)
    assert await high_seasons_service.list_high_seasons(store, owner) == []


@pytest.mark.asyncio
async def test_high_season_validation_and_roles(store) -> None:
    owner = caller(UserRole.OWNER, company_id="c1")
    with pytest.raises(ValidationError):
        await high_seasons_service.create_high_season(
            store,
            owner,
            name="Terbalik",
            start_date=date(2024, 4, 14),
            end_date=date(2024, 4, 8),
            price_increase=100000,
        )
    with pytest.raises(AccessDenied):
        await high_seasons_service.create_high_season(
            store,
            caller(UserRole.DRIVER, company_id="c1"),
            name="Lebaran",
            start_date=date(2024, 4, 8),
            end_date=date(2024, 4, 14),
            price_increase=100000,
        )
