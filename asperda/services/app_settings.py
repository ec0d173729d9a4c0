from __future__ import annotations

import logging
from typing import Any, Literal
from uuid import uuid4

from pydantic import BaseModel, Field
from pydantic import ValidationError as PydanticValidationError

from asperda.domain.models import AppSettingsEntry
from asperda.persistence.guards import company_predicate
from asperda.persistence.store import RecordStore


logger = logging.getLogger(__name__)

APP_SETTINGS_KEY = "app_settings"

MarkupType = Literal["Nominal", "Percent"]


class FuelType(BaseModel):
    name: str
    price: int
    category: Literal["Gasoline", "Gasoil", "Electric"] | None = None


class TollRate(BaseModel):
    id: str
    name: str
    price: int


class CoverageArea(BaseModel):
    id: str
    name: str
    description: str
    extra_price: int = 0
    extra_driver_price: int = 0


def _default_fuel_types() -> list[FuelType]:
    return [
        FuelType(name="Pertalite", price=10000, category="Gasoline"),
        FuelType(name="Pertamax", price=13500, category="Gasoline"),
        FuelType(name="Solar", price=6800, category="Gasoil"),
        FuelType(name="Dexlite", price=15000, category="Gasoil"),
    ]


def _default_toll_rates() -> list[TollRate]:
    return [
        TollRate(id="1", name="Waru - Juanda", price=9000),
        TollRate(id="2", name="Waru - Sidoarjo", price=6000),
        TollRate(id="3", name="Sidoarjo - Porong", price=6000),
        TollRate(id="4", name="Surabaya - Malang", price=35000),
    ]


def _default_coverage_areas() -> list[CoverageArea]:
    return [
        CoverageArea(id="1", name="Wilayah 1", description="Jawa Timur - Kota Kota (Exc. Banyuwangi/Pacitan)"),
        CoverageArea(
            id="2",
            name="Wilayah 2",
            description="Jawa Tengah & Banyuwangi, Pacitan, Sumenep",
            extra_price=300000,
            extra_driver_price=200000,
        ),
        CoverageArea(
            id="3",
            name="Wilayah 3",
            description="Jawa Barat, Jakarta, Banten, Bali",
            extra_price=400000,
            extra_driver_price=300000,
        ),
        CoverageArea(
            id="4",
            name="Wilayah 4",
            description="Palembang, Sumbawa, Lombok, Lampung",
            extra_price=500000,
            extra_driver_price=400000,
        ),
    ]


class AppSettings(BaseModel):
    """Per-company pricing and branding defaults.

    Passed explicitly to pricing code instead of living in process-wide
    state; unset fields fall back to the association defaults below.
    """

    driver_short_distance_limit: int = 30
    driver_short_distance_price: int = 150000
    driver_long_distance_limit: int = 600
    driver_long_distance_price: int = 500000
    driver_overnight_price: int = 150000
    agent_markup_value: float = 10
    agent_markup_type: MarkupType = "Percent"
    customer_markup_value: float = 25
    customer_markup_type: MarkupType = "Percent"
    fuel_types: list[FuelType] = Field(default_factory=_default_fuel_types)
    toll_rates: list[TollRate] = Field(default_factory=_default_toll_rates)
    car_categories: list[str] = Field(default_factory=lambda: ["MPV", "SUV", "Sedan", "Luxury", "Bus"])
    rental_packages: list[str] = Field(
        default_factory=lambda: ["12 Jam (Dalam Kota)", "24 Jam (Dalam Kota)", "Full Day (Luar Kota)"]
    )
    coverage_areas: list[CoverageArea] = Field(default_factory=_default_coverage_areas)
    company_name: str = "ASPERDA Rental"
    logo_url: str = ""
    theme_color: str = "blue"
    dark_mode: bool = False
    invoice_footer: str | None = None
    gps_provider: str = "Simulation"


async def get_value(store: RecordStore, company_id: str | None, key: str, default: Any = None) -> Any:
    rows = await store.select(
        AppSettingsEntry,
        company_predicate(AppSettingsEntry, company_id),
        AppSettingsEntry.key == key,
        limit=1,
    )
    if not rows or rows[0].value_json is None:
        return default
    return rows[0].value_json


async def set_value(store: RecordStore, company_id: str | None, key: str, value: Any) -> None:
    # Upsert by (company_id, key); the unique constraint backs concurrent writers.
    predicate = company_predicate(AppSettingsEntry, company_id)
    rows = await store.select(AppSettingsEntry, predicate, AppSettingsEntry.key == key, limit=1)
    if rows:
        await store.update(AppSettingsEntry, rows[0].id, {"value_json": value}, where=[predicate])
        return
    await store.insert(AppSettingsEntry(id=uuid4().hex, company_id=company_id, key=key, value_json=value))


async def load_app_settings(store: RecordStore, company_id: str | None) -> AppSettings:
    stored = await get_value(store, company_id, APP_SETTINGS_KEY)
    if not isinstance(stored, dict):
        return AppSettings()
    try:
        return AppSettings.model_validate(stored)
    except PydanticValidationError as exc:
        # A malformed blob must not lock the company out of pricing screens.
        logger.warning("app_settings_invalid company_id=%s", company_id, exc_info=exc)
        return AppSettings()


async def save_app_settings(store: RecordStore, company_id: str | None, settings: AppSettings) -> None:
    await set_value(store, company_id, APP_SETTINGS_KEY, settings.model_dump(mode="json"))
