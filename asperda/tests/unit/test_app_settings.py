from __future__ import annotations

import pytest

from asperda.persistence.guards import TenantPredicateError
from asperda.services.app_settings import (
    APP_SETTINGS_KEY,
    AppSettings,
    load_app_settings,
    save_app_settings,
    set_value,
)


@pytest.mark.asyncio
async def test_missing_settings_use_defaults(store) -> None:
    settings = await load_app_settings(store, "c1")
    assert settings == AppSettings()
    assert settings.customer_markup_type == "Percent"
    assert [fuel.name for fuel in settings.fuel_types][:2] == ["Pertalite", "Pertamax"]


@pytest.mark.asyncio
async def test_saved_settings_round_trip_per_company(store) -> None:
    custom = AppSettings(company_name="Rental Maju", agent_markup_value=50000, agent_markup_type="Nominal")
    await save_app_settings(store, "c1", custom)
    # Saving twice updates the same row instead of inserting a duplicate.
    await save_app_settings(store, "c1", custom.model_copy(update={"theme_color": "green"}))

    loaded = await load_app_settings(store, "c1")
    assert loaded.company_name == "Rental Maju"
    assert loaded.agent_markup_type == "Nominal"
    assert loaded.theme_color == "green"
    assert await load_app_settings(store, "c2") == AppSettings()


@pytest.mark.asyncio
async def test_malformed_settings_fall_back_to_defaults(store) -> None:
    await set_value(store, "c1", APP_SETTINGS_KEY, {"agent_markup_type": "Ratio"})
    assert await load_app_settings(store, "c1") == AppSettings()

    await set_value(store, "c1", APP_SETTINGS_KEY, ["not", "a", "mapping"])
    assert await load_app_settings(store, "c1") == AppSettings()


@pytest.mark.asyncio
async def test_settings_require_a_company(store) -> None:
    with pytest.raises(TenantPredicateError):
        await load_app_settings(store, None)
