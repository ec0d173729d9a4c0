from __future__ import annotations

import pytest

from asperda.apps.api.errors import status_for_error
from asperda.core.errors import (
    AccessDenied,
    AlreadyProcessed,
    ConflictError,
    InvalidCredentials,
    InvalidTransition,
    NotFound,
    PartialFailure,
    Unauthenticated,
    UpstreamFailure,
    ValidationError,
    user_message,
)
from asperda.domain.enums import UserRole
from asperda.domain.models import DpcRegion, Profile
from asperda.tests.utils.seed import create_profile


@pytest.mark.parametrize(
    ("error", "status_code"),
    [
        (Unauthenticated(), 401),
        (InvalidCredentials(), 401),
        (AccessDenied(), 403),
        (NotFound(), 404),
        (InvalidTransition(), 409),
        (AlreadyProcessed(), 409),
        (ConflictError(), 409),
        (ValidationError(), 422),
        (UpstreamFailure("boom"), 502),
        (UpstreamFailure("denied", upstream_code="42501"), 403),
        (PartialFailure(report_id="r1", global_entry_id="g1"), 500),
    ],
)
def test_errors_map_to_http_status(error, status_code: int) -> None:
    assert status_for_error(error) == status_code


def test_permission_denied_has_admin_contact_message() -> None:
    error = UpstreamFailure("permission denied for table blacklist_reports", upstream_code="42501")
    assert error.is_permission_denied
    assert user_message(error) == "Access denied. Contact the system administrator."
    assert user_message(UpstreamFailure("timeout")) == "timeout"


def test_partial_failure_carries_both_ids() -> None:
    error = PartialFailure(report_id="r1", global_entry_id="g1", cause="update failed")
    assert error.details == {
        "report_id": "r1",
        "global_entry_id": "g1",
        "global_entry_created": True,
        "cause": "update failed",
    }


@pytest.mark.asyncio
async def test_store_translates_unique_violations(store) -> None:
    await create_profile(store, role=UserRole.OWNER, email="dup@asperda.test")
    with pytest.raises(UpstreamFailure) as exc_info:
        await create_profile(store, role=UserRole.DRIVER, email="dup@asperda.test")
    assert exc_info.value.is_unique_violation
    assert exc_info.value.details["table"] == "profiles"
    # The session stays usable after the failed write.
    assert len(await store.select(Profile)) == 1


@pytest.mark.asyncio
async def test_store_transaction_rolls_back_every_write(store) -> None:
    with pytest.raises(RuntimeError):
        async with store.transaction():
            await store.insert(DpcRegion(id="r1", name="Malang", province="Jawa Timur"))
            await store.insert(DpcRegion(id="r2", name="Blitar", province="Jawa Timur"))
            raise RuntimeError("abort")
    assert await store.select(DpcRegion) == []
