from __future__ import annotations

from datetime import date
import logging
from uuid import uuid4

from asperda.core.errors import NotFound, ValidationError
from asperda.domain.enums import Action, ResourceKind
from asperda.domain.models import HighSeason
from asperda.domain.state import CallerProfile
from asperda.persistence.store import RecordStore
from asperda.services.authz.policy import authorize


logger = logging.getLogger(__name__)


async def list_high_seasons(store: RecordStore, profile: CallerProfile) -> list[HighSeason]:
    scope = authorize(profile, ResourceKind.HIGH_SEASONS, Action.READ)
    return await store.select(
        HighSeason,
        scope.clause(HighSeason),
        order_by=[HighSeason.start_date.asc(), HighSeason.id.asc()],
    )


async def create_high_season(
    store: RecordStore,
    profile: CallerProfile,
    *,
    name: str,
    start_date: date,
    end_date: date,
    price_increase: int,
) -> HighSeason:
    scope = authorize(profile, ResourceKind.HIGH_SEASONS, Action.WRITE)
    if not name.strip():
        raise ValidationError("name is required", field="name")
    if end_date < start_date:
        raise ValidationError("end_date must not be before start_date", field="end_date")
    if price_increase < 0:
        raise ValidationError("price_increase must not be negative", field="price_increase")
    season = await store.insert(
        HighSeason(
            id=uuid4().hex,
            company_id=scope.value,
            name=name.strip(),
            start_date=start_date,
            end_date=end_date,
            price_increase=int(price_increase),
        )
    )
    logger.info("high_season_created season_id=%s company_id=%s", season.id, scope.value)
    return season


async def delete_high_season(store: RecordStore, profile: CallerProfile, season_id: str) -> None:
    scope = authorize(profile, ResourceKind.HIGH_SEASONS, Action.WRITE)
    if await store.delete(HighSeason, season_id, where=[scope.clause(HighSeason)]) == 0:
        raise NotFound("High season not found", season_id=season_id)
