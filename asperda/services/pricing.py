from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Protocol, Sequence


class SeasonLike(Protocol):
    name: str
    start_date: date
    end_date: date
    price_increase: int


@dataclass
class SeasonSurcharge:
    amount: int = 0
    season_names: list[str] = field(default_factory=list)


def high_season_surcharge(seasons: Sequence[SeasonLike], start: date, days: int) -> SeasonSurcharge:
    """Sum per-day surcharges for a rental starting on ``start``.

    Each rental day adds the increase of the first season (in the given
    order) whose inclusive date range covers it; overlapping seasons do not
    stack.
    """
    result = SeasonSurcharge()
    for offset in range(max(days, 0)):
        day = start + timedelta(days=offset)
        season = next((s for s in seasons if s.start_date <= day <= s.end_date), None)
        if season is None:
            continue
        result.amount += season.price_increase
        if season.name not in result.season_names:
            result.season_names.append(season.name)
    return result


def apply_markup(amount: int, markup_value: float, markup_type: str) -> int:
    # "Percent" scales the amount; "Nominal" adds a flat rupiah value.
    if markup_type == "Percent":
        return int(round(amount * (1 + markup_value / 100.0)))
    if markup_type == "Nominal":
        return int(amount + markup_value)
    raise ValueError(f"Unsupported markup type: {markup_type}")
