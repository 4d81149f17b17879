from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Iterable, Optional, Sequence, Union

from hotel_rates.app.models.config import DateRange, Season

DEFAULT_PERIOD_DAYS = 30

DateLike = Union[date, str]


@dataclass(frozen=True)
class Period:
    start: date
    end: date
    source: str


def _as_date(value: DateLike) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(value[:10])


def nights_between(start: DateLike, end: DateLike) -> int:
    """Calendar days in the range, both ends included.

    This is one more than the check-in/check-out night count: 2024-01-01 to
    2024-01-03 is 3. Inverted ranges give 0.
    """
    days = (_as_date(end) - _as_date(start)).days + 1
    return days if days > 0 else 0


def latest_rate_date(rates: Iterable[dict]) -> Optional[date]:
    dates = [_as_date(rate["date"]) for rate in rates if rate.get("date")]
    return max(dates) if dates else None


def _latest_season_range(seasons: Sequence[Season]) -> Optional[DateRange]:
    latest: Optional[DateRange] = None
    for season in seasons:
        for date_range in season.date_ranges:
            if latest is None or date_range.end_date > latest.end_date:
                latest = date_range
    return latest


def suggest_next_period(
    last_rate_date: Optional[DateLike],
    seasons: Sequence[Season],
    today: Optional[date] = None,
) -> Period:
    window = timedelta(days=DEFAULT_PERIOD_DAYS - 1)
    if last_rate_date is not None:
        start = _as_date(last_rate_date) + timedelta(days=1)
        return Period(start=start, end=start + window, source="last_rate")
    season_range = _latest_season_range(seasons)
    if season_range is not None:
        return Period(start=season_range.start_date, end=season_range.end_date, source="season")
    start = today or date.today()
    return Period(start=start, end=start + window, source="today")


def detect_season(seasons: Sequence[Season], start: DateLike, end: DateLike) -> Optional[Season]:
    """First season with a single date range covering the whole selection."""
    start_date, end_date = _as_date(start), _as_date(end)
    for season in seasons:
        for date_range in season.date_ranges:
            if start_date >= date_range.start_date and end_date <= date_range.end_date:
                return season
    return None


def season_bounds(seasons: Sequence[Season]) -> tuple[Optional[date], Optional[date]]:
    starts = [item.start_date for season in seasons for item in season.date_ranges]
    ends = [item.end_date for season in seasons for item in season.date_ranges]
    return (min(starts) if starts else None, max(ends) if ends else None)
