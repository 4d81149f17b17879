from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence

from hotel_rates.app.models.config import (
    ChildAgeGroup,
    Combination,
    HotelConfig,
    Market,
    RoomType,
    Season,
)

FALLBACK_AGE_RANGES = {
    "infant": "0-2",
    "first": "3-6",
    "second": "7-11",
    "third": "12-17",
}

DEFAULT_CHILD_MAX_AGE = 12
DEFAULT_INFANT_MAX_AGE = 2


@dataclass(frozen=True)
class AgeRange:
    min_age: int
    max_age: int

    def label(self) -> str:
        return f"{self.min_age}-{self.max_age}"


@dataclass(frozen=True)
class AgeSettings:
    child_max_age: int
    infant_max_age: int
    child_source: str
    infant_source: str


def _age_range_label(code: str, age_groups: Iterable[ChildAgeGroup]) -> str:
    group = next((item for item in age_groups if item.code == code), None)
    if group:
        return f"{group.min_age}-{group.max_age}"
    return FALLBACK_AGE_RANGES.get(code, code)


def format_combination(combo: Combination, age_groups: Optional[Sequence[ChildAgeGroup]] = None) -> str:
    """Label like ``"1+2 (0-2, 3-6)"``; unknown age groups fall back to fixed ranges."""
    children = combo.children or []
    if not children:
        return f"{combo.adults}"
    groups = list(age_groups or [])
    ranges = [_age_range_label(child.age_group, groups) for child in children]
    return f"{combo.adults}+{len(children)} ({', '.join(ranges)})"


def active_combinations(room_type: Optional[RoomType], min_adults: int = 1) -> List[Combination]:
    if room_type is None or room_type.multiplier_template is None:
        return []
    return [
        combo
        for combo in room_type.multiplier_template.combination_table
        if combo.is_active is not False and combo.adults >= min_adults
    ]


def _max_ages(groups: Sequence[ChildAgeGroup]) -> tuple[Optional[int], Optional[int]]:
    if not groups:
        return None, None
    infant = next((group for group in groups if group.code == "infant"), None)
    child_groups = [group for group in groups if group.code != "infant"]
    child_max = child_groups[-1].max_age if child_groups else None
    return child_max, infant.max_age if infant else None


def resolve_age_settings(
    hotel: HotelConfig, market: Optional[Market], season: Optional[Season] = None
) -> AgeSettings:
    hotel_child, hotel_infant = _max_ages(hotel.child_age_groups)
    child_max = hotel_child if hotel_child is not None else hotel.policies.max_child_age
    infant_max = hotel_infant if hotel_infant is not None else hotel.policies.max_baby_age
    child_max = DEFAULT_CHILD_MAX_AGE if child_max is None else child_max
    infant_max = DEFAULT_INFANT_MAX_AGE if infant_max is None else infant_max
    child_source = infant_source = "hotel"

    market_settings = market.child_age_settings if market else None
    if market_settings and not market_settings.inherit_from_hotel and market_settings.child_age_groups:
        market_child, market_infant = _max_ages(market_settings.child_age_groups)
        if market_child is not None:
            child_max, child_source = market_child, "market"
        if market_infant is not None:
            infant_max, infant_source = market_infant, "market"

    season_settings = season.child_age_settings if season else None
    if season_settings and not season_settings.inherit_from_market and season_settings.child_age_groups:
        season_child, season_infant = _max_ages(season_settings.child_age_groups)
        if season_child is not None:
            child_max, child_source = season_child, "season"
        if season_infant is not None:
            infant_max, infant_source = season_infant, "season"

    return AgeSettings(
        child_max_age=child_max,
        infant_max_age=infant_max,
        child_source=child_source,
        infant_source=infant_source,
    )


def market_age_groups(market: Optional[Market]) -> List[ChildAgeGroup]:
    settings = market.child_age_settings if market else None
    if settings and not settings.inherit_from_hotel and settings.child_age_groups:
        return list(settings.child_age_groups)
    return []


def market_age_ranges(market: Optional[Market]) -> tuple[AgeRange, AgeRange]:
    """Child and infant ranges shown next to bulk-edit inputs."""
    groups = market_age_groups(market)
    child_groups = [group for group in groups if group.code != "infant"]
    infant = next((group for group in groups if group.code == "infant"), None)
    child = (
        AgeRange(child_groups[0].min_age, child_groups[-1].max_age) if child_groups else AgeRange(3, 12)
    )
    return child, AgeRange(infant.min_age, infant.max_age) if infant else AgeRange(0, 2)
