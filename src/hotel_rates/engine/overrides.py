"""Effective pricing rules for a room type.

Each scalar walks the same chain: the room type's own value, then a flagged
market override, then a flagged season override. The last match wins, and
scalars are resolved independently of each other.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, Optional

from hotel_rates.app.models.config import Market, PricingOverride, RoomType, Season

PRICING_TYPE = "pricing_type"
MIN_ADULTS = "min_adults"

DEFAULT_PRICING_TYPE = "unit"
DEFAULT_MIN_ADULTS = 1


@dataclass(frozen=True)
class _Scalar:
    default: Any
    flag: str
    base: Callable[[RoomType], Any]


SCALARS: Dict[str, _Scalar] = {
    PRICING_TYPE: _Scalar(
        default=DEFAULT_PRICING_TYPE,
        flag="use_pricing_type_override",
        base=lambda room: room.pricing_type or DEFAULT_PRICING_TYPE,
    ),
    MIN_ADULTS: _Scalar(
        default=DEFAULT_MIN_ADULTS,
        flag="use_min_adults_override",
        base=lambda room: room.occupancy.min_adults or DEFAULT_MIN_ADULTS,
    ),
}


@dataclass(frozen=True)
class EffectiveRules:
    room_type_id: str
    pricing_type: str
    min_adults: int
    uses_multipliers: bool


def _find_room(room_types: Iterable[RoomType], room_type_id: str) -> Optional[RoomType]:
    return next((room for room in room_types if room.id == room_type_id), None)


def _flagged_override(
    overrides: Iterable[PricingOverride], room_type_id: str, scalar_name: str
) -> Optional[Any]:
    scalar = SCALARS[scalar_name]
    for override in overrides:
        if override.room_type == room_type_id and getattr(override, scalar.flag):
            return getattr(override, scalar_name)
    return None


def resolve_effective(
    scalar_name: str,
    room_type_id: str,
    room_types: Iterable[RoomType],
    market: Optional[Market],
    season: Optional[Season] = None,
) -> Any:
    if scalar_name not in SCALARS:
        raise KeyError(f"unknown scalar: {scalar_name}")
    scalar = SCALARS[scalar_name]
    room = _find_room(room_types, room_type_id)
    if room is None:
        return scalar.default

    value = scalar.base(room)
    if market is not None:
        market_value = _flagged_override(market.pricing_overrides, room_type_id, scalar_name)
        if market_value is not None:
            value = market_value
    if season is not None:
        season_value = _flagged_override(season.pricing_overrides, room_type_id, scalar_name)
        if season_value is not None:
            value = season_value
    return value


def effective_pricing_type(
    room_type_id: str,
    room_types: Iterable[RoomType],
    market: Optional[Market],
    season: Optional[Season] = None,
) -> str:
    return resolve_effective(PRICING_TYPE, room_type_id, room_types, market, season)


def effective_min_adults(
    room_type_id: str,
    room_types: Iterable[RoomType],
    market: Optional[Market],
    season: Optional[Season] = None,
) -> int:
    return resolve_effective(MIN_ADULTS, room_type_id, room_types, market, season)


def effective_rules(
    room_type_id: str,
    room_types: Iterable[RoomType],
    market: Optional[Market],
    season: Optional[Season] = None,
) -> EffectiveRules:
    room_types = list(room_types)
    pricing_type = effective_pricing_type(room_type_id, room_types, market, season)
    room = _find_room(room_types, room_type_id)
    return EffectiveRules(
        room_type_id=room_type_id,
        pricing_type=pricing_type,
        min_adults=effective_min_adults(room_type_id, room_types, market, season),
        uses_multipliers=pricing_type == "per_person" and room is not None and room.use_multipliers,
    )


def uses_multipliers(
    room_type_id: str,
    room_types: Iterable[RoomType],
    market: Optional[Market],
    season: Optional[Season] = None,
) -> bool:
    return effective_rules(room_type_id, room_types, market, season).uses_multipliers
