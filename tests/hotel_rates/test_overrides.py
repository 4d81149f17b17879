import pytest

from hotel_rates.app.models.config import Market, PricingOverride, RoomType, Season
from hotel_rates.engine.overrides import (
    effective_min_adults,
    effective_pricing_type,
    effective_rules,
    resolve_effective,
    uses_multipliers,
)

ROOM = "room-abc123"


def _rooms() -> list[RoomType]:
    return [
        RoomType.model_validate(
            {
                "id": ROOM,
                "pricingType": "unit",
                "useMultipliers": True,
                "occupancy": {"minAdults": 1},
            }
        )
    ]


def test_room_values_apply_without_overrides() -> None:
    assert effective_pricing_type(ROOM, _rooms(), None) == "unit"
    assert effective_min_adults(ROOM, _rooms(), None) == 1


def test_unknown_room_returns_defaults() -> None:
    assert effective_pricing_type("missing", _rooms(), None) == "unit"
    assert effective_min_adults("missing", [], None) == 1


def test_room_without_pricing_type_defaults_to_unit() -> None:
    rooms = [RoomType(id=ROOM)]
    assert effective_pricing_type(ROOM, rooms, None) == "unit"
    assert effective_min_adults(ROOM, rooms, None) == 1


def test_season_override_beats_market_override() -> None:
    market = Market(
        id="m1",
        pricing_overrides=[
            PricingOverride(room_type=ROOM, use_pricing_type_override=True, pricing_type="per_person")
        ],
    )
    season = Season(
        id="s1",
        pricing_overrides=[
            PricingOverride(room_type=ROOM, use_pricing_type_override=True, pricing_type="unit")
        ],
    )

    assert effective_pricing_type(ROOM, _rooms(), market) == "per_person"
    assert effective_pricing_type(ROOM, _rooms(), market, season) == "unit"


def test_override_without_flag_is_ignored() -> None:
    market = Market(
        id="m1",
        pricing_overrides=[
            PricingOverride(room_type=ROOM, use_min_adults_override=False, min_adults=3)
        ],
    )
    assert effective_min_adults(ROOM, _rooms(), market) == 1


def test_scalars_resolve_independently() -> None:
    market = Market(
        id="m1",
        pricing_overrides=[
            PricingOverride(room_type=ROOM, use_min_adults_override=True, min_adults=2),
        ],
    )
    season = Season(
        id="s1",
        pricing_overrides=[
            PricingOverride(room_type=ROOM, use_pricing_type_override=True, pricing_type="per_person"),
        ],
    )

    rules = effective_rules(ROOM, _rooms(), market, season)

    assert rules.pricing_type == "per_person"
    assert rules.min_adults == 2
    assert rules.uses_multipliers is True


def test_override_references_can_be_populated_objects() -> None:
    market = Market.model_validate(
        {
            "id": "m1",
            "pricingOverrides": [
                {"roomType": {"_id": ROOM}, "useMinAdultsOverride": True, "minAdults": 2}
            ],
        }
    )
    assert effective_min_adults(ROOM, _rooms(), market) == 2


def test_multipliers_only_apply_to_per_person() -> None:
    assert uses_multipliers(ROOM, _rooms(), None) is False


def test_unknown_scalar_raises() -> None:
    with pytest.raises(KeyError):
        resolve_effective("max_stay", ROOM, _rooms(), None)
