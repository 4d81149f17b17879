from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

PricingType = Literal["unit", "per_person"]

DEFAULT_MAX_CHILDREN = 2
DEFAULT_MAX_ADULTS = 4


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


def _ref_id(value: object) -> object:
    # references may arrive populated ({"id": ...}) or as bare ids
    if isinstance(value, dict):
        return value.get("id") or value.get("_id")
    return value


class Occupancy(CamelModel):
    min_adults: Optional[int] = None
    max_adults: Optional[int] = None
    max_children: Optional[int] = None


class CombinationChild(CamelModel):
    age_group: str


class Combination(CamelModel):
    adults: int
    children: List[CombinationChild] = Field(default_factory=list)
    is_active: Optional[bool] = None


class MultiplierTemplate(CamelModel):
    combination_table: List[Combination] = Field(default_factory=list)


class RoomType(CamelModel):
    id: str
    code: Optional[str] = None
    pricing_type: Optional[PricingType] = None
    use_multipliers: bool = False
    occupancy: Occupancy = Field(default_factory=Occupancy)
    multiplier_template: Optional[MultiplierTemplate] = None
    price_adjustment: Decimal = Decimal("0")
    is_base_room: bool = False

    @property
    def max_children(self) -> int:
        if self.occupancy.max_children is None:
            return DEFAULT_MAX_CHILDREN
        return self.occupancy.max_children

    @property
    def max_adults(self) -> int:
        if self.occupancy.max_adults is None:
            return DEFAULT_MAX_ADULTS
        return self.occupancy.max_adults


class MealPlan(CamelModel):
    id: str
    code: Optional[str] = None
    price_adjustment: Decimal = Decimal("0")
    is_base_meal_plan: bool = False


class PricingOverride(CamelModel):
    room_type: str
    use_min_adults_override: bool = False
    min_adults: Optional[int] = None
    use_pricing_type_override: bool = False
    pricing_type: Optional[PricingType] = None

    @field_validator("room_type", mode="before")
    @classmethod
    def unwrap_room_type(cls, value: object) -> object:
        return _ref_id(value)


class ChildAgeGroup(CamelModel):
    code: str
    min_age: int
    max_age: int


class ChildAgeSettings(CamelModel):
    inherit_from_hotel: bool = True
    inherit_from_market: bool = True
    child_age_groups: List[ChildAgeGroup] = Field(default_factory=list)


class DateRange(CamelModel):
    start_date: date
    end_date: date


class _ScopedRules(CamelModel):
    pricing_overrides: List[PricingOverride] = Field(default_factory=list)
    child_age_settings: Optional[ChildAgeSettings] = None
    active_room_types: List[str] = Field(default_factory=list)
    active_meal_plans: List[str] = Field(default_factory=list)

    @field_validator("active_room_types", "active_meal_plans", mode="before")
    @classmethod
    def unwrap_refs(cls, value: object) -> object:
        if isinstance(value, list):
            return [_ref_id(item) for item in value]
        return value


class Market(_ScopedRules):
    id: str
    code: Optional[str] = None
    currency: str = "EUR"


class Season(_ScopedRules):
    id: str
    code: Optional[str] = None
    date_ranges: List[DateRange] = Field(default_factory=list)


class HotelPolicies(CamelModel):
    max_child_age: Optional[int] = None
    max_baby_age: Optional[int] = None


class HotelConfig(CamelModel):
    schema_version: int = 1
    hotel_id: str
    child_age_groups: List[ChildAgeGroup] = Field(default_factory=list)
    policies: HotelPolicies = Field(default_factory=HotelPolicies)
    room_types: List[RoomType] = Field(default_factory=list)
    meal_plans: List[MealPlan] = Field(default_factory=list)
    markets: List[Market] = Field(default_factory=list)
    seasons: List[Season] = Field(default_factory=list)

    @model_validator(mode="after")
    def single_base_room(self) -> "HotelConfig":
        base_rooms = [room.id for room in self.room_types if room.is_base_room]
        if len(base_rooms) > 1:
            raise ValueError(f"only one base room type allowed, got: {', '.join(base_rooms)}")
        return self

    def room_type(self, room_type_id: str) -> Optional[RoomType]:
        return next((room for room in self.room_types if room.id == room_type_id), None)

    def meal_plan(self, meal_plan_id: str) -> Optional[MealPlan]:
        return next((plan for plan in self.meal_plans if plan.id == meal_plan_id), None)

    def market(self, market_id: str | None) -> Optional[Market]:
        if not market_id:
            return None
        return next((market for market in self.markets if market.id == market_id), None)

    def season(self, season_id: str | None) -> Optional[Season]:
        if not season_id:
            return None
        return next((season for season in self.seasons if season.id == season_id), None)
