from __future__ import annotations

import datetime as dt
from decimal import Decimal
from typing import Dict, List, Optional

from pydantic import Field

from hotel_rates.app.models.config import CamelModel, PricingType


class Restrictions(CamelModel):
    allotment: int = 10
    min_stay: int = 1
    max_stay: int = 30
    release_days: int = 0
    stop_sale: bool = False
    single_stop: bool = False
    closed_to_arrival: bool = False
    closed_to_departure: bool = False


class RateRecord(CamelModel):
    """Persisted rate for one (room type, meal plan, market, period)."""

    room_type: str
    meal_plan: str
    market: str
    season: Optional[str] = None
    start_date: Optional[dt.date] = None
    end_date: Optional[dt.date] = None
    pricing_type: PricingType
    currency: str
    allotment: int
    min_stay: int
    max_stay: int
    release_days: int
    stop_sale: bool
    single_stop: bool
    closed_to_arrival: bool
    closed_to_departure: bool
    price_per_night: Decimal = Decimal("0")
    extra_adult: Decimal = Decimal("0")
    single_supplement: Decimal = Decimal("0")
    extra_infant: Decimal = Decimal("0")
    child_order_pricing: List[Decimal] = Field(default_factory=list)
    occupancy_pricing: Dict[int, Decimal] = Field(default_factory=dict)

    def to_payload(self) -> dict:
        return self.model_dump(by_alias=True, exclude_none=True)


class SelectedCell(CamelModel):
    date: dt.date
    room_type_id: str
    meal_plan_id: str


class BulkUpdateResult(CamelModel):
    created: int = 0
    updated: int = 0
    split: int = 0

    @property
    def total(self) -> int:
        return self.created + self.updated + self.split
