from __future__ import annotations

import datetime as dt
from decimal import Decimal
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field

from hotel_rates.app.models.rates import Restrictions, SelectedCell


class CellPrices(BaseModel):
    room_type_id: str
    meal_plan_id: str
    price_per_night: Decimal = Decimal("0")
    extra_adult: Decimal = Decimal("0")
    extra_infant: Decimal = Decimal("0")
    single_supplement: Decimal = Decimal("0")
    child_order_pricing: List[Decimal] = Field(default_factory=list)
    occupancy_pricing: Dict[int, Decimal] = Field(default_factory=dict)


class RatePeriodRequest(BaseModel):
    market_id: Optional[str] = None
    season_id: Optional[str] = None
    start_date: Optional[dt.date] = None
    end_date: Optional[dt.date] = None
    prices: List[CellPrices] = Field(default_factory=list)
    restrictions: Dict[str, Restrictions] = Field(default_factory=dict)
    propagate: bool = True


class RatePeriodResponse(BaseModel):
    hotel_id: str
    records: List[Dict[str, Any]]
    results: List[Dict[str, Any]] = Field(default_factory=list)


class BulkPriceInput(BaseModel):
    room_type_id: str
    meal_plan_id: str
    price_per_night: Optional[Decimal] = None
    extra_adult: Optional[Decimal] = None
    extra_infant: Optional[Decimal] = None
    single_supplement: Optional[Decimal] = None
    child_order_pricing: List[Optional[Decimal]] = Field(default_factory=list)
    occupancy_pricing: Dict[int, Optional[Decimal]] = Field(default_factory=dict)


class InventoryEditInput(BaseModel):
    allotment_mode: Literal["set", "increase", "decrease"] = "set"
    allotment_value: int = 10
    min_stay: int = 1
    release_days: int = 0


class RestrictionEditInput(BaseModel):
    stop_sale: bool = False
    single_stop: bool = False
    closed_to_arrival: bool = False
    closed_to_departure: bool = False


class BulkEditRequest(BaseModel):
    market_id: Optional[str] = None
    season_id: Optional[str] = None
    cells: List[SelectedCell]
    prices: List[BulkPriceInput] = Field(default_factory=list)
    inventory: Optional[InventoryEditInput] = None
    restrictions: Optional[RestrictionEditInput] = None


class BulkEditResponse(BaseModel):
    status: str
    total_updates: int
    writes_attempted: int
    error_count: int
    first_error: Optional[str] = None


class NextPeriodResponse(BaseModel):
    start_date: dt.date
    end_date: dt.date
    source: str
    nights: int
