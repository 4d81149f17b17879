"""Map an edit cell onto the persisted shape of its pricing model.

Three models share one record: flat unit prices, a per-person occupancy
table, and a per-person multiplier table where ``price_per_night`` is the
table's base price. Fields owned by the other models are always zeroed.
"""

from __future__ import annotations

from datetime import date
from typing import Optional

from hotel_rates.app.models.rates import RateRecord, Restrictions
from hotel_rates.engine.cells import OCCUPANCY_KEYS, ZERO, RateCell, RateGrid
from hotel_rates.engine.overrides import EffectiveRules


def has_usable_price(
    cell: Optional[RateCell],
    pricing_type: str,
    uses_multipliers: bool,
    min_adults: int,
) -> bool:
    if cell is None:
        return False
    if uses_multipliers:
        return cell.price_per_night > 0
    if pricing_type == "per_person":
        # lowest allowed occupancy and the one above it must both be priced
        return cell.occupancy(min_adults) > 0 and cell.occupancy(min_adults + 1) > 0
    return cell.price_per_night > 0


def cell_is_usable(cell: Optional[RateCell], rules: EffectiveRules) -> bool:
    return has_usable_price(cell, rules.pricing_type, rules.uses_multipliers, rules.min_adults)


def room_has_prices(grid: RateGrid[RateCell], rules: EffectiveRules) -> bool:
    return any(cell_is_usable(cell, rules) for cell in grid.row(rules.room_type_id).values())


def build_rate_record(
    cell: RateCell,
    rules: EffectiveRules,
    *,
    meal_plan_id: str,
    market_id: str,
    currency: str,
    restrictions: Optional[Restrictions] = None,
    season_id: Optional[str] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
) -> RateRecord:
    restrictions = restrictions or Restrictions()
    record = RateRecord(
        room_type=rules.room_type_id,
        meal_plan=meal_plan_id,
        market=market_id,
        season=season_id or None,
        start_date=start_date,
        end_date=end_date,
        pricing_type=rules.pricing_type,
        currency=currency,
        allotment=restrictions.allotment,
        min_stay=restrictions.min_stay or 1,
        max_stay=restrictions.max_stay or 30,
        release_days=restrictions.release_days or 0,
        stop_sale=restrictions.stop_sale,
        single_stop=restrictions.single_stop,
        closed_to_arrival=restrictions.closed_to_arrival,
        closed_to_departure=restrictions.closed_to_departure,
    )

    if rules.uses_multipliers:
        # occupancy, child and infant prices are derived from the multiplier template downstream
        record.price_per_night = cell.price_per_night
    elif rules.pricing_type == "per_person":
        record.occupancy_pricing = {
            count: cell.occupancy(count) for count in OCCUPANCY_KEYS if cell.occupancy(count) > 0
        }
        record.child_order_pricing = list(cell.child_order_pricing)
        record.extra_infant = cell.extra_infant or ZERO
    else:
        record.price_per_night = cell.price_per_night
        record.single_supplement = cell.single_supplement or ZERO
        record.extra_adult = cell.extra_adult or ZERO
        record.child_order_pricing = list(cell.child_order_pricing)
        record.extra_infant = cell.extra_infant or ZERO
    return record
