"""Daily rate items shared by the in-memory and DynamoDB stores.

One item per (market, date, room type, meal plan), keyed by ``hotelId`` and
``rateKey``. Stored numbers stay ``Decimal`` and map keys are strings.
"""

from __future__ import annotations

import datetime as dt
from datetime import timedelta
from decimal import Decimal
from typing import Any, Dict, List, Optional

from hotel_rates.app.models.rates import RateRecord, Restrictions, SelectedCell
from hotel_rates.util.errors import ValidationFailure


def rate_key(market_id: str, day: dt.date, room_type_id: str, meal_plan_id: str) -> str:
    return f"{market_id}#{day.isoformat()}#{room_type_id}#{meal_plan_id}"


def storable(value: Any) -> Any:
    if isinstance(value, dict):
        return {str(key): storable(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [storable(item) for item in value]
    if isinstance(value, (dt.date, dt.datetime)):
        return value.isoformat()
    if isinstance(value, float):
        return Decimal(str(value))
    return value


def daily_items(hotel_id: str, record: RateRecord) -> List[Dict[str, Any]]:
    if record.start_date is None or record.end_date is None:
        raise ValidationFailure("missing_period", "rate record needs a start and end date")
    payload = record.to_payload()
    payload.pop("startDate", None)
    payload.pop("endDate", None)
    items = []
    day = record.start_date
    while day <= record.end_date:
        item = storable(payload)
        item.update(
            hotelId=hotel_id,
            rateKey=rate_key(record.market, day, record.room_type, record.meal_plan),
            date=day.isoformat(),
        )
        items.append(item)
        day += timedelta(days=1)
    return items


def new_item(hotel_id: str, cell: SelectedCell, market_id: str) -> Dict[str, Any]:
    item = storable(Restrictions().model_dump(by_alias=True))
    item.update(
        hotelId=hotel_id,
        rateKey=rate_key(market_id, cell.date, cell.room_type_id, cell.meal_plan_id),
        date=cell.date.isoformat(),
        roomType=cell.room_type_id,
        mealPlan=cell.meal_plan_id,
        market=market_id,
        pricingType="unit",
    )
    return item


def apply_fields(item: Dict[str, Any], fields: Dict[str, Any]) -> Dict[str, Any]:
    """Merge a sparse field update into a stored item.

    Null child slots keep the stored price; an empty occupancy map clears it,
    otherwise occupancy keys are merged.
    """
    for key, value in storable(fields).items():
        if key == "childOrderPricing" and value:
            current = list(item.get(key) or [])
            merged = []
            for index, price in enumerate(value):
                if price is None:
                    price = current[index] if index < len(current) else Decimal("0")
                merged.append(price)
            item[key] = merged + current[len(value):]
        elif key == "occupancyPricing" and value:
            item[key] = {**(item.get(key) or {}), **value}
        else:
            item[key] = value
    return item


def require_market(market_id: Optional[str]) -> str:
    if not market_id:
        raise ValidationFailure("missing_market", "bulk updates need a market")
    return market_id
