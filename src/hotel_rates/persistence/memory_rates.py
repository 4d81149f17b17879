from __future__ import annotations

import copy
from typing import Any, Dict, List, Optional, Sequence, Tuple

from hotel_rates.app.models.rates import BulkUpdateResult, RateRecord, SelectedCell
from hotel_rates.persistence.rate_items import (
    apply_fields,
    daily_items,
    new_item,
    rate_key,
    require_market,
)


class InMemoryRates:
    def __init__(self) -> None:
        self._data: Dict[Tuple[str, str], Dict[str, Any]] = {}

    def create_rate(self, hotel_id: str, record: RateRecord) -> dict:
        created = updated = 0
        for item in daily_items(hotel_id, record):
            key = (hotel_id, item["rateKey"])
            if key in self._data:
                updated += 1
            else:
                created += 1
            self._data[key] = item
        return {"created": created, "updated": updated}

    def get_rates(self, hotel_id: str, market: Optional[str] = None) -> List[dict]:
        items = [
            copy.deepcopy(item)
            for (item_hotel, _), item in sorted(self._data.items())
            if item_hotel == hotel_id and (market is None or item.get("market") == market)
        ]
        return items

    def bulk_update_by_dates(
        self,
        hotel_id: str,
        cells: Sequence[SelectedCell],
        fields: Dict[str, Any],
        market_id: Optional[str],
    ) -> BulkUpdateResult:
        market_id = require_market(market_id)
        result = BulkUpdateResult()
        for cell in cells:
            key = (hotel_id, rate_key(market_id, cell.date, cell.room_type_id, cell.meal_plan_id))
            item = self._data.get(key)
            if item is None:
                item = new_item(hotel_id, cell, market_id)
                result.created += 1
            else:
                result.updated += 1
            self._data[key] = apply_fields(item, fields)
        return result
