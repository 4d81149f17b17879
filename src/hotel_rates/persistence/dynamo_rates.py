from __future__ import annotations

from typing import Any, Dict, List, Optional, Sequence

import boto3
from boto3.dynamodb.conditions import Attr, Key
from botocore.exceptions import BotoCoreError, ClientError

from hotel_rates.app.models.rates import BulkUpdateResult, RateRecord, SelectedCell
from hotel_rates.persistence.rate_items import (
    apply_fields,
    daily_items,
    new_item,
    rate_key,
    require_market,
)
from hotel_rates.util.errors import TransportError
from hotel_rates.util.logging import get_logger, log_event

logger = get_logger(__name__)


class DynamoRates:
    def __init__(self, table_name: str, *, region_name: Optional[str] = None) -> None:
        self.table = boto3.resource("dynamodb", region_name=region_name).Table(table_name)

    def create_rate(self, hotel_id: str, record: RateRecord) -> dict:
        created = updated = 0
        try:
            for item in daily_items(hotel_id, record):
                response = self.table.put_item(Item=item, ReturnValues="ALL_OLD")
                if response.get("Attributes"):
                    updated += 1
                else:
                    created += 1
        except (BotoCoreError, ClientError) as exc:
            raise TransportError("create_rate", str(exc)) from exc
        return {"created": created, "updated": updated}

    def get_rates(self, hotel_id: str, market: Optional[str] = None) -> List[dict]:
        query: Dict[str, Any] = {"KeyConditionExpression": Key("hotelId").eq(hotel_id)}
        if market:
            query["FilterExpression"] = Attr("market").eq(market)
        items: List[dict] = []
        try:
            while True:
                response = self.table.query(**query)
                items.extend(response.get("Items", []))
                last_key = response.get("LastEvaluatedKey")
                if not last_key:
                    break
                query["ExclusiveStartKey"] = last_key
        except (BotoCoreError, ClientError) as exc:
            raise TransportError("get_rates", str(exc)) from exc
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
        try:
            for cell in cells:
                key = {
                    "hotelId": hotel_id,
                    "rateKey": rate_key(market_id, cell.date, cell.room_type_id, cell.meal_plan_id),
                }
                item = self.table.get_item(Key=key).get("Item")
                is_new = item is None
                if is_new:
                    item = new_item(hotel_id, cell, market_id)
                self.table.put_item(Item=apply_fields(item, fields))
                if is_new:
                    result.created += 1
                else:
                    result.updated += 1
        except (BotoCoreError, ClientError) as exc:
            # cells before the failing one stay written; there is no rollback
            log_event(
                logger,
                "bulk_update_partial",
                hotel_id=hotel_id,
                created=result.created,
                updated=result.updated,
                remaining=len(cells) - result.total,
                error=str(exc),
            )
            raise TransportError("bulk_update_by_dates", str(exc)) from exc
        return result
