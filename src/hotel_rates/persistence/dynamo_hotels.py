from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Optional

import boto3
from boto3.dynamodb.conditions import Key

from hotel_rates.app.models.config import HotelConfig


@dataclass
class HotelConfigRecord:
    hotel_id: str
    config_version: int
    config_json: str

    def to_config(self) -> HotelConfig:
        return HotelConfig.model_validate_json(self.config_json)


class DynamoHotelConfigs:
    def __init__(self, table_name: str) -> None:
        self.table = boto3.resource("dynamodb").Table(table_name)

    def put(self, record: HotelConfigRecord) -> None:
        self.table.put_item(Item=record.__dict__)

    def get_latest(self, hotel_id: str) -> Optional[HotelConfigRecord]:
        response = self.table.query(
            KeyConditionExpression=Key("hotel_id").eq(hotel_id),
            ScanIndexForward=False,
            Limit=1,
        )
        items = response.get("Items", [])
        if not items:
            return None
        item = items[0]
        return HotelConfigRecord(
            hotel_id=item["hotel_id"],
            config_version=int(item["config_version"]),
            config_json=item["config_json"],
        )


class InMemoryHotelConfigs:
    def __init__(self) -> None:
        self._data: Dict[str, HotelConfigRecord] = {}

    def put(self, record: HotelConfigRecord) -> None:
        self._data[record.hotel_id] = record

    def get_latest(self, hotel_id: str) -> Optional[HotelConfigRecord]:
        return self._data.get(hotel_id)
