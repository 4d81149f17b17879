from datetime import date
from decimal import Decimal

import boto3
import pytest
from botocore.exceptions import ClientError
from moto import mock_aws

from hotel_rates.app.models.rates import RateRecord, SelectedCell
from hotel_rates.persistence.dynamo_hotels import DynamoHotelConfigs, HotelConfigRecord
from hotel_rates.persistence.dynamo_rates import DynamoRates
from hotel_rates.util.errors import TransportError, ValidationFailure


@pytest.fixture()
def rates_table_name() -> str:
    return "hotel-rates"


@pytest.fixture()
def dynamodb_table(rates_table_name: str, monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("AWS_DEFAULT_REGION", "us-east-1")
    with mock_aws():
        resource = boto3.resource("dynamodb", region_name="us-east-1")
        table = resource.create_table(
            TableName=rates_table_name,
            KeySchema=[
                {"AttributeName": "hotelId", "KeyType": "HASH"},
                {"AttributeName": "rateKey", "KeyType": "RANGE"},
            ],
            AttributeDefinitions=[
                {"AttributeName": "hotelId", "AttributeType": "S"},
                {"AttributeName": "rateKey", "AttributeType": "S"},
            ],
            ProvisionedThroughput={"ReadCapacityUnits": 5, "WriteCapacityUnits": 5},
        )
        table.meta.client.get_waiter("table_exists").wait(TableName=rates_table_name)
        resource.create_table(
            TableName="hotel-configs",
            KeySchema=[
                {"AttributeName": "hotel_id", "KeyType": "HASH"},
                {"AttributeName": "config_version", "KeyType": "RANGE"},
            ],
            AttributeDefinitions=[
                {"AttributeName": "hotel_id", "AttributeType": "S"},
                {"AttributeName": "config_version", "AttributeType": "N"},
            ],
            ProvisionedThroughput={"ReadCapacityUnits": 5, "WriteCapacityUnits": 5},
        )
        yield table


def _record(**overrides) -> RateRecord:
    values = dict(
        room_type="room-1",
        meal_plan="meal-1",
        market="market-1",
        start_date=date(2024, 7, 1),
        end_date=date(2024, 7, 2),
        pricing_type="per_person",
        currency="EUR",
        allotment=5,
        min_stay=1,
        max_stay=30,
        release_days=0,
        stop_sale=False,
        single_stop=False,
        closed_to_arrival=False,
        closed_to_departure=False,
        child_order_pricing=[Decimal("10"), Decimal("20")],
        occupancy_pricing={1: Decimal("80.5"), 2: Decimal("120")},
    )
    values.update(overrides)
    return RateRecord(**values)


def test_create_rate_expands_days_and_counts_updates(rates_table_name: str, dynamodb_table) -> None:
    rates = DynamoRates(rates_table_name, region_name="us-east-1")

    assert rates.create_rate("hotel-1", _record()) == {"created": 2, "updated": 0}
    assert rates.create_rate("hotel-1", _record(end_date=date(2024, 7, 3))) == {"created": 1, "updated": 2}

    items = rates.get_rates("hotel-1", market="market-1")
    assert [item["date"] for item in items] == ["2024-07-01", "2024-07-02", "2024-07-03"]
    assert items[0]["occupancyPricing"] == {"1": Decimal("80.5"), "2": Decimal("120")}
    assert "startDate" not in items[0]


def test_get_rates_filters_by_market(rates_table_name: str, dynamodb_table) -> None:
    rates = DynamoRates(rates_table_name, region_name="us-east-1")
    rates.create_rate("hotel-1", _record())
    rates.create_rate("hotel-1", _record(market="market-2"))
    rates.create_rate("hotel-2", _record())

    assert len(rates.get_rates("hotel-1", market="market-2")) == 2
    assert len(rates.get_rates("hotel-1")) == 4
    assert rates.get_rates("hotel-3") == []


def test_bulk_update_merges_sparse_fields(rates_table_name: str, dynamodb_table) -> None:
    rates = DynamoRates(rates_table_name, region_name="us-east-1")
    rates.create_rate("hotel-1", _record())
    cells = [
        SelectedCell(date=date(2024, 7, 2), room_type_id="room-1", meal_plan_id="meal-1"),
        SelectedCell(date=date(2024, 7, 5), room_type_id="room-1", meal_plan_id="meal-1"),
    ]
    fields = {
        "pricingType": "per_person",
        "occupancyPricing": {2: Decimal("130")},
        "childOrderPricing": [None, Decimal("25")],
    }

    result = rates.bulk_update_by_dates("hotel-1", cells, fields, "market-1")

    assert (result.created, result.updated, result.split, result.total) == (1, 1, 0, 2)
    items = {item["date"]: item for item in rates.get_rates("hotel-1")}
    assert items["2024-07-02"]["occupancyPricing"] == {"1": Decimal("80.5"), "2": Decimal("130")}
    assert items["2024-07-02"]["childOrderPricing"] == [Decimal("10"), Decimal("25")]
    assert items["2024-07-02"]["allotment"] == 5
    assert items["2024-07-05"]["childOrderPricing"] == [Decimal("0"), Decimal("25")]
    assert items["2024-07-05"]["allotment"] == 10
    assert items["2024-07-01"]["occupancyPricing"]["2"] == Decimal("120")


def test_shorter_child_prices_keep_stored_tail(rates_table_name: str, dynamodb_table) -> None:
    rates = DynamoRates(rates_table_name, region_name="us-east-1")
    rates.create_rate("hotel-1", _record(child_order_pricing=[Decimal("10"), Decimal("20"), Decimal("30")]))
    cells = [SelectedCell(date=date(2024, 7, 1), room_type_id="room-1", meal_plan_id="meal-1")]

    rates.bulk_update_by_dates("hotel-1", cells, {"childOrderPricing": [Decimal("15")]}, "market-1")

    item = next(item for item in rates.get_rates("hotel-1") if item["date"] == "2024-07-01")
    assert item["childOrderPricing"] == [Decimal("15"), Decimal("20"), Decimal("30")]


def test_bulk_update_failure_keeps_earlier_dates(
    rates_table_name: str, dynamodb_table, monkeypatch: pytest.MonkeyPatch
) -> None:
    rates = DynamoRates(rates_table_name, region_name="us-east-1")
    put_item = rates.table.put_item
    calls = []

    def flaky_put_item(**kwargs):
        calls.append(kwargs)
        if len(calls) == 2:
            raise ClientError(
                {"Error": {"Code": "ProvisionedThroughputExceededException", "Message": "slow down"}},
                "PutItem",
            )
        return put_item(**kwargs)

    monkeypatch.setattr(rates.table, "put_item", flaky_put_item)
    cells = [
        SelectedCell(date=date(2024, 7, day), room_type_id="room-1", meal_plan_id="meal-1")
        for day in (1, 2, 3)
    ]

    with pytest.raises(TransportError) as excinfo:
        rates.bulk_update_by_dates("hotel-1", cells, {"stopSale": True}, "market-1")

    assert excinfo.value.operation == "bulk_update_by_dates"
    assert len(calls) == 2
    assert [item["date"] for item in rates.get_rates("hotel-1")] == ["2024-07-01"]


def test_bulk_update_requires_market(rates_table_name: str, dynamodb_table) -> None:
    rates = DynamoRates(rates_table_name, region_name="us-east-1")
    with pytest.raises(ValidationFailure):
        rates.bulk_update_by_dates("hotel-1", [], {"stopSale": True}, None)


def test_missing_table_raises_transport_error(dynamodb_table) -> None:
    rates = DynamoRates("missing-table", region_name="us-east-1")
    with pytest.raises(TransportError) as excinfo:
        rates.get_rates("hotel-1")
    assert excinfo.value.operation == "get_rates"


def test_hotel_configs_return_latest_version(dynamodb_table) -> None:
    configs = DynamoHotelConfigs("hotel-configs")
    assert configs.get_latest("hotel-1") is None
    configs.put(HotelConfigRecord(hotel_id="hotel-1", config_version=1, config_json='{"hotelId": "hotel-1"}'))
    configs.put(
        HotelConfigRecord(
            hotel_id="hotel-1",
            config_version=2,
            config_json='{"hotelId": "hotel-1", "markets": [{"id": "market-1"}]}',
        )
    )

    latest = configs.get_latest("hotel-1")

    assert latest is not None
    assert latest.config_version == 2
    assert latest.to_config().market("market-1") is not None
