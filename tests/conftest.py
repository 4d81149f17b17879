import sys
from pathlib import Path
from typing import Any, Dict

import pytest
from freezegun import freeze_time

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))
SRC_ROOT = PROJECT_ROOT / "src"
if str(SRC_ROOT) not in sys.path:
    sys.path.insert(0, str(SRC_ROOT))

from hotel_rates.app.models.config import HotelConfig  # noqa: E402

DEFAULT_ENV = {
    "AWS_ACCESS_KEY_ID": "test-access-key",
    "AWS_SECRET_ACCESS_KEY": "test-secret-key",
    "AWS_SESSION_TOKEN": "test-session",
    "AWS_DEFAULT_REGION": "us-east-1",
    "CLOUDWATCH_METRICS_ENABLED": "false",
}

STANDARD_ROOM = "room-standard-0001"
SUPERIOR_ROOM = "room-superior-0002"
FAMILY_ROOM = "room-family-0003"
MULTIPLIER_ROOM = "room-multi-0004"
ROOM_ONLY = "meal-room-only-01"
BED_BREAKFAST = "meal-breakfast-02"
MARKET_ES = "market-spain-01"
SUMMER = "season-summer-01"


def hotel_config_data() -> Dict[str, Any]:
    return {
        "schemaVersion": 1,
        "hotelId": "hotel-1",
        "policies": {"maxChildAge": 12, "maxBabyAge": 2},
        "roomTypes": [
            {
                "id": STANDARD_ROOM,
                "code": "DBL",
                "pricingType": "unit",
                "isBaseRoom": True,
                "occupancy": {"minAdults": 1, "maxAdults": 2, "maxChildren": 2},
            },
            {
                "id": SUPERIOR_ROOM,
                "code": "SUP",
                "pricingType": "unit",
                "priceAdjustment": "10",
                "occupancy": {"minAdults": 1, "maxAdults": 3, "maxChildren": 1},
            },
            {
                "id": FAMILY_ROOM,
                "code": "FAM",
                "pricingType": "per_person",
                "priceAdjustment": "20",
                "occupancy": {"minAdults": 2, "maxAdults": 4, "maxChildren": 3},
            },
            {
                "id": MULTIPLIER_ROOM,
                "code": "MUL",
                "pricingType": "per_person",
                "useMultipliers": True,
                "occupancy": {"minAdults": 1, "maxAdults": 3, "maxChildren": 2},
                "multiplierTemplate": {
                    "combinationTable": [
                        {"adults": 1, "children": []},
                        {"adults": 2, "children": [{"ageGroup": "infant"}, {"ageGroup": "first"}]},
                        {"adults": 3, "children": [], "isActive": False},
                    ]
                },
            },
        ],
        "mealPlans": [
            {"id": ROOM_ONLY, "code": "RO", "isBaseMealPlan": True},
            {"id": BED_BREAKFAST, "code": "BB", "priceAdjustment": "-5"},
        ],
        "markets": [{"id": MARKET_ES, "code": "ES", "currency": "EUR"}],
        "seasons": [
            {
                "id": SUMMER,
                "code": "SUMMER",
                "dateRanges": [{"startDate": "2024-06-01", "endDate": "2024-08-31"}],
            }
        ],
    }


@pytest.fixture(scope="session")
def project_root() -> Path:
    return PROJECT_ROOT


@pytest.fixture(autouse=True)
def _test_env(monkeypatch):
    for key, value in DEFAULT_ENV.items():
        monkeypatch.setenv(key, value)
    yield


@pytest.fixture
def hotel_config() -> HotelConfig:
    return HotelConfig.model_validate(hotel_config_data())


@pytest.fixture
def freezer():
    with freeze_time("2024-03-10T09:00:00Z") as frozen_datetime:
        yield frozen_datetime
