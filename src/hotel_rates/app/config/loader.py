from __future__ import annotations

from pathlib import Path
from typing import Any, Dict

import yaml

from hotel_rates.app.models.config import HotelConfig

SUPPORTED_SCHEMA_VERSIONS = {1}


def parse_hotel_config(data: Dict[str, Any]) -> HotelConfig:
    config = HotelConfig.model_validate(data)
    if config.schema_version not in SUPPORTED_SCHEMA_VERSIONS:
        raise ValueError(f"Unsupported schema_version {config.schema_version}")
    return config


def load_hotel_config(path: str | Path) -> HotelConfig:
    data: Dict[str, Any]
    with open(path, "r", encoding="utf-8") as handle:
        data = yaml.safe_load(handle) or {}
    return parse_hotel_config(data)
