#!/usr/bin/env python
from __future__ import annotations

import argparse
import json
from pathlib import Path
from typing import Any, Dict

import yaml

from hotel_rates.app.config.loader import load_hotel_config
from hotel_rates.app.models.requests import RatePeriodRequest
from hotel_rates.engine.rate_form import RateFormController
from hotel_rates.persistence.memory_rates import InMemoryRates


def load_edits(path: Path) -> RatePeriodRequest:
    with path.open("r", encoding="utf-8") as handle:
        data: Dict[str, Any] = yaml.safe_load(handle) or {}
    return RatePeriodRequest.model_validate(data)


def build_form(config_path: Path, edits_path: Path) -> RateFormController:
    config = load_hotel_config(config_path)
    edits = load_edits(edits_path)
    form = RateFormController(
        config,
        market_id=edits.market_id,
        season_id=edits.season_id,
        start_date=edits.start_date,
        end_date=edits.end_date,
    )
    if edits.start_date and edits.end_date and not edits.season_id:
        form.set_period(edits.start_date, edits.end_date)
    for entry in edits.prices:
        form.set_prices(
            entry.room_type_id,
            entry.meal_plan_id,
            **entry.model_dump(exclude={"room_type_id", "meal_plan_id"}),
        )
    for room_type_id, restrictions in edits.restrictions.items():
        form.restrictions[room_type_id] = restrictions
    if edits.propagate:
        form.on_base_cell_changed()
    return form


def main() -> None:
    parser = argparse.ArgumentParser(description="Compute rate payloads from a hotel config and price edits")
    parser.add_argument("--config", required=True, help="Path to hotel config YAML")
    parser.add_argument("--edits", required=True, help="Path to rate period edits YAML")
    parser.add_argument("--output", help="Write payloads to this JSON file instead of stdout")
    parser.add_argument(
        "--save",
        action="store_true",
        help="Also write the payloads to an in-memory store and print the daily items",
    )
    args = parser.parse_args()

    form = build_form(Path(args.config), Path(args.edits))
    payloads = [record.to_payload() for record in form.build_records()]
    output: Dict[str, Any] = {"hotelId": form.config.hotel_id, "records": payloads}
    if args.save:
        store = InMemoryRates()
        form.submit(store)
        output["items"] = store.get_rates(form.config.hotel_id)

    text = json.dumps(output, indent=2, default=str)
    if args.output:
        path = Path(args.output)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text, encoding="utf-8")
    else:
        print(text)


if __name__ == "__main__":
    main()
