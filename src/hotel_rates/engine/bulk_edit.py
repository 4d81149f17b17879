"""Bulk edit: expand a sparse price delta across a selection of calendar cells.

Unset inputs are ``None`` and never mean zero. Each qualifying
(room type, meal plan) pair becomes one write covering every selected date,
and writes are issued one after another so a failing pair does not stop the
rest.
"""

from __future__ import annotations

import datetime as dt
import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Dict, List, Optional, Sequence

from hotel_rates.app.models.config import HotelConfig, Market, RoomType, Season
from hotel_rates.app.models.rates import SelectedCell
from hotel_rates.engine.cells import ZERO, RateGrid
from hotel_rates.engine.overrides import EffectiveRules, effective_rules
from hotel_rates.util.errors import TransportError
from hotel_rates.util.logging import get_logger, log_event, short_id
from hotel_rates.util.metrics import CloudWatchMetrics

logger = get_logger(__name__)

STATUS_APPLIED = "applied"
STATUS_NOTHING_TO_APPLY = "nothing_to_apply"
STATUS_FAILED = "failed"

ALLOTMENT_MODES = {"set", "increase", "decrease"}


@dataclass
class BulkPriceEntry:
    pricing_type: str = "unit"
    price_per_night: Optional[Decimal] = None
    extra_adult: Optional[Decimal] = None
    extra_infant: Optional[Decimal] = None
    single_supplement: Optional[Decimal] = None
    child_order_pricing: List[Optional[Decimal]] = field(default_factory=list)
    occupancy_pricing: Dict[int, Optional[Decimal]] = field(default_factory=dict)

    def has_child_price(self) -> bool:
        return any(price is not None for price in self.child_order_pricing)

    def set_occupancy(self) -> Dict[int, Decimal]:
        return {count: price for count, price in self.occupancy_pricing.items() if price is not None}


def new_bulk_entry(room_type: Optional[RoomType], pricing_type: str) -> BulkPriceEntry:
    max_children = room_type.max_children if room_type else 2
    max_adults = room_type.max_adults if room_type else 4
    return BulkPriceEntry(
        pricing_type=pricing_type,
        child_order_pricing=[None] * max_children,
        occupancy_pricing={count: None for count in range(1, max_adults + 1)},
    )


def new_bulk_buffer(
    config: HotelConfig, market: Optional[Market], season: Optional[Season] = None
) -> RateGrid[BulkPriceEntry]:
    def factory(room_type_id: str, meal_plan_id: str) -> BulkPriceEntry:
        rules = effective_rules(room_type_id, config.room_types, market, season)
        return new_bulk_entry(config.room_type(room_type_id), rules.pricing_type)

    return RateGrid(factory)


def has_any_value(entry: BulkPriceEntry, rules: EffectiveRules) -> bool:
    if rules.uses_multipliers:
        return entry.price_per_night is not None
    extras = entry.extra_infant is not None or entry.has_child_price()
    if rules.pricing_type == "per_person":
        return bool(entry.set_occupancy()) or extras
    return (
        entry.price_per_night is not None
        or entry.extra_adult is not None
        or entry.single_supplement is not None
        or extras
    )


def build_price_fields(entry: BulkPriceEntry, rules: EffectiveRules) -> Dict[str, Any]:
    fields: Dict[str, Any] = {"pricingType": rules.pricing_type}
    if rules.uses_multipliers:
        if entry.price_per_night is not None:
            fields["pricePerNight"] = entry.price_per_night
        fields["occupancyPricing"] = {}
        fields["childOrderPricing"] = []
        fields["extraInfant"] = ZERO
        fields["extraAdult"] = ZERO
        fields["singleSupplement"] = ZERO
        return fields

    if rules.pricing_type == "per_person":
        occupancy = entry.set_occupancy()
        if occupancy:
            fields["occupancyPricing"] = occupancy
        fields["pricePerNight"] = ZERO
        fields["extraAdult"] = ZERO
        fields["singleSupplement"] = ZERO
    else:
        if entry.price_per_night is not None:
            fields["pricePerNight"] = entry.price_per_night
        if entry.extra_adult is not None:
            fields["extraAdult"] = entry.extra_adult
        if entry.single_supplement is not None:
            fields["singleSupplement"] = entry.single_supplement

    if entry.extra_infant is not None:
        fields["extraInfant"] = entry.extra_infant
    if entry.has_child_price():
        # unset slots stay null so the collaborator keeps their stored value
        fields["childOrderPricing"] = list(entry.child_order_pricing)
    return fields


def distinct_dates(cells: Sequence[SelectedCell]) -> List[dt.date]:
    return sorted({cell.date for cell in cells})


@dataclass
class PairWrite:
    room_type_id: str
    meal_plan_id: str
    cells: List[SelectedCell]
    fields: Dict[str, Any]


@dataclass
class PairFailure:
    room_type_id: str
    meal_plan_id: str
    message: str


@dataclass
class BulkEditOutcome:
    status: str
    total_updates: int = 0
    writes_attempted: int = 0
    failures: List[PairFailure] = field(default_factory=list)

    @property
    def error_count(self) -> int:
        return len(self.failures)

    @property
    def first_error(self) -> Optional[str]:
        return self.failures[0].message if self.failures else None


def plan_price_writes(
    buffer: RateGrid[BulkPriceEntry],
    selected_cells: Sequence[SelectedCell],
    config: HotelConfig,
    market: Optional[Market],
    season: Optional[Season] = None,
) -> List[PairWrite]:
    dates = distinct_dates(selected_cells)
    selected_pairs = {(cell.room_type_id, cell.meal_plan_id) for cell in selected_cells}
    writes: List[PairWrite] = []
    for room_type_id in buffer.room_ids():
        # rules are resolved fresh for every plan; overrides depend on the selection
        rules = effective_rules(room_type_id, config.room_types, market, season)
        for meal_plan_id, entry in buffer.row(room_type_id).items():
            if (room_type_id, meal_plan_id) not in selected_pairs:
                continue
            if not has_any_value(entry, rules):
                continue
            cells = [
                SelectedCell(date=day, room_type_id=room_type_id, meal_plan_id=meal_plan_id)
                for day in dates
            ]
            writes.append(
                PairWrite(
                    room_type_id=room_type_id,
                    meal_plan_id=meal_plan_id,
                    cells=cells,
                    fields=build_price_fields(entry, rules),
                )
            )
    return writes


def submit_price_writes(
    rates_client: Any,
    hotel_id: str,
    writes: Sequence[PairWrite],
    market_id: Optional[str],
    *,
    metrics: Optional[CloudWatchMetrics] = None,
) -> BulkEditOutcome:
    if not writes:
        log_event(logger, "bulk_edit_nothing_to_apply", hotel_id=hotel_id)
        return BulkEditOutcome(status=STATUS_NOTHING_TO_APPLY)

    outcome = BulkEditOutcome(status=STATUS_APPLIED)
    for write in writes:
        outcome.writes_attempted += 1
        try:
            result = rates_client.bulk_update_by_dates(hotel_id, write.cells, write.fields, market_id)
        except Exception as exc:
            outcome.failures.append(
                PairFailure(room_type_id=write.room_type_id, meal_plan_id=write.meal_plan_id, message=str(exc))
            )
            log_event(
                logger,
                "bulk_edit_pair_failed",
                level=logging.ERROR,
                hotel_id=hotel_id,
                room_type=short_id(write.room_type_id),
                meal_plan=short_id(write.meal_plan_id),
                error=str(exc),
                error_type=type(exc).__name__,
            )
            if not isinstance(exc, TransportError):
                logger.error("unexpected bulk write failure", exc_info=exc)
            continue
        outcome.total_updates += result.total

    if outcome.failures and outcome.total_updates == 0:
        outcome.status = STATUS_FAILED
    if metrics:
        metrics.record_rates_written(hotel_id=hotel_id, count=outcome.total_updates)
        if outcome.failures:
            metrics.record_write_failures(
                hotel_id=hotel_id, operation="bulk_update_by_dates", failures=outcome.error_count
            )
    log_event(
        logger,
        "bulk_edit_applied",
        hotel_id=hotel_id,
        writes=outcome.writes_attempted,
        total_updates=outcome.total_updates,
        errors=outcome.error_count,
    )
    return outcome


def apply_bulk_price_edit(
    rates_client: Any,
    config: HotelConfig,
    buffer: RateGrid[BulkPriceEntry],
    selected_cells: Sequence[SelectedCell],
    market: Optional[Market],
    season: Optional[Season] = None,
    *,
    metrics: Optional[CloudWatchMetrics] = None,
) -> BulkEditOutcome:
    writes = plan_price_writes(buffer, selected_cells, config, market, season)
    return submit_price_writes(
        rates_client,
        config.hotel_id,
        writes,
        market.id if market else None,
        metrics=metrics,
    )


def calculate_allotment(current: int, mode: str, value: Optional[int]) -> int:
    if mode not in ALLOTMENT_MODES:
        raise ValueError(f"unsupported allotment mode: {mode}")
    value = value or 0
    if mode == "increase":
        return current + value
    if mode == "decrease":
        return max(0, current - value)
    return value


@dataclass
class InventoryEdit:
    allotment_mode: str = "set"
    allotment_value: int = 10
    min_stay: int = 1
    release_days: int = 0

    def has_changes(self) -> bool:
        return self.allotment_value > 0 or self.min_stay > 1 or self.release_days > 0

    def fields(self) -> Dict[str, Any]:
        # the calendar does not know stored allotments, so modes apply to zero
        return {
            "allotment": calculate_allotment(0, self.allotment_mode, self.allotment_value),
            "minStay": self.min_stay,
            "releaseDays": self.release_days,
        }


@dataclass
class RestrictionEdit:
    stop_sale: bool = False
    single_stop: bool = False
    closed_to_arrival: bool = False
    closed_to_departure: bool = False

    def has_changes(self) -> bool:
        return self.stop_sale or self.single_stop or self.closed_to_arrival or self.closed_to_departure

    def fields(self) -> Dict[str, Any]:
        return {
            "stopSale": self.stop_sale,
            "singleStop": self.single_stop,
            "closedToArrival": self.closed_to_arrival,
            "closedToDeparture": self.closed_to_departure,
        }


def has_inventory_changes(edit: InventoryEdit) -> bool:
    return edit.has_changes()


def has_restriction_changes(edit: RestrictionEdit) -> bool:
    return edit.has_changes()


def apply_cell_edit(
    rates_client: Any,
    hotel_id: str,
    selected_cells: Sequence[SelectedCell],
    edit: InventoryEdit | RestrictionEdit,
    market_id: Optional[str],
    *,
    metrics: Optional[CloudWatchMetrics] = None,
) -> BulkEditOutcome:
    """One write of inventory or restriction fields across the whole selection."""
    if not selected_cells:
        return BulkEditOutcome(status=STATUS_NOTHING_TO_APPLY)
    outcome = BulkEditOutcome(status=STATUS_APPLIED, writes_attempted=1)
    try:
        result = rates_client.bulk_update_by_dates(hotel_id, list(selected_cells), edit.fields(), market_id)
    except TransportError as exc:
        outcome.status = STATUS_FAILED
        outcome.failures.append(PairFailure(room_type_id="", meal_plan_id="", message=str(exc)))
        log_event(logger, "bulk_cell_edit_failed", level=logging.ERROR, hotel_id=hotel_id, error=str(exc))
        if metrics:
            metrics.record_write_failures(hotel_id=hotel_id, operation="bulk_update_by_dates", failures=1)
        return outcome
    outcome.total_updates = result.total
    if metrics:
        metrics.record_rates_written(hotel_id=hotel_id, count=outcome.total_updates)
    log_event(logger, "bulk_cell_edit_applied", hotel_id=hotel_id, total_updates=outcome.total_updates)
    return outcome


def preview_changes(
    buffer: RateGrid[BulkPriceEntry],
    config: HotelConfig,
    market: Optional[Market],
    season: Optional[Season] = None,
) -> List[Dict[str, Any]]:
    changes: List[Dict[str, Any]] = []
    for room_type_id, meal_plan_id, entry in buffer.items():
        rules = effective_rules(room_type_id, config.room_types, market, season)
        if not has_any_value(entry, rules):
            continue
        room = config.room_type(room_type_id)
        meal = config.meal_plan(meal_plan_id)
        changes.append(
            {
                "roomCode": (room.code if room else None) or short_id(room_type_id),
                "mealPlanCode": (meal.code if meal else None) or short_id(meal_plan_id),
                "pricingType": rules.pricing_type,
                "fields": build_price_fields(entry, rules),
            }
        )
    return changes


def selection_summary(selected_cells: Sequence[SelectedCell]) -> Dict[str, int]:
    return {
        "totalCells": len(selected_cells),
        "roomTypes": len({cell.room_type_id for cell in selected_cells}),
        "mealPlans": len({cell.meal_plan_id for cell in selected_cells}),
        "days": len({cell.date for cell in selected_cells}),
    }
