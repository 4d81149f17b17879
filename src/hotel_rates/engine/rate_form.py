from __future__ import annotations

import datetime as dt
import logging
from typing import Any, Dict, List, Optional

from hotel_rates.app.models.config import Combination, HotelConfig, MealPlan, RoomType
from hotel_rates.app.models.rates import RateRecord, Restrictions
from hotel_rates.engine.age_groups import AgeSettings, active_combinations, resolve_age_settings
from hotel_rates.engine.cells import RateCell, RateGrid, init_cell, seed_cell
from hotel_rates.engine.dates import Period, detect_season, latest_rate_date, suggest_next_period
from hotel_rates.engine.normalize import build_rate_record, cell_is_usable, room_has_prices
from hotel_rates.engine.overrides import EffectiveRules, effective_rules
from hotel_rates.engine.propagation import BaseCell, propagate_relative_prices, resolve_base_cell
from hotel_rates.util.errors import TransportError, ValidationFailure
from hotel_rates.util.logging import get_logger, log_event
from hotel_rates.util.metrics import CloudWatchMetrics

logger = get_logger(__name__)


class RateFormController:
    """State of the single-period rate form.

    Nothing recomputes on its own: callers invoke ``recompute`` after changing
    the market or season and ``on_base_cell_changed`` after editing the base
    cell.
    """

    def __init__(
        self,
        config: HotelConfig,
        *,
        market_id: Optional[str] = None,
        season_id: Optional[str] = None,
        start_date: Optional[dt.date] = None,
        end_date: Optional[dt.date] = None,
    ) -> None:
        self.config = config
        self.market = config.market(market_id)
        self.season = config.season(season_id)
        self.start_date = start_date
        self.end_date = end_date
        self.grid: RateGrid[RateCell] = RateGrid(self._new_cell)
        self.restrictions: Dict[str, Restrictions] = {}
        self._rules: Dict[str, EffectiveRules] = {}
        self.recompute()

    def _new_cell(self, room_type_id: str, meal_plan_id: str) -> RateCell:
        return init_cell(self.config.room_type(room_type_id), self.rules_for(room_type_id).pricing_type)

    def filtered_room_types(self) -> List[RoomType]:
        active = self._active_ids("active_room_types")
        if not active:
            return list(self.config.room_types)
        return [room for room in self.config.room_types if room.id in active]

    def filtered_meal_plans(self) -> List[MealPlan]:
        active = self._active_ids("active_meal_plans")
        if not active:
            return list(self.config.meal_plans)
        return [plan for plan in self.config.meal_plans if plan.id in active]

    def _active_ids(self, attribute: str) -> List[str]:
        if self.season and getattr(self.season, attribute):
            return getattr(self.season, attribute)
        if self.market and getattr(self.market, attribute):
            return getattr(self.market, attribute)
        return []

    def rules_for(self, room_type_id: str) -> EffectiveRules:
        if room_type_id not in self._rules:
            self._rules[room_type_id] = effective_rules(
                room_type_id, self.config.room_types, self.market, self.season
            )
        return self._rules[room_type_id]

    def recompute(self) -> None:
        self._rules = {
            room.id: effective_rules(room.id, self.config.room_types, self.market, self.season)
            for room in self.config.room_types
        }
        for room in self.filtered_room_types():
            pricing_type = self._rules[room.id].pricing_type
            for meal in self.filtered_meal_plans():
                existing = self.grid.get(room.id, meal.id)
                if existing is None:
                    self.grid.put(room.id, meal.id, init_cell(room, pricing_type))
                else:
                    seed_cell(existing, room, pricing_type)
            self.restrictions.setdefault(room.id, Restrictions())

    def select_market(self, market_id: Optional[str]) -> None:
        self.market = self.config.market(market_id)
        self.recompute()

    def select_season(self, season_id: Optional[str]) -> None:
        self.season = self.config.season(season_id)
        self.recompute()

    def set_period(self, start: dt.date, end: dt.date) -> None:
        self.start_date, self.end_date = start, end
        season = detect_season(self.config.seasons, start, end)
        if season is not None:
            self.season = season
        self.recompute()

    def set_prices(self, room_type_id: str, meal_plan_id: str, **prices: Any) -> RateCell:
        cell = self.grid.cell(room_type_id, meal_plan_id)
        occupancy = prices.pop("occupancy_pricing", None)
        for name, value in prices.items():
            setattr(cell, name, list(value) if isinstance(value, list) else value)
        if occupancy:
            cell.occupancy_pricing.update(occupancy)
        return seed_cell(cell, self.config.room_type(room_type_id), self.rules_for(room_type_id).pricing_type)

    def base_cell(self) -> Optional[BaseCell]:
        return resolve_base_cell(self.filtered_room_types(), self.filtered_meal_plans())

    def on_base_cell_changed(self) -> int:
        written = propagate_relative_prices(
            self.grid,
            self.filtered_room_types(),
            self.filtered_meal_plans(),
            pricing_type_for=lambda room_type_id: self.rules_for(room_type_id).pricing_type,
        )
        log_event(logger, "prices_propagated", level=logging.DEBUG, cells=written)
        return written

    def age_settings(self) -> AgeSettings:
        return resolve_age_settings(self.config, self.market, self.season)

    def combinations(self, room_type_id: str) -> List[Combination]:
        return active_combinations(
            self.config.room_type(room_type_id), self.rules_for(room_type_id).min_adults
        )

    def rooms_missing_prices(self) -> List[RoomType]:
        base = self.base_cell()
        rooms = [base.room_type] if base else self.filtered_room_types()
        return [room for room in rooms if not room_has_prices(self.grid, self.rules_for(room.id))]

    def _usable_pairs(self) -> List[tuple[RoomType, MealPlan, RateCell]]:
        pairs = []
        for room in self.filtered_room_types():
            rules = self.rules_for(room.id)
            for meal in self.filtered_meal_plans():
                cell = self.grid.get(room.id, meal.id)
                if cell_is_usable(cell, rules):
                    pairs.append((room, meal, cell))
        return pairs

    def can_submit(self) -> bool:
        if self.market is None or self.start_date is None or self.end_date is None:
            return False
        return not self.rooms_missing_prices() and bool(self._usable_pairs())

    def build_records(self) -> List[RateRecord]:
        if self.market is None:
            raise ValidationFailure("missing_market", "select a market before saving rates")
        if self.start_date is None or self.end_date is None:
            raise ValidationFailure("missing_period", "select a start and end date")
        if self.end_date < self.start_date:
            raise ValidationFailure("invalid_period", "end date is before start date")
        missing = self.rooms_missing_prices()
        if missing:
            codes = ", ".join(room.code or room.id for room in missing)
            raise ValidationFailure("missing_prices", f"no usable price for: {codes}")

        records = [
            build_rate_record(
                cell,
                self.rules_for(room.id),
                meal_plan_id=meal.id,
                market_id=self.market.id,
                currency=self.market.currency,
                restrictions=self.restrictions.get(room.id),
                season_id=self.season.id if self.season else None,
                start_date=self.start_date,
                end_date=self.end_date,
            )
            for room, meal, cell in self._usable_pairs()
        ]
        if not records:
            raise ValidationFailure("no_usable_prices", "enter at least one price")
        return records

    def submit(self, rates_client: Any, *, metrics: Optional[CloudWatchMetrics] = None) -> List[dict]:
        records = self.build_records()
        results = []
        for record in records:
            try:
                results.append(rates_client.create_rate(self.config.hotel_id, record))
            except TransportError:
                if metrics:
                    metrics.record_write_failures(
                        hotel_id=self.config.hotel_id, operation="create_rate", failures=1
                    )
                raise
        if metrics:
            metrics.record_rates_written(hotel_id=self.config.hotel_id, count=len(results))
        log_event(
            logger,
            "rate_period_saved",
            hotel_id=self.config.hotel_id,
            market=self.market.id if self.market else None,
            records=len(results),
        )
        return results

    def copy_first_meal_plan_to_all(self, room_type_id: str) -> int:
        meals = self.filtered_meal_plans()
        if not meals:
            return 0
        source = self.grid.cell(room_type_id, meals[0].id)
        for meal in meals[1:]:
            self.grid.put(room_type_id, meal.id, source.copy())
        return len(meals) - 1

    def copy_room_to_all(self, room_type_id: str) -> int:
        """Copy allotment, minimum stay and release days to every other room."""
        source = self.restrictions.setdefault(room_type_id, Restrictions())
        copied = 0
        for room in self.filtered_room_types():
            if room.id == room_type_id:
                continue
            target = self.restrictions.setdefault(room.id, Restrictions())
            target.allotment = source.allotment
            target.min_stay = source.min_stay
            target.release_days = source.release_days
            copied += 1
        return copied

    def suggest_period(self, rates_client: Any, today: Optional[dt.date] = None) -> Period:
        seasons = self.config.seasons
        rates: List[dict] = []
        if self.market is not None:
            try:
                rates = rates_client.get_rates(self.config.hotel_id, market=self.market.id)
            except TransportError as exc:
                log_event(
                    logger,
                    "last_rate_lookup_failed",
                    level=logging.WARNING,
                    hotel_id=self.config.hotel_id,
                    error=str(exc),
                )
                # a failed lookup falls straight back to the today window
                seasons = []
        period = suggest_next_period(latest_rate_date(rates), seasons, today)
        self.set_period(period.start, period.end)
        return period
