from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Callable, Optional, Sequence

from hotel_rates.app.models.config import MealPlan, RoomType
from hotel_rates.engine.cells import RateCell, RateGrid, init_cell
from hotel_rates.util.logging import get_logger, log_event

CENT = Decimal("0.01")
HUNDRED = Decimal("100")

logger = get_logger(__name__)


@dataclass
class BaseCell:
    room_type: RoomType
    meal_plan: MealPlan


def resolve_base_room(room_types: Sequence[RoomType]) -> Optional[RoomType]:
    base_rooms = [room for room in room_types if room.is_base_room]
    if len(base_rooms) > 1:
        log_event(
            logger,
            "multiple_base_rooms",
            room_type_ids=[room.id for room in base_rooms],
            selected=base_rooms[0].id,
        )
    return base_rooms[0] if base_rooms else None


def resolve_base_meal_plan(
    meal_plans: Sequence[MealPlan], base_room: Optional[RoomType]
) -> Optional[MealPlan]:
    flagged = next((plan for plan in meal_plans if plan.is_base_meal_plan), None)
    if flagged:
        return flagged
    if base_room and meal_plans:
        return meal_plans[0]
    return None


def resolve_base_cell(
    room_types: Sequence[RoomType], meal_plans: Sequence[MealPlan]
) -> Optional[BaseCell]:
    base_room = resolve_base_room(room_types)
    base_meal_plan = resolve_base_meal_plan(meal_plans, base_room)
    if not base_room or not base_meal_plan:
        return None
    return BaseCell(room_type=base_room, meal_plan=base_meal_plan)


def apply_adjustments(price: Decimal, room_adjustment: Decimal, meal_adjustment: Decimal) -> Decimal:
    # room first, then meal plan; only the final value is rounded
    after_room = price * (1 + (room_adjustment or 0) / HUNDRED)
    after_meal = after_room * (1 + (meal_adjustment or 0) / HUNDRED)
    return after_meal.quantize(CENT, rounding=ROUND_HALF_UP)


def is_calculated_cell(base: Optional[BaseCell], room_type_id: str, meal_plan_id: str) -> bool:
    if base is None:
        return False
    return not (base.room_type.id == room_type_id and base.meal_plan.id == meal_plan_id)


def propagate_relative_prices(
    grid: RateGrid[RateCell],
    room_types: Sequence[RoomType],
    meal_plans: Sequence[MealPlan],
    *,
    pricing_type_for: Optional[Callable[[str], str]] = None,
) -> int:
    """Recompute every non-base cell from the base cell.

    Only base fields greater than zero spread; a zero base field leaves the
    target's value as it was. Returns the number of cells written.
    """
    base = resolve_base_cell(room_types, meal_plans)
    if base is None:
        return 0
    base_cell = grid.get(base.room_type.id, base.meal_plan.id)
    if base_cell is None or base_cell.price_per_night <= 0:
        return 0

    written = 0
    for room in room_types:
        for meal in meal_plans:
            if room.id == base.room_type.id and meal.id == base.meal_plan.id:
                continue
            target = grid.get(room.id, meal.id)
            if target is None:
                pricing_type = pricing_type_for(room.id) if pricing_type_for else room.pricing_type or "unit"
                target = init_cell(room, pricing_type)
                grid.put(room.id, meal.id, target)

            def adjust(value: Decimal) -> Decimal:
                return apply_adjustments(value, room.price_adjustment, meal.price_adjustment)

            target.price_per_night = adjust(base_cell.price_per_night)
            if base_cell.extra_adult > 0:
                target.extra_adult = adjust(base_cell.extra_adult)
            for index, child_price in enumerate(base_cell.child_order_pricing):
                if child_price > 0 and index < len(target.child_order_pricing):
                    target.child_order_pricing[index] = adjust(child_price)
            if base_cell.extra_infant > 0:
                target.extra_infant = adjust(base_cell.extra_infant)
            if base_cell.single_supplement > 0:
                target.single_supplement = adjust(base_cell.single_supplement)
            written += 1
    return written
