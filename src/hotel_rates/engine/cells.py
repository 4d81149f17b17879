from __future__ import annotations

from dataclasses import dataclass, field, replace
from decimal import Decimal
from typing import Callable, Dict, Generic, Iterator, Optional, Tuple, TypeVar

from hotel_rates.app.models.config import RoomType

ZERO = Decimal("0")
OCCUPANCY_KEYS = range(1, 11)

T = TypeVar("T")


def empty_occupancy() -> Dict[int, Decimal]:
    return {count: ZERO for count in OCCUPANCY_KEYS}


@dataclass
class RateCell:
    """Editable prices for one (room type, meal plan) pair."""

    pricing_type: str = "unit"
    price_per_night: Decimal = ZERO
    extra_adult: Decimal = ZERO
    extra_infant: Decimal = ZERO
    single_supplement: Decimal = ZERO
    child_order_pricing: list[Decimal] = field(default_factory=list)
    occupancy_pricing: Dict[int, Decimal] = field(default_factory=empty_occupancy)

    def copy(self) -> "RateCell":
        return replace(
            self,
            child_order_pricing=list(self.child_order_pricing),
            occupancy_pricing=dict(self.occupancy_pricing),
        )

    def occupancy(self, count: int) -> Decimal:
        return self.occupancy_pricing.get(count, ZERO)


class RateGrid(Generic[T]):
    """room type id -> meal plan id -> entry, built on first access."""

    def __init__(self, factory: Callable[[str, str], T]) -> None:
        self._factory = factory
        self._rows: Dict[str, Dict[str, T]] = {}

    def cell(self, room_type_id: str, meal_plan_id: str) -> T:
        row = self._rows.setdefault(room_type_id, {})
        if meal_plan_id not in row:
            row[meal_plan_id] = self._factory(room_type_id, meal_plan_id)
        return row[meal_plan_id]

    def get(self, room_type_id: str, meal_plan_id: str) -> Optional[T]:
        return self._rows.get(room_type_id, {}).get(meal_plan_id)

    def put(self, room_type_id: str, meal_plan_id: str, entry: T) -> None:
        self._rows.setdefault(room_type_id, {})[meal_plan_id] = entry

    def row(self, room_type_id: str) -> Dict[str, T]:
        return self._rows.get(room_type_id, {})

    def room_ids(self) -> list[str]:
        return list(self._rows)

    def items(self) -> Iterator[Tuple[str, str, T]]:
        for room_type_id, row in self._rows.items():
            for meal_plan_id, entry in row.items():
                yield room_type_id, meal_plan_id, entry

    def clear(self) -> None:
        self._rows.clear()

    def __contains__(self, key: Tuple[str, str]) -> bool:
        room_type_id, meal_plan_id = key
        return meal_plan_id in self._rows.get(room_type_id, {})


def init_cell(room_type: Optional[RoomType], pricing_type: str) -> RateCell:
    max_children = room_type.max_children if room_type else 2
    return RateCell(
        pricing_type=pricing_type,
        child_order_pricing=[ZERO] * max_children,
    )


def seed_cell(cell: RateCell, room_type: Optional[RoomType], pricing_type: str) -> RateCell:
    """Refresh the denormalized pricing type and resize child slots."""
    max_children = room_type.max_children if room_type else 2
    children = cell.child_order_pricing[:max_children]
    children.extend([ZERO] * (max_children - len(children)))
    cell.child_order_pricing = children
    for count in OCCUPANCY_KEYS:
        cell.occupancy_pricing.setdefault(count, ZERO)
    cell.pricing_type = pricing_type
    return cell
