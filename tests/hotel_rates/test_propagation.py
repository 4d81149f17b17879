from decimal import Decimal

from hotel_rates.app.models.config import MealPlan, RoomType
from hotel_rates.engine.cells import RateCell, RateGrid, init_cell
from hotel_rates.engine.propagation import (
    apply_adjustments,
    is_calculated_cell,
    propagate_relative_prices,
    resolve_base_cell,
    resolve_base_meal_plan,
)


def _rooms() -> list[RoomType]:
    return [
        RoomType(id="base-room", is_base_room=True),
        RoomType(id="sup-room", price_adjustment=Decimal("10")),
    ]


def _meals() -> list[MealPlan]:
    return [
        MealPlan(id="ro", is_base_meal_plan=True),
        MealPlan(id="bb", price_adjustment=Decimal("-5")),
    ]


def _grid() -> RateGrid[RateCell]:
    return RateGrid(lambda room_id, meal_id: init_cell(None, "unit"))


def test_room_then_meal_adjustment_rounds_half_up() -> None:
    assert apply_adjustments(Decimal("100"), Decimal("10"), Decimal("-5")) == Decimal("104.50")
    assert apply_adjustments(Decimal("33.33"), Decimal("0"), Decimal("0")) == Decimal("33.33")
    assert apply_adjustments(Decimal("10.005"), Decimal("0"), Decimal("0")) == Decimal("10.01")


def test_half_cents_round_exactly_and_away_from_zero() -> None:
    assert apply_adjustments(Decimal("1.005"), Decimal("0"), Decimal("0")) == Decimal("1.01")
    assert apply_adjustments(Decimal("-1.005"), Decimal("0"), Decimal("0")) == Decimal("-1.01")
    assert apply_adjustments(Decimal("-1.004"), Decimal("0"), Decimal("0")) == Decimal("-1.00")


def test_propagates_to_every_non_base_cell() -> None:
    grid = _grid()
    grid.cell("base-room", "ro").price_per_night = Decimal("100")

    written = propagate_relative_prices(grid, _rooms(), _meals())

    assert written == 3
    assert grid.get("base-room", "ro").price_per_night == Decimal("100")
    assert grid.get("base-room", "bb").price_per_night == Decimal("95.00")
    assert grid.get("sup-room", "ro").price_per_night == Decimal("110.00")
    assert grid.get("sup-room", "bb").price_per_night == Decimal("104.50")


def test_propagation_is_idempotent() -> None:
    grid = _grid()
    grid.cell("base-room", "ro").price_per_night = Decimal("100")

    propagate_relative_prices(grid, _rooms(), _meals())
    first = grid.get("sup-room", "bb").copy()
    propagate_relative_prices(grid, _rooms(), _meals())

    assert grid.get("sup-room", "bb") == first


def test_zero_base_fields_leave_targets_untouched() -> None:
    grid = _grid()
    base = grid.cell("base-room", "ro")
    base.price_per_night = Decimal("100")
    base.child_order_pricing = [Decimal("20"), Decimal("0")]
    target = grid.cell("sup-room", "ro")
    target.extra_adult = Decimal("33")
    target.child_order_pricing = [Decimal("0"), Decimal("7")]

    propagate_relative_prices(grid, _rooms(), _meals())

    assert target.extra_adult == Decimal("33")
    assert target.child_order_pricing == [Decimal("22.00"), Decimal("7")]


def test_no_base_price_means_no_changes() -> None:
    grid = _grid()
    grid.cell("base-room", "ro")
    grid.cell("sup-room", "ro").price_per_night = Decimal("80")

    assert propagate_relative_prices(grid, _rooms(), _meals()) == 0
    assert grid.get("sup-room", "ro").price_per_night == Decimal("80")


def test_no_base_room_means_no_propagation() -> None:
    rooms = [RoomType(id="a"), RoomType(id="b")]
    grid = _grid()
    grid.cell("a", "ro").price_per_night = Decimal("100")

    assert resolve_base_cell(rooms, _meals()) is None
    assert propagate_relative_prices(grid, rooms, _meals()) == 0
    assert is_calculated_cell(None, "b", "ro") is False


def test_first_meal_plan_is_base_when_none_flagged() -> None:
    meals = [MealPlan(id="hb"), MealPlan(id="fb")]
    assert resolve_base_meal_plan(meals, RoomType(id="r", is_base_room=True)).id == "hb"
    assert resolve_base_meal_plan(meals, None) is None


def test_calculated_cells_exclude_the_base_pair() -> None:
    base = resolve_base_cell(_rooms(), _meals())
    assert is_calculated_cell(base, "base-room", "ro") is False
    assert is_calculated_cell(base, "base-room", "bb") is True
    assert is_calculated_cell(base, "sup-room", "ro") is True


def test_missing_targets_use_room_pricing_type() -> None:
    rooms = _rooms() + [RoomType(id="pp-room", pricing_type="per_person")]
    grid = _grid()
    grid.cell("base-room", "ro").price_per_night = Decimal("50")

    propagate_relative_prices(grid, rooms, _meals(), pricing_type_for=lambda room_id: "per_person")

    assert grid.get("pp-room", "bb").pricing_type == "per_person"
    assert grid.get("pp-room", "bb").price_per_night == Decimal("47.50")
