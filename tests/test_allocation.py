from decimal import Decimal

import pydantic
import pytest

from components.budget.allocation import allocate, round_to_token_unit, weekly_pool
from components.budget.schemas import Category, Module
from components.core.errors import ValidationError


def _module(*categories):
    return Module(id="M", name="Main", categories=list(categories))


def _percentage(category_id, percentage, **kwargs):
    return Category(
        id=category_id,
        name=f"Category {category_id}",
        mode="percentage",
        percentage=Decimal(str(percentage)),
        **kwargs,
    )


def test_weekly_pool_uses_52_17_weeks():
    assert weekly_pool(Decimal("52170")) == Decimal("1000")
    assert allocate(55000, []).weekly_pool == Decimal("1054.25")


def test_percentage_category_rounds_to_nearest_five():
    plan = allocate(Decimal("55000"), [_module(_percentage("A1", "4.7"))])

    allocation = plan.allocations[0]
    category = plan.modules[0].categories[0]
    assert allocation.rounded_value == Decimal("50.00")
    assert allocation.dust == Decimal("-0.45")
    assert category.base_value == Decimal("50.00")
    assert sum(token.value for token in category.tokens) == Decimal("50.00")
    assert plan.total_percentage == Decimal("4.7")


@pytest.mark.parametrize(
    "value, expected",
    [("2.49", "0"), ("2.5", "5"), ("7.5", "10"), ("12.4", "10"), ("49.55", "50")],
)
def test_round_to_token_unit_rounds_halves_up(value, expected):
    assert round_to_token_unit(Decimal(value)) == Decimal(expected)


def test_monthly_category_divides_by_four():
    monthly = Category(id="C1", name="Rent share", frequency="monthly", total_monthly_amount=Decimal("130"))
    plan = allocate(55000, [_module(monthly)])

    category = plan.modules[0].categories[0]
    assert plan.allocations[0].basis == "monthly"
    assert category.base_value == Decimal("35.00")
    assert [token.value for token in category.tokens] == [
        Decimal("10.00"), Decimal("10.00"), Decimal("10.00"), Decimal("5.00"),
    ]


def test_fixed_category_passes_through_without_dust():
    fixed = Category(id="A2", name="Meals Out", base_value=Decimal("17.50"))
    plan = allocate(55000, [_module(fixed)])

    assert plan.allocations[0].dust == Decimal("0.00")
    assert plan.modules[0].categories[0].base_value == Decimal("17.50")


def test_preferred_denomination_wins():
    plan = allocate(55000, [_module(_percentage("A1", 10, preferred_denomination=5))])

    category = plan.modules[0].categories[0]
    assert plan.allocations[0].denomination == 5
    assert {token.value for token in category.tokens} == {Decimal("5.00")}


def test_zero_income_gives_empty_categories():
    plan = allocate(0, [_module(_percentage("A1", 10), _percentage("A2", 20))])

    assert plan.total_weekly_allocated == Decimal("0.00")
    assert not plan.is_over_allocated
    for category in plan.modules[0].categories:
        assert category.base_value == Decimal("0.00")
        assert category.tokens == []


def test_over_allocation_is_flagged():
    plan = allocate(52170, [_module(_percentage("A1", 60), _percentage("A2", 50))])

    assert plan.weekly_pool == Decimal("1000.00")
    assert plan.total_weekly_allocated == Decimal("1100.00")
    assert plan.total_percentage == Decimal("110")
    assert plan.is_over_allocated


def test_allocation_returns_fresh_unspent_tokens():
    category = _percentage("A1", 5)
    category.tokens = []
    plan = allocate(55000, [_module(category)])

    assert plan.modules[0].categories[0].tokens
    assert all(not token.spent for token in plan.modules[0].categories[0].tokens)
    assert category.tokens == []


def test_negative_income_is_rejected():
    with pytest.raises(ValidationError):
        allocate(-1, [_module(_percentage("A1", 5))])


def test_negative_percentage_is_rejected_by_schema():
    with pytest.raises(pydantic.ValidationError):
        _percentage("A1", -5)


def test_negative_percentage_is_rejected_by_engine():
    category = Category.model_construct(
        id="A1", name="Groceries", tokens=[], base_value=Decimal("0"),
        percentage=Decimal("-5"), mode="percentage", frequency=None,
        total_monthly_amount=None, preferred_denomination=None, is_custom=False,
    )
    with pytest.raises(ValidationError):
        allocate(55000, [_module(category)])
