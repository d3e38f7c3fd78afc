"""Allocation engine: scale annual income into weekly category amounts."""

from decimal import Decimal
from typing import List, Sequence, Tuple

from components.budget.money import Amount, CENT, quantize, round_half_up, to_decimal
from components.budget.schemas import AllocationPlan, Category, CategoryAllocation, Module
from components.budget.tokens import choose_denomination, generate_tokens
from components.core.errors import ValidationError

WEEKS_PER_YEAR = Decimal("52.17")
WEEKS_PER_MONTH = Decimal("4")
TOKEN_ROUNDING_UNIT = Decimal("5")


def weekly_pool(annual_income: Amount) -> Decimal:
    """Unrounded weekly share of the annual income."""
    return to_decimal(annual_income) / WEEKS_PER_YEAR


def allocation_basis(category: Category) -> str:
    if category.frequency == "monthly":
        return "monthly"
    return category.mode


def target_value(category: Category, pool: Decimal) -> Decimal:
    """Raw weekly target for a category before token rounding."""
    basis = allocation_basis(category)
    if basis == "monthly":
        return to_decimal(category.total_monthly_amount or 0) / WEEKS_PER_MONTH
    if basis == "percentage":
        return pool * to_decimal(category.percentage or 0) / 100
    return to_decimal(category.base_value)


def round_to_token_unit(value: Decimal) -> Decimal:
    """Nearest multiple of 5, halves rounded up."""
    return round_half_up(value / TOKEN_ROUNDING_UNIT) * TOKEN_ROUNDING_UNIT


def _validate(annual_income: Decimal, modules: Sequence[Module]) -> None:
    if annual_income < 0:
        raise ValidationError(f"Annual income cannot be negative ({annual_income})")
    for module in modules:
        for category in module.categories:
            if category.percentage is not None and category.percentage < 0:
                raise ValidationError(f"Percentage for {category.name} cannot be negative")
            if category.total_monthly_amount is not None and category.total_monthly_amount < 0:
                raise ValidationError(f"Monthly amount for {category.name} cannot be negative")
            if allocation_basis(category) == "fixed" and category.base_value < 0:
                raise ValidationError(f"Base value for {category.name} cannot be negative")


def _scale_category(category: Category, pool: Decimal) -> Tuple[Category, CategoryAllocation]:
    basis = allocation_basis(category)
    target = target_value(category, pool)
    if basis == "fixed":
        rounded = quantize(target)
        dust = Decimal("0.00")
    else:
        rounded = quantize(round_to_token_unit(target))
        dust = target - rounded
    denomination = choose_denomination(rounded, category.preferred_denomination)
    scaled = category.model_copy(update={
        "base_value": rounded,
        "tokens": generate_tokens(category.id, rounded, denomination),
    })
    allocation = CategoryAllocation(
        category_id=category.id,
        basis=basis,
        target_value=quantize(target),
        rounded_value=rounded,
        dust=dust.quantize(CENT),
        denomination=denomination,
    )
    return scaled, allocation


def allocate(annual_income: Amount, modules: Sequence[Module]) -> AllocationPlan:
    """
    Scale ``annual_income`` across the category rules in ``modules``.

    Percentage and monthly categories are rounded to the nearest 5 and the
    rounding remainder is reported as dust; fixed categories keep their base
    value. Every category gets a fresh, unspent token set.
    """
    income = to_decimal(annual_income)
    _validate(income, modules)
    pool = weekly_pool(income)

    total_allocated = Decimal("0")
    total_dust = Decimal("0")
    total_percentage = Decimal("0")
    allocations: List[CategoryAllocation] = []
    scaled_modules: List[Module] = []

    for module in modules:
        categories: List[Category] = []
        for category in module.categories:
            scaled, allocation = _scale_category(category, pool)
            categories.append(scaled)
            allocations.append(allocation)
            total_allocated += allocation.rounded_value
            if allocation.basis != "fixed":
                total_dust += target_value(category, pool) - allocation.rounded_value
            if allocation.basis == "percentage":
                total_percentage += to_decimal(category.percentage or 0)
        scaled_modules.append(module.model_copy(update={"categories": categories}))

    return AllocationPlan(
        annual_income=quantize(income),
        weekly_pool=quantize(pool),
        total_weekly_allocated=quantize(total_allocated),
        total_dust=quantize(total_dust),
        total_percentage=total_percentage,
        is_over_allocated=total_allocated > pool,
        allocations=allocations,
        modules=scaled_modules,
    )
