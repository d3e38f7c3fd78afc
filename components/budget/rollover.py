"""Rollover engine: reconcile a week's spending into next week's state."""

from dataclasses import dataclass
from decimal import Decimal
from typing import Callable, Dict, List, Mapping, Optional, Sequence

from components.budget.formatting import format_currency
from components.budget.money import Amount, from_cents, to_cents
from components.budget.schemas import Category, CategoryBriefing, Module, ResetBriefing
from components.budget.tokens import choose_denomination, generate_tokens, spent_total
from components.core.errors import ValidationError

BaselinePolicy = Callable[[Category], Decimal]


@dataclass
class RolloverOutcome:
    modules: List[Module]
    new_fund: Decimal
    briefing: ResetBriefing


def index_categories(modules: Sequence[Module]) -> Dict[str, Category]:
    return {category.id: category for module in modules for category in module.categories}


def find_canonical(index: Mapping[str, Category], category_id: str) -> Optional[Category]:
    """Canonical definition for ``category_id``, or None when there is none."""
    return index.get(category_id)


def current_base_value(category: Category) -> Decimal:
    """Fallback policy: an unmatched category keeps its own base value."""
    return category.base_value


def resolve_baselines(
    modules: Sequence[Module],
    canonical_modules: Sequence[Module],
    fallback: BaselinePolicy = current_base_value,
) -> Dict[str, Decimal]:
    """Baseline per category id: the canonical base value, else ``fallback(category)``."""
    index = index_categories(canonical_modules)
    baselines: Dict[str, Decimal] = {}
    for module in modules:
        for category in module.categories:
            canonical = find_canonical(index, category.id)
            baselines[category.id] = canonical.base_value if canonical else fallback(category)
    return baselines


def _deficit_message(name: str, deficit: int, new_base: int) -> str:
    return (
        f"You went over by {format_currency(from_cents(deficit))} in {name}. "
        f"This week's budget is adjusted to {format_currency(from_cents(new_base))}."
    )


def _surplus_message(name: str, surplus: int) -> str:
    return f"You saved {format_currency(from_cents(surplus))} in {name}. This surplus was vaulted."


def _reset_category(category: Category, base_cents: int) -> Category:
    base = from_cents(base_cents)
    denomination = choose_denomination(base, category.preferred_denomination)
    return category.model_copy(update={
        "base_value": base,
        "tokens": generate_tokens(category.id, base, denomination),
    })


def rollover(
    modules: Sequence[Module],
    fund: Amount,
    baselines: Mapping[str, Amount],
    extra_spend: Optional[Mapping[str, Amount]] = None,
    uncategorized_spend: Amount = 0,
) -> RolloverOutcome:
    """
    Close the week.

    Spend per category is its spent tokens plus ``extra_spend`` (custom
    spends logged against it). Surplus is pooled into the fund; a deficit
    claws back half of the overspend from next week's base value and never
    touches the fund. All tokens come back unspent.
    """
    extra_spend = extra_spend or {}
    total_spent = to_cents(uncategorized_spend)
    total_budget = 0
    total_surplus = 0
    total_deficit = 0
    briefings: List[CategoryBriefing] = []
    next_modules: List[Module] = []

    for module in modules:
        categories: List[Category] = []
        for category in module.categories:
            if category.id not in baselines:
                raise ValidationError(f"No baseline for category {category.id}")
            base = to_cents(baselines[category.id])
            spent = spent_total(category.tokens) + to_cents(extra_spend.get(category.id, 0))
            difference = base - spent
            total_spent += spent
            total_budget += base

            if difference > 0:
                total_surplus += difference
                categories.append(_reset_category(category, base))
                briefings.append(CategoryBriefing(
                    category_id=category.id,
                    category_name=category.name,
                    difference=from_cents(difference),
                    message=_surplus_message(category.name, difference),
                ))
            elif difference < 0:
                deficit = -difference
                total_deficit += deficit
                # half-cent clawbacks round up
                new_base = max(0, base - (deficit + 1) // 2)
                categories.append(_reset_category(category, new_base))
                briefings.append(CategoryBriefing(
                    category_id=category.id,
                    category_name=category.name,
                    difference=from_cents(difference),
                    new_base_value=from_cents(new_base),
                    message=_deficit_message(category.name, deficit, new_base),
                ))
            else:
                categories.append(_reset_category(category, base))
        next_modules.append(module.model_copy(update={"categories": categories}))

    new_fund = to_cents(fund) + total_surplus
    briefing = ResetBriefing(
        total_spent=from_cents(total_spent),
        total_budget=from_cents(total_budget),
        total_surplus=from_cents(total_surplus),
        total_deficit=from_cents(total_deficit),
        new_fund=from_cents(new_fund),
        category_briefings=briefings,
    )
    return RolloverOutcome(modules=next_modules, new_fund=from_cents(new_fund), briefing=briefing)
