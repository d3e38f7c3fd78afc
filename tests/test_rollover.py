from decimal import Decimal

import pytest

from components.budget.rollover import find_canonical, index_categories, resolve_baselines, rollover
from components.budget.schemas import Category, Module
from components.budget.tokens import generate_tokens, tokens_total
from components.core.errors import ValidationError


def _category(category_id, base, denomination=10, spent=0, name=None):
    tokens = generate_tokens(category_id, base, denomination)
    for token in tokens[:spent]:
        token.spent = True
    return Category(
        id=category_id,
        name=name or f"Category {category_id}",
        tokens=tokens,
        base_value=Decimal(str(base)),
    )


def _modules(*categories):
    return [Module(id="M", name="Main", categories=list(categories))]


def _baselines(modules):
    return {category.id: category.base_value for category in index_categories(modules).values()}


def test_deficit_claws_back_half_of_overspend():
    modules = _modules(_category("A1", 50, spent=5, name="Groceries"))

    outcome = rollover(modules, Decimal("100"), _baselines(modules), extra_spend={"A1": Decimal("20")})

    category = outcome.modules[0].categories[0]
    assert category.base_value == Decimal("40.00")
    assert tokens_total(category.tokens) == 4000
    assert outcome.new_fund == Decimal("100.00")
    assert outcome.briefing.total_deficit == Decimal("20.00")
    line = outcome.briefing.category_briefings[0]
    assert line.difference == Decimal("-20.00")
    assert line.new_base_value == Decimal("40.00")
    assert line.message == "You went over by $20 in Groceries. This week's budget is adjusted to $40."


def test_surplus_is_pooled_into_fund():
    modules = _modules(
        _category("A1", 70, denomination=20, spent=1),
        _category("A3", 30, denomination=5, spent=2),
    )

    outcome = rollover(modules, Decimal("12.50"), _baselines(modules))

    assert outcome.briefing.total_surplus == Decimal("70.00")
    assert outcome.new_fund == Decimal("82.50")
    assert outcome.briefing.total_spent == Decimal("30.00")
    assert outcome.briefing.total_budget == Decimal("100.00")
    assert [c.base_value for c in outcome.modules[0].categories] == [Decimal("70.00"), Decimal("30.00")]
    assert "This surplus was vaulted." in outcome.briefing.category_briefings[0].message


def test_reset_returns_every_token_unspent():
    modules = _modules(_category("A1", 40, spent=4), _category("A2", 20, spent=1))

    outcome = rollover(modules, 0, _baselines(modules))

    for category in outcome.modules[0].categories:
        assert category.tokens
        assert not any(token.spent for token in category.tokens)
        assert tokens_total(category.tokens) == int(category.base_value * 100)


def test_exact_spend_emits_no_briefing_line():
    modules = _modules(_category("A1", 30, spent=3), _category("A2", 20, spent=0))

    outcome = rollover(modules, 0, _baselines(modules))

    assert [line.category_id for line in outcome.briefing.category_briefings] == ["A2"]


def test_baseline_is_restored_after_a_deficit_week():
    shrunk = _modules(_category("A1", 40))
    canonical = _modules(_category("A1", 50))

    outcome = rollover(shrunk, 0, resolve_baselines(shrunk, canonical))

    assert outcome.modules[0].categories[0].base_value == Decimal("50.00")
    assert outcome.new_fund == Decimal("50.00")


def test_half_cent_clawback_rounds_up():
    modules = _modules(_category("A1", 10, spent=1))

    outcome = rollover(modules, 0, _baselines(modules), extra_spend={"A1": Decimal("0.01")})

    assert outcome.modules[0].categories[0].base_value == Decimal("9.99")


def test_base_never_goes_negative():
    modules = _modules(_category("A1", 10, spent=1))

    outcome = rollover(modules, 0, _baselines(modules), extra_spend={"A1": Decimal("40")})

    category = outcome.modules[0].categories[0]
    assert category.base_value == Decimal("0.00")
    assert category.tokens == []


def test_uncategorized_spend_only_counts_towards_total():
    modules = _modules(_category("A1", 20))

    outcome = rollover(modules, 0, _baselines(modules), uncategorized_spend=Decimal("7.50"))

    assert outcome.briefing.total_spent == Decimal("7.50")
    assert outcome.new_fund == Decimal("20.00")


def test_missing_baseline_is_rejected():
    modules = _modules(_category("A1", 20))

    with pytest.raises(ValidationError):
        rollover(modules, 0, {})


def test_unmatched_category_falls_back_to_current_base():
    current = _modules(_category("A1", 40), _category("X9", 15))
    canonical = _modules(_category("A1", 50))

    baselines = resolve_baselines(current, canonical)

    assert baselines == {"A1": Decimal("50"), "X9": Decimal("15")}


def test_custom_fallback_policy():
    current = _modules(_category("X9", 15))

    baselines = resolve_baselines(current, [], fallback=lambda category: Decimal("0"))

    assert baselines == {"X9": Decimal("0")}


def test_find_canonical_returns_none_when_absent():
    index = index_categories(_modules(_category("A1", 20)))

    assert find_canonical(index, "A1").base_value == Decimal("20")
    assert find_canonical(index, "Z1") is None


def test_rollover_does_not_mutate_input():
    modules = _modules(_category("A1", 20, spent=2))

    rollover(modules, 0, _baselines(modules))

    assert all(token.spent for token in modules[0].categories[0].tokens)
