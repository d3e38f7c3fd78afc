from decimal import Decimal

import pytest

from components.budget.tokens import apply_spends, choose_denomination, generate_tokens, spent_total, tokens_total
from components.core.errors import ValidationError


def test_generate_tokens_full_denominations_then_remainder():
    tokens = generate_tokens("A1", 47, 10)

    assert [token.value for token in tokens] == [Decimal("10.00")] * 4 + [Decimal("7.00")]
    assert [token.id for token in tokens] == ["A1-0", "A1-1", "A1-2", "A1-3", "A1-4"]
    assert not any(token.spent for token in tokens)


def test_generate_tokens_fractional_remainder():
    tokens = generate_tokens("A2", Decimal("17.50"), 5)

    assert [token.value for token in tokens] == [Decimal("5.00")] * 3 + [Decimal("2.50")]
    assert tokens_total(tokens) == 1750


def test_generate_tokens_zero_amount_gives_no_tokens():
    assert generate_tokens("C1", 0, 5) == []


def test_generate_tokens_exact_multiple_has_no_remainder():
    tokens = generate_tokens("E1", 40, 20)
    assert [token.value for token in tokens] == [Decimal("20.00"), Decimal("20.00")]


def test_generate_tokens_rejects_unknown_denomination():
    with pytest.raises(ValidationError):
        generate_tokens("A1", 50, 7)


def test_generate_tokens_rejects_negative_amount():
    with pytest.raises(ValidationError):
        generate_tokens("A1", -5, 10)


@pytest.mark.parametrize(
    "amount, preferred, expected",
    [
        (25, None, 5),
        (Decimal("29.99"), None, 5),
        (30, None, 10),
        (Decimal("99.99"), None, 10),
        (100, None, 20),
        (10, 20, 20),
        (500, 5, 5),
    ],
)
def test_choose_denomination(amount, preferred, expected):
    assert choose_denomination(amount, preferred) == expected


def test_spent_total_counts_only_spent_tokens():
    tokens = generate_tokens("A3", 30, 5)
    tokens[0].spent = True
    tokens[3].spent = True

    assert spent_total(tokens) == 1000
    assert tokens_total(tokens) == 3000


def test_apply_spends_prefers_matching_token_ids():
    tokens = generate_tokens("A1", 70, 20)

    marked, uncovered = apply_spends(tokens, [("A1-2", 2000)])

    assert [token.id for token in marked if token.spent] == ["A1-2"]
    assert uncovered == 0
    assert not any(token.spent for token in tokens)


def test_apply_spends_matches_regenerated_tokens_greedily():
    tokens = generate_tokens("A1", 25, 5)

    marked, uncovered = apply_spends(tokens, [("A1-0", 2000), ("A1-1", 1000)])

    assert spent_total(marked) == 2500
    assert uncovered == 500


def test_apply_spends_without_spends_clears_flags():
    tokens = generate_tokens("A3", 30, 5)
    tokens[0].spent = True

    marked, uncovered = apply_spends(tokens, [])

    assert not any(token.spent for token in marked)
    assert uncovered == 0
