"""Token generator: split a weekly amount into spendable tokens."""

from typing import List, Optional, Sequence, Tuple

from components.budget.money import Amount, from_cents, to_cents, to_decimal
from components.budget.schemas import DENOMINATIONS, Token
from components.core.errors import ValidationError

SMALL_AMOUNT_LIMIT = 30
LARGE_AMOUNT_LIMIT = 100
DEFAULT_DENOMINATION = 10


def choose_denomination(amount: Amount, preferred: Optional[int] = None) -> int:
    """
    Pick the token size for a category.

    An explicit preference wins. Otherwise small amounts (< 30) use 5s,
    large amounts (>= 100) use 20s and everything in between uses 10s.
    """
    if preferred is not None:
        return preferred
    value = to_decimal(amount)
    if value < SMALL_AMOUNT_LIMIT:
        return 5
    if value >= LARGE_AMOUNT_LIMIT:
        return 20
    return DEFAULT_DENOMINATION


def generate_tokens(category_id: str, total_value: Amount, denomination: int) -> List[Token]:
    """
    Build an ordered token list summing exactly to ``total_value``.

    Full denomination tokens come first, then at most one remainder token.
    Ids are ``{category_id}-{index}`` starting from 0 on every call.
    """
    if denomination not in DENOMINATIONS:
        raise ValidationError(f"Denomination must be one of {DENOMINATIONS}, got {denomination}")
    remaining = to_cents(total_value)
    if remaining < 0:
        raise ValidationError(f"Cannot generate tokens for a negative amount ({total_value})")

    step = denomination * 100
    tokens: List[Token] = []
    while remaining >= step:
        tokens.append(Token(id=f"{category_id}-{len(tokens)}", value=from_cents(step)))
        remaining -= step
    if remaining >= 1:
        tokens.append(Token(id=f"{category_id}-{len(tokens)}", value=from_cents(remaining)))
    return tokens


def tokens_total(tokens: List[Token]) -> int:
    """Sum of token values in cents."""
    return sum(to_cents(token.value) for token in tokens)


def spent_total(tokens: List[Token]) -> int:
    """Sum of spent token values in cents."""
    return sum(to_cents(token.value) for token in tokens if token.spent)


def apply_spends(tokens: List[Token], spends: Sequence[Tuple[Optional[str], int]]) -> Tuple[List[Token], int]:
    """
    Rebuild spent flags on ``tokens`` from logged token spends.

    ``spends`` holds ``(token_id, cents)`` pairs. A spend first claims the
    unspent token with the same id and value; the rest is matched greedily
    against the remaining tokens, largest first. Returns fresh tokens and the
    cents no token could cover.
    """
    marked = [token.model_copy(update={"spent": False}) for token in tokens]
    by_id = {token.id: token for token in marked}
    pool = 0
    for token_id, cents in spends:
        token = by_id.get(token_id) if token_id else None
        if token is not None and not token.spent and to_cents(token.value) == cents:
            token.spent = True
        else:
            pool += cents

    for token in sorted((t for t in marked if not t.spent), key=lambda t: to_cents(t.value), reverse=True):
        value = to_cents(token.value)
        if value <= pool:
            token.spent = True
            pool -= value
    return marked, pool
