"""Canonical starting budget: the modules a new user begins with."""

from decimal import Decimal
from typing import List, Sequence, Tuple

from components.budget.money import to_decimal
from components.budget.schemas import Category, Module, Token

GENERIC_CATEGORY_ID = "generic"
FUEL_CATEGORY_ID = "B3"

# (module id, module name, [(category id, category name, token values)])
_INITIAL_LAYOUT: Sequence[Tuple[str, str, Sequence[Tuple[str, str, Sequence[str]]]]] = (
    ("A", "Daily Essentials", (
        ("A1", "Groceries", ("20", "20", "30")),
        ("A2", "Meals Out", ("15", "15", "15", "17.5")),
        ("A3", "Coffee", ("5", "5", "5", "5", "5", "5")),
        ("A4", "Drinks / Treats", ("3", "3", "4")),
    )),
    ("B", "Transport & Car", (
        ("B1", "Myki / Public Transport", ("10", "10")),
        ("B2", "Tolls & Parking", ("5",)),
        (FUEL_CATEGORY_ID, "Fuel", ("10", "10")),
    )),
    ("C", "Home & Misc", (
        ("C1", "Household Items", ("5", "5", "5", "5", "5")),
        ("C2", "Misc Expenses", ("10", "10")),
    )),
    ("D", "Health & Wellness", (
        ("D1", "Wellbeing/Yoga", ("30",)),
        ("D2", "Medicine/Specialists", ("10", "10")),
    )),
    ("E", "Professional & Music", (
        ("E1", "Technology", ("10", "10", "10", "10")),
        ("E2", "Music Specific Gear", ("10",)),
        ("E3", "Gig Prep", ("12.5",)),
    )),
    ("F", "Buffers & Fun", (
        ("F1", "Shopping", ("10", "10")),
        ("F2", "Personal Projects", ("10",)),
        ("F3", "Fun & Recreation", ("10",)),
    )),
)


def _category(category_id: str, name: str, values: Sequence[str]) -> Category:
    tokens = [
        Token(id=f"{category_id}-{index}", value=to_decimal(value).quantize(Decimal("0.01")))
        for index, value in enumerate(values)
    ]
    return Category(
        id=category_id,
        name=name,
        tokens=tokens,
        base_value=sum((token.value for token in tokens), Decimal("0.00")),
        mode="fixed",
        frequency="weekly",
    )


def initial_modules() -> List[Module]:
    """Fresh copy of the canonical modules, every token unspent."""
    return [
        Module(
            id=module_id,
            name=module_name,
            categories=[_category(*entry) for entry in categories],
        )
        for module_id, module_name, categories in _INITIAL_LAYOUT
    ]


def total_token_budget(modules: Sequence[Module]) -> Decimal:
    """Sum of every token value across ``modules``."""
    return sum(
        (token.value for module in modules for category in module.categories for token in category.tokens),
        Decimal("0.00"),
    )
