from datetime import datetime
from decimal import Decimal

import pytest

from components.budget.repository import BudgetStateRepository
from components.budget.schemas import TransactionType
from scripts.import_transactions import import_transactions, parse_timestamp

ROWS = [
    "created_at\tamount\tcategory_id\tdescription",
    "21.10.2026\t12.50\tA1\tMarket",
    "2026-10-21T08:30:00\t4\t\tBus",
    "21.10.2026\t9\tZZ\tUnknown shop",
    "yesterday\t1\tA1\t",
]


@pytest.mark.parametrize(
    "value, expected",
    [
        ("21.10.2026", datetime(2026, 10, 20, 13, 0)),
        ("2026-10-21T08:30:00", datetime(2026, 10, 20, 21, 30)),
        ("2026-10-21T08:30:00+00:00", datetime(2026, 10, 21, 8, 30)),
    ],
)
def test_parse_timestamp_uses_local_time(value, expected):
    assert parse_timestamp(value, "Australia/Melbourne") == expected


async def test_import_skips_bad_rows_and_unknown_categories(db_manager, session, user, tmp_path):
    path = tmp_path / "history.tsv"
    path.write_text("\n".join(ROWS) + "\n", encoding="utf-8")

    imported = await import_transactions("alex@example.com", path, manager=db_manager)

    assert imported == 2
    rows = await BudgetStateRepository(session).list_transactions(user.id)
    assert [(tx.category_id, tx.transaction_type) for tx in rows] == [
        ("A1", TransactionType.CUSTOM_SPEND.value),
        ("generic", TransactionType.GENERIC_SPEND.value),
    ]
    assert rows[0].created_at == datetime(2026, 10, 20, 13, 0)
    assert rows[0].amount == Decimal("12.50")
