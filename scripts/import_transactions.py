"""Script to import spend history from a tab-separated CSV file."""

import argparse
import asyncio
import csv
from datetime import datetime
from decimal import Decimal, InvalidOperation
from pathlib import Path

from components.budget.defaults import GENERIC_CATEGORY_ID
from components.budget.periods import to_utc
from components.budget.rollover import index_categories
from components.budget.schemas import TransactionType
from components.budget.service import BudgetService
from components.core.database import DatabaseManager
from components.core.init_db import db_manager
from components.user.repository import UserRepository


def parse_timestamp(value: str, tz_name: str) -> datetime:
    """
    Parse ``DD.MM.YYYY`` or ISO timestamps into naive UTC.

    Dates and timestamps without an offset are local time in ``tz_name``.
    """
    value = value.strip()
    try:
        local = datetime.strptime(value, "%d.%m.%Y")
    except ValueError:
        local = datetime.fromisoformat(value)
    return to_utc(local, tz_name)


async def import_transactions(email: str, path: Path, manager: DatabaseManager = db_manager) -> int:
    """
    Append every row of ``path`` to the user's transaction log.

    Columns: created_at, amount, category_id (optional), description (optional).
    Rows with a known category become custom spends, rows without one (or
    with ``generic``) generic spends. Rows with an unknown category are
    skipped. Token states are not touched. Returns the number imported.
    """
    async with manager.get_db() as db:
        user = await UserRepository(db).get_by_email(email)
        if user is None:
            print(f"Error: no user with email {email}")
            return 0
        service = BudgetService(db, user)
        known = index_categories((await service.load()).modules)
        repo = service.repo

        imported = 0
        with path.open("r", encoding="utf-8") as f:
            reader = csv.DictReader(f, delimiter="\t")
            for row_num, row in enumerate(reader, start=2):
                try:
                    amount = Decimal(row["amount"])
                    created_at = parse_timestamp(row["created_at"], service.timezone)
                except (KeyError, InvalidOperation, ValueError) as e:
                    print(f"Row {row_num}: skipped ({e})")
                    continue
                category_id = (row.get("category_id") or "").strip() or GENERIC_CATEGORY_ID
                if category_id != GENERIC_CATEGORY_ID and category_id not in known:
                    print(f"Row {row_num}: skipped (unknown category {category_id})")
                    continue
                await repo.append_transaction(
                    user.id,
                    amount,
                    (TransactionType.GENERIC_SPEND if category_id == GENERIC_CATEGORY_ID
                     else TransactionType.CUSTOM_SPEND),
                    category_id=category_id,
                    description=(row.get("description") or "").strip() or None,
                    created_at=created_at,
                    commit=False,
                )
                imported += 1
        await repo.commit()
        print(f"Imported {imported} transactions for {email}")
        return imported


def main():
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("email")
    parser.add_argument("csv_path", type=Path)
    args = parser.parse_args()
    asyncio.run(import_transactions(args.email, args.csv_path))

if __name__ == "__main__":
    main()
