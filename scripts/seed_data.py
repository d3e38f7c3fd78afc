"""Script to create the tables and a demo user with the default budget."""

import asyncio
from decimal import Decimal

from components.core.init_db import db_manager
from components.budget.service import BudgetService
from components.user.repository import UserRepository
from components.user.schemas import UserCreate

DEMO_EMAIL = "demo@example.com"
DEMO_PASSWORD = "password123"


async def seed_data():
    """Seed a demo user and their first budget snapshot."""
    await db_manager.create_tables()
    async with db_manager.get_db() as db:
        users = UserRepository(db)
        user = await users.get_by_email(DEMO_EMAIL)
        if user is None:
            user = await users.create(
                UserCreate(email=DEMO_EMAIL, password=DEMO_PASSWORD),
                annual_income=Decimal("55000"),
            )
            print(f"Created user {DEMO_EMAIL} (id={user.id})")
        state = await BudgetService(db, user).get_state()
        print(f"Weekly budget: {state.total_budget}, fund: {state.gear_travel_fund}")

if __name__ == "__main__":
    asyncio.run(seed_data())
