"""Repository for the budget snapshot and the transaction log."""

import logging
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional, Sequence, Tuple

from sqlalchemy import select, func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from components.budget.models import WeeklyBudgetState, BudgetTransaction
from components.budget.money import quantize
from components.budget.periods import day_window, utcnow
from components.budget.schemas import Module, TransactionType
from components.core.config import get_settings
from components.core.errors import PersistenceError

logger = logging.getLogger(__name__)


@dataclass
class StateSnapshot:
    """Decoded ``weekly_budget_state`` row."""
    user_id: int
    modules: List[Module]
    plan_modules: Optional[List[Module]]
    fund: Decimal
    last_reset_date: date
    last_reset_at: datetime


def _dump_modules(modules: Optional[Sequence[Module]]) -> Optional[list]:
    if modules is None:
        return None
    return [module.model_dump(mode="json") for module in modules]


def _load_modules(raw: Optional[list]) -> Optional[List[Module]]:
    if raw is None:
        return None
    return [Module.model_validate(item) for item in raw]


class BudgetStateRepository:
    """Load/save the per-user snapshot and append to the spend log."""

    def __init__(self, session: AsyncSession):
        """Initialize repository with database session."""
        self.session = session

    async def load_state(self, user_id: int) -> Optional[StateSnapshot]:
        """
        Load the snapshot for ``user_id``.

        Returns None when the user has no row yet (first run). Database
        errors are retried ``STATE_LOAD_RETRIES`` times before giving up.
        """
        attempts = get_settings().STATE_LOAD_RETRIES + 1
        for attempt in range(1, attempts + 1):
            try:
                row = await self._get_row(user_id)
                break
            except SQLAlchemyError as exc:
                await self.session.rollback()
                logger.warning("Loading budget state for user %s failed (attempt %s/%s): %s",
                               user_id, attempt, attempts, exc)
                if attempt == attempts:
                    raise PersistenceError("Failed to load budget state") from exc

        if row is None:
            return None
        return StateSnapshot(
            user_id=row.user_id,
            modules=_load_modules(row.current_tokens) or [],
            plan_modules=_load_modules(row.plan_modules),
            fund=quantize(row.gear_travel_fund or 0),
            last_reset_date=row.last_reset_date,
            last_reset_at=row.last_reset_at,
        )

    async def save_state(
        self,
        user_id: int,
        modules: Sequence[Module],
        fund: Decimal,
        last_reset_date: Optional[date] = None,
        last_reset_at: Optional[datetime] = None,
        plan_modules: Optional[Sequence[Module]] = None,
        clear_plan: bool = False,
        commit: bool = True,
    ) -> None:
        """
        Upsert the whole snapshot.

        Reset markers and the saved plan are only overwritten when given;
        ``clear_plan`` drops the saved plan.
        """
        now = utcnow()
        row = await self._get_row(user_id)
        if row is None:
            row = WeeklyBudgetState(
                user_id=user_id,
                last_reset_date=last_reset_date or now.date(),
                last_reset_at=last_reset_at or now,
            )
            self.session.add(row)
        row.current_tokens = _dump_modules(modules)
        row.gear_travel_fund = quantize(fund)
        row.updated_at = now
        if last_reset_date is not None:
            row.last_reset_date = last_reset_date
        if last_reset_at is not None:
            row.last_reset_at = last_reset_at
        if plan_modules is not None:
            row.plan_modules = _dump_modules(plan_modules)
        elif clear_plan:
            row.plan_modules = None
        if commit:
            await self.commit()

    async def append_transaction(
        self,
        user_id: int,
        amount: Decimal,
        transaction_type: TransactionType,
        category_id: Optional[str] = None,
        token_id: Optional[str] = None,
        description: Optional[str] = None,
        created_at: Optional[datetime] = None,
        commit: bool = True,
    ) -> BudgetTransaction:
        """Add a spend to the log."""
        transaction = BudgetTransaction(
            user_id=user_id,
            amount=quantize(amount),
            category_id=category_id,
            token_id=token_id,
            description=description,
            transaction_type=transaction_type.value,
            created_at=created_at or utcnow(),
        )
        self.session.add(transaction)
        if commit:
            await self.commit()
        else:
            await self._flush()
        return transaction

    async def get_transaction(self, user_id: int, transaction_id: int) -> Optional[BudgetTransaction]:
        result = await self.session.execute(
            select(BudgetTransaction).where(
                BudgetTransaction.id == transaction_id,
                BudgetTransaction.user_id == user_id,
            )
        )
        return result.scalar_one_or_none()

    async def delete_transaction(self, transaction: BudgetTransaction, commit: bool = True) -> None:
        await self.session.delete(transaction)
        if commit:
            await self.commit()

    async def list_transactions(
        self,
        user_id: int,
        since: Optional[datetime] = None,
        transaction_type: Optional[TransactionType] = None,
    ) -> List[BudgetTransaction]:
        """Transactions of a user, oldest first."""
        query = select(BudgetTransaction).where(BudgetTransaction.user_id == user_id)
        if since is not None:
            query = query.where(BudgetTransaction.created_at >= since)
        if transaction_type is not None:
            query = query.where(BudgetTransaction.transaction_type == transaction_type.value)
        query = query.order_by(BudgetTransaction.created_at, BudgetTransaction.id)
        try:
            result = await self.session.execute(query)
        except SQLAlchemyError as exc:
            logger.error("Listing transactions for user %s failed: %s", user_id, exc)
            raise PersistenceError("Failed to load transactions") from exc
        return list(result.scalars().all())

    async def get_spent_today(
        self,
        user_id: int,
        timezone: str,
        rollover_hour: int,
        now: Optional[datetime] = None,
    ) -> Tuple[Decimal, datetime]:
        """
        Total spent in the user's current day and the UTC start of that day.
        """
        start, end = day_window(now or utcnow(), timezone, rollover_hour)
        query = select(func.sum(BudgetTransaction.amount)).where(
            BudgetTransaction.user_id == user_id,
            BudgetTransaction.created_at >= start,
            BudgetTransaction.created_at < end,
        )
        try:
            result = await self.session.execute(query)
        except SQLAlchemyError as exc:
            logger.error("Spent-today query for user %s failed: %s", user_id, exc)
            raise PersistenceError("Failed to load today's spending") from exc
        return quantize(result.scalar() or 0), start

    async def commit(self) -> None:
        """Commit the unit of work; failures roll back and raise PersistenceError."""
        try:
            await self.session.commit()
        except SQLAlchemyError as exc:
            await self.session.rollback()
            logger.error("Budget write failed: %s", exc)
            raise PersistenceError("Failed to save budget") from exc

    async def rollback(self) -> None:
        await self.session.rollback()

    async def _flush(self) -> None:
        try:
            await self.session.flush()
        except SQLAlchemyError as exc:
            await self.session.rollback()
            logger.error("Budget write failed: %s", exc)
            raise PersistenceError("Failed to save budget") from exc

    async def _get_row(self, user_id: int) -> Optional[WeeklyBudgetState]:
        result = await self.session.execute(
            select(WeeklyBudgetState).where(WeeklyBudgetState.user_id == user_id)
        )
        return result.scalar_one_or_none()
