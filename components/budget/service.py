"""Budget use cases for one authenticated user."""

import logging
from decimal import Decimal
from typing import Callable, Dict, Iterable, List, Optional, Sequence, Set, Tuple
from datetime import datetime

from sqlalchemy.ext.asyncio import AsyncSession

from components.budget import analytics
from components.budget.allocation import allocate
from components.budget.defaults import FUEL_CATEGORY_ID, GENERIC_CATEGORY_ID, initial_modules
from components.budget.formatting import format_currency
from components.budget.models import BudgetTransaction
from components.budget.money import from_cents, quantize, to_cents
from components.budget.periods import local_today, utcnow, week_start_boundary
from components.budget.repository import BudgetStateRepository, StateSnapshot
from components.budget.rollover import index_categories, resolve_baselines, rollover
from components.budget.schemas import (
    AllocationPlan,
    BudgetState,
    GenericSpendCreate,
    Module,
    ResetBriefing,
    SpendingBreakdown,
    SpentToday,
    StrategyUpdate,
    Transaction,
    TransactionCreate,
    TransactionType,
)
from components.budget.tokens import apply_spends, spent_total
from components.core.config import get_settings
from components.core.errors import NotFoundError, ValidationError
from components.user.models import User
from components.user.repository import UserRepository

logger = logging.getLogger(__name__)


def _copy_modules(modules: Sequence[Module]) -> List[Module]:
    return [module.model_copy(deep=True) for module in modules]


def _reapply_token_spends(
    modules: Sequence[Module],
    transactions: Iterable[BudgetTransaction],
    category_ids: Optional[Set[str]] = None,
) -> None:
    """Re-mark spent tokens in place from the period's logged token spends."""
    spends: Dict[str, List[Tuple[Optional[str], int]]] = {}
    for tx in transactions:
        if tx.transaction_type == TransactionType.TOKEN_SPEND.value and tx.category_id:
            spends.setdefault(tx.category_id, []).append((tx.token_id, to_cents(tx.amount)))
    for category in index_categories(modules).values():
        if category_ids is not None and category.id not in category_ids:
            continue
        category.tokens, _ = apply_spends(category.tokens, spends.get(category.id, []))


class BudgetService:
    """
    Spend, reset and strategy operations over the user's budget snapshot.

    Every mutation is a single unit of work: the snapshot and the transaction
    log are committed together, and a failed commit leaves both untouched.
    """

    def __init__(self, session: AsyncSession, user: User, clock: Callable[[], datetime] = utcnow):
        self.user = user
        self.repo = BudgetStateRepository(session)
        self.users = UserRepository(session)
        self.clock = clock
        self.settings = get_settings()

    @property
    def timezone(self) -> str:
        return self.user.timezone or self.settings.DEFAULT_TIMEZONE

    @property
    def rollover_hour(self) -> int:
        if self.user.day_rollover_hour is None:
            return self.settings.DEFAULT_DAY_ROLLOVER_HOUR
        return self.user.day_rollover_hour

    @property
    def annual_income(self) -> Decimal:
        if self.user.annual_income is None:
            return quantize(self.settings.DEFAULT_ANNUAL_INCOME)
        return quantize(self.user.annual_income)

    async def load(self) -> StateSnapshot:
        """Current snapshot; the first access creates the default one."""
        snapshot = await self.repo.load_state(self.user.id)
        if snapshot is not None:
            return snapshot

        monday, boundary = week_start_boundary(self.clock(), self.timezone)
        logger.info("No budget state for user %s, creating defaults (week of %s)", self.user.id, monday)
        modules = initial_modules()
        await self.repo.save_state(
            self.user.id, modules, Decimal("0.00"),
            last_reset_date=monday, last_reset_at=boundary,
        )
        return StateSnapshot(
            user_id=self.user.id,
            modules=modules,
            plan_modules=None,
            fund=Decimal("0.00"),
            last_reset_date=monday,
            last_reset_at=boundary,
        )

    async def get_state(self) -> BudgetState:
        snapshot = await self.load()
        transactions = await self.repo.list_transactions(self.user.id, since=snapshot.last_reset_at)
        spent_cents = sum(
            to_cents(tx.amount) for tx in transactions if tx.category_id != FUEL_CATEGORY_ID
        )
        budget_cents = sum(
            to_cents(category.base_value)
            for module in snapshot.modules
            for category in module.categories
        )
        return BudgetState(
            user_id=self.user.id,
            modules=snapshot.modules,
            gear_travel_fund=snapshot.fund,
            last_reset_date=snapshot.last_reset_date,
            annual_income=self.annual_income,
            total_budget=from_cents(budget_cents),
            total_spent=from_cents(spent_cents),
            remaining=from_cents(budget_cents - spent_cents),
        )

    async def spend_token(self, category_id: str, token_id: str) -> Transaction:
        """Mark a token spent and log it; a spent token is rejected, never logged twice."""
        snapshot = await self.load()
        modules = _copy_modules(snapshot.modules)
        category = index_categories(modules).get(category_id)
        if category is None:
            raise ValidationError(f"Unknown category: {category_id}")
        token = next((t for t in category.tokens if t.id == token_id), None)
        if token is None:
            raise ValidationError(f"Unknown token {token_id} in category {category_id}")
        if token.spent:
            logger.warning("User %s tried to spend already spent token %s", self.user.id, token_id)
            raise ValidationError(f"Token {token_id} is already spent")

        token.spent = True
        transaction = await self.repo.append_transaction(
            self.user.id, token.value, TransactionType.TOKEN_SPEND,
            category_id=category_id, token_id=token_id,
            created_at=self.clock(), commit=False,
        )
        await self.repo.save_state(self.user.id, modules, snapshot.fund, commit=False)
        await self.repo.commit()
        logger.info("User %s spent %s in %s", self.user.id, format_currency(token.value), category.name)
        return Transaction.model_validate(transaction)

    async def custom_spend(self, spend: TransactionCreate) -> Transaction:
        """Log an unbudgeted amount against a category; counts towards its deficit."""
        snapshot = await self.load()
        if spend.category_id not in index_categories(snapshot.modules):
            raise ValidationError(f"Unknown category: {spend.category_id}")
        transaction = await self.repo.append_transaction(
            self.user.id, spend.amount, TransactionType.CUSTOM_SPEND,
            category_id=spend.category_id, description=spend.description,
            created_at=self.clock(),
        )
        logger.info("User %s logged custom spend of %s in %s",
                    self.user.id, format_currency(spend.amount), spend.category_id)
        return Transaction.model_validate(transaction)

    async def generic_spend(self, spend: GenericSpendCreate) -> Transaction:
        """Log a spend that belongs to no category."""
        await self.load()
        transaction = await self.repo.append_transaction(
            self.user.id, spend.amount, TransactionType.GENERIC_SPEND,
            category_id=GENERIC_CATEGORY_ID, description=spend.description,
            created_at=self.clock(),
        )
        logger.info("User %s logged generic spend of %s", self.user.id, format_currency(spend.amount))
        return Transaction.model_validate(transaction)

    async def list_transactions(self) -> List[Transaction]:
        """Transactions of the current budget period."""
        snapshot = await self.load()
        transactions = await self.repo.list_transactions(self.user.id, since=snapshot.last_reset_at)
        return [Transaction.model_validate(tx) for tx in transactions]

    async def delete_transaction(self, transaction_id: int) -> None:
        """
        Remove a logged spend.

        Deleting a token spend of the current period rebuilds that category's
        spent flags from the remaining log in the same commit, so the log and
        the snapshot agree even after the tokens were regenerated.
        """
        snapshot = await self.load()
        transaction = await self.repo.get_transaction(self.user.id, transaction_id)
        if transaction is None:
            raise NotFoundError(f"Transaction {transaction_id} not found")

        is_token_spend = transaction.transaction_type == TransactionType.TOKEN_SPEND.value
        if is_token_spend and transaction.created_at >= snapshot.last_reset_at:
            remaining = [
                tx for tx in await self.repo.list_transactions(
                    self.user.id, since=snapshot.last_reset_at,
                    transaction_type=TransactionType.TOKEN_SPEND,
                )
                if tx.id != transaction.id
            ]
            modules = _copy_modules(snapshot.modules)
            _reapply_token_spends(modules, remaining, category_ids={transaction.category_id})
            await self.repo.save_state(self.user.id, modules, snapshot.fund, commit=False)

        await self.repo.delete_transaction(transaction, commit=False)
        await self.repo.commit()
        logger.info("User %s deleted transaction %s", self.user.id, transaction_id)

    async def spent_today(self) -> SpentToday:
        amount, day_start = await self.repo.get_spent_today(
            self.user.id, self.timezone, self.rollover_hour, now=self.clock(),
        )
        return SpentToday(
            amount=amount,
            day_start=day_start,
            timezone=self.timezone,
            rollover_hour=self.rollover_hour,
        )

    def preview_allocation(self, strategy: StrategyUpdate) -> AllocationPlan:
        return allocate(strategy.annual_income, strategy.modules)

    async def save_strategy(self, strategy: StrategyUpdate) -> AllocationPlan:
        """Persist income and category rules; an over-allocated plan is rejected."""
        plan = allocate(strategy.annual_income, strategy.modules)
        if plan.is_over_allocated:
            raise ValidationError(
                f"Plan allocates {format_currency(plan.total_weekly_allocated)} per week "
                f"but only {format_currency(plan.weekly_pool)} is available"
            )
        snapshot = await self.load()
        modules = await self._carry_period_spends(snapshot, plan.modules)
        await self.users.set_annual_income(self.user, plan.annual_income, commit=False)
        await self.repo.save_state(
            self.user.id, modules, snapshot.fund,
            plan_modules=plan.modules, commit=False,
        )
        await self.repo.commit()
        logger.info("User %s saved strategy: %s/week from %s/year",
                    self.user.id, plan.total_weekly_allocated, plan.annual_income)
        return plan

    async def _carry_period_spends(self, snapshot: StateSnapshot, modules: Sequence[Module]) -> List[Module]:
        """Copy of ``modules`` with this period's token spends marked on it."""
        carried = _copy_modules(modules)
        transactions = await self.repo.list_transactions(
            self.user.id, since=snapshot.last_reset_at, transaction_type=TransactionType.TOKEN_SPEND,
        )
        _reapply_token_spends(carried, transactions)
        return carried

    async def _period_extra_spend(self, snapshot: StateSnapshot) -> Tuple[Dict[str, Decimal], Decimal]:
        """
        Spend this period not carried by spent tokens.

        Per category that is the custom spends plus any logged token spend
        that no current token covers (tokens were regenerated mid-week).
        Spends in categories that no longer exist count as uncategorized.
        """
        known = index_categories(snapshot.modules)
        per_category: Dict[str, int] = {}
        token_logged: Dict[str, int] = {}
        uncategorized = 0
        transactions = await self.repo.list_transactions(self.user.id, since=snapshot.last_reset_at)
        for tx in transactions:
            cents = to_cents(tx.amount)
            if tx.category_id not in known:
                uncategorized += cents
            elif tx.transaction_type == TransactionType.TOKEN_SPEND.value:
                token_logged[tx.category_id] = token_logged.get(tx.category_id, 0) + cents
            else:
                per_category[tx.category_id] = per_category.get(tx.category_id, 0) + cents
        for category_id, logged in token_logged.items():
            uncovered = logged - spent_total(known[category_id].tokens)
            if uncovered > 0:
                per_category[category_id] = per_category.get(category_id, 0) + uncovered
        return {key: from_cents(value) for key, value in per_category.items()}, from_cents(uncategorized)

    async def weekly_reset(self) -> ResetBriefing:
        """Close the current week and start the next one."""
        snapshot = await self.load()
        canonical = snapshot.plan_modules or initial_modules()
        baselines = resolve_baselines(snapshot.modules, canonical)
        extra, uncategorized = await self._period_extra_spend(snapshot)
        outcome = rollover(
            snapshot.modules, snapshot.fund, baselines,
            extra_spend=extra, uncategorized_spend=uncategorized,
        )
        now = self.clock()
        await self.repo.save_state(
            self.user.id, outcome.modules, outcome.new_fund,
            last_reset_date=local_today(now, self.timezone), last_reset_at=now,
        )
        logger.info("User %s weekly reset: spent %s of %s, surplus %s, deficit %s, fund %s",
                    self.user.id, outcome.briefing.total_spent, outcome.briefing.total_budget,
                    outcome.briefing.total_surplus, outcome.briefing.total_deficit, outcome.new_fund)
        return outcome.briefing

    async def full_reset(self) -> BudgetState:
        """All tokens unspent, fund to zero, base values kept."""
        snapshot = await self.load()
        modules = _copy_modules(snapshot.modules)
        for module in modules:
            for category in module.categories:
                for token in category.tokens:
                    token.spent = False
        now = self.clock()
        await self.repo.save_state(
            self.user.id, modules, Decimal("0.00"),
            last_reset_date=local_today(now, self.timezone), last_reset_at=now,
        )
        logger.info("User %s performed a full reset", self.user.id)
        return await self.get_state()

    async def restore_initial(self) -> BudgetState:
        """
        Replace modules with the canonical defaults, dropping any saved strategy.

        Token spends already logged this period stay marked on the new tokens.
        """
        snapshot = await self.load()
        modules = await self._carry_period_spends(snapshot, initial_modules())
        await self.repo.save_state(self.user.id, modules, snapshot.fund, clear_plan=True)
        logger.info("User %s restored the initial budget", self.user.id)
        return await self.get_state()

    async def adjust_fund(self, amount: Decimal) -> BudgetState:
        """Overwrite the fund balance; modules are untouched."""
        snapshot = await self.load()
        await self.repo.save_state(self.user.id, snapshot.modules, quantize(amount))
        logger.info("User %s adjusted fund to %s", self.user.id, format_currency(amount))
        return await self.get_state()

    async def breakdown(self) -> SpendingBreakdown:
        snapshot = await self.load()
        transactions: Sequence[BudgetTransaction] = await self.repo.list_transactions(
            self.user.id, since=snapshot.last_reset_at,
        )
        return analytics.spending_breakdown(
            snapshot.modules, transactions,
            period_start=snapshot.last_reset_date,
            today=local_today(self.clock(), self.timezone),
            tz_name=self.timezone,
        )
