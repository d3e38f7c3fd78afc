"""Budget endpoints for the API."""

from typing import List
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from components.budget import schemas
from components.budget.service import BudgetService
from components.core.init_db import get_db
from components.user.models import User
from restapi.endpoints.auth import get_current_user

router = APIRouter(
    prefix="/budget",
    tags=["budget"],
    responses={404: {"description": "Not found"}},
)


def get_budget_service(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> BudgetService:
    return BudgetService(db, current_user)


@router.get("/state", response_model=schemas.BudgetState)
async def get_state(service: BudgetService = Depends(get_budget_service)):
    """
    Get the current budget snapshot.

    The first call for a user creates the default modules with an empty fund.
    """
    return await service.get_state()


@router.post(
    "/categories/{category_id}/tokens/{token_id}/spend",
    response_model=schemas.Transaction,
    status_code=201,
)
async def spend_token(
    category_id: str,
    token_id: str,
    service: BudgetService = Depends(get_budget_service),
):
    """Mark a token spent. Spending an already spent token is rejected."""
    return await service.spend_token(category_id, token_id)


@router.post("/spend", response_model=schemas.Transaction, status_code=201)
async def custom_spend(
    spend: schemas.TransactionCreate,
    service: BudgetService = Depends(get_budget_service),
):
    """Log an unbudgeted amount against a category."""
    return await service.custom_spend(spend)


@router.post("/spend/generic", response_model=schemas.Transaction, status_code=201)
async def generic_spend(
    spend: schemas.GenericSpendCreate,
    service: BudgetService = Depends(get_budget_service),
):
    """Log a quick spend outside any category."""
    return await service.generic_spend(spend)


@router.get("/transactions", response_model=List[schemas.Transaction])
async def list_transactions(service: BudgetService = Depends(get_budget_service)):
    """Get transactions logged since the last reset."""
    return await service.list_transactions()


@router.delete("/transactions/{transaction_id}")
async def delete_transaction(
    transaction_id: int,
    service: BudgetService = Depends(get_budget_service),
):
    """Delete a transaction; a deleted token spend frees its token again."""
    await service.delete_transaction(transaction_id)
    return {"message": "Transaction deleted successfully"}


@router.get("/spent-today", response_model=schemas.SpentToday)
async def spent_today(service: BudgetService = Depends(get_budget_service)):
    """Get the amount spent in the user's current day (timezone and rollover hour aware)."""
    return await service.spent_today()


@router.get("/breakdown", response_model=schemas.SpendingBreakdown)
async def spending_breakdown(service: BudgetService = Depends(get_budget_service)):
    """Get per-day and per-category spending since the last reset."""
    return await service.breakdown()


@router.post("/allocation/preview", response_model=schemas.AllocationPlan)
async def preview_allocation(
    strategy: schemas.StrategyUpdate,
    service: BudgetService = Depends(get_budget_service),
):
    """
    Scale an annual income across category rules without saving.

    Returns the weekly pool, per-category rounding (dust) and whether the
    plan is over-allocated.
    """
    return service.preview_allocation(strategy)


@router.put("/strategy", response_model=schemas.AllocationPlan)
async def save_strategy(
    strategy: schemas.StrategyUpdate,
    service: BudgetService = Depends(get_budget_service),
):
    """Save income and category rules. Over-allocated plans are rejected with 422."""
    return await service.save_strategy(strategy)


@router.post("/reset", response_model=schemas.ResetBriefing)
async def weekly_reset(service: BudgetService = Depends(get_budget_service)):
    """
    Run the weekly reset.

    Surplus goes to the Gear/Travel fund, overspent categories lose half of
    the overspend from next week's budget, and all tokens become unspent.
    """
    return await service.weekly_reset()


@router.post("/debug/full-reset", response_model=schemas.BudgetState)
async def full_reset(service: BudgetService = Depends(get_budget_service)):
    """Unspend every token and zero the fund; base values stay."""
    return await service.full_reset()


@router.post("/debug/restore-initial", response_model=schemas.BudgetState)
async def restore_initial(service: BudgetService = Depends(get_budget_service)):
    """Replace all modules with the default budget."""
    return await service.restore_initial()


@router.put("/debug/fund", response_model=schemas.BudgetState)
async def adjust_fund(
    adjustment: schemas.FundAdjustment,
    service: BudgetService = Depends(get_budget_service),
):
    """Overwrite the Gear/Travel fund balance."""
    return await service.adjust_fund(adjustment.amount)
