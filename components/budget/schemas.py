"""Pydantic schemas for budget data validation."""

from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import List, Literal, Optional

from pydantic import BaseModel, Field, field_validator

DENOMINATIONS = (5, 10, 20)


class TransactionType(str, Enum):
    """Kinds of spend recorded in the transaction log."""
    TOKEN_SPEND = "token_spend"
    CUSTOM_SPEND = "custom_spend"
    GENERIC_SPEND = "generic_spend"


class Token(BaseModel):
    """A discrete spendable unit of a category's weekly budget."""
    id: str
    value: Decimal
    spent: bool = False


class Category(BaseModel):
    """Schema for a budget category and its live tokens."""
    id: str
    name: str
    tokens: List[Token] = Field(default_factory=list)
    base_value: Decimal = Decimal("0")
    percentage: Optional[Decimal] = Field(None, ge=0)
    mode: Literal["fixed", "percentage"] = "fixed"
    frequency: Optional[Literal["weekly", "monthly"]] = None
    total_monthly_amount: Optional[Decimal] = Field(None, ge=0)
    preferred_denomination: Optional[int] = None
    is_custom: bool = False

    @field_validator("preferred_denomination")
    @classmethod
    def known_denomination(cls, value: Optional[int]) -> Optional[int]:
        if value is not None and value not in DENOMINATIONS:
            raise ValueError(f"Denomination must be one of {DENOMINATIONS}")
        return value


class Module(BaseModel):
    """A named grouping of categories."""
    id: str
    name: str
    categories: List[Category] = Field(default_factory=list)


class CategoryAllocation(BaseModel):
    """How one category's weekly amount was derived."""
    category_id: str
    basis: Literal["fixed", "percentage", "monthly"]
    target_value: Decimal
    rounded_value: Decimal
    dust: Decimal
    denomination: int


class AllocationPlan(BaseModel):
    """Result of scaling annual income across category rules."""
    annual_income: Decimal
    weekly_pool: Decimal
    total_weekly_allocated: Decimal
    total_dust: Decimal
    total_percentage: Decimal
    is_over_allocated: bool
    allocations: List[CategoryAllocation]
    modules: List[Module]


class CategoryBriefing(BaseModel):
    """One line of the weekly reset briefing."""
    category_id: str
    category_name: str
    difference: Decimal  # positive for surplus, negative for deficit
    new_base_value: Optional[Decimal] = None  # set when a deficit adjusted next week
    message: str


class ResetBriefing(BaseModel):
    """Summary returned by the weekly reset."""
    total_spent: Decimal
    total_budget: Decimal
    total_surplus: Decimal
    total_deficit: Decimal
    new_fund: Decimal
    category_briefings: List[CategoryBriefing]


class BudgetState(BaseModel):
    """Current snapshot as shown to the user."""
    user_id: int
    modules: List[Module]
    gear_travel_fund: Decimal
    last_reset_date: date
    annual_income: Decimal
    total_budget: Decimal
    total_spent: Decimal
    remaining: Decimal


class TransactionCreate(BaseModel):
    """Schema for a custom spend in a category."""
    category_id: str
    amount: Decimal = Field(..., gt=0, allow_inf_nan=False)
    description: Optional[str] = Field(None, max_length=255)


class GenericSpendCreate(BaseModel):
    """Schema for a spend that belongs to no category."""
    amount: Decimal = Field(..., gt=0, allow_inf_nan=False)
    description: Optional[str] = Field(None, max_length=255)


class Transaction(BaseModel):
    """Schema for a logged spend."""
    id: int
    user_id: int
    amount: Decimal
    category_id: Optional[str] = None
    token_id: Optional[str] = None
    description: Optional[str] = None
    transaction_type: TransactionType
    created_at: datetime

    class Config:
        from_attributes = True


class SpentToday(BaseModel):
    """Total spent inside the user's current day window."""
    amount: Decimal
    day_start: datetime
    timezone: str
    rollover_hour: int


class StrategyUpdate(BaseModel):
    """Proposed income and category rules from the architect view."""
    annual_income: Decimal = Field(..., ge=0, allow_inf_nan=False)
    modules: List[Module]


class FundAdjustment(BaseModel):
    """Overwrite the Gear/Travel fund balance."""
    amount: Decimal = Field(..., allow_inf_nan=False)


class DailySpending(BaseModel):
    day: date
    amount: Decimal


class CategorySpending(BaseModel):
    category_id: str
    category_name: str
    budget: Decimal
    spent: Decimal


class SpendingBreakdown(BaseModel):
    """Per-day and per-category spending for the current period."""
    daily: List[DailySpending]
    categories: List[CategorySpending]
