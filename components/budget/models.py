"""Budget state and transaction models for the database."""

from sqlalchemy import Column, Integer, String, Date, DateTime, ForeignKey, Numeric, JSON
from sqlalchemy.orm import relationship

from components.core.database import Base


class WeeklyBudgetState(Base):
    """Single mutable budget snapshot per user."""
    __tablename__ = "weekly_budget_state"

    user_id = Column(Integer, ForeignKey("users.id"), primary_key=True)
    current_tokens = Column(JSON, nullable=False)  # list of modules with live token states
    plan_modules = Column(JSON, nullable=True)  # last saved strategy
    gear_travel_fund = Column(Numeric(12, 2), nullable=False, default=0)
    last_reset_date = Column(Date, nullable=False)
    last_reset_at = Column(DateTime, nullable=False)  # UTC start of the current period
    updated_at = Column(DateTime, nullable=False)

    user = relationship("User", back_populates="budget_state")


class BudgetTransaction(Base):
    """Log of individual spends."""
    __tablename__ = "budget_transactions"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    amount = Column(Numeric(12, 2), nullable=False)
    category_id = Column(String(64), nullable=True)
    token_id = Column(String(80), nullable=True)  # set for token spends
    description = Column(String(255), nullable=True)
    transaction_type = Column(String(20), nullable=False)
    created_at = Column(DateTime, nullable=False, index=True)

    user = relationship("User", back_populates="transactions")
