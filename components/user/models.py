"""User model for the database."""

from sqlalchemy import Boolean, Column, Integer, String, Date, Numeric
from sqlalchemy.orm import relationship

from components.core.database import Base


class User(Base):
    """User owning one weekly budget state and a transaction log."""
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(255), unique=True, nullable=False, index=True)
    password = Column(String(255), nullable=False)  # Hashed password
    registration_date = Column(Date, nullable=False)
    annual_income = Column(Numeric(12, 2), nullable=True)
    timezone = Column(String(64), nullable=True)  # IANA name
    day_rollover_hour = Column(Integer, nullable=True)  # 0-23
    is_admin = Column(Boolean, nullable=False, default=False)

    budget_state = relationship("WeeklyBudgetState", back_populates="user", uselist=False)
    transactions = relationship("BudgetTransaction", back_populates="user")
