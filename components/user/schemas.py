"""Pydantic schemas for user data validation."""

from datetime import date
from decimal import Decimal
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import BaseModel, Field, field_validator

EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"


class UserBase(BaseModel):
    """Base user schema."""
    email: str = Field(..., pattern=EMAIL_PATTERN, max_length=255)


class UserCreate(UserBase):
    """Schema for user registration."""
    password: str = Field(..., min_length=6)


class User(UserBase):
    """Schema for user response."""
    id: int
    registration_date: date
    annual_income: Optional[Decimal] = None
    timezone: Optional[str] = None
    day_rollover_hour: Optional[int] = None

    class Config:
        from_attributes = True


class UserWithToken(User):
    """User response extended with an access token."""
    access_token: str
    token_type: str = "bearer"


class ProfileUpdate(BaseModel):
    """Day-boundary settings used by the spent-today query."""
    timezone: Optional[str] = None
    day_rollover_hour: Optional[int] = Field(None, ge=0, le=23)

    @field_validator("timezone")
    @classmethod
    def known_timezone(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return value
        try:
            ZoneInfo(value)
        except (ZoneInfoNotFoundError, ValueError) as exc:
            raise ValueError(f"Unknown timezone: {value}") from exc
        return value


class SetUserBudgetRequest(BaseModel):
    """Admin request: set a user's target annual income by email."""
    email: str = Field(..., pattern=EMAIL_PATTERN)
    amount: Decimal = Field(..., ge=0, allow_inf_nan=False)


class SetUserBudgetResponse(BaseModel):
    """Admin response after the income update."""
    message: str
    user_id: int
    annual_income: Decimal
