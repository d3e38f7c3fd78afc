"""Repository for user operations."""

import logging
from datetime import date
from decimal import Decimal
from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from components.core.errors import NotFoundError, PersistenceError
from components.core.security import get_password_hash
from components.user.models import User
from components.user.schemas import UserCreate, ProfileUpdate

logger = logging.getLogger(__name__)


class UserRepository:
    """Repository for user operations."""

    def __init__(self, session: AsyncSession):
        """Initialize repository with database session."""
        self.session = session

    async def create(self, user: UserCreate, annual_income: Optional[Decimal] = None) -> User:
        """Create a new user."""
        db_user = User(
            email=user.email.lower(),
            password=get_password_hash(user.password),
            registration_date=date.today(),
            annual_income=annual_income,
            is_admin=False,
        )
        self.session.add(db_user)
        await self._commit()
        await self.session.refresh(db_user)
        return db_user

    async def get_by_id(self, user_id: int) -> Optional[User]:
        """Get user by ID."""
        result = await self.session.execute(
            select(User).where(User.id == user_id)
        )
        return result.scalar_one_or_none()

    async def get_by_email(self, email: str) -> Optional[User]:
        """Get user by email (case-insensitive)."""
        result = await self.session.execute(
            select(User).where(User.email == email.lower())
        )
        return result.scalar_one_or_none()

    async def exists(self, email: str) -> bool:
        """Check if user with given email exists."""
        result = await self.session.execute(
            select(User.id).where(User.email == email.lower())
        )
        return result.scalar_one_or_none() is not None

    async def update_profile(self, user: User, profile: ProfileUpdate) -> User:
        """Update the day-boundary settings of a user."""
        if profile.timezone is not None:
            user.timezone = profile.timezone
        if profile.day_rollover_hour is not None:
            user.day_rollover_hour = profile.day_rollover_hour
        await self._commit()
        await self.session.refresh(user)
        return user

    async def set_annual_income(self, user: User, amount: Decimal, commit: bool = True) -> User:
        """Set the target annual income of a user."""
        user.annual_income = amount
        if commit:
            await self._commit()
        return user

    async def set_annual_income_by_email(self, email: str, amount: Decimal) -> User:
        """
        Set annual income for the user registered under ``email``.

        Only ``users.annual_income`` changes; the budget snapshot is untouched.
        """
        user = await self.get_by_email(email)
        if user is None:
            raise NotFoundError(f"User not found for email: {email}")
        await self.set_annual_income(user, amount)
        logger.info("Set annual income for user %s to %s", user.id, amount)
        return user

    async def _commit(self) -> None:
        try:
            await self.session.commit()
        except SQLAlchemyError as exc:
            await self.session.rollback()
            logger.error("User write failed: %s", exc)
            raise PersistenceError("Failed to save user") from exc
