"""User profile endpoints for the API."""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from components.core.init_db import get_db
from components.user.repository import UserRepository
from components.user import schemas
from restapi.endpoints.auth import get_current_user
from components.user.models import User

router = APIRouter(
    prefix="/users",
    tags=["users"],
    responses={404: {"description": "Not found"}},
)


@router.get("/me", response_model=schemas.User)
async def read_me(current_user: User = Depends(get_current_user)):
    """Get the signed-in user."""
    return current_user


@router.put("/me", response_model=schemas.User)
async def update_me(
    profile: schemas.ProfileUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Update timezone and day rollover hour of the signed-in user."""
    repo = UserRepository(db)
    return await repo.update_profile(current_user, profile)
