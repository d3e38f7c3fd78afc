"""Privileged endpoints, authenticated with the admin key instead of a user token."""

from typing import Optional
from fastapi import APIRouter, Depends, Header, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from components.core.init_db import get_db
from components.core.security import verify_admin_key
from components.user import schemas
from components.user.repository import UserRepository

router = APIRouter(
    prefix="/admin",
    tags=["admin"],
    responses={404: {"description": "Not found"}},
)


async def require_admin_key(x_admin_key: Optional[str] = Header(None)) -> None:
    if not verify_admin_key(x_admin_key):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin key missing or invalid",
        )


@router.post(
    "/set-user-budget",
    response_model=schemas.SetUserBudgetResponse,
    dependencies=[Depends(require_admin_key)],
)
async def set_user_budget(
    request: schemas.SetUserBudgetRequest,
    db: AsyncSession = Depends(get_db),
):
    """
    Set the target annual income of the user registered under ``email``.

    Only the income changes; modules and fund stay as they are.
    """
    user = await UserRepository(db).set_annual_income_by_email(request.email, request.amount)
    return schemas.SetUserBudgetResponse(
        message=f"Annual income set to ${request.amount} for {request.email}.",
        user_id=user.id,
        annual_income=request.amount,
    )
