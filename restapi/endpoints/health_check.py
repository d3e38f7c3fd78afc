"""Liveness endpoint for the token budget API."""

from fastapi import APIRouter

from components.core import schemas
from components.core.config import get_settings

router = APIRouter(
    prefix="/health_check",
    tags=["services"],
    responses={200: {"description": "Service is healthy"}},
)

SERVICE_NAME = "token-budget"


@router.get("/", response_model=schemas.HealthCheck)
async def health_check() -> schemas.HealthCheck:
    """Report that the budget API is up and which API version it serves."""
    return schemas.HealthCheck(
        service_name=SERVICE_NAME,
        status="healthy",
        api_version=get_settings().API_VERSION,
    )
