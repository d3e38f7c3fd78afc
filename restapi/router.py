"""Application configuration and router setup."""

import logging

import fastapi
from fastapi import Request
from fastapi.middleware import cors
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from components.core import init_db
from components.core.config import get_settings
from components.core.errors import AuthenticationError, BudgetError
from restapi.endpoints import admin, auth, budget, health_check, user

logger = logging.getLogger(__name__)


def configure_logging() -> None:
    logging.basicConfig(
        level=get_settings().LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


async def budget_error_handler(request: Request, exc: BudgetError) -> JSONResponse:
    headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, AuthenticationError) else None
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message}, headers=headers)


async def database_error_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    logger.error("Unhandled database error on %s: %s", request.url.path, exc)
    return JSONResponse(status_code=503, content={"detail": "Storage unavailable, please retry"})


def create_app() -> fastapi.FastAPI:
    """Create and configure the FastAPI application."""
    configure_logging()
    app = fastapi.FastAPI(
        title="Token Budget",
        description="Weekly token budgeting with surplus rollover",
        version="1.0.0",
    )

    # Initialize database
    init_db.init_db(app)

    # Add CORS middleware
    app.add_middleware(
        cors.CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(BudgetError, budget_error_handler)
    app.add_exception_handler(SQLAlchemyError, database_error_handler)

    # Include routers
    app.include_router(health_check.router)
    app.include_router(auth.router)
    app.include_router(user.router)
    app.include_router(budget.router)
    app.include_router(admin.router)

    return app
