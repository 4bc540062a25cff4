"""FastAPI application setup"""
import logging
from contextlib import asynccontextmanager
from typing import Optional
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from src.api.routes import router, debug_router
from src.api.middleware import setup_cors, setup_rate_limiting
from src.config import LOG_LEVEL, ENABLE_DEBUG_ROUTES
from src.exceptions import (
    QuestTrackerError,
    ValidationError,
    DuplicateClaimError,
    RecordNotFoundError,
)
from src.services.container import ServiceContainer, get_container

# Configure logging
logging.basicConfig(
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    level=getattr(logging, LOG_LEVEL.upper(), logging.INFO)
)

logger = logging.getLogger(__name__)


def status_code_for(exc: QuestTrackerError) -> int:
    """HTTP status for an application error"""
    if isinstance(exc, DuplicateClaimError):
        return 409
    if isinstance(exc, ValidationError):
        return 400
    if isinstance(exc, RecordNotFoundError):
        return 404
    return 500


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifecycle manager for FastAPI application"""
    # Startup
    logger.info("Starting API server...")
    store = app.state.container.store
    logger.info(
        f"Users file: {store.path_for('users')}, tasks file: {store.path_for('tasks')}, "
        f"campaigns file: {store.path_for('campaigns')}"
    )

    yield

    # Shutdown
    logger.info("Shutting down API server...")


def create_api_application(
    container: Optional[ServiceContainer] = None,
    enable_debug_routes: bool = ENABLE_DEBUG_ROUTES
) -> FastAPI:
    """
    Create and configure FastAPI application

    Uses the global service container unless one is passed in.
    """
    app = FastAPI(
        title="Quest Tracker API",
        description="REST API for the gamified quest tracker",
        version="1.0.0",
        lifespan=lifespan
    )
    if container is None:
        container = get_container()
    app.state.container = container

    # Setup middleware
    setup_cors(app)
    setup_rate_limiting(app)

    # Include routes
    app.include_router(router)
    if enable_debug_routes:
        app.include_router(debug_router)
        logger.warning("Debug XP and task seeding routes enabled")

    @app.exception_handler(QuestTrackerError)
    async def quest_tracker_exception_handler(request: Request, exc: QuestTrackerError):
        return JSONResponse(status_code=status_code_for(exc), content=exc.to_dict())

    # Global exception handler
    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        logger.error(f"Unhandled exception: {exc}", exc_info=True)
        return JSONResponse(
            status_code=500,
            content={"error": "Internal server error", "detail": str(exc)}
        )

    logger.info("FastAPI application created")

    return app
