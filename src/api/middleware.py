"""API middleware for rate limiting and CORS"""
import logging
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.util import get_remote_address
from slowapi.errors import RateLimitExceeded
from fastapi.middleware.cors import CORSMiddleware

from src.config import CORS_ORIGINS

logger = logging.getLogger(__name__)

# Per-route limits for read and write endpoints
READ_RATE_LIMIT = "120/minute"
WRITE_RATE_LIMIT = "60/minute"

# Initialize rate limiter
limiter = Limiter(key_func=get_remote_address)


def setup_cors(app, origins=None):
    """Configure CORS middleware"""
    cors_origins = origins if origins is not None else CORS_ORIGINS

    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    logger.info(f"CORS configured for origins: {cors_origins}")


def setup_rate_limiting(app):
    """Configure rate limiting"""
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
    logger.info(f"Rate limiting configured: {READ_RATE_LIMIT} reads, {WRITE_RATE_LIMIT} writes per IP")
