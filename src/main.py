"""Main entry point for the quest tracker API"""
import logging
import uvicorn
from src.config import validate_config, API_HOST, API_PORT, LOG_LEVEL
from src.api.server import create_api_application
from src.db.connection import db
from src.services.container import init_container

logger = logging.getLogger(__name__)


def main() -> None:
    """Main application entry point"""
    # Validate configuration
    logger.info("Validating configuration...")
    validate_config()

    init_container(db)
    app = create_api_application()

    logger.info(f"Starting API on {API_HOST}:{API_PORT}")
    uvicorn.run(app, host=API_HOST, port=API_PORT, log_level=LOG_LEVEL.lower())


if __name__ == "__main__":
    main()
