"""Configuration management"""
import os
from pathlib import Path
from dotenv import load_dotenv

load_dotenv()

# Storage
DATA_PATH: Path = Path(os.getenv("DATA_PATH", "./data"))
USERS_FILE: Path = Path(os.getenv("USERS_FILE", str(DATA_PATH / "users.json")))
TASKS_FILE: Path = Path(os.getenv("TASKS_FILE", str(DATA_PATH / "tasks.json")))
CAMPAIGNS_FILE: Path = Path(os.getenv("CAMPAIGNS_FILE", str(DATA_PATH / "campaigns.json")))

# Logging
LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

# API server
API_HOST: str = os.getenv("API_HOST", "0.0.0.0")
API_PORT: int = int(os.getenv("API_PORT", "8080"))
CORS_ORIGINS: list[str] = [
    origin.strip()
    for origin in os.getenv("CORS_ORIGINS", "http://localhost:3000").split(",")
    if origin.strip()
]

# Debug/admin XP adjustment routes (off unless explicitly enabled)
ENABLE_DEBUG_ROUTES: bool = os.getenv("ENABLE_DEBUG_ROUTES", "false").lower() == "true"

_VALID_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


# Validation
def validate_config() -> None:
    """Validate configuration"""
    from src.exceptions import ConfigurationError

    if LOG_LEVEL.upper() not in _VALID_LOG_LEVELS:
        raise ConfigurationError(f"Invalid LOG_LEVEL: {LOG_LEVEL}", config_key="LOG_LEVEL")
    if not 0 < API_PORT < 65536:
        raise ConfigurationError(f"Invalid API_PORT: {API_PORT}", config_key="API_PORT")
