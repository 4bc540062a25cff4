"""
Standardized exception hierarchy for the quest tracker
Provides rich context, consistent logging, and user-friendly error messages
"""

from datetime import datetime, timezone
from typing import Optional, Dict, Any
from uuid import uuid4
import logging

logger = logging.getLogger(__name__)


class QuestTrackerError(Exception):
    """
    Base exception for all quest tracker errors

    Provides:
    - Automatic timestamping
    - Request ID for tracing
    - User-friendly messages
    - Structured context
    - Automatic logging

    Example:
        raise QuestTrackerError(
            message="Failed to save task",
            user_id=7,
            operation="update_task_status",
            context={"task_id": 12}
        )
    """

    log_level = logging.ERROR

    def __init__(
        self,
        message: str,
        user_id: Optional[Any] = None,
        request_id: Optional[str] = None,
        operation: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
        cause: Optional[Exception] = None,
        user_message: Optional[str] = None
    ):
        super().__init__(message)
        self.message = message
        self.user_id = user_id
        self.request_id = request_id or str(uuid4())
        self.operation = operation
        self.context = context or {}
        self.cause = cause
        self.user_message = user_message or "An error occurred. Please try again."
        self.timestamp = datetime.now(timezone.utc)

        # Auto-log on creation
        self._log_error()

    def _log_error(self) -> None:
        """Log error with full context"""
        log_data = {
            "error_type": self.__class__.__name__,
            "error_message": self.message,  # Avoid conflict with logging's 'message' field
            "request_id": self.request_id,
            "user_id": self.user_id,
            "operation": self.operation,
            "error_context": self.context,
            "timestamp": self.timestamp.isoformat()
        }

        if self.cause:
            log_data["cause"] = str(self.cause)
            logger.log(
                self.log_level,
                f"{self.__class__.__name__}: {self.message}",
                extra=log_data,
                exc_info=self.cause
            )
        else:
            logger.log(self.log_level, f"{self.__class__.__name__}: {self.message}", extra=log_data)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize exception for API responses"""
        return {
            "error": self.__class__.__name__,
            "message": self.message,
            "user_message": self.user_message,
            "request_id": self.request_id,
            "timestamp": self.timestamp.isoformat()
        }


# ==========================================
# Validation Errors (User Input)
# ==========================================

class ValidationError(QuestTrackerError):
    """
    Raised when user input fails validation

    Examples:
    - Unknown task status
    - Non-numeric XP adjustment
    """

    log_level = logging.WARNING

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        value: Optional[Any] = None,
        user_message: Optional[str] = None,
        **kwargs
    ):
        self.field = field
        self.value = value
        super().__init__(
            message=message,
            user_message=user_message or (f"Invalid {field}: {message}" if field else message),
            context={"field": field, "value": value},
            **kwargs
        )


class InvalidAmountError(ValidationError):
    """XP delta is zero or not a finite number"""

    def __init__(self, message: str = "Amount must be a non-zero finite number", value: Any = None, **kwargs):
        super().__init__(
            message=message,
            field="amount",
            value=value,
            user_message=message,
            **kwargs
        )


class DuplicateClaimError(ValidationError):
    """Daily reward was already claimed for the current UTC day"""

    def __init__(self, day_key: str, **kwargs):
        self.day_key = day_key
        super().__init__(
            message="Daily reward already claimed",
            field="last_daily_reward_at",
            value=day_key,
            user_message="Daily reward already claimed today. Come back tomorrow!",
            **kwargs
        )


# ==========================================
# Storage Errors
# ==========================================

class StorageError(QuestTrackerError):
    """
    Base class for storage-related errors
    """
    pass


class RecordNotFoundError(StorageError):
    """Requested record does not exist"""

    log_level = logging.WARNING

    def __init__(
        self,
        message: str,
        record_type: Optional[str] = None,
        record_id: Optional[Any] = None,
        **kwargs
    ):
        self.record_type = record_type
        self.record_id = record_id
        super().__init__(
            message=message,
            user_message=f"{record_type or 'Record'} not found.",
            context={"record_type": record_type, "record_id": record_id},
            **kwargs
        )


class PersistenceError(StorageError):
    """Reading or writing a data file failed"""

    def __init__(
        self,
        message: str,
        path: Optional[str] = None,
        **kwargs
    ):
        self.path = path
        super().__init__(
            message=message,
            user_message="We encountered an issue saving your data. Please try again.",
            context={"path": path},
            **kwargs
        )


# ==========================================
# Configuration Errors
# ==========================================

class ConfigurationError(QuestTrackerError):
    """System configuration is invalid or missing"""

    def __init__(
        self,
        message: str,
        config_key: Optional[str] = None,
        **kwargs
    ):
        self.config_key = config_key
        super().__init__(
            message=message,
            user_message="The system is not properly configured. Please contact support.",
            context={"config_key": config_key},
            **kwargs
        )


# ==========================================
# Helper Functions
# ==========================================

def wrap_storage_exception(
    error: Exception,
    operation: str,
    path: Optional[str] = None,
    user_id: Optional[Any] = None
) -> QuestTrackerError:
    """
    Wrap low-level I/O and decoding failures into our exception hierarchy

    Example:
        try:
            path.write_text(payload)
        except OSError as e:
            raise wrap_storage_exception(e, operation="write_users", path=str(path))
    """
    if isinstance(error, QuestTrackerError):
        return error

    if isinstance(error, (OSError, ValueError, TypeError)):
        return PersistenceError(
            message=f"{operation} failed: {error}",
            path=path,
            user_id=user_id,
            operation=operation,
            cause=error
        )

    return QuestTrackerError(
        message=f"{operation} failed: {error}",
        user_id=user_id,
        operation=operation,
        context={"path": path},
        cause=error
    )
