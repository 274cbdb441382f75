"""
Exception hierarchy for sleepcore

Every error carries the user and operation it happened in, is logged once
when raised, and can be rendered for a calling service with to_dict().
"""

from datetime import datetime, timezone
from typing import Optional, Dict, Any
from uuid import uuid4
import logging

logger = logging.getLogger(__name__)

DEFAULT_USER_MESSAGE = "Your sleep program could not be updated right now."


class SleepCoreError(Exception):
    """
    Root of all engine errors

    Attributes set on every instance: user_id, operation, context (dict of
    extra fields), cause (wrapped exception), user_message (safe to show to
    the end user), request_id (uuid4 unless given) and a UTC timestamp.

    Example:
        raise SleepCoreError(
            message="Action statistics missing for relaxation_imagery",
            user_id="u-42",
            operation="restore_snapshot",
            context={"restored_actions": 6}
        )
    """

    def __init__(
        self,
        message: str,
        user_id: Optional[str] = None,
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
        self.user_message = user_message or DEFAULT_USER_MESSAGE
        self.timestamp = datetime.now(timezone.utc)

        self._log_error()

    def _log_error(self) -> None:
        # "message" is reserved on LogRecord, hence error_message
        extra = {
            "error_type": type(self).__name__,
            "error_message": self.message,
            "request_id": self.request_id,
            "user_id": self.user_id,
            "operation": self.operation,
            "error_context": self.context,
        }
        if self.cause is not None:
            extra["cause"] = repr(self.cause)

        where = f" [{self.operation}]" if self.operation else ""
        logger.error(
            f"{type(self).__name__}{where}: {self.message}",
            extra=extra,
            exc_info=self.cause,
        )

    def to_dict(self) -> Dict[str, Any]:
        """Plain-dict form for a calling service; internal context is left out"""
        return {
            "error": type(self).__name__,
            "message": self.message,
            "user_message": self.user_message,
            "operation": self.operation,
            "request_id": self.request_id,
            "timestamp": self.timestamp.isoformat()
        }


# ==========================================
# Validation Errors (Caller Input)
# ==========================================

class ValidationError(SleepCoreError):
    """
    Raised when caller input fails validation

    Examples:
    - Unknown intervention id
    - Snapshot with non-positive Beta parameters
    - Malformed "HH:MM" time string

    Example:
        raise ValidationError(
            message="Unknown action",
            field="action",
            value="nap_more",
            user_id="123456"
        )
    """

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        value: Optional[Any] = None,
        **kwargs
    ):
        self.field = field
        self.value = value
        super().__init__(
            message=message,
            user_message=f"Invalid {field}: {message}" if field else message,
            context={"field": field, "value": value},
            **kwargs
        )


# ==========================================
# Configuration Errors
# ==========================================

class ConfigurationError(SleepCoreError):
    """Engine configuration is invalid; raised at construction time only"""

    def __init__(
        self,
        message: str,
        config_key: Optional[str] = None,
        **kwargs
    ):
        self.config_key = config_key
        super().__init__(
            message=message,
            user_message="The sleep engine is not properly configured. Please contact support.",
            context={"config_key": config_key},
            **kwargs
        )


# ==========================================
# Evidence Errors
# ==========================================

class InsufficientDataError(SleepCoreError):
    """
    Not enough history to personalize safely

    The engine refuses instead of approximating an under-evidenced
    prescription change.
    """

    def __init__(
        self,
        message: str,
        required: Optional[int] = None,
        available: Optional[int] = None,
        **kwargs
    ):
        self.required = required
        self.available = available
        super().__init__(
            message=message,
            user_message=(
                f"We need at least {required} days of sleep diary data before adjusting your plan."
                if required else "We need more sleep diary data before adjusting your plan."
            ),
            context={"required": required, "available": available},
            **kwargs
        )


# ==========================================
# Registry Errors
# ==========================================

class RecordNotFoundError(SleepCoreError):
    """Requested per-user record does not exist"""

    def __init__(
        self,
        message: str,
        record_type: Optional[str] = None,
        record_id: Optional[str] = None,
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
