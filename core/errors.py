"""
Production error handling & logging utilities.
Exception taxonomy for the transfer workflow plus centralized error logging.
"""
import streamlit as st
import hashlib
import logging
import traceback
from datetime import datetime
from functools import wraps

logger = logging.getLogger("TransferPortal")

# User-safe error messages (hide technical details)
USER_SAFE_MESSAGES = {
    "network": "Network connection issue. Please check your connection and try again.",
    "authentication": "Your session is no longer valid. Please sign in again.",
    "permission": "You don't have permission to perform this action.",
    "validation": "The data provided is invalid. Please check your input.",
    "timeout": "The operation took too long. Please try again.",
    "not_found": "The requested resource was not found.",
    "server": "The server could not complete the request. Please try again later.",
    "default": "An unexpected error occurred. Please try again or contact support."
}


class ValidationError(Exception):
    """Local rule failure, raised before any request is sent."""

    def __init__(self, rule: str, message: str, failing_count: int = 1):
        super().__init__(message)
        self.rule = rule
        self.message = message
        self.failing_count = failing_count


class TransportError(Exception):
    """Network or server failure while talking to the backend."""

    def __init__(self, message: str, status_code: int = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class AuthenticationRequired(TransportError):
    """No usable session token, or the backend rejected it."""


def get_error_id() -> str:
    """Generate unique error ID for support reference."""
    timestamp = datetime.now().isoformat()
    return hashlib.md5(timestamp.encode()).hexdigest()[:8].upper()


def log_error(error: Exception, context: str = "", user: str = None) -> str:
    """
    Log technical error details to file and return error ID for user reference.

    Args:
        error: The exception that occurred
        context: Additional context about what was being attempted
        user: Current user's identifier for audit purposes

    Returns:
        Error ID for user reference
    """
    error_id = get_error_id()

    logger.error(
        f"ERROR_ID={error_id} | "
        f"CONTEXT={context} | "
        f"USER={user or 'unknown'} | "
        f"TYPE={type(error).__name__} | "
        f"MESSAGE={str(error)} | "
        f"TRACE={traceback.format_exc()}"
    )

    return error_id


def classify_error(error: Exception) -> str:
    """Classify error type to determine user-safe message."""
    if isinstance(error, AuthenticationRequired):
        return "authentication"
    if isinstance(error, ValidationError):
        return "validation"
    if isinstance(error, TransportError) and error.status_code:
        if error.status_code == 403:
            return "permission"
        if error.status_code == 404:
            return "not_found"
        if error.status_code >= 500:
            return "server"

    error_str = str(error).lower()
    error_type = type(error).__name__.lower()

    # Network errors
    if any(x in error_str for x in ['timeout', 'timed out']) or 'timeout' in error_type:
        return "timeout"
    if any(x in error_str for x in ['connection refused', 'network', 'connection']):
        return "network"

    # Permission errors
    if any(x in error_str for x in ['permission', 'denied', 'forbidden']):
        return "permission"

    # Not found errors
    if any(x in error_str for x in ['not found', '404', 'does not exist']):
        return "not_found"

    return "default"


def safe_execute(func=None, context: str = "", fallback=None, show_error: bool = True):
    """
    Decorator/function for safe execution with error handling.

    Can be used as decorator:
        @safe_execute(context="Building export")
        def build_export(): ...

    Or as wrapper:
        result = safe_execute(lambda: risky_operation(), context="Risky op", fallback={})()
    """
    def decorator(f):
        @wraps(f)
        def wrapper(*args, **kwargs):
            try:
                return f(*args, **kwargs)
            except Exception as e:
                user = st.session_state.get('username', 'unknown')
                error_id = log_error(e, context or f.__name__, user)
                error_type = classify_error(e)

                if show_error:
                    user_message = USER_SAFE_MESSAGES.get(error_type, USER_SAFE_MESSAGES["default"])
                    st.error(f"{user_message} (Ref: {error_id})")

                return fallback() if callable(fallback) else fallback
        return wrapper

    # Allow use as @safe_execute or @safe_execute(context="...")
    if func is not None:
        return decorator(func)
    return decorator
