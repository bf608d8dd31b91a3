"""
Centralized logging configuration for shopcart.

Every cart log line carries the browsing session it belongs to, so one
shopper's cart history can be followed through the store, the storage
adapter and the panel.

Usage:
    from shopcart.logging import get_logger, get_session_logger
    logger = get_logger(__name__)
    logger.info("Module-level event")

    log = get_session_logger(__name__, session_id)
    log.info("Added 2 x prod-1 to cart")
    # ... - shopcart.cart.service - INFO - [sess-42] Added 2 x prod-1 to cart
"""

import logging
import os
import sys
from functools import cache

# Default format for logs
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - [%(session)s] %(message)s"
LOG_FORMAT_SIMPLE = "%(levelname)s - %(name)s - [%(session)s] %(message)s"

# Shown when a record is not bound to a cart session
NO_SESSION = "-"
SESSION_MAX_LENGTH = 16


class SessionContextFilter(logging.Filter):
    """Give every record a `session` attribute so the formats always resolve."""

    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "session"):
            record.session = NO_SESSION
        return True


def _get_log_level() -> int:
    """Get log level from environment or default to INFO."""
    level_name = os.environ.get("LOG_LEVEL", "INFO").upper()
    return getattr(logging, level_name, logging.INFO)


def _configure_root_logger() -> None:
    """Configure root logger with a session-aware stdout handler."""
    root = logging.getLogger()

    # Only configure if no handlers exist
    if root.handlers:
        return

    root.setLevel(_get_log_level())

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(_get_log_level())
    handler.addFilter(SessionContextFilter())

    # Simple format in production, detailed locally
    is_production = os.environ.get("SHOPCART_ENV") == "production"
    formatter = logging.Formatter(LOG_FORMAT_SIMPLE if is_production else LOG_FORMAT)
    handler.setFormatter(formatter)

    root.addHandler(handler)

    # Upstash REST client goes through httpx; its request logs are noise
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


# Configure once on module import
_configure_root_logger()


@cache
def get_logger(name: str) -> logging.Logger:
    """Get or create a logger with the given name (typically __name__)."""
    return logging.getLogger(name)


def get_session_logger(name: str, session_id) -> logging.LoggerAdapter:
    """
    Get a logger bound to one cart session.

    Records logged through the adapter carry `record.session`, the
    sanitized session id, which the handler prints in brackets.

    Args:
        name: Logger name (typically __name__)
        session_id: Browsing session the cart belongs to

    Returns:
        LoggerAdapter over get_logger(name)
    """
    session = sanitize_string_for_logging(session_id, max_length=SESSION_MAX_LENGTH)
    if session == "N/A":
        session = NO_SESSION
    return logging.LoggerAdapter(get_logger(name), {"session": session})


def _escape_log_injection(value: str) -> str:
    """
    Escape characters that could be used for log injection attacks (CWE-117).

    Product names and ids come straight from the catalog/UI, so newlines
    and control characters are neutralized before they reach a log line.
    """
    return (
        value.replace("\n", "\\n")
        .replace("\r", "\\r")
        .replace("\t", "\\t")
        .replace("\x00", "")
    )


def sanitize_id_for_logging(id_value) -> str:
    """
    Sanitize a product id for safe logging (first 8 chars, escaped).

    Accepts str or int ids; 0 is a real id. Returns "N/A" for None/empty values.
    """
    if id_value is None or id_value == "":
        return "N/A"
    safe_value = _escape_log_injection(str(id_value))
    return safe_value[:8] if len(safe_value) > 8 else safe_value


def sanitize_string_for_logging(value, max_length: int = 50) -> str:
    """Sanitize a product name or session id (truncate to max_length, escaped)."""
    if value is None or value == "":
        return "N/A"
    safe_value = _escape_log_injection(str(value))
    if len(safe_value) <= max_length:
        return safe_value
    return safe_value[:max_length] + "..."


__all__ = [
    "LOG_FORMAT",
    "LOG_FORMAT_SIMPLE",
    "NO_SESSION",
    "SessionContextFilter",
    "get_logger",
    "get_session_logger",
    "sanitize_id_for_logging",
    "sanitize_string_for_logging",
]
