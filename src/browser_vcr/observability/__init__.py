"""Observability module for session logging and statistics."""

from .logging import bind_session_context, clear_session_context, get_session_logger, setup_structured_logging
from .models import SessionStats

__all__ = [
    "SessionStats",
    "bind_session_context",
    "clear_session_context",
    "get_session_logger",
    "setup_structured_logging",
]
