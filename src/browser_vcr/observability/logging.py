"""Structured logging with per-session context using structlog and contextvars."""

import logging
from contextvars import ContextVar

import structlog

# Context variables for the active cassette session
current_cassette: ContextVar[str | None] = ContextVar("current_cassette", default=None)
current_mode: ContextVar[str | None] = ContextVar("current_mode", default=None)

_configured = False


def setup_structured_logging(level: str = "INFO", json: bool = True) -> None:
    """Configure structlog over stdlib logging.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR)
        json: Render JSON lines; when False use structlog's console renderer
    """
    global _configured
    if _configured:
        return

    renderer = structlog.processors.JSONRenderer() if json else structlog.dev.ConsoleRenderer()

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,  # Inject session context
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        level=getattr(logging, level.upper()),
    )

    _configured = True


def bind_session_context(cassette: str, mode: str) -> None:
    """Bind the active cassette for all subsequent logs in this async context."""
    current_cassette.set(cassette)
    current_mode.set(mode)
    structlog.contextvars.bind_contextvars(cassette=cassette, mode=mode)


def clear_session_context() -> None:
    """Clear session context after the session stops."""
    current_cassette.set(None)
    current_mode.set(None)
    structlog.contextvars.unbind_contextvars("cassette", "mode")


def get_session_logger(name: str = "browser_vcr") -> structlog.stdlib.BoundLogger:
    """Get a structlog logger carrying the session context."""
    return structlog.get_logger(name)


def get_current_cassette() -> str | None:
    return current_cassette.get()


def get_current_mode() -> str | None:
    return current_mode.get()
