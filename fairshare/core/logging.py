"""Observability for the engine, built on Pydantic Logfire.

Modules log through the standard library (logging.getLogger(__name__)) with
%-style messages and `extra` context. Once configure_logfire() has run,
Logfire picks those records up; without a token nothing leaves the process.

Service entry points open a span named after the function:

    with span("insight_service.analyze_insights"):
        ...
"""

import logging

import logfire

from fairshare import __version__
from fairshare.core.config import settings


logger = logging.getLogger(__name__)


def configure_logfire() -> None:
    """Set up Logfire for this process; export only happens when LOGFIRE_TOKEN is set."""
    logfire.configure(
        token=settings.logfire_token,
        service_name="fairshare",
        service_version=__version__,
        environment=settings.environment,
        send_to_logfire="if-token-present",
    )
    logger.info("Logfire configured", extra={"environment": settings.environment})


def span(name: str) -> logfire.LogfireSpan:
    """Open a Logfire span, named `<module>.<function>` by convention."""
    return logfire.span(name)


def log_with_context(
    logger: logging.Logger,
    level: str,
    message: str,
    **context: object,
) -> None:
    """Log `message` at `level` with keyword context attached as record attributes.

    Args:
        logger: Logger instance to use
        level: Level name, any case ("debug", "info", "warning", "error", "critical")
        message: Log message
        **context: Context fields such as space_id, member_id or insight_id
    """
    getattr(logger, level.lower())(message, extra=context)


def log_with_space_context(
    logger: logging.Logger,
    level: str,
    message: str,
    space_id: str | None = None,
    member_id: str | None = None,
    **extra: object,
) -> None:
    """Log with the space and member a call was made for, omitting whichever is unknown.

    Usage:
        log_with_space_context(logger, "info", "Insights reused", space_id="s1", member_id="m1", count=2)
    """
    scope = {key: value for key, value in (("space_id", space_id), ("member_id", member_id)) if value}
    log_with_context(logger, level, message, **scope, **extra)
