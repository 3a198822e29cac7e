"""Error reporting for the command line tools.

Errors raised while reading a capture are reported against the event and
invocation they came from, so a bad line in a large capture can be found.
"""

import sys
from typing import Any, Optional

from tailtrace.exceptions import EventParsingError, TailtraceError
from tailtrace.log import logger


def event_context(index: int, raw: Any) -> str:
    """Describe a captured event by position and, when known, invocation."""
    context = f"event #{index}"
    if isinstance(raw, dict):
        invocation_id = raw.get("invocationId")
        if invocation_id:
            context += f" (invocation {invocation_id})"
        payload = raw.get("event")
        if isinstance(payload, dict) and payload.get("type"):
            context += f" [{payload['type']}]"
    return context


def handle_error(
    error: Exception,
    exit_on_error: bool = False,
    context: Optional[str] = None,
) -> None:
    """Log an error and optionally exit.

    Args:
        error: The exception that was raised
        exit_on_error: If True, exit with status 1 after logging
        context: Where the error happened, e.g. from event_context()
    """
    prefix = f"{context}: " if context else ""

    if isinstance(error, EventParsingError):
        logger.error(f"{prefix}Malformed tail event: {error}")
    elif isinstance(error, TailtraceError):
        logger.error(f"{prefix}{error}")
    else:
        logger.error(f"{prefix}Unexpected error: {error!r}")
        logger.debug("Stack trace:", exc_info=error)

    if exit_on_error:
        sys.exit(1)
