"""Structured logging for lloom.

Dispatch branches run concurrently, so every log entry emitted while a
branch is in flight carries the space and model it belongs to. This is done
with structlog context variables, which are task-local under asyncio.

Logging is set up with defaults on import; `Lloom` applies the configured
level and renderer again when it is constructed.
"""

import logging
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

import structlog

__all__ = [
    "configure_logging",
    "get_logger",
    "space_context",
]

# SDK clients log every HTTP request at INFO
_NOISY_LOGGERS = ("httpx", "httpcore", "openai", "anthropic")


def _build_processors(json_output: bool, add_timestamp: bool) -> list[Any]:
    processors: list[Any] = []
    if add_timestamp:
        processors.append(structlog.processors.TimeStamper(fmt="iso", utc=True))
    processors += [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    if json_output:
        processors += [structlog.processors.format_exc_info, structlog.processors.JSONRenderer()]
    else:
        processors.append(
            structlog.dev.ConsoleRenderer(
                colors=sys.stdout.isatty(),
                exception_formatter=structlog.dev.plain_traceback,
            )
        )
    return processors


def configure_logging(
    level: int | str = logging.INFO,
    json_output: bool = False,
    add_timestamp: bool = True,
) -> None:
    """Configure structlog for the application.

    Safe to call more than once; later calls replace the renderer and level.

    Args:
        level: Logging level, as a number or a name such as "DEBUG"
        json_output: If True, output JSON; if False, pretty console output
        add_timestamp: If True, add a UTC ISO timestamp to log entries
    """
    structlog.configure(
        processors=_build_processors(json_output, add_timestamp),
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        # module-level loggers must see later reconfiguration
        cache_logger_on_first_use=False,
    )

    root = logging.getLogger()
    if not root.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter("%(message)s"))
        root.addHandler(handler)
    root.setLevel(level.upper() if isinstance(level, str) else level)

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Get a configured structlog logger.

    Args:
        name: Logger name (usually __name__ of the calling module)

    Returns:
        Configured structlog BoundLogger instance
    """
    return structlog.get_logger(name)


@contextmanager
def space_context(space_id: str, model_id: str) -> Iterator[None]:
    """Bind space_id and model_id to every log entry in the block.

    Args:
        space_id: Target space of the current dispatch branch
        model_id: Model the branch is addressing
    """
    with structlog.contextvars.bound_contextvars(space_id=space_id, model_id=model_id):
        yield


_configured = False


def _ensure_configured() -> None:
    global _configured
    if not _configured:
        configure_logging()
        _configured = True


_ensure_configured()
