"""Structured logging for resolution passes.

Levels, from quietest to loudest:
- INFO (20): Pass summaries and disabled packages (default)
- VERBOSE (15): Between INFO and DEBUG
- DEBUG (10): Every registered package and resolved edge
- TRACE (5): Everything

Events carry key/value fields. Fields bound with ``LogContext`` (the
pipeline binds ``stage``) are added to every event emitted inside the
block, unless the event sets the same key itself.
"""

import logging
import sys
from collections.abc import Callable, Iterable
from contextvars import ContextVar
from pathlib import Path
from typing import Any

import structlog

_bound_fields: ContextVar[dict[str, Any]] = ContextVar("buildgraph_log_fields", default={})

TRACE = 5
VERBOSE = 15

logging.addLevelName(TRACE, "TRACE")
logging.addLevelName(VERBOSE, "VERBOSE")

LOG_LEVELS = {
    "TRACE": TRACE,
    "DEBUG": logging.DEBUG,
    "VERBOSE": VERBOSE,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL,
}

Processor = Callable[[Any, str, dict[str, Any]], dict[str, Any]]


class LogContext:
    """
    Bind fields to every event logged inside a ``with`` block.

    Blocks nest; leaving a block restores the fields bound before it.

    Usage:
        with LogContext(stage="sort"):
            logger.info("Topological sort complete")
    """

    def __init__(self, **fields: Any) -> None:
        self.fields = fields
        self.token = None

    def __enter__(self) -> "LogContext":
        merged = {**_bound_fields.get(), **self.fields}
        self.token = _bound_fields.set(merged)
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        if self.token is not None:
            _bound_fields.reset(self.token)
            self.token = None


def add_context(**fields: Any) -> None:
    """Bind fields until the enclosing ``LogContext`` (if any) exits."""
    _bound_fields.set({**_bound_fields.get(), **fields})


def clear_context(key: str) -> None:
    """Unbind one field; unknown keys are ignored."""
    fields = _bound_fields.get()
    if key in fields:
        _bound_fields.set({k: v for k, v in fields.items() if k != key})


def current_context() -> dict[str, Any]:
    """Fields currently bound, as a copy."""
    return dict(_bound_fields.get())


def _context_processor(
    logger: Any, method_name: str, event_dict: dict[str, Any]
) -> dict[str, Any]:
    for key, value in _bound_fields.get().items():
        event_dict.setdefault(key, value)
    return event_dict


def _component_filter(components: Iterable[str]) -> Processor:
    """
    Build a processor keeping only events from the named components.

    A component matches one dotted segment of the logger name, so
    ``sorter`` selects ``buildgraph.dependency.sorter``. Warnings and
    errors always pass.
    """
    wanted = frozenset(components)

    def processor(logger: Any, method_name: str, event_dict: dict[str, Any]) -> dict[str, Any]:
        segments = str(event_dict.get("logger", "")).split(".")
        if wanted.intersection(segments):
            return event_dict
        if get_log_level(str(event_dict.get("level", "info"))) >= logging.WARNING:
            return event_dict
        raise structlog.DropEvent

    return processor


def get_log_level(level: str) -> int:
    """
    Get numeric log level from string.

    Args:
        level: Level name (TRACE, DEBUG, VERBOSE, INFO, WARNING, ERROR, CRITICAL)

    Returns:
        Numeric log level, INFO for unknown names
    """
    return LOG_LEVELS.get(level.upper(), logging.INFO)


def _handlers(log_file: str | Path | None) -> list[logging.Handler]:
    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if log_file:
        path = Path(log_file)
        path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(path, encoding="utf-8"))
    return handlers


def configure_logging(
    level: str = "INFO",
    json_logs: bool = False,
    log_file: str | Path | None = None,
    log_filter: str | None = None,
) -> None:
    """
    Route structlog events through the standard logging module.

    Args:
        level: Logging level (TRACE, DEBUG, VERBOSE, INFO, WARNING, ERROR, CRITICAL)
        json_logs: Render events as JSON instead of console lines
        log_file: Optional path to also write logs to
        log_filter: Comma-separated components to keep below WARNING
            (e.g. "sorter,builder")
    """
    log_level = get_log_level(level)

    logging.basicConfig(
        format="%(message)s",
        level=log_level,
        handlers=_handlers(log_file),
        force=True,
    )
    logging.getLogger().setLevel(log_level)

    processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
    ]

    components = [c.strip() for c in (log_filter or "").split(",") if c.strip()]
    if components:
        processors.append(_component_filter(components))

    processors += [
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        _context_processor,
    ]

    if json_logs:
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty()))

    structlog.configure(
        processors=processors,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )
