"""Observability - logging, metrics, and reporting."""

from .logger import VERBOSE, LogContext, add_context, clear_context, configure_logging
from .metrics import LoggerBackend, MetricsCollector, get_global_collector, metric_key
from .reporter import ProjectReport, ReportGenerator

__all__ = [
    "MetricsCollector",
    "LoggerBackend",
    "get_global_collector",
    "metric_key",
    "ReportGenerator",
    "ProjectReport",
    "configure_logging",
    "add_context",
    "clear_context",
    "LogContext",
    "VERBOSE",
]
