"""Public logging API for relay components.

This package wraps Python's ``logging`` module with stdout defaults, structured
context propagation across executor threads, and exchange instrumentation.
"""

from .config import configure_logging, configure_logging_from_settings, get_logger
from .context import (
    bind_context,
    capture_context,
    clear_context,
    get_context,
    log_context,
    run_with_context,
)
from .instrumentation import (
    CompletionContext,
    ExchangeInstrumentation,
    ExchangeInstrumentationConcern,
    ExchangeLoggingConcern,
    ExchangeMetricsConcern,
    ExchangeScope,
    InvocationContext,
    build_metrics_concern,
    resolve_error_detail,
)

__all__ = [
    "bind_context",
    "build_metrics_concern",
    "capture_context",
    "clear_context",
    "CompletionContext",
    "configure_logging",
    "configure_logging_from_settings",
    "ExchangeInstrumentation",
    "ExchangeInstrumentationConcern",
    "ExchangeLoggingConcern",
    "ExchangeMetricsConcern",
    "ExchangeScope",
    "get_context",
    "get_logger",
    "InvocationContext",
    "log_context",
    "resolve_error_detail",
    "run_with_context",
]
