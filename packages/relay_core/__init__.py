"""Minimal host runtime: exchanges, executors, lifecycles and producers."""

from .context import HostContext
from .exchange import (
    AsyncCallback,
    Exchange,
    HeaderConversionError,
    Message,
    convert_value,
)
from .executors import ExecutorServiceManager
from .lifecycle import ServiceStateError, ServiceStatus, ServiceSupport
from .producer import AsyncProducer
from .template import DEFAULT_REQUEST_TIMEOUT_SECONDS, ProducerTemplate

__all__ = [
    "AsyncCallback",
    "AsyncProducer",
    "DEFAULT_REQUEST_TIMEOUT_SECONDS",
    "Exchange",
    "ExecutorServiceManager",
    "HeaderConversionError",
    "HostContext",
    "Message",
    "ProducerTemplate",
    "ServiceStateError",
    "ServiceStatus",
    "ServiceSupport",
    "convert_value",
]
