"""Host context owning executor accounting and service lifecycles."""

from __future__ import annotations

from threading import Lock

from packages.relay_shared.logging import get_logger

from .executors import ExecutorServiceManager
from .lifecycle import ServiceSupport

_LOGGER = get_logger(__name__)


class HostContext(ServiceSupport):
    """Top-level runtime container for endpoints and producers.

    Services added to the context start with it and stop in reverse order when
    it stops; any executor still tracked afterwards is reclaimed.
    """

    def __init__(self, name: str = "relay") -> None:
        super().__init__()
        self.name = name
        self.executor_service_manager = ExecutorServiceManager(context_name=name)
        self._services: list[ServiceSupport] = []
        self._services_lock = Lock()

    def add_service(self, service: ServiceSupport) -> None:
        """Register a service; it is started now if the context already runs."""
        with self._services_lock:
            self._services.append(service)
        if self.is_started:
            service.start()

    def services(self) -> list[ServiceSupport]:
        with self._services_lock:
            return list(self._services)

    def do_start(self) -> None:
        for service in self.services():
            service.start()
        _LOGGER.info("Host context %s started", self.name)

    def do_stop(self) -> None:
        try:
            for service in reversed(self.services()):
                try:
                    service.stop()
                except Exception:  # noqa: BLE001
                    _LOGGER.exception("Failed to stop %s", service.describe())
        finally:
            self.executor_service_manager.shutdown_all()
        _LOGGER.info("Host context %s stopped", self.name)

    def describe(self) -> str:
        return f"HostContext[{self.name}]"
