"""Start/stop lifecycle shared by contexts, endpoints and producers."""

from __future__ import annotations

from enum import Enum
from threading import RLock

from packages.relay_shared.errors import ErrorDetail, state_error
from packages.relay_shared.logging import get_logger

_LOGGER = get_logger(__name__)


class ServiceStatus(str, Enum):
    """Lifecycle states of one runtime service."""

    CREATED = "created"
    STARTING = "starting"
    STARTED = "started"
    STOPPING = "stopping"
    STOPPED = "stopped"
    FAILED = "failed"


class ServiceStateError(RuntimeError):
    """Raised when a service is used outside the state that allows it."""

    def __init__(self, service: str, status: ServiceStatus, operation: str) -> None:
        super().__init__(f"{service} cannot {operation} while {status.value}")
        self.service = service
        self.status = status
        self.operation = operation

    def error_detail(self) -> ErrorDetail:
        """Return the structured summary used in logs and metrics."""
        return state_error(
            str(self),
            metadata={"service": self.service, "status": self.status.value},
        )


class ServiceSupport:
    """Idempotent lifecycle skeleton around ``do_start``/``do_stop`` hooks.

    ``start`` on a started service and ``stop`` on a stopped (or never
    started) service are no-ops. A stopped service cannot be restarted. If
    ``do_start`` raises, the service is marked failed and the error
    propagates.
    """

    def __init__(self) -> None:
        self._status = ServiceStatus.CREATED
        self._status_lock = RLock()

    @property
    def status(self) -> ServiceStatus:
        return self._status

    @property
    def is_started(self) -> bool:
        return self._status is ServiceStatus.STARTED

    @property
    def is_stopped(self) -> bool:
        return self._status is ServiceStatus.STOPPED

    def start(self) -> None:
        """Start the service once."""
        with self._status_lock:
            if self._status is ServiceStatus.STARTED:
                return
            if self._status is not ServiceStatus.CREATED:
                raise ServiceStateError(self.describe(), self._status, "start")
            self._status = ServiceStatus.STARTING
            try:
                self.do_start()
            except Exception:
                self._status = ServiceStatus.FAILED
                _LOGGER.exception("Failed to start %s", self.describe())
                raise
            self._status = ServiceStatus.STARTED
        _LOGGER.debug("Started %s", self.describe())

    def stop(self) -> None:
        """Stop the service once; never-started services just become stopped."""
        with self._status_lock:
            if self._status is ServiceStatus.STOPPED:
                return
            was_running = self._status in (ServiceStatus.STARTED, ServiceStatus.FAILED)
            self._status = ServiceStatus.STOPPING
            try:
                if was_running:
                    self.do_stop()
            finally:
                self._status = ServiceStatus.STOPPED
        _LOGGER.debug("Stopped %s", self.describe())

    def do_start(self) -> None:
        """Acquire resources; called once from ``start``."""

    def do_stop(self) -> None:
        """Release resources; called once from ``stop``."""

    def describe(self) -> str:
        """Return a short name used in lifecycle logs and errors."""
        return type(self).__name__
