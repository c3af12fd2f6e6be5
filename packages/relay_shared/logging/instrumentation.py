"""Composable instrumentation for exchanges flowing through producers.

A producer opens one ``ExchangeScope`` per ``process`` call. The scope emits an
invocation event immediately and a completion event exactly once, right before
the caller's continuation is signalled, whether that happens synchronously or
later on an executor thread. Concerns (logging, metrics) receive both events
through one stable hook contract.
"""

from __future__ import annotations

from dataclasses import dataclass
from threading import Lock
from time import perf_counter
from typing import TYPE_CHECKING, Any, Callable, Mapping, Protocol, Sequence

from packages.relay_shared.errors import ErrorDetail, exception_to_error

from . import fields
from .context import log_context

if TYPE_CHECKING:
    from packages.relay_shared.config import ExchangeOtelSettings


@dataclass(frozen=True)
class InvocationContext:
    """Structured metadata describing one exchange entering a producer."""

    component_id: str
    exchange_id: str
    action: str | None
    references: Mapping[str, str]


@dataclass(frozen=True)
class CompletionContext:
    """Structured metadata describing one completed exchange."""

    invocation: InvocationContext
    success: bool
    synchronous: bool
    duration_ms: float
    errors: list[str]
    error_categories: list[str]


class ExchangeInstrumentationConcern(Protocol):
    """Hook contract for one exchange instrumentation concern."""

    def on_invocation(self, context: InvocationContext) -> None:
        """Handle the invocation event for one exchange."""

    def on_completion(self, context: CompletionContext) -> None:
        """Handle the completion event for one exchange."""


class ExchangeLoggingConcern:
    """Logging concern for exchange invocation/completion events."""

    def __init__(self, *, logger: Any) -> None:
        self._logger = logger

    def on_invocation(self, context: InvocationContext) -> None:
        """Emit a structured debug log when an exchange enters a producer."""
        with log_context(_invocation_log_context(context)):
            self._logger.debug("Exchange received")

    def on_completion(self, context: CompletionContext) -> None:
        """Emit a structured completion log, warning level on failure."""
        payload = _invocation_log_context(context.invocation)
        payload.update(
            {
                fields.EVENT: fields.EXCHANGE_COMPLETION_EVENT,
                fields.SUCCESS: context.success,
                fields.SYNCHRONOUS: context.synchronous,
                fields.DURATION_MS: context.duration_ms,
                fields.ERRORS: context.errors,
            }
        )
        with log_context(payload):
            if context.success:
                self._logger.info("Exchange completed")
            else:
                self._logger.warning("Exchange failed")


class _CounterLike(Protocol):
    """Minimal counter interface used by metrics concern."""

    def add(self, amount: int | float, attributes: Mapping[str, str]) -> None:
        """Record one counter increment with attributes."""


class _HistogramLike(Protocol):
    """Minimal histogram interface used by metrics concern."""

    def record(self, amount: float, attributes: Mapping[str, str]) -> None:
        """Record one sample with attributes."""


class ExchangeMetricsConcern:
    """Metrics concern emitting exchange counters and latency histograms."""

    def __init__(
        self,
        *,
        exchanges_total: _CounterLike,
        exchange_duration_ms: _HistogramLike,
        exchange_errors_total: _CounterLike,
    ) -> None:
        self._exchanges_total = exchanges_total
        self._exchange_duration_ms = exchange_duration_ms
        self._exchange_errors_total = exchange_errors_total

    def on_invocation(self, context: InvocationContext) -> None:
        """No-op at invocation; metrics are emitted on completion."""
        del context

    def on_completion(self, context: CompletionContext) -> None:
        """Emit counters/histograms for one completed exchange."""
        attrs = {
            fields.COMPONENT_ID: context.invocation.component_id,
            fields.ACTION: context.invocation.action or "unknown",
            fields.OUTCOME: "success" if context.success else "failure",
        }
        self._exchanges_total.add(1, attributes=attrs)
        self._exchange_duration_ms.record(context.duration_ms, attributes=attrs)

        if context.success:
            return

        for category in context.error_categories or ["unknown"]:
            self._exchange_errors_total.add(
                1,
                attributes={
                    fields.COMPONENT_ID: context.invocation.component_id,
                    fields.ACTION: context.invocation.action or "unknown",
                    fields.ERROR_CATEGORY: category,
                },
            )


class ExchangeScope:
    """One in-flight exchange; emits its completion event at most once."""

    def __init__(
        self,
        *,
        invocation: InvocationContext,
        exchange: Any,
        concerns: Sequence[ExchangeInstrumentationConcern],
        logger: Any | None,
    ) -> None:
        self.invocation = invocation
        self._exchange = exchange
        self._concerns = concerns
        self._logger = logger
        self._started = perf_counter()
        self._completed = False
        self._lock = Lock()

    def complete(self, synchronous: bool) -> None:
        """Emit the completion event derived from the exchange outcome."""
        with self._lock:
            if self._completed:
                return
            self._completed = True

        errors: list[str] = []
        categories: list[str] = []
        exception = getattr(self._exchange, "exception", None)
        if exception is not None:
            detail = resolve_error_detail(exception)
            errors.append(f"{detail.code}: {detail.message}")
            categories.append(detail.category.value)

        completion = CompletionContext(
            invocation=self.invocation,
            success=exception is None,
            synchronous=synchronous,
            duration_ms=round((perf_counter() - self._started) * 1000.0, 3),
            errors=errors,
            error_categories=categories,
        )
        _emit_completion(
            concerns=self._concerns, context=completion, logger=self._logger
        )

    def wrap(self, callback: Callable[[bool], None]) -> Callable[[bool], None]:
        """Return a continuation that records completion before delegating."""

        def _done(done_sync: bool) -> None:
            self.complete(done_sync)
            callback(done_sync)

        return _done


class ExchangeInstrumentation:
    """Factory for exchange scopes sharing one component's concern set."""

    def __init__(
        self,
        *,
        component_id: str,
        concerns: Sequence[ExchangeInstrumentationConcern] | None = None,
        logger: Any | None = None,
    ) -> None:
        resolved: tuple[ExchangeInstrumentationConcern, ...] = tuple(concerns or ())
        if logger is not None:
            resolved = (ExchangeLoggingConcern(logger=logger), *resolved)
        self._component_id = component_id
        self._concerns = resolved
        self._logger = logger

    @property
    def concerns(self) -> tuple[ExchangeInstrumentationConcern, ...]:
        """Return the resolved concern tuple."""
        return self._concerns

    def begin(
        self,
        exchange: Any,
        *,
        action: str | None,
        references: Mapping[str, str] | None = None,
    ) -> ExchangeScope:
        """Open a scope for ``exchange`` and emit its invocation event."""
        invocation = InvocationContext(
            component_id=self._component_id,
            exchange_id=str(getattr(exchange, "exchange_id", "")),
            action=action,
            references=dict(references or {}),
        )
        _emit_invocation(
            concerns=self._concerns, context=invocation, logger=self._logger
        )
        return ExchangeScope(
            invocation=invocation,
            exchange=exchange,
            concerns=self._concerns,
            logger=self._logger,
        )


def resolve_error_detail(exception: BaseException) -> ErrorDetail:
    """Return the structured error for an attached exchange exception."""
    detail_fn = getattr(exception, "error_detail", None)
    if callable(detail_fn):
        detail = detail_fn()
        if isinstance(detail, ErrorDetail):
            return detail
    return exception_to_error(exception)


def build_metrics_concern(names: ExchangeOtelSettings) -> ExchangeMetricsConcern:
    """Build an OpenTelemetry-backed metrics concern using configured names."""
    from opentelemetry import metrics as otel_metrics

    meter = otel_metrics.get_meter(names.meter_name)
    return ExchangeMetricsConcern(
        exchanges_total=meter.create_counter(
            name=names.metric_exchanges_total,
            description="Count of processed exchanges by component/action/outcome.",
            unit="1",
        ),
        exchange_duration_ms=meter.create_histogram(
            name=names.metric_exchange_duration_ms,
            description="Exchange latency from process() to continuation in ms.",
            unit="ms",
        ),
        exchange_errors_total=meter.create_counter(
            name=names.metric_exchange_errors_total,
            description="Count of failed exchanges by error category.",
            unit="1",
        ),
    )


def _invocation_log_context(context: InvocationContext) -> dict[str, object]:
    """Build common structured fields for one exchange event."""
    return {
        fields.EVENT: fields.EXCHANGE_INVOCATION_EVENT,
        fields.COMPONENT_ID: context.component_id,
        fields.EXCHANGE_ID: context.exchange_id,
        fields.ACTION: context.action,
        **context.references,
    }


def _emit_invocation(
    *,
    concerns: Sequence[ExchangeInstrumentationConcern],
    context: InvocationContext,
    logger: Any | None,
) -> None:
    """Dispatch invocation event to concerns with failure isolation."""
    for concern in concerns:
        try:
            concern.on_invocation(context)
        except Exception as exc:  # noqa: BLE001
            _log_concern_failure(
                logger=logger,
                stage="invocation",
                concern=type(concern).__name__,
                exc=exc,
                invocation=context,
            )


def _emit_completion(
    *,
    concerns: Sequence[ExchangeInstrumentationConcern],
    context: CompletionContext,
    logger: Any | None,
) -> None:
    """Dispatch completion event to concerns with failure isolation."""
    for concern in concerns:
        try:
            concern.on_completion(context)
        except Exception as exc:  # noqa: BLE001
            _log_concern_failure(
                logger=logger,
                stage="completion",
                concern=type(concern).__name__,
                exc=exc,
                invocation=context.invocation,
            )


def _log_concern_failure(
    *,
    logger: Any | None,
    stage: str,
    concern: str,
    exc: Exception,
    invocation: InvocationContext,
) -> None:
    """Warning log for instrumentation concern hook failures."""
    if logger is None:
        return
    with log_context(
        {
            fields.EVENT: fields.EXCHANGE_INSTRUMENTATION_FAILURE_EVENT,
            fields.COMPONENT_ID: invocation.component_id,
            fields.EXCHANGE_ID: invocation.exchange_id,
            fields.STAGE: stage,
            fields.CONCERN: concern,
            fields.ERRORS: [f"{type(exc).__name__}: {exc}"],
        }
    ):
        logger.warning("Exchange instrumentation concern failed")
