"""Typed failures attached to exchanges by the Qdrant producer."""

from __future__ import annotations

from concurrent.futures import CancelledError
from dataclasses import replace

import grpc
from qdrant_client.http.exceptions import ResponseHandlingException, UnexpectedResponse

from packages.relay_shared.errors import (
    ErrorDetail,
    codes,
    dependency_error,
    exception_to_error,
    validation_error,
)

from .constants import QdrantAction

INVALID_PAYLOAD = "QDRANT_INVALID_PAYLOAD"
UNSUPPORTED_ACTION = "QDRANT_UNSUPPORTED_ACTION"
REQUEST_REJECTED = "QDRANT_REQUEST_REJECTED"

_CLIENT_ERROR_GRPC_CODES = frozenset(
    {
        grpc.StatusCode.INVALID_ARGUMENT,
        grpc.StatusCode.NOT_FOUND,
        grpc.StatusCode.ALREADY_EXISTS,
        grpc.StatusCode.FAILED_PRECONDITION,
        grpc.StatusCode.OUT_OF_RANGE,
    }
)


class QdrantActionError(Exception):
    """Failure of one producer action.

    Built either from a fixed message (payload-shape validation) or with
    ``from_cause`` around a transport/server error, which is also chained as
    ``__cause__``.
    """

    def __init__(
        self,
        action: QdrantAction | None,
        message: str,
        cause: BaseException | None = None,
    ) -> None:
        super().__init__(message)
        self.action = action
        self.message = message
        self.cause = cause
        if cause is not None:
            self.__cause__ = cause

    @classmethod
    def from_cause(cls, action: QdrantAction, cause: BaseException) -> QdrantActionError:
        """Wrap a transport, server or shutdown error raised for ``action``."""
        detail = str(cause) or type(cause).__name__
        return cls(action, f"{action.value} failed: {detail}", cause)

    def error_detail(self) -> ErrorDetail:
        """Return the structured summary used in logs and metrics."""
        metadata = {"action": self.action.value if self.action is not None else ""}
        if self.cause is None:
            return validation_error(self.message, code=INVALID_PAYLOAD, metadata=metadata)
        detail = normalize_qdrant_exception(self.cause)
        return replace(detail, metadata={**detail.metadata, **metadata})

    def __repr__(self) -> str:
        action = self.action.value if self.action is not None else None
        return f"{type(self).__name__}(action={action!r}, message={self.message!r})"


class UnsupportedActionError(QdrantActionError):
    """The ``action`` header is missing or outside the closed action set.

    ``action`` is always None because no ``QdrantAction`` was resolved; the raw
    header value (None when the header was absent) is kept in ``requested``.
    Test ``isinstance(error, UnsupportedActionError)`` to recognise this case.
    """

    def __init__(self, requested: object) -> None:
        super().__init__(None, f"Unsupported action: {requested}")
        self.requested = requested

    def error_detail(self) -> ErrorDetail:
        return validation_error(
            self.message,
            code=UNSUPPORTED_ACTION,
            metadata={"requested": str(self.requested)},
        )

    def __repr__(self) -> str:
        return f"{type(self).__name__}(requested={self.requested!r})"


class ProducerShutdownError(CancelledError):
    """A completion could not be delivered because the producer stopped."""


def normalize_qdrant_exception(exc: BaseException) -> ErrorDetail:
    """Map qdrant-client, gRPC and HTTP failures onto the shared taxonomy."""
    metadata = {"exception_type": type(exc).__name__}

    if isinstance(exc, UnexpectedResponse):
        metadata["status_code"] = str(exc.status_code)
        if exc.status_code is not None and 400 <= exc.status_code < 500 and exc.status_code != 429:
            return validation_error(str(exc), code=REQUEST_REJECTED, metadata=metadata)
        return dependency_error(str(exc), metadata=metadata)

    if isinstance(exc, ResponseHandlingException):
        return dependency_error(
            str(exc) or "qdrant unreachable",
            code=codes.DEPENDENCY_UNAVAILABLE,
            metadata=metadata,
        )

    if isinstance(exc, grpc.RpcError):
        code_fn = getattr(exc, "code", None)
        status = code_fn() if callable(code_fn) else None
        if status is not None:
            metadata["grpc_status"] = status.name
        if status is grpc.StatusCode.DEADLINE_EXCEEDED:
            return dependency_error(
                str(exc) or "qdrant deadline exceeded",
                code=codes.DEPENDENCY_TIMEOUT,
                metadata=metadata,
            )
        if status is grpc.StatusCode.UNAVAILABLE:
            return dependency_error(
                str(exc) or "qdrant unavailable",
                code=codes.DEPENDENCY_UNAVAILABLE,
                metadata=metadata,
            )
        if status in _CLIENT_ERROR_GRPC_CODES:
            return validation_error(
                str(exc) or "qdrant rejected request",
                code=REQUEST_REJECTED,
                metadata=metadata,
            )
        return dependency_error(str(exc) or "qdrant rpc failed", metadata=metadata)

    return exception_to_error(exc)
