"""Exception normalization utilities for shared error contracts."""

from __future__ import annotations

import asyncio
from concurrent.futures import CancelledError as FutureCancelledError

from . import codes
from .factories import dependency_error, internal_error, validation_error
from .types import ErrorDetail


def exception_to_error(exc: BaseException) -> ErrorDetail:
    """Normalize a Python exception into a shared ``ErrorDetail``.

    The mapping is conservative and generic. Components layer vendor-specific
    normalization before falling back to this function.
    """
    metadata = {"exception_type": type(exc).__name__}

    if isinstance(exc, (FutureCancelledError, asyncio.CancelledError)):
        return dependency_error(
            str(exc) or "operation cancelled",
            code=codes.CANCELLED,
            retryable=True,
            metadata=metadata,
        )

    if isinstance(exc, (ValueError, TypeError)):
        return validation_error(str(exc), code=codes.INVALID_ARGUMENT, metadata=metadata)

    if isinstance(exc, TimeoutError):
        return dependency_error(
            str(exc) or "dependency timeout",
            code=codes.DEPENDENCY_TIMEOUT,
            retryable=True,
            metadata=metadata,
        )

    if isinstance(exc, ConnectionError):
        return dependency_error(
            str(exc) or "dependency unavailable",
            code=codes.DEPENDENCY_UNAVAILABLE,
            retryable=True,
            metadata=metadata,
        )

    return internal_error(
        str(exc) or "unexpected exception",
        code=codes.UNEXPECTED_EXCEPTION,
        metadata=metadata,
    )
