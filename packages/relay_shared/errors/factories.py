"""Builders for ``ErrorDetail`` values, one per error category.

Only dependency failures are retryable by default: the request itself was
fine, the system behind it was not.
"""

from __future__ import annotations

from functools import partial
from typing import Mapping

from . import codes
from .types import ErrorCategory, ErrorDetail


def build_error(
    category: ErrorCategory,
    default_code: str,
    message: str,
    *,
    code: str | None = None,
    retryable: bool | None = None,
    metadata: Mapping[str, str] | None = None,
) -> ErrorDetail:
    """Build one detail; ``code`` and ``retryable`` fall back to category defaults."""
    return ErrorDetail(
        code=code or default_code,
        message=message,
        category=category,
        retryable=category is ErrorCategory.DEPENDENCY if retryable is None else retryable,
        metadata=dict(metadata or {}),
    )


validation_error = partial(build_error, ErrorCategory.VALIDATION, codes.VALIDATION_ERROR)
state_error = partial(build_error, ErrorCategory.STATE, codes.ILLEGAL_STATE)
dependency_error = partial(build_error, ErrorCategory.DEPENDENCY, codes.DEPENDENCY_FAILURE)
internal_error = partial(build_error, ErrorCategory.INTERNAL, codes.INTERNAL_ERROR)
