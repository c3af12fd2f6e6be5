"""Tests for generic exception normalization into shared error details."""

from __future__ import annotations

import asyncio
from concurrent.futures import CancelledError

import pytest

from packages.relay_shared.errors import (
    ErrorCategory,
    codes,
    dependency_error,
    exception_to_error,
    internal_error,
    state_error,
    validation_error,
)


@pytest.mark.parametrize(
    ("exc", "category", "code"),
    [
        (CancelledError(), ErrorCategory.DEPENDENCY, codes.CANCELLED),
        (asyncio.CancelledError(), ErrorCategory.DEPENDENCY, codes.CANCELLED),
        (ValueError("bad"), ErrorCategory.VALIDATION, codes.INVALID_ARGUMENT),
        (TypeError("bad"), ErrorCategory.VALIDATION, codes.INVALID_ARGUMENT),
        (TimeoutError(), ErrorCategory.DEPENDENCY, codes.DEPENDENCY_TIMEOUT),
        (ConnectionError(), ErrorCategory.DEPENDENCY, codes.DEPENDENCY_UNAVAILABLE),
        (RuntimeError("boom"), ErrorCategory.INTERNAL, codes.UNEXPECTED_EXCEPTION),
    ],
)
def test_exception_to_error_maps_builtin_families(
    exc: BaseException, category: ErrorCategory, code: str
) -> None:
    detail = exception_to_error(exc)

    assert detail.category == category
    assert detail.code == code
    assert detail.metadata == {"exception_type": type(exc).__name__}


def test_empty_messages_get_readable_defaults() -> None:
    assert exception_to_error(TimeoutError()).message == "dependency timeout"
    assert exception_to_error(RuntimeError()).message == "unexpected exception"


def test_factories_copy_metadata_and_set_retryability() -> None:
    metadata = {"action": "UPSERT"}

    validation = validation_error("bad body", metadata=metadata)
    dependency = dependency_error("down", retryable=False)
    metadata["action"] = "DELETE"

    assert validation.metadata == {"action": "UPSERT"}
    assert validation.retryable is False
    assert dependency.retryable is False
    assert dependency.code == codes.DEPENDENCY_FAILURE


@pytest.mark.parametrize(
    ("factory", "category", "code", "retryable"),
    [
        (validation_error, ErrorCategory.VALIDATION, codes.VALIDATION_ERROR, False),
        (state_error, ErrorCategory.STATE, codes.ILLEGAL_STATE, False),
        (dependency_error, ErrorCategory.DEPENDENCY, codes.DEPENDENCY_FAILURE, True),
        (internal_error, ErrorCategory.INTERNAL, codes.INTERNAL_ERROR, False),
    ],
)
def test_factories_apply_category_defaults(
    factory, category: ErrorCategory, code: str, retryable: bool
) -> None:
    detail = factory("message")
    override = factory("message", code="custom")

    assert detail.category == category
    assert detail.code == code
    assert detail.retryable is retryable
    assert detail.metadata == {}
    assert override.code == "custom"
