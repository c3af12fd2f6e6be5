"""Canonical shared error types.

This module defines the transport-agnostic error taxonomy used when exchange
failures are summarized for logs and metrics.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Mapping


class ErrorCategory(str, Enum):
    """High-level error categories shared across components."""

    UNSPECIFIED = "unspecified"
    VALIDATION = "validation"
    STATE = "state"
    DEPENDENCY = "dependency"
    INTERNAL = "internal"


@dataclass(frozen=True)
class ErrorDetail:
    """Structured summary of one failure."""

    code: str
    message: str
    category: ErrorCategory
    retryable: bool = False
    metadata: Mapping[str, str] = field(default_factory=dict)
