"""Shared error code constants.

These constants are domain-agnostic and intended for stable machine-readable
handling in logs, metrics and exchange failures. Component-specific codes live
beside the component that raises them.
"""

# Validation
VALIDATION_ERROR = "VALIDATION_ERROR"
INVALID_ARGUMENT = "INVALID_ARGUMENT"

# Lifecycle
ILLEGAL_STATE = "ILLEGAL_STATE"

# Dependency / external system
DEPENDENCY_FAILURE = "DEPENDENCY_FAILURE"
DEPENDENCY_TIMEOUT = "DEPENDENCY_TIMEOUT"
DEPENDENCY_UNAVAILABLE = "DEPENDENCY_UNAVAILABLE"
CANCELLED = "CANCELLED"

# Internal
INTERNAL_ERROR = "INTERNAL_ERROR"
UNEXPECTED_EXCEPTION = "UNEXPECTED_EXCEPTION"
