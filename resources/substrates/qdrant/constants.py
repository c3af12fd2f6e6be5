"""Actions and header names forming the Qdrant producer's caller contract."""

from __future__ import annotations

from enum import Enum


class QdrantAction(str, Enum):
    """Closed set of actions the producer dispatches on."""

    UPSERT = "UPSERT"
    RETRIEVE = "RETRIEVE"
    DELETE = "DELETE"


class QdrantHeaders:
    """Stable header names read from and written to exchange messages."""

    ACTION = "action"

    INCLUDE_PAYLOAD = "includePayload"
    DEFAULT_INCLUDE_PAYLOAD = True

    INCLUDE_VECTORS = "includeVectors"
    DEFAULT_INCLUDE_VECTORS = False

    READ_CONSISTENCY = "readConsistency"

    OPERATION_ID = "operationId"
    OPERATION_STATUS = "operationStatus"
    OPERATION_STATUS_VALUE = "operationStatusValue"

    SIZE = "size"


RESOURCE_COMPONENT_ID = "substrate_qdrant"
