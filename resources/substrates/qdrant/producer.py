"""Asynchronous action-dispatching producer for one Qdrant collection.

``process`` reads the ``action`` header, checks the body against the shapes
that action accepts, submits the request through the endpoint's client and
returns. Completions are delivered on the producer's own single-thread
executor, where the message is updated (or a failure attached) before the
caller's continuation is signalled.

Shape or action problems never reach Qdrant: the failure is attached, the
continuation runs on the calling thread and ``process`` returns True.
"""

from __future__ import annotations

from collections.abc import Collection, Mapping
from concurrent.futures import Executor, Future
from typing import Any, Callable, Union
from uuid import UUID

from qdrant_client import grpc as qdrant_grpc
from qdrant_client.http import models

from packages.relay_core import (
    AsyncCallback,
    AsyncProducer,
    Exchange,
    HeaderConversionError,
    Message,
    ServiceStateError,
    convert_value,
)
from packages.relay_shared.logging import fields, get_logger, log_context

from . import futures
from .client import QdrantClientBridge
from .constants import QdrantAction, QdrantHeaders
from .errors import QdrantActionError, UnsupportedActionError

UPSERT_PAYLOAD_MESSAGE = "A payload of type PointStruct or Collection<PointStruct> is expected"
RETRIEVE_PAYLOAD_MESSAGE = "A payload of type PointId or Collection<PointId> is expected"
DELETE_PAYLOAD_MESSAGE = "A payload of type PointsSelector, PointId or Filter is expected"

UNKNOWN_UPDATE_STATUS = "UnknownUpdateStatus"

_LOGGER = get_logger(__name__)
_NON_COLLECTION_TYPES = (str, bytes, bytearray, Mapping)
_POINT_TYPES = (models.PointStruct, qdrant_grpc.PointStruct)
_SELECTOR_TYPES = (
    models.PointIdsList,
    models.FilterSelector,
    qdrant_grpc.PointsSelector,
)

# Bodies may use the REST models or their gRPC equivalents; the client takes both.
Point = Union[models.PointStruct, qdrant_grpc.PointStruct]
PointId = Union[models.ExtendedPointId, qdrant_grpc.PointId]
Selector = Union[models.PointIdsList, models.FilterSelector, qdrant_grpc.PointsSelector]

Request = Callable[[QdrantClientBridge], Future[Any]]
OnSuccess = Callable[[Message, Any], None]


class QdrantProducer(AsyncProducer):
    """Dispatch UPSERT, RETRIEVE and DELETE exchanges to Qdrant."""

    def __init__(self, endpoint: Any) -> None:
        super().__init__(endpoint)
        self._client: QdrantClientBridge | None = None
        self._executor: Executor | None = None

    def do_start(self) -> None:
        self._client = self.endpoint.client()
        self._executor = self.context.executor_service_manager.new_single_thread_executor(
            self, f"producer:{self.endpoint.id}"
        )

    def do_stop(self) -> None:
        executor = self._executor
        self._executor = None
        # The client belongs to the endpoint.
        self._client = None
        if executor is not None:
            self.context.executor_service_manager.shutdown_now(executor)

    def process(self, exchange: Exchange, callback: AsyncCallback) -> bool:
        raw_action = exchange.message.get_header(QdrantHeaders.ACTION)
        action = _resolve_action(raw_action)
        scope = self.endpoint.instrumentation.begin(
            exchange,
            action=action.value if action is not None else None,
            references={
                fields.COLLECTION: self.endpoint.collection,
                fields.ENDPOINT_ID: self.endpoint.id,
            },
        )
        callback = scope.wrap(callback)

        with log_context(
            {
                fields.EXCHANGE_ID: exchange.exchange_id,
                fields.ENDPOINT_ID: self.endpoint.id,
                fields.COLLECTION: self.endpoint.collection,
                fields.ACTION: action.value if action is not None else raw_action,
            }
        ):
            if self.reject_unless_started(exchange, callback):
                return True

            if action is QdrantAction.UPSERT:
                return self._upsert(exchange, callback)
            if action is QdrantAction.RETRIEVE:
                return self._retrieve(exchange, callback)
            if action is QdrantAction.DELETE:
                return self._delete(exchange, callback)
            return _fail(exchange, callback, UnsupportedActionError(raw_action))

    # Actions

    def _upsert(self, exchange: Exchange, callback: AsyncCallback) -> bool:
        body = exchange.message.body

        points: list[Point]
        if isinstance(body, _POINT_TYPES):
            points = [body]
        elif _is_collection(body):
            points = list(body)
        else:
            return _fail(
                exchange,
                callback,
                QdrantActionError(QdrantAction.UPSERT, UPSERT_PAYLOAD_MESSAGE),
            )

        collection = self.endpoint.collection
        return self._call(
            exchange,
            callback,
            QdrantAction.UPSERT,
            lambda client: client.upsert_async(
                collection_name=collection,
                points=points,
                wait=True,
            ),
            _apply_update_result,
        )

    def _retrieve(self, exchange: Exchange, callback: AsyncCallback) -> bool:
        message = exchange.message
        body = message.body

        ids: list[PointId]
        if _is_point_id(body):
            ids = [_point_id(body)]
        elif _is_collection(body):
            ids = [_point_id(item) if isinstance(item, UUID) else item for item in body]
        else:
            return _fail(
                exchange,
                callback,
                QdrantActionError(QdrantAction.RETRIEVE, RETRIEVE_PAYLOAD_MESSAGE),
            )

        try:
            with_payload = message.get_header(
                QdrantHeaders.INCLUDE_PAYLOAD,
                QdrantHeaders.DEFAULT_INCLUDE_PAYLOAD,
                bool,
            )
            with_vectors = message.get_header(
                QdrantHeaders.INCLUDE_VECTORS,
                QdrantHeaders.DEFAULT_INCLUDE_VECTORS,
                bool,
            )
        except HeaderConversionError as exc:
            return _fail(
                exchange,
                callback,
                QdrantActionError(QdrantAction.RETRIEVE, str(exc), exc),
            )
        consistency = message.get_header(QdrantHeaders.READ_CONSISTENCY)

        collection = self.endpoint.collection
        return self._call(
            exchange,
            callback,
            QdrantAction.RETRIEVE,
            lambda client: client.retrieve_async(
                collection_name=collection,
                ids=ids,
                with_payload=with_payload,
                with_vectors=with_vectors,
                consistency=consistency,
            ),
            _apply_retrieved_points,
        )

    def _delete(self, exchange: Exchange, callback: AsyncCallback) -> bool:
        body = exchange.message.body

        selector: Selector
        if isinstance(body, _SELECTOR_TYPES):
            selector = body
        elif isinstance(body, qdrant_grpc.PointId):
            selector = qdrant_grpc.PointsSelector(
                points=qdrant_grpc.PointsIdsList(ids=[body])
            )
        elif _is_point_id(body):
            selector = models.PointIdsList(points=[_point_id(body)])
        elif isinstance(body, qdrant_grpc.Filter):
            selector = qdrant_grpc.PointsSelector(filter=body)
        elif isinstance(body, models.Filter):
            selector = models.FilterSelector(filter=body)
        else:
            return _fail(
                exchange,
                callback,
                QdrantActionError(QdrantAction.DELETE, DELETE_PAYLOAD_MESSAGE),
            )

        collection = self.endpoint.collection
        return self._call(
            exchange,
            callback,
            QdrantAction.DELETE,
            lambda client: client.delete_async(
                collection_name=collection,
                points_selector=selector,
                wait=True,
            ),
            _apply_update_result,
        )

    # Helpers

    def _call(
        self,
        exchange: Exchange,
        callback: AsyncCallback,
        action: QdrantAction,
        request: Request,
        on_success: OnSuccess,
    ) -> bool:
        """Submit ``request`` and complete the exchange from its outcome."""
        client, executor = self._client, self._executor
        if client is None or executor is None:
            return _fail(
                exchange,
                callback,
                ServiceStateError(self.describe(), self.status, "process"),
            )

        try:
            future = request(client)
        except Exception as exc:  # noqa: BLE001
            return _fail(exchange, callback, QdrantActionError.from_cause(action, exc))

        def _complete(result: Any, error: BaseException | None) -> None:
            if error is not None:
                exchange.set_exception(QdrantActionError.from_cause(action, error))
            else:
                try:
                    on_success(exchange.message, result)
                except Exception as exc:  # noqa: BLE001
                    exchange.set_exception(QdrantActionError.from_cause(action, exc))
            callback(False)

        futures.call(future, _complete, executor)
        return False


def update_status(status: object) -> tuple[str, int]:
    """Return the gRPC ``UpdateStatus`` name and number for a response status."""
    raw = getattr(status, "value", status)
    if isinstance(raw, int) and not isinstance(raw, bool):
        try:
            return qdrant_grpc.UpdateStatus.Name(raw), raw
        except ValueError:
            return UNKNOWN_UPDATE_STATUS, 0

    name = "".join(part.capitalize() for part in str(raw).split("_"))
    try:
        return name, qdrant_grpc.UpdateStatus.Value(name)
    except ValueError:
        return UNKNOWN_UPDATE_STATUS, 0


def _apply_update_result(message: Message, result: models.UpdateResult) -> None:
    name, number = update_status(result.status)
    message.set_header(QdrantHeaders.OPERATION_ID, result.operation_id)
    message.set_header(QdrantHeaders.OPERATION_STATUS, name)
    message.set_header(QdrantHeaders.OPERATION_STATUS_VALUE, number)


def _apply_retrieved_points(message: Message, result: list[models.Record]) -> None:
    points = list(result)
    message.set_body(points)
    message.set_header(QdrantHeaders.SIZE, len(points))


def _fail(exchange: Exchange, callback: AsyncCallback, error: BaseException) -> bool:
    """Attach ``error`` and complete synchronously."""
    exchange.set_exception(error)
    callback(True)
    return True


def _resolve_action(raw: object) -> QdrantAction | None:
    if raw is None:
        return None
    try:
        return convert_value(QdrantHeaders.ACTION, raw, QdrantAction)
    except HeaderConversionError:
        return None


def _is_collection(body: object) -> bool:
    return isinstance(body, Collection) and not isinstance(body, _NON_COLLECTION_TYPES)


def _is_point_id(body: object) -> bool:
    if isinstance(body, qdrant_grpc.PointId):
        return True
    return isinstance(body, (int, str, UUID)) and not isinstance(body, bool)


def _point_id(value: int | str | UUID | qdrant_grpc.PointId) -> PointId:
    return str(value) if isinstance(value, UUID) else value
