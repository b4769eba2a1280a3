import logging
from abc import ABC, abstractmethod
from http import HTTPStatus
from typing import Any, Iterable, List, Optional, Type, TypeVar, Union

from azure.cosmos.exceptions import (
    CosmosBatchOperationError,
    CosmosHttpResponseError,
    CosmosResourceNotFoundError,
)

from cosmosdb_services.db.container_factory import ContainerFactory
from cosmosdb_services.db.serialization import from_document, get_id_from, to_document
from cosmosdb_services.models.keys import DocumentId, PartitionKeyRaw, PartitionKeyValue
from cosmosdb_services.models.query import CosmosQuery
from cosmosdb_services.models.result import CountResult, DataResult, Result

logger = logging.getLogger("cosmosdb_services")

T = TypeVar("T")

IdLike = Union[DocumentId, str]
PartitionKeyLike = Union[PartitionKeyValue, PartitionKeyRaw]


def _message_of(e: BaseException) -> str:
    return getattr(e, "message", None) or str(e)


def _status_code_of(e: Exception) -> Optional[int]:
    status = getattr(e, "status_code", None)
    if status is None and isinstance(e, CosmosBatchOperationError):
        # fall back to the status of the operation that failed the batch
        responses = e.operation_responses or []
        if e.error_index is not None and 0 <= e.error_index < len(responses):
            status = responses[e.error_index].get("statusCode")
    return status


def extract_partition_key(document: dict, path: str) -> Any:
    """
    Reads the value at a partition key path such as "/id" or "/customer/id".
    Returns None when any segment is missing.
    """
    value: Any = document
    for segment in path.strip("/").split("/"):
        if not isinstance(value, dict) or segment not in value:
            return None
        value = value[segment]
    return value


def same_partition_value(document_value: Any, partition_value: Any) -> bool:
    """
    Compares partition key values the way Cosmos does: booleans never
    equal numbers, even though True == 1 in Python.
    """
    if isinstance(document_value, bool) != isinstance(partition_value, bool):
        return False
    return document_value == partition_value


def result_from_exception(e: Exception, result_type: Type[Result] = Result,
                          generic_message: bool = False) -> Result:
    """
    Translates an SDK exception into a result of result_type. Errors with a
    status code go through the status mapping, everything else is an
    internal error.
    """
    if isinstance(e, (CosmosHttpResponseError, CosmosBatchOperationError)):
        result = result_type.from_status_code(_status_code_of(e), error=_message_of(e), exception=e)
        if not (generic_message and result.status == HTTPStatus.INTERNAL_SERVER_ERROR):
            return result
    if generic_message:
        return result_type.internal_error_with_generic_error_message(exception=e)
    return result_type.internal_error(error=_message_of(e), exception=e)


class CosmosDbServiceBase(ABC):
    """
    Document access with uniform results. The ``*_using_id_as_partition_key``
    variants cover containers partitioned on ``/id``.
    """

    @abstractmethod
    async def add(self, item: Any, partition_key: PartitionKeyLike,
                  item_type: Optional[type] = None) -> Result:
        ...

    @abstractmethod
    async def transactional_batch_add(self, container_type: type, items: Iterable[Any],
                                      partition_key: PartitionKeyLike) -> Result:
        ...

    @abstractmethod
    async def get(self, item_type: Type[T], document_id: IdLike,
                  partition_key: PartitionKeyLike) -> DataResult[T]:
        ...

    @abstractmethod
    async def get_items(self, query: CosmosQuery, item_type: Type[T]) -> DataResult[List[T]]:
        ...

    @abstractmethod
    async def update(self, item: Any, partition_key: PartitionKeyLike,
                     item_type: Optional[type] = None) -> Result:
        ...

    @abstractmethod
    async def delete(self, item_type: type, document_id: IdLike,
                     partition_key: PartitionKeyLike) -> Result:
        ...

    @abstractmethod
    async def count(self, query: CosmosQuery) -> DataResult[CountResult]:
        ...

    async def add_using_id_as_partition_key(self, item: Any, item_type: Optional[type] = None) -> Result:
        document_id = DocumentId.from_value(get_id_from(item))
        return await self.add(item, document_id.to_partition_key(), item_type=item_type)

    async def get_using_id_as_partition_key(self, item_type: Type[T], document_id: IdLike) -> DataResult[T]:
        document_id = DocumentId.from_value(document_id)
        return await self.get(item_type, document_id, document_id.to_partition_key())

    async def update_using_id_as_partition_key(self, item: Any, item_type: Optional[type] = None) -> Result:
        document_id = DocumentId.from_value(get_id_from(item))
        return await self.update(item, document_id.to_partition_key(), item_type=item_type)

    async def delete_using_id_as_partition_key(self, item_type: type, document_id: IdLike) -> Result:
        document_id = DocumentId.from_value(document_id)
        return await self.delete(item_type, document_id, document_id.to_partition_key())


class CosmosDbService(CosmosDbServiceBase):
    """
    Forwards calls to the container of each type and turns SDK responses
    and exceptions into Result / DataResult values.

    Invalid arguments (blank ids, missing partition keys, unregistered
    types) raise; everything the SDK reports comes back as a result.
    """

    def __init__(self, container_factory: ContainerFactory):
        if container_factory is None:
            raise ValueError("container_factory must not be None")
        self._container_factory = container_factory

    def _container_for(self, item_type: type):
        return self._container_factory.create_for(item_type)

    @staticmethod
    def _type_of(item: Any, item_type: Optional[type]) -> type:
        if item_type is not None:
            return item_type
        if isinstance(item, dict):
            raise ValueError("item_type is required for dict documents")
        return type(item)

    def _partition_key_mismatch(self, item_type: type, doc: dict,
                                partition_key: PartitionKeyValue) -> Optional[Result]:
        # the SDK takes the partition key from the body, so it has to agree with the caller's
        path = self._container_factory.resolve(item_type).partition_key_path
        value = extract_partition_key(doc, path)
        if same_partition_value(value, partition_key.value):
            return None
        logger.warning("Partition key %s does not match document value %r at %s", partition_key, value, path)
        return Result.bad_request(
            f"Partition key '{partition_key}' does not match the document's value at '{path}'"
        )

    async def add(self, item: Any, partition_key: PartitionKeyLike,
                  item_type: Optional[type] = None) -> Result:
        partition_key = PartitionKeyValue.from_value(partition_key)
        item_type = self._type_of(item, item_type)
        container = self._container_for(item_type)
        doc = to_document(item)
        mismatch = self._partition_key_mismatch(item_type, doc, partition_key)
        if mismatch is not None:
            return mismatch
        try:
            await container.create_item(body=doc)
            logger.debug("add: Created item in %s (partition %s)", container.id, partition_key)
            return Result.created()
        except Exception as e:
            logger.error("add: Could not add item: %s", e, exc_info=True)
            return result_from_exception(e, generic_message=True)

    async def transactional_batch_add(self, container_type: type, items: Iterable[Any],
                                      partition_key: PartitionKeyLike) -> Result:
        partition_key = PartitionKeyValue.from_value(partition_key)
        container = self._container_for(container_type)
        docs = [to_document(item) for item in items]
        if not docs:
            return Result.bad_request("Transactional batch must contain at least one item")
        for doc in docs:
            mismatch = self._partition_key_mismatch(container_type, doc, partition_key)
            if mismatch is not None:
                return mismatch
        batch = [("create", (doc,)) for doc in docs]

        try:
            await container.execute_item_batch(batch_operations=batch, partition_key=partition_key.value)
            logger.debug("transactional_batch_add: Created %d items in %s", len(batch), container.id)
            return Result.ok()
        except CosmosBatchOperationError as e:
            logger.error("Could not add items with transactional batch: '%s' (operation %s)",
                         _message_of(e), e.error_index, exc_info=True)
            return result_from_exception(e)
        except Exception as e:
            logger.error("transactional_batch_add: Could not add items: %s", e, exc_info=True)
            return result_from_exception(e, generic_message=True)

    async def get(self, item_type: Type[T], document_id: IdLike,
                  partition_key: PartitionKeyLike) -> DataResult[T]:
        document_id = DocumentId.from_value(document_id)
        partition_key = PartitionKeyValue.from_value(partition_key)
        container = self._container_for(item_type)
        try:
            doc = await container.read_item(item=document_id.value, partition_key=partition_key.value)
            return DataResult.ok(from_document(item_type, doc))
        except CosmosResourceNotFoundError:
            logger.info("get: Item %s not found (partition %s)", document_id, partition_key)
            return DataResult.not_found()
        except Exception as e:
            logger.error("get: Could not fetch item %s: %s", document_id, e, exc_info=True)
            return result_from_exception(e, result_type=DataResult)

    async def get_items(self, query: CosmosQuery, item_type: Type[T]) -> DataResult[List[T]]:
        container = self._container_for(type(query))
        try:
            results: List[T] = []
            async for doc in container.query_items(**query.sdk_kwargs()):
                results.append(from_document(item_type, doc))
            if results:
                logger.debug("get_items: Found %d items", len(results))
                return DataResult.ok(results)
            return DataResult.no_content()
        except Exception as e:
            logger.error("get_items: Could not fetch items: %s", e, exc_info=True)
            return result_from_exception(e, result_type=DataResult)

    async def update(self, item: Any, partition_key: PartitionKeyLike,
                     item_type: Optional[type] = None) -> Result:
        partition_key = PartitionKeyValue.from_value(partition_key)
        item_type = self._type_of(item, item_type)
        container = self._container_for(item_type)
        doc = to_document(item)
        mismatch = self._partition_key_mismatch(item_type, doc, partition_key)
        if mismatch is not None:
            return mismatch
        try:
            # upsert: creates the document if it does not exist yet
            await container.upsert_item(body=doc)
            return Result.ok()
        except Exception as e:
            logger.error("update: Could not update item: %s", e, exc_info=True)
            return result_from_exception(e)

    async def delete(self, item_type: type, document_id: IdLike,
                     partition_key: PartitionKeyLike) -> Result:
        document_id = DocumentId.from_value(document_id)
        partition_key = PartitionKeyValue.from_value(partition_key)
        container = self._container_for(item_type)
        try:
            await container.delete_item(item=document_id.value, partition_key=partition_key.value)
            return Result.no_content()
        except CosmosResourceNotFoundError:
            logger.info("delete: Item %s not found (partition %s)", document_id, partition_key)
            return Result.not_found()
        except Exception as e:
            logger.error("delete: Could not delete item %s: %s", document_id, e, exc_info=True)
            return result_from_exception(e)

    async def count(self, query: CosmosQuery) -> DataResult[CountResult]:
        container = self._container_for(type(query))
        try:
            rows = []
            async for row in container.query_items(**query.sdk_kwargs()):
                rows.append(row)
            if not rows:
                return DataResult.no_content()
            return DataResult.ok(CountResult.from_row(rows[0]))
        except Exception as e:
            logger.error("count: Could not count items: %s", e, exc_info=True)
            return result_from_exception(e, result_type=DataResult)
