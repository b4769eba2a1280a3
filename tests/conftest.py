import pytest
from unittest.mock import AsyncMock, MagicMock

from cosmosdb_services.db.container_factory import ContainerFactory
from cosmosdb_services.db.cosmos_db_service import CosmosDbService
from cosmosdb_services.settings import CosmosDbSettings


class AsyncItemIterator:
    """Stands in for the AsyncItemPaged returned by query_items."""

    def __init__(self, items):
        self._items = list(items)

    def __aiter__(self):
        return self

    async def __anext__(self):
        if not self._items:
            raise StopAsyncIteration
        return self._items.pop(0)


class FailingItemIterator:
    def __init__(self, error):
        self._error = error

    def __aiter__(self):
        return self

    async def __anext__(self):
        raise self._error


@pytest.fixture
def cosmos_settings():
    return CosmosDbSettings(
        endpoint="https://dummy.documents.azure.com:443/",
        account_key="dummy-key",
        database="testdb",
        containers={"Customer": "customers", "AuditEntry": "auditdb/audit"},
    )


@pytest.fixture
def mock_container():
    container = MagicMock()
    container.id = "test_container"
    container.create_item = AsyncMock()
    container.upsert_item = AsyncMock()
    container.read_item = AsyncMock()
    container.delete_item = AsyncMock(return_value=None)
    container.execute_item_batch = AsyncMock(return_value=[])
    container.query_items = MagicMock(return_value=AsyncItemIterator([]))
    return container


@pytest.fixture
def mock_cosmos_client(mock_container):
    client = MagicMock()
    database = MagicMock()
    client.get_database_client.return_value = database
    database.get_container_client.return_value = mock_container
    client.close = AsyncMock()
    return client


@pytest.fixture
def container_factory(mock_cosmos_client, cosmos_settings):
    return ContainerFactory(mock_cosmos_client, cosmos_settings)


@pytest.fixture
def service(container_factory):
    return CosmosDbService(container_factory)


@pytest.fixture
def query_results():
    """Returns a helper that builds an async iterator over the given rows."""
    return AsyncItemIterator


@pytest.fixture
def failing_query():
    return FailingItemIterator
