from dataclasses import dataclass
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from cosmosdb_services.db.container_factory import (
    ContainerFactory,
    ContainerName,
    ContainerNotRegisteredError,
    cosmos_container,
)


@cosmos_container("orders", partition_key_path="/customer_id")
@dataclass
class Order:
    id: str
    customer_id: str


@dataclass
class PriorityOrder(Order):
    priority: int = 0


@dataclass
class Customer:
    id: str


@dataclass
class AuditEntry:
    id: str


@dataclass
class Unmapped:
    id: str


def test_decorated_type_resolves_with_defaults(container_factory):
    name = container_factory.resolve(Order)
    assert name == ContainerName(container="orders", database="testdb", partition_key_path="/customer_id")


def test_decorator_is_inherited(container_factory):
    assert container_factory.resolve(PriorityOrder).container == "orders"


def test_configured_containers_resolve_by_type_name(container_factory):
    assert container_factory.resolve(Customer) == ContainerName("customers", "testdb", "/id")
    assert container_factory.resolve(AuditEntry) == ContainerName("audit", "auditdb", "/id")


def test_explicit_registration_wins(container_factory):
    container_factory.register(Order, "orders_v2", database="archive")
    assert container_factory.resolve(PriorityOrder) == ContainerName("orders_v2", "archive", "/id")


def test_unknown_type_raises(container_factory):
    with pytest.raises(ContainerNotRegisteredError, match="Unmapped"):
        container_factory.resolve(Unmapped)


def test_create_for_caches_proxies(container_factory, mock_cosmos_client, mock_container):
    first = container_factory.create_for(Customer)
    second = container_factory.create_for(Customer)
    assert first is mock_container
    assert second is first
    mock_cosmos_client.get_database_client.assert_called_once_with("testdb")
    mock_cosmos_client.get_database_client.return_value.get_container_client.assert_called_once_with("customers")


@pytest.mark.parametrize("value,expected", [
    ("items", ContainerName("items")),
    ("db/items", ContainerName("items", "db")),
])
def test_container_name_parse(value, expected):
    assert ContainerName.parse(value) == expected


@pytest.mark.parametrize("value", ["", "a/b/c", "/items", "db/"])
def test_container_name_parse_rejects_bad_values(value):
    with pytest.raises(ValueError):
        ContainerName.parse(value)


def test_known_containers_are_unique(container_factory):
    container_factory.register(Unmapped, "customers")
    names = {(n.database, n.container) for n in container_factory.known_containers()}
    assert names == {("testdb", "customers"), ("auditdb", "audit")}


@pytest.mark.asyncio
async def test_ensure_reads_database_and_container(container_factory, mock_cosmos_client, mock_container):
    database = mock_cosmos_client.get_database_client.return_value
    database.read = AsyncMock()
    mock_container.read = AsyncMock()

    ok, message = await container_factory.ensure(Customer)

    assert ok is True
    assert message == "Container exists"
    database.read.assert_awaited_once()
    mock_container.read.assert_awaited_once()


@pytest.mark.asyncio
async def test_ensure_creates_when_configured(mock_cosmos_client, cosmos_settings):
    settings = cosmos_settings.model_copy(update={"create_if_not_exists": True})
    database = MagicMock()
    database.create_container_if_not_exists = AsyncMock()
    mock_cosmos_client.create_database_if_not_exists = AsyncMock(return_value=database)
    factory = ContainerFactory(mock_cosmos_client, settings)

    with patch("cosmosdb_services.db.base_cosmos.PartitionKey") as partition_key:
        ok, _ = await factory.ensure(Order)

    assert ok is True
    mock_cosmos_client.create_database_if_not_exists.assert_awaited_once_with(id="testdb")
    partition_key.assert_called_once_with(path="/customer_id")
    database.create_container_if_not_exists.assert_awaited_once_with(
        id="orders", partition_key=partition_key.return_value
    )


@pytest.mark.asyncio
async def test_ensure_reports_missing_container(container_factory, mock_cosmos_client, mock_container):
    from azure.cosmos.exceptions import CosmosResourceNotFoundError

    database = mock_cosmos_client.get_database_client.return_value
    database.read = AsyncMock()
    mock_container.read = AsyncMock(side_effect=CosmosResourceNotFoundError(status_code=404, message="gone"))

    ok, message = await container_factory.ensure(Customer)

    assert ok is False
    assert "gone" in message


@pytest.mark.asyncio
async def test_ensure_all_keys_by_database_and_container(container_factory, mock_cosmos_client, mock_container):
    mock_cosmos_client.get_database_client.return_value.read = AsyncMock()
    mock_container.read = AsyncMock()

    results = await container_factory.ensure_all()

    assert set(results) == {"testdb/customers", "auditdb/audit"}
    assert all(ok for ok, _ in results.values())


@pytest.mark.asyncio
async def test_ensure_all_covers_decorated_type_after_use(mock_cosmos_client, cosmos_settings):
    settings = cosmos_settings.model_copy(update={"create_if_not_exists": True})
    database = MagicMock()
    database.create_container_if_not_exists = AsyncMock()
    mock_cosmos_client.create_database_if_not_exists = AsyncMock(return_value=database)
    factory = ContainerFactory(mock_cosmos_client, settings)

    factory.create_for(Order)
    results = await factory.ensure_all()

    assert set(results) == {"testdb/customers", "auditdb/audit", "testdb/orders"}
    created = {call.kwargs["id"] for call in database.create_container_if_not_exists.await_args_list}
    assert "orders" in created


def test_register_decorated_type_without_container_name(container_factory):
    container_factory.register(Order)

    names = {(n.database, n.container, n.partition_key_path) for n in container_factory.known_containers()}

    assert ("testdb", "orders", "/customer_id") in names


def test_register_without_container_name_needs_decorator(container_factory):
    with pytest.raises(ValueError, match="Unmapped"):
        container_factory.register(Unmapped)


@pytest.mark.asyncio
async def test_ensure_all_read_only_skips_creation(mock_cosmos_client, cosmos_settings, mock_container):
    settings = cosmos_settings.model_copy(update={"create_if_not_exists": True})
    mock_cosmos_client.create_database_if_not_exists = AsyncMock()
    mock_cosmos_client.get_database_client.return_value.read = AsyncMock()
    mock_container.read = AsyncMock()
    factory = ContainerFactory(mock_cosmos_client, settings)

    results = await factory.ensure_all(create=False)

    assert all(message == "Container exists" for _, message in results.values())
    mock_cosmos_client.create_database_if_not_exists.assert_not_awaited()


@pytest.mark.asyncio
async def test_ensure_reports_invalid_credentials(container_factory, mock_cosmos_client):
    from azure.cosmos.exceptions import CosmosHttpResponseError

    database = mock_cosmos_client.get_database_client.return_value
    database.read = AsyncMock(side_effect=CosmosHttpResponseError(status_code=401, message="Unauthorized"))

    ok, message = await container_factory.ensure(Customer)

    assert ok is False
    assert message == "Invalid CosmosDB credentials"
