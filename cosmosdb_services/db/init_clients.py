import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Iterable, Optional, Tuple

from azure.cosmos.aio import CosmosClient
from quart import Quart

from cosmosdb_services.db.base_cosmos import create_cosmos_client, resolve_credential
from cosmosdb_services.db.container_factory import ContainerFactory
from cosmosdb_services.db.cosmos_db_service import CosmosDbService
from cosmosdb_services.settings import CosmosDbSettings, get_app_settings

logger = logging.getLogger("cosmosdb_services")

# (item_type, container) or (item_type, container, database)
Registration = Tuple[Any, ...]


@dataclass
class CosmosServices:
    client: CosmosClient
    container_factory: ContainerFactory
    service: CosmosDbService
    credential: Optional[Any] = None

    async def close(self) -> None:
        await self.client.close()
        if self.credential is not None:
            await self.credential.close()
        logger.info("Cosmos DB client closed")


async def create_cosmos_db_service(settings: Optional[CosmosDbSettings] = None,
                                   registrations: Iterable[Registration] = ()) -> CosmosServices:
    """
    Builds client, container factory and service from the settings. When
    create_if_not_exists is set, all known containers are created up front.
    """
    settings = settings or get_app_settings().cosmos
    credential, owned_credential = resolve_credential(settings)
    client = create_cosmos_client(settings, credential)

    container_factory = ContainerFactory(client, settings)
    for registration in registrations:
        container_factory.register(*registration)

    services = CosmosServices(
        client=client,
        container_factory=container_factory,
        service=CosmosDbService(container_factory),
        credential=owned_credential,
    )

    if settings.create_if_not_exists:
        try:
            ensured = await container_factory.ensure_all()
        except Exception:
            logger.exception("Failed to create Cosmos DB containers")
            await services.close()
            raise
        failed = {name: message for name, (ok, message) in ensured.items() if not ok}
        if failed:
            await services.close()
            raise RuntimeError(f"Could not create Cosmos DB containers: {failed}")

    logger.info("Cosmos DB service ready for database %s", settings.database)
    return services


def init_cosmos_db_service(app: Quart, settings: Optional[CosmosDbSettings] = None,
                           registrations: Iterable[Registration] = ()) -> None:
    """
    Registers the Cosmos DB service on a Quart app: created before serving,
    closed after serving. Handlers wait on ``app.cosmos_db_ready`` and use
    ``app.cosmos_db_service``.
    """
    registrations = list(registrations)
    app.cosmos_db_service = None
    app.cosmos_container_factory = None
    app.cosmos_db_ready = asyncio.Event()

    @app.before_serving
    async def init_cosmos():
        try:
            services = await create_cosmos_db_service(settings, registrations)
        except Exception:
            logger.exception("Failed to initialize Cosmos DB service")
            raise
        app.extensions["cosmos_db"] = services
        app.cosmos_db_service = services.service
        app.cosmos_container_factory = services.container_factory
        app.cosmos_db_ready.set()

    @app.after_serving
    async def close_cosmos():
        services = app.extensions.pop("cosmos_db", None)
        if services is not None:
            await services.close()
        app.cosmos_db_service = None
        app.cosmos_container_factory = None
        app.cosmos_db_ready.clear()
