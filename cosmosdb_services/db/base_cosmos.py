import logging
from typing import Any, Optional, Tuple

from azure.core.exceptions import AzureError
from azure.cosmos import PartitionKey, exceptions
from azure.cosmos.aio import CosmosClient, DatabaseProxy
from azure.identity.aio import DefaultAzureCredential

from cosmosdb_services.settings import CosmosDbSettings

logger = logging.getLogger("cosmosdb_services")


def resolve_credential(settings: CosmosDbSettings) -> Tuple[Any, Optional[DefaultAzureCredential]]:
    """
    Returns (credential, owned_credential). The account key wins; without one
    we fall back to Entra ID and hand the credential back so it can be closed.
    """
    if settings.account_key:
        return settings.account_key, None
    logger.debug("No AZURE_COSMOSDB_ACCOUNT_KEY found, using Azure Entra ID auth")
    credential = DefaultAzureCredential()
    return credential, credential


def create_cosmos_client(settings: CosmosDbSettings, credential: Any) -> CosmosClient:
    """
    Shared initialization of the async Cosmos client. No request is sent
    here; bad credentials surface on the first call (see ensure_container).
    """
    kwargs = {}
    if settings.consistency_level:
        kwargs["consistency_level"] = settings.consistency_level
    if settings.user_agent_suffix:
        kwargs["user_agent_suffix"] = settings.user_agent_suffix
    return CosmosClient(settings.resolved_endpoint, credential=credential, **kwargs)


async def ensure_container(client: CosmosClient, database_name: str, container_name: str,
                           partition_key_path: str, create: bool = False) -> Tuple[bool, str]:
    """
    Verifies that the database and container exist, creating both first
    when ``create`` is set.
    """
    try:
        if create:
            database: DatabaseProxy = await client.create_database_if_not_exists(id=database_name)
            await database.create_container_if_not_exists(
                id=container_name,
                partition_key=PartitionKey(path=partition_key_path)
            )
            logger.info("Ensured container %s/%s (partition key %s)",
                        database_name, container_name, partition_key_path)
            return True, "Container ready"
        database = client.get_database_client(database_name)
        await database.read()
        container = database.get_container_client(container_name)
        await container.read()
        return True, "Container exists"
    except exceptions.CosmosResourceNotFoundError as e:
        logger.warning("Container %s/%s not found", database_name, container_name)
        return False, str(e)
    except exceptions.CosmosHttpResponseError as e:
        if e.status_code == 401:
            logger.error("Invalid CosmosDB credentials for %s/%s", database_name, container_name)
            return False, "Invalid CosmosDB credentials"
        logger.error("Could not verify container %s/%s: %s", database_name, container_name, e, exc_info=True)
        return False, str(e)
    except AzureError as e:
        logger.error("Could not verify container %s/%s: %s", database_name, container_name, e, exc_info=True)
        return False, str(e)
