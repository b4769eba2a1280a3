import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from azure.cosmos.aio import ContainerProxy, CosmosClient

from cosmosdb_services.db.base_cosmos import ensure_container
from cosmosdb_services.settings import CosmosDbSettings

logger = logging.getLogger("cosmosdb_services")

CONTAINER_ATTRIBUTE = "__cosmos_container__"


class ContainerNotRegisteredError(LookupError):
    """Raised when no container is known for a type."""


@dataclass(frozen=True)
class ContainerName:
    container: str
    database: Optional[str] = None
    partition_key_path: Optional[str] = None

    @classmethod
    def parse(cls, value: str) -> "ContainerName":
        """
        Parses "container" or "database/container".
        """
        parts = [p.strip() for p in value.split("/")]
        if len(parts) == 1 and parts[0]:
            return cls(container=parts[0])
        if len(parts) == 2 and all(parts):
            return cls(container=parts[1], database=parts[0])
        raise ValueError(f"Invalid container name {value!r}, expected 'container' or 'database/container'")


def cosmos_container(container: str, database: Optional[str] = None,
                     partition_key_path: Optional[str] = None):
    """
    Class decorator naming the container documents of the class live in.

        @cosmos_container("orders", partition_key_path="/customer_id")
        @dataclass
        class Order: ...
    """
    name = ContainerName(container=container, database=database, partition_key_path=partition_key_path)

    def decorator(cls):
        setattr(cls, CONTAINER_ATTRIBUTE, name)
        return cls
    return decorator


class ContainerFactory:
    """
    Maps types to Cosmos containers and hands out cached container proxies.
    """

    def __init__(self, client: CosmosClient, settings: CosmosDbSettings):
        self.client = client
        self.settings = settings
        self._registrations: Dict[type, ContainerName] = {}
        self._configured: Dict[str, ContainerName] = {
            type_name: ContainerName.parse(value)
            for type_name, value in settings.containers.items()
        }
        # every type resolved so far, decorated ones included
        self._resolved: Dict[type, ContainerName] = {}
        self._proxies: Dict[Tuple[str, str], ContainerProxy] = {}

    def register(self, item_type: type, container: Optional[str] = None, database: Optional[str] = None,
                 partition_key_path: Optional[str] = None) -> None:
        """
        Maps item_type to a container. Without a container name the type's
        @cosmos_container declaration is registered, so it is known before
        its first use.
        """
        if container is None:
            declared = getattr(item_type, CONTAINER_ATTRIBUTE, None)
            if not isinstance(declared, ContainerName):
                raise ValueError(f"{item_type.__name__} has no @cosmos_container declaration")
            self._registrations[item_type] = declared
        else:
            self._registrations[item_type] = ContainerName(
                container=container, database=database, partition_key_path=partition_key_path
            )
        self._resolved.pop(item_type, None)
        logger.debug("Registered %s -> %s", item_type.__name__, self._registrations[item_type].container)

    def _complete(self, name: ContainerName) -> ContainerName:
        return ContainerName(
            container=name.container,
            database=name.database or self.settings.database,
            partition_key_path=name.partition_key_path or self.settings.default_partition_key_path,
        )

    def resolve(self, item_type: type) -> ContainerName:
        """
        Looks up the container for item_type: explicit registrations first
        (including those of base classes), then the class decorator, then
        the configured containers map.
        """
        name = self._lookup(item_type)
        self._resolved[item_type] = name
        return name

    def _lookup(self, item_type: type) -> ContainerName:
        for klass in getattr(item_type, "__mro__", (item_type,)):
            if klass in self._registrations:
                return self._complete(self._registrations[klass])
        declared = getattr(item_type, CONTAINER_ATTRIBUTE, None)
        if isinstance(declared, ContainerName):
            return self._complete(declared)
        type_name = getattr(item_type, "__name__", str(item_type))
        if type_name in self._configured:
            return self._complete(self._configured[type_name])
        raise ContainerNotRegisteredError(f"No container registered for type {type_name}")

    def create_for(self, item_type: type) -> ContainerProxy:
        name = self.resolve(item_type)
        key = (name.database, name.container)
        proxy = self._proxies.get(key)
        if proxy is None:
            database = self.client.get_database_client(name.database)
            proxy = database.get_container_client(name.container)
            self._proxies[key] = proxy
        return proxy

    def known_containers(self) -> List[ContainerName]:
        names = [self._complete(n) for n in self._registrations.values()]
        names += list(self._resolved.values())
        names += [self._complete(n) for n in self._configured.values()]
        unique: List[ContainerName] = []
        for name in names:
            if all((n.database, n.container) != (name.database, name.container) for n in unique):
                unique.append(name)
        return unique

    def _should_create(self, create: Optional[bool]) -> bool:
        return self.settings.create_if_not_exists if create is None else create

    async def ensure(self, item_type: type, create: Optional[bool] = None) -> Tuple[bool, str]:
        name = self.resolve(item_type)
        return await ensure_container(
            self.client, name.database, name.container, name.partition_key_path,
            create=self._should_create(create)
        )

    async def ensure_all(self, create: Optional[bool] = None) -> Dict[str, Tuple[bool, str]]:
        """
        Runs ensure for every registered, resolved and configured container,
        keyed by "database/container". ``create`` overrides the
        create_if_not_exists setting; pass False for a read-only check.
        """
        results: Dict[str, Tuple[bool, str]] = {}
        for name in self.known_containers():
            results[f"{name.database}/{name.container}"] = await ensure_container(
                self.client, name.database, name.container, name.partition_key_path,
                create=self._should_create(create)
            )
        return results
