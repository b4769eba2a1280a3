from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from cosmosdb_services.models.keys import PartitionKeyValue


@dataclass
class CosmosQuery:
    """
    Parameterized SQL query against a container.

    The container is resolved from the query's type, so callers subclass
    CosmosQuery per container and register the subclass with the
    ContainerFactory (or decorate it with ``cosmos_container``).
    ``partition_key`` scopes the query to a single partition.
    """
    text: str
    parameters: Dict[str, Any] = field(default_factory=dict)
    partition_key: Optional[PartitionKeyValue] = None
    max_item_count: Optional[int] = None

    def __post_init__(self):
        if not self.text or not self.text.strip():
            raise ValueError("query text must not be empty")
        for name in self.parameters:
            if not name.startswith("@"):
                raise ValueError(f"query parameter names must start with '@': {name!r}")
        if self.partition_key is not None:
            self.partition_key = PartitionKeyValue.from_value(self.partition_key)

    def sdk_parameters(self) -> List[Dict[str, Any]]:
        return [{"name": name, "value": value} for name, value in self.parameters.items()]

    def sdk_kwargs(self) -> Dict[str, Any]:
        kwargs: Dict[str, Any] = {
            "query": self.text,
            "parameters": self.sdk_parameters(),
        }
        if self.partition_key is not None:
            kwargs["partition_key"] = self.partition_key.value
        if self.max_item_count is not None:
            kwargs["max_item_count"] = self.max_item_count
        return kwargs
