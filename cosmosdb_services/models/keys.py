import uuid
from dataclasses import dataclass
from typing import Union

PartitionKeyRaw = Union[str, int, float, bool]


@dataclass(frozen=True)
class PartitionKeyValue:
    """
    Value of a document's partition key, as handed to the SDK.
    """
    value: PartitionKeyRaw

    def __post_init__(self):
        if self.value is None:
            raise ValueError("partition key must not be None")
        if not isinstance(self.value, (str, int, float, bool)):
            raise ValueError(f"unsupported partition key type: {type(self.value).__name__}")
        if isinstance(self.value, str) and not self.value.strip():
            raise ValueError("partition key must not be blank")

    @classmethod
    def from_value(cls, value: Union["PartitionKeyValue", PartitionKeyRaw]) -> "PartitionKeyValue":
        if isinstance(value, PartitionKeyValue):
            return value
        return cls(value)

    def __str__(self) -> str:
        return str(self.value)


@dataclass(frozen=True)
class DocumentId:
    """
    Id of a document inside its container. Cosmos ids are always strings.
    """
    value: str

    def __post_init__(self):
        if not isinstance(self.value, str):
            raise ValueError(f"document id must be a string, got {type(self.value).__name__}")
        if not self.value.strip():
            raise ValueError("document id must not be blank")

    @classmethod
    def from_value(cls, value: Union["DocumentId", str, int, uuid.UUID]) -> "DocumentId":
        """
        Builds a DocumentId from a raw id. ints and UUIDs are rendered as strings.
        """
        if isinstance(value, DocumentId):
            return value
        if value is None:
            raise ValueError("document id must not be None")
        # bool is an int subclass but never a sensible id
        if isinstance(value, bool):
            raise ValueError("document id must not be a bool")
        if isinstance(value, (int, uuid.UUID)):
            return cls(str(value))
        return cls(value)

    def to_partition_key(self) -> PartitionKeyValue:
        return PartitionKeyValue(self.value)

    def __str__(self) -> str:
        return self.value
