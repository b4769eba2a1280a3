import dataclasses
import uuid
from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, Type, TypeVar

from pydantic import BaseModel

T = TypeVar("T")

# Properties Cosmos adds to every stored document
SYSTEM_PROPERTIES = ("_rid", "_self", "_etag", "_attachments", "_ts")


def _plain(value: Any) -> Any:
    if isinstance(value, dict):
        return {k: _plain(v) for k, v in value.items()}
    if isinstance(value, (list, tuple, set)):
        return [_plain(v) for v in value]
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, uuid.UUID):
        return str(value)
    if isinstance(value, Enum):
        return value.value
    return value


def to_document(item: Any) -> Dict[str, Any]:
    """
    Converts an item into the JSON-ready dict the SDK stores.
    """
    if isinstance(item, dict):
        doc = dict(item)
    elif hasattr(item, "to_dict"):
        doc = item.to_dict()
    elif isinstance(item, BaseModel):
        doc = item.model_dump(mode="json")
    elif dataclasses.is_dataclass(item) and not isinstance(item, type):
        doc = dataclasses.asdict(item)
    else:
        raise TypeError(f"Cannot convert {type(item).__name__} to a document")
    return _plain(doc)


def strip_system_properties(document: Dict[str, Any]) -> Dict[str, Any]:
    return {k: v for k, v in document.items() if k not in SYSTEM_PROPERTIES}


def from_document(item_type: Type[T], document: Dict[str, Any]) -> T:
    """
    Builds an item_type instance from a stored document, ignoring Cosmos
    metadata. Dataclasses only receive their declared fields.
    """
    data = strip_system_properties(document)
    if item_type is dict:
        return data
    if hasattr(item_type, "from_dict"):
        return item_type.from_dict(data)
    if isinstance(item_type, type) and issubclass(item_type, BaseModel):
        return item_type.model_validate(data)
    if dataclasses.is_dataclass(item_type):
        names = {f.name for f in dataclasses.fields(item_type) if f.init}
        return item_type(**{k: v for k, v in data.items() if k in names})
    raise TypeError(f"Cannot build {getattr(item_type, '__name__', item_type)} from a document")


def get_id_from(item: Any) -> Any:
    """
    Reads the ``id`` of a dict document or an object.
    """
    if isinstance(item, dict):
        value = item.get("id")
    else:
        value = getattr(item, "id", None)
    if value is None:
        raise ValueError("must have id as property and must not be None")
    return value
