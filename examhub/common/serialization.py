"""
Serialization Utilities

This module converts domain objects into JSON-ready structures for the API
layer and rebuilds domain dataclasses from ORM rows.
"""

import datetime
from enum import Enum
from dataclasses import fields, is_dataclass
from typing import Any, Dict, List, Optional, Type, TypeVar

T = TypeVar('T', bound='SerializableMixin')


def to_camel(name: str) -> str:
    """Convert a snake_case name to camelCase."""
    head, *tail = name.split("_")
    return head + "".join(part.title() for part in tail)


def serialize(
    obj: Any,
    camel_case: bool = False,
    exclude_fields: Optional[List[str]] = None
) -> Any:
    """
    Serialize an object into plain dicts, lists and scalars.

    Args:
        obj: The object to serialize
        camel_case: Whether to rename dictionary keys to camelCase
        exclude_fields: Field names to drop at every nesting level

    Returns:
        JSON-compatible structure
    """
    exclude_fields = exclude_fields or []

    if obj is None or isinstance(obj, (str, int, float, bool)):
        return obj

    if isinstance(obj, (datetime.datetime, datetime.date)):
        return obj.isoformat()

    if isinstance(obj, Enum):
        return obj.value

    if isinstance(obj, (list, tuple, set)):
        return [serialize(item, camel_case, exclude_fields) for item in obj]

    if isinstance(obj, dict):
        result = {}
        for key, value in obj.items():
            if key in exclude_fields:
                continue
            out_key = to_camel(key) if camel_case and isinstance(key, str) else key
            result[out_key] = serialize(value, camel_case, exclude_fields)
        return result

    if hasattr(obj, 'to_dict') and callable(getattr(obj, 'to_dict')):
        return serialize(obj.to_dict(), camel_case, exclude_fields)

    if is_dataclass(obj):
        return serialize(
            {f.name: getattr(obj, f.name) for f in fields(obj)},
            camel_case,
            exclude_fields
        )

    return str(obj)


class SerializableMixin:
    """
    Mixin for dataclasses mirrored by an ORM table.

    Field names match column names, so rows and dataclasses convert both ways
    without a mapping table.
    """

    def to_dict(self) -> Dict[str, Any]:
        """Convert the dataclass to a shallow dictionary."""
        return {f.name: getattr(self, f.name) for f in fields(self)}

    @classmethod
    def from_row(cls: Type[T], row: Any) -> T:
        """Build the dataclass from an ORM row or any attribute holder."""
        return cls(**{
            f.name: getattr(row, f.name)
            for f in fields(cls)
            if hasattr(row, f.name)
        })

    @classmethod
    def from_dict(cls: Type[T], data: Dict[str, Any]) -> T:
        """Build the dataclass from a dictionary, ignoring unknown keys."""
        names = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in data.items() if k in names})
