"""
Base domain model with camelCase JSON compatibility.

Reports, logs and history files are written with camelCase keys so external
tooling can read them; Python code uses snake_case attributes. All domain
models inherit from BaseDomainModel.
"""

from __future__ import annotations

from dataclasses import fields
from datetime import datetime
from enum import Enum
from typing import Any, Dict


def to_camel_case(snake_str: str) -> str:
    """
    Convert snake_case to camelCase.

    Examples:
        >>> to_camel_case("file_path")
        'filePath'
        >>> to_camel_case("auto_fixable")
        'autoFixable'
    """
    components = snake_str.split("_")
    return components[0] + "".join(x.title() for x in components[1:])


def _serialize(value: Any) -> Any:
    if isinstance(value, BaseDomainModel):
        return value.to_json()
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, (list, tuple)):
        return [_serialize(item) for item in value]
    if isinstance(value, dict):
        return {k: _serialize(v) for k, v in value.items()}
    return value


class BaseDomainModel:
    """
    Mixin for dataclass domain models.

    Not itself a dataclass, so both frozen and mutable dataclasses can inherit it.

    - to_json() serializes to camelCase
    - Enum values are serialized by value
    - Dates are serialized as ISO 8601 strings
    """

    def to_json(self) -> Dict[str, Any]:
        """
        Serialize to camelCase JSON.

        Returns:
            Dictionary with camelCase keys, Enum values, ISO dates
        """
        result: Dict[str, Any] = {}

        for field in fields(self):
            result[to_camel_case(field.name)] = _serialize(getattr(self, field.name))

        return result
