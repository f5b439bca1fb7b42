# Copyright (c) 2025 Varshith Gudur. Licensed under AGPLv3.
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

from .errors import EntityExtractionError, InvalidArgumentError


@dataclass(frozen=True)
class EntityRef:
    """
    An endpoint identity: ``(type, id)``.

    ``resolved`` is True when the pair was extracted from a domain object and
    False when the caller supplied a raw type string with an explicit id.
    """
    type: str
    id: str
    resolved: bool = False

    @classmethod
    def raw(cls, entity_type: str, entity_id: Any) -> "EntityRef":
        if entity_id is None:
            raise InvalidArgumentError("entity id required when type given without a resolved entity")
        return cls(entity_type, str(entity_id), resolved=False)


def extract_entity_type(entity: Any) -> str:
    """
    Entity type lookup order:
        - ``entity_type`` attribute or zero-argument method
        - ``get_entity_type()``
        - the class name
    """
    if isinstance(entity, EntityRef):
        return entity.type
    value = getattr(entity, "entity_type", None)
    if callable(value):
        value = value()
    if value is None and callable(getattr(entity, "get_entity_type", None)):
        value = entity.get_entity_type()
    if value is None:
        value = type(entity).__name__
    if not isinstance(value, str) or not value:
        raise EntityExtractionError(f"cannot extract entity type from {type(entity).__name__}")
    return value


def extract_entity_id(entity: Any) -> str:
    """Resolve the id from ``entity_id``, ``get_id()`` or ``id`` in that order."""
    if isinstance(entity, EntityRef):
        return entity.id
    value = getattr(entity, "entity_id", None)
    if callable(value):
        value = value()
    if value is None and callable(getattr(entity, "get_id", None)):
        value = entity.get_id()
    if value is None:
        value = getattr(entity, "id", None)
    if value is None or value == "":
        raise EntityExtractionError(f"cannot extract entity id from {type(entity).__name__}")
    return str(value)


def resolve_endpoint(storage, entity: Any, entity_id: Optional[Any] = None) -> EntityRef:
    """
    Turn an endpoint argument into an :class:`EntityRef`.

    Args:
        storage: adapter whose extraction hooks resolve domain objects
        entity: domain object, ``EntityRef`` or a raw type string
        entity_id: required when ``entity`` is a raw type string

    Raises:
        InvalidArgumentError: raw type string without an id
        EntityExtractionError: propagated from the adapter unchanged
    """
    if isinstance(entity, EntityRef):
        return entity
    if isinstance(entity, str):
        return EntityRef.raw(entity, entity_id)
    return EntityRef(
        storage.extract_entity_type(entity),
        storage.extract_entity_id(entity),
        resolved=True,
    )
