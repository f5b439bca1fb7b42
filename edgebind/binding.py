# Copyright (c) 2025 Varshith Gudur. Licensed under AGPLv3.
from __future__ import annotations

import uuid
from dataclasses import dataclass, field, replace
from datetime import date, datetime, timezone
from typing import Any, Dict, Mapping, Optional

from .frozen import freeze

# Wire tags for timestamps and dates nested inside metadata
DATETIME_TAG = "$datetime"
DATE_TAG = "$date"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True, eq=False)
class Binding:
    """
    A typed, directed, metadata-bearing relationship between two entities.

    Bindings are immutable. Identity is the ``id``: two instances with the same
    id compare equal regardless of their other fields.
    """
    id: str
    from_type: str
    from_id: str
    to_type: str
    to_id: str
    type: str
    metadata: Mapping[str, Any] = field(default_factory=dict)
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)

    def __post_init__(self):
        # Copy into read-only containers, nested levels included
        object.__setattr__(self, "metadata", freeze(self.metadata or {}))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Binding):
            return NotImplemented
        return self.id == other.id

    def __hash__(self) -> int:
        return hash(self.id)

    @classmethod
    def create(
        cls,
        from_type: str,
        from_id: str,
        to_type: str,
        to_id: str,
        type: str,
        metadata: Optional[Mapping[str, Any]] = None,
        binding_id: Optional[str] = None,
    ) -> "Binding":
        """Build a new binding with a generated id and current timestamps."""
        now = utcnow()
        return cls(
            id=binding_id or uuid.uuid4().hex,
            from_type=from_type,
            from_id=str(from_id),
            to_type=to_type,
            to_id=str(to_id),
            type=type,
            metadata=metadata or {},
            created_at=now,
            updated_at=now,
        )

    def with_metadata(self, metadata: Mapping[str, Any]) -> "Binding":
        """Return a copy carrying ``metadata`` and a refreshed ``updated_at``."""
        return replace(self, metadata=metadata, updated_at=utcnow())

    def connects(self, entity_type: str, entity_id: str) -> bool:
        """True if the entity is either endpoint of this binding."""
        return (self.from_type, self.from_id) == (entity_type, entity_id) or (
            self.to_type, self.to_id) == (entity_type, entity_id)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "from_type": self.from_type,
            "from_id": self.from_id,
            "to_type": self.to_type,
            "to_id": self.to_id,
            "type": self.type,
            "metadata": encode_value(dict(self.metadata)),
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Binding":
        return cls(
            id=data["id"],
            from_type=data["from_type"],
            from_id=str(data["from_id"]),
            to_type=data["to_type"],
            to_id=str(data["to_id"]),
            type=data["type"],
            metadata=decode_value(data.get("metadata") or {}),
            created_at=datetime.fromisoformat(data["created_at"]),
            updated_at=datetime.fromisoformat(data["updated_at"]),
        )


def encode_value(value: Any) -> Any:
    """Convert a metadata value into a JSON-safe structure."""
    if isinstance(value, datetime):
        return {DATETIME_TAG: value.isoformat()}
    if isinstance(value, date):
        return {DATE_TAG: value.isoformat()}
    if isinstance(value, Mapping):
        return {k: encode_value(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [encode_value(v) for v in value]
    return value


def decode_value(value: Any) -> Any:
    """Inverse of :func:`encode_value`."""
    if isinstance(value, Mapping):
        if set(value) == {DATETIME_TAG}:
            return datetime.fromisoformat(value[DATETIME_TAG])
        if set(value) == {DATE_TAG}:
            return date.fromisoformat(value[DATE_TAG])
        return {k: decode_value(v) for k, v in value.items()}
    if isinstance(value, list):
        return [decode_value(v) for v in value]
    return value
