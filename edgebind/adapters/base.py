# Copyright (c) 2025 Varshith Gudur. Licensed under AGPLv3.
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Mapping, Optional

from ..binding import Binding
from ..criteria import Criteria
from ..entity import extract_entity_id, extract_entity_type
from ..metadata import DEFAULT_MAX_DEPTH, validate_and_normalize_metadata


class PersistenceAdapter(ABC):
    """
    Storage contract consumed by the query builder and the binder.

    Subclasses implement record persistence and query execution. Entity
    extraction and metadata normalisation have default implementations that
    backends may override.
    """

    max_metadata_depth: int = DEFAULT_MAX_DEPTH

    @abstractmethod
    def store(self, binding: Binding) -> None:
        """Persist ``binding``, replacing any binding with the same id."""

    @abstractmethod
    def find(self, binding_id: str) -> Optional[Binding]:
        """Return the binding or None."""

    @abstractmethod
    def delete(self, binding_id: str) -> bool:
        """Remove a binding. Returns False when the id was not stored."""

    @abstractmethod
    def execute_query(self, criteria: Criteria) -> List[Binding]:
        """Return the ordered, paginated bindings matching ``criteria``."""

    @abstractmethod
    def count(self, criteria: Criteria) -> int:
        """Number of bindings matching ``criteria``, ignoring limit and offset."""

    def find_by_entity(self, entity_type: str, entity_id: str, binding_type: Optional[str] = None) -> List[Binding]:
        """Bindings where the entity is either endpoint."""
        outgoing = self.execute_query(Criteria(from_type=entity_type, from_id=entity_id, type=binding_type))
        incoming = self.execute_query(Criteria(to_type=entity_type, to_id=entity_id, type=binding_type))
        seen = set()
        out = []
        for binding in outgoing + incoming:
            if binding.id not in seen:
                seen.add(binding.id)
                out.append(binding)
        return out

    def find_between_entities(
        self,
        from_type: str,
        from_id: str,
        to_type: str,
        to_id: str,
        binding_type: Optional[str] = None,
    ) -> List[Binding]:
        return self.execute_query(Criteria(
            from_type=from_type, from_id=from_id, to_type=to_type, to_id=to_id, type=binding_type,
        ))

    def update_metadata(self, binding_id: str, metadata: Mapping[str, Any]) -> Optional[Binding]:
        """Replace the metadata of a stored binding; None if the id is unknown."""
        binding = self.find(binding_id)
        if binding is None:
            return None
        updated = binding.with_metadata(self.validate_and_normalize_metadata(metadata))
        self.store(updated)
        return updated

    def delete_by_entity(self, entity_type: str, entity_id: str) -> int:
        deleted = 0
        for binding in self.find_by_entity(entity_type, entity_id):
            if self.delete(binding.id):
                deleted += 1
        return deleted

    def extract_entity_type(self, entity: Any) -> str:
        return extract_entity_type(entity)

    def extract_entity_id(self, entity: Any) -> str:
        return extract_entity_id(entity)

    def validate_and_normalize_metadata(self, metadata: Mapping[str, Any]) -> Dict[str, Any]:
        return validate_and_normalize_metadata(metadata, max_depth=self.max_metadata_depth)
