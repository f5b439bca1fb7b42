# Copyright (c) 2025 Varshith Gudur. Licensed under AGPLv3.
import logging
from typing import Any, Dict, List, Mapping, Optional

from .adapters.base import PersistenceAdapter
from .binding import Binding
from .entity import EntityRef, resolve_endpoint
from .errors import BindingNotFoundError
from .query import BindingQueryBuilder

logger = logging.getLogger(__name__)


class EdgeBinder:
    """
    High-level entry point: create, find and remove bindings between
    entities, and start queries.

    Entity arguments may be domain objects (resolved through the adapter's
    extraction hooks) or :class:`EntityRef` values.
    """

    def __init__(self, storage: PersistenceAdapter):
        self._storage = storage

    @property
    def storage(self) -> PersistenceAdapter:
        return self._storage

    def _ref(self, entity: Any) -> EntityRef:
        return resolve_endpoint(self._storage, entity)

    def bind(
        self,
        from_entity: Any,
        to_entity: Any,
        type: str,
        metadata: Optional[Mapping[str, Any]] = None,
    ) -> Binding:
        """
        Create and persist a binding.

        Raises:
            EntityExtractionError: an endpoint could not be resolved
            MetadataValidationError: metadata failed validation
        """
        source = self._ref(from_entity)
        target = self._ref(to_entity)
        normalized = self._storage.validate_and_normalize_metadata(metadata or {})
        binding = Binding.create(source.type, source.id, target.type, target.id, type, normalized)
        self._storage.store(binding)
        logger.debug("bound %s:%s -[%s]-> %s:%s", source.type, source.id, type, target.type, target.id)
        return binding

    def unbind(self, binding_id: str) -> None:
        if not self._storage.delete(binding_id):
            raise BindingNotFoundError(binding_id)

    def unbind_entities(self, from_entity: Any, to_entity: Any, type: Optional[str] = None) -> int:
        """Remove every binding between two entities; returns how many went."""
        deleted = 0
        for binding in self.find_bindings_between(from_entity, to_entity, type):
            if self._storage.delete(binding.id):
                deleted += 1
        return deleted

    def unbind_entity(self, entity: Any) -> int:
        ref = self._ref(entity)
        return self._storage.delete_by_entity(ref.type, ref.id)

    def find_binding(self, binding_id: str) -> Optional[Binding]:
        return self._storage.find(binding_id)

    def find_bindings_for(self, entity: Any, type: Optional[str] = None) -> List[Binding]:
        ref = self._ref(entity)
        return self._storage.find_by_entity(ref.type, ref.id, type)

    def find_bindings_between(self, from_entity: Any, to_entity: Any, type: Optional[str] = None) -> List[Binding]:
        source = self._ref(from_entity)
        target = self._ref(to_entity)
        return self._storage.find_between_entities(source.type, source.id, target.type, target.id, type)

    def are_bound(self, from_entity: Any, to_entity: Any, type: Optional[str] = None) -> bool:
        query = self.query().from_entity(from_entity).to_entity(to_entity)
        if type is not None:
            query = query.type(type)
        return query.exists()

    def update_metadata(self, binding_id: str, metadata: Mapping[str, Any]) -> Binding:
        """Merge ``metadata`` into the binding's existing metadata."""
        binding = self._require(binding_id)
        merged: Dict[str, Any] = dict(binding.metadata)
        merged.update(metadata)
        return self.replace_metadata(binding_id, merged)

    def replace_metadata(self, binding_id: str, metadata: Mapping[str, Any]) -> Binding:
        updated = self._storage.update_metadata(binding_id, metadata)
        if updated is None:
            raise BindingNotFoundError(binding_id)
        return updated

    def query(self) -> BindingQueryBuilder:
        return BindingQueryBuilder(self._storage)

    def _require(self, binding_id: str) -> Binding:
        binding = self._storage.find(binding_id)
        if binding is None:
            raise BindingNotFoundError(binding_id)
        return binding
