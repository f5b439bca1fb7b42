# Copyright (c) 2025 Varshith Gudur. Licensed under AGPLv3.
import logging
from typing import Any, List, Mapping, Optional

from ..binding import Binding
from ..criteria import Criteria
from ..evaluator import PredicateEvaluator
from ..index import IndexedStore
from ..metadata import DEFAULT_MAX_DEPTH
from ..pipeline import ResultPipeline
from .base import PersistenceAdapter

logger = logging.getLogger(__name__)


class InMemoryAdapter(PersistenceAdapter):
    """
    Reference in-process backend.

    Queries narrow candidates through the entity/type indices, evaluate every
    candidate against the full criteria, then sort and paginate. The whole
    query runs under the store's read lock.
    """

    def __init__(self, max_metadata_depth: int = DEFAULT_MAX_DEPTH):
        self._store = IndexedStore()
        self._evaluator = PredicateEvaluator()
        self._pipeline = ResultPipeline(self._store.sequence)
        self.max_metadata_depth = max_metadata_depth

    @property
    def index(self) -> IndexedStore:
        return self._store

    def store(self, binding: Binding) -> None:
        self._store.insert(binding)

    def find(self, binding_id: str) -> Optional[Binding]:
        with self._store.reading():
            return self._store.get(binding_id)

    def delete(self, binding_id: str) -> bool:
        return self._store.delete(binding_id) is not None

    def update_metadata(self, binding_id: str, metadata: Mapping[str, Any]) -> Optional[Binding]:
        normalized = self.validate_and_normalize_metadata(metadata)
        return self._store.replace_if_present(binding_id, lambda current: current.with_metadata(normalized))

    def execute_query(self, criteria: Criteria) -> List[Binding]:
        with self._store.reading():
            matched = self._filter(criteria)
            results = self._pipeline.run(matched, criteria)
        if logger.isEnabledFor(logging.DEBUG):
            logger.debug("query %s matched %d, returned %d", criteria.to_dict(), len(matched), len(results))
        return results

    def count(self, criteria: Criteria) -> int:
        with self._store.reading():
            return len(self._filter(criteria))

    def _filter(self, criteria: Criteria) -> List[Binding]:
        return [b for b in self._store.candidates(criteria) if self._evaluator.matches(b, criteria)]

    def clear(self) -> None:
        self._store.clear()

    def __len__(self) -> int:
        return len(self._store)
