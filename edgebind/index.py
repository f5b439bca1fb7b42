# Copyright (c) 2025 Varshith Gudur. Licensed under AGPLv3.
import itertools
import logging
import threading
from collections import defaultdict
from contextlib import contextmanager
from typing import Callable, Dict, Iterator, List, Optional, Set, Tuple

from .binding import Binding
from .criteria import Criteria

logger = logging.getLogger(__name__)

EntityKey = Tuple[str, str]


class ReadWriteLock:
    """
    Many concurrent readers or one writer.

    Writers are preferred: once a writer is waiting, new readers queue behind
    it so a steady stream of queries cannot starve inserts and deletes.
    Not reentrant.
    """

    def __init__(self):
        self._cond = threading.Condition(threading.Lock())
        self._readers = 0
        self._writer = False
        self._writers_waiting = 0

    @contextmanager
    def read(self) -> Iterator[None]:
        with self._cond:
            while self._writer or self._writers_waiting:
                self._cond.wait()
            self._readers += 1
        try:
            yield
        finally:
            with self._cond:
                self._readers -= 1
                if not self._readers:
                    self._cond.notify_all()

    @contextmanager
    def write(self) -> Iterator[None]:
        with self._cond:
            self._writers_waiting += 1
            try:
                while self._writer or self._readers:
                    self._cond.wait()
            finally:
                self._writers_waiting -= 1
            self._writer = True
        try:
            yield
        finally:
            with self._cond:
                self._writer = False
                self._cond.notify_all()


class IndexedStore:
    """
    Primary binding store plus entity and relationship-type indices.

    Every mutation updates the store and all index buckets under the write
    lock, so a reader never observes a binding that is stored but not
    indexed or the other way round. Empty buckets are dropped.

    Query callers wrap candidate computation and evaluation in ``reading()``
    so the whole query sees one consistent state.
    """

    def __init__(self):
        self._bindings: Dict[str, Binding] = {}
        self._sequence: Dict[str, int] = {}
        self._counter = itertools.count()
        self._by_entity: Dict[EntityKey, Set[str]] = defaultdict(set)
        self._by_type: Dict[str, Set[str]] = defaultdict(set)
        self.lock = ReadWriteLock()

    # ---------------------------------------------------------------- writes

    def insert(self, binding: Binding) -> None:
        """Add or replace ``binding``. A replaced binding keeps its creation order."""
        with self.lock.write():
            existing = self._bindings.get(binding.id)
            if existing is not None:
                self._unindex(existing)
            else:
                self._sequence[binding.id] = next(self._counter)
            self._bindings[binding.id] = binding
            self._index(binding)
        logger.debug("indexed binding %s (%s)", binding.id, binding.type)

    def replace_if_present(self, binding_id: str, update: Callable[[Binding], Binding]) -> Optional[Binding]:
        """
        Swap a stored binding for ``update(current)`` in one write-locked step.

        Returns the new binding, or None without storing anything when the id
        is not present, so a concurrent delete is never undone.
        """
        with self.lock.write():
            existing = self._bindings.get(binding_id)
            if existing is None:
                return None
            binding = update(existing)
            if binding.id != binding_id:
                raise ValueError(f"replacement changed binding id {binding_id} to {binding.id}")
            self._unindex(existing)
            self._bindings[binding_id] = binding
            self._index(binding)
        logger.debug("replaced binding %s", binding_id)
        return binding

    def delete(self, binding_id: str) -> Optional[Binding]:
        """Remove a binding; returns it, or None if it was not stored."""
        with self.lock.write():
            binding = self._bindings.pop(binding_id, None)
            if binding is None:
                return None
            del self._sequence[binding_id]
            self._unindex(binding)
        logger.debug("unindexed binding %s", binding_id)
        return binding

    def clear(self) -> None:
        with self.lock.write():
            self._bindings.clear()
            self._sequence.clear()
            self._by_entity.clear()
            self._by_type.clear()

    def _index(self, binding: Binding) -> None:
        self._by_entity[(binding.from_type, binding.from_id)].add(binding.id)
        self._by_entity[(binding.to_type, binding.to_id)].add(binding.id)
        self._by_type[binding.type].add(binding.id)

    def _unindex(self, binding: Binding) -> None:
        for key in ((binding.from_type, binding.from_id), (binding.to_type, binding.to_id)):
            _discard(self._by_entity, key, binding.id)
        _discard(self._by_type, binding.type, binding.id)

    # ----------------------------------------------------------------- reads
    # These do not lock on their own; call them inside ``reading()``.

    @contextmanager
    def reading(self) -> Iterator[None]:
        with self.lock.read():
            yield

    def get(self, binding_id: str) -> Optional[Binding]:
        return self._bindings.get(binding_id)

    def sequence(self, binding_id: str) -> int:
        return self._sequence[binding_id]

    def entity_ids(self, entity_type: str, entity_id: str) -> Set[str]:
        return set(self._by_entity.get((entity_type, entity_id), ()))

    def type_ids(self, binding_type: str) -> Set[str]:
        return set(self._by_type.get(binding_type, ()))

    def candidates(self, criteria: Criteria) -> List[Binding]:
        """
        Narrow the store to bindings that can satisfy the indexed filters.

        Intersects the from-endpoint, to-endpoint and type buckets that the
        criteria specify; with none of them the whole store is returned.
        The result is in creation order and still has to be evaluated.
        """
        buckets = []
        if criteria.has_from:
            buckets.append(self._by_entity.get((criteria.from_type, criteria.from_id), set()))
        if criteria.has_to:
            buckets.append(self._by_entity.get((criteria.to_type, criteria.to_id), set()))
        if criteria.type is not None:
            buckets.append(self._by_type.get(criteria.type, set()))

        if not buckets:
            logger.debug("no indexed filter, scanning %d bindings", len(self._bindings))
            return list(self._bindings.values())

        buckets.sort(key=len)
        ids = set(buckets[0])
        for bucket in buckets[1:]:
            ids &= bucket
            if not ids:
                break
        logger.debug("index narrowed %d bindings to %d candidates", len(self._bindings), len(ids))
        return sorted((self._bindings[i] for i in ids), key=lambda b: self._sequence[b.id])

    def all(self) -> List[Binding]:
        return list(self._bindings.values())

    # ------------------------------------------------------------ inspection

    def __len__(self) -> int:
        return len(self._bindings)

    def __contains__(self, binding_id: object) -> bool:
        return binding_id in self._bindings

    def index_snapshot(self) -> Tuple[Dict[EntityKey, Set[str]], Dict[str, Set[str]]]:
        """Copies of both indices, for consistency checks."""
        with self.lock.read():
            return (
                {k: set(v) for k, v in self._by_entity.items()},
                {k: set(v) for k, v in self._by_type.items()},
            )


def _discard(index: Dict, key, binding_id: str) -> None:
    bucket = index.get(key)
    if bucket is None:
        return
    bucket.discard(binding_id)
    if not bucket:
        del index[key]
