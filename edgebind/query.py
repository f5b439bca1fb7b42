# Copyright (c) 2025 Varshith Gudur. Licensed under AGPLv3.
from __future__ import annotations

from collections import abc
from typing import Any, Callable, Dict, Iterable, List, Optional

from .binding import Binding
from .criteria import (
    Criteria, OrGroup, OrderClause, WhereClause,
    OP_BETWEEN, OP_EQ, OP_EXISTS, OP_IN, OP_NOT_IN, OP_NOT_NULL, OP_NULL,
    ASC, check_non_negative, check_operator, normalize_direction,
)
from .entity import resolve_endpoint
from .errors import InvalidArgumentError

_MISSING = object()


class BindingQueryBuilder:
    """
    Fluent, storage-agnostic query builder for bindings.

    The builder is immutable: every method returns a new builder carrying a
    new :class:`Criteria` snapshot, so a builder can be shared, reused as a
    template, or captured inside ``or_where`` callbacks safely.

    Execution is delegated to the storage adapter, which either evaluates the
    criteria in process or translates ``criteria.to_dict()`` natively.
    """

    __slots__ = ("_storage", "_criteria")

    def __init__(self, storage, criteria: Optional[Criteria] = None):
        self._storage = storage
        self._criteria = criteria if criteria is not None else Criteria()

    @property
    def criteria(self) -> Criteria:
        return self._criteria

    @property
    def storage(self):
        return self._storage

    def to_dict(self) -> Dict[str, Any]:
        return self._criteria.to_dict()

    def _with(self, criteria: Criteria) -> "BindingQueryBuilder":
        return BindingQueryBuilder(self._storage, criteria)

    def _add_where(self, clause) -> "BindingQueryBuilder":
        return self._with(self._criteria.add_where(clause))

    # ------------------------------------------------------------------
    # Filters
    # ------------------------------------------------------------------

    def from_entity(self, entity: Any, entity_id: Optional[Any] = None) -> "BindingQueryBuilder":
        """Restrict to bindings whose source is ``entity`` (object, EntityRef or type + id)."""
        ref = resolve_endpoint(self._storage, entity, entity_id)
        return self._with(self._criteria.evolve(from_type=ref.type, from_id=ref.id))

    def to_entity(self, entity: Any, entity_id: Optional[Any] = None) -> "BindingQueryBuilder":
        """Restrict to bindings whose target is ``entity`` (object, EntityRef or type + id)."""
        ref = resolve_endpoint(self._storage, entity, entity_id)
        return self._with(self._criteria.evolve(to_type=ref.type, to_id=ref.id))

    def type(self, binding_type: str) -> "BindingQueryBuilder":
        return self._with(self._criteria.evolve(type=binding_type))

    def where(self, field: str, operator: Any, value: Any = _MISSING) -> "BindingQueryBuilder":
        """
        Add a predicate. ``where(field, value)`` is shorthand for
        ``where(field, "=", value)``.
        """
        if value is _MISSING:
            operator, value = OP_EQ, operator
        else:
            operator = check_operator(operator)
        if operator in (OP_IN, OP_NOT_IN):
            value = tuple(_as_list(field, value))
        elif operator == OP_BETWEEN:
            bounds = tuple(_as_list(field, value))
            if len(bounds) != 2:
                raise InvalidArgumentError(f"between on '{field}' needs exactly two bounds, got {len(bounds)}")
            value = bounds
        elif operator in (OP_EXISTS, OP_NULL, OP_NOT_NULL):
            value = True
        return self._add_where(WhereClause(field, operator, value))

    def where_in(self, field: str, values: Iterable[Any]) -> "BindingQueryBuilder":
        return self._add_where(WhereClause(field, OP_IN, tuple(_as_list(field, values))))

    def where_not_in(self, field: str, values: Iterable[Any]) -> "BindingQueryBuilder":
        return self._add_where(WhereClause(field, OP_NOT_IN, tuple(_as_list(field, values))))

    def where_between(self, field: str, min_value: Any, max_value: Any) -> "BindingQueryBuilder":
        # Bounds are not checked: swapped bounds simply match nothing
        return self._add_where(WhereClause(field, OP_BETWEEN, (min_value, max_value)))

    def where_exists(self, field: str) -> "BindingQueryBuilder":
        return self._add_where(WhereClause(field, OP_EXISTS, True))

    def where_null(self, field: str) -> "BindingQueryBuilder":
        """Match when ``field`` is present and holds ``None``. An absent key does not match."""
        return self._add_where(WhereClause(field, OP_NULL, True))

    def where_not_null(self, field: str) -> "BindingQueryBuilder":
        return self._add_where(WhereClause(field, OP_NOT_NULL, True))

    def or_where(self, callback: Callable[["BindingQueryBuilder"], "BindingQueryBuilder"]) -> "BindingQueryBuilder":
        """
        Add a disjunction. ``callback`` receives a fresh builder and returns it
        with the alternatives added; only its predicates are kept.

            q.or_where(lambda sub: sub.where("role", "admin").where_in("level", [4, 5]))
        """
        sub = callback(BindingQueryBuilder(self._storage))
        if not isinstance(sub, BindingQueryBuilder):
            raise InvalidArgumentError("or_where callback must return a BindingQueryBuilder")
        return self._add_where(OrGroup(sub.criteria.where))

    # ------------------------------------------------------------------
    # Ordering & pagination
    # ------------------------------------------------------------------

    def order_by(self, field: str, direction: str = ASC) -> "BindingQueryBuilder":
        return self._with(self._criteria.add_order(OrderClause(field, normalize_direction(direction))))

    def limit(self, limit: int) -> "BindingQueryBuilder":
        return self._with(self._criteria.evolve(limit=check_non_negative("limit", limit)))

    def offset(self, offset: int) -> "BindingQueryBuilder":
        return self._with(self._criteria.evolve(offset=check_non_negative("offset", offset)))

    # ------------------------------------------------------------------
    # Execution
    # ------------------------------------------------------------------

    def get(self) -> List[Binding]:
        return self._storage.execute_query(self._criteria)

    execute = get

    def first(self) -> Optional[Binding]:
        results = self.limit(1).get()
        return results[0] if results else None

    def count(self) -> int:
        return self._storage.count(self._criteria)

    def exists(self) -> bool:
        return self.count() > 0

    def __repr__(self) -> str:
        return f"BindingQueryBuilder({self._criteria.to_dict()!r})"


def _as_list(field: str, values: Any) -> List[Any]:
    if isinstance(values, (str, bytes)) or not isinstance(values, abc.Iterable):
        raise InvalidArgumentError(f"'{field}' expects a list of values, got {type(values).__name__}")
    return list(values)
