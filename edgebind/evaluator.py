# Copyright (c) 2025 Varshith Gudur. Licensed under AGPLv3.
"""
Predicate evaluation for the in-process query engine.

Comparisons are type-aware: booleans only equal booleans, numbers compare by
value, strings exactly, timestamps by instant. A missing field or a type
mismatch never raises; the clause just does not match.
"""
import numbers
from datetime import date, datetime
from typing import Any, Mapping, Optional, Tuple

from .binding import Binding
from .criteria import (
    Criteria, OrGroup, WhereClause,
    OP_BETWEEN, OP_EQ, OP_EXISTS, OP_GT, OP_GTE, OP_IN, OP_LT, OP_LTE,
    OP_NE, OP_NOT_IN, OP_NOT_NULL, OP_NULL,
)

# Attributes resolved on the binding itself before falling back to metadata
BINDING_FIELDS = ("id", "type", "from_type", "from_id", "to_type", "to_id", "created_at", "updated_at")


def value_kind(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "bool"
    if isinstance(value, numbers.Number):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, datetime):
        return "datetime"
    if isinstance(value, date):
        return "date"
    if isinstance(value, Mapping):
        return "map"
    if isinstance(value, (list, tuple)):
        return "list"
    return type(value).__name__


_ORDERED_KINDS = ("number", "string", "datetime", "date")


def values_equal(left: Any, right: Any) -> bool:
    kind = value_kind(left)
    if kind != value_kind(right):
        return False
    if kind == "list":
        return len(left) == len(right) and all(values_equal(a, b) for a, b in zip(left, right))
    if kind == "map":
        return set(left) == set(right) and all(values_equal(left[k], right[k]) for k in left)
    try:
        return bool(left == right)
    except TypeError:
        return False


def compare_values(left: Any, right: Any) -> Optional[int]:
    """Three-way compare; None when the values have no common ordering."""
    kind = value_kind(left)
    if kind != value_kind(right) or kind not in _ORDERED_KINDS:
        return None
    try:
        if left < right:
            return -1
        if left > right:
            return 1
        return 0
    except TypeError:
        # naive vs aware datetimes
        return None


def resolve_field(binding: Binding, field: str) -> Tuple[bool, Any]:
    """Return ``(found, value)`` for ``field`` on ``binding``."""
    if field in BINDING_FIELDS:
        return True, getattr(binding, field)
    metadata = binding.metadata
    if field in metadata:
        return True, metadata[field]
    if "." in field:
        current: Any = metadata
        for part in field.split("."):
            if not isinstance(current, Mapping) or part not in current:
                return False, None
            current = current[part]
        return True, current
    return False, None


class PredicateEvaluator:
    """Decides whether a single binding satisfies a :class:`Criteria`."""

    def matches(self, binding: Binding, criteria: Criteria) -> bool:
        if criteria.has_from and (binding.from_type, binding.from_id) != (criteria.from_type, criteria.from_id):
            return False
        if criteria.has_to and (binding.to_type, binding.to_id) != (criteria.to_type, criteria.to_id):
            return False
        if criteria.type is not None and binding.type != criteria.type:
            return False
        return all(self.matches_clause(binding, clause) for clause in criteria.where)

    def matches_clause(self, binding: Binding, clause) -> bool:
        if isinstance(clause, OrGroup):
            # An empty group matches nothing
            return any(self.matches_clause(binding, c) for c in clause.conditions)
        return self.matches_leaf(binding, clause)

    def matches_leaf(self, binding: Binding, clause: WhereClause) -> bool:
        found, value = resolve_field(binding, clause.field)
        op = clause.operator

        if op == OP_EXISTS:
            return found
        if op == OP_NULL:
            return found and value is None
        if op == OP_NOT_NULL:
            return found and value is not None
        if not found:
            return False

        if op == OP_EQ:
            return values_equal(value, clause.value)
        if op == OP_NE:
            return not values_equal(value, clause.value)
        if op == OP_IN:
            return any(values_equal(value, v) for v in clause.value)
        if op == OP_NOT_IN:
            return not any(values_equal(value, v) for v in clause.value)
        if op == OP_BETWEEN:
            low, high = clause.value
            lower = compare_values(value, low)
            upper = compare_values(value, high)
            return lower is not None and upper is not None and lower >= 0 and upper <= 0

        cmp = compare_values(value, clause.value)
        if cmp is None:
            return False
        if op == OP_GT:
            return cmp > 0
        if op == OP_GTE:
            return cmp >= 0
        if op == OP_LT:
            return cmp < 0
        if op == OP_LTE:
            return cmp <= 0
        return False
