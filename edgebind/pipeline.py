# Copyright (c) 2025 Varshith Gudur. Licensed under AGPLv3.
import functools
from typing import Callable, List, Sequence

from .binding import Binding
from .criteria import Criteria, OrderClause, DESC
from .evaluator import compare_values, resolve_field, value_kind


def _sort_compare(left, right) -> int:
    """
    Total order used for sorting. Missing and None values come first, values
    of one kind compare naturally, mixed kinds fall back to the kind name.
    """
    left_found, left_value = left
    right_found, right_value = right
    left_empty = not left_found or left_value is None
    right_empty = not right_found or right_value is None
    if left_empty or right_empty:
        return (not left_empty) - (not right_empty)
    cmp = compare_values(left_value, right_value)
    if cmp is not None:
        return cmp
    left_kind, right_kind = value_kind(left_value), value_kind(right_value)
    if left_kind != right_kind:
        return (left_kind > right_kind) - (left_kind < right_kind)
    left_text, right_text = repr(left_value), repr(right_value)
    return (left_text > right_text) - (left_text < right_text)


class ResultPipeline:
    """Sorts and paginates bindings that already passed evaluation."""

    def __init__(self, sequence: Callable[[str], int]):
        # Creation order lookup, the final tie-break
        self._sequence = sequence

    def sort(self, bindings: Sequence[Binding], order_by: Sequence[OrderClause]) -> List[Binding]:
        def compare(a: Binding, b: Binding) -> int:
            for clause in order_by:
                cmp = _sort_compare(resolve_field(a, clause.field), resolve_field(b, clause.field))
                if cmp:
                    return -cmp if clause.direction == DESC else cmp
            return self._sequence(a.id) - self._sequence(b.id)

        return sorted(bindings, key=functools.cmp_to_key(compare))

    @staticmethod
    def paginate(bindings: List[Binding], limit=None, offset=None) -> List[Binding]:
        start = offset or 0
        if limit is None:
            return bindings[start:]
        return bindings[start:start + limit]

    def run(self, bindings: Sequence[Binding], criteria: Criteria) -> List[Binding]:
        ordered = self.sort(bindings, criteria.order_by)
        return self.paginate(ordered, criteria.limit, criteria.offset)
