# Copyright (c) 2025 Varshith Gudur. Licensed under AGPLv3.
"""
Immutable query description shared by the builder, the in-memory engine
and any backend that translates queries natively.

``Criteria.to_dict()`` is the wire shape consumed by adapters:

    {
        "from_type": str, "from_id": str,
        "to_type": str, "to_id": str,
        "type": str,
        "where": [
            {"field": str, "operator": str, "value": Any},
            {"combinator": "or", "conditions": [...]},
        ],
        "order_by": [{"field": str, "direction": "asc" | "desc"}],
        "limit": int, "offset": int,
    }

Keys for absent filters are omitted.
"""
from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any, Dict, Mapping, Optional, Tuple, Union

from .errors import InvalidArgumentError
from .frozen import freeze, thaw

OP_EQ = "="
OP_NE = "!="
OP_GT = ">"
OP_GTE = ">="
OP_LT = "<"
OP_LTE = "<="
OP_IN = "in"
OP_NOT_IN = "not_in"
OP_BETWEEN = "between"
OP_EXISTS = "exists"
OP_NULL = "null"
OP_NOT_NULL = "not_null"

OPERATORS = frozenset({
    OP_EQ, OP_NE, OP_GT, OP_GTE, OP_LT, OP_LTE,
    OP_IN, OP_NOT_IN, OP_BETWEEN, OP_EXISTS, OP_NULL, OP_NOT_NULL,
})

# Operators whose clause carries a list of values
_LIST_OPERATORS = (OP_IN, OP_NOT_IN, OP_BETWEEN)

ASC = "asc"
DESC = "desc"

COMBINATOR_OR = "or"


@dataclass(frozen=True)
class WhereClause:
    field: str
    operator: str
    value: Any = None

    def __post_init__(self):
        # Lists become tuples and mappings read-only proxies, at every level
        object.__setattr__(self, "value", freeze(self.value))

    def to_dict(self) -> Dict[str, Any]:
        return {"field": self.field, "operator": self.operator, "value": thaw(self.value)}


@dataclass(frozen=True)
class OrGroup:
    conditions: Tuple["Clause", ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {"combinator": COMBINATOR_OR, "conditions": [c.to_dict() for c in self.conditions]}


Clause = Union[WhereClause, OrGroup]


@dataclass(frozen=True)
class OrderClause:
    field: str
    direction: str = ASC

    def to_dict(self) -> Dict[str, Any]:
        return {"field": self.field, "direction": self.direction}


@dataclass(frozen=True)
class Criteria:
    from_type: Optional[str] = None
    from_id: Optional[str] = None
    to_type: Optional[str] = None
    to_id: Optional[str] = None
    type: Optional[str] = None
    where: Tuple[Clause, ...] = ()
    order_by: Tuple[OrderClause, ...] = ()
    limit: Optional[int] = None
    offset: Optional[int] = None

    @property
    def has_from(self) -> bool:
        return self.from_type is not None and self.from_id is not None

    @property
    def has_to(self) -> bool:
        return self.to_type is not None and self.to_id is not None

    def evolve(self, **changes) -> "Criteria":
        return replace(self, **changes)

    def add_where(self, clause: Clause) -> "Criteria":
        return replace(self, where=self.where + (clause,))

    def add_order(self, clause: OrderClause) -> "Criteria":
        return replace(self, order_by=self.order_by + (clause,))

    def without_pagination(self) -> "Criteria":
        return replace(self, limit=None, offset=None)

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {}
        if self.has_from:
            out["from_type"] = self.from_type
            out["from_id"] = self.from_id
        if self.has_to:
            out["to_type"] = self.to_type
            out["to_id"] = self.to_id
        if self.type is not None:
            out["type"] = self.type
        if self.where:
            out["where"] = [c.to_dict() for c in self.where]
        if self.order_by:
            out["order_by"] = [o.to_dict() for o in self.order_by]
        if self.limit is not None:
            out["limit"] = self.limit
        if self.offset is not None:
            out["offset"] = self.offset
        return out

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Criteria":
        """Rebuild criteria from the wire shape. Unknown operators are rejected."""
        return cls(
            from_type=data.get("from_type"),
            from_id=_opt_str(data.get("from_id")),
            to_type=data.get("to_type"),
            to_id=_opt_str(data.get("to_id")),
            type=data.get("type"),
            where=tuple(clause_from_dict(c) for c in data.get("where", ())),
            order_by=tuple(
                OrderClause(o["field"], normalize_direction(o.get("direction", ASC)))
                for o in data.get("order_by", ())
            ),
            limit=check_non_negative("limit", data.get("limit")),
            offset=check_non_negative("offset", data.get("offset")),
        )


def clause_from_dict(data: Mapping[str, Any]) -> Clause:
    if data.get("combinator") == COMBINATOR_OR:
        return OrGroup(tuple(clause_from_dict(c) for c in data.get("conditions", ())))
    operator = check_operator(data["operator"])
    value = data.get("value")
    if operator in _LIST_OPERATORS:
        value = tuple(value)
    return WhereClause(data["field"], operator, value)


def check_operator(operator: Any) -> str:
    if not isinstance(operator, str) or operator.lower() not in OPERATORS:
        raise InvalidArgumentError(f"Unsupported operator: {operator!r}")
    return operator.lower()


def normalize_direction(direction: Any) -> str:
    normalized = direction.lower() if isinstance(direction, str) else direction
    if normalized not in (ASC, DESC):
        raise InvalidArgumentError(f"Order direction must be 'asc' or 'desc', got: {direction}")
    return normalized


def check_non_negative(name: str, value: Optional[int]) -> Optional[int]:
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidArgumentError(f"{name.capitalize()} must be an integer, got: {value!r}")
    if value < 0:
        raise InvalidArgumentError(f"{name.capitalize()} must be non-negative, got: {value}")
    return value


def _opt_str(value: Any) -> Optional[str]:
    return None if value is None else str(value)
