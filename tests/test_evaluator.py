# Copyright (c) 2025 Varshith Gudur. Licensed under AGPLv3.
from datetime import datetime, timedelta, timezone

import pytest

from edgebind.binding import Binding
from edgebind.criteria import Criteria, OrGroup, WhereClause
from edgebind.evaluator import PredicateEvaluator, compare_values, resolve_field, values_equal
from edgebind.frozen import freeze


def make(metadata=None, **overrides):
    fields = dict(from_type="user", from_id="1", to_type="user", to_id="2", type="follows")
    fields.update(overrides)
    return Binding.create(metadata=metadata or {}, **fields)


def where(*clauses):
    return Criteria(where=tuple(clauses))


@pytest.fixture
def evaluator():
    return PredicateEvaluator()


def test_endpoint_and_type_filters(evaluator):
    b = make()
    assert evaluator.matches(b, Criteria(from_type="user", from_id="1"))
    assert not evaluator.matches(b, Criteria(from_type="user", from_id="2"))
    assert evaluator.matches(b, Criteria(to_type="user", to_id="2"))
    assert not evaluator.matches(b, Criteria(to_type="team", to_id="2"))
    assert evaluator.matches(b, Criteria(type="follows"))
    assert not evaluator.matches(b, Criteria(type="blocks"))
    assert evaluator.matches(b, Criteria())


def test_clauses_are_and_combined(evaluator):
    b = make({"a": 1, "b": 2})
    assert evaluator.matches(b, where(WhereClause("a", "=", 1), WhereClause("b", "=", 2)))
    assert not evaluator.matches(b, where(WhereClause("a", "=", 1), WhereClause("b", "=", 3)))


def test_or_group_needs_one_match(evaluator):
    b = make({"role": "editor"})
    group = OrGroup((WhereClause("role", "=", "admin"), WhereClause("role", "=", "editor")))
    assert evaluator.matches(b, where(group))
    miss = OrGroup((WhereClause("role", "=", "admin"), WhereClause("role", "=", "owner")))
    assert not evaluator.matches(b, where(miss))


def test_empty_or_group_matches_nothing(evaluator):
    assert not evaluator.matches(make({"a": 1}), where(OrGroup(())))


def test_nested_or_groups(evaluator):
    b = make({"a": 1, "b": 2})
    inner = OrGroup((WhereClause("b", "=", 9), WhereClause("b", "=", 2)))
    outer = OrGroup((WhereClause("a", "=", 5), inner))
    assert evaluator.matches(b, where(outer))


@pytest.mark.parametrize("stored,query,expected", [
    (1, 1.0, True),
    (1, "1", False),
    (True, 1, False),
    (1, True, False),
    (False, False, True),
    ("Admin", "admin", False),
    ([1, 2], [1, 2], True),
    ({"x": 1}, {"x": 1}, True),
    (None, None, True),
])
def test_type_aware_equality(stored, query, expected):
    assert values_equal(stored, query) is expected


def test_timestamps_compare_by_instant():
    utc = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)
    plus_two = utc.astimezone(timezone(timedelta(hours=2)))
    assert values_equal(utc, plus_two)
    assert compare_values(utc, plus_two) == 0


def test_naive_and_aware_do_not_compare():
    assert compare_values(datetime(2024, 1, 1), datetime(2024, 1, 1, tzinfo=timezone.utc)) is None


@pytest.mark.parametrize("score,expected", [(9, False), (10, True), (15, True), (20, True), (21, False)])
def test_between_is_inclusive(evaluator, score, expected):
    clause = WhereClause("score", "between", (10, 20))
    assert evaluator.matches(make({"score": score}), where(clause)) is expected


def test_between_with_swapped_bounds_matches_nothing(evaluator):
    clause = WhereClause("score", "between", (20, 10))
    for score in (5, 10, 15, 20, 25):
        assert not evaluator.matches(make({"score": score}), where(clause))


def test_between_on_timestamps(evaluator):
    start = datetime(2024, 1, 1, tzinfo=timezone.utc)
    end = datetime(2024, 12, 31, tzinfo=timezone.utc)
    clause = WhereClause("seen", "between", (start, end))
    assert evaluator.matches(make({"seen": datetime(2024, 6, 1, tzinfo=timezone.utc)}), where(clause))
    assert not evaluator.matches(make({"seen": datetime(2025, 6, 1, tzinfo=timezone.utc)}), where(clause))


def test_in_and_not_in(evaluator):
    b = make({"level": 2})
    assert evaluator.matches(b, where(WhereClause("level", "in", (1, 2, 3))))
    assert not evaluator.matches(b, where(WhereClause("level", "in", ("2",))))
    assert evaluator.matches(b, where(WhereClause("level", "not_in", (5, 6))))
    assert not evaluator.matches(b, where(WhereClause("level", "not_in", (2,))))


def test_in_matches_like_or_group_of_equalities(evaluator):
    as_in = where(WhereClause("level", "in", (1, 2, 3)))
    as_or = where(OrGroup(tuple(WhereClause("level", "=", v) for v in (1, 2, 3))))
    for level in (0, 1, 2, 3, 4, "1", True):
        b = make({"level": level})
        assert evaluator.matches(b, as_in) == evaluator.matches(b, as_or)


@pytest.mark.parametrize("op,value,expected", [
    (">", 5, True), (">", 7, False), (">=", 7, True),
    ("<", 8, True), ("<", 7, False), ("<=", 7, True),
    ("!=", 7, False), ("!=", 8, True),
])
def test_comparison_operators(evaluator, op, value, expected):
    assert evaluator.matches(make({"n": 7}), where(WhereClause("n", op, value))) is expected


def test_comparison_across_types_does_not_match(evaluator):
    b = make({"n": "seven"})
    assert not evaluator.matches(b, where(WhereClause("n", ">", 5)))
    assert not evaluator.matches(b, where(WhereClause("n", "<", 5)))


def test_exists_counts_explicit_none(evaluator):
    assert evaluator.matches(make({"note": None}), where(WhereClause("note", "exists", True)))
    assert not evaluator.matches(make({}), where(WhereClause("note", "exists", True)))


def test_null_requires_present_key(evaluator):
    clause = where(WhereClause("deleted_at", "null", True))
    assert evaluator.matches(make({"deleted_at": None}), clause)
    assert not evaluator.matches(make({"deleted_at": "2024-01-01"}), clause)
    # absent key is not null
    assert not evaluator.matches(make({}), clause)


def test_not_null(evaluator):
    clause = where(WhereClause("owner", "not_null", True))
    assert evaluator.matches(make({"owner": "ann"}), clause)
    assert not evaluator.matches(make({"owner": None}), clause)
    assert not evaluator.matches(make({}), clause)


@pytest.mark.parametrize("op,value", [
    ("=", 1), ("!=", 1), (">", 1), ("<", 1), (">=", 1), ("<=", 1),
    ("in", (1,)), ("not_in", (1,)), ("between", (0, 2)),
])
def test_missing_field_never_matches(evaluator, op, value):
    assert not evaluator.matches(make({"other": 1}), where(WhereClause("missing", op, value)))


def test_binding_attributes_are_fields(evaluator):
    b = make(type="follows")
    assert evaluator.matches(b, where(WhereClause("type", "=", "follows")))
    assert evaluator.matches(b, where(WhereClause("from_id", "=", "1")))
    assert evaluator.matches(b, where(WhereClause("created_at", "exists", True)))


def test_dotted_path_reads_nested_metadata():
    b = make({"address": {"city": "Oslo"}, "a.b": "literal"})
    assert resolve_field(b, "address.city") == (True, "Oslo")
    assert resolve_field(b, "a.b") == (True, "literal")
    assert resolve_field(b, "address.zip") == (False, None)
    assert resolve_field(b, "address.city.x") == (False, None)


def test_frozen_and_plain_containers_compare_equal():
    plain = {"roles": ["x", "y"], "meta": {"n": 1}}
    assert values_equal(freeze(plain), plain)
    assert values_equal(plain, freeze(plain))
    assert not values_equal(freeze(plain), {"roles": ["x"], "meta": {"n": 1}})
    assert not values_equal({"a": 1}, {"a": 1, "b": 2})


def test_nested_list_metadata_matches_list_value(evaluator):
    b = make({"owner": {"roles": ["x"]}})
    assert evaluator.matches(b, where(WhereClause("owner", "=", {"roles": ["x"]})))
    assert not evaluator.matches(b, where(WhereClause("owner", "=", {"roles": ["y"]})))
