# Copyright (c) 2025 Varshith Gudur. Licensed under AGPLv3.
import itertools

import pytest

from edgebind.adapters.memory import InMemoryAdapter
from edgebind.binder import EdgeBinder
from edgebind.binding import Binding
from edgebind.query import BindingQueryBuilder


class User:
    def __init__(self, id):
        self.id = id


class Project:
    entity_type = "project"

    def __init__(self, key):
        self.key = key

    def get_id(self):
        return self.key


@pytest.fixture
def adapter():
    return InMemoryAdapter()


@pytest.fixture
def binder(adapter):
    return EdgeBinder(adapter)


@pytest.fixture
def query(adapter):
    return BindingQueryBuilder(adapter)


@pytest.fixture
def add(adapter):
    """Store a binding with a predictable id: add(metadata=..., type=...) -> Binding."""
    counter = itertools.count(1)

    def _add(type="follows", from_=("user", "1"), to=("user", "2"), metadata=None, id=None):
        binding = Binding.create(
            from_[0], from_[1], to[0], to[1], type,
            metadata=metadata or {},
            binding_id=id or f"b{next(counter)}",
        )
        adapter.store(binding)
        return binding

    return _add
