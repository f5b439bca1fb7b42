# Copyright (c) 2025 Varshith Gudur. Licensed under AGPLv3.
import threading
from concurrent.futures import ThreadPoolExecutor

import pytest

from edgebind.binding import Binding
from edgebind.criteria import Criteria
from edgebind.index import IndexedStore, ReadWriteLock


def make(id, type="follows", from_=("user", "1"), to=("user", "2"), metadata=None):
    return Binding.create(from_[0], from_[1], to[0], to[1], type, metadata=metadata, binding_id=id)


@pytest.fixture
def store():
    return IndexedStore()


def assert_consistent(store):
    """Every stored binding is in its three buckets and every bucket entry is stored."""
    by_entity, by_type = store.index_snapshot()
    expected_entity = {}
    expected_type = {}
    for b in store.all():
        expected_entity.setdefault((b.from_type, b.from_id), set()).add(b.id)
        expected_entity.setdefault((b.to_type, b.to_id), set()).add(b.id)
        expected_type.setdefault(b.type, set()).add(b.id)
    assert by_entity == expected_entity
    assert by_type == expected_type


def test_insert_indexes_both_endpoints_and_type(store):
    store.insert(make("a", to=("team", "9")))
    assert store.entity_ids("user", "1") == {"a"}
    assert store.entity_ids("team", "9") == {"a"}
    assert store.type_ids("follows") == {"a"}
    assert_consistent(store)


def test_delete_drops_empty_buckets(store):
    store.insert(make("a", to=("team", "9")))
    store.insert(make("b", type="blocks"))
    assert store.delete("a").id == "a"
    by_entity, by_type = store.index_snapshot()
    assert ("team", "9") not in by_entity
    assert "follows" not in by_type
    assert by_entity[("user", "1")] == {"b"}
    assert_consistent(store)


def test_delete_unknown_returns_none(store):
    assert store.delete("nope") is None


def test_self_loop_binding(store):
    store.insert(make("loop", to=("user", "1")))
    assert store.entity_ids("user", "1") == {"loop"}
    store.delete("loop")
    assert store.index_snapshot() == ({}, {})


def test_replace_reindexes_and_keeps_creation_order(store):
    store.insert(make("a"))
    store.insert(make("b"))
    store.insert(make("a", type="blocks", to=("team", "3")))
    assert store.type_ids("follows") == {"b"}
    assert store.type_ids("blocks") == {"a"}
    assert store.entity_ids("user", "2") == {"b"}
    assert store.sequence("a") < store.sequence("b")
    assert_consistent(store)


def test_candidates_intersect_indexed_filters(store):
    store.insert(make("a"))
    store.insert(make("b", to=("user", "3")))
    store.insert(make("c", type="blocks", to=("user", "3")))
    store.insert(make("d", from_=("user", "5"), to=("user", "3")))

    ids = lambda c: [b.id for b in store.candidates(c)]
    assert ids(Criteria(from_type="user", from_id="1")) == ["a", "b", "c"]
    assert ids(Criteria(from_type="user", from_id="1", type="follows")) == ["a", "b"]
    assert ids(Criteria(to_type="user", to_id="3", type="blocks")) == ["c"]
    assert ids(Criteria(from_type="user", from_id="5", to_type="user", to_id="3")) == ["d"]
    assert ids(Criteria(type="missing")) == []


def test_candidates_without_indexed_filter_is_full_store(store):
    for i in range(4):
        store.insert(make(f"b{i}"))
    assert [b.id for b in store.candidates(Criteria())] == ["b0", "b1", "b2", "b3"]


def test_concurrent_writes_keep_indices_consistent(store):
    def work(n):
        b = make(f"x{n}", type=f"t{n % 3}", to=("user", str(n % 5)))
        store.insert(b)
        if n % 2:
            store.delete(b.id)

    with ThreadPoolExecutor(max_workers=8) as pool:
        list(pool.map(work, range(200)))

    assert len(store) == 100
    assert_consistent(store)


def test_readers_share_the_lock():
    lock = ReadWriteLock()
    inside = threading.Barrier(2, timeout=5)

    def reader():
        with lock.read():
            # Both readers must be inside at once to pass the barrier
            inside.wait()

    threads = [threading.Thread(target=reader) for _ in range(2)]
    for t in threads:
        t.start()
    for t in threads:
        t.join(5)
    assert not inside.broken


def test_writer_excludes_readers():
    lock = ReadWriteLock()
    events = []
    writer_in = threading.Event()
    release = threading.Event()

    def writer():
        with lock.write():
            writer_in.set()
            release.wait(5)
            events.append("write-done")

    def reader():
        with lock.read():
            events.append("read")

    w = threading.Thread(target=writer)
    w.start()
    writer_in.wait(5)
    r = threading.Thread(target=reader)
    r.start()
    r.join(0.1)
    assert events == []
    release.set()
    w.join(5)
    r.join(5)
    assert events == ["write-done", "read"]


def test_replace_if_present_swaps_and_reindexes(store):
    store.insert(make("a"))
    store.insert(make("b"))
    replaced = store.replace_if_present("a", lambda current: current.with_metadata({"v": 1}))
    assert replaced.metadata["v"] == 1
    assert store.get("a") is replaced
    assert store.sequence("a") < store.sequence("b")
    assert_consistent(store)


def test_replace_if_present_never_restores_deleted(store):
    store.insert(make("a"))
    store.delete("a")
    calls = []
    assert store.replace_if_present("a", lambda current: calls.append(current) or current) is None
    assert calls == []
    assert "a" not in store
    assert store.index_snapshot() == ({}, {})


def test_replace_if_present_rejects_id_change(store):
    store.insert(make("a"))
    with pytest.raises(ValueError, match="changed binding id"):
        store.replace_if_present("a", lambda current: make("other"))
    assert store.get("a").id == "a"
    assert_consistent(store)
