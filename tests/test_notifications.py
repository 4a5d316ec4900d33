import sys
import os

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))
import itertools
import pytest
from laundry.errors import NotFoundError
from laundry.notifications import NotificationEmitter
from laundry.store import MemoryStore


class CountingStore(MemoryStore):
    def __init__(self):
        super().__init__()
        self.calls = []

    def update(self, entity, record_id, mutator):
        self.calls.append("update")
        return super().update(entity, record_id, mutator)

    def update_where(self, entity, where, values):
        self.calls.append("update_where")
        return super().update_where(entity, where, values)


@pytest.fixture
def emitter():
    ticks = itertools.count(1)
    return NotificationEmitter(MemoryStore(), clock=lambda: f"2024-05-01T10:00:{next(ticks):02d}")


def test_emit_starts_unread(emitter):
    n = emitter.emit("order", "Order #1 created for Budi", 1)
    assert n.id == 1
    assert n.read is False
    assert n.order_id == 1


def test_lists_newest_first(emitter):
    emitter.emit("order", "first")
    emitter.emit("order", "second")
    assert [n.message for n in emitter.list_all()] == ["second", "first"]


def test_list_unread_excludes_read(emitter):
    first = emitter.emit("order", "first")
    emitter.emit("order", "second")
    emitter.mark_read(first.id)

    assert [n.message for n in emitter.list_unread()] == ["second"]
    assert len(emitter.list_all()) == 2


def test_lists_are_capped(emitter):
    for i in range(5):
        emitter.emit("order", f"n{i}")
    assert len(emitter.list_unread(limit=3)) == 3
    assert len(emitter.list_all(limit=2)) == 2


def test_mark_read_twice_is_idempotent(emitter):
    n = emitter.emit("order", "hello")
    assert emitter.mark_read(n.id).read is True
    assert emitter.mark_read(n.id).read is True


def test_mark_read_unknown_id(emitter):
    with pytest.raises(NotFoundError):
        emitter.mark_read(123)


def test_mark_all_read(emitter):
    for i in range(3):
        emitter.emit("order", f"n{i}")
    emitter.mark_read(1)

    assert emitter.mark_all_read() == 2
    assert emitter.list_unread() == ()
    assert emitter.mark_all_read() == 0


def test_mark_all_read_is_one_store_operation():
    store = CountingStore()
    emitter = NotificationEmitter(store, clock=lambda: "2024-05-01T10:00:00")
    for i in range(5):
        emitter.emit("order", f"n{i}")

    assert emitter.mark_all_read() == 5
    assert store.calls == ["update_where"]
