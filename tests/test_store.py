"""Tests for core/store.py — the client-side habit snapshot."""

import asyncio

from conftest import FakeClient, make_week
from core.errors import ErrorKind, HabitServiceError
from core.store import (
    ADD_FAILED,
    EDIT_FAILED,
    LOAD_FAILED,
    REMOVE_FAILED,
    UPDATE_FAILED,
    HabitStore,
)


def _loaded(client):
    store = HabitStore(client)
    asyncio.run(store.load())
    client.calls.clear()
    return store


def test_load(fake_client):
    store = HabitStore(fake_client)
    seen = []
    store.subscribe(seen.append)
    assert asyncio.run(store.load()) is True
    assert list(store.state.data.habits) == ["A", "B", "C", "D"]
    assert store.state.loading is False
    assert store.state.error is None
    assert seen[0].loading is True
    assert seen[-1].loading is False


def test_load_fails_twice(fake_client):
    fake_client.fail["fetch"] = 2
    store = HabitStore(fake_client)
    assert asyncio.run(store.load()) is False
    assert asyncio.run(store.load()) is False
    assert fake_client.count("fetch") == 2
    assert store.state.data is None
    assert store.state.load_failed is True
    assert store.state.error == LOAD_FAILED
    assert store.state.loading is False


def test_retry_after_failed_load(fake_client):
    fake_client.fail["fetch"] = 1
    store = HabitStore(fake_client)
    asyncio.run(store.load())
    asyncio.run(store.load())
    assert store.state.load_failed is False
    assert store.state.error is None
    assert "A" in store.state.data.habits


def test_toggle_reloads(fake_client):
    store = _loaded(fake_client)
    assert asyncio.run(store.toggle("B")) is True
    assert fake_client.calls == [("toggle", "B"), ("fetch",)]
    assert store.state.data.habits["B"].completed is True
    assert [h.name for h in store.ordered()] == ["A", "C", "D", "B"]


def test_mutation_failure_keeps_data_and_skips_reload(fake_client):
    store = _loaded(fake_client)
    fake_client.fail["toggle"] = 1
    assert asyncio.run(store.toggle("B")) is False
    assert fake_client.count("fetch") == 0
    assert store.state.error == UPDATE_FAILED
    assert store.state.data.habits["B"].completed is False

    fake_client.fail["remove"] = 1
    asyncio.run(store.remove("A"))
    assert store.state.error == REMOVE_FAILED
    assert "A" in store.state.data.habits


def test_error_cleared_by_next_load(fake_client):
    store = _loaded(fake_client)
    fake_client.fail["add"] = 1
    asyncio.run(store.add("E"))
    assert store.state.error == ADD_FAILED
    asyncio.run(store.add("E"))
    assert store.state.error is None
    assert "E" in store.state.data.habits


def test_add_blank_makes_no_call(fake_client):
    store = _loaded(fake_client)
    assert asyncio.run(store.add("   ")) is False
    assert fake_client.calls == []


def test_add_trims(fake_client):
    store = _loaded(fake_client)
    asyncio.run(store.add("  E  "))
    assert fake_client.calls[0] == ("add", "E")


def test_rename_same_name_makes_no_call(fake_client):
    store = _loaded(fake_client)
    assert asyncio.run(store.rename("A", "A")) is False
    assert asyncio.run(store.rename("A", "  ")) is False
    assert fake_client.calls == []


def test_rename_adds_then_removes(fake_client):
    store = _loaded(fake_client)
    assert asyncio.run(store.rename("A", "Z")) is True
    assert fake_client.calls == [("add", "Z"), ("remove", "A"), ("fetch",)]
    assert "Z" in store.state.data.habits
    assert "A" not in store.state.data.habits


def test_rename_collision_refused(fake_client):
    store = _loaded(fake_client)
    assert asyncio.run(store.rename("A", "B")) is False
    assert fake_client.calls == []
    assert store.state.error == EDIT_FAILED


def test_rename_add_failure_skips_remove(fake_client):
    store = _loaded(fake_client)
    fake_client.fail["add"] = 1
    assert asyncio.run(store.rename("A", "Z")) is False
    assert fake_client.calls == [("add", "Z")]
    assert store.state.error == EDIT_FAILED
    assert "A" in store.state.data.habits


def test_rename_remove_retried_once(fake_client):
    store = _loaded(fake_client)
    fake_client.fail["remove"] = 1
    assert asyncio.run(store.rename("A", "Z")) is True
    assert fake_client.count("add") == 1
    assert fake_client.count("remove") == 2
    assert store.state.error is None


def test_rename_remove_keeps_failing(fake_client):
    store = _loaded(fake_client)
    fake_client.fail["remove"] = -1
    assert asyncio.run(store.rename("A", "Z")) is False
    assert fake_client.count("add") == 1
    assert fake_client.count("remove") == 2
    assert store.state.error == EDIT_FAILED
    # both names are visible after the reload
    assert {"A", "Z"} <= set(store.state.data.habits)


def test_atomic_rename(fake_client):
    store = HabitStore(fake_client, atomic_rename=True)
    asyncio.run(store.load())
    fake_client.calls.clear()
    assert asyncio.run(store.rename("A", "Z")) is True
    assert fake_client.calls == [("rename", "A", "Z"), ("fetch",)]


class NoRenameClient(FakeClient):
    @property
    def rename(self):
        raise AttributeError("rename")


def test_atomic_rename_failure_sets_error():
    client = NoRenameClient(make_week(("A", False)))
    store = HabitStore(client, atomic_rename=True)
    asyncio.run(store.load())
    assert asyncio.run(store.rename("A", "B")) is False
    assert store.state.error == EDIT_FAILED
    assert "A" in store.state.data.habits


class GatedClient(FakeClient):
    """Fetches block until their gate is set, each returning its own snapshot."""

    def __init__(self, responses):
        super().__init__()
        self.responses = list(responses)

    async def fetch_current_week(self):
        gate, weekly = self.responses.pop(0)
        await gate.wait()
        if isinstance(weekly, Exception):
            raise weekly
        return weekly


def test_stale_load_is_dropped():
    async def scenario():
        old_gate, new_gate = asyncio.Event(), asyncio.Event()
        client = GatedClient([
            (old_gate, make_week(("Old", False))),
            (new_gate, make_week(("New", False))),
        ])
        store = HabitStore(client)
        first = asyncio.create_task(store.load())
        await asyncio.sleep(0)
        second = asyncio.create_task(store.load())
        await asyncio.sleep(0)
        new_gate.set()
        assert await second is True
        assert store.state.loading is True
        old_gate.set()
        assert await first is False
        return store

    store = asyncio.run(scenario())
    assert list(store.state.data.habits) == ["New"]
    assert store.state.loading is False


def test_stale_failed_load_clears_loading():
    async def scenario():
        old_gate, new_gate = asyncio.Event(), asyncio.Event()
        client = GatedClient([
            (old_gate, HabitServiceError("timeout", ErrorKind.NETWORK)),
            (new_gate, make_week(("New", False))),
        ])
        store = HabitStore(client)
        first = asyncio.create_task(store.load())
        await asyncio.sleep(0)
        second = asyncio.create_task(store.load())
        await asyncio.sleep(0)
        new_gate.set()
        assert await second is True
        old_gate.set()
        assert await first is False
        return store

    store = asyncio.run(scenario())
    assert store.state.loading is False
    assert store.state.load_failed is False
    assert store.state.error is None
    assert list(store.state.data.habits) == ["New"]


def test_close_drops_inflight_response():
    seen = []

    async def scenario():
        gate = asyncio.Event()
        store = HabitStore(GatedClient([(gate, make_week(("A", False)))]))
        store.subscribe(seen.append)
        task = asyncio.create_task(store.load())
        await asyncio.sleep(0)
        store.close()
        gate.set()
        assert await task is False
        return store

    store = asyncio.run(scenario())
    assert store.alive is False
    assert store.state.data is None
    assert len(seen) == 1


def test_unsubscribe(fake_client):
    store = HabitStore(fake_client)
    seen = []
    unsubscribe = store.subscribe(seen.append)
    unsubscribe()
    unsubscribe()
    asyncio.run(store.load())
    assert seen == []
