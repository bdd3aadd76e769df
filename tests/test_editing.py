"""Tests for core/editing.py — inline rename and the add form."""

import asyncio

import pytest

from core.editing import COLLAPSED, VIEWING, AddItemForm, Editing, Expanded, InlineEditor
from core.store import ADD_FAILED, HabitStore


@pytest.fixture
def store(fake_client):
    s = HabitStore(fake_client)
    asyncio.run(s.load())
    fake_client.calls.clear()
    return s


def test_activate_and_change(store):
    editor = InlineEditor(store)
    assert editor.activate("A") is True
    assert editor.state == Editing("A", "A")
    editor.change("Alpha")
    assert editor.state == Editing("A", "Alpha")
    assert editor.is_editing("A")
    assert editor.activate("B") is False
    assert editor.editing == "A"


def test_change_ignored_when_viewing(store):
    editor = InlineEditor(store)
    editor.change("X")
    assert editor.state == VIEWING


def test_commit_renames(store, fake_client):
    editor = InlineEditor(store)
    editor.activate("A")
    editor.change(" Alpha ")
    assert asyncio.run(editor.commit()) is True
    assert editor.state == VIEWING
    assert fake_client.calls[:2] == [("add", "Alpha"), ("remove", "A")]


def test_enter_and_blur_commit_once(store, fake_client):
    editor = InlineEditor(store)
    editor.activate("A")
    editor.change("Alpha")

    async def both():
        return await asyncio.gather(editor.commit(), editor.commit())

    assert sorted(asyncio.run(both())) == [False, True]
    assert fake_client.count("add") == 1
    assert fake_client.count("remove") == 1


def test_commit_unchanged_or_blank_makes_no_call(store, fake_client):
    editor = InlineEditor(store)
    editor.activate("A")
    assert asyncio.run(editor.commit()) is False
    editor.activate("A")
    editor.change("   ")
    assert asyncio.run(editor.commit()) is False
    assert fake_client.calls == []


def test_cancel(store, fake_client):
    editor = InlineEditor(store)
    editor.activate("A")
    editor.change("Alpha")
    editor.cancel()
    assert asyncio.run(editor.commit()) is False
    assert fake_client.calls == []


def test_form_open_and_submit(store, fake_client):
    form = AddItemForm(store)
    assert form.can_submit is False
    form.open()
    assert form.state == Expanded("")
    form.change("  Stretch ")
    assert form.can_submit is True
    assert asyncio.run(form.submit()) is True
    assert fake_client.calls[0] == ("add", "Stretch")
    assert form.state == COLLAPSED
    assert "Stretch" in store.state.data.habits


def test_form_collapses_on_failure(store, fake_client):
    fake_client.fail["add"] = 1
    form = AddItemForm(store)
    form.open()
    form.change("Stretch")
    assert asyncio.run(form.submit()) is False
    assert form.state == COLLAPSED
    assert store.state.error == ADD_FAILED


def test_form_double_submit(store, fake_client):
    form = AddItemForm(store)
    form.open()
    form.change("Stretch")

    async def both():
        return await asyncio.gather(form.submit(), form.submit())

    asyncio.run(both())
    assert fake_client.count("add") == 1


def test_form_blank_submit_makes_no_call(store, fake_client):
    form = AddItemForm(store)
    assert asyncio.run(form.submit()) is False
    form.open()
    form.change("  ")
    assert asyncio.run(form.submit()) is False
    assert fake_client.calls == []
    assert form.expanded


def test_form_blur(store):
    form = AddItemForm(store)
    form.open()
    form.blur()
    assert form.state == COLLAPSED
    form.open()
    form.change("Draft")
    form.blur()
    assert form.state == Expanded("Draft")
    form.cancel()
    assert form.draft == ""
