"""Tests for snapshot persistence and the session backends."""

from __future__ import annotations

import logging

import pytest
import streamlit as st

from config import SessionBackend
from constants.keys import StateKeys
from state.actor_store import (
    InMemorySessionStore,
    SessionActorStore,
    StreamlitSessionStore,
    make_session_store,
)
from state.snapshot import ActorSnapshot, FlowContext


def _snapshot(value: str = "start", **data: object) -> ActorSnapshot:
    return ActorSnapshot(value=value, context=FlowContext(routes={"start": "routes/protected/request"}, data=data))


def test_get_returns_none_without_container(session: dict[str, object]) -> None:
    store = SessionActorStore()

    assert store.get(session, "tab") is None
    assert store.tab_ids(session) == ()


def test_set_then_get_reads_own_write(session: dict[str, object]) -> None:
    store = SessionActorStore()
    store.set(session, "tab", _snapshot("review", name="Ada"))

    loaded = store.get(session, "tab")

    assert loaded == _snapshot("review", name="Ada")
    assert session["in_person_flow"]["tab"]["value"] == "review"  # type: ignore[index]
    assert store.tab_ids(session) == ("tab",)


def test_loaded_snapshot_is_a_copy(session: dict[str, object]) -> None:
    store = SessionActorStore()
    store.set(session, "tab", _snapshot())

    loaded = store.get(session, "tab")
    assert loaded is not None
    loaded.context.data["mutated"] = True

    assert store.get(session, "tab").context.data == {}  # type: ignore[union-attr]


def test_tabs_are_independent(session: dict[str, object]) -> None:
    store = SessionActorStore()
    store.set(session, "one", _snapshot("start"))
    store.set(session, "two", _snapshot("review"))

    assert store.get(session, "one").value == "start"  # type: ignore[union-attr]
    assert store.get(session, "two").value == "review"  # type: ignore[union-attr]


def test_sessions_are_isolated(session_store: InMemorySessionStore) -> None:
    store = SessionActorStore()
    first = session_store.session("a")
    second = session_store.session("b")
    store.set(first, "tab", _snapshot("review"))

    assert store.get(second, "tab") is None
    assert session_store.session("a") is first
    assert len(session_store) == 2


def test_invalid_entries_are_treated_as_missing(
    session: dict[str, object], caplog: pytest.LogCaptureFixture
) -> None:
    store = SessionActorStore()
    session["in_person_flow"] = {"bad": {"value": ""}, "odd": 42}

    with caplog.at_level(logging.WARNING):
        assert store.get(session, "bad") is None
        assert store.get(session, "odd") is None

    assert "Discarding invalid snapshot" in caplog.text
    assert "Discarding non-mapping snapshot" in caplog.text


def test_malformed_container_is_replaced_on_write(session: dict[str, object]) -> None:
    store = SessionActorStore()
    session["in_person_flow"] = "garbage"

    assert store.get(session, "tab") is None
    store.set(session, "tab", _snapshot())

    assert store.get(session, "tab") is not None


def test_custom_session_key(session: dict[str, object]) -> None:
    store = SessionActorStore("other_flow")
    store.set(session, "tab", _snapshot())

    assert "other_flow" in session
    assert "in_person_flow" not in session


def test_in_memory_store_helpers(session_store: InMemorySessionStore) -> None:
    session_store.set("s1", "key", "value")

    assert session_store.get("s1", "key") == "value"
    assert session_store.get("missing", "key") is None
    assert session_store.session("s1")[StateKeys.SESSION_ID] == "s1"
    assert list(session_store) == ["s1"]

    session_store.drop("s1")
    assert len(session_store) == 0

    generated = session_store.session()
    assert generated[StateKeys.SESSION_ID]
    session_store.clear()
    assert len(session_store) == 0


def test_streamlit_store_uses_session_state() -> None:
    container = StreamlitSessionStore().session("browser-1")
    SessionActorStore().set(container, "tab", _snapshot())

    assert st.session_state[StateKeys.SESSION_ID] == "browser-1"
    assert "tab" in st.session_state["in_person_flow"]


def test_make_session_store() -> None:
    assert isinstance(make_session_store("memory"), InMemorySessionStore)
    assert isinstance(make_session_store(SessionBackend.STREAMLIT), StreamlitSessionStore)
