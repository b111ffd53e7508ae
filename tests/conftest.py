from pathlib import Path
import sys
from dataclasses import dataclass

import streamlit as st

import pytest


ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

import config  # noqa: E402
from state.actor_store import InMemorySessionStore  # noqa: E402
from wizard import handlers  # noqa: E402
from wizard.engine import WizardEngine  # noqa: E402


@dataclass
class _SessionDict(dict[str, object]):
    """Lightweight replacement for ``st.session_state`` during tests."""

    def clear(self) -> None:  # type: ignore[override]
        super().clear()


@pytest.fixture(autouse=True)
def _stub_streamlit_session_state(monkeypatch: pytest.MonkeyPatch) -> None:
    """Replace Streamlit's runtime-bound session state with a plain dictionary."""

    session_state = _SessionDict()
    monkeypatch.setattr(st, "session_state", session_state, raising=False)
    yield


@pytest.fixture(autouse=True)
def _default_flow_config(monkeypatch: pytest.MonkeyPatch) -> None:
    """Pin the flow settings so a developer ``.env`` cannot leak into tests."""

    monkeypatch.setattr(config, "FLOW_SESSION_KEY", "in_person_flow")
    monkeypatch.setattr(config, "TAB_ID_PARAM", "tid")
    monkeypatch.setattr(config, "RESTART_PARAM", "restarted")
    monkeypatch.setattr(config, "REDIRECT_STATUS", 303)
    monkeypatch.setattr(config, "SERIALIZE_FLOW_DISPATCH", True)
    monkeypatch.setattr(handlers, "_engine", None)
    yield


@pytest.fixture
def session_store() -> InMemorySessionStore:
    return InMemorySessionStore()


@pytest.fixture
def session(session_store: InMemorySessionStore) -> dict[str, object]:
    return session_store.session("session-1")  # type: ignore[return-value]


@pytest.fixture
def engine() -> WizardEngine:
    return WizardEngine()
