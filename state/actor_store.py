"""Per-session, per-tab storage of flow snapshots.

The session container itself belongs to the surrounding application; this
module only needs ``get``/``set`` semantics with read-your-writes inside one
session. Two backends are provided: a per-process map keyed by session id,
and ``st.session_state`` for the Streamlit front end.
"""

from __future__ import annotations

import logging
import uuid
from threading import RLock
from typing import Any, Iterator, MutableMapping, Protocol

from pydantic import ValidationError
import streamlit as st

import config
from config import SessionBackend
from constants.keys import StateKeys
from state.snapshot import ActorSnapshot, FlowContext

logger = logging.getLogger(__name__)

SessionContainer = MutableMapping[str, Any]


class ActorStore(Protocol):
    """Contract consumed by the wizard engine."""

    def get(self, session: SessionContainer, tab_id: str) -> ActorSnapshot | None: ...

    def set(self, session: SessionContainer, tab_id: str, snapshot: ActorSnapshot) -> None: ...


class SessionActorStore:
    """Store snapshots as JSON-ready dicts under ``session[session_key][tab_id]``."""

    def __init__(self, session_key: str | None = None) -> None:
        self.session_key = session_key or config.FLOW_SESSION_KEY

    def _container(self, session: SessionContainer) -> MutableMapping[str, Any] | None:
        container = session.get(self.session_key)
        if isinstance(container, MutableMapping):
            return container
        if container is not None:
            logger.warning("Ignoring malformed flow container under '%s'", self.session_key)
        return None

    def get(self, session: SessionContainer, tab_id: str) -> ActorSnapshot | None:
        container = self._container(session)
        if container is None:
            return None
        raw = container.get(tab_id)
        if raw is None:
            return None
        if isinstance(raw, ActorSnapshot):
            return raw.model_copy(deep=True)
        if not isinstance(raw, MutableMapping):
            logger.warning("Discarding non-mapping snapshot for tab '%s'", tab_id)
            return None
        try:
            return ActorSnapshot.from_session(raw)
        except ValidationError as exc:
            logger.warning("Discarding invalid snapshot for tab '%s': %s", tab_id, exc)
            return None

    def set(self, session: SessionContainer, tab_id: str, snapshot: ActorSnapshot) -> None:
        container = self._container(session)
        if container is None:
            container = {}
        container[tab_id] = snapshot.to_session()
        # Reassign so backends that track top-level writes observe the change.
        session[self.session_key] = container

    def tab_ids(self, session: SessionContainer) -> tuple[str, ...]:
        """Return the tab ids with a stored snapshot in ``session``."""

        container = self._container(session)
        return tuple(container) if container else ()


class SessionStore(Protocol):
    """Supplies the session container for a session id."""

    def session(self, session_id: str | None = None) -> SessionContainer: ...


class InMemorySessionStore:
    """Per-process session map; each session id gets its own container."""

    def __init__(self) -> None:
        self._sessions: dict[str, dict[str, Any]] = {}
        self._lock = RLock()

    def session(self, session_id: str | None = None) -> SessionContainer:
        key = session_id or uuid.uuid4().hex
        with self._lock:
            container = self._sessions.get(key)
            if container is None:
                container = {StateKeys.SESSION_ID: key}
                self._sessions[key] = container
                logger.debug("Created in-memory session '%s'", key)
            return container

    def get(self, session_id: str, key: str) -> Any | None:
        with self._lock:
            return self._sessions.get(session_id, {}).get(key)

    def set(self, session_id: str, key: str, value: Any) -> None:
        with self._lock:
            self.session(session_id)[key] = value

    def drop(self, session_id: str) -> None:
        """Forget ``session_id`` (session expiry)."""

        with self._lock:
            self._sessions.pop(session_id, None)

    def clear(self) -> None:
        with self._lock:
            self._sessions.clear()

    def __iter__(self) -> Iterator[str]:
        with self._lock:
            return iter(tuple(self._sessions))

    def __len__(self) -> int:
        return len(self._sessions)


class StreamlitSessionStore:
    """Use ``st.session_state`` of the current browser session as the container."""

    def session(self, session_id: str | None = None) -> SessionContainer:
        session_state = st.session_state
        if StateKeys.SESSION_ID not in session_state:
            session_state[StateKeys.SESSION_ID] = session_id or uuid.uuid4().hex
        return session_state  # type: ignore[return-value]


def make_session_store(backend: SessionBackend | str | None = None) -> SessionStore:
    """Return the session backend configured via ``SESSION_BACKEND``."""

    selected = SessionBackend(backend or config.SESSION_BACKEND)
    if selected is SessionBackend.STREAMLIT:
        return StreamlitSessionStore()
    return InMemorySessionStore()


__all__ = [
    "ActorSnapshot",
    "ActorStore",
    "FlowContext",
    "InMemorySessionStore",
    "SessionActorStore",
    "SessionContainer",
    "SessionStore",
    "StreamlitSessionStore",
    "make_session_store",
]
