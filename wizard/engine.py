"""Session-persisted flow actors.

The engine loads (or creates) the actor of one ``(session, tab_id)`` pair,
applies events through the flow's pure transition function and writes the
resulting snapshot back before returning. Nothing is deferred: once
``dispatch`` returns, the new state is in the session.
"""

from __future__ import annotations

import logging
import secrets
from contextlib import contextmanager
from dataclasses import dataclass
from threading import Lock, RLock
from typing import Any, Iterator, Mapping
from weakref import WeakValueDictionary

from opentelemetry import trace

import config
from constants.keys import StateKeys
from core.errors import AppError, ErrorCodes
from routing.resolver import RouteParams, SearchParams, resolve_url
from state.actor_store import ActorStore, SessionActorStore, SessionContainer
from state.snapshot import ActorSnapshot, FlowContext
from utils.i18n import Language, coerce_language
from utils.logging_context import log_context
from wizard.flow import IN_PERSON_FLOW, FlowDefinition, FlowEvent, parse_event

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)


@dataclass
class Actor:
    """Runtime instance of a flow for one ``(session, tab_id)`` pair."""

    session: SessionContainer
    tab_id: str
    flow: FlowDefinition
    snapshot: ActorSnapshot

    @property
    def value(self) -> str:
        return self.snapshot.value

    @property
    def context(self) -> FlowContext:
        return self.snapshot.context

    @property
    def data(self) -> dict[str, Any]:
        return self.snapshot.context.data


def session_identity(session: SessionContainer) -> str:
    """Return a stable key for ``session`` (its session id when it has one)."""

    session_id = session.get(StateKeys.SESSION_ID)
    if isinstance(session_id, str) and session_id:
        return session_id
    return f"anon-{id(session):x}"


class _TabLocks:
    """Re-entrant locks keyed by ``(session, tab_id)``; unused locks are collected."""

    def __init__(self) -> None:
        self._locks: WeakValueDictionary[tuple[str, str], Any] = WeakValueDictionary()
        self._guard = Lock()

    def get(self, key: tuple[str, str]) -> Any:
        with self._guard:
            lock = self._locks.get(key)
            if lock is None:
                lock = RLock()
                self._locks[key] = lock
            return lock


class WizardEngine:
    """Orchestrate load/create, transition, persistence and URL resolution.

    Args:
        flow: Flow definition driven by this engine.
        store: Snapshot storage; defaults to :class:`SessionActorStore`.
        serialize: Serialise dispatches per ``(session, tab_id)``; defaults to
            ``config.SERIALIZE_FLOW_DISPATCH``. Without it concurrent dispatches
            for the same tab follow last-writer-wins.
    """

    def __init__(
        self,
        flow: FlowDefinition = IN_PERSON_FLOW,
        store: ActorStore | None = None,
        *,
        serialize: bool | None = None,
    ) -> None:
        self.flow = flow
        self.store: ActorStore = store or SessionActorStore()
        self.serialize = config.SERIALIZE_FLOW_DISPATCH if serialize is None else serialize
        self._locks = _TabLocks()

    @staticmethod
    def new_tab_id() -> str:
        """Mint an opaque tab id for a new browser tab."""

        return secrets.token_urlsafe(9)

    @contextmanager
    def tab_lock(self, session: SessionContainer, tab_id: str) -> Iterator[None]:
        """Hold the lock of ``(session, tab_id)`` when serialisation is enabled."""

        if not self.serialize:
            yield
            return
        with self._locks.get((session_identity(session), tab_id)):
            yield

    @staticmethod
    def _require_tab_id(tab_id: str | None) -> str:
        if not tab_id or not str(tab_id).strip():
            raise AppError("The tabId could not be found in the request", ErrorCodes.MISSING_TAB_ID, status_code=400)
        return str(tab_id).strip()

    def _persist(self, actor: Actor) -> None:
        self.store.set(actor.session, actor.tab_id, actor.snapshot)

    def _read(self, session: SessionContainer, tab_id: str) -> ActorSnapshot | None:
        """Return the stored snapshot, or ``None`` when it does not fit this flow.

        The route map is always rebuilt from the flow definition so a snapshot
        written by an older deployment cannot point at retired pages.
        """

        snapshot = self.store.get(session, tab_id)
        if snapshot is None:
            return None
        if not self.flow.is_state(snapshot.value):
            with log_context(session_id=session_identity(session), tab_id=tab_id):
                logger.warning(
                    "%s: discarding snapshot in unknown state '%s' of %s flow",
                    ErrorCodes.MISSING_SNAPSHOT,
                    snapshot.value,
                    self.flow.flow_id,
                )
            return None
        snapshot.context.routes = self.flow.initial_snapshot().context.routes
        return snapshot

    def _resume_at(self, snapshot: ActorSnapshot, state: str) -> ActorSnapshot:
        self.flow.transitions(state)
        resumed = snapshot.model_copy(deep=True)
        resumed.value = state
        return resumed

    def create(self, session: SessionContainer, tab_id: str | None) -> Actor:
        """Start a fresh actor in the initial state and persist it immediately.

        An existing snapshot for ``tab_id`` is replaced.
        """

        tab = self._require_tab_id(tab_id)
        actor = Actor(session=session, tab_id=tab, flow=self.flow, snapshot=self.flow.initial_snapshot())
        with self.tab_lock(session, tab):
            self._persist(actor)
        with log_context(session_id=session_identity(session), tab_id=tab, flow_state=actor.value):
            logger.debug("Created new %s flow actor", self.flow.flow_id)
        return actor

    def load(self, session: SessionContainer, tab_id: str | None, state: str | None = None) -> Actor | None:
        """Rehydrate the stored actor, or return ``None`` when there is none.

        Loading never applies a transition. When ``state`` is given the actor
        is resumed at that declared step (context data is kept) and the
        resumed snapshot is persisted.
        """

        tab = self._require_tab_id(tab_id)
        with self.tab_lock(session, tab):
            snapshot = self._read(session, tab)
            if snapshot is None:
                with log_context(session_id=session_identity(session), tab_id=tab):
                    logger.debug("No %s flow snapshot found in session", self.flow.flow_id)
                return None
            actor = Actor(session=session, tab_id=tab, flow=self.flow, snapshot=snapshot)
            if state is not None and state != snapshot.value:
                actor.snapshot = self._resume_at(snapshot, state)
                self._persist(actor)
        with log_context(session_id=session_identity(session), tab_id=tab, flow_state=actor.value):
            logger.debug("Loaded %s flow actor", self.flow.flow_id)
        return actor

    def load_or_create(self, session: SessionContainer, tab_id: str | None, state: str | None = None) -> Actor:
        """Return the stored actor for ``tab_id`` or a new one in the initial state."""

        actor = self.load(session, tab_id, state)
        if actor is not None:
            return actor
        actor = self.create(session, tab_id)
        if state is not None and state != actor.value:
            actor.snapshot = self._resume_at(actor.snapshot, state)
            with self.tab_lock(session, actor.tab_id):
                self._persist(actor)
        return actor

    def dispatch(
        self,
        actor: Actor,
        event: FlowEvent | str,
        data: Mapping[str, Any] | None = None,
    ) -> str:
        """Apply ``event`` to ``actor``, persist the snapshot and return the new state.

        With serialisation enabled the event is applied to the latest stored
        snapshot, so two concurrent submits from the same tab both take effect
        one after the other instead of overwriting each other. Callers that
        load and dispatch in one request hold :meth:`tab_lock` around both.
        """

        parsed = parse_event(event)
        with tracer.start_as_current_span("wizard.dispatch") as span:
            span.set_attribute("flow.id", self.flow.flow_id)
            span.set_attribute("flow.event", parsed.value)
            with self.tab_lock(actor.session, actor.tab_id):
                if self.serialize:
                    latest = self._read(actor.session, actor.tab_id)
                    if latest is not None:
                        actor.snapshot = latest
                previous = actor.value
                actor.snapshot = self.flow.apply(actor.snapshot, parsed, data)
                self._persist(actor)
            span.set_attribute("flow.from_state", previous)
            span.set_attribute("flow.to_state", actor.value)
        with log_context(session_id=session_identity(actor.session), tab_id=actor.tab_id, flow_state=actor.value):
            if previous == actor.value:
                logger.info("Event '%s' left %s flow in state '%s'", parsed, self.flow.flow_id, previous)
            else:
                logger.debug("Event '%s' moved %s flow '%s' -> '%s'", parsed, self.flow.flow_id, previous, actor.value)
        return actor.value

    def route_for(
        self,
        actor: Actor,
        lang: Language | str | None,
        params: RouteParams | None = None,
        search: SearchParams = None,
    ) -> str:
        """Return the localized URL of the actor's current state."""

        language = coerce_language(lang)
        if language is None:
            raise AppError(
                "The current language could not be determined from the request",
                ErrorCodes.MISSING_LANG_PARAM,
            )
        route_file = actor.context.routes.get(actor.value)
        if route_file is None:
            logger.warning("Snapshot has no route for state '%s'; using the flow definition", actor.value)
            route_file = str(self.flow.route_for_state(actor.value))
        return resolve_url(route_file, language, params, search)

    def start_url(self, lang: Language | str, search: SearchParams = None) -> str:
        """Return the localized URL of the flow's initial state."""

        return resolve_url(self.flow.route_for_state(self.flow.initial), lang, None, search)


__all__ = ["Actor", "WizardEngine", "session_identity"]
