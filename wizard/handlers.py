"""Request handling for wizard pages, independent of any web framework.

Each page of a flow answers two requests: a GET that makes sure an actor
exists for the tab, and a POST that dispatches the submitted ``action`` and
redirects to the page of the resulting state. The caller turns the returned
:class:`FlowResponse` into an HTTP response (or, in the Streamlit app, into a
query-parameter update).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Mapping
from urllib.parse import parse_qsl, urlsplit

import config
from constants.keys import FormKeys
from core.errors import AppError, ErrorCodes
from state.actor_store import SessionContainer
from utils.i18n import Language, get_language
from wizard.engine import Actor, WizardEngine
from wizard.flow import parse_event

logger = logging.getLogger(__name__)

_engine: WizardEngine | None = None


def get_engine() -> WizardEngine:
    """Return the process-wide engine driving the in-person flow."""

    global _engine
    if _engine is None:
        _engine = WizardEngine()
    return _engine


@dataclass(frozen=True)
class FlowRequest:
    """The parts of an inbound request the flow handlers read."""

    path: str
    query: Mapping[str, str] = field(default_factory=dict)
    method: str = "GET"
    form: Mapping[str, Any] = field(default_factory=dict)

    @classmethod
    def from_url(cls, url: str, *, method: str = "GET", form: Mapping[str, Any] | None = None) -> "FlowRequest":
        parts = urlsplit(url)
        return cls(
            path=parts.path,
            query=dict(parse_qsl(parts.query, keep_blank_values=True)),
            method=method.upper(),
            form=dict(form or {}),
        )

    @property
    def tab_id(self) -> str | None:
        value = self.query.get(config.TAB_ID_PARAM)
        return value.strip() if value and value.strip() else None

    @property
    def is_post(self) -> bool:
        return self.method.upper() == "POST"


@dataclass(frozen=True)
class FlowResponse:
    """Outcome of a handler: a redirect, a page payload or an error body."""

    status: int
    location: str | None = None
    body: Mapping[str, Any] | None = None

    @property
    def is_redirect(self) -> bool:
        return self.location is not None and 300 <= self.status < 400


def error_response(error: AppError) -> FlowResponse:
    """Convert ``error`` into a JSON body carrying its code and correlation id."""

    if error.is_client_error:
        logger.warning("Rejected flow request: %r", error)
    else:
        logger.error("Flow request failed: %r", error)
    return FlowResponse(status=error.status_code, body=error.to_payload())


def _missing_tab_response() -> FlowResponse:
    logger.warning("Could not find tabId in request; returning 400 response.")
    return error_response(
        AppError("The tabId could not be found in the request", ErrorCodes.MISSING_TAB_ID, status_code=400)
    )


def _request_language(request: FlowRequest) -> Language:
    language = get_language(request.path)
    if language is None:
        raise AppError(
            f"No language found in request path '{request.path}'",
            ErrorCodes.NO_LANGUAGE_FOUND,
            status_code=400,
        )
    return language


def _page_body(actor: Actor) -> dict[str, Any]:
    return {
        "tabId": actor.tab_id,
        "state": actor.value,
        "step": actor.flow.step_number(actor.value),
        "data": dict(actor.data),
    }


def _dispatch_and_redirect(
    engine: WizardEngine,
    actor: Actor,
    request: FlowRequest,
    language: Language,
) -> FlowResponse:
    form = dict(request.form)
    action = form.pop(FormKeys.ACTION, None)
    engine.dispatch(actor, action, form)
    search = {key: value for key, value in request.query.items() if key != config.RESTART_PARAM}
    location = engine.route_for(actor, language, search=search)
    return FlowResponse(status=config.REDIRECT_STATUS, location=location)


def _restart_response(engine: WizardEngine, language: Language, tab_id: str) -> FlowResponse:
    logger.info("%s: no flow snapshot for tab '%s'; redirecting to the flow start", ErrorCodes.MISSING_SNAPSHOT, tab_id)
    search = {config.TAB_ID_PARAM: tab_id, config.RESTART_PARAM: "true"}
    return FlowResponse(status=302, location=engine.start_url(language, search))


def start_flow(
    session: SessionContainer,
    request: FlowRequest,
    engine: WizardEngine | None = None,
) -> FlowResponse:
    """Handle the flow's start page.

    GET renders the page; POST creates a fresh actor for the tab (replacing
    any previous one) and dispatches the posted action.
    """

    engine = engine or get_engine()
    tab_id = request.tab_id
    if tab_id is None:
        return _missing_tab_response()
    try:
        language = _request_language(request)
        if not request.is_post:
            return FlowResponse(status=200, body={"tabId": tab_id, "state": engine.flow.initial})
        # Reject unknown actions before replacing the tab's actor.
        parse_event(request.form.get(FormKeys.ACTION))
        with engine.tab_lock(session, tab_id):
            actor = engine.create(session, tab_id)
            return _dispatch_and_redirect(engine, actor, request, language)
    except AppError as exc:
        return error_response(exc)


def handle_step(
    session: SessionContainer,
    request: FlowRequest,
    state: str,
    engine: WizardEngine | None = None,
) -> FlowResponse:
    """Handle a request for the page that renders ``state``.

    The stored actor is resumed at ``state`` (the page the user is on) and
    a missing snapshot sends the user back to the start with a restart
    marker instead of an error page. Resuming and dispatching happen under
    one tab lock, so a double submit from the same page runs as two whole
    requests one after the other.
    """

    engine = engine or get_engine()
    tab_id = request.tab_id
    if tab_id is None:
        return _missing_tab_response()
    try:
        language = _request_language(request)
        if request.is_post:
            parse_event(request.form.get(FormKeys.ACTION))
        with engine.tab_lock(session, tab_id):
            actor = engine.load(session, tab_id, state)
            if actor is None:
                return _restart_response(engine, language, tab_id)
            if not request.is_post:
                return FlowResponse(status=200, body=_page_body(actor))
            return _dispatch_and_redirect(engine, actor, request, language)
    except AppError as exc:
        return error_response(exc)


__all__ = [
    "FlowRequest",
    "FlowResponse",
    "error_response",
    "get_engine",
    "handle_step",
    "start_flow",
]
