# app.py: SIN intake wizard, Streamlit entrypoint driving the in-person flow
from __future__ import annotations

from pathlib import Path
import sys
from typing import Any, Mapping
from urllib.parse import parse_qsl, urlsplit

import streamlit as st

APP_ROOT = Path(__file__).resolve().parent
if str(APP_ROOT) not in sys.path:
    sys.path.insert(0, str(APP_ROOT))

import config  # noqa: E402
from constants.keys import FormKeys, QueryKeys, StateKeys  # noqa: E402
from routing.resolver import alternate_url, match_path  # noqa: E402
from state.actor_store import SessionStore, make_session_store  # noqa: E402
from utils.i18n import LANGUAGE_TOGGLE_LABEL, RESTARTED_NOTICE, Language, coerce_language, get_language, tr  # noqa: E402
from utils.logging_context import configure_logging, set_session_id, set_tab_id  # noqa: E402
from utils.telemetry import setup_tracing  # noqa: E402
from wizard.engine import WizardEngine  # noqa: E402
from wizard.flow import FlowEvent  # noqa: E402
from wizard.handlers import FlowRequest, FlowResponse, get_engine, handle_step, start_flow  # noqa: E402
from wizard.step_registry import get_step  # noqa: E402

APP_VERSION = "0.1.0"

configure_logging(level=config.log_level())
setup_tracing()

st.set_page_config(
    page_title="SIN intake wizard / Assistant de demande de NAS",
    page_icon="🪪",
    layout="centered",
)

BUTTON_LABELS: dict[FlowEvent, tuple[str, str]] = {
    FlowEvent.PREV: ("Previous", "Précédent"),
    FlowEvent.NEXT: ("Next", "Suivant"),
    FlowEvent.CANCEL: ("Cancel", "Annuler"),
}


@st.cache_resource
def _session_store() -> SessionStore:
    """Return the process-wide session backend."""

    return make_session_store()


def _navigate(location: str) -> None:
    """Apply a redirect target as query parameters and rerun the script."""

    parts = urlsplit(location)
    params: dict[str, str] = dict(parse_qsl(parts.query))
    params[QueryKeys.PATH] = parts.path
    language = get_language(parts.path)
    if language is not None:
        params[QueryKeys.LANG] = language.value
    st.query_params.clear()
    st.query_params.update(params)
    st.rerun()


def _render_error(body: Mapping[str, Any] | None) -> None:
    payload = body or {}
    st.error(
        tr(
            f"Something went wrong ({payload.get('errorCode', 'UNC-0000')}). Reference: {payload.get('correlationId', '-')}",
            f"Une erreur s'est produite ({payload.get('errorCode', 'UNC-0000')}). Référence : {payload.get('correlationId', '-')}",
        )
    )
    st.session_state[StateKeys.LAST_ERROR] = dict(payload)


def _handle(response: FlowResponse) -> FlowResponse:
    if response.is_redirect and response.location:
        _navigate(response.location)
    if response.status >= 400:
        _render_error(response.body)
    return response


def _current_tab_id() -> str:
    tab_id = st.query_params.get(config.TAB_ID_PARAM)
    if not tab_id:
        tab_id = WizardEngine.new_tab_id()
        st.query_params[config.TAB_ID_PARAM] = tab_id
    st.session_state[StateKeys.TAB_ID] = tab_id
    return tab_id


def _render_language_toggle(path: str, search: Mapping[str, str]) -> None:
    target = alternate_url(path, search)
    if target and st.button(tr(*LANGUAGE_TOGGLE_LABEL), key="lang_toggle"):
        _navigate(target)


def _render_step(engine: WizardEngine, session: Any, request: FlowRequest, state: str) -> None:
    step = get_step(state)
    if step is not None:
        st.header(tr(*step.panel_header))
        st.caption(tr(*step.panel_intro))
    position = engine.flow.step_number(state)
    if position is not None:
        st.progress(position / len(engine.flow.ordered_states()))

    form_values: dict[str, str] = {}
    with st.form(key=f"step_{state}"):
        for field in step.fields if step else ():
            form_values[field.key] = st.text_input(tr(*field.label), key=f"{state}.{field.key}")
        columns = st.columns(3)
        submitted: FlowEvent | None = None
        for column, event in zip(columns, (FlowEvent.PREV, FlowEvent.CANCEL, FlowEvent.NEXT)):
            if not engine.flow.accepts(state, event):
                continue
            with column:
                label = tr(*BUTTON_LABELS[event]) if state != engine.flow.initial else tr("Start", "Commencer")
                if st.form_submit_button(label, type="primary" if event is FlowEvent.NEXT else "secondary"):
                    submitted = event

    if submitted is None:
        return
    form: dict[str, Any] = {FormKeys.ACTION: submitted.value, **form_values}
    post = FlowRequest(path=request.path, query=request.query, method="POST", form=form)
    if state == engine.flow.initial:
        _handle(start_flow(session, post, engine))
    else:
        _handle(handle_step(session, post, state, engine))


def main() -> None:
    engine = get_engine()
    store = _session_store()
    session = store.session(st.session_state.get(StateKeys.SESSION_ID))
    st.session_state[StateKeys.SESSION_ID] = session.get(StateKeys.SESSION_ID)

    language = coerce_language(st.query_params.get(QueryKeys.LANG)) or Language.EN
    st.session_state[StateKeys.LANG] = language.value
    tab_id = _current_tab_id()
    set_session_id(str(session.get(StateKeys.SESSION_ID)))
    set_tab_id(tab_id)

    path = st.query_params.get(QueryKeys.PATH) or engine.start_url(language)
    match = match_path(path, language)
    state = engine.flow.state_for_route(match.route.file) if match else None
    if state is None:
        _navigate(engine.start_url(language, {config.TAB_ID_PARAM: tab_id}))
        return

    search = {key: value for key, value in st.query_params.items() if key not in (QueryKeys.PATH, QueryKeys.LANG)}
    request = FlowRequest(path=path, query=search)

    _render_language_toggle(path, search)
    if st.query_params.get(config.RESTART_PARAM) == "true":
        st.info(tr(*RESTARTED_NOTICE))

    if state == engine.flow.initial:
        response = _handle(start_flow(session, request, engine))
    else:
        response = _handle(handle_step(session, request, state, engine))
    if response.status == 200:
        _render_step(engine, session, request, state)

    st.caption(f"tid: {tab_id} · v{APP_VERSION}")


main()
