from __future__ import annotations

import logging
from typing import Any

from state.actor_store import InMemorySessionStore
from utils.logging_context import configure_logging, current_context, log_context, set_session_id, set_tab_id
from wizard.engine import WizardEngine


def test_dispatch_logging_includes_context(caplog: Any) -> None:
    configure_logging()
    caplog.set_level(logging.DEBUG, logger="wizard.engine")
    session = InMemorySessionStore().session("session-123")
    engine = WizardEngine()

    actor = engine.load_or_create(session, "tab-9")
    engine.dispatch(actor, "next")

    records = [record for record in caplog.records if "moved in-person flow" in record.message]
    assert records, "Expected a transition log entry"
    record = records[0]
    assert record.session_id == "session-123"
    assert record.tab_id == "tab-9"
    assert record.flow_state == "privacy-statement"


def test_log_context_restores_previous_values() -> None:
    set_session_id("outer")
    set_tab_id(None)

    with log_context(tab_id="inner-tab", flow_state="review"):
        assert current_context() == {"session_id": "outer", "tab_id": "inner-tab", "flow_state": "review"}

    assert current_context()["tab_id"] == "-"
    assert current_context()["flow_state"] == "-"
