"""Tests for the in-person flow definition and its pure transition function."""

from __future__ import annotations

import pytest

from core.errors import AppError, ErrorCodes
from routing.tree import RouteFile
from state.snapshot import ActorSnapshot
from wizard.flow import IN_PERSON_FLOW, FlowDefinition, FlowEvent, linear_flow, parse_event

EXPECTED_ORDER = (
    "start",
    "privacy-statement",
    "request-details",
    "primary-docs",
    "secondary-docs",
    "current-name",
    "personal-info",
    "birth-details",
    "parent-details",
    "previous-sin",
    "contact-information",
    "review",
)


def test_in_person_flow_order() -> None:
    assert IN_PERSON_FLOW.initial == "start"
    assert IN_PERSON_FLOW.terminal == "review"
    assert IN_PERSON_FLOW.ordered_states() == EXPECTED_ORDER
    assert IN_PERSON_FLOW.reachable_states() == EXPECTED_ORDER
    assert IN_PERSON_FLOW.step_number("request-details") == 3
    assert IN_PERSON_FLOW.step_number("nowhere") is None


def test_every_state_is_routed() -> None:
    for state in EXPECTED_ORDER:
        assert isinstance(IN_PERSON_FLOW.route_for_state(state), RouteFile)
    assert IN_PERSON_FLOW.route_for_state("start") is RouteFile.PROTECTED_REQUEST
    assert IN_PERSON_FLOW.state_for_route(RouteFile.PERSON_CASE_REVIEW) == "review"
    assert IN_PERSON_FLOW.state_for_route(RouteFile.PUBLIC_INDEX) is None


def test_next_and_prev_walk_the_chain() -> None:
    assert IN_PERSON_FLOW.transition("start", "next") == "privacy-statement"
    assert IN_PERSON_FLOW.transition("privacy-statement", FlowEvent.PREV) == "start"
    assert IN_PERSON_FLOW.next_state("contact-information") == "review"
    assert IN_PERSON_FLOW.previous_state("review") == "contact-information"
    assert IN_PERSON_FLOW.next_state("review") is None


@pytest.mark.parametrize("state", EXPECTED_ORDER)
def test_undeclared_events_never_advance(state: str) -> None:
    for event in FlowEvent:
        if not IN_PERSON_FLOW.accepts(state, event):
            assert IN_PERSON_FLOW.transition(state, event) == state


def test_prev_on_start_is_a_no_op() -> None:
    assert not IN_PERSON_FLOW.accepts("start", "prev")
    assert IN_PERSON_FLOW.transition("start", "prev") == "start"


@pytest.mark.parametrize("state", EXPECTED_ORDER[1:])
def test_cancel_returns_to_initial_from_every_step(state: str) -> None:
    assert IN_PERSON_FLOW.transition(state, FlowEvent.CANCEL) == "start"


def test_unknown_event_is_unrecognized_action() -> None:
    with pytest.raises(AppError) as excinfo:
        IN_PERSON_FLOW.transition("start", "jump")

    assert excinfo.value.error_code is ErrorCodes.UNRECOGNIZED_ACTION
    assert excinfo.value.status_code == 400


def test_parse_event() -> None:
    assert parse_event(" NEXT ") is FlowEvent.NEXT
    assert parse_event(FlowEvent.CANCEL) is FlowEvent.CANCEL
    with pytest.raises(AppError):
        parse_event(None)


def test_unknown_state_is_rejected() -> None:
    with pytest.raises(AppError) as excinfo:
        IN_PERSON_FLOW.transitions("nowhere")

    assert excinfo.value.error_code is ErrorCodes.FLOW_DEFINITION_INVALID


def test_apply_merges_data_on_next_and_clears_on_cancel() -> None:
    snapshot = IN_PERSON_FLOW.initial_snapshot()

    moved = IN_PERSON_FLOW.apply(snapshot, "next", {"consent": "yes"})
    cancelled = IN_PERSON_FLOW.apply(moved, "cancel")

    assert snapshot.value == "start"
    assert snapshot.context.data == {}
    assert moved.value == "privacy-statement"
    assert moved.context.data == {"consent": "yes"}
    assert moved.context.routes["privacy-statement"] == RouteFile.PERSON_CASE_PRIVACY_STATEMENT.value
    assert cancelled.value == "start"
    assert cancelled.context.data == {}


def test_apply_ignores_data_when_state_does_not_move() -> None:
    snapshot = ActorSnapshot(value="review", context=IN_PERSON_FLOW.initial_snapshot().context)

    result = IN_PERSON_FLOW.apply(snapshot, "next", {"ignored": True})

    assert result.value == "review"
    assert result.context.data == {}


def test_linear_flow_wiring() -> None:
    flow = linear_flow(
        "mini",
        (("a", RouteFile.PUBLIC_INDEX), ("b", RouteFile.PROTECTED_INDEX), ("c", RouteFile.PROTECTED_ADMIN)),
    )

    assert dict(flow.transitions("a")) == {FlowEvent.NEXT: "b"}
    assert dict(flow.transitions("b")) == {FlowEvent.PREV: "a", FlowEvent.CANCEL: "a", FlowEvent.NEXT: "c"}
    assert dict(flow.transitions("c")) == {FlowEvent.PREV: "b", FlowEvent.CANCEL: "a"}


def test_state_routed_to_unknown_file_is_invalid() -> None:
    with pytest.raises(AppError) as excinfo:
        FlowDefinition(
            flow_id="broken",
            initial="a",
            states={"a": {"next": "b"}, "b": {"cancel": "a"}},
            routes={"a": RouteFile.PUBLIC_INDEX, "b": "routes/missing"},
        )

    assert excinfo.value.error_code is ErrorCodes.FLOW_DEFINITION_INVALID
    assert "unknown file 'routes/missing'" in excinfo.value.msg


def test_definition_problems_are_collected() -> None:
    with pytest.raises(AppError) as excinfo:
        FlowDefinition(
            flow_id="broken",
            initial="a",
            states={"a": {"next": "b", "jump": "a"}, "b": {}},
            routes={"a": RouteFile.PUBLIC_INDEX},
        )

    message = excinfo.value.msg
    assert "state 'a' declares unsupported event 'jump'" in message
    assert "state 'b' has no route" in message
    assert "non-terminal state 'b' has no outward transition" in message
    assert "state 'b' must cancel back to 'a'" in message
