"""Static flow definitions and the pure transition function.

A flow is data, not code: ``states`` maps each state name to its outward
transitions (``{event: target}``) and ``routes`` maps every state to the
logical route id of the page that renders it. Applying an event never has a
side effect; persistence is the engine's job.
"""

from __future__ import annotations

from collections import deque
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import StrEnum
from types import MappingProxyType
from typing import Any, Final

from core.errors import AppError, ErrorCodes
from routing.resolver import find_by_file
from routing.tree import RouteFile
from state.snapshot import ActorSnapshot, FlowContext


class FlowEvent(StrEnum):
    """Universal events understood by every flow."""

    NEXT = "next"
    PREV = "prev"
    CANCEL = "cancel"


def parse_event(raw: object) -> FlowEvent:
    """Return the :class:`FlowEvent` named by ``raw`` (a posted form ``action``).

    Raises:
        AppError: ``UNRECOGNIZED_ACTION`` for anything else.
    """

    if isinstance(raw, FlowEvent):
        return raw
    if isinstance(raw, str):
        try:
            return FlowEvent(raw.strip().lower())
        except ValueError:
            pass
    raise AppError(f"Unrecognized action: {raw}", ErrorCodes.UNRECOGNIZED_ACTION, status_code=400)


def _coerce_event(event: object) -> object:
    try:
        return FlowEvent(event)
    except ValueError:
        return event


@dataclass(frozen=True)
class FlowDefinition:
    """Finite-state machine describing one multi-step flow.

    Attributes:
        flow_id: Stable name used in logs and session keys.
        initial: State every new actor starts in and ``cancel`` returns to.
        states: ``{state: {event: target}}`` transition table.
        routes: ``{state: RouteFile}``; every state must be routed.
        terminal: Optional final state, exempt from the outward-transition rule.
    """

    flow_id: str
    initial: str
    states: Mapping[str, Mapping[FlowEvent, str]]
    routes: Mapping[str, RouteFile]
    terminal: str | None = None
    _order: tuple[str, ...] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        frozen_states = MappingProxyType(
            {
                name: MappingProxyType({_coerce_event(event): target for event, target in transitions.items()})
                for name, transitions in self.states.items()
            }
        )
        object.__setattr__(self, "states", frozen_states)
        object.__setattr__(self, "routes", MappingProxyType(dict(self.routes)))
        self.validate()
        object.__setattr__(self, "_order", self._linear_order())

    def problems(self) -> list[str]:
        """Return every invariant violation (empty when the flow is consistent)."""

        issues: list[str] = []
        if self.initial not in self.states:
            issues.append(f"initial state '{self.initial}' is not declared")
        if self.terminal is not None and self.terminal not in self.states:
            issues.append(f"terminal state '{self.terminal}' is not declared")
        for name, transitions in self.states.items():
            route = self.routes.get(name)
            if route is None:
                issues.append(f"state '{name}' has no route")
            elif find_by_file(route) is None:
                issues.append(f"state '{name}' routes to unknown file '{route}'")
            for event, target in transitions.items():
                if not isinstance(event, FlowEvent):
                    issues.append(f"state '{name}' declares unsupported event '{event}'")
                if target not in self.states:
                    issues.append(f"state '{name}' {event} targets undeclared state '{target}'")
            if name != self.terminal and not transitions:
                issues.append(f"non-terminal state '{name}' has no outward transition")
            if name != self.initial and transitions.get(FlowEvent.CANCEL) != self.initial:
                issues.append(f"state '{name}' must cancel back to '{self.initial}'")
        for name in self.routes:
            if name not in self.states:
                issues.append(f"route declared for undeclared state '{name}'")
        return issues

    def validate(self) -> None:
        """Raise :class:`AppError` when the flow violates an invariant."""

        issues = self.problems()
        if issues:
            raise AppError(
                f"Invalid flow '{self.flow_id}': " + "; ".join(issues),
                ErrorCodes.FLOW_DEFINITION_INVALID,
            )

    def is_state(self, state: str) -> bool:
        return state in self.states

    def transitions(self, state: str) -> Mapping[FlowEvent, str]:
        if state not in self.states:
            raise AppError(
                f"State '{state}' is not part of flow '{self.flow_id}'",
                ErrorCodes.FLOW_DEFINITION_INVALID,
            )
        return self.states[state]

    def transition(self, state: str, event: FlowEvent | str) -> str:
        """Return the state reached from ``state`` on ``event``.

        A known event that ``state`` does not declare leaves the state
        unchanged; an unknown event raises ``UNRECOGNIZED_ACTION``.
        """

        parsed = parse_event(event)
        return self.transitions(state).get(parsed, state)

    def accepts(self, state: str, event: FlowEvent | str) -> bool:
        """Return ``True`` when ``state`` declares ``event``."""

        return parse_event(event) in self.transitions(state)

    def next_state(self, state: str) -> str | None:
        return self.transitions(state).get(FlowEvent.NEXT)

    def previous_state(self, state: str) -> str | None:
        return self.transitions(state).get(FlowEvent.PREV)

    def route_for_state(self, state: str) -> RouteFile:
        route = self.routes.get(state)
        if route is None:
            raise AppError(
                f"No route declared for state '{state}' of flow '{self.flow_id}'",
                ErrorCodes.ROUTE_NOT_FOUND,
            )
        return route

    def state_for_route(self, file: RouteFile | str) -> str | None:
        """Reverse of :meth:`route_for_state`, used when resuming from a page."""

        wanted = str(file)
        return next((state for state, route in self.routes.items() if str(route) == wanted), None)

    def reachable_states(self) -> tuple[str, ...]:
        """Return states reachable from ``initial`` in breadth-first order."""

        seen: list[str] = [self.initial]
        queue: deque[str] = deque([self.initial])
        while queue:
            for target in self.states[queue.popleft()].values():
                if target not in seen:
                    seen.append(target)
                    queue.append(target)
        return tuple(seen)

    def _linear_order(self) -> tuple[str, ...]:
        order: list[str] = [self.initial]
        current = self.initial
        while True:
            nxt = self.states[current].get(FlowEvent.NEXT)
            if nxt is None or nxt in order:
                break
            order.append(nxt)
            current = nxt
        return tuple(order)

    def ordered_states(self) -> tuple[str, ...]:
        """Return states along the ``next`` chain starting at ``initial``."""

        return self._order

    def step_number(self, state: str) -> int | None:
        """Return the 1-based position of ``state`` along the ``next`` chain."""

        try:
            return self._order.index(state) + 1
        except ValueError:
            return None

    def initial_snapshot(self) -> ActorSnapshot:
        """Return the snapshot of a freshly created actor."""

        return ActorSnapshot(
            value=self.initial,
            context=FlowContext(routes={state: str(route) for state, route in self.routes.items()}),
        )

    def apply(
        self,
        snapshot: ActorSnapshot,
        event: FlowEvent | str,
        data: Mapping[str, Any] | None = None,
    ) -> ActorSnapshot:
        """Return the snapshot after ``event``; ``snapshot`` is left untouched.

        An effective ``next`` merges ``data`` into ``context.data``; ``cancel``
        clears it.
        """

        parsed = parse_event(event)
        target = self.transition(snapshot.value, parsed)
        updated = snapshot.model_copy(deep=True)
        moved = parsed in self.transitions(snapshot.value)
        if moved and parsed is FlowEvent.CANCEL:
            updated.context.data = {}
        elif moved and parsed is FlowEvent.NEXT and data:
            updated.context.data.update(dict(data))
        updated.value = target
        return updated


def linear_flow(
    flow_id: str,
    steps: tuple[tuple[str, RouteFile], ...],
) -> FlowDefinition:
    """Build a ``start -> ... -> terminal`` flow with prev/next/cancel wiring.

    The first step is the initial state (``next`` only); the last step is
    terminal (``prev``/``cancel`` only).
    """

    names = [name for name, _route in steps]
    initial, terminal = names[0], names[-1]
    states: dict[str, dict[FlowEvent, str]] = {}
    for index, name in enumerate(names):
        transitions: dict[FlowEvent, str] = {}
        if index > 0:
            transitions[FlowEvent.PREV] = names[index - 1]
            transitions[FlowEvent.CANCEL] = initial
        if index + 1 < len(names):
            transitions[FlowEvent.NEXT] = names[index + 1]
        states[name] = transitions
    return FlowDefinition(
        flow_id=flow_id,
        initial=initial,
        states=states,
        routes=dict(steps),
        terminal=terminal,
    )


IN_PERSON_FLOW: Final[FlowDefinition] = linear_flow(
    "in-person",
    (
        ("start", RouteFile.PROTECTED_REQUEST),
        ("privacy-statement", RouteFile.PERSON_CASE_PRIVACY_STATEMENT),
        ("request-details", RouteFile.PERSON_CASE_REQUEST_DETAILS),
        ("primary-docs", RouteFile.PERSON_CASE_PRIMARY_DOCS),
        ("secondary-docs", RouteFile.PERSON_CASE_SECONDARY_DOC),
        ("current-name", RouteFile.PERSON_CASE_CURRENT_NAME),
        ("personal-info", RouteFile.PERSON_CASE_PERSONAL_INFO),
        ("birth-details", RouteFile.PERSON_CASE_BIRTH_DETAILS),
        ("parent-details", RouteFile.PERSON_CASE_PARENT_DETAILS),
        ("previous-sin", RouteFile.PERSON_CASE_PREVIOUS_SIN),
        ("contact-information", RouteFile.PERSON_CASE_CONTACT_INFORMATION),
        ("review", RouteFile.PERSON_CASE_REVIEW),
    ),
)


__all__ = ["FlowDefinition", "FlowEvent", "IN_PERSON_FLOW", "linear_flow", "parse_event"]
