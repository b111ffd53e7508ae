"""Wizard package: flow definitions, the session-backed engine and page handlers."""

from __future__ import annotations

from .engine import Actor, WizardEngine
from .flow import IN_PERSON_FLOW, FlowDefinition, FlowEvent, linear_flow, parse_event
from .handlers import FlowRequest, FlowResponse, get_engine, handle_step, start_flow

__all__ = [
    "Actor",
    "FlowDefinition",
    "FlowEvent",
    "FlowRequest",
    "FlowResponse",
    "IN_PERSON_FLOW",
    "WizardEngine",
    "get_engine",
    "handle_step",
    "linear_flow",
    "parse_event",
    "start_flow",
]
