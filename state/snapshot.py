"""Serializable flow snapshots persisted per (session, tab)."""

from __future__ import annotations

from typing import Any, Dict, Mapping

from pydantic import BaseModel, Field


class FlowContext(BaseModel):
    routes: Dict[str, str] = Field(default_factory=dict, description="State name -> logical route id.")
    data: Dict[str, Any] = Field(default_factory=dict, description="Step payloads collected so far.")


class ActorSnapshot(BaseModel):
    """Unit of persistence: the current state plus its context."""

    value: str = Field(..., min_length=1, description="Current state name.")
    context: FlowContext = Field(default_factory=FlowContext)

    def to_session(self) -> dict[str, Any]:
        """Return a JSON-ready copy for storage in a session container."""

        return self.model_dump(mode="json")

    @classmethod
    def from_session(cls, raw: Mapping[str, Any]) -> "ActorSnapshot":
        return cls.model_validate(dict(raw))


__all__ = ["ActorSnapshot", "FlowContext"]
