"""Session state utilities."""

from .actor_store import (
    ActorSnapshot,
    ActorStore,
    FlowContext,
    InMemorySessionStore,
    SessionActorStore,
    StreamlitSessionStore,
    make_session_store,
)

__all__ = [
    "ActorSnapshot",
    "ActorStore",
    "FlowContext",
    "InMemorySessionStore",
    "SessionActorStore",
    "StreamlitSessionStore",
    "make_session_store",
]
