"""Contextual logging for flow requests.

Every record gets ``session_id``, ``tab_id`` and ``flow_state`` attributes
taken from context variables, so log lines emitted while handling one tab
can be correlated without passing ids through every call.
"""

from __future__ import annotations

import contextvars
import logging
from contextlib import contextmanager
from typing import Final, Iterator

CONTEXT_FIELDS: Final[tuple[str, ...]] = ("session_id", "tab_id", "flow_state")
_UNSET: Final[str] = "-"

LOG_FORMAT: Final[str] = (
    "%(asctime)s %(levelname)s [session=%(session_id)s tab=%(tab_id)s "
    "state=%(flow_state)s] %(name)s: %(message)s"
)

_CONTEXT_VARS: Final[dict[str, contextvars.ContextVar[str]]] = {
    name: contextvars.ContextVar(name, default=_UNSET) for name in CONTEXT_FIELDS
}
_base_record_factory = logging.getLogRecordFactory()
_factory_installed = False


def _normalise(value: object | None) -> str:
    text = "" if value is None else str(value).strip()
    return text or _UNSET


def _stamp(record: logging.LogRecord) -> logging.LogRecord:
    for name, var in _CONTEXT_VARS.items():
        setattr(record, name, var.get())
    return record


class FlowContextFilter(logging.Filter):
    """Stamp records that were created before the record factory was installed."""

    def filter(self, record: logging.LogRecord) -> bool:
        for name in CONTEXT_FIELDS:
            if not hasattr(record, name):
                setattr(record, name, _CONTEXT_VARS[name].get())
        return True


def configure_logging(*, level: int = logging.INFO) -> None:
    """Install the flow-aware format on the root logger (idempotent)."""

    global _factory_installed
    root = logging.getLogger()
    if not root.handlers:
        logging.basicConfig(level=level, format=LOG_FORMAT)
    for handler in root.handlers:
        if handler.formatter is None:
            handler.setFormatter(logging.Formatter(LOG_FORMAT))
    if not any(isinstance(existing, FlowContextFilter) for existing in root.filters):
        root.addFilter(FlowContextFilter())
    if not _factory_installed:
        factory = _base_record_factory
        logging.setLogRecordFactory(lambda *args, **kwargs: _stamp(factory(*args, **kwargs)))
        _factory_installed = True


def set_session_id(session_id: str | None) -> None:
    """Bind the session id for the rest of the current context."""

    configure_logging()
    _CONTEXT_VARS["session_id"].set(_normalise(session_id))


def set_tab_id(tab_id: str | None) -> None:
    _CONTEXT_VARS["tab_id"].set(_normalise(tab_id))


def current_context() -> dict[str, str]:
    """Return the values currently bound to the logging context."""

    return {name: var.get() for name, var in _CONTEXT_VARS.items()}


@contextmanager
def log_context(
    *,
    session_id: str | None = None,
    tab_id: str | None = None,
    flow_state: str | None = None,
) -> Iterator[None]:
    """Bind the given fields while the block runs; ``None`` keeps the outer value."""

    requested = {"session_id": session_id, "tab_id": tab_id, "flow_state": flow_state}
    bound = [
        (_CONTEXT_VARS[name], _CONTEXT_VARS[name].set(_normalise(value)))
        for name, value in requested.items()
        if value is not None
    ]
    try:
        yield
    finally:
        while bound:
            var, token = bound.pop()
            var.reset(token)


__all__ = [
    "CONTEXT_FIELDS",
    "FlowContextFilter",
    "configure_logging",
    "current_context",
    "log_context",
    "set_session_id",
    "set_tab_id",
]
