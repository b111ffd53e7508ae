"""Central configuration for the SIN intake wizard.

Values are read once from the environment (a local ``.env`` file is loaded
first). ``SESSION_BACKEND`` selects where flow snapshots live: ``memory``
keeps a per-process map keyed by session id, ``streamlit`` stores them in
``st.session_state`` of the current browser session.
"""

from __future__ import annotations

import logging
import os
import warnings
from enum import StrEnum

from dotenv import load_dotenv

from constants.keys import QueryKeys, StateKeys

load_dotenv()

logger = logging.getLogger(__name__)

_TRUTHY_ENV_VALUES: tuple[str, ...] = ("1", "true", "yes", "on")
_REDIRECT_STATUSES: frozenset[int] = frozenset({301, 302, 303, 307, 308})


class SessionBackend(StrEnum):
    """Enumerate the supported session backends."""

    MEMORY = "memory"
    STREAMLIT = "streamlit"


def _is_truthy_flag(value: str | None) -> bool:
    """Return ``True`` when ``value`` matches a truthy environment token."""

    if value is None:
        return False
    return value.strip().lower() in _TRUTHY_ENV_VALUES


def _coerce_session_backend(value: str | None, *, fallback: SessionBackend) -> SessionBackend:
    """Convert ``value`` into a :class:`SessionBackend` with a sensible default."""

    if not value:
        return fallback
    try:
        return SessionBackend(value.strip().lower())
    except ValueError:
        warnings.warn(
            "Unsupported SESSION_BACKEND '%s'; falling back to '%s'." % (value, fallback.value),
            RuntimeWarning,
        )
        return fallback


def _parse_redirect_status(value: str | None, *, default: int) -> int:
    """Return a redirect status code parsed from ``value`` or ``default``."""

    if value is None or not value.strip():
        return default
    try:
        parsed = int(value.strip())
    except ValueError:
        warnings.warn("%s is not a number; ignoring REDIRECT_STATUS" % value, RuntimeWarning)
        return default
    if parsed not in _REDIRECT_STATUSES:
        warnings.warn("%s is not a redirect status; ignoring REDIRECT_STATUS" % parsed, RuntimeWarning)
        return default
    return parsed


SESSION_BACKEND = _coerce_session_backend(os.getenv("SESSION_BACKEND"), fallback=SessionBackend.MEMORY)
FLOW_SESSION_KEY = os.getenv("FLOW_SESSION_KEY", StateKeys.IN_PERSON_FLOW)
TAB_ID_PARAM = os.getenv("TAB_ID_PARAM", QueryKeys.TAB_ID)
RESTART_PARAM = os.getenv("RESTART_PARAM", QueryKeys.RESTARTED)
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").strip().upper() or "INFO"
# Status used after a form POST; GET redirects always use 302.
REDIRECT_STATUS = _parse_redirect_status(os.getenv("REDIRECT_STATUS"), default=303)
SERIALIZE_FLOW_DISPATCH = _is_truthy_flag(os.getenv("SERIALIZE_FLOW_DISPATCH", "1"))


def log_level() -> int:
    """Return the numeric logging level configured via ``LOG_LEVEL``."""

    level = logging.getLevelName(LOG_LEVEL)
    if isinstance(level, int):
        return level
    logger.warning("Unknown LOG_LEVEL '%s'; using INFO", LOG_LEVEL)
    return logging.INFO


__all__ = [
    "FLOW_SESSION_KEY",
    "LOG_LEVEL",
    "REDIRECT_STATUS",
    "RESTART_PARAM",
    "SERIALIZE_FLOW_DISPATCH",
    "SESSION_BACKEND",
    "SessionBackend",
    "TAB_ID_PARAM",
    "log_level",
]
