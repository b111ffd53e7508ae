"""Coded exception types shared by routing and the wizard engine."""

from __future__ import annotations

import secrets
import string
from enum import StrEnum


class ErrorCodes(StrEnum):
    """Stable, loggable error codes."""

    UNCAUGHT_ERROR = "UNC-0000"

    # component error codes
    MISSING_LANG_PARAM = "CMP-0001"

    # i18n error codes
    NO_LANGUAGE_FOUND = "I18N-0001"

    # route error codes
    ROUTE_NOT_FOUND = "RTE-0001"
    ROUTE_TREE_INVALID = "RTE-0002"
    INVALID_ROUTE_PARAMS = "RTE-0003"

    # flow error codes
    FLOW_DEFINITION_INVALID = "FLW-0001"
    UNRECOGNIZED_ACTION = "FLW-0002"
    MISSING_SNAPSHOT = "FLW-0003"
    MISSING_TAB_ID = "FLW-0004"


_CORRELATION_ALPHABET = string.ascii_uppercase + string.digits


def _random_chunk(length: int) -> str:
    return "".join(secrets.choice(_CORRELATION_ALPHABET) for _ in range(length))


def generate_correlation_id() -> str:
    """Return a short id such as ``AB-12CD34`` for matching logs to error pages."""

    return f"{_random_chunk(2)}-{_random_chunk(6)}"


class AppError(Exception):
    """Base exception for every application error.

    Args:
        msg: Human readable message (English, for logs).
        error_code: One of :class:`ErrorCodes`.
        status_code: HTTP status the surrounding framework should answer with.
        correlation_id: Optional id; generated when omitted.
    """

    def __init__(
        self,
        msg: str,
        error_code: ErrorCodes = ErrorCodes.UNCAUGHT_ERROR,
        *,
        status_code: int = 500,
        correlation_id: str | None = None,
    ) -> None:
        super().__init__(msg)
        self.msg = msg
        self.error_code = error_code
        self.status_code = status_code
        self.correlation_id = correlation_id or generate_correlation_id()

    @property
    def is_client_error(self) -> bool:
        return 400 <= self.status_code < 500

    def to_payload(self) -> dict[str, object]:
        """Return a JSON-ready body for error responses."""

        return {
            "errorCode": str(self.error_code),
            "correlationId": self.correlation_id,
            "message": self.msg,
        }

    def __repr__(self) -> str:
        return f"AppError({self.error_code}, {self.msg!r}, status={self.status_code})"


def is_app_error(error: object) -> bool:
    """Return ``True`` when ``error`` is an :class:`AppError`."""

    return isinstance(error, AppError)


__all__ = ["AppError", "ErrorCodes", "generate_correlation_id", "is_app_error"]
