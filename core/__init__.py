"""Core package for shared error types."""

from .errors import AppError, ErrorCodes

__all__ = ["AppError", "ErrorCodes"]
