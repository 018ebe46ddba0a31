"""Canonical error-code taxonomy for schema, migration and query-builder flows."""

from __future__ import annotations

from enum import Enum


class ErrorCode(str, Enum):
    """Bounded reason codes attached to toolkit exceptions."""

    VALIDATION_ERROR = "VALIDATION_ERROR"
    INVALID_REFERENTIAL_ACTION = "INVALID_REFERENTIAL_ACTION"
    ALTER_ONLY_COMMAND = "ALTER_ONLY_COMMAND"
    UNSUPPORTED_COLUMN_TYPE = "UNSUPPORTED_COLUMN_TYPE"
    UNSUPPORTED_BY_PROVIDER = "UNSUPPORTED_BY_PROVIDER"
    MISSING_TABLE = "MISSING_TABLE"
    INVALID_QUERY_ARGUMENT = "INVALID_QUERY_ARGUMENT"
    PLACEHOLDER_MISMATCH = "PLACEHOLDER_MISMATCH"
    TRANSACTION_STATE = "TRANSACTION_STATE"
    MIGRATION_LOAD_FAILED = "MIGRATION_LOAD_FAILED"
    MIGRATION_INVALID_FIELD = "MIGRATION_INVALID_FIELD"
    INTERNAL_ERROR = "INTERNAL_ERROR"


_CODE_GROUPS: dict[ErrorCode, str] = {
    ErrorCode.VALIDATION_ERROR: "VALIDATION",
    ErrorCode.INVALID_REFERENTIAL_ACTION: "SCHEMA",
    ErrorCode.ALTER_ONLY_COMMAND: "SCHEMA",
    ErrorCode.UNSUPPORTED_COLUMN_TYPE: "SCHEMA",
    ErrorCode.UNSUPPORTED_BY_PROVIDER: "SCHEMA",
    ErrorCode.MISSING_TABLE: "QUERY",
    ErrorCode.INVALID_QUERY_ARGUMENT: "QUERY",
    ErrorCode.PLACEHOLDER_MISMATCH: "DB",
    ErrorCode.TRANSACTION_STATE: "DB",
    ErrorCode.MIGRATION_LOAD_FAILED: "MIGRATION",
    ErrorCode.MIGRATION_INVALID_FIELD: "MIGRATION",
    ErrorCode.INTERNAL_ERROR: "INTERNAL",
}


def error_code_group(code: str | ErrorCode | None) -> str:
    """Return the coarse group for a reason code, INTERNAL when unknown."""
    if code is None:
        return _CODE_GROUPS[ErrorCode.INTERNAL_ERROR]
    try:
        normalized = code if isinstance(code, ErrorCode) else ErrorCode(str(code).strip())
    except ValueError:
        return _CODE_GROUPS[ErrorCode.INTERNAL_ERROR]
    return _CODE_GROUPS[normalized]


class ReasonCodedError(Exception):
    """Mixin carrying a deterministic reason code alongside the message."""

    def __init__(self, message: str, *, reason_code: ErrorCode = ErrorCode.INTERNAL_ERROR) -> None:
        """Attach a reason code to the exception."""
        super().__init__(message)
        self.reason_code = reason_code
