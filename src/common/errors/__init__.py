"""Common error taxonomy helpers."""

from common.errors.error_codes import ErrorCode, ReasonCodedError, error_code_group

__all__ = [
    "ErrorCode",
    "ReasonCodedError",
    "error_code_group",
]
