from common.errors import ErrorCode, ReasonCodedError


class QueryBuilderError(ReasonCodedError, RuntimeError):
    """Raised when the builder is missing state it needs to compile."""


class InvalidQueryArgumentError(ReasonCodedError, ValueError):
    """Raised at the call that received an invalid argument."""

    def __init__(self, message: str) -> None:
        super().__init__(message, reason_code=ErrorCode.INVALID_QUERY_ARGUMENT)
