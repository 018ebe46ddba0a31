"""Exceptions raised while describing schema or running migrations."""

from common.errors import ErrorCode, ReasonCodedError


class SchemaDefinitionError(ReasonCodedError, ValueError):
    """Raised when a blueprint call violates a construction-time precondition."""

    def __init__(
        self, message: str, *, reason_code: ErrorCode = ErrorCode.VALIDATION_ERROR
    ) -> None:
        super().__init__(message, reason_code=reason_code)


class InvalidReferentialActionError(SchemaDefinitionError):
    """Raised for a foreign-key action outside the supported set."""

    def __init__(self, action: object) -> None:
        super().__init__(
            f"Invalid referential action: {action!r}. "
            "Allowed values: CASCADE, SET NULL, NO ACTION, RESTRICT, SET DEFAULT",
            reason_code=ErrorCode.INVALID_REFERENTIAL_ACTION,
        )
        self.action = action


class MigrationError(ReasonCodedError, RuntimeError):
    """Raised when a migration file cannot be generated or loaded."""
