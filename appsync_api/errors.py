"""
Error types for GraphQL API definition compilation.

Every validation problem is an AppError with a stable error code, a
human-readable message and a details dict naming the entity kind, key and
(where relevant) the referencing entity, so a whole definition can be fixed
in one edit pass.
"""

from typing import Any, Dict, List, Optional, Sequence


class AppError(Exception):
    """
    Application error with error code and message.

    Base class for every definition error raised by the compiler.
    """

    def __init__(self, error_code: str, message: str, details: Optional[Dict[str, Any]] = None):
        self.error_code = error_code
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for reporting."""
        return {
            "errorCode": self.error_code,
            "message": self.message,
            **self.details,
        }


class ErrorCode:
    """Standard error codes for definition validation."""

    # Table errors
    DUPLICATE_KEY = "DUPLICATE_KEY"
    UNKNOWN_KEY = "UNKNOWN_KEY"

    # Resolver errors
    EMPTY_PIPELINE = "EMPTY_PIPELINE"
    FIELD_CONFLICT = "FIELD_CONFLICT"

    # Authentication errors
    MISSING_PAYLOAD = "MISSING_PAYLOAD"
    DUPLICATE_MECHANISM = "DUPLICATE_MECHANISM"
    UNSUPPORTED_MECHANISM = "UNSUPPORTED_MECHANISM"
    NO_AUTH_TYPES = "NO_AUTH_TYPES"

    # Shape errors
    INVALID_VALUE = "INVALID_VALUE"

    # Aggregate / system errors
    COMPILATION_FAILED = "COMPILATION_FAILED"
    INTERNAL_ERROR = "INTERNAL_ERROR"


class DuplicateKeyError(AppError):
    """Same key declared twice within one entity table."""

    def __init__(self, kind: str, key: str):
        self.kind = kind
        self.key = key
        super().__init__(
            ErrorCode.DUPLICATE_KEY,
            f"Duplicate {kind} '{key}'",
            {"kind": kind, "key": key},
        )


class UnknownKeyError(AppError):
    """A reference names a key absent from the target table."""

    def __init__(
        self,
        kind: str,
        key: str,
        referrer_kind: Optional[str] = None,
        referrer_key: Optional[str] = None,
    ):
        self.kind = kind
        self.key = key
        self.referrer_kind = referrer_kind
        self.referrer_key = referrer_key

        if referrer_kind and referrer_key is not None:
            message = f"{referrer_kind.capitalize()} '{referrer_key}' references unknown {kind} '{key}'"
        else:
            message = f"Unknown {kind} '{key}'"

        details: Dict[str, Any] = {"kind": kind, "key": key}
        if referrer_kind:
            details["referrerKind"] = referrer_kind
        if referrer_key is not None:
            details["referrerKey"] = referrer_key
        super().__init__(ErrorCode.UNKNOWN_KEY, message, details)

    def with_referrer(self, referrer_kind: str, referrer_key: str) -> "UnknownKeyError":
        """Return a copy of this error attributed to a referencing entity."""
        return UnknownKeyError(self.kind, self.key, referrer_kind, referrer_key)


class EmptyPipelineError(AppError):
    """Pipeline resolver declares zero functions."""

    def __init__(self, resolver_key: str):
        self.resolver_key = resolver_key
        super().__init__(
            ErrorCode.EMPTY_PIPELINE,
            f"Pipeline resolver '{resolver_key}' declares no functions",
            {"kind": "pipeline resolver", "key": resolver_key},
        )


class FieldConflictError(AppError):
    """Two resolvers are attached to the same GraphQL type and field."""

    def __init__(self, field_type: str, field_name: str, first_key: str, second_key: str):
        self.field_type = field_type
        self.field_name = field_name
        super().__init__(
            ErrorCode.FIELD_CONFLICT,
            f"Resolvers '{first_key}' and '{second_key}' both resolve {field_type}.{field_name}",
            {"typeName": field_type, "fieldName": field_name, "keys": [first_key, second_key]},
        )


class MissingPayloadError(AppError):
    """Auth mechanism listed without its required configuration payload."""

    def __init__(self, mechanism: str, payload_field: str):
        self.mechanism = mechanism
        super().__init__(
            ErrorCode.MISSING_PAYLOAD,
            f"Authentication type {mechanism} requires a '{payload_field}' configuration",
            {"mechanism": mechanism, "payload": payload_field},
        )


class DuplicateMechanismError(AppError):
    """Auth mechanism listed more than once."""

    def __init__(self, mechanism: str, position: int):
        self.mechanism = mechanism
        super().__init__(
            ErrorCode.DUPLICATE_MECHANISM,
            f"Authentication type {mechanism} is listed more than once (position {position})",
            {"mechanism": mechanism, "position": position},
        )


class UnsupportedMechanismError(AppError):
    """Auth type is not one of the supported mechanisms."""

    def __init__(self, mechanism: Any, position: int, supported: Sequence[str]):
        self.mechanism = mechanism
        super().__init__(
            ErrorCode.UNSUPPORTED_MECHANISM,
            f"Unsupported authentication type {mechanism!r} (position {position})",
            {"mechanism": str(mechanism), "position": position, "supported": list(supported)},
        )


class EmptyAuthTypesError(AppError):
    """No authentication type was declared."""

    def __init__(self) -> None:
        super().__init__(ErrorCode.NO_AUTH_TYPES, "At least one authentication type is required")


class InvalidValueError(AppError):
    """A declared field has a missing or unusable value."""

    def __init__(self, kind: str, key: Optional[str], field: str, message: str):
        self.kind = kind
        self.key = key
        self.field = field
        subject = f"{kind} '{key}'" if key is not None else kind
        details: Dict[str, Any] = {"kind": kind, "field": field}
        if key is not None:
            details["key"] = key
        super().__init__(ErrorCode.INVALID_VALUE, f"{subject}: {field} {message}", details)


class CompilationError(AppError):
    """
    Aggregate of every validation problem found in one compile pass.

    The message lists each distinct error on its own line.
    """

    def __init__(self, errors: Sequence[AppError]):
        self.errors: List[AppError] = list(errors)
        lines = [f"  - {error.message}" for error in self.errors]
        message = f"{len(self.errors)} error(s) in GraphQL API definition:\n" + "\n".join(lines)
        super().__init__(ErrorCode.COMPILATION_FAILED, message, {"errorCount": len(self.errors)})

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary, nesting every collected error."""
        return {
            "errorCode": self.error_code,
            "message": f"{len(self.errors)} error(s) in GraphQL API definition",
            "errors": [error.to_dict() for error in self.errors],
        }


def handle_error(error: Exception) -> Dict[str, Any]:
    """
    Convert exception to standardized error response.

    Args:
        error: Exception to handle

    Returns:
        Error dictionary for reporting
    """
    if isinstance(error, AppError):
        return error.to_dict()

    return {
        "errorCode": ErrorCode.INTERNAL_ERROR,
        "message": "An unexpected error occurred while compiling the definition.",
    }
