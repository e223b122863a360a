"""Error hierarchy for the typeschema package."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

__all__ = [
    "TypeSchemaError",
    "ConfigNotFoundError",
    "ConfigError",
    "InvalidInputError",
    "UnsupportedTypeError",
    "InvalidMapKeyError",
    "CommentLookupError",
    "EnumLookupError",
    "SchemaSynthesisError",
    "ErrorCodes",
]


class TypeSchemaError(Exception):
    """Base error for all typeschema errors."""

    def __init__(
        self,
        code: str,
        message: str,
        details: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.details: dict[str, Any] = details or {}
        self.cause = cause
        self.timestamp = datetime.now(timezone.utc).isoformat()

    def __str__(self) -> str:
        return f"[{self.code}] {self.message}"


class ConfigNotFoundError(TypeSchemaError):
    """Raised when a configuration file cannot be found."""

    def __init__(self, config_path: str, **kwargs: Any) -> None:
        super().__init__(
            code="CONFIG_NOT_FOUND",
            message=f"Configuration file not found: {config_path}",
            details={"config_path": config_path},
            **kwargs,
        )


class ConfigError(TypeSchemaError):
    """Raised when configuration is invalid."""

    def __init__(self, message: str, **kwargs: Any) -> None:
        super().__init__(code="CONFIG_INVALID", message=message, **kwargs)


class InvalidInputError(TypeSchemaError):
    """Raised for invalid input."""

    def __init__(self, message: str = "Invalid input", **kwargs: Any) -> None:
        super().__init__(code="GENERAL_INVALID_INPUT", message=message, **kwargs)


class UnsupportedTypeError(TypeSchemaError):
    """Raised when a type has no schema representation (callables, generators, ...)."""

    def __init__(self, type_name: str, **kwargs: Any) -> None:
        super().__init__(
            code="UNSUPPORTED_TYPE",
            message=f"Unsupported type: {type_name}",
            details={"type_name": type_name},
            **kwargs,
        )

    @property
    def type_name(self) -> str:
        """The identity of the unsupported type."""
        return self.details["type_name"]


class InvalidMapKeyError(TypeSchemaError):
    """Raised when a map type has a key that does not reduce to text."""

    def __init__(self, type_name: str, key_type: str, **kwargs: Any) -> None:
        super().__init__(
            code="INVALID_MAP_KEY",
            message=f"Maps must have a string key, but map '{type_name}' has key type '{key_type}'",
            details={"type_name": type_name, "key_type": key_type},
            **kwargs,
        )


class CommentLookupError(TypeSchemaError):
    """Raised when the comments of a namespace cannot be resolved."""

    def __init__(self, namespace: str, reason: str, **kwargs: Any) -> None:
        super().__init__(
            code="COMMENT_LOOKUP_FAILED",
            message=f"Failed to get comments for namespace '{namespace}': {reason}",
            details={"namespace": namespace, "reason": reason},
            **kwargs,
        )

    @property
    def namespace(self) -> str:
        """The namespace whose comments could not be resolved."""
        return self.details["namespace"]


class EnumLookupError(TypeSchemaError):
    """Raised when the enumeration constants of a type cannot be discovered."""

    def __init__(self, type_name: str, reason: str, **kwargs: Any) -> None:
        super().__init__(
            code="ENUM_LOOKUP_FAILED",
            message=f"Failed to get enum constants for '{type_name}': {reason}",
            details={"type_name": type_name, "reason": reason},
            **kwargs,
        )


class SchemaSynthesisError(TypeSchemaError):
    """Raised when synthesis of a nested type fails.

    Wraps the underlying error with the identity of the enclosing type and a
    short description of where the failure happened (element, map value, field).
    """

    def __init__(self, type_name: str, context: str, cause: Exception, **kwargs: Any) -> None:
        super().__init__(
            code="SCHEMA_SYNTHESIS_ERROR",
            message=f"Error getting schema for '{type_name}', {context}: {cause}",
            details={"type_name": type_name, "context": context},
            cause=cause,
            **kwargs,
        )

    @property
    def type_name(self) -> str:
        """The type whose synthesis failed."""
        return self.details["type_name"]

    @property
    def root_cause(self) -> Exception:
        """The innermost error, unwrapping nested synthesis errors."""
        error: Exception = self
        while isinstance(error, SchemaSynthesisError) and error.cause is not None:
            error = error.cause
        return error


class ErrorCodes:
    """All typeschema error codes as constants.

    Use these instead of hardcoding error code strings.

    Example:
        if error.code == ErrorCodes.UNSUPPORTED_TYPE:
            handle_unsupported()
    """

    CONFIG_NOT_FOUND = "CONFIG_NOT_FOUND"
    CONFIG_INVALID = "CONFIG_INVALID"
    GENERAL_INVALID_INPUT = "GENERAL_INVALID_INPUT"
    UNSUPPORTED_TYPE = "UNSUPPORTED_TYPE"
    INVALID_MAP_KEY = "INVALID_MAP_KEY"
    COMMENT_LOOKUP_FAILED = "COMMENT_LOOKUP_FAILED"
    ENUM_LOOKUP_FAILED = "ENUM_LOOKUP_FAILED"
    SCHEMA_SYNTHESIS_ERROR = "SCHEMA_SYNTHESIS_ERROR"

    def __setattr__(self, name: str, value: object) -> None:
        raise AttributeError("ErrorCodes is immutable")
