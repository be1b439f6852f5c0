"""
Security Exceptions

Exceptions related to scope enforcement.

Author: YSNRFD
Version: 1.0.0
"""

from typing import Optional, Any


class SecurityException(Exception):
    """
    Base exception for all security-related errors.

    Attributes:
        message: Human-readable error description
        error_code: Numeric error code for programmatic handling
    """

    def __init__(
        self,
        message: str,
        error_code: Optional[int] = None,
        context: Optional[dict[str, Any]] = None
    ) -> None:
        super().__init__(message)
        self.message = message
        self.error_code = error_code or 5000
        self.context = context or {}

    def __str__(self) -> str:
        return f"[Error {self.error_code}] {self.message}"


class PathForbiddenError(SecurityException):
    """
    The resolved path is not admitted by the composite scope.

    Raised before any filesystem access takes place.

    Example:
        >>> raise PathForbiddenError("/etc/shadow", operation="read_file")
    """

    def __init__(
        self,
        path: str,
        operation: Optional[str] = None,
        context: Optional[dict[str, Any]] = None
    ) -> None:
        ctx = context or {}
        ctx["path"] = path
        if operation:
            ctx["operation"] = operation
        super().__init__(
            message=f"forbidden path: {path}",
            error_code=5101,
            context=ctx
        )
        self.path = path
        self.operation = operation


class ScopeConfigError(SecurityException):
    """
    A scope pattern could not be built.

    Raised for unknown ``$VARIABLE`` prefixes and patterns the matcher
    rejects.
    """

    def __init__(
        self,
        pattern: str,
        reason: Optional[str] = None,
        context: Optional[dict[str, Any]] = None
    ) -> None:
        ctx = context or {}
        ctx["pattern"] = pattern
        if reason:
            ctx["reason"] = reason
        message = f"invalid scope pattern: {pattern}"
        if reason:
            message = f"{message} ({reason})"
        super().__init__(
            message=message,
            error_code=5102,
            context=ctx
        )
        self.pattern = pattern
        self.reason = reason
