"""
Core Exceptions

Exceptions related to configuration loading and subsystem lifecycle.

Author: YSNRFD
Version: 1.0.0
"""

from typing import Optional, Any


class CoreException(Exception):
    """
    Base exception for configuration and lifecycle errors.

    Attributes:
        message: Human-readable error description
        error_code: Numeric error code for programmatic handling
        context: Additional context about the error
    """

    def __init__(
        self,
        message: str,
        error_code: Optional[int] = None,
        context: Optional[dict[str, Any]] = None
    ) -> None:
        super().__init__(message)
        self.message = message
        self.error_code = error_code or 1000
        self.context = context or {}

    def __str__(self) -> str:
        base = f"[Error {self.error_code}] {self.message}"
        if self.context:
            context_str = ", ".join(f"{k}={v}" for k, v in self.context.items())
            base = f"{base} ({context_str})"
        return base

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"message={self.message!r}, "
            f"error_code={self.error_code})"
        )


class ConfigLoadError(CoreException):
    """
    The configuration file is missing or unreadable.

    Example:
        >>> raise ConfigLoadError("Configuration file not found", path="capfs.json")
    """

    def __init__(
        self,
        message: str,
        path: Optional[str] = None,
        context: Optional[dict[str, Any]] = None
    ) -> None:
        ctx = context or {}
        if path:
            ctx["path"] = path
        super().__init__(message=message, error_code=1101, context=ctx)
        self.path = path


class ConfigValidationError(CoreException):
    """A configuration value has the wrong type or an unknown key."""

    def __init__(
        self,
        message: str,
        key: Optional[str] = None,
        context: Optional[dict[str, Any]] = None
    ) -> None:
        ctx = context or {}
        if key:
            ctx["key"] = key
        super().__init__(message=message, error_code=1102, context=ctx)
        self.key = key
