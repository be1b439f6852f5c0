"""
Resource Exceptions

Exceptions raised by the resource handle table.

Author: YSNRFD
Version: 1.0.0
"""

from typing import Optional, Any


class ResourceException(Exception):
    """
    Base exception for resource table errors.

    Attributes:
        message: Human-readable error description
        handle: Resource handle involved (if applicable)
        error_code: Numeric error code for programmatic handling
    """

    def __init__(
        self,
        message: str,
        handle: Optional[int] = None,
        error_code: Optional[int] = None,
        context: Optional[dict[str, Any]] = None
    ) -> None:
        super().__init__(message)
        self.message = message
        self.handle = handle
        self.error_code = error_code or 6000
        self.context = context or {}
        if handle is not None:
            self.context["handle"] = handle

    def __str__(self) -> str:
        return f"[Error {self.error_code}] {self.message}"


class HandleNotFoundError(ResourceException):
    """
    The handle is unknown or has already been closed.

    Example:
        >>> raise HandleNotFoundError(7)
    """

    def __init__(
        self,
        handle: int,
        context: Optional[dict[str, Any]] = None,
        error_code: int = 6001,
        message: Optional[str] = None
    ) -> None:
        super().__init__(
            message=message or f"bad resource id: {handle}",
            handle=handle,
            error_code=error_code,
            context=context
        )


class ResourceKindError(HandleNotFoundError):
    """
    The handle refers to a live resource of a different kind.

    Treated as a missing handle by callers: a line cursor handle is not a
    file handle.
    """

    def __init__(
        self,
        handle: int,
        expected: str,
        actual: str,
        context: Optional[dict[str, Any]] = None
    ) -> None:
        ctx = context or {}
        ctx["expected"] = expected
        ctx["actual"] = actual
        super().__init__(
            handle,
            context=ctx,
            error_code=6002,
            message=f"bad resource id: {handle} (expected {expected}, found {actual})"
        )
        self.expected = expected
        self.actual = actual
