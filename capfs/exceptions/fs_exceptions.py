"""
Filesystem Exceptions

Exceptions raised while resolving paths and performing native file
operations.

Author: YSNRFD
Version: 1.0.0
"""

from typing import Optional, Any


class FileSystemException(Exception):
    """
    Base exception for all filesystem-related errors.

    Attributes:
        message: Human-readable error description
        path: File path associated with the error (if applicable)
        error_code: Numeric error code for programmatic handling
    """

    def __init__(
        self,
        message: str,
        path: Optional[str] = None,
        error_code: Optional[int] = None,
        context: Optional[dict[str, Any]] = None
    ) -> None:
        super().__init__(message)
        self.message = message
        self.path = path
        self.error_code = error_code or 4000
        self.context = context or {}
        if path:
            self.context["path"] = path

    def __str__(self) -> str:
        return f"[Error {self.error_code}] {self.message}"


class InvalidPathError(FileSystemException):
    """
    The raw path could not be turned into a filesystem path.

    Raised for malformed ``file:`` URLs, parent-directory traversal in the
    raw input, and base directories the resolver does not know.

    Example:
        >>> raise InvalidPathError("file://host/x", reason="unsupported host")
    """

    def __init__(
        self,
        path: str,
        reason: Optional[str] = None,
        context: Optional[dict[str, Any]] = None
    ) -> None:
        ctx = context or {}
        if reason:
            ctx["reason"] = reason
        message = f"invalid path: {path}"
        if reason:
            message = f"{message} ({reason})"
        super().__init__(
            message=message,
            path=path,
            error_code=4101,
            context=ctx
        )
        self.reason = reason


class FileOperationError(FileSystemException):
    """
    A native filesystem call failed.

    The message names the operation, the attempted path and the native
    error text, e.g.
    ``failed to open file at path: /tmp/x with error: No such file or directory (os error 2)``.
    """

    def __init__(
        self,
        message: str,
        operation: str,
        path: Optional[str] = None,
        errno: Optional[int] = None,
        context: Optional[dict[str, Any]] = None
    ) -> None:
        ctx = context or {}
        ctx["operation"] = operation
        if errno is not None:
            ctx["errno"] = errno
        super().__init__(
            message=message,
            path=path,
            error_code=4102,
            context=ctx
        )
        self.operation = operation
        self.errno = errno


class EncodingError(FileSystemException):
    """
    File contents are not valid UTF-8 text.

    Example:
        >>> raise EncodingError("/tmp/image.png")
    """

    def __init__(
        self,
        path: str,
        reason: Optional[str] = None,
        context: Optional[dict[str, Any]] = None
    ) -> None:
        ctx = context or {}
        if reason:
            ctx["reason"] = reason
        super().__init__(
            message=f"failed to read file as text at path: {path} with error: "
                    f"stream did not contain valid UTF-8",
            path=path,
            error_code=4103,
            context=ctx
        )
        self.reason = reason
