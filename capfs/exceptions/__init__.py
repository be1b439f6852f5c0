"""
capfs Exception Hierarchy

Architecture:
    CoreException
    ├── ConfigLoadError
    └── ConfigValidationError
    FileSystemException
    ├── InvalidPathError
    ├── FileOperationError
    └── EncodingError
    SecurityException
    ├── PathForbiddenError
    └── ScopeConfigError
    ResourceException
    └── HandleNotFoundError
        └── ResourceKindError
"""

from .core_exceptions import (
    CoreException,
    ConfigLoadError,
    ConfigValidationError,
)

from .fs_exceptions import (
    FileSystemException,
    InvalidPathError,
    FileOperationError,
    EncodingError,
)

from .security_exceptions import (
    SecurityException,
    PathForbiddenError,
    ScopeConfigError,
)

from .resource_exceptions import (
    ResourceException,
    HandleNotFoundError,
    ResourceKindError,
)

# Everything an operation may raise on purpose
CAPFS_ERRORS = (
    CoreException,
    FileSystemException,
    SecurityException,
    ResourceException,
)

__all__ = [
    # Core exceptions
    "CoreException",
    "ConfigLoadError",
    "ConfigValidationError",
    # Filesystem exceptions
    "FileSystemException",
    "InvalidPathError",
    "FileOperationError",
    "EncodingError",
    # Security exceptions
    "SecurityException",
    "PathForbiddenError",
    "ScopeConfigError",
    # Resource exceptions
    "ResourceException",
    "HandleNotFoundError",
    "ResourceKindError",
    "CAPFS_ERRORS",
]
