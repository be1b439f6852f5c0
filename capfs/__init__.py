"""
capfs - Capability-Scoped Filesystem Access Layer

Every filesystem operation is checked against layered allow/deny scopes
before it touches the disk. Open files are exposed only as integer
handles.
"""

__version__ = "1.0.0"
__author__ = "YSNRFD"

# filesystem must load before security: the scope module imports
# capfs.filesystem.base_directory
from .filesystem import (
    ScopedFileSystem,
    OpenOptions,
    WriteFileOptions,
    SeekMode,
    FileInfo,
    DirEntry,
    BaseDirectory,
    MappingBaseDirectoryResolver,
)
from .security import AccessContext, ScopeSource, CompositeScope, GlobPatternMatcher
from .commands import CommandDispatcher, CommandResult
from .bootstrap import create_filesystem, create_dispatcher

__all__ = [
    'ScopedFileSystem',
    'OpenOptions',
    'WriteFileOptions',
    'SeekMode',
    'FileInfo',
    'DirEntry',
    'BaseDirectory',
    'MappingBaseDirectoryResolver',
    'AccessContext',
    'ScopeSource',
    'CompositeScope',
    'GlobPatternMatcher',
    'CommandDispatcher',
    'CommandResult',
    'create_filesystem',
    'create_dispatcher',
]
