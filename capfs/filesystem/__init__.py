"""
capfs Filesystem Module

Provides scoped access to the host filesystem:
- Path resolution and base directories
- Scope-gated file and directory operations
- Handle-based file and line cursor resources
- Cross-platform metadata
"""

from .base_directory import BaseDirectory, BaseDirectoryResolver, MappingBaseDirectoryResolver
from .path_resolver import PathResolver, ParsedPath
from .file_info import FileInfo, DirEntry
from .resources import ResourceTable, ResourceKind, Resource, FileResource, LinesResource
from .operations import ScopedFileSystem, OpenOptions, WriteFileOptions, SeekMode

__all__ = [
    # Base directories
    'BaseDirectory',
    'BaseDirectoryResolver',
    'MappingBaseDirectoryResolver',
    # Path Resolver
    'PathResolver',
    'ParsedPath',
    # Metadata
    'FileInfo',
    'DirEntry',
    # Resources
    'ResourceTable',
    'ResourceKind',
    'Resource',
    'FileResource',
    'LinesResource',
    # Operations
    'ScopedFileSystem',
    'OpenOptions',
    'WriteFileOptions',
    'SeekMode',
]
