"""
Base Directory Module

Symbolic well-known directories and the resolver contract that maps them
to concrete paths. Directory discovery itself lives outside capfs; the
resolver shipped here only serves an explicit mapping.

Author: YSNRFD
Version: 1.0.0
"""

import os
import threading
from enum import Enum
from typing import Mapping, Optional, Protocol, Union, runtime_checkable

from capfs.exceptions import InvalidPathError


class BaseDirectory(Enum):
    """Well-known directories a relative path may be anchored to."""
    AUDIO = "Audio"
    CACHE = "Cache"
    CONFIG = "Config"
    DATA = "Data"
    LOCAL_DATA = "LocalData"
    DOCUMENT = "Document"
    DOWNLOAD = "Download"
    PICTURE = "Picture"
    PUBLIC = "Public"
    VIDEO = "Video"
    RESOURCE = "Resource"
    TEMP = "Temp"
    APP_CONFIG = "AppConfig"
    APP_DATA = "AppData"
    APP_LOCAL_DATA = "AppLocalData"
    APP_CACHE = "AppCache"
    APP_LOG = "AppLog"
    DESKTOP = "Desktop"
    EXECUTABLE = "Executable"
    FONT = "Font"
    HOME = "Home"
    RUNTIME = "Runtime"
    TEMPLATE = "Template"

    @property
    def variable(self) -> str:
        """Scope pattern variable for this directory, e.g. ``$APPCONFIG``."""
        return "$" + self.value.upper()

    @classmethod
    def parse(cls, value: Union['BaseDirectory', str]) -> 'BaseDirectory':
        """
        Accept an enum member, its value (``"AppConfig"``) or its name
        (``"APP_CONFIG"``).

        Raises:
            InvalidPathError: If the value names no base directory
        """
        if isinstance(value, cls):
            return value
        for member in cls:
            if value in (member.value, member.name):
                return member
        raise InvalidPathError(str(value), reason="unknown base directory")

    @classmethod
    def from_variable(cls, variable: str) -> Optional['BaseDirectory']:
        """Look up the directory for a ``$VARIABLE`` name, case-insensitively."""
        wanted = variable.lstrip("$").upper()
        for member in cls:
            if member.value.upper() == wanted:
                return member
        return None


@runtime_checkable
class BaseDirectoryResolver(Protocol):
    """Maps a symbolic base directory to a concrete absolute path."""

    def resolve(self, directory: BaseDirectory) -> str:
        ...


class MappingBaseDirectoryResolver:
    """
    Resolver backed by an explicit mapping.

    Keys may be ``BaseDirectory`` members or their string values. Unmapped
    directories raise ``InvalidPathError``.

    Example:
        >>> dirs = MappingBaseDirectoryResolver({'Home': '/home/u'})
        >>> dirs.resolve(BaseDirectory.HOME)
        '/home/u'
    """

    def __init__(self, mapping: Optional[Mapping[Union[BaseDirectory, str], str]] = None):
        self._lock = threading.Lock()
        self._directories: dict[BaseDirectory, str] = {}
        for key, path in (mapping or {}).items():
            self.set(key, path)

    def set(self, directory: Union[BaseDirectory, str], path: str) -> None:
        """Map a base directory to an absolute path."""
        member = BaseDirectory.parse(directory)
        if not os.path.isabs(path):
            raise InvalidPathError(path, reason=f"{member.value} must be an absolute path")
        with self._lock:
            self._directories[member] = os.path.normpath(path)

    def resolve(self, directory: BaseDirectory) -> str:
        with self._lock:
            path = self._directories.get(directory)
        if path is None:
            raise InvalidPathError(
                directory.value,
                reason="base directory is not available"
            )
        return path

    def __contains__(self, directory: BaseDirectory) -> bool:
        with self._lock:
            return directory in self._directories
