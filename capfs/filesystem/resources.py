"""
Resource Table Module

Owns every open file and line cursor and hands out integer handles.

Resources never leave the table: callers pass a handle and a function, and
the table runs the function under that resource's lock. The table lock
only guards the handle index, so work on different handles runs in
parallel while calls on the same handle are serialized.

Author: YSNRFD
Version: 1.0.0
"""

import threading
from abc import ABC, abstractmethod
from enum import Enum
from typing import Any, BinaryIO, Callable, Optional, List, TypeVar

from capfs.exceptions import HandleNotFoundError, ResourceKindError
from capfs.logger import get_logger


T = TypeVar('T')


class ResourceKind(Enum):
    """Kinds of resources the table can hold."""
    FILE = "file"
    LINES = "lines"


class Resource(ABC):
    """
    A table-owned resource.

    The lock is re-entrant so a line cursor can close its own handle while
    its lock is held.
    """

    kind: ResourceKind

    def __init__(self, path: str):
        self.path = path
        self.lock = threading.RLock()
        self.closed = False

    def close(self) -> bool:
        """Release the OS descriptor. Returns False if already closed."""
        with self.lock:
            if self.closed:
                return False
            self.closed = True
            self._release()
            return True

    @abstractmethod
    def _release(self) -> None:
        ...


class FileResource(Resource):
    """A random-access byte stream with a current position."""

    kind = ResourceKind.FILE

    def __init__(self, file: BinaryIO, path: str):
        super().__init__(path)
        self.file = file

    def _release(self) -> None:
        self.file.close()


class LinesResource(Resource):
    """A forward-only cursor over the lines of one open file."""

    kind = ResourceKind.LINES

    def __init__(self, reader: BinaryIO, path: str):
        super().__init__(path)
        self.reader = reader

    def next_line(self) -> Optional[bytes]:
        """
        Read the next line without its terminator.

        ``\\n`` ends a line and a single ``\\r`` before it is dropped.
        Returns None at end of input.
        """
        line = self.reader.readline()
        if not line:
            return None
        if line.endswith(b'\n'):
            line = line[:-1]
            if line.endswith(b'\r'):
                line = line[:-1]
        return line

    def _release(self) -> None:
        self.reader.close()


class ResourceTable:
    """
    Handle table for open resources.

    Handles start at 1 and are never reissued.

    Example:
        >>> table = ResourceTable()
        >>> rid = table.add(FileResource(open('/tmp/x', 'rb'), '/tmp/x'))
        >>> table.with_resource(rid, ResourceKind.FILE, lambda r: r.file.read(4))
        >>> table.close(rid)
    """

    def __init__(self):
        self._resources: dict[int, Resource] = {}
        self._next_handle = 1
        self._lock = threading.Lock()
        self._logger = get_logger('resources')

    def add(self, resource: Resource) -> int:
        """Register a resource and return its new handle."""
        with self._lock:
            handle = self._next_handle
            self._next_handle += 1
            self._resources[handle] = resource

        self._logger.debug(
            "Resource opened",
            context={'handle': handle, 'kind': resource.kind.value, 'path': resource.path}
        )
        return handle

    def _lookup(self, handle: int, kind: Optional[ResourceKind]) -> Resource:
        with self._lock:
            resource = self._resources.get(handle)

        if resource is None:
            raise HandleNotFoundError(handle)
        if kind is not None and resource.kind is not kind:
            raise ResourceKindError(handle, expected=kind.value, actual=resource.kind.value)
        return resource

    def with_resource(
        self,
        handle: int,
        kind: Optional[ResourceKind],
        fn: Callable[[Any], T]
    ) -> T:
        """
        Run ``fn(resource)`` under the resource's exclusive lock.

        Raises:
            HandleNotFoundError: If the handle is unknown or closed
            ResourceKindError: If the handle names a different kind
        """
        resource = self._lookup(handle, kind)
        with resource.lock:
            # Closed by another caller between lookup and lock
            if resource.closed:
                raise HandleNotFoundError(handle)
            return fn(resource)

    def close(self, handle: int) -> None:
        """
        Remove a resource and release its descriptor.

        Raises:
            HandleNotFoundError: If the handle is unknown or already closed
        """
        if not self.discard(handle):
            raise HandleNotFoundError(handle)

    def discard(self, handle: int) -> bool:
        """Close a handle if it is open. Returns whether anything was closed."""
        with self._lock:
            resource = self._resources.pop(handle, None)

        if resource is None:
            return False

        resource.close()
        self._logger.debug(
            "Resource closed",
            context={'handle': handle, 'kind': resource.kind.value}
        )
        return True

    def has(self, handle: int) -> bool:
        with self._lock:
            return handle in self._resources

    def entries(self) -> List[dict[str, Any]]:
        """List open handles with their kind and path."""
        with self._lock:
            items = list(self._resources.items())

        return [
            {'handle': handle, 'kind': resource.kind.value, 'path': resource.path}
            for handle, resource in sorted(items)
        ]

    def close_all(self) -> int:
        """Close every open handle. Returns the number closed."""
        with self._lock:
            resources = list(self._resources.values())
            self._resources.clear()

        closed = 0
        for resource in resources:
            try:
                if resource.close():
                    closed += 1
            except OSError as e:
                self._logger.error(
                    "Failed to release resource",
                    context={'path': resource.path, 'error': str(e)}
                )
        return closed

    def get_stats(self) -> dict[str, Any]:
        """Get resource table statistics."""
        with self._lock:
            kinds = [resource.kind for resource in self._resources.values()]
            issued = self._next_handle - 1

        return {
            'open_handles': len(kinds),
            'open_files': kinds.count(ResourceKind.FILE),
            'open_line_cursors': kinds.count(ResourceKind.LINES),
            'handles_issued': issued,
        }

    def __len__(self) -> int:
        with self._lock:
            return len(self._resources)
