"""
Scoped File System

Filesystem operations gated by the composite scope.

Every path-taking operation runs the same pipeline:
    resolve -> build composite scope -> admit or reject -> native call

A rejected path raises ``PathForbiddenError`` before anything on disk is
touched. Native failures surface as ``FileOperationError`` carrying the
operation, the attempted path and the OS error text.

Author: YSNRFD
Version: 1.0.0
"""

import errno
import os
import shutil
import stat
from dataclasses import dataclass
from enum import IntEnum
from typing import Any, Optional, List, Tuple, Union

from capfs.core.config_loader import Config, get_config
from capfs.core.subsystem import Subsystem, SubsystemState
from capfs.exceptions import (
    EncodingError,
    FileOperationError,
    PathForbiddenError,
    ScopeConfigError,
)
from capfs.security.matcher import GlobPatternMatcher, PatternMatcher
from capfs.security.scope import AccessContext, CompositeScope, ScopeSource
from .base_directory import BaseDirectory, BaseDirectoryResolver, MappingBaseDirectoryResolver
from .file_info import DirEntry, FileInfo
from .path_resolver import PathResolver, RawPath
from .resources import FileResource, LinesResource, ResourceKind, ResourceTable


BaseDir = Optional[Union[BaseDirectory, str]]
BytesLike = Union[bytes, bytearray, memoryview]


class SeekMode(IntEnum):
    """Reference point for ``seek``."""
    START = 0
    CURRENT = 1
    END = 2


@dataclass
class OpenOptions:
    """
    Flags for ``open``.

    ``create``, ``truncate`` and ``create_new`` need ``write`` or
    ``append``. ``append`` cannot be combined with ``truncate`` unless
    ``create_new`` is set.
    """
    read: bool = True
    write: bool = False
    append: bool = False
    truncate: bool = False
    create: bool = False
    create_new: bool = False
    mode: Optional[int] = None


@dataclass
class WriteFileOptions:
    """Flags for ``write_file`` and ``write_text_file``."""
    append: bool = False
    create: bool = True
    create_new: bool = False
    mode: Optional[int] = None

    def to_open_options(self) -> OpenOptions:
        return OpenOptions(
            read=False,
            write=True,
            append=self.append,
            truncate=not self.append,
            create=self.create,
            create_new=self.create_new,
            mode=self.mode,
        )


def _native_error(e: OSError) -> str:
    """Render an OS error as ``<text> (os error <n>)``."""
    if e.strerror and e.errno is not None:
        return f"{e.strerror} (os error {e.errno})"
    return str(e)


def _io_error(operation: str, action: str, path: Optional[str], e: OSError) -> FileOperationError:
    return FileOperationError(
        f"failed to {action} with error: {_native_error(e)}",
        operation=operation,
        path=path,
        errno=e.errno
    )


def _open_flags(options: OpenOptions) -> Tuple[int, str]:
    """
    Translate open options into ``os.open`` flags and a file mode string.

    Raises:
        OSError: EINVAL for flag combinations the OS would reject
    """
    writable = options.write or options.append

    if not (options.read or writable):
        raise OSError(errno.EINVAL, os.strerror(errno.EINVAL))
    if not writable and (options.truncate or options.create or options.create_new):
        raise OSError(errno.EINVAL, os.strerror(errno.EINVAL))
    if options.append and options.truncate and not options.create_new:
        raise OSError(errno.EINVAL, os.strerror(errno.EINVAL))

    if options.read and writable:
        flags = os.O_RDWR
    elif writable:
        flags = os.O_WRONLY
    else:
        flags = os.O_RDONLY

    if options.append:
        flags |= os.O_APPEND

    if options.create_new:
        flags |= os.O_CREAT | os.O_EXCL
    else:
        if options.create:
            flags |= os.O_CREAT
        if options.truncate:
            flags |= os.O_TRUNC

    flags |= getattr(os, 'O_BINARY', 0) | getattr(os, 'O_CLOEXEC', 0)

    if options.append:
        mode = 'ab+' if options.read else 'ab'
    elif options.read and writable:
        mode = 'rb+'
    elif writable:
        mode = 'wb'
    else:
        mode = 'rb'

    return flags, mode


class ScopedFileSystem(Subsystem):
    """
    Scope-checked access to the host filesystem.

    Open files and line cursors live in a ``ResourceTable``; callers only
    ever see integer handles.

    Example:
        >>> fs = ScopedFileSystem(baseline=ScopeSource(allow=['/srv/data']))
        >>> fs.initialize()
        >>> fs.write_text_file('/srv/data/note.txt', 'hello')
        >>> fs.read_text_file('/srv/data/note.txt')
        'hello'
    """

    def __init__(
        self,
        baseline: Optional[ScopeSource] = None,
        directories: Optional[BaseDirectoryResolver] = None,
        matcher: Optional[PatternMatcher] = None,
        config: Optional[Config] = None
    ):
        super().__init__('filesystem')
        self._baseline = baseline
        self._directories = directories
        self._matcher = matcher or GlobPatternMatcher()
        self._config = config
        self._resources = ResourceTable()
        self._line_buffer_size = 8192
        self._default_dir_mode = 0o777

    def initialize(self) -> None:
        """Build the baseline scope and base directories from configuration."""
        self._logger.info("Initializing scoped filesystem")

        config = self._config or get_config()
        self._line_buffer_size = config.filesystem.line_buffer_size
        self._default_dir_mode = config.filesystem.default_dir_mode & 0o777

        if self._directories is None:
            self._directories = MappingBaseDirectoryResolver(config.base_directories)

        if self._baseline is None:
            self._baseline = ScopeSource(
                allow=config.scope.allow,
                deny=config.scope.deny,
                directories=self._directories
            )

        self.set_state(SubsystemState.INITIALIZED)
        self._logger.info(
            "Scoped filesystem initialized",
            context={'allow': len(self._baseline.snapshot().allow)}
        )

    def start(self) -> None:
        self.set_state(SubsystemState.RUNNING)
        self._logger.info("Scoped filesystem started")

    def stop(self) -> None:
        self._logger.info("Stopping scoped filesystem")
        self.set_state(SubsystemState.STOPPED)

    def cleanup(self) -> None:
        """Close every open handle."""
        closed = self._resources.close_all()
        self._logger.info("Released open handles", context={'count': closed})

    @property
    def baseline(self) -> Optional[ScopeSource]:
        """The process-wide scope, extendable at runtime."""
        return self._baseline

    @property
    def directories(self) -> Optional[BaseDirectoryResolver]:
        return self._directories

    # ------------------------------------------------------------------
    # Scope gate
    # ------------------------------------------------------------------

    def _build_scope(self, context: AccessContext) -> CompositeScope:
        """
        Union the baseline with the caller's grants.

        Raises:
            ScopeConfigError: If a caller pattern names an unresolvable variable
        """
        grants = [
            context.global_grant.expand(self._directories),
            context.command_grant.expand(self._directories),
        ]
        if self._baseline is not None:
            grants.insert(0, self._baseline.snapshot())
        return CompositeScope.from_grants(grants, self._matcher)

    def _authorize(
        self,
        operation: str,
        path: RawPath,
        context: Optional[AccessContext],
        base_dir: BaseDir = None,
        follow_links: bool = True
    ) -> str:
        """
        Resolve ``path`` and admit it, or raise ``PathForbiddenError``.

        The literal path is checked first without touching the disk. The
        canonical location is then checked as well, with the last component
        left alone when ``follow_links`` is False.
        """
        resolved = PathResolver.resolve(path, base_dir, self._directories)
        try:
            scope = self._build_scope(context or AccessContext())
        except ScopeConfigError as e:
            self._logger.warning(
                "Unresolvable scope pattern",
                context={'operation': operation, 'path': resolved, 'error': e.message}
            )
            raise PathForbiddenError(resolved, operation=operation) from e

        if not scope.is_allowed(resolved):
            self._forbidden(operation, resolved)

        if follow_links:
            canonical = os.path.realpath(resolved)
        else:
            parent, name = PathResolver.split(resolved)
            canonical = os.path.join(os.path.realpath(parent), name) if name else resolved

        if canonical != resolved and not scope.is_allowed(canonical):
            self._forbidden(operation, resolved, canonical)

        return resolved

    def _forbidden(self, operation: str, path: str, canonical: Optional[str] = None) -> None:
        context = {'operation': operation, 'path': path}
        if canonical is not None:
            context['canonical'] = canonical
        self._logger.warning("Path forbidden", context=context)
        raise PathForbiddenError(path, operation=operation)

    # ------------------------------------------------------------------
    # Handles
    # ------------------------------------------------------------------

    def _open_resource(self, operation: str, action: str, path: str, options: OpenOptions) -> int:
        try:
            flags, file_mode = _open_flags(options)
            mode = 0o666 if options.mode is None else options.mode
            fd = os.open(path, flags, mode)
        except OSError as e:
            raise _io_error(operation, f"{action} at path: {path}", path, e) from e

        try:
            file = os.fdopen(fd, file_mode, buffering=0)
        except OSError as e:
            os.close(fd)
            raise _io_error(operation, f"{action} at path: {path}", path, e) from e

        return self._resources.add(FileResource(file, path))

    def create(
        self,
        path: RawPath,
        context: Optional[AccessContext] = None,
        base_dir: BaseDir = None
    ) -> int:
        """Create or truncate a file and open it for writing."""
        resolved = self._authorize('create', path, context, base_dir)
        handle = self._open_resource(
            'create', "create file", resolved,
            OpenOptions(read=False, write=True, create=True, truncate=True)
        )
        self._logger.debug("Created file", context={'path': resolved, 'handle': handle})
        return handle

    def open(
        self,
        path: RawPath,
        options: Optional[OpenOptions] = None,
        context: Optional[AccessContext] = None,
        base_dir: BaseDir = None
    ) -> int:
        """
        Open a file and return its handle.

        Raises:
            PathForbiddenError: If the path is out of scope
            FileOperationError: If the flags are invalid or the open fails
        """
        options = options or OpenOptions()
        resolved = self._authorize('open', path, context, base_dir)
        handle = self._open_resource('open', "open file", resolved, options)
        self._logger.debug("Opened file", context={'path': resolved, 'handle': handle})
        return handle

    def close(self, handle: int) -> None:
        """Close a file or line cursor handle."""
        self._resources.close(handle)

    def read(self, handle: int, length: int) -> Tuple[bytes, int]:
        """Read up to ``length`` bytes from the current position."""
        if length < 0:
            raise ValueError(f"read length must not be negative: {length}")

        def _read(resource: FileResource) -> Tuple[bytes, int]:
            try:
                data = resource.file.read(length) or b''
            except OSError as e:
                raise _io_error('read', f"read bytes from file at path: {resource.path}",
                                resource.path, e) from e
            return data, len(data)

        return self._resources.with_resource(handle, ResourceKind.FILE, _read)

    def write(self, handle: int, data: BytesLike) -> int:
        """Write ``data`` at the current position; returns bytes written."""
        def _write(resource: FileResource) -> int:
            try:
                return resource.file.write(data) or 0
            except OSError as e:
                raise _io_error('write', f"write bytes to file at path: {resource.path}",
                                resource.path, e) from e

        return self._resources.with_resource(handle, ResourceKind.FILE, _write)

    def seek(self, handle: int, offset: int, whence: SeekMode = SeekMode.START) -> int:
        """Move the position of an open file; returns the new absolute offset."""
        whence = SeekMode(whence)

        def _seek(resource: FileResource) -> int:
            try:
                return resource.file.seek(offset, int(whence))
            except OSError as e:
                raise _io_error('seek', f"seek file at path: {resource.path}",
                                resource.path, e) from e

        return self._resources.with_resource(handle, ResourceKind.FILE, _seek)

    def fstat(self, handle: int) -> FileInfo:
        def _fstat(resource: FileResource) -> FileInfo:
            try:
                return FileInfo.from_stat(os.fstat(resource.file.fileno()))
            except OSError as e:
                raise _io_error('fstat', f"get metadata of file at path: {resource.path}",
                                resource.path, e) from e

        return self._resources.with_resource(handle, ResourceKind.FILE, _fstat)

    def ftruncate(self, handle: int, length: Optional[int] = None) -> None:
        """Set the length of an open file. The position is left unchanged."""
        def _ftruncate(resource: FileResource) -> None:
            try:
                resource.file.truncate(length or 0)
            except OSError as e:
                raise _io_error('ftruncate', f"truncate file at path: {resource.path}",
                                resource.path, e) from e

        self._resources.with_resource(handle, ResourceKind.FILE, _ftruncate)

    # ------------------------------------------------------------------
    # Whole-file operations
    # ------------------------------------------------------------------

    def read_file(
        self,
        path: RawPath,
        context: Optional[AccessContext] = None,
        base_dir: BaseDir = None
    ) -> bytes:
        resolved = self._authorize('read_file', path, context, base_dir)
        self._logger.debug("Reading file", context={'path': resolved})
        return self._read_bytes('read_file', resolved)

    def _read_bytes(self, operation: str, path: str) -> bytes:
        try:
            file = open(path, 'rb')
        except OSError as e:
            raise _io_error(operation, f"open file at path: {path}", path, e) from e

        with file:
            try:
                return file.read()
            except OSError as e:
                raise _io_error(operation, f"read file at path: {path}", path, e) from e

    def read_text_file(
        self,
        path: RawPath,
        context: Optional[AccessContext] = None,
        base_dir: BaseDir = None
    ) -> str:
        """
        Read a whole file as UTF-8 text.

        Raises:
            EncodingError: If the contents are not valid UTF-8
        """
        resolved = self._authorize('read_text_file', path, context, base_dir)
        self._logger.debug("Reading text file", context={'path': resolved})
        data = self._read_bytes('read_text_file', resolved)
        try:
            return data.decode('utf-8')
        except UnicodeDecodeError as e:
            raise EncodingError(resolved, reason=str(e)) from e

    def read_text_file_lines(
        self,
        path: RawPath,
        context: Optional[AccessContext] = None,
        base_dir: BaseDir = None
    ) -> int:
        """Open a line cursor over a text file and return its handle."""
        resolved = self._authorize('read_text_file_lines', path, context, base_dir)
        try:
            reader = open(resolved, 'rb', buffering=self._line_buffer_size)
        except OSError as e:
            raise _io_error('read_text_file_lines', f"open file at path: {resolved}",
                            resolved, e) from e

        return self._resources.add(LinesResource(reader, resolved))

    def read_text_file_lines_next(self, handle: int) -> Tuple[Optional[str], bool]:
        """
        Advance a line cursor.

        Returns ``(line, False)`` while lines remain. At end of input the
        cursor closes itself and ``(None, True)`` is returned; the handle
        is invalid from then on.
        """
        def _next(resource: LinesResource) -> Tuple[Optional[str], bool]:
            try:
                line = resource.next_line()
            except OSError as e:
                raise _io_error('read_text_file_lines_next',
                                f"read file at path: {resource.path}", resource.path, e) from e

            if line is None:
                self._resources.discard(handle)
                return None, True

            try:
                return line.decode('utf-8'), False
            except UnicodeDecodeError as e:
                raise EncodingError(resource.path, reason=str(e)) from e

        return self._resources.with_resource(handle, ResourceKind.LINES, _next)

    def write_file(
        self,
        path: RawPath,
        data: BytesLike,
        options: Optional[WriteFileOptions] = None,
        context: Optional[AccessContext] = None,
        base_dir: BaseDir = None
    ) -> None:
        """
        Write ``data`` to a file.

        Defaults create the file and truncate it. ``append`` keeps the
        existing contents, ``create_new`` fails when the file exists and
        ``create=False`` fails when it does not.
        """
        options = options or WriteFileOptions()
        resolved = self._authorize('write_file', path, context, base_dir)
        self._write_bytes('write_file', resolved, data, options)

    def write_text_file(
        self,
        path: RawPath,
        text: str,
        options: Optional[WriteFileOptions] = None,
        context: Optional[AccessContext] = None,
        base_dir: BaseDir = None
    ) -> None:
        """Write ``text`` to a file as UTF-8."""
        options = options or WriteFileOptions()
        resolved = self._authorize('write_text_file', path, context, base_dir)
        self._write_bytes('write_text_file', resolved, text.encode('utf-8'), options)

    def _write_bytes(
        self,
        operation: str,
        path: str,
        data: BytesLike,
        options: WriteFileOptions
    ) -> None:
        open_options = options.to_open_options()
        try:
            flags, file_mode = _open_flags(open_options)
            mode = 0o666 if open_options.mode is None else open_options.mode
            fd = os.open(path, flags, mode)
        except OSError as e:
            raise _io_error(operation, f"open file at path: {path}", path, e) from e

        try:
            with os.fdopen(fd, file_mode) as file:
                file.write(data)
        except OSError as e:
            raise _io_error(operation, f"write bytes to file at path: {path}", path, e) from e

        self._logger.debug(
            "Wrote file",
            context={'path': path, 'bytes': len(data), 'append': options.append}
        )

    def truncate(
        self,
        path: RawPath,
        length: Optional[int] = None,
        context: Optional[AccessContext] = None,
        base_dir: BaseDir = None
    ) -> None:
        """Set the length of a file, 0 by default."""
        resolved = self._authorize('truncate', path, context, base_dir)
        try:
            os.truncate(resolved, length or 0)
        except OSError as e:
            raise _io_error('truncate', f"truncate file at path: {resolved}", resolved, e) from e
        self._logger.debug("Truncated file", context={'path': resolved, 'length': length or 0})

    def copy_file(
        self,
        from_path: RawPath,
        to_path: RawPath,
        context: Optional[AccessContext] = None,
        from_base_dir: BaseDir = None,
        to_base_dir: BaseDir = None
    ) -> int:
        """
        Copy contents and permission bits of one file to another.

        Both paths are admitted before anything is read or written.

        Returns:
            Number of bytes copied
        """
        source = self._authorize('copy_file', from_path, context, from_base_dir)
        target = self._authorize('copy_file', to_path, context, to_base_dir)

        try:
            shutil.copyfile(source, target)
            shutil.copymode(source, target)
            copied = os.stat(target).st_size
        except OSError as e:
            raise _io_error(
                'copy_file',
                f"copy file from path: {source}, to path: {target}",
                source, e
            ) from e

        self._logger.debug(
            "Copied file",
            context={'from': source, 'to': target, 'bytes': copied}
        )
        return copied

    # ------------------------------------------------------------------
    # Directories and metadata
    # ------------------------------------------------------------------

    def mkdir(
        self,
        path: RawPath,
        recursive: bool = False,
        mode: Optional[int] = None,
        context: Optional[AccessContext] = None,
        base_dir: BaseDir = None
    ) -> None:
        """
        Create a directory.

        With ``recursive`` missing parents are created and an existing
        directory is not an error.
        """
        resolved = self._authorize('mkdir', path, context, base_dir)
        dir_mode = (self._default_dir_mode if mode is None else mode) & 0o777

        try:
            if recursive:
                os.makedirs(resolved, dir_mode, exist_ok=True)
            else:
                os.mkdir(resolved, dir_mode)
        except OSError as e:
            raise _io_error('mkdir', f"create directory at path: {resolved}", resolved, e) from e

        self._logger.debug("Created directory", context={'path': resolved, 'recursive': recursive})

    def read_dir(
        self,
        path: RawPath,
        context: Optional[AccessContext] = None,
        base_dir: BaseDir = None
    ) -> List[DirEntry]:
        """
        List a directory.

        ``is_directory`` and ``is_file`` follow links; ``is_symlink`` does
        not. A dangling link is reported as a symlink that is neither.
        """
        resolved = self._authorize('read_dir', path, context, base_dir)

        entries = []
        try:
            with os.scandir(resolved) as it:
                for entry in it:
                    entries.append(DirEntry(
                        name=entry.name,
                        is_directory=entry.is_dir(),
                        is_file=entry.is_file(),
                        is_symlink=entry.is_symlink(),
                    ))
        except OSError as e:
            raise _io_error('read_dir', f"read directory at path: {resolved}", resolved, e) from e

        self._logger.debug("Read directory", context={'path': resolved, 'entries': len(entries)})
        return entries

    def remove(
        self,
        path: RawPath,
        recursive: bool = False,
        context: Optional[AccessContext] = None,
        base_dir: BaseDir = None
    ) -> None:
        """
        Remove a file, link or directory.

        A link is removed itself, never its target. A directory must be
        empty unless ``recursive`` is set.
        """
        resolved = self._authorize('remove', path, context, base_dir, follow_links=False)

        try:
            st = os.lstat(resolved)
        except OSError as e:
            raise _io_error('remove', f"get metadata of path: {resolved}", resolved, e) from e

        try:
            if stat.S_ISREG(st.st_mode):
                os.unlink(resolved)
            elif stat.S_ISLNK(st.st_mode):
                attributes = getattr(st, 'st_file_attributes', 0)
                if os.name == 'nt' and attributes & stat.FILE_ATTRIBUTE_DIRECTORY:
                    os.rmdir(resolved)
                else:
                    os.unlink(resolved)
            elif stat.S_ISDIR(st.st_mode):
                if recursive:
                    shutil.rmtree(resolved)
                else:
                    os.rmdir(resolved)
            else:
                os.unlink(resolved)
        except OSError as e:
            raise _io_error('remove', f"remove path: {resolved}", resolved, e) from e

        self._logger.debug("Removed path", context={'path': resolved, 'recursive': recursive})

    def rename(
        self,
        old_path: RawPath,
        new_path: RawPath,
        context: Optional[AccessContext] = None,
        old_base_dir: BaseDir = None,
        new_base_dir: BaseDir = None
    ) -> None:
        """Move ``old_path`` to ``new_path``, replacing any existing target."""
        source = self._authorize('rename', old_path, context, old_base_dir, follow_links=False)
        target = self._authorize('rename', new_path, context, new_base_dir, follow_links=False)

        try:
            os.replace(source, target)
        except OSError as e:
            raise _io_error(
                'rename',
                f"rename old path: {source} to new path: {target}",
                source, e
            ) from e

        self._logger.debug("Renamed path", context={'from': source, 'to': target})

    def stat(
        self,
        path: RawPath,
        context: Optional[AccessContext] = None,
        base_dir: BaseDir = None
    ) -> FileInfo:
        """Metadata of the path, following links."""
        resolved = self._authorize('stat', path, context, base_dir)
        try:
            return FileInfo.from_stat(os.stat(resolved))
        except OSError as e:
            raise _io_error('stat', f"get metadata of path: {resolved}", resolved, e) from e

    def lstat(
        self,
        path: RawPath,
        context: Optional[AccessContext] = None,
        base_dir: BaseDir = None
    ) -> FileInfo:
        """Metadata of the path itself, not following a final link."""
        resolved = self._authorize('lstat', path, context, base_dir, follow_links=False)
        try:
            return FileInfo.from_stat(os.lstat(resolved))
        except OSError as e:
            raise _io_error('lstat', f"get metadata of path: {resolved}", resolved, e) from e

    def exists(
        self,
        path: RawPath,
        context: Optional[AccessContext] = None,
        base_dir: BaseDir = None
    ) -> bool:
        """
        Check whether a path exists.

        Only a missing path yields False; other failures still raise.
        """
        resolved = self._authorize('exists', path, context, base_dir)
        try:
            os.stat(resolved)
        except (FileNotFoundError, NotADirectoryError):
            return False
        except OSError as e:
            raise _io_error('exists', f"get metadata of path: {resolved}", resolved, e) from e
        return True

    def get_stats(self) -> dict[str, Any]:
        """Get filesystem statistics."""
        stats = self._resources.get_stats()
        stats['state'] = self._state.name
        if self._baseline is not None:
            snapshot = self._baseline.snapshot()
            stats['baseline_allow'] = len(snapshot.allow)
            stats['baseline_deny'] = len(snapshot.deny)
        return stats
