"""
Command Dispatcher Module

Routes named commands to the scoped filesystem and turns every outcome
into a ``CommandResult``.

Author: YSNRFD
Version: 1.0.0
"""

from dataclasses import dataclass
from typing import Any, Callable, Optional

from .command_table import CommandName, HANDLE_COMMANDS
from capfs.core.subsystem import Subsystem, SubsystemState
from capfs.exceptions import CAPFS_ERRORS
from capfs.filesystem.operations import (
    OpenOptions,
    ScopedFileSystem,
    SeekMode,
    WriteFileOptions,
)
from capfs.security.scope import AccessContext


@dataclass
class CommandResult:
    """Result of a command."""
    success: bool
    return_value: Any
    error: Optional[str] = None
    error_code: int = 0


def _options(args: dict[str, Any]) -> dict[str, Any]:
    return args.get('options') or {}


def _bytes(data: Any) -> bytes:
    """Accept raw bytes or a list of byte values."""
    if isinstance(data, (bytes, bytearray, memoryview)):
        return bytes(data)
    if isinstance(data, list):
        return bytes(data)
    raise TypeError(f"expected bytes, got {type(data).__name__}")


def _write_options(options: dict[str, Any]) -> WriteFileOptions:
    return WriteFileOptions(
        append=options.get('append', False),
        create=options.get('create', True),
        create_new=options.get('createNew', False),
        mode=options.get('mode'),
    )


class CommandDispatcher(Subsystem):
    """
    Command Dispatcher.

    Handles command routing and execution. Arguments use the camelCase
    names of the wire API; per-command flags travel under ``options``.

    Example:
        >>> dispatcher = CommandDispatcher(fs)
        >>> dispatcher.initialize()
        >>> result = dispatcher.dispatch({
        ...     'command': 'read_text_file',
        ...     'args': {'path': 'notes.txt', 'options': {'baseDir': 'Document'}},
        ...     'context': AccessContext.of(allow=['$DOCUMENT']),
        ... })
    """

    def __init__(self, filesystem: ScopedFileSystem):
        super().__init__('commands')
        self._fs = filesystem
        self._handlers: dict[CommandName, Callable[[dict[str, Any], AccessContext], Any]] = {}

    def initialize(self) -> None:
        """Initialize the command dispatcher."""
        self._register_handlers()
        self.set_state(SubsystemState.INITIALIZED)
        self._logger.info("Command dispatcher initialized", context={'commands': len(self._handlers)})

    def _register_handlers(self) -> None:
        """Register all command handlers."""
        self._handlers = {
            CommandName.CREATE: self._cmd_create,
            CommandName.OPEN: self._cmd_open,
            CommandName.CLOSE: self._cmd_close,
            CommandName.READ: self._cmd_read,
            CommandName.WRITE: self._cmd_write,
            CommandName.SEEK: self._cmd_seek,
            CommandName.FSTAT: self._cmd_fstat,
            CommandName.FTRUNCATE: self._cmd_ftruncate,
            CommandName.READ_FILE: self._cmd_read_file,
            CommandName.READ_TEXT_FILE: self._cmd_read_text_file,
            CommandName.READ_TEXT_FILE_LINES: self._cmd_read_text_file_lines,
            CommandName.READ_TEXT_FILE_LINES_NEXT: self._cmd_read_text_file_lines_next,
            CommandName.WRITE_FILE: self._cmd_write_file,
            CommandName.WRITE_TEXT_FILE: self._cmd_write_text_file,
            CommandName.TRUNCATE: self._cmd_truncate,
            CommandName.COPY_FILE: self._cmd_copy_file,
            CommandName.MKDIR: self._cmd_mkdir,
            CommandName.READ_DIR: self._cmd_read_dir,
            CommandName.REMOVE: self._cmd_remove,
            CommandName.RENAME: self._cmd_rename,
            CommandName.STAT: self._cmd_stat,
            CommandName.LSTAT: self._cmd_lstat,
            CommandName.EXISTS: self._cmd_exists,
        }

    def stop(self) -> None:
        """Stop the dispatcher."""
        self.set_state(SubsystemState.STOPPED)

    def dispatch(self, call: dict[str, Any]) -> CommandResult:
        """
        Dispatch a command.

        Args:
            call: Dict with 'command', 'args' and an optional 'context'
                (an ``AccessContext``)

        Returns:
            CommandResult
        """
        name = call.get('command')
        args = call.get('args') or {}
        context = call.get('context') or AccessContext()

        try:
            command = CommandName(name)
        except ValueError:
            return CommandResult(
                success=False,
                return_value=None,
                error=f"unknown command: {name}",
                error_code=404
            )

        handler = self._handlers.get(command)
        if handler is None:
            return CommandResult(
                success=False,
                return_value=None,
                error=f"command not registered: {name}",
                error_code=404
            )

        log_context = {'command': command.value}
        if command in HANDLE_COMMANDS and 'rid' in args:
            log_context['rid'] = args['rid']
        elif 'path' in args:
            log_context['path'] = args['path']
        self._logger.debug(f"Command: {command.value}", context=log_context)

        try:
            return CommandResult(success=True, return_value=handler(args, context))

        except CAPFS_ERRORS as e:
            self._logger.error(
                f"Command error: {command.value}",
                context={'error': e.message, 'error_code': e.error_code}
            )
            return CommandResult(
                success=False,
                return_value=None,
                error=e.message,
                error_code=e.error_code
            )

        except (KeyError, TypeError, ValueError) as e:
            self._logger.error(
                f"Invalid arguments: {command.value}",
                context={'error': str(e)}
            )
            return CommandResult(
                success=False,
                return_value=None,
                error=f"invalid args for command {command.value}: {e}",
                error_code=400
            )

    # Command implementations

    def _cmd_create(self, args: dict[str, Any], context: AccessContext) -> int:
        """create(path, {baseDir}) -> rid"""
        return self._fs.create(args['path'], context, _options(args).get('baseDir'))

    def _cmd_open(self, args: dict[str, Any], context: AccessContext) -> int:
        """open(path, {read, write, append, truncate, create, createNew, mode, baseDir}) -> rid"""
        options = _options(args)
        open_options = OpenOptions(
            read=options.get('read', True),
            write=options.get('write', False),
            append=options.get('append', False),
            truncate=options.get('truncate', False),
            create=options.get('create', False),
            create_new=options.get('createNew', False),
            mode=options.get('mode'),
        )
        return self._fs.open(args['path'], open_options, context, options.get('baseDir'))

    def _cmd_close(self, args: dict[str, Any], context: AccessContext) -> None:
        """close(rid)"""
        self._fs.close(args['rid'])

    def _cmd_read(self, args: dict[str, Any], context: AccessContext) -> list:
        """read(rid, len) -> [data, nread]"""
        data, nread = self._fs.read(args['rid'], args['len'])
        return [data, nread]

    def _cmd_write(self, args: dict[str, Any], context: AccessContext) -> int:
        """write(rid, data) -> nwritten"""
        return self._fs.write(args['rid'], _bytes(args['data']))

    def _cmd_seek(self, args: dict[str, Any], context: AccessContext) -> int:
        """seek(rid, offset, whence) -> position"""
        return self._fs.seek(args['rid'], args['offset'], SeekMode(args.get('whence', 0)))

    def _cmd_fstat(self, args: dict[str, Any], context: AccessContext) -> dict[str, Any]:
        """fstat(rid) -> FileInfo"""
        return self._fs.fstat(args['rid']).to_dict()

    def _cmd_ftruncate(self, args: dict[str, Any], context: AccessContext) -> None:
        """ftruncate(rid, len)"""
        self._fs.ftruncate(args['rid'], args.get('len'))

    def _cmd_read_file(self, args: dict[str, Any], context: AccessContext) -> bytes:
        """readFile(path, {baseDir}) -> bytes"""
        return self._fs.read_file(args['path'], context, _options(args).get('baseDir'))

    def _cmd_read_text_file(self, args: dict[str, Any], context: AccessContext) -> str:
        """readTextFile(path, {baseDir}) -> str"""
        return self._fs.read_text_file(args['path'], context, _options(args).get('baseDir'))

    def _cmd_read_text_file_lines(self, args: dict[str, Any], context: AccessContext) -> int:
        """readTextFileLines(path, {baseDir}) -> rid"""
        return self._fs.read_text_file_lines(args['path'], context, _options(args).get('baseDir'))

    def _cmd_read_text_file_lines_next(self, args: dict[str, Any], context: AccessContext) -> list:
        """lines.next(rid) -> [line, done]"""
        line, done = self._fs.read_text_file_lines_next(args['rid'])
        return [line, done]

    def _cmd_write_file(self, args: dict[str, Any], context: AccessContext) -> None:
        """writeFile(path, data, {append, create, createNew, mode, baseDir})"""
        options = _options(args)
        self._fs.write_file(
            args['path'], _bytes(args['data']), _write_options(options),
            context, options.get('baseDir')
        )

    def _cmd_write_text_file(self, args: dict[str, Any], context: AccessContext) -> None:
        """writeTextFile(path, data, {append, create, createNew, mode, baseDir})"""
        options = _options(args)
        data = args['data']
        if not isinstance(data, str):
            raise TypeError(f"expected str, got {type(data).__name__}")
        self._fs.write_text_file(
            args['path'], data, _write_options(options),
            context, options.get('baseDir')
        )

    def _cmd_truncate(self, args: dict[str, Any], context: AccessContext) -> None:
        """truncate(path, len, {baseDir})"""
        self._fs.truncate(args['path'], args.get('len'), context, _options(args).get('baseDir'))

    def _cmd_copy_file(self, args: dict[str, Any], context: AccessContext) -> int:
        """copyFile(fromPath, toPath, {fromPathBaseDir, toPathBaseDir}) -> bytes copied"""
        options = _options(args)
        return self._fs.copy_file(
            args['fromPath'], args['toPath'], context,
            options.get('fromPathBaseDir'), options.get('toPathBaseDir')
        )

    def _cmd_mkdir(self, args: dict[str, Any], context: AccessContext) -> None:
        """mkdir(path, {recursive, mode, baseDir})"""
        options = _options(args)
        self._fs.mkdir(
            args['path'], options.get('recursive', False), options.get('mode'),
            context, options.get('baseDir')
        )

    def _cmd_read_dir(self, args: dict[str, Any], context: AccessContext) -> list:
        """readDir(path, {baseDir}) -> [DirEntry]"""
        entries = self._fs.read_dir(args['path'], context, _options(args).get('baseDir'))
        return [entry.to_dict() for entry in entries]

    def _cmd_remove(self, args: dict[str, Any], context: AccessContext) -> None:
        """remove(path, {recursive, baseDir})"""
        options = _options(args)
        self._fs.remove(args['path'], options.get('recursive', False), context, options.get('baseDir'))

    def _cmd_rename(self, args: dict[str, Any], context: AccessContext) -> None:
        """rename(oldPath, newPath, {oldPathBaseDir, newPathBaseDir})"""
        options = _options(args)
        self._fs.rename(
            args['oldPath'], args['newPath'], context,
            options.get('oldPathBaseDir'), options.get('newPathBaseDir')
        )

    def _cmd_stat(self, args: dict[str, Any], context: AccessContext) -> dict[str, Any]:
        """stat(path, {baseDir}) -> FileInfo"""
        return self._fs.stat(args['path'], context, _options(args).get('baseDir')).to_dict()

    def _cmd_lstat(self, args: dict[str, Any], context: AccessContext) -> dict[str, Any]:
        """lstat(path, {baseDir}) -> FileInfo"""
        return self._fs.lstat(args['path'], context, _options(args).get('baseDir')).to_dict()

    def _cmd_exists(self, args: dict[str, Any], context: AccessContext) -> bool:
        """exists(path, {baseDir}) -> bool"""
        return self._fs.exists(args['path'], context, _options(args).get('baseDir'))
