"""
Command Table Module

Names of the commands the dispatcher accepts.

Author: YSNRFD
Version: 1.0.0
"""

from enum import Enum


class CommandName(str, Enum):
    """Command names as they appear on the wire."""
    # Handles
    CREATE = "create"
    OPEN = "open"
    CLOSE = "close"
    READ = "read"
    WRITE = "write"
    SEEK = "seek"
    FSTAT = "fstat"
    FTRUNCATE = "ftruncate"

    # Whole files
    READ_FILE = "read_file"
    READ_TEXT_FILE = "read_text_file"
    READ_TEXT_FILE_LINES = "read_text_file_lines"
    READ_TEXT_FILE_LINES_NEXT = "read_text_file_lines_next"
    WRITE_FILE = "write_file"
    WRITE_TEXT_FILE = "write_text_file"
    TRUNCATE = "truncate"
    COPY_FILE = "copy_file"

    # Directories and metadata
    MKDIR = "mkdir"
    READ_DIR = "read_dir"
    REMOVE = "remove"
    RENAME = "rename"
    STAT = "stat"
    LSTAT = "lstat"
    EXISTS = "exists"


# Commands that allocate or consume a resource handle
HANDLE_COMMANDS = frozenset({
    CommandName.CREATE,
    CommandName.OPEN,
    CommandName.CLOSE,
    CommandName.READ,
    CommandName.WRITE,
    CommandName.SEEK,
    CommandName.FSTAT,
    CommandName.FTRUNCATE,
    CommandName.READ_TEXT_FILE_LINES,
    CommandName.READ_TEXT_FILE_LINES_NEXT,
})
