"""
File Info Module

Cross-platform metadata snapshots built from ``os.stat_result``.

Fields that do not apply on the current platform are ``None``, never
zero: ``file_attributes`` exists only on Windows, the inode-level fields
(``dev``, ``ino``, ``mode``, ...) only on Unix.

Author: YSNRFD
Version: 1.0.0
"""

import os
import stat
from dataclasses import dataclass
from typing import Optional, Any


def _to_msec(ns: int) -> int:
    # Pre-epoch times are reported as their distance from the epoch
    return abs(ns) // 1_000_000


def _birthtime_msec(st: os.stat_result) -> Optional[int]:
    birth_ns = getattr(st, 'st_birthtime_ns', None)
    if birth_ns is not None:
        return _to_msec(birth_ns)

    birth = getattr(st, 'st_birthtime', None)
    if birth is not None:
        return _to_msec(int(birth * 1_000_000_000))

    if os.name == 'nt':
        # st_ctime is the creation time on Windows
        return _to_msec(st.st_ctime_ns)

    return None


def _is_readonly(st: os.stat_result) -> bool:
    attributes = getattr(st, 'st_file_attributes', None)
    if attributes is not None:
        return bool(attributes & stat.FILE_ATTRIBUTE_READONLY)
    return st.st_mode & 0o222 == 0


@dataclass(frozen=True)
class FileInfo:
    """
    Metadata snapshot of a file, directory or link.

    Timestamps are integer milliseconds since the Unix epoch.

    Example:
        >>> info = FileInfo.from_stat(os.stat('/etc/hostname'))
        >>> info.is_file
        True
    """
    is_file: bool
    is_directory: bool
    is_symlink: bool
    size: int
    mtime: Optional[int] = None
    atime: Optional[int] = None
    birthtime: Optional[int] = None
    readonly: bool = False
    file_attributes: Optional[int] = None
    dev: Optional[int] = None
    ino: Optional[int] = None
    mode: Optional[int] = None
    nlink: Optional[int] = None
    uid: Optional[int] = None
    gid: Optional[int] = None
    rdev: Optional[int] = None
    blksize: Optional[int] = None
    blocks: Optional[int] = None

    @classmethod
    def from_stat(cls, st: os.stat_result) -> 'FileInfo':
        """Normalize a native stat result."""
        unix: dict[str, Optional[int]] = {}
        if os.name == 'posix':
            unix = {
                'dev': st.st_dev,
                'ino': st.st_ino,
                'mode': st.st_mode,
                'nlink': st.st_nlink,
                'uid': st.st_uid,
                'gid': st.st_gid,
                'rdev': getattr(st, 'st_rdev', None),
                'blksize': getattr(st, 'st_blksize', None),
                'blocks': getattr(st, 'st_blocks', None),
            }

        return cls(
            is_file=stat.S_ISREG(st.st_mode),
            is_directory=stat.S_ISDIR(st.st_mode),
            is_symlink=stat.S_ISLNK(st.st_mode),
            size=st.st_size,
            mtime=_to_msec(st.st_mtime_ns),
            atime=_to_msec(st.st_atime_ns),
            birthtime=_birthtime_msec(st),
            readonly=_is_readonly(st),
            file_attributes=getattr(st, 'st_file_attributes', None) if os.name == 'nt' else None,
            **unix
        )

    def to_dict(self) -> dict[str, Any]:
        """Render the wire shape consumed by callers."""
        return {
            'isFile': self.is_file,
            'isDirectory': self.is_directory,
            'isSymlink': self.is_symlink,
            'size': self.size,
            'mtime': self.mtime,
            'atime': self.atime,
            'birthtime': self.birthtime,
            'readonly': self.readonly,
            'fileAttributes': self.file_attributes,
            'dev': self.dev,
            'ino': self.ino,
            'mode': self.mode,
            'nlink': self.nlink,
            'uid': self.uid,
            'gid': self.gid,
            'rdev': self.rdev,
            'blksize': self.blksize,
            'blocks': self.blocks,
        }


@dataclass(frozen=True)
class DirEntry:
    """One entry of a directory listing."""
    name: str
    is_directory: bool
    is_file: bool
    is_symlink: bool

    def to_dict(self) -> dict[str, Any]:
        return {
            'name': self.name,
            'isDirectory': self.is_directory,
            'isFile': self.is_file,
            'isSymlink': self.is_symlink,
        }
