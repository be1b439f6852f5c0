"""
Path Resolver Module

Turns caller-supplied paths into absolute, normalized native paths.

Resolution is a pure transform: nothing is checked for existence and
symlinks are never followed.

Author: YSNRFD
Version: 1.0.0
"""

import os
from dataclasses import dataclass
from typing import Optional, Union
from urllib.parse import urlsplit
from urllib.request import url2pathname

from capfs.exceptions import InvalidPathError
from .base_directory import BaseDirectory, BaseDirectoryResolver


RawPath = Union[str, os.PathLike]


@dataclass(frozen=True)
class ParsedPath:
    """A raw path after URL decoding, before anchoring."""
    path: str
    from_url: bool = False


class PathResolver:
    """
    Resolves raw paths for the filesystem operations.

    Handles:
    - ``file:`` URLs
    - Base directory anchoring
    - Rejection of ``..`` traversal in raw input
    - Normalization to an absolute path
    """

    @staticmethod
    def parse(raw_path: RawPath) -> ParsedPath:
        """
        Decode a raw path, converting ``file:`` URLs to native paths.

        Raises:
            InvalidPathError: If the path is empty, contains ``..`` or is a
                malformed file URL
        """
        path = os.fspath(raw_path)
        if isinstance(path, bytes):
            path = os.fsdecode(path)

        if not path:
            raise InvalidPathError(path, reason="path is empty")

        if '\0' in path:
            raise InvalidPathError(path, reason="path contains a NUL byte")

        parsed = ParsedPath(path=path)
        if path.startswith('file:'):
            parsed = ParsedPath(path=PathResolver.file_url_to_path(path), from_url=True)

        PathResolver.check_traversal(parsed.path)
        return parsed

    @staticmethod
    def file_url_to_path(url: str) -> str:
        """
        Convert a ``file:`` URL into a native absolute path.

        Raises:
            InvalidPathError: If the URL cannot be converted
        """
        try:
            parts = urlsplit(url)
        except ValueError as e:
            raise InvalidPathError(url, reason=f"malformed url: {e}") from e

        if parts.scheme != 'file':
            raise InvalidPathError(url, reason="not a file url")

        host = parts.netloc
        if host in ('', 'localhost'):
            path = url2pathname(parts.path)
        elif os.name == 'nt':
            # UNC share: file://server/share/x -> \\server\share\x
            path = url2pathname(f"//{host}{parts.path}")
        else:
            raise InvalidPathError(url, reason="failed to get path from `file:` url")

        if not path or not os.path.isabs(path):
            raise InvalidPathError(url, reason="failed to get path from `file:` url")

        if '\0' in path:
            raise InvalidPathError(url, reason="path contains a NUL byte")

        return path

    @staticmethod
    def check_traversal(path: str) -> None:
        """
        Reject paths that walk up with ``..``.

        Raises:
            InvalidPathError: If any component is ``..``
        """
        components = path.replace('\\', '/').split('/') if os.name == 'nt' else path.split('/')
        if '..' in components:
            raise InvalidPathError(
                path,
                reason="cannot traverse directory, rewrite the path without the use of `../`"
            )

    @staticmethod
    def normalize(path: str) -> str:
        """
        Make a path absolute and collapse redundant separators and ``.``.

        Relative paths are taken relative to the process working directory.
        """
        return os.path.normpath(os.path.abspath(path))

    @staticmethod
    def resolve(
        raw_path: RawPath,
        base_directory: Optional[Union[BaseDirectory, str]] = None,
        directories: Optional[BaseDirectoryResolver] = None
    ) -> str:
        """
        Resolve a raw path to an absolute native path.

        Args:
            raw_path: Path string, path-like object or ``file:`` URL
            base_directory: Optional directory the path is relative to
            directories: Resolver for ``base_directory``

        Returns:
            Absolute normalized path (may still name a symlink)

        Raises:
            InvalidPathError: On malformed input or an unresolvable base
        """
        parsed = PathResolver.parse(raw_path)

        # A file URL is already absolute
        if base_directory is None or parsed.from_url:
            return PathResolver.normalize(parsed.path)

        member = BaseDirectory.parse(base_directory)
        if directories is None:
            raise InvalidPathError(parsed.path, reason=f"no resolver for {member.value}")

        anchor = directories.resolve(member)
        return PathResolver.normalize(os.path.join(anchor, parsed.path))

    @staticmethod
    def split(path: str) -> tuple[str, str]:
        """Split a path into directory and base name."""
        return os.path.split(path)
