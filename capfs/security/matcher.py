"""
Scope Pattern Matching

Decides whether a concrete path matches a scope pattern. Patterns use
gitwildmatch syntax through ``pathspec``, anchored at the filesystem root:

- a literal path matches itself and everything beneath it
- ``*`` stays within one path component, ``**`` crosses components
- matching is case-sensitive, except on Windows

Author: YSNRFD
Version: 1.0.0
"""

import os
from typing import Iterable, Protocol, runtime_checkable

import pathspec

from capfs.exceptions import ScopeConfigError


@runtime_checkable
class PatternMatcher(Protocol):
    """Compiles a set of scope patterns into a path predicate."""

    def compile(self, patterns: Iterable[str]) -> 'CompiledPatterns':
        ...


@runtime_checkable
class CompiledPatterns(Protocol):
    def matches(self, path: str) -> bool:
        ...


def _to_match_form(path: str, case_insensitive: bool) -> str:
    """Render a native path as a root-relative posix string."""
    posix = path.replace('\\', '/') if os.name == 'nt' else path
    # C:/Users/x -> C:/Users/x, /home/x -> home/x
    posix = posix.lstrip('/')
    if case_insensitive:
        posix = posix.casefold()
    return posix


class GlobPatterns:
    """A compiled pattern set backed by a ``pathspec.PathSpec``."""

    def __init__(
        self,
        spec: pathspec.PathSpec,
        case_insensitive: bool,
        size: int,
        includes_root: bool = False
    ):
        self._spec = spec
        self._case_insensitive = case_insensitive
        self._size = size
        self._includes_root = includes_root

    def matches(self, path: str) -> bool:
        if self._size == 0:
            return False
        candidate = _to_match_form(path, self._case_insensitive)
        if not candidate:
            return self._includes_root
        return self._spec.match_file(candidate)

    def __len__(self) -> int:
        return self._size


class GlobPatternMatcher:
    """
    Default matcher for scope patterns.

    Example:
        >>> allow = GlobPatternMatcher().compile(['/home/u/docs'])
        >>> allow.matches('/home/u/docs/a.txt')
        True
    """

    def __init__(self, case_insensitive: bool = os.name == 'nt'):
        self.case_insensitive = case_insensitive

    def compile(self, patterns: Iterable[str]) -> GlobPatterns:
        lines = []
        includes_root = False
        for pattern in patterns:
            if not pattern or not pattern.strip():
                raise ScopeConfigError(pattern, reason="pattern is empty")
            # "docs/" names the directory itself, not only its children
            form = _to_match_form(pattern, self.case_insensitive).rstrip('/')
            if not form:
                # "/" grants the whole filesystem
                includes_root = True
                form = "**"
            # Leading '/' anchors the pattern and keeps '!' or '#' literal
            lines.append('/' + form)

        try:
            spec = pathspec.PathSpec.from_lines(
                pathspec.patterns.gitwildmatch.GitWildMatchPattern, lines
            )
        except (ValueError, TypeError) as e:
            raise ScopeConfigError(", ".join(lines), reason=str(e)) from e

        return GlobPatterns(spec, self.case_insensitive, len(lines), includes_root)
