"""
Scope Module

Layered allow/deny rules gating every filesystem operation.

Three sources contribute patterns:
- the process-wide baseline (configuration, extendable at runtime)
- a global grant held by the caller
- a grant attached to a single invocation

A path is admitted when some allow pattern matches it and no deny pattern
does. Deny always wins, whatever its source.

Author: YSNRFD
Version: 1.0.0
"""

import os
import threading
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, Optional, Sequence, Tuple

from capfs.exceptions import InvalidPathError, ScopeConfigError
from capfs.filesystem.base_directory import BaseDirectory, BaseDirectoryResolver
from capfs.logger import get_logger
from .matcher import GlobPatternMatcher, PatternMatcher


class ScopeKind(Enum):
    """Whether an entry grants or revokes access."""
    ALLOW = "allow"
    DENY = "deny"


class ScopeOrigin(Enum):
    """Where a scope entry came from."""
    BASELINE = "baseline"
    GLOBAL = "global"
    COMMAND = "command"


@dataclass(frozen=True)
class ScopeEntry:
    """A single path pattern with its kind and origin."""
    pattern: str
    kind: ScopeKind
    origin: ScopeOrigin = ScopeOrigin.COMMAND


@dataclass(frozen=True)
class ScopeGrant:
    """
    Allow and deny patterns contributed by one source.

    Example:
        >>> grant = ScopeGrant.of(allow=['/home/u/docs'], deny=['/home/u/docs/secret'])
    """
    allow: Tuple[str, ...] = ()
    deny: Tuple[str, ...] = ()
    origin: ScopeOrigin = ScopeOrigin.COMMAND

    @classmethod
    def of(
        cls,
        allow: Iterable[str] = (),
        deny: Iterable[str] = (),
        origin: ScopeOrigin = ScopeOrigin.COMMAND
    ) -> 'ScopeGrant':
        return cls(allow=tuple(allow), deny=tuple(deny), origin=origin)

    def entries(self) -> list[ScopeEntry]:
        """List this grant as tagged entries."""
        return (
            [ScopeEntry(p, ScopeKind.ALLOW, self.origin) for p in self.allow]
            + [ScopeEntry(p, ScopeKind.DENY, self.origin) for p in self.deny]
        )

    def expand(self, directories: Optional[BaseDirectoryResolver]) -> 'ScopeGrant':
        """
        Return a copy with every ``$VARIABLE`` pattern replaced by its path.

        Raises:
            ScopeConfigError: If a variable cannot be resolved
        """
        if not any(p.startswith('$') for p in self.allow + self.deny):
            return self
        return ScopeGrant(
            allow=tuple(expand_pattern(p, directories) for p in self.allow),
            deny=tuple(expand_pattern(p, directories) for p in self.deny),
            origin=self.origin
        )

    def __bool__(self) -> bool:
        return bool(self.allow or self.deny)


EMPTY_GRANT = ScopeGrant()


def expand_pattern(pattern: str, directories: Optional[BaseDirectoryResolver]) -> str:
    """
    Replace a leading ``$VARIABLE`` with its base directory path.

    ``$HOME/docs/**`` becomes ``/home/u/docs/**``. Patterns without a
    variable are returned unchanged.

    Raises:
        ScopeConfigError: If the variable is unknown or cannot be resolved
    """
    if not pattern.startswith('$'):
        return pattern

    head, sep, rest = pattern.partition('/')
    if not sep and os.name == 'nt':
        head, sep, rest = pattern.partition('\\')

    directory = BaseDirectory.from_variable(head)
    if directory is None:
        raise ScopeConfigError(pattern, reason=f"unknown variable {head}")
    if directories is None:
        raise ScopeConfigError(pattern, reason=f"no base directory resolver for {head}")

    try:
        anchor = directories.resolve(directory)
    except InvalidPathError as e:
        raise ScopeConfigError(pattern, reason=e.message) from e

    return os.path.join(anchor, rest) if rest else anchor


class ScopeSource:
    """
    The mutable process-wide baseline.

    Reads return an immutable snapshot taken under a lock; writers append
    patterns. Expected to be read on every call and written rarely.

    Example:
        >>> baseline = ScopeSource(allow=['/srv/data'])
        >>> baseline.allow_directory('/srv/uploads')
        >>> baseline.snapshot().allow
        ('/srv/data', '/srv/uploads')
    """

    def __init__(
        self,
        allow: Iterable[str] = (),
        deny: Iterable[str] = (),
        directories: Optional[BaseDirectoryResolver] = None
    ):
        self._lock = threading.Lock()
        self._directories = directories
        self._allow: list[str] = []
        self._deny: list[str] = []
        self._logger = get_logger('scope')
        for pattern in allow:
            self.allow(pattern)
        for pattern in deny:
            self.deny(pattern)

    def allow(self, pattern: str) -> None:
        """Grant access to paths matching ``pattern``."""
        expanded = expand_pattern(pattern, self._directories)
        with self._lock:
            self._allow.append(expanded)
        self._logger.debug("Scope extended", context={'allow': expanded})

    def deny(self, pattern: str) -> None:
        """Revoke access to paths matching ``pattern``."""
        expanded = expand_pattern(pattern, self._directories)
        with self._lock:
            self._deny.append(expanded)
        self._logger.debug("Scope restricted", context={'deny': expanded})

    def allow_directory(self, path: str) -> None:
        """Grant a directory and everything beneath it."""
        self.allow(path)

    def allow_file(self, path: str) -> None:
        """Grant a single file."""
        self.allow(path)

    def forbid_directory(self, path: str) -> None:
        """Deny a directory and everything beneath it."""
        self.deny(path)

    def forbid_file(self, path: str) -> None:
        """Deny a single file."""
        self.deny(path)

    def snapshot(self) -> ScopeGrant:
        """Return the current patterns as an immutable grant."""
        with self._lock:
            return ScopeGrant(
                allow=tuple(self._allow),
                deny=tuple(self._deny),
                origin=ScopeOrigin.BASELINE
            )


@dataclass(frozen=True)
class AccessContext:
    """
    Per-call scope context passed explicitly to every path operation.

    ``global_grant`` is the caller's standing grant, ``command_grant`` the
    grant attached to this particular invocation.
    """
    global_grant: ScopeGrant = field(default=EMPTY_GRANT)
    command_grant: ScopeGrant = field(default=EMPTY_GRANT)

    @classmethod
    def of(
        cls,
        allow: Iterable[str] = (),
        deny: Iterable[str] = (),
        global_allow: Iterable[str] = (),
        global_deny: Iterable[str] = ()
    ) -> 'AccessContext':
        return cls(
            global_grant=ScopeGrant.of(global_allow, global_deny, ScopeOrigin.GLOBAL),
            command_grant=ScopeGrant.of(allow, deny, ScopeOrigin.COMMAND),
        )


class CompositeScope:
    """
    Union of every relevant source's allow and deny patterns.

    Built fresh for each resolution; never cached across calls.

    Example:
        >>> scope = CompositeScope.build([(['/home/u/docs'], ['/home/u/docs/secret'])])
        >>> scope.is_allowed('/home/u/docs/secret/x.txt')
        False
        >>> scope.is_allowed('/home/u/docs/a.txt')
        True
    """

    def __init__(
        self,
        allow: Sequence[str],
        deny: Sequence[str],
        matcher: Optional[PatternMatcher] = None
    ):
        matcher = matcher or GlobPatternMatcher()
        self.allow: Tuple[str, ...] = tuple(dict.fromkeys(allow))
        self.deny: Tuple[str, ...] = tuple(dict.fromkeys(deny))
        self._allowed = matcher.compile(self.allow)
        self._denied = matcher.compile(self.deny)

    @classmethod
    def build(
        cls,
        sources: Iterable[Tuple[Iterable[str], Iterable[str]]],
        matcher: Optional[PatternMatcher] = None
    ) -> 'CompositeScope':
        """Union ``(allow, deny)`` pairs; source order does not matter."""
        allow: list[str] = []
        deny: list[str] = []
        for source_allow, source_deny in sources:
            allow.extend(source_allow)
            deny.extend(source_deny)
        return cls(allow, deny, matcher)

    @classmethod
    def from_grants(
        cls,
        grants: Iterable[ScopeGrant],
        matcher: Optional[PatternMatcher] = None
    ) -> 'CompositeScope':
        allow: list[str] = []
        deny: list[str] = []
        for grant in grants:
            for entry in grant.entries():
                if entry.kind is ScopeKind.DENY:
                    deny.append(entry.pattern)
                else:
                    allow.append(entry.pattern)
        return cls(allow, deny, matcher)

    def is_allowed(self, path: str) -> bool:
        """True iff some allow pattern matches and no deny pattern does."""
        if self._denied.matches(path):
            return False
        return self._allowed.matches(path)
