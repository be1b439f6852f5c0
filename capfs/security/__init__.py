"""
capfs Security Module

Provides scope enforcement:
- Allow/deny pattern matching
- Baseline, global and per-call scope sources
- Composite scope evaluation with deny priority
"""

from .matcher import PatternMatcher, CompiledPatterns, GlobPatternMatcher, GlobPatterns
from .scope import (
    ScopeKind,
    ScopeOrigin,
    ScopeEntry,
    ScopeGrant,
    ScopeSource,
    AccessContext,
    CompositeScope,
    expand_pattern,
)

__all__ = [
    # Matcher
    'PatternMatcher',
    'CompiledPatterns',
    'GlobPatternMatcher',
    'GlobPatterns',
    # Scope
    'ScopeKind',
    'ScopeOrigin',
    'ScopeEntry',
    'ScopeGrant',
    'ScopeSource',
    'AccessContext',
    'CompositeScope',
    'expand_pattern',
]
