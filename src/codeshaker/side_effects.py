"""Which side-effect-only imports survive shaking."""
from __future__ import annotations

import fnmatch
from typing import Callable, Sequence

# stylesheets are only ever imported for their side effects
DEFAULT_KEEP_SIDE_EFFECT_SOURCES = ["*.css", "*.scss", "*.sass", "*.less", "*.styl"]

KeepPredicate = Callable[[str], bool]


def should_keep_side_effect(source: str, patterns: Sequence[str] = DEFAULT_KEEP_SIDE_EFFECT_SOURCES) -> bool:
    return any(fnmatch.fnmatch(source, pattern) for pattern in patterns)


def keep_predicate(patterns: Sequence[str]) -> KeepPredicate:
    patterns = list(patterns)
    return lambda source: should_keep_side_effect(source, patterns)
