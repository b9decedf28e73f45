"""
Per-file feature switches.

A feature value is either a boolean or one or more glob patterns matched against
the filename. Patterns starting with ``!`` switch the feature off for matching
files; the last matching pattern wins.
"""
from __future__ import annotations

import fnmatch
from typing import Mapping, Sequence, Union

FeatureValue = Union[bool, str, Sequence[str]]

DEFAULT_FEATURES = {
    "dangerous_code_remover": True,
}


def is_feature_enabled(features: Mapping[str, FeatureValue], name: str, filename: str) -> bool:
    value = features.get(name, DEFAULT_FEATURES.get(name, False))
    if isinstance(value, bool):
        return value
    if value in ("*", "**/*"):
        return True
    patterns = [value] if isinstance(value, str) else list(value)

    enabled = False
    for pattern in patterns:
        negated = pattern.startswith("!")
        if negated:
            pattern = pattern[1:]
        if fnmatch.fnmatch(filename, pattern):
            enabled = not negated
    return enabled
