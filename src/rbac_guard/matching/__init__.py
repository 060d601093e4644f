"""Glob matching used to compare policy patterns with resources and names."""
from __future__ import annotations

from rbac_guard.matching.glob import GlobMatcher, glob_match, is_valid_pattern

__all__ = [
    "GlobMatcher",
    "glob_match",
    "is_valid_pattern",
]
