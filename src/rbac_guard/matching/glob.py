"""Segment-aware glob matching for resource and resource-name patterns.

Patterns follow shell filename-matching rules where ``/`` separates
segments:

- ``*``      matches any run of characters within a single segment
- ``?``      matches exactly one character other than ``/``
- ``[...]``  matches one character from a class; ``a-z`` ranges are
             allowed and a leading ``^`` negates the class (``!`` is a
             plain class member)
- ``\\c``    matches the character ``c`` literally

Matching is case-sensitive and anchored at both ends, so ``*`` matches
``"vms"`` but not ``"vms/start"``.  A malformed pattern matches nothing.

Example
-------
>>> glob_match("experiments/*", "experiments/start")
True
>>> glob_match("*", "experiments/start")
False
"""
from __future__ import annotations

import functools
import re

_ANY_SEGMENT_RUN = "[^/]*"
_ANY_SEGMENT_CHAR = "[^/]"


class _BadPatternError(ValueError):
    """Internal signal for a pattern that cannot be compiled."""


def _class_char(pattern: str, index: int) -> tuple[str, int]:
    """Read one (possibly escaped) character inside a ``[...]`` class."""
    if index >= len(pattern):
        raise _BadPatternError(pattern)
    char = pattern[index]
    if char in "-]":
        raise _BadPatternError(pattern)
    if char == "\\":
        index += 1
        if index >= len(pattern):
            raise _BadPatternError(pattern)
        char = pattern[index]
    return char, index + 1


def _translate_class(pattern: str, index: int) -> tuple[str, int]:
    """Translate a character class starting just after its ``[``."""
    negated = False
    if index < len(pattern) and pattern[index] == "^":
        negated = True
        index += 1

    items: list[str] = []
    while True:
        if items and index < len(pattern) and pattern[index] == "]":
            index += 1
            break
        low, index = _class_char(pattern, index)
        high = low
        if index < len(pattern) and pattern[index] == "-":
            high, index = _class_char(pattern, index + 1)
        if low > high:
            raise _BadPatternError(pattern)
        if low == high:
            items.append(re.escape(low))
        else:
            items.append(f"{re.escape(low)}-{re.escape(high)}")

    return "[" + ("^" if negated else "") + "".join(items) + "]", index


def _translate(pattern: str) -> str:
    """Translate a glob pattern into an equivalent regular expression."""
    parts: list[str] = []
    index = 0
    length = len(pattern)
    while index < length:
        char = pattern[index]
        if char == "*":
            while index < length and pattern[index] == "*":
                index += 1
            parts.append(_ANY_SEGMENT_RUN)
            continue
        if char == "[":
            translated, index = _translate_class(pattern, index + 1)
            parts.append(translated)
            continue
        if char == "?":
            parts.append(_ANY_SEGMENT_CHAR)
        elif char == "\\":
            index += 1
            if index >= length:
                raise _BadPatternError(pattern)
            parts.append(re.escape(pattern[index]))
        else:
            parts.append(re.escape(char))
        index += 1
    return "".join(parts)


@functools.lru_cache(maxsize=2048)
def _compile(pattern: str) -> re.Pattern[str] | None:
    """Compile *pattern*, returning ``None`` when it is malformed."""
    try:
        return re.compile(_translate(pattern))
    except (_BadPatternError, re.error):
        return None


def glob_match(pattern: str, candidate: str) -> bool:
    """Return True if *candidate* matches the glob *pattern* in full."""
    compiled = _compile(pattern)
    if compiled is None:
        return False
    return compiled.fullmatch(candidate) is not None


def is_valid_pattern(pattern: str) -> bool:
    """Return True if *pattern* is a well-formed glob."""
    return _compile(pattern) is not None


class GlobMatcher:
    """Stateless matcher object handed to the policy evaluator.

    Wrapping :func:`glob_match` in an object lets callers substitute or
    instrument the matcher (e.g. to count calls in tests).

    Examples
    --------
    ::

        matcher = GlobMatcher()
        assert matcher.match("item*", "item1") is True
        assert matcher.match("*/*", "vms") is False
    """

    def match(self, pattern: str, candidate: str) -> bool:
        """Return True if *candidate* matches *pattern*."""
        return glob_match(pattern, candidate)

    def is_valid(self, pattern: str) -> bool:
        """Return True if *pattern* compiles."""
        return is_valid_pattern(pattern)
