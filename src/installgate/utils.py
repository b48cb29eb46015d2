from __future__ import annotations

import operator
import re
from collections.abc import Callable
from typing import Any

COMPARATORS: dict[str, Callable[[Any, Any], bool]] = {
    "eq": operator.eq,
    "ne": operator.ne,
    "lt": operator.lt,
    "le": operator.le,
    "gt": operator.gt,
    "ge": operator.ge,
}
"""Comparison operators accepted by numeric and version conditions."""

_VERSION_SPLIT = re.compile(r"[._-]")
_VERSION_RUN = re.compile(r"\d+|\D+")
_VARIABLE_OPERAND = re.compile(r"^\$\{([^}]+)\}$")


def normalize_key(key: str) -> str:
    """Normalize a condition type tag for consistent lookups.

    Applies the following transformations:
        - Strips leading and trailing whitespace
        - Converts to lowercase

    Examples:
        >>> normalize_key("  CompareNumerics ")
        'comparenumerics'
    """
    return key.strip().lower()


def variable_operand(text: str) -> str | None:
    """Return the variable name if ``text`` is a whole ``${NAME}`` operand.

    Examples:
        >>> variable_operand("${JAVA_VERSION}")
        'JAVA_VERSION'
        >>> variable_operand("11") is None
        True
    """
    match = _VARIABLE_OPERAND.match(text.strip())
    return match.group(1).strip() if match else None


def parse_bool(value: Any) -> bool:
    """Interpret a declaration or fact value as a boolean.

    Truthiness rules:
        - ``None``: Always ``False``
        - ``bool``: The value itself
        - ``int``/``float``: ``True`` if not ``0``
        - ``str``: ``True`` only for (case-insensitive, stripped)
          ``"true"``, ``"yes"``, ``"on"`` or ``"1"``
        - Other types: Always ``True``

    Examples:
        >>> parse_bool("TRUE")
        True
        >>> parse_bool("  no  ")
        False
    """
    if value is None:
        return False
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value != 0
    if isinstance(value, str):
        return value.strip().lower() in {"true", "yes", "on", "1"}
    return True


def to_text(value: Any) -> str:
    """Return the string form used to compare installer values.

    Booleans become ``"true"``/``"false"`` so that a declared ``true``
    matches a variable holding ``True``.
    """
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def to_int(value: Any) -> int | None:
    """Convert ``value`` to an int, returning ``None`` if it is not integral."""
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, int):
        return value
    if value is None:
        return None
    try:
        return int(str(value).strip())
    except ValueError:
        return None


def parse_version(text: str) -> tuple[tuple[int, Any], ...]:
    """Parse a dotted version string into a comparable tuple.

    The version is split on ``.``, ``-`` and ``_``, and each part further
    into runs of digits and non-digits, so ``1.0a`` reads as ``1, 0, a``
    and ``17.0.1+12`` as ``17, 0, 1, +, 12``. Digit runs compare as
    integers, any other run compares as a lowercase string and orders
    after every number. Trailing zeros are dropped so that ``1.2`` and
    ``1.2.0`` compare equal.

    Examples:
        >>> parse_version("1.10") > parse_version("1.9")
        True
        >>> parse_version("1.2") == parse_version("1.2.0")
        True
        >>> parse_version("2.0-beta") > parse_version("2.0")
        True
        >>> parse_version("17.0.1+12") < parse_version("17.0.2")
        True
    """
    segments: list[tuple[int, Any]] = []
    for part in _VERSION_SPLIT.split(str(text).strip()):
        for run in _VERSION_RUN.findall(part):
            if run.isdigit():
                segments.append((0, int(run)))
            else:
                segments.append((1, run.lower()))
    while segments and segments[-1] == (0, 0):
        segments.pop()
    return tuple(segments)
