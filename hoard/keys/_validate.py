"""
Identifier validation.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any

from hoard._types import Identifier, InvalidArgument


def is_valid_key(value: Any) -> bool:
    """
    True for a positive int or a non-empty string.

    Numeric strings must denote a positive integer, so "0" and "-1" are
    rejected like 0 and -1. bool is not an identifier.
    """
    if isinstance(value, bool):
        return False
    if isinstance(value, int):
        return value > 0
    if isinstance(value, str):
        if not value:
            return False
        try:
            return int(value) > 0
        except ValueError:
            return True
    return False


def are_valid_keys(values: Any) -> bool:
    """True for a non-empty collection of valid identifiers."""
    if isinstance(values, (str, bytes, Mapping)) or not isinstance(values, Iterable):
        return False
    items = list(values)
    return bool(items) and all(is_valid_key(v) for v in items)


def require_key(value: Any) -> Identifier:
    """Return value or raise InvalidArgument."""
    if not is_valid_key(value):
        raise InvalidArgument(f"One model ID is required, received {value!r}")
    return value


def require_keys(values: Any) -> tuple[Identifier, ...]:
    """Return values as a tuple or raise InvalidArgument."""
    if isinstance(values, Iterable) and not isinstance(values, (str, bytes, Mapping)):
        values = tuple(values)
    if not are_valid_keys(values):
        raise InvalidArgument("At least one model ID is required")
    return values


__all__ = ("is_valid_key", "are_valid_keys", "require_key", "require_keys")
