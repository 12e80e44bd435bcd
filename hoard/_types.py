"""
Core types for hoard.

Identifier and record aliases, the error hierarchy, and re-exports from kungfu.
"""

from __future__ import annotations

from collections.abc import Mapping

# Re-export from kungfu
from kungfu import Result, Ok, Error, LazyCoroResult

# ═══════════════════════════════════════════════════════════════════════════════
# Data Aliases
# ═══════════════════════════════════════════════════════════════════════════════

type Identifier = int | str
"""Primary key value: positive int or non-empty string."""

type Scalar = str | int | float | bool | bytes | None

type RawRecord = Mapping[str, Scalar]
"""Flat column → value mapping, as returned by a store or kept in a pool."""

# ═══════════════════════════════════════════════════════════════════════════════
# Errors
# ═══════════════════════════════════════════════════════════════════════════════


class HoardError(Exception):
    """Base class for every error raised by hoard."""


class InvalidArgument(HoardError, ValueError):
    """
    Malformed request: bad identifier(s), raw query or scope fragment.

    Always raised before any cache or store access.
    """


class LogicError(HoardError, RuntimeError):
    """Caller misuse, e.g. counting rows of a raw query that did not opt in."""


class HydrationFailure(HoardError):
    """A raw record could not become an entity. Recovered by skipping it."""


class CursorDesync(HoardError, RuntimeError):
    """
    Store rows and requested misses went out of step in a merge cursor.

    Raised instead of truncating or padding the output.
    """


# ═══════════════════════════════════════════════════════════════════════════════
# Exports
# ═══════════════════════════════════════════════════════════════════════════════

__all__ = (
    # Re-exports from kungfu
    "Result",
    "Ok",
    "Error",
    "LazyCoroResult",
    # Aliases
    "Identifier",
    "Scalar",
    "RawRecord",
    # Errors
    "HoardError",
    "InvalidArgument",
    "LogicError",
    "HydrationFailure",
    "CursorDesync",
)
