"""
Keys — identifier validation and cache key derivation.

    from hoard import keys as K

    K.is_valid_key(42)                      # True
    K.CacheKeys("article", "id").key(42)    # "object:article:id:42"
"""

from __future__ import annotations

from hoard.keys._validate import (
    is_valid_key,
    are_valid_keys,
    require_key,
    require_keys,
)
from hoard.keys._derive import (
    CacheKeys,
    derive_key,
    DEFAULT_NAMESPACE,
    DEFAULT_SEPARATOR,
)

__all__ = (
    "is_valid_key",
    "are_valid_keys",
    "require_key",
    "require_keys",
    "CacheKeys",
    "derive_key",
    "DEFAULT_NAMESPACE",
    "DEFAULT_SEPARATOR",
)
