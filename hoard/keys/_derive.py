"""
Cache key derivation.

    object:article:id:42
    ^^^^^^ ^^^^^^^ ^^ ^^
    namespace, entity type, key field, identifier
"""

from __future__ import annotations

from hoard._types import Identifier

DEFAULT_NAMESPACE = "object"
DEFAULT_SEPARATOR = ":"

# Glob metacharacters are quoted too, so pattern deletes never over-match.
_RESERVED = ("*", "?", "[", "]")


def _quote(component: str, separator: str) -> str:
    out = component.replace("%", "%25")
    for ch in (separator, *_RESERVED):
        out = out.replace(ch, f"%{ord(ch):02X}")
    return out


def derive_key(
    entity_type: str,
    key_field: str,
    identifier: Identifier,
    *,
    namespace: str = DEFAULT_NAMESPACE,
    separator: str = DEFAULT_SEPARATOR,
) -> str:
    """
    Build the cache key for one entity.

    Example:
        derive_key("article", "id", 42)        # "object:article:id:42"
        derive_key("a:b", "id", "x:y")         # "object:a%3Ab:id:x%3Ay"
    """
    return CacheKeys(entity_type, key_field, namespace=namespace, separator=separator).key(
        identifier
    )


class CacheKeys:
    """
    Key deriver bound to one (entity type, key field) pair.

    The prefix is computed once. Re-targeting a loader builds a new instance.
    """

    __slots__ = ("entity_type", "key_field", "separator", "_prefix")

    def __init__(
        self,
        entity_type: str,
        key_field: str,
        *,
        namespace: str = DEFAULT_NAMESPACE,
        separator: str = DEFAULT_SEPARATOR,
    ) -> None:
        if len(separator) != 1 or separator == "%" or separator.isalnum():
            raise ValueError(f"separator must be one punctuation character, not '%': {separator!r}")
        self.entity_type = entity_type
        self.key_field = key_field
        self.separator = separator
        self._prefix = separator.join(
            _quote(part, separator) for part in (namespace, entity_type, key_field)
        )

    @property
    def prefix(self) -> str:
        return self._prefix

    def key(self, identifier: Identifier) -> str:
        return f"{self._prefix}{self.separator}{_quote(str(identifier), self.separator)}"

    def pattern(self) -> str:
        """Glob matching every key of this entity type."""
        return f"{self._prefix}{self.separator}*"

    def __repr__(self) -> str:
        return f"CacheKeys({self._prefix!r})"


__all__ = ("CacheKeys", "derive_key", "DEFAULT_NAMESPACE", "DEFAULT_SEPARATOR")
