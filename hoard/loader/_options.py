"""
Loader options — behavior configuration.
"""

from __future__ import annotations

from dataclasses import dataclass

from hoard.keys import DEFAULT_NAMESPACE, DEFAULT_SEPARATOR


@dataclass(frozen=True, slots=True)
class Options:
    """
    Loader configuration.

    Fluent builder pattern — chain methods to configure.

    Example:
        options = (
            Options()
            .with_namespace("blog")
            .with_fast_count()
        )

    Note: Immutable — each method returns new Options.
    """

    namespace: str = DEFAULT_NAMESPACE
    separator: str = DEFAULT_SEPARATOR
    # Default for Session.total_matches(): read the store's last found-row
    # count instead of running a COUNT query.
    fast_count: bool = False
    write_back: bool = True

    def with_namespace(self, namespace: str) -> Options:
        """
        Set the cache key namespace.

        Example:
            .with_namespace("blog")   # keys look like blog:article:id:42
        """
        return Options(
            namespace=namespace,
            separator=self.separator,
            fast_count=self.fast_count,
            write_back=self.write_back,
        )

    def with_separator(self, separator: str) -> Options:
        """Set the cache key separator (one punctuation character)."""
        return Options(
            namespace=self.namespace,
            separator=separator,
            fast_count=self.fast_count,
            write_back=self.write_back,
        )

    def with_fast_count(self, fast: bool = True) -> Options:
        """Count found rows from the store's last query by default."""
        return Options(
            namespace=self.namespace,
            separator=self.separator,
            fast_count=fast,
            write_back=self.write_back,
        )

    def with_write_back(self, enabled: bool = True) -> Options:
        """
        Whether entities loaded from the store are written to the pool.

        Example:
            .with_write_back(False)  # read-through only
        """
        return Options(
            namespace=self.namespace,
            separator=self.separator,
            fast_count=self.fast_count,
            write_back=enabled,
        )


__all__ = ("Options",)
