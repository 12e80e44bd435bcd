"""
hoard — cache-augmented entity loading for Python backends.

    from hoard import loader as L   # Loaders, sessions, cursors
    from hoard import scope as Sc   # Filters, orders, pagination
    from hoard import cache as C    # Raw-record pools
    from hoard import store as St   # Backing stores
"""

from hoard import keys
from hoard import entity
from hoard import scope
from hoard import cache
from hoard import query
from hoard import store
from hoard import loader
from hoard._types import (
    Identifier,
    Scalar,
    RawRecord,
    HoardError,
    InvalidArgument,
    LogicError,
    HydrationFailure,
    CursorDesync,
)

__version__ = "0.1.0"

__all__ = (
    "keys",
    "entity",
    "scope",
    "cache",
    "query",
    "store",
    "loader",
    "Identifier",
    "Scalar",
    "RawRecord",
    "HoardError",
    "InvalidArgument",
    "LogicError",
    "HydrationFailure",
    "CursorDesync",
)
