# Copyright 2025 Softwell S.r.l. - Genropy Team
# SPDX-License-Identifier: Apache-2.0

"""Genro-Stock - Path-addressable observable state store.

A lightweight, zero-dependency library providing one mutable value tree
that can be read, written and watched at any nested path, plus proxies
exposing a renamed, reshaped slice of the tree as an independent one.
"""

__version__ = "0.1.0"

from .exceptions import (
    InvalidPathError,
    NotASubPathError,
    StockError,
    UnmappedPathError,
    UnregisteredObserverError,
)
from .observers import BatchUpdate, ObserverBucket, ObserverRegistry
from .paths import (
    ROOT,
    Path,
    RootPath,
    get_at,
    is_nested,
    is_related,
    longest_common_path,
    normalize,
    relative,
    set_at,
    to_path,
)
from .proxy import IdentityProxy, MappingProxy, StockProxy
from .store import Stock

__all__ = [
    # Core classes
    "Stock",
    "ObserverRegistry",
    "ObserverBucket",
    "BatchUpdate",
    # Paths
    "ROOT",
    "Path",
    "RootPath",
    "to_path",
    "normalize",
    "is_nested",
    "is_related",
    "relative",
    "longest_common_path",
    "get_at",
    "set_at",
    # Proxies
    "StockProxy",
    "IdentityProxy",
    "MappingProxy",
    # Exceptions
    "StockError",
    "InvalidPathError",
    "NotASubPathError",
    "UnregisteredObserverError",
    "UnmappedPathError",
]
