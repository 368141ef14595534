# Copyright 2025 Softwell S.r.l. - Genropy Team
# SPDX-License-Identifier: Apache-2.0

"""StockProxy - Abstract base class for Stock proxies."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Callable

from ..observers import Observer, Unsubscribe
from ..paths import ROOT, AnyPath, PathLike, normalize, to_path

GetValue = Callable[[AnyPath], Any]
SetValue = Callable[[AnyPath, Any], None]
Watch = Callable[[AnyPath, Observer], Unsubscribe]


class StockProxy(ABC):
    """Abstract base class for Stock proxies.

    A proxy presents a virtual subtree, mounted at ``path``, on top of
    whatever provides get/set/watch by path. It never holds a Stock: every
    call receives the unproxied operation as a callback, so proxies can be
    stacked by passing another proxy's bound method as the callback.

    Subclasses implement the three operations:

        class UpperProxy(StockProxy):
            def get_value(self, path, default_get_value):
                return default_get_value(path).upper()
            ...

    Usage:
        >>> proxy = IdentityProxy()
        >>> proxy.get_value('user.name', stock.get_value)
        'Alice'
    """

    __slots__ = ('path',)

    def __init__(self, path: PathLike = ROOT) -> None:
        """Initialize the proxy.

        Args:
            path: Mount path of the virtual subtree. ROOT mounts the proxy
                over the whole tree.
        """
        self.path: AnyPath = to_path(path)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(path={normalize(self.path)!r})"

    @abstractmethod
    def get_value(self, path: PathLike, default_get_value: GetValue) -> Any:
        """Read the virtual value at ``path`` through ``default_get_value``."""

    @abstractmethod
    def set_value(self, path: PathLike, value: Any, default_set_value: SetValue) -> None:
        """Write the virtual value at ``path`` through ``default_set_value``."""

    @abstractmethod
    def watch(self, path: PathLike, observer: Observer, default_watch: Watch) -> Unsubscribe:
        """Watch the virtual value at ``path`` through ``default_watch``."""


class IdentityProxy(StockProxy):
    """Pass-through proxy: paths and values are forwarded unchanged."""

    __slots__ = ()

    def get_value(self, path: PathLike, default_get_value: GetValue) -> Any:
        return default_get_value(to_path(path))

    def set_value(self, path: PathLike, value: Any, default_set_value: SetValue) -> None:
        default_set_value(to_path(path), value)

    def watch(self, path: PathLike, observer: Observer, default_watch: Watch) -> Unsubscribe:
        return default_watch(to_path(path), observer)
