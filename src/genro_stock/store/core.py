# Copyright 2025 Softwell S.r.l. - Genropy Team
# SPDX-License-Identifier: Apache-2.0

"""Stock - A path-addressable observable value tree.

This module provides the Stock class, the owner of one mutable value tree
made of plain dicts, lists and scalars. Every write goes through a path and
drives notification of the observers watching related paths.

Key Features:
    - **Path access**: Dotted ('a.b.c') and indexed ('items[0].name') paths
    - **Functional updates**: set_value(path, lambda old: old + 1)
    - **Subtree notification**: Ancestors and descendants of a written path
      are notified with their own sub-value
    - **Batch channel**: One BatchUpdate with the whole tree per mutation
    - **Reset**: Restore an independent copy of the initial values

Reference Semantics:
    Reads return live references. ``set_value`` mutates the tree in place,
    so a tree obtained from ``get_values()`` sees later partial writes.
    ``set_values`` and ``reset_values`` swap in a new tree and leave
    previously returned references untouched.

Example:
    Basic usage::

        stock = Stock({'user': {'name': 'Alice', 'tags': []}})
        unwatch = stock.watch('user', lambda user: print(user['name']))

        stock.set_value('user.name', 'Bob')          # prints 'Bob'
        stock.set_value('user.tags[0]', 'admin')
        stock.set_value('counter', lambda old: (old or 0) + 1)

        unwatch()
        stock.reset_values()
"""

from __future__ import annotations

import copy
import logging
from typing import Any, Callable

from ..observers import BatchUpdate, Observer, ObserverKey, ObserverRegistry, Unsubscribe
from ..paths import PathLike, get_at, normalize, set_at, to_path

_logger = logging.getLogger(__name__)


class Stock:
    """A value tree with path-scoped get/set/watch.

    Stock provides:
    - get_value(path) / stock[path]: Read a sub-value (ROOT reads everything)
    - set_value(path, value_or_updater) / stock[path] = value: Write and notify
    - set_values(tree) / reset_values(): Replace the whole tree and notify
    - watch / watch_all / watch_batch_updates: Subscribe, get a cleanup back

    Attributes:
        registry: The ObserverRegistry driving notifications.

    Example:
        >>> stock = Stock({'a': {'b': 1}})
        >>> stock.set_value('a.b', lambda old: old + 1)
        >>> stock['a.b']
        2
    """

    __slots__ = ('_initial_values', '_values', 'registry')

    def __init__(
        self,
        initial_values: Any = None,
        *,
        registry: ObserverRegistry | None = None,
        raise_on_error: bool = True,
    ) -> None:
        """Initialize a Stock.

        Args:
            initial_values: Initial tree (dict, list or scalar). It is
                deep-copied: later changes to the caller's object affect
                neither the tree nor reset_values(). None starts from an
                empty dict.
            registry: Optional ObserverRegistry to use; a new one is created
                otherwise.
            raise_on_error: Passed to the new registry. If True (default),
                removing an unknown observer raises UnregisteredObserverError.
                Ignored when ``registry`` is given.
        """
        if initial_values is None:
            initial_values = {}
        self._initial_values = copy.deepcopy(initial_values)
        self._values = copy.deepcopy(initial_values)
        self.registry = registry if registry is not None else ObserverRegistry(raise_on_error)

    def __repr__(self) -> str:
        return f"Stock({self._values!r})"

    def __getitem__(self, path: PathLike) -> Any:
        """Get value by path.

        Example:
            >>> stock['user.name']
            'Alice'
        """
        return self.get_value(path)

    def __setitem__(self, path: PathLike, value: Any) -> None:
        """Set value by path; callables are applied as updaters."""
        self.set_value(path, value)

    # ==================== Read ====================

    def get_value(self, path: PathLike) -> Any:
        """Return the value at ``path``; ROOT returns the whole tree.

        Missing paths read as None.
        """
        return get_at(self._values, path)

    def get_values(self) -> Any:
        """Return the current tree (a live reference)."""
        return self._values

    # ==================== Write ====================

    def set_value(self, path: PathLike, value: Any | Callable[[Any], Any]) -> None:
        """Set the value at ``path`` and notify the related observers.

        Args:
            path: Target path, dotted or indexed. ROOT replaces the tree.
            value: The new value, or a callable receiving the current value
                at ``path`` and returning the new one.

        Example:
            >>> stock.set_value('items[2].name', 'third')
            >>> stock.set_value('count', lambda old: (old or 0) + 1)
        """
        path = to_path(path)
        if callable(value):
            value = value(get_at(self._values, path))
        self._values = set_at(self._values, path, value)
        _logger.debug("Value set at %r", normalize(path))
        self.registry.notify_sub_tree(path, self._values)

    def set_values(self, values: Any) -> None:
        """Replace the whole tree and notify every observer."""
        self._values = values
        _logger.debug("Values replaced")
        self.registry.notify_all(values)

    def reset_values(self) -> None:
        """Restore a fresh deep copy of the initial values."""
        self.set_values(copy.deepcopy(self._initial_values))

    # ==================== Observers ====================

    def watch(self, path: PathLike, observer: Observer) -> Unsubscribe:
        """Watch ``path``. Returns an idempotent cleanup."""
        return self.registry.watch(path, observer)

    def watch_all(self, observer: Observer) -> Unsubscribe:
        """Watch the whole tree. Returns an idempotent cleanup."""
        return self.registry.watch_all(observer)

    def watch_batch_updates(self, observer: Callable[[BatchUpdate], None]) -> Unsubscribe:
        """Receive one BatchUpdate per mutation. Returns an idempotent cleanup."""
        return self.registry.watch_batch_updates(observer)

    def unwatch(self, path: PathLike, key: ObserverKey) -> None:
        """Remove an observer registered with ``registry.observe``."""
        self.registry.unwatch(path, key)

    def is_observed(self, path: PathLike) -> bool:
        """True if an observer is registered exactly at ``path``."""
        return self.registry.is_observed(path)

