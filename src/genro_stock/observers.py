# Copyright 2025 Softwell S.r.l. - Genropy Team
# SPDX-License-Identifier: Apache-2.0

"""Observer registry and notification engine.

Observers are plain callables receiving the value now present at the path
they watch. They are grouped in per-path buckets keyed by the canonical
path; a separate channel receives one ``BatchUpdate`` per mutation.

Notification rules:
    - A mutation at ``path`` notifies every watched path that is equal to,
      an ancestor of, or a descendant of ``path``.
    - The set of paths and each bucket are snapshotted before any observer
      runs: observers added or removed during a pass only affect later ones.
    - Within a bucket observers fire in registration order.

Example:
    >>> registry = ObserverRegistry()
    >>> unwatch = registry.watch('user.name', print)
    >>> registry.notify_sub_tree('user', {'user': {'name': 'Alice'}})
    Alice
    >>> unwatch()
"""

from __future__ import annotations

import itertools
import logging
from dataclasses import dataclass
from typing import Any, Callable, Iterable, Iterator

from .exceptions import UnregisteredObserverError
from .paths import ROOT, AnyPath, PathLike, get_at, is_related, normalize, to_path

_logger = logging.getLogger(__name__)

Observer = Callable[[Any], None]
ObserverKey = str
Unsubscribe = Callable[[], None]


@dataclass(frozen=True)
class BatchUpdate:
    """One logical mutation of the whole tree.

    Attributes:
        paths: Watched paths affected by the mutation, in notification order.
        values: The full tree after the mutation.
    """

    paths: tuple[AnyPath, ...]
    values: Any


class ObserverBucket:
    """Insertion-ordered collection of observers sharing one path."""

    __slots__ = ('_observers', '_keygen')

    def __init__(self, keygen: Iterator[int] | None = None) -> None:
        self._observers: dict[ObserverKey, Observer] = {}
        self._keygen = keygen if keygen is not None else itertools.count(1)

    def __len__(self) -> int:
        return len(self._observers)

    def __contains__(self, key: ObserverKey) -> bool:
        return key in self._observers

    def __repr__(self) -> str:
        return f"ObserverBucket({len(self._observers)})"

    def is_empty(self) -> bool:
        return not self._observers

    def add(self, observer: Observer) -> ObserverKey:
        """Register ``observer`` and return its opaque key."""
        key = f"obs-{next(self._keygen)}"
        self._observers[key] = observer
        return key

    def remove(self, key: ObserverKey) -> Observer:
        """Remove the observer registered under ``key``.

        Raises:
            KeyError: If the key is not in this bucket.
        """
        return self._observers.pop(key)

    def snapshot(self) -> list[Observer]:
        """Return the current observers in registration order."""
        return list(self._observers.values())

    def call(self, value: Any) -> None:
        """Invoke every observer with ``value``."""
        for observer in self.snapshot():
            observer(value)


class ObserverRegistry:
    """Per-path observer buckets plus the batch-update channel.

    A bucket exists only while it holds at least one observer.

    Args:
        raise_on_error: If True (default), explicit removal of an observer
            that is not registered raises ``UnregisteredObserverError``.
            If False, the failure is logged as a warning.
    """

    __slots__ = ('_buckets', '_batch_observers', '_keygen', '_raise_on_error')

    def __init__(self, raise_on_error: bool = True) -> None:
        self._keygen = itertools.count(1)
        self._buckets: dict[AnyPath, ObserverBucket] = {}
        self._batch_observers = ObserverBucket(self._keygen)
        self._raise_on_error = raise_on_error

    def __repr__(self) -> str:
        return f"ObserverRegistry({[normalize(p) for p in self._buckets]})"

    def __len__(self) -> int:
        """Number of observed paths."""
        return len(self._buckets)

    # ==================== Registration ====================

    def observe(self, path: PathLike, observer: Observer) -> ObserverKey:
        """Register ``observer`` at ``path`` and return its key."""
        path = to_path(path)
        bucket = self._buckets.get(path)
        if bucket is None:
            bucket = self._buckets[path] = ObserverBucket(self._keygen)
        key = bucket.add(observer)
        _logger.debug("Observer %s registered at %r", key, normalize(path))
        return key

    def unwatch(self, path: PathLike, key: ObserverKey) -> None:
        """Remove the observer registered under ``key`` at ``path``.

        The bucket is dropped when its last observer goes away.

        Raises:
            UnregisteredObserverError: If nothing is registered under
                ``key`` at ``path`` and ``raise_on_error`` is set.
        """
        path = to_path(path)
        bucket = self._buckets.get(path)
        if bucket is None or key not in bucket:
            message = f"Cannot remove observer {key!r}: path {normalize(path)!r} is not observed"
            if self._raise_on_error:
                raise UnregisteredObserverError(message)
            _logger.warning(message)
            return
        bucket.remove(key)
        if bucket.is_empty():
            del self._buckets[path]
        _logger.debug("Observer %s removed from %r", key, normalize(path))

    def watch(self, path: PathLike, observer: Observer) -> Unsubscribe:
        """Watch ``path``; return a cleanup removing exactly this observer.

        Calling the cleanup more than once is a no-op.
        """
        path = to_path(path)
        key = self.observe(path, observer)
        active = True

        def cleanup() -> None:
            nonlocal active
            if active:
                active = False
                self.unwatch(path, key)

        return cleanup

    def watch_all(self, observer: Observer) -> Unsubscribe:
        """Watch the whole tree."""
        return self.watch(ROOT, observer)

    def watch_batch_updates(self, observer: Callable[[BatchUpdate], None]) -> Unsubscribe:
        """Subscribe to the batch-update channel."""
        key = self._batch_observers.add(observer)
        active = True

        def cleanup() -> None:
            nonlocal active
            if active:
                active = False
                self._batch_observers.remove(key)

        return cleanup

    # ==================== Lookup ====================

    def is_observed(self, path: PathLike) -> bool:
        """True if at least one observer is registered exactly at ``path``."""
        return to_path(path) in self._buckets

    def observed_paths(self) -> list[AnyPath]:
        """Return the observed paths in order of first registration."""
        return list(self._buckets)

    def iter_observers(self, path: PathLike) -> Iterator[Observer]:
        """Iterate over the observers registered exactly at ``path``."""
        bucket = self._buckets.get(to_path(path))
        if bucket is not None:
            yield from bucket.snapshot()

    # ==================== Notification ====================

    def notify_paths(self, paths: Iterable[AnyPath], tree: Any) -> None:
        """Notify the observers at ``paths`` with their sub-values of ``tree``.

        Fires exactly one ``BatchUpdate`` first. Every observer list is
        captured before the first call, so (un)subscriptions made by
        observers take effect from the next pass.
        """
        paths = tuple(p for p in paths if p in self._buckets)
        pending = [(path, self._buckets[path].snapshot()) for path in paths]
        batch_observers = self._batch_observers.snapshot()
        _logger.debug("Notifying %d observed path(s)", len(pending))
        update = BatchUpdate(paths, tree)
        for observer in batch_observers:
            observer(update)
        for path, observers in pending:
            value = get_at(tree, path)
            for observer in observers:
                observer(value)

    def notify_sub_tree(self, path: PathLike, tree: Any) -> None:
        """Notify every observed path equal to, above or below ``path``."""
        path = to_path(path)
        self.notify_paths([p for p in self._buckets if is_related(path, p)], tree)

    def notify_all(self, tree: Any) -> None:
        """Notify every observed path."""
        self.notify_paths(list(self._buckets), tree)
