# Copyright 2025 Softwell S.r.l. - Genropy Team
# SPDX-License-Identifier: Apache-2.0

"""MappingProxy - Rename and reshape a slice of a Stock by a path map.

The map goes from virtual paths, relative to the proxy mount path, to
underlying paths in the proxied tree::

    proxy = MappingProxy({
        'name.first': 'user.givenName',
        'name.last': 'user.familyName',
    }, path='profile')

Only the independently addressable leaves must be mapped. Their virtual
ancestors are served by one read of the smallest underlying subtree that
holds every mapped descendant, reshaped to the virtual layout:

    >>> proxy.get_value('profile.name.first', stock.get_value)
    'Ada'
    >>> proxy.get_value('profile.name', stock.get_value)
    {'first': 'Ada', 'last': 'Lovelace'}

Writing an ancestor splits the value over the mapped leaves below it.
"""

from __future__ import annotations

import copy
import logging
from typing import Any, Mapping

from ..exceptions import NotASubPathError, UnmappedPathError
from ..observers import Observer, Unsubscribe
from ..paths import (
    ROOT,
    AnyPath,
    Path,
    PathLike,
    get_at,
    is_nested,
    longest_common_path,
    normalize,
    relative,
    set_at,
    to_path,
)
from .base import GetValue, SetValue, StockProxy, Watch

_logger = logging.getLogger(__name__)


class MappingProxy(StockProxy):
    """Proxy routing virtual paths to underlying paths through a fixed map.

    Args:
        mapping: Virtual path (relative to ``path``) -> underlying path.
        path: Mount path of the virtual subtree.
    """

    __slots__ = ('_map',)

    def __init__(self, mapping: Mapping[PathLike, PathLike], path: PathLike = ROOT) -> None:
        super().__init__(path)
        self._map: dict[AnyPath, AnyPath] = {
            to_path(virtual): to_path(target) for virtual, target in mapping.items()
        }
        self._check_overlaps()

    def _check_overlaps(self) -> None:
        """Ensure a mapped key's descendants map inside its own target.

        Reading such a key fetches its target once and fills the deeper
        entries from it, so their targets must live in that subtree.

        Raises:
            UnmappedPathError: If a deeper entry points outside.
        """
        for key, target in self._map.items():
            for inner_key, inner_target in self._map.items():
                if inner_key is key or not is_nested(key, inner_key):
                    continue
                if target is ROOT:
                    continue
                if inner_target is ROOT or not inner_target.startswith(target):
                    raise UnmappedPathError(
                        f"Mapping proxy error: {normalize(inner_key)!r} maps to "
                        f"{normalize(inner_target)!r}, outside of {normalize(target)!r} "
                        f"mapped by its ancestor {normalize(key)!r}"
                    )

    def __repr__(self) -> str:
        entries = {normalize(k): normalize(v) for k, v in self._map.items()}
        return f"MappingProxy({entries!r}, path={normalize(self.path)!r})"

    @property
    def mapping(self) -> dict[AnyPath, AnyPath]:
        """A copy of the normalized map."""
        return dict(self._map)

    # ==================== Resolution ====================

    def _virtual(self, path: PathLike) -> AnyPath:
        """Express ``path`` relative to the mount path."""
        try:
            return relative(self.path, path)
        except NotASubPathError as e:
            raise UnmappedPathError(
                f"Mapping proxy error: {normalize(path)!r} is outside of "
                f"mount path {normalize(self.path)!r}"
            ) from e

    def _entries_under(self, virtual: AnyPath) -> list[tuple[AnyPath, AnyPath]]:
        """Map entries whose key is ``virtual`` or nested under it, shallowest first."""
        entries = [
            (key, target)
            for key, target in self._map.items()
            if key == virtual or is_nested(virtual, key)
        ]
        return sorted(entries, key=lambda entry: len(entry[0]) if isinstance(entry[0], Path) else 0)

    def _unmapped(self, path: PathLike) -> UnmappedPathError:
        mapped = sorted(str(normalize(k)) for k in self._map)
        return UnmappedPathError(
            f"Mapping proxy error: {normalize(path)!r} is not defined in proxy map {mapped}"
        )

    def resolve_underlying_path(self, path: PathLike) -> AnyPath:
        """Return the underlying path serving the virtual ``path``.

        - A mapped key resolves to its target.
        - The mount path itself resolves to ROOT.
        - An ancestor of mapped keys resolves to the longest common path of
          their targets.

        Raises:
            UnmappedPathError: If ``path`` is none of the above.
        """
        virtual = self._virtual(path)
        if virtual in self._map:
            return self._map[virtual]
        if virtual is ROOT:
            return ROOT
        targets = [target for key, target in self._map.items() if is_nested(virtual, key)]
        if targets:
            return longest_common_path(targets)
        raise self._unmapped(path)

    def _reconstruct(self, raw: Any, virtual: AnyPath, underlying: AnyPath) -> Any:
        """Build the virtual-shaped value from the raw value read at ``underlying``."""
        entries = self._entries_under(virtual)
        if not entries:
            return {}
        result: Any = None
        for key, target in entries:
            value = get_at(raw, relative(underlying, target))
            position = relative(virtual, key)
            if position is ROOT:
                if len(entries) > 1:
                    # deeper entries are written into it
                    value = copy.deepcopy(value)
            elif result is None:
                result = [] if isinstance(position.segments[0], int) else {}
            result = set_at(result, position, value)
        return result

    # ==================== Proxy operations ====================

    def get_value(self, path: PathLike, default_get_value: GetValue) -> Any:
        virtual = self._virtual(path)
        underlying = self.resolve_underlying_path(path)
        return self._reconstruct(default_get_value(underlying), virtual, underlying)

    def watch(self, path: PathLike, observer: Observer, default_watch: Watch) -> Unsubscribe:
        virtual = self._virtual(path)
        underlying = self.resolve_underlying_path(path)

        def proxied_observer(raw: Any) -> None:
            observer(self._reconstruct(raw, virtual, underlying))

        _logger.debug("Watching %r through %r", normalize(path), normalize(underlying))
        return default_watch(underlying, proxied_observer)

    def set_value(self, path: PathLike, value: Any, default_set_value: SetValue) -> None:
        """Write ``value`` to every mapped target at or below ``path``.

        Each matched entry receives the slice of ``value`` found at the
        entry key relative to ``path``; shallower entries are written first.

        Raises:
            UnmappedPathError: If no map entry is at or below ``path``.
        """
        virtual = self._virtual(path)
        entries = self._entries_under(virtual)
        if not entries:
            raise self._unmapped(path)
        for key, target in entries:
            default_set_value(target, get_at(value, relative(virtual, key)))
