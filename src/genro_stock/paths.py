# Copyright 2025 Softwell S.r.l. - Genropy Team
# SPDX-License-Identifier: Apache-2.0

"""Path algebra for Stock trees.

A path addresses a value inside a nested tree of dicts, lists and scalars.
Two kinds of path exist:

- ``Path``: an immutable sequence of segments (``str`` keys or non-negative
  ``int`` indices). The empty ``Path()`` is a regular path with no segments.
- ``ROOT``: the sentinel denoting the whole tree. It is the only instance of
  ``RootPath`` and cannot be produced by parsing a string.

Path Syntax:
    - Dotted: ``'user.address.street'``
    - Indexed: ``'items[0].name'`` (same as ``'items.0.name'``)
    - Quoted keys: ``'config["db.host"]'`` (the dot stays inside the key)

Example:
    >>> normalize('path["to"][0].variable')
    'path.to.0.variable'
    >>> relative('hello.world', 'hello.world.x.y')
    Path('x.y')
    >>> longest_common_path(['hello.world', 'hello.world.yes'])
    Path('hello.world')
"""

from __future__ import annotations

import re
from collections.abc import Mapping, MutableMapping, MutableSequence, Sequence
from typing import Any, Iterable, Iterator, Union

from .exceptions import InvalidPathError, NotASubPathError

Segment = Union[str, int]

_TOKEN_RE = re.compile(
    r"""
    \[\s*"(?P<dq>(?:[^"\\]|\\.)*)"\s*\]     # ["key"]
  | \[\s*'(?P<sq>(?:[^'\\]|\\.)*)'\s*\]     # ['key']
  | \[(?P<bare>[^\]\[]+)\]                  # [0] or [key]
  | (?P<name>[^.\[\]]+)                     # plain segment
  | (?P<dot>\.)
    """,
    re.VERBOSE,
)
_ESCAPE_RE = re.compile(r'\\(.)')


def _is_index(segment: Any) -> bool:
    return isinstance(segment, int) and not isinstance(segment, bool)


def _coerce(segment: str) -> Segment:
    """Digit-only segments become list indices."""
    if segment.isascii() and segment.isdigit():
        return int(segment)
    return segment


def _check_segment(segment: Any) -> Segment:
    if _is_index(segment):
        if segment < 0:
            raise InvalidPathError(f"Negative index {segment} is not a valid path segment")
        return segment
    if isinstance(segment, str):
        return segment
    raise InvalidPathError(
        f"Path segments must be str or int, not {type(segment).__name__}"
    )


def _parse(text: str) -> tuple[Segment, ...]:
    """Parse dotted/bracketed notation into a tuple of segments.

    Raises:
        InvalidPathError: On empty segments or unbalanced brackets.
    """
    segments: list[Segment] = []
    pos = 0
    prev = 'start'
    while pos < len(text):
        match = _TOKEN_RE.match(text, pos)
        if match is None:
            raise InvalidPathError(f"Malformed path {text!r} at position {pos}")
        kind = match.lastgroup
        if kind == 'dot':
            if prev in ('start', 'dot'):
                raise InvalidPathError(f"Empty segment in path {text!r}")
            prev = 'dot'
        elif kind == 'name':
            if prev == 'segment':
                raise InvalidPathError(f"Missing separator in path {text!r}")
            segments.append(_coerce(match.group('name')))
            prev = 'segment'
        elif kind == 'bare':
            bare = match.group('bare').strip()
            if not bare:
                raise InvalidPathError(f"Empty bracket segment in path {text!r}")
            if bare[0] in '"\'':
                raise InvalidPathError(f"Unterminated quote in path {text!r}")
            segments.append(_coerce(bare))
            prev = 'segment'
        else:
            segments.append(_ESCAPE_RE.sub(r'\1', match.group(kind)))
            prev = 'segment'
        pos = match.end()
    if prev == 'dot':
        raise InvalidPathError(f"Path {text!r} ends with a separator")
    return tuple(segments)


class RootPath:
    """Sentinel path addressing the whole tree.

    Use the module level ``ROOT`` instance; the class is a singleton.
    """

    __slots__ = ()
    _instance: RootPath | None = None

    def __new__(cls) -> RootPath:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    @property
    def is_root(self) -> bool:
        return True

    def __repr__(self) -> str:
        return 'ROOT'

    def __reduce__(self) -> str:
        return 'ROOT'

    def __copy__(self) -> RootPath:
        return self

    def __deepcopy__(self, memo: dict) -> RootPath:
        return self


ROOT = RootPath()


class Path:
    """An immutable sequence of path segments.

    Two paths are equal when their canonical dotted forms are equal, so
    ``Path(['a', 0]) == Path('a[0]') == Path('a.0')``.

    Attributes:
        segments: Tuple of ``str`` keys and ``int`` indices.

    Example:
        >>> p = Path('users[0].name')
        >>> p.segments
        ('users', 0, 'name')
        >>> str(p)
        'users.0.name'
    """

    __slots__ = ('_segments', '_key')

    def __init__(self, source: str | Iterable[Segment] | Path = ()) -> None:
        if isinstance(source, Path):
            segments = source._segments
        elif isinstance(source, str):
            segments = _parse(source)
        else:
            segments = tuple(_check_segment(s) for s in source)
        self._segments: tuple[Segment, ...] = segments
        self._key = '.'.join(str(s) for s in segments)

    @property
    def segments(self) -> tuple[Segment, ...]:
        return self._segments

    @property
    def is_root(self) -> bool:
        return False

    @property
    def parent(self) -> Path:
        """The path without its last segment (empty path has no parent)."""
        if not self._segments:
            raise ValueError("Empty path has no parent")
        return Path(self._segments[:-1])

    def join(self, *segments: Segment) -> Path:
        """Return a new path with ``segments`` appended."""
        return Path(self._segments + tuple(_check_segment(s) for s in segments))

    def startswith(self, other: Path) -> bool:
        """True if ``other`` is a (non-strict) segment prefix of this path."""
        size = len(other._segments)
        if size > len(self._segments):
            return False
        return _keys(self._segments[:size]) == _keys(other._segments)

    def __str__(self) -> str:
        return self._key

    def __repr__(self) -> str:
        return f"Path({self._key!r})"

    def __len__(self) -> int:
        return len(self._segments)

    def __iter__(self) -> Iterator[Segment]:
        return iter(self._segments)

    def __bool__(self) -> bool:
        return bool(self._segments)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Path):
            return self._key == other._key
        return NotImplemented

    def __hash__(self) -> int:
        return hash(('Path', self._key))


AnyPath = Union[Path, RootPath]
PathLike = Union[str, int, Sequence[Segment], Path, RootPath]


def _keys(segments: Iterable[Segment]) -> tuple[str, ...]:
    return tuple(str(s) for s in segments)


def to_path(path: PathLike) -> AnyPath:
    """Convert any accepted path input into a ``Path`` or ``ROOT``.

    Args:
        path: A dotted/bracketed string, a single index, a sequence of
            segments, a ``Path`` or ``ROOT``.

    Raises:
        InvalidPathError: If the input cannot be parsed.
    """
    if path is ROOT or isinstance(path, Path):
        return path
    if isinstance(path, str):
        return Path(path)
    if _is_index(path):
        return Path([path])
    if isinstance(path, Sequence):
        return Path(path)
    raise InvalidPathError(f"Cannot build a path from {type(path).__name__}")


def normalize(path: PathLike) -> str | RootPath:
    """Return the canonical dotted form of ``path``; ROOT is returned as is.

    Example:
        >>> normalize('array[0].value.1.child')
        'array.0.value.1.child'
    """
    resolved = to_path(path)
    if resolved is ROOT:
        return ROOT
    return str(resolved)


def is_nested(base: PathLike, candidate: PathLike) -> bool:
    """True if ``base`` is a strict ancestor of ``candidate``.

    ROOT on either side always counts as nested. Equal paths are not nested;
    use ``is_related`` for the ancestor-or-equal-or-descendant test.

    Example:
        >>> is_nested('parent', 'parent.child')
        True
        >>> is_nested('parent', 'parental')
        False
    """
    base, candidate = to_path(base), to_path(candidate)
    if base is ROOT or candidate is ROOT:
        return True
    return len(base) < len(candidate) and candidate.startswith(base)


def is_related(first: PathLike, second: PathLike) -> bool:
    """True if the paths are equal or one is nested in the other."""
    first, second = to_path(first), to_path(second)
    return first == second or is_nested(first, second) or is_nested(second, first)


def relative(base: PathLike, full: PathLike) -> AnyPath:
    """Return ``full`` expressed relative to ``base``.

    Returns ROOT when both paths are equal. A ROOT or empty ``base`` leaves
    ``full`` unchanged.

    Raises:
        NotASubPathError: If ``full`` is not ``base`` or a descendant of it.

    Example:
        >>> relative('a.b.c', 'a.b.c.d.e')
        Path('d.e')
    """
    base, full = to_path(base), to_path(full)
    if base is ROOT:
        return full
    if full == base:
        return ROOT
    if not base:
        return full
    if full is ROOT or not full.startswith(base):
        raise NotASubPathError(f"{normalize(full)!r} is not a sub path of {str(base)!r}")
    return Path(full.segments[len(base):])


def _sort_key(path: Path) -> tuple:
    # ints order numerically and before keys, so "a.2" < "a.10" < "a.b"
    key = []
    for segment in _keys(path.segments):
        if segment.isascii() and segment.isdigit():
            key.append((0, int(segment), segment))
        else:
            key.append((1, 0, segment))
    return tuple(key)


def longest_common_path(paths: Iterable[PathLike]) -> Path:
    """Return the longest segment prefix shared by every path.

    Paths are ordered by segment sequence (not by raw string) so comparing
    the first and last entries is enough. ROOT entries share no segment and
    are skipped.

    Example:
        >>> longest_common_path(['hello.world', 'hello.world.yes', 'hello.world.bye.x'])
        Path('hello.world')
        >>> longest_common_path(['a', 'b'])
        Path('')
    """
    resolved = [p for p in (to_path(p) for p in paths) if p is not ROOT]
    if not resolved:
        return Path()
    if len(resolved) == 1:
        return resolved[0]
    ordered = sorted(resolved, key=_sort_key)
    first, last = ordered[0].segments, ordered[-1].segments
    for i, segment in enumerate(first):
        if i >= len(last) or str(segment) != str(last[i]):
            return Path(first[:i])
    return Path(first)


# ==================== Tree access ====================

_MISSING = object()


def _child(container: Any, segment: Segment) -> Any:
    if isinstance(container, Mapping):
        if segment in container:
            return container[segment]
        alternate = str(segment) if _is_index(segment) else _coerce(segment)
        return container.get(alternate, _MISSING)
    if isinstance(container, Sequence) and not isinstance(container, (str, bytes)):
        index = _coerce(str(segment))
        if _is_index(index) and index < len(container):
            return container[index]
    return _MISSING


def _assign(container: Any, segment: Segment, value: Any) -> None:
    if isinstance(container, MutableMapping):
        if _is_index(segment) and segment not in container:
            segment = str(segment)
        container[segment] = value
    elif isinstance(container, MutableSequence):
        index = _coerce(str(segment))
        if not _is_index(index):
            raise TypeError(f"List index must be an integer, got {segment!r}")
        if index >= len(container):
            container.extend([None] * (index + 1 - len(container)))
        container[index] = value
    else:
        raise TypeError(f"Cannot set {segment!r} on {type(container).__name__}")


def get_at(tree: Any, path: PathLike) -> Any:
    """Read the value at ``path``; missing values read as ``None``.

    ROOT and the empty path return ``tree`` itself.
    """
    path = to_path(path)
    if path is ROOT or not path:
        return tree
    current = tree
    for segment in path.segments:
        current = _child(current, segment)
        if current is _MISSING:
            return None
    return current


def set_at(tree: Any, path: PathLike, value: Any) -> Any:
    """Write ``value`` at ``path`` in place, creating missing containers.

    A missing or scalar intermediate is replaced by a list when the next
    segment is an index, by a dict otherwise. A scalar (or None) tree is
    replaced the same way.

    Returns:
        The tree to keep: ``value`` itself for ROOT (and the empty path),
        a new container when ``tree`` was a scalar, otherwise the same
        ``tree`` object, mutated.

    Raises:
        TypeError: If the tree (or an intermediate) is an immutable container.
    """
    path = to_path(path)
    if path is ROOT or not path:
        return value
    segments = path.segments
    tree = _container_for(tree, segments[0], path)
    current = tree
    for segment, following in zip(segments, segments[1:]):
        child = _child(current, segment)
        if not isinstance(child, (MutableMapping, MutableSequence)):
            child = _container_for(child, following, path)
            _assign(current, segment, child)
        current = child
    _assign(current, segments[-1], value)
    return tree


def _container_for(node: Any, segment: Segment, path: Path) -> Any:
    """Return ``node`` if writable, else a fresh container suited to ``segment``."""
    if isinstance(node, (MutableMapping, MutableSequence)):
        return node
    if isinstance(node, (Mapping, tuple)):
        raise TypeError(
            f"Cannot write through immutable {type(node).__name__} at {str(path)!r}"
        )
    return [] if _is_index(segment) else {}
