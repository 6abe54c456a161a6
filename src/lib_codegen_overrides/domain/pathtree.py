"""Hierarchical path store keyed by dot-delimited schema paths.

Purpose
-------
Hold at most one value (normally a
:class:`~lib_codegen_overrides.domain.config.Config`) per schema path and
answer "which values sit on the way from the root to this element?".

Contents
--------
* :func:`split_path` – normalise a dotted path into its segments.
* :class:`PathTree` – prefix trie with :meth:`PathTree.insert` and
  :meth:`PathTree.bags_on_path`.

System Role
-----------
The composition root registers bags here while reading override rules; the
resolution algorithm reads them back in root-to-leaf order. The tree never
merges values itself.
"""

from __future__ import annotations

from typing import Generic, Iterator, TypeVar

T = TypeVar("T")


def split_path(path: str) -> tuple[str, ...]:
    """Return the non-empty segments of *path*.

    A leading dot, as used by fully qualified schema names, is ignored.

    Examples
    --------
    >>> split_path(".pkg.Message.field")
    ('pkg', 'Message', 'field')
    >>> split_path("")
    ()
    """

    return tuple(segment for segment in path.split(".") if segment)


class _Node(Generic[T]):
    __slots__ = ("value", "children")

    def __init__(self) -> None:
        self.value: T | None = None
        self.children: dict[str, _Node[T]] = {}


class PathTree(Generic[T]):
    """Prefix trie over path segments; each node optionally owns one value.

    Nodes without a value are structural only. The root node never holds a
    value, so an empty path has nothing on it.

    Examples
    --------
    >>> tree = PathTree()
    >>> tree.insert("a", "top")
    >>> tree.insert("a.b.c", "leaf")
    >>> tree.bags_on_path("a.b.c.d")
    ['top', 'leaf']
    >>> tree.bags_on_path("x.y")
    []
    """

    def __init__(self) -> None:
        self._root: _Node[T] = _Node()
        self._size = 0

    def insert(self, path: str, value: T) -> T | None:
        """Store *value* at exactly *path*, returning the value it replaced.

        Intermediate nodes are created as needed. A second insert at the same
        path replaces the stored value (last write wins).

        Raises
        ------
        ValueError
            When *path* has no segments.
        """

        segments = split_path(path)
        if not segments:
            raise ValueError("Overrides must be registered at a non-empty path")
        node = self._root
        for segment in segments:
            node = node.children.setdefault(segment, _Node())
        previous = node.value
        if previous is None:
            self._size += 1
        node.value = value
        return previous

    def get(self, path: str) -> T | None:
        """Return the value stored at exactly *path*, or ``None``."""

        node = self._find(split_path(path))
        return None if node is None else node.value

    def bags_on_path(self, path: str) -> list[T]:
        """Return every value stored on a prefix of *path*, root first."""

        return [value for _, value in self.prefixes(path)]

    def prefixes(self, path: str) -> list[tuple[str, T]]:
        """Return ``(prefix, value)`` for every stored value on *path*, root first.

        Examples
        --------
        >>> tree = PathTree()
        >>> tree.insert("pkg", 1)
        >>> tree.insert("pkg.Msg.f", 2)
        >>> tree.prefixes(".pkg.Msg.f")
        [('pkg', 1), ('pkg.Msg.f', 2)]
        """

        found: list[tuple[str, T]] = []
        node = self._root
        walked: list[str] = []
        for segment in split_path(path):
            child = node.children.get(segment)
            if child is None:
                break
            walked.append(segment)
            if child.value is not None:
                found.append((".".join(walked), child.value))
            node = child
        return found

    def items(self) -> Iterator[tuple[str, T]]:
        """Yield ``(path, value)`` for every stored value, depth first in insertion order."""

        stack: list[tuple[tuple[str, ...], _Node[T]]] = [((), self._root)]
        while stack:
            segments, node = stack.pop()
            if node.value is not None:
                yield ".".join(segments), node.value
            for segment, child in reversed(node.children.items()):
                stack.append(((*segments, segment), child))

    def __contains__(self, path: object) -> bool:
        return isinstance(path, str) and self.get(path) is not None

    def __len__(self) -> int:
        return self._size

    def _find(self, segments: tuple[str, ...]) -> _Node[T] | None:
        if not segments:
            return None
        node = self._root
        for segment in segments:
            child = node.children.get(segment)
            if child is None:
                return None
            node = child
        return node
