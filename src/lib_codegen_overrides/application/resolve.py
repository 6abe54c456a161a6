"""Application-layer resolution of effective per-element configuration.

Purpose
-------
Fold every bag registered on a schema path into the single effective
:class:`~lib_codegen_overrides.domain.config.Config` the generator renders
that element with. Free of I/O so it can be reused by any composition root.

Contents
    - ``resolve``: public entry point driven by a simple left fold.
    - ``resolve_many``: convenience wrapper for batches of paths.
    - ``explain``: the contributing ``(prefix, bag)`` pairs, for diagnostics.

System Role
-----------
Reads a :class:`~lib_codegen_overrides.domain.pathtree.PathTree` populated by
:mod:`lib_codegen_overrides.core` and never writes back to it. Bags are
merged strictly ancestor-then-descendant; any other order changes which
override wins.
"""

from __future__ import annotations

from typing import Iterable

from ..domain.config import Config
from ..domain.pathtree import PathTree
from ..observability import log_debug


def resolve(tree: PathTree[Config], path: str) -> Config:
    """Return the effective configuration for the element at *path*.

    Why
    ----
    Overrides declared on a package or message must reach every field beneath
    it unless a more specific bag says otherwise.

    What
    ----
    Starts from a fully absent bag and merges each bag found on the path,
    root first, via :meth:`Config.merge`.

    Returns
    -------
    Config
        A new bag; the tree is left untouched. A path with no bags on it
        resolves to a fully absent bag.

    Examples
    --------
    >>> tree = PathTree()
    >>> _ = tree.insert("a", Config.new().with_skip(True))
    >>> resolve(tree, "a.b").skip
    True
    >>> resolve(tree, "x.y.z").is_default()
    True
    """

    effective = Config()
    bags = tree.bags_on_path(path)
    for bag in bags:
        effective = effective.merge(bag)
    log_debug("config_resolved", path=path, bags=len(bags))
    return effective


def resolve_many(tree: PathTree[Config], paths: Iterable[str]) -> dict[str, Config]:
    """Resolve each of *paths*, keyed by the path as given."""

    return {path: resolve(tree, path) for path in paths}


def explain(tree: PathTree[Config], path: str) -> list[tuple[str, Config]]:
    """Return the ``(prefix, bag)`` pairs that contribute to *path*, root first."""

    return tree.prefixes(path)
