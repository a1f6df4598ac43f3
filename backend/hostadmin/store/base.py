# backend/hostadmin/store/base.py
"""
Document store contract.

The store is a tree of JSON values addressed by slash-separated paths
(``hosts/{hostId}``, ``subscriptionHistory/{hostId}/{key}``). It supports
reading a subtree, overwriting a subtree, and an atomic multi-path update
that can be guarded by compare-and-swap preconditions.
"""
from __future__ import annotations

import abc
from collections.abc import Iterable, Mapping
from typing import Any

_FORBIDDEN_SEGMENT_CHARS = set(".#$[]")


def normalize_path(path: str) -> str:
    """
    Strip surrounding slashes and validate each segment.

    Raises ValueError for an empty path, an empty segment, or a segment that
    contains one of ``. # $ [ ]``.
    """
    if not isinstance(path, str):
        raise ValueError(f"path must be a string, got {type(path).__name__}")
    segments = path.strip("/").split("/")
    if segments == [""]:
        raise ValueError("path must not be empty")
    for segment in segments:
        _check_segment(segment, path)
    return "/".join(segments)


def _check_segment(segment: str, path: str) -> None:
    if not segment:
        raise ValueError(f"path {path!r} contains an empty segment")
    if _FORBIDDEN_SEGMENT_CHARS & set(segment):
        raise ValueError(f"path segment {segment!r} contains a forbidden character")


def join_path(*parts: str) -> str:
    return normalize_path("/".join(str(p).strip("/") for p in parts))


def ancestors(path: str) -> list[str]:
    """Proper ancestors of a normalized path, nearest last: a/b/c -> [a, a/b]."""
    segments = path.split("/")
    return ["/".join(segments[:i]) for i in range(1, len(segments))]


def flatten(path: str, value: Any) -> dict[str, Any]:
    """
    Flatten a JSON value into ``{leaf_path: scalar}``.

    Objects are expanded key by key; ``None`` and empty objects produce no
    leaves. Lists are kept whole as a single leaf.
    """
    if value is None:
        return {}
    if isinstance(value, Mapping):
        leaves: dict[str, Any] = {}
        for key, child in value.items():
            if not isinstance(key, str):
                raise ValueError(f"document keys must be strings, got {key!r} under {path!r}")
            _check_segment(key, path)
            leaves.update(flatten(f"{path}/{key}", child))
        return leaves
    return {path: value}


def unflatten(path: str, rows: Iterable[tuple[str, Any]]) -> Any:
    """Rebuild the value at ``path`` from its leaf rows. Returns None when there are none."""
    tree: dict[str, Any] = {}
    found = False
    for leaf_path, value in rows:
        if leaf_path == path:
            return value
        found = True
        node = tree
        relative = leaf_path[len(path) + 1:].split("/")
        for segment in relative[:-1]:
            node = node.setdefault(segment, {})
        node[relative[-1]] = value
    return tree if found else None


def check_disjoint(paths: Iterable[str]) -> None:
    """Reject update paths where one is an ancestor of another."""
    seen = set(paths)
    for path in seen:
        for parent in ancestors(path):
            if parent in seen:
                raise ValueError(f"update paths {parent!r} and {path!r} overlap")


class DocumentStore(abc.ABC):
    """
    Remote tree-structured key-value store.

    Implementations raise ``StoreUnavailable`` for backend failures and
    ``OptimisticConflict`` when an ``expect`` precondition does not hold.
    """

    @abc.abstractmethod
    async def get(self, path: str) -> Any | None:
        """Return the value at ``path`` (a scalar or a nested dict), or None."""

    @abc.abstractmethod
    async def update(
        self,
        updates: Mapping[str, Any],
        *,
        expect: Mapping[str, Any] | None = None,
    ) -> None:
        """
        Apply every ``{path: value}`` write atomically.

        Each value overwrites the whole subtree at its path; ``None`` deletes
        it. When ``expect`` is given, every ``{path: value}`` in it must equal
        the current stored value (``None`` meaning absent) or nothing is
        written and ``OptimisticConflict`` is raised.
        """

    async def set(self, path: str, value: Any) -> None:
        await self.update({path: value})

    async def remove(self, path: str) -> None:
        await self.update({path: None})
