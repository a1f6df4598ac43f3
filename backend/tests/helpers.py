# tests/helpers.py
from __future__ import annotations

import asyncio
from collections.abc import Mapping
from typing import Any

from hostadmin.core.errors import StoreUnavailable
from hostadmin.store.base import DocumentStore


class FlakyStore(DocumentStore):
    """Wraps a store and fails the next ``fail_writes`` updates / ``fail_reads`` gets."""

    def __init__(self, inner: DocumentStore):
        self.inner = inner
        self.fail_writes = 0
        self.fail_reads = 0
        self.writes: list[dict[str, Any]] = []

    async def get(self, path: str) -> Any | None:
        if self.fail_reads:
            self.fail_reads -= 1
            raise StoreUnavailable(f"read failed at {path!r}")
        return await self.inner.get(path)

    async def update(self, updates: Mapping[str, Any], *, expect: Mapping[str, Any] | None = None) -> None:
        if self.fail_writes:
            self.fail_writes -= 1
            raise StoreUnavailable(f"update failed for {sorted(updates)!r}")
        self.writes.append(dict(updates))
        await self.inner.update(updates, expect=expect)


class RendezvousStore(DocumentStore):
    """
    Holds every read of ``path`` until ``parties`` readers have arrived, so
    concurrent callers are guaranteed to act on the same snapshot.
    """

    def __init__(self, inner: DocumentStore, path: str, parties: int = 2):
        self.inner = inner
        self.path = path
        self.parties = parties
        self._arrived = 0
        self._all_arrived = asyncio.Event()

    async def get(self, path: str) -> Any | None:
        value = await self.inner.get(path)
        if path == self.path:
            self._arrived += 1
            if self._arrived >= self.parties:
                self._all_arrived.set()
            await self._all_arrived.wait()
        return value

    async def update(self, updates: Mapping[str, Any], *, expect: Mapping[str, Any] | None = None) -> None:
        await self.inner.update(updates, expect=expect)
