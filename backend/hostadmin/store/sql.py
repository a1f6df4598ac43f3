# backend/hostadmin/store/sql.py
from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from sqlalchemy import delete, func, insert, or_, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from hostadmin.core.errors import OptimisticConflict, StoreUnavailable
from hostadmin.models.document import Document
from hostadmin.store.base import (
    DocumentStore,
    ancestors,
    check_disjoint,
    flatten,
    normalize_path,
    unflatten,
)

logger = logging.getLogger(__name__)


def _subtree_clause(path: str):
    # Plain equality on a prefix slice: LIKE folds ASCII case on SQLite.
    prefix = f"{path}/"
    return or_(
        Document.path == path,
        func.substr(Document.path, 1, len(prefix)) == prefix,
    )


class SqlDocumentStore(DocumentStore):
    """
    Document store over the ``documents`` table.

    Every public call runs in its own session and transaction. Multi-path
    updates and their preconditions share one transaction, and the guarded
    rows are locked (``FOR UPDATE``) before they are compared.
    """

    def __init__(self, sessionmaker: async_sessionmaker[AsyncSession]):
        self._sessionmaker = sessionmaker

    async def get(self, path: str) -> Any | None:
        path = normalize_path(path)
        try:
            async with self._sessionmaker() as session:
                return await self._read(session, path)
        except SQLAlchemyError as e:
            logger.error(f"Document store read failed at {path}: {e}")
            raise StoreUnavailable(f"read failed at {path!r}") from e

    async def update(
        self,
        updates: Mapping[str, Any],
        *,
        expect: Mapping[str, Any] | None = None,
    ) -> None:
        normalized = {normalize_path(p): v for p, v in updates.items()}
        if not normalized:
            return
        check_disjoint(normalized)
        guards = {normalize_path(p): v for p, v in (expect or {}).items()}

        try:
            async with self._sessionmaker() as session:
                async with session.begin():
                    if guards:
                        stale = []
                        for path, expected in guards.items():
                            current = await self._read(session, path, lock=True)
                            if current != expected:
                                stale.append(path)
                        if stale:
                            logger.info(f"Precondition failed, update rejected: {stale}")
                            raise OptimisticConflict(stale)

                    for path, value in normalized.items():
                        await self._write(session, path, value)
        except IntegrityError as e:
            # A concurrent writer inserted a leaf under an unlocked (absent) path.
            logger.info(f"Concurrent insert detected for {sorted(normalized)}: {e}")
            raise OptimisticConflict(sorted(guards) or sorted(normalized)) from e
        except SQLAlchemyError as e:
            logger.error(f"Document store update failed for {sorted(normalized)}: {e}")
            raise StoreUnavailable(f"update failed for {sorted(normalized)!r}") from e

        logger.debug(f"Applied document update: {sorted(normalized)}")

    async def _read(self, session: AsyncSession, path: str, lock: bool = False) -> Any | None:
        stmt = select(Document.path, Document.value).where(_subtree_clause(path)).order_by(Document.path)
        if lock:
            stmt = stmt.with_for_update()
        rows = (await session.execute(stmt)).all()
        return unflatten(path, [(row.path, row.value) for row in rows])

    async def _write(self, session: AsyncSession, path: str, value: Any) -> None:
        # A scalar stored at an ancestor would shadow the new subtree.
        parents = ancestors(path)
        if parents:
            await session.execute(
                delete(Document)
                .where(Document.path.in_(parents))
                .execution_options(synchronize_session=False)
            )
        await session.execute(
            delete(Document).where(_subtree_clause(path)).execution_options(synchronize_session=False)
        )

        leaves = flatten(path, value)
        if leaves:
            await session.execute(
                insert(Document),
                [{"path": leaf_path, "value": leaf} for leaf_path, leaf in leaves.items()],
            )
