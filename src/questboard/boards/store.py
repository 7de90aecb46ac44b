"""Board document store on top of async SQLAlchemy.

This is the only module that knows board ids are UUIDs and that a board is
a ``BoardRecord`` row. Everything above it works with string ids and plain
document dicts shaped like the API's Board entity.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from questboard.boards.errors import InvalidBoardIdError
from questboard.db.models import BoardRecord

# document key -> column attribute
_COLUMNS = (
    ("name", "name"),
    ("description", "description"),
    ("ownerId", "owner_id"),
    ("layout", "layout"),
    ("settings", "settings"),
    ("theme", "theme"),
    ("nodes", "nodes"),
    ("edges", "edges"),
    ("createdAt", "created_at"),
    ("updatedAt", "updated_at"),
)


def _aware(value: datetime | None) -> datetime | None:
    """SQLite drops tzinfo; stored times are always UTC."""
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _to_document(record: BoardRecord) -> dict[str, Any]:
    return {
        "id": str(record.id),
        "name": record.name,
        "description": record.description or "",
        "ownerId": record.owner_id,
        "layout": record.layout or {},
        "settings": record.settings or {},
        "theme": record.theme or {},
        "nodes": list(record.nodes or []),
        "edges": list(record.edges or []),
        "createdAt": _aware(record.created_at),
        "updatedAt": _aware(record.updated_at),
    }


def _to_columns(document: dict[str, Any]) -> dict[str, Any]:
    return {column: document[key] for key, column in _COLUMNS if key in document}


class BoardStore:
    """find / insert / replace / delete of board documents keyed by id."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    @staticmethod
    def parse_id(board_id: str) -> uuid.UUID:
        """Convert an external board id to the store key, or raise InvalidBoardIdError."""
        try:
            return uuid.UUID(str(board_id))
        except (TypeError, ValueError) as exc:
            raise InvalidBoardIdError(str(board_id)) from exc

    async def list_summaries(self) -> list[dict[str, Any]]:
        """Board headers, most recently updated first."""
        result = await self._session.execute(
            select(
                BoardRecord.id,
                BoardRecord.name,
                BoardRecord.description,
                BoardRecord.created_at,
                BoardRecord.updated_at,
            ).order_by(BoardRecord.updated_at.desc())
        )
        return [
            {
                "id": str(row.id),
                "name": row.name,
                "description": row.description or "",
                "createdAt": _aware(row.created_at),
                "updatedAt": _aware(row.updated_at),
            }
            for row in result
        ]

    async def find(self, board_id: str, *, for_update: bool = False) -> dict[str, Any] | None:
        """Load a board document.

        ``for_update`` takes a row lock for the rest of the transaction so
        concurrent mutations of one board serialize (PostgreSQL; SQLite
        ignores the clause).
        """
        stmt = (
            select(BoardRecord)
            .where(BoardRecord.id == self.parse_id(board_id))
            .execution_options(populate_existing=True)
        )
        if for_update:
            stmt = stmt.with_for_update()
        record = (await self._session.execute(stmt)).scalar_one_or_none()
        return _to_document(record) if record is not None else None

    async def insert(self, document: dict[str, Any]) -> str:
        """Insert a new board and return its assigned id."""
        record = BoardRecord(**_to_columns(document))
        self._session.add(record)
        await self._session.flush()
        return str(record.id)

    async def replace(self, board_id: str, document: dict[str, Any]) -> None:
        """Replace the whole document, creating it under ``board_id`` if absent."""
        key = self.parse_id(board_id)
        record = await self._session.get(BoardRecord, key)
        if record is None:
            self._session.add(BoardRecord(id=key, **_to_columns(document)))
        else:
            for column, value in _to_columns(document).items():
                setattr(record, column, value)
        await self._session.flush()

    async def write_graph(
        self,
        board_id: str,
        *,
        nodes: list[dict[str, Any]],
        edges: list[dict[str, Any]],
        updated_at: datetime,
    ) -> None:
        """Write the node and edge arrays together with a fresh updatedAt."""
        await self._session.execute(
            update(BoardRecord)
            .where(BoardRecord.id == self.parse_id(board_id))
            .values(nodes=nodes, edges=edges, updated_at=updated_at)
        )

    async def delete(self, board_id: str) -> None:
        await self._session.execute(delete(BoardRecord).where(BoardRecord.id == self.parse_id(board_id)))

    async def count(self) -> int:
        result = await self._session.execute(select(func.count()).select_from(BoardRecord))
        return int(result.scalar_one())

    async def commit(self) -> None:
        await self._session.commit()

    async def rollback(self) -> None:
        await self._session.rollback()
