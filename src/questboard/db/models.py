"""ORM models for the board document store.

A board is stored as one row: scalar metadata in columns, the achievement
graph (nodes and edges) and free-form metadata in JSON columns. The JSON
columns become JSONB on PostgreSQL.
"""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any

from sqlalchemy import JSON, DateTime, Index, Text, Uuid, func
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from questboard.db.base import Base

JSONDocument = JSON().with_variant(JSONB(), "postgresql")


# ---------------------------------------------------------------------------
# Boards
# ---------------------------------------------------------------------------


class BoardRecord(Base):
    """Maps to the 'boards' table."""

    __tablename__ = "boards"
    __table_args__ = (Index("idx_boards_updated_at", "updated_at"),)

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    owner_id: Mapped[str | None] = mapped_column(Text, nullable=True)
    layout: Mapped[dict[str, Any]] = mapped_column(JSONDocument, nullable=False, default=dict)
    settings: Mapped[dict[str, Any]] = mapped_column(JSONDocument, nullable=False, default=dict)
    theme: Mapped[dict[str, Any]] = mapped_column(JSONDocument, nullable=False, default=dict)
    nodes: Mapped[list[dict[str, Any]]] = mapped_column(JSONDocument, nullable=False, default=list)
    edges: Mapped[list[dict[str, Any]]] = mapped_column(JSONDocument, nullable=False, default=list)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), nullable=False)
