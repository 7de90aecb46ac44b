"""Board document store.

One row per board: scalar metadata in columns, the achievement graph and
free-form metadata as JSON (JSONB on PostgreSQL).

Revision ID: 001_boards_table
Revises: None
Create Date: 2026-10-19
"""

from collections.abc import Sequence

import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

from alembic import op

revision: str = "001_boards_table"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None

_json = sa.JSON().with_variant(postgresql.JSONB(), "postgresql")


def upgrade() -> None:
    """Create the boards table."""
    op.create_table(
        "boards",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("description", sa.Text(), nullable=False, server_default=""),
        sa.Column("owner_id", sa.Text(), nullable=True),
        sa.Column("layout", _json, nullable=False),
        sa.Column("settings", _json, nullable=False),
        sa.Column("theme", _json, nullable=False),
        sa.Column("nodes", _json, nullable=False),
        sa.Column("edges", _json, nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("idx_boards_updated_at", "boards", ["updated_at"])


def downgrade() -> None:
    """Drop the boards table."""
    op.drop_index("idx_boards_updated_at", table_name="boards")
    op.drop_table("boards")
