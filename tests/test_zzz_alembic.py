"""Alembic migration tests.

File named test_zzz_alembic.py to sort LAST in pytest collection order.
"""

from pathlib import Path

import pytest
from sqlalchemy import create_engine, inspect

from alembic import command
from alembic.config import Config

ROOT = Path(__file__).resolve().parents[1]


@pytest.fixture
def alembic_config(tmp_path: Path) -> tuple[Config, str]:
    db_path = tmp_path / "migrations.db"
    config = Config(str(ROOT / "alembic.ini"))
    config.set_main_option("sqlalchemy.url", f"sqlite+aiosqlite:///{db_path}")
    return config, f"sqlite:///{db_path}"


def _tables(sync_url: str) -> set[str]:
    engine = create_engine(sync_url)
    try:
        return set(inspect(engine).get_table_names())
    finally:
        engine.dispose()


def test_alembic_upgrade_head(alembic_config) -> None:
    """alembic upgrade head creates the boards table."""
    config, sync_url = alembic_config
    command.upgrade(config, "head")

    tables = _tables(sync_url)
    assert "boards" in tables
    assert "alembic_version" in tables

    engine = create_engine(sync_url)
    try:
        columns = {column["name"] for column in inspect(engine).get_columns("boards")}
        indexes = {index["name"] for index in inspect(engine).get_indexes("boards")}
    finally:
        engine.dispose()
    assert columns == {
        "id",
        "name",
        "description",
        "owner_id",
        "layout",
        "settings",
        "theme",
        "nodes",
        "edges",
        "created_at",
        "updated_at",
    }
    assert "idx_boards_updated_at" in indexes


def test_alembic_downgrade_base(alembic_config) -> None:
    """Downgrading to base drops the boards table again."""
    config, sync_url = alembic_config
    command.upgrade(config, "head")
    command.downgrade(config, "base")
    assert "boards" not in _tables(sync_url)
