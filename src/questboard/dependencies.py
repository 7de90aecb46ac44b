"""Shared FastAPI dependencies."""

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from questboard.boards.store import BoardStore
from questboard.database import get_session as _get_session

get_db = _get_session


async def get_board_store(db: AsyncSession = Depends(get_db)) -> BoardStore:  # noqa: B008
    """Wrap the request's session in the board document store."""
    return BoardStore(db)
