"""Board API endpoints — /api/boards/*."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends

from questboard.boards import service
from questboard.boards.schemas import (
    AchievementCreatedResponse,
    AchievementPatch,
    AchievementResponse,
    BoardEnvelopeResponse,
    BoardResponse,
    BoardSummaryResponse,
    BoardWriteRequest,
    CreateAchievementRequest,
    MessageResponse,
    ProgressRequest,
)
from questboard.boards.store import BoardStore
from questboard.dependencies import get_board_store

router = APIRouter(prefix="/api/boards", tags=["Boards"])


def _fields(body: BoardWriteRequest | None) -> dict[str, Any]:
    return body.model_dump(by_alias=True, exclude_unset=True) if body is not None else {}


# ---------------------------------------------------------------------------
# Boards
# ---------------------------------------------------------------------------


@router.get("", response_model=list[BoardSummaryResponse])
async def list_boards(store: BoardStore = Depends(get_board_store)) -> list[dict[str, Any]]:  # noqa: B008
    """Board headers, most recently updated first."""
    return await service.list_boards(store)


@router.post("", response_model=BoardResponse, status_code=201)
async def create_board(
    body: BoardWriteRequest | None = None,
    store: BoardStore = Depends(get_board_store),  # noqa: B008
) -> dict[str, Any]:
    """Create a board. ``name`` is required."""
    return await service.create_board(store, _fields(body))


@router.get("/{board_id}", response_model=BoardResponse)
async def get_board(board_id: str, store: BoardStore = Depends(get_board_store)) -> dict[str, Any]:  # noqa: B008
    """Full board with stats and progression."""
    return await service.get_board(store, board_id)


@router.put("/{board_id}", response_model=BoardResponse)
async def replace_board(
    board_id: str,
    body: BoardWriteRequest | None = None,
    store: BoardStore = Depends(get_board_store),  # noqa: B008
) -> dict[str, Any]:
    """Save the whole board (creates it if the id is unknown)."""
    return await service.replace_board(store, board_id, _fields(body))


@router.delete("/{board_id}", response_model=MessageResponse)
async def delete_board(board_id: str, store: BoardStore = Depends(get_board_store)) -> MessageResponse:  # noqa: B008
    await service.delete_board(store, board_id)
    return MessageResponse(message="deleted")


# ---------------------------------------------------------------------------
# Achievements
# ---------------------------------------------------------------------------


@router.post("/{board_id}/achievements", response_model=AchievementCreatedResponse, status_code=201)
async def create_achievement(
    board_id: str,
    body: CreateAchievementRequest | None = None,
    store: BoardStore = Depends(get_board_store),  # noqa: B008
) -> dict[str, Any]:
    """Add an achievement, optionally linked from ``parentId``."""
    body = body or CreateAchievementRequest()
    return await service.create_achievement(
        store,
        board_id,
        dict(body.model_extra or {}),
        parent_id=body.parent_id,
        edge_id=body.edge_id,
        edge_type=body.edge_type,
    )


@router.patch("/{board_id}/achievements/{achievement_id}", response_model=AchievementResponse)
async def update_achievement(
    board_id: str,
    achievement_id: str,
    body: AchievementPatch | None = None,
    store: BoardStore = Depends(get_board_store),  # noqa: B008
) -> dict[str, Any]:
    """Partial update; only fields present in the body change."""
    return await service.update_achievement(store, board_id, achievement_id, body or AchievementPatch())


@router.post("/{board_id}/achievements/{achievement_id}/progress", response_model=AchievementResponse)
async def record_progress(
    board_id: str,
    achievement_id: str,
    body: ProgressRequest | None = None,
    store: BoardStore = Depends(get_board_store),  # noqa: B008
) -> dict[str, Any]:
    """Increment (default) or set progress; status follows unless given."""
    return await service.record_progress(store, board_id, achievement_id, body or ProgressRequest())


@router.delete("/{board_id}/achievements/{achievement_id}", response_model=BoardEnvelopeResponse)
async def delete_achievement(
    board_id: str,
    achievement_id: str,
    store: BoardStore = Depends(get_board_store),  # noqa: B008
) -> dict[str, Any]:
    """Remove an achievement and its edges."""
    return await service.delete_achievement(store, board_id, achievement_id)
