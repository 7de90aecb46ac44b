"""Board mutation coordinator.

Every achievement mutation is a single-document read-modify-write:

1. Load the board (row-locked for the transaction); missing -> BoardNotFoundError.
2. Mutate in-memory copies of the node and edge arrays.
3. Write both arrays plus a fresh ``updatedAt`` and commit. Any failure
   before the commit rolls back, so the board keeps its prior state.
4. Reload the board and recompute stats from scratch.
"""

from __future__ import annotations

import copy
import random
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

import structlog

from questboard.boards.errors import (
    AchievementNotFoundError,
    BoardError,
    BoardNotFoundError,
    BoardValidationError,
    DuplicateAchievementError,
)
from questboard.boards.normalizer import (
    DEFAULT_EDGE_TYPE,
    as_dict,
    build_node,
    clamp,
    coalesce,
    create_achievement_node,
    normalize_achievement_data,
    normalize_edge,
    normalize_layout,
    normalize_stored_nodes,
    normalize_theme,
    prepare_edges,
    prepare_nodes,
    to_number,
)
from questboard.boards.patch import merge_achievement_patch
from questboard.boards.schemas import AchievementPatch, ProgressRequest
from questboard.boards.statistics import compute_progression, compute_stats
from questboard.boards.store import BoardStore
from questboard.boards.timeline import reset_timeline, to_timestamp, utc_now

logger = structlog.get_logger()

DEFAULT_BOARD_NAME = "Untitled"


@dataclass
class BoardGraph:
    """Mutable working copy of a board's node and edge arrays."""

    nodes: list[dict[str, Any]] = field(default_factory=list)
    edges: list[dict[str, Any]] = field(default_factory=list)

    def index_of(self, achievement_id: str) -> int | None:
        for index, node in enumerate(self.nodes):
            if isinstance(node, dict) and str(node.get("id")) == achievement_id:
                return index
        return None

    def require_index(self, achievement_id: str) -> int:
        index = self.index_of(achievement_id)
        if index is None:
            raise AchievementNotFoundError(achievement_id)
        return index


Mutator = Callable[[BoardGraph], dict[str, Any]]


# ---------------------------------------------------------------------------
# Formatting
# ---------------------------------------------------------------------------


def format_board(document: dict[str, Any]) -> dict[str, Any]:
    """Fully normalized board with derived stats and progression."""
    nodes = normalize_stored_nodes(document.get("nodes"))
    edges = prepare_edges(document.get("edges"))
    stats = compute_stats(nodes)
    return {
        **document,
        "layout": normalize_layout(document.get("layout")),
        "settings": as_dict(document.get("settings")),
        "theme": normalize_theme(document.get("theme")),
        "nodes": nodes,
        "edges": edges,
        "stats": stats,
        "progression": compute_progression(stats),
    }


def _text_field(value: Any) -> str | None:
    if value is None or value == "":
        return None
    return str(value)


def build_board_document(
    body: dict[str, Any],
    existing: dict[str, Any] | None = None,
    *,
    rng: random.Random | None = None,
    now: datetime | None = None,
) -> dict[str, Any]:
    """Board document for insert/replace; omitted fields fall back to ``existing``."""
    existing = existing or {}
    now = now or utc_now()
    source_nodes = body["nodes"] if isinstance(body.get("nodes"), list) else existing.get("nodes") or []
    source_edges = body["edges"] if isinstance(body.get("edges"), list) else existing.get("edges") or []

    if existing.get("createdAt"):
        created_at = existing["createdAt"]
    else:
        body_created = to_timestamp(body.get("createdAt"))
        created_at = datetime.fromisoformat(body_created) if body_created else now

    return {
        "name": _text_field(body.get("name")) or existing.get("name") or DEFAULT_BOARD_NAME,
        "description": _text_field(body.get("description")) or existing.get("description") or "",
        "ownerId": _text_field(body.get("ownerId")) or existing.get("ownerId"),
        "nodes": prepare_nodes(source_nodes, rng=rng, now=now),
        "edges": prepare_edges(source_edges),
        "layout": normalize_layout(body.get("layout") or existing.get("layout")),
        "settings": as_dict(body.get("settings") or existing.get("settings")),
        "theme": normalize_theme(body.get("theme") or existing.get("theme")),
        "createdAt": created_at,
        "updatedAt": now,
    }


# ---------------------------------------------------------------------------
# Board CRUD
# ---------------------------------------------------------------------------


async def list_boards(store: BoardStore) -> list[dict[str, Any]]:
    return await store.list_summaries()


async def get_board(store: BoardStore, board_id: str) -> dict[str, Any]:
    document = await store.find(board_id)
    if document is None:
        raise BoardNotFoundError(board_id)
    return format_board(document)


async def create_board(
    store: BoardStore,
    body: dict[str, Any],
    *,
    rng: random.Random | None = None,
) -> dict[str, Any]:
    """Create a board; ``name`` must be a non-empty string."""
    name = body.get("name")
    if not isinstance(name, str) or not name:
        raise BoardValidationError("name is required")

    document = build_board_document(body, rng=rng)
    board_id = await _write(store, lambda: store.insert(document))
    logger.info("board_created", board_id=board_id, nodes=len(document["nodes"]))
    return await get_board(store, board_id)


async def replace_board(
    store: BoardStore,
    board_id: str,
    body: dict[str, Any],
    *,
    rng: random.Random | None = None,
) -> dict[str, Any]:
    """Bulk save: re-normalize everything, keep createdAt, upsert."""
    store.parse_id(board_id)

    async def _replace() -> None:
        existing = await store.find(board_id, for_update=True)
        document = build_board_document(body, existing, rng=rng)
        await store.replace(board_id, document)

    await _write(store, _replace)
    logger.info("board_replaced", board_id=board_id)
    return await get_board(store, board_id)


async def delete_board(store: BoardStore, board_id: str) -> None:
    """Delete a board; deleting a missing board is a no-op."""
    store.parse_id(board_id)
    await _write(store, lambda: store.delete(board_id))
    logger.info("board_deleted", board_id=board_id)


async def _write(store: BoardStore, operation: Callable[[], Awaitable[Any]]) -> Any:
    try:
        result = await operation()
        await store.commit()
    except Exception:
        await store.rollback()
        raise
    return result


# ---------------------------------------------------------------------------
# Read-modify-write
# ---------------------------------------------------------------------------


async def mutate_board(
    store: BoardStore,
    board_id: str,
    mutator: Mutator,
) -> tuple[dict[str, Any], dict[str, Any]]:
    """Apply ``mutator`` to one board's graph; returns (formatted board, mutator payload)."""
    try:
        document = await store.find(board_id, for_update=True)
        if document is None:
            raise BoardNotFoundError(board_id)

        graph = BoardGraph(
            nodes=copy.deepcopy(document["nodes"]),
            edges=copy.deepcopy(document["edges"]),
        )
        payload = mutator(graph)

        await store.write_graph(board_id, nodes=graph.nodes, edges=graph.edges, updated_at=utc_now())
        await store.commit()
    except BoardError as exc:
        await store.rollback()
        logger.info("board_mutation_rejected", board_id=board_id, code=exc.code)
        raise
    except Exception:
        await store.rollback()
        raise

    reloaded = await store.find(board_id)
    if reloaded is None:
        raise BoardNotFoundError(board_id)
    return format_board(reloaded), payload


def _find_by_id(items: list[dict[str, Any]], item_id: str | None) -> dict[str, Any] | None:
    if item_id is None:
        return None
    return next((item for item in items if item.get("id") == item_id), None)


# ---------------------------------------------------------------------------
# Achievement operations
# ---------------------------------------------------------------------------


async def create_achievement(
    store: BoardStore,
    board_id: str,
    payload: dict[str, Any],
    *,
    parent_id: Any = None,
    edge_id: Any = None,
    edge_type: Any = None,
    rng: random.Random | None = None,
) -> dict[str, Any]:
    """Add one achievement, optionally linked from ``parent_id``.

    Returns ``{node, edge, board}``; ``edge`` is None without a parent.
    """
    parent = str(parent_id) if parent_id else None

    def _create(graph: BoardGraph) -> dict[str, Any]:
        node = create_achievement_node(payload, rng=rng)
        if graph.index_of(node["id"]) is not None:
            raise DuplicateAchievementError(node["id"])
        graph.nodes.append(node)

        edge = None
        if parent:
            edge = normalize_edge(
                {
                    "id": edge_id or f"{parent}-{node['id']}",
                    "source": parent,
                    "target": node["id"],
                    "type": edge_type or DEFAULT_EDGE_TYPE,
                },
                len(graph.edges),
            )
            graph.edges.append(edge)
        return {"node_id": node["id"], "edge_id": edge["id"] if edge else None}

    board, result = await mutate_board(store, board_id, _create)
    logger.info(
        "achievement_created",
        board_id=board_id,
        achievement_id=result["node_id"],
        parent_id=parent,
    )
    return {
        "node": _find_by_id(board["nodes"], result["node_id"]),
        "edge": _find_by_id(board["edges"], result["edge_id"]),
        "board": board,
    }


async def update_achievement(
    store: BoardStore,
    board_id: str,
    achievement_id: str,
    patch: AchievementPatch,
) -> dict[str, Any]:
    """Patch one achievement and re-normalize it. Returns ``{node, board}``."""

    def _update(graph: BoardGraph) -> dict[str, Any]:
        index = graph.require_index(achievement_id)
        merged = merge_achievement_patch(graph.nodes[index], patch)
        graph.nodes[index] = build_node({**merged, "id": achievement_id}, index)
        return {"node_id": achievement_id}

    board, _ = await mutate_board(store, board_id, _update)
    logger.info("achievement_updated", board_id=board_id, achievement_id=achievement_id)
    return {"node": _find_by_id(board["nodes"], achievement_id), "board": board}


def apply_progress(
    node: dict[str, Any],
    request: ProgressRequest,
    *,
    now: datetime | None = None,
) -> dict[str, Any]:
    """Apply a progress change to one node and return the re-normalized node.

    Without an explicit ``status`` the status is derived: full progress is
    ``completed``; any progress on a ``locked`` achievement is ``tracking``.
    """
    now = now or utc_now()
    data = normalize_achievement_data(node.get("data"))
    progress = data["progress"]
    nested = as_dict(request.progress)

    total_override = coalesce(request.total, request.progress_total, nested.get("total"))
    total = max(1, int(to_number(total_override, progress["total"])))

    current = progress["current"]
    if request.mode == "set":
        current = to_number(coalesce(request.value, request.progress_current, nested.get("current")), current)
    else:
        current += to_number(coalesce(request.delta, 1), 0)
    current = clamp(current, 0, total)

    status = request.status or data["status"]
    if not request.status:
        if current >= total:
            status = "completed"
        elif current > 0 and status == "locked":
            status = "tracking"

    data = {**data, "status": status, "progress": {"current": current, "total": total}}
    data = reset_timeline(
        data,
        reset_unlock=bool(request.reset_unlock),
        reset_completion=bool(request.reset_completion),
        now=now,
    )
    return build_node({**node, "data": data}, now=now)


async def record_progress(
    store: BoardStore,
    board_id: str,
    achievement_id: str,
    request: ProgressRequest,
) -> dict[str, Any]:
    """Increment or set an achievement's progress. Returns ``{node, board}``."""

    def _progress(graph: BoardGraph) -> dict[str, Any]:
        index = graph.require_index(achievement_id)
        graph.nodes[index] = apply_progress({**graph.nodes[index], "id": achievement_id}, request)
        return {"node_id": achievement_id}

    board, _ = await mutate_board(store, board_id, _progress)
    node = _find_by_id(board["nodes"], achievement_id)
    logger.info(
        "achievement_progress_recorded",
        board_id=board_id,
        achievement_id=achievement_id,
        status=node["data"]["status"] if node else None,
    )
    return {"node": node, "board": board}


async def delete_achievement(store: BoardStore, board_id: str, achievement_id: str) -> dict[str, Any]:
    """Remove an achievement and every edge touching it. Returns ``{board}``."""

    def _delete(graph: BoardGraph) -> dict[str, Any]:
        index = graph.require_index(achievement_id)
        del graph.nodes[index]
        graph.edges = [
            edge
            for edge in graph.edges
            if isinstance(edge, dict)
            and str(edge.get("source")) != achievement_id
            and str(edge.get("target")) != achievement_id
        ]
        return {"node_id": achievement_id}

    board, _ = await mutate_board(store, board_id, _delete)
    logger.info("achievement_deleted", board_id=board_id, achievement_id=achievement_id)
    return {"board": board}
