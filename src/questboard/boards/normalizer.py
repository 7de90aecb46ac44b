"""Canonical achievement node, edge and board-metadata shapes.

Input comes from API bodies and from stored documents, both of which may be
partial or carry legacy flat fields (``title``, ``progressTotal``,
``progressCurrent``, ``_id``). Everything here is total: object-shaped or
missing input never raises, unknown fields are dropped, and re-normalizing
a normalized value returns it unchanged.
"""

from __future__ import annotations

import math
import random
import uuid
from datetime import datetime
from typing import Any

from questboard.boards.timeline import apply_timeline_defaults, to_timestamp

STATUS_VALUES = ("locked", "tracking", "completed", "mastered")
RARITY_VALUES = ("common", "uncommon", "rare", "epic", "legendary", "mythic")

ICONS = ("🗡️", "🛡️", "🧭", "🏹", "🧪", "📜", "⚒️", "🌿", "💎", "🔥", "🌙", "🛠️", "🎯")
DEFAULT_ICON = "⭐"
DEFAULT_LABEL = "New Achievement"
DEFAULT_NODE_TYPE = "achievement"
DEFAULT_EDGE_TYPE = "smoothstep"
DEFAULT_SOURCE_POSITION = "right"
DEFAULT_TARGET_POSITION = "left"

LAYOUT_DIRECTIONS = ("TB", "LR")
DEFAULT_THEME = {"palette": "overworld", "accent": "#22c55e"}


# ---------------------------------------------------------------------------
# Coercion helpers
# ---------------------------------------------------------------------------


def to_number(value: Any, fallback: Any = 0) -> Any:
    """Return ``value`` as a finite number, or ``fallback``.

    Integral values come back as ``int`` so stored documents keep whole
    numbers whole.
    """
    try:
        number = float(value)
    except (TypeError, ValueError, OverflowError):
        return fallback
    if not math.isfinite(number):
        return fallback
    return int(number) if number.is_integer() else number


def clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def coalesce(*values: Any) -> Any:
    """First value that is not ``None``."""
    for value in values:
        if value is not None:
            return value
    return None


def as_dict(value: Any) -> dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _text(value: Any) -> str | None:
    """Trimmed non-empty string, else None."""
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def random_icon(rng: random.Random) -> str:
    """Pick an icon from the palette using the given randomness source."""
    return rng.choice(ICONS) or DEFAULT_ICON


# ---------------------------------------------------------------------------
# Achievements
# ---------------------------------------------------------------------------


def normalize_achievement_data(data: Any, *, fallback_icon: str = DEFAULT_ICON) -> dict[str, Any]:
    """Canonical achievement payload. Timeline stamps are left to the caller."""
    data = as_dict(data)
    progress = as_dict(data.get("progress"))
    timeline = as_dict(data.get("timeline"))

    total = max(1, int(to_number(coalesce(progress.get("total"), data.get("progressTotal")), 1)))
    current = clamp(to_number(coalesce(progress.get("current"), data.get("progressCurrent")), 0), 0, total)

    tags = data.get("tags")
    depends_on = data.get("dependsOn")
    label = _text(data.get("label")) or _text(data.get("title")) or DEFAULT_LABEL

    return {
        "label": label,
        "name": _text(data.get("name")) or label,
        "description": data["description"] if isinstance(data.get("description"), str) else "",
        "status": data.get("status") if data.get("status") in STATUS_VALUES else "locked",
        "rarity": data.get("rarity") if data.get("rarity") in RARITY_VALUES else "common",
        "xp": max(0, to_number(data.get("xp"), 0)),
        "reward": data["reward"] if isinstance(data.get("reward"), str) else "",
        "icon": _text(data.get("icon")) or fallback_icon,
        "tags": list(dict.fromkeys(str(tag) for tag in tags)) if isinstance(tags, (list, tuple)) else [],
        "progress": {"current": current, "total": total},
        "dependsOn": [str(dep) for dep in depends_on] if isinstance(depends_on, (list, tuple)) else [],
        "timeline": {
            "createdAt": to_timestamp(timeline.get("createdAt")) or to_timestamp(data.get("createdAt")),
            "unlockedAt": to_timestamp(timeline.get("unlockedAt")),
            "completedAt": to_timestamp(timeline.get("completedAt")),
        },
    }


def normalize_node(
    raw: Any,
    index: int = 0,
    *,
    fallback_icon: str = DEFAULT_ICON,
    now: datetime | None = None,
) -> dict[str, Any] | None:
    """Canonical achievement node, or None for non-object input."""
    if not isinstance(raw, dict):
        return None
    return build_node(raw, index, fallback_icon=fallback_icon, now=now)


def build_node(
    raw: dict[str, Any],
    index: int = 0,
    *,
    fallback_icon: str = DEFAULT_ICON,
    now: datetime | None = None,
) -> dict[str, Any]:
    """Canonical achievement node from an object.

    The achievement payload is read from ``raw["data"]`` when present and
    from the node itself otherwise (flat API bodies).
    """
    base = raw["data"] if isinstance(raw.get("data"), dict) else raw
    data = apply_timeline_defaults(normalize_achievement_data(base, fallback_icon=fallback_icon), now=now)
    position = as_dict(raw.get("position"))

    return {
        "id": str(raw.get("id") or raw.get("_id") or f"ach-{index}"),
        "type": _text(raw.get("type")) or DEFAULT_NODE_TYPE,
        "position": {
            "x": to_number(position.get("x"), 0),
            "y": to_number(position.get("y"), 0),
        },
        "targetPosition": _text(raw.get("targetPosition")) or DEFAULT_TARGET_POSITION,
        "sourcePosition": _text(raw.get("sourcePosition")) or DEFAULT_SOURCE_POSITION,
        "data": data,
    }


def create_achievement_node(
    payload: Any,
    *,
    rng: random.Random | None = None,
    now: datetime | None = None,
) -> dict[str, Any]:
    """Build a brand-new node from an API body.

    Nodes without an id get a generated ``ach-<hex>`` one; nodes without an
    icon get a random palette icon.
    """
    payload = as_dict(payload)
    node_id = str(payload.get("id") or payload.get("_id") or f"ach-{uuid.uuid4().hex}")
    icon = random_icon(rng or random.Random())
    return build_node({**payload, "id": node_id}, 0, fallback_icon=icon, now=now)


def prepare_nodes(
    nodes: Any,
    *,
    rng: random.Random | None = None,
    now: datetime | None = None,
) -> list[dict[str, Any]]:
    """Normalize a bulk node list from scratch (board create/replace)."""
    if not isinstance(nodes, list):
        return []
    rng = rng or random.Random()
    candidates = [node for node in nodes if isinstance(node, dict)]
    return [
        build_node(raw, index, fallback_icon=random_icon(rng), now=now)
        for index, raw in enumerate(candidates)
    ]


def normalize_stored_nodes(nodes: Any, *, now: datetime | None = None) -> list[dict[str, Any]]:
    """Normalize nodes read back from the store."""
    if not isinstance(nodes, list):
        return []
    normalized = (normalize_node(node, index, now=now) for index, node in enumerate(nodes))
    return [node for node in normalized if node is not None]


# ---------------------------------------------------------------------------
# Edges
# ---------------------------------------------------------------------------


def _endpoint(value: Any) -> str:
    return "" if value is None else str(value)


def normalize_edge(raw: Any, index: int = 0) -> dict[str, Any] | None:
    """Canonical edge, or None when source or target is unusable."""
    if not isinstance(raw, dict):
        return None
    source = _endpoint(raw.get("source"))
    target = _endpoint(raw.get("target"))
    if not source or not target:
        return None

    edge: dict[str, Any] = {
        "id": str(raw.get("id") or f"{source}-{target}-{index}"),
        "source": source,
        "target": target,
        "type": _text(raw.get("type")) or DEFAULT_EDGE_TYPE,
        "animated": bool(raw.get("animated")),
    }
    if raw.get("label") is not None:
        edge["label"] = raw["label"]
    if raw.get("data") is not None:
        edge["data"] = raw["data"]
    return edge


def prepare_edges(edges: Any) -> list[dict[str, Any]]:
    if not isinstance(edges, list):
        return []
    normalized = (normalize_edge(edge, index) for index, edge in enumerate(edges))
    return [edge for edge in normalized if edge is not None]


# ---------------------------------------------------------------------------
# Board metadata
# ---------------------------------------------------------------------------


def normalize_layout(value: Any) -> dict[str, Any]:
    layout = dict(as_dict(value))
    if layout.get("direction") not in LAYOUT_DIRECTIONS:
        layout["direction"] = LAYOUT_DIRECTIONS[0]
    return layout


def normalize_theme(value: Any) -> dict[str, Any]:
    return dict(as_dict(value)) or dict(DEFAULT_THEME)
