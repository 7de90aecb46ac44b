"""Board statistics and progression.

Leveling is flat: every 250 XP of completed achievements is one level.
Stats are always recomputed from the node list and never cached.
"""

from __future__ import annotations

from typing import Any

from questboard.boards.normalizer import RARITY_VALUES, STATUS_VALUES, as_dict, clamp, to_number
from questboard.boards.timeline import COMPLETED_STATUSES

XP_PER_LEVEL = 250


def compute_level(xp_completed: float) -> dict[str, Any]:
    """Level info from completed XP.

    0 XP is level 1 with 250 to go; 300 XP is level 2, 50 into it.
    """
    xp_into_level = xp_completed % XP_PER_LEVEL
    return {
        "level": int(xp_completed // XP_PER_LEVEL) + 1,
        "xpIntoLevel": xp_into_level,
        "xpToNext": XP_PER_LEVEL - xp_into_level,
    }


def compute_stats(nodes: list[dict[str, Any]]) -> dict[str, Any]:
    """Aggregate a board's nodes in a single pass."""
    status_counts = dict.fromkeys(STATUS_VALUES, 0)
    rarity_counts = dict.fromkeys(RARITY_VALUES, 0)

    xp_total = 0
    xp_completed = 0
    steps_total = 0
    steps_done = 0

    for node in nodes:
        data = as_dict(node.get("data"))
        progress = as_dict(data.get("progress"))
        status = str(data.get("status") or "locked")
        rarity = str(data.get("rarity") or "common")
        xp = to_number(data.get("xp"), 0)
        node_total = max(1, to_number(progress.get("total"), 1))
        node_current = clamp(to_number(progress.get("current"), 0), 0, node_total)

        # Unknown enum values still get a bucket.
        status_counts[status] = status_counts.get(status, 0) + 1
        rarity_counts[rarity] = rarity_counts.get(rarity, 0) + 1

        xp_total += xp
        if status in COMPLETED_STATUSES:
            xp_completed += xp

        steps_total += node_total
        steps_done += node_current

    completion_ratio = steps_done / steps_total if steps_total > 0 else 0

    return {
        "total": len(nodes),
        "statusCounts": status_counts,
        "rarityCounts": rarity_counts,
        "xpTotal": xp_total,
        "xpCompleted": xp_completed,
        "stepsTotal": steps_total,
        "stepsDone": steps_done,
        "completionRatio": completion_ratio,
        "xpPerLevel": XP_PER_LEVEL,
        **compute_level(xp_completed),
    }


def compute_progression(stats: dict[str, Any]) -> dict[str, Any]:
    """Project the stats onto the progression view shown to players."""
    return {
        "level": stats["level"],
        "xpTotal": stats["xpCompleted"],
        "xpIntoLevel": stats["xpIntoLevel"],
        "xpToNext": stats["xpToNext"],
        "completionRatio": stats["completionRatio"],
        "stepsDone": stats["stepsDone"],
        "stepsTotal": stats["stepsTotal"],
    }
