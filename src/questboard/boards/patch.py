"""Field-by-field merge of an AchievementPatch onto a stored node.

The merge produces a raw node that still has to go through the normalizer;
it only decides which values win:

- ``data`` (when an object) is spread over the existing payload first.
- ``title``/``label`` set both ``label`` and ``name``; an explicit ``name``
  still wins for ``name``.
- ``progress`` and ``timeline`` merge per key over the stored values.
- Flat ``progressTotal``/``progressCurrent`` overlay the merged progress.
- ``position`` merges per axis; a non-numeric coordinate keeps the stored one.
"""

from __future__ import annotations

from typing import Any

from questboard.boards.normalizer import as_dict, coalesce, to_number
from questboard.boards.schemas import AchievementPatch

# patch attribute -> achievement data key, overwritten as-is when present
_DIRECT_FIELDS = (
    ("status", "status"),
    ("rarity", "rarity"),
    ("reward", "reward"),
    ("icon", "icon"),
    ("xp", "xp"),
    ("tags", "tags"),
    ("depends_on", "dependsOn"),
)


def _as_text(value: Any) -> Any:
    return str(value) if value is not None else None


def merge_achievement_patch(node: dict[str, Any], patch: AchievementPatch) -> dict[str, Any]:
    present = patch.model_fields_set
    stored = as_dict(node.get("data"))
    data = {**stored, **as_dict(patch.data)}

    if "title" in present or "label" in present:
        title = _as_text(coalesce(patch.title, patch.label))
        data["label"] = title
        data["name"] = _as_text(coalesce(patch.name, title))
    if "name" in present:
        data["name"] = _as_text(patch.name)
    if "description" in present:
        data["description"] = _as_text(patch.description)

    for attr, key in _DIRECT_FIELDS:
        if attr in present:
            data[key] = getattr(patch, attr)

    progress = as_dict(data.get("progress"))
    if isinstance(patch.progress, dict):
        progress = {**as_dict(stored.get("progress")), **patch.progress}
    if patch.progress_total is not None:
        progress["total"] = patch.progress_total
    if patch.progress_current is not None:
        progress["current"] = patch.progress_current
    data["progress"] = progress

    if isinstance(patch.timeline, dict):
        data["timeline"] = {**as_dict(stored.get("timeline")), **patch.timeline}

    position = as_dict(node.get("position"))
    incoming_position = as_dict(patch.position)

    return {
        **node,
        "type": patch.type or node.get("type"),
        "position": {
            "x": coalesce(to_number(incoming_position.get("x"), None), position.get("x"), 0),
            "y": coalesce(to_number(incoming_position.get("y"), None), position.get("y"), 0),
        },
        "sourcePosition": patch.source_position or node.get("sourcePosition"),
        "targetPosition": patch.target_position or node.get("targetPosition"),
        "data": data,
    }
