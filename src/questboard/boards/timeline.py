"""Achievement timeline maintenance.

A timeline holds three nullable ISO-8601 UTC timestamps: ``createdAt``,
``unlockedAt`` and ``completedAt``. They are stamped lazily from status and
progress and are never overwritten once set, except through an explicit
reset.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

UNLOCKED_STATUSES = frozenset({"tracking", "completed", "mastered"})
COMPLETED_STATUSES = frozenset({"completed", "mastered"})

TIMELINE_KEYS = ("createdAt", "unlockedAt", "completedAt")


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def to_timestamp(value: Any) -> str | None:
    """Coerce a datetime, ISO string or epoch-millis number to an ISO UTC string.

    Falsy input (None, "", 0) means unset.
    """
    if isinstance(value, bool) or not value:
        return None
    if isinstance(value, datetime):
        moment = value
    elif isinstance(value, str):
        try:
            moment = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
        except ValueError:
            return None
    elif isinstance(value, (int, float)):
        try:
            moment = datetime.fromtimestamp(value / 1000, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None
    else:
        return None

    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc).isoformat()


def _is_complete(data: dict[str, Any]) -> bool:
    progress = data.get("progress") or {}
    return progress.get("current", 0) >= progress.get("total", 1)


def apply_timeline_defaults(data: dict[str, Any], *, now: datetime | None = None) -> dict[str, Any]:
    """Stamp missing timeline entries implied by the achievement's state.

    1. ``createdAt`` is always stamped when unset.
    2. ``unlockedAt`` is stamped once the status leaves ``locked``.
    3. ``completedAt`` is stamped for completed/mastered achievements whose
       progress is full.
    """
    stamp = to_timestamp(now or utc_now())
    timeline = {key: (data.get("timeline") or {}).get(key) for key in TIMELINE_KEYS}
    status = data.get("status")

    if not timeline["createdAt"]:
        timeline["createdAt"] = stamp
    if status in UNLOCKED_STATUSES and not timeline["unlockedAt"]:
        timeline["unlockedAt"] = stamp
    if status in COMPLETED_STATUSES and _is_complete(data) and not timeline["completedAt"]:
        timeline["completedAt"] = stamp

    return {**data, "timeline": timeline}


def reset_timeline(
    data: dict[str, Any],
    *,
    reset_unlock: bool = False,
    reset_completion: bool = False,
    now: datetime | None = None,
) -> dict[str, Any]:
    """Clear unlock/completion stamps on request.

    ``reset_unlock`` only applies to an achievement that is back to
    ``locked``; otherwise the stamps are kept. ``reset_completion``
    re-stamps ``completedAt`` straight away when the achievement is still
    ``completed``.
    """
    timeline = {key: (data.get("timeline") or {}).get(key) for key in TIMELINE_KEYS}

    if reset_unlock and data.get("status") == "locked":
        timeline["unlockedAt"] = None
        timeline["completedAt"] = None
    if reset_completion:
        timeline["completedAt"] = None
        if data.get("status") == "completed":
            timeline["completedAt"] = to_timestamp(now or utc_now())

    return {**data, "timeline": timeline}
