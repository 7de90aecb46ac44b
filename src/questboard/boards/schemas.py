"""Pydantic request/response models for board endpoints.

Request fields are deliberately typed ``Any``: coercion and clamping happen
in the normalizer, so an invalid enum or a string number never rejects the
request. Presence of a field is read from ``model_fields_set``.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ---------------------------------------------------------------------------
# Requests
# ---------------------------------------------------------------------------


class BoardWriteRequest(_CamelModel):
    """Create or replace a board. Unknown fields are ignored."""

    name: Any = None
    description: Any = None
    owner_id: Any = None
    nodes: Any = None
    edges: Any = None
    layout: Any = None
    settings: Any = None
    theme: Any = None
    created_at: Any = None


class CreateAchievementRequest(_CamelModel):
    """New achievement. Achievement fields travel as extras, flat or under ``data``."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")

    parent_id: Any = None
    edge_id: Any = None
    edge_type: Any = None


class AchievementPatch(_CamelModel):
    """Partial achievement update; only fields present in the body are applied."""

    data: Any = None
    title: Any = None
    label: Any = None
    name: Any = None
    description: Any = None
    status: Any = None
    rarity: Any = None
    reward: Any = None
    icon: Any = None
    xp: Any = None
    tags: Any = None
    depends_on: Any = None
    progress: Any = None
    progress_total: Any = None
    progress_current: Any = None
    timeline: Any = None
    type: Any = None
    position: Any = None
    source_position: Any = None
    target_position: Any = None


class ProgressRequest(_CamelModel):
    """Progress change: ``increment`` by ``delta`` (default) or ``set`` to ``value``."""

    mode: Any = None
    delta: Any = None
    value: Any = None
    total: Any = None
    progress_total: Any = None
    progress_current: Any = None
    progress: Any = None
    status: Any = None
    reset_unlock: Any = None
    reset_completion: Any = None


# ---------------------------------------------------------------------------
# Responses
# ---------------------------------------------------------------------------


class BoardStatsResponse(_CamelModel):
    total: int
    status_counts: dict[str, int]
    rarity_counts: dict[str, int]
    xp_total: int | float
    xp_completed: int | float
    steps_total: int | float
    steps_done: int | float
    completion_ratio: float
    xp_per_level: int
    level: int
    xp_into_level: int | float
    xp_to_next: int | float


class ProgressionResponse(_CamelModel):
    level: int
    xp_total: int | float
    xp_into_level: int | float
    xp_to_next: int | float
    completion_ratio: float
    steps_done: int | float
    steps_total: int | float


class BoardSummaryResponse(_CamelModel):
    id: str
    name: str
    description: str = ""
    created_at: datetime | None = None
    updated_at: datetime | None = None


class BoardResponse(_CamelModel):
    id: str
    name: str
    description: str = ""
    owner_id: str | None = None
    layout: dict[str, Any] = Field(default_factory=dict)
    settings: dict[str, Any] = Field(default_factory=dict)
    theme: dict[str, Any] = Field(default_factory=dict)
    nodes: list[dict[str, Any]] = Field(default_factory=list)
    edges: list[dict[str, Any]] = Field(default_factory=list)
    created_at: datetime | None = None
    updated_at: datetime | None = None
    stats: BoardStatsResponse
    progression: ProgressionResponse


class AchievementCreatedResponse(BaseModel):
    node: dict[str, Any] | None
    edge: dict[str, Any] | None = None
    board: BoardResponse


class AchievementResponse(BaseModel):
    node: dict[str, Any] | None
    board: BoardResponse


class BoardEnvelopeResponse(BaseModel):
    board: BoardResponse


class MessageResponse(BaseModel):
    message: str
