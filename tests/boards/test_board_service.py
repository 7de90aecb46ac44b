"""Board coordinator tests against a real BoardStore on in-memory SQLite."""

from __future__ import annotations

import uuid
from datetime import timedelta

import pytest
from conftest import NOW, NOW_ISO

from questboard.boards import service
from questboard.boards.errors import (
    AchievementNotFoundError,
    BoardNotFoundError,
    BoardValidationError,
    DuplicateAchievementError,
    InvalidBoardIdError,
)
from questboard.boards.normalizer import ICONS, normalize_node
from questboard.boards.schemas import AchievementPatch, ProgressRequest
from questboard.boards.store import BoardStore


async def _board(store: BoardStore, **body) -> dict:
    body.setdefault("name", "Quest Log")
    return await service.create_board(store, body)


async def _achievement(store: BoardStore, board_id: str, parent_id: str | None = None, **payload) -> dict:
    return await service.create_achievement(store, board_id, payload, parent_id=parent_id)


class TestCreateBoard:
    @pytest.mark.asyncio
    async def test_defaults(self, store):
        board = await _board(store, name="Season One")
        assert uuid.UUID(board["id"])
        assert board["name"] == "Season One"
        assert board["description"] == ""
        assert board["ownerId"] is None
        assert board["layout"] == {"direction": "TB"}
        assert board["theme"] == {"palette": "overworld", "accent": "#22c55e"}
        assert board["nodes"] == []
        assert board["edges"] == []
        assert board["stats"]["total"] == 0
        assert board["progression"]["level"] == 1
        assert board["createdAt"] is not None

    @pytest.mark.asyncio
    @pytest.mark.parametrize("body", [{}, {"name": ""}, {"name": 42}, {"name": None}])
    async def test_name_required(self, store, body):
        with pytest.raises(BoardValidationError):
            await service.create_board(store, body)
        assert await store.count() == 0

    @pytest.mark.asyncio
    async def test_bulk_nodes_and_edges_normalized(self, store, rng):
        board = await service.create_board(
            store,
            {
                "name": "Import",
                "nodes": [{"title": "A", "progressTotal": 5, "progressCurrent": 9}, "junk", {"id": "b"}],
                "edges": [{"source": "ach-0", "target": "b"}, {"source": "", "target": "b"}],
            },
            rng=rng,
        )
        assert [node["id"] for node in board["nodes"]] == ["ach-0", "b"]
        assert board["nodes"][0]["data"]["progress"] == {"current": 5, "total": 5}
        assert board["nodes"][0]["data"]["icon"] in ICONS
        assert [edge["id"] for edge in board["edges"]] == ["ach-0-b-0"]
        assert board["stats"]["stepsTotal"] == 6


class TestGetAndDeleteBoard:
    @pytest.mark.asyncio
    async def test_invalid_id(self, store):
        with pytest.raises(InvalidBoardIdError):
            await service.get_board(store, "not-a-uuid")

    @pytest.mark.asyncio
    async def test_missing_board(self, store):
        with pytest.raises(BoardNotFoundError):
            await service.get_board(store, str(uuid.uuid4()))

    @pytest.mark.asyncio
    async def test_delete_is_idempotent(self, store):
        board = await _board(store)
        await service.delete_board(store, board["id"])
        await service.delete_board(store, board["id"])
        with pytest.raises(BoardNotFoundError):
            await service.get_board(store, board["id"])

    @pytest.mark.asyncio
    async def test_delete_invalid_id(self, store):
        with pytest.raises(InvalidBoardIdError):
            await service.delete_board(store, "12")

    @pytest.mark.asyncio
    async def test_list_most_recent_first(self, store):
        first = await _board(store, name="First")
        second = await _board(store, name="Second")
        await _achievement(store, first["id"], title="Bump")

        summaries = await service.list_boards(store)
        assert [summary["id"] for summary in summaries] == [first["id"], second["id"]]
        assert set(summaries[0]) == {"id", "name", "description", "createdAt", "updatedAt"}


class TestReplaceBoard:
    @pytest.mark.asyncio
    async def test_preserves_created_at(self, store):
        board = await _board(store, nodes=[{"id": "a"}])
        replaced = await service.replace_board(store, board["id"], {"name": "Renamed", "nodes": []})
        assert replaced["id"] == board["id"]
        assert replaced["name"] == "Renamed"
        assert replaced["nodes"] == []
        assert replaced["createdAt"] == board["createdAt"]
        assert replaced["updatedAt"] >= board["updatedAt"]

    @pytest.mark.asyncio
    async def test_omitted_fields_keep_existing(self, store):
        board = await _board(store, description="Main quests", nodes=[{"id": "a"}, {"id": "b"}])
        replaced = await service.replace_board(store, board["id"], {"theme": {"palette": "nether"}})
        assert replaced["name"] == "Quest Log"
        assert replaced["description"] == "Main quests"
        assert [node["id"] for node in replaced["nodes"]] == ["a", "b"]
        assert replaced["theme"] == {"palette": "nether"}

    @pytest.mark.asyncio
    async def test_upserts_unknown_id(self, store):
        board_id = str(uuid.uuid4())
        created = await service.replace_board(store, board_id, {"nodes": [{"title": "Imported"}]})
        assert created["id"] == board_id
        assert created["name"] == "Untitled"
        assert created["nodes"][0]["id"] == "ach-0"
        assert await store.count() == 1

    @pytest.mark.asyncio
    async def test_duplicate_node_ids_accepted(self, store):
        board = await _board(store)
        replaced = await service.replace_board(store, board["id"], {"nodes": [{"id": "x"}, {"id": "x"}]})
        assert [node["id"] for node in replaced["nodes"]] == ["x", "x"]

    @pytest.mark.asyncio
    async def test_invalid_id(self, store):
        with pytest.raises(InvalidBoardIdError):
            await service.replace_board(store, "nope", {"name": "x"})


class TestCreateAchievement:
    @pytest.mark.asyncio
    async def test_without_parent(self, store, rng):
        board = await _board(store)
        result = await service.create_achievement(store, board["id"], {"title": "Slay", "xp": 100}, rng=rng)
        assert result["edge"] is None
        assert result["node"]["data"]["label"] == "Slay"
        assert result["node"]["data"]["icon"] in ICONS
        assert result["board"]["stats"]["total"] == 1
        assert result["board"]["stats"]["xpTotal"] == 100

    @pytest.mark.asyncio
    async def test_with_parent_creates_edge(self, store):
        board = await _board(store)
        await _achievement(store, board["id"], id="root")
        result = await _achievement(store, board["id"], parent_id="root", id="child")
        assert result["edge"] == {
            "id": "root-child",
            "source": "root",
            "target": "child",
            "type": "smoothstep",
            "animated": False,
        }
        assert result["board"]["edges"] == [result["edge"]]

    @pytest.mark.asyncio
    async def test_custom_edge_id_and_type(self, store):
        board = await _board(store)
        result = await service.create_achievement(
            store, board["id"], {"id": "b"}, parent_id="a", edge_id="link", edge_type="step"
        )
        assert result["edge"]["id"] == "link"
        assert result["edge"]["type"] == "step"

    @pytest.mark.asyncio
    async def test_duplicate_rejected_and_board_unchanged(self, store):
        board = await _board(store)
        await _achievement(store, board["id"], id="dup", title="Original")
        before = await service.get_board(store, board["id"])

        with pytest.raises(DuplicateAchievementError):
            await _achievement(store, board["id"], parent_id="dup", id="dup", title="Copy")

        after = await service.get_board(store, board["id"])
        assert after["nodes"] == before["nodes"]
        assert after["edges"] == before["edges"]
        assert after["updatedAt"] == before["updatedAt"]

    @pytest.mark.asyncio
    async def test_missing_board(self, store):
        with pytest.raises(BoardNotFoundError):
            await _achievement(store, str(uuid.uuid4()), title="Lost")


class TestUpdateAchievement:
    @pytest.mark.asyncio
    async def test_merges_and_renormalizes(self, store):
        board = await _board(store)
        await _achievement(store, board["id"], id="q", title="Old", progress={"current": 1, "total": 4})

        patch = AchievementPatch.model_validate({"title": "New", "status": "completed", "progressCurrent": 4, "xp": 300})
        result = await service.update_achievement(store, board["id"], "q", patch)

        data = result["node"]["data"]
        assert data["label"] == "New"
        assert data["name"] == "New"
        assert data["progress"] == {"current": 4, "total": 4}
        assert data["timeline"]["unlockedAt"] is not None
        assert data["timeline"]["completedAt"] is not None
        assert result["board"]["stats"]["xpCompleted"] == 300
        assert result["board"]["progression"]["level"] == 2

    @pytest.mark.asyncio
    async def test_missing_achievement(self, store):
        board = await _board(store)
        with pytest.raises(AchievementNotFoundError):
            await service.update_achievement(store, board["id"], "ghost", AchievementPatch(xp=1))


class TestApplyProgress:
    def _locked(self, current: int = 0, total: int = 5) -> dict:
        return normalize_node({"id": "p", "data": {"progress": {"current": current, "total": total}}}, now=NOW)

    def test_increment_unlocks(self):
        node = service.apply_progress(self._locked(), ProgressRequest(delta=3), now=NOW)
        assert node["data"]["progress"] == {"current": 3, "total": 5}
        assert node["data"]["status"] == "tracking"
        assert node["data"]["timeline"]["unlockedAt"] is not None
        assert node["data"]["timeline"]["completedAt"] is None

    def test_default_delta_is_one(self):
        node = service.apply_progress(self._locked(), ProgressRequest(), now=NOW)
        assert node["data"]["progress"]["current"] == 1

    def test_negative_delta_clamps_at_zero(self):
        node = service.apply_progress(self._locked(current=2), ProgressRequest(delta=-10), now=NOW)
        assert node["data"]["progress"]["current"] == 0
        assert node["data"]["status"] == "locked"

    def test_set_to_total_completes(self):
        node = service.apply_progress(self._locked(), ProgressRequest(mode="set", value=5), now=NOW)
        assert node["data"]["status"] == "completed"
        assert node["data"]["timeline"]["completedAt"] is not None

    def test_set_via_legacy_progress_current(self):
        node = service.apply_progress(self._locked(), ProgressRequest(mode="set", progressCurrent=2), now=NOW)
        assert node["data"]["progress"]["current"] == 2

    def test_total_override(self):
        node = service.apply_progress(self._locked(current=4), ProgressRequest(progress={"total": 10}), now=NOW)
        assert node["data"]["progress"] == {"current": 5, "total": 10}

    def test_explicit_status_wins(self):
        node = service.apply_progress(
            self._locked(), ProgressRequest(mode="set", value=5, status="mastered"), now=NOW
        )
        assert node["data"]["status"] == "mastered"

    def test_reset_unlock_keeps_stamps_while_tracking(self):
        later = NOW + timedelta(days=10)
        tracking = service.apply_progress(self._locked(), ProgressRequest(delta=1), now=NOW)
        node = service.apply_progress(tracking, ProgressRequest(delta=0, resetUnlock=True), now=later)
        assert node["data"]["status"] == "tracking"
        assert node["data"]["timeline"]["unlockedAt"] == NOW_ISO
        assert node["data"]["timeline"]["completedAt"] is None

    def test_reset_unlock_keeps_stamps_when_completed(self):
        later = NOW + timedelta(days=10)
        done = service.apply_progress(self._locked(), ProgressRequest(mode="set", value=5), now=NOW)
        node = service.apply_progress(done, ProgressRequest(delta=0, resetUnlock=True), now=later)
        assert node["data"]["status"] == "completed"
        assert node["data"]["timeline"]["unlockedAt"] == NOW_ISO
        assert node["data"]["timeline"]["completedAt"] == NOW_ISO

    def test_reset_unlock_clears_stamps_when_relocked(self):
        later = NOW + timedelta(days=10)
        done = service.apply_progress(self._locked(), ProgressRequest(mode="set", value=5), now=NOW)
        node = service.apply_progress(
            done, ProgressRequest(mode="set", value=0, status="locked", resetUnlock=True), now=later
        )
        assert node["data"]["status"] == "locked"
        assert node["data"]["timeline"]["unlockedAt"] is None
        assert node["data"]["timeline"]["completedAt"] is None
        assert node["data"]["timeline"]["createdAt"] == NOW_ISO


class TestRecordProgress:
    @pytest.mark.asyncio
    async def test_completed_at_set_exactly_once(self, store):
        board = await _board(store)
        await _achievement(store, board["id"], id="p", progress={"current": 0, "total": 5})

        first = await service.record_progress(store, board["id"], "p", ProgressRequest(delta=3))
        assert first["node"]["data"]["status"] == "tracking"
        assert first["node"]["data"]["progress"] == {"current": 3, "total": 5}

        done = await service.record_progress(store, board["id"], "p", ProgressRequest(mode="set", value=5))
        completed_at = done["node"]["data"]["timeline"]["completedAt"]
        assert done["node"]["data"]["status"] == "completed"
        assert completed_at is not None

        again = await service.record_progress(store, board["id"], "p", ProgressRequest(delta=1))
        assert again["node"]["data"]["progress"] == {"current": 5, "total": 5}
        assert again["node"]["data"]["timeline"]["completedAt"] == completed_at
        assert again["board"]["stats"]["statusCounts"]["completed"] == 1

    @pytest.mark.asyncio
    async def test_missing_achievement(self, store):
        board = await _board(store)
        with pytest.raises(AchievementNotFoundError):
            await service.record_progress(store, board["id"], "ghost", ProgressRequest())


class TestDeleteAchievement:
    @pytest.mark.asyncio
    async def test_cascades_incident_edges_only(self, store):
        board = await _board(store)
        await _achievement(store, board["id"], id="a")
        await _achievement(store, board["id"], parent_id="a", id="b")
        await _achievement(store, board["id"], parent_id="b", id="c")
        await _achievement(store, board["id"], parent_id="a", id="d")

        result = await service.delete_achievement(store, board["id"], "b")
        remaining = result["board"]
        assert [node["id"] for node in remaining["nodes"]] == ["a", "c", "d"]
        assert [edge["id"] for edge in remaining["edges"]] == ["a-d"]

    @pytest.mark.asyncio
    async def test_missing_achievement_leaves_board(self, store):
        board = await _board(store, nodes=[{"id": "keep"}])
        with pytest.raises(AchievementNotFoundError):
            await service.delete_achievement(store, board["id"], "ghost")
        assert len((await service.get_board(store, board["id"]))["nodes"]) == 1
