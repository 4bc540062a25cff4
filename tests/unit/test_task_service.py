"""Unit tests for TaskService (src/services/task_service.py)"""
import random

import pytest
from unittest.mock import AsyncMock, patch

from src.exceptions import RecordNotFoundError, ValidationError
from src.models.campaign import CreateCampaignRequest, UpdateCampaignRequest
from src.models.task import (
    CreateSubtaskRequest,
    CreateTaskRequest,
    UpdateSubtaskRequest,
    UpdateTaskRequest,
)
from src.services.campaign_service import CampaignService
from src.services.task_service import TaskService
from src.services.user_service import UserService


@pytest.fixture
def task_service(data_store, clock):
    return TaskService(data_store, clock=clock)


@pytest.fixture
async def user_id(data_store):
    user = await UserService(data_store).create_user("hero")
    return user["id"]


@pytest.fixture
async def quest(task_service, user_id):
    return await task_service.create_task(
        user_id,
        CreateTaskRequest(description="  Slay the dragon ", priority="high", task_level=3)
    )


async def stored_player(data_store, user_id):
    users = (await data_store.read_document("users"))["users"]
    return next(user for user in users if user["id"] == user_id)


# ============================================================================
# Quest CRUD
# ============================================================================

@pytest.mark.asyncio
async def test_create_task(quest, user_id):
    assert quest["id"] == 1
    assert quest["description"] == "Slay the dragon"
    assert quest["priority"] == "high"
    assert quest["task_level"] == 3
    assert quest["status"] == "todo"
    assert quest["completed"] is False
    assert quest["owner_id"] == user_id
    assert quest["due_date"] == "2024-05-01"
    assert quest["status_history"] == [{"status": "todo", "at": "2024-05-01T12:00:00.000Z", "note": None}]
    assert quest["rpg"] == {"xp_awarded": False, "last_reward_at": None, "history": []}
    assert quest["campaign_id"] is None


@pytest.mark.asyncio
async def test_create_task_defaults(task_service, user_id):
    task = await task_service.create_task(user_id, CreateTaskRequest(description="Rest", task_level=12.4))
    assert task["priority"] == "medium"
    assert task["task_level"] == 10


@pytest.mark.asyncio
async def test_list_tasks_scoped_to_owner(task_service, data_store, quest, user_id):
    other = await UserService(data_store).create_user("rival")
    await task_service.create_task(other["id"], CreateTaskRequest(description="Rival quest"))

    listed = await task_service.list_tasks(user_id)

    assert [task["id"] for task in listed["tasks"]] == [quest["id"]]
    assert listed["nextId"] == 3


@pytest.mark.asyncio
async def test_update_task_fields(task_service, quest, user_id):
    updated = await task_service.update_task(
        user_id,
        quest["id"],
        UpdateTaskRequest(description="Befriend the dragon", task_level=0, due_date="2024-06-01")
    )

    assert updated["description"] == "Befriend the dragon"
    assert updated["task_level"] == 1
    assert updated["due_date"] == "2024-06-01"
    assert updated["priority"] == "high"


@pytest.mark.asyncio
async def test_update_task_null_due_date_resets_to_today(task_service, quest, user_id):
    await task_service.update_task(user_id, quest["id"], UpdateTaskRequest(due_date="2030-01-01"))
    updated = await task_service.update_task(user_id, quest["id"], UpdateTaskRequest(due_date=None))
    assert updated["due_date"] == "2024-05-01"


@pytest.mark.asyncio
async def test_task_of_another_user_not_found(task_service, data_store, quest):
    other = await UserService(data_store).create_user("rival")
    with pytest.raises(RecordNotFoundError):
        await task_service.update_task_status(other["id"], quest["id"], "done")


@pytest.mark.asyncio
async def test_delete_task(task_service, quest, user_id):
    await task_service.delete_task(user_id, quest["id"])
    assert (await task_service.list_tasks(user_id))["tasks"] == []

    with pytest.raises(RecordNotFoundError):
        await task_service.delete_task(user_id, quest["id"])


@pytest.mark.asyncio
async def test_update_task_order(task_service, user_id):
    ids = []
    for name in ("a", "b", "c"):
        ids.append((await task_service.create_task(user_id, CreateTaskRequest(description=name)))["id"])

    result = await task_service.update_task_order(user_id, [ids[2], ids[0], 999])

    assert [task["id"] for task in result["tasks"]] == [ids[2], ids[0], ids[1]]
    assert result["tasks"][2]["order"] == 3 + ids[1]


# ============================================================================
# Quest Status & Rewards
# ============================================================================

@pytest.mark.asyncio
async def test_status_change_without_completion_has_no_reward_fields(task_service, quest, user_id):
    result = await task_service.update_task_status(user_id, quest["id"], "in_progress", note="Started")

    assert "xp_events" not in result
    assert "player_rpg" not in result
    assert result["status_history"][-1] == {
        "status": "in_progress",
        "at": "2024-05-01T12:00:00.000Z",
        "note": "Started",
    }


@pytest.mark.asyncio
async def test_status_change_without_reward_leaves_players_untouched(task_service, quest, user_id):
    with patch("src.services.task_service.queries.write_users", new_callable=AsyncMock) as mock_write:
        await task_service.update_task_status(user_id, quest["id"], "blocked")

    mock_write.assert_not_called()


@pytest.mark.asyncio
async def test_completing_task_awards_once(task_service, data_store, quest, user_id):
    """todo -> done pays out; done -> done does not"""
    result = await task_service.update_task_status(user_id, quest["id"], "done")

    assert result["completed"] is True
    assert result["rpg"]["xp_awarded"] is True
    assert len(result["xp_events"]) == 1
    event = result["xp_events"][0]
    assert event["reason"] == "task_complete"
    assert event["amount"] == 85
    assert event["metadata"] == {"task_id": quest["id"], "task_level": 3, "priority": "high"}
    assert result["player_rpg"]["xp"] == 85
    assert result["player_rpg"]["counters"]["tasks_completed"] == 1

    again = await task_service.update_task_status(user_id, quest["id"], "done")
    assert "xp_events" not in again
    assert (await stored_player(data_store, user_id))["rpg"]["xp"] == 85


@pytest.mark.asyncio
async def test_reverted_task_never_reawards(task_service, data_store, quest, user_id):
    await task_service.update_task_status(user_id, quest["id"], "done")
    reverted = await task_service.update_task_status(user_id, quest["id"], "todo")
    assert reverted["rpg"]["xp_awarded"] is True
    assert reverted["completed"] is False

    redone = await task_service.update_task_status(user_id, quest["id"], "done")

    assert "xp_events" not in redone
    assert (await stored_player(data_store, user_id))["rpg"]["counters"]["tasks_completed"] == 1
    assert len(redone["status_history"]) == 4


@pytest.mark.asyncio
async def test_task_history(task_service, quest, user_id):
    await task_service.update_task_status(user_id, quest["id"], "blocked")
    history = await task_service.get_task_history(user_id, quest["id"])
    assert [entry["status"] for entry in history["history"]] == ["todo", "blocked"]


# ============================================================================
# Side-quests
# ============================================================================

@pytest.mark.asyncio
async def test_create_subtask(task_service, quest, user_id):
    result = await task_service.create_subtask(
        user_id, quest["id"], CreateSubtaskRequest(description="Find the lair", weight=0.5)
    )

    subtask = result["sub_tasks"][0]
    assert subtask["id"] == 1
    assert subtask["description"] == "Find the lair"
    assert subtask["weight"] == 0.5
    assert "priority" not in subtask
    assert subtask["rpg"] == {"xp_awarded": False, "last_reward_at": None}
    assert result["nextSubtaskId"] == 2


@pytest.mark.asyncio
async def test_update_subtask(task_service, quest, user_id):
    await task_service.create_subtask(user_id, quest["id"], CreateSubtaskRequest(description="Scout"))
    result = await task_service.update_subtask(
        user_id, quest["id"], 1, UpdateSubtaskRequest(priority="low", description="Scout ahead")
    )

    assert result["sub_tasks"][0]["priority"] == "low"
    assert result["sub_tasks"][0]["description"] == "Scout ahead"


@pytest.mark.asyncio
async def test_subtask_completion_awards_once(task_service, data_store, quest, user_id):
    await task_service.create_subtask(user_id, quest["id"], CreateSubtaskRequest(description="Scout", priority="medium"))

    first = await task_service.update_subtask_status(user_id, quest["id"], 1, "done")
    second = await task_service.update_subtask_status(user_id, quest["id"], 1, "done")

    event = first["xp_events"][0]
    assert event["reason"] == "subtask_complete"
    # level 3 quest: 18 + 12, own priority overrides the quest's
    assert event["amount"] == 30
    assert event["metadata"]["priority"] == "medium"
    assert event["metadata"]["subtask_id"] == 1
    assert first["sub_tasks"][0]["rpg"]["xp_awarded"] is True
    assert first["rpg"]["history"][0]["subtask_id"] == 1
    assert first["rpg"]["xp_awarded"] is False
    assert "xp_events" not in second

    player = await stored_player(data_store, user_id)
    assert player["rpg"]["xp"] == 30
    assert player["rpg"]["counters"]["subtasks_completed"] == 1


@pytest.mark.asyncio
async def test_unknown_subtask(task_service, quest, user_id):
    with pytest.raises(RecordNotFoundError) as exc_info:
        await task_service.update_subtask_status(user_id, quest["id"], 42, "done")
    assert exc_info.value.record_type == "Subtask"


@pytest.mark.asyncio
async def test_delete_subtask(task_service, quest, user_id):
    await task_service.create_subtask(user_id, quest["id"], CreateSubtaskRequest(description="Scout"))
    await task_service.delete_subtask(user_id, quest["id"], 1)

    listed = await task_service.list_tasks(user_id)
    assert listed["tasks"][0]["sub_tasks"] == []
    assert listed["tasks"][0]["nextSubtaskId"] == 2


# ============================================================================
# Campaign Assignment
# ============================================================================

@pytest.fixture
async def campaign(data_store, clock, user_id):
    return await CampaignService(data_store, clock=clock).create_campaign(
        user_id, CreateCampaignRequest(name="Dragon Hunt")
    )


@pytest.mark.asyncio
async def test_create_task_in_campaign(task_service, campaign, user_id):
    task = await task_service.create_task(
        user_id, CreateTaskRequest(description="Forge a lance", campaign_id=campaign["id"])
    )
    assert task["campaign_id"] == campaign["id"]


@pytest.mark.asyncio
async def test_create_task_in_foreign_campaign_not_found(task_service, data_store, campaign):
    other = await UserService(data_store).create_user("rival")
    with pytest.raises(RecordNotFoundError) as exc_info:
        await task_service.create_task(other["id"], CreateTaskRequest(description="Steal", campaign_id=campaign["id"]))
    assert exc_info.value.record_type == "Campaign"


@pytest.mark.asyncio
async def test_archived_campaign_rejects_new_quests(task_service, data_store, clock, campaign, user_id):
    await CampaignService(data_store, clock=clock).update_campaign(
        user_id, campaign["id"], UpdateCampaignRequest(archived=True)
    )
    with pytest.raises(RecordNotFoundError):
        await task_service.create_task(user_id, CreateTaskRequest(description="Late", campaign_id=campaign["id"]))


@pytest.mark.asyncio
async def test_update_task_attaches_and_detaches_campaign(task_service, quest, campaign, user_id):
    attached = await task_service.update_task(user_id, quest["id"], UpdateTaskRequest(campaign_id=campaign["id"]))
    assert attached["campaign_id"] == campaign["id"]

    untouched = await task_service.update_task(user_id, quest["id"], UpdateTaskRequest(priority="low"))
    assert untouched["campaign_id"] == campaign["id"]

    detached = await task_service.update_task(user_id, quest["id"], UpdateTaskRequest(campaign_id=None))
    assert detached["campaign_id"] is None


@pytest.mark.asyncio
async def test_list_tasks_campaign_filter(task_service, quest, campaign, user_id):
    in_campaign = await task_service.create_task(
        user_id, CreateTaskRequest(description="Forge a lance", campaign_id=campaign["id"])
    )

    by_campaign = await task_service.list_tasks(user_id, str(campaign["id"]))
    unassigned = await task_service.list_tasks(user_id, "null")
    also_unassigned = await task_service.list_tasks(user_id, "none")

    assert [task["id"] for task in by_campaign["tasks"]] == [in_campaign["id"]]
    assert [task["id"] for task in unassigned["tasks"]] == [quest["id"]]
    assert also_unassigned["tasks"] == unassigned["tasks"]


@pytest.mark.parametrize("raw", ["0", "-2", "abc", "1.5", ""])
@pytest.mark.asyncio
async def test_list_tasks_invalid_campaign_filter(task_service, user_id, raw):
    with pytest.raises(ValidationError) as exc_info:
        await task_service.list_tasks(user_id, raw)
    assert exc_info.value.field == "campaign_id"


# ============================================================================
# Reward Preview
# ============================================================================

@pytest.mark.asyncio
async def test_task_reward_preview(task_service, quest, user_id):
    preview = await task_service.get_task_reward(user_id, quest["id"])

    # level 3: 50 + 2 * 12 = 74, high priority * 1.15 = 85.1 -> 85
    assert preview["amount"] == 85
    assert preview["base"] == 74
    assert preview["level"] == 3
    assert preview["multiplier"] == 1.15
    assert preview["status"] == "todo"
    assert preview["award_state"] == "not_awarded"


@pytest.mark.asyncio
async def test_task_reward_preview_after_completion(task_service, quest, user_id):
    await task_service.update_task_status(user_id, quest["id"], "done")

    preview = await task_service.get_task_reward(user_id, quest["id"])

    assert preview["status"] == "done"
    assert preview["award_state"] == "awarded"


# ============================================================================
# Debug Clear & Seed
# ============================================================================

@pytest.mark.asyncio
async def test_clear_tasks_only_removes_own(task_service, data_store, quest, user_id):
    other = await UserService(data_store).create_user("rival")
    await task_service.create_task(other["id"], CreateTaskRequest(description="Rival quest"))

    result = await task_service.clear_tasks(user_id)

    assert result == {"removed": 1}
    assert (await task_service.list_tasks(user_id))["tasks"] == []
    assert len((await task_service.list_tasks(other["id"]))["tasks"]) == 1


@pytest.mark.asyncio
async def test_seed_tasks_replaces_own_quests(task_service, data_store, quest, user_id):
    other = await UserService(data_store).create_user("rival")
    rival_quest = await task_service.create_task(other["id"], CreateTaskRequest(description="Rival quest"))

    result = await task_service.seed_tasks(user_id, 3, rng=random.Random(7))

    assert result["created"] == 3
    assert result["removedBeforeSeed"] == 1
    assert [task["id"] for task in result["tasks"]] == [3, 4, 5]
    assert [task["order"] for task in result["tasks"]] == [
        rival_quest["order"] + 1, rival_quest["order"] + 2, rival_quest["order"] + 3
    ]
    for task in result["tasks"]:
        assert task["owner_id"] == user_id
        assert 1 <= task["task_level"] <= 5
        assert task["campaign_id"] is None
        assert task["rpg"]["xp_awarded"] is (task["status"] == "done")

    listed = await task_service.list_tasks(user_id)
    assert [task["id"] for task in listed["tasks"]] == [3, 4, 5]
    assert listed["nextId"] == 6


@pytest.mark.parametrize("count, expected", [(None, 5), (0, 1), (2.9, 2), (50, 10), (float("nan"), 5)])
@pytest.mark.asyncio
async def test_seed_tasks_count_clamped(task_service, user_id, count, expected):
    result = await task_service.seed_tasks(user_id, count)
    assert result["created"] == expected


@pytest.mark.asyncio
async def test_seeded_done_quest_never_pays(task_service, data_store, user_id):
    seeded = await task_service.seed_tasks(user_id, 10, rng=random.Random(3))

    for task in seeded["tasks"]:
        await task_service.update_task_status(user_id, task["id"], "done")

    player = await stored_player(data_store, user_id)
    awarded_by_seed = sum(1 for task in seeded["tasks"] if task["status"] == "done")
    assert player["rpg"]["counters"]["tasks_completed"] == 10 - awarded_by_seed
