"""Task (quest) record queries

Stored task files may be hand-edited or written by older versions, so every
read repairs each record field by field before services see it.
"""
import copy
import logging
import random
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional

from src.db.connection import JsonDataStore, db, next_record_id
from src.db.queries.users import read_users
from src.gamification.completion import ensure_subtask_reward_state, ensure_task_reward_state
from src.gamification.level_curve import is_finite_number
from src.gamification.rewards import clamp_task_level
from src.models.task import TASK_PRIORITIES, TASK_STATUSES, TaskPriority, TaskStatus
from src.utils.datetime_helpers import to_iso_timestamp, utc_now

logger = logging.getLogger(__name__)

DEMO_DESCRIPTIONS = (
    "Brew restorative potions",
    "Scout the northern ridge",
    "Upgrade camp defenses",
    "Interview guild recruits",
    "Refine spell catalysts",
    "Chart forgotten ruins",
    "Calibrate the chrono-compass",
    "Train with sparring golems",
    "Draft trading manifests",
    "Decode ancient glyphs",
)

DEMO_SIDE_QUESTS = (
    "Gather components",
    "Meet with ally",
    "Write expedition log",
    "Sharpen gear",
    "Meditate before battle",
    "Update quest board",
    "Visit quartermaster",
)


def _clean_text(value: Any, fallback: str) -> str:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return fallback


def _campaign_id(value: Any) -> Optional[int]:
    """Positive whole campaign id, or None"""
    if not is_finite_number(value) or value != int(value) or value <= 0:
        return None
    return int(value)


def _resolve_status(source: Dict[str, Any]) -> str:
    status = source.get("status")
    if isinstance(status, str) and status in TASK_STATUSES:
        return status
    return TaskStatus.DONE.value if source.get("completed") is True else TaskStatus.TODO.value


def ensure_status_history(history: Any, status: str, timestamp: str) -> List[Dict[str, Any]]:
    """Repair a status history list; an empty history gets one entry for the current status"""
    if not isinstance(history, list) or not history:
        return [{"status": status, "at": timestamp, "note": None}]

    repaired = []
    for entry in history:
        if not isinstance(entry, dict):
            repaired.append({"status": status, "at": timestamp, "note": None})
            continue
        entry_status = entry.get("status")
        note = entry.get("note")
        repaired.append({
            "status": entry_status if isinstance(entry_status, str) and entry_status in TASK_STATUSES else status,
            "at": entry["at"] if isinstance(entry.get("at"), str) else timestamp,
            "note": note if isinstance(note, str) else None,
        })
    return repaired


def normalize_subtask(raw: Any, now: str) -> Dict[str, Any]:
    """
    Repair a side-quest record

    Side-quests saved before reward tracking existed count as already
    awarded when they were completed, so they never pay out retroactively.
    """
    source = raw if isinstance(raw, dict) else {}
    status = _resolve_status(source)
    created_at = source["created_at"] if isinstance(source.get("created_at"), str) else now
    updated_at = source["updated_at"] if isinstance(source.get("updated_at"), str) else created_at

    legacy_completed = source.get("completed") is True
    rpg = source.get("rpg") if isinstance(source.get("rpg"), dict) else {}
    if not isinstance(rpg.get("xp_awarded"), bool):
        rpg = {**rpg, "xp_awarded": legacy_completed}

    subtask = {
        "id": source["id"] if isinstance(source.get("id"), int) and not isinstance(source.get("id"), bool) else 0,
        "description": _clean_text(source.get("description"), "Side quest"),
        "status": status,
        "created_at": created_at,
        "updated_at": updated_at,
        "status_history": ensure_status_history(source.get("status_history"), status, updated_at),
        "completed": source["completed"] if isinstance(source.get("completed"), bool)
        else status == TaskStatus.DONE.value,
        "rpg": rpg,
    }
    if source.get("priority") in TASK_PRIORITIES:
        subtask["priority"] = source["priority"]
    if is_finite_number(source.get("weight")):
        subtask["weight"] = source["weight"]

    ensure_subtask_reward_state(subtask)
    return subtask


def normalize_task(raw: Any, index: int, default_owner_id: int = 1) -> Dict[str, Any]:
    """
    Repair a quest record read from storage

    Args:
        raw: Stored record
        index: Position in the stored list (fallback id and order)
        default_owner_id: Owner for records saved without one

    Returns:
        Normalized quest record
    """
    now = to_iso_timestamp()
    source = raw if isinstance(raw, dict) else {}

    sub_tasks = [
        normalize_subtask(item, now)
        for item in (source.get("sub_tasks") if isinstance(source.get("sub_tasks"), list) else [])
    ]
    max_sub_id = max((sub["id"] for sub in sub_tasks), default=0)
    for sub in sub_tasks:
        if sub["id"] == 0:
            max_sub_id += 1
            sub["id"] = max_sub_id

    status = _resolve_status(source)
    created_at = source["created_at"] if isinstance(source.get("created_at"), str) else now
    updated_at = source["updated_at"] if isinstance(source.get("updated_at"), str) else created_at
    next_subtask_id = source.get("nextSubtaskId")
    if not isinstance(next_subtask_id, int) or isinstance(next_subtask_id, bool) or next_subtask_id <= max_sub_id:
        next_subtask_id = max_sub_id + 1

    owner_id = source.get("owner_id")
    task = {
        "id": source["id"] if isinstance(source.get("id"), int) and not isinstance(source.get("id"), bool)
        else index + 1,
        "description": _clean_text(source.get("description"), f"Task {index + 1}"),
        "priority": source["priority"] if source.get("priority") in TASK_PRIORITIES else TaskPriority.MEDIUM.value,
        "sub_tasks": sub_tasks,
        "nextSubtaskId": next_subtask_id,
        "due_date": _clean_text(source.get("due_date"), now.split("T")[0]),
        "status": status,
        "completed": status == TaskStatus.DONE.value,
        "order": source["order"] if is_finite_number(source.get("order")) else index,
        "created_at": created_at,
        "updated_at": updated_at,
        "status_history": ensure_status_history(source.get("status_history"), status, updated_at),
        "owner_id": owner_id if is_finite_number(owner_id) else default_owner_id,
        "task_level": clamp_task_level(source["task_level"] if is_finite_number(source.get("task_level")) else 1),
        "rpg": copy.deepcopy(source.get("rpg")) if isinstance(source.get("rpg"), dict) else {},
        "campaign_id": _campaign_id(source.get("campaign_id")),
    }

    # flat xp_awarded flag from older files wins over the nested one
    if isinstance(source.get("xp_awarded"), bool):
        task["rpg"]["xp_awarded"] = source["xp_awarded"]
    ensure_task_reward_state(task)
    return task


async def read_tasks(store: JsonDataStore = db) -> Dict[str, Any]:
    """
    Load all tasks, normalized

    Returns:
        {'tasks': list[dict], 'nextId': int}
    """
    raw = await store.read_document("tasks")
    stored = raw.get("tasks") if isinstance(raw.get("tasks"), list) else []
    if not stored:
        return {"tasks": [], "nextId": next_record_id([], raw.get("nextId"))}

    users_data = await read_users(store)
    default_owner_id = users_data["users"][0].get("id", 1) if users_data["users"] else 1

    tasks = [normalize_task(item, index, default_owner_id) for index, item in enumerate(stored)]
    return {"tasks": tasks, "nextId": next_record_id(tasks, raw.get("nextId"))}


async def write_tasks(data: Dict[str, Any], store: JsonDataStore = db) -> None:
    """Persist the tasks document"""
    await store.write_document("tasks", data)
    logger.debug(f"Saved {len(data.get('tasks', []))} tasks")


def find_task(tasks_data: Dict[str, Any], task_id: int, owner_id: Optional[int] = None) -> Optional[Dict[str, Any]]:
    """Task by id, optionally restricted to one owner"""
    for task in tasks_data.get("tasks", []):
        if task.get("id") == task_id and (owner_id is None or task.get("owner_id") == owner_id):
            return task
    return None


def find_subtask(task: Dict[str, Any], subtask_id: int) -> Optional[Dict[str, Any]]:
    for subtask in task.get("sub_tasks", []):
        if subtask.get("id") == subtask_id:
            return subtask
    return None


def _serialize_subtask(subtask: Dict[str, Any]) -> Dict[str, Any]:
    rpg = subtask.get("rpg") or {}
    serialized = {
        **subtask,
        "completed": bool(subtask.get("completed")),
        "rpg": {
            "xp_awarded": bool(rpg.get("xp_awarded")),
            "last_reward_at": rpg.get("last_reward_at"),
        },
    }
    return serialized


def serialize_task(task: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    """Copy of a task for API responses"""
    if not task:
        return None
    rpg = task.get("rpg") or {}
    return {
        **copy.deepcopy(task),
        "sub_tasks": [_serialize_subtask(copy.deepcopy(sub)) for sub in task.get("sub_tasks", [])],
        "rpg": {
            "xp_awarded": bool(rpg.get("xp_awarded")),
            "last_reward_at": rpg.get("last_reward_at"),
            "history": copy.deepcopy(rpg.get("history")) if isinstance(rpg.get("history"), list) else [],
        },
    }


def serialize_task_list(tasks: Any) -> List[Dict[str, Any]]:
    if not isinstance(tasks, list):
        return []
    return [serialize_task(task) for task in tasks if task]


def build_demo_tasks(
    count: int,
    next_id: int,
    owner_id: int,
    starting_order: int = 0,
    now: Optional[datetime] = None,
    rng: Optional[random.Random] = None
) -> Dict[str, Any]:
    """
    Random demo quests for the debug seeding route

    Quests and side-quests generated as 'done' are marked already awarded,
    so seeding never pays out XP.

    Args:
        count: Number of quests to build
        next_id: First quest id to use
        owner_id: Owner of every generated quest
        starting_order: Order value of the first quest
        now: Creation instant (defaults to the current UTC time)
        rng: Random source

    Returns:
        {'tasks': list[dict], 'nextId': int}
    """
    rng = rng or random.Random()
    now = now or utc_now()
    timestamp = to_iso_timestamp(now)
    statuses = [status.value for status in TaskStatus]
    sub_statuses = [TaskStatus.TODO.value, TaskStatus.IN_PROGRESS.value, TaskStatus.DONE.value]

    tasks = []
    for offset in range(count):
        status = rng.choice(statuses)
        due_date = (now + timedelta(days=rng.randint(0, 5) - 2)).date().isoformat()

        sub_tasks = []
        for sub_id in range(1, rng.randint(0, 2) + 1):
            sub_status = rng.choice(sub_statuses)
            sub_tasks.append({
                "id": sub_id,
                "description": rng.choice(DEMO_SIDE_QUESTS),
                "status": sub_status,
                "created_at": timestamp,
                "updated_at": timestamp,
                "status_history": [{"status": sub_status, "at": timestamp, "note": None}],
                "completed": sub_status == TaskStatus.DONE.value,
                "rpg": {"xp_awarded": sub_status == TaskStatus.DONE.value, "last_reward_at": None},
            })

        tasks.append({
            "id": next_id + offset,
            "description": rng.choice(DEMO_DESCRIPTIONS),
            "priority": rng.choice([priority.value for priority in TaskPriority]),
            "sub_tasks": sub_tasks,
            "nextSubtaskId": len(sub_tasks) + 1,
            "due_date": due_date,
            "status": status,
            "completed": status == TaskStatus.DONE.value,
            "order": starting_order + offset,
            "created_at": timestamp,
            "updated_at": timestamp,
            "status_history": [{"status": status, "at": timestamp, "note": None}],
            "owner_id": owner_id,
            "task_level": rng.randint(1, 5),
            "rpg": {"xp_awarded": status == TaskStatus.DONE.value, "last_reward_at": None, "history": []},
            "campaign_id": None,
        })

    return {"tasks": tasks, "nextId": next_id + count}
