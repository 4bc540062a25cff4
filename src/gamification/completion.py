"""
Completion Rewards

Each quest and side-quest can pay out its completion XP at most once. The
award state is one-way: NOT_AWARDED -> AWARDED, and nothing (including moving
the status back out of 'done') resets it.

A reward fires iff:
- the new status is 'done'
- the previous status was not 'done'
- the unit has not been awarded before
"""

from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from src.gamification.level_curve import is_finite_number
from src.gamification.rewards import compute_subtask_xp, compute_task_xp
from src.gamification.rpg_state import increment_counter
from src.gamification.xp_config import XP_CONFIG, XpConfig
from src.gamification.xp_system import apply_xp
from src.models.rpg import XpEventReason
from src.models.task import TaskStatus


class AwardState(str, Enum):
    """Whether a quest/side-quest has paid out its completion reward"""
    NOT_AWARDED = "not_awarded"
    AWARDED = "awarded"


def _normalize_history(history: Any, limit: int) -> List[Dict[str, Any]]:
    entries = []
    for entry in history if isinstance(history, list) else []:
        if not isinstance(entry, dict):
            continue
        record = {
            "at": entry.get("at") if isinstance(entry.get("at"), str) else None,
            "amount": entry["amount"] if is_finite_number(entry.get("amount")) else 0,
            "reason": entry.get("reason") if isinstance(entry.get("reason"), str) else "unknown",
        }
        if is_finite_number(entry.get("subtask_id")):
            record["subtask_id"] = entry["subtask_id"]
        entries.append(record)
    return entries[:limit]


def ensure_task_reward_state(task: Dict[str, Any], config: XpConfig = XP_CONFIG) -> Dict[str, Any]:
    """Repair ``task['rpg']`` in place and return it"""
    rpg = task.get("rpg")
    if not isinstance(rpg, dict):
        rpg = {}
        task["rpg"] = rpg
    rpg["xp_awarded"] = rpg.get("xp_awarded") is True
    if not isinstance(rpg.get("last_reward_at"), str):
        rpg["last_reward_at"] = None
    rpg["history"] = _normalize_history(rpg.get("history"), config.task_history_limit)
    return rpg


def ensure_subtask_reward_state(subtask: Dict[str, Any]) -> Dict[str, Any]:
    """Repair ``subtask['rpg']`` in place and return it"""
    rpg = subtask.get("rpg")
    if not isinstance(rpg, dict):
        rpg = {}
        subtask["rpg"] = rpg
    rpg["xp_awarded"] = rpg.get("xp_awarded") is True
    if not isinstance(rpg.get("last_reward_at"), str):
        rpg["last_reward_at"] = None
    return rpg


def get_award_state(unit: Dict[str, Any]) -> AwardState:
    """Award state of a quest or side-quest record"""
    rpg = unit.get("rpg")
    if isinstance(rpg, dict) and rpg.get("xp_awarded") is True:
        return AwardState.AWARDED
    return AwardState.NOT_AWARDED


def qualifies_for_reward(previous_status: Any, new_status: Any, award_state: AwardState) -> bool:
    """Whether a status transition should pay out the completion reward"""
    done = TaskStatus.DONE.value
    return new_status == done and previous_status != done and award_state == AwardState.NOT_AWARDED


def _record_award(
    unit_rpg: Dict[str, Any],
    task_rpg: Dict[str, Any],
    event: Dict[str, Any],
    config: XpConfig,
    subtask_id: Optional[Any] = None
) -> None:
    unit_rpg["xp_awarded"] = True
    unit_rpg["last_reward_at"] = event["at"]

    entry = {"at": event["at"], "amount": event["amount"], "reason": event["reason"]}
    if subtask_id is not None:
        entry["subtask_id"] = subtask_id
    task_rpg["history"].insert(0, entry)
    del task_rpg["history"][config.task_history_limit:]


def award_task_completion(
    task: Dict[str, Any],
    player: Dict[str, Any],
    now: Optional[datetime] = None,
    config: XpConfig = XP_CONFIG
) -> Optional[Dict[str, Any]]:
    """
    Pay out a quest's completion reward

    Callers decide eligibility with qualifies_for_reward() first.

    Returns:
        The XP event, or None when nothing was awarded
    """
    reward = compute_task_xp(task, config)
    if reward["amount"] <= 0:
        return None

    metadata = {
        "task_id": task.get("id"),
        "task_level": task.get("task_level"),
        "priority": task.get("priority"),
    }
    event = apply_xp(player, reward["amount"], XpEventReason.TASK_COMPLETE, metadata, now, config)
    if not event:
        return None

    task_rpg = ensure_task_reward_state(task, config)
    increment_counter(player["rpg"], "tasks_completed")
    _record_award(task_rpg, task_rpg, event, config)
    return event


def award_subtask_completion(
    task: Dict[str, Any],
    subtask: Dict[str, Any],
    player: Dict[str, Any],
    now: Optional[datetime] = None,
    config: XpConfig = XP_CONFIG
) -> Optional[Dict[str, Any]]:
    """
    Pay out a side-quest's completion reward

    The history entry goes into the parent quest's reward history.
    """
    reward = compute_subtask_xp(task, subtask, config)
    if reward["amount"] <= 0:
        return None

    metadata = {
        "task_id": task.get("id"),
        "task_level": task.get("task_level"),
        "subtask_id": subtask.get("id"),
        "priority": reward["source_priority"],
    }
    if is_finite_number(subtask.get("weight")):
        metadata["weight"] = subtask["weight"]

    event = apply_xp(player, reward["amount"], XpEventReason.SUBTASK_COMPLETE, metadata, now, config)
    if not event:
        return None

    task_rpg = ensure_task_reward_state(task, config)
    subtask_rpg = ensure_subtask_reward_state(subtask)
    increment_counter(player["rpg"], "subtasks_completed")
    _record_award(subtask_rpg, task_rpg, event, config, subtask_id=subtask.get("id"))
    return event
