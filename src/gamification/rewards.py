"""
Reward Tables

XP Award Rules:
- Quest completion: 50 XP + 12 per quest level above 1 (levels 1-10)
- Side-quest completion: 18 XP + 6 per parent quest level above 1,
  scaled by side-quest weight (floor 0.35)
- Priority multiplier: low 0.9, medium 1.0, high 1.15
- Daily focus bonus: 30 XP
- Every completion award is at least 1 XP
"""

import math
from typing import Any, Dict, Optional

from src.gamification.level_curve import is_finite_number
from src.gamification.xp_config import XP_CONFIG, XpConfig
from src.models.rpg import XpEventReason
from src.models.task import TASK_STATUSES, TaskStatus


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def clamp_task_level(level: Any, config: XpConfig = XP_CONFIG) -> int:
    """Round a quest level to the nearest integer within 1..max_task_level"""
    if not is_finite_number(level):
        return 1
    return min(config.max_task_level, max(1, _round_half_up(level)))


def get_priority_multiplier(priority: Any, config: XpConfig = XP_CONFIG) -> float:
    """XP multiplier for a priority name (unknown priorities count as 1.0)"""
    if not priority or not isinstance(priority, str):
        return 1.0
    return config.priority_multipliers.get(priority.lower(), 1.0)


def compute_task_xp(task: Any, config: XpConfig = XP_CONFIG) -> Dict[str, Any]:
    """
    XP for completing a quest

    Returns:
        {
            'amount': int (0 when task is not a record),
            'level': int,
            'multiplier': float,
            'base': int
        }
    """
    if not isinstance(task, dict):
        return {"amount": 0, "level": 1, "multiplier": 1.0, "base": config.base_task_xp}

    task_level = task.get("task_level")
    level = clamp_task_level(1 if task_level is None else task_level, config)
    base = config.base_task_xp + (level - 1) * config.task_level_bonus
    multiplier = get_priority_multiplier(task.get("priority"), config)
    amount = max(1, _round_half_up(base * multiplier))
    return {"amount": amount, "level": level, "multiplier": multiplier, "base": base}


def compute_subtask_xp(task: Any, subtask: Any, config: XpConfig = XP_CONFIG) -> Dict[str, Any]:
    """
    XP for completing a side-quest

    The side-quest's own priority wins over the parent's; weight scales the
    award but never below ``subtask_weight_floor``.

    Returns:
        Task breakdown plus 'weight' and 'source_priority'
    """
    task_reward = compute_task_xp(task, config)
    if not isinstance(task, dict):
        return {**task_reward, "weight": 1, "source_priority": None}

    subtask = subtask if isinstance(subtask, dict) else {}
    base = config.base_subtask_xp + (task_reward["level"] - 1) * config.subtask_level_bonus
    source_priority: Optional[str] = subtask.get("priority")
    if source_priority is None:
        source_priority = task.get("priority")
    multiplier = get_priority_multiplier(source_priority, config)

    weight = 1
    if is_finite_number(subtask.get("weight")):
        weight = max(config.subtask_weight_floor, subtask["weight"])

    amount = max(1, _round_half_up(base * multiplier * weight))
    return {
        "amount": amount,
        "level": task_reward["level"],
        "multiplier": multiplier,
        "base": base,
        "weight": weight,
        "source_priority": source_priority,
    }


def compute_daily_reward(config: XpConfig = XP_CONFIG) -> Dict[str, Any]:
    """Fixed daily focus bonus"""
    return {"amount": config.daily_base_xp, "reason": XpEventReason.DAILY_FOCUS.value}


def resolve_status(value: Any) -> str:
    """Known status string, or 'todo'"""
    return value if isinstance(value, str) and value in TASK_STATUSES else TaskStatus.TODO.value


def summarize_task_reward(task: Any, config: XpConfig = XP_CONFIG) -> Dict[str, Any]:
    """Quest reward breakdown with the quest's resolved status"""
    reward = compute_task_xp(task, config)
    status = resolve_status(task.get("status")) if isinstance(task, dict) else TaskStatus.TODO.value
    return {**reward, "status": status}
