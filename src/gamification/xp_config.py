"""
XP configuration

All reward and leveling constants in one immutable struct. Engine functions
accept a ``config`` argument and default to ``XP_CONFIG``.
"""

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping


def _default_priority_multipliers() -> Mapping[str, float]:
    return MappingProxyType({"low": 0.9, "medium": 1.0, "high": 1.15})


@dataclass(frozen=True)
class XpConfig:
    """Reward table and level curve parameters"""

    base_task_xp: int = 50
    task_level_bonus: int = 12
    base_subtask_xp: int = 18
    subtask_level_bonus: int = 6
    subtask_weight_floor: float = 0.35
    priority_multipliers: Mapping[str, float] = field(default_factory=_default_priority_multipliers)
    daily_base_xp: int = 30
    max_task_level: int = 10
    level_base_requirement: int = 100
    level_step_requirement: int = 40
    max_level: int = 99
    xp_log_limit: int = 30
    task_history_limit: int = 10
    recent_events_limit: int = 5


XP_CONFIG = XpConfig()
