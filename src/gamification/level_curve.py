"""
Level Curve

Maps cumulative XP to a player level and per-level progress.

Leveling Curve:
- Level 1 starts at 0 XP
- Level 2 needs 100 XP, and every further level costs 40 XP more than the last
  (100, 140, 180, ...)
- Threshold for level L: 100*(L-1) + 20*(L-1)*(L-2)
- Levels are capped at 99
"""

import math
from typing import Any, Dict

from src.gamification.xp_config import XP_CONFIG, XpConfig


def is_finite_number(value: Any) -> bool:
    """True for real int/float values that are finite (bools excluded)"""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return math.isfinite(value)


def xp_required_for_level(level: Any, config: XpConfig = XP_CONFIG) -> int:
    """
    Total XP needed to reach ``level``

    Closed form of sum(base + (i - 1) * step for i in 1..level-1).
    """
    if not is_finite_number(level) or level <= 1:
        return 0
    steps = math.floor(level) - 1
    return (
        config.level_base_requirement * steps
        + config.level_step_requirement * steps * (steps - 1) // 2
    )


def level_from_xp(xp: Any, config: XpConfig = XP_CONFIG) -> int:
    """Highest level whose threshold is <= xp, capped at ``config.max_level``"""
    if not is_finite_number(xp) or xp <= 0:
        return 1
    level = 1
    while xp >= xp_required_for_level(level + 1, config):
        level += 1
        if level >= config.max_level:
            break
    return level


def level_progress(level: Any, xp: Any, config: XpConfig = XP_CONFIG) -> Dict[str, Any]:
    """
    Progress through ``level`` at ``xp``

    Returns:
        {
            'xp_into_level': int,
            'xp_for_level': int,
            'xp_to_next': int,
            'progress': float (0..1)
        }
    """
    safe_xp = max(0, math.floor(xp)) if is_finite_number(xp) else 0
    safe_level = math.floor(level) if is_finite_number(level) and level >= 1 else 1

    current_floor = xp_required_for_level(safe_level, config)
    next_floor = xp_required_for_level(safe_level + 1, config)
    xp_for_level = max(1, next_floor - current_floor)
    xp_into_level = max(0, safe_xp - current_floor)
    xp_to_next = max(0, next_floor - safe_xp)

    return {
        "xp_into_level": xp_into_level,
        "xp_for_level": xp_for_level,
        "xp_to_next": xp_to_next,
        "progress": min(1.0, max(0.0, xp_into_level / xp_for_level)),
    }
