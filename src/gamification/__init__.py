"""
Gamification engine for the quest tracker

This package turns quest completions into XP:
- Level curve (XP <-> level, per-level progress)
- Player state normalization
- Reward tables for quests, side-quests and the daily focus bonus
- XP ledger with a bounded event log
- At-most-once completion rewards
- Client-safe projections of player state

Everything here is synchronous and works on in-memory records; loading and
saving belongs to src.db.
"""

from src.gamification.xp_config import XP_CONFIG, XpConfig
from src.gamification.level_curve import xp_required_for_level, level_from_xp, level_progress
from src.gamification.rpg_state import ensure_rpg, create_initial_rpg_state, increment_counter
from src.gamification.rewards import (
    clamp_task_level,
    compute_task_xp,
    compute_subtask_xp,
    compute_daily_reward,
    summarize_task_reward,
)
from src.gamification.xp_system import apply_xp
from src.gamification.completion import (
    AwardState,
    get_award_state,
    qualifies_for_reward,
    award_task_completion,
    award_subtask_completion,
)
from src.gamification.daily_rewards import claim_daily_reward
from src.gamification.public_state import build_public_rpg_state, to_public_xp_event

__all__ = [
    "XP_CONFIG",
    "XpConfig",
    "xp_required_for_level",
    "level_from_xp",
    "level_progress",
    "ensure_rpg",
    "create_initial_rpg_state",
    "increment_counter",
    "clamp_task_level",
    "compute_task_xp",
    "compute_subtask_xp",
    "compute_daily_reward",
    "summarize_task_reward",
    "apply_xp",
    "AwardState",
    "get_award_state",
    "qualifies_for_reward",
    "award_task_completion",
    "award_subtask_completion",
    "claim_daily_reward",
    "build_public_rpg_state",
    "to_public_xp_event",
]
