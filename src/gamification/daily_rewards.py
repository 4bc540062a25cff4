"""
Daily Focus Reward

One bonus claim per player per UTC calendar day. The claim is keyed on the
day string, so two claims hours apart on the same UTC date still collide and
a claim just after midnight UTC succeeds.
"""

from datetime import datetime
from typing import Any, Dict, Optional

from src.exceptions import DuplicateClaimError, InvalidAmountError
from src.gamification.rewards import compute_daily_reward
from src.gamification.rpg_state import ensure_rpg, increment_counter
from src.gamification.xp_config import XP_CONFIG, XpConfig
from src.gamification.xp_system import apply_xp
from src.utils.datetime_helpers import utc_day_key


def claim_daily_reward(
    player: Dict[str, Any],
    now: Optional[datetime] = None,
    config: XpConfig = XP_CONFIG
) -> Dict[str, Any]:
    """
    Grant today's daily focus bonus

    Raises:
        DuplicateClaimError: Already claimed on this UTC day

    Returns:
        The XP event
    """
    today = utc_day_key(now)
    rpg = ensure_rpg(player, config)
    if rpg["last_daily_reward_at"] == today:
        raise DuplicateClaimError(today, user_id=player.get("id"), operation="claim_daily_reward")

    reward = compute_daily_reward(config)
    event = apply_xp(player, reward["amount"], reward["reason"], {"date": today}, now, config)
    if not event:
        raise InvalidAmountError(
            "Daily reward amount is not a positive number",
            value=reward["amount"],
            user_id=player.get("id"),
            operation="claim_daily_reward"
        )

    increment_counter(rpg, "daily_rewards_claimed")
    rpg["last_daily_reward_at"] = today
    return event
