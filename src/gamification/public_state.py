"""Client-safe projections of player state and XP events"""

import copy
from typing import Any, Dict, Optional

from src.gamification.level_curve import level_progress
from src.gamification.rpg_state import create_initial_rpg_state, ensure_rpg
from src.gamification.xp_config import XP_CONFIG, XpConfig


def build_public_rpg_state(rpg: Any, config: XpConfig = XP_CONFIG) -> Dict[str, Any]:
    """
    Snapshot of a player's RPG state for API responses

    Works on a normalized deep copy, so the stored record is never modified.
    A missing or malformed record projects the initial state.
    """
    if isinstance(rpg, dict):
        safe = ensure_rpg({"rpg": copy.deepcopy(rpg)}, config)
    else:
        safe = create_initial_rpg_state(config=config)

    progress = level_progress(safe["level"], safe["xp"], config)
    recent_events = [
        dict(event)
        for event in safe["xp_log"][:config.recent_events_limit]
        if isinstance(event, dict)
    ]

    return {
        "level": safe["level"],
        "xp": safe["xp"],
        "xp_into_level": progress["xp_into_level"],
        "xp_for_level": progress["xp_for_level"],
        "xp_to_next": progress["xp_to_next"],
        "xp_progress": progress["progress"],
        "streak": safe["streak"] or 0,
        "last_daily_reward_at": safe["last_daily_reward_at"] or None,
        "last_xp_award_at": safe["last_xp_award_at"] or None,
        "counters": dict(safe["counters"]),
        "stats": {
            "hp": safe["hp"],
            "mp": safe["mp"],
            "coins": safe["coins"],
        },
        "achievements": list(safe["achievements"]),
        "inventory": {"items": list(safe["inventory"]["items"])},
        "recent_events": recent_events,
    }


def to_public_xp_event(event: Any) -> Optional[Dict[str, Any]]:
    """XP event for clients (drops xp_before); None when there is no event"""
    if not isinstance(event, dict):
        return None
    metadata = event.get("metadata")
    return {
        "amount": event.get("amount"),
        "reason": event.get("reason"),
        "message": event.get("message"),
        "metadata": dict(metadata) if isinstance(metadata, dict) else {},
        "at": event.get("at"),
        "level_before": event.get("level_before"),
        "level_after": event.get("level_after"),
        "xp_after": event.get("xp_after"),
        "xp_into_level": event.get("xp_into_level"),
        "xp_for_level": event.get("xp_for_level"),
        "xp_to_next": event.get("xp_to_next"),
        "leveled_up": bool(event.get("leveled_up")),
    }
