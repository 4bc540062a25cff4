"""
XP Ledger

The only place player XP changes. apply_xp() takes a signed delta, keeps the
level derived from XP, and records an event in a rolling log of the 30 most
recent events (newest first; older events are dropped).
"""

import math
from datetime import datetime
from typing import Any, Dict, Optional, Union

from src.gamification.level_curve import is_finite_number, level_from_xp, level_progress
from src.gamification.rpg_state import ensure_rpg
from src.gamification.xp_config import XP_CONFIG, XpConfig
from src.models.rpg import XpEventReason
from src.utils.datetime_helpers import to_iso_timestamp

_MESSAGE_TEMPLATES = {
    XpEventReason.TASK_COMPLETE.value: "Quest complete +{amount} XP",
    XpEventReason.SUBTASK_COMPLETE.value: "Side-quest complete +{amount} XP",
    XpEventReason.DAILY_FOCUS.value: "Daily focus bonus +{amount} XP",
}


def describe_xp_event(reason: str, amount: int) -> str:
    """Human-readable message for an XP event"""
    template = _MESSAGE_TEMPLATES.get(reason)
    if template:
        return template.format(amount=amount)
    if amount >= 0:
        return f"Gained +{amount} XP"
    return f"Lost {abs(amount)} XP"


def apply_xp(
    player: Any,
    amount: Any,
    reason: Union[XpEventReason, str, None] = XpEventReason.XP_GAIN,
    metadata: Optional[Dict[str, Any]] = None,
    now: Optional[datetime] = None,
    config: XpConfig = XP_CONFIG
) -> Optional[Dict[str, Any]]:
    """
    Apply a signed XP delta to a player record

    Args:
        player: User record holding ``rpg`` (normalized in place)
        amount: XP delta; floored to an integer
        reason: XpEventReason (empty means xp_gain)
        metadata: Extra event context, copied into the event
        now: Event time (defaults to the current instant)

    Returns:
        The recorded event, or None when the delta is not a finite number or
        floors to zero (the player is left untouched)
    """
    if not isinstance(player, dict) or not is_finite_number(amount):
        return None
    delta = int(math.floor(amount))
    if delta == 0:
        return None

    rpg = ensure_rpg(player, config)

    reason_value = reason.value if isinstance(reason, XpEventReason) else reason
    reason_value = reason_value or XpEventReason.XP_GAIN.value
    at = to_iso_timestamp(now)

    xp_before = rpg["xp"]
    level_before = rpg["level"]
    rpg["xp"] = max(0, xp_before + delta)
    rpg["level"] = level_from_xp(rpg["xp"], config)
    rpg["last_xp_award_at"] = at

    progress = level_progress(rpg["level"], rpg["xp"], config)
    event = {
        "amount": delta,
        "reason": reason_value,
        "message": describe_xp_event(reason_value, delta),
        "metadata": dict(metadata or {}),
        "at": at,
        "level_before": level_before,
        "level_after": rpg["level"],
        "xp_before": xp_before,
        "xp_after": rpg["xp"],
        "xp_into_level": progress["xp_into_level"],
        "xp_for_level": progress["xp_for_level"],
        "xp_to_next": progress["xp_to_next"],
        "leveled_up": rpg["level"] > level_before,
    }

    rpg["xp_log"].insert(0, event)
    del rpg["xp_log"][config.xp_log_limit:]

    return event
