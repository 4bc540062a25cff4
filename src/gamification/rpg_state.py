"""
Player RPG State Normalization

Stored player records are plain JSON and may be partial, stale or hand-edited.
ensure_rpg() repairs them in place to a structurally valid state instead of
failing, and always re-derives the level from XP.

Defaults:
- level 1, xp 0, hp 20, mp 5, coins 0, streak 0
- empty achievements, inventory items and xp_log
- all counters 0, empty flags and metrics
- no daily reward / XP award timestamps
"""

import copy
import math
from typing import Any, Dict, Optional

from src.gamification.level_curve import is_finite_number, level_from_xp
from src.gamification.xp_config import XP_CONFIG, XpConfig

COUNTER_NAMES = ("tasks_completed", "subtasks_completed", "daily_rewards_claimed")

_STAT_DEFAULTS = {"hp": 20, "mp": 5, "coins": 0, "streak": 0}


def _safe_count(value: Any) -> int:
    """Non-negative whole count (fractions floored, garbage and negatives -> 0)"""
    if not is_finite_number(value) or value < 0:
        return 0
    return int(math.floor(value))


def _ensure_counters(counters: Any) -> Dict[str, Any]:
    safe = counters if isinstance(counters, dict) else {}
    for name in COUNTER_NAMES:
        safe[name] = _safe_count(safe.get(name))
    return safe


def ensure_rpg(player: Any, config: XpConfig = XP_CONFIG) -> Optional[Dict[str, Any]]:
    """
    Repair ``player['rpg']`` in place

    Args:
        player: User record (any dict holding an ``rpg`` key)

    Returns:
        The normalized rpg dict (same object stored on the player), or None
        if ``player`` itself is not a dict
    """
    if not isinstance(player, dict):
        return None
    if not isinstance(player.get("rpg"), dict):
        player["rpg"] = {}
    rpg = player["rpg"]

    xp = rpg.get("xp")
    if not is_finite_number(xp) or xp < 0:
        xp = 0
    rpg["xp"] = int(math.floor(xp))

    if not isinstance(rpg.get("xp_log"), list):
        rpg["xp_log"] = []

    inventory = rpg.get("inventory")
    if not isinstance(inventory, dict):
        rpg["inventory"] = {"items": []}
    elif not isinstance(inventory.get("items"), list):
        inventory["items"] = []

    if not isinstance(rpg.get("achievements"), list):
        rpg["achievements"] = []

    for stat, default in _STAT_DEFAULTS.items():
        if not is_finite_number(rpg.get(stat)):
            rpg[stat] = default

    rpg["counters"] = _ensure_counters(rpg.get("counters"))

    if not isinstance(rpg.get("flags"), dict):
        rpg["flags"] = {}
    if not isinstance(rpg.get("metrics"), dict):
        rpg["metrics"] = {}

    for stamp in ("last_daily_reward_at", "last_xp_award_at"):
        if not isinstance(rpg.get(stamp), str):
            rpg[stamp] = None

    # Stored level is never trusted
    rpg["level"] = level_from_xp(rpg["xp"], config)

    return rpg


def create_initial_rpg_state(
    overrides: Optional[Dict[str, Any]] = None,
    config: XpConfig = XP_CONFIG
) -> Dict[str, Any]:
    """
    Build a fresh player state

    Overrides are merged over the defaults and then normalized, so they cannot
    produce an inconsistent level or malformed collections.
    """
    base: Dict[str, Any] = {
        "level": 1,
        "xp": 0,
        "hp": 20,
        "mp": 5,
        "coins": 0,
        "streak": 0,
        "achievements": [],
        "inventory": {"items": []},
        "xp_log": [],
        "last_daily_reward_at": None,
        "last_xp_award_at": None,
        "counters": {name: 0 for name in COUNTER_NAMES},
        "flags": {},
        "metrics": {},
    }
    if overrides:
        base.update(copy.deepcopy(overrides))
    container = {"rpg": base}
    return ensure_rpg(container, config)


def increment_counter(rpg: Any, counter: str) -> None:
    """Add one to ``rpg['counters'][counter]``, repairing the map if needed"""
    if not isinstance(rpg, dict):
        return
    counters = rpg.get("counters")
    if not isinstance(counters, dict):
        counters = {name: 0 for name in COUNTER_NAMES}
        rpg["counters"] = counters
    counters[counter] = _safe_count(counters.get(counter)) + 1
