"""Player RPG state models for gamification"""
from enum import Enum
from typing import Any, Optional, Union
from pydantic import BaseModel, Field


class XpEventReason(str, Enum):
    """Why an XP delta was applied"""
    TASK_COMPLETE = "task_complete"
    SUBTASK_COMPLETE = "subtask_complete"
    DAILY_FOCUS = "daily_focus"
    DEBUG_ADJUSTMENT = "debug_adjustment"
    XP_GAIN = "xp_gain"
    LEGACY = "legacy"


class RpgCounters(BaseModel):
    """Lifetime completion counters"""
    tasks_completed: int = 0
    subtasks_completed: int = 0
    daily_rewards_claimed: int = 0

    model_config = {"extra": "allow"}


class RpgStats(BaseModel):
    hp: Union[int, float] = 20
    mp: Union[int, float] = 5
    coins: Union[int, float] = 0


class RpgInventory(BaseModel):
    items: list[Any] = Field(default_factory=list)


class PublicXpEvent(BaseModel):
    """XP event as exposed to clients (no xp_before)"""
    amount: int
    reason: str
    message: str
    metadata: dict[str, Any] = Field(default_factory=dict)
    at: str
    level_before: int
    level_after: int
    xp_after: int
    xp_into_level: int
    xp_for_level: int
    xp_to_next: int
    leveled_up: bool


class PublicPlayerRpgState(BaseModel):
    """Client-safe snapshot of a player's RPG state"""
    level: int
    xp: int
    xp_into_level: int
    xp_for_level: int
    xp_to_next: int
    xp_progress: float
    streak: Union[int, float]
    last_daily_reward_at: Optional[str] = None
    last_xp_award_at: Optional[str] = None
    counters: RpgCounters
    stats: RpgStats
    achievements: list[Any] = Field(default_factory=list)
    inventory: RpgInventory
    # Full stored events, newest first
    recent_events: list[dict[str, Any]] = Field(default_factory=list)


class PlayerRpgResponse(BaseModel):
    player_rpg: PublicPlayerRpgState


class XpEventResponse(BaseModel):
    """Result of a daily claim or XP adjustment"""
    xp_event: PublicXpEvent
    player_rpg: PublicPlayerRpgState
