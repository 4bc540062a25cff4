"""
RpgService - Player Progression Business Logic

Handles the daily focus claim and the debug XP adjustment/reset actions.
Each call follows read -> normalize -> compute -> mutate -> persist on the
users document.
"""

import logging
from datetime import datetime
from typing import Any, Callable, Dict

from src.db import queries
from src.db.connection import JsonDataStore
from src.exceptions import InvalidAmountError, RecordNotFoundError
from src.gamification import (
    apply_xp,
    build_public_rpg_state,
    claim_daily_reward,
    create_initial_rpg_state,
    to_public_xp_event,
)
from src.gamification.level_curve import is_finite_number
from src.models.rpg import XpEventReason
from src.utils.datetime_helpers import utc_now

logger = logging.getLogger(__name__)


class RpgService:
    """
    Service for player progression.

    Responsibilities:
    - Once-per-UTC-day focus bonus
    - Manual XP adjustments (debug/admin)
    - Resetting a player's RPG state
    """

    def __init__(self, store: JsonDataStore, clock: Callable[[], datetime] = utc_now):
        """
        Initialize RpgService.

        Args:
            store: JSON data store holding users.json
            clock: Source of the current instant
        """
        self.store = store
        self.clock = clock
        logger.debug("RpgService initialized")

    async def _load_user(self, user_id: int) -> tuple:
        users_data = await queries.read_users(self.store)
        _, user = queries.find_user(users_data, user_id)
        if user is None:
            raise RecordNotFoundError(
                f"User {user_id} not found",
                record_type="User",
                record_id=user_id,
                user_id=user_id
            )
        return users_data, user

    async def claim_daily_reward(self, user_id: int) -> Dict[str, Any]:
        """
        Claim today's daily focus bonus.

        Returns:
            {
                'xp_event': dict,   # public XP event
                'player_rpg': dict  # public RPG snapshot
            }

        Raises:
            DuplicateClaimError: Already claimed on the current UTC day
            RecordNotFoundError: Unknown user
        """
        users_data, user = await self._load_user(user_id)
        event = claim_daily_reward(user, now=self.clock())
        await queries.write_users(users_data, self.store)

        logger.info(f"User {user_id} claimed daily reward (+{event['amount']} XP)")
        return {
            "xp_event": to_public_xp_event(event),
            "player_rpg": build_public_rpg_state(user["rpg"]),
        }

    async def grant_xp(self, user_id: int, amount: Any) -> Dict[str, Any]:
        """
        Apply a signed manual XP adjustment.

        Args:
            user_id: Player id
            amount: Non-zero finite XP delta (fractions are floored)

        Returns:
            {'xp_event': dict, 'player_rpg': dict}

        Raises:
            InvalidAmountError: Zero or non-finite amount
        """
        if not is_finite_number(amount) or amount == 0:
            raise InvalidAmountError(value=amount, user_id=user_id, operation="grant_xp")

        users_data, user = await self._load_user(user_id)
        event = apply_xp(
            user,
            amount,
            XpEventReason.DEBUG_ADJUSTMENT,
            {"amount": amount},
            now=self.clock()
        )
        if not event:
            # 0 < amount < 1 floors to zero
            raise InvalidAmountError("No XP applied", value=amount, user_id=user_id, operation="grant_xp")

        await queries.write_users(users_data, self.store)
        logger.info(f"Granted {event['amount']} XP to user {user_id}")
        return {
            "xp_event": to_public_xp_event(event),
            "player_rpg": build_public_rpg_state(user["rpg"]),
        }

    async def reset_rpg(self, user_id: int) -> Dict[str, Any]:
        """
        Replace a player's RPG state with the initial state.

        Returns:
            {'player_rpg': dict}
        """
        users_data, user = await self._load_user(user_id)
        user["rpg"] = create_initial_rpg_state()
        await queries.write_users(users_data, self.store)

        logger.info(f"Reset RPG state for user {user_id}")
        return {"player_rpg": build_public_rpg_state(user["rpg"])}
