"""
UserService - Player Management Business Logic

Handles player creation, profile updates and the public view of a player's
RPG state. Every player starts with a fresh initial RPG record.
"""

import logging
import random
from typing import Optional, Dict, Any

from src.db import queries
from src.db.connection import JsonDataStore
from src.exceptions import RecordNotFoundError, ValidationError
from src.gamification import build_public_rpg_state, create_initial_rpg_state
from src.models.user import UserProfile
from src.utils.datetime_helpers import to_iso_timestamp

logger = logging.getLogger(__name__)

PROFILE_FIELDS = ("display_name", "avatar", "class", "bio", "prefs")


class UserService:
    """
    Service for player records.

    Responsibilities:
    - Player creation with default profile and initial RPG state
    - Profile updates
    - Username availability checks
    - Public user / RPG projections
    """

    def __init__(self, store: JsonDataStore):
        """
        Initialize UserService.

        Args:
            store: JSON data store holding users.json
        """
        self.store = store

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

    async def create_user(
        self,
        username: str,
        profile: Optional[UserProfile] = None,
        email: Optional[str] = None
    ) -> Dict[str, Any]:
        """
        Create a new player.

        Args:
            username: Unique (case-insensitive) username
            profile: Optional initial profile values
            email: Optional contact email

        Returns:
            Public user dict with projected 'rpg'

        Raises:
            ValidationError: Username empty or already taken
        """
        trimmed = (username or "").strip()
        if not trimmed:
            raise ValidationError("Username is required", field="username", operation="create_user")

        users_data = await queries.read_users(self.store)
        if queries.find_user_by_username(users_data, trimmed):
            raise ValidationError("Username taken", field="username", value=trimmed, operation="create_user")

        now = to_iso_timestamp()
        user_profile = {
            "display_name": trimmed,
            "avatar": None,
            "class": "adventurer",
            "bio": "",
        }
        if profile is not None:
            user_profile.update(self._profile_updates(profile))

        user = {
            "id": users_data["nextId"],
            "username": trimmed,
            "email": email or None,
            "created_at": now,
            "updated_at": now,
            "profile": user_profile,
            "rpg": create_initial_rpg_state(),
        }
        users_data["users"].append(user)
        users_data["nextId"] += 1
        await queries.write_users(users_data, self.store)

        logger.info(f"Created new user {user['id']} ({trimmed})")
        return queries.sanitize_user(user)

    async def get_user(self, user_id: int) -> Dict[str, Any]:
        """
        Get a player by id.

        Raises:
            RecordNotFoundError: Unknown user
        """
        _, user = await self._load_user(user_id)
        return queries.sanitize_user(user)

    @staticmethod
    def _profile_updates(profile: UserProfile) -> Dict[str, Any]:
        updates = profile.model_dump(by_alias=True, exclude_unset=True)
        return {
            key: value
            for key, value in updates.items()
            if key in PROFILE_FIELDS and (value is not None or key == "avatar")
        }

    async def update_profile(self, user_id: int, profile: UserProfile) -> Dict[str, Any]:
        """
        Merge profile fields into a player's profile.

        Only fields present in the request are changed.

        Returns:
            Public user dict
        """
        users_data, user = await self._load_user(user_id)

        current = user.get("profile") if isinstance(user.get("profile"), dict) else {}
        current.update(self._profile_updates(profile))
        user["profile"] = current
        user["updated_at"] = to_iso_timestamp()

        await queries.write_users(users_data, self.store)
        logger.info(f"Updated profile for user {user_id}")
        return queries.sanitize_user(user)

    async def get_player_rpg(self, user_id: int) -> Dict[str, Any]:
        """
        Public RPG snapshot for a player.

        Returns:
            dict: {
                'level', 'xp', 'xp_into_level', 'xp_for_level', 'xp_to_next',
                'xp_progress', 'streak', 'last_daily_reward_at',
                'last_xp_award_at', 'counters', 'stats', 'achievements',
                'inventory', 'recent_events'
            }
        """
        _, user = await self._load_user(user_id)
        return build_public_rpg_state(user.get("rpg"))

    async def check_username(self, username: str, rng: Optional[random.Random] = None) -> Dict[str, Any]:
        """
        Check whether a username is free (case-insensitive).

        Returns:
            {'available': True}, or {'available': False, 'suggestions': [str, str]}

        Raises:
            ValidationError: Blank username
        """
        trimmed = (username or "").strip()
        if not trimmed:
            raise ValidationError("Invalid username", field="username", operation="check_username")

        users_data = await queries.read_users(self.store)
        if queries.find_user_by_username(users_data, trimmed) is None:
            return {"available": True}

        rng = rng or random.Random()
        return {
            "available": False,
            "suggestions": [f"{trimmed}{rng.randint(0, 99)}", f"{trimmed}_{rng.randint(0, 9)}"],
        }
