"""User record queries"""
import logging
from typing import Any, Dict, Optional, Tuple

from src.db.connection import JsonDataStore, db, next_record_id
from src.gamification import build_public_rpg_state, ensure_rpg

logger = logging.getLogger(__name__)


async def read_users(store: JsonDataStore = db) -> Dict[str, Any]:
    """
    Load all users with their RPG state normalized

    Returns:
        {'users': list[dict], 'nextId': int}
    """
    raw = await store.read_document("users")
    users = [user for user in raw.get("users", []) if isinstance(user, dict)] \
        if isinstance(raw.get("users"), list) else []

    for user in users:
        ensure_rpg(user)

    return {"users": users, "nextId": next_record_id(users, raw.get("nextId"))}


async def write_users(data: Dict[str, Any], store: JsonDataStore = db) -> None:
    """Persist the users document"""
    await store.write_document("users", data)
    logger.debug(f"Saved {len(data.get('users', []))} users")


def find_user(users_data: Dict[str, Any], user_id: int) -> Tuple[int, Optional[Dict[str, Any]]]:
    """Index and record of a user (-1, None when missing)"""
    for index, user in enumerate(users_data.get("users", [])):
        if user.get("id") == user_id:
            return index, user
    return -1, None


def find_user_by_username(users_data: Dict[str, Any], username: str) -> Optional[Dict[str, Any]]:
    """Case-insensitive username lookup"""
    normalized = username.strip().lower()
    for user in users_data.get("users", []):
        name = user.get("username")
        if isinstance(name, str) and name.lower() == normalized:
            return user
    return None


def sanitize_user(user: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    """Public view of a user: credentials stripped, RPG state projected"""
    if not user:
        return None
    public = {key: value for key, value in user.items() if key not in ("password_hash", "rpg")}
    public["rpg"] = build_public_rpg_state(user.get("rpg"))
    return public
