"""Campaign record queries

A campaign groups a player's quests; its stats are derived from the quests
pointing at it and are never stored.
"""
import logging
import math
from typing import Any, Dict, List, Optional

from src.db.connection import JsonDataStore, db, next_record_id
from src.gamification.level_curve import is_finite_number
from src.models.task import TaskStatus
from src.utils.datetime_helpers import to_iso_timestamp

logger = logging.getLogger(__name__)

CAMPAIGN_FIELDS = ("id", "name", "description", "image_url", "owner_id", "archived", "created_at", "updated_at")


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def normalize_campaign(raw: Any, default_owner_id: int = 1) -> Optional[Dict[str, Any]]:
    """
    Repair a campaign record read from storage

    Returns:
        Normalized campaign, or None for records without an integer id
    """
    if not isinstance(raw, dict) or not _is_int(raw.get("id")):
        return None

    now = to_iso_timestamp()
    image_url = raw.get("image_url")
    owner_id = raw.get("owner_id")
    return {
        "id": raw["id"],
        "name": raw["name"].strip() if isinstance(raw.get("name"), str) else f"Campaign {raw['id']}",
        "description": raw["description"].strip() if isinstance(raw.get("description"), str) else "",
        "image_url": image_url.strip() if isinstance(image_url, str) and image_url.strip() else None,
        "owner_id": owner_id if is_finite_number(owner_id) else default_owner_id,
        "archived": raw["archived"] if isinstance(raw.get("archived"), bool) else False,
        "created_at": raw["created_at"] if isinstance(raw.get("created_at"), str) else now,
        "updated_at": raw["updated_at"] if isinstance(raw.get("updated_at"), str) else now,
    }


async def read_campaigns(store: JsonDataStore = db) -> Dict[str, Any]:
    """
    Load all campaigns, normalized

    Returns:
        {'campaigns': list[dict], 'nextId': int}
    """
    raw = await store.read_document("campaigns")
    stored = raw.get("campaigns") if isinstance(raw.get("campaigns"), list) else []
    campaigns = [campaign for campaign in (normalize_campaign(item) for item in stored) if campaign]
    return {"campaigns": campaigns, "nextId": next_record_id(campaigns, raw.get("nextId"))}


async def write_campaigns(data: Dict[str, Any], store: JsonDataStore = db) -> None:
    """Persist the campaigns document"""
    await store.write_document("campaigns", data)
    logger.debug(f"Saved {len(data.get('campaigns', []))} campaigns")


def find_campaign(
    campaigns_data: Dict[str, Any],
    campaign_id: int,
    owner_id: Optional[int] = None
) -> Optional[Dict[str, Any]]:
    """Campaign by id, optionally restricted to one owner"""
    for campaign in campaigns_data.get("campaigns", []):
        if campaign.get("id") == campaign_id and (owner_id is None or campaign.get("owner_id") == owner_id):
            return campaign
    return None


def build_campaign_stats(
    campaigns: List[Dict[str, Any]],
    tasks: List[Dict[str, Any]],
    owner_id: int
) -> Dict[int, Dict[str, Any]]:
    """
    Quest progress per campaign, counting only the owner's quests

    Returns:
        {campaign_id: {'stats': {...}, 'progress_summary': 'completed/total'}}
    """
    owner_tasks = [task for task in tasks if task and task.get("owner_id") == owner_id]
    stats_by_id = {}

    for campaign in campaigns:
        related = [task for task in owner_tasks if task.get("campaign_id") == campaign["id"]]
        total = len(related)
        completed = sum(1 for task in related if task.get("status") == TaskStatus.DONE.value)
        in_progress = sum(1 for task in related if task.get("status") == TaskStatus.IN_PROGRESS.value)
        percent = int(math.floor(completed / total * 100 + 0.5)) if total else 0

        stats_by_id[campaign["id"]] = {
            "stats": {
                "quests_total": total,
                "quests_completed": completed,
                "quests_remaining": max(total - completed, 0),
                "quests_in_progress": in_progress,
                "completion_percent": percent,
            },
            "progress_summary": f"{completed}/{total}",
        }

    return stats_by_id


def serialize_campaign(
    campaign: Optional[Dict[str, Any]],
    extras: Optional[Dict[str, Any]] = None
) -> Optional[Dict[str, Any]]:
    """Public view of a campaign merged with its stats"""
    if not campaign:
        return None
    base = {key: campaign.get(key) for key in CAMPAIGN_FIELDS}
    base["archived"] = bool(campaign.get("archived"))
    return {**base, **(extras or {})}


def serialize_campaign_list(
    campaigns: Any,
    stats_by_id: Optional[Dict[int, Dict[str, Any]]] = None
) -> List[Dict[str, Any]]:
    if not isinstance(campaigns, list):
        return []
    stats_by_id = stats_by_id or {}
    return [serialize_campaign(campaign, stats_by_id.get(campaign["id"])) for campaign in campaigns]
