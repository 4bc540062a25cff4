"""
CampaignService - Campaign Business Logic

Handles campaign CRUD for a player. Every campaign response carries quest
progress stats computed from the player's current quests.
"""

import logging
from datetime import datetime
from typing import Any, Callable, Dict, List

from src.db import queries
from src.db.connection import JsonDataStore
from src.exceptions import RecordNotFoundError, ValidationError
from src.models.campaign import CreateCampaignRequest, UpdateCampaignRequest
from src.utils.datetime_helpers import to_iso_timestamp, utc_now

logger = logging.getLogger(__name__)


class CampaignService:
    """
    Service for a player's campaigns.

    Responsibilities:
    - Campaign CRUD scoped to an owner
    - Archiving
    - Per-campaign quest stats
    - Detaching quests when a campaign is deleted
    """

    def __init__(self, store: JsonDataStore, clock: Callable[[], datetime] = utc_now):
        self.store = store
        self.clock = clock
        logger.debug("CampaignService initialized")

    async def _load_campaign(self, user_id: int, campaign_id: int) -> tuple:
        campaigns_data = await queries.read_campaigns(self.store)
        campaign = queries.find_campaign(campaigns_data, campaign_id, owner_id=user_id)
        if campaign is None:
            raise RecordNotFoundError(
                f"Campaign {campaign_id} not found",
                record_type="Campaign",
                record_id=campaign_id,
                user_id=user_id
            )
        return campaigns_data, campaign

    async def _with_stats(self, user_id: int, campaign: Dict[str, Any]) -> Dict[str, Any]:
        tasks_data = await queries.read_tasks(self.store)
        stats = queries.build_campaign_stats([campaign], tasks_data["tasks"], user_id)
        return queries.serialize_campaign(campaign, stats.get(campaign["id"]))

    async def list_campaigns(self, user_id: int, include_archived: bool = False) -> Dict[str, List[Dict[str, Any]]]:
        """
        List a player's campaigns with stats.

        Returns:
            {'campaigns': list[dict]}
        """
        campaigns_data = await queries.read_campaigns(self.store)
        campaigns = [
            campaign for campaign in campaigns_data["campaigns"]
            if campaign["owner_id"] == user_id and (include_archived or not campaign["archived"])
        ]

        tasks_data = await queries.read_tasks(self.store)
        stats = queries.build_campaign_stats(campaigns, tasks_data["tasks"], user_id)
        return {"campaigns": queries.serialize_campaign_list(campaigns, stats)}

    async def create_campaign(self, user_id: int, request: CreateCampaignRequest) -> Dict[str, Any]:
        """
        Create an active campaign.

        Raises:
            ValidationError: Blank name
        """
        name = (request.name or "").strip()
        if not name:
            raise ValidationError("Missing or invalid name", field="name", operation="create_campaign")

        campaigns_data = await queries.read_campaigns(self.store)
        timestamp = to_iso_timestamp(self.clock())
        image_url = (request.image_url or "").strip()

        campaign = {
            "id": campaigns_data["nextId"],
            "name": name,
            "description": (request.description or "").strip(),
            "image_url": image_url or None,
            "owner_id": user_id,
            "archived": False,
            "created_at": timestamp,
            "updated_at": timestamp,
        }
        campaigns_data["campaigns"].append(campaign)
        campaigns_data["nextId"] += 1
        await queries.write_campaigns(campaigns_data, self.store)

        logger.info(f"User {user_id} created campaign {campaign['id']}")
        return await self._with_stats(user_id, campaign)

    async def get_campaign(self, user_id: int, campaign_id: int) -> Dict[str, Any]:
        """Campaign with stats and its quests: {'campaign', 'quests'}"""
        _, campaign = await self._load_campaign(user_id, campaign_id)

        tasks_data = await queries.read_tasks(self.store)
        quests = [
            task for task in tasks_data["tasks"]
            if task["owner_id"] == user_id and task["campaign_id"] == campaign_id
        ]
        stats = queries.build_campaign_stats([campaign], tasks_data["tasks"], user_id)
        return {
            "campaign": queries.serialize_campaign(campaign, stats.get(campaign_id)),
            "quests": queries.serialize_task_list(quests),
        }

    async def update_campaign(
        self,
        user_id: int,
        campaign_id: int,
        request: UpdateCampaignRequest
    ) -> Dict[str, Any]:
        """
        Update campaign fields present in the request.

        A blank image_url clears it.

        Raises:
            ValidationError: Blank name, or null description/archived
            RecordNotFoundError: Unknown campaign
        """
        campaigns_data, campaign = await self._load_campaign(user_id, campaign_id)
        fields = request.model_fields_set

        if "name" in fields:
            if request.name is None or not request.name.strip():
                raise ValidationError("Invalid name", field="name", operation="update_campaign")
            campaign["name"] = request.name.strip()
        if "description" in fields:
            if request.description is None:
                raise ValidationError("Invalid description", field="description", operation="update_campaign")
            campaign["description"] = request.description.strip()
        if "image_url" in fields:
            campaign["image_url"] = (request.image_url or "").strip() or None
        if "archived" in fields:
            if request.archived is None:
                raise ValidationError("Invalid archived flag", field="archived", operation="update_campaign")
            campaign["archived"] = request.archived

        campaign["updated_at"] = to_iso_timestamp(self.clock())
        await queries.write_campaigns(campaigns_data, self.store)
        return await self._with_stats(user_id, campaign)

    async def delete_campaign(self, user_id: int, campaign_id: int) -> None:
        """Delete a campaign; the player's quests in it become unassigned"""
        campaigns_data, campaign = await self._load_campaign(user_id, campaign_id)
        campaigns_data["campaigns"].remove(campaign)
        await queries.write_campaigns(campaigns_data, self.store)

        tasks_data = await queries.read_tasks(self.store)
        detached = 0
        for task in tasks_data["tasks"]:
            if task["owner_id"] == user_id and task["campaign_id"] == campaign_id:
                task["campaign_id"] = None
                detached += 1
        if detached:
            await queries.write_tasks(tasks_data, self.store)

        logger.info(f"User {user_id} deleted campaign {campaign_id} ({detached} quests detached)")
