"""
TaskService - Quest Board Business Logic

Handles quest and side-quest CRUD, ordering and status transitions. A status
transition into 'done' runs the completion reward; the player record is only
read and written when a reward can fire.
"""

import logging
import math
import random
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional

from src.db import queries
from src.db.connection import JsonDataStore
from src.exceptions import RecordNotFoundError, ValidationError
from src.gamification import (
    award_subtask_completion,
    award_task_completion,
    build_public_rpg_state,
    clamp_task_level,
    ensure_rpg,
    get_award_state,
    qualifies_for_reward,
    summarize_task_reward,
    to_public_xp_event,
)
from src.gamification.level_curve import is_finite_number
from src.models.task import (
    CreateSubtaskRequest,
    CreateTaskRequest,
    TaskPriority,
    TaskStatus,
    UpdateSubtaskRequest,
    UpdateTaskRequest,
)
from src.utils.datetime_helpers import to_iso_timestamp, utc_now

logger = logging.getLogger(__name__)

UNASSIGNED_CAMPAIGN_FILTERS = ("null", "none")
DEFAULT_SEED_COUNT = 5
MAX_SEED_COUNT = 10


class TaskService:
    """
    Service for a player's quest board.

    Responsibilities:
    - Quest and side-quest CRUD scoped to an owner
    - Status history and completion flags
    - Completion rewards (at most once per quest/side-quest)
    - Manual ordering
    - Campaign assignment and filtering
    - Debug clearing and demo seeding
    """

    def __init__(self, store: JsonDataStore, clock: Callable[[], datetime] = utc_now):
        """
        Initialize TaskService.

        Args:
            store: JSON data store holding the users, tasks and campaigns documents
            clock: Source of the current instant
        """
        self.store = store
        self.clock = clock
        logger.debug("TaskService initialized")

    # ==========================================
    # Lookups
    # ==========================================

    async def _load_task(self, user_id: int, task_id: int) -> tuple:
        tasks_data = await queries.read_tasks(self.store)
        task = queries.find_task(tasks_data, task_id, owner_id=user_id)
        if task is None:
            raise RecordNotFoundError(
                f"Task {task_id} not found",
                record_type="Task",
                record_id=task_id,
                user_id=user_id
            )
        return tasks_data, task

    @staticmethod
    def _get_subtask(task: Dict[str, Any], subtask_id: int, user_id: int) -> Dict[str, Any]:
        subtask = queries.find_subtask(task, subtask_id)
        if subtask is None:
            raise RecordNotFoundError(
                f"Subtask {subtask_id} not found on task {task['id']}",
                record_type="Subtask",
                record_id=subtask_id,
                user_id=user_id
            )
        return subtask

    async def _load_player(self, user_id: int) -> tuple:
        users_data = await queries.read_users(self.store)
        _, user = queries.find_user(users_data, user_id)
        if user is None:
            raise RecordNotFoundError(
                f"User {user_id} not found",
                record_type="User",
                record_id=user_id,
                user_id=user_id
            )
        ensure_rpg(user)
        return users_data, user

    async def _require_campaign(self, user_id: int, campaign_id: int) -> int:
        """Id of one of the player's active campaigns"""
        campaigns_data = await queries.read_campaigns(self.store)
        campaign = queries.find_campaign(campaigns_data, campaign_id, owner_id=user_id)
        if campaign is None or campaign["archived"]:
            raise RecordNotFoundError(
                f"Campaign {campaign_id} not found",
                record_type="Campaign",
                record_id=campaign_id,
                user_id=user_id
            )
        return campaign_id

    @staticmethod
    def _parse_campaign_filter(raw: Any) -> Optional[int]:
        """
        Campaign id from a list filter; None selects unassigned quests.

        Raises:
            ValidationError: Neither a positive integer nor 'null'/'none'
        """
        if isinstance(raw, str) and raw.strip().lower() in UNASSIGNED_CAMPAIGN_FILTERS:
            return None
        try:
            campaign_id = int(str(raw).strip())
        except ValueError:
            campaign_id = 0
        if campaign_id <= 0:
            raise ValidationError(
                "Invalid campaign filter",
                field="campaign_id",
                value=raw,
                operation="list_tasks"
            )
        return campaign_id

    @staticmethod
    def _task_response(task: Dict[str, Any], events: List[Dict[str, Any]], player: Optional[Dict[str, Any]]):
        """Serialized task; reward fields only when something fired"""
        response = queries.serialize_task(task)
        if events and player is not None:
            response["xp_events"] = [to_public_xp_event(event) for event in events]
            response["player_rpg"] = build_public_rpg_state(player["rpg"])
        return response

    # ==========================================
    # Quests
    # ==========================================

    async def list_tasks(self, user_id: int, campaign_id: Optional[Any] = None) -> Dict[str, Any]:
        """
        List a player's quests in stored order.

        Args:
            user_id: Owner
            campaign_id: Optional filter; a campaign id, or 'null'/'none'
                for quests outside any campaign

        Returns:
            {'tasks': list[dict], 'nextId': int}
        """
        tasks_data = await queries.read_tasks(self.store)
        user_tasks = [task for task in tasks_data["tasks"] if task["owner_id"] == user_id]
        if campaign_id is not None:
            wanted = self._parse_campaign_filter(campaign_id)
            user_tasks = [task for task in user_tasks if task["campaign_id"] == wanted]
        return {"tasks": queries.serialize_task_list(user_tasks), "nextId": tasks_data["nextId"]}

    async def create_task(self, user_id: int, request: CreateTaskRequest) -> Dict[str, Any]:
        """
        Create a quest in 'todo' with fresh reward state.

        Raises:
            RecordNotFoundError: campaign_id is not one of the player's active campaigns
        """
        campaign_id = None
        if request.campaign_id is not None:
            campaign_id = await self._require_campaign(user_id, request.campaign_id)

        tasks_data = await queries.read_tasks(self.store)
        now = self.clock()
        timestamp = to_iso_timestamp(now)
        due_date = request.due_date.strip() if request.due_date and request.due_date.strip() else timestamp[:10]

        task = {
            "id": tasks_data["nextId"],
            "description": request.description.strip(),
            "priority": request.priority or TaskPriority.MEDIUM.value,
            "sub_tasks": [],
            "nextSubtaskId": 1,
            "due_date": due_date,
            "status": TaskStatus.TODO.value,
            "completed": False,
            "order": len(tasks_data["tasks"]),
            "created_at": timestamp,
            "updated_at": timestamp,
            "status_history": [{"status": TaskStatus.TODO.value, "at": timestamp, "note": None}],
            "owner_id": user_id,
            "task_level": clamp_task_level(request.task_level if request.task_level is not None else 1),
            "rpg": {"xp_awarded": False, "last_reward_at": None, "history": []},
            "campaign_id": campaign_id,
        }
        tasks_data["tasks"].append(task)
        tasks_data["nextId"] += 1
        await queries.write_tasks(tasks_data, self.store)

        logger.info(f"User {user_id} created task {task['id']}")
        return queries.serialize_task(task)

    async def update_task(self, user_id: int, task_id: int, request: UpdateTaskRequest) -> Dict[str, Any]:
        """
        Update quest fields present in the request.

        An explicit null due_date resets it to today; an explicit null
        campaign_id detaches the quest from its campaign.
        """
        tasks_data, task = await self._load_task(user_id, task_id)
        fields = request.model_fields_set

        if "campaign_id" in fields:
            task["campaign_id"] = None if request.campaign_id is None \
                else await self._require_campaign(user_id, request.campaign_id)

        if "description" in fields and request.description is not None:
            task["description"] = request.description.strip()
        if "priority" in fields and request.priority is not None:
            task["priority"] = request.priority
        if "due_date" in fields:
            task["due_date"] = request.due_date or to_iso_timestamp(self.clock())[:10]
        if "task_level" in fields and request.task_level is not None:
            task["task_level"] = clamp_task_level(request.task_level)

        task["updated_at"] = to_iso_timestamp(self.clock())
        await queries.write_tasks(tasks_data, self.store)
        return queries.serialize_task(task)

    async def update_task_status(
        self,
        user_id: int,
        task_id: int,
        status: str,
        note: Optional[str] = None
    ) -> Dict[str, Any]:
        """
        Move a quest to a new status.

        Returns:
            Serialized task, plus 'xp_events' and 'player_rpg' when the
            completion reward fired on this call
        """
        tasks_data, task = await self._load_task(user_id, task_id)
        will_complete = qualifies_for_reward(task["status"], status, get_award_state(task))

        users_data = player = None
        if will_complete:
            users_data, player = await self._load_player(user_id)

        now = self.clock()
        timestamp = to_iso_timestamp(now)
        task["status"] = status
        task["completed"] = status == TaskStatus.DONE.value
        task["updated_at"] = timestamp
        task["status_history"].append({"status": status, "at": timestamp, "note": note or None})

        events = []
        if will_complete:
            event = award_task_completion(task, player, now=now)
            if event:
                events.append(event)

        await queries.write_tasks(tasks_data, self.store)
        if events:
            await queries.write_users(users_data, self.store)
            logger.info(f"User {user_id} completed task {task_id} (+{events[0]['amount']} XP)")

        return self._task_response(task, events, player)

    async def get_task_history(self, user_id: int, task_id: int) -> Dict[str, Any]:
        """Status history of a quest: {'history': list}"""
        _, task = await self._load_task(user_id, task_id)
        return {"history": list(task["status_history"])}

    async def get_task_reward(self, user_id: int, task_id: int) -> Dict[str, Any]:
        """
        Completion reward preview for a quest.

        Returns:
            {'amount', 'level', 'multiplier', 'base', 'status', 'award_state'}
        """
        _, task = await self._load_task(user_id, task_id)
        return {**summarize_task_reward(task), "award_state": get_award_state(task).value}

    async def delete_task(self, user_id: int, task_id: int) -> None:
        tasks_data, task = await self._load_task(user_id, task_id)
        tasks_data["tasks"].remove(task)
        await queries.write_tasks(tasks_data, self.store)
        logger.info(f"User {user_id} deleted task {task_id}")

    async def update_task_order(self, user_id: int, order: List[int]) -> Dict[str, Any]:
        """
        Reorder a player's quests.

        Listed ids take their list position; the player's unlisted quests are
        pushed behind them. Unknown ids are ignored.

        Returns:
            {'tasks': list[dict]} sorted by order
        """
        tasks_data = await queries.read_tasks(self.store)
        owned = {task["id"]: task for task in tasks_data["tasks"] if task["owner_id"] == user_id}

        updated = False
        for index, task_id in enumerate(order):
            task = owned.get(task_id)
            if task is not None:
                task["order"] = index
                updated = True

        if updated:
            listed = set(order)
            for task in owned.values():
                if task["id"] not in listed:
                    task["order"] = len(order) + task["id"]

        await queries.write_tasks(tasks_data, self.store)
        ordered = sorted(owned.values(), key=lambda task: task["order"])
        return {"tasks": queries.serialize_task_list(ordered)}

    # ==========================================
    # Side-quests
    # ==========================================

    async def create_subtask(self, user_id: int, task_id: int, request: CreateSubtaskRequest) -> Dict[str, Any]:
        """Add a side-quest to a quest; returns the serialized parent quest"""
        tasks_data, task = await self._load_task(user_id, task_id)
        timestamp = to_iso_timestamp(self.clock())

        subtask = {
            "id": task["nextSubtaskId"],
            "description": request.description.strip(),
            "status": TaskStatus.TODO.value,
            "created_at": timestamp,
            "updated_at": timestamp,
            "status_history": [{"status": TaskStatus.TODO.value, "at": timestamp, "note": None}],
            "completed": False,
            "rpg": {"xp_awarded": False, "last_reward_at": None},
        }
        if request.priority is not None:
            subtask["priority"] = request.priority
        if request.weight is not None:
            subtask["weight"] = request.weight

        task["sub_tasks"].append(subtask)
        task["nextSubtaskId"] += 1
        task["updated_at"] = timestamp
        await queries.write_tasks(tasks_data, self.store)

        logger.info(f"User {user_id} added subtask {subtask['id']} to task {task_id}")
        return queries.serialize_task(task)

    async def update_subtask(
        self,
        user_id: int,
        task_id: int,
        subtask_id: int,
        request: UpdateSubtaskRequest
    ) -> Dict[str, Any]:
        """Update side-quest fields present in the request"""
        tasks_data, task = await self._load_task(user_id, task_id)
        subtask = self._get_subtask(task, subtask_id, user_id)
        fields = request.model_fields_set

        if "description" in fields and request.description is not None:
            subtask["description"] = request.description.strip()
        if "priority" in fields and request.priority is not None:
            subtask["priority"] = request.priority
        if "weight" in fields and request.weight is not None:
            subtask["weight"] = request.weight

        subtask["updated_at"] = to_iso_timestamp(self.clock())
        await queries.write_tasks(tasks_data, self.store)
        return queries.serialize_task(task)

    async def update_subtask_status(
        self,
        user_id: int,
        task_id: int,
        subtask_id: int,
        status: str,
        note: Optional[str] = None
    ) -> Dict[str, Any]:
        """
        Move a side-quest to a new status.

        Returns:
            Serialized parent quest, plus 'xp_events' and 'player_rpg' when
            the side-quest reward fired on this call
        """
        tasks_data, task = await self._load_task(user_id, task_id)
        subtask = self._get_subtask(task, subtask_id, user_id)
        will_complete = qualifies_for_reward(subtask["status"], status, get_award_state(subtask))

        users_data = player = None
        if will_complete:
            users_data, player = await self._load_player(user_id)

        now = self.clock()
        timestamp = to_iso_timestamp(now)
        subtask["status"] = status
        subtask["completed"] = status == TaskStatus.DONE.value
        subtask["updated_at"] = timestamp
        task["updated_at"] = timestamp
        subtask["status_history"].append({"status": status, "at": timestamp, "note": note or None})

        events = []
        if will_complete:
            event = award_subtask_completion(task, subtask, player, now=now)
            if event:
                events.append(event)

        await queries.write_tasks(tasks_data, self.store)
        if events:
            await queries.write_users(users_data, self.store)
            logger.info(
                f"User {user_id} completed subtask {subtask_id} of task {task_id} "
                f"(+{events[0]['amount']} XP)"
            )

        return self._task_response(task, events, player)

    async def delete_subtask(self, user_id: int, task_id: int, subtask_id: int) -> None:
        tasks_data, task = await self._load_task(user_id, task_id)
        subtask = self._get_subtask(task, subtask_id, user_id)
        task["sub_tasks"].remove(subtask)
        await queries.write_tasks(tasks_data, self.store)
        logger.info(f"User {user_id} deleted subtask {subtask_id} of task {task_id}")

    # ==========================================
    # Debug
    # ==========================================

    async def clear_tasks(self, user_id: int) -> Dict[str, Any]:
        """Remove every quest of a player: {'removed': int}"""
        tasks_data = await queries.read_tasks(self.store)
        before = len(tasks_data["tasks"])
        tasks_data["tasks"] = [task for task in tasks_data["tasks"] if task["owner_id"] != user_id]
        removed = before - len(tasks_data["tasks"])

        await queries.write_tasks(tasks_data, self.store)
        logger.warning(f"Cleared {removed} tasks of user {user_id}")
        return {"removed": removed}

    async def seed_tasks(
        self,
        user_id: int,
        count: Optional[float] = None,
        rng: Optional[random.Random] = None
    ) -> Dict[str, Any]:
        """
        Replace a player's quests with random demo quests.

        Args:
            user_id: Owner
            count: Quests to create, floored and clamped to 1-10 (default 5)
            rng: Random source for the demo content

        Returns:
            {'created': int, 'removedBeforeSeed': int, 'tasks': list[dict]}
        """
        seed_count = DEFAULT_SEED_COUNT
        if is_finite_number(count):
            seed_count = max(1, min(MAX_SEED_COUNT, int(math.floor(count))))

        tasks_data = await queries.read_tasks(self.store)
        kept = [task for task in tasks_data["tasks"] if task["owner_id"] != user_id]
        removed = len(tasks_data["tasks"]) - len(kept)
        order_start = max((task["order"] for task in kept), default=-1) + 1

        demo = queries.build_demo_tasks(
            seed_count,
            tasks_data["nextId"],
            user_id,
            starting_order=order_start,
            now=self.clock(),
            rng=rng
        )
        tasks_data["tasks"] = kept + demo["tasks"]
        tasks_data["nextId"] = demo["nextId"]

        await queries.write_tasks(tasks_data, self.store)
        logger.warning(f"Seeded {seed_count} demo tasks for user {user_id} (removed {removed})")
        return {
            "created": len(demo["tasks"]),
            "removedBeforeSeed": removed,
            "tasks": queries.serialize_task_list(demo["tasks"]),
        }
