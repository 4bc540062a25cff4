"""API routes for the quest tracker"""
import logging
from datetime import datetime, timezone
from typing import Optional
from fastapi import APIRouter, Depends, Request, Response, status

from src.api.middleware import limiter, READ_RATE_LIMIT, WRITE_RATE_LIMIT
from src.models.campaign import CreateCampaignRequest, SeedTasksRequest, UpdateCampaignRequest
from src.models.rpg import PlayerRpgResponse, XpEventResponse
from src.models.task import (
    CreateSubtaskRequest,
    CreateTaskRequest,
    UpdateOrderRequest,
    UpdateStatusRequest,
    UpdateSubtaskRequest,
    UpdateTaskRequest,
)
from src.models.user import CreateUserRequest, GrantXpRequest, UserProfile
from src.services.container import ServiceContainer

logger = logging.getLogger(__name__)

router = APIRouter()
debug_router = APIRouter()

USER_PREFIX = "/api/v1/users/{user_id}"


def get_services(request: Request) -> ServiceContainer:
    """Service container attached to the running application"""
    return request.app.state.container


@router.get("/api/health")
@limiter.limit(READ_RATE_LIMIT)
async def health_check(request: Request, services: ServiceContainer = Depends(get_services)):
    """Health check endpoint"""
    users_file = services.store.path_for("users")
    tasks_file = services.store.path_for("tasks")
    campaigns_file = services.store.path_for("campaigns")
    return {
        "status": "healthy",
        "storage": {
            "users_file": str(users_file),
            "tasks_file": str(tasks_file),
            "users_file_exists": users_file.exists(),
            "tasks_file_exists": tasks_file.exists(),
            "campaigns_file": str(campaigns_file),
            "campaigns_file_exists": campaigns_file.exists(),
        },
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


# ==========================================
# Users
# ==========================================

@router.post("/api/v1/users", status_code=status.HTTP_201_CREATED)
@limiter.limit(WRITE_RATE_LIMIT)
async def create_user_endpoint(
    request: Request,
    body: CreateUserRequest,
    services: ServiceContainer = Depends(get_services)
):
    """Create a new player with a fresh RPG state"""
    user = await services.user_service.create_user(body.username, body.profile, email=body.email)
    return {"user": user}


@router.get("/api/v1/users/check-username/{username}")
@limiter.limit(READ_RATE_LIMIT)
async def check_username_endpoint(
    request: Request,
    username: str,
    services: ServiceContainer = Depends(get_services)
):
    """Username availability, with suggestions when taken"""
    return await services.user_service.check_username(username)


@router.get(USER_PREFIX)
@limiter.limit(READ_RATE_LIMIT)
async def get_user_endpoint(request: Request, user_id: int, services: ServiceContainer = Depends(get_services)):
    """Get a player with their public RPG snapshot"""
    return {"user": await services.user_service.get_user(user_id)}


@router.patch(USER_PREFIX + "/profile")
@limiter.limit(WRITE_RATE_LIMIT)
async def update_profile_endpoint(
    request: Request,
    user_id: int,
    body: UserProfile,
    services: ServiceContainer = Depends(get_services)
):
    """Update profile fields present in the body"""
    return {"user": await services.user_service.update_profile(user_id, body)}


# ==========================================
# RPG
# ==========================================

@router.get(USER_PREFIX + "/rpg", response_model=PlayerRpgResponse)
@limiter.limit(READ_RATE_LIMIT)
async def get_rpg_endpoint(request: Request, user_id: int, services: ServiceContainer = Depends(get_services)):
    """Public RPG snapshot"""
    return {"player_rpg": await services.user_service.get_player_rpg(user_id)}


@router.post(USER_PREFIX + "/rpg/daily-reward", response_model=XpEventResponse)
@limiter.limit(WRITE_RATE_LIMIT)
async def claim_daily_reward_endpoint(
    request: Request,
    user_id: int,
    services: ServiceContainer = Depends(get_services)
):
    """Claim the daily focus bonus (409 when already claimed today)"""
    return await services.rpg_service.claim_daily_reward(user_id)


@debug_router.post(USER_PREFIX + "/rpg/debug/grant-xp", response_model=XpEventResponse)
@limiter.limit(WRITE_RATE_LIMIT)
async def grant_xp_endpoint(
    request: Request,
    user_id: int,
    body: GrantXpRequest,
    services: ServiceContainer = Depends(get_services)
):
    """Apply a signed XP adjustment"""
    return await services.rpg_service.grant_xp(user_id, body.amount)


@debug_router.post(USER_PREFIX + "/rpg/debug/reset", response_model=PlayerRpgResponse)
@limiter.limit(WRITE_RATE_LIMIT)
async def reset_rpg_endpoint(request: Request, user_id: int, services: ServiceContainer = Depends(get_services)):
    """Reset RPG state to the initial state"""
    return await services.rpg_service.reset_rpg(user_id)


# ==========================================
# Tasks
# ==========================================

@router.get(USER_PREFIX + "/tasks")
@limiter.limit(READ_RATE_LIMIT)
async def list_tasks_endpoint(
    request: Request,
    user_id: int,
    campaign_id: Optional[str] = None,
    services: ServiceContainer = Depends(get_services)
):
    """List quests; campaign_id=<id> or campaign_id=null narrows the list"""
    return await services.task_service.list_tasks(user_id, campaign_id)


@router.post(USER_PREFIX + "/tasks", status_code=status.HTTP_201_CREATED)
@limiter.limit(WRITE_RATE_LIMIT)
async def create_task_endpoint(
    request: Request,
    user_id: int,
    body: CreateTaskRequest,
    services: ServiceContainer = Depends(get_services)
):
    return await services.task_service.create_task(user_id, body)


# Registered before /tasks/{task_id} so "order" is not parsed as an id
@router.put(USER_PREFIX + "/tasks/order")
@limiter.limit(WRITE_RATE_LIMIT)
async def update_task_order_endpoint(
    request: Request,
    user_id: int,
    body: UpdateOrderRequest,
    services: ServiceContainer = Depends(get_services)
):
    """Reorder quests by id list"""
    return await services.task_service.update_task_order(user_id, body.order)


@router.patch(USER_PREFIX + "/tasks/{task_id}")
@limiter.limit(WRITE_RATE_LIMIT)
async def update_task_endpoint(
    request: Request,
    user_id: int,
    task_id: int,
    body: UpdateTaskRequest,
    services: ServiceContainer = Depends(get_services)
):
    return await services.task_service.update_task(user_id, task_id, body)


@router.delete(USER_PREFIX + "/tasks/{task_id}", status_code=status.HTTP_204_NO_CONTENT)
@limiter.limit(WRITE_RATE_LIMIT)
async def delete_task_endpoint(
    request: Request,
    user_id: int,
    task_id: int,
    services: ServiceContainer = Depends(get_services)
):
    await services.task_service.delete_task(user_id, task_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.patch(USER_PREFIX + "/tasks/{task_id}/status")
@limiter.limit(WRITE_RATE_LIMIT)
async def update_task_status_endpoint(
    request: Request,
    user_id: int,
    task_id: int,
    body: UpdateStatusRequest,
    services: ServiceContainer = Depends(get_services)
):
    """
    Change quest status

    Moving a quest into 'done' for the first time adds 'xp_events' and
    'player_rpg' to the response.
    """
    return await services.task_service.update_task_status(user_id, task_id, body.status, body.note)


@router.get(USER_PREFIX + "/tasks/{task_id}/history")
@limiter.limit(READ_RATE_LIMIT)
async def get_task_history_endpoint(
    request: Request,
    user_id: int,
    task_id: int,
    services: ServiceContainer = Depends(get_services)
):
    return await services.task_service.get_task_history(user_id, task_id)


@router.get(USER_PREFIX + "/tasks/{task_id}/reward")
@limiter.limit(READ_RATE_LIMIT)
async def get_task_reward_endpoint(
    request: Request,
    user_id: int,
    task_id: int,
    services: ServiceContainer = Depends(get_services)
):
    """XP the quest pays on completion, and whether it already paid"""
    return await services.task_service.get_task_reward(user_id, task_id)


# ==========================================
# Subtasks
# ==========================================

@router.post(USER_PREFIX + "/tasks/{task_id}/subtasks", status_code=status.HTTP_201_CREATED)
@limiter.limit(WRITE_RATE_LIMIT)
async def create_subtask_endpoint(
    request: Request,
    user_id: int,
    task_id: int,
    body: CreateSubtaskRequest,
    services: ServiceContainer = Depends(get_services)
):
    return await services.task_service.create_subtask(user_id, task_id, body)


@router.patch(USER_PREFIX + "/tasks/{task_id}/subtasks/{subtask_id}")
@limiter.limit(WRITE_RATE_LIMIT)
async def update_subtask_endpoint(
    request: Request,
    user_id: int,
    task_id: int,
    subtask_id: int,
    body: UpdateSubtaskRequest,
    services: ServiceContainer = Depends(get_services)
):
    return await services.task_service.update_subtask(user_id, task_id, subtask_id, body)


@router.patch(USER_PREFIX + "/tasks/{task_id}/subtasks/{subtask_id}/status")
@limiter.limit(WRITE_RATE_LIMIT)
async def update_subtask_status_endpoint(
    request: Request,
    user_id: int,
    task_id: int,
    subtask_id: int,
    body: UpdateStatusRequest,
    services: ServiceContainer = Depends(get_services)
):
    """Change side-quest status (rewards as for quests)"""
    return await services.task_service.update_subtask_status(
        user_id, task_id, subtask_id, body.status, body.note
    )


@router.delete(USER_PREFIX + "/tasks/{task_id}/subtasks/{subtask_id}", status_code=status.HTTP_204_NO_CONTENT)
@limiter.limit(WRITE_RATE_LIMIT)
async def delete_subtask_endpoint(
    request: Request,
    user_id: int,
    task_id: int,
    subtask_id: int,
    services: ServiceContainer = Depends(get_services)
):
    await services.task_service.delete_subtask(user_id, task_id, subtask_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# ==========================================
# Campaigns
# ==========================================

@router.get(USER_PREFIX + "/campaigns")
@limiter.limit(READ_RATE_LIMIT)
async def list_campaigns_endpoint(
    request: Request,
    user_id: int,
    include_archived: bool = False,
    services: ServiceContainer = Depends(get_services)
):
    return await services.campaign_service.list_campaigns(user_id, include_archived=include_archived)


@router.post(USER_PREFIX + "/campaigns", status_code=status.HTTP_201_CREATED)
@limiter.limit(WRITE_RATE_LIMIT)
async def create_campaign_endpoint(
    request: Request,
    user_id: int,
    body: CreateCampaignRequest,
    services: ServiceContainer = Depends(get_services)
):
    return await services.campaign_service.create_campaign(user_id, body)


@router.get(USER_PREFIX + "/campaigns/{campaign_id}")
@limiter.limit(READ_RATE_LIMIT)
async def get_campaign_endpoint(
    request: Request,
    user_id: int,
    campaign_id: int,
    services: ServiceContainer = Depends(get_services)
):
    """Campaign with stats and its quests"""
    return await services.campaign_service.get_campaign(user_id, campaign_id)


@router.patch(USER_PREFIX + "/campaigns/{campaign_id}")
@limiter.limit(WRITE_RATE_LIMIT)
async def update_campaign_endpoint(
    request: Request,
    user_id: int,
    campaign_id: int,
    body: UpdateCampaignRequest,
    services: ServiceContainer = Depends(get_services)
):
    return await services.campaign_service.update_campaign(user_id, campaign_id, body)


@router.delete(USER_PREFIX + "/campaigns/{campaign_id}", status_code=status.HTTP_204_NO_CONTENT)
@limiter.limit(WRITE_RATE_LIMIT)
async def delete_campaign_endpoint(
    request: Request,
    user_id: int,
    campaign_id: int,
    services: ServiceContainer = Depends(get_services)
):
    """Delete a campaign; its quests stay, without a campaign"""
    await services.campaign_service.delete_campaign(user_id, campaign_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# ==========================================
# Debug tasks
# ==========================================

@debug_router.post(USER_PREFIX + "/debug/clear-tasks")
@limiter.limit(WRITE_RATE_LIMIT)
async def clear_tasks_endpoint(request: Request, user_id: int, services: ServiceContainer = Depends(get_services)):
    """Remove every quest of the player"""
    return await services.task_service.clear_tasks(user_id)


@debug_router.post(USER_PREFIX + "/debug/seed-tasks")
@limiter.limit(WRITE_RATE_LIMIT)
async def seed_tasks_endpoint(
    request: Request,
    user_id: int,
    body: Optional[SeedTasksRequest] = None,
    services: ServiceContainer = Depends(get_services)
):
    """Replace the player's quests with random demo quests"""
    return await services.task_service.seed_tasks(user_id, body.count if body else None)
