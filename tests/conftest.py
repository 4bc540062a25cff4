"""Global test fixtures and utilities for quest tracker tests"""
import pytest
import httpx
from datetime import datetime, timezone

from src.db.connection import JsonDataStore
from src.gamification import create_initial_rpg_state
from src.services.container import ServiceContainer


# ============================================================================
# Clock Fixtures
# ============================================================================

FIXED_NOW = datetime(2024, 5, 1, 12, 0, 0, tzinfo=timezone.utc)


class FakeClock:
    """Callable clock that tests can move forward"""

    def __init__(self, now: datetime = FIXED_NOW):
        self.now = now

    def __call__(self) -> datetime:
        return self.now


@pytest.fixture
def fixed_now():
    """Standard test instant (2024-05-01 12:00 UTC)"""
    return FIXED_NOW


@pytest.fixture
def clock():
    return FakeClock()


# ============================================================================
# Record Fixtures
# ============================================================================

@pytest.fixture
def player():
    """Player record with a fresh RPG state"""
    return {
        "id": 1,
        "username": "hero",
        "profile": {"display_name": "hero", "class": "adventurer"},
        "rpg": create_initial_rpg_state(),
    }


@pytest.fixture
def task():
    """Level 1 medium-priority quest in 'todo'"""
    return {
        "id": 7,
        "description": "Slay the dragon",
        "priority": "medium",
        "status": "todo",
        "task_level": 1,
        "sub_tasks": [],
        "rpg": {"xp_awarded": False, "last_reward_at": None, "history": []},
    }


@pytest.fixture
def subtask():
    return {
        "id": 1,
        "description": "Sharpen sword",
        "status": "todo",
        "rpg": {"xp_awarded": False, "last_reward_at": None},
    }


# ============================================================================
# Storage & Service Fixtures
# ============================================================================

@pytest.fixture
def data_store(tmp_path):
    """JSON data store writing into a temporary directory"""
    return JsonDataStore(
        users_file=tmp_path / "users.json",
        tasks_file=tmp_path / "tasks.json",
        campaigns_file=tmp_path / "campaigns.json"
    )


@pytest.fixture
def services(data_store, clock):
    return ServiceContainer(store=data_store, clock=clock)


# ============================================================================
# API Fixtures
# ============================================================================

@pytest.fixture
def api_app(services):
    """FastAPI app bound to the temporary store, debug routes enabled"""
    from src.api.middleware import limiter
    from src.api.server import create_api_application

    limiter.reset()
    return create_api_application(container=services, enable_debug_routes=True)


@pytest.fixture
async def api_client(api_app):
    """Async HTTP client calling the app in-process"""
    transport = httpx.ASGITransport(app=api_app)
    async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as client:
        yield client
