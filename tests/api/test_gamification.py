"""Tests for player and RPG endpoints (daily reward, debug XP)"""
import pytest


async def create_user(client, username="hero"):
    response = await client.post("/api/v1/users", json={"username": username})
    assert response.status_code == 201
    return response.json()["user"]


@pytest.mark.asyncio
async def test_health_check(api_client):
    response = await api_client.get("/api/health")

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "healthy"
    assert data["storage"]["users_file"].endswith("users.json")
    assert data["storage"]["users_file_exists"] is False


@pytest.mark.asyncio
async def test_create_user(api_client):
    response = await api_client.post(
        "/api/v1/users",
        json={"username": "hero", "profile": {"class": "mage", "bio": "Studies the arcane"}}
    )

    assert response.status_code == 201
    user = response.json()["user"]
    assert user["id"] == 1
    assert user["profile"]["class"] == "mage"
    assert user["rpg"]["level"] == 1
    assert user["rpg"]["xp_to_next"] == 100
    assert "xp_log" not in user["rpg"]


@pytest.mark.asyncio
async def test_create_user_duplicate_username(api_client):
    await create_user(api_client)

    response = await api_client.post("/api/v1/users", json={"username": "Hero"})

    assert response.status_code == 400
    assert response.json()["error"] == "ValidationError"


@pytest.mark.asyncio
async def test_create_user_missing_username(api_client):
    response = await api_client.post("/api/v1/users", json={})
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_update_profile(api_client):
    user = await create_user(api_client)

    response = await api_client.patch(f"/api/v1/users/{user['id']}/profile", json={"display_name": "Sir Hero"})

    assert response.status_code == 200
    assert response.json()["user"]["profile"]["display_name"] == "Sir Hero"


@pytest.mark.asyncio
async def test_unknown_user_returns_404(api_client):
    response = await api_client.get("/api/v1/users/99/rpg")

    assert response.status_code == 404
    assert response.json()["error"] == "RecordNotFoundError"


@pytest.mark.asyncio
async def test_get_rpg(api_client):
    user = await create_user(api_client)

    response = await api_client.get(f"/api/v1/users/{user['id']}/rpg")

    assert response.status_code == 200
    rpg = response.json()["player_rpg"]
    assert rpg["stats"] == {"hp": 20, "mp": 5, "coins": 0}
    assert rpg["recent_events"] == []


@pytest.mark.asyncio
async def test_hand_edited_fractional_counter_is_repaired(api_client, data_store):
    await data_store.write_document("users", {
        "users": [{"id": 1, "username": "hero", "rpg": {"counters": {"tasks_completed": 2.5}}}],
        "nextId": 2,
    })

    response = await api_client.get("/api/v1/users/1/rpg")
    assert response.status_code == 200
    assert response.json()["player_rpg"]["counters"]["tasks_completed"] == 2

    claim = await api_client.post("/api/v1/users/1/rpg/daily-reward")
    assert claim.status_code == 200
    assert claim.json()["player_rpg"]["counters"]["daily_rewards_claimed"] == 1


@pytest.mark.asyncio
async def test_daily_reward_claimed_once_per_day(api_client):
    user = await create_user(api_client)
    url = f"/api/v1/users/{user['id']}/rpg/daily-reward"

    first = await api_client.post(url)
    assert first.status_code == 200
    data = first.json()
    assert data["xp_event"]["amount"] == 30
    assert data["xp_event"]["reason"] == "daily_focus"
    assert data["player_rpg"]["last_daily_reward_at"] == "2024-05-01"

    second = await api_client.post(url)
    assert second.status_code == 409
    assert second.json()["error"] == "DuplicateClaimError"


@pytest.mark.asyncio
async def test_grant_xp_levels_up(api_client):
    user = await create_user(api_client)

    response = await api_client.post(f"/api/v1/users/{user['id']}/rpg/debug/grant-xp", json={"amount": 240})

    assert response.status_code == 200
    data = response.json()
    assert data["xp_event"]["leveled_up"] is True
    assert data["xp_event"]["level_after"] == 3
    assert data["player_rpg"]["level"] == 3
    assert data["player_rpg"]["xp_into_level"] == 0


@pytest.mark.asyncio
async def test_grant_xp_zero_rejected(api_client):
    user = await create_user(api_client)

    response = await api_client.post(f"/api/v1/users/{user['id']}/rpg/debug/grant-xp", json={"amount": 0})

    assert response.status_code == 400
    assert response.json()["error"] == "InvalidAmountError"


@pytest.mark.asyncio
async def test_reset_rpg(api_client):
    user = await create_user(api_client)
    await api_client.post(f"/api/v1/users/{user['id']}/rpg/debug/grant-xp", json={"amount": 500})

    response = await api_client.post(f"/api/v1/users/{user['id']}/rpg/debug/reset")

    assert response.status_code == 200
    assert response.json()["player_rpg"]["xp"] == 0
    assert response.json()["player_rpg"]["level"] == 1


@pytest.mark.asyncio
async def test_debug_routes_disabled(services):
    import httpx
    from src.api.server import create_api_application

    app = create_api_application(container=services, enable_debug_routes=False)
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as client:
        response = await client.post("/api/v1/users/1/rpg/debug/reset")

    assert response.status_code == 404
