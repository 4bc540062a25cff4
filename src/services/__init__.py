"""
Service Layer Package

This package contains business logic services that separate concerns between
the presentation layer (FastAPI routes) and the data access layer (JSON stores).

Core Services:
- UserService: Player creation, profiles, public RPG snapshot
- TaskService: Quest/side-quest CRUD, status transitions, completion rewards
- RpgService: Daily focus claim, XP adjustments, RPG reset
- CampaignService: Campaign CRUD with per-campaign quest stats
"""

from src.services.container import ServiceContainer, get_container, init_container

__all__ = [
    "ServiceContainer",
    "get_container",
    "init_container",
]
