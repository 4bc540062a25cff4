"""
Data queries - Re-export all functions.

Module organization:
- users.py: User records and public user views
- tasks.py: Quest/side-quest records, normalization, serialization and demo quests
- campaigns.py: Campaign records and per-campaign quest stats
"""

# User operations
from src.db.queries.users import (
    read_users,
    write_users,
    find_user,
    find_user_by_username,
    sanitize_user,
)

# Task operations
from src.db.queries.tasks import (
    read_tasks,
    write_tasks,
    find_task,
    find_subtask,
    normalize_task,
    normalize_subtask,
    serialize_task,
    serialize_task_list,
    build_demo_tasks,
)

# Campaign operations
from src.db.queries.campaigns import (
    read_campaigns,
    write_campaigns,
    find_campaign,
    normalize_campaign,
    build_campaign_stats,
    serialize_campaign,
    serialize_campaign_list,
)

__all__ = [
    "read_users",
    "write_users",
    "find_user",
    "find_user_by_username",
    "sanitize_user",
    "read_tasks",
    "write_tasks",
    "find_task",
    "find_subtask",
    "normalize_task",
    "normalize_subtask",
    "serialize_task",
    "serialize_task_list",
    "build_demo_tasks",
    "read_campaigns",
    "write_campaigns",
    "find_campaign",
    "normalize_campaign",
    "build_campaign_stats",
    "serialize_campaign",
    "serialize_campaign_list",
]
