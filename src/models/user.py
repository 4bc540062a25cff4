"""User-related Pydantic models"""
from typing import Any, Optional
from pydantic import BaseModel, Field


class UserProfile(BaseModel):
    """User profile information"""
    display_name: Optional[str] = None
    avatar: Optional[str] = None
    # Character class shown on the quest board (adventurer, mage, ...)
    class_: Optional[str] = Field(default=None, alias="class")
    bio: Optional[str] = Field(default=None, max_length=200)
    prefs: Optional[dict[str, Any]] = None

    model_config = {"populate_by_name": True}


class CreateUserRequest(BaseModel):
    """Request to create a player"""
    username: str = Field(..., min_length=1, description="Unique username")
    email: Optional[str] = None
    profile: Optional[UserProfile] = None


class GrantXpRequest(BaseModel):
    """Debug XP adjustment (signed)"""
    amount: float = Field(..., description="Non-zero XP delta")
