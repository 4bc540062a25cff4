"""Campaign models and debug seeding request"""
from typing import Optional
from pydantic import BaseModel, Field


class CreateCampaignRequest(BaseModel):
    """Request to create a campaign"""
    name: str = Field(..., min_length=1, description="Campaign name")
    description: Optional[str] = None
    image_url: Optional[str] = None


class UpdateCampaignRequest(BaseModel):
    """Partial campaign update; omitted fields are left unchanged"""
    name: Optional[str] = None
    description: Optional[str] = None
    image_url: Optional[str] = None
    archived: Optional[bool] = None


class SeedTasksRequest(BaseModel):
    count: Optional[float] = Field(default=None, description="Demo quests to create (1-10, default 5)")
