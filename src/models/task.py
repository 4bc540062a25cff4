"""Task (quest) and subtask (side-quest) models"""
from enum import Enum
from typing import Literal, Optional
from pydantic import BaseModel, Field


class TaskStatus(str, Enum):
    """Workflow status shared by tasks and subtasks"""
    TODO = "todo"
    IN_PROGRESS = "in_progress"
    BLOCKED = "blocked"
    DONE = "done"


class TaskPriority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


TASK_STATUSES = {status.value for status in TaskStatus}
TASK_PRIORITIES = {priority.value for priority in TaskPriority}

StatusLiteral = Literal["todo", "in_progress", "blocked", "done"]
PriorityLiteral = Literal["low", "medium", "high"]


class CreateTaskRequest(BaseModel):
    """Request to create a quest"""
    description: str = Field(..., min_length=1, description="Quest description")
    priority: Optional[PriorityLiteral] = Field(default=None, description="low, medium or high")
    due_date: Optional[str] = Field(default=None, description="YYYY-MM-DD (defaults to today)")
    task_level: Optional[float] = Field(default=None, description="Quest difficulty 1-10")
    campaign_id: Optional[int] = Field(default=None, description="Owning campaign")


class UpdateTaskRequest(BaseModel):
    """Partial quest update; omitted fields are left unchanged"""
    description: Optional[str] = None
    priority: Optional[PriorityLiteral] = None
    due_date: Optional[str] = None
    task_level: Optional[float] = None
    campaign_id: Optional[int] = None


class CreateSubtaskRequest(BaseModel):
    """Request to add a side-quest"""
    description: str = Field(..., min_length=1)
    priority: Optional[PriorityLiteral] = None
    weight: Optional[float] = None


class UpdateSubtaskRequest(BaseModel):
    description: Optional[str] = None
    priority: Optional[PriorityLiteral] = None
    weight: Optional[float] = None


class UpdateStatusRequest(BaseModel):
    """Status transition for a quest or side-quest"""
    status: StatusLiteral
    note: Optional[str] = None


class UpdateOrderRequest(BaseModel):
    order: list[int]
