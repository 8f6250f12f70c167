"""Post-mortem schemas."""
from enum import Enum
from datetime import datetime
from typing import Optional, List

from pydantic import BaseModel, ConfigDict, Field


class ActionItemStatus(str, Enum):
    PENDING = "Pending"
    IN_PROGRESS = "In Progress"
    COMPLETED = "Completed"


class ActionItem(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    description: str = Field(..., min_length=1)
    status: ActionItemStatus = ActionItemStatus.PENDING


class PostMortemCreate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    root_cause: str = Field(..., min_length=1)
    impact: str = Field(..., min_length=1)
    action_items: List[ActionItem] = Field(default_factory=list)
    lessons_learned: str = ""


class PostMortemUpdate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    root_cause: Optional[str] = Field(None, min_length=1)
    impact: Optional[str] = Field(None, min_length=1)
    action_items: Optional[List[ActionItem]] = None
    lessons_learned: Optional[str] = None


class PostMortemResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    incident_id: str
    root_cause: str
    impact: str
    action_items: List[ActionItem] = []
    lessons_learned: str = ""
    created_by: str
    created_at: datetime
    updated_at: Optional[datetime] = None
