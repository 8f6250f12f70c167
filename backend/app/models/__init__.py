"""Models package."""

from backend.app.models.incident_orm import (
    IncidentORM,
    IncidentTagORM,
    DiscussionEntryORM,
    IncidentSequenceORM,
)
from backend.app.models.postmortem_orm import PostMortemORM
from backend.app.models.user_orm import UserORM

__all__ = [
    "IncidentORM",
    "IncidentTagORM",
    "DiscussionEntryORM",
    "IncidentSequenceORM",
    "PostMortemORM",
    "UserORM",
]
