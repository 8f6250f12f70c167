"""
Incident Schemas and Enums.

Request bodies are validated here; the ORM layer trusts what it receives.
"""
from enum import Enum
from typing import Optional, List, Annotated
from datetime import datetime
from pydantic import BaseModel, ConfigDict, Field, StringConstraints


class IncidentStatus(str, Enum):
    OPEN = "Open"
    IN_PROGRESS = "In Progress"
    RESOLVED = "Resolved"
    CLOSED = "Closed"


class IncidentSeverity(str, Enum):
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"
    CRITICAL = "Critical"


class IncidentEnvironment(str, Enum):
    PRODUCTION = "Production"
    STAGING = "Staging"
    DEVELOPMENT = "Development"


MAX_TAGS = 10

Tag = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=100)]
UserId = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=36)]

# Reaching either of these stamps resolved_at
RESOLVED_STATUSES = (IncidentStatus.RESOLVED, IncidentStatus.CLOSED)


class IncidentCreate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    title: str = Field(..., min_length=1, max_length=500)
    description: str = Field(..., min_length=1, max_length=1000)
    environment: IncidentEnvironment
    status: IncidentStatus = IncidentStatus.OPEN
    severity: IncidentSeverity = IncidentSeverity.LOW
    assigned_to: Optional[UserId] = None
    tags: List[Tag] = Field(default_factory=list, max_length=MAX_TAGS)
    resolution_details: str = Field("", max_length=1000)
    related_links: List[str] = Field(default_factory=list)
    related_incidents: List[str] = Field(default_factory=list)


class IncidentUpdate(BaseModel):
    """Partial update. human_id, creator and discussion are not updatable."""
    model_config = ConfigDict(str_strip_whitespace=True)

    title: Optional[str] = Field(None, min_length=1, max_length=500)
    description: Optional[str] = Field(None, min_length=1, max_length=1000)
    environment: Optional[IncidentEnvironment] = None
    status: Optional[IncidentStatus] = None
    severity: Optional[IncidentSeverity] = None
    assigned_to: Optional[UserId] = None
    tags: Optional[List[Tag]] = Field(None, max_length=MAX_TAGS)
    resolution_details: Optional[str] = Field(None, max_length=1000)
    related_links: Optional[List[str]] = None
    related_incidents: Optional[List[str]] = None


class DiscussionCreate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    message: str = Field(..., min_length=1, max_length=5000)


class DiscussionEntry(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    message: str
    author_id: str
    timestamp: datetime


class IncidentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    human_id: str
    title: str
    description: str
    environment: IncidentEnvironment
    status: IncidentStatus
    severity: IncidentSeverity
    created_by: str
    assigned_to: Optional[str] = None
    updated_by: Optional[str] = None
    resolved_at: Optional[datetime] = None
    resolution_details: str = ""
    tags: List[str] = []
    related_links: List[str] = []
    related_incidents: List[str] = []
    case_discussion: List[DiscussionEntry] = []
    created_at: datetime
    updated_at: Optional[datetime] = None


class IncidentPage(BaseModel):
    items: List[IncidentResponse]
    page: int
    limit: int
    total: int
