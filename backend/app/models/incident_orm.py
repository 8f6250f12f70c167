"""
ORM Models for Incidents.

Tags and case discussion live in child tables so that tag membership and
tag text can be matched in SQL on every backend. The discussion table is
append-only: rows are inserted, never updated or deleted on their own.
"""
import uuid
from datetime import datetime, timezone
from typing import List

from sqlalchemy import Column, String, Text, DateTime, JSON, Integer, ForeignKey
from sqlalchemy.orm import relationship

from backend.app.core.database import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class IncidentORM(Base):
    __tablename__ = "incidents"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    human_id = Column(String(20), unique=True, nullable=False, index=True)

    # Core details
    title = Column(String(500), nullable=False)
    description = Column(Text, nullable=False)
    environment = Column(String(20), nullable=False, index=True)  # IncidentEnvironment values
    created_by = Column(String(36), nullable=False, index=True)

    # Update section
    status = Column(String(20), nullable=False, default="Open", index=True)  # IncidentStatus values
    severity = Column(String(20), nullable=False, default="Low", index=True)  # IncidentSeverity values
    assigned_to = Column(String(36), nullable=True, index=True)
    updated_by = Column(String(36), nullable=True)
    resolved_at = Column(DateTime(timezone=True), nullable=True)
    resolution_details = Column(Text, nullable=False, default="")

    # References (user/incident ids, no FK constraints)
    related_links = Column(JSON, nullable=False, default=list)
    related_incidents = Column(JSON, nullable=False, default=list)

    tag_entries = relationship(
        "IncidentTagORM",
        order_by="IncidentTagORM.position",
        cascade="all, delete-orphan",
        lazy="selectin",
    )
    case_discussion = relationship(
        "DiscussionEntryORM",
        order_by="DiscussionEntryORM.timestamp",
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=True, onupdate=_utcnow)

    @property
    def tags(self) -> List[str]:
        return [entry.tag for entry in self.tag_entries]

    def set_tags(self, tags: List[str]) -> None:
        self.tag_entries = [IncidentTagORM(position=i, tag=tag) for i, tag in enumerate(tags)]

    def __repr__(self):
        return f"<Incident {self.human_id} [{self.status}] {self.title!r}>"


class IncidentTagORM(Base):
    __tablename__ = "incident_tags"

    id = Column(Integer, primary_key=True, autoincrement=True)
    incident_id = Column(String(36), ForeignKey("incidents.id", ondelete="CASCADE"), nullable=False, index=True)
    position = Column(Integer, nullable=False)
    tag = Column(String(100), nullable=False, index=True)


class DiscussionEntryORM(Base):
    __tablename__ = "incident_discussion_entries"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    incident_id = Column(String(36), ForeignKey("incidents.id", ondelete="CASCADE"), nullable=False, index=True)
    message = Column(Text, nullable=False)
    author_id = Column(String(36), nullable=False)
    timestamp = Column(DateTime(timezone=True), nullable=False, default=_utcnow)


class IncidentSequenceORM(Base):
    """Last issued incident number per day prefix (MMDDYY)."""
    __tablename__ = "incident_sequences"

    prefix = Column(String(6), primary_key=True)
    value = Column(Integer, nullable=False)
