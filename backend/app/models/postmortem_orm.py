"""
ORM Model for incident post-mortems.

One post-mortem per incident. Action items are a small ordered list kept
inline as JSON.
"""
import uuid
from datetime import datetime, timezone
from sqlalchemy import Column, String, Text, DateTime, JSON

from backend.app.core.database import Base


class PostMortemORM(Base):
    __tablename__ = "postmortems"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    incident_id = Column(String(36), unique=True, nullable=False, index=True)

    root_cause = Column(Text, nullable=False)
    impact = Column(Text, nullable=False)
    action_items = Column(JSON, nullable=False, default=list)  # List[ActionItem]
    lessons_learned = Column(Text, nullable=False, default="")

    created_by = Column(String(36), nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))
    updated_at = Column(DateTime(timezone=True), nullable=True)

    def __repr__(self):
        return f"<PostMortem for {self.incident_id}>"
