"""Post-mortem Service - one post-mortem per incident."""
import logging
from datetime import datetime, timezone

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.core.exceptions import ConflictError, NotFoundError
from backend.app.models.postmortem_orm import PostMortemORM
from backend.app.schemas.postmortems import PostMortemCreate, PostMortemUpdate
from backend.app.services.incident_service import get_incident

logger = logging.getLogger(__name__)


async def _find(session: AsyncSession, incident_id: str):
    result = await session.execute(select(PostMortemORM).where(PostMortemORM.incident_id == incident_id))
    return result.scalar_one_or_none()


async def create_postmortem(
    session: AsyncSession,
    incident_id: str,
    payload: PostMortemCreate,
    created_by: str,
) -> PostMortemORM:
    incident = await get_incident(session, incident_id)
    if await _find(session, incident.id):
        raise ConflictError(f"Incident {incident.human_id} already has a post-mortem.")

    postmortem = PostMortemORM(
        incident_id=incident.id,
        root_cause=payload.root_cause,
        impact=payload.impact,
        action_items=[item.model_dump(mode="json") for item in payload.action_items],
        lessons_learned=payload.lessons_learned,
        created_by=created_by,
        created_at=datetime.now(timezone.utc),
    )
    session.add(postmortem)
    await session.flush()
    logger.info(f"Post-mortem recorded for {incident.human_id}")
    return postmortem


async def get_postmortem(session: AsyncSession, incident_id: str) -> PostMortemORM:
    postmortem = await _find(session, incident_id)
    if postmortem is None:
        raise NotFoundError("Post-mortem not found.")
    return postmortem


async def update_postmortem(session: AsyncSession, incident_id: str, payload: PostMortemUpdate) -> PostMortemORM:
    postmortem = await get_postmortem(session, incident_id)
    changes = payload.model_dump(mode="json", exclude_unset=True)
    for name, value in changes.items():
        if value is not None:
            setattr(postmortem, name, value)
    postmortem.updated_at = datetime.now(timezone.utc)
    await session.flush()
    return postmortem
