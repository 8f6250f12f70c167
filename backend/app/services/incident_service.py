"""
Incident Service - storage operations for incidents.

Thin async functions over ``IncidentORM``. Lookups raise ``NotFoundError``
when nothing matches; uniqueness violations surface as ``ConflictError``.
"""
from datetime import datetime, timezone
import logging
from typing import Any, Mapping, Optional, Sequence, Tuple

from sqlalchemy import select, func, delete
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.core.exceptions import ConflictError, NotFoundError
from backend.app.models.incident_orm import IncidentORM, DiscussionEntryORM
from backend.app.models.postmortem_orm import PostMortemORM
from backend.app.schemas.incidents import (
    IncidentCreate, IncidentUpdate, IncidentStatus, RESOLVED_STATUSES,
)
from backend.app.services.identifier import next_human_id
from backend.app.services.incident_filters import IncidentFilter, build_incident_filter

logger = logging.getLogger(__name__)


async def create_incident(session: AsyncSession, payload: IncidentCreate, created_by: str) -> IncidentORM:
    """Create an incident and assign its human-readable identifier."""
    now = datetime.now(timezone.utc)
    human_id = await next_human_id(session)

    incident = IncidentORM(
        human_id=human_id,
        title=payload.title,
        description=payload.description,
        environment=payload.environment.value,
        status=payload.status.value,
        severity=payload.severity.value,
        created_by=created_by,
        assigned_to=payload.assigned_to,
        resolution_details=payload.resolution_details,
        related_links=list(payload.related_links),
        related_incidents=list(payload.related_incidents),
        resolved_at=now if payload.status in RESOLVED_STATUSES else None,
        case_discussion=[],
        created_at=now,
    )
    incident.set_tags(payload.tags)
    session.add(incident)

    try:
        await session.flush()
    except IntegrityError as e:
        logger.error(f"Incident identifier collision on {human_id}: {e}")
        raise ConflictError(f"Incident identifier {human_id} already exists.") from e

    logger.info(f"Incident created: {incident.human_id} ({incident.id}) by {created_by}")
    return incident


async def find_incident(session: AsyncSession, incident_id: str) -> Optional[IncidentORM]:
    result = await session.execute(select(IncidentORM).where(IncidentORM.id == incident_id))
    return result.scalar_one_or_none()


async def get_incident(session: AsyncSession, incident_id: str) -> IncidentORM:
    incident = await find_incident(session, incident_id)
    if incident is None:
        raise NotFoundError("Incident not found.")
    return incident


async def list_incidents(
    session: AsyncSession,
    skip: int = 0,
    limit: int = 10,
    incident_filter: Optional[IncidentFilter] = None,
) -> Tuple[Sequence[IncidentORM], int]:
    """Newest first. Returns the requested page and the total match count."""
    if incident_filter is None:
        incident_filter = IncidentFilter()

    total_result = await session.execute(
        incident_filter.apply(select(func.count()).select_from(IncidentORM))
    )
    total = total_result.scalar_one()

    query = (
        incident_filter.apply(select(IncidentORM))
        .order_by(IncidentORM.created_at.desc(), IncidentORM.human_id.desc())
        .offset(skip)
        .limit(limit)
    )
    result = await session.execute(query)
    return result.scalars().all(), total


async def search_incidents(
    session: AsyncSession,
    params: Mapping[str, Any],
    skip: int = 0,
    limit: int = 10,
) -> Tuple[Sequence[IncidentORM], int]:
    incident_filter = build_incident_filter(params)
    logger.debug(f"Incident search on {sorted(incident_filter.constraints)}")
    return await list_incidents(session, skip, limit, incident_filter)


async def update_incident(
    session: AsyncSession,
    incident_id: str,
    payload: IncidentUpdate,
    updated_by: str,
) -> IncidentORM:
    incident = await get_incident(session, incident_id)
    changes = payload.model_dump(exclude_unset=True)

    # Required columns cannot be cleared with an explicit null
    for required in ("title", "description", "environment", "status", "severity", "resolution_details"):
        if required in changes and changes[required] is None:
            del changes[required]

    tags = changes.pop("tags", None)
    if tags is not None:
        incident.set_tags(tags)

    for name, value in changes.items():
        if name in ("related_links", "related_incidents") and value is None:
            value = []
        setattr(incident, name, value.value if hasattr(value, "value") else value)

    if "status" in changes and IncidentStatus(incident.status) in RESOLVED_STATUSES and incident.resolved_at is None:
        incident.resolved_at = datetime.now(timezone.utc)

    incident.updated_by = updated_by
    incident.updated_at = datetime.now(timezone.utc)
    await session.flush()

    logger.info(f"Incident {incident.human_id} updated by {updated_by}")
    return incident


async def delete_incident(session: AsyncSession, incident_id: str) -> IncidentORM:
    """Remove the incident with its tags, discussion and post-mortem. Returns the deleted record."""
    incident = await get_incident(session, incident_id)
    await session.execute(delete(PostMortemORM).where(PostMortemORM.incident_id == incident.id))
    await session.delete(incident)
    await session.flush()
    logger.info(f"Incident {incident.human_id} deleted")
    return incident


async def add_discussion(session: AsyncSession, incident_id: str, message: str, author_id: str) -> IncidentORM:
    """Append a case discussion entry. Entries are never edited or removed."""
    incident = await get_incident(session, incident_id)
    incident.case_discussion.append(
        DiscussionEntryORM(message=message, author_id=author_id, timestamp=datetime.now(timezone.utc))
    )
    incident.updated_at = datetime.now(timezone.utc)
    await session.flush()
    logger.info(f"Discussion entry added to {incident.human_id} by {author_id}")
    return incident
