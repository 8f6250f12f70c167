"""
Incident API Router.

CRUD, search, case discussion and post-mortems for incidents.
"""
import logging

from fastapi import APIRouter, Depends, Request, Security
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.api.pagination import Pagination, pagination_params
from backend.app.core.database import get_db
from backend.app.core.security import get_current_user, User, INCIDENT_READ, INCIDENT_WRITE
from backend.app.schemas.incidents import (
    IncidentCreate, IncidentUpdate, IncidentResponse, IncidentPage, DiscussionCreate,
)
from backend.app.schemas.postmortems import PostMortemCreate, PostMortemUpdate, PostMortemResponse
from backend.app.services import incident_service, postmortem_service

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("", response_model=IncidentResponse, status_code=201)
async def create_incident(
    payload: IncidentCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Security(get_current_user, scopes=[INCIDENT_WRITE]),
):
    """Create a new incident. The human-readable id is assigned here."""
    incident = await incident_service.create_incident(db, payload, created_by=current_user.id)
    return IncidentResponse.model_validate(incident)


@router.get("", response_model=IncidentPage)
async def list_incidents(
    pagination: Pagination = Depends(pagination_params),
    db: AsyncSession = Depends(get_db),
    current_user: User = Security(get_current_user, scopes=[INCIDENT_READ]),
):
    """List incidents, newest first."""
    incidents, total = await incident_service.list_incidents(db, pagination.skip, pagination.limit)
    return _page(incidents, total, pagination)


@router.get("/search", response_model=IncidentPage)
async def search_incidents(
    request: Request,
    pagination: Pagination = Depends(pagination_params),
    db: AsyncSession = Depends(get_db),
    current_user: User = Security(get_current_user, scopes=[INCIDENT_READ]),
):
    """
    Search incidents.

    Query parameters: ``title`` and ``description`` (substring, any case),
    ``status``, ``environment`` and ``severity`` (exact), ``tags``
    (comma-separated, any shared tag) and ``search`` (free text over title,
    description, tags, severity and environment). Unknown parameters are
    ignored.
    """
    incidents, total = await incident_service.search_incidents(
        db, request.query_params, pagination.skip, pagination.limit
    )
    return _page(incidents, total, pagination)


@router.get("/{incident_id}", response_model=IncidentResponse)
async def get_incident(
    incident_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: User = Security(get_current_user, scopes=[INCIDENT_READ]),
):
    incident = await incident_service.get_incident(db, incident_id)
    return IncidentResponse.model_validate(incident)


@router.patch("/{incident_id}", response_model=IncidentResponse)
async def update_incident(
    incident_id: str,
    payload: IncidentUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Security(get_current_user, scopes=[INCIDENT_WRITE]),
):
    incident = await incident_service.update_incident(db, incident_id, payload, updated_by=current_user.id)
    return IncidentResponse.model_validate(incident)


@router.delete("/{incident_id}", response_model=IncidentResponse)
async def delete_incident(
    incident_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: User = Security(get_current_user, scopes=[INCIDENT_WRITE]),
):
    incident = await incident_service.delete_incident(db, incident_id)
    return IncidentResponse.model_validate(incident)


@router.post("/{incident_id}/discussion", response_model=IncidentResponse)
async def add_discussion(
    incident_id: str,
    payload: DiscussionCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Security(get_current_user, scopes=[INCIDENT_WRITE]),
):
    """Append a case discussion entry authored by the caller."""
    incident = await incident_service.add_discussion(db, incident_id, payload.message, author_id=current_user.id)
    return IncidentResponse.model_validate(incident)


@router.post("/{incident_id}/postmortem", response_model=PostMortemResponse, status_code=201)
async def create_postmortem(
    incident_id: str,
    payload: PostMortemCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Security(get_current_user, scopes=[INCIDENT_WRITE]),
):
    postmortem = await postmortem_service.create_postmortem(db, incident_id, payload, created_by=current_user.id)
    return PostMortemResponse.model_validate(postmortem)


@router.get("/{incident_id}/postmortem", response_model=PostMortemResponse)
async def get_postmortem(
    incident_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: User = Security(get_current_user, scopes=[INCIDENT_READ]),
):
    postmortem = await postmortem_service.get_postmortem(db, incident_id)
    return PostMortemResponse.model_validate(postmortem)


@router.patch("/{incident_id}/postmortem", response_model=PostMortemResponse)
async def update_postmortem(
    incident_id: str,
    payload: PostMortemUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Security(get_current_user, scopes=[INCIDENT_WRITE]),
):
    postmortem = await postmortem_service.update_postmortem(db, incident_id, payload)
    return PostMortemResponse.model_validate(postmortem)


def _page(incidents, total: int, pagination: Pagination) -> IncidentPage:
    return IncidentPage(
        items=[IncidentResponse.model_validate(i) for i in incidents],
        page=pagination.page,
        limit=pagination.limit,
        total=total,
    )
