"""
User management router.

Any authenticated user may read accounts. Updating or deactivating an
account is allowed for its owner or for holders of ``user:admin``.
"""
from fastapi import APIRouter, Depends, HTTPException, Query, Security, status
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.api.pagination import Pagination, pagination_params
from backend.app.core.database import get_db
from backend.app.core.security import get_current_user, User, USER_READ, USER_ADMIN
from backend.app.schemas.users import UserUpdate, UserResponse, UserPage
from backend.app.services import user_service

router = APIRouter()


def _require_self_or_admin(current_user: User, user_id: str) -> None:
    if current_user.id != user_id and not current_user.can(USER_ADMIN):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=f"Not enough permissions. Required scope: {USER_ADMIN}",
        )


@router.get("", response_model=UserPage)
async def list_users(
    include_inactive: bool = Query(False),
    pagination: Pagination = Depends(pagination_params),
    db: AsyncSession = Depends(get_db),
    current_user: User = Security(get_current_user, scopes=[USER_READ]),
):
    users, total = await user_service.list_users(
        db, pagination.skip, pagination.limit,
        include_inactive=include_inactive and current_user.can(USER_ADMIN),
    )
    return UserPage(
        items=[UserResponse.model_validate(u) for u in users],
        page=pagination.page,
        limit=pagination.limit,
        total=total,
    )


@router.get("/{user_id}", response_model=UserResponse)
async def get_user(
    user_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: User = Security(get_current_user, scopes=[USER_READ]),
):
    user = await user_service.get_user(db, user_id)
    return UserResponse.model_validate(user)


@router.patch("/{user_id}", response_model=UserResponse)
async def update_user(
    user_id: str,
    payload: UserUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Security(get_current_user, scopes=[USER_READ]),
):
    _require_self_or_admin(current_user, user_id)
    user = await user_service.update_user(
        db, user_id, payload, allow_role_change=current_user.can(USER_ADMIN)
    )
    return UserResponse.model_validate(user)


@router.delete("/{user_id}", response_model=UserResponse)
async def delete_user(
    user_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: User = Security(get_current_user, scopes=[USER_READ]),
):
    """Soft delete: the account is deactivated, not removed."""
    _require_self_or_admin(current_user, user_id)
    user = await user_service.deactivate_user(db, user_id)
    return UserResponse.model_validate(user)
