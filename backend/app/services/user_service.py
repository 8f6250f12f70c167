"""
User Service - account lookups, profile updates and soft deletion.

Deleting a user only deactivates the account (``is_active=False`` and
``deleted_at`` stamped); the row and its history stay in place.
"""
import logging
from datetime import datetime, timezone
from typing import Optional, Sequence, Tuple

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.core.exceptions import AppError, NotFoundError
from backend.app.models.user_orm import UserORM
from backend.app.schemas.users import UserUpdate
from backend.app.services.auth_service import ensure_unique_identity, flush_account

logger = logging.getLogger(__name__)


async def find_user_by_id(db: AsyncSession, user_id: str) -> Optional[UserORM]:
    result = await db.execute(select(UserORM).where(UserORM.id == user_id))
    return result.scalar_one_or_none()


async def get_user(db: AsyncSession, user_id: str) -> UserORM:
    user = await find_user_by_id(db, user_id)
    if user is None:
        raise NotFoundError("User not found.")
    return user


async def list_users(
    db: AsyncSession,
    skip: int = 0,
    limit: int = 10,
    include_inactive: bool = False,
) -> Tuple[Sequence[UserORM], int]:
    query = select(UserORM)
    count_query = select(func.count()).select_from(UserORM)
    if not include_inactive:
        query = query.where(UserORM.is_active.is_(True))
        count_query = count_query.where(UserORM.is_active.is_(True))

    total = (await db.execute(count_query)).scalar_one()
    result = await db.execute(query.order_by(UserORM.created_at.asc()).offset(skip).limit(limit))
    return result.scalars().all(), total


async def update_user(db: AsyncSession, user_id: str, payload: UserUpdate, allow_role_change: bool = False) -> UserORM:
    user = await get_user(db, user_id)
    changes = {k: v for k, v in payload.model_dump(exclude_unset=True).items() if v is not None}

    if "role" in changes and not allow_role_change:
        raise AppError("Only administrators can change roles.", status_code=403)

    await ensure_unique_identity(db, changes.get("email"), changes.get("username"), exclude_id=user.id)

    for name, value in changes.items():
        setattr(user, name, value)
    user.updated_at = datetime.now(timezone.utc)
    await flush_account(db, user)
    logger.info(f"User {user.username} updated: {sorted(changes)}")
    return user


async def deactivate_user(db: AsyncSession, user_id: str) -> UserORM:
    user = await get_user(db, user_id)
    if not user.is_active:
        raise AppError("User is already deactivated.")

    now = datetime.now(timezone.utc)
    user.is_active = False
    user.deleted_at = now
    user.updated_at = now
    await db.flush()
    logger.info(f"User {user.username} deactivated")
    return user
