"""
Auth Service - password hashing, the password policy and account creation.
"""
import logging
import re
from datetime import datetime, timezone
from typing import Optional

import bcrypt
from sqlalchemy import select, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.core.config import get_settings
from backend.app.core.exceptions import AppError, ConflictError
from backend.app.core.security import Role
from backend.app.models.user_orm import UserORM
from backend.app.schemas.users import UserRegister

logger = logging.getLogger(__name__)

PASSWORD_PATTERN = re.compile(r"^(?=.*[a-z])(?=.*[A-Z])(?=.*\d)(?=.*[@$!%*?&])[A-Za-z\d@$!%*?&]{8,}$")
PASSWORD_POLICY_MESSAGE = (
    "Password must be at least 8 characters long and include uppercase, "
    "lowercase, a number, and a special character."
)
# bcrypt only hashes the first 72 bytes and refuses anything longer
PASSWORD_MAX_BYTES = 72


def hash_password(plain: str) -> str:
    salt = bcrypt.gensalt(rounds=10)
    hashed = bcrypt.hashpw(plain.encode('utf-8'), salt)
    return hashed.decode('utf-8')


def verify_password(plain: str, hashed: str) -> bool:
    """Verify a password against a hash using direct bcrypt."""
    try:
        return bcrypt.checkpw(plain.encode('utf-8'), hashed.encode('utf-8'))
    except ValueError as e:
        logger.error(f"Password verification error: {e}")
        return False


def validate_password(password: str) -> bool:
    return bool(password) and PASSWORD_PATTERN.match(password) is not None


def check_password(password: str) -> None:
    """Raise AppError unless the password can be accepted and hashed."""
    if len(password.encode('utf-8')) > PASSWORD_MAX_BYTES:
        raise AppError(f"Password must be at most {PASSWORD_MAX_BYTES} bytes long.")
    if not validate_password(password):
        raise AppError(PASSWORD_POLICY_MESSAGE)


async def get_user_by_username(db: AsyncSession, username: str) -> Optional[UserORM]:
    result = await db.execute(select(UserORM).where(UserORM.username == username))
    return result.scalar_one_or_none()


async def authenticate_user(db: AsyncSession, username: str, password: str) -> Optional[UserORM]:
    user = await get_user_by_username(db, username)
    if not user or not user.is_active:
        return None
    if not verify_password(password, user.hashed_password):
        return None
    user.last_login = datetime.now(timezone.utc)
    await db.flush()
    return user


async def ensure_unique_identity(
    db: AsyncSession,
    email: Optional[str],
    username: Optional[str],
    exclude_id: Optional[str] = None,
) -> None:
    """Raise ConflictError if another account already uses the email or username."""
    clauses = []
    if email:
        clauses.append(UserORM.email == email)
    if username:
        clauses.append(UserORM.username == username)
    if not clauses:
        return
    query = select(UserORM).where(or_(*clauses))
    if exclude_id:
        query = query.where(UserORM.id != exclude_id)
    existing = (await db.execute(query.limit(1))).scalar_one_or_none()
    if existing:
        raise ConflictError("User already exists" if existing.email == email else "Username already taken")


async def flush_account(db: AsyncSession, user: UserORM) -> None:
    """
    Write pending account changes.

    The pre-check in ``ensure_unique_identity`` can lose a race with a
    concurrent request; the unique indexes then reject the row and the
    failure is reported as a conflict.
    """
    try:
        await db.flush()
    except IntegrityError as e:
        logger.warning(f"Account write for {user.username} hit a unique constraint: {e}")
        raise ConflictError("User already exists") from e


async def register_user(db: AsyncSession, payload: UserRegister, role: str = Role.TEAM_MEMBER) -> UserORM:
    """Create an account after checking the password policy and uniqueness."""
    if not payload.username or not payload.email or not payload.password:
        raise AppError("Missing required fields")
    check_password(payload.password)

    await ensure_unique_identity(db, payload.email, payload.username)

    user = UserORM(
        username=payload.username,
        email=payload.email,
        hashed_password=hash_password(payload.password),
        role=role,
        full_name=payload.full_name,
        avatar_url="",
        is_active=True,
        created_at=datetime.now(timezone.utc),
    )
    db.add(user)
    await flush_account(db, user)
    logger.info(f"Registered user {user.username} ({user.id})")
    return user


async def seed_default_admin(db: AsyncSession) -> Optional[UserORM]:
    """Create the bootstrap admin on first startup when ADMIN_PASSWORD is set."""
    settings = get_settings()
    if not settings.admin_password:
        return None
    if await get_user_by_username(db, settings.admin_username):
        return None
    check_password(settings.admin_password)
    admin = UserORM(
        username=settings.admin_username,
        email=settings.admin_email,
        hashed_password=hash_password(settings.admin_password),
        role=Role.ADMIN,
        created_at=datetime.now(timezone.utc),
    )
    db.add(admin)
    await db.commit()
    logger.info(f"Seeded admin user {admin.username}")
    return admin
