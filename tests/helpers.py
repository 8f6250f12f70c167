"""Shared helpers for building users and auth headers in tests."""

from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.core.security import Role, create_access_token
from backend.app.schemas.users import UserRegister
from backend.app.services.auth_service import register_user

STRONG_PASSWORD = "Sup3r$ecret"


async def make_user(db_session: AsyncSession, username: str, role: str = Role.TEAM_MEMBER):
    return await register_user(
        db_session,
        UserRegister(username=username, email=f"{username}@example.com", password=STRONG_PASSWORD),
        role=role,
    )


def headers_for(user) -> dict:
    token = create_access_token({"sub": user.id, "role": user.role})
    return {"Authorization": f"Bearer {token}"}
