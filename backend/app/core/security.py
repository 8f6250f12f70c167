"""
Security and Authentication for the Aftermath API.

Implements OAuth2 bearer tokens carrying signed JWTs. The token subject is
the user id; scopes are derived from the user's stored role on every request
so that role changes and deactivation take effect immediately.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional, List

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer, SecurityScopes
from jose import JWTError, jwt
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.core.config import get_settings
from backend.app.core.database import get_db

settings = get_settings()

# Incident scopes
INCIDENT_READ = "incident:read"
INCIDENT_WRITE = "incident:write"

# User management scopes
USER_READ = "user:read"
USER_ADMIN = "user:admin"

oauth2_scheme = OAuth2PasswordBearer(
    tokenUrl=f"{settings.api_prefix}/auth/token".lstrip("/"),
    scopes={
        INCIDENT_READ: "Read incidents, discussions and post-mortems",
        INCIDENT_WRITE: "Create, update and delete incidents",
        USER_READ: "Read user accounts",
        USER_ADMIN: "Manage any user account",
    },
)


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None):
    """
    Generate a signed JWT token.
    """
    to_encode = data.copy()
    if expires_delta:
        expire = datetime.now(timezone.utc) + expires_delta
    else:
        expire = datetime.now(timezone.utc) + timedelta(minutes=settings.access_token_expire_minutes)

    to_encode.update({"exp": expire})
    encoded_jwt = jwt.encode(to_encode, settings.secret_key, algorithm=settings.algorithm)
    return encoded_jwt


# Role definitions
class Role:
    ADMIN = "Admin"
    TEAM_MEMBER = "TeamMember"

    ALL = (ADMIN, TEAM_MEMBER)


ROLE_SCOPES = {
    Role.ADMIN: [INCIDENT_READ, INCIDENT_WRITE, USER_READ, USER_ADMIN],
    Role.TEAM_MEMBER: [INCIDENT_READ, INCIDENT_WRITE, USER_READ],
}


class User(BaseModel):
    id: str
    username: str
    role: str
    scopes: List[str] = []

    def can(self, scope: str) -> bool:
        return scope in self.scopes


class TokenData(BaseModel):
    user_id: Optional[str] = None
    role: Optional[str] = None


def decode_access_token(token: str) -> TokenData:
    """Decode and verify a token. Raises JWTError when invalid or expired."""
    payload = jwt.decode(token, settings.secret_key, algorithms=[settings.algorithm])
    user_id = payload.get("sub")
    if user_id is None:
        raise JWTError("Token has no subject")
    return TokenData(user_id=str(user_id), role=payload.get("role"))


async def get_current_user(
    security_scopes: SecurityScopes,
    token: str = Depends(oauth2_scheme),
    db: AsyncSession = Depends(get_db),
) -> User:
    """
    Validate JWT token, load the account and check required scopes.
    """
    from backend.app.services.user_service import find_user_by_id

    if security_scopes.scopes:
        authenticate_value = f'Bearer scope="{security_scopes.scope_str}"'
    else:
        authenticate_value = "Bearer"

    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": authenticate_value},
    )

    try:
        token_data = decode_access_token(token)
    except JWTError:
        raise credentials_exception

    account = await find_user_by_id(db, token_data.user_id)
    if account is None or not account.is_active:
        raise credentials_exception

    scopes = ROLE_SCOPES.get(account.role, [])
    for scope in security_scopes.scopes:
        if scope not in scopes:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Not enough permissions. Required scope: {scope}",
                headers={"WWW-Authenticate": authenticate_value},
            )

    return User(id=account.id, username=account.username, role=account.role, scopes=scopes)
