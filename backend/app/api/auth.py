"""
Authentication router.
Registration, login (JSON and OAuth2 form) and the current-user endpoint.
"""

from datetime import timedelta

from fastapi import APIRouter, Depends, HTTPException, Security, status
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.core.config import get_settings
from backend.app.core.database import get_db
from backend.app.core.security import create_access_token, get_current_user, User
from backend.app.models.user_orm import UserORM
from backend.app.schemas.users import (
    UserRegister, UserResponse, LoginRequest, LoginResponse, TokenResponse,
)
from backend.app.services import auth_service
from backend.app.services.user_service import get_user

router = APIRouter()
settings = get_settings()


def _issue_token(user: UserORM) -> str:
    return create_access_token(
        data={"sub": user.id, "role": user.role},
        expires_delta=timedelta(minutes=settings.access_token_expire_minutes),
    )


async def _authenticate_or_401(db: AsyncSession, username: str, password: str) -> UserORM:
    user = await auth_service.authenticate_user(db, username, password)
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect username or password",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user


@router.post("/register", response_model=UserResponse, status_code=201)
async def register(payload: UserRegister, db: AsyncSession = Depends(get_db)):
    """Create a TeamMember account."""
    user = await auth_service.register_user(db, payload)
    return UserResponse.model_validate(user)


@router.post("/login", response_model=LoginResponse)
async def login(payload: LoginRequest, db: AsyncSession = Depends(get_db)):
    user = await _authenticate_or_401(db, payload.username, payload.password)
    token = _issue_token(user)
    return LoginResponse(token=token, access_token=token)


@router.post("/token", response_model=TokenResponse)
async def login_for_access_token(
    form_data: OAuth2PasswordRequestForm = Depends(),
    db: AsyncSession = Depends(get_db),
):
    """
    Standard OAuth2 /token endpoint to exchange credentials for a JWT.
    """
    user = await _authenticate_or_401(db, form_data.username, form_data.password)
    return TokenResponse(access_token=_issue_token(user))


@router.get("/logout")
async def logout(current_user: User = Security(get_current_user)):
    """Tokens are stateless; the client discards its copy."""
    return {"message": "Logged out successfully"}


@router.get("/me", response_model=UserResponse)
async def me(
    db: AsyncSession = Depends(get_db),
    current_user: User = Security(get_current_user),
):
    user = await get_user(db, current_user.id)
    return UserResponse.model_validate(user)
