"""User account and authentication schemas."""
from datetime import datetime
from typing import Optional, List, Literal

from pydantic import BaseModel, ConfigDict, Field

EMAIL_PATTERN = r".+@.+\..+"
AVATAR_URL_PATTERN = r"^(https?://.+\.(jpg|jpeg|png|gif|svg))?$"

RoleName = Literal["Admin", "TeamMember"]


class UserRegister(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    username: str = Field(..., min_length=3, max_length=100)
    email: str = Field(..., pattern=EMAIL_PATTERN, max_length=255)
    # Policy is enforced by auth_service.validate_password
    password: str
    full_name: str = Field("", max_length=255)


class UserUpdate(BaseModel):
    """Editable profile fields. Password and id are never updated here."""
    model_config = ConfigDict(str_strip_whitespace=True)

    username: Optional[str] = Field(None, min_length=3, max_length=100)
    email: Optional[str] = Field(None, pattern=EMAIL_PATTERN, max_length=255)
    full_name: Optional[str] = Field(None, max_length=255)
    avatar_url: Optional[str] = Field(None, pattern=AVATAR_URL_PATTERN, max_length=500)
    role: Optional[RoleName] = None


class UserResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    username: str
    email: str
    role: str
    full_name: str = ""
    avatar_url: str = ""
    last_login: Optional[datetime] = None
    is_active: bool
    deleted_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class UserPage(BaseModel):
    items: List[UserResponse]
    page: int
    limit: int
    total: int


class LoginRequest(BaseModel):
    username: str
    password: str


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"


class LoginResponse(TokenResponse):
    message: str = "Logged in successfully"
    token: str
