from datetime import datetime

from pydantic import BaseModel, Field, field_validator


class SignUpRequest(BaseModel):
    email: str | None = None
    password: str | None = None
    full_name: str | None = Field(None, alias="fullName")
    username: str | None = None

    model_config = {"populate_by_name": True}


class SignInRequest(BaseModel):
    email: str | None = None
    password: str | None = None


class AuthUser(BaseModel):
    """Public view of a user, also the snapshot kept inside a session."""
    id: str
    email: str
    full_name: str | None = None
    username: str | None = None
    avatar_url: str | None = None
    bio: str | None = None

    model_config = {"from_attributes": True}

    @field_validator("id", mode="before")
    @classmethod
    def _stringify_id(cls, value):
        return str(value)


class AuthSession(BaseModel):
    user: AuthUser
    expires_at: datetime


class AuthResponse(BaseModel):
    user: AuthUser
    success: bool = True


class SessionResponse(BaseModel):
    user: AuthUser | None = None


class ProfileUpdateRequest(BaseModel):
    username: str | None = None
    full_name: str | None = None
    bio: str | None = None
    avatar_url: str | None = None
