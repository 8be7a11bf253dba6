"""Authentication schemas."""

from pydantic import BaseModel, Field

from commission_engine.models.user import UserRole


class LoginRequest(BaseModel):
    """Login request body."""

    username: str = Field(..., min_length=1, max_length=100)
    password: str = Field(..., min_length=1)


class LoginResponse(BaseModel):
    """Login result; the token itself is set as a cookie."""

    success: bool
    user_id: int
    role: UserRole
    display_name: str
