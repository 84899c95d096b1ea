from datetime import datetime
from typing import Literal

from pydantic import BaseModel, EmailStr, Field


class SignUpRequest(BaseModel):
    """Schema for account registration (the school is created separately)"""

    email: EmailStr = Field(..., description="Login email, unique across the platform")
    password: str = Field(..., min_length=8, description="Password (min 8 characters)")
    full_name: str = Field(..., min_length=1, max_length=255)


class TokenRequest(BaseModel):
    """Schema for password login"""

    email: EmailStr
    password: str = Field(..., min_length=1)


class Token(BaseModel):
    """Schema for a newly opened session"""

    access_token: str
    token_type: str = "bearer"
    expires_at: datetime


class SessionState(BaseModel):
    """
    Where the signed-in caller should go next.

    anonymous -> /signup, unbound -> /create-school, bound -> /{slug}/dashboard
    """

    state: Literal["anonymous", "unbound", "bound"]
    redirect_to: str
    email: str | None = None
    role: str | None = None
    tenant_id: str | None = None
    school_slug: str | None = None
