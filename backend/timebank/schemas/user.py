"""
TimeBank Backend — User Schemas
================================

Request bodies for registration/login and the public user profile.

UserProfile has no password field: the stored hash never
leaves the server, not even to its owner.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, computed_field

from timebank.services.asset_store import public_url


class RegisterRequest(BaseModel):
    name: str = Field(max_length=100)
    email: str = Field(max_length=255)
    password: str = Field(max_length=128)


class LoginRequest(BaseModel):
    email: str = Field(max_length=255)
    password: str = Field(max_length=128)


class UserProfile(BaseModel):
    """What clients may see about a user."""
    id: int
    name: str
    email: str
    bio: Optional[str] = None
    skills_offered: Optional[str] = None
    skills_needed: Optional[str] = None
    location: Optional[str] = None
    experience_level: Optional[str] = None
    profile_pic: Optional[str] = Field(default=None, description="Stored picture filename")
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}

    @computed_field
    @property
    def profile_pic_url(self) -> Optional[str]:
        return public_url(self.profile_pic)


class LoginResponse(BaseModel):
    success: bool = Field(default=True)
    user: UserProfile
    access_token: str = Field(description="Send as 'Authorization: Bearer <token>'")
    token_type: str = Field(default="bearer")


class ProfileUpdateResponse(BaseModel):
    success: bool = Field(default=True)
    user: UserProfile
