"""
TimeBank Backend — Service & Learning Resource Schemas
=======================================================

Request and response models for the two owner-managed catalogs.

The `user_id` / `userId` fields on request bodies are optional claims. The
acting user always comes from the session token; a claim that disagrees with
it is rejected by the ownership guard.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, computed_field

from timebank.services.asset_store import public_url


# ══════════════════════════════════════════════════════════════════════════
# Services
# ══════════════════════════════════════════════════════════════════════════


class ServiceCreateRequest(BaseModel):
    user_id: Optional[int] = Field(default=None, description="Must match the session user if given")
    user_name: Optional[str] = Field(
        default=None,
        max_length=100,
        description="Display name to show; defaults to the owner's current name",
    )
    title: str = Field(max_length=200)
    description: str = Field(default="")
    hours: float = Field(gt=0, le=10_000)


class ServiceUpdateRequest(BaseModel):
    user_id: Optional[int] = Field(default=None, description="Must match the session user if given")
    title: Optional[str] = Field(default=None, max_length=200)
    description: Optional[str] = None
    hours: Optional[float] = Field(default=None, gt=0, le=10_000)


class ServiceResponse(BaseModel):
    id: int
    user_id: int
    user_name: str = Field(description="Owner display name as of creation")
    title: str
    description: str
    hours: float
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class ServiceMutationResponse(BaseModel):
    success: bool = Field(default=True)
    service: ServiceResponse


# ══════════════════════════════════════════════════════════════════════════
# Learning Resources
# ══════════════════════════════════════════════════════════════════════════


class ResourceUpdateRequest(BaseModel):
    user_id: Optional[int] = Field(
        default=None,
        alias="userId",
        description="Must match the session user if given",
    )
    title: Optional[str] = Field(default=None, max_length=200)
    description: Optional[str] = None

    model_config = {"populate_by_name": True}


class ResourceResponse(BaseModel):
    id: int
    user_id: int
    title: str
    description: str
    file_type: str
    file_path: str = Field(description="Stored asset filename")
    created_at: Optional[datetime] = None
    owner_name: Optional[str] = Field(
        default=None,
        description="Owner's current name; present in the all-resources listing",
    )

    model_config = {"from_attributes": True}

    @computed_field
    @property
    def file_url(self) -> Optional[str]:
        return public_url(self.file_path)


class ResourceMutationResponse(BaseModel):
    success: bool = Field(default=True)
    resource: ResourceResponse
