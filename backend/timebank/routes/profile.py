"""
TimeBank Backend — Profile Routes
==================================

What:  GET /user/{user_id} (public profile) and POST /update-profile
       (multipart form with an optional `profile_pic` file).

The `id` form field names the profile to change. It must be the caller's
own id; IdentityService runs the ownership guard on it.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from timebank.database import get_db_session
from timebank.schemas.common import ErrorResponse
from timebank.schemas.user import ProfileUpdateResponse, UserProfile
from timebank.security import CurrentUserId
from timebank.services.asset_store import UploadedFile
from timebank.services.identity_service import identity_service

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Profile"])


async def read_upload(upload: Optional[UploadFile]) -> Optional[UploadedFile]:
    """
    Read a multipart file part into an UploadedFile.

    Browsers send an empty part with no filename when no file was chosen;
    that counts as no file.
    """
    if upload is None:
        return None
    try:
        content = await upload.read()
    finally:
        await upload.close()
    if not upload.filename and not content:
        return None
    return UploadedFile(filename=upload.filename or "", content=content)


@router.get(
    "/user/{user_id}",
    response_model=Optional[UserProfile],
    summary="Public profile of a user",
    description="Returns the profile, or null when no such user exists.",
)
async def get_user(
    user_id: int,
    db: AsyncSession = Depends(get_db_session),
) -> Optional[UserProfile]:
    user = await identity_service.get_profile(db, user_id)
    if user is None:
        return None
    return UserProfile.model_validate(user)


@router.post(
    "/update-profile",
    response_model=ProfileUpdateResponse,
    responses={
        400: {"description": "Invalid field or picture", "model": ErrorResponse},
        401: {"description": "Not logged in", "model": ErrorResponse},
        403: {"description": "Not your profile", "model": ErrorResponse},
        404: {"description": "No such user", "model": ErrorResponse},
        409: {"description": "Email already registered", "model": ErrorResponse},
    },
    summary="Update your own profile",
)
async def update_profile(
    acting_user_id: CurrentUserId,
    id: int = Form(..., description="Id of the profile to update (your own)"),
    name: Optional[str] = Form(None, max_length=100),
    email: Optional[str] = Form(None, max_length=255),
    bio: Optional[str] = Form(None),
    skills_offered: Optional[str] = Form(None),
    skills_needed: Optional[str] = Form(None),
    location: Optional[str] = Form(None, max_length=255),
    experience_level: Optional[str] = Form(None, max_length=50),
    profile_pic: Optional[UploadFile] = File(None, description="New profile picture"),
    db: AsyncSession = Depends(get_db_session),
) -> ProfileUpdateResponse:
    image = await read_upload(profile_pic)
    user = await identity_service.update_profile(
        db,
        user_id=id,
        acting_user_id=acting_user_id,
        fields={
            "name": name,
            "email": email,
            "bio": bio,
            "skills_offered": skills_offered,
            "skills_needed": skills_needed,
            "location": location,
            "experience_level": experience_level,
        },
        image=image,
    )
    return ProfileUpdateResponse(user=UserProfile.model_validate(user))
