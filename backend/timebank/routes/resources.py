"""
TimeBank Backend — Learning Resource Routes
============================================

What:  Share, list, edit and remove learning resources.

    POST   /upload-resource                       multipart, `file` required
    GET    /resources                             all, with owner name
    GET    /my-resources/{user_id}                one user's, newest first
    PUT    /update-resource/{resource_id}         owner only, metadata only
    DELETE /delete-resource/{resource_id}/{user_id}  owner only, removes file

Request Flow (upload):
    1. Multipart form parsed by FastAPI (fields + optional UploadFile)
    2. File read into memory; an absent file is rejected by the catalog
    3. ResourceCatalog stores the file, then inserts the row
"""

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from timebank.database import get_db_session
from timebank.routes.profile import read_upload
from timebank.schemas.catalog import (
    ResourceMutationResponse,
    ResourceResponse,
    ResourceUpdateRequest,
)
from timebank.schemas.common import ErrorResponse, SuccessResponse
from timebank.security import CurrentUserId
from timebank.services.ownership import ensure_acting_identity
from timebank.services.resource_catalog import resource_catalog

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Learning Resources"])

GUARDED_RESPONSES = {
    401: {"description": "Not logged in", "model": ErrorResponse},
    403: {"description": "Resource belongs to another user", "model": ErrorResponse},
    404: {"description": "No such resource", "model": ErrorResponse},
}


@router.post(
    "/upload-resource",
    response_model=ResourceMutationResponse,
    responses={
        400: {"description": "No file, empty file or file too large", "model": ErrorResponse},
        401: {"description": "Not logged in", "model": ErrorResponse},
        403: {"description": "user_id is not the session user", "model": ErrorResponse},
        500: {"description": "File could not be stored", "model": ErrorResponse},
    },
    summary="Share a learning resource",
)
async def upload_resource(
    acting_user_id: CurrentUserId,
    title: str = Form(..., max_length=200),
    description: str = Form(""),
    file_type: str = Form("", max_length=50),
    user_id: Optional[int] = Form(None, description="Must match the session user if given"),
    file: Optional[UploadFile] = File(None, description="The resource file (max 50MB)"),
    db: AsyncSession = Depends(get_db_session),
) -> ResourceMutationResponse:
    owner_id = ensure_acting_identity(user_id, acting_user_id)
    upload = await read_upload(file)
    if upload is not None:
        logger.info(
            "Received resource upload: filename=%s, size=%d bytes",
            upload.filename or "unknown",
            len(upload.content),
        )
    resource = await resource_catalog.create(
        db,
        owner_id=owner_id,
        title=title,
        description=description,
        file_type=file_type,
        upload=upload,
    )
    return ResourceMutationResponse(resource=ResourceResponse.model_validate(resource))


@router.get(
    "/resources",
    response_model=List[ResourceResponse],
    summary="List all learning resources with their owner's name",
)
async def list_resources(db: AsyncSession = Depends(get_db_session)) -> List[ResourceResponse]:
    rows = await resource_catalog.list_all(db)
    return [
        ResourceResponse.model_validate(resource).model_copy(update={"owner_name": owner_name})
        for resource, owner_name in rows
    ]


@router.get(
    "/my-resources/{user_id}",
    response_model=List[ResourceResponse],
    summary="List one user's learning resources, newest first",
)
async def list_user_resources(
    user_id: int,
    db: AsyncSession = Depends(get_db_session),
) -> List[ResourceResponse]:
    resources = await resource_catalog.list_by_owner(db, user_id)
    return [ResourceResponse.model_validate(r) for r in resources]


@router.put(
    "/update-resource/{resource_id}",
    response_model=ResourceMutationResponse,
    responses={400: {"description": "Empty title", "model": ErrorResponse}, **GUARDED_RESPONSES},
    summary="Edit the title/description of one of your resources",
)
async def update_resource(
    resource_id: int,
    body: ResourceUpdateRequest,
    acting_user_id: CurrentUserId,
    db: AsyncSession = Depends(get_db_session),
) -> ResourceMutationResponse:
    ensure_acting_identity(body.user_id, acting_user_id)
    resource = await resource_catalog.update(
        db,
        resource_id,
        acting_user_id,
        body.model_dump(include={"title", "description"}),
    )
    return ResourceMutationResponse(resource=ResourceResponse.model_validate(resource))


@router.delete(
    "/delete-resource/{resource_id}/{user_id}",
    response_model=SuccessResponse,
    responses=GUARDED_RESPONSES,
    summary="Delete one of your resources and its file",
)
async def delete_resource(
    resource_id: int,
    user_id: int,
    acting_user_id: CurrentUserId,
    db: AsyncSession = Depends(get_db_session),
) -> SuccessResponse:
    ensure_acting_identity(user_id, acting_user_id)
    await resource_catalog.delete(db, resource_id, acting_user_id)
    return SuccessResponse()
