"""
TimeBank Backend — Service Routes
==================================

What:  Publish, list, edit and remove offered services.

    POST   /service                 create (session user becomes owner)
    GET    /services                all services, newest first
    GET    /my-services/{user_id}   one user's services, newest first
    PUT    /service/{service_id}    owner only
    DELETE /service/{service_id}    owner only
"""

import logging
from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from timebank.database import get_db_session
from timebank.schemas.catalog import (
    ServiceCreateRequest,
    ServiceMutationResponse,
    ServiceResponse,
    ServiceUpdateRequest,
)
from timebank.schemas.common import ErrorResponse, SuccessResponse
from timebank.security import CurrentUserId
from timebank.services.ownership import ensure_acting_identity
from timebank.services.service_catalog import service_catalog

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Services"])

GUARDED_RESPONSES = {
    401: {"description": "Not logged in", "model": ErrorResponse},
    403: {"description": "Service belongs to another user", "model": ErrorResponse},
    404: {"description": "No such service", "model": ErrorResponse},
}


@router.post(
    "/service",
    response_model=ServiceMutationResponse,
    responses={
        400: {"description": "Invalid title or hours", "model": ErrorResponse},
        401: {"description": "Not logged in", "model": ErrorResponse},
        403: {"description": "user_id is not the session user", "model": ErrorResponse},
    },
    summary="Offer a new service",
)
async def create_service(
    body: ServiceCreateRequest,
    acting_user_id: CurrentUserId,
    db: AsyncSession = Depends(get_db_session),
) -> ServiceMutationResponse:
    owner_id = ensure_acting_identity(body.user_id, acting_user_id)
    service = await service_catalog.create(
        db,
        owner_id=owner_id,
        title=body.title,
        description=body.description,
        hours=body.hours,
        owner_name=body.user_name,
    )
    return ServiceMutationResponse(service=ServiceResponse.model_validate(service))


@router.get(
    "/services",
    response_model=List[ServiceResponse],
    summary="List all services, newest first",
)
async def list_services(db: AsyncSession = Depends(get_db_session)) -> List[ServiceResponse]:
    services = await service_catalog.list_all(db)
    return [ServiceResponse.model_validate(s) for s in services]


@router.get(
    "/my-services/{user_id}",
    response_model=List[ServiceResponse],
    summary="List one user's services, newest first",
)
async def list_user_services(
    user_id: int,
    db: AsyncSession = Depends(get_db_session),
) -> List[ServiceResponse]:
    services = await service_catalog.list_by_owner(db, user_id)
    return [ServiceResponse.model_validate(s) for s in services]


@router.put(
    "/service/{service_id}",
    response_model=ServiceMutationResponse,
    responses={400: {"description": "Invalid title or hours", "model": ErrorResponse}, **GUARDED_RESPONSES},
    summary="Edit one of your services",
)
async def update_service(
    service_id: int,
    body: ServiceUpdateRequest,
    acting_user_id: CurrentUserId,
    db: AsyncSession = Depends(get_db_session),
) -> ServiceMutationResponse:
    ensure_acting_identity(body.user_id, acting_user_id)
    service = await service_catalog.update(
        db,
        service_id,
        acting_user_id,
        body.model_dump(include={"title", "description", "hours"}),
    )
    return ServiceMutationResponse(service=ServiceResponse.model_validate(service))


@router.delete(
    "/service/{service_id}",
    response_model=SuccessResponse,
    responses=GUARDED_RESPONSES,
    summary="Remove one of your services",
)
async def delete_service(
    service_id: int,
    acting_user_id: CurrentUserId,
    db: AsyncSession = Depends(get_db_session),
) -> SuccessResponse:
    await service_catalog.delete(db, service_id, acting_user_id)
    return SuccessResponse()
