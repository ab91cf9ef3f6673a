"""
TimeBank Backend — Description Generator Route
===============================================

What:  POST /generate-description returns a ready-made blurb for a service
       title. No state is touched; no login needed.
"""

from fastapi import APIRouter

from timebank.schemas.common import (
    ErrorResponse,
    GenerateDescriptionRequest,
    GenerateDescriptionResponse,
)
from timebank.services.description_service import generate_description

router = APIRouter(tags=["Services"])


@router.post(
    "/generate-description",
    response_model=GenerateDescriptionResponse,
    responses={400: {"description": "Title missing", "model": ErrorResponse}},
    summary="Suggest a description for a service title",
)
async def suggest_description(body: GenerateDescriptionRequest) -> GenerateDescriptionResponse:
    return GenerateDescriptionResponse(description=generate_description(body.title))
