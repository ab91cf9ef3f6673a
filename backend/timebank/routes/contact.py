"""
TimeBank Backend — Contact Route
=================================

What:  POST /contact stores a message from a logged-in user to the operators.
"""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from timebank.database import get_db_session
from timebank.schemas.common import ErrorResponse
from timebank.schemas.contact import ContactRequest, ContactResponse
from timebank.security import CurrentUserId
from timebank.services.contact_service import contact_service
from timebank.services.ownership import ensure_acting_identity

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Contact"])


@router.post(
    "/contact",
    response_model=ContactResponse,
    responses={
        400: {"description": "A field is missing", "model": ErrorResponse},
        401: {"description": "Not logged in", "model": ErrorResponse},
        403: {"description": "user_id is not the session user", "model": ErrorResponse},
    },
    summary="Send a message to the site operators",
)
async def send_contact_message(
    body: ContactRequest,
    acting_user_id: CurrentUserId,
    db: AsyncSession = Depends(get_db_session),
) -> ContactResponse:
    sender_id = ensure_acting_identity(body.user_id, acting_user_id)
    await contact_service.send(
        db,
        sender_id=sender_id,
        name=body.name,
        phone=body.phone,
        subject=body.subject,
        message=body.message,
    )
    return ContactResponse()
