"""
TimeBank Backend — Stored File Serving
=======================================

What:  GET /uploads/{filename} streams a stored asset (resource file or
       profile picture) back to clients.

Only bare filenames produced by the asset store are accepted. Anything that
looks like a path is answered with 404, the same as a missing file.
"""

import logging

from fastapi import APIRouter
from fastapi.responses import FileResponse

from timebank.config import settings
from timebank.exceptions import NotFoundError, ValidationError
from timebank.schemas.common import ErrorResponse
from timebank.services.asset_store import asset_store

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Uploads"])


@router.get(
    f"{settings.public_uploads_path}/{{filename}}",
    response_class=FileResponse,
    responses={404: {"description": "No such file", "model": ErrorResponse}},
    summary="Download a stored file",
)
async def get_upload(filename: str) -> FileResponse:
    try:
        path = asset_store.path_for(filename)
    except ValidationError:
        logger.warning("Rejected asset request for %r", filename)
        raise NotFoundError(resource="file", resource_id=filename)
    if not path.is_file():
        raise NotFoundError(resource="file", resource_id=filename)
    return FileResponse(path)
