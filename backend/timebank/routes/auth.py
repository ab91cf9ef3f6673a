"""
TimeBank Backend — Registration & Login Routes
===============================================

What:  POST /register and POST /login.
How:   Thin handlers delegating to IdentityService. Login answers with the
       public profile and a session token which every mutating endpoint
       requires as `Authorization: Bearer <token>`.

Both endpoints sit behind AuthRateLimitMiddleware.
"""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from timebank.database import get_db_session
from timebank.schemas.common import ErrorResponse, SuccessResponse
from timebank.schemas.user import LoginRequest, LoginResponse, RegisterRequest, UserProfile
from timebank.security import create_access_token
from timebank.services.identity_service import identity_service

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Auth"])


@router.post(
    "/register",
    response_model=SuccessResponse,
    responses={
        400: {"description": "Missing field, bad email or short password", "model": ErrorResponse},
        409: {"description": "Email already registered", "model": ErrorResponse},
        429: {"description": "Too many attempts", "model": ErrorResponse},
    },
    summary="Create an account",
)
async def register(
    body: RegisterRequest,
    db: AsyncSession = Depends(get_db_session),
) -> SuccessResponse:
    await identity_service.register(db, name=body.name, email=body.email, password=body.password)
    return SuccessResponse(message="Registration successful")


@router.post(
    "/login",
    response_model=LoginResponse,
    responses={
        400: {"description": "Email or password missing", "model": ErrorResponse},
        401: {"description": "Invalid credentials", "model": ErrorResponse},
        429: {"description": "Too many attempts", "model": ErrorResponse},
    },
    summary="Log in and obtain a session token",
)
async def login(
    body: LoginRequest,
    db: AsyncSession = Depends(get_db_session),
) -> LoginResponse:
    """
    Verify credentials.

    The response carries the public profile (never the password hash) and
    a bearer token identifying the user for later mutations.
    """
    user = await identity_service.authenticate(db, email=body.email, password=body.password)
    logger.info("User %s logged in", user.id)
    return LoginResponse(
        user=UserProfile.model_validate(user),
        access_token=create_access_token(user.id),
    )
