"""
TimeBank Backend — Identity Service
====================================

What:  User registration, login, profile lookup and profile updates.
Who:   Called by the auth and profile route handlers.

Rules:
    register        name, email and password required; email must look like
                    local@domain.tld; password at least MIN_PASSWORD_LENGTH
                    characters; email unique (case-sensitive, as stored)
    authenticate    unknown email and wrong password fail identically
    hashing         bcrypt runs in the threadpool, never on the event loop
    update_profile  only the profile's owner may change it; a new picture is
                    stored before the row is updated, the old picture is
                    released only after the update commits
"""

import logging
import re
from typing import Any, Dict, Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.concurrency import run_in_threadpool

from timebank.config import settings
from timebank.exceptions import (
    ConflictError,
    DatabaseError,
    InvalidCredentialsError,
    NotFoundError,
    ValidationError,
)
from timebank.models.user import User
from timebank.security import dummy_password_hash, hash_password, verify_password
from timebank.services.asset_links import release_asset
from timebank.services.asset_store import (
    IMAGE_EXTENSIONS,
    AssetStore,
    UploadedFile,
    asset_store,
)
from timebank.services.ownership import require_ownership

logger = logging.getLogger(__name__)

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")

# Profile columns a user may change through update_profile.
PROFILE_FIELDS = (
    "name",
    "email",
    "bio",
    "skills_offered",
    "skills_needed",
    "location",
    "experience_level",
)


def validate_email(email: str) -> str:
    email = (email or "").strip()
    if not EMAIL_PATTERN.match(email):
        raise ValidationError(message="Invalid email format", field="email")
    return email


def validate_password(password: str) -> None:
    if len(password) < settings.min_password_length:
        raise ValidationError(
            message=f"Password must be at least {settings.min_password_length} characters",
            field="password",
        )


def _reject_unknown_email(password: str) -> bool:
    """Spend one bcrypt check so unknown emails cost as much as wrong passwords."""
    return verify_password(password, dummy_password_hash())


class IdentityService:
    """
    Business logic for user accounts.

    Error Handling Strategy:
        Input problems raise ValidationError / ConflictError before anything
        is written. SQLAlchemy failures are logged and wrapped in
        DatabaseError so no SQL detail reaches the client.
    """

    def __init__(self, store: Optional[AssetStore] = None):
        self.store = store or asset_store

    # ── Lookups ───────────────────────────────────────────────────────────

    async def _find_by_email(self, db: AsyncSession, email: str) -> Optional[User]:
        result = await db.execute(select(User).where(User.email == email))
        return result.scalar_one_or_none()

    async def get_profile(self, db: AsyncSession, user_id: int) -> Optional[User]:
        """Return the user with `user_id`, or None if there is none."""
        try:
            return await db.get(User, user_id)
        except SQLAlchemyError as e:
            logger.error("Database error fetching user %s: %s", user_id, e)
            raise DatabaseError(context={"user_id": user_id, "error_type": type(e).__name__})

    async def get_display_name(self, db: AsyncSession, user_id: int) -> str:
        user = await self.get_profile(db, user_id)
        if user is None:
            raise NotFoundError(resource="user", resource_id=user_id)
        return user.name

    # ── Registration ──────────────────────────────────────────────────────

    async def register(self, db: AsyncSession, name: str, email: str, password: str) -> User:
        """
        Create a new account.

        Raises:
            ValidationError: missing field, bad email format, short password.
            ConflictError: the email is already registered.
            DatabaseError: insert failed for another reason.
        """
        name = (name or "").strip()
        email = (email or "").strip()
        password = password or ""
        if not name or not email or not password:
            raise ValidationError(message="All fields are required")
        validate_email(email)
        validate_password(password)

        try:
            if await self._find_by_email(db, email) is not None:
                raise ConflictError(message="Email already exists", field="email")

            password_hash = await run_in_threadpool(hash_password, password)

            user = User(name=name, email=email, password_hash=password_hash)
            db.add(user)
            await db.flush()
        except IntegrityError:
            # Lost a race with a concurrent registration of the same email
            await db.rollback()
            raise ConflictError(message="Email already exists", field="email")
        except SQLAlchemyError as e:
            logger.error("Database error registering %s: %s", email, e, exc_info=True)
            raise DatabaseError(context={"error_type": type(e).__name__})

        logger.info("User registered: id=%s", user.id)
        return user

    # ── Login ─────────────────────────────────────────────────────────────

    async def authenticate(self, db: AsyncSession, email: str, password: str) -> User:
        """
        Verify credentials and return the user.

        Raises:
            ValidationError: email or password missing.
            InvalidCredentialsError: unknown email or wrong password.
        """
        email = (email or "").strip()
        if not email or not password:
            raise ValidationError(message="Email and password are required")

        try:
            user = await self._find_by_email(db, email)
        except SQLAlchemyError as e:
            logger.error("Database error during login: %s", e)
            raise DatabaseError(context={"error_type": type(e).__name__})

        if user is None:
            await run_in_threadpool(_reject_unknown_email, password)
            raise InvalidCredentialsError()
        if not await run_in_threadpool(verify_password, password, user.password_hash):
            logger.info("Failed login for user %s", user.id)
            raise InvalidCredentialsError()
        return user

    # ── Profile Update ────────────────────────────────────────────────────

    async def update_profile(
        self,
        db: AsyncSession,
        user_id: int,
        acting_user_id: int,
        fields: Dict[str, Any],
        image: Optional[UploadedFile] = None,
    ) -> User:
        """
        Update the profile of `user_id` on behalf of `acting_user_id`.

        Only keys of PROFILE_FIELDS whose value is not None are applied.

        Workflow with a new picture:
            1. ownership check, load row, validate fields
            2. store the new picture
            3. update row and commit; on failure discard the new picture
            4. release the previous picture

        Raises:
            UnauthorizedError: acting user is not `user_id`.
            NotFoundError: no such user.
            ValidationError / ConflictError: bad name or email.
            StorageFailureError: the new picture could not be written.
            DatabaseError: update failed.
        """
        require_ownership(user_id, acting_user_id, resource="user", resource_id=user_id)

        user = await self.get_profile(db, user_id)
        if user is None:
            raise NotFoundError(resource="user", resource_id=user_id)

        changes = {k: v for k, v in fields.items() if k in PROFILE_FIELDS and v is not None}
        await self._validate_profile_changes(db, user, changes)

        new_ref = None
        if image is not None:
            new_ref = await self.store.store(
                image,
                allowed_extensions=IMAGE_EXTENSIONS,
                max_size=settings.max_image_size,
            )
        previous_pic = user.profile_pic

        try:
            for key, value in changes.items():
                setattr(user, key, value)
            if new_ref is not None:
                user.profile_pic = new_ref.filename
            await db.commit()
        except SQLAlchemyError as e:
            await db.rollback()
            if new_ref is not None:
                await self.store.discard(new_ref.filename)
            if isinstance(e, IntegrityError):
                raise ConflictError(message="Email already exists", field="email")
            logger.error("Database error updating user %s: %s", user_id, e, exc_info=True)
            raise DatabaseError(context={"user_id": user_id, "error_type": type(e).__name__})

        if new_ref is not None and previous_pic and previous_pic != new_ref.filename:
            await release_asset(db, self.store, previous_pic)

        logger.info("Profile updated: user=%s fields=%s", user_id, sorted(changes))
        return user

    async def _validate_profile_changes(
        self, db: AsyncSession, user: User, changes: Dict[str, Any]
    ) -> None:
        if "name" in changes:
            changes["name"] = changes["name"].strip()
            if not changes["name"]:
                raise ValidationError(message="Name cannot be empty", field="name")

        if "email" in changes:
            changes["email"] = validate_email(changes["email"])
            if changes["email"] != user.email:
                existing = await self._find_by_email(db, changes["email"])
                if existing is not None and existing.id != user.id:
                    raise ConflictError(message="Email already exists", field="email")


# ── Singleton Instance ────────────────────────────────────────────────────
identity_service = IdentityService()
