"""
TimeBank Backend — Learning Resource Catalog
=============================================

What:  Upload, list, update and delete learning resources, keeping each row
       and its stored file consistent.
Who:   Called by the /upload-resource, /resources, /my-resources,
       /update-resource and /delete-resource route handlers.

Create (file first, row second):
    ┌──────────────┐    ┌──────────────┐    ┌──────────┐
    │ file present?│───▶│ store asset  │───▶│ insert + │
    │ else 400     │    │ (AssetStore) │    │ commit   │
    └──────────────┘    └──────────────┘    └──────────┘
    Insert fails → the stored asset is discarded; no row, no file.

Delete (row first, file second):
    ┌──────────────┐    ┌──────────────┐    ┌──────────────┐
    │ load + guard │───▶│ delete row + │───▶│ release asset│
    │ 404 / 403    │    │ commit       │    │ (best effort)│
    └──────────────┘    └──────────────┘    └──────────────┘
    A failed or unnecessary file delete is logged; the delete still
    succeeds because the row is already gone.
"""

import logging
from typing import List, Optional, Tuple

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from timebank.config import settings
from timebank.exceptions import DatabaseError, ValidationError
from timebank.models.learning_resource import LearningResource
from timebank.models.user import User
from timebank.services.asset_links import release_asset
from timebank.services.asset_store import AssetStore, UploadedFile, asset_store
from timebank.services.catalog import OwnedCatalog

logger = logging.getLogger(__name__)


class ResourceCatalog(OwnedCatalog[LearningResource]):
    model = LearningResource
    resource_name = "resource"
    # Metadata only; the file behind a resource cannot be replaced.
    editable_fields = ("title", "description")

    def __init__(self, store: Optional[AssetStore] = None):
        self.store = store or asset_store

    async def create(
        self,
        db: AsyncSession,
        owner_id: int,
        title: str,
        description: str,
        file_type: str,
        upload: Optional[UploadedFile],
    ) -> LearningResource:
        """
        Store the uploaded file and record a resource pointing at it.

        Raises:
            ValidationError: no file, empty/oversized file, empty title.
            StorageFailureError: the file could not be written (no row).
            DatabaseError: the row could not be written (file discarded).
        """
        if upload is None or not upload.content:
            raise ValidationError(message="No file uploaded", field="file")
        title = (title or "").strip()
        if not title:
            raise ValidationError(message="Title is required", field="title")

        ref = await self.store.store(upload, max_size=settings.max_resource_size)

        try:
            resource = LearningResource(
                user_id=owner_id,
                title=title,
                description=description or "",
                file_type=file_type or "",
                file_path=ref.filename,
            )
            db.add(resource)
            await db.commit()
        except SQLAlchemyError as e:
            await db.rollback()
            await self.store.discard(ref.filename)
            logger.error("Database error creating resource for user %s: %s", owner_id, e)
            raise DatabaseError(context={"owner_id": owner_id, "error_type": type(e).__name__})

        logger.info(
            "Resource %s uploaded by user %s (%s, %d bytes)",
            resource.id, owner_id, ref.filename, ref.size,
        )
        return resource

    async def list_all(self, db: AsyncSession) -> List[Tuple[LearningResource, str]]:
        """
        Every resource with its owner's current name, newest first.

        Inner join: resources whose owner row is missing are left out.
        """
        try:
            result = await db.execute(
                select(LearningResource, User.name)
                .join(User, LearningResource.user_id == User.id)
                .order_by(*self.newest_first())
            )
            return [(resource, owner_name) for resource, owner_name in result.all()]
        except SQLAlchemyError as e:
            logger.error("Database error listing resources: %s", e, exc_info=True)
            raise DatabaseError(message="Could not retrieve resources. Please try again.")

    async def delete(self, db: AsyncSession, record_id: int, acting_user_id: int) -> None:
        """
        Delete a resource row, then its file.

        Raises:
            NotFoundError: no such resource; nothing deleted.
            UnauthorizedError: not the owner; nothing deleted.
            DatabaseError: row delete failed; file untouched.
        """
        resource = await self.get_owned(db, record_id, acting_user_id)
        filename = resource.file_path

        try:
            await db.delete(resource)
            await db.commit()
        except SQLAlchemyError as e:
            await db.rollback()
            logger.error("Database error deleting resource %s: %s", record_id, e)
            raise DatabaseError(context={"resource_id": record_id, "error_type": type(e).__name__})

        logger.info("Resource %s deleted by user %s", record_id, acting_user_id)
        await release_asset(db, self.store, filename)


# ── Singleton Instance ────────────────────────────────────────────────────
resource_catalog = ResourceCatalog()
