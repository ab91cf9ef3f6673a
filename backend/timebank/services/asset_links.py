"""
TimeBank Backend — Asset ↔ Row Links
=====================================

What:  Finds which rows reference a stored asset, and releases assets that
       no row references any more.
How:   Assets carry no owner pointer. A row "owns" an asset when one of its
       filename columns equals the asset's filename:

           users.profile_pic            ─┐
                                          ├──▶  <storage_root>/<filename>
           learning_resources.file_path ─┘

Release order is always: row change committed → lookup → file delete.
An asset is never deleted while a committed row still names it, and a file
delete failure is logged, not raised; the database is the source of truth.
"""

import logging
from typing import List, Tuple

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from timebank.exceptions import StorageFailureError
from timebank.models.learning_resource import LearningResource
from timebank.models.user import User
from timebank.services.asset_store import AssetStore

logger = logging.getLogger(__name__)


async def find_asset_references(db: AsyncSession, filename: str) -> List[Tuple[str, int]]:
    """
    Rows that reference `filename`, as (table name, row id) pairs.
    """
    references: List[Tuple[str, int]] = []

    users = await db.execute(select(User.id).where(User.profile_pic == filename))
    references.extend(("users", user_id) for user_id in users.scalars().all())

    resources = await db.execute(
        select(LearningResource.id).where(LearningResource.file_path == filename)
    )
    references.extend(
        ("learning_resources", resource_id) for resource_id in resources.scalars().all()
    )
    return references


async def release_asset(db: AsyncSession, store: AssetStore, filename: str) -> bool:
    """
    Delete an asset after the row that used it was changed or removed.

    Must be called after that change was committed.

    Returns:
        True if the file was removed; False if it was still referenced,
        already absent, or could not be deleted.
    """
    try:
        references = await find_asset_references(db, filename)
    except SQLAlchemyError as e:
        logger.warning("Could not check references of asset %s, keeping it: %s", filename, e)
        return False
    if references:
        logger.warning(
            "Asset %s still referenced by %s; keeping it", filename, references
        )
        return False

    try:
        return await store.delete(filename)
    except StorageFailureError as e:
        logger.warning(
            "Asset %s left on disk after its row was removed: %s",
            filename,
            e.context.get("os_error", e.message),
        )
        return False
