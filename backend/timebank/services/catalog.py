"""
TimeBank Backend — Owned Catalog Base
======================================

What:  Shared listing/update/delete logic for rows that belong to one user
       (services and learning resources).
How:   Every mutation follows the same sequence:

           load row ──▶ ownership guard ──▶ mutate ──▶ flush
              │               │
           404 NotFound    403 Unauthorized (nothing written)

       Subclasses set `model`, `resource_name` and `editable_fields`, and
       override create/delete where files are involved.

Listings are newest first by id, which follows insertion order even when
the wall clock steps backwards.
"""

import logging
from typing import Any, Dict, Generic, List, Sequence, Type, TypeVar

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from timebank.exceptions import DatabaseError, NotFoundError, ValidationError
from timebank.services.ownership import require_ownership

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT")


class OwnedCatalog(Generic[ModelT]):
    """Base class for catalogs of user-owned rows."""

    model: Type[ModelT]
    resource_name: str = "resource"
    editable_fields: Sequence[str] = ()

    def newest_first(self):
        return (self.model.id.desc(),)

    # ── Reads ─────────────────────────────────────────────────────────────

    async def get(self, db: AsyncSession, record_id: int) -> ModelT:
        """
        Load one row by id.

        Raises:
            NotFoundError: no row with that id.
        """
        try:
            row = await db.get(self.model, record_id)
        except SQLAlchemyError as e:
            logger.error("Database error fetching %s %s: %s", self.resource_name, record_id, e)
            raise DatabaseError(
                context={"resource": self.resource_name, "resource_id": record_id},
            )
        if row is None:
            raise NotFoundError(resource=self.resource_name, resource_id=record_id)
        return row

    async def get_owned(self, db: AsyncSession, record_id: int, acting_user_id: int) -> ModelT:
        """Load a row and run the ownership guard on it."""
        row = await self.get(db, record_id)
        require_ownership(
            row.user_id,
            acting_user_id,
            resource=self.resource_name,
            resource_id=record_id,
        )
        return row

    async def list_by_owner(self, db: AsyncSession, owner_id: int) -> List[ModelT]:
        """All rows owned by `owner_id`, newest first."""
        try:
            result = await db.execute(
                select(self.model)
                .where(self.model.user_id == owner_id)
                .order_by(*self.newest_first())
            )
            return list(result.scalars().all())
        except SQLAlchemyError as e:
            logger.error("Database error listing %s for user %s: %s", self.resource_name, owner_id, e)
            raise DatabaseError(context={"resource": self.resource_name, "owner_id": owner_id})

    # ── Mutations ─────────────────────────────────────────────────────────

    def _clean_changes(self, fields: Dict[str, Any]) -> Dict[str, Any]:
        changes = {k: v for k, v in fields.items() if k in self.editable_fields and v is not None}
        if "title" in changes:
            changes["title"] = changes["title"].strip()
            if not changes["title"]:
                raise ValidationError(message="Title cannot be empty", field="title")
        return changes

    async def update(
        self,
        db: AsyncSession,
        record_id: int,
        acting_user_id: int,
        fields: Dict[str, Any],
    ) -> ModelT:
        """
        Apply `fields` to a row owned by `acting_user_id`.

        Raises:
            NotFoundError: no such row (404).
            UnauthorizedError: row owned by someone else (403), row unchanged.
            ValidationError: empty title.
            DatabaseError: write failed.
        """
        row = await self.get_owned(db, record_id, acting_user_id)
        changes = self._clean_changes(fields)

        try:
            for key, value in changes.items():
                setattr(row, key, value)
            await db.flush()
        except SQLAlchemyError as e:
            logger.error("Database error updating %s %s: %s", self.resource_name, record_id, e)
            raise DatabaseError(
                context={"resource": self.resource_name, "resource_id": record_id},
            )

        logger.info(
            "%s %s updated by user %s: %s",
            self.resource_name, record_id, acting_user_id, sorted(changes),
        )
        return row

    async def delete(self, db: AsyncSession, record_id: int, acting_user_id: int) -> None:
        """
        Delete a row owned by `acting_user_id`.

        Raises:
            NotFoundError / UnauthorizedError / DatabaseError as for update().
        """
        row = await self.get_owned(db, record_id, acting_user_id)
        try:
            await db.delete(row)
            await db.flush()
        except SQLAlchemyError as e:
            logger.error("Database error deleting %s %s: %s", self.resource_name, record_id, e)
            raise DatabaseError(
                context={"resource": self.resource_name, "resource_id": record_id},
            )
        logger.info("%s %s deleted by user %s", self.resource_name, record_id, acting_user_id)
