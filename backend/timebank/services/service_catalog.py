"""
TimeBank Backend — Service Catalog
===================================

What:  Create, list, update and delete the services users offer.
Who:   Called by the /service, /services and /my-services route handlers.

No files are involved, so create/update/delete are plain guarded writes.
The owner's display name is copied onto the row at creation and not kept in
sync afterwards.
"""

import logging
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from timebank.exceptions import DatabaseError, ValidationError
from timebank.models.service import Service
from timebank.services.catalog import OwnedCatalog
from timebank.services.identity_service import IdentityService, identity_service

logger = logging.getLogger(__name__)


def validate_hours(hours: Optional[float]) -> None:
    if hours is None or hours <= 0:
        raise ValidationError(message="Hours must be a positive number", field="hours")


class ServiceCatalog(OwnedCatalog[Service]):
    model = Service
    resource_name = "service"
    editable_fields = ("title", "description", "hours")

    def __init__(self, identities: Optional[IdentityService] = None):
        self.identities = identities or identity_service

    async def create(
        self,
        db: AsyncSession,
        owner_id: int,
        title: str,
        description: str,
        hours: float,
        owner_name: Optional[str] = None,
    ) -> Service:
        """
        Publish a new service for `owner_id`.

        Args:
            owner_name: Display name to show with the service. When omitted
                        the owner's current name is looked up once.

        Raises:
            ValidationError: empty title, hours not positive.
            NotFoundError: owner does not exist (only when owner_name omitted).
            DatabaseError: insert failed.
        """
        title = (title or "").strip()
        if not title:
            raise ValidationError(message="Title is required", field="title")
        validate_hours(hours)

        if not owner_name:
            owner_name = await self.identities.get_display_name(db, owner_id)

        try:
            service = Service(
                user_id=owner_id,
                user_name=owner_name,
                title=title,
                description=description or "",
                hours=hours,
            )
            db.add(service)
            await db.flush()
        except SQLAlchemyError as e:
            logger.error("Database error creating service for user %s: %s", owner_id, e)
            raise DatabaseError(context={"owner_id": owner_id, "error_type": type(e).__name__})

        logger.info("Service %s created by user %s", service.id, owner_id)
        return service

    async def list_all(self, db: AsyncSession) -> List[Service]:
        """Every service, newest first."""
        try:
            result = await db.execute(select(Service).order_by(*self.newest_first()))
            return list(result.scalars().all())
        except SQLAlchemyError as e:
            logger.error("Database error listing services: %s", e, exc_info=True)
            raise DatabaseError(message="Could not retrieve services. Please try again.")

    def _clean_changes(self, fields):
        changes = super()._clean_changes(fields)
        if "hours" in changes:
            validate_hours(changes["hours"])
        return changes


# ── Singleton Instance ────────────────────────────────────────────────────
service_catalog = ServiceCatalog()
