"""
TimeBank Backend — Contact Service
===================================

Stores contact messages. Messages are append-only: there is no update or
delete path, and the sender is always the authenticated caller.
"""

import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from timebank.exceptions import DatabaseError, ValidationError
from timebank.models.contact_message import ContactMessage

logger = logging.getLogger(__name__)


class ContactService:

    async def send(
        self,
        db: AsyncSession,
        sender_id: int,
        name: str,
        phone: str,
        subject: str,
        message: str,
    ) -> ContactMessage:
        """
        Record a message from `sender_id`.

        Raises:
            ValidationError: any field missing or blank.
            DatabaseError: insert failed.
        """
        values = {
            "name": (name or "").strip(),
            "phone": (phone or "").strip(),
            "subject": (subject or "").strip(),
            "message": (message or "").strip(),
        }
        missing = sorted(key for key, value in values.items() if not value)
        if missing:
            raise ValidationError(
                message="All fields are required",
                context={"missing": missing},
            )

        try:
            contact = ContactMessage(user_id=sender_id, **values)
            db.add(contact)
            await db.flush()
        except SQLAlchemyError as e:
            logger.error("Database error storing contact message from %s: %s", sender_id, e)
            raise DatabaseError(context={"sender_id": sender_id, "error_type": type(e).__name__})

        logger.info("Contact message %s stored from user %s", contact.id, sender_id)
        return contact


contact_service = ContactService()
