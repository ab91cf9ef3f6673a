"""
TimeBank Backend — User SQLAlchemy Model
=========================================

What:  ORM model for the `users` table.
Who:   Written by IdentityService (register, update_profile); read by every
       service that needs an owner's display name.

Table Design:
    - email: unique, compared case-sensitively as stored
    - password_hash: bcrypt hash, never the plaintext password
    - profile_pic: filename of an asset in the storage root (nullable)
    - Users are never hard-deleted.
"""

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import DateTime, Integer, String, Text, text
from sqlalchemy.orm import Mapped, mapped_column

from timebank.database import Base


class User(Base):
    """A registered member of the marketplace."""

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    name: Mapped[str] = mapped_column(String(100), nullable=False)

    email: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        unique=True,
        index=True,
        comment="Login identifier; unique across all users",
    )

    password_hash: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        comment="bcrypt hash of the password",
    )

    # ── Profile ───────────────────────────────────────────────────────────
    bio: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    skills_offered: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    skills_needed: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    location: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    experience_level: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)

    profile_pic: Mapped[Optional[str]] = mapped_column(
        String(255),
        nullable=True,
        default=None,
        comment="Filename of the profile picture in the asset store",
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        server_default=text("CURRENT_TIMESTAMP"),
    )

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email='{self.email}')>"
