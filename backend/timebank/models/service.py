"""
TimeBank Backend — Service SQLAlchemy Model
============================================

What:  ORM model for the `services` table: an offer of time/skills by a user.

`user_name` is a snapshot of the owner's display name taken when the service
was created. It is shown in listings as-is and is never consulted for
authorization; only `user_id` is.
"""

from datetime import datetime, timezone

from sqlalchemy import DateTime, Float, ForeignKey, Index, Integer, String, Text, text
from sqlalchemy.orm import Mapped, mapped_column

from timebank.database import Base


class Service(Base):
    """A service offered by one user, priced in hours."""

    __tablename__ = "services"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    user_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("users.id"),
        nullable=False,
        comment="Owner; the only field used for authorization",
    )

    user_name: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
        default="",
        comment="Owner display name captured at creation (cached value)",
    )

    title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    hours: Mapped[float] = mapped_column(Float, nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        server_default=text("CURRENT_TIMESTAMP"),
    )

    __table_args__ = (
        Index("idx_services_user_id", "user_id"),
    )

    def __repr__(self) -> str:
        return f"<Service(id={self.id}, user_id={self.user_id}, title='{self.title}')>"
