"""
TimeBank Backend — LearningResource SQLAlchemy Model
=====================================================

What:  ORM model for the `learning_resources` table: a document, video or
       other file a user shares with the community.

Lifecycle:
    1. Created only together with an uploaded file (file_path is NOT NULL)
    2. Title/description may be edited by the owner
    3. Deleted by the owner: the row goes first, then the file

    file_path holds the generated asset filename. The asset itself knows
    nothing about this row; the link is found by filename lookup.
"""

from datetime import datetime, timezone

from sqlalchemy import DateTime, ForeignKey, Index, Integer, String, Text, text
from sqlalchemy.orm import Mapped, mapped_column

from timebank.database import Base


class LearningResource(Base):
    """A shared learning resource backed by exactly one stored file."""

    __tablename__ = "learning_resources"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    user_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("users.id"),
        nullable=False,
    )

    title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")

    file_type: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        default="",
        comment="Client-supplied tag: pdf, video, notes, ...",
    )

    file_path: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        comment="Filename of the backing asset in the storage root",
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        server_default=text("CURRENT_TIMESTAMP"),
    )

    __table_args__ = (
        Index("idx_learning_resources_user_id", "user_id"),
        Index("idx_learning_resources_file_path", "file_path"),
    )

    def __repr__(self) -> str:
        return (
            f"<LearningResource(id={self.id}, user_id={self.user_id}, "
            f"file_path='{self.file_path}')>"
        )
