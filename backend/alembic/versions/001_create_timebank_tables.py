"""Create users, services, learning_resources and contact_messages

Revision ID: 001
Revises: None
Create Date: 2024-06-01 00:00:00.000000+00:00

What:  Initial schema for the TimeBank backend.
How:   Integer autoincrement keys, TIMESTAMP WITH TIME ZONE creation times,
       foreign keys from every owned table to users.id.

Rollback: downgrade() drops all four tables (destructive).
"""

from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa

# revision identifiers
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _created_at() -> sa.Column:
    return sa.Column(
        "created_at",
        sa.TIMESTAMP(timezone=True),
        server_default=sa.text("CURRENT_TIMESTAMP"),
        nullable=False,
    )


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column(
            "email",
            sa.String(255),
            nullable=False,
            comment="Login identifier; unique across all users",
        ),
        sa.Column(
            "password_hash",
            sa.String(255),
            nullable=False,
            comment="bcrypt hash of the password",
        ),
        sa.Column("bio", sa.Text(), nullable=True),
        sa.Column("skills_offered", sa.Text(), nullable=True),
        sa.Column("skills_needed", sa.Text(), nullable=True),
        sa.Column("location", sa.String(255), nullable=True),
        sa.Column("experience_level", sa.String(50), nullable=True),
        sa.Column(
            "profile_pic",
            sa.String(255),
            nullable=True,
            comment="Filename of the profile picture in the asset store",
        ),
        _created_at(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    op.create_table(
        "services",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column(
            "user_id",
            sa.Integer(),
            nullable=False,
            comment="Owner; the only field used for authorization",
        ),
        sa.Column(
            "user_name",
            sa.String(100),
            nullable=False,
            server_default=sa.text("''"),
            comment="Owner display name captured at creation (cached value)",
        ),
        sa.Column("title", sa.String(200), nullable=False),
        sa.Column("description", sa.Text(), nullable=False, server_default=sa.text("''")),
        sa.Column("hours", sa.Float(), nullable=False),
        _created_at(),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("idx_services_user_id", "services", ["user_id"])

    op.create_table(
        "learning_resources",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("title", sa.String(200), nullable=False),
        sa.Column("description", sa.Text(), nullable=False, server_default=sa.text("''")),
        sa.Column(
            "file_type",
            sa.String(50),
            nullable=False,
            server_default=sa.text("''"),
            comment="Client-supplied tag: pdf, video, notes, ...",
        ),
        sa.Column(
            "file_path",
            sa.String(255),
            nullable=False,
            comment="Filename of the backing asset in the storage root",
        ),
        _created_at(),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("idx_learning_resources_user_id", "learning_resources", ["user_id"])
    op.create_index("idx_learning_resources_file_path", "learning_resources", ["file_path"])

    op.create_table(
        "contact_messages",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("phone", sa.String(50), nullable=False),
        sa.Column("subject", sa.String(200), nullable=False),
        sa.Column("message", sa.Text(), nullable=False),
        _created_at(),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"]),
        sa.PrimaryKeyConstraint("id"),
    )


def downgrade() -> None:
    op.drop_table("contact_messages")
    op.drop_index("idx_learning_resources_file_path", table_name="learning_resources")
    op.drop_index("idx_learning_resources_user_id", table_name="learning_resources")
    op.drop_table("learning_resources")
    op.drop_index("idx_services_user_id", table_name="services")
    op.drop_table("services")
    op.drop_index("ix_users_email", table_name="users")
    op.drop_table("users")
