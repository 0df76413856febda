"""initial schema: users, verification codes, contacts, attachments, insights, case studies

Revision ID: 0001_initial
Revises:
Create Date: 2026-10-19 09:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy import inspect


# revision identifiers, used by Alembic.
revision: str = "0001_initial"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=False), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=False), nullable=False),
    ]


def upgrade() -> None:
    """Upgrade schema."""
    bind = op.get_bind()
    existing_tables = set(inspect(bind).get_table_names())

    if "users" not in existing_tables:
        op.create_table(
            "users",
            sa.Column("id", sa.String(36), primary_key=True, nullable=False),
            sa.Column("username", sa.String(64), nullable=False, unique=True),
            sa.Column("email", sa.String(320), nullable=False, unique=True),
            sa.Column("password_hash", sa.String(255), nullable=False),
            sa.Column("is_admin", sa.Boolean(), nullable=False, server_default=sa.true()),
            sa.Column("email_verified", sa.Boolean(), nullable=False, server_default=sa.false()),
            *_timestamps(),
        )

    if "verification_codes" not in existing_tables:
        op.create_table(
            "verification_codes",
            sa.Column("id", sa.String(36), primary_key=True, nullable=False),
            sa.Column("user_id", sa.String(36), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
            sa.Column("code", sa.String(6), nullable=False),
            sa.Column("type", sa.String(32), nullable=False),
            sa.Column("expires_at", sa.DateTime(timezone=False), nullable=False),
            sa.Column("used", sa.Boolean(), nullable=False, server_default=sa.false()),
            sa.Column("created_at", sa.DateTime(timezone=False), nullable=False),
        )
        op.create_index("idx_verification_codes_lookup", "verification_codes", ["user_id", "code", "type"])
        op.create_index("idx_verification_codes_expires_at", "verification_codes", ["expires_at"])

    if "contacts" not in existing_tables:
        op.create_table(
            "contacts",
            sa.Column("id", sa.String(36), primary_key=True, nullable=False),
            sa.Column("name", sa.String(255), nullable=False),
            sa.Column("email", sa.String(320), nullable=False),
            sa.Column("company", sa.String(255), nullable=True),
            sa.Column("message", sa.Text(), nullable=False),
            sa.Column("created_at", sa.DateTime(timezone=False), nullable=False),
        )
        op.create_index("idx_contacts_created_at", "contacts", ["created_at"])

    if "attachments" not in existing_tables:
        op.create_table(
            "attachments",
            sa.Column("id", sa.String(36), primary_key=True, nullable=False),
            sa.Column("contact_id", sa.String(36), sa.ForeignKey("contacts.id", ondelete="CASCADE"), nullable=False),
            sa.Column("file_name", sa.String(255), nullable=False),
            sa.Column("original_name", sa.String(255), nullable=False),
            sa.Column("mime_type", sa.String(128), nullable=False),
            sa.Column("size", sa.Integer(), nullable=False),
            sa.Column("file_path", sa.String(1024), nullable=False),
            sa.Column("created_at", sa.DateTime(timezone=False), nullable=False),
        )
        op.create_index("idx_attachments_contact_id", "attachments", ["contact_id"])

    if "insights" not in existing_tables:
        op.create_table(
            "insights",
            sa.Column("id", sa.String(36), primary_key=True, nullable=False),
            sa.Column("title", sa.String(255), nullable=False),
            sa.Column("slug", sa.String(255), nullable=False, unique=True),
            sa.Column("excerpt", sa.Text(), nullable=False),
            sa.Column("content", sa.Text(), nullable=False),
            sa.Column("published", sa.Boolean(), nullable=False, server_default=sa.false()),
            *_timestamps(),
        )
        op.create_index("idx_insights_published", "insights", ["published"])
        op.create_index("idx_insights_created_at", "insights", ["created_at"])

    if "case_studies" not in existing_tables:
        op.create_table(
            "case_studies",
            sa.Column("id", sa.String(36), primary_key=True, nullable=False),
            sa.Column("title", sa.String(255), nullable=False),
            sa.Column("slug", sa.String(255), nullable=False, unique=True),
            sa.Column("summary", sa.Text(), nullable=False),
            sa.Column("challenge", sa.Text(), nullable=False),
            sa.Column("solution", sa.Text(), nullable=False),
            sa.Column("results", sa.Text(), nullable=False),
            sa.Column("client_type", sa.String(255), nullable=False),
            sa.Column("duration", sa.String(128), nullable=False),
            sa.Column("key_outcomes", sa.JSON(), nullable=False),
            sa.Column("published", sa.Boolean(), nullable=False, server_default=sa.false()),
            *_timestamps(),
        )
        op.create_index("idx_case_studies_published", "case_studies", ["published"])
        op.create_index("idx_case_studies_created_at", "case_studies", ["created_at"])


def downgrade() -> None:
    """Downgrade schema."""
    for table in ("case_studies", "insights", "attachments", "contacts", "verification_codes", "users"):
        op.drop_table(table)
