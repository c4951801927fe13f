"""Add storage bucket registry

Revision ID: 20261018_0005
Revises: 20261018_0004
Create Date: 2026-10-18

Bucket name -> access tier, matching
``siteaccess.services.storage.DEFAULT_BUCKETS``.
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

from siteaccess.core.config import settings


revision: str = "20261018_0005"
down_revision: Union[str, None] = "20261018_0004"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

APP_ROLE = settings.DATABASE_APP_ROLE

BUCKETS = (
    ("project-logos", "public"),
    ("floor-plans", "member"),
    ("invoice-pdfs", "member"),
    ("tenant-documents", "member"),
    ("portal-documents", "token"),
    ("boq-uploads", "authenticated"),
)


def upgrade() -> None:
    buckets = op.create_table(
        "storage_buckets",
        sa.Column("name", sa.String(length=63), nullable=False),
        sa.Column("tier", sa.String(length=32), nullable=False),
        sa.Column("public", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.PrimaryKeyConstraint("name"),
        sa.CheckConstraint(
            "tier IN ('public', 'authenticated', 'member', 'token')",
            name="ck_storage_buckets_tier",
        ),
    )
    op.bulk_insert(
        buckets,
        [{"name": name, "tier": tier, "public": tier == "public"} for name, tier in BUCKETS],
    )
    op.execute(f"GRANT SELECT ON storage_buckets TO {APP_ROLE}")


def downgrade() -> None:
    op.drop_table("storage_buckets")
