"""Create app_metadata key/value table.

Revision ID: 3f1c9a7e52b4
Revises: None
Create Date: 2026-01-05 12:00:00 UTC

Migration naming convention:
- Filename: YYYYMMDD_HHMMSS_slug.py (chronological sorting)
- Revision ID: Random hash (collision-proof for parallel branches)
"""

from __future__ import annotations

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision = "3f1c9a7e52b4"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "app_metadata",
        sa.Column("key", sa.String(length=100), primary_key=True),
        sa.Column("value", sa.Text(), nullable=False),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
    )


def downgrade() -> None:
    op.drop_table("app_metadata")
