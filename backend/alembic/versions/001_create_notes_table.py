"""Create notes table

Revision ID: 001
Revises: None
Create Date: 2026-10-18 00:00:00.000000+00:00

What:  Creates the `notes` table holding shared study notes.
How:   UUID primary key, JSON image list, TIMESTAMP WITH TIME ZONE.

Rollback: downgrade() drops the table entirely (destructive: all data is lost).
"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

# revision identifiers
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create the notes table with its indexes. See app/models/note.py."""
    op.create_table(
        "notes",
        sa.Column("id", sa.Uuid(as_uuid=True), nullable=False),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("author_name", sa.String(255), nullable=False),
        sa.Column("paper", sa.String(50), nullable=False),
        sa.Column("chapter_id", sa.Integer(), nullable=False),
        # Storage paths ("/uploads/<name>") in upload order
        sa.Column("images", sa.JSON(), nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_index(
        "idx_notes_created_at",
        "notes",
        [sa.text("created_at DESC")],
    )
    op.create_index(
        "idx_notes_paper_chapter",
        "notes",
        ["paper", "chapter_id"],
    )


def downgrade() -> None:
    """Drop the notes table and every note in it."""
    op.drop_index("idx_notes_paper_chapter", table_name="notes")
    op.drop_index("idx_notes_created_at", table_name="notes")
    op.drop_table("notes")
