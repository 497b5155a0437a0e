"""add tags for posts and itineraries

Revision ID: 20261020000000
Revises: 20261019000000
Create Date: 2026-10-20 00:00:00.000000
"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa

revision = "20261020000000"
down_revision = "20261019000000"
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "tags",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("tag_name", sa.String(length=50), nullable=False),
        sa.Column(
            "created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False
        ),
    )
    op.create_index("ix_tags_tag_name", "tags", ["tag_name"], unique=True)

    for table, item_fk, item_target, unique_name in (
        ("post_tags", "post_id", "posts.id", "uq_post_tag_post_tag"),
        ("itinerary_tags", "itinerary_id", "itineraries.id", "uq_itinerary_tag_itinerary_tag"),
    ):
        op.create_table(
            table,
            sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
            sa.Column(
                item_fk,
                sa.Integer(),
                sa.ForeignKey(item_target, ondelete="CASCADE"),
                nullable=False,
            ),
            sa.Column(
                "tag_id",
                sa.Integer(),
                sa.ForeignKey("tags.id", ondelete="CASCADE"),
                nullable=False,
            ),
            sa.UniqueConstraint(item_fk, "tag_id", name=unique_name),
        )
        op.create_index(f"ix_{table}_{item_fk}", table, [item_fk])
        op.create_index(f"ix_{table}_tag_id", table, ["tag_id"])


def downgrade() -> None:
    op.drop_table("itinerary_tags")
    op.drop_table("post_tags")
    op.drop_index("ix_tags_tag_name", table_name="tags")
    op.drop_table("tags")
