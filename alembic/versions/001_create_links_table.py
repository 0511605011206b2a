"""Create links table.

Revision ID: 001
Revises:
Create Date: 2026-10-18

"""
from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create the links table."""
    op.create_table(
        "links",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column(
            "key",
            sa.String(191),
            nullable=False,
            comment="Normalized short key (e.g., 'abc' or 'docs/intro')",
        ),
        sa.Column(
            "url",
            sa.Text(),
            nullable=False,
            comment="The destination URL",
        ),
        sa.Column(
            "title",
            sa.String(191),
            nullable=True,
            comment="Open Graph title of the destination, truncated",
        ),
        sa.Column(
            "description",
            sa.String(280),
            nullable=True,
            comment="Open Graph description of the destination, truncated",
        ),
        sa.Column(
            "image",
            sa.Text(),
            nullable=True,
            comment="First Open Graph image of the destination",
        ),
        sa.Column(
            "archived",
            sa.Boolean(),
            nullable=False,
            server_default=sa.text("false"),
            comment="Archived links never redirect again",
        ),
        sa.Column(
            "clicks",
            sa.Integer(),
            nullable=False,
            server_default=sa.text("0"),
            comment="Total click count (eventually consistent)",
        ),
        sa.Column(
            "user_id",
            sa.String(191),
            nullable=True,
            comment="Owning principal, null for anonymous links",
        ),
        sa.Column(
            "expires_at",
            sa.DateTime(timezone=True),
            nullable=True,
            comment="Optional expiration timestamp",
        ),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_links")),
        sa.UniqueConstraint("key", name=op.f("uq_links_key")),
    )
    op.create_index(op.f("ix_links_user_id"), "links", ["user_id"])
    op.create_index("ix_links_created_at", "links", ["created_at"])
    op.create_index("ix_links_clicks", "links", ["clicks"])


def downgrade() -> None:
    """Drop the links table."""
    op.drop_index("ix_links_clicks", table_name="links")
    op.drop_index("ix_links_created_at", table_name="links")
    op.drop_index(op.f("ix_links_user_id"), table_name="links")
    op.drop_table("links")
