"""initial schema

Revision ID: 001_initial_schema
Revises:
Create Date: 2025-01-01 00:00:00.000000
"""
from typing import Sequence, Union

import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import ARRAY, UUID

from alembic import op

revision: str = "001_initial_schema"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

DEFAULT_CATEGORIES = ["Clothing", "Electronics", "Furniture", "Home Goods", "Other", "Services"]


def upgrade() -> None:
    # Listings
    op.create_table(
        "posts",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("title", sa.String(200), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("price", sa.Numeric(10, 2), nullable=False),
        sa.Column("category", ARRAY(sa.String(64)), nullable=False),
        sa.Column("images", ARRAY(sa.Text()), nullable=False),
        sa.Column("user_id", sa.String(64), nullable=False),
        sa.Column(
            "show_in_homepage",
            sa.Boolean(),
            nullable=False,
            server_default=sa.true(),
        ),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
        sa.CheckConstraint("price >= 0", name="ck_posts_price_non_negative"),
        sa.CheckConstraint("cardinality(category) > 0", name="ck_posts_category_non_empty"),
    )

    op.create_index("ix_posts_user_id", "posts", ["user_id"])
    op.create_index("ix_posts_homepage_created_at", "posts", ["show_in_homepage", "created_at"])
    # GIN index backs the array-containment category filter
    op.create_index("ix_posts_category", "posts", ["category"], postgresql_using="gin")

    # Category vocabulary
    categories = op.create_table(
        "categories",
        sa.Column("id", UUID(as_uuid=True), primary_key=True, server_default=sa.text("gen_random_uuid()")),
        sa.Column("name", sa.String(64), nullable=False, unique=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
    )
    op.bulk_insert(categories, [{"name": name} for name in DEFAULT_CATEGORIES])


def downgrade() -> None:
    op.drop_table("categories")
    op.drop_index("ix_posts_category", table_name="posts")
    op.drop_table("posts")
