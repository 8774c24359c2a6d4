"""initial schema

Revision ID: 20261019_000001
Revises:
Create Date: 2026-10-19 00:00:01.000000
"""
from __future__ import annotations

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = "20261019_000001"
down_revision = None
branch_labels = None
depends_on = None


media_type_enum = postgresql.ENUM("book", "movie", "tv", name="media_type", create_type=False)
media_status_enum = postgresql.ENUM(
    "completed",
    "watching",
    "plan_to_watch",
    "on_hold",
    "dropped",
    name="media_status",
    create_type=False,
)


def _user_fk(column: str = "user_id") -> sa.Column:
    return sa.Column(
        column,
        postgresql.UUID(as_uuid=True),
        sa.ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )


def _media_fk() -> sa.Column:
    return sa.Column(
        "media_id",
        sa.String(length=255),
        sa.ForeignKey("media_items.id", ondelete="CASCADE"),
        nullable=False,
    )


def upgrade() -> None:
    """Create users, catalog, library, list, follow, and review tables."""
    media_type_enum.create(op.get_bind(), checkfirst=True)
    media_status_enum.create(op.get_bind(), checkfirst=True)

    op.create_table(
        "users",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("hashed_password", sa.String(length=255), nullable=False),
        sa.Column("display_name", sa.String(length=255), nullable=True),
        sa.Column("bio", sa.Text(), nullable=True),
        sa.Column("avatar_url", sa.String(length=1024), nullable=True),
        sa.Column("is_public", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    op.create_table(
        "media_items",
        sa.Column("id", sa.String(length=255), primary_key=True),
        sa.Column("type", media_type_enum, nullable=False),
        sa.Column("title", sa.String(length=500), nullable=True),
        sa.Column("cover_image", sa.String(length=1024), nullable=True),
        sa.Column("author_or_director", sa.String(length=500), nullable=True),
        sa.Column("year", sa.Integer(), nullable=True),
        sa.Column("genres", postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column("runtime", sa.Integer(), nullable=True),
        sa.Column("episode_runtime", sa.Integer(), nullable=True),
        sa.Column("number_of_episodes", sa.Integer(), nullable=True),
        sa.Column("number_of_seasons", sa.Integer(), nullable=True),
        sa.Column("episodes_per_season", postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column("total_pages", sa.Integer(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_media_items_title", "media_items", ["title"], unique=False)

    op.create_table(
        "user_media",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        _user_fk(),
        _media_fk(),
        sa.Column("status", media_status_enum, nullable=True),
        sa.Column("rating", sa.Float(), nullable=True),
        sa.Column("is_favourite", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("current_episode", sa.Integer(), nullable=True),
        sa.Column("current_season", sa.Integer(), nullable=True),
        sa.Column("current_page", sa.Integer(), nullable=True),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.UniqueConstraint("user_id", "media_id", name="uq_user_media_user_media"),
        sa.CheckConstraint(
            "rating IS NULL OR (rating > 0 AND rating <= 5)", name="ck_user_media_rating_range"
        ),
    )
    op.create_index("ix_user_media_user_id", "user_media", ["user_id"], unique=False)
    op.create_index("ix_user_media_media_id", "user_media", ["media_id"], unique=False)

    op.create_table(
        "user_follows",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        _user_fk("follower_id"),
        _user_fk("following_id"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.UniqueConstraint("follower_id", "following_id", name="uq_user_follows_pair"),
        sa.CheckConstraint("follower_id <> following_id", name="ck_user_follows_no_self_follow"),
    )
    op.create_index("ix_user_follows_follower_id", "user_follows", ["follower_id"], unique=False)
    op.create_index("ix_user_follows_following_id", "user_follows", ["following_id"], unique=False)

    op.create_table(
        "custom_lists",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        _user_fk(),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.UniqueConstraint("user_id", "name", name="uq_custom_lists_user_name"),
    )
    op.create_index("ix_custom_lists_user_id", "custom_lists", ["user_id"], unique=False)

    op.create_table(
        "user_media_custom_lists",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        _user_fk(),
        _media_fk(),
        sa.Column(
            "custom_list_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("custom_lists.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.UniqueConstraint(
            "user_id", "media_id", "custom_list_id", name="uq_user_media_custom_lists_member"
        ),
    )
    op.create_index(
        "ix_user_media_custom_lists_custom_list_id", "user_media_custom_lists", ["custom_list_id"], unique=False
    )
    op.create_index("ix_user_media_custom_lists_media_id", "user_media_custom_lists", ["media_id"], unique=False)
    op.create_index("ix_user_media_custom_lists_user_id", "user_media_custom_lists", ["user_id"], unique=False)

    op.create_table(
        "reviews",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        _user_fk(),
        _media_fk(),
        sa.Column("rating", sa.Integer(), nullable=False),
        sa.Column("text", sa.Text(), nullable=False),
        sa.Column("is_public", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.CheckConstraint("rating >= 1 AND rating <= 5", name="ck_reviews_rating_range"),
    )
    op.create_index("ix_reviews_user_id", "reviews", ["user_id"], unique=False)
    op.create_index("ix_reviews_media_id", "reviews", ["media_id"], unique=False)
    op.create_index("ix_reviews_created_at", "reviews", ["created_at"], unique=False)


def downgrade() -> None:
    """Drop all tables and enum types."""
    for table in (
        "reviews",
        "user_media_custom_lists",
        "custom_lists",
        "user_follows",
        "user_media",
        "media_items",
        "users",
    ):
        op.drop_table(table)
    media_status_enum.drop(op.get_bind(), checkfirst=True)
    media_type_enum.drop(op.get_bind(), checkfirst=True)
