"""initial shared lists schema

Revision ID: 5c1e2a7b9d04
Revises:
Create Date: 2026-10-19 09:12:41.118204

"""

from collections.abc import Sequence

import sqlalchemy as sa

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "5c1e2a7b9d04"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def timestamps() -> list[sa.Column]:
    return [
        sa.Column(
            "created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False
        ),
        sa.Column(
            "updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False
        ),
    ]


def created_at() -> sa.Column:
    return sa.Column(
        "created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False
    )


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("password_hash", sa.String(length=255), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=True),
        sa.Column("username", sa.String(length=100), nullable=True, unique=True),
        *timestamps(),
    )
    op.create_index(op.f("ix_users_email"), "users", ["email"], unique=True)

    op.create_table(
        "lists",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("owner_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("description", sa.String(), nullable=True),
        sa.Column(
            "public_access_mode", sa.String(length=20), server_default="none", nullable=False
        ),
        *timestamps(),
    )
    op.create_index(op.f("ix_lists_owner_id"), "lists", ["owner_id"])

    op.create_table(
        "list_settings",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "list_id",
            sa.Integer(),
            sa.ForeignKey("lists.id", ondelete="CASCADE"),
            nullable=False,
            unique=True,
        ),
        sa.Column("enable_status", sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.Column("enable_voting", sa.Boolean(), server_default=sa.true(), nullable=False),
        sa.Column("enable_downvote", sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.Column("enable_rating", sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.Column("enable_shuffle", sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.Column("enable_ordering", sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.Column("enable_comments", sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.Column("allow_multiple_tags", sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.Column("sort_by", sa.String(length=20), server_default="manual", nullable=False),
    )

    op.create_table(
        "list_statuses",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "list_id", sa.Integer(), sa.ForeignKey("lists.id", ondelete="CASCADE"), nullable=False
        ),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("position", sa.Integer(), server_default="0", nullable=False),
    )
    op.create_index(op.f("ix_list_statuses_list_id"), "list_statuses", ["list_id"])

    op.create_table(
        "list_members",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "list_id", sa.Integer(), sa.ForeignKey("lists.id", ondelete="CASCADE"), nullable=False
        ),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("role", sa.String(length=20), server_default="view", nullable=False),
        sa.Column("invited_by", sa.Integer(), sa.ForeignKey("users.id"), nullable=True),
        created_at(),
        sa.UniqueConstraint("list_id", "user_id", name="uq_list_members_list_user"),
    )
    op.create_index(op.f("ix_list_members_list_id"), "list_members", ["list_id"])
    op.create_index(op.f("ix_list_members_user_id"), "list_members", ["user_id"])

    op.create_table(
        "list_items",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "list_id", sa.Integer(), sa.ForeignKey("lists.id", ondelete="CASCADE"), nullable=False
        ),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("title", sa.String(length=500), nullable=False),
        sa.Column("description", sa.String(), nullable=True),
        sa.Column("url", sa.String(length=2048), nullable=True),
        sa.Column("status", sa.String(length=100), nullable=True),
        sa.Column("tags", sa.JSON(), server_default="[]", nullable=False),
        sa.Column("completed", sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.Column("position", sa.Integer(), server_default="0", nullable=False),
        sa.Column("upvotes", sa.Integer(), server_default="0", nullable=False),
        sa.Column("metadata", sa.JSON(), server_default="{}", nullable=False),
        *timestamps(),
    )
    op.create_index(op.f("ix_list_items_list_id"), "list_items", ["list_id"])
    op.create_index(op.f("ix_list_items_user_id"), "list_items", ["user_id"])

    op.create_table(
        "list_votes",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "list_item_id",
            sa.Integer(),
            sa.ForeignKey("list_items.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("vote_type", sa.SmallInteger(), nullable=False),
        created_at(),
        sa.UniqueConstraint("list_item_id", "user_id", name="uq_list_votes_item_user"),
        sa.CheckConstraint("vote_type IN (1, -1)", name="ck_list_votes_vote_type"),
    )
    op.create_index(op.f("ix_list_votes_list_item_id"), "list_votes", ["list_item_id"])
    op.create_index(op.f("ix_list_votes_user_id"), "list_votes", ["user_id"])

    op.create_table(
        "list_ratings",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "list_item_id",
            sa.Integer(),
            sa.ForeignKey("list_items.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("rating", sa.SmallInteger(), nullable=False),
        *timestamps(),
        sa.UniqueConstraint("list_item_id", "user_id", name="uq_list_ratings_item_user"),
        sa.CheckConstraint("rating BETWEEN 1 AND 5", name="ck_list_ratings_rating"),
    )
    op.create_index(op.f("ix_list_ratings_list_item_id"), "list_ratings", ["list_item_id"])
    op.create_index(op.f("ix_list_ratings_user_id"), "list_ratings", ["user_id"])

    op.create_table(
        "list_item_comments",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "list_item_id",
            sa.Integer(),
            sa.ForeignKey("list_items.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("comment", sa.Text(), nullable=False),
        *timestamps(),
    )
    op.create_index(
        op.f("ix_list_item_comments_list_item_id"), "list_item_comments", ["list_item_id"]
    )
    op.create_index(op.f("ix_list_item_comments_user_id"), "list_item_comments", ["user_id"])

    op.create_table(
        "list_invite_links",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "list_id", sa.Integer(), sa.ForeignKey("lists.id", ondelete="CASCADE"), nullable=False
        ),
        sa.Column("created_by", sa.Integer(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("role", sa.String(length=20), nullable=False),
        sa.Column("token", sa.String(length=128), nullable=False),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("max_uses", sa.Integer(), nullable=True),
        sa.Column("used_count", sa.Integer(), server_default="0", nullable=False),
        *timestamps(),
        sa.CheckConstraint("used_count >= 0", name="ck_list_invite_links_used_count"),
        sa.CheckConstraint(
            "max_uses IS NULL OR max_uses >= 1", name="ck_list_invite_links_max_uses"
        ),
    )
    op.create_index(op.f("ix_list_invite_links_list_id"), "list_invite_links", ["list_id"])
    op.create_index(op.f("ix_list_invite_links_token"), "list_invite_links", ["token"], unique=True)

    op.create_table(
        "user_push_tokens",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("token", sa.String(length=255), nullable=False),
        sa.Column("platform", sa.String(length=20), nullable=False),
        *timestamps(),
        sa.UniqueConstraint("user_id", "token", name="uq_user_push_tokens_user_token"),
    )
    op.create_index(op.f("ix_user_push_tokens_user_id"), "user_push_tokens", ["user_id"])


def downgrade() -> None:
    for table in (
        "user_push_tokens",
        "list_invite_links",
        "list_item_comments",
        "list_ratings",
        "list_votes",
        "list_items",
        "list_members",
        "list_statuses",
        "list_settings",
        "lists",
        "users",
    ):
        op.drop_table(table)
