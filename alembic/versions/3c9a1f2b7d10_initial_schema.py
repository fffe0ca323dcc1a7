"""initial schema

Revision ID: 3c9a1f2b7d10
Revises:
Create Date: 2024-11-18 09:12:44.301562

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "3c9a1f2b7d10"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps(updated: bool = True) -> list:
    columns = [sa.Column("created_at", sa.DateTime(timezone=True), nullable=False)]
    if updated:
        columns.append(sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False))
    return columns


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("avatar_url", sa.String(length=500), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_users")),
        sa.UniqueConstraint("email", name=op.f("uq_users_email")),
    )

    op.create_table(
        "friends",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("user_id", sa.String(length=36), nullable=False),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=True),
        sa.Column("phone", sa.String(length=50), nullable=True),
        sa.Column("avatar_url", sa.String(length=500), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(
            ["user_id"], ["users.id"], name=op.f("fk_friends_user_id_users")
        ),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_friends")),
    )
    op.create_index(op.f("ix_friends_user_id"), "friends", ["user_id"], unique=False)

    op.create_table(
        "groups",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("owner_id", sa.String(length=36), nullable=False),
        sa.Column("budget_min", sa.Float(), nullable=True),
        sa.Column("budget_max", sa.Float(), nullable=True),
        sa.Column("draw_date", sa.Date(), nullable=True),
        sa.Column("exchange_date", sa.Date(), nullable=True),
        sa.Column("is_drawn", sa.Boolean(), server_default=sa.false(), nullable=False),
        *_timestamps(),
        sa.CheckConstraint(
            "budget_min IS NULL OR budget_max IS NULL OR budget_min <= budget_max",
            name=op.f("ck_groups_budget_range"),
        ),
        sa.ForeignKeyConstraint(
            ["owner_id"], ["users.id"], name=op.f("fk_groups_owner_id_users")
        ),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_groups")),
    )
    op.create_index(op.f("ix_groups_owner_id"), "groups", ["owner_id"], unique=False)

    op.create_table(
        "gift_ideas",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("friend_id", sa.String(length=36), nullable=False),
        sa.Column("user_id", sa.String(length=36), nullable=False),
        sa.Column("title", sa.String(length=200), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("price_range", sa.String(length=10), nullable=True),
        sa.Column("url", sa.String(length=1000), nullable=True),
        sa.Column("image_url", sa.String(length=1000), nullable=True),
        sa.Column("priority", sa.String(length=10), nullable=False),
        sa.Column("is_purchased", sa.Boolean(), server_default=sa.false(), nullable=False),
        *_timestamps(),
        sa.CheckConstraint(
            "priority IN ('low','medium','high')",
            name=op.f("ck_gift_ideas_priority_enum"),
        ),
        sa.CheckConstraint(
            "price_range IS NULL OR price_range IN ('low','medium','high','luxury')",
            name=op.f("ck_gift_ideas_price_range_enum"),
        ),
        sa.ForeignKeyConstraint(
            ["friend_id"], ["friends.id"], name=op.f("fk_gift_ideas_friend_id_friends")
        ),
        sa.ForeignKeyConstraint(
            ["user_id"], ["users.id"], name=op.f("fk_gift_ideas_user_id_users")
        ),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_gift_ideas")),
    )
    op.create_index(
        op.f("ix_gift_ideas_friend_id"), "gift_ideas", ["friend_id"], unique=False
    )
    op.create_index(op.f("ix_gift_ideas_user_id"), "gift_ideas", ["user_id"], unique=False)

    op.create_table(
        "group_members",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("group_id", sa.String(length=36), nullable=False),
        sa.Column("friend_id", sa.String(length=36), nullable=True),
        sa.Column("user_id", sa.String(length=36), nullable=True),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=True),
        sa.Column("is_confirmed", sa.Boolean(), server_default=sa.false(), nullable=False),
        *_timestamps(updated=False),
        sa.ForeignKeyConstraint(
            ["friend_id"],
            ["friends.id"],
            name=op.f("fk_group_members_friend_id_friends"),
            ondelete="SET NULL",
        ),
        sa.ForeignKeyConstraint(
            ["group_id"], ["groups.id"], name=op.f("fk_group_members_group_id_groups")
        ),
        sa.ForeignKeyConstraint(
            ["user_id"],
            ["users.id"],
            name=op.f("fk_group_members_user_id_users"),
            ondelete="SET NULL",
        ),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_group_members")),
    )
    op.create_index(
        op.f("ix_group_members_group_id"), "group_members", ["group_id"], unique=False
    )

    op.create_table(
        "draw_results",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("group_id", sa.String(length=36), nullable=False),
        sa.Column("giver_id", sa.String(length=36), nullable=False),
        sa.Column("receiver_id", sa.String(length=36), nullable=False),
        sa.Column("is_revealed", sa.Boolean(), server_default=sa.false(), nullable=False),
        *_timestamps(updated=False),
        sa.CheckConstraint(
            "giver_id <> receiver_id",
            name=op.f("ck_draw_results_no_self_assignment"),
        ),
        sa.ForeignKeyConstraint(
            ["giver_id"],
            ["group_members.id"],
            name=op.f("fk_draw_results_giver_id_group_members"),
        ),
        sa.ForeignKeyConstraint(
            ["group_id"], ["groups.id"], name=op.f("fk_draw_results_group_id_groups")
        ),
        sa.ForeignKeyConstraint(
            ["receiver_id"],
            ["group_members.id"],
            name=op.f("fk_draw_results_receiver_id_group_members"),
        ),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_draw_results")),
        sa.UniqueConstraint("group_id", "giver_id", name="uq_draw_results_giver"),
        sa.UniqueConstraint("group_id", "receiver_id", name="uq_draw_results_receiver"),
    )
    op.create_index(
        op.f("ix_draw_results_group_id"), "draw_results", ["group_id"], unique=False
    )

    op.create_table(
        "wishlists",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("user_id", sa.String(length=36), nullable=False),
        sa.Column("group_id", sa.String(length=36), nullable=True),
        sa.Column("title", sa.String(length=200), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("url", sa.String(length=1000), nullable=True),
        sa.Column("price", sa.Float(), nullable=True),
        sa.Column("priority", sa.String(length=10), nullable=False),
        *_timestamps(),
        sa.CheckConstraint(
            "priority IN ('low','medium','high')",
            name=op.f("ck_wishlists_priority_enum"),
        ),
        sa.CheckConstraint(
            "price IS NULL OR price >= 0", name=op.f("ck_wishlists_price_non_negative")
        ),
        sa.ForeignKeyConstraint(
            ["group_id"],
            ["groups.id"],
            name=op.f("fk_wishlists_group_id_groups"),
            ondelete="SET NULL",
        ),
        sa.ForeignKeyConstraint(
            ["user_id"], ["users.id"], name=op.f("fk_wishlists_user_id_users")
        ),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_wishlists")),
    )
    op.create_index(op.f("ix_wishlists_group_id"), "wishlists", ["group_id"], unique=False)
    op.create_index(op.f("ix_wishlists_user_id"), "wishlists", ["user_id"], unique=False)


def downgrade() -> None:
    op.drop_index(op.f("ix_wishlists_user_id"), table_name="wishlists")
    op.drop_index(op.f("ix_wishlists_group_id"), table_name="wishlists")
    op.drop_table("wishlists")
    op.drop_index(op.f("ix_draw_results_group_id"), table_name="draw_results")
    op.drop_table("draw_results")
    op.drop_index(op.f("ix_group_members_group_id"), table_name="group_members")
    op.drop_table("group_members")
    op.drop_index(op.f("ix_gift_ideas_user_id"), table_name="gift_ideas")
    op.drop_index(op.f("ix_gift_ideas_friend_id"), table_name="gift_ideas")
    op.drop_table("gift_ideas")
    op.drop_index(op.f("ix_groups_owner_id"), table_name="groups")
    op.drop_table("groups")
    op.drop_index(op.f("ix_friends_user_id"), table_name="friends")
    op.drop_table("friends")
    op.drop_table("users")
