"""initial schema: users, login audit, sessions, plans, purchases

Revision ID: 20261017_initial_schema
Revises:
Create Date: 2026-10-17 09:00:00.000000
"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "20261017_initial_schema"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("password_hash", sa.String(length=255), nullable=False),
        sa.Column(
            "role",
            sa.Enum("user", "admin", name="user_role"),
            nullable=False,
            server_default="user",
        ),
        sa.Column("subscription_days", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("allowed_ips", sa.JSON(), nullable=False),
        sa.Column("is_banned", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("created_at", sa.DateTime(timezone=True)),
        sa.Column("updated_at", sa.DateTime(timezone=True)),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    op.create_table(
        "login_attempts",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("ip_address", sa.String(length=64), nullable=False),
        sa.Column("user_email", sa.String(length=255), nullable=True),
        sa.Column("success", sa.Boolean(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index(
        "ix_login_attempts_created_at", "login_attempts", ["created_at"]
    )
    op.create_index(
        "idx_login_attempts_ip_created",
        "login_attempts",
        ["ip_address", "created_at"],
    )

    op.create_table(
        "processing_sessions",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column(
            "user_id",
            sa.String(length=36),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("approved_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("rejected_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("loaded_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("tested_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index(
        "ix_processing_sessions_user_id", "processing_sessions", ["user_id"]
    )

    op.create_table(
        "subscription_plans",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("name", sa.String(length=128), nullable=False),
        sa.Column("days", sa.Integer(), nullable=False),
        sa.Column("price", sa.Numeric(10, 2), nullable=False),
        sa.Column("description", sa.Text(), nullable=False, server_default=""),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(timezone=True)),
    )
    op.create_index(
        "ix_subscription_plans_is_active", "subscription_plans", ["is_active"]
    )

    # plan_id is checked on write; deleting a plan keeps the purchase history
    op.create_table(
        "user_purchases",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column(
            "user_id",
            sa.String(length=36),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("plan_id", sa.String(length=36), nullable=False),
        sa.Column("days_added", sa.Integer(), nullable=False),
        sa.Column("amount_paid", sa.Numeric(10, 2), nullable=False),
        sa.Column(
            "payment_method", sa.String(length=32), nullable=False, server_default="manual"
        ),
        sa.Column("created_at", sa.DateTime(timezone=True)),
    )
    op.create_index("ix_user_purchases_user_id", "user_purchases", ["user_id"])
    op.create_index("ix_user_purchases_created_at", "user_purchases", ["created_at"])


def downgrade() -> None:
    op.drop_index("ix_user_purchases_created_at", table_name="user_purchases")
    op.drop_index("ix_user_purchases_user_id", table_name="user_purchases")
    op.drop_table("user_purchases")
    op.drop_index("ix_subscription_plans_is_active", table_name="subscription_plans")
    op.drop_table("subscription_plans")
    op.drop_index("ix_processing_sessions_user_id", table_name="processing_sessions")
    op.drop_table("processing_sessions")
    op.drop_index("idx_login_attempts_ip_created", table_name="login_attempts")
    op.drop_index("ix_login_attempts_created_at", table_name="login_attempts")
    op.drop_table("login_attempts")
    op.drop_index("ix_users_email", table_name="users")
    op.drop_table("users")
    sa.Enum(name="user_role").drop(op.get_bind(), checkfirst=True)
