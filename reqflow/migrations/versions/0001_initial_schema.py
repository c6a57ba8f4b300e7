"""Initial schema: users, requests, request history

Revision ID: 0001
Revises:
Create Date: 2026-10-19

Tables added:
- users: Managers and employees (directory)
- requests: Current state of each request
- request_history: Append-only transition audit trail
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "0001"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create users, requests and request_history."""

    # --- users ---
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("password_hash", sa.String(255), nullable=False),
        sa.Column("role", sa.String(20), nullable=False),
        sa.Column("manager_id", sa.Integer(), nullable=True),
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now()),
        sa.PrimaryKeyConstraint("id", name="pk_users"),
        sa.ForeignKeyConstraint(["manager_id"], ["users.id"], name="fk_users_manager_id", ondelete="SET NULL"),
        sa.UniqueConstraint("email", name="uq_users_email"),
        sa.CheckConstraint("role IN ('MANAGER', 'EMPLOYEE')", name="ck_users_role"),
    )
    op.create_index("ix_users_email", "users", ["email"])
    op.create_index("ix_users_role", "users", ["role"])
    op.create_index("ix_users_manager_id", "users", ["manager_id"])

    # --- requests ---
    op.create_table(
        "requests",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("created_by", sa.Integer(), nullable=False),
        sa.Column("assigned_to", sa.Integer(), nullable=False),
        sa.Column("manager_id", sa.Integer(), nullable=False),
        sa.Column("status", sa.String(50), nullable=False, server_default="PENDING_MANAGER_APPROVAL"),
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(), server_default=sa.func.now()),
        sa.PrimaryKeyConstraint("id", name="pk_requests"),
        sa.ForeignKeyConstraint(["created_by"], ["users.id"], name="fk_requests_created_by"),
        sa.ForeignKeyConstraint(["assigned_to"], ["users.id"], name="fk_requests_assigned_to"),
        sa.ForeignKeyConstraint(["manager_id"], ["users.id"], name="fk_requests_manager_id"),
        sa.CheckConstraint("assigned_to <> created_by", name="ck_requests_not_self_assigned"),
        sa.CheckConstraint(
            "status IN ('PENDING_MANAGER_APPROVAL', 'MANAGER_APPROVED', 'MANAGER_REJECTED', "
            "'ACTION_IN_PROGRESS', 'CLOSED')",
            name="ck_requests_status",
        ),
    )
    op.create_index("ix_requests_created_by", "requests", ["created_by"])
    op.create_index("ix_requests_assigned_to", "requests", ["assigned_to"])
    op.create_index("ix_requests_manager_id", "requests", ["manager_id"])
    op.create_index("ix_requests_status", "requests", ["status"])
    op.create_index("ix_requests_created_at", "requests", ["created_at"])

    # --- request_history ---
    op.create_table(
        "request_history",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("request_id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("action", sa.String(50), nullable=False),
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now()),
        sa.PrimaryKeyConstraint("id", name="pk_request_history"),
        sa.ForeignKeyConstraint(["request_id"], ["requests.id"], name="fk_request_history_request_id"),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], name="fk_request_history_user_id"),
    )
    op.create_index("ix_request_history_request_id", "request_history", ["request_id"])
    op.create_index("ix_request_history_created_at", "request_history", ["created_at"])


def downgrade() -> None:
    """Drop all workflow tables."""
    op.drop_table("request_history")
    op.drop_table("requests")
    op.drop_table("users")
