"""Initial marketplace schema: users, tasks, messages

Revision ID: 3f9c2a7d1b40
Revises:
Create Date: 2026-10-19 10:00:00.000000

"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision: str = "3f9c2a7d1b40"
down_revision: str | Sequence[str] | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    """Create users, tasks and messages tables."""
    op.create_table(
        "users",
        sa.Column("id", sa.VARCHAR(length=255), nullable=False),
        sa.Column("name", sa.VARCHAR(length=255), nullable=False),
        sa.Column("email", sa.VARCHAR(length=255), nullable=False),
        sa.Column("role", sa.VARCHAR(length=20), nullable=False),
        sa.Column("avatar", sa.VARCHAR(length=500), nullable=True),
        sa.Column("bio", sa.TEXT(), nullable=True),
        sa.Column("skills", sa.JSON(), nullable=False),
        sa.Column("hourly_rate", sa.DECIMAL(precision=10, scale=2), nullable=True),
        sa.Column("rating", sa.FLOAT(), nullable=False, server_default="0"),
        sa.Column("completed_tasks", sa.INTEGER(), nullable=False, server_default="0"),
        sa.Column("is_available", sa.BOOLEAN(), nullable=False, server_default=sa.false()),
        sa.Column("created_at", sa.DateTime(), server_default=sa.text("now()"), nullable=False),
        sa.Column("updated_at", sa.DateTime(), server_default=sa.text("now()"), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_users_email"), "users", ["email"], unique=True)
    op.create_index(op.f("ix_users_role"), "users", ["role"], unique=False)
    op.create_index(op.f("ix_users_is_available"), "users", ["is_available"], unique=False)

    op.create_table(
        "tasks",
        sa.Column("id", sa.UUID(), nullable=False),
        sa.Column("title", sa.VARCHAR(length=200), nullable=False),
        sa.Column("description", sa.TEXT(), nullable=False),
        sa.Column("category", sa.JSON(), nullable=False),
        sa.Column("budget", sa.DECIMAL(precision=12, scale=2), nullable=False),
        sa.Column("estimated_hours", sa.FLOAT(), nullable=False),
        sa.Column("timeline", sa.DateTime(timezone=True), nullable=False),
        sa.Column("attachments", sa.JSON(), nullable=False),
        sa.Column("status", sa.VARCHAR(length=20), nullable=False, server_default="pending"),
        sa.Column("poster_id", sa.VARCHAR(length=255), nullable=False),
        sa.Column("expert_id", sa.VARCHAR(length=255), nullable=True),
        sa.Column("assigned_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("accepted_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("started_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("cancelled_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("total_time_seconds", sa.INTEGER(), nullable=False, server_default="0"),
        sa.Column("review_rating", sa.SMALLINT(), nullable=True),
        sa.Column("review_comment", sa.TEXT(), nullable=True),
        sa.Column("reviewed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(), server_default=sa.text("now()"), nullable=False),
        sa.Column("updated_at", sa.DateTime(), server_default=sa.text("now()"), nullable=False),
        sa.ForeignKeyConstraint(["poster_id"], ["users.id"]),
        sa.ForeignKeyConstraint(["expert_id"], ["users.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_tasks_status"), "tasks", ["status"], unique=False)
    op.create_index(op.f("ix_tasks_poster_id"), "tasks", ["poster_id"], unique=False)
    op.create_index(op.f("ix_tasks_expert_id"), "tasks", ["expert_id"], unique=False)

    op.create_table(
        "messages",
        sa.Column("id", sa.UUID(), nullable=False),
        sa.Column("task_id", sa.UUID(), nullable=False),
        sa.Column("sender_id", sa.VARCHAR(length=255), nullable=False),
        sa.Column("receiver_id", sa.VARCHAR(length=255), nullable=False),
        sa.Column("content", sa.TEXT(), nullable=False),
        sa.Column("read", sa.BOOLEAN(), nullable=False, server_default=sa.false()),
        sa.Column("attachment_filename", sa.VARCHAR(length=255), nullable=True),
        sa.Column("attachment_url", sa.VARCHAR(length=1000), nullable=True),
        sa.Column("created_at", sa.DateTime(), server_default=sa.text("now()"), nullable=False),
        sa.Column("updated_at", sa.DateTime(), server_default=sa.text("now()"), nullable=False),
        sa.ForeignKeyConstraint(["task_id"], ["tasks.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["sender_id"], ["users.id"]),
        sa.ForeignKeyConstraint(["receiver_id"], ["users.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_messages_task_id"), "messages", ["task_id"], unique=False)
    op.create_index(op.f("ix_messages_sender_id"), "messages", ["sender_id"], unique=False)
    op.create_index(op.f("ix_messages_receiver_id"), "messages", ["receiver_id"], unique=False)


def downgrade() -> None:
    """Drop users, tasks and messages tables."""
    op.drop_index(op.f("ix_messages_receiver_id"), table_name="messages")
    op.drop_index(op.f("ix_messages_sender_id"), table_name="messages")
    op.drop_index(op.f("ix_messages_task_id"), table_name="messages")
    op.drop_table("messages")
    op.drop_index(op.f("ix_tasks_expert_id"), table_name="tasks")
    op.drop_index(op.f("ix_tasks_poster_id"), table_name="tasks")
    op.drop_index(op.f("ix_tasks_status"), table_name="tasks")
    op.drop_table("tasks")
    op.drop_index(op.f("ix_users_is_available"), table_name="users")
    op.drop_index(op.f("ix_users_role"), table_name="users")
    op.drop_index(op.f("ix_users_email"), table_name="users")
    op.drop_table("users")
