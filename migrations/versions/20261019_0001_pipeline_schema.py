"""pipeline schema: clients, stage history, tasks, profiles, email logs

Revision ID: 20261019_0001
Revises:
Create Date: 2026-10-19 00:00:01
"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "20261019_0001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "clients",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("phone", sa.String(length=64), nullable=True),
        sa.Column("email", sa.String(length=320), nullable=True),
        sa.Column("file_type", sa.String(length=60), nullable=False, server_default="Residential"),
        sa.Column("stage", sa.String(length=100), nullable=False, server_default="Lead"),
        sa.Column("assigned_to", sa.String(length=255), nullable=True),
        sa.Column("banker_name", sa.String(length=255), nullable=True),
        sa.Column("banker_email", sa.String(length=320), nullable=True),
        sa.Column("bank", sa.String(length=255), nullable=True),
        sa.Column("lender", sa.String(length=255), nullable=True),
        sa.Column("next_follow_up", sa.Date(), nullable=True),
        sa.Column("last_contact", sa.Date(), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("retainer_received", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("retainer_amount", sa.Numeric(12, 2), nullable=True),
        sa.Column("subject_removal_date", sa.Date(), nullable=True),
        sa.Column("closing_date", sa.Date(), nullable=True),
        sa.Column("notes_file_link", sa.String(length=1000), nullable=True),
        sa.Column("is_archived", sa.Boolean(), nullable=True, server_default=sa.false()),
        sa.Column("archived_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("archived_by", sa.String(length=36), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("idx_clients_stage", "clients", ["stage"])
    op.create_index("idx_clients_archived", "clients", ["is_archived"])

    op.create_table(
        "client_stage_history",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("client_id", sa.String(length=36), nullable=False),
        sa.Column("from_stage", sa.String(length=100), nullable=True),
        sa.Column("to_stage", sa.String(length=100), nullable=False),
        sa.Column("changed_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("changed_by", sa.String(length=36), nullable=True),
        sa.ForeignKeyConstraint(["client_id"], ["clients.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "idx_stage_history_client_changed", "client_stage_history", ["client_id", "changed_at"]
    )

    op.create_table(
        "tasks",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("title", sa.String(length=500), nullable=False),
        sa.Column("assigned_to", sa.String(length=255), nullable=True),
        sa.Column("due_date", sa.Date(), nullable=True),
        sa.Column(
            "status",
            sa.Enum("open", "completed", name="taskstatus", native_enum=False),
            nullable=False,
            server_default="open",
        ),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("client_id", sa.String(length=36), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["client_id"], ["clients.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("idx_tasks_status_due", "tasks", ["status", "due_date"])
    op.create_index("idx_tasks_client", "tasks", ["client_id"])

    op.create_table(
        "task_notes",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("task_id", sa.String(length=36), nullable=False),
        sa.Column("body", sa.Text(), nullable=False),
        sa.Column("created_by", sa.String(length=36), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["task_id"], ["tasks.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("idx_task_notes_task_created", "task_notes", ["task_id", "created_at"])

    op.create_table(
        "profiles",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("email", sa.String(length=320), nullable=False),
        sa.Column("full_name", sa.String(length=255), nullable=True),
        sa.Column("role", sa.String(length=40), nullable=False, server_default="assistant"),
        sa.Column("hashed_password", sa.String(length=255), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("email"),
    )

    op.create_table(
        "email_logs",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("entity_type", sa.String(length=50), nullable=False),
        sa.Column("entity_id", sa.String(length=36), nullable=False),
        sa.Column("channel", sa.String(length=40), nullable=False),
        sa.Column("recipient", sa.String(length=320), nullable=True),
        sa.Column("subject", sa.String(length=500), nullable=False),
        sa.Column("body_preview", sa.Text(), nullable=False),
        sa.Column("send_status", sa.String(length=30), nullable=False),
        sa.Column("error_message", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("idx_email_logs_entity", "email_logs", ["entity_type", "entity_id"])


def downgrade() -> None:
    op.drop_index("idx_email_logs_entity", table_name="email_logs")
    op.drop_table("email_logs")
    op.drop_table("profiles")
    op.drop_index("idx_task_notes_task_created", table_name="task_notes")
    op.drop_table("task_notes")
    op.drop_index("idx_tasks_client", table_name="tasks")
    op.drop_index("idx_tasks_status_due", table_name="tasks")
    op.drop_table("tasks")
    op.drop_index("idx_stage_history_client_changed", table_name="client_stage_history")
    op.drop_table("client_stage_history")
    op.drop_index("idx_clients_archived", table_name="clients")
    op.drop_index("idx_clients_stage", table_name="clients")
    op.drop_table("clients")
