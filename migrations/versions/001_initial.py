"""Create workboard tables

Revision ID: 001_initial
Revises:
Create Date: 2026-10-18

"""
import sqlalchemy as sa
from alembic import op

# revision identifiers
revision = "001_initial"
down_revision = None
branch_labels = None
depends_on = None

TASK_STATUS = ("to-do", "in-progress", "in-review", "done", "blocked")
TASK_PRIORITY = ("urgent", "high", "normal", "low")
FIELD_TYPE = (
    "text",
    "number",
    "date",
    "checkbox",
    "url",
    "select",
    "multi-select",
    "priority",
    "status",
)


def _timestamps() -> list:
    return [
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
    ]


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.String(128), primary_key=True),
        sa.Column("email", sa.String(320), nullable=False, unique=True),
        sa.Column("name", sa.String(256), nullable=False),
        sa.Column("avatar", sa.String(2000), nullable=True),
        *_timestamps(),
    )

    op.create_table(
        "workspaces",
        sa.Column("id", sa.String(128), primary_key=True),
        sa.Column("name", sa.String(256), nullable=False),
        sa.Column("description", sa.Text, nullable=True),
        sa.Column(
            "owner_id", sa.String(128), sa.ForeignKey("users.id"), nullable=False, index=True
        ),
        sa.Column("members", sa.JSON, nullable=False),
        sa.Column("settings", sa.JSON, nullable=False),
        *_timestamps(),
    )

    op.create_table(
        "lists",
        sa.Column("id", sa.String(128), primary_key=True),
        sa.Column(
            "workspace_id", sa.String(128), sa.ForeignKey("workspaces.id"), nullable=False
        ),
        sa.Column("name", sa.String(256), nullable=False),
        sa.Column("description", sa.Text, nullable=True),
        sa.Column("color", sa.String(32), nullable=False),
        sa.Column("icon", sa.String(32), nullable=False),
        sa.Column("order", sa.Integer, nullable=False, server_default="0"),
        sa.Column("created_by", sa.String(128), nullable=False),
        *_timestamps(),
    )
    op.create_index("ix_lists_workspace_order", "lists", ["workspace_id", "order"])
    op.create_index("ix_lists_workspace_created", "lists", ["workspace_id", "created_at"])

    op.create_table(
        "field_definitions",
        sa.Column("id", sa.String(128), primary_key=True),
        sa.Column("list_id", sa.String(128), sa.ForeignKey("lists.id"), nullable=False),
        sa.Column(
            "workspace_id", sa.String(128), sa.ForeignKey("workspaces.id"), nullable=False
        ),
        sa.Column("name", sa.String(256), nullable=False),
        sa.Column("type", sa.Enum(*FIELD_TYPE, name="field_type"), nullable=False),
        sa.Column("order", sa.Integer, nullable=False, server_default="0"),
        sa.Column("required", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("options", sa.JSON, nullable=False),
        sa.Column("default_value", sa.JSON, nullable=True),
        sa.Column("settings", sa.JSON, nullable=False),
        sa.Column("created_by", sa.String(128), nullable=False),
        *_timestamps(),
    )
    op.create_index(
        "ix_field_definitions_list_order", "field_definitions", ["list_id", "order"]
    )
    op.create_index("ix_field_definitions_workspace", "field_definitions", ["workspace_id"])

    op.create_table(
        "tasks",
        sa.Column("id", sa.String(128), primary_key=True),
        sa.Column("list_id", sa.String(128), sa.ForeignKey("lists.id"), nullable=False),
        sa.Column(
            "workspace_id", sa.String(128), sa.ForeignKey("workspaces.id"), nullable=False
        ),
        sa.Column("name", sa.String(512), nullable=False),
        sa.Column("description", sa.Text, nullable=True),
        sa.Column(
            "status",
            sa.Enum(*TASK_STATUS, name="task_status"),
            nullable=False,
            server_default="to-do",
        ),
        sa.Column(
            "priority",
            sa.Enum(*TASK_PRIORITY, name="task_priority"),
            nullable=False,
            server_default="normal",
        ),
        sa.Column("due_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("custom_fields", sa.JSON, nullable=False),
        sa.Column("order", sa.Integer, nullable=False, server_default="0"),
        sa.Column("assignees", sa.JSON, nullable=False),
        sa.Column("created_by", sa.String(128), nullable=False),
        sa.Column("updated_by", sa.String(128), nullable=True),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_tasks_list_order", "tasks", ["list_id", "order"])
    op.create_index("ix_tasks_workspace_status", "tasks", ["workspace_id", "status"])
    op.create_index("ix_tasks_workspace_priority", "tasks", ["workspace_id", "priority"])
    op.create_index("ix_tasks_workspace_due_date", "tasks", ["workspace_id", "due_date"])
    op.create_index("ix_tasks_created_at", "tasks", ["created_at"])

    op.create_table(
        "attachments",
        sa.Column("id", sa.String(128), primary_key=True),
        sa.Column("task_id", sa.String(128), nullable=False),
        sa.Column(
            "workspace_id", sa.String(128), sa.ForeignKey("workspaces.id"), nullable=False
        ),
        sa.Column("name", sa.String(512), nullable=False),
        sa.Column("original_name", sa.String(512), nullable=False),
        sa.Column("url", sa.String(2000), nullable=False),
        sa.Column("storage_id", sa.String(1024), nullable=False, unique=True),
        sa.Column("type", sa.String(256), nullable=False),
        sa.Column("size", sa.Integer, nullable=False),
        sa.Column("uploaded_by", sa.String(128), nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
    )
    op.create_index("ix_attachments_task_created", "attachments", ["task_id", "created_at"])
    op.create_index("ix_attachments_workspace", "attachments", ["workspace_id"])


def downgrade() -> None:
    op.drop_table("attachments")
    op.drop_table("tasks")
    op.drop_table("field_definitions")
    op.drop_table("lists")
    op.drop_table("workspaces")
    op.drop_table("users")

    bind = op.get_bind()
    if bind.dialect.name == "postgresql":
        for enum_name in ("task_status", "task_priority", "field_type"):
            sa.Enum(name=enum_name).drop(bind, checkfirst=True)
