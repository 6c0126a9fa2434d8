"""Create program tables, bulk operation log and audit log

Revision ID: 1a2b3c4d5e6f
Revises:
Create Date: 2026-10-18 09:00:00.000000+00:00
"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

# Revision identifiers, used by Alembic
revision: str = "1a2b3c4d5e6f"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list[sa.Column]:
    return [
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
    ]


def upgrade() -> None:
    """Create all tables."""
    op.create_table(
        "students",
        sa.Column("id", sa.UUID(as_uuid=False), primary_key=True, nullable=False),
        sa.Column("first_name", sa.String(100), nullable=False),
        sa.Column("last_name", sa.String(100), nullable=False),
        sa.Column("email", sa.String(255), nullable=True),
        sa.Column("agency", sa.String(255), nullable=True),
        sa.Column("status", sa.String(50), nullable=False, server_default="active"),
        sa.Column("cohort_id", sa.UUID(as_uuid=False), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_students_status", "students", ["status"])
    op.create_index("ix_students_cohort_id", "students", ["cohort_id"])
    op.create_index("ix_students_name", "students", ["last_name", "first_name"])

    op.create_table(
        "lab_days",
        sa.Column("id", sa.UUID(as_uuid=False), primary_key=True, nullable=False),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("title", sa.String(255), nullable=True),
        sa.Column("cohort_id", sa.UUID(as_uuid=False), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
    )
    op.create_index("ix_lab_days_date", "lab_days", ["date"])
    op.create_index("ix_lab_days_cohort_id", "lab_days", ["cohort_id"])

    op.create_table(
        "shifts",
        sa.Column("id", sa.UUID(as_uuid=False), primary_key=True, nullable=False),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("department", sa.String(100), nullable=True),
        sa.Column("status", sa.String(50), nullable=False, server_default="open"),
        sa.Column("instructor_id", sa.UUID(as_uuid=False), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_shifts_instructor_id", "shifts", ["instructor_id"])
    op.create_index("ix_shifts_date_status", "shifts", ["date", "status"])

    op.create_table(
        "lab_users",
        sa.Column("id", sa.UUID(as_uuid=False), primary_key=True, nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("role", sa.String(50), nullable=False, server_default="guest"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
    )
    op.create_index("ix_lab_users_email", "lab_users", ["email"], unique=True)

    op.create_table(
        "student_internships",
        sa.Column("id", sa.UUID(as_uuid=False), primary_key=True, nullable=False),
        sa.Column(
            "student_id",
            sa.UUID(as_uuid=False),
            sa.ForeignKey("students.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("cohort_id", sa.UUID(as_uuid=False), nullable=True),
        sa.Column("agency_name", sa.String(255), nullable=True),
        sa.Column("status", sa.String(50), nullable=False, server_default="pending"),
        sa.Column("current_phase", sa.String(50), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_student_internships_student_id", "student_internships", ["student_id"])
    op.create_index("ix_student_internships_cohort_id", "student_internships", ["cohort_id"])

    op.create_table(
        "bulk_operation_logs",
        sa.Column("id", sa.UUID(as_uuid=False), primary_key=True, nullable=False),
        sa.Column("operation_type", sa.String(50), nullable=False),
        sa.Column("target_table", sa.String(50), nullable=False),
        sa.Column("affected_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("status", sa.String(20), nullable=False, server_default="pending"),
        sa.Column("performed_by", sa.String(255), nullable=False),
        # JSON stored as text
        sa.Column("filters", sa.Text(), nullable=False, server_default="[]"),
        sa.Column("parameters", sa.Text(), nullable=False, server_default="{}"),
        sa.Column("before_state", sa.Text(), nullable=True),
        sa.Column("error_message", sa.Text(), nullable=True),
        sa.Column("rolled_back_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("rolled_back_by", sa.String(255), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_bulk_operation_logs_operation_type", "bulk_operation_logs", ["operation_type"])
    op.create_index("ix_bulk_operation_logs_status", "bulk_operation_logs", ["status"])
    op.create_index("ix_bulk_operation_logs_created", "bulk_operation_logs", ["created_at"])
    op.create_index(
        "ix_bulk_operation_logs_table_type",
        "bulk_operation_logs",
        ["target_table", "operation_type"],
    )

    op.create_table(
        "audit_logs",
        sa.Column("id", sa.UUID(as_uuid=False), primary_key=True, nullable=False),
        sa.Column("user_id", sa.UUID(as_uuid=False), nullable=True),
        sa.Column("user_email", sa.String(255), nullable=True),
        sa.Column("user_role", sa.String(50), nullable=True),
        sa.Column("action", sa.String(50), nullable=False),
        sa.Column("resource_type", sa.String(50), nullable=False),
        sa.Column("resource_id", sa.String(255), nullable=True),
        sa.Column("resource_description", sa.Text(), nullable=True),
        sa.Column("ip_address", sa.String(45), nullable=True),
        sa.Column("user_agent", sa.String(500), nullable=True),
        sa.Column("meta", sa.Text(), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_audit_logs_user_id", "audit_logs", ["user_id"])
    op.create_index("ix_audit_logs_user_email", "audit_logs", ["user_email"])
    op.create_index("ix_audit_logs_action", "audit_logs", ["action"])
    op.create_index("ix_audit_logs_resource", "audit_logs", ["resource_type", "resource_id"])
    op.create_index("ix_audit_logs_created_at", "audit_logs", ["created_at"])


def downgrade() -> None:
    """Drop all tables."""
    op.drop_table("audit_logs")
    op.drop_table("bulk_operation_logs")
    op.drop_table("student_internships")
    op.drop_table("lab_users")
    op.drop_table("shifts")
    op.drop_table("lab_days")
    op.drop_table("students")
