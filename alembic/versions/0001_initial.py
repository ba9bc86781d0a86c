"""initial leave desk schema

Revision ID: 0001_initial
Revises:
Create Date: 2026-10-18
"""

from alembic import op
import sqlalchemy as sa

revision = "0001_initial"
down_revision = None
branch_labels = None
depends_on = None

DAY_COLUMNS = (
    "monday_status",
    "tuesday_status",
    "wednesday_status",
    "thursday_status",
    "friday_status",
    "saturday_status",
    "sunday_status",
)


def _day_columns() -> list[sa.Column]:
    return [
        sa.Column(column, sa.String(length=10), nullable=False, server_default=("off" if column in ("saturday_status", "sunday_status") else "working"))
        for column in DAY_COLUMNS
    ]


def _day_checks(table: str) -> list[sa.CheckConstraint]:
    return [sa.CheckConstraint(f"{column} IN ('working', 'off')", name=f"ck_{table}_{column}") for column in DAY_COLUMNS]


def upgrade() -> None:
    op.create_table(
        "employees",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("phone", sa.String(length=60), nullable=True),
        sa.Column("annual_leave_remaining", sa.Integer(), nullable=False, server_default="15"),
        sa.Column("sick_leave_remaining", sa.Integer(), nullable=False, server_default="10"),
        sa.Column("annual_leave_total", sa.Integer(), nullable=False, server_default="15"),
        sa.Column("sick_leave_total", sa.Integer(), nullable=False, server_default="10"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_employees_email", "employees", ["email"], unique=True)
    op.create_index("ix_employees_created_at", "employees", ["created_at"], unique=False)

    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("password_hash", sa.String(length=255), nullable=False),
        sa.Column("role", sa.String(length=20), nullable=False, server_default="employee"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("employee_id", sa.Integer(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint("role IN ('admin', 'employee')", name="ck_users_role"),
        sa.ForeignKeyConstraint(["employee_id"], ["employees.id"], ondelete="CASCADE"),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)
    op.create_index("ix_users_employee_id", "users", ["employee_id"], unique=True)

    op.create_table(
        "sessions",
        sa.Column("session_id", sa.String(length=128), primary_key=True),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
    )
    op.create_index("ix_sessions_user_id", "sessions", ["user_id"], unique=False)
    op.create_index("ix_sessions_expires_at", "sessions", ["expires_at"], unique=False)

    op.create_table(
        "leave_requests",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("employee_id", sa.Integer(), nullable=True),
        sa.Column("employee_name", sa.String(length=255), nullable=False),
        sa.Column("employee_email", sa.String(length=255), nullable=False),
        sa.Column("type", sa.String(length=60), nullable=False),
        sa.Column("start_date", sa.Date(), nullable=False),
        sa.Column("end_date", sa.Date(), nullable=False),
        sa.Column("days", sa.Integer(), nullable=False),
        sa.Column("reason", sa.Text(), nullable=False),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="Pending"),
        sa.Column("submit_date", sa.Date(), nullable=False),
        sa.Column("coverage_by", sa.String(length=255), nullable=True),
        sa.Column("coverage_arranged", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("coverage_partner_id", sa.Integer(), nullable=True),
        sa.Column("exchange_partner_id", sa.Integer(), nullable=True),
        sa.Column("exchange_from_date", sa.Date(), nullable=True),
        sa.Column("exchange_to_date", sa.Date(), nullable=True),
        sa.Column("exchange_reason", sa.Text(), nullable=True),
        sa.Column("partner_desired_off_date", sa.Date(), nullable=True),
        sa.Column("requires_partner_approval", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("exchange_partner_approved", sa.Boolean(), nullable=True),
        sa.Column("exchange_partner_approved_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("exchange_partner_notes", sa.Text(), nullable=True),
        sa.Column("medical_certificate", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("emergency_contact", sa.String(length=255), nullable=True),
        sa.Column("additional_notes", sa.Text(), nullable=True),
        sa.Column("decided_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint(
            "status IN ('Pending', 'Partner Approved', 'Approved', 'Rejected')",
            name="ck_leave_requests_status",
        ),
        sa.CheckConstraint("days >= 0", name="ck_leave_requests_days"),
        sa.ForeignKeyConstraint(["employee_id"], ["employees.id"], ondelete="SET NULL"),
        sa.ForeignKeyConstraint(["coverage_partner_id"], ["employees.id"], ondelete="SET NULL"),
        sa.ForeignKeyConstraint(["exchange_partner_id"], ["employees.id"], ondelete="SET NULL"),
    )
    op.create_index("ix_leave_requests_employee_id", "leave_requests", ["employee_id"], unique=False)
    op.create_index("ix_leave_requests_employee_email", "leave_requests", ["employee_email"], unique=False)
    op.create_index("ix_leave_requests_start_date", "leave_requests", ["start_date"], unique=False)
    op.create_index("ix_leave_requests_status", "leave_requests", ["status"], unique=False)
    op.create_index("ix_leave_requests_exchange_partner_id", "leave_requests", ["exchange_partner_id"], unique=False)
    op.create_index("ix_leave_requests_created_at", "leave_requests", ["created_at"], unique=False)

    op.create_table(
        "work_schedules",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("employee_id", sa.Integer(), nullable=False),
        sa.Column("week_start_date", sa.Date(), nullable=False),
        *_day_columns(),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.UniqueConstraint("employee_id", "week_start_date", name="uq_work_schedules_employee_week"),
        *_day_checks("work_schedules"),
        sa.ForeignKeyConstraint(["employee_id"], ["employees.id"], ondelete="CASCADE"),
    )
    op.create_index("ix_work_schedules_employee_id", "work_schedules", ["employee_id"], unique=False)
    op.create_index("ix_work_schedules_week_start_date", "work_schedules", ["week_start_date"], unique=False)

    op.create_table(
        "work_schedule_templates",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("employee_id", sa.Integer(), nullable=False),
        *_day_columns(),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        *_day_checks("work_schedule_templates"),
        sa.ForeignKeyConstraint(["employee_id"], ["employees.id"], ondelete="CASCADE"),
    )
    op.create_index("ix_work_schedule_templates_employee_id", "work_schedule_templates", ["employee_id"], unique=True)

    op.create_table(
        "policies",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("version", sa.Integer(), nullable=False),
        sa.Column("content", sa.JSON(), nullable=False),
        sa.Column("published", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_policies_published", "policies", ["published"], unique=False)
    op.create_index("ix_policies_updated_at", "policies", ["updated_at"], unique=False)

    op.create_table(
        "notifications",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("employee_id", sa.Integer(), nullable=False),
        sa.Column("request_id", sa.Integer(), nullable=True),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("message", sa.Text(), nullable=False),
        sa.Column("is_read", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["employee_id"], ["employees.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["request_id"], ["leave_requests.id"], ondelete="SET NULL"),
    )
    op.create_index("ix_notifications_employee_id", "notifications", ["employee_id"], unique=False)
    op.create_index("ix_notifications_created_at", "notifications", ["created_at"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_notifications_created_at", table_name="notifications")
    op.drop_index("ix_notifications_employee_id", table_name="notifications")
    op.drop_table("notifications")

    op.drop_index("ix_policies_updated_at", table_name="policies")
    op.drop_index("ix_policies_published", table_name="policies")
    op.drop_table("policies")

    op.drop_index("ix_work_schedule_templates_employee_id", table_name="work_schedule_templates")
    op.drop_table("work_schedule_templates")

    op.drop_index("ix_work_schedules_week_start_date", table_name="work_schedules")
    op.drop_index("ix_work_schedules_employee_id", table_name="work_schedules")
    op.drop_table("work_schedules")

    op.drop_index("ix_leave_requests_created_at", table_name="leave_requests")
    op.drop_index("ix_leave_requests_exchange_partner_id", table_name="leave_requests")
    op.drop_index("ix_leave_requests_status", table_name="leave_requests")
    op.drop_index("ix_leave_requests_start_date", table_name="leave_requests")
    op.drop_index("ix_leave_requests_employee_email", table_name="leave_requests")
    op.drop_index("ix_leave_requests_employee_id", table_name="leave_requests")
    op.drop_table("leave_requests")

    op.drop_index("ix_sessions_expires_at", table_name="sessions")
    op.drop_index("ix_sessions_user_id", table_name="sessions")
    op.drop_table("sessions")

    op.drop_index("ix_users_employee_id", table_name="users")
    op.drop_index("ix_users_email", table_name="users")
    op.drop_table("users")

    op.drop_index("ix_employees_created_at", table_name="employees")
    op.drop_index("ix_employees_email", table_name="employees")
    op.drop_table("employees")
