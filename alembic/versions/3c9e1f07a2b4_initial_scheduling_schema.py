"""Initial scheduling schema

Revision ID: 3c9e1f07a2b4
Revises:
Create Date: 2026-10-17 09:12:44.118203
"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "3c9e1f07a2b4"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

ROSTER_STATUS = ("draft", "pending_approval", "approved", "published", "archived")
ROTATION_PATTERN = ("weekly", "biweekly", "monthly", "custom")
ASSIGNMENT_STATUS = ("assigned", "confirmed", "declined", "swap_requested", "cancelled")
PERFORMANCE = ("excellent", "good", "satisfactory", "needs_improvement", "poor")
ACTIVE_BINDING = "status IN ('assigned', 'confirmed', 'swap_requested')"


def upgrade() -> None:
    op.create_table(
        "organizations",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("timezone", sa.String(length=64), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("name"),
    )

    op.create_table(
        "employees",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("org_id", sa.Integer(), nullable=False),
        sa.Column("display_name", sa.String(length=255), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=True),
        sa.Column("department", sa.String(length=100), nullable=True),
        sa.Column("is_active", sa.Boolean(), server_default=sa.text("true"), nullable=False),
        sa.Column("manager_id", sa.Integer(), nullable=True),
        sa.ForeignKeyConstraint(["org_id"], ["organizations.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["manager_id"], ["employees.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_employees_org_id"), "employees", ["org_id"], unique=False)
    op.create_index(op.f("ix_employees_department"), "employees", ["department"], unique=False)
    op.create_index(op.f("ix_employees_manager_id"), "employees", ["manager_id"], unique=False)

    op.create_table(
        "shifts",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("org_id", sa.Integer(), nullable=False),
        sa.Column("hr_code", sa.String(length=50), nullable=True),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("start_time", sa.Time(), nullable=False),
        sa.Column("end_time", sa.Time(), nullable=False),
        sa.Column("duration_minutes", sa.Integer(), nullable=False),
        sa.Column("break_minutes", sa.Integer(), nullable=False),
        sa.Column("is_night_shift", sa.Boolean(), nullable=False),
        sa.Column("color", sa.String(length=9), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("applicable_days", sa.JSON(), nullable=False),
        sa.Column("overtime_allowed", sa.Boolean(), nullable=False),
        sa.Column("overtime_rate", sa.Float(), nullable=False),
        sa.Column("grace_period_minutes", sa.Integer(), nullable=False),
        sa.Column("minimum_staff", sa.Integer(), nullable=False),
        sa.Column("maximum_staff", sa.Integer(), nullable=True),
        sa.Column("metadata", sa.JSON(), nullable=False),
        sa.Column("created_by", sa.Integer(), nullable=False),
        sa.Column("updated_by", sa.Integer(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("CURRENT_TIMESTAMP"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("deleted_at", sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint("duration_minutes BETWEEN 1 AND 1440", name="ck_shifts_duration"),
        sa.CheckConstraint("break_minutes BETWEEN 0 AND 480", name="ck_shifts_break"),
        sa.CheckConstraint("overtime_rate BETWEEN 1.0 AND 3.0", name="ck_shifts_overtime_rate"),
        sa.CheckConstraint("minimum_staff >= 1", name="ck_shifts_min_staff"),
        sa.ForeignKeyConstraint(["org_id"], ["organizations.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_shifts_org_id"), "shifts", ["org_id"], unique=False)
    op.create_index(op.f("ix_shifts_hr_code"), "shifts", ["hr_code"], unique=False)
    op.create_index("ix_shifts_org_active", "shifts", ["org_id", "is_active"], unique=False)

    op.create_table(
        "shift_rosters",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("org_id", sa.Integer(), nullable=False),
        sa.Column("department_id", sa.String(length=100), nullable=True),
        sa.Column("hr_code", sa.String(length=50), nullable=True),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("start_date", sa.Date(), nullable=False),
        sa.Column("end_date", sa.Date(), nullable=False),
        sa.Column("status", sa.Enum(*ROSTER_STATUS, name="roster_status"), nullable=False),
        sa.Column("is_published", sa.Boolean(), nullable=False),
        sa.Column("published_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("published_by", sa.Integer(), nullable=True),
        sa.Column("approved_by", sa.Integer(), nullable=True),
        sa.Column("approved_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("auto_assign_enabled", sa.Boolean(), nullable=False),
        sa.Column("rotation_pattern", sa.Enum(*ROTATION_PATTERN, name="roster_rotation_pattern"), nullable=False),
        sa.Column("notify_on_publish", sa.Boolean(), nullable=False),
        sa.Column("notify_on_change", sa.Boolean(), nullable=False),
        sa.Column("reminder_days", sa.Integer(), nullable=False),
        sa.Column("metadata", sa.JSON(), nullable=False),
        sa.Column("created_by", sa.Integer(), nullable=False),
        sa.Column("updated_by", sa.Integer(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("CURRENT_TIMESTAMP"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint("end_date >= start_date", name="ck_rosters_date_range"),
        sa.CheckConstraint("reminder_days BETWEEN 0 AND 7", name="ck_rosters_reminder_days"),
        sa.ForeignKeyConstraint(["org_id"], ["organizations.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_shift_rosters_org_id"), "shift_rosters", ["org_id"], unique=False)
    op.create_index(op.f("ix_shift_rosters_department_id"), "shift_rosters", ["department_id"], unique=False)
    op.create_index(op.f("ix_shift_rosters_hr_code"), "shift_rosters", ["hr_code"], unique=False)
    op.create_index(op.f("ix_shift_rosters_status"), "shift_rosters", ["status"], unique=False)
    op.create_index(op.f("ix_shift_rosters_is_published"), "shift_rosters", ["is_published"], unique=False)
    op.create_index("ix_rosters_dates", "shift_rosters", ["start_date", "end_date"], unique=False)

    op.create_table(
        "shift_assignments",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("org_id", sa.Integer(), nullable=False),
        sa.Column("hr_code", sa.Text(), nullable=True),
        sa.Column("roster_id", sa.Integer(), nullable=True),
        sa.Column("shift_id", sa.Integer(), nullable=False),
        sa.Column("employee_id", sa.Integer(), nullable=False),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("status", sa.Enum(*ASSIGNMENT_STATUS, name="assignment_status"), nullable=False),
        sa.Column("confirmed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("declined_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("decline_reason", sa.Text(), nullable=True),
        sa.Column("swap_requested_with", sa.Integer(), nullable=True),
        sa.Column("swap_requested_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("swap_approved_by", sa.Integer(), nullable=True),
        sa.Column("swap_approved_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("cancelled_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("actual_start_time", sa.Time(), nullable=True),
        sa.Column("actual_end_time", sa.Time(), nullable=True),
        sa.Column("actual_break_minutes", sa.Integer(), nullable=True),
        sa.Column("overtime_minutes", sa.Integer(), nullable=False),
        sa.Column("performance", sa.Enum(*PERFORMANCE, name="assignment_performance"), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("metadata", sa.JSON(), nullable=False),
        sa.Column("created_by", sa.Integer(), nullable=False),
        sa.Column("updated_by", sa.Integer(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("CURRENT_TIMESTAMP"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(["org_id"], ["organizations.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["roster_id"], ["shift_rosters.id"], ondelete="SET NULL"),
        sa.ForeignKeyConstraint(["shift_id"], ["shifts.id"]),
        sa.ForeignKeyConstraint(["employee_id"], ["employees.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["swap_requested_with"], ["employees.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_shift_assignments_org_id"), "shift_assignments", ["org_id"], unique=False)
    op.create_index(op.f("ix_shift_assignments_roster_id"), "shift_assignments", ["roster_id"], unique=False)
    op.create_index(op.f("ix_shift_assignments_shift_id"), "shift_assignments", ["shift_id"], unique=False)
    op.create_index(op.f("ix_shift_assignments_employee_id"), "shift_assignments", ["employee_id"], unique=False)
    op.create_index(op.f("ix_shift_assignments_date"), "shift_assignments", ["date"], unique=False)
    op.create_index(op.f("ix_shift_assignments_status"), "shift_assignments", ["status"], unique=False)
    op.create_index("ix_assignments_employee_date", "shift_assignments", ["employee_id", "date"], unique=False)
    op.create_index("ix_assignments_org_date", "shift_assignments", ["org_id", "date"], unique=False)
    # at most one active binding per (employee, shift, date)
    op.create_index(
        "uq_assignments_active_binding",
        "shift_assignments",
        ["employee_id", "shift_id", "date"],
        unique=True,
        postgresql_where=sa.text(ACTIVE_BINDING),
        sqlite_where=sa.text(ACTIVE_BINDING),
    )

    op.create_table(
        "scheduling_events",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("org_id", sa.Integer(), nullable=False),
        sa.Column("event_type", sa.String(length=100), nullable=False),
        sa.Column("aggregate_id", sa.Integer(), nullable=False),
        sa.Column("actor_id", sa.Integer(), nullable=True),
        sa.Column("payload", sa.JSON(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("CURRENT_TIMESTAMP"), nullable=False),
        sa.ForeignKeyConstraint(["org_id"], ["organizations.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_scheduling_events_org_id"), "scheduling_events", ["org_id"], unique=False)
    op.create_index(op.f("ix_scheduling_events_event_type"), "scheduling_events", ["event_type"], unique=False)
    op.create_index("ix_scheduling_events_org_id_id", "scheduling_events", ["org_id", "id"], unique=False)


def downgrade() -> None:
    op.drop_table("scheduling_events")
    op.drop_index("uq_assignments_active_binding", table_name="shift_assignments")
    op.drop_table("shift_assignments")
    op.drop_table("shift_rosters")
    op.drop_table("shifts")
    op.drop_table("employees")
    op.drop_table("organizations")

    bind = op.get_bind()
    if bind.dialect.name == "postgresql":
        for enum_name in ("assignment_performance", "assignment_status", "roster_rotation_pattern", "roster_status"):
            sa.Enum(name=enum_name).drop(bind, checkfirst=True)
