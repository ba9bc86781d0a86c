from __future__ import annotations

from datetime import date, datetime, timezone

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    JSON,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from leavedesk.db import Base

DAY_KEYS = ("monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday")
DAY_COLUMNS = tuple(f"{day}_status" for day in DAY_KEYS)
REQUEST_STATUSES = ("Pending", "Partner Approved", "Approved", "Rejected")


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _day_status_checks(table: str) -> tuple[CheckConstraint, ...]:
    return tuple(
        CheckConstraint(f"{column} IN ('working', 'off')", name=f"ck_{table}_{column}")
        for column in DAY_COLUMNS
    )


class User(Base):
    __tablename__ = "users"
    __table_args__ = (
        CheckConstraint("role IN ('admin', 'employee')", name="ck_users_role"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    email: Mapped[str] = mapped_column(String(255), nullable=False, unique=True, index=True)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    role: Mapped[str] = mapped_column(String(20), nullable=False, default="employee")
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    employee_id: Mapped[int | None] = mapped_column(
        ForeignKey("employees.id", ondelete="CASCADE"), nullable=True, unique=True, index=True
    )
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)

    sessions = relationship("SessionRecord", back_populates="user", cascade="all, delete-orphan")
    employee = relationship("Employee", back_populates="user")


class SessionRecord(Base):
    __tablename__ = "sessions"

    session_id: Mapped[str] = mapped_column(String(128), primary_key=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, index=True)

    user = relationship("User", back_populates="sessions")


class Employee(Base):
    __tablename__ = "employees"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str] = mapped_column(String(255), nullable=False, unique=True, index=True)
    phone: Mapped[str | None] = mapped_column(String(60), nullable=True)
    annual_leave_remaining: Mapped[int] = mapped_column(Integer, nullable=False, default=15)
    sick_leave_remaining: Mapped[int] = mapped_column(Integer, nullable=False, default=10)
    annual_leave_total: Mapped[int] = mapped_column(Integer, nullable=False, default=15)
    sick_leave_total: Mapped[int] = mapped_column(Integer, nullable=False, default=10)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow, index=True)

    user = relationship("User", back_populates="employee", uselist=False, cascade="all, delete-orphan")
    schedules = relationship("WorkSchedule", back_populates="employee", cascade="all, delete-orphan")
    template = relationship(
        "WorkScheduleTemplate", back_populates="employee", uselist=False, cascade="all, delete-orphan"
    )
    notifications = relationship("Notification", back_populates="employee", cascade="all, delete-orphan")


class LeaveRequest(Base):
    __tablename__ = "leave_requests"
    __table_args__ = (
        CheckConstraint(
            "status IN (" + ", ".join(f"'{value}'" for value in REQUEST_STATUSES) + ")",
            name="ck_leave_requests_status",
        ),
        CheckConstraint("days >= 0", name="ck_leave_requests_days"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    employee_id: Mapped[int | None] = mapped_column(
        ForeignKey("employees.id", ondelete="SET NULL"), nullable=True, index=True
    )
    employee_name: Mapped[str] = mapped_column(String(255), nullable=False)
    employee_email: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    type: Mapped[str] = mapped_column(String(60), nullable=False)
    start_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    end_date: Mapped[date] = mapped_column(Date, nullable=False)
    days: Mapped[int] = mapped_column(Integer, nullable=False)
    reason: Mapped[str] = mapped_column(Text, nullable=False)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="Pending", index=True)
    submit_date: Mapped[date] = mapped_column(Date, nullable=False)

    coverage_by: Mapped[str | None] = mapped_column(String(255), nullable=True)
    coverage_arranged: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    coverage_partner_id: Mapped[int | None] = mapped_column(
        ForeignKey("employees.id", ondelete="SET NULL"), nullable=True
    )

    exchange_partner_id: Mapped[int | None] = mapped_column(
        ForeignKey("employees.id", ondelete="SET NULL"), nullable=True, index=True
    )
    exchange_from_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    exchange_to_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    exchange_reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    partner_desired_off_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    requires_partner_approval: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    exchange_partner_approved: Mapped[bool | None] = mapped_column(Boolean, nullable=True)
    exchange_partner_approved_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    exchange_partner_notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    medical_certificate: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    emergency_contact: Mapped[str | None] = mapped_column(String(255), nullable=True)
    additional_notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    decided_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow, index=True)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )


class WorkSchedule(Base):
    __tablename__ = "work_schedules"
    __table_args__ = (
        UniqueConstraint("employee_id", "week_start_date", name="uq_work_schedules_employee_week"),
        *_day_status_checks("work_schedules"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    employee_id: Mapped[int] = mapped_column(ForeignKey("employees.id", ondelete="CASCADE"), nullable=False, index=True)
    week_start_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    monday_status: Mapped[str] = mapped_column(String(10), nullable=False, default="working")
    tuesday_status: Mapped[str] = mapped_column(String(10), nullable=False, default="working")
    wednesday_status: Mapped[str] = mapped_column(String(10), nullable=False, default="working")
    thursday_status: Mapped[str] = mapped_column(String(10), nullable=False, default="working")
    friday_status: Mapped[str] = mapped_column(String(10), nullable=False, default="working")
    saturday_status: Mapped[str] = mapped_column(String(10), nullable=False, default="off")
    sunday_status: Mapped[str] = mapped_column(String(10), nullable=False, default="off")
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )

    employee = relationship("Employee", back_populates="schedules")


class WorkScheduleTemplate(Base):
    __tablename__ = "work_schedule_templates"
    __table_args__ = _day_status_checks("work_schedule_templates")

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    employee_id: Mapped[int] = mapped_column(
        ForeignKey("employees.id", ondelete="CASCADE"), nullable=False, unique=True, index=True
    )
    monday_status: Mapped[str] = mapped_column(String(10), nullable=False, default="working")
    tuesday_status: Mapped[str] = mapped_column(String(10), nullable=False, default="working")
    wednesday_status: Mapped[str] = mapped_column(String(10), nullable=False, default="working")
    thursday_status: Mapped[str] = mapped_column(String(10), nullable=False, default="working")
    friday_status: Mapped[str] = mapped_column(String(10), nullable=False, default="working")
    saturday_status: Mapped[str] = mapped_column(String(10), nullable=False, default="off")
    sunday_status: Mapped[str] = mapped_column(String(10), nullable=False, default="off")
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )

    employee = relationship("Employee", back_populates="template")


class Policy(Base):
    __tablename__ = "policies"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    version: Mapped[int] = mapped_column(Integer, nullable=False)
    content: Mapped[dict] = mapped_column(JSON, nullable=False)
    published: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow, index=True
    )


class Notification(Base):
    __tablename__ = "notifications"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    employee_id: Mapped[int] = mapped_column(ForeignKey("employees.id", ondelete="CASCADE"), nullable=False, index=True)
    request_id: Mapped[int | None] = mapped_column(
        ForeignKey("leave_requests.id", ondelete="SET NULL"), nullable=True
    )
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    message: Mapped[str] = mapped_column(Text, nullable=False)
    is_read: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow, index=True)

    employee = relationship("Employee", back_populates="notifications")
