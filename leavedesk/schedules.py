from __future__ import annotations

import logging
from datetime import date, timedelta

from sqlalchemy import select
from sqlalchemy.orm import Session

from leavedesk.models import DAY_COLUMNS, DAY_KEYS, WorkSchedule, WorkScheduleTemplate

logger = logging.getLogger("leavedesk.schedules")

WORKING = "working"
OFF = "off"
DAY_STATUSES = (WORKING, OFF)
DEFAULT_PATTERN: dict[str, str] = {
    column: (OFF if column in ("saturday_status", "sunday_status") else WORKING) for column in DAY_COLUMNS
}


def week_start_for(day: date) -> date:
    return day - timedelta(days=day.weekday())


def day_column_for(day: date) -> str:
    return DAY_COLUMNS[day.weekday()]


def normalize_day_column(day: str) -> str:
    key = day.strip().lower()
    if key.endswith("_status"):
        key = key[: -len("_status")]
    for full_name in DAY_KEYS:
        if key == full_name or key == full_name[:3]:
            return f"{full_name}_status"
    raise ValueError(f"Unknown day: {day}")


def pattern_of(row: WorkSchedule | WorkScheduleTemplate | None) -> dict[str, str]:
    if row is None:
        return dict(DEFAULT_PATTERN)
    return {column: getattr(row, column) for column in DAY_COLUMNS}


def get_active_template(db: Session, employee_id: int) -> WorkScheduleTemplate | None:
    return db.scalar(
        select(WorkScheduleTemplate).where(
            WorkScheduleTemplate.employee_id == employee_id,
            WorkScheduleTemplate.is_active.is_(True),
        )
    )


def get_week_schedule(db: Session, employee_id: int, week_start: date) -> WorkSchedule | None:
    return db.scalar(
        select(WorkSchedule).where(
            WorkSchedule.employee_id == employee_id,
            WorkSchedule.week_start_date == week_start,
        )
    )


def materialize_week_schedule(
    db: Session,
    employee_id: int,
    week_start: date,
    *,
    use_template: bool = True,
) -> WorkSchedule:
    """Return the employee's row for that week, creating it on first touch.

    New rows copy the active template when there is one, otherwise the
    Mon-Fri working / Sat-Sun off default. The caller commits.
    """
    week_start = week_start_for(week_start)
    existing = get_week_schedule(db, employee_id, week_start)
    if existing is not None:
        return existing

    template = get_active_template(db, employee_id) if use_template else None
    schedule = WorkSchedule(employee_id=employee_id, week_start_date=week_start, **pattern_of(template))
    db.add(schedule)
    db.flush()
    return schedule


def resolve_day_status(db: Session, employee_id: int, day: date) -> str:
    column = day_column_for(day)
    schedule = get_week_schedule(db, employee_id, week_start_for(day))
    if schedule is not None:
        return getattr(schedule, column)
    template = get_active_template(db, employee_id)
    if template is not None:
        return getattr(template, column)
    return DEFAULT_PATTERN[column]


def set_day_status(db: Session, employee_id: int, day: date, status: str) -> WorkSchedule:
    if status not in DAY_STATUSES:
        raise ValueError(f"Unknown day status: {status}")
    schedule = materialize_week_schedule(db, employee_id, week_start_for(day))
    setattr(schedule, day_column_for(day), status)
    db.add(schedule)
    return schedule


def generate_week_schedules(db: Session, week_start: date) -> int:
    """Write one row per active template for the week; existing rows are overwritten."""
    week_start = week_start_for(week_start)
    templates = db.scalars(
        select(WorkScheduleTemplate)
        .where(WorkScheduleTemplate.is_active.is_(True))
        .order_by(WorkScheduleTemplate.employee_id.asc())
    ).all()
    written = 0
    for template in templates:
        schedule = get_week_schedule(db, template.employee_id, week_start)
        if schedule is None:
            schedule = WorkSchedule(employee_id=template.employee_id, week_start_date=week_start)
        for column, value in pattern_of(template).items():
            setattr(schedule, column, value)
        db.add(schedule)
        written += 1
    db.flush()
    logger.info(
        "week_schedules_generated",
        extra={"week_start_date": week_start.isoformat(), "rows": written},
    )
    return written


def apply_exchange(
    db: Session,
    *,
    requester_id: int,
    partner_id: int,
    requested_date: date,
    partner_off_date: date,
) -> None:
    """Partner covers the requester's day; requester covers the partner's desired day off."""
    set_day_status(db, requester_id, requested_date, OFF)
    set_day_status(db, partner_id, requested_date, WORKING)
    set_day_status(db, partner_id, partner_off_date, OFF)
    set_day_status(db, requester_id, partner_off_date, WORKING)
    db.flush()
