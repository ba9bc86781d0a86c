"""Data access for employees, requests, schedules, templates, policies and notifications.

:class:`DataService` is the one object the HTTP layer talks to. Database
errors are not caught here; they travel up unchanged and the caller decides
how to present them.
"""

from __future__ import annotations

import logging
from dataclasses import asdict
from datetime import date
from typing import Any

from fastapi import Depends
from sqlalchemy import func, or_, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from leavedesk import schedules
from leavedesk.db import get_db
from leavedesk.errors import ApiError
from leavedesk.models import (
    Employee,
    LeaveRequest,
    Notification,
    Policy,
    WorkSchedule,
    WorkScheduleTemplate,
    utcnow,
)
from leavedesk.settings import get_settings
from leavedesk.workflow import (
    EXCHANGE_OFF_DAYS,
    STATUS_APPROVED,
    STATUS_PARTNER_APPROVED,
    STATUS_PENDING,
    LeaveTypeSpec,
    PartnerRef,
    RequestDraft,
    balance_field_for,
    build_catalog,
    calculate_days,
    can_admin_approve,
    decide_partner_transition,
    ensure_admin_transition,
    validate_request,
)

logger = logging.getLogger("leavedesk.gateway")

EMPLOYEE_EDITABLE_FIELDS = ("name", "email", "phone")


def _not_found(code: str, message: str) -> ApiError:
    return ApiError(404, code, message)


def _clean_statuses(values: dict[str, Any]) -> dict[str, str]:
    cleaned: dict[str, str] = {}
    for key, value in values.items():
        try:
            column = schedules.normalize_day_column(key)
        except ValueError as exc:
            raise ApiError(422, "INVALID_DAY", str(exc)) from exc
        if value not in schedules.DAY_STATUSES:
            raise ApiError(422, "INVALID_DAY_STATUS", f"Day status must be 'working' or 'off', got {value!r}")
        cleaned[column] = value
    return cleaned


class DataService:
    def __init__(self, db: Session):
        self.db = db
        self.settings = get_settings()

    # Employees

    def default_entitlements(self) -> tuple[int, int]:
        policy = self.get_current_policy()
        entitlements = (policy.content or {}).get("entitlements") if policy else None
        if isinstance(entitlements, dict):
            return (
                int(entitlements.get("annualLeave", self.settings.default_annual_leave)),
                int(entitlements.get("sickLeave", self.settings.default_sick_leave)),
            )
        return self.settings.default_annual_leave, self.settings.default_sick_leave

    def save_employee(
        self,
        *,
        name: str,
        email: str,
        phone: str | None = None,
        annual_leave_remaining: int | None = None,
        sick_leave_remaining: int | None = None,
    ) -> Employee:
        """Insert or update the employee keyed on email."""
        employee = self.get_employee_by_email(email)
        if employee is None:
            annual_total, sick_total = self.default_entitlements()
            employee = Employee(
                name=name,
                email=email,
                phone=phone,
                annual_leave_total=annual_total,
                sick_leave_total=sick_total,
                annual_leave_remaining=annual_total if annual_leave_remaining is None else annual_leave_remaining,
                sick_leave_remaining=sick_total if sick_leave_remaining is None else sick_leave_remaining,
            )
        else:
            employee.name = name
            employee.phone = phone
            if annual_leave_remaining is not None:
                employee.annual_leave_remaining = annual_leave_remaining
            if sick_leave_remaining is not None:
                employee.sick_leave_remaining = sick_leave_remaining
        self.db.add(employee)
        self.db.commit()
        self.db.refresh(employee)
        return employee

    def get_employees(self) -> list[Employee]:
        return list(self.db.scalars(select(Employee).order_by(Employee.created_at.desc(), Employee.id.desc())).all())

    def get_employee(self, employee_id: int) -> Employee:
        employee = self.db.get(Employee, employee_id)
        if employee is None:
            raise _not_found("EMPLOYEE_NOT_FOUND", "Employee not found")
        return employee

    def get_employee_by_email(self, email: str) -> Employee | None:
        return self.db.scalar(select(Employee).where(Employee.email == email))

    def check_email_exists(self, email: str) -> bool:
        return self.get_employee_by_email(email) is not None

    def update_employee(self, employee_id: int, updates: dict[str, Any]) -> Employee:
        employee = self.get_employee(employee_id)
        for field in EMPLOYEE_EDITABLE_FIELDS:
            if field in updates and updates[field] is not None:
                setattr(employee, field, updates[field])
        if employee.user is not None and employee.user.email != employee.email:
            employee.user.email = employee.email
        self.db.add(employee)
        self.db.commit()
        self.db.refresh(employee)
        return employee

    def delete_employee(self, employee_id: int) -> None:
        employee = self.get_employee(employee_id)
        # Requests keep their denormalized name/email; only the id links are cleared.
        self.db.execute(
            update(LeaveRequest).where(LeaveRequest.employee_id == employee_id).values(employee_id=None)
        )
        self.db.execute(
            update(LeaveRequest)
            .where(LeaveRequest.exchange_partner_id == employee_id)
            .values(exchange_partner_id=None)
        )
        self.db.execute(
            update(LeaveRequest)
            .where(LeaveRequest.coverage_partner_id == employee_id)
            .values(coverage_partner_id=None)
        )
        self.db.delete(employee)
        self.db.commit()
        logger.info("employee_deleted", extra={"employee_id": employee_id})

    def update_employee_vacation_balance(
        self,
        employee_id: int,
        annual_leave_remaining: int,
        sick_leave_remaining: int,
        annual_leave_total: int,
        sick_leave_total: int,
    ) -> Employee:
        employee = self.get_employee(employee_id)
        self.db.execute(
            update(Employee)
            .where(Employee.id == employee_id)
            .values(
                annual_leave_remaining=annual_leave_remaining,
                sick_leave_remaining=sick_leave_remaining,
                annual_leave_total=annual_leave_total,
                sick_leave_total=sick_leave_total,
            )
        )
        self.db.commit()
        self.db.refresh(employee)
        logger.info(
            "vacation_balance_updated",
            extra={
                "employee_id": employee_id,
                "annual_leave_remaining": annual_leave_remaining,
                "sick_leave_remaining": sick_leave_remaining,
                "annual_leave_total": annual_leave_total,
                "sick_leave_total": sick_leave_total,
            },
        )
        return employee

    # Requests

    def current_catalog(self) -> dict[str, LeaveTypeSpec]:
        policy = self.get_current_policy()
        return build_catalog(policy.content if policy else None)

    def submit_request(self, draft: RequestDraft, *, partner_id: int | None) -> LeaveRequest:
        """Run the submission rules against live data, then save."""
        if draft.employee_id is None and draft.employee_email:
            requester = self.get_employee_by_email(draft.employee_email)
            if requester is not None:
                draft.employee_id = requester.id

        partner: PartnerRef | None = None
        if partner_id is not None:
            partner_employee = self.db.get(Employee, partner_id)
            if partner_employee is None:
                raise ApiError(422, "PARTNER_NOT_FOUND", "Selected partner does not exist")
            partner = PartnerRef(id=partner_employee.id, name=partner_employee.name)

        validate_request(
            draft,
            catalog=self.current_catalog(),
            partner=partner,
            day_status=self.get_employee_day_status,
            require_coverage_partner=self.settings.require_coverage_partner,
        )
        return self.save_request(draft)

    def save_request(self, draft: RequestDraft) -> LeaveRequest:
        if draft.employee_id is None and draft.employee_email:
            employee = self.get_employee_by_email(draft.employee_email)
            if employee is not None:
                draft.employee_id = employee.id
        if draft.days is None:
            draft.days = calculate_days(draft.start_date, draft.end_date)
        if draft.submit_date is None:
            draft.submit_date = date.today()
        if not draft.status:
            draft.status = STATUS_PENDING

        request = LeaveRequest(**asdict(draft))
        self.db.add(request)
        self.db.commit()
        self.db.refresh(request)
        logger.info(
            "leave_request_saved",
            extra={
                "request_id": request.id,
                "employee_id": request.employee_id,
                "type": request.type,
                "days": request.days,
            },
        )

        if request.exchange_partner_id is not None:
            try:
                self.create_exchange_notification(request)
            except SQLAlchemyError:
                self.db.rollback()
                logger.warning(
                    "exchange_notification_failed",
                    exc_info=True,
                    extra={"request_id": request.id, "exchange_partner_id": request.exchange_partner_id},
                )
        return request

    def get_requests(self) -> list[LeaveRequest]:
        return list(
            self.db.scalars(select(LeaveRequest).order_by(LeaveRequest.created_at.desc(), LeaveRequest.id.desc())).all()
        )

    def get_requests_by_employee(self, email: str, employee_id: int | None = None) -> list[LeaveRequest]:
        match = LeaveRequest.employee_email == email
        if employee_id is not None:
            match = or_(match, LeaveRequest.employee_id == employee_id)
        return list(
            self.db.scalars(
                select(LeaveRequest)
                .where(match)
                .order_by(LeaveRequest.created_at.desc(), LeaveRequest.id.desc())
            ).all()
        )

    def get_request(self, request_id: int) -> LeaveRequest:
        request = self.db.get(LeaveRequest, request_id)
        if request is None:
            raise _not_found("REQUEST_NOT_FOUND", "Request not found")
        return request

    def can_admin_approve_request(self, request_id: int) -> tuple[bool, str]:
        request = self.db.get(LeaveRequest, request_id)
        if request is None:
            return False, "Request not found"
        return can_admin_approve(
            request.status,
            requires_partner_approval=request.requires_partner_approval,
            partner_approved=request.exchange_partner_approved,
        )

    def update_request_status(self, request_id: int, status: str) -> LeaveRequest:
        request = self.get_request(request_id)
        if status == STATUS_APPROVED:
            can_approve, reason = self.can_admin_approve_request(request_id)
            if not can_approve:
                raise ApiError(409, "APPROVAL_BLOCKED", reason)
        ensure_admin_transition(request.status, status)

        if status == STATUS_APPROVED:
            self._apply_approval_effects(request)

        previous_status = request.status
        request.status = status
        request.decided_at = utcnow()
        self.db.add(request)
        if request.employee_id is not None:
            self.db.add(
                Notification(
                    employee_id=request.employee_id,
                    request_id=request.id,
                    title=f"Request {status.lower()}",
                    message=(
                        f"Your {request.type} request for {request.start_date.isoformat()}"
                        f" was {status.lower()} by an administrator."
                    ),
                )
            )
        self.db.commit()
        self.db.refresh(request)
        logger.info(
            "leave_request_status_changed",
            extra={"request_id": request.id, "from_status": previous_status, "to_status": status},
        )
        return request

    def _apply_approval_effects(self, request: LeaveRequest) -> None:
        field = balance_field_for(request.type)
        employee = self.db.get(Employee, request.employee_id) if request.employee_id is not None else None
        if field is not None and employee is not None and getattr(employee, field) < request.days:
            raise ApiError(
                409,
                "INSUFFICIENT_BALANCE",
                f"{employee.name} has {getattr(employee, field)} days of {request.type} left, "
                f"{request.days} requested",
            )

        if (
            request.type == EXCHANGE_OFF_DAYS
            and request.employee_id is not None
            and request.exchange_partner_id is not None
            and request.exchange_from_date is not None
            and request.partner_desired_off_date is not None
        ):
            schedules.apply_exchange(
                self.db,
                requester_id=request.employee_id,
                partner_id=request.exchange_partner_id,
                requested_date=request.exchange_from_date,
                partner_off_date=request.partner_desired_off_date,
            )

        if field is not None and employee is not None:
            setattr(employee, field, getattr(employee, field) - request.days)
            self.db.add(employee)

    # Exchange partner workflow

    def get_pending_exchange_approvals(self, employee_id: int) -> list[LeaveRequest]:
        return list(
            self.db.scalars(
                select(LeaveRequest)
                .where(
                    LeaveRequest.exchange_partner_id == employee_id,
                    LeaveRequest.requires_partner_approval.is_(True),
                    LeaveRequest.status == STATUS_PENDING,
                    LeaveRequest.exchange_partner_approved.is_(None),
                )
                .order_by(LeaveRequest.created_at.asc(), LeaveRequest.id.asc())
            ).all()
        )

    def approve_exchange_request(
        self,
        request_id: int,
        employee_id: int,
        approved: bool,
        notes: str | None = None,
    ) -> LeaveRequest:
        request = self.get_request(request_id)
        if not request.requires_partner_approval or request.exchange_partner_id is None:
            raise ApiError(409, "NOT_AN_EXCHANGE", "This request does not need partner approval")
        if request.exchange_partner_id != employee_id:
            raise ApiError(403, "NOT_EXCHANGE_PARTNER", "Only the nominated exchange partner can respond")

        request.status = decide_partner_transition(request.status, approved)
        request.exchange_partner_approved = approved
        request.exchange_partner_approved_at = utcnow()
        request.exchange_partner_notes = notes
        self.db.add(request)

        if request.employee_id is not None:
            partner = self.db.get(Employee, employee_id)
            partner_name = partner.name if partner else "Your exchange partner"
            verdict = "accepted" if approved else "declined"
            self.db.add(
                Notification(
                    employee_id=request.employee_id,
                    request_id=request.id,
                    title=f"Exchange {verdict}",
                    message=f"{partner_name} {verdict} your exchange for {request.start_date.isoformat()}.",
                )
            )
        self.db.commit()
        self.db.refresh(request)
        logger.info(
            "exchange_partner_decision",
            extra={"request_id": request.id, "employee_id": employee_id, "approved": approved},
        )
        return request

    def validate_exchange_request(
        self,
        employee_id: int,
        exchange_from_date: date,
        exchange_to_date: date,
        exchange_partner_id: int,
    ) -> tuple[bool, str | None]:
        partner = self.db.get(Employee, exchange_partner_id)
        if partner is None:
            return False, "Selected partner does not exist"
        if exchange_partner_id == employee_id:
            return False, "You cannot exchange days with yourself"
        if exchange_from_date == exchange_to_date:
            return False, "The exchanged dates must be different"
        partner_status = self.get_employee_day_status(exchange_partner_id, exchange_from_date)
        if partner_status != schedules.OFF:
            return False, f"{partner.name} is {partner_status} on {exchange_from_date.isoformat()}"
        return True, None

    def get_exchange_request_status(self, request_id: int) -> dict[str, Any]:
        request = self.get_request(request_id)
        partner = self.db.get(Employee, request.exchange_partner_id) if request.exchange_partner_id else None
        can_approve, reason = self.can_admin_approve_request(request_id)
        return {
            "request_id": request.id,
            "status": request.status,
            "requires_partner_approval": request.requires_partner_approval,
            "exchange_partner_id": request.exchange_partner_id,
            "exchange_partner_name": partner.name if partner else None,
            "exchange_partner_approved": request.exchange_partner_approved,
            "exchange_partner_approved_at": request.exchange_partner_approved_at,
            "exchange_partner_notes": request.exchange_partner_notes,
            "can_admin_approve": can_approve,
            "admin_approval_reason": reason,
        }

    def create_exchange_notification(self, request: LeaveRequest) -> Notification:
        notification = Notification(
            employee_id=request.exchange_partner_id,
            request_id=request.id,
            title="Exchange request awaiting your approval",
            message=(
                f"{request.employee_name} asked you to work on {request.start_date.isoformat()}"
                f" and take {request.partner_desired_off_date.isoformat() if request.partner_desired_off_date else 'another day'}"
                " off instead."
            ),
        )
        self.db.add(notification)
        self.db.commit()
        self.db.refresh(notification)
        return notification

    # Policies

    def get_current_policy(self) -> Policy | None:
        return self.db.scalar(
            select(Policy)
            .where(Policy.published.is_(True))
            .order_by(Policy.updated_at.desc(), Policy.id.desc())
            .limit(1)
        )

    def get_policy_history(self) -> list[Policy]:
        return list(self.db.scalars(select(Policy).order_by(Policy.version.desc())).all())

    def update_policy(self, content: dict[str, Any]) -> tuple[Policy, int]:
        """Publish a new policy version; returns it and the number of employees rebalanced."""
        previous = self.get_current_policy()
        previous_entitlements = (previous.content or {}).get("entitlements") if previous else None

        self.db.execute(update(Policy).where(Policy.published.is_(True)).values(published=False))
        next_version = (self.db.scalar(select(func.max(Policy.version))) or 0) + 1
        policy = Policy(version=next_version, content=content, published=True)
        self.db.add(policy)

        balances_updated = 0
        entitlements = content.get("entitlements")
        if isinstance(entitlements, dict) and entitlements != previous_entitlements:
            annual_leave = int(entitlements["annualLeave"])
            sick_leave = int(entitlements["sickLeave"])
            result = self.db.execute(
                update(Employee).values(
                    annual_leave_remaining=annual_leave,
                    sick_leave_remaining=sick_leave,
                    annual_leave_total=annual_leave,
                    sick_leave_total=sick_leave,
                )
            )
            balances_updated = int(result.rowcount or 0)

        self.db.commit()
        self.db.refresh(policy)
        logger.info(
            "policy_published",
            extra={"policy_id": policy.id, "version": policy.version, "balances_updated": balances_updated},
        )
        return policy, balances_updated

    # Work schedules

    def get_work_schedules(self, week_start: date | None = None) -> list[tuple[WorkSchedule, Employee]]:
        week_start = schedules.week_start_for(week_start or date.today())
        rows = self.db.execute(
            select(WorkSchedule, Employee)
            .join(Employee, WorkSchedule.employee_id == Employee.id)
            .where(WorkSchedule.week_start_date == week_start)
            .order_by(Employee.name.asc(), Employee.id.asc())
        ).all()
        return [(schedule, employee) for schedule, employee in rows]

    def get_work_schedule_by_employee(self, employee_id: int, week_start: date) -> WorkSchedule | None:
        return schedules.get_week_schedule(self.db, employee_id, schedules.week_start_for(week_start))

    def save_work_schedule(self, employee_id: int, week_start: date, statuses: dict[str, Any]) -> WorkSchedule:
        self.get_employee(employee_id)
        cleaned = _clean_statuses(statuses)
        schedule = self.get_work_schedule_by_employee(employee_id, week_start)
        if schedule is None:
            schedule = WorkSchedule(
                employee_id=employee_id,
                week_start_date=schedules.week_start_for(week_start),
                **schedules.DEFAULT_PATTERN,
            )
        for column, value in cleaned.items():
            setattr(schedule, column, value)
        self.db.add(schedule)
        self.db.commit()
        self.db.refresh(schedule)
        return schedule

    def update_work_schedule(self, schedule_id: int, updates: dict[str, Any]) -> WorkSchedule:
        schedule = self.db.get(WorkSchedule, schedule_id)
        if schedule is None:
            raise _not_found("SCHEDULE_NOT_FOUND", "Work schedule not found")
        for column, value in _clean_statuses(updates).items():
            setattr(schedule, column, value)
        self.db.add(schedule)
        self.db.commit()
        self.db.refresh(schedule)
        return schedule

    def delete_work_schedule(self, schedule_id: int) -> None:
        schedule = self.db.get(WorkSchedule, schedule_id)
        if schedule is None:
            raise _not_found("SCHEDULE_NOT_FOUND", "Work schedule not found")
        self.db.delete(schedule)
        self.db.commit()

    def create_default_schedule_for_employee(self, employee_id: int, week_start: date) -> WorkSchedule:
        self.get_employee(employee_id)
        schedule = schedules.materialize_week_schedule(self.db, employee_id, week_start, use_template=False)
        self.db.commit()
        self.db.refresh(schedule)
        return schedule

    def set_schedule_day(self, employee_id: int, week_start: date, day: str, status: str) -> WorkSchedule:
        _clean_statuses({day: status})
        schedule = self.create_default_schedule_for_employee(employee_id, week_start)
        return self.update_work_schedule(schedule.id, {day: status})

    def generate_week_schedules(self, week_start: date | None = None) -> tuple[date, int]:
        week_start = schedules.week_start_for(week_start or date.today())
        generated = schedules.generate_week_schedules(self.db, week_start)
        self.db.commit()
        return week_start, generated

    def get_available_coverage(self, day: date, *, exclude_employee_id: int | None = None) -> list[dict[str, Any]]:
        coverage: list[dict[str, Any]] = []
        employees = self.db.scalars(select(Employee).order_by(Employee.name.asc(), Employee.id.asc())).all()
        for employee in employees:
            if employee.id == exclude_employee_id:
                continue
            status = schedules.resolve_day_status(self.db, employee.id, day)
            if status != schedules.OFF:
                continue
            coverage.append(
                {
                    "employee_id": employee.id,
                    "employee_name": employee.name,
                    "employee_email": employee.email,
                    "day_status": status,
                }
            )
        return coverage

    def get_employee_day_status(self, employee_id: int, day: date) -> str:
        return schedules.resolve_day_status(self.db, employee_id, day)

    # Work schedule templates

    def get_work_schedule_templates(self) -> list[WorkScheduleTemplate]:
        return list(
            self.db.scalars(
                select(WorkScheduleTemplate)
                .join(Employee, WorkScheduleTemplate.employee_id == Employee.id)
                .where(WorkScheduleTemplate.is_active.is_(True))
                .order_by(Employee.name.asc(), Employee.id.asc())
            ).all()
        )

    def get_work_schedule_template_by_employee(self, employee_id: int) -> WorkScheduleTemplate | None:
        return schedules.get_active_template(self.db, employee_id)

    def save_work_schedule_template(
        self,
        employee_id: int,
        statuses: dict[str, Any],
        *,
        is_active: bool = True,
    ) -> WorkScheduleTemplate:
        self.get_employee(employee_id)
        cleaned = _clean_statuses(statuses)
        template = self.db.scalar(select(WorkScheduleTemplate).where(WorkScheduleTemplate.employee_id == employee_id))
        if template is None:
            template = WorkScheduleTemplate(employee_id=employee_id, **schedules.DEFAULT_PATTERN)
        for column, value in cleaned.items():
            setattr(template, column, value)
        template.is_active = is_active
        self.db.add(template)
        self.db.commit()
        self.db.refresh(template)
        return template

    def update_work_schedule_template(self, template_id: int, updates: dict[str, Any]) -> WorkScheduleTemplate:
        template = self.db.get(WorkScheduleTemplate, template_id)
        if template is None:
            raise _not_found("TEMPLATE_NOT_FOUND", "Work schedule template not found")
        for column, value in _clean_statuses(updates).items():
            setattr(template, column, value)
        self.db.add(template)
        self.db.commit()
        self.db.refresh(template)
        return template

    def delete_work_schedule_template(self, template_id: int) -> None:
        template = self.db.get(WorkScheduleTemplate, template_id)
        if template is None:
            raise _not_found("TEMPLATE_NOT_FOUND", "Work schedule template not found")
        self.db.delete(template)
        self.db.commit()

    def create_default_template_for_employee(self, employee_id: int) -> WorkScheduleTemplate:
        existing = self.get_work_schedule_template_by_employee(employee_id)
        if existing is not None:
            return existing
        return self.save_work_schedule_template(employee_id, dict(schedules.DEFAULT_PATTERN))

    def set_template_day(self, employee_id: int, day: str, status: str) -> WorkScheduleTemplate:
        _clean_statuses({day: status})
        template = self.create_default_template_for_employee(employee_id)
        return self.update_work_schedule_template(template.id, {day: status})

    def copy_work_schedule_template(self, source_employee_id: int, target_employee_id: int) -> WorkScheduleTemplate:
        source = self.get_work_schedule_template_by_employee(source_employee_id)
        if source is None:
            raise _not_found("TEMPLATE_NOT_FOUND", "Source template not found")
        return self.save_work_schedule_template(target_employee_id, schedules.pattern_of(source))

    # Notifications

    def get_notifications(self, employee_id: int) -> list[Notification]:
        return list(
            self.db.scalars(
                select(Notification)
                .where(Notification.employee_id == employee_id)
                .order_by(Notification.created_at.desc(), Notification.id.desc())
            ).all()
        )

    def mark_notification_as_read(self, notification_id: int, employee_id: int) -> Notification:
        notification = self.db.get(Notification, notification_id)
        if notification is None or notification.employee_id != employee_id:
            raise _not_found("NOTIFICATION_NOT_FOUND", "Notification not found")
        notification.is_read = True
        self.db.add(notification)
        self.db.commit()
        self.db.refresh(notification)
        return notification

    def get_unread_notification_count(self, employee_id: int) -> int:
        return int(
            self.db.scalar(
                select(func.count(Notification.id)).where(
                    Notification.employee_id == employee_id,
                    Notification.is_read.is_(False),
                )
            )
            or 0
        )

    # Admin dashboard

    def get_dashboard_stats(self, requests: list[LeaveRequest]) -> dict[str, int]:
        return {
            "pending": sum(1 for r in requests if r.status in (STATUS_PENDING, STATUS_PARTNER_APPROVED)),
            "approved": sum(1 for r in requests if r.status == STATUS_APPROVED),
            "total_requests": len(requests),
            "coverage_needed": sum(1 for r in requests if r.status == STATUS_APPROVED and not r.coverage_arranged),
        }


def get_data_service(db: Session = Depends(get_db)) -> DataService:
    return DataService(db)
