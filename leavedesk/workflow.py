"""Leave and exchange request rules.

Everything here is pure: callers pass in the catalog and a day-status lookup,
and a failed rule raises :class:`RuleViolation` before anything is written.
"""

from __future__ import annotations

import math
from collections.abc import Callable, Iterable
from dataclasses import asdict, dataclass
from datetime import date

from leavedesk.errors import ApiError, RuleViolation

ANNUAL_LEAVE = "Annual Leave"
SICK_LEAVE = "Sick Leave"
EXCHANGE_OFF_DAYS = "Exchange Off Days"

STATUS_PENDING = "Pending"
STATUS_PARTNER_APPROVED = "Partner Approved"
STATUS_APPROVED = "Approved"
STATUS_REJECTED = "Rejected"
TERMINAL_STATUSES = frozenset({STATUS_APPROVED, STATUS_REJECTED})

SICK_LEAVE_MAX_DAYS = 1
EXCHANGE_DAYS = 1

# Admin decisions; partner decisions are handled by decide_partner_transition.
ADMIN_TRANSITIONS: dict[str, frozenset[str]] = {
    STATUS_PENDING: frozenset({STATUS_APPROVED, STATUS_REJECTED}),
    STATUS_PARTNER_APPROVED: frozenset({STATUS_APPROVED, STATUS_REJECTED}),
}


@dataclass(frozen=True)
class LeaveTypeSpec:
    value: str
    label: str
    max_days: int
    paid: bool
    requires_coverage: bool = True
    is_exchange: bool = False
    description: str = ""

    def to_policy_entry(self) -> dict:
        return {
            "value": self.value,
            "label": self.label,
            "maxDays": self.max_days,
            "paid": self.paid,
            "requiresCoverage": self.requires_coverage,
            "isExchange": self.is_exchange,
            "description": self.description,
        }

    def as_dict(self) -> dict:
        return asdict(self)


DEFAULT_LEAVE_TYPES: tuple[LeaveTypeSpec, ...] = (
    LeaveTypeSpec(ANNUAL_LEAVE, "Annual Leave", 14, True, description="Paid vacation time"),
    LeaveTypeSpec(SICK_LEAVE, "Sick Leave", 1, True, description="Paid sick day (1 day maximum per request)"),
    LeaveTypeSpec("Emergency Leave", "Emergency Leave", 3, False, description="Unpaid emergency leave"),
    LeaveTypeSpec("Personal Leave", "Personal Day", 1, False, description="Unpaid personal day"),
    LeaveTypeSpec("Maternity Leave", "Maternity Leave", 70, False, description="Unpaid maternity leave"),
    LeaveTypeSpec("Paternity Leave", "Paternity Leave", 7, False, description="Unpaid paternity leave"),
    LeaveTypeSpec("Bereavement Leave", "Bereavement Leave", 5, False, description="Unpaid bereavement leave"),
    LeaveTypeSpec("Religious Leave", "Religious Leave", 2, False, description="Unpaid religious observance"),
    LeaveTypeSpec("Compensatory Time", "Comp Time", 3, False, description="Unpaid compensation time"),
    LeaveTypeSpec("Unpaid Leave", "Unpaid Leave", 30, False, description="Unpaid leave"),
    LeaveTypeSpec(
        EXCHANGE_OFF_DAYS,
        "Exchange Off Days",
        EXCHANGE_DAYS,
        False,
        requires_coverage=False,
        is_exchange=True,
        description="Exchange scheduled off days with another employee",
    ),
)


def calculate_days(start: date | None, end: date | None) -> int:
    if start is None or end is None:
        return 0
    delta_days = abs((end - start).total_seconds()) / 86400
    return math.ceil(delta_days) + 1


def leave_type_from_policy_entry(entry: dict) -> LeaveTypeSpec:
    value = str(entry["value"])
    # Exchange Off Days keeps its partner workflow whatever flags the policy carries.
    is_exchange = value == EXCHANGE_OFF_DAYS or bool(entry.get("isExchange", False))
    return LeaveTypeSpec(
        value=value,
        label=str(entry.get("label") or value),
        max_days=int(entry.get("maxDays", 0)),
        paid=bool(entry.get("paid", False)),
        requires_coverage=not is_exchange and bool(entry.get("requiresCoverage", True)),
        is_exchange=is_exchange,
        description=str(entry.get("description") or ""),
    )


def build_catalog(policy_content: dict | None) -> dict[str, LeaveTypeSpec]:
    """Active leave-type table: the published policy's list, else the built-in one."""
    entries: Iterable[LeaveTypeSpec] = DEFAULT_LEAVE_TYPES
    raw_types = (policy_content or {}).get("leaveTypes")
    if isinstance(raw_types, list) and raw_types:
        entries = [leave_type_from_policy_entry(item) for item in raw_types if isinstance(item, dict) and item.get("value")]
    return {spec.value: spec for spec in entries}


def default_policy_content(annual_leave: int, sick_leave: int) -> dict:
    return {
        "leaveTypes": [spec.to_policy_entry() for spec in DEFAULT_LEAVE_TYPES],
        "entitlements": {"annualLeave": annual_leave, "sickLeave": sick_leave},
        "guidelines": {},
    }


@dataclass
class RequestDraft:
    """A leave request as submitted, before it becomes a row."""

    employee_name: str
    employee_email: str
    type: str
    start_date: date | None
    end_date: date | None
    reason: str
    employee_id: int | None = None
    status: str = STATUS_PENDING
    days: int | None = None
    submit_date: date | None = None
    coverage_by: str | None = None
    coverage_arranged: bool = False
    coverage_partner_id: int | None = None
    exchange_partner_id: int | None = None
    exchange_from_date: date | None = None
    exchange_to_date: date | None = None
    exchange_reason: str | None = None
    partner_desired_off_date: date | None = None
    requires_partner_approval: bool = False
    medical_certificate: bool = False
    emergency_contact: str | None = None
    additional_notes: str | None = None


@dataclass(frozen=True)
class PartnerRef:
    id: int
    name: str


DayStatusLookup = Callable[[int, date], str]


def _blank(value: str | None) -> bool:
    return value is None or not value.strip()


def validate_request(
    draft: RequestDraft,
    *,
    catalog: dict[str, LeaveTypeSpec],
    partner: PartnerRef | None,
    day_status: DayStatusLookup,
    require_coverage_partner: bool = True,
) -> LeaveTypeSpec:
    """Check a draft and fill in its derived fields.

    ``partner`` is the exchange partner for exchange types and the coverage
    partner otherwise. Returns the matching catalog entry.
    """
    if _blank(draft.type) or draft.start_date is None or draft.end_date is None or _blank(draft.reason):
        raise RuleViolation("MISSING_FIELDS", "Please fill in all required fields")

    spec = catalog.get(draft.type)
    if spec is None:
        raise RuleViolation("UNKNOWN_LEAVE_TYPE", f"Unknown leave type: {draft.type}")

    if draft.end_date < draft.start_date:
        raise RuleViolation("INVALID_DATE_RANGE", "End date must be on or after the start date")

    days = calculate_days(draft.start_date, draft.end_date)
    if draft.type == SICK_LEAVE and days > SICK_LEAVE_MAX_DAYS:
        raise RuleViolation(
            "SICK_LEAVE_LIMIT",
            "Sick leave cannot exceed 1 day per request. For longer illnesses, "
            "please submit multiple single-day requests.",
        )
    if days > spec.max_days:
        raise RuleViolation(
            "MAX_DAYS_EXCEEDED",
            f"{spec.label} cannot exceed {spec.max_days} days per request.",
        )

    if spec.is_exchange:
        _validate_exchange(draft, days=days, partner=partner, day_status=day_status)
        draft.exchange_partner_id = partner.id if partner else None
        draft.exchange_from_date = draft.start_date
        draft.exchange_to_date = draft.partner_desired_off_date
        draft.requires_partner_approval = True
        draft.coverage_partner_id = None
    else:
        if partner is None:
            if require_coverage_partner:
                raise RuleViolation("COVERAGE_PARTNER_REQUIRED", "Please select a coverage partner")
        elif draft.employee_id is not None and partner.id == draft.employee_id:
            raise RuleViolation("PARTNER_IS_REQUESTER", "You cannot nominate yourself as coverage partner")
        else:
            draft.coverage_partner_id = partner.id
            draft.coverage_by = draft.coverage_by or partner.name
            draft.coverage_arranged = True
        draft.exchange_partner_id = None
        draft.requires_partner_approval = False

    draft.days = days
    return spec


def _validate_exchange(
    draft: RequestDraft,
    *,
    days: int,
    partner: PartnerRef | None,
    day_status: DayStatusLookup,
) -> None:
    if partner is None:
        raise RuleViolation("PARTNER_REQUIRED", "Please select an exchange partner")
    if draft.employee_id is not None and partner.id == draft.employee_id:
        raise RuleViolation("PARTNER_IS_REQUESTER", "You cannot exchange days with yourself")
    if _blank(draft.exchange_reason):
        raise RuleViolation("EXCHANGE_REASON_REQUIRED", "Please provide a reason for the exchange")
    if days != EXCHANGE_DAYS:
        raise RuleViolation("EXCHANGE_SINGLE_DAY", "Exchange Off Days must cover exactly 1 day")
    if draft.partner_desired_off_date is None or draft.partner_desired_off_date == draft.start_date:
        raise RuleViolation(
            "EXCHANGE_DATES_MUST_DIFFER",
            "The partner's desired off date must be different from your requested date",
        )

    requested_date = draft.start_date
    status = day_status(partner.id, requested_date)
    if status != "off":
        raise RuleViolation(
            "PARTNER_NOT_OFF",
            f"{partner.name} is {status} on {requested_date.isoformat()}. "
            "Exchange partners must be off on the requested date.",
        )


def can_admin_approve(status: str, *, requires_partner_approval: bool, partner_approved: bool | None) -> tuple[bool, str]:
    if status in TERMINAL_STATUSES:
        return False, f"Request is already {status}"
    if requires_partner_approval and partner_approved is not True:
        return False, "Exchange partner has not approved this request yet"
    return True, "Request can be approved"


def ensure_admin_transition(current: str, target: str) -> None:
    allowed = ADMIN_TRANSITIONS.get(current, frozenset())
    if target not in allowed:
        raise ApiError(
            409,
            "INVALID_TRANSITION",
            f"Cannot move a request from {current} to {target}",
        )


def decide_partner_transition(current: str, approved: bool) -> str:
    if current != STATUS_PENDING:
        raise ApiError(
            409,
            "INVALID_TRANSITION",
            f"Exchange partner can only respond to a Pending request (currently {current})",
        )
    return STATUS_PARTNER_APPROVED if approved else STATUS_REJECTED


def balance_field_for(leave_type: str) -> str | None:
    if leave_type == ANNUAL_LEAVE:
        return "annual_leave_remaining"
    if leave_type == SICK_LEAVE:
        return "sick_leave_remaining"
    return None
