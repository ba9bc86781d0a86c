from __future__ import annotations

from datetime import date, datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator

Role = Literal["admin", "employee"]
DayStatus = Literal["working", "off"]
RequestStatus = Literal["Pending", "Partner Approved", "Approved", "Rejected"]


class AuthPayload(BaseModel):
    email: str
    password: str = Field(max_length=72)


class RegisterPayload(BaseModel):
    name: str
    email: str
    phone: str
    password: str = Field(max_length=72)
    confirm_password: str = Field(max_length=72)


class ChangePasswordPayload(BaseModel):
    current_password: str = Field(max_length=72)
    new_password: str = Field(max_length=72)


class UserCreatePayload(BaseModel):
    email: str
    temporary_password: str = Field(max_length=72)
    role: Role = "admin"
    employee_id: int | None = None


class UserPatchPayload(BaseModel):
    role: Role | None = None
    temporary_password: str | None = Field(default=None, max_length=72)
    is_active: bool | None = None


class UserOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    email: str
    role: Role
    is_active: bool
    employee_id: int | None = None
    created_at: datetime


class EmployeeOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    email: str
    phone: str | None = None
    annual_leave_remaining: int
    sick_leave_remaining: int
    annual_leave_total: int
    sick_leave_total: int
    created_at: datetime


class MeOut(BaseModel):
    user: UserOut
    employee: EmployeeOut | None = None


class EmployeeCreatePayload(BaseModel):
    name: str
    email: str
    phone: str | None = None
    password: str | None = Field(default=None, max_length=72)
    annual_leave_remaining: int | None = Field(default=None, ge=0)
    sick_leave_remaining: int | None = Field(default=None, ge=0)


class EmployeePatchPayload(BaseModel):
    name: str | None = None
    email: str | None = None
    phone: str | None = None


class VacationBalancePayload(BaseModel):
    annual_leave_remaining: int = Field(ge=0)
    sick_leave_remaining: int = Field(ge=0)
    annual_leave_total: int = Field(ge=0)
    sick_leave_total: int = Field(ge=0)


class LeaveRequestCreatePayload(BaseModel):
    type: str
    start_date: date | None = None
    end_date: date | None = None
    reason: str = ""
    employee_id: int | None = None
    partner_id: int | None = None
    coverage_by: str | None = None
    exchange_reason: str | None = None
    partner_desired_off_date: date | None = None
    medical_certificate: bool = False
    emergency_contact: str | None = None
    additional_notes: str | None = None


class LeaveRequestOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    employee_id: int | None = None
    employee_name: str
    employee_email: str
    type: str
    start_date: date
    end_date: date
    days: int
    reason: str
    status: RequestStatus
    submit_date: date
    coverage_by: str | None = None
    coverage_arranged: bool
    coverage_partner_id: int | None = None
    exchange_partner_id: int | None = None
    exchange_from_date: date | None = None
    exchange_to_date: date | None = None
    exchange_reason: str | None = None
    partner_desired_off_date: date | None = None
    requires_partner_approval: bool
    exchange_partner_approved: bool | None = None
    exchange_partner_approved_at: datetime | None = None
    exchange_partner_notes: str | None = None
    medical_certificate: bool
    emergency_contact: str | None = None
    additional_notes: str | None = None
    decided_at: datetime | None = None
    created_at: datetime


class StatusUpdatePayload(BaseModel):
    status: Literal["Approved", "Rejected"]


class PartnerDecisionPayload(BaseModel):
    approved: bool
    notes: str | None = None


class ApprovalCheckOut(BaseModel):
    can_approve: bool
    reason: str


class ExchangeValidatePayload(BaseModel):
    employee_id: int | None = None
    exchange_from_date: date
    exchange_to_date: date
    exchange_partner_id: int


class ExchangeValidationOut(BaseModel):
    is_valid: bool
    error_message: str | None = None


class ExchangeStatusOut(BaseModel):
    request_id: int
    status: RequestStatus
    requires_partner_approval: bool
    exchange_partner_id: int | None = None
    exchange_partner_name: str | None = None
    exchange_partner_approved: bool | None = None
    exchange_partner_approved_at: datetime | None = None
    exchange_partner_notes: str | None = None
    can_admin_approve: bool
    admin_approval_reason: str


class CoverageOut(BaseModel):
    employee_id: int
    employee_name: str
    employee_email: str
    day_status: DayStatus


class DayStatusOut(BaseModel):
    employee_id: int
    day: date
    day_status: DayStatus


class LeaveTypeOut(BaseModel):
    value: str
    label: str
    max_days: int
    paid: bool
    requires_coverage: bool
    is_exchange: bool
    description: str = ""


class LeaveTypeEntry(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    value: str
    label: str
    max_days: int = Field(alias="maxDays", ge=1)
    paid: bool
    requires_coverage: bool | None = Field(default=None, alias="requiresCoverage")
    is_exchange: bool | None = Field(default=None, alias="isExchange")
    description: str = ""


class Entitlements(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    annual_leave: int = Field(alias="annualLeave", ge=0)
    sick_leave: int = Field(alias="sickLeave", ge=0)


class PolicyContent(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    leave_types: list[LeaveTypeEntry] = Field(alias="leaveTypes", min_length=1)
    entitlements: Entitlements | None = None
    guidelines: dict[str, Any] = Field(default_factory=dict)

    @model_validator(mode="after")
    def validate_unique_types(self) -> PolicyContent:
        values = [entry.value for entry in self.leave_types]
        if len(values) != len(set(values)):
            raise ValueError("leaveTypes values must be unique")
        return self

    def to_content(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


class PolicyOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    version: int
    content: dict[str, Any]
    published: bool
    created_at: datetime
    updated_at: datetime


class PolicyUpdateOut(BaseModel):
    policy: PolicyOut
    balances_updated: int


class WorkScheduleOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    employee_id: int
    week_start_date: date
    monday_status: DayStatus
    tuesday_status: DayStatus
    wednesday_status: DayStatus
    thursday_status: DayStatus
    friday_status: DayStatus
    saturday_status: DayStatus
    sunday_status: DayStatus


class WorkScheduleRowOut(WorkScheduleOut):
    employee_name: str
    employee_email: str


class ScheduleAddPayload(BaseModel):
    employee_id: int
    week_start_date: date


class DayStatusPayload(BaseModel):
    status: DayStatus


class GenerateWeekPayload(BaseModel):
    week_start_date: date | None = None


class GenerateWeekOut(BaseModel):
    week_start_date: date
    generated: int


class WorkScheduleTemplateOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    employee_id: int
    monday_status: DayStatus
    tuesday_status: DayStatus
    wednesday_status: DayStatus
    thursday_status: DayStatus
    friday_status: DayStatus
    saturday_status: DayStatus
    sunday_status: DayStatus
    is_active: bool


class TemplateCreatePayload(BaseModel):
    employee_id: int


class TemplateCopyPayload(BaseModel):
    source_employee_id: int
    target_employee_id: int

    @model_validator(mode="after")
    def validate_distinct(self) -> TemplateCopyPayload:
        if self.source_employee_id == self.target_employee_id:
            raise ValueError("source and target employees must differ")
        return self


class NotificationOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    employee_id: int
    request_id: int | None = None
    title: str
    message: str
    is_read: bool
    created_at: datetime


class UnreadCountOut(BaseModel):
    unread: int


class DashboardStats(BaseModel):
    pending: int = 0
    approved: int = 0
    total_requests: int = 0
    coverage_needed: int = 0


class AdminOverviewOut(BaseModel):
    employees: list[EmployeeOut]
    requests: list[LeaveRequestOut]
    stats: DashboardStats
    load_error: bool = False
