from __future__ import annotations

import logging
import secrets
import time
from datetime import date, datetime, timedelta, timezone
from uuid import uuid4

from fastapi import Body, Depends, FastAPI, Header, HTTPException, Query, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, Response
from sqlalchemy import delete, func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session
from starlette.exceptions import HTTPException as StarletteHTTPException

from leavedesk.db import get_db
from leavedesk.errors import ApiError, error_response
from leavedesk.gateway import DataService, get_data_service
from leavedesk.logging_utils import setup_json_logging
from leavedesk.models import Employee, LeaveRequest, SessionRecord, User
from leavedesk.schemas import (
    AdminOverviewOut,
    ApprovalCheckOut,
    AuthPayload,
    ChangePasswordPayload,
    CoverageOut,
    DashboardStats,
    DayStatus,
    DayStatusOut,
    DayStatusPayload,
    EmployeeCreatePayload,
    EmployeeOut,
    EmployeePatchPayload,
    ExchangeStatusOut,
    ExchangeValidatePayload,
    ExchangeValidationOut,
    GenerateWeekOut,
    GenerateWeekPayload,
    LeaveRequestCreatePayload,
    LeaveRequestOut,
    LeaveTypeOut,
    MeOut,
    NotificationOut,
    PartnerDecisionPayload,
    PolicyContent,
    PolicyOut,
    PolicyUpdateOut,
    RegisterPayload,
    ScheduleAddPayload,
    StatusUpdatePayload,
    TemplateCopyPayload,
    TemplateCreatePayload,
    UnreadCountOut,
    UserCreatePayload,
    UserOut,
    UserPatchPayload,
    VacationBalancePayload,
    WorkScheduleOut,
    WorkScheduleRowOut,
    WorkScheduleTemplateOut,
)
from leavedesk.security import hash_password, verify_password
from leavedesk.settings import corporate_email_suffix, get_settings
from leavedesk.workflow import RequestDraft

setup_json_logging(get_settings().log_level)
logger = logging.getLogger("leavedesk.request")

app = FastAPI(title=get_settings().app_name, version="0.1.0")

SESSION_COOKIE_NAME = "session_id"


@app.middleware("http")
async def request_middleware(request: Request, call_next):
    request_id = request.headers.get("X-Request-Id") or str(uuid4())
    request.state.request_id = request_id

    start = time.perf_counter()
    status_code = 500
    try:
        response = await call_next(request)
        status_code = response.status_code
        response.headers["X-Request-Id"] = request_id
        path = request.url.path
        if path.startswith("/api/") or path.startswith("/auth/"):
            response.headers["Cache-Control"] = "no-store, no-cache, max-age=0, must-revalidate"
            response.headers["Pragma"] = "no-cache"
        return response
    finally:
        latency_ms = round((time.perf_counter() - start) * 1000, 2)
        logger.info(
            "request_complete",
            extra={
                "request_id": request_id,
                "path": request.url.path,
                "method": request.method,
                "status_code": status_code,
                "latency_ms": latency_ms,
                "user_id": getattr(request.state, "user_id", None),
            },
        )


@app.exception_handler(ApiError)
async def handle_api_error(request: Request, exc: ApiError) -> JSONResponse:
    return error_response(
        request,
        status_code=exc.status_code,
        code=exc.code,
        message=exc.message,
    )


@app.exception_handler(StarletteHTTPException)
async def handle_http_exception(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    status_code = exc.status_code
    code_map = {
        400: "BAD_REQUEST",
        401: "UNAUTHORIZED",
        403: "FORBIDDEN",
        404: "NOT_FOUND",
        409: "CONFLICT",
        503: "UNAVAILABLE",
    }
    code = code_map.get(status_code, "HTTP_ERROR")
    message = str(exc.detail) if exc.detail else "Request failed."
    return error_response(
        request,
        status_code=status_code,
        code=code,
        message=message,
    )


@app.exception_handler(RequestValidationError)
async def handle_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    return error_response(
        request,
        status_code=422,
        code="VALIDATION_ERROR",
        message=str(exc.errors()),
    )


@app.exception_handler(IntegrityError)
async def handle_integrity_error(request: Request, exc: IntegrityError) -> JSONResponse:
    logger.warning(
        "integrity_error",
        extra={"request_id": getattr(request.state, "request_id", "unknown"), "path": request.url.path},
    )
    return error_response(
        request,
        status_code=409,
        code="INTEGRITY_ERROR",
        message=str(exc.orig),
    )


@app.exception_handler(SQLAlchemyError)
async def handle_database_error(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    logger.exception(
        "database_error",
        extra={"request_id": getattr(request.state, "request_id", "unknown"), "path": request.url.path},
    )
    return error_response(
        request,
        status_code=500,
        code="DATABASE_ERROR",
        message=str(exc),
    )


@app.exception_handler(Exception)
async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(
        "unhandled_error",
        extra={
            "request_id": getattr(request.state, "request_id", "unknown"),
            "path": request.url.path,
            "method": request.method,
        },
    )
    return error_response(
        request,
        status_code=500,
        code="INTERNAL_ERROR",
        message="Unexpected server error.",
    )


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def normalize_email(email: str) -> str:
    return email.strip().lower()


def ensure_password_strength(password: str) -> None:
    min_length = get_settings().min_password_length
    if len(password) < min_length:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Password must be at least {min_length} characters",
        )


def ensure_valid_email(email: str) -> str:
    normalized = normalize_email(email)
    if "@" not in normalized or normalized.startswith("@") or normalized.endswith("@"):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="A valid email is required")
    return normalized


def ensure_corporate_email(email: str) -> str:
    normalized = ensure_valid_email(email)
    suffix = corporate_email_suffix()
    if not normalized.endswith(suffix):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Please use your corporate email address ({suffix})",
        )
    return normalized


def request_is_https(request: Request) -> bool:
    forwarded_proto = request.headers.get("x-forwarded-proto", "")
    if forwarded_proto:
        first_proto = forwarded_proto.split(",")[0].strip().lower()
        if first_proto:
            return first_proto == "https"
    return request.url.scheme == "https"


def set_session_cookie(response: Response, request: Request, session_id: str) -> None:
    response.set_cookie(
        key=SESSION_COOKIE_NAME,
        value=session_id,
        max_age=get_settings().session_max_age_days * 24 * 60 * 60,
        httponly=True,
        samesite="lax",
        secure=request_is_https(request),
        path="/",
    )


def clear_session_cookie(response: Response, request: Request) -> None:
    response.delete_cookie(
        key=SESSION_COOKIE_NAME,
        httponly=True,
        samesite="lax",
        secure=request_is_https(request),
        path="/",
    )


def create_session(db: Session, user_id: int) -> str:
    while True:
        session_id = secrets.token_urlsafe(32)
        existing = db.get(SessionRecord, session_id)
        if existing is None:
            break
    db.add(
        SessionRecord(
            session_id=session_id,
            user_id=user_id,
            expires_at=utcnow() + timedelta(days=get_settings().session_max_age_days),
        )
    )
    db.commit()
    return session_id


def delete_session_if_exists(db: Session, session_id: str) -> None:
    session = db.get(SessionRecord, session_id)
    if session is not None:
        db.delete(session)
        db.commit()


def get_session_user(db: Session, session_id: str | None) -> User | None:
    if not session_id:
        return None
    session = db.get(SessionRecord, session_id)
    if session is None:
        return None
    expires_at = session.expires_at
    if expires_at.tzinfo is None:
        expires_at = expires_at.replace(tzinfo=timezone.utc)
    if expires_at <= utcnow():
        db.delete(session)
        db.commit()
        return None
    user = db.get(User, session.user_id)
    if user is None or not user.is_active:
        db.delete(session)
        db.commit()
        return None
    return user


def get_current_user(request: Request, db: Session = Depends(get_db)) -> User:
    session_id = request.cookies.get(SESSION_COOKIE_NAME)
    user = get_session_user(db, session_id)
    if user is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Authentication required")
    request.state.user_id = user.id
    return user


def get_admin_user(current_user: User = Depends(get_current_user)) -> User:
    if current_user.role != "admin":
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Admin access required")
    return current_user


def get_current_employee(current_user: User = Depends(get_current_user)) -> Employee:
    if current_user.employee is None:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="An employee profile is required")
    return current_user.employee


def ensure_active_admin_remains(db: Session, target_user: User, patch: UserPatchPayload) -> None:
    next_role = patch.role if patch.role is not None else target_user.role
    next_is_active = patch.is_active if patch.is_active is not None else target_user.is_active
    if target_user.role != "admin" or target_user.is_active is False:
        return
    if next_role == "admin" and next_is_active:
        return
    active_admin_count = db.scalar(select(func.count(User.id)).where(User.role == "admin", User.is_active.is_(True))) or 0
    if active_admin_count <= 1:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="At least one active admin must remain")


def serialize_me(user: User) -> MeOut:
    employee = EmployeeOut.model_validate(user.employee) if user.employee is not None else None
    return MeOut(user=UserOut.model_validate(user), employee=employee)


def ensure_can_view_request(user: User, request_row: LeaveRequest) -> None:
    if user.role == "admin":
        return
    employee = user.employee
    if employee is not None and employee.id in (
        request_row.employee_id,
        request_row.exchange_partner_id,
        request_row.coverage_partner_id,
    ):
        return
    if request_row.employee_email == user.email:
        return
    raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="You cannot view this request")


def bootstrap_enabled(db: Session) -> bool:
    if not get_settings().bootstrap_token:
        return False
    existing_users = db.scalar(select(func.count(User.id))) or 0
    return existing_users == 0


# Auth


@app.get("/auth/bootstrap/status")
def auth_bootstrap_status(db: Session = Depends(get_db)) -> dict[str, bool]:
    return {"enabled": bootstrap_enabled(db)}


@app.post("/auth/bootstrap", response_model=UserOut, status_code=status.HTTP_201_CREATED)
def auth_bootstrap(
    payload: AuthPayload,
    request: Request,
    response: Response,
    db: Session = Depends(get_db),
    bootstrap_token: str | None = Header(default=None, alias="X-Bootstrap-Token"),
) -> UserOut:
    configured_token = get_settings().bootstrap_token
    if not configured_token:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Bootstrap token is not configured")
    if bootstrap_token is None or not secrets.compare_digest(bootstrap_token, configured_token):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Invalid bootstrap token")
    existing_users = db.scalar(select(func.count(User.id))) or 0
    if existing_users > 0:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Bootstrap is only allowed before the first user exists")
    email = ensure_valid_email(payload.email)
    ensure_password_strength(payload.password)
    user = User(
        email=email,
        password_hash=hash_password(payload.password),
        role="admin",
        is_active=True,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    session_id = create_session(db, user.id)
    set_session_cookie(response, request, session_id)
    logger.info("admin_bootstrapped", extra={"user_id": user.id})
    return UserOut.model_validate(user)


@app.post("/auth/register", response_model=MeOut, status_code=status.HTTP_201_CREATED)
def auth_register(
    payload: RegisterPayload,
    request: Request,
    response: Response,
    db: Session = Depends(get_db),
    service: DataService = Depends(get_data_service),
) -> MeOut:
    email = ensure_corporate_email(payload.email)
    if not payload.name.strip():
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Name is required")
    if payload.password != payload.confirm_password:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Passwords do not match")
    ensure_password_strength(payload.password)
    if service.check_email_exists(email) or db.scalar(select(User).where(User.email == email)) is not None:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="An account with this email already exists")

    employee = service.save_employee(name=payload.name.strip(), email=email, phone=payload.phone.strip() or None)
    user = User(
        email=email,
        password_hash=hash_password(payload.password),
        role="employee",
        is_active=True,
        employee_id=employee.id,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    session_id = create_session(db, user.id)
    set_session_cookie(response, request, session_id)
    logger.info("employee_registered", extra={"user_id": user.id, "employee_id": employee.id})
    return serialize_me(user)


@app.post("/auth/login", response_model=MeOut)
def auth_login(
    payload: AuthPayload,
    request: Request,
    response: Response,
    db: Session = Depends(get_db),
) -> MeOut:
    email = normalize_email(payload.email)
    user = db.scalar(select(User).where(User.email == email))
    if user is None or not verify_password(payload.password, user.password_hash):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid email or password")
    if not user.is_active:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="User account is disabled")
    session_id = create_session(db, user.id)
    set_session_cookie(response, request, session_id)
    return serialize_me(user)


@app.post("/auth/logout")
def auth_logout(
    request: Request,
    response: Response,
    db: Session = Depends(get_db),
) -> dict[str, bool]:
    session_id = request.cookies.get(SESSION_COOKIE_NAME)
    if session_id:
        delete_session_if_exists(db, session_id)
    clear_session_cookie(response, request)
    return {"ok": True}


@app.get("/auth/me", response_model=MeOut)
def auth_me(current_user: User = Depends(get_current_user)) -> MeOut:
    return serialize_me(current_user)


@app.post("/auth/change-password", response_model=MeOut)
def auth_change_password(
    payload: ChangePasswordPayload,
    request: Request,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> MeOut:
    if not verify_password(payload.current_password, current_user.password_hash):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Current password is incorrect")
    ensure_password_strength(payload.new_password)
    current_user.password_hash = hash_password(payload.new_password)
    db.add(current_user)
    current_session_id = request.cookies.get(SESSION_COOKIE_NAME)
    db.execute(
        delete(SessionRecord).where(
            SessionRecord.user_id == current_user.id,
            SessionRecord.session_id != current_session_id,
        )
    )
    db.commit()
    db.refresh(current_user)
    return serialize_me(current_user)


# Admin


@app.get("/api/admin/users", response_model=list[UserOut])
def admin_list_users(
    _: User = Depends(get_admin_user),
    db: Session = Depends(get_db),
) -> list[UserOut]:
    users = db.scalars(select(User).order_by(User.created_at.asc(), User.id.asc())).all()
    return [UserOut.model_validate(user) for user in users]


@app.post("/api/admin/users", response_model=UserOut, status_code=status.HTTP_201_CREATED)
def admin_create_user(
    payload: UserCreatePayload,
    _: User = Depends(get_admin_user),
    db: Session = Depends(get_db),
) -> UserOut:
    if payload.role == "employee":
        email = ensure_corporate_email(payload.email)
    else:
        email = ensure_valid_email(payload.email)
    ensure_password_strength(payload.temporary_password)
    existing = db.scalar(select(User).where(User.email == email))
    if existing is not None:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="User already exists")
    if payload.role == "employee" and payload.employee_id is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Employee logins must be linked to an employee")
    if payload.employee_id is not None:
        employee = db.get(Employee, payload.employee_id)
        if employee is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Employee not found")
        if payload.role == "employee" and employee.email != email:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Employee logins must use the employee's email address",
            )
        linked = db.scalar(select(User).where(User.employee_id == payload.employee_id))
        if linked is not None:
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Employee already has a login")
    user = User(
        email=email,
        password_hash=hash_password(payload.temporary_password),
        role=payload.role,
        is_active=True,
        employee_id=payload.employee_id,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return UserOut.model_validate(user)


@app.patch("/api/admin/users/{user_id}", response_model=UserOut)
def admin_patch_user(
    user_id: int,
    payload: UserPatchPayload,
    _: User = Depends(get_admin_user),
    db: Session = Depends(get_db),
) -> UserOut:
    user = db.get(User, user_id)
    if user is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    if payload.role is None and payload.temporary_password is None and payload.is_active is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No updates were provided")
    ensure_active_admin_remains(db, user, payload)
    if payload.role is not None:
        user.role = payload.role
    if payload.is_active is not None:
        user.is_active = payload.is_active
    if payload.temporary_password:
        ensure_password_strength(payload.temporary_password)
        user.password_hash = hash_password(payload.temporary_password)
    db.add(user)
    db.commit()
    db.refresh(user)
    return UserOut.model_validate(user)


@app.get("/api/admin/overview", response_model=AdminOverviewOut)
def admin_overview(
    _: User = Depends(get_admin_user),
    db: Session = Depends(get_db),
    service: DataService = Depends(get_data_service),
) -> AdminOverviewOut:
    try:
        employees = service.get_employees()
        requests = service.get_requests()
    except SQLAlchemyError:
        db.rollback()
        logger.exception("admin_overview_load_failed")
        return AdminOverviewOut(employees=[], requests=[], stats=DashboardStats(), load_error=True)
    return AdminOverviewOut(
        employees=[EmployeeOut.model_validate(employee) for employee in employees],
        requests=[LeaveRequestOut.model_validate(row) for row in requests],
        stats=DashboardStats(**service.get_dashboard_stats(requests)),
    )


# Employees


@app.get("/api/employees", response_model=list[EmployeeOut])
def list_employees(
    _: User = Depends(get_current_user),
    service: DataService = Depends(get_data_service),
) -> list[EmployeeOut]:
    return [EmployeeOut.model_validate(employee) for employee in service.get_employees()]


@app.post("/api/employees", response_model=EmployeeOut, status_code=status.HTTP_201_CREATED)
def create_employee(
    payload: EmployeeCreatePayload,
    _: User = Depends(get_admin_user),
    db: Session = Depends(get_db),
    service: DataService = Depends(get_data_service),
) -> EmployeeOut:
    email = ensure_corporate_email(payload.email)
    if service.check_email_exists(email):
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="An employee with this email already exists")
    if payload.password is not None:
        ensure_password_strength(payload.password)
        if db.scalar(select(User).where(User.email == email)) is not None:
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="User already exists")

    employee = service.save_employee(
        name=payload.name.strip(),
        email=email,
        phone=payload.phone,
        annual_leave_remaining=payload.annual_leave_remaining,
        sick_leave_remaining=payload.sick_leave_remaining,
    )
    if payload.password is not None:
        db.add(
            User(
                email=email,
                password_hash=hash_password(payload.password),
                role="employee",
                is_active=True,
                employee_id=employee.id,
            )
        )
        db.commit()
    return EmployeeOut.model_validate(employee)


@app.get("/api/employees/{employee_id}", response_model=EmployeeOut)
def get_employee(
    employee_id: int,
    current_user: User = Depends(get_current_user),
    service: DataService = Depends(get_data_service),
) -> EmployeeOut:
    if current_user.role != "admin" and current_user.employee_id != employee_id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Admin access required")
    return EmployeeOut.model_validate(service.get_employee(employee_id))


@app.patch("/api/employees/{employee_id}", response_model=EmployeeOut)
def patch_employee(
    employee_id: int,
    payload: EmployeePatchPayload,
    _: User = Depends(get_admin_user),
    service: DataService = Depends(get_data_service),
) -> EmployeeOut:
    updates = payload.model_dump(exclude_none=True)
    if not updates:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No updates were provided")
    if "email" in updates:
        updates["email"] = ensure_corporate_email(updates["email"])
        owner = service.get_employee_by_email(updates["email"])
        if owner is not None and owner.id != employee_id:
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="An employee with this email already exists")
    return EmployeeOut.model_validate(service.update_employee(employee_id, updates))


@app.delete("/api/employees/{employee_id}")
def delete_employee(
    employee_id: int,
    _: User = Depends(get_admin_user),
    db: Session = Depends(get_db),
    service: DataService = Depends(get_data_service),
) -> dict[str, bool]:
    employee = service.get_employee(employee_id)
    if employee.user is not None:
        ensure_active_admin_remains(db, employee.user, UserPatchPayload(is_active=False))
    service.delete_employee(employee_id)
    return {"ok": True}


@app.put("/api/employees/{employee_id}/balance", response_model=EmployeeOut)
def put_employee_balance(
    employee_id: int,
    payload: VacationBalancePayload,
    _: User = Depends(get_admin_user),
    service: DataService = Depends(get_data_service),
) -> EmployeeOut:
    employee = service.update_employee_vacation_balance(
        employee_id,
        payload.annual_leave_remaining,
        payload.sick_leave_remaining,
        payload.annual_leave_total,
        payload.sick_leave_total,
    )
    return EmployeeOut.model_validate(employee)


@app.get("/api/employees/{employee_id}/day-status", response_model=DayStatusOut)
def get_employee_day_status(
    employee_id: int,
    day: date = Query(alias="date"),
    _: User = Depends(get_current_user),
    service: DataService = Depends(get_data_service),
) -> DayStatusOut:
    service.get_employee(employee_id)
    return DayStatusOut(employee_id=employee_id, day=day, day_status=service.get_employee_day_status(employee_id, day))


# Requests


@app.get("/api/requests", response_model=list[LeaveRequestOut])
def list_requests(
    current_user: User = Depends(get_current_user),
    service: DataService = Depends(get_data_service),
) -> list[LeaveRequestOut]:
    if current_user.role == "admin":
        rows = service.get_requests()
    else:
        rows = service.get_requests_by_employee(current_user.email, current_user.employee_id)
    return [LeaveRequestOut.model_validate(row) for row in rows]


@app.post("/api/requests", response_model=LeaveRequestOut, status_code=status.HTTP_201_CREATED)
def submit_request(
    payload: LeaveRequestCreatePayload,
    current_user: User = Depends(get_current_user),
    service: DataService = Depends(get_data_service),
) -> LeaveRequestOut:
    if payload.employee_id is not None and current_user.role == "admin":
        requester = service.get_employee(payload.employee_id)
    elif current_user.employee is not None:
        requester = current_user.employee
    else:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="An employee profile is required")

    draft = RequestDraft(
        employee_name=requester.name,
        employee_email=requester.email,
        employee_id=requester.id,
        type=payload.type,
        start_date=payload.start_date,
        end_date=payload.end_date,
        reason=payload.reason,
        coverage_by=payload.coverage_by,
        exchange_reason=payload.exchange_reason,
        partner_desired_off_date=payload.partner_desired_off_date,
        medical_certificate=payload.medical_certificate,
        emergency_contact=payload.emergency_contact,
        additional_notes=payload.additional_notes,
    )
    row = service.submit_request(draft, partner_id=payload.partner_id)
    return LeaveRequestOut.model_validate(row)


@app.get("/api/requests/{request_id}", response_model=LeaveRequestOut)
def get_request(
    request_id: int,
    current_user: User = Depends(get_current_user),
    service: DataService = Depends(get_data_service),
) -> LeaveRequestOut:
    row = service.get_request(request_id)
    ensure_can_view_request(current_user, row)
    return LeaveRequestOut.model_validate(row)


@app.get("/api/requests/{request_id}/approval-check", response_model=ApprovalCheckOut)
def request_approval_check(
    request_id: int,
    _: User = Depends(get_admin_user),
    service: DataService = Depends(get_data_service),
) -> ApprovalCheckOut:
    can_approve, reason = service.can_admin_approve_request(request_id)
    return ApprovalCheckOut(can_approve=can_approve, reason=reason)


@app.put("/api/requests/{request_id}/status", response_model=LeaveRequestOut)
def put_request_status(
    request_id: int,
    payload: StatusUpdatePayload,
    _: User = Depends(get_admin_user),
    service: DataService = Depends(get_data_service),
) -> LeaveRequestOut:
    return LeaveRequestOut.model_validate(service.update_request_status(request_id, payload.status))


@app.post("/api/requests/{request_id}/partner-decision", response_model=LeaveRequestOut)
def post_partner_decision(
    request_id: int,
    payload: PartnerDecisionPayload,
    employee: Employee = Depends(get_current_employee),
    service: DataService = Depends(get_data_service),
) -> LeaveRequestOut:
    row = service.approve_exchange_request(request_id, employee.id, payload.approved, payload.notes)
    return LeaveRequestOut.model_validate(row)


@app.get("/api/requests/{request_id}/exchange-status", response_model=ExchangeStatusOut)
def get_exchange_status(
    request_id: int,
    current_user: User = Depends(get_current_user),
    service: DataService = Depends(get_data_service),
) -> ExchangeStatusOut:
    ensure_can_view_request(current_user, service.get_request(request_id))
    return ExchangeStatusOut(**service.get_exchange_request_status(request_id))


@app.get("/api/exchange-approvals", response_model=list[LeaveRequestOut])
def list_exchange_approvals(
    employee: Employee = Depends(get_current_employee),
    service: DataService = Depends(get_data_service),
) -> list[LeaveRequestOut]:
    return [LeaveRequestOut.model_validate(row) for row in service.get_pending_exchange_approvals(employee.id)]


@app.post("/api/exchange/validate", response_model=ExchangeValidationOut)
def post_exchange_validate(
    payload: ExchangeValidatePayload,
    current_user: User = Depends(get_current_user),
    service: DataService = Depends(get_data_service),
) -> ExchangeValidationOut:
    employee_id = payload.employee_id if current_user.role == "admin" else None
    if employee_id is None:
        if current_user.employee_id is None:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="An employee profile is required")
        employee_id = current_user.employee_id
    is_valid, error_message = service.validate_exchange_request(
        employee_id,
        payload.exchange_from_date,
        payload.exchange_to_date,
        payload.exchange_partner_id,
    )
    return ExchangeValidationOut(is_valid=is_valid, error_message=error_message)


@app.get("/api/coverage", response_model=list[CoverageOut])
def list_available_coverage(
    day: date = Query(alias="date"),
    current_user: User = Depends(get_current_user),
    service: DataService = Depends(get_data_service),
) -> list[CoverageOut]:
    entries = service.get_available_coverage(day, exclude_employee_id=current_user.employee_id)
    return [CoverageOut(**entry) for entry in entries]


# Policy


@app.get("/api/policy", response_model=PolicyOut | None)
def get_policy(
    _: User = Depends(get_current_user),
    service: DataService = Depends(get_data_service),
) -> PolicyOut | None:
    policy = service.get_current_policy()
    return PolicyOut.model_validate(policy) if policy is not None else None


@app.put("/api/policy", response_model=PolicyUpdateOut)
def put_policy(
    payload: PolicyContent,
    _: User = Depends(get_admin_user),
    service: DataService = Depends(get_data_service),
) -> PolicyUpdateOut:
    policy, balances_updated = service.update_policy(payload.to_content())
    return PolicyUpdateOut(policy=PolicyOut.model_validate(policy), balances_updated=balances_updated)


@app.get("/api/policy/history", response_model=list[PolicyOut])
def get_policy_history(
    _: User = Depends(get_admin_user),
    service: DataService = Depends(get_data_service),
) -> list[PolicyOut]:
    return [PolicyOut.model_validate(policy) for policy in service.get_policy_history()]


@app.get("/api/leave-types", response_model=list[LeaveTypeOut])
def list_leave_types(
    _: User = Depends(get_current_user),
    service: DataService = Depends(get_data_service),
) -> list[LeaveTypeOut]:
    return [LeaveTypeOut(**spec.as_dict()) for spec in service.current_catalog().values()]


# Work schedules


@app.get("/api/schedules", response_model=list[WorkScheduleRowOut])
def list_schedules(
    week_start: date | None = Query(default=None),
    _: User = Depends(get_current_user),
    service: DataService = Depends(get_data_service),
) -> list[WorkScheduleRowOut]:
    rows = []
    for schedule, employee in service.get_work_schedules(week_start):
        base = WorkScheduleOut.model_validate(schedule).model_dump()
        rows.append(WorkScheduleRowOut(**base, employee_name=employee.name, employee_email=employee.email))
    return rows


@app.post("/api/schedules", response_model=WorkScheduleOut, status_code=status.HTTP_201_CREATED)
def add_schedule(
    payload: ScheduleAddPayload,
    _: User = Depends(get_admin_user),
    service: DataService = Depends(get_data_service),
) -> WorkScheduleOut:
    schedule = service.create_default_schedule_for_employee(payload.employee_id, payload.week_start_date)
    return WorkScheduleOut.model_validate(schedule)


@app.post("/api/schedules/generate", response_model=GenerateWeekOut)
def generate_schedules(
    payload: GenerateWeekPayload,
    _: User = Depends(get_admin_user),
    service: DataService = Depends(get_data_service),
) -> GenerateWeekOut:
    week_start, generated = service.generate_week_schedules(payload.week_start_date)
    return GenerateWeekOut(week_start_date=week_start, generated=generated)


@app.patch("/api/schedules/{schedule_id}", response_model=WorkScheduleOut)
def patch_schedule(
    schedule_id: int,
    updates: dict[str, DayStatus] = Body(...),
    _: User = Depends(get_admin_user),
    service: DataService = Depends(get_data_service),
) -> WorkScheduleOut:
    return WorkScheduleOut.model_validate(service.update_work_schedule(schedule_id, updates))


@app.delete("/api/schedules/{schedule_id}")
def delete_schedule(
    schedule_id: int,
    _: User = Depends(get_admin_user),
    service: DataService = Depends(get_data_service),
) -> dict[str, bool]:
    service.delete_work_schedule(schedule_id)
    return {"ok": True}


@app.put("/api/schedules/{employee_id}/{week_start}/days/{day}", response_model=WorkScheduleOut)
def put_schedule_day(
    employee_id: int,
    week_start: date,
    day: str,
    payload: DayStatusPayload,
    _: User = Depends(get_admin_user),
    service: DataService = Depends(get_data_service),
) -> WorkScheduleOut:
    schedule = service.set_schedule_day(employee_id, week_start, day, payload.status)
    return WorkScheduleOut.model_validate(schedule)


# Work schedule templates


@app.get("/api/templates", response_model=list[WorkScheduleTemplateOut])
def list_templates(
    _: User = Depends(get_admin_user),
    service: DataService = Depends(get_data_service),
) -> list[WorkScheduleTemplateOut]:
    return [WorkScheduleTemplateOut.model_validate(row) for row in service.get_work_schedule_templates()]


@app.post("/api/templates", response_model=WorkScheduleTemplateOut, status_code=status.HTTP_201_CREATED)
def add_template(
    payload: TemplateCreatePayload,
    _: User = Depends(get_admin_user),
    service: DataService = Depends(get_data_service),
) -> WorkScheduleTemplateOut:
    template = service.create_default_template_for_employee(payload.employee_id)
    return WorkScheduleTemplateOut.model_validate(template)


@app.post("/api/templates/copy", response_model=WorkScheduleTemplateOut)
def copy_template(
    payload: TemplateCopyPayload,
    _: User = Depends(get_admin_user),
    service: DataService = Depends(get_data_service),
) -> WorkScheduleTemplateOut:
    template = service.copy_work_schedule_template(payload.source_employee_id, payload.target_employee_id)
    return WorkScheduleTemplateOut.model_validate(template)


@app.patch("/api/templates/{template_id}", response_model=WorkScheduleTemplateOut)
def patch_template(
    template_id: int,
    updates: dict[str, DayStatus] = Body(...),
    _: User = Depends(get_admin_user),
    service: DataService = Depends(get_data_service),
) -> WorkScheduleTemplateOut:
    return WorkScheduleTemplateOut.model_validate(service.update_work_schedule_template(template_id, updates))


@app.delete("/api/templates/{template_id}")
def delete_template(
    template_id: int,
    _: User = Depends(get_admin_user),
    service: DataService = Depends(get_data_service),
) -> dict[str, bool]:
    service.delete_work_schedule_template(template_id)
    return {"ok": True}


@app.put("/api/templates/{employee_id}/days/{day}", response_model=WorkScheduleTemplateOut)
def put_template_day(
    employee_id: int,
    day: str,
    payload: DayStatusPayload,
    _: User = Depends(get_admin_user),
    service: DataService = Depends(get_data_service),
) -> WorkScheduleTemplateOut:
    return WorkScheduleTemplateOut.model_validate(service.set_template_day(employee_id, day, payload.status))


# Notifications


@app.get("/api/notifications", response_model=list[NotificationOut])
def list_notifications(
    employee: Employee = Depends(get_current_employee),
    service: DataService = Depends(get_data_service),
) -> list[NotificationOut]:
    return [NotificationOut.model_validate(row) for row in service.get_notifications(employee.id)]


@app.get("/api/notifications/unread-count", response_model=UnreadCountOut)
def get_unread_count(
    employee: Employee = Depends(get_current_employee),
    service: DataService = Depends(get_data_service),
) -> UnreadCountOut:
    return UnreadCountOut(unread=service.get_unread_notification_count(employee.id))


@app.post("/api/notifications/{notification_id}/read", response_model=NotificationOut)
def mark_notification_read(
    notification_id: int,
    employee: Employee = Depends(get_current_employee),
    service: DataService = Depends(get_data_service),
) -> NotificationOut:
    return NotificationOut.model_validate(service.mark_notification_as_read(notification_id, employee.id))


@app.get("/health")
def health() -> dict[str, bool | str]:
    return {"ok": True, "env": get_settings().environment}
