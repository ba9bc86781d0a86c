from __future__ import annotations

from datetime import date, timedelta

import pytest

from leavedesk.errors import ApiError, RuleViolation
from leavedesk.workflow import (
    DEFAULT_LEAVE_TYPES,
    EXCHANGE_OFF_DAYS,
    PartnerRef,
    RequestDraft,
    build_catalog,
    calculate_days,
    can_admin_approve,
    decide_partner_transition,
    default_policy_content,
    ensure_admin_transition,
    validate_request,
)

SATURDAY = date(2026, 3, 7)
TUESDAY = date(2026, 3, 10)
CATALOG = build_catalog(None)


def always(status: str):
    return lambda employee_id, day: status


def make_draft(**overrides) -> RequestDraft:
    values = {
        "employee_name": "Alice Example",
        "employee_email": "alice@technetworkinc.com",
        "employee_id": 1,
        "type": "Annual Leave",
        "start_date": TUESDAY,
        "end_date": TUESDAY,
        "reason": "Family trip",
    }
    values.update(overrides)
    return RequestDraft(**values)


def exchange_draft(**overrides) -> RequestDraft:
    values = {
        "type": EXCHANGE_OFF_DAYS,
        "start_date": SATURDAY,
        "end_date": SATURDAY,
        "reason": "Swap weekend",
        "exchange_reason": "Wedding on Saturday",
        "partner_desired_off_date": TUESDAY,
    }
    values.update(overrides)
    return make_draft(**values)


def test_calculate_days_counts_inclusive_range_in_either_order():
    day = date(2026, 3, 2)
    assert calculate_days(day, day) == 1
    assert calculate_days(day, day + timedelta(days=6)) == 7
    assert calculate_days(day + timedelta(days=6), day) == 7
    assert calculate_days(None, day) == 0


def test_default_catalog_has_every_leave_type():
    assert len(CATALOG) == 11
    assert CATALOG["Sick Leave"].max_days == 1
    assert CATALOG["Unpaid Leave"].max_days == 30
    assert CATALOG[EXCHANGE_OFF_DAYS].is_exchange is True


def test_policy_leave_types_replace_builtin_catalog():
    content = default_policy_content(20, 8)
    content["leaveTypes"] = [entry for entry in content["leaveTypes"] if entry["value"] != "Unpaid Leave"]
    catalog = build_catalog(content)
    assert "Unpaid Leave" not in catalog
    assert len(catalog) == len(DEFAULT_LEAVE_TYPES) - 1


def test_exchange_type_stays_an_exchange_without_policy_flags():
    content = default_policy_content(15, 10)
    content["leaveTypes"] = [
        {key: entry[key] for key in ("value", "label", "maxDays", "paid")} for entry in content["leaveTypes"]
    ]
    next(entry for entry in content["leaveTypes"] if entry["value"] == EXCHANGE_OFF_DAYS)["isExchange"] = False
    catalog = build_catalog(content)

    assert catalog[EXCHANGE_OFF_DAYS].is_exchange is True
    assert catalog[EXCHANGE_OFF_DAYS].requires_coverage is False
    assert catalog["Annual Leave"].is_exchange is False
    assert catalog["Annual Leave"].requires_coverage is True


def test_missing_fields_are_rejected_first():
    with pytest.raises(RuleViolation) as exc_info:
        validate_request(make_draft(reason="  "), catalog=CATALOG, partner=PartnerRef(2, "Bob"), day_status=always("off"))
    assert exc_info.value.code == "MISSING_FIELDS"


def test_unknown_type_is_rejected():
    with pytest.raises(RuleViolation) as exc_info:
        validate_request(make_draft(type="Sabbatical"), catalog=CATALOG, partner=PartnerRef(2, "Bob"), day_status=always("off"))
    assert exc_info.value.code == "UNKNOWN_LEAVE_TYPE"


def test_sick_leave_over_one_day_is_rejected_even_when_catalog_allows_more():
    content = default_policy_content(15, 10)
    for entry in content["leaveTypes"]:
        if entry["value"] == "Sick Leave":
            entry["maxDays"] = 5
    draft = make_draft(type="Sick Leave", start_date=TUESDAY, end_date=TUESDAY + timedelta(days=1))
    with pytest.raises(RuleViolation) as exc_info:
        validate_request(draft, catalog=build_catalog(content), partner=PartnerRef(2, "Bob"), day_status=always("off"))
    assert exc_info.value.code == "SICK_LEAVE_LIMIT"
    assert exc_info.value.status_code == 422


def test_max_days_uses_catalog_limit():
    draft = make_draft(type="Emergency Leave", start_date=TUESDAY, end_date=TUESDAY + timedelta(days=3))
    with pytest.raises(RuleViolation) as exc_info:
        validate_request(draft, catalog=CATALOG, partner=PartnerRef(2, "Bob"), day_status=always("off"))
    assert exc_info.value.code == "MAX_DAYS_EXCEEDED"
    assert "3 days" in exc_info.value.message


def test_end_before_start_is_rejected():
    draft = make_draft(start_date=TUESDAY, end_date=TUESDAY - timedelta(days=1))
    with pytest.raises(RuleViolation) as exc_info:
        validate_request(draft, catalog=CATALOG, partner=PartnerRef(2, "Bob"), day_status=always("off"))
    assert exc_info.value.code == "INVALID_DATE_RANGE"


def test_coverage_partner_is_required_and_recorded():
    with pytest.raises(RuleViolation) as exc_info:
        validate_request(make_draft(), catalog=CATALOG, partner=None, day_status=always("off"))
    assert exc_info.value.code == "COVERAGE_PARTNER_REQUIRED"

    draft = make_draft(start_date=TUESDAY, end_date=TUESDAY + timedelta(days=2))
    spec = validate_request(draft, catalog=CATALOG, partner=PartnerRef(2, "Bob Builder"), day_status=always("off"))
    assert spec.value == "Annual Leave"
    assert draft.days == 3
    assert draft.coverage_partner_id == 2
    assert draft.coverage_by == "Bob Builder"
    assert draft.coverage_arranged is True
    assert draft.requires_partner_approval is False


def test_coverage_partner_can_be_optional():
    draft = make_draft()
    validate_request(draft, catalog=CATALOG, partner=None, day_status=always("off"), require_coverage_partner=False)
    assert draft.coverage_partner_id is None
    assert draft.coverage_arranged is False


def test_exchange_with_same_dates_is_rejected():
    draft = exchange_draft(partner_desired_off_date=SATURDAY)
    with pytest.raises(RuleViolation) as exc_info:
        validate_request(draft, catalog=CATALOG, partner=PartnerRef(2, "Bob"), day_status=always("off"))
    assert exc_info.value.code == "EXCHANGE_DATES_MUST_DIFFER"


def test_exchange_partner_working_on_requested_date_is_rejected_by_name():
    with pytest.raises(RuleViolation) as exc_info:
        validate_request(exchange_draft(), catalog=CATALOG, partner=PartnerRef(2, "Bob Builder"), day_status=always("working"))
    assert exc_info.value.code == "PARTNER_NOT_OFF"
    assert exc_info.value.message.startswith("Bob Builder is working on 2026-03-07")


@pytest.mark.parametrize(
    ("overrides", "partner", "code"),
    [
        ({}, None, "PARTNER_REQUIRED"),
        ({}, PartnerRef(1, "Alice"), "PARTNER_IS_REQUESTER"),
        ({"exchange_reason": ""}, PartnerRef(2, "Bob"), "EXCHANGE_REASON_REQUIRED"),
    ],
)
def test_exchange_rules(overrides, partner, code):
    with pytest.raises(RuleViolation) as exc_info:
        validate_request(exchange_draft(**overrides), catalog=CATALOG, partner=partner, day_status=always("off"))
    assert exc_info.value.code == code


def test_exchange_must_be_one_day_even_when_policy_allows_more():
    content = default_policy_content(15, 10)
    for entry in content["leaveTypes"]:
        if entry["value"] == EXCHANGE_OFF_DAYS:
            entry["maxDays"] = 3
    draft = exchange_draft(end_date=SATURDAY + timedelta(days=1))
    with pytest.raises(RuleViolation) as exc_info:
        validate_request(draft, catalog=build_catalog(content), partner=PartnerRef(2, "Bob"), day_status=always("off"))
    assert exc_info.value.code == "EXCHANGE_SINGLE_DAY"


def test_valid_exchange_fills_exchange_fields():
    lookups = []

    def day_status(employee_id, day):
        lookups.append((employee_id, day))
        return "off"

    draft = exchange_draft()
    validate_request(draft, catalog=CATALOG, partner=PartnerRef(2, "Bob"), day_status=day_status)
    assert lookups == [(2, SATURDAY)]
    assert draft.exchange_partner_id == 2
    assert draft.exchange_from_date == SATURDAY
    assert draft.exchange_to_date == TUESDAY
    assert draft.requires_partner_approval is True
    assert draft.coverage_partner_id is None
    assert draft.days == 1


def test_admin_gate_blocks_until_partner_approves():
    assert can_admin_approve("Pending", requires_partner_approval=True, partner_approved=None) == (
        False,
        "Exchange partner has not approved this request yet",
    )
    assert can_admin_approve("Partner Approved", requires_partner_approval=True, partner_approved=True)[0] is True
    assert can_admin_approve("Pending", requires_partner_approval=False, partner_approved=None)[0] is True
    assert can_admin_approve("Approved", requires_partner_approval=False, partner_approved=None) == (
        False,
        "Request is already Approved",
    )


def test_transitions_out_of_terminal_states_are_refused():
    ensure_admin_transition("Pending", "Rejected")
    with pytest.raises(ApiError) as exc_info:
        ensure_admin_transition("Rejected", "Approved")
    assert exc_info.value.status_code == 409

    assert decide_partner_transition("Pending", True) == "Partner Approved"
    assert decide_partner_transition("Pending", False) == "Rejected"
    with pytest.raises(ApiError):
        decide_partner_transition("Partner Approved", False)
