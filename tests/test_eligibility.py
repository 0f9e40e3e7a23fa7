from datetime import date, timedelta
from decimal import Decimal
from types import SimpleNamespace

import pytest

from algorithms.eligibility import Reason, can_respond, check_cooldown
from bloodrequests.models import BloodRequest
from donors.models import DonorApplication

TODAY = date(2024, 5, 1)


def application(status='Approved', last_donation_date=None):
    return DonorApplication(status=status, last_donation_date=last_donation_date)


def donor(**overrides):
    values = {'pk': 7, 'email_verified': True, 'blood_group': 'O+', 'donor_application': application()}
    values.update(overrides)
    return SimpleNamespace(**values)


def blood_request(**overrides):
    values = {'user_id': 1, 'status': 'Open', 'amount_needed': Decimal('2'), 'blood_group': 'A+'}
    values.update(overrides)
    return BloodRequest(**values)


def test_eligible_donor():
    result = can_respond(donor(), blood_request(), accepted_count=0, today=TODAY)
    assert result.eligible
    assert result.code is None
    assert bool(result)


def test_unverified_email_blocks_first():
    result = can_respond(
        donor(email_verified=False, donor_application=None),
        blood_request(status='Closed'),
        accepted_count=5,
        today=TODAY,
    )
    assert result.code == Reason.EMAIL_UNVERIFIED


def test_missing_application():
    result = can_respond(donor(donor_application=None), blood_request(), accepted_count=0, today=TODAY)
    assert result.code == Reason.NOT_APPROVED_DONOR


def test_pending_application():
    result = can_respond(donor(donor_application=application('Pending')), blood_request(), accepted_count=0, today=TODAY)
    assert result.code == Reason.NOT_APPROVED_DONOR


def test_own_request_checked_before_status():
    result = can_respond(donor(pk=1), blood_request(status='Closed'), accepted_count=0, today=TODAY)
    assert result.code == Reason.OWN_REQUEST


@pytest.mark.parametrize('status', ['Fulfilled', 'Closed'])
def test_request_not_open(status):
    result = can_respond(donor(), blood_request(status=status), accepted_count=0, today=TODAY)
    assert result.code == Reason.REQUEST_NOT_OPEN


def test_pending_request_still_accepts_donors():
    assert can_respond(donor(), blood_request(status='Pending'), accepted_count=0, today=TODAY)


def test_capacity_reached_before_duplicate():
    result = can_respond(
        donor(), blood_request(), accepted_count=2, existing_response=object(), today=TODAY,
    )
    assert result.code == Reason.CAPACITY_REACHED


def test_already_responded():
    result = can_respond(donor(), blood_request(), accepted_count=1, existing_response=object(), today=TODAY)
    assert result.code == Reason.ALREADY_RESPONDED
    assert result.reason == "You've already pledged to help with this request."


def test_incompatible_group_names_both_groups():
    result = can_respond(donor(blood_group='AB+'), blood_request(blood_group='A+'), accepted_count=0, today=TODAY)
    assert result.code == Reason.INCOMPATIBLE_BLOOD_GROUP
    assert 'AB+' in result.reason and 'A+' in result.reason


def test_missing_blood_group_is_incompatible():
    result = can_respond(donor(blood_group=None), blood_request(), accepted_count=0, today=TODAY)
    assert result.code == Reason.INCOMPATIBLE_BLOOD_GROUP


def test_cooldown_one_day_left():
    result = check_cooldown(TODAY - timedelta(days=89), TODAY)
    assert result.code == Reason.DONATION_COOLDOWN
    assert result.resume_date == TODAY + timedelta(days=1)
    assert result.reason == (
        f"You must wait 1 more day before donating again (eligible from {(TODAY + timedelta(days=1)).isoformat()})."
    )


def test_cooldown_plural_days():
    result = check_cooldown(TODAY - timedelta(days=30), TODAY)
    assert "wait 60 more days" in result.reason


def test_cooldown_over_after_90_days():
    assert check_cooldown(TODAY - timedelta(days=90), TODAY).eligible
    assert check_cooldown(None, TODAY).eligible


def test_cooldown_is_last_check():
    recent = application(last_donation_date=TODAY - timedelta(days=10))
    result = can_respond(
        donor(donor_application=recent, blood_group='AB+'),
        blood_request(blood_group='A+'),
        accepted_count=0,
        today=TODAY,
    )
    assert result.code == Reason.INCOMPATIBLE_BLOOD_GROUP

    result = can_respond(donor(donor_application=recent), blood_request(), accepted_count=0, today=TODAY)
    assert result.code == Reason.DONATION_COOLDOWN
