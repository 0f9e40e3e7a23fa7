# algorithms/eligibility.py
"""
Donor eligibility: may this donor respond to this request?

The checks run in a fixed order and the first failure wins. Every failure has
its own stable code and a user-facing reason. This module does no queries;
the caller passes in the accepted-response count and any existing response
(see donors.services.check_eligibility).
"""
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Optional

from algorithms.blood_compatibility import is_compatible

DONATION_COOLDOWN_DAYS = 90


class Reason:
    EMAIL_UNVERIFIED = 'email_unverified'
    NOT_APPROVED_DONOR = 'not_approved_donor'
    OWN_REQUEST = 'own_request'
    REQUEST_NOT_OPEN = 'request_not_open'
    CAPACITY_REACHED = 'capacity_reached'
    ALREADY_RESPONDED = 'already_responded'
    INCOMPATIBLE_BLOOD_GROUP = 'incompatible_blood_group'
    DONATION_COOLDOWN = 'donation_cooldown'


MESSAGES = {
    Reason.EMAIL_UNVERIFIED: "Verify your email before volunteering to donate.",
    Reason.NOT_APPROVED_DONOR: "Only approved donors can respond to requests.",
    Reason.OWN_REQUEST: "You can't respond to your own request.",
    Reason.REQUEST_NOT_OPEN: "This request is no longer accepting donors.",
    Reason.CAPACITY_REACHED: "This request has already reached the required donors.",
    Reason.ALREADY_RESPONDED: "You've already pledged to help with this request.",
}


@dataclass(frozen=True)
class EligibilityResult:
    eligible: bool
    code: Optional[str] = None
    reason: Optional[str] = None
    resume_date: Optional[date] = None

    def __bool__(self):
        return self.eligible


ELIGIBLE = EligibilityResult(eligible=True)


def ineligible(code, reason=None, resume_date=None):
    return EligibilityResult(
        eligible=False,
        code=code,
        reason=reason or MESSAGES[code],
        resume_date=resume_date,
    )


def get_donor_application(donor):
    """The donor's application row, or None when they never applied."""
    # RelatedObjectDoesNotExist is an AttributeError, so getattr covers it
    return getattr(donor, 'donor_application', None)


def cooldown_resume_date(last_donation_date):
    return last_donation_date + timedelta(days=DONATION_COOLDOWN_DAYS)


def check_cooldown(last_donation_date, today):
    if last_donation_date is None:
        return ELIGIBLE
    days_since = (today - last_donation_date).days
    if days_since >= DONATION_COOLDOWN_DAYS:
        return ELIGIBLE

    resume = cooldown_resume_date(last_donation_date)
    days_left = DONATION_COOLDOWN_DAYS - days_since
    plural = '' if days_left == 1 else 's'
    return ineligible(
        Reason.DONATION_COOLDOWN,
        f"You must wait {days_left} more day{plural} before donating again "
        f"(eligible from {resume.isoformat()}).",
        resume_date=resume,
    )


def can_respond(donor, blood_request, accepted_count, existing_response=None, today=None):
    """
    Decide whether ``donor`` may volunteer for ``blood_request``.

    Args:
        donor: CustomUser (email_verified, blood_group, donor_application)
        blood_request: BloodRequest
        accepted_count: number of Accepted responses on the request
        existing_response: this donor's DonorResponse for the request, if any
        today: date to measure the cooldown against (defaults to today)

    Returns:
        EligibilityResult
    """
    today = today or date.today()

    if not donor.email_verified:
        return ineligible(Reason.EMAIL_UNVERIFIED)

    application = get_donor_application(donor)
    if application is None or not application.is_approved:
        return ineligible(Reason.NOT_APPROVED_DONOR)

    if blood_request.user_id == donor.pk:
        return ineligible(Reason.OWN_REQUEST)

    if not blood_request.is_respondable:
        return ineligible(Reason.REQUEST_NOT_OPEN)

    # Count of Accepted rows is the source of truth, not donors_assigned
    if accepted_count >= blood_request.amount_needed:
        return ineligible(Reason.CAPACITY_REACHED)

    if existing_response is not None:
        return ineligible(Reason.ALREADY_RESPONDED)

    if not donor.blood_group:
        return ineligible(
            Reason.INCOMPATIBLE_BLOOD_GROUP,
            "Add your blood group to your profile before responding.",
        )
    if not is_compatible(donor.blood_group, blood_request.blood_group):
        return ineligible(
            Reason.INCOMPATIBLE_BLOOD_GROUP,
            f"Your blood group ({donor.blood_group}) cannot donate to {blood_request.blood_group}.",
        )

    return check_cooldown(application.last_donation_date, today)
