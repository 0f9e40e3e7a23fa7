# donors/services.py
"""
Donor applications and the donor response lifecycle.

An application must be Approved before its owner may volunteer. A donor
volunteers (Pending), the requester accepts or declines once, and every
decision recomputes the request's accepted count and status from the
Accepted rows inside the same transaction. Notifications go out only after
commit.
"""
import logging

from django.db import IntegrityError, transaction
from django.shortcuts import get_object_or_404
from django.utils import timezone

from algorithms.eligibility import Reason, can_respond, ineligible
from bloodline.exceptions import AuthorizationError, ConflictError, EligibilityViolation, ValidationError
from bloodrequests.models import BloodRequest, resolve_request_status
from bloodrequests.services import count_accepted, ensure_owner
from donors.models import ApplicationStatus, DonorApplication, DonorResponse, ResponseStatus
from notifications.tasks import deliver_notification, deliver_response_decision, publish_on_commit

logger = logging.getLogger(__name__)

MINIMUM_DONOR_AGE = 18

DECISIONS = (ResponseStatus.ACCEPTED, ResponseStatus.DECLINED)


def _require_signed_in(user):
    if user is None or not user.is_authenticated:
        raise AuthorizationError("You need to be signed in to do that.")


# ============================================
# ELIGIBILITY
# ============================================
def evaluate_eligibility(donor, blood_request, today=None):
    existing = DonorResponse.objects.filter(donor=donor, blood_request=blood_request).first()
    return can_respond(
        donor,
        blood_request,
        accepted_count=count_accepted(blood_request.id),
        existing_response=existing,
        today=today or timezone.localdate(),
    )


def check_eligibility(donor, request_id, today=None):
    """Read-only verdict for the eligibility endpoint."""
    _require_signed_in(donor)
    blood_request = get_object_or_404(BloodRequest, id=request_id)
    return evaluate_eligibility(donor, blood_request, today=today)


# ============================================
# VOLUNTEER
# ============================================
def respond_to_request(donor, request_id, today=None):
    """
    Record ``donor``'s offer to donate for the request.

    Creating a response never changes donors_assigned; only an accept does.
    Raises EligibilityViolation with the checker's result when refused.
    """
    _require_signed_in(donor)

    with transaction.atomic():
        blood_request = get_object_or_404(BloodRequest.objects.select_for_update(), id=request_id)

        result = evaluate_eligibility(donor, blood_request, today=today)
        if not result:
            logger.info("User %s refused on request %s: %s", donor.pk, request_id, result.code)
            raise EligibilityViolation(result)

        try:
            with transaction.atomic():
                response = DonorResponse.objects.create(
                    donor=donor,
                    blood_request=blood_request,
                    status=ResponseStatus.PENDING,
                )
        except IntegrityError:
            # A parallel submit from the same donor got there first
            raise EligibilityViolation(ineligible(Reason.ALREADY_RESPONDED))

        publish_on_commit(
            deliver_notification,
            blood_request.user_id,
            f"{donor.display_name} volunteered to donate for {blood_request.patient_name}.",
            f"/requests/{blood_request.id}",
            donor.pk,
        )

    logger.info("User %s volunteered for request %s (response %s)", donor.pk, request_id, response.id)
    return response


# ============================================
# ACCEPT / DECLINE
# ============================================
def transition_response(response_id, next_status, actor, today=None):
    """
    Requester's decision on a Pending response.

    Repeating the current decision is a no-op; moving a decided response
    anywhere else is a ConflictError. Returns a dict with the response, the
    accepted count, the units needed and the request status.
    """
    if next_status not in DECISIONS:
        raise ValidationError("A response can only be accepted or declined.")
    _require_signed_in(actor)

    with transaction.atomic():
        response = get_object_or_404(DonorResponse.objects.select_for_update(), id=response_id)
        blood_request = BloodRequest.objects.select_for_update().get(id=response.blood_request_id)
        ensure_owner(blood_request, actor, "accept or decline donors")

        if response.status == next_status:
            return _summary(response, blood_request, count_accepted(blood_request.id))

        if response.is_terminal:
            raise ConflictError(f"This response was already {response.status.lower()}.")

        if next_status == ResponseStatus.ACCEPTED:
            application = (
                DonorApplication.objects.select_for_update()
                .filter(user_id=response.donor_id)
                .first()
            )
            if application is None or not application.is_approved:
                raise EligibilityViolation(ineligible(Reason.NOT_APPROVED_DONOR))
            if count_accepted(blood_request.id) >= blood_request.amount_needed:
                raise EligibilityViolation(ineligible(Reason.CAPACITY_REACHED))

            response.accepted_at = timezone.now()
            application.last_donation_date = today or timezone.localdate()
            application.save(update_fields=['last_donation_date', 'updated_at'])

        response.status = next_status
        response.save()

        accepted = count_accepted(blood_request.id)
        blood_request.donors_assigned = accepted
        blood_request.status = resolve_request_status(accepted, blood_request.amount_needed, blood_request.status)
        blood_request.save(update_fields=['donors_assigned', 'status', 'updated_at'])

        publish_on_commit(deliver_response_decision, response.id)

    logger.info(
        "Response %s %s by owner %s; request %s now %s (%s/%s)",
        response.id, next_status, actor.pk, blood_request.id,
        blood_request.status, accepted, blood_request.amount_needed,
    )
    return _summary(response, blood_request, accepted)


def accept_response(response_id, actor, today=None):
    return transition_response(response_id, ResponseStatus.ACCEPTED, actor, today=today)


def decline_response(response_id, actor):
    return transition_response(response_id, ResponseStatus.DECLINED, actor)


def _summary(response, blood_request, accepted):
    return {
        'response': response,
        'accepted_count': accepted,
        'amount_needed': blood_request.amount_needed,
        'request_status': blood_request.status,
    }


# ============================================
# OWNER VIEWS
# ============================================
def list_request_responses(request_id, actor):
    """All responses on the request, newest first; owner only."""
    _require_signed_in(actor)
    blood_request = get_object_or_404(BloodRequest, id=request_id)
    ensure_owner(blood_request, actor, "see who responded")
    return list(
        blood_request.responses
        .select_related('donor', 'donor__donor_application')
        .order_by('-created_at', '-id')
    )


# ============================================
# DONOR APPLICATIONS
# ============================================
APPLICATION_FIELDS = (
    'date_of_birth', 'has_donated_before', 'last_donation_date', 'medical_conditions',
    'ready_for_urgent_donation', 'consent_to_share_phone',
)

# Fields a donor may change after applying
EDITABLE_APPLICATION_FIELDS = (
    'last_donation_date', 'medical_conditions', 'ready_for_urgent_donation', 'consent_to_share_phone',
)


def age_on(date_of_birth, today):
    return today.year - date_of_birth.year - ((today.month, today.day) < (date_of_birth.month, date_of_birth.day))


def validate_application(values, today):
    """Rules shared by submit and update; raises ValidationError."""
    date_of_birth = values.get('date_of_birth')
    if date_of_birth is None:
        raise ValidationError("Select your date of birth.")
    if age_on(date_of_birth, today) < MINIMUM_DONOR_AGE:
        raise ValidationError(f"You must be at least {MINIMUM_DONOR_AGE} years old to become a donor.")

    last_donation_date = values.get('last_donation_date')
    if values.get('has_donated_before') and last_donation_date is None:
        raise ValidationError("Share your last donation date so coordinators can plan follow-ups.")
    if last_donation_date is not None and last_donation_date > today:
        raise ValidationError("Last donation date can't be in the future.")


def get_own_application(user):
    _require_signed_in(user)
    return get_object_or_404(DonorApplication, user=user)


def submit_donor_application(user, data, today=None):
    """
    Apply to become a donor. A rejected applicant may apply again, which
    replaces the old answers and puts the application back in review.
    """
    _require_signed_in(user)
    today = today or timezone.localdate()

    values = {name: data[name] for name in APPLICATION_FIELDS if name in data}
    values['medical_conditions'] = (values.get('medical_conditions') or '').strip()
    validate_application(values, today)

    with transaction.atomic():
        application = DonorApplication.objects.select_for_update().filter(user=user).first()
        if application is not None:
            if application.status == ApplicationStatus.PENDING:
                raise ConflictError("Your donor application is already under review.")
            if application.is_approved:
                raise ConflictError("You are already an approved donor.")

            for name, value in values.items():
                setattr(application, name, value)
            application.status = ApplicationStatus.PENDING
            application.save()
        else:
            try:
                with transaction.atomic():
                    application = DonorApplication.objects.create(
                        user=user, status=ApplicationStatus.PENDING, **values,
                    )
            except IntegrityError:
                raise ConflictError("Your donor application is already under review.")

    logger.info("Donor application %s submitted by user %s", application.id, user.pk)
    return application


def update_donor_application(user, data, today=None):
    """
    Edit an existing application. Editing a rejected one resubmits it for
    review; an approved donor stays approved.
    """
    _require_signed_in(user)
    today = today or timezone.localdate()

    with transaction.atomic():
        application = get_object_or_404(DonorApplication.objects.select_for_update(), user=user)

        for name in EDITABLE_APPLICATION_FIELDS:
            if name in data:
                setattr(application, name, data[name])
        application.medical_conditions = (application.medical_conditions or '').strip()

        validate_application(
            {name: getattr(application, name) for name in APPLICATION_FIELDS},
            today,
        )

        if application.status == ApplicationStatus.REJECTED:
            application.status = ApplicationStatus.PENDING
        application.save()

    logger.info("Donor application %s updated by user %s (%s)", application.id, user.pk, application.status)
    return application
