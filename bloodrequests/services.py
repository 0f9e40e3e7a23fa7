# bloodrequests/services.py
"""
Write paths for blood requests that belong to the request owner: create,
edit, status changes and upvotes.
"""
import logging

from django.db import IntegrityError, transaction
from django.shortcuts import get_object_or_404

from bloodline.exceptions import AuthorizationError, ConflictError, ValidationError
from bloodrequests.models import (
    BloodRequest,
    BloodRequestUpvote,
    OWNER_TRANSITIONS,
    RequestStatus,
    resolve_request_status,
)
from donors.models import DonorResponse, ResponseStatus
from notifications.tasks import deliver_notification, publish_on_commit

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = (
    'patient_name', 'gender', 'required_date', 'blood_group', 'amount_needed',
    'hospital_name', 'urgency_status', 'smoker_preference', 'reason',
    'location', 'latitude', 'longitude', 'division', 'district', 'upazila',
)


def ensure_owner(blood_request, actor, action="change this request"):
    if actor is None or not actor.is_authenticated:
        raise AuthorizationError("You need to be signed in to do that.")
    if blood_request.user_id != actor.pk:
        raise AuthorizationError(f"Only the requester can {action}.")


def count_accepted(blood_request_id):
    return DonorResponse.objects.filter(
        blood_request_id=blood_request_id,
        status=ResponseStatus.ACCEPTED,
    ).count()


def _fill_regions(values):
    """Complete the region chain upward from the most specific one given."""
    upazila = values.get('upazila')
    if upazila is not None and values.get('district') is None:
        values['district'] = upazila.district
    district = values.get('district')
    if district is not None and values.get('division') is None:
        values['division'] = district.division
    return values


# ============================================
# CREATE
# ============================================
def create_blood_request(user, data):
    """
    Publish a new request for ``user``.

    ``data`` holds already-validated field values (see
    api.serializers.BloodRequestWriteSerializer).
    """
    if user is None or not user.is_authenticated:
        raise AuthorizationError("You need to be signed in to create a blood request.")
    if not user.email_verified:
        raise AuthorizationError("Verify your email before posting a blood request.")

    missing = user.missing_profile_fields()
    if missing:
        raise ValidationError(
            f"Please complete your profile ({', '.join(missing)}) before posting a blood request."
        )

    values = {name: data[name] for name in EDITABLE_FIELDS if name in data}
    address_label = data.get('address_label') or ''
    values['location'] = values.get('location') or address_label
    _fill_regions(values)

    blood_request = BloodRequest.objects.create(
        user=user,
        status=RequestStatus.OPEN,
        upvote_count=0,
        donors_assigned=0,
        **values,
    )
    logger.info("Blood request %s created by user %s (%s, %s)",
                blood_request.id, user.pk, blood_request.blood_group, blood_request.urgency_status)
    return blood_request


# ============================================
# EDIT
# ============================================
def update_blood_request(request_id, actor, data):
    with transaction.atomic():
        blood_request = get_object_or_404(BloodRequest.objects.select_for_update(), id=request_id)
        ensure_owner(blood_request, actor, "edit this request")

        if blood_request.status == RequestStatus.CLOSED:
            raise ConflictError("Closed requests can't be edited.")

        values = _fill_regions({name: data[name] for name in EDITABLE_FIELDS if name in data})
        for name, value in values.items():
            setattr(blood_request, name, value)

        if 'amount_needed' in values:
            accepted = count_accepted(blood_request.id)
            if values['amount_needed'] < accepted:
                raise ValidationError(
                    f"{accepted} donor(s) are already confirmed; units needed can't go below that."
                )
            blood_request.donors_assigned = accepted
            blood_request.status = resolve_request_status(accepted, blood_request.amount_needed, blood_request.status)

        blood_request.save()

    logger.info("Blood request %s edited by owner %s", blood_request.id, actor.pk)
    return blood_request


# ============================================
# OWNER STATUS CHANGES
# ============================================
def change_request_status(request_id, actor, new_status):
    """
    Owner-driven status change (mark pending, mark fulfilled, close).

    Closed is terminal. Setting the current status again is a no-op.
    """
    if new_status not in RequestStatus.values:
        raise ValidationError(f"Unknown status: {new_status}.")
    new_status = RequestStatus(new_status)

    with transaction.atomic():
        blood_request = get_object_or_404(BloodRequest.objects.select_for_update(), id=request_id)
        ensure_owner(blood_request, actor, "change the status of this request")

        if blood_request.status == new_status:
            return blood_request

        if new_status not in OWNER_TRANSITIONS[RequestStatus(blood_request.status)]:
            raise ConflictError(f"A {blood_request.status} request can't be marked {new_status}.")

        previous = blood_request.status
        blood_request.status = new_status
        blood_request.save(update_fields=['status', 'updated_at'])

    logger.info("Blood request %s moved %s -> %s by owner %s", request_id, previous, new_status, actor.pk)
    return blood_request


# ============================================
# UPVOTES
# ============================================
def toggle_upvote(request_id, user):
    """
    Add or remove ``user``'s upvote and recompute the cached count.

    Returns (upvote_count, upvoted).
    """
    if user is None or not user.is_authenticated:
        raise AuthorizationError("You need to be signed in to support a request.")

    with transaction.atomic():
        blood_request = get_object_or_404(BloodRequest.objects.select_for_update(), id=request_id)

        deleted, _ = BloodRequestUpvote.objects.filter(user=user, blood_request=blood_request).delete()
        upvoted = not deleted
        if upvoted:
            try:
                with transaction.atomic():
                    BloodRequestUpvote.objects.create(user=user, blood_request=blood_request)
            except IntegrityError:
                # Lost a race with a parallel upvote from the same user
                pass

        blood_request.upvote_count = blood_request.upvotes.count()
        blood_request.save(update_fields=['upvote_count'])

        if upvoted and blood_request.user_id != user.pk:
            publish_on_commit(
                deliver_notification,
                blood_request.user_id,
                f"{user.display_name} supported your request for {blood_request.patient_name}.",
                f"/requests/{blood_request.id}",
                user.pk,
            )

    return blood_request.upvote_count, upvoted
