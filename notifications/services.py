"""
Fire-and-forget delivery: in-app notifications and acceptance emails.

Nothing here may fail the operation that triggered it, so every public
function catches, logs and reports success as a boolean/None.
"""
import logging

from django.conf import settings
from django.core.mail import send_mail

from notifications.models import Notification

logger = logging.getLogger(__name__)


def notify_user(recipient_id, message, link='', sender_id=None):
    """
    Store an in-app notification for ``recipient_id``.

    Returns the Notification, or None when there is no recipient or the
    write failed.
    """
    if not recipient_id:
        return None

    try:
        notification = Notification.objects.create(
            recipient_id=recipient_id,
            sender_id=sender_id,
            message=message,
            link=link or '',
        )
    except Exception:
        logger.exception("notify_user failed for recipient %s", recipient_id)
        return None

    logger.info("Notification %s sent to user %s", notification.id, recipient_id)
    return notification


def send_acceptance_emails(response):
    """
    Share contact details with both sides once a requester accepts a donor.

    Returns True when both emails went out.
    """
    donor = response.donor
    blood_request = response.blood_request
    requester = blood_request.user
    request_link = f"{settings.SITE_URL}/requests/{blood_request.id}"

    donor_message = f"""
Dear {donor.display_name},

{requester.display_name} accepted your offer to donate for {blood_request.patient_name}.

Blood Group Needed: {blood_request.blood_group}
Hospital: {blood_request.hospital_name}
Required By: {blood_request.required_date:%Y-%m-%d %H:%M}

Requester Contact:
Name: {requester.display_name}
Email: {requester.email}
Phone: {requester.phone or 'N/A'}

View the request: {request_link}

Thank you for being a lifesaver.
Bloodline
    """.strip()

    requester_message = f"""
Dear {requester.display_name},

You accepted {donor.display_name} as a donor for {blood_request.patient_name}.

Donor Contact:
Name: {donor.display_name}
Blood Group: {donor.blood_group}
Email: {donor.email}
Phone: {donor.phone or 'N/A'}

Accepted donors: {blood_request.donors_assigned} of {blood_request.amount_needed}

View the request: {request_link}

Bloodline
    """.strip()

    sent = 0
    for subject, message, recipient in (
        (f"Your donation offer was accepted - {blood_request.patient_name}", donor_message, donor.email),
        (f"Donor confirmed - {blood_request.patient_name}", requester_message, requester.email),
    ):
        if not recipient:
            continue
        try:
            send_mail(
                subject=subject,
                message=message,
                from_email=settings.DEFAULT_FROM_EMAIL,
                recipient_list=[recipient],
                fail_silently=False,
            )
            sent += 1
        except Exception:
            logger.exception("Acceptance email to %s failed for response %s", recipient, response.id)

    return sent == 2
