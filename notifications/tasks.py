# notifications/tasks.py
"""
Celery tasks that consume post-commit events from the request and donor
services. A failing task is logged, never retried into the caller.
"""
import logging
from functools import partial

from celery import shared_task
from django.db import transaction

from donors.models import DonorResponse, ResponseStatus
from notifications.services import notify_user, send_acceptance_emails

logger = logging.getLogger(__name__)


def _enqueue(task, *args):
    try:
        task.delay(*args)
    except Exception:
        # Broker down: the state change is already committed, so just log
        logger.exception("Could not enqueue %s%r", task.name, args)


def publish_on_commit(task, *args):
    """Queue ``task`` once the surrounding transaction commits."""
    transaction.on_commit(partial(_enqueue, task, *args))


@shared_task
def deliver_notification(recipient_id, message, link='', sender_id=None):
    notification = notify_user(recipient_id, message, link, sender_id=sender_id)
    return notification.id if notification else None


@shared_task
def deliver_response_decision(response_id):
    """
    Tell the donor what the requester decided; on Accept, email both sides
    each other's contact details.
    """
    response = (
        DonorResponse.objects.select_related('donor', 'blood_request', 'blood_request__user')
        .filter(id=response_id)
        .first()
    )
    if response is None:
        logger.warning("Response %s vanished before its decision was delivered", response_id)
        return f"Response {response_id} not found"

    blood_request = response.blood_request
    requester = blood_request.user
    link = f"/requests/{blood_request.id}"

    if response.status == ResponseStatus.ACCEPTED:
        notify_user(
            response.donor_id,
            f"{requester.display_name} accepted your offer to donate for {blood_request.patient_name}. "
            f"Check your email for contact details.",
            link,
            sender_id=requester.id,
        )
        send_acceptance_emails(response)
    elif response.status == ResponseStatus.DECLINED:
        notify_user(
            response.donor_id,
            f"{requester.display_name} declined your offer to donate for {blood_request.patient_name}. "
            f"Thank you for stepping up.",
            link,
            sender_id=requester.id,
        )

    return f"Delivered {response.status} decision for response {response_id}"
