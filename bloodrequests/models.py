# bloodrequests/models.py
from decimal import Decimal

from django.conf import settings
from django.core.validators import MinValueValidator
from django.db import models

from algorithms.blood_compatibility import BLOOD_GROUP_CHOICES


class Urgency(models.TextChoices):
    NORMAL = 'Normal', 'Normal'
    URGENT = 'Urgent', 'Urgent'
    CRITICAL = 'Critical', 'Critical - Life Threatening'


class RequestStatus(models.TextChoices):
    OPEN = 'Open', 'Open'
    PENDING = 'Pending', 'Pending'
    FULFILLED = 'Fulfilled', 'Fulfilled'
    CLOSED = 'Closed', 'Closed'


# Donors may volunteer only while a request is in one of these
RESPONDABLE_STATUSES = (RequestStatus.OPEN, RequestStatus.PENDING)

# Moves an owner may make by hand; donor acceptance drives Fulfilled on its own
OWNER_TRANSITIONS = {
    RequestStatus.OPEN: {RequestStatus.PENDING, RequestStatus.FULFILLED, RequestStatus.CLOSED},
    RequestStatus.PENDING: {RequestStatus.OPEN, RequestStatus.FULFILLED, RequestStatus.CLOSED},
    RequestStatus.FULFILLED: {RequestStatus.CLOSED},
    RequestStatus.CLOSED: set(),
}


def resolve_request_status(accepted_count, amount_needed, current_status):
    """
    Status after the accepted-donor count changes.

    Enough accepted donors -> Fulfilled. Otherwise Closed and Pending are kept
    as they are and anything else falls back to Open.
    """
    if accepted_count >= amount_needed:
        return RequestStatus.FULFILLED
    if current_status == RequestStatus.CLOSED:
        return RequestStatus.CLOSED
    if current_status == RequestStatus.PENDING:
        return RequestStatus.PENDING
    return RequestStatus.OPEN


class BloodRequest(models.Model):
    GENDER_CHOICES = [
        ('Male', 'Male'),
        ('Female', 'Female'),
        ('Other', 'Other'),
    ]

    SMOKER_CHOICES = [
        ('Any', 'Any'),
        ('NonSmoker', 'Non-smoker only'),
    ]

    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='blood_requests')

    patient_name = models.CharField(max_length=200)
    gender = models.CharField(max_length=10, choices=GENDER_CHOICES)
    required_date = models.DateTimeField()
    blood_group = models.CharField(max_length=3, choices=BLOOD_GROUP_CHOICES)
    amount_needed = models.DecimalField(
        max_digits=4,
        decimal_places=1,
        validators=[MinValueValidator(Decimal('0.5'))],
        help_text="Units of blood needed; half units allowed",
    )
    hospital_name = models.CharField(max_length=200)
    urgency_status = models.CharField(max_length=10, choices=Urgency.choices, default=Urgency.NORMAL)
    smoker_preference = models.CharField(max_length=10, choices=SMOKER_CHOICES, default='Any')
    reason = models.TextField(blank=True)

    # Location: free-text label, optional pin, optional region links
    location = models.CharField(max_length=255, blank=True)
    latitude = models.FloatField(null=True, blank=True)
    longitude = models.FloatField(null=True, blank=True)
    division = models.ForeignKey('accounts.Division', on_delete=models.SET_NULL, null=True, blank=True, related_name='+')
    district = models.ForeignKey('accounts.District', on_delete=models.SET_NULL, null=True, blank=True, related_name='+')
    upazila = models.ForeignKey('accounts.Upazila', on_delete=models.SET_NULL, null=True, blank=True, related_name='+')

    status = models.CharField(max_length=10, choices=RequestStatus.choices, default=RequestStatus.OPEN)

    # Counter caches, recomputed in the same transaction as the rows they count
    upvote_count = models.PositiveIntegerField(default=0)
    donors_assigned = models.PositiveIntegerField(default=0)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.patient_name} - {self.blood_group} ({self.urgency_status})"

    @property
    def is_respondable(self):
        return self.status in RESPONDABLE_STATUSES

    class Meta:
        ordering = ['-id']
        verbose_name = 'Blood Request'
        verbose_name_plural = 'Blood Requests'
        indexes = [
            models.Index(fields=['blood_group', '-id'], name='bloodreq_group_id_idx'),
            models.Index(fields=['urgency_status', '-id'], name='bloodreq_urgency_id_idx'),
        ]


class BloodRequestUpvote(models.Model):
    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='upvotes')
    blood_request = models.ForeignKey(BloodRequest, on_delete=models.CASCADE, related_name='upvotes')
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return f"{self.user} +1 {self.blood_request_id}"

    class Meta:
        constraints = [
            models.UniqueConstraint(fields=['user', 'blood_request'], name='unique_upvote_per_user'),
        ]
