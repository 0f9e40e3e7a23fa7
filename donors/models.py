from django.conf import settings
from django.db import models


class ApplicationStatus(models.TextChoices):
    PENDING = 'Pending', 'Pending'
    APPROVED = 'Approved', 'Approved'
    REJECTED = 'Rejected', 'Rejected'


class ResponseStatus(models.TextChoices):
    PENDING = 'Pending', 'Pending'
    ACCEPTED = 'Accepted', 'Accepted'
    DECLINED = 'Declined', 'Declined'


# A response leaves Pending once and never comes back
TERMINAL_RESPONSE_STATUSES = (ResponseStatus.ACCEPTED, ResponseStatus.DECLINED)


# ---------------------------
# Donor Application
# ---------------------------
class DonorApplication(models.Model):
    user = models.OneToOneField(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='donor_application'
    )

    status = models.CharField(max_length=10, choices=ApplicationStatus.choices, default=ApplicationStatus.PENDING)
    date_of_birth = models.DateField(null=True, blank=True)
    has_donated_before = models.BooleanField(default=False)
    # Set to today whenever a requester accepts this donor
    last_donation_date = models.DateField(null=True, blank=True)
    medical_conditions = models.TextField(blank=True)
    ready_for_urgent_donation = models.BooleanField(default=False)
    consent_to_share_phone = models.BooleanField(default=False)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.user.username} ({self.status})"

    @property
    def is_approved(self) -> bool:
        return self.status == ApplicationStatus.APPROVED

    class Meta:
        verbose_name = "Donor Application"
        verbose_name_plural = "Donor Applications"
        ordering = ['-created_at']


# ---------------------------
# Donor Response
# ---------------------------
class DonorResponse(models.Model):
    donor = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='donor_responses'
    )
    blood_request = models.ForeignKey(
        'bloodrequests.BloodRequest',
        on_delete=models.CASCADE,
        related_name='responses'
    )

    status = models.CharField(max_length=10, choices=ResponseStatus.choices, default=ResponseStatus.PENDING)
    accepted_at = models.DateTimeField(null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.donor.username} -> #{self.blood_request_id} ({self.status})"

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_RESPONSE_STATUSES

    class Meta:
        ordering = ['-created_at']
        constraints = [
            models.UniqueConstraint(fields=['donor', 'blood_request'], name='unique_response_per_donor'),
        ]
        indexes = [
            models.Index(fields=['blood_request', 'status'], name='donorresp_request_status_idx'),
        ]
