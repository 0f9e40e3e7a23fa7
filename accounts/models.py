from django.contrib.auth.models import AbstractUser
from django.db import models

from algorithms.blood_compatibility import BLOOD_GROUP_CHOICES


# ---------------------------
# Administrative regions
# ---------------------------
class Division(models.Model):
    name = models.CharField(max_length=100, unique=True)
    latitude = models.FloatField(null=True, blank=True)
    longitude = models.FloatField(null=True, blank=True)

    def __str__(self):
        return self.name

    class Meta:
        ordering = ['name']


class District(models.Model):
    division = models.ForeignKey(Division, on_delete=models.CASCADE, related_name='districts')
    name = models.CharField(max_length=100)
    latitude = models.FloatField(null=True, blank=True)
    longitude = models.FloatField(null=True, blank=True)

    def __str__(self):
        return f"{self.name}, {self.division.name}"

    class Meta:
        ordering = ['name']
        constraints = [
            models.UniqueConstraint(fields=['division', 'name'], name='unique_district_per_division'),
        ]


class Upazila(models.Model):
    district = models.ForeignKey(District, on_delete=models.CASCADE, related_name='upazilas')
    name = models.CharField(max_length=100)
    latitude = models.FloatField(null=True, blank=True)
    longitude = models.FloatField(null=True, blank=True)

    def __str__(self):
        return f"{self.name}, {self.district.name}"

    class Meta:
        ordering = ['name']
        constraints = [
            models.UniqueConstraint(fields=['district', 'name'], name='unique_upazila_per_district'),
        ]


# ---------------------------
# User
# ---------------------------
class CustomUser(AbstractUser):
    email = models.EmailField(unique=True)
    email_verified = models.BooleanField(default=False)

    name = models.CharField(max_length=150, blank=True)
    phone = models.CharField(max_length=20, blank=True)
    blood_group = models.CharField(max_length=3, choices=BLOOD_GROUP_CHOICES, null=True, blank=True)
    address = models.TextField(blank=True)

    division = models.ForeignKey(Division, on_delete=models.SET_NULL, null=True, blank=True, related_name='+')
    district = models.ForeignKey(District, on_delete=models.SET_NULL, null=True, blank=True, related_name='+')
    upazila = models.ForeignKey(Upazila, on_delete=models.SET_NULL, null=True, blank=True, related_name='+')

    def __str__(self):
        return f"{self.username} ({self.blood_group or 'unknown'})"

    @property
    def display_name(self):
        return self.name or self.username

    def missing_profile_fields(self):
        """Profile fields a user must fill in before posting a request."""
        missing = []
        if not self.name:
            missing.append('display name')
        if not self.phone:
            missing.append('phone number')
        if not self.blood_group:
            missing.append('blood group')
        if not (self.division_id and self.district_id and self.upazila_id):
            missing.append('address details')
        return missing
