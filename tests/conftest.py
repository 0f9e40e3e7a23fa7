"""Pytest configuration and fixtures."""
from datetime import timedelta
from decimal import Decimal
from itertools import count

import pytest
from django.utils import timezone
from rest_framework.test import APIClient

from accounts.models import CustomUser, District, Division, Upazila
from bloodline import celery_app
from bloodrequests.models import BloodRequest, RequestStatus, Urgency
from donors.models import ApplicationStatus, DonorApplication

_sequence = count(1)


@pytest.fixture(autouse=True)
def eager_celery():
    """Run queued tasks inline so post-commit effects are observable."""
    conf = celery_app.conf
    # Reading a key loads the Django-backed config, so the override below sticks
    previous = conf.task_always_eager
    # The CELERY_-namespaced key is looked up before the bare one, so set that
    conf.update(CELERY_TASK_ALWAYS_EAGER=True)
    yield
    conf.update(CELERY_TASK_ALWAYS_EAGER=previous)


@pytest.fixture
def dhaka(db):
    division = Division.objects.create(name='Dhaka', latitude=23.8103, longitude=90.4125)
    district = District.objects.create(division=division, name='Dhaka', latitude=23.8103, longitude=90.4125)
    upazila = Upazila.objects.create(district=district, name='Dhanmondi', latitude=23.7461, longitude=90.3742)
    return division, district, upazila


@pytest.fixture
def chattogram(db):
    division = Division.objects.create(name='Chattogram', latitude=22.3569, longitude=91.7832)
    district = District.objects.create(division=division, name='Chattogram', latitude=22.3569, longitude=91.7832)
    upazila = Upazila.objects.create(district=district, name='Pahartali', latitude=22.3667, longitude=91.7833)
    return division, district, upazila


@pytest.fixture
def make_user(db, dhaka):
    """Verified user with a complete profile in Dhanmondi."""
    division, district, upazila = dhaka

    def factory(**overrides):
        n = next(_sequence)
        values = {
            'username': f'user{n}',
            'email': f'user{n}@example.com',
            'email_verified': True,
            'name': f'User {n}',
            'phone': f'0170000{n:04d}',
            'blood_group': 'O+',
            'address': 'Road 27, Dhanmondi, Dhaka',
            'division': division,
            'district': district,
            'upazila': upazila,
        }
        values.update(overrides)
        password = values.pop('password', 'pass-1234')
        user = CustomUser(**values)
        user.set_password(password)
        user.save()
        return user

    return factory


@pytest.fixture
def make_donor(make_user):
    """User with a donor application (approved by default)."""
    def factory(status=ApplicationStatus.APPROVED, last_donation_date=None, **overrides):
        user = make_user(**overrides)
        DonorApplication.objects.create(user=user, status=status, last_donation_date=last_donation_date)
        return user

    return factory


@pytest.fixture
def make_request(db):
    def factory(owner, **overrides):
        values = {
            'patient_name': 'Rahim',
            'gender': 'Male',
            'required_date': timezone.now() + timedelta(days=1),
            'blood_group': 'A+',
            'amount_needed': Decimal('2'),
            'hospital_name': 'Dhaka Medical College Hospital',
            'urgency_status': Urgency.URGENT,
            'location': 'Dhaka Medical College Hospital, Dhaka',
            'status': RequestStatus.OPEN,
            'division': owner.division,
            'district': owner.district,
            'upazila': owner.upazila,
        }
        values.update(overrides)
        return BloodRequest.objects.create(user=owner, **values)

    return factory


@pytest.fixture
def requester(make_user):
    return make_user(username='requester', email='requester@example.com', name='Karim')


@pytest.fixture
def api_client():
    return APIClient()
