from datetime import timedelta
from decimal import Decimal

import pytest
from django.http import Http404
from django.utils import timezone

from bloodline.exceptions import AuthorizationError, ConflictError, ValidationError
from bloodrequests import services
from bloodrequests.models import RequestStatus
from donors.models import DonorResponse, ResponseStatus
from notifications.models import Notification

pytestmark = pytest.mark.django_db


def request_data(**overrides):
    data = {
        'patient_name': 'Ayesha',
        'gender': 'Female',
        'required_date': timezone.now() + timedelta(hours=12),
        'blood_group': 'B-',
        'amount_needed': Decimal('1'),
        'hospital_name': 'Square Hospital',
        'urgency_status': 'Critical',
    }
    data.update(overrides)
    return data


# ----- create -----

def test_create_opens_request_with_zero_counters(requester):
    blood_request = services.create_blood_request(requester, request_data(location='Panthapath, Dhaka'))

    assert blood_request.status == RequestStatus.OPEN
    assert blood_request.upvote_count == 0
    assert blood_request.donors_assigned == 0
    assert blood_request.user == requester
    assert blood_request.location == 'Panthapath, Dhaka'


def test_create_falls_back_to_address_label(requester):
    blood_request = services.create_blood_request(requester, request_data(address_label='Dhanmondi, Dhaka'))
    assert blood_request.location == 'Dhanmondi, Dhaka'


def test_create_fills_region_chain_from_upazila(requester, chattogram):
    division, district, upazila = chattogram
    blood_request = services.create_blood_request(requester, request_data(upazila=upazila))
    assert blood_request.district == district
    assert blood_request.division == division


def test_create_requires_verified_email(make_user):
    user = make_user(email_verified=False)
    with pytest.raises(AuthorizationError):
        services.create_blood_request(user, request_data())


def test_create_requires_complete_profile(make_user):
    user = make_user(phone='', upazila=None)
    with pytest.raises(ValidationError) as excinfo:
        services.create_blood_request(user, request_data())
    assert 'phone number' in excinfo.value.message
    assert 'address details' in excinfo.value.message


# ----- edit -----

def test_owner_edits_fields(requester, make_request):
    blood_request = make_request(requester)
    updated = services.update_blood_request(blood_request.id, requester, {'hospital_name': 'Ibn Sina'})
    assert updated.hospital_name == 'Ibn Sina'


def test_edit_by_someone_else_is_refused(requester, make_request, make_user):
    blood_request = make_request(requester)
    with pytest.raises(AuthorizationError):
        services.update_blood_request(blood_request.id, make_user(), {'hospital_name': 'X'})


def test_amount_cannot_drop_below_accepted(requester, make_request, make_donor):
    blood_request = make_request(requester, amount_needed=Decimal('3'))
    for _ in range(2):
        DonorResponse.objects.create(donor=make_donor(), blood_request=blood_request, status=ResponseStatus.ACCEPTED)

    with pytest.raises(ValidationError):
        services.update_blood_request(blood_request.id, requester, {'amount_needed': Decimal('1')})


def test_raising_amount_reopens_fulfilled_request(requester, make_request, make_donor):
    blood_request = make_request(requester, amount_needed=Decimal('1'), status=RequestStatus.FULFILLED)
    DonorResponse.objects.create(donor=make_donor(), blood_request=blood_request, status=ResponseStatus.ACCEPTED)

    updated = services.update_blood_request(blood_request.id, requester, {'amount_needed': Decimal('2')})

    assert updated.status == RequestStatus.OPEN
    assert updated.donors_assigned == 1


def test_closed_request_cannot_be_edited(requester, make_request):
    blood_request = make_request(requester, status=RequestStatus.CLOSED)
    with pytest.raises(ConflictError):
        services.update_blood_request(blood_request.id, requester, {'reason': 'typo'})


def test_missing_request_is_not_found(requester):
    with pytest.raises(Http404):
        services.update_blood_request(999999, requester, {})


# ----- status -----

@pytest.mark.parametrize('target', [RequestStatus.PENDING, RequestStatus.FULFILLED, RequestStatus.CLOSED])
def test_owner_moves_open_request(requester, make_request, target):
    blood_request = make_request(requester)
    assert services.change_request_status(blood_request.id, requester, target).status == target


def test_closed_is_terminal(requester, make_request):
    blood_request = make_request(requester, status=RequestStatus.CLOSED)
    with pytest.raises(ConflictError):
        services.change_request_status(blood_request.id, requester, RequestStatus.OPEN)


def test_fulfilled_can_only_close(requester, make_request):
    blood_request = make_request(requester, status=RequestStatus.FULFILLED)
    with pytest.raises(ConflictError):
        services.change_request_status(blood_request.id, requester, RequestStatus.OPEN)
    assert services.change_request_status(blood_request.id, requester, 'Closed').status == RequestStatus.CLOSED


def test_same_status_is_noop(requester, make_request):
    blood_request = make_request(requester, status=RequestStatus.CLOSED)
    assert services.change_request_status(blood_request.id, requester, 'Closed').status == RequestStatus.CLOSED


def test_unknown_status_is_invalid(requester, make_request):
    blood_request = make_request(requester)
    with pytest.raises(ValidationError):
        services.change_request_status(blood_request.id, requester, 'Archived')


def test_status_change_is_owner_only(requester, make_request, make_user):
    blood_request = make_request(requester)
    with pytest.raises(AuthorizationError):
        services.change_request_status(blood_request.id, make_user(), RequestStatus.CLOSED)


# ----- upvotes -----

def test_upvote_toggles_and_recounts(requester, make_request, make_user):
    blood_request = make_request(requester)
    fan = make_user()

    assert services.toggle_upvote(blood_request.id, fan) == (1, True)
    assert services.toggle_upvote(blood_request.id, make_user()) == (2, True)
    assert services.toggle_upvote(blood_request.id, fan) == (1, False)

    blood_request.refresh_from_db()
    assert blood_request.upvote_count == 1


def test_upvote_notifies_owner(requester, make_request, make_user, django_capture_on_commit_callbacks):
    blood_request = make_request(requester)
    fan = make_user(name='Nadia')

    with django_capture_on_commit_callbacks(execute=True):
        services.toggle_upvote(blood_request.id, fan)

    assert Notification.objects.get(recipient=requester).message == 'Nadia supported your request for Rahim.'


def test_own_upvote_is_silent(requester, make_request, django_capture_on_commit_callbacks):
    blood_request = make_request(requester)
    with django_capture_on_commit_callbacks(execute=True) as callbacks:
        services.toggle_upvote(blood_request.id, requester)
    assert callbacks == []
