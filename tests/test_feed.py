import pytest

from bloodline.exceptions import ValidationError
from bloodrequests.feed import (
    FeedFilters,
    get_feed_page,
    get_new_items_since,
    parse_filters,
    parse_id,
)
from bloodrequests.models import BloodRequestUpvote, Urgency
from donors.models import DonorResponse, ResponseStatus

pytestmark = pytest.mark.django_db


@pytest.fixture
def six_requests(requester, make_request):
    """Requests with ids 100..95; 99 is the only critical one."""
    created = []
    for pk in range(100, 94, -1):
        urgency = Urgency.CRITICAL if pk == 99 else Urgency.NORMAL
        created.append(make_request(requester, id=pk, urgency_status=urgency))
    return created


def ids(page_items):
    return [entry.blood_request.id for entry in page_items]


# ----- pagination -----

def test_first_page_reports_more(six_requests):
    page = get_feed_page(None, page_size=3)
    assert sorted(ids(page.items)) == [98, 99, 100]
    assert page.has_more is True
    assert page.new_since_cursor == 0


def test_cursor_follows_storage_order_not_score(six_requests):
    page = get_feed_page(None, page_size=3)
    assert ids(page.items)[0] == 99
    assert page.next_cursor == 98


def test_insert_between_pages_does_not_shift_results(six_requests, requester, make_request):
    first = get_feed_page(None, page_size=3)
    make_request(requester, id=101)

    second = get_feed_page(None, cursor=first.next_cursor, page_size=3)

    assert sorted(ids(second.items)) == [95, 96, 97]
    assert second.has_more is False
    assert second.next_cursor is None
    assert second.new_since_cursor == 3  # 99, 100 and 101

    seen = ids(first.items) + ids(second.items)
    assert len(seen) == len(set(seen))
    assert sorted(seen) == list(range(95, 101))


def test_exact_page_has_no_more(requester, make_request):
    for _ in range(3):
        make_request(requester)
    page = get_feed_page(None, page_size=3)
    assert len(page.items) == 3
    assert page.has_more is False
    assert page.next_cursor is None


def test_empty_feed():
    page = get_feed_page(None, filters=FeedFilters(blood_group='AB-'))
    assert page.items == []
    assert page.has_more is False
    assert page.next_cursor is None


def test_default_page_size_from_settings(settings, requester, make_request):
    settings.FEED_PAGE_SIZE = 2
    for _ in range(3):
        make_request(requester)
    page = get_feed_page(None)
    assert len(page.items) == 2
    assert page.has_more is True


def test_filters_apply_to_page_and_new_count(requester, make_request):
    make_request(requester, blood_group='B+')
    a_plus = make_request(requester, blood_group='A+')
    make_request(requester, blood_group='B+')

    page = get_feed_page(None, filters=FeedFilters(blood_group='A+'))
    assert ids(page.items) == [a_plus.id]

    page = get_feed_page(None, filters=FeedFilters(blood_group='B+'), cursor=a_plus.id)
    assert page.new_since_cursor == 1


def test_new_items_since(six_requests, requester, make_request):
    newest = make_request(requester, id=101)
    entries = get_new_items_since(None, 99)
    assert sorted(ids(entries)) == [100, newest.id]


# ----- viewer flags -----

def test_anonymous_viewer_gets_neutral_flags(six_requests):
    entry = get_feed_page(None, page_size=1).items[0]
    assert entry.is_owner is False
    assert entry.viewer_can_respond is False
    assert entry.viewer_blocked_reason is None


def test_viewer_flags_for_donor(requester, make_request, make_donor):
    donor = make_donor(blood_group='O-')
    fresh = make_request(requester)
    answered = make_request(requester)
    DonorResponse.objects.create(donor=donor, blood_request=answered)
    BloodRequestUpvote.objects.create(user=donor, blood_request=fresh)

    entries = {entry.blood_request.id: entry for entry in get_feed_page(donor).items}

    assert entries[fresh.id].viewer_can_respond is True
    assert entries[fresh.id].viewer_blocked_reason is None
    assert entries[fresh.id].has_upvoted is True
    assert entries[fresh.id].viewer_is_approved_donor is True

    assert entries[answered.id].has_responded is True
    assert entries[answered.id].viewer_can_respond is False
    assert entries[answered.id].viewer_response_status == ResponseStatus.PENDING
    assert entries[answered.id].has_upvoted is False


def test_owner_flags(requester, make_request):
    own = make_request(requester)
    entry = get_feed_page(requester).items[0]
    assert entry.blood_request.id == own.id
    assert entry.is_owner is True
    assert entry.viewer_can_respond is False


def test_viewer_without_profile_still_gets_a_feed(make_user, requester, make_request):
    bare = make_user(blood_group=None, address='', division=None, district=None, upazila=None)
    make_request(requester)
    page = get_feed_page(bare)
    assert len(page.items) == 1


def test_capacity_flag_uses_accepted_rows(requester, make_request, make_donor):
    blood_request = make_request(requester, amount_needed=1)
    first = make_donor()
    DonorResponse.objects.create(donor=first, blood_request=blood_request, status=ResponseStatus.ACCEPTED)

    entry = get_feed_page(make_donor()).items[0]
    assert entry.viewer_can_respond is False
    assert entry.viewer_blocked_reason == "This request has already reached the required donors."


# ----- input validation -----

def test_parse_filters_all_means_unfiltered():
    assert parse_filters('all', 'all') == FeedFilters()
    assert parse_filters('', None) == FeedFilters()
    assert parse_filters('O-', 'Critical') == FeedFilters(blood_group='O-', urgency='Critical')


@pytest.mark.parametrize('blood_group, urgency', [('C+', None), (None, 'Someday')])
def test_parse_filters_rejects_unknown_values(blood_group, urgency):
    with pytest.raises(ValidationError):
        parse_filters(blood_group, urgency)


@pytest.mark.parametrize('value', ['abc', '-3', '0', '1.5', True])
def test_parse_id_rejects_bad_values(value):
    with pytest.raises(ValidationError):
        parse_id(value, name='cursor')


def test_parse_id():
    assert parse_id('42') == 42
    assert parse_id(None) is None
    with pytest.raises(ValidationError):
        parse_id('', required=True)


def test_parse_filters_restores_unescaped_plus():
    assert parse_filters('AB ', None) == FeedFilters(blood_group='AB+')
    assert parse_filters(' O- ', None) == FeedFilters(blood_group='O-')
    with pytest.raises(ValidationError):
        parse_filters('C ', None)
