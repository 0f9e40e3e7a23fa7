# bloodrequests/feed.py
"""
Feed paginator.

Pagination happens at the storage level (descending id, id cursor). Scoring
only re-orders the rows inside the fetched window, never the whole table, so
the cost of a page stays flat as the table grows. ``next_cursor`` is the id
of the last row in storage order (not score order), so the next page starts
exactly where this window ended.
"""
import logging
from dataclasses import dataclass, field
from typing import List, Optional

from django.conf import settings
from django.db.models import Count, Prefetch, Q
from django.utils import timezone

from algorithms.blood_compatibility import BLOOD_GROUPS
from algorithms.eligibility import can_respond, get_donor_application
from algorithms.priority import rank_requests
from algorithms.viewer_context import EMPTY_VIEWER_CONTEXT, resolve_viewer_context
from bloodline.exceptions import ValidationError
from bloodrequests.models import BloodRequest, BloodRequestUpvote, Urgency
from donors.models import DonorResponse, ResponseStatus

DEFAULT_PAGE_SIZE = 6

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FeedFilters:
    blood_group: Optional[str] = None
    urgency: Optional[str] = None

    def as_q(self):
        q = Q()
        if self.blood_group:
            q &= Q(blood_group=self.blood_group)
        if self.urgency:
            q &= Q(urgency_status=self.urgency)
        return q


@dataclass
class FeedEntry:
    blood_request: BloodRequest
    score: float
    has_upvoted: bool = False
    has_responded: bool = False
    is_owner: bool = False
    viewer_is_approved_donor: bool = False
    viewer_can_respond: bool = False
    viewer_blocked_reason: Optional[str] = None
    viewer_response_status: Optional[str] = None


@dataclass
class FeedPage:
    items: List[FeedEntry] = field(default_factory=list)
    has_more: bool = False
    next_cursor: Optional[int] = None
    new_since_cursor: int = 0


def get_page_size():
    return getattr(settings, 'FEED_PAGE_SIZE', DEFAULT_PAGE_SIZE)


# ============================================
# INPUT VALIDATION
# ============================================
def normalize_blood_group(value):
    """An unescaped '+' in a query string arrives as a trailing space."""
    value = (value or '').lstrip()
    stripped = value.rstrip()
    if stripped != value and stripped + '+' in BLOOD_GROUPS:
        return stripped + '+'
    return stripped


def parse_filters(blood_group=None, urgency=None):
    """Validate raw filter values; blanks and 'all' mean no filter."""
    blood_group = normalize_blood_group(blood_group) or None
    urgency = (urgency or '').strip() or None
    if blood_group == 'all':
        blood_group = None
    if urgency == 'all':
        urgency = None

    if blood_group is not None and blood_group not in BLOOD_GROUPS:
        raise ValidationError(f"Unknown blood group: {blood_group}.")
    if urgency is not None and urgency not in Urgency.values:
        raise ValidationError(f"Unknown urgency: {urgency}.")
    return FeedFilters(blood_group=blood_group, urgency=urgency)


def parse_id(value, name='id', required=False):
    """Positive integer id from user input, or None when absent."""
    if value is None or value == '':
        if required:
            raise ValidationError(f"{name} is required.")
        return None
    if isinstance(value, bool):
        raise ValidationError(f"Invalid {name}.")
    try:
        parsed = int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"Invalid {name}.")
    if parsed <= 0 or str(parsed) != str(value).strip():
        raise ValidationError(f"Invalid {name}.")
    return parsed


# ============================================
# STORAGE
# ============================================
def candidate_queryset(filters, viewer=None):
    queryset = (
        BloodRequest.objects.filter(filters.as_q())
        .select_related('user', 'division', 'district', 'upazila')
        .annotate(accepted_count=Count('responses', filter=Q(responses__status=ResponseStatus.ACCEPTED)))
    )
    if viewer is not None:
        queryset = queryset.prefetch_related(
            Prefetch(
                'responses',
                queryset=DonorResponse.objects.filter(donor_id=viewer.pk),
                to_attr='viewer_responses',
            ),
            Prefetch(
                'upvotes',
                queryset=BloodRequestUpvote.objects.filter(user_id=viewer.pk),
                to_attr='viewer_upvotes',
            ),
        )
    return queryset.order_by('-id')


def fetch_candidate_window(filters, cursor=None, limit=None, viewer=None):
    """Rows in descending id order, strictly older than ``cursor``."""
    queryset = candidate_queryset(filters, viewer)
    if cursor is not None:
        queryset = queryset.filter(id__lt=cursor)
    if limit is not None:
        queryset = queryset[:limit]
    return list(queryset)


def count_new_since(filters, cursor):
    return BloodRequest.objects.filter(filters.as_q(), id__gt=cursor).count()


# ============================================
# RANKING
# ============================================
def build_entries(blood_requests, viewer, now):
    context = resolve_viewer_context(viewer.pk) if viewer is not None else EMPTY_VIEWER_CONTEXT
    today = timezone.localdate(now)

    application = get_donor_application(viewer) if viewer is not None else None
    is_approved_donor = application is not None and application.is_approved

    entries = []
    for blood_request, score in rank_requests(blood_requests, context, now):
        entry = FeedEntry(blood_request=blood_request, score=score)
        if viewer is not None:
            viewer_responses = getattr(blood_request, 'viewer_responses', [])
            existing = viewer_responses[0] if viewer_responses else None
            verdict = can_respond(
                viewer,
                blood_request,
                accepted_count=blood_request.accepted_count,
                existing_response=existing,
                today=today,
            )
            entry.has_upvoted = bool(getattr(blood_request, 'viewer_upvotes', []))
            entry.has_responded = existing is not None
            entry.is_owner = blood_request.user_id == viewer.pk
            entry.viewer_is_approved_donor = is_approved_donor
            entry.viewer_can_respond = verdict.eligible
            entry.viewer_blocked_reason = verdict.reason
            entry.viewer_response_status = existing.status if existing else None
        entries.append(entry)
    return entries


def get_feed_page(viewer, filters=None, cursor=None, now=None, page_size=None):
    """
    One page of the viewer's feed.

    Fetches ``page_size + 1`` rows to learn whether there is more, scores the
    page, and (when a cursor is given) counts rows newer than the cursor.
    """
    filters = filters or FeedFilters()
    now = now or timezone.now()
    page_size = page_size or get_page_size()

    window = fetch_candidate_window(filters, cursor=cursor, limit=page_size + 1, viewer=viewer)
    has_more = len(window) > page_size
    window = window[:page_size]

    # Cursor comes from storage order, before re-ranking
    next_cursor = window[-1].id if has_more and window else None

    new_since_cursor = count_new_since(filters, cursor) if cursor is not None else 0

    items = build_entries(window, viewer, now)
    logger.debug(
        "Feed page for viewer %s: %d items, cursor=%s next=%s new=%d",
        getattr(viewer, 'pk', None), len(items), cursor, next_cursor, new_since_cursor,
    )
    return FeedPage(items=items, has_more=has_more, next_cursor=next_cursor, new_since_cursor=new_since_cursor)


def get_new_items_since(viewer, since_id, filters=None, now=None):
    """
    Every row newer than ``since_id``, ranked the same way as a page.

    Clients poll this for "N new posts" banners and must de-duplicate by id
    when merging, since these rows can show up again in later pages.
    """
    filters = filters or FeedFilters()
    now = now or timezone.now()
    rows = list(candidate_queryset(filters, viewer).filter(id__gt=since_id))
    return build_entries(rows, viewer, now)
