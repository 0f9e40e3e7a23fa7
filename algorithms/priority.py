# algorithms/priority.py
"""
Priority Algorithm: ranks blood requests for one viewer.

The score is a sum of independent terms (proximity, regional affinity, blood
compatibility, urgency, due date, recency, fulfillment pressure, status and
location-name matches). It is a pure function of (request, viewer, now), so
the order inside a page fetch is reproducible.
"""
from algorithms.blood_compatibility import is_compatible
from algorithms.haversine import Coordinates, distance_between, first_coordinates
from bloodrequests.models import RequestStatus, Urgency

URGENCY_SCORES = {
    Urgency.CRITICAL: 100,
    Urgency.URGENT: 60,
    Urgency.NORMAL: 10,
}

COMPATIBILITY_BONUS = 80

MAX_DISTANCE_PRIORITY_KM = 100
PROXIMITY_MAX_BONUS = 60
NEARBY_KM, NEARBY_BONUS = 15, 12
VERY_NEARBY_KM, VERY_NEARBY_BONUS = 5, 10
ADDRESS_OVERLAP_BONUS = 12

UPAZILA_AFFINITY = 55
DISTRICT_AFFINITY = 38
DIVISION_AFFINITY = 18

RECENCY_WINDOW_HOURS = 72
RECENCY_MAX_BONUS = 18
UPCOMING_WINDOW_HOURS = 72
UPCOMING_MAX_BONUS = 50
PAST_DATE_PENALTY = 40
PAST_DATE_PENALTY_PER_HOUR = 0.5

UNFILLED_MAX_BONUS = 14
FULLY_STAFFED_PENALTY = 60

PENDING_STATUS_PENALTY = 25
NON_OPEN_STATUS_PENALTY = 100

DIVISION_NAME_BONUS = 6
DISTRICT_NAME_BONUS = 8
UPAZILA_NAME_BONUS = 10


def whole_hours_between(later, earlier):
    """Whole hours from earlier to later, never negative."""
    return max(0, int((later - earlier).total_seconds() // 3600))


def get_request_coordinates(blood_request):
    """Explicit pin first, then upazila, district, division."""
    if blood_request.latitude is not None and blood_request.longitude is not None:
        return Coordinates(float(blood_request.latitude), float(blood_request.longitude))
    return first_coordinates(blood_request.upazila, blood_request.district, blood_request.division)


def calculate_proximity_score(blood_request, viewer):
    """
    Distance-based bonus when both sides have coordinates, otherwise a coarse
    address token overlap.
    """
    request_coordinates = get_request_coordinates(blood_request)
    if viewer.coordinates is None or request_coordinates is None:
        return calculate_address_affinity(blood_request, viewer)

    distance_km = distance_between(viewer.coordinates, request_coordinates)
    clamped = min(distance_km, MAX_DISTANCE_PRIORITY_KM)
    score = max(0.0, (MAX_DISTANCE_PRIORITY_KM - clamped) / MAX_DISTANCE_PRIORITY_KM) * PROXIMITY_MAX_BONUS
    if distance_km <= NEARBY_KM:
        score += NEARBY_BONUS
    if distance_km <= VERY_NEARBY_KM:
        score += VERY_NEARBY_BONUS
    return score


def calculate_address_affinity(blood_request, viewer):
    if not viewer.address or not blood_request.location:
        return 0
    target = blood_request.location.lower()
    if any(word in target for word in viewer.address.split() if len(word) > 2):
        return ADDRESS_OVERLAP_BONUS
    return 0


def calculate_regional_affinity(blood_request, viewer):
    """Only the closest matching tier counts."""
    if viewer.upazila_id is not None and blood_request.upazila_id == viewer.upazila_id:
        return UPAZILA_AFFINITY
    if viewer.district_id is not None and blood_request.district_id == viewer.district_id:
        return DISTRICT_AFFINITY
    if viewer.division_id is not None and blood_request.division_id == viewer.division_id:
        return DIVISION_AFFINITY
    return 0


def calculate_compatibility_score(blood_request, viewer):
    if viewer.blood_group and is_compatible(viewer.blood_group, blood_request.blood_group):
        return COMPATIBILITY_BONUS
    return 0


def calculate_urgency_score(urgency_status):
    return URGENCY_SCORES.get(urgency_status, 0)


def calculate_due_date_score(required_date, now):
    """
    Overdue requests lose 40 plus half a point per hour overdue (at most 72
    hours counted). Upcoming ones gain up to 50, fading out 72 hours ahead.
    """
    if required_date is None:
        return 0
    if required_date < now:
        hours_past = whole_hours_between(now, required_date)
        return -(PAST_DATE_PENALTY + min(hours_past, RECENCY_WINDOW_HOURS) * PAST_DATE_PENALTY_PER_HOUR)
    hours_until = whole_hours_between(required_date, now)
    return (UPCOMING_WINDOW_HOURS - min(hours_until, UPCOMING_WINDOW_HOURS)) / UPCOMING_WINDOW_HOURS * UPCOMING_MAX_BONUS


def calculate_recency_score(created_at, now):
    hours_ago = whole_hours_between(now, created_at)
    return (RECENCY_WINDOW_HOURS - min(hours_ago, RECENCY_WINDOW_HOURS)) / RECENCY_WINDOW_HOURS * RECENCY_MAX_BONUS


def calculate_fulfillment_score(amount_needed, donors_assigned):
    units_needed = float(amount_needed or 0)
    if units_needed <= 0:
        return 0
    ratio = min((donors_assigned or 0) / units_needed, 1.0)
    score = (1 - ratio) * UNFILLED_MAX_BONUS
    if ratio >= 1:
        # Fully staffed even if the status has not caught up yet
        score -= FULLY_STAFFED_PENALTY
    return score


def calculate_status_score(status):
    if status == RequestStatus.OPEN:
        return 0
    if status == RequestStatus.PENDING:
        return -PENDING_STATUS_PENALTY
    return -NON_OPEN_STATUS_PENALTY


def calculate_location_name_score(blood_request, viewer):
    """Additive across tiers, unlike regional affinity."""
    target = (blood_request.location or '').lower()
    score = 0
    for name, bonus in (
        (viewer.division_name, DIVISION_NAME_BONUS),
        (viewer.district_name, DISTRICT_NAME_BONUS),
        (viewer.upazila_name, UPAZILA_NAME_BONUS),
    ):
        if name and name.lower() in target:
            score += bonus
    return score


def score_breakdown(blood_request, viewer, now):
    return {
        'proximity': calculate_proximity_score(blood_request, viewer),
        'regional': calculate_regional_affinity(blood_request, viewer),
        'compatibility': calculate_compatibility_score(blood_request, viewer),
        'urgency': calculate_urgency_score(blood_request.urgency_status),
        'due_date': calculate_due_date_score(blood_request.required_date, now),
        'recency': calculate_recency_score(blood_request.created_at, now),
        'fulfillment': calculate_fulfillment_score(blood_request.amount_needed, blood_request.donors_assigned),
        'status': calculate_status_score(blood_request.status),
        'location_name': calculate_location_name_score(blood_request, viewer),
    }


def score_request(blood_request, viewer, now):
    return float(sum(score_breakdown(blood_request, viewer, now).values()))


def rank_requests(blood_requests, viewer, now):
    """
    Score and order requests, highest first.

    Ties keep the incoming order (the caller passes storage order, newest id
    first) because list.sort is stable.
    """
    ranked = [(blood_request, score_request(blood_request, viewer, now)) for blood_request in blood_requests]
    ranked.sort(key=lambda item: item[1], reverse=True)
    return ranked
