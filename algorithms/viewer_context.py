# algorithms/viewer_context.py
"""
Viewer context: the scoring inputs derived from the user looking at the feed.

Every field is optional on its own, since a profile may be complete, partial,
or missing entirely (account just created). The scorer checks each field
before using it.
"""
from dataclasses import dataclass
from typing import Optional

from django.contrib.auth import get_user_model

from algorithms.haversine import Coordinates, first_coordinates


@dataclass(frozen=True)
class ViewerContext:
    coordinates: Optional[Coordinates] = None
    blood_group: Optional[str] = None
    address: Optional[str] = None
    division_id: Optional[int] = None
    district_id: Optional[int] = None
    upazila_id: Optional[int] = None
    division_name: Optional[str] = None
    district_name: Optional[str] = None
    upazila_name: Optional[str] = None

    @property
    def is_empty(self) -> bool:
        return self == EMPTY_VIEWER_CONTEXT


EMPTY_VIEWER_CONTEXT = ViewerContext()


def build_viewer_context(profile) -> ViewerContext:
    """
    Build a ViewerContext from a user profile (or None).

    Coordinates come from the most specific region that has them:
    upazila, then district, then division.
    """
    if profile is None:
        return EMPTY_VIEWER_CONTEXT

    division = getattr(profile, 'division', None)
    district = getattr(profile, 'district', None)
    upazila = getattr(profile, 'upazila', None)
    address = getattr(profile, 'address', None) or None

    return ViewerContext(
        coordinates=first_coordinates(upazila, district, division),
        blood_group=getattr(profile, 'blood_group', None) or None,
        address=address.lower() if address else None,
        division_id=getattr(profile, 'division_id', None),
        district_id=getattr(profile, 'district_id', None),
        upazila_id=getattr(profile, 'upazila_id', None),
        division_name=division.name if division is not None and division.name else None,
        district_name=district.name if district is not None and district.name else None,
        upazila_name=upazila.name if upazila is not None and upazila.name else None,
    )


def resolve_viewer_context(user_id) -> ViewerContext:
    """Load the viewer's profile with its regions and build the context."""
    if user_id is None:
        return EMPTY_VIEWER_CONTEXT

    User = get_user_model()
    profile = (
        User.objects.select_related('division', 'district', 'upazila')
        .filter(pk=user_id)
        .first()
    )
    return build_viewer_context(profile)
