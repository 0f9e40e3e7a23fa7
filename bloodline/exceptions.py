"""
Error taxonomy shared by the services and the API layer.

Services raise these; DRF renders them through ``api_exception_handler`` so a
caller always receives ``{"ok": false, "code": ..., "message": ...}``.
"""
import logging

from django.db import DatabaseError
from django.http import Http404
from rest_framework import status
from rest_framework.exceptions import APIException, NotAuthenticated, PermissionDenied
from rest_framework.views import exception_handler

logger = logging.getLogger(__name__)


class BloodlineError(APIException):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = 'The request could not be completed.'
    default_code = 'error'

    def __init__(self, message=None, code=None):
        self.message = message or self.default_detail
        self.code = code or self.default_code
        super().__init__(detail=self.message, code=self.code)


class ValidationError(BloodlineError):
    """Malformed filter, cursor or id input."""
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = 'Invalid input.'
    default_code = 'invalid'


class AuthorizationError(BloodlineError):
    """Actor is not signed in or does not own the resource."""
    status_code = status.HTTP_403_FORBIDDEN
    default_detail = 'You are not allowed to do that.'
    default_code = 'not_authorized'


class EligibilityViolation(BloodlineError):
    """
    A donor action was refused by the eligibility rules.

    Carries the checker's result so callers can render specific guidance
    (e.g. the cooldown resume date).
    """
    status_code = status.HTTP_409_CONFLICT
    default_detail = 'You are not eligible to respond to this request.'
    default_code = 'not_eligible'

    def __init__(self, result):
        self.result = result
        super().__init__(message=result.reason, code=result.code)


class ConflictError(BloodlineError):
    status_code = status.HTTP_409_CONFLICT
    default_detail = 'This change conflicts with the current state.'
    default_code = 'conflict'


class DependencyFailure(BloodlineError):
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    default_detail = 'Something went wrong, please try again.'
    default_code = 'dependency_failure'


def api_exception_handler(exc, context):
    """Render every failure in the same envelope."""
    if isinstance(exc, DatabaseError):
        logger.exception("Storage failure in %s", context.get('view').__class__.__name__)
        exc = DependencyFailure()

    response = exception_handler(exc, context)
    if response is None:
        return None

    if isinstance(exc, BloodlineError):
        payload = {'ok': False, 'code': exc.code, 'message': exc.message}
        result = getattr(exc, 'result', None)
        if result is not None and result.resume_date:
            payload['resume_date'] = result.resume_date.isoformat()
    elif isinstance(exc, (NotAuthenticated, PermissionDenied)):
        payload = {'ok': False, 'code': 'not_authorized', 'message': str(exc.detail)}
    elif isinstance(exc, Http404):
        payload = {'ok': False, 'code': 'not_found', 'message': 'Not found.'}
    else:
        detail = response.data
        if isinstance(detail, dict) and 'detail' in detail:
            message = str(detail['detail'])
            issues = None
        else:
            message = 'Please review the highlighted fields.'
            issues = detail
        payload = {'ok': False, 'code': getattr(exc, 'default_code', 'error'), 'message': message}
        if issues:
            payload['issues'] = issues

    response.data = payload
    return response
