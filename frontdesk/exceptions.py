"""
Error taxonomy for the clinic front desk and the project-wide DRF
exception handler.

Services raise these directly; the handler turns every failure, including
unexpected ones, into ``{'ok': False, 'error': {'code', 'message'}}`` so a
failed action never ends the operator's session.
"""
import logging

from rest_framework import status
from rest_framework.exceptions import APIException
from rest_framework.response import Response
from rest_framework.views import exception_handler as drf_exception_handler

logger = logging.getLogger(__name__)


class ClinicError(APIException):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = 'request failed'
    default_code = 'clinic_error'


class ValidationError(ClinicError):
    """Bad input.  ``detail`` maps each offending field to its messages."""
    default_detail = 'invalid input'
    default_code = 'validation_error'


class InvalidDepartment(ClinicError):
    default_detail = 'department not permitted'
    default_code = 'invalid_department'


class NotFound(ClinicError):
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = 'not found'
    default_code = 'not_found'


class DuplicateEntry(ClinicError):
    status_code = status.HTTP_409_CONFLICT
    default_detail = 'already present'
    default_code = 'duplicate_entry'


class WriteConflict(ClinicError):
    status_code = status.HTTP_409_CONFLICT
    default_detail = 'concurrent write collided, please retry'
    default_code = 'write_conflict'


class TransitionDisabled(ClinicError):
    status_code = status.HTTP_409_CONFLICT
    default_detail = 'transition is disabled'
    default_code = 'transition_disabled'


class StoreUnavailable(ClinicError):
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    default_detail = 'document store unavailable, please retry'
    default_code = 'store_unavailable'


class AllocationReadError(StoreUnavailable):
    default_detail = 'could not read existing coupon numbers'
    default_code = 'allocation_read_error'


def api_exception_handler(exc, context):
    resp = drf_exception_handler(exc, context)
    if resp is None:
        logger.exception('unhandled error in %s', context.get('view'))
        return Response({'ok': False, 'error': {'code': 'server_error', 'message': str(exc)}}, status=500)
    # normalize response
    code = getattr(exc, 'default_code', None) or 'api_error'
    if isinstance(resp.data, dict):
        detail = resp.data.get('detail') or resp.data
    else:
        detail = resp.data
    if resp.status_code >= 500:
        logger.warning('%s: %s', code, detail)
    return Response({'ok': False, 'error': {'code': code, 'message': detail}}, status=resp.status_code)
