"""
Domain errors and the DRF exception handler.

Services raise the CommunityError subclasses below; views never catch them
individually. custom_exception_handler turns them into the API's
consistent {'error': ..., 'details': ...} shape.
"""
from rest_framework.views import exception_handler
from rest_framework.response import Response
from rest_framework import status
from django.db import IntegrityError
import logging

logger = logging.getLogger(__name__)


class CommunityError(Exception):
    """Base class for errors raised by the community service layer."""
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = 'Invalid request.'

    def __init__(self, message=None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ParentNotFound(CommunityError):
    """A child row references a post or group that does not exist (or is not visible)."""
    status_code = status.HTTP_404_NOT_FOUND
    default_message = 'Parent record not found.'


class ChildNotFound(CommunityError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = 'Record not found.'


class NotAMember(ChildNotFound):
    default_message = 'User is not a member of this group.'


class AlreadyMember(CommunityError):
    status_code = status.HTTP_409_CONFLICT
    default_message = 'User is already a member of this group.'


class AccessDenied(CommunityError):
    status_code = status.HTTP_403_FORBIDDEN
    default_message = 'You do not have permission to perform this action.'


class AtomicUpdateFailure(CommunityError):
    """
    The counter adjustment could not be applied.

    Raised inside the transaction that performs the child mutation, so the
    mutation is rolled back with it.
    """
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    default_message = 'Could not apply the update. Please retry.'


def custom_exception_handler(exc, context):
    """
    Custom exception handler that:
    1. Logs all exceptions
    2. Converts domain and Django exceptions to DRF responses
    3. Provides consistent error format
    """

    # Call DRF's default exception handler first
    response = exception_handler(exc, context)

    if response is not None:
        if not isinstance(response.data, dict) or 'error' not in response.data:
            response.data = {
                'error': str(exc),
                'details': response.data
            }
        return response

    if isinstance(exc, CommunityError):
        if isinstance(exc, AtomicUpdateFailure):
            logger.error(f"Counter update failed: {exc}")
        else:
            logger.info(f"{type(exc).__name__}: {exc}")
        return Response(
            {'error': exc.message, 'code': type(exc).__name__},
            status=exc.status_code
        )

    if isinstance(exc, IntegrityError):
        logger.warning(f"IntegrityError: {exc}")
        return Response(
            {'error': 'Data integrity error. This may be a duplicate entry.'},
            status=status.HTTP_409_CONFLICT
        )

    if isinstance(exc, ValueError):
        return Response(
            {'error': str(exc)},
            status=status.HTTP_400_BAD_REQUEST
        )

    logger.exception(f"Unhandled exception: {exc}")

    return Response(
        {'error': 'An unexpected error occurred.'},
        status=status.HTTP_500_INTERNAL_SERVER_ERROR
    )
