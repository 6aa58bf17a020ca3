"""
Domain errors and the DRF exception handler.

Every error leaving the API is rendered as
{timestamp, status, error, message, path, request_id, details?}.
"""
import logging

from django.db import InterfaceError, OperationalError
from django.http import Http404, JsonResponse
from django.utils import timezone
from django_ratelimit.exceptions import Ratelimited
from rest_framework import exceptions as drf_exceptions
from rest_framework import status
from rest_framework.response import Response

logger = logging.getLogger(__name__)

RATE_LIMIT_RETRY_AFTER = 60


class AccessControlError(Exception):
    """Base exception for access control errors."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    code = 'INTERNAL_ERROR'

    def __init__(self, message, details=None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


class InvalidArgument(AccessControlError):
    """Raised on malformed, empty or contradictory input."""
    status_code = status.HTTP_400_BAD_REQUEST
    code = 'VALIDATION_ERROR'


class NotFound(AccessControlError):
    """Raised when referenced entities do not exist."""
    status_code = status.HTTP_404_NOT_FOUND
    code = 'NOT_FOUND'

    def __init__(self, message, missing_ids=None, details=None):
        details = dict(details or {})
        if missing_ids is not None:
            details['missing_ids'] = sorted(missing_ids)
        super().__init__(message, details)


class Conflict(AccessControlError):
    """Raised on optimistic version mismatch or unrecoverable write races."""
    status_code = status.HTTP_409_CONFLICT
    code = 'CONFLICT'


class DuplicateResource(Conflict):
    """Raised when a name is already taken (case-insensitive)."""
    code = 'DUPLICATE_RESOURCE'


class EmailAlreadyUsed(Conflict):
    """Raised when an email is already registered (case-insensitive)."""
    code = 'EMAIL_IN_USE'


class InvalidCredentials(AccessControlError):
    """Raised on bad login, malformed registration or missing authentication."""
    status_code = status.HTTP_401_UNAUTHORIZED
    code = 'INVALID_CREDENTIALS'


class UserDisabled(AccessControlError):
    """Raised when a disabled account attempts to authenticate."""
    status_code = status.HTTP_403_FORBIDDEN
    code = 'USER_DISABLED'


class Unavailable(AccessControlError):
    """Raised when the backing store cannot be reached."""
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    code = 'SERVICE_UNAVAILABLE'


class Internal(AccessControlError):
    """Unclassified failure. The message is never exposed to callers."""
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    code = 'INTERNAL_ERROR'


# DRF exception classes mapped onto the error codes used in response bodies
DRF_ERROR_CODES = {
    drf_exceptions.ValidationError: 'VALIDATION_ERROR',
    drf_exceptions.ParseError: 'VALIDATION_ERROR',
    drf_exceptions.NotAuthenticated: 'INVALID_CREDENTIALS',
    drf_exceptions.AuthenticationFailed: 'INVALID_CREDENTIALS',
    drf_exceptions.PermissionDenied: 'FORBIDDEN',
    drf_exceptions.NotFound: 'NOT_FOUND',
    drf_exceptions.MethodNotAllowed: 'METHOD_NOT_ALLOWED',
    drf_exceptions.UnsupportedMediaType: 'UNSUPPORTED_MEDIA_TYPE',
    drf_exceptions.Throttled: 'RATE_LIMIT_EXCEEDED',
}


def error_body(status_code, code, message, request=None, details=None):
    """Build the standard error payload."""
    body = {
        'timestamp': timezone.now().isoformat(),
        'status': status_code,
        'error': code,
        'message': message,
        'path': request.path if request is not None else None,
        'request_id': getattr(request, 'request_id', None) if request is not None else None,
    }
    if details:
        body['details'] = details
    return body


def _client_ip(request):
    return request.META.get('REMOTE_ADDR', 'unknown') if request is not None else 'unknown'


def _rate_limited_body(request):
    """Log a rate limit violation and return its error payload."""
    from apps.core.logging import SecurityLogger

    email = None
    data = getattr(request, 'data', None)
    if isinstance(data, dict):
        email = data.get('email')

    SecurityLogger.log_rate_limit_exceeded(
        endpoint=request.path if request is not None else 'unknown',
        ip_address=_client_ip(request),
        user_email=email,
        limit='Rate limit exceeded'
    )

    body = error_body(
        status.HTTP_429_TOO_MANY_REQUESTS,
        'RATE_LIMIT_EXCEEDED',
        'Rate limit exceeded. Please try again later.',
        request,
        details={'retry_after': RATE_LIMIT_RETRY_AFTER}
    )
    return body


def ratelimit_view(request, exception):
    """
    Custom view for django-ratelimit to return 429 instead of 403.

    This is called when rate limit is exceeded with block=True outside DRF.
    """
    response = JsonResponse(_rate_limited_body(request), status=429)
    response['Retry-After'] = str(RATE_LIMIT_RETRY_AFTER)
    return response


def custom_exception_handler(exc, context):
    """
    Exception handler that logs errors and returns the standard error body.

    Domain errors keep their own status and code, DRF errors are mapped
    onto the same shape, store outages become 503 and anything else is a
    generic 500 that never leaks the internal message.
    """
    request = context.get('request')
    request_id = getattr(request, 'request_id', None) if request is not None else None

    if isinstance(exc, Ratelimited):
        response = Response(
            _rate_limited_body(request),
            status=status.HTTP_429_TOO_MANY_REQUESTS
        )
        response['Retry-After'] = str(RATE_LIMIT_RETRY_AFTER)
        return response

    if isinstance(exc, AccessControlError) and not isinstance(exc, Internal):
        logger.info(
            f"Request rejected: {exc.code}",
            extra={
                'request_id': request_id,
                'error_code': exc.code,
                'path': request.path if request is not None else None,
                'method': request.method if request is not None else None,
            }
        )
        return Response(
            error_body(exc.status_code, exc.code, exc.message, request, exc.details),
            status=exc.status_code
        )

    if isinstance(exc, (OperationalError, InterfaceError)):
        logger.error(
            "Data store unavailable",
            extra={'request_id': request_id},
            exc_info=True
        )
        return Response(
            error_body(
                Unavailable.status_code,
                Unavailable.code,
                'Service temporarily unavailable, please retry',
                request
            ),
            status=Unavailable.status_code
        )

    if isinstance(exc, Http404):
        exc = drf_exceptions.NotFound()

    if isinstance(exc, drf_exceptions.APIException):
        code = next(
            (value for klass, value in DRF_ERROR_CODES.items() if isinstance(exc, klass)),
            'ERROR'
        )
        details = None
        if isinstance(exc, drf_exceptions.ValidationError):
            message = 'Validation failed'
            details = exc.detail if isinstance(exc.detail, dict) else {'non_field_errors': exc.detail}
        else:
            message = str(exc.detail)

        response = Response(
            error_body(exc.status_code, code, message, request, details),
            status=exc.status_code
        )
        auth_header = getattr(exc, 'auth_header', None)
        if auth_header:
            response['WWW-Authenticate'] = auth_header
        wait = getattr(exc, 'wait', None)
        if wait:
            response['Retry-After'] = str(int(wait))
        return response

    logger.error(
        f"API Exception: {exc.__class__.__name__}",
        extra={
            'exception': str(exc),
            'request_id': request_id,
            'path': request.path if request is not None else None,
            'method': request.method if request is not None else None,
        },
        exc_info=True
    )

    return Response(
        error_body(
            Internal.status_code,
            Internal.code,
            'Something went wrong',
            request
        ),
        status=status.HTTP_500_INTERNAL_SERVER_ERROR
    )
