"""
Custom DRF authentication classes.
"""
from rest_framework.authentication import BaseAuthentication


class MiddlewareAuthentication(BaseAuthentication):
    """
    DRF authentication class that uses the principal set by BearerTokenMiddleware.

    The middleware resolves the bearer token once per request and attaches
    request.principal; this class simply hands that principal's user to DRF.
    An absent or invalid token leaves the request anonymous.
    """

    def authenticate(self, request):
        """
        Return the user resolved by the middleware if present.

        Returns:
            tuple: (user, principal) if authenticated, None otherwise
        """
        django_request = request._request
        principal = getattr(django_request, 'principal', None)

        if principal is None:
            return None

        return (principal.user, principal)

    def authenticate_header(self, request):
        """Challenge sent with 401 responses."""
        return 'Bearer'
