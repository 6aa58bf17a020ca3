"""
Bearer token middleware.

Resolves the Authorization header into a Principal once per request.
"""
import logging

from django.contrib.auth.models import AnonymousUser
from django.utils.deprecation import MiddlewareMixin

from apps.rbac.services import AuthService

logger = logging.getLogger(__name__)


class BearerTokenMiddleware(MiddlewareMixin):
    """
    Attach request.principal and request.user from a bearer token.

    A missing, expired or tampered token never fails the request here;
    it simply stays anonymous and the view's permission classes decide.
    """

    KEYWORD = 'Bearer'

    def process_request(self, request):
        request.principal = None
        request.user = AnonymousUser()

        token = self._extract_token(request)
        if not token:
            return None

        principal = AuthService.authenticate_from_token(token)
        if principal is not None:
            request.principal = principal
            request.user = principal.user
        return None

    def _extract_token(self, request):
        header = request.headers.get('Authorization', '')
        parts = header.split()
        if len(parts) != 2 or parts[0] != self.KEYWORD:
            return None
        return parts[1]
