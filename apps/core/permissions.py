"""
DRF permission classes and decorators for authority enforcement.

This module provides:
- HasAuthorities: DRF permission class that enforces authority requirements
- @requires_authorities: Decorator to declare required authorities on views
"""
import logging

from rest_framework.permissions import BasePermission

logger = logging.getLogger(__name__)


class HasAuthorities(BasePermission):
    """
    DRF permission class that enforces authority requirements on API endpoints.

    Authorities come from the request principal (request.auth), which
    carries the live role set as ROLE_<NAME> strings. Views without
    required_authorities only need an authenticated principal.

    Usage:
        @requires_authorities('ROLE_ADMIN')
        class RoleListView(APIView):
            permission_classes = [HasAuthorities]
    """

    def has_permission(self, request, view):
        """
        Check the request principal holds every required authority.

        Returns:
            bool: True if authenticated and all authorities are present
        """
        from apps.core.logging import SecurityLogger

        principal = request.auth
        if principal is None:
            return False

        handler = getattr(view, request.method.lower(), None)
        required = (
            getattr(handler, 'required_authorities', None)
            or getattr(view, 'required_authorities', None)
        )
        if not required:
            return True

        if isinstance(required, str):
            required = {required}
        else:
            required = set(required)

        missing = required - set(principal.authorities)

        if missing:
            logger.warning(
                f"Permission denied: missing authorities {sorted(missing)}",
                extra={
                    'view': view.__class__.__name__,
                    'method': request.method,
                    'request_id': getattr(request, 'request_id', None),
                }
            )
            SecurityLogger.log_permission_denied(
                user_email=principal.email,
                required=missing,
                path=request.path,
                ip_address=request.META.get('REMOTE_ADDR')
            )
            return False

        return True


def requires_authorities(*authorities):
    """
    Decorator to declare required authorities on view classes or methods.

    Usage:
        @requires_authorities('ROLE_ADMIN')
        class UserListView(APIView):
            permission_classes = [HasAuthorities]

    Or on individual methods:
        class UserListView(APIView):
            permission_classes = [HasAuthorities]

            @requires_authorities('ROLE_ADMIN')
            def delete(self, request):
                pass
    """
    def decorator(view_or_method):
        # Classes and handler methods both carry the attribute; HasAuthorities
        # checks the handler first, then the view class.
        view_or_method.required_authorities = set(authorities)
        return view_or_method

    return decorator
