"""
Authentication REST API views.

Implements endpoints for:
- User registration
- Login
- Current user profile
- Self-service password and email changes
"""
from django.utils.decorators import method_decorator
from django_ratelimit.decorators import ratelimit
from django_ratelimit.exceptions import Ratelimited
from drf_spectacular.types import OpenApiTypes
from drf_spectacular.utils import OpenApiExample, extend_schema
from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import APIView

from apps.core.permissions import HasAuthorities
from apps.rbac.serializers import (
    AuthResponseSerializer, ChangeEmailSerializer, ChangePasswordSerializer,
    CredentialsSerializer, MessageSerializer, ProfileSerializer,
)
from apps.rbac.services import AuthService, UserService


@extend_schema(
    tags=['Authentication'],
    summary='Register new user',
    description='''
Register a new account with email and password.

The very first account in an empty system is enabled immediately; later
registrations are created disabled until an administrator enables them.
Every account receives the `MEMBER` role.

**No authentication required** - this is a public endpoint.

**Rate limit**: 5 requests/hour per IP
    ''',
    request=CredentialsSerializer,
    responses={
        201: AuthResponseSerializer,
        400: OpenApiTypes.OBJECT,
        401: OpenApiTypes.OBJECT,
        409: OpenApiTypes.OBJECT,
        429: OpenApiTypes.OBJECT,
    },
    examples=[
        OpenApiExample(
            'Registration Request',
            value={'email': 'alice@example.com', 'password': 'secret123'},
            request_only=True
        ),
        OpenApiExample(
            'Success Response',
            value={'token': 'eyJhbGciOiJIUzI1NiIs...', 'userId': 11, 'roles': ['MEMBER']},
            response_only=True,
            status_codes=['201']
        ),
    ]
)
@method_decorator(ratelimit(key='ip', rate='5/h', method='POST', block=False), name='dispatch')
class RegisterView(APIView):
    """
    POST /api/auth/register

    No authentication required.
    Rate limited to 5 requests per hour per IP.
    """
    authentication_classes = []
    permission_classes = []

    def post(self, request):
        """Register user."""
        if getattr(request, 'limited', False):
            raise Ratelimited()

        serializer = CredentialsSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = AuthService.register(
            email=serializer.validated_data['email'],
            password=serializer.validated_data['password']
        )
        return Response(result.to_dict(), status=status.HTTP_201_CREATED)


@extend_schema(
    tags=['Authentication'],
    summary='Login',
    description='''
Authenticate with email and password and receive a bearer token.

The token subject is the email. Roles are resolved from the database on
every request, so role changes apply without re-login.

**Errors:**
- 401 `INVALID_CREDENTIALS`: unknown email, wrong password or no roles
- 403 `USER_DISABLED`: account is disabled

**Rate limit**: 5 requests/minute per IP, 10 requests/hour per email
    ''',
    request=CredentialsSerializer,
    responses={
        200: AuthResponseSerializer,
        401: OpenApiTypes.OBJECT,
        403: OpenApiTypes.OBJECT,
        429: OpenApiTypes.OBJECT,
    },
    examples=[
        OpenApiExample(
            'Login Request',
            value={'email': 'admin@example.com', 'password': '123456'},
            request_only=True
        ),
        OpenApiExample(
            'Success Response',
            value={'token': 'eyJhbGciOiJIUzI1NiIs...', 'userId': 1, 'roles': ['ADMIN', 'MEMBER']},
            response_only=True,
            status_codes=['200']
        ),
    ]
)
@method_decorator(ratelimit(key='ip', rate='5/m', method='POST', block=False), name='dispatch')
@method_decorator(ratelimit(key='post:email', rate='10/h', method='POST', block=False), name='dispatch')
class LoginView(APIView):
    """
    POST /api/auth/login

    No authentication required.
    Rate limited to:
    - 5 requests per minute per IP address
    - 10 requests per hour per email address
    """
    authentication_classes = []
    permission_classes = []

    def post(self, request):
        """Login user."""
        if getattr(request, 'limited', False):
            raise Ratelimited()

        serializer = CredentialsSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = AuthService.login(
            email=serializer.validated_data['email'],
            password=serializer.validated_data['password'],
            ip_address=request.META.get('REMOTE_ADDR')
        )
        return Response(result.to_dict(), status=status.HTTP_200_OK)


@extend_schema(
    tags=['Authentication'],
    summary='Current user',
    description='''
Return the caller's account, direct roles, groups, authorities and the
effective permission names reachable through direct and group roles.

Requires a bearer token.
    ''',
    responses={200: ProfileSerializer, 401: OpenApiTypes.OBJECT}
)
class MeView(APIView):
    """
    GET /api/auth/me
    """
    permission_classes = [HasAuthorities]

    def get(self, request):
        return Response(UserService.profile(request.auth))


@extend_schema(
    tags=['Users - Self Service'],
    summary='Change own password',
    request=ChangePasswordSerializer,
    responses={200: MessageSerializer, 400: OpenApiTypes.OBJECT, 401: OpenApiTypes.OBJECT}
)
class ChangePasswordView(APIView):
    """
    PUT /api/users/change-password

    Requires the current password.
    """
    permission_classes = [HasAuthorities]

    def put(self, request):
        serializer = ChangePasswordSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        UserService.change_password(
            request.auth,
            serializer.validated_data['old_password'],
            serializer.validated_data['new_password']
        )
        return Response({'message': 'Password changed successfully'})


@extend_schema(
    tags=['Users - Self Service'],
    summary='Change own email',
    description='''
Change the caller's email. The old token's subject no longer matches, so
a fresh token is returned and must be used from now on.
    ''',
    request=ChangeEmailSerializer,
    responses={200: OpenApiTypes.OBJECT, 400: OpenApiTypes.OBJECT, 409: OpenApiTypes.OBJECT}
)
class ChangeEmailView(APIView):
    """
    PUT /api/users/email
    """
    permission_classes = [HasAuthorities]

    def put(self, request):
        serializer = ChangeEmailSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        token = UserService.change_email(request.auth, serializer.validated_data['new_email'])
        return Response({'message': 'Email updated successfully', 'token': token})
