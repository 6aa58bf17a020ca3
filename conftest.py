"""
Pytest configuration and fixtures.
"""
import pytest
from django.core.management import call_command


@pytest.fixture(scope='session')
def django_db_setup(django_db_setup, django_db_blocker):
    """Set up test database with migrations."""
    with django_db_blocker.unblock():
        call_command('migrate', '--run-syncdb', verbosity=0)


@pytest.fixture
def api_client():
    """Return DRF API client."""
    from rest_framework.test import APIClient
    return APIClient()


@pytest.fixture
def make_user(db):
    """
    Factory for users with direct roles.

    Usage:
        user = make_user('alice@example.com', roles=['ADMIN', 'MEMBER'])
    """
    from apps.rbac.models import User
    from apps.rbac.reconciler import USER_ROLE, RelationshipReconciler
    from apps.rbac.services import RoleService

    def _make(email, password='secret123', roles=('MEMBER',), enabled=True):
        user = User.objects.create_user(email, password, enabled=enabled)
        role_ids = {RoleService.get_or_create_role(name).id for name in roles}
        if role_ids:
            RelationshipReconciler(USER_ROLE).assign({user.id}, role_ids)
        return user

    return _make


@pytest.fixture
def member_user(make_user):
    """Enabled user holding MEMBER only."""
    return make_user('member@example.com')


@pytest.fixture
def admin_user(make_user):
    """Enabled user holding ADMIN and MEMBER."""
    return make_user('admin@example.com', roles=('ADMIN', 'MEMBER'))


@pytest.fixture
def token_for():
    """Return a function issuing a bearer token for a user."""
    from apps.rbac.services import AuthService
    return AuthService.generate_token


@pytest.fixture
def admin_client(api_client, admin_user, token_for):
    """API client authenticated as an administrator."""
    api_client.credentials(HTTP_AUTHORIZATION=f'Bearer {token_for(admin_user)}')
    return api_client


@pytest.fixture
def member_client(api_client, member_user, token_for):
    """API client authenticated as a plain member."""
    api_client.credentials(HTTP_AUTHORIZATION=f'Bearer {token_for(member_user)}')
    return api_client
