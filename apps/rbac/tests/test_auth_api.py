"""
API tests for registration, login, profile and self-service endpoints.
"""
import pytest
from rest_framework import status

from apps.rbac.models import Group, GroupRole, Permission, Role, RolePermission, User, UserGroup


@pytest.mark.django_db
class TestRegisterAPI:

    def test_register_returns_token_and_member_role(self, api_client):
        """First registrant gets a usable token."""
        response = api_client.post('/api/auth/register', {
            'email': 'first@example.com',
            'password': 'secret123',
        }, format='json')

        assert response.status_code == status.HTTP_201_CREATED
        assert response.data['roles'] == ['MEMBER']
        assert set(response.data) == {'token', 'userId', 'roles'}

        api_client.credentials(HTTP_AUTHORIZATION=f"Bearer {response.data['token']}")
        me = api_client.get('/api/auth/me')
        assert me.status_code == status.HTTP_200_OK
        assert me.data['authorities'] == ['ROLE_MEMBER']

    def test_register_duplicate_email(self, api_client, member_user):
        response = api_client.post('/api/auth/register', {
            'email': 'Member@Example.com',
            'password': 'secret123',
        }, format='json')

        assert response.status_code == status.HTTP_409_CONFLICT
        assert response.data['error'] == 'EMAIL_IN_USE'

    def test_register_weak_password(self, api_client):
        response = api_client.post('/api/auth/register', {
            'email': 'weak@example.com',
            'password': '123',
        }, format='json')

        assert response.status_code == status.HTTP_401_UNAUTHORIZED
        assert response.data['error'] == 'INVALID_CREDENTIALS'

    @pytest.mark.parametrize('body', [{}, {'email': 'nopass@example.com'}, {'email': None}])
    def test_register_missing_fields_are_invalid_credentials(self, api_client, body):
        response = api_client.post('/api/auth/register', body, format='json')

        assert response.status_code == status.HTTP_401_UNAUTHORIZED
        assert response.data['error'] == 'INVALID_CREDENTIALS'
        assert not User.objects.exists()


@pytest.mark.django_db
class TestLoginAPI:

    def test_login_success(self, api_client, admin_user):
        response = api_client.post('/api/auth/login', {
            'email': 'admin@example.com',
            'password': 'secret123',
        }, format='json')

        assert response.status_code == status.HTTP_200_OK
        assert response.data['userId'] == admin_user.id
        assert response.data['roles'] == ['ADMIN', 'MEMBER']

    def test_login_bad_password(self, api_client, member_user):
        response = api_client.post('/api/auth/login', {
            'email': 'member@example.com',
            'password': 'wrong-one',
        }, format='json')

        assert response.status_code == status.HTTP_401_UNAUTHORIZED
        assert response.data['message'] == 'Invalid email or password'

    def test_login_disabled(self, api_client, make_user):
        make_user('off@example.com', enabled=False)

        response = api_client.post('/api/auth/login', {
            'email': 'off@example.com',
            'password': 'secret123',
        }, format='json')

        assert response.status_code == status.HTTP_403_FORBIDDEN
        assert response.data['error'] == 'USER_DISABLED'

    @pytest.mark.parametrize('body', [
        {},
        {'email': 'member@example.com'},
        {'password': 'secret123'},
        {'email': None, 'password': None},
    ])
    def test_login_missing_fields_are_invalid_credentials(self, api_client, member_user, body):
        response = api_client.post('/api/auth/login', body, format='json')

        assert response.status_code == status.HTTP_401_UNAUTHORIZED
        assert response.data['error'] == 'INVALID_CREDENTIALS'


@pytest.mark.django_db
class TestMeAPI:

    def test_requires_token(self, api_client):
        response = api_client.get('/api/auth/me')

        assert response.status_code == status.HTTP_401_UNAUTHORIZED
        assert response['WWW-Authenticate'] == 'Bearer'

    def test_invalid_token_is_anonymous(self, api_client):
        api_client.credentials(HTTP_AUTHORIZATION='Bearer not.a.token')

        assert api_client.get('/api/auth/me').status_code == status.HTTP_401_UNAUTHORIZED

    def test_profile_includes_inherited_permissions(self, member_client, member_user):
        """Group roles contribute permissions but not authorities."""
        auditor = Role.objects.create(name='AUDITOR')
        group = Group.objects.create(name='Audit')
        permission = Permission.objects.create(name='READ_LEDGER')
        UserGroup.objects.create(user=member_user, group=group)
        GroupRole.objects.create(group=group, role=auditor)
        RolePermission.objects.create(role=auditor, permission=permission)

        response = member_client.get('/api/auth/me')

        assert response.status_code == status.HTTP_200_OK
        assert response.data['roles'] == ['MEMBER']
        assert response.data['groups'] == ['Audit']
        assert response.data['authorities'] == ['ROLE_MEMBER']
        assert response.data['effectiveRoles'] == ['AUDITOR', 'MEMBER']
        assert response.data['permissions'] == ['READ_LEDGER']


@pytest.mark.django_db
class TestSelfServiceAPI:

    def test_change_password(self, member_client, api_client):
        response = member_client.put('/api/users/change-password', {
            'oldPassword': 'secret123',
            'newPassword': 'brand-new-pw',
        }, format='json')

        assert response.status_code == status.HTTP_200_OK
        assert response.data['message'] == 'Password changed successfully'

        api_client.credentials()
        login = api_client.post('/api/auth/login', {
            'email': 'member@example.com',
            'password': 'brand-new-pw',
        }, format='json')
        assert login.status_code == status.HTTP_200_OK

    def test_change_password_wrong_old(self, member_client):
        response = member_client.put('/api/users/change-password', {
            'oldPassword': 'guess',
            'newPassword': 'brand-new-pw',
        }, format='json')

        assert response.status_code == status.HTTP_401_UNAUTHORIZED

    def test_change_email_old_token_stops_working(self, member_client):
        """The token subject is the email, so the old token is orphaned."""
        response = member_client.put('/api/users/email', {'newEmail': 'moved@example.com'}, format='json')

        assert response.status_code == status.HTTP_200_OK
        new_token = response.data['token']

        assert member_client.get('/api/auth/me').status_code == status.HTTP_401_UNAUTHORIZED

        member_client.credentials(HTTP_AUTHORIZATION=f'Bearer {new_token}')
        me = member_client.get('/api/auth/me')
        assert me.data['email'] == 'moved@example.com'
