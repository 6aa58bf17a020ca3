"""
API tests for the admin endpoints: users, roles, groups and permissions.
"""
import pytest
from rest_framework import status

from apps.rbac.models import Group, GroupRole, Permission, Role, RolePermission, User, UserGroup, UserRole


@pytest.mark.django_db
class TestAccessControl:
    """Admin endpoints need a token carrying ROLE_ADMIN."""

    @pytest.mark.parametrize('url', ['/api/users', '/api/roles', '/api/groups', '/api/permissions'])
    def test_anonymous_gets_401(self, api_client, url):
        response = api_client.get(url)

        assert response.status_code == status.HTTP_401_UNAUTHORIZED
        assert response.data['error'] == 'INVALID_CREDENTIALS'

    @pytest.mark.parametrize('url', ['/api/users', '/api/roles', '/api/groups', '/api/permissions'])
    def test_member_gets_403(self, member_client, url):
        response = member_client.get(url)

        assert response.status_code == status.HTTP_403_FORBIDDEN
        assert response.data['error'] == 'FORBIDDEN'

    @pytest.mark.parametrize('url', ['/api/users', '/api/roles', '/api/groups', '/api/permissions'])
    def test_admin_lists_each_collection(self, admin_client, url):
        response = admin_client.get(url)

        assert response.status_code == status.HTTP_200_OK
        assert {'count', 'next', 'previous', 'results'} <= set(response.data)

    def test_error_body_shape(self, admin_client):
        """Every error carries the same envelope."""
        response = admin_client.get('/api/users/999', HTTP_X_REQUEST_ID='req-abc')

        assert response.status_code == status.HTTP_404_NOT_FOUND
        assert response.data['status'] == 404
        assert response.data['error'] == 'NOT_FOUND'
        assert response.data['message'] == 'User not found'
        assert response.data['path'] == '/api/users/999'
        assert response.data['request_id'] == 'req-abc'
        assert response['X-Request-ID'] == 'req-abc'
        assert 'timestamp' in response.data

    def test_revoked_admin_loses_access_immediately(self, admin_client, admin_user):
        """Authorities are resolved per request, not frozen in the token."""
        UserRole.objects.filter(user=admin_user, role__name='ADMIN').delete()

        assert admin_client.get('/api/users').status_code == status.HTTP_403_FORBIDDEN


@pytest.mark.django_db
class TestUsersAPI:

    def test_list_is_paginated_and_searchable(self, admin_client, make_user):
        for i in range(5):
            make_user(f'staff{i}@corp.example.com')

        response = admin_client.get('/api/users', {'q': 'corp', 'page_size': 2})

        assert response.status_code == status.HTTP_200_OK
        assert response.data['count'] == 5
        assert len(response.data['results']) == 2
        assert response.data['next'] is not None
        assert set(response.data['results'][0]) == {'id', 'email', 'enabled'}

    def test_bulk_create(self, admin_client):
        response = admin_client.post('/api/users', {
            'users': [
                {'email': 'new1@example.com', 'password': 'secret123'},
                {'email': 'new2@example.com', 'password': 'secret123', 'enabled': True},
            ]
        }, format='json')

        assert response.status_code == status.HTTP_201_CREATED
        assert response.data['createdCount'] == 2
        assert [u['enabled'] for u in response.data['users']] == [False, True]

    def test_bulk_create_conflict(self, admin_client):
        response = admin_client.post('/api/users', {
            'users': [{'email': 'ADMIN@example.com', 'password': 'secret123'}]
        }, format='json')

        assert response.status_code == status.HTTP_409_CONFLICT

    def test_detail(self, admin_client, admin_user):
        response = admin_client.get(f'/api/users/{admin_user.id}')

        assert response.status_code == status.HTTP_200_OK
        assert response.data['roles'] == ['ADMIN', 'MEMBER']
        assert response.data['groups'] == []

    def test_update_credentials(self, admin_client, member_user):
        response = admin_client.patch(
            f'/api/users/{member_user.id}/credentials',
            {'password': 'reset-by-admin'},
            format='json'
        )

        assert response.status_code == status.HTTP_200_OK
        assert response.data['emailUpdated'] is False
        assert response.data['passwordUpdated'] is True

    def test_update_status(self, admin_client, make_user):
        user = make_user('later@example.com', enabled=False)

        response = admin_client.put('/api/users/status', {'userIds': [user.id], 'enabled': True}, format='json')

        assert response.status_code == status.HTTP_200_OK
        assert response.data['updatedCount'] == 1
        assert User.objects.get(id=user.id).enabled is True

    def test_assign_roles_counts_inserts(self, admin_client, member_user):
        roles = [Role.objects.create(name=name) for name in ('EDITOR', 'VIEWER')]
        body = {'userIds': [member_user.id], 'roleIds': [r.id for r in roles]}

        first = admin_client.post('/api/users/roles/assign', body, format='json')
        second = admin_client.post('/api/users/roles/assign', body, format='json')

        assert first.data['assignedCount'] == 2
        assert second.data['assignedCount'] == 0

    def test_deassign_roles(self, admin_client, member_user):
        member = Role.objects.get(name='MEMBER')
        body = {'userIds': [member_user.id], 'roleIds': [member.id]}

        first = admin_client.delete('/api/users/roles/deassign', body, format='json')
        second = admin_client.delete('/api/users/roles/deassign', body, format='json')

        assert first.data == {'message': 'Roles deassigned successfully', 'removedCount': 1}
        assert second.data == {'message': 'No roles were deassigned', 'removedCount': 0}

    def test_assign_route_rejects_delete(self, admin_client):
        response = admin_client.delete('/api/users/roles/assign', {}, format='json')

        assert response.status_code == status.HTTP_405_METHOD_NOT_ALLOWED

    def test_assign_groups_unknown_group(self, admin_client, member_user):
        response = admin_client.post('/api/users/groups/assign', {
            'userIds': [member_user.id], 'groupIds': [4040]
        }, format='json')

        assert response.status_code == status.HTTP_404_NOT_FOUND
        assert response.data['details']['missing_ids'] == [4040]
        assert not UserGroup.objects.exists()

    def test_delete_users(self, admin_client, member_user):
        response = admin_client.delete('/api/users', [member_user.id], format='json')

        assert response.status_code == status.HTTP_200_OK
        assert response.data['deletedCount'] == 1
        assert not User.objects.filter(id=member_user.id).exists()


@pytest.mark.django_db
class TestRolesAPI:

    def test_create_role_with_permissions(self, admin_client):
        read = Permission.objects.create(name='READ')

        response = admin_client.post('/api/roles', [
            {'name': 'VIEWER', 'permissionIds': [read.id]},
        ], format='json')

        assert response.status_code == status.HTTP_201_CREATED
        assert response.data['items'][0]['permissions'] == [{'id': read.id, 'name': 'READ'}]

    def test_create_duplicate_role(self, admin_client):
        response = admin_client.post('/api/roles', [{'name': 'admin'}], format='json')

        assert response.status_code == status.HTTP_409_CONFLICT
        assert response.data['error'] == 'DUPLICATE_RESOURCE'

    def test_rename_role(self, admin_client):
        role = Role.objects.create(name='Viewer')

        response = admin_client.put(f'/api/roles/{role.id}', {'name': 'Reader'}, format='json')

        assert response.status_code == status.HTTP_200_OK
        assert response.data['oldName'] == 'Viewer'
        assert response.data['newName'] == 'Reader'

    def test_assign_and_deassign_permissions(self, admin_client):
        role = Role.objects.create(name='OPS')
        perms = [Permission.objects.create(name=f'P{i}') for i in range(2)]
        body = [{'roleId': role.id, 'permissionIds': [p.id for p in perms]}]

        assigned = admin_client.post('/api/roles/assign-permissions', body, format='json')
        removed = admin_client.delete('/api/roles/deassign-permissions', body, format='json')
        again = admin_client.delete('/api/roles/deassign-permissions', body, format='json')

        assert assigned.data['message'] == 'Permissions assigned successfully. Total assignments: 2'
        assert removed.data['removedCount'] == 2
        assert again.data['message'] == 'No permissions were removed'

    def test_assign_roles_to_groups(self, admin_client):
        role = Role.objects.create(name='OPS')
        group = Group.objects.create(name='Ops')

        response = admin_client.post('/api/roles/groups/assign-roles', [
            {'groupId': group.id, 'roleIds': [role.id]}
        ], format='json')

        assert response.status_code == status.HTTP_200_OK
        assert GroupRole.objects.filter(group=group, role=role).exists()

    def test_delete_role_cascades(self, admin_client):
        role = Role.objects.create(name='TEMP')
        permission = Permission.objects.create(name='X')
        RolePermission.objects.create(role=role, permission=permission)

        response = admin_client.delete('/api/roles', [role.id], format='json')

        assert response.status_code == status.HTTP_200_OK
        assert not RolePermission.objects.exists()


@pytest.mark.django_db
class TestGroupsAndPermissionsAPI:

    def test_create_groups(self, admin_client):
        response = admin_client.post('/api/groups', [{'name': 'Sales'}, {'name': 'Support'}], format='json')

        assert response.status_code == status.HTTP_201_CREATED
        assert response.data['createdCount'] == 2

    def test_group_detail_lists_members_and_roles(self, admin_client, member_user):
        group = Group.objects.create(name='Sales')
        UserGroup.objects.create(user=member_user, group=group)

        response = admin_client.get(f'/api/groups/{group.id}')

        assert response.data['users'][0]['email'] == 'member@example.com'
        assert response.data['roles'] == []

    def test_create_permissions(self, admin_client):
        response = admin_client.post('/api/permissions', {'permissions': ['READ', 'WRITE']}, format='json')

        assert response.status_code == status.HTTP_201_CREATED
        assert sorted(Permission.objects.values_list('name', flat=True)) == ['READ', 'WRITE']

    def test_create_permissions_duplicate_in_request(self, admin_client):
        response = admin_client.post('/api/permissions', {'permissions': ['READ', 'read']}, format='json')

        assert response.status_code == status.HTTP_409_CONFLICT
        assert not Permission.objects.exists()

    def test_delete_unknown_permission(self, admin_client):
        response = admin_client.delete('/api/permissions', [12345], format='json')

        assert response.status_code == status.HTTP_404_NOT_FOUND

    def test_rename_permission_to_taken_name(self, admin_client):
        Permission.objects.create(name='READ')
        write = Permission.objects.create(name='WRITE')

        response = admin_client.put(f'/api/permissions/{write.id}', {'name': 'Read'}, format='json')

        assert response.status_code == status.HTTP_409_CONFLICT
