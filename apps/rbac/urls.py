"""
RBAC API URLs.

Provides admin endpoints for:
- User management and self-service account changes
- Role management (CRUD, permission and group edges)
- Group management (CRUD)
- Permission management (CRUD)
"""
from django.urls import path

from apps.rbac.views import (
    GroupDetailView,
    GroupListView,
    GroupRolesView,
    PermissionDetailView,
    PermissionListView,
    RoleDetailView,
    RoleListView,
    RolePermissionsView,
    UserCredentialsView,
    UserDetailView,
    UserGroupsView,
    UserListView,
    UserRolesView,
    UserStatusView,
)
from apps.rbac.views_auth import ChangeEmailView, ChangePasswordView

app_name = 'rbac'

POST_ONLY = {'http_method_names': ['post', 'options']}
DELETE_ONLY = {'http_method_names': ['delete', 'options']}

urlpatterns = [
    # Users
    path('users', UserListView.as_view(), name='user-list'),
    path('users/change-password', ChangePasswordView.as_view(), name='user-change-password'),
    path('users/email', ChangeEmailView.as_view(), name='user-change-email'),
    path('users/status', UserStatusView.as_view(), name='user-status'),
    path('users/roles/assign', UserRolesView.as_view(**POST_ONLY), name='user-roles-assign'),
    path('users/roles/deassign', UserRolesView.as_view(**DELETE_ONLY), name='user-roles-deassign'),
    path('users/groups/assign', UserGroupsView.as_view(**POST_ONLY), name='user-groups-assign'),
    path('users/groups/deassign', UserGroupsView.as_view(**DELETE_ONLY), name='user-groups-deassign'),
    path('users/<int:user_id>', UserDetailView.as_view(), name='user-detail'),
    path('users/<int:user_id>/credentials', UserCredentialsView.as_view(), name='user-credentials'),

    # Roles
    path('roles', RoleListView.as_view(), name='role-list'),
    path('roles/assign-permissions', RolePermissionsView.as_view(**POST_ONLY), name='role-permissions-assign'),
    path('roles/deassign-permissions', RolePermissionsView.as_view(**DELETE_ONLY), name='role-permissions-deassign'),
    path('roles/groups/assign-roles', GroupRolesView.as_view(**POST_ONLY), name='group-roles-assign'),
    path('roles/groups/deassign-roles', GroupRolesView.as_view(**DELETE_ONLY), name='group-roles-deassign'),
    path('roles/<int:entity_id>', RoleDetailView.as_view(), name='role-detail'),

    # Groups
    path('groups', GroupListView.as_view(), name='group-list'),
    path('groups/<int:entity_id>', GroupDetailView.as_view(), name='group-detail'),

    # Permissions
    path('permissions', PermissionListView.as_view(), name='permission-list'),
    path('permissions/<int:entity_id>', PermissionDetailView.as_view(), name='permission-detail'),
]
