"""
RBAC REST API views.

Implements admin endpoints for:
- User management (bulk create, credentials, status, role/group edges)
- Role management (CRUD, permission edges, group edges)
- Group management (CRUD)
- Permission management (CRUD)

Every view here requires the ROLE_ADMIN authority.
"""
from drf_spectacular.types import OpenApiTypes
from drf_spectacular.utils import OpenApiExample, OpenApiParameter, extend_schema, extend_schema_view
from rest_framework import status
from rest_framework.pagination import PageNumberPagination
from rest_framework.response import Response
from rest_framework.views import APIView

from apps.core.permissions import HasAuthorities, requires_authorities
from apps.rbac.serializers import (
    BulkCreateUsersSerializer, CreateGroupItemSerializer, CreatePermissionsSerializer,
    CreateRoleItemSerializer, GroupDetailSerializer, GroupRolesItemSerializer,
    GroupSerializer, PermissionDetailSerializer, PermissionSerializer,
    RenameSerializer, RoleDetailSerializer, RolePermissionsItemSerializer, RoleSerializer,
    UpdateCredentialsSerializer, UpdateUserStatusSerializer, UserDetailSerializer,
    UserGroupsSerializer, UserRolesSerializer, UserSummarySerializer, id_list,
)
from apps.rbac.services import GroupService, PermissionService, RoleService, UserService

ADMIN = 'ROLE_ADMIN'

SEARCH_PARAMETERS = [
    OpenApiParameter(name='q', type=OpenApiTypes.STR, description='Case-insensitive substring filter'),
    OpenApiParameter(name='page', type=OpenApiTypes.INT, description='Page number (1-based)'),
    OpenApiParameter(name='page_size', type=OpenApiTypes.INT, description='Items per page (max 100)'),
]


class StandardResultsSetPagination(PageNumberPagination):
    """Standard pagination for list endpoints."""
    page_size = 50
    page_size_query_param = 'page_size'
    max_page_size = 100


def parse_ids(data):
    """Validate a raw JSON list of IDs sent as a DELETE body."""
    return id_list(allow_empty=True).run_validation(data)


def validated(serializer_class, data, many=False):
    serializer = serializer_class(data=data, many=many)
    serializer.is_valid(raise_exception=True)
    return serializer.validated_data


class PaginatedListMixin:
    pagination_class = StandardResultsSetPagination

    def paginated(self, request, queryset, serializer_class):
        paginator = self.pagination_class()
        page = paginator.paginate_queryset(queryset, request, view=self)
        return paginator.get_paginated_response(serializer_class(page, many=True).data)


# ===== USERS =====

@extend_schema_view(
    post=extend_schema(
        tags=['Users'],
        summary='Bulk create users',
        description='''
Create users in one transaction. Each user receives the `MEMBER` role.
Accounts are disabled unless `enabled` is true.

**Required authority:** `ROLE_ADMIN`
        ''',
        request=BulkCreateUsersSerializer,
        responses={201: OpenApiTypes.OBJECT, 400: OpenApiTypes.OBJECT, 409: OpenApiTypes.OBJECT},
        examples=[
            OpenApiExample(
                'Create Request',
                value={'users': [{'email': 'bob@example.com', 'password': 'secret123', 'enabled': True}]},
                request_only=True
            ),
        ]
    ),
    get=extend_schema(
        tags=['Users'],
        summary='List users',
        parameters=SEARCH_PARAMETERS,
        responses={200: UserSummarySerializer(many=True)}
    ),
    delete=extend_schema(
        tags=['Users'],
        summary='Delete users',
        description='Delete users and all their role and group edges. Body: `[ids]`.',
        request={'application/json': {'type': 'array', 'items': {'type': 'integer'}}},
        responses={200: OpenApiTypes.OBJECT, 400: OpenApiTypes.OBJECT, 404: OpenApiTypes.OBJECT}
    ),
)
@requires_authorities(ADMIN)
class UserListView(PaginatedListMixin, APIView):
    """
    POST /api/users
    GET /api/users?q=&page=&page_size=
    DELETE /api/users
    """
    permission_classes = [HasAuthorities]

    def get(self, request):
        return self.paginated(request, UserService.search(request.query_params.get('q', '')), UserSummarySerializer)

    def post(self, request):
        data = validated(BulkCreateUsersSerializer, request.data)
        users = UserService.create_users(data['users'], actor=request.auth)
        return Response(
            {
                'message': 'Users created successfully',
                'createdCount': len(users),
                'users': UserSummarySerializer(users, many=True).data,
            },
            status=status.HTTP_201_CREATED
        )

    def delete(self, request):
        deleted = UserService.delete_users(parse_ids(request.data), actor=request.auth)
        return Response({'message': 'Users deleted successfully', 'deletedCount': deleted})


@extend_schema(tags=['Users'], summary='Get user details', responses={200: UserDetailSerializer})
@requires_authorities(ADMIN)
class UserDetailView(APIView):
    """
    GET /api/users/{id}
    """
    permission_classes = [HasAuthorities]

    def get(self, request, user_id):
        return Response(UserService.describe(UserService.get_user(user_id)))


@extend_schema(
    tags=['Users'],
    summary='Update user credentials',
    description='Change email and/or password of any user. At least one field is required.',
    request=UpdateCredentialsSerializer,
    responses={200: OpenApiTypes.OBJECT, 400: OpenApiTypes.OBJECT, 404: OpenApiTypes.OBJECT, 409: OpenApiTypes.OBJECT}
)
@requires_authorities(ADMIN)
class UserCredentialsView(APIView):
    """
    PATCH /api/users/{id}/credentials
    """
    permission_classes = [HasAuthorities]

    def patch(self, request, user_id):
        data = validated(UpdateCredentialsSerializer, request.data)
        user, email_updated, password_updated = UserService.update_credentials(
            user_id,
            email=data.get('email'),
            password=data.get('password'),
            actor=request.auth
        )
        return Response({
            'message': 'Credentials updated successfully',
            'userId': user.id,
            'emailUpdated': email_updated,
            'passwordUpdated': password_updated,
        })


@extend_schema(
    tags=['Users'],
    summary='Enable or disable users',
    request=UpdateUserStatusSerializer,
    responses={200: OpenApiTypes.OBJECT, 404: OpenApiTypes.OBJECT}
)
@requires_authorities(ADMIN)
class UserStatusView(APIView):
    """
    PUT /api/users/status
    """
    permission_classes = [HasAuthorities]

    def put(self, request):
        data = validated(UpdateUserStatusSerializer, request.data)
        updated = UserService.set_enabled(data['user_ids'], data['enabled'], actor=request.auth)
        return Response({'message': 'User status updated successfully', 'updatedCount': updated})


@extend_schema_view(
    post=extend_schema(
        tags=['Users'],
        summary='Assign roles to users',
        description='Link every user to every role. Existing links are skipped.',
        request=UserRolesSerializer,
        responses={200: OpenApiTypes.OBJECT, 400: OpenApiTypes.OBJECT, 404: OpenApiTypes.OBJECT},
        examples=[
            OpenApiExample(
                'Success Response',
                value={'message': 'Roles assigned successfully', 'assignedCount': 3},
                response_only=True
            ),
        ]
    ),
    delete=extend_schema(
        tags=['Users'],
        summary='Deassign roles from users',
        request=UserRolesSerializer,
        responses={200: OpenApiTypes.OBJECT, 404: OpenApiTypes.OBJECT}
    ),
)
@requires_authorities(ADMIN)
class UserRolesView(APIView):
    """
    POST /api/users/roles/assign
    DELETE /api/users/roles/deassign
    """
    permission_classes = [HasAuthorities]

    def post(self, request):
        data = validated(UserRolesSerializer, request.data)
        assigned = UserService.assign_roles(data['user_ids'], data['role_ids'], actor=request.auth)
        return Response({'message': 'Roles assigned successfully', 'assignedCount': assigned})

    def delete(self, request):
        data = validated(UserRolesSerializer, request.data)
        removed = UserService.deassign_roles(data['user_ids'], data['role_ids'], actor=request.auth)
        message = 'Roles deassigned successfully' if removed else 'No roles were deassigned'
        return Response({'message': message, 'removedCount': removed})


@extend_schema_view(
    post=extend_schema(
        tags=['Users'],
        summary='Add users to groups',
        request=UserGroupsSerializer,
        responses={200: OpenApiTypes.OBJECT, 404: OpenApiTypes.OBJECT}
    ),
    delete=extend_schema(
        tags=['Users'],
        summary='Remove users from groups',
        request=UserGroupsSerializer,
        responses={200: OpenApiTypes.OBJECT, 404: OpenApiTypes.OBJECT}
    ),
)
@requires_authorities(ADMIN)
class UserGroupsView(APIView):
    """
    POST /api/users/groups/assign
    DELETE /api/users/groups/deassign
    """
    permission_classes = [HasAuthorities]

    def post(self, request):
        data = validated(UserGroupsSerializer, request.data)
        assigned = UserService.assign_groups(data['user_ids'], data['group_ids'], actor=request.auth)
        return Response({'message': 'Users assigned to groups successfully', 'assignedCount': assigned})

    def delete(self, request):
        data = validated(UserGroupsSerializer, request.data)
        removed = UserService.deassign_groups(data['user_ids'], data['group_ids'], actor=request.auth)
        message = 'Users deassigned from groups successfully' if removed else 'No users were deassigned'
        return Response({'message': message, 'removedCount': removed})


# ===== NAMED ENTITIES =====

class NamedEntityListView(PaginatedListMixin, APIView):
    """
    Shared GET (search) and DELETE (cascade) for roles, groups and permissions.

    Subclasses set service, list_serializer and deleted_message and
    implement post.
    """
    permission_classes = [HasAuthorities]

    service = None
    list_serializer = None
    deleted_message = None

    def get(self, request):
        return self.paginated(
            request,
            self.service.search(request.query_params.get('q', '')),
            self.list_serializer
        )

    def delete(self, request):
        deleted = self.service.delete(parse_ids(request.data), actor=request.auth)
        return Response({'message': self.deleted_message, 'deletedCount': deleted})

    def created(self, message, items, serializer_class):
        return Response(
            {
                'message': message,
                'createdCount': len(items),
                'items': serializer_class(items, many=True).data,
            },
            status=status.HTTP_201_CREATED
        )


class NamedEntityDetailView(APIView):
    """
    Shared GET and PUT (rename) for a single role, group or permission.
    """
    permission_classes = [HasAuthorities]

    service = None
    detail_serializer = None
    renamed_message = None

    def get(self, request, entity_id):
        return Response(self.detail_serializer(self.service.get(entity_id)).data)

    def put(self, request, entity_id):
        data = validated(RenameSerializer, request.data)
        entity, old_name = self.service.rename(entity_id, data['name'], actor=request.auth)
        return Response({
            'message': self.renamed_message,
            'id': entity.id,
            'oldName': old_name,
            'newName': entity.name,
        })


NAMED_DELETE_SCHEMA = {
    'request': {'application/json': {'type': 'array', 'items': {'type': 'integer'}}},
    'responses': {200: OpenApiTypes.OBJECT, 400: OpenApiTypes.OBJECT, 404: OpenApiTypes.OBJECT},
}


@extend_schema_view(
    post=extend_schema(
        tags=['Roles'],
        summary='Create roles',
        description='''
Create roles, optionally granting permissions to each. Names are trimmed
and must be unique ignoring case, both within the request and against
stored roles.

**Required authority:** `ROLE_ADMIN`
        ''',
        request=CreateRoleItemSerializer(many=True),
        responses={201: OpenApiTypes.OBJECT, 400: OpenApiTypes.OBJECT, 404: OpenApiTypes.OBJECT, 409: OpenApiTypes.OBJECT},
        examples=[
            OpenApiExample(
                'Create Request',
                value=[{'name': 'AUDITOR', 'permissionIds': [1, 2]}],
                request_only=True
            ),
        ]
    ),
    get=extend_schema(tags=['Roles'], summary='List roles', parameters=SEARCH_PARAMETERS,
                      responses={200: RoleSerializer(many=True)}),
    delete=extend_schema(tags=['Roles'], summary='Delete roles',
                         description='Delete roles with every user, group and permission edge.',
                         **NAMED_DELETE_SCHEMA),
)
@requires_authorities(ADMIN)
class RoleListView(NamedEntityListView):
    """
    POST /api/roles
    GET /api/roles
    DELETE /api/roles
    """
    service = RoleService
    list_serializer = RoleSerializer
    deleted_message = 'Roles deleted successfully'

    def post(self, request):
        items = validated(CreateRoleItemSerializer, request.data, many=True)
        roles = RoleService.create_roles(items, actor=request.auth)
        return self.created('Roles created successfully', roles, RoleDetailSerializer)


@extend_schema_view(
    get=extend_schema(tags=['Roles'], summary='Get role with permissions',
                      responses={200: RoleDetailSerializer}),
    put=extend_schema(tags=['Roles'], summary='Rename role', request=RenameSerializer,
                      responses={200: OpenApiTypes.OBJECT, 409: OpenApiTypes.OBJECT}),
)
@requires_authorities(ADMIN)
class RoleDetailView(NamedEntityDetailView):
    """
    GET /api/roles/{id}
    PUT /api/roles/{id}
    """
    service = RoleService
    detail_serializer = RoleDetailSerializer
    renamed_message = 'Role name updated successfully'


def _role_permission_items(data):
    items = validated(RolePermissionsItemSerializer, data, many=True)
    return [(item['role_id'], item['permission_ids']) for item in items]


def _group_role_items(data):
    items = validated(GroupRolesItemSerializer, data, many=True)
    return [(item['group_id'], item['role_ids']) for item in items]


@extend_schema_view(
    post=extend_schema(
        tags=['Roles'],
        summary='Assign permissions to roles',
        request=RolePermissionsItemSerializer(many=True),
        responses={200: OpenApiTypes.OBJECT, 400: OpenApiTypes.OBJECT, 404: OpenApiTypes.OBJECT},
        examples=[
            OpenApiExample(
                'Assign Request',
                value=[{'roleId': 1, 'permissionIds': [1, 2, 3]}],
                request_only=True
            ),
        ]
    ),
    delete=extend_schema(
        tags=['Roles'],
        summary='Remove permissions from roles',
        request=RolePermissionsItemSerializer(many=True),
        responses={200: OpenApiTypes.OBJECT, 404: OpenApiTypes.OBJECT}
    ),
)
@requires_authorities(ADMIN)
class RolePermissionsView(APIView):
    """
    POST /api/roles/assign-permissions
    DELETE /api/roles/deassign-permissions
    """
    permission_classes = [HasAuthorities]

    def post(self, request):
        assigned = RoleService.assign_permissions(_role_permission_items(request.data), actor=request.auth)
        return Response({
            'message': f'Permissions assigned successfully. Total assignments: {assigned}',
            'assignedCount': assigned,
        })

    def delete(self, request):
        removed = RoleService.deassign_permissions(_role_permission_items(request.data), actor=request.auth)
        message = 'Permissions removed successfully' if removed else 'No permissions were removed'
        return Response({'message': message, 'removedCount': removed})


@extend_schema_view(
    post=extend_schema(
        tags=['Roles'],
        summary='Assign roles to groups',
        request=GroupRolesItemSerializer(many=True),
        responses={200: OpenApiTypes.OBJECT, 400: OpenApiTypes.OBJECT, 404: OpenApiTypes.OBJECT}
    ),
    delete=extend_schema(
        tags=['Roles'],
        summary='Remove roles from groups',
        request=GroupRolesItemSerializer(many=True),
        responses={200: OpenApiTypes.OBJECT, 404: OpenApiTypes.OBJECT}
    ),
)
@requires_authorities(ADMIN)
class GroupRolesView(APIView):
    """
    POST /api/roles/groups/assign-roles
    DELETE /api/roles/groups/deassign-roles
    """
    permission_classes = [HasAuthorities]

    def post(self, request):
        assigned = RoleService.assign_to_groups(_group_role_items(request.data), actor=request.auth)
        return Response({
            'message': f'Roles assigned to groups successfully. Inserted: {assigned}',
            'assignedCount': assigned,
        })

    def delete(self, request):
        removed = RoleService.deassign_from_groups(_group_role_items(request.data), actor=request.auth)
        message = 'Roles deassigned from groups successfully' if removed else 'No roles were deassigned from groups'
        return Response({'message': message, 'removedCount': removed})


# ===== GROUPS =====

@extend_schema_view(
    post=extend_schema(tags=['Groups'], summary='Create groups', request=CreateGroupItemSerializer(many=True),
                       responses={201: OpenApiTypes.OBJECT, 400: OpenApiTypes.OBJECT, 409: OpenApiTypes.OBJECT}),
    get=extend_schema(tags=['Groups'], summary='List groups', parameters=SEARCH_PARAMETERS,
                      responses={200: GroupSerializer(many=True)}),
    delete=extend_schema(tags=['Groups'], summary='Delete groups',
                         description='Delete groups with their membership and role edges.',
                         **NAMED_DELETE_SCHEMA),
)
@requires_authorities(ADMIN)
class GroupListView(NamedEntityListView):
    """
    POST /api/groups
    GET /api/groups
    DELETE /api/groups
    """
    service = GroupService
    list_serializer = GroupSerializer
    deleted_message = 'Groups deleted successfully'

    def post(self, request):
        items = validated(CreateGroupItemSerializer, request.data, many=True)
        groups = GroupService.create_named([item['name'] for item in items], actor=request.auth)
        return self.created('Groups created successfully', groups, GroupSerializer)


@extend_schema_view(
    get=extend_schema(tags=['Groups'], summary='Get group with members and roles',
                      responses={200: GroupDetailSerializer}),
    put=extend_schema(tags=['Groups'], summary='Rename group', request=RenameSerializer,
                      responses={200: OpenApiTypes.OBJECT, 409: OpenApiTypes.OBJECT}),
)
@requires_authorities(ADMIN)
class GroupDetailView(NamedEntityDetailView):
    """
    GET /api/groups/{id}
    PUT /api/groups/{id}
    """
    service = GroupService
    detail_serializer = GroupDetailSerializer
    renamed_message = 'Group name updated successfully'


# ===== PERMISSIONS =====

@extend_schema_view(
    post=extend_schema(
        tags=['Permissions'],
        summary='Create permissions',
        request=CreatePermissionsSerializer,
        responses={201: OpenApiTypes.OBJECT, 400: OpenApiTypes.OBJECT, 409: OpenApiTypes.OBJECT},
        examples=[
            OpenApiExample(
                'Create Request',
                value={'permissions': ['REPORT_READ', 'REPORT_EXPORT']},
                request_only=True
            ),
        ]
    ),
    get=extend_schema(tags=['Permissions'], summary='List permissions', parameters=SEARCH_PARAMETERS,
                      responses={200: PermissionSerializer(many=True)}),
    delete=extend_schema(tags=['Permissions'], summary='Delete permissions',
                         description='Delete permissions and every role grant of them.',
                         **NAMED_DELETE_SCHEMA),
)
@requires_authorities(ADMIN)
class PermissionListView(NamedEntityListView):
    """
    POST /api/permissions
    GET /api/permissions
    DELETE /api/permissions
    """
    service = PermissionService
    list_serializer = PermissionSerializer
    deleted_message = 'Permissions deleted successfully'

    def post(self, request):
        data = validated(CreatePermissionsSerializer, request.data)
        permissions = PermissionService.create_named(data['permissions'], actor=request.auth)
        return self.created('Permissions created successfully', permissions, PermissionSerializer)


@extend_schema_view(
    get=extend_schema(tags=['Permissions'], summary='Get permission with granting roles',
                      responses={200: PermissionDetailSerializer}),
    put=extend_schema(tags=['Permissions'], summary='Rename permission', request=RenameSerializer,
                      responses={200: OpenApiTypes.OBJECT, 409: OpenApiTypes.OBJECT}),
)
@requires_authorities(ADMIN)
class PermissionDetailView(NamedEntityDetailView):
    """
    GET /api/permissions/{id}
    PUT /api/permissions/{id}
    """
    service = PermissionService
    detail_serializer = PermissionDetailSerializer
    renamed_message = 'Permission updated successfully'
