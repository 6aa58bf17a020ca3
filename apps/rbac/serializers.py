"""
RBAC serializers for REST API endpoints.

Request bodies use camelCase keys; serializers map them onto the
snake_case arguments the services take. Name, email and password rules
are enforced by the services so that error codes stay consistent.
"""
from rest_framework import serializers

from apps.rbac.models import Group, Permission, Role, User


def id_list(**kwargs):
    """List of integer IDs as sent by clients."""
    return serializers.ListField(child=serializers.IntegerField(), **kwargs)


# ===== AUTHENTICATION SERIALIZERS =====

class CredentialsSerializer(serializers.Serializer):
    """Serializer for login and registration."""

    email = serializers.CharField(required=False, allow_blank=True, allow_null=True, default='')
    password = serializers.CharField(
        required=False,
        allow_blank=True,
        allow_null=True,
        default='',
        trim_whitespace=False,
        write_only=True,
        style={'input_type': 'password'}
    )


class AuthResponseSerializer(serializers.Serializer):
    token = serializers.CharField()
    userId = serializers.IntegerField()
    roles = serializers.ListField(child=serializers.CharField())


class ProfileSerializer(serializers.Serializer):
    """The caller's own account and effective access."""

    id = serializers.IntegerField()
    email = serializers.CharField()
    enabled = serializers.BooleanField()
    roles = serializers.ListField(child=serializers.CharField())
    groups = serializers.ListField(child=serializers.CharField())
    authorities = serializers.ListField(child=serializers.CharField())
    effectiveRoles = serializers.ListField(child=serializers.CharField())
    permissions = serializers.ListField(child=serializers.CharField())


class ChangePasswordSerializer(serializers.Serializer):
    oldPassword = serializers.CharField(source='old_password', trim_whitespace=False, write_only=True)
    newPassword = serializers.CharField(source='new_password', trim_whitespace=False, write_only=True)


class ChangeEmailSerializer(serializers.Serializer):
    newEmail = serializers.CharField(source='new_email')


# ===== USER SERIALIZERS =====

class UserSummarySerializer(serializers.ModelSerializer):
    """Serializer for User list entries."""

    class Meta:
        model = User
        fields = ['id', 'email', 'enabled']
        read_only_fields = fields


class UserDetailSerializer(serializers.Serializer):
    id = serializers.IntegerField()
    email = serializers.CharField()
    enabled = serializers.BooleanField()
    roles = serializers.ListField(child=serializers.CharField())
    groups = serializers.ListField(child=serializers.CharField())


class CreateUserItemSerializer(serializers.Serializer):
    email = serializers.CharField(allow_blank=True)
    password = serializers.CharField(allow_blank=True, trim_whitespace=False, write_only=True)
    enabled = serializers.BooleanField(required=False, default=False)


class BulkCreateUsersSerializer(serializers.Serializer):
    """Serializer for {users: [{email, password, enabled?}]}."""

    users = CreateUserItemSerializer(many=True, allow_empty=False)


class UpdateCredentialsSerializer(serializers.Serializer):
    """Either field may be omitted, but not both."""

    email = serializers.CharField(required=False, allow_null=True, allow_blank=True)
    password = serializers.CharField(
        required=False, allow_null=True, allow_blank=True, trim_whitespace=False, write_only=True
    )


class UpdateUserStatusSerializer(serializers.Serializer):
    userIds = id_list(source='user_ids', allow_empty=False)
    enabled = serializers.BooleanField()


class UserRolesSerializer(serializers.Serializer):
    userIds = id_list(source='user_ids')
    roleIds = id_list(source='role_ids')


class UserGroupsSerializer(serializers.Serializer):
    userIds = id_list(source='user_ids')
    groupIds = id_list(source='group_ids')


# ===== ROLE / GROUP / PERMISSION SERIALIZERS =====

class PermissionSerializer(serializers.ModelSerializer):
    """Serializer for Permission model."""

    class Meta:
        model = Permission
        fields = ['id', 'name']
        read_only_fields = fields


class RoleSerializer(serializers.ModelSerializer):
    """Serializer for Role model."""

    class Meta:
        model = Role
        fields = ['id', 'name']
        read_only_fields = fields


class GroupSerializer(serializers.ModelSerializer):
    """Serializer for Group model."""

    class Meta:
        model = Group
        fields = ['id', 'name']
        read_only_fields = fields


class RoleDetailSerializer(RoleSerializer):
    """Role with the permissions it grants."""

    permissions = serializers.SerializerMethodField()

    class Meta(RoleSerializer.Meta):
        fields = RoleSerializer.Meta.fields + ['permissions']

    def get_permissions(self, obj):
        from apps.rbac.services import RoleService
        return PermissionSerializer(RoleService.permissions_of(obj.id), many=True).data


class GroupDetailSerializer(GroupSerializer):
    """Group with its members and granted roles."""

    users = serializers.SerializerMethodField()
    roles = serializers.SerializerMethodField()

    class Meta(GroupSerializer.Meta):
        fields = GroupSerializer.Meta.fields + ['users', 'roles']

    def get_users(self, obj):
        from apps.rbac.services import GroupService
        return UserSummarySerializer(GroupService.members_of(obj.id), many=True).data

    def get_roles(self, obj):
        from apps.rbac.services import GroupService
        return RoleSerializer(GroupService.roles_of(obj.id), many=True).data


class PermissionDetailSerializer(PermissionSerializer):
    """Permission with the roles granting it."""

    roles = serializers.SerializerMethodField()

    class Meta(PermissionSerializer.Meta):
        fields = PermissionSerializer.Meta.fields + ['roles']

    def get_roles(self, obj):
        from apps.rbac.services import PermissionService
        return RoleSerializer(PermissionService.roles_granting(obj.id), many=True).data


class CreateRoleItemSerializer(serializers.Serializer):
    name = serializers.CharField(allow_blank=True, trim_whitespace=False)
    permissionIds = id_list(required=False, default=list)


class CreateGroupItemSerializer(serializers.Serializer):
    name = serializers.CharField(allow_blank=True, trim_whitespace=False)


class CreatePermissionsSerializer(serializers.Serializer):
    """Serializer for {permissions: [names]}."""

    permissions = serializers.ListField(
        child=serializers.CharField(allow_blank=True, trim_whitespace=False),
        allow_empty=False
    )


class RenameSerializer(serializers.Serializer):
    name = serializers.CharField(allow_blank=True, trim_whitespace=False)


class RolePermissionsItemSerializer(serializers.Serializer):
    roleId = serializers.IntegerField(source='role_id')
    permissionIds = id_list(source='permission_ids')


class GroupRolesItemSerializer(serializers.Serializer):
    groupId = serializers.IntegerField(source='group_id')
    roleIds = id_list(source='role_ids')


class MessageSerializer(serializers.Serializer):
    """Generic {message, ...counts} response used for documentation."""

    message = serializers.CharField()
