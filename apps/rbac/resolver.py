"""
Effective permission resolution.

Walks User -> Role -> Permission and User -> Group -> Role -> Permission
on every call. Nothing is cached, so a revoked edge affects the very
next authorization decision.
"""
from typing import List, Set

from apps.rbac.models import GroupRole, Permission, Role, RolePermission, UserGroup, UserRole


class PermissionResolver:
    """Read-only traversal of the role graph for a single user."""

    @classmethod
    def direct_role_ids(cls, user_id) -> Set[int]:
        return set(
            UserRole.objects.filter(user_id=user_id).values_list('role_id', flat=True)
        )

    @classmethod
    def group_role_ids(cls, user_id) -> Set[int]:
        """Role IDs inherited through the user's group memberships."""
        group_ids = UserGroup.objects.filter(user_id=user_id).values_list('group_id', flat=True)
        return set(
            GroupRole.objects.filter(group_id__in=group_ids).values_list('role_id', flat=True)
        )

    @classmethod
    def effective_role_ids(cls, user_id) -> Set[int]:
        return cls.direct_role_ids(user_id) | cls.group_role_ids(user_id)

    @classmethod
    def resolve_permissions(cls, user_id) -> Set[str]:
        """
        Resolve every permission name reachable from the user.

        Args:
            user_id: User primary key

        Returns:
            set: Permission names granted through direct or group roles
        """
        role_ids = cls.effective_role_ids(user_id)
        if not role_ids:
            return set()

        permission_ids = RolePermission.objects.filter(
            role_id__in=role_ids
        ).values_list('permission_id', flat=True)

        return set(
            Permission.objects.filter(id__in=permission_ids).values_list('name', flat=True)
        )

    @classmethod
    def resolve_role_names(cls, user_id) -> List[str]:
        """
        Resolve names of roles assigned directly to the user, sorted.

        Group-inherited roles are not included; token authorities are
        built from direct roles only.
        """
        role_ids = cls.direct_role_ids(user_id)
        if not role_ids:
            return []
        return sorted(Role.objects.filter(id__in=role_ids).values_list('name', flat=True))

    @classmethod
    def resolve_effective_role_names(cls, user_id) -> Set[str]:
        """Names of direct and group-inherited roles."""
        role_ids = cls.effective_role_ids(user_id)
        if not role_ids:
            return set()
        return set(Role.objects.filter(id__in=role_ids).values_list('name', flat=True))
