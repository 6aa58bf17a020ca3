"""
Demo data for an empty access control database.

Seeds the two fixed roles, a small permission and group catalogue and ten
users, then links them round-robin through the reconciler.
"""
import logging
from typing import Dict

from django.conf import settings
from django.db import IntegrityError, transaction

from apps.rbac.models import Group, Permission, Role, User
from apps.rbac.reconciler import (
    GROUP_ROLE, ROLE_PERMISSION, USER_GROUP, USER_ROLE, RelationshipReconciler,
)
from apps.rbac.services import AuthService, RoleService

logger = logging.getLogger(__name__)


class AccessControlSeeder:
    """
    Idempotent seeder: does nothing once any user exists.

    Example:
        >>> AccessControlSeeder().seed()
        {'roles': 2, 'permissions': 10, 'groups': 10, 'users': 10, ...}
    """

    SEED_COUNT = 10
    ADMIN_EMAIL = 'admin@example.com'

    def __init__(self, password: str = None):
        self.password = password or getattr(settings, 'SEED_PASSWORD', '123456')

    def permission_names(self):
        return [f"PERM_{i:03d}" for i in range(1, self.SEED_COUNT + 1)]

    def group_names(self):
        return [f"Group {i:02d}" for i in range(1, self.SEED_COUNT + 1)]

    def user_emails(self):
        return [self.ADMIN_EMAIL] + [f"user{i}@example.com" for i in range(1, self.SEED_COUNT)]

    def seed(self) -> Dict[str, int]:
        """
        Populate an empty database.

        Returns:
            dict: Counts of created entities and edges, empty when skipped
        """
        try:
            counts = self._seed_empty_database()
        except IntegrityError:
            # Another seeder committed users first
            logger.info("seed.skipped reason=concurrent_seed")
            return {}

        if counts:
            logger.info("seed.completed", extra={'counts': counts})
        return counts

    def _seed_empty_database(self):
        with transaction.atomic():
            if User.objects.exists():
                logger.info("seed.skipped reason=users_exist")
                return {}

            admin_role = RoleService.get_or_create_role(AuthService.ADMIN_ROLE)
            member_role = RoleService.get_or_create_role(AuthService.MEMBER_ROLE)
            roles = [admin_role, member_role]

            permissions = [self._get_or_create(Permission, name) for name in self.permission_names()]
            groups = [self._get_or_create(Group, name) for name in self.group_names()]
            users = [
                User.objects.create_user(email, self.password, enabled=True)
                for email in self.user_emails()
            ]

            user_roles = {(user.id, member_role.id) for user in users}
            user_roles.add((users[0].id, admin_role.id))
            user_groups = {(user.id, groups[i % len(groups)].id) for i, user in enumerate(users)}
            group_roles = {(group.id, roles[i % len(roles)].id) for i, group in enumerate(groups)}
            role_permissions = {
                (roles[i % len(roles)].id, permission.id) for i, permission in enumerate(permissions)
            }

            counts = {
                'roles': len(roles),
                'permissions': len(permissions),
                'groups': len(groups),
                'users': len(users),
                'user_roles': RelationshipReconciler(USER_ROLE).assign_pairs(user_roles),
                'user_groups': RelationshipReconciler(USER_GROUP).assign_pairs(user_groups),
                'group_roles': RelationshipReconciler(GROUP_ROLE).assign_pairs(group_roles),
                'role_permissions': RelationshipReconciler(ROLE_PERMISSION).assign_pairs(role_permissions),
            }

        return counts

    @staticmethod
    def _get_or_create(model, name):
        entity = model.objects.by_name(name)
        if entity is None:
            entity = model.objects.create(name=name)
        return entity
