"""
Cascade deletion of RBAC entities.

Each delete validates every ID, removes all referencing edges in a fixed
order and only then deletes the entity rows, all in one transaction.
"""
import logging

from django.db import IntegrityError, transaction
from django.db.models import ProtectedError

from apps.core.exceptions import InvalidArgument, NotFound
from apps.core.validators import InputValidator
from apps.rbac.models import Group, Permission, Role, User
from apps.rbac.reconciler import (
    GROUP_ROLE, ROLE_PERMISSION, USER_GROUP, USER_ROLE, RelationshipReconciler,
)

logger = logging.getLogger(__name__)


class CascadeCoordinator:
    """
    Delete users, roles, groups and permissions with their edges.

    Edge cleanup order per entity:
        users:       UserRole, UserGroup
        roles:       UserRole, GroupRole, RolePermission
        groups:      UserGroup, GroupRole
        permissions: RolePermission
    """

    # entity model -> [(edge kind, side the entity sits on)]
    CLEANUP_PLAN = {
        User: [(USER_ROLE, 'left'), (USER_GROUP, 'left')],
        Role: [(USER_ROLE, 'right'), (GROUP_ROLE, 'right'), (ROLE_PERMISSION, 'left')],
        Group: [(USER_GROUP, 'right'), (GROUP_ROLE, 'left')],
        Permission: [(ROLE_PERMISSION, 'right')],
    }

    @classmethod
    def delete_users(cls, ids):
        return cls._delete(User, ids, 'user')

    @classmethod
    def delete_roles(cls, ids):
        return cls._delete(Role, ids, 'role')

    @classmethod
    def delete_groups(cls, ids):
        return cls._delete(Group, ids, 'group')

    @classmethod
    def delete_permissions(cls, ids):
        return cls._delete(Permission, ids, 'permission')

    @classmethod
    def _delete(cls, model, ids, label):
        """
        Validate, clean up edges and delete entities atomically.

        Args:
            model: Entity model class
            ids: Entity IDs to delete
            label: Singular entity name for messages

        Returns:
            int: Number of entities deleted

        Raises:
            InvalidArgument: If no usable IDs are given, or a reference
                still blocks deletion
            NotFound: If any ID does not exist (nothing is deleted)
        """
        if not ids:
            raise InvalidArgument(f"No {label} IDs provided")

        entity_ids = InputValidator.normalize_ids(ids)
        if not entity_ids:
            raise InvalidArgument(f"No valid {label} IDs provided")

        with transaction.atomic():
            found = set(model.objects.filter(id__in=entity_ids).values_list('id', flat=True))
            missing = set(entity_ids) - found
            if missing:
                raise NotFound(
                    f"One or more {label} IDs do not exist: {sorted(missing)}",
                    missing_ids=missing
                )

            edges_removed = {}
            for kind, side in cls.CLEANUP_PLAN[model]:
                reconciler = RelationshipReconciler(kind)
                if side == 'left':
                    edges_removed[kind.name] = reconciler.delete_by_left(entity_ids)
                else:
                    edges_removed[kind.name] = reconciler.delete_by_right(entity_ids)

            try:
                with transaction.atomic():
                    deleted, _ = model.objects.filter(id__in=entity_ids).delete()
            except ProtectedError as e:
                blockers = sorted({type(obj).__name__ for obj in e.protected_objects})
                raise InvalidArgument(
                    f"Cannot delete {label}s due to existing references: {', '.join(blockers)}",
                    details={'references': blockers}
                )
            except IntegrityError as e:
                raise InvalidArgument(
                    f"Cannot delete {label}s due to existing references: {e}"
                )

        logger.info(
            f"{label}s.delete count={deleted}",
            extra={'edges_removed': edges_removed}
        )
        return deleted
