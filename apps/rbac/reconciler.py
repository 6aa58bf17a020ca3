"""
Relationship reconciliation for the four RBAC edge tables.

Assign and deassign compute the delta against the stored edges and only
write that delta. The unique constraint on each pair is the last-resort
guard against concurrent writers: a violated insert rolls back to a
savepoint, the stored set is re-read and the remaining delta retried.
"""
import logging
from dataclasses import dataclass
from typing import Iterable, List, Set, Tuple, Type

from django.conf import settings
from django.db import IntegrityError, models, transaction

from apps.core.exceptions import Conflict, InvalidArgument, NotFound
from apps.rbac.models import (
    Group, GroupRole, Permission, Role, RolePermission, User, UserGroup, UserRole,
)

logger = logging.getLogger(__name__)

Pair = Tuple[int, int]


@dataclass(frozen=True)
class EdgeKind:
    """
    Description of one edge table.

    Attributes:
        name: Short label used in logs and messages
        model: Edge model class
        left_field: Name of the left foreign key (e.g. 'user')
        right_field: Name of the right foreign key (e.g. 'role')
        left_model: Entity model referenced by the left key
        right_model: Entity model referenced by the right key
    """
    name: str
    model: Type[models.Model]
    left_field: str
    right_field: str
    left_model: Type[models.Model]
    right_model: Type[models.Model]

    @property
    def left_column(self):
        return f'{self.left_field}_id'

    @property
    def right_column(self):
        return f'{self.right_field}_id'

    @property
    def left_label(self):
        return self.left_model.__name__.lower()

    @property
    def right_label(self):
        return self.right_model.__name__.lower()


USER_ROLE = EdgeKind('user_role', UserRole, 'user', 'role', User, Role)
USER_GROUP = EdgeKind('user_group', UserGroup, 'user', 'group', User, Group)
GROUP_ROLE = EdgeKind('group_role', GroupRole, 'group', 'role', Group, Role)
ROLE_PERMISSION = EdgeKind('role_permission', RolePermission, 'role', 'permission', Role, Permission)

EDGE_KINDS = (USER_ROLE, USER_GROUP, GROUP_ROLE, ROLE_PERMISSION)


def require_existing(model, ids: Iterable[int], label: str = None):
    """
    Verify every ID exists in the entity table.

    Raises:
        NotFound: Naming every missing ID
    """
    wanted = set(ids)
    if not wanted:
        return
    found = set(model.objects.filter(id__in=wanted).values_list('id', flat=True))
    missing = wanted - found
    if missing:
        label = label or model.__name__.lower()
        raise NotFound(
            f"Some {label}s not found: {sorted(missing)}",
            missing_ids=missing
        )


class RelationshipReconciler:
    """
    Idempotent bulk assign/deassign for one edge kind.

    Example:
        >>> RelationshipReconciler(USER_ROLE).assign({1, 2}, {10, 11})
        3
    """

    def __init__(self, kind: EdgeKind):
        self.kind = kind

    @property
    def max_attempts(self):
        return getattr(settings, 'RECONCILER_MAX_ATTEMPTS', 3)

    # ===== READS =====

    def existing_pairs(self, left_ids: Iterable[int], right_ids: Iterable[int]) -> Set[Pair]:
        """Return stored pairs restricted to the given left and right IDs."""
        left_ids, right_ids = set(left_ids), set(right_ids)
        if not left_ids or not right_ids:
            return set()
        rows = self.kind.model.objects.filter(
            **{
                f'{self.kind.left_column}__in': left_ids,
                f'{self.kind.right_column}__in': right_ids,
            }
        ).values_list(self.kind.left_column, self.kind.right_column)
        return set(rows)

    def right_ids_for(self, left_ids: Iterable[int]) -> Set[int]:
        """Return right-side IDs linked to any of the left IDs."""
        left_ids = set(left_ids)
        if not left_ids:
            return set()
        return set(
            self.kind.model.objects.filter(
                **{f'{self.kind.left_column}__in': left_ids}
            ).values_list(self.kind.right_column, flat=True)
        )

    def left_ids_for(self, right_ids: Iterable[int]) -> Set[int]:
        """Return left-side IDs linked to any of the right IDs."""
        right_ids = set(right_ids)
        if not right_ids:
            return set()
        return set(
            self.kind.model.objects.filter(
                **{f'{self.kind.right_column}__in': right_ids}
            ).values_list(self.kind.left_column, flat=True)
        )

    # ===== ASSIGN =====

    def assign(self, left_ids: Iterable[int], right_ids: Iterable[int]) -> int:
        """
        Link every left ID to every right ID.

        Args:
            left_ids: Left entity IDs (e.g. user IDs)
            right_ids: Right entity IDs (e.g. role IDs)

        Returns:
            int: Number of edges this call inserted (0 when all existed)

        Raises:
            InvalidArgument: If either ID set is empty
            NotFound: If any referenced entity does not exist
        """
        left_ids, right_ids = set(left_ids), set(right_ids)
        if not left_ids or not right_ids:
            raise InvalidArgument(
                f"Both {self.kind.left_label} IDs and {self.kind.right_label} IDs are required"
            )

        pairs = {(left, right) for left in left_ids for right in right_ids}
        return self.assign_pairs(pairs)

    def assign_pairs(self, pairs: Iterable[Pair]) -> int:
        """
        Insert the given pairs that are not stored yet.

        Returns:
            int: Number of edges this call inserted

        Raises:
            InvalidArgument: If no pairs are given
            NotFound: If any referenced entity does not exist
            Conflict: If concurrent writers kept winning every retry
        """
        candidates = set(pairs)
        if not candidates:
            raise InvalidArgument(f"No {self.kind.name} pairs provided")

        left_ids = {left for left, _ in candidates}
        right_ids = {right for _, right in candidates}

        with transaction.atomic():
            require_existing(self.kind.left_model, left_ids, self.kind.left_label)
            require_existing(self.kind.right_model, right_ids, self.kind.right_label)

            for attempt in range(1, self.max_attempts + 1):
                delta = candidates - self.existing_pairs(left_ids, right_ids)
                if not delta:
                    return 0

                try:
                    with transaction.atomic():
                        self._insert(delta)
                except IntegrityError:
                    # Another writer stored some of these pairs after our read
                    logger.info(
                        f"{self.kind.name}.assign race detected, re-reading",
                        extra={'attempt': attempt, 'delta_size': len(delta)}
                    )
                    continue

                logger.debug(
                    f"{self.kind.name}.assign inserted={len(delta)}",
                    extra={'candidates': len(candidates)}
                )
                return len(delta)

        raise Conflict(
            f"Could not assign {self.kind.name} pairs due to concurrent updates; retry",
            details={'attempts': self.max_attempts}
        )

    def _insert(self, delta: Set[Pair]):
        model = self.kind.model
        model.objects.bulk_create([
            model(**{self.kind.left_column: left, self.kind.right_column: right})
            for left, right in sorted(delta)
        ])

    # ===== DEASSIGN =====

    def deassign(self, left_ids: Iterable[int], right_ids: Iterable[int]) -> int:
        """
        Remove every edge in left_ids x right_ids.

        Returns:
            int: Rows actually removed; 0 for empty input or no matches

        Raises:
            NotFound: If any referenced entity does not exist
        """
        left_ids, right_ids = set(left_ids), set(right_ids)
        if not left_ids or not right_ids:
            return 0

        with transaction.atomic():
            require_existing(self.kind.left_model, left_ids, self.kind.left_label)
            require_existing(self.kind.right_model, right_ids, self.kind.right_label)

            removed, _ = self.kind.model.objects.filter(
                **{
                    f'{self.kind.left_column}__in': left_ids,
                    f'{self.kind.right_column}__in': right_ids,
                }
            ).delete()

        logger.debug(f"{self.kind.name}.deassign removed={removed}")
        return removed

    def deassign_pairs(self, pairs: Iterable[Pair]) -> int:
        """
        Remove exactly the given pairs.

        Returns:
            int: Rows actually removed
        """
        pairs = set(pairs)
        if not pairs:
            return 0

        left_ids = {left for left, _ in pairs}
        right_ids = {right for _, right in pairs}
        removed = 0

        with transaction.atomic():
            require_existing(self.kind.left_model, left_ids, self.kind.left_label)
            require_existing(self.kind.right_model, right_ids, self.kind.right_label)

            by_left = {}
            for left, right in pairs:
                by_left.setdefault(left, set()).add(right)

            for left, rights in sorted(by_left.items()):
                count, _ = self.kind.model.objects.filter(
                    **{
                        self.kind.left_column: left,
                        f'{self.kind.right_column}__in': rights,
                    }
                ).delete()
                removed += count

        logger.debug(f"{self.kind.name}.deassign_pairs removed={removed}")
        return removed

    # ===== CASCADE HELPERS =====

    def delete_by_left(self, left_ids: Iterable[int]) -> int:
        """Unconditionally delete edges whose left ID is in the set."""
        left_ids = set(left_ids)
        if not left_ids:
            return 0
        removed, _ = self.kind.model.objects.filter(
            **{f'{self.kind.left_column}__in': left_ids}
        ).delete()
        return removed

    def delete_by_right(self, right_ids: Iterable[int]) -> int:
        """Unconditionally delete edges whose right ID is in the set."""
        right_ids = set(right_ids)
        if not right_ids:
            return 0
        removed, _ = self.kind.model.objects.filter(
            **{f'{self.kind.right_column}__in': right_ids}
        ).delete()
        return removed


def group_pairs(items: List[Tuple[int, Iterable[int]]]) -> Set[Pair]:
    """Flatten [(left_id, [right_ids])] into a set of pairs."""
    return {(left, right) for left, rights in items for right in rights}
