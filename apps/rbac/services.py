"""
Authentication and access control services.

Implements:
- AuthService: JWT issue/decode, login, registration, token to principal
- UserService: bulk user administration and self-service credentials
- RoleService, GroupService, PermissionService: named entity administration

Services take the acting Principal explicitly where they need an actor
for audit lines or self-service checks.
"""
import logging
from dataclasses import dataclass, field
from datetime import timedelta
from typing import Any, Dict, FrozenSet, Iterable, List, Optional, Tuple

import jwt
from django.conf import settings
from django.db import IntegrityError, transaction
from django.utils import timezone

from apps.core.exceptions import (
    DuplicateResource, EmailAlreadyUsed, InvalidArgument, InvalidCredentials,
    NotFound, UserDisabled,
)
from apps.core.logging import SecurityLogger, mask
from apps.core.validators import InputValidator
from apps.rbac.cascade import CascadeCoordinator
from apps.rbac.models import Group, Permission, Role, User
from apps.rbac.reconciler import (
    GROUP_ROLE, ROLE_PERMISSION, USER_GROUP, USER_ROLE, RelationshipReconciler,
    group_pairs,
)
from apps.rbac.resolver import PermissionResolver

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Principal:
    """
    Authenticated caller reconstructed from a bearer token.

    Authorities are resolved from the role graph when the token is
    presented, never read from token claims.
    """
    user: User
    authorities: FrozenSet[str] = field(default_factory=frozenset)

    @property
    def user_id(self):
        return self.user.id

    @property
    def email(self):
        return self.user.email

    def has_authority(self, authority: str) -> bool:
        return authority in self.authorities


@dataclass(frozen=True)
class AuthResult:
    """Outcome of a successful login or registration."""
    token: str
    user_id: int
    roles: List[str]

    def to_dict(self) -> Dict[str, Any]:
        return {
            'token': self.token,
            'userId': self.user_id,
            'roles': list(self.roles),
        }


def actor_of(principal: Optional[Principal]) -> str:
    """Masked actor email for audit log lines."""
    return mask(principal.email if principal else None)


class AuthService:
    """
    Authentication gateway: credentials in, bearer tokens out, and
    bearer tokens back into principals.
    """

    ROLE_PREFIX = 'ROLE_'
    MEMBER_ROLE = 'MEMBER'
    ADMIN_ROLE = 'ADMIN'
    INVALID_CREDENTIALS_MSG = 'Invalid email or password'

    @classmethod
    def authority_for(cls, role_name: str) -> str:
        return f"{cls.ROLE_PREFIX}{role_name.upper()}"

    @classmethod
    def generate_token(cls, user: User) -> str:
        """
        Sign a token whose subject is the user's email.

        Args:
            user: User instance

        Returns:
            JWT token string
        """
        issued_at = timezone.now()
        payload = {
            'sub': user.email,
            'iat': issued_at,
            'exp': issued_at + timedelta(minutes=getattr(settings, 'JWT_EXPIRATION_MINUTES', 60)),
        }

        return jwt.encode(
            payload,
            settings.JWT_SECRET_KEY,
            algorithm=getattr(settings, 'JWT_ALGORITHM', 'HS256')
        )

    @classmethod
    def decode_token(cls, token: str) -> Optional[Dict[str, Any]]:
        """
        Validate a token and return its payload.

        Returns:
            Decoded payload dict, or None if the token is expired, tampered
            with or malformed
        """
        try:
            return jwt.decode(
                token,
                settings.JWT_SECRET_KEY,
                algorithms=[getattr(settings, 'JWT_ALGORITHM', 'HS256')],
                options={'require': ['sub', 'exp', 'iat']}
            )
        except jwt.ExpiredSignatureError:
            logger.info("auth.token.rejected reason=expired")
            return None
        except jwt.InvalidSignatureError:
            SecurityLogger.log_suspicious_activity(
                activity_type='invalid_token_signature',
                description='Bearer token signature did not verify'
            )
            return None
        except jwt.InvalidTokenError as e:
            logger.info(f"auth.token.rejected reason=invalid_format error={type(e).__name__}")
            return None

    @classmethod
    def login(cls, email: str, password: str, ip_address: str = None) -> AuthResult:
        """
        Authenticate with email and password.

        Args:
            email: Login email (matched ignoring case)
            password: Raw password
            ip_address: Caller address for security events

        Returns:
            AuthResult with token, user id and direct role names

        Raises:
            InvalidCredentials: Malformed input, unknown email, wrong
                password or a user without roles
            UserDisabled: If the account is disabled
        """
        if not InputValidator.validate_email(email) or not password:
            cls._reject_login(email, ip_address, 'invalid_format')
            raise InvalidCredentials(cls.INVALID_CREDENTIALS_MSG)

        user = User.objects.by_email(email)
        if user is None:
            # Hash anyway so unknown emails take as long as wrong passwords
            User().set_password(password)
            cls._reject_login(email, ip_address, 'unknown_user')
            raise InvalidCredentials(cls.INVALID_CREDENTIALS_MSG)

        if not user.check_password(password):
            cls._reject_login(email, ip_address, 'bad_password')
            raise InvalidCredentials(cls.INVALID_CREDENTIALS_MSG)

        if not user.enabled:
            cls._reject_login(email, ip_address, 'disabled')
            raise UserDisabled("User account is disabled")

        roles = PermissionResolver.resolve_role_names(user.id)
        if not roles:
            cls._reject_login(email, ip_address, 'no_roles')
            raise InvalidCredentials("User has no assigned roles")

        logger.info(f"auth.login.success email={mask(user.email)} roles={len(roles)}")
        return AuthResult(token=cls.generate_token(user), user_id=user.id, roles=roles)

    @classmethod
    def _reject_login(cls, email, ip_address, reason):
        logger.info(f"auth.login.failed email={mask(email)} reason={reason}")
        SecurityLogger.log_failed_login(email, ip_address=ip_address, reason=reason)

    @classmethod
    def register(cls, email: str, password: str) -> AuthResult:
        """
        Self-service registration.

        The first user in an empty system is created enabled; later
        registrations stay disabled until an administrator enables them.
        Every registered user is given the MEMBER role.

        Raises:
            InvalidCredentials: If the email or password is malformed
            EmailAlreadyUsed: If the email is taken (ignoring case)
        """
        if not InputValidator.validate_email(email):
            raise InvalidCredentials("Invalid email format")
        if not InputValidator.validate_password(password):
            raise InvalidCredentials(
                f"Password must be at least {InputValidator.PASSWORD_MIN_LENGTH} characters"
            )

        email = email.strip()

        with transaction.atomic():
            if User.objects.email_exists(email):
                logger.info(f"auth.register.failed email={mask(email)} reason=email_in_use")
                raise EmailAlreadyUsed("Email already in use")

            enabled = not User.objects.exists()
            try:
                with transaction.atomic():
                    user = User.objects.create_user(email, password, enabled=enabled)
            except IntegrityError:
                logger.info(f"auth.register.failed email={mask(email)} reason=unique_violation")
                raise EmailAlreadyUsed("Email already in use")

            member = RoleService.get_or_create_role(cls.MEMBER_ROLE)
            RelationshipReconciler(USER_ROLE).assign({user.id}, {member.id})

        roles = PermissionResolver.resolve_role_names(user.id)
        SecurityLogger.log_user_registered(user.email, user.id, enabled)
        logger.info(f"auth.register.success email={mask(user.email)} enabled={enabled}")

        return AuthResult(token=cls.generate_token(user), user_id=user.id, roles=roles)

    @classmethod
    def build_principal(cls, user: User) -> Principal:
        """Resolve the user's direct roles into ROLE_<NAME> authorities."""
        authorities = frozenset(
            cls.authority_for(name) for name in PermissionResolver.resolve_role_names(user.id)
        )
        return Principal(user=user, authorities=authorities)

    @classmethod
    def authenticate_from_token(cls, token: str) -> Optional[Principal]:
        """
        Turn a bearer token into a principal.

        Never raises: any failure yields None and the request proceeds
        unauthenticated.

        Returns:
            Principal for an existing enabled user, otherwise None
        """
        if not token:
            return None

        payload = cls.decode_token(token)
        if not payload:
            return None

        subject = payload.get('sub')
        if not isinstance(subject, str):
            return None

        user = User.objects.by_email(subject)
        if user is None:
            logger.info(f"auth.token.rejected reason=unknown_subject email={mask(subject)}")
            return None
        if not user.enabled:
            logger.info(f"auth.token.rejected reason=disabled email={mask(subject)}")
            return None

        return cls.build_principal(user)


class UserService:
    """User administration and self-service account changes."""

    @classmethod
    def get_user(cls, user_id) -> User:
        try:
            return User.objects.get(id=user_id)
        except User.DoesNotExist:
            raise NotFound("User not found", missing_ids=[user_id])

    @classmethod
    def search(cls, query: str = ''):
        return User.objects.search(query)

    @classmethod
    def describe(cls, user: User) -> Dict[str, Any]:
        """Direct roles and groups of a user, sorted by name."""
        group_ids = RelationshipReconciler(USER_GROUP).right_ids_for({user.id})
        return {
            'id': user.id,
            'email': user.email,
            'enabled': user.enabled,
            'roles': PermissionResolver.resolve_role_names(user.id),
            'groups': sorted(Group.objects.filter(id__in=group_ids).values_list('name', flat=True)),
        }

    @classmethod
    def profile(cls, principal: Principal) -> Dict[str, Any]:
        """Everything the caller can see about their own access."""
        data = cls.describe(principal.user)
        data['authorities'] = sorted(principal.authorities)
        data['effectiveRoles'] = sorted(PermissionResolver.resolve_effective_role_names(principal.user_id))
        data['permissions'] = sorted(PermissionResolver.resolve_permissions(principal.user_id))
        return data

    @classmethod
    def create_users(cls, items: List[Dict[str, Any]], actor: Principal = None) -> List[User]:
        """
        Bulk create users and give each the MEMBER role.

        Args:
            items: [{'email', 'password', 'enabled'?}]
            actor: Acting administrator

        Returns:
            list: Created users in request order

        Raises:
            InvalidArgument: Empty list, malformed entry or duplicate emails
                in the request
            EmailAlreadyUsed: If any email is already registered
        """
        if not items:
            raise InvalidArgument("User list cannot be empty")

        normalized = []
        for item in items:
            email = item.get('email')
            password = item.get('password')
            if not InputValidator.validate_email(email) or not InputValidator.validate_password(password):
                raise InvalidArgument("Invalid user input")
            normalized.append((email.strip(), password, bool(item.get('enabled', False))))

        seen, duplicates = set(), set()
        for email, _, _ in normalized:
            lowered = email.lower()
            if lowered in seen:
                duplicates.add(lowered)
            seen.add(lowered)
        if duplicates:
            raise InvalidArgument("Duplicate emails in request", details={'emails': sorted(duplicates)})

        with transaction.atomic():
            taken = User.objects.existing_emails([email for email, _, _ in normalized])
            if taken:
                raise EmailAlreadyUsed("Some emails already in use", details={'emails': sorted(taken)})

            try:
                with transaction.atomic():
                    users = [
                        User.objects.create_user(email, password, enabled=enabled)
                        for email, password, enabled in normalized
                    ]
            except IntegrityError:
                raise EmailAlreadyUsed("Some emails already in use")

            member = RoleService.get_or_create_role(AuthService.MEMBER_ROLE)
            assigned = RelationshipReconciler(USER_ROLE).assign({u.id for u in users}, {member.id})

        logger.info(
            f"users.create.success created={len(users)} roles_assigned={assigned} actor={actor_of(actor)}"
        )
        return users

    @classmethod
    def update_credentials(cls, user_id, email: str = None, password: str = None,
                           actor: Principal = None) -> Tuple[User, bool, bool]:
        """
        Administrative change of a user's email and/or password.

        Returns:
            tuple: (user, email_updated, password_updated)

        Raises:
            InvalidArgument: Neither field given, malformed values, or
                nothing would change
            NotFound: Unknown user
            EmailAlreadyUsed: New email belongs to another user
            Conflict: The user was modified concurrently
        """
        if email is None and password is None:
            raise InvalidArgument("At least one of email or password must be provided")

        with transaction.atomic():
            user = cls.get_user(user_id)
            changes = {}

            if email is not None:
                if not InputValidator.validate_email(email):
                    raise InvalidArgument("Invalid email format")
                email = email.strip()
                if email != user.email:
                    if User.objects.email_exists(email, exclude_id=user.id):
                        raise EmailAlreadyUsed("Email already in use")
                    changes['email'] = email

            if password is not None:
                if not InputValidator.validate_password(password):
                    raise InvalidArgument("Password must meet security requirements")
                if not user.check_password(password):
                    user.set_password(password)
                    changes['password_hash'] = user.password_hash

            if not changes:
                raise InvalidArgument("Nothing to update")

            try:
                with transaction.atomic():
                    user.update_versioned(**changes)
            except IntegrityError:
                raise EmailAlreadyUsed("Email already in use")

        logger.info(
            f"users.credentials.update user_id={user.id} email_updated={'email' in changes} "
            f"password_updated={'password_hash' in changes} actor={actor_of(actor)}"
        )
        return user, 'email' in changes, 'password_hash' in changes

    @classmethod
    def change_password(cls, principal: Principal, old_password: str, new_password: str):
        """
        Self-service password change.

        Raises:
            InvalidCredentials: Unauthenticated caller or wrong old password
            InvalidArgument: Weak new password or unchanged password
        """
        if principal is None:
            raise InvalidCredentials("Unauthenticated")
        if not InputValidator.validate_password(new_password):
            raise InvalidArgument("Password must meet security requirements")
        if old_password == new_password:
            raise InvalidArgument("New password must be different from old password")

        with transaction.atomic():
            user = cls.get_user(principal.user_id)
            if not user.check_password(old_password or ''):
                logger.info(f"users.change_password failed reason=bad_old_password actor={actor_of(principal)}")
                raise InvalidCredentials("Old password is incorrect")

            user.set_password(new_password)
            user.update_versioned(password_hash=user.password_hash)

        logger.info(f"users.change_password success actor={actor_of(principal)}")

    @classmethod
    def change_email(cls, principal: Principal, new_email: str) -> str:
        """
        Self-service email change.

        The token subject is the email, so a fresh token is returned.

        Raises:
            InvalidCredentials: Unauthenticated caller
            InvalidArgument: Malformed or unchanged email
            EmailAlreadyUsed: Email belongs to another user
        """
        if principal is None:
            raise InvalidCredentials("Unauthenticated")
        if not InputValidator.validate_email(new_email):
            raise InvalidArgument("Invalid email format")
        new_email = new_email.strip()

        with transaction.atomic():
            user = cls.get_user(principal.user_id)
            if new_email == user.email:
                raise InvalidArgument("New email must be different from current email")
            if User.objects.email_exists(new_email, exclude_id=user.id):
                logger.info(
                    f"users.change_email failed reason=taken actor={actor_of(principal)} new={mask(new_email)}"
                )
                raise EmailAlreadyUsed("Email already taken")

            try:
                with transaction.atomic():
                    user.update_versioned(email=new_email)
            except IntegrityError:
                raise EmailAlreadyUsed("Email already taken")

        logger.info(f"users.change_email success old={actor_of(principal)} new={mask(new_email)}")
        return AuthService.generate_token(user)

    @classmethod
    def set_enabled(cls, user_ids: Iterable[int], enabled: bool, actor: Principal = None) -> int:
        """
        Enable or disable users in bulk.

        Returns:
            int: Number of users updated
        """
        if not user_ids or enabled is None:
            raise InvalidArgument("User list or status flag is missing/invalid")
        ids = InputValidator.normalize_ids(user_ids)
        if not ids:
            raise InvalidArgument("No valid user IDs provided")

        with transaction.atomic():
            users = list(User.objects.filter(id__in=ids))
            missing = set(ids) - {u.id for u in users}
            if missing:
                raise NotFound("Some users not found", missing_ids=missing)
            for user in users:
                user.update_versioned(enabled=enabled)

        logger.info(f"users.status success actor={actor_of(actor)} updated={len(users)} enable={enabled}")
        return len(users)

    @classmethod
    def assign_roles(cls, user_ids, role_ids, actor: Principal = None) -> int:
        users, roles = InputValidator.normalize_ids(user_ids), InputValidator.normalize_ids(role_ids)
        if not users or not roles:
            raise InvalidArgument("User or role list is invalid or empty")
        inserted = RelationshipReconciler(USER_ROLE).assign(users, roles)
        logger.info(f"users.roles.assign actor={actor_of(actor)} inserted={inserted}")
        return inserted

    @classmethod
    def deassign_roles(cls, user_ids, role_ids, actor: Principal = None) -> int:
        users, roles = InputValidator.normalize_ids(user_ids), InputValidator.normalize_ids(role_ids)
        if not users or not roles:
            raise InvalidArgument("User or role list is invalid or empty")
        removed = RelationshipReconciler(USER_ROLE).deassign(users, roles)
        logger.info(f"users.roles.deassign actor={actor_of(actor)} removed={removed}")
        return removed

    @classmethod
    def assign_groups(cls, user_ids, group_ids, actor: Principal = None) -> int:
        users, groups = InputValidator.normalize_ids(user_ids), InputValidator.normalize_ids(group_ids)
        if not users or not groups:
            raise InvalidArgument("User or group list is invalid")
        inserted = RelationshipReconciler(USER_GROUP).assign(users, groups)
        logger.info(f"users.groups.assign actor={actor_of(actor)} inserted={inserted}")
        return inserted

    @classmethod
    def deassign_groups(cls, user_ids, group_ids, actor: Principal = None) -> int:
        users, groups = InputValidator.normalize_ids(user_ids), InputValidator.normalize_ids(group_ids)
        if not users or not groups:
            raise InvalidArgument("User or group list is invalid")
        removed = RelationshipReconciler(USER_GROUP).deassign(users, groups)
        logger.info(f"users.groups.deassign actor={actor_of(actor)} removed={removed}")
        return removed

    @classmethod
    def delete_users(cls, user_ids, actor: Principal = None) -> int:
        deleted = CascadeCoordinator.delete_users(user_ids)
        logger.info(f"users.delete success actor={actor_of(actor)} deleted={deleted}")
        return deleted


class NamedEntityService:
    """
    Shared create/rename/delete logic for entities identified by a
    case-insensitive unique name.
    """

    model = None
    label = None

    @classmethod
    def _cascade_delete(cls, ids):
        raise NotImplementedError

    @classmethod
    def get(cls, entity_id):
        try:
            return cls.model.objects.get(id=entity_id)
        except cls.model.DoesNotExist:
            raise NotFound(f"{cls.label.capitalize()} not found", missing_ids=[entity_id])

    @classmethod
    def search(cls, query: str = ''):
        return cls.model.objects.search(query)

    @classmethod
    def normalize_names(cls, names: Iterable[str]) -> List[str]:
        """
        Trim and validate names, rejecting duplicates within the request
        and names already stored (both ignoring case).

        Raises:
            InvalidArgument: Empty list or blank/overlong name
            DuplicateResource: Duplicate or existing names
        """
        if not names:
            raise InvalidArgument(f"{cls.label.capitalize()} list cannot be empty")

        normalized = [
            InputValidator.normalize_name(name, f"{cls.label.capitalize()} name") for name in names
        ]

        seen, duplicates = set(), []
        for name in normalized:
            lowered = name.lower()
            if lowered in seen and lowered not in duplicates:
                duplicates.append(lowered)
            seen.add(lowered)
        if duplicates:
            raise DuplicateResource(
                f"Duplicate {cls.label} names in request: {duplicates}",
                details={'names': duplicates}
            )

        existing = sorted(cls.model.objects.existing_names(normalized))
        if existing:
            raise DuplicateResource(
                f"Some {cls.label} names already exist: {existing}",
                details={'names': existing}
            )
        return normalized

    @classmethod
    def create_named(cls, names: Iterable[str], actor: Principal = None) -> list:
        """Create one entity per name inside a single transaction."""
        with transaction.atomic():
            normalized = cls.normalize_names(names)
            try:
                with transaction.atomic():
                    created = [cls.model.objects.create(name=name) for name in normalized]
            except IntegrityError:
                raise DuplicateResource(f"Some {cls.label} names already exist")

        logger.info(f"{cls.label}s.create actor={actor_of(actor)} count={len(created)}")
        return created

    @classmethod
    def rename(cls, entity_id, name: str, actor: Principal = None) -> Tuple[Any, str]:
        """
        Rename an entity, keeping names unique ignoring case.

        A change of casing only is allowed.

        Returns:
            tuple: (entity, old_name)

        Raises:
            NotFound: Unknown entity
            DuplicateResource: Another entity already uses the name
        """
        name = InputValidator.normalize_name(name, f"{cls.label.capitalize()} name")

        with transaction.atomic():
            entity = cls.get(entity_id)
            old_name = entity.name
            if name == old_name:
                return entity, old_name

            if cls.model.objects.filter(name__iexact=name).exclude(id=entity.id).exists():
                raise DuplicateResource(f"{cls.label.capitalize()} name already exists")

            try:
                with transaction.atomic():
                    cls._save_name(entity, name)
            except IntegrityError:
                raise DuplicateResource(f"{cls.label.capitalize()} name already exists")

        logger.info(f"{cls.label}s.rename id={entity.id} actor={actor_of(actor)}")
        return entity, old_name

    @classmethod
    def _save_name(cls, entity, name):
        entity.name = name
        entity.save(update_fields=['name', 'updated_at'])

    @classmethod
    def delete(cls, ids, actor: Principal = None) -> int:
        deleted = cls._cascade_delete(ids)
        logger.info(f"{cls.label}s.delete actor={actor_of(actor)} count={deleted}")
        return deleted


class RoleService(NamedEntityService):
    """Roles and their permission and group edges."""

    model = Role
    label = 'role'

    @classmethod
    def _cascade_delete(cls, ids):
        return CascadeCoordinator.delete_roles(ids)

    @classmethod
    def _save_name(cls, entity, name):
        entity.update_versioned(name=name)

    @classmethod
    def get_or_create_role(cls, name: str) -> Role:
        """
        Fetch a role by name, creating it if missing.

        A concurrent creator winning the unique constraint is resolved by
        re-reading.
        """
        role = Role.objects.by_name(name)
        if role is not None:
            return role
        try:
            with transaction.atomic():
                return Role.objects.create(name=name)
        except IntegrityError:
            role = Role.objects.by_name(name)
            if role is None:
                raise
            return role

    @classmethod
    def permissions_of(cls, role_id) -> List[Permission]:
        permission_ids = RelationshipReconciler(ROLE_PERMISSION).right_ids_for({role_id})
        return list(Permission.objects.filter(id__in=permission_ids).order_by('name'))

    @classmethod
    def create_roles(cls, items: List[Dict[str, Any]], actor: Principal = None) -> List[Role]:
        """
        Create roles, optionally granting permissions to each.

        Args:
            items: [{'name', 'permissionIds'?}]

        Raises:
            InvalidArgument: Empty list or invalid name
            DuplicateResource: Duplicate or existing role names
            NotFound: Unknown permission IDs (nothing is created)
        """
        if not items:
            raise InvalidArgument("Role list cannot be empty")

        with transaction.atomic():
            roles = cls.create_named([item.get('name') for item in items], actor=actor)

            pairs = set()
            for role, item in zip(roles, items):
                for permission_id in InputValidator.normalize_ids(item.get('permissionIds')):
                    pairs.add((role.id, permission_id))
            if pairs:
                RelationshipReconciler(ROLE_PERMISSION).assign_pairs(pairs)

        return roles

    @classmethod
    def assign_permissions(cls, items: List[Tuple[int, Iterable[int]]], actor: Principal = None) -> int:
        """
        Grant permissions to roles.

        Args:
            items: [(role_id, permission_ids)]

        Returns:
            int: Edges inserted
        """
        pairs = cls._pairs(items, "Role or permission list is invalid or empty")
        inserted = RelationshipReconciler(ROLE_PERMISSION).assign_pairs(pairs)
        logger.info(f"roles.permissions.assign actor={actor_of(actor)} inserted={inserted}")
        return inserted

    @classmethod
    def deassign_permissions(cls, items, actor: Principal = None) -> int:
        pairs = cls._pairs(items, "Role or permission list is invalid or empty")
        removed = RelationshipReconciler(ROLE_PERMISSION).deassign_pairs(pairs)
        logger.info(f"roles.permissions.deassign actor={actor_of(actor)} removed={removed}")
        return removed

    @classmethod
    def assign_to_groups(cls, items: List[Tuple[int, Iterable[int]]], actor: Principal = None) -> int:
        """
        Grant roles to groups.

        Args:
            items: [(group_id, role_ids)]

        Returns:
            int: Edges inserted
        """
        pairs = cls._pairs(items, "Group or role list is invalid or empty")
        inserted = RelationshipReconciler(GROUP_ROLE).assign_pairs(pairs)
        logger.info(f"groups.roles.assign actor={actor_of(actor)} inserted={inserted}")
        return inserted

    @classmethod
    def deassign_from_groups(cls, items, actor: Principal = None) -> int:
        pairs = cls._pairs(items, "Group or role list is invalid or empty")
        removed = RelationshipReconciler(GROUP_ROLE).deassign_pairs(pairs)
        logger.info(f"groups.roles.deassign actor={actor_of(actor)} removed={removed}")
        return removed

    @staticmethod
    def _pairs(items, message):
        normalized = [
            (left, InputValidator.normalize_ids(rights))
            for left, rights in (items or [])
            if isinstance(left, int) and not isinstance(left, bool) and left > 0
        ]
        pairs = group_pairs(normalized)
        if not pairs:
            raise InvalidArgument(message)
        return pairs


class GroupService(NamedEntityService):
    """Groups and their membership."""

    model = Group
    label = 'group'

    @classmethod
    def _cascade_delete(cls, ids):
        return CascadeCoordinator.delete_groups(ids)

    @classmethod
    def members_of(cls, group_id) -> List[User]:
        user_ids = RelationshipReconciler(USER_GROUP).left_ids_for({group_id})
        return list(User.objects.filter(id__in=user_ids).order_by('email'))

    @classmethod
    def roles_of(cls, group_id) -> List[Role]:
        role_ids = RelationshipReconciler(GROUP_ROLE).right_ids_for({group_id})
        return list(Role.objects.filter(id__in=role_ids).order_by('name'))


class PermissionService(NamedEntityService):
    """Permission catalogue."""

    model = Permission
    label = 'permission'

    @classmethod
    def _cascade_delete(cls, ids):
        return CascadeCoordinator.delete_permissions(ids)

    @classmethod
    def roles_granting(cls, permission_id) -> List[Role]:
        role_ids = RelationshipReconciler(ROLE_PERMISSION).left_ids_for({permission_id})
        return list(Role.objects.filter(id__in=role_ids).order_by('name'))
