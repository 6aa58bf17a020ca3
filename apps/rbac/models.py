"""
RBAC models for the access control graph.

Implements:
- User (AUTH_USER_MODEL, email identity with optimistic versioning)
- Role, Group, Permission (named entities, case-insensitive unique names)
- UserRole, UserGroup, GroupRole, RolePermission (edge tables)

Entities never hold collections of each other; relationships are
queried through the edge tables by ID.
"""
import logging

from django.contrib.auth.hashers import check_password, make_password
from django.db import models
from django.db.models.functions import Lower

from apps.core.models import BaseModel, VersionedModel

logger = logging.getLogger(__name__)


class NamedEntityManager(models.Manager):
    """Manager for entities identified by a case-insensitive name."""

    def by_name(self, name):
        """Find entity by name, ignoring case."""
        return self.filter(name__iexact=name).first()

    def existing_names(self, names):
        """Return stored names matching any of the given names, ignoring case."""
        lowered = {name.lower() for name in names}
        if not lowered:
            return []
        return list(
            self.annotate(name_lower=Lower('name'))
            .filter(name_lower__in=lowered)
            .values_list('name', flat=True)
        )

    def search(self, query=''):
        """Filter by name substring."""
        queryset = self.all()
        if query:
            queryset = queryset.filter(name__icontains=query.strip())
        return queryset.order_by('name', 'id')


class UserManager(models.Manager):
    """
    Manager for User queries.

    Compatible with Django's authentication system.
    """

    def by_email(self, email):
        """Find user by email, ignoring case."""
        if not email:
            return None
        return self.filter(email__iexact=email.strip()).first()

    def email_exists(self, email, exclude_id=None):
        """Check whether an email is taken, ignoring case."""
        queryset = self.filter(email__iexact=email.strip())
        if exclude_id is not None:
            queryset = queryset.exclude(id=exclude_id)
        return queryset.exists()

    def existing_emails(self, emails):
        """Return stored emails matching any of the given ones, ignoring case."""
        lowered = {email.lower() for email in emails}
        if not lowered:
            return []
        return list(
            self.annotate(email_lower=Lower('email'))
            .filter(email_lower__in=lowered)
            .values_list('email', flat=True)
        )

    def create_user(self, email, password=None, **extra_fields):
        """
        Create a new user with hashed password.

        The email casing is preserved; uniqueness is case-insensitive.
        """
        if not email:
            raise ValueError('Email address is required')

        extra_fields.setdefault('enabled', True)
        user = self.model(email=email.strip(), **extra_fields)
        user.set_password(password)
        user.save(using=self._db)
        return user

    def search(self, query=''):
        """Filter by email substring."""
        queryset = self.all()
        if query:
            queryset = queryset.filter(email__icontains=query.strip())
        return queryset.order_by('email', 'id')

    def get_by_natural_key(self, email):
        """
        Get user by natural key (email).

        This method is required for Django's authentication system.
        """
        return self.get(email__iexact=email)


class User(VersionedModel):
    """
    Account that authenticates with email and password.

    This is the AUTH_USER_MODEL. Authorization comes from the role graph,
    never from Django's built-in permission tables.
    """

    email = models.CharField(
        max_length=254,
        help_text="Login email, stored as given, unique ignoring case"
    )
    password_hash = models.CharField(
        max_length=255,
        help_text="Hashed password",
        db_column='password_hash'
    )
    enabled = models.BooleanField(
        default=False,
        db_index=True,
        help_text="Disabled accounts cannot log in"
    )

    USERNAME_FIELD = 'email'
    REQUIRED_FIELDS = []

    objects = UserManager()

    class Meta:
        db_table = 'users'
        ordering = ['id']
        constraints = [
            models.UniqueConstraint(Lower('email'), name='users_email_ci_unique'),
        ]

    def __str__(self):
        return self.email

    @property
    def password(self):
        """Alias for password_hash used by Django's auth helpers."""
        return self.password_hash

    @password.setter
    def password(self, value):
        self.password_hash = value

    def check_password(self, raw_password):
        """Check if provided password matches stored hash."""
        return check_password(raw_password, self.password_hash)

    def set_password(self, raw_password):
        """Set user password (hashes automatically)."""
        self.password_hash = make_password(raw_password)

    @property
    def is_active(self):
        return self.enabled

    @property
    def is_authenticated(self):
        """Always True for User instances (Django auth compatibility)."""
        return True

    @property
    def is_anonymous(self):
        """Always False for User instances (Django auth compatibility)."""
        return False

    def get_username(self):
        return self.email

    def natural_key(self):
        return (self.email,)


class Role(VersionedModel):
    """Named bundle of permissions assignable to users and groups."""

    name = models.CharField(
        max_length=100,
        help_text="Role name (e.g., 'ADMIN', 'MEMBER'), unique ignoring case"
    )

    objects = NamedEntityManager()

    class Meta:
        db_table = 'roles'
        ordering = ['name']
        constraints = [
            models.UniqueConstraint(Lower('name'), name='roles_name_ci_unique'),
        ]

    def __str__(self):
        return self.name


class Group(BaseModel):
    """Set of users that inherits every role assigned to the group."""

    name = models.CharField(
        max_length=100,
        help_text="Group name, unique ignoring case"
    )

    objects = NamedEntityManager()

    class Meta:
        db_table = 'groups'
        ordering = ['name']
        constraints = [
            models.UniqueConstraint(Lower('name'), name='groups_name_ci_unique'),
        ]

    def __str__(self):
        return self.name


class Permission(BaseModel):
    """Named capability granted through roles."""

    name = models.CharField(
        max_length=100,
        help_text="Permission name, unique ignoring case"
    )

    objects = NamedEntityManager()

    class Meta:
        db_table = 'permissions'
        ordering = ['name']
        constraints = [
            models.UniqueConstraint(Lower('name'), name='permissions_name_ci_unique'),
        ]

    def __str__(self):
        return self.name


class UserRole(BaseModel):
    """Direct role assignment of a user."""

    user = models.ForeignKey(
        User,
        on_delete=models.PROTECT,
        related_name='+',
        help_text="User holding the role"
    )
    role = models.ForeignKey(
        Role,
        on_delete=models.PROTECT,
        related_name='+',
        help_text="Role held by the user"
    )

    class Meta:
        db_table = 'user_roles'
        ordering = ['user_id', 'role_id']
        constraints = [
            models.UniqueConstraint(fields=['user', 'role'], name='user_roles_pair_unique'),
        ]
        indexes = [
            models.Index(fields=['role'], name='user_roles_role_idx'),
        ]

    def __str__(self):
        return f"user:{self.user_id} -> role:{self.role_id}"


class UserGroup(BaseModel):
    """Group membership of a user."""

    user = models.ForeignKey(
        User,
        on_delete=models.PROTECT,
        related_name='+',
        help_text="Member user"
    )
    group = models.ForeignKey(
        Group,
        on_delete=models.PROTECT,
        related_name='+',
        help_text="Group the user belongs to"
    )

    class Meta:
        db_table = 'user_groups'
        ordering = ['user_id', 'group_id']
        constraints = [
            models.UniqueConstraint(fields=['user', 'group'], name='user_groups_pair_unique'),
        ]
        indexes = [
            models.Index(fields=['group'], name='user_groups_group_idx'),
        ]

    def __str__(self):
        return f"user:{self.user_id} -> group:{self.group_id}"


class GroupRole(BaseModel):
    """Role inherited by every member of a group."""

    group = models.ForeignKey(
        Group,
        on_delete=models.PROTECT,
        related_name='+',
        help_text="Group granting the role"
    )
    role = models.ForeignKey(
        Role,
        on_delete=models.PROTECT,
        related_name='+',
        help_text="Role granted to the group"
    )

    class Meta:
        db_table = 'group_roles'
        ordering = ['group_id', 'role_id']
        constraints = [
            models.UniqueConstraint(fields=['group', 'role'], name='group_roles_pair_unique'),
        ]
        indexes = [
            models.Index(fields=['role'], name='group_roles_role_idx'),
        ]

    def __str__(self):
        return f"group:{self.group_id} -> role:{self.role_id}"


class RolePermission(BaseModel):
    """Permission granted by a role."""

    role = models.ForeignKey(
        Role,
        on_delete=models.PROTECT,
        related_name='+',
        help_text="Role that grants this permission"
    )
    permission = models.ForeignKey(
        Permission,
        on_delete=models.PROTECT,
        related_name='+',
        help_text="Permission being granted"
    )

    class Meta:
        db_table = 'role_permissions'
        ordering = ['role_id', 'permission_id']
        constraints = [
            models.UniqueConstraint(fields=['role', 'permission'], name='role_permissions_pair_unique'),
        ]
        indexes = [
            models.Index(fields=['permission'], name='role_perms_permission_idx'),
        ]

    def __str__(self):
        return f"role:{self.role_id} -> permission:{self.permission_id}"
