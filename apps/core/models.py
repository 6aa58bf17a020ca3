"""
Core models for the access control service.
Provides BaseModel with timestamp fields and VersionedModel with
optimistic concurrency control.
"""
from django.db import models
from django.db.models import F
from django.utils import timezone

from apps.core.exceptions import Conflict


class BaseModel(models.Model):
    """
    Abstract base model with integer primary key and timestamps.

    All access control entities and edges inherit from this model so
    that creation and modification times are tracked consistently.
    """

    created_at = models.DateTimeField(
        auto_now_add=True,
        db_index=True,
        help_text="Timestamp when the record was created"
    )

    updated_at = models.DateTimeField(
        auto_now=True,
        help_text="Timestamp when the record was last updated"
    )

    class Meta:
        abstract = True
        ordering = ['id']


class VersionedModel(BaseModel):
    """
    Abstract model carrying an optimistic concurrency version.

    Updates go through update_versioned(), which only touches the row if
    the version still matches the one this instance was loaded with.
    """

    version = models.PositiveIntegerField(
        default=0,
        help_text="Optimistic concurrency version, bumped on every update"
    )

    class Meta:
        abstract = True
        ordering = ['id']

    def update_versioned(self, **changes):
        """
        Apply field changes guarded by the loaded version.

        Args:
            **changes: Field names and their new values

        Raises:
            Conflict: If another writer updated the row since it was loaded
        """
        expected_version = self.version
        updated = type(self).objects.filter(
            pk=self.pk,
            version=expected_version
        ).update(
            version=F('version') + 1,
            updated_at=timezone.now(),
            **changes
        )

        if not updated:
            raise Conflict(
                f"{type(self).__name__} {self.pk} was modified concurrently; reload and retry",
                details={
                    'id': self.pk,
                    'expected_version': expected_version,
                }
            )

        for field, value in changes.items():
            setattr(self, field, value)
        self.version = expected_version + 1
