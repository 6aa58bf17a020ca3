"""
RBAC signals for automatic demo seeding.
"""
import logging

from django.conf import settings
from django.db.models.signals import post_migrate
from django.dispatch import receiver

logger = logging.getLogger(__name__)


@receiver(post_migrate)
def seed_on_migrate(sender, **kwargs):
    """
    Seed demo data after migrations when SEED_ON_MIGRATE is enabled.

    Runs once, for the rbac app only.
    """
    if sender.name != 'apps.rbac' or not getattr(settings, 'SEED_ON_MIGRATE', False):
        return

    # Import here to avoid circular imports
    from apps.rbac.seeding import AccessControlSeeder

    counts = AccessControlSeeder().seed()
    if counts:
        logger.info(f"seed.post_migrate users={counts['users']}")
