"""
Management command to seed demo access control data.

Creates roles, permissions, groups and users on an empty database.
This command is idempotent and safe to re-run.
"""
from django.core.management.base import BaseCommand

from apps.rbac.seeding import AccessControlSeeder


class Command(BaseCommand):
    help = 'Seed demo roles, permissions, groups and users (no-op once users exist)'

    def add_arguments(self, parser):
        parser.add_argument(
            '--password',
            type=str,
            default=None,
            help='Password for seeded users (defaults to SEED_PASSWORD)'
        )

    def handle(self, *args, **options):
        self.stdout.write('Seeding access control data...')

        counts = AccessControlSeeder(password=options['password']).seed()

        if not counts:
            self.stdout.write(self.style.WARNING('Users already exist, nothing seeded'))
            return

        for key, value in counts.items():
            self.stdout.write(f'  • {key:<18} {value}')

        self.stdout.write(
            self.style.SUCCESS(f'\n✓ Seeding complete. Admin login: {AccessControlSeeder.ADMIN_EMAIL}')
        )
