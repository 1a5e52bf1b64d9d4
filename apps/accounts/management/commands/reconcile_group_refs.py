"""
Management command to rebuild users' joined_groups index from memberships.

Repairs drift left behind when a best-effort sync failed during a
membership change.

Usage:
    python manage.py reconcile_group_refs [--user <uuid>] [--dry-run]
"""

from django.core.management.base import BaseCommand

from apps.accounts.services import reconcile_group_index


class Command(BaseCommand):
    help = "Rebuild users' joined_groups index from group memberships"

    def add_arguments(self, parser):
        parser.add_argument(
            '--user',
            dest='user_id',
            default=None,
            help='Only reconcile this user ID',
        )
        parser.add_argument(
            '--dry-run',
            action='store_true',
            help='Show how many users drifted without making changes',
        )

    def handle(self, *args, **options):
        dry_run = options['dry_run']
        count = reconcile_group_index(user_id=options['user_id'], dry_run=dry_run)

        if count == 0:
            self.stdout.write(self.style.SUCCESS('All joined_groups indexes are in sync.'))
            return

        if dry_run:
            self.stdout.write(
                self.style.WARNING(f'{count} user(s) out of sync. --dry-run mode: No changes made.')
            )
            return

        self.stdout.write(self.style.SUCCESS(f'Reconciled {count} user(s).'))
