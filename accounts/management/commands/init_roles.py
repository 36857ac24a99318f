"""
Management command to seed the permission catalog and default roles.
"""

from django.core.management.base import BaseCommand

from accounts.models import ROLE_PERMISSIONS
from accounts.services import seed_roles_and_permissions


class Command(BaseCommand):
    help = 'Create the permission catalog and the admin, hr, manager and employee roles'

    def add_arguments(self, parser):
        parser.add_argument(
            '--verbose',
            action='store_true',
            help='List the permissions granted to each role'
        )

    def handle(self, *args, **options):
        result = seed_roles_and_permissions()

        self.stdout.write(self.style.SUCCESS(
            f"Seeded {result['permissions']} new permissions and {result['roles']} roles"
        ))
        if options.get('verbose'):
            for role_name, codenames in ROLE_PERMISSIONS.items():
                self.stdout.write(f"  {role_name}: {', '.join(codenames)}")
