"""
Management command to create an administrator principal.
"""

from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand, CommandError

from accounts.models import Role, RoleName
from accounts.services import seed_roles_and_permissions


class Command(BaseCommand):
    help = 'Create an active administrator account'

    def add_arguments(self, parser):
        parser.add_argument('--email', required=True, help='Login email of the administrator')
        parser.add_argument('--password', required=True, help='Initial password')
        parser.add_argument('--first-name', default='Admin')
        parser.add_argument('--last-name', default='User')

    def handle(self, *args, **options):
        User = get_user_model()
        email = options['email'].strip().lower()

        if User.all_objects.filter(email__iexact=email).exists():
            raise CommandError(f"A user with email {email} already exists.")

        seed_roles_and_permissions()
        user = User.objects.create_superuser(
            username=email,
            email=email,
            password=options['password'],
            first_name=options['first_name'],
            last_name=options['last_name'],
            role=Role.default_for(RoleName.ADMIN),
            status=User.Status.ACTIVE,
            department=User.Department.MANAGEMENT,
        )
        self.stdout.write(self.style.SUCCESS(f"Created administrator {user.email} (id {user.pk})"))
