from django.core.management.base import BaseCommand, CommandError

from accounts.models import User
from accounts.services import UserService
from common.exceptions import AppError


class Command(BaseCommand):
    help = "Create an admin account that signs in with e-mail and password."

    def add_arguments(self, parser):
        parser.add_argument('--email', required=True)
        parser.add_argument('--password', required=True)
        parser.add_argument('--name', default='')
        parser.add_argument('--phone', default=None)

    def handle(self, *args, **options):
        email = options['email']

        if User.objects.filter(email__iexact=email, role=User.Role.ADMIN).exists():
            self.stdout.write(self.style.WARNING(f"Admin {email} already exists!"))
            return

        try:
            admin = UserService.create_admin(
                email=email,
                password=options['password'],
                name=options['name'],
                phone_number=options['phone'],
            )
        except AppError as e:
            raise CommandError(str(e))

        self.stdout.write(self.style.SUCCESS(f"Admin created successfully! id={admin.id} email={admin.email}"))
