# apps/users/management/commands/create_terminal_user.py
from django.core.management.base import BaseCommand, CommandError

from apps.users.models import CustomUser


class Command(BaseCommand):
    help = "Create or update a front-desk login (owner or manager)"

    def add_arguments(self, parser):
        parser.add_argument('email')
        parser.add_argument('password')
        parser.add_argument('--role', choices=[CustomUser.OWNER, CustomUser.MANAGER], default=CustomUser.MANAGER)

    def handle(self, *args, **options):
        email = options['email'].strip().lower()
        if len(options['password']) < 6:
            raise CommandError("Password must be at least 6 characters long.")

        user = CustomUser.objects.filter(email=email).first()
        if user is None:
            CustomUser.objects.create_user(email=email, password=options['password'], role=options['role'])
            self.stdout.write(self.style.SUCCESS(f"Created {options['role']} {email}"))
            return

        user.role = options['role']
        user.set_password(options['password'])
        user.save()
        self.stdout.write(self.style.SUCCESS(f"Updated {email} ({options['role']})"))
