# apps/ledger/management/commands/seed_ledger.py
from django.core.management.base import BaseCommand, CommandError

from apps.ledger.exceptions import PersistenceFailure
from apps.ledger.store import get_ledger


class Command(BaseCommand):
    help = "Create the ledger document with the configured rooms if it does not exist yet"

    def handle(self, *args, **options):
        store = get_ledger()
        if store.path.exists():
            self.stdout.write(f"Ledger already present at {store.path}")
            return
        try:
            with store.transaction() as document:
                room_count = len(document['rooms'])
        except PersistenceFailure as e:
            raise CommandError(str(e))
        self.stdout.write(self.style.SUCCESS(f"Seeded {room_count} rooms into {store.path}"))
