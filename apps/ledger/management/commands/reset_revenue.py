# apps/ledger/management/commands/reset_revenue.py
from django.core.management.base import BaseCommand, CommandError

from apps.ledger.exceptions import PersistenceFailure
from apps.ledger.services import commit_mutation


class Command(BaseCommand):
    help = "Zero the day and/or month revenue counters (run from cron at day/month rollover)"

    def add_arguments(self, parser):
        parser.add_argument('--day', action='store_true', help="Reset dayRevenue")
        parser.add_argument('--month', action='store_true', help="Reset monthRevenue")

    def handle(self, *args, **options):
        counters = [name for flag, name in (('day', 'dayRevenue'), ('month', 'monthRevenue')) if options[flag]]
        if not counters:
            raise CommandError("Pass --day, --month or both.")

        def mutation(document):
            for name in counters:
                document['payments'][name] = 0
            return document['payments'], ['payments']

        try:
            payments = commit_mutation(mutation)
        except PersistenceFailure as e:
            raise CommandError(str(e))
        self.stdout.write(self.style.SUCCESS(f"Reset {', '.join(counters)}: {payments}"))
