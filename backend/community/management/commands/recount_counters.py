"""
Management command to audit and repair denormalized counters.

Usage:
    python manage.py recount_counters           # repair any drift
    python manage.py recount_counters --check   # report only, exit 1 on drift

Counters only drift if a child row was written outside community.counters
(raw SQL, a bulk load, a restored backup). Normal traffic never needs this.
"""

from django.core.management.base import BaseCommand, CommandError

from community.counters import COUNTERS


class Command(BaseCommand):
    help = 'Compare likes/comments/members counters with their rows and fix drift'

    def add_arguments(self, parser):
        parser.add_argument(
            '--check',
            action='store_true',
            help='Only report drift; exit with an error if any is found'
        )

    def handle(self, *args, **options):
        total_drift = 0
        for counter in COUNTERS:
            drifted = list(
                counter.drifted().values_list('pk', counter.count_field, 'live')
            )
            total_drift += len(drifted)

            if not drifted:
                self.stdout.write(f'{counter.name}: ok')
                continue

            for pk, cached, live in drifted:
                self.stdout.write(f'{counter.name}: {pk} cached={cached} live={live}')

            if not options['check']:
                repaired = counter.reconcile([pk for pk, _, _ in drifted])
                self.stdout.write(self.style.SUCCESS(
                    f'{counter.name}: repaired {repaired}'
                ))

        if options['check'] and total_drift:
            raise CommandError(f'{total_drift} counter(s) out of sync')
