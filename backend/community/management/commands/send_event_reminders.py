"""
Management command to send reminders for upcoming events.

Usage: python manage.py send_event_reminders [--hours 24]

Meant to run from cron; each event is reminded at most once.
"""

from django.core.management.base import BaseCommand

from community.notifications import send_event_reminders


class Command(BaseCommand):
    help = 'Notify owners about events due in the next few hours'

    def add_arguments(self, parser):
        parser.add_argument(
            '--hours',
            type=int,
            default=None,
            help='Look-ahead window (defaults to EVENT_REMINDER_WINDOW_HOURS)'
        )

    def handle(self, *args, **options):
        sent = send_event_reminders(window_hours=options['hours'])
        self.stdout.write(self.style.SUCCESS(f'Sent {sent} reminder(s)'))
