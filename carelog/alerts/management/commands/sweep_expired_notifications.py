# carelog/alerts/management/commands/sweep_expired_notifications.py

from django.core.management.base import BaseCommand

from carelog.alerts.services import NotificationService


class Command(BaseCommand):
    help = "Dismiss audit notifications whose expiry has passed (idempotent)."

    def handle(self, *args, **options):
        count = NotificationService.sweep_expired()
        self.stdout.write(self.style.SUCCESS(f"Expired notifications dismissed: {count}"))
