# carelog/audit/management/commands/purge_audit_records.py

from django.core.exceptions import ValidationError
from django.core.management.base import BaseCommand, CommandError

from carelog.audit.retention import MAX_DAYS_TO_KEEP, MIN_DAYS_TO_KEEP, RetentionService


class Command(BaseCommand):
    help = "Delete audit records older than --days (recorded as a system action)."

    def add_arguments(self, parser):
        parser.add_argument(
            "--days",
            type=int,
            default=90,
            help=f"Days of history to keep ({MIN_DAYS_TO_KEEP}..{MAX_DAYS_TO_KEEP}, default 90).",
        )

    def handle(self, *args, **options):
        try:
            result = RetentionService.purge(options["days"])
        except ValidationError as exc:
            raise CommandError("; ".join(exc.messages)) from exc

        self.stdout.write(
            self.style.SUCCESS(
                f"Deleted {result.deleted_count} audit records older than {result.cutoff:%Y-%m-%d %H:%M}."
            )
        )
