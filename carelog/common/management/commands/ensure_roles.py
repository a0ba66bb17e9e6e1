# carelog/common/management/commands/ensure_roles.py

from django.contrib.auth.models import Group
from django.core.management.base import BaseCommand

from carelog.common.permissions import ALL_ROLES


class Command(BaseCommand):
    help = "Create the role groups audit records are attributed to (ADMIN, MANAGEMENT, ...)."

    def handle(self, *args, **options):
        created = [name for name in ALL_ROLES if Group.objects.get_or_create(name=name)[1]]

        self.stdout.write(
            self.style.SUCCESS(
                f"Role groups ready ({', '.join(ALL_ROLES)}). Newly created: {len(created)}"
                + (f" [{', '.join(created)}]" if created else "")
            )
        )
