"""
Create the root admin account if it is missing.

Run once at deploy/boot, before serving requests:
    python manage.py ensure_root_admin
"""
from django.core.management.base import BaseCommand

from accounts.services import ensure_root_admin


class Command(BaseCommand):
    help = "Ensure the root admin account exists (idempotent)"

    def handle(self, *args, **options):
        admin, created = ensure_root_admin()

        if created:
            self.stdout.write(self.style.SUCCESS(f"Root admin {admin.email} created."))
        else:
            self.stdout.write(self.style.WARNING(f"Root admin {admin.email} already exists."))
