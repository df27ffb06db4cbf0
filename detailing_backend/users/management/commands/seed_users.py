# users/management/commands/seed_users.py

from __future__ import annotations

from dataclasses import dataclass

from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand, CommandError
from django.db import transaction

from permissions.roles import ROLE_ADMIN, ROLE_CASHIER, ROLE_DETAILER, ROLE_MANAGER


@dataclass(frozen=True)
class SeedUserSpec:
    label: str
    role: str
    email: str
    first_name: str = ""
    last_name: str = ""


SHOP_STAFF = [
    SeedUserSpec("Admin", ROLE_ADMIN, "admin@example.com", "Shop", "Owner"),
    SeedUserSpec("Manager", ROLE_MANAGER, "manager@example.com", "Floor", "Manager"),
    SeedUserSpec("Cashier", ROLE_CASHIER, "cashier@example.com", "Front", "Counter"),
    SeedUserSpec("Detailer", ROLE_DETAILER, "detailer@example.com", "Bay", "One"),
]


class Command(BaseCommand):
    help = "Seed one staff login per role (admin, manager, cashier, detailer). Idempotent."

    def add_arguments(self, parser):
        parser.add_argument(
            "--password",
            type=str,
            default="Pass1234!",
            help="Password for seeded users (default: Pass1234!)",
        )
        parser.add_argument(
            "--force-password",
            action="store_true",
            help="Reset password for existing seeded users too.",
        )

    @transaction.atomic
    def handle(self, *args, **options):
        password = options.get("password") or ""
        force_password = bool(options.get("force_password"))

        if len(password) < 6:
            raise CommandError("--password must be at least 6 characters.")

        User = get_user_model()

        created_count = 0
        pw_reset_count = 0

        for spec in SHOP_STAFF:
            is_admin = spec.role == ROLE_ADMIN

            user, created = User.objects.get_or_create(
                email=spec.email,
                defaults={
                    "role": spec.role,
                    "first_name": spec.first_name,
                    "last_name": spec.last_name,
                    "is_staff": is_admin,
                    "is_superuser": is_admin,
                    "is_active": True,
                },
            )

            if created:
                user.set_password(password)
                user.save(update_fields=["password"])
                created_count += 1
                self.stdout.write(f"created: {spec.label} ({spec.email})")
                continue

            fields = []
            if user.role != spec.role:
                user.role = spec.role
                fields.append("role")
            if not user.is_active:
                user.is_active = True
                fields.append("is_active")
            if force_password:
                user.set_password(password)
                fields.append("password")
                pw_reset_count += 1

            if fields:
                user.save(update_fields=fields)
            self.stdout.write(f"exists:  {spec.label} ({spec.email})")

        self.stdout.write("\n--- Summary ---")
        self.stdout.write(f"Created users: {created_count}")
        if force_password:
            self.stdout.write(f"Passwords reset: {pw_reset_count}")
