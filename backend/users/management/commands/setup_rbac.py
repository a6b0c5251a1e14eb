"""
Management command: setup_rbac
~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~

Seeds the database with the base **Roles** and links each role to its
set of permission tokens.

This command does NOT create Permission objects.  The catalogue tokens
are declared in each model's ``Meta.permissions`` and inserted by
``migrate``; a token without a row is reported and skipped.

The command is **idempotent**: existing roles are updated and their
permissions replaced to match the mapping below.

Usage::

    python manage.py migrate
    python manage.py setup_rbac
"""

from django.contrib.auth.models import Permission
from django.core.management.base import BaseCommand

from core.permissions_constants import (
    ClientsPerms,
    ReportsPerms,
    UsersPerms,
    all_tokens,
    split_token,
    token_for,
)
from users.models import Role


def _reports(*actions: str) -> list[str]:
    return [token_for("reports", a) for a in actions]


def _clients(*actions: str) -> list[str]:
    return [token_for("clients", a) for a in actions]


# ────────────────────────────────────────────────────────────────────
# Role → token mapping
# ────────────────────────────────────────────────────────────────────
# Key:   (role_name, description, hierarchy_level)
# Value: list of dotted tokens from ``core.permissions_constants``

ROLE_PERMISSIONS_MAP: dict[tuple[str, str, int], list[str]] = {

    (
        "Administrator",
        "Full system access: manages users, roles, clients and reports.",
        100,
    ): list(all_tokens()),

    (
        "Quality Surveyor",
        "Reviews submitted reports, schedules site visits and decides on them.",
        50,
    ): [
        *_reports(
            ReportsPerms.VIEW,
            ReportsPerms.REVIEW,
            ReportsPerms.APPROVE,
        ),
        *_clients(ClientsPerms.VIEW),
        token_for("users", UsersPerms.VIEW),
    ],

    (
        "Report Manager",
        "Writes site-inspection reports and submits them for QS review.",
        10,
    ): [
        *_reports(
            ReportsPerms.VIEW,
            ReportsPerms.CREATE,
            ReportsPerms.EDIT,
            ReportsPerms.DELETE,
            ReportsPerms.SUBMIT,
        ),
        *_clients(ClientsPerms.VIEW, ClientsPerms.CREATE, ClientsPerms.EDIT),
    ],
}


class Command(BaseCommand):
    help = (
        "Seeds the database with base Roles and maps each role to its "
        "permission tokens.  Safe to run multiple times (idempotent).  "
        "Does NOT create permissions; run `migrate` first."
    )

    def handle(self, *args, **options):
        self.stdout.write(self.style.MIGRATE_HEADING(
            "\n══════════════════════════════════════════"
            "\n  RBAC Setup: Seeding Roles & Permissions"
            "\n══════════════════════════════════════════\n"
        ))

        # (app_label, codename) → Permission, fetched once
        all_permissions: dict[tuple[str, str], Permission] = {
            (p.content_type.app_label, p.codename): p
            for p in Permission.objects.select_related("content_type").all()
        }

        roles_created = 0
        roles_updated = 0
        warnings = 0

        for (role_name, description, hierarchy_level), tokens in ROLE_PERMISSIONS_MAP.items():
            role, created = Role.objects.update_or_create(
                name=role_name,
                defaults={
                    "description": description,
                    "hierarchy_level": hierarchy_level,
                },
            )

            resolved_permissions: list[Permission] = []
            for token in tokens:
                perm = all_permissions.get(split_token(token))
                if perm is not None:
                    resolved_permissions.append(perm)
                else:
                    warnings += 1
                    self.stdout.write(self.style.WARNING(
                        f"  ⚠  Permission '{token}' not found: "
                        f"skipped for role '{role_name}'.  (Run migrate first?)"
                    ))

            role.permissions.set(resolved_permissions)

            if created:
                roles_created += 1
            else:
                roles_updated += 1

            self.stdout.write(self.style.SUCCESS(
                f"  ✔  {'Created' if created else 'Updated'} role: {role_name:<20s} "
                f"(hierarchy={hierarchy_level}, "
                f"permissions={len(resolved_permissions)})"
            ))

        self.stdout.write(self.style.MIGRATE_HEADING(
            "\n──────────────────────────────────────────"
        ))
        summary = (
            f"  Done!  {roles_created} role(s) created, "
            f"{roles_updated} role(s) updated."
        )
        if warnings:
            summary += f"  ({warnings} permission warning(s): see above.)"
        self.stdout.write(self.style.SUCCESS(summary + "\n"))
