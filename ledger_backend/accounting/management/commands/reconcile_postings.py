# accounting/management/commands/reconcile_postings.py

from __future__ import annotations

from datetime import timedelta

from django.core.management.base import BaseCommand

from accounting.services.reconciliation_service import reconcile_postings
from tenants.models import Tenant


class Command(BaseCommand):
    help = (
        "Resolve stale PENDING posting intents: link them to an existing entry "
        "or mark them ORPHANED. Never re-posts."
    )

    def add_arguments(self, parser):
        parser.add_argument("--tenant", dest="slug", help="Tenant slug (optional, default: all)")
        parser.add_argument(
            "--older-than-minutes",
            dest="older_than_minutes",
            type=int,
            default=None,
            help="Only intents older than this (default: LEDGER_POSTING_STALE_MINUTES)",
        )
        parser.add_argument(
            "--strict",
            action="store_true",
            help="Fail (non-zero exit) if any intent was orphaned.",
        )

    def handle(self, *args, **options):
        strict = bool(options.get("strict"))

        tenant = None
        slug = (options.get("slug") or "").strip().lower()
        if slug:
            tenant = Tenant.objects.filter(slug=slug).first()
            if tenant is None:
                self.stderr.write(self.style.ERROR(f"Unknown tenant: {slug}"))
                return self._exit(strict)

        minutes = options.get("older_than_minutes")
        older_than = timedelta(minutes=minutes) if minutes is not None else None

        report = reconcile_postings(tenant=tenant, older_than=older_than)

        self.stdout.write(self.style.MIGRATE_HEADING("Posting reconciliation"))
        self.stdout.write(f"Pending intents checked: {report.checked}")
        self.stdout.write(f"Linked to existing entries: {report.linked}")

        if report.orphaned:
            self.stderr.write(self.style.ERROR(f"[FAIL] Orphaned intents: {report.orphaned}"))
            for source in report.orphaned_sources[:10]:
                self.stderr.write(f"  {source}")
        else:
            self.stdout.write(self.style.SUCCESS("[OK] No orphaned intents"))

        return self._exit(strict and report.orphaned > 0)

    def _exit(self, fail: bool):
        if fail:
            raise SystemExit(1)
        return None
