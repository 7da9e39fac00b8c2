# accounting/management/commands/validate_ledger.py

from __future__ import annotations

from datetime import datetime

from django.core.management.base import BaseCommand
from django.db.models import Count, F, Sum

from accounting.models.journal import JournalEntry
from accounting.models.journal_line import JournalLine
from tenants.models import Tenant


def _parse_date(s: str | None):
    """
    Parse YYYY-MM-DD into a date, or None.
    """
    if not s:
        return None
    try:
        return datetime.strptime(s, "%Y-%m-%d").date()
    except ValueError:
        return None


class Command(BaseCommand):
    help = "Validate ledger integrity (balanced entries, line presence, tenant isolation, numbering)."

    def add_arguments(self, parser):
        parser.add_argument("--tenant", dest="slug", help="Tenant slug (optional, default: all)")
        parser.add_argument(
            "--from",
            dest="date_from",
            help="Start date YYYY-MM-DD (optional)",
        )
        parser.add_argument(
            "--to",
            dest="date_to",
            help="End date YYYY-MM-DD (optional)",
        )
        parser.add_argument(
            "--strict",
            action="store_true",
            help="Fail (non-zero exit) if any error is found.",
        )

    def handle(self, *args, **options):
        date_from = _parse_date(options.get("date_from"))
        date_to = _parse_date(options.get("date_to"))
        strict = bool(options.get("strict"))

        if options.get("date_from") and not date_from:
            self.stderr.write(self.style.ERROR("Invalid --from date. Use YYYY-MM-DD"))
            return self._exit(strict)

        if options.get("date_to") and not date_to:
            self.stderr.write(self.style.ERROR("Invalid --to date. Use YYYY-MM-DD"))
            return self._exit(strict)

        entries = JournalEntry.objects.all()
        lines = JournalLine.objects.all()

        slug = (options.get("slug") or "").strip().lower()
        if slug:
            tenant = Tenant.objects.filter(slug=slug).first()
            if tenant is None:
                self.stderr.write(self.style.ERROR(f"Unknown tenant: {slug}"))
                return self._exit(strict)
            entries = entries.filter(tenant=tenant)
            lines = lines.filter(entry__tenant=tenant)

        if date_from:
            entries = entries.filter(entry_date__gte=date_from)
            lines = lines.filter(entry__entry_date__gte=date_from)
        if date_to:
            entries = entries.filter(entry_date__lte=date_to)
            lines = lines.filter(entry__entry_date__lte=date_to)

        self.stdout.write(self.style.MIGRATE_HEADING("Ledger validation"))
        self.stdout.write(f"Window: {date_from or 'ALL'}  →  {date_to or 'ALL'}")
        self.stdout.write(f"Entries in window: {entries.count()}")
        self.stdout.write("")

        errors = 0

        # -----------------------------
        # 1) Per-entry balance
        # -----------------------------
        unbalanced = list(
            entries.order_by()
            .annotate(total_debit=Sum("lines__debit"), total_credit=Sum("lines__credit"))
            .exclude(total_debit=F("total_credit"))
            .values_list("number", "total_debit", "total_credit")[:50]
        )
        if unbalanced:
            errors += len(unbalanced)
            self.stderr.write(self.style.ERROR(f"[FAIL] Unbalanced entries: {len(unbalanced)}"))
            for number, dr, cr in unbalanced[:10]:
                self.stderr.write(f"  {number} debits={dr} credits={cr}")
        else:
            self.stdout.write(self.style.SUCCESS("[OK] Every entry is balanced"))

        # -----------------------------
        # 2) Entries without lines
        # -----------------------------
        empty = list(
            entries.order_by()
            .annotate(n_lines=Count("lines"))
            .filter(n_lines=0)
            .values_list("number", flat=True)[:50]
        )
        if empty:
            errors += len(empty)
            self.stderr.write(self.style.ERROR(f"[FAIL] Entries without lines: {len(empty)}"))
            self.stderr.write("  Example numbers: " + ", ".join(empty[:10]))
        else:
            self.stdout.write(self.style.SUCCESS("[OK] Every entry has lines"))

        # -----------------------------
        # 3) Tenant isolation
        # -----------------------------
        cross_tenant = lines.exclude(account__tenant_id=F("entry__tenant_id")).count()
        if cross_tenant:
            errors += cross_tenant
            self.stderr.write(self.style.ERROR(f"[FAIL] Lines posted to another tenant's account: {cross_tenant}"))
        else:
            self.stdout.write(self.style.SUCCESS("[OK] No cross-tenant lines"))

        # -----------------------------
        # 4) Number format matches (year, sequence)
        # -----------------------------
        bad_numbers = [
            number
            for number, year, seq in entries.values_list("number", "fiscal_year", "sequence_number")
            if number != f"{year}-{seq:04d}"
        ]
        if bad_numbers:
            errors += len(bad_numbers)
            self.stderr.write(self.style.ERROR(f"[FAIL] Entry numbers not matching year/sequence: {len(bad_numbers)}"))
            self.stderr.write("  Example numbers: " + ", ".join(bad_numbers[:10]))
        else:
            self.stdout.write(self.style.SUCCESS("[OK] Entry numbers consistent"))

        # -----------------------------
        # 5) Global totals
        # -----------------------------
        totals = lines.aggregate(debits=Sum("debit"), credits=Sum("credit"))
        debits = totals.get("debits") or 0
        credits = totals.get("credits") or 0

        if debits != credits:
            errors += 1
            self.stderr.write(self.style.ERROR(f"[FAIL] Ledger not balanced: debits={debits} credits={credits}"))
        else:
            self.stdout.write(self.style.SUCCESS(f"[OK] Ledger balanced: debits={debits} credits={credits}"))

        self.stdout.write("")
        if errors == 0:
            self.stdout.write(self.style.SUCCESS("✅ VALIDATION PASSED"))
        else:
            self.stderr.write(self.style.ERROR(f"❌ VALIDATION FOUND ISSUES: {errors} problem(s)"))

        return self._exit(strict and errors > 0)

    def _exit(self, fail: bool):
        if fail:
            raise SystemExit(1)
        return None
