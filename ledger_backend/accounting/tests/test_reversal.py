# accounting/tests/test_reversal.py

from __future__ import annotations

from datetime import date
from decimal import Decimal

from django.test import TestCase

from accounting.models import JournalEntry
from accounting.services.balance_service import get_account_balance
from accounting.services.chart_service import deactivate_account
from accounting.services.exceptions import NoJournalEntryError, PostingValidationError
from accounting.services.journal_entry_service import post_entry
from accounting.services.reversal_service import reverse_entry
from tenants.services.provisioning import provision_tenant


class ReversalEngineTests(TestCase):
    def setUp(self):
        self.tenant = provision_tenant(name="Acme", slug="acme").tenant
        self.original = post_entry(
            tenant=self.tenant,
            entry_date=date(2024, 3, 1),
            concept="Sale 17",
            source_tag="income",
            source_id="17",
            lines=[
                {"account": "1001", "debit": "80.00", "memo": "Collected"},
                {"account": "4002", "debit": "20.00", "memo": "Discount"},
                {"account": "4001", "credit": "100.00", "memo": "Income"},
            ],
        )

    def test_reversal_swaps_every_line(self):
        result = reverse_entry(
            tenant=self.tenant,
            entry_id=self.original.entry_id,
            reversal_date=date(2024, 3, 9),
        )

        reversal = JournalEntry.objects.get(pk=result.reversal_entry_id)
        self.assertEqual(reversal.reversal_of_id, self.original.entry_id)
        self.assertEqual(reversal.source_tag, "income_reversal")
        self.assertEqual(reversal.source_id, "17")
        self.assertEqual(reversal.entry_date, date(2024, 3, 9))
        self.assertEqual(reversal.number, "2024-0002")
        self.assertTrue(reversal.concept.startswith("Reversal:"))

        rows = list(
            reversal.lines.order_by("line_no").values_list("account__code", "debit", "credit")
        )
        self.assertEqual(
            rows,
            [
                ("1001", Decimal("0.00"), Decimal("80.00")),
                ("4002", Decimal("0.00"), Decimal("20.00")),
                ("4001", Decimal("100.00"), Decimal("0.00")),
            ],
        )

    def test_original_plus_reversal_nets_to_zero(self):
        reverse_entry(tenant=self.tenant, entry_id=self.original.entry_id)

        for code in ("1001", "4001", "4002"):
            with self.subTest(code=code):
                self.assertEqual(get_account_balance(tenant=self.tenant, code=code), Decimal("0.00"))

    def test_original_is_untouched(self):
        before = list(
            JournalEntry.objects.get(pk=self.original.entry_id)
            .lines.order_by("line_no")
            .values_list("account_id", "debit", "credit", "memo")
        )

        reverse_entry(tenant=self.tenant, entry_id=self.original.entry_id)

        after = list(
            JournalEntry.objects.get(pk=self.original.entry_id)
            .lines.order_by("line_no")
            .values_list("account_id", "debit", "credit", "memo")
        )
        self.assertEqual(before, after)

    def test_lookup_by_source(self):
        result = reverse_entry(tenant=self.tenant, source_tag="income", source_id="17")
        self.assertEqual(result.original_entry_id, self.original.entry_id)

    def test_reverses_into_deactivated_accounts(self):
        deactivate_account(tenant=self.tenant, code="4002")

        result = reverse_entry(tenant=self.tenant, entry_id=self.original.entry_id)
        self.assertTrue(JournalEntry.objects.filter(pk=result.reversal_entry_id).exists())

    def test_missing_entry(self):
        with self.assertRaises(NoJournalEntryError) as ctx:
            reverse_entry(tenant=self.tenant, entry_id=self.original.entry_id + 1000)
        self.assertEqual(ctx.exception.code, "NO_JOURNAL_ENTRY")

        with self.assertRaises(NoJournalEntryError):
            reverse_entry(tenant=self.tenant, source_tag="income", source_id="404")

    def test_other_tenant_cannot_reverse(self):
        other = provision_tenant(name="Other", slug="other").tenant

        with self.assertRaises(NoJournalEntryError):
            reverse_entry(tenant=other, entry_id=self.original.entry_id)

    def test_reference_is_required(self):
        with self.assertRaises(PostingValidationError):
            reverse_entry(tenant=self.tenant, source_tag="income")

    def test_reversal_tag_that_would_overflow_is_rejected(self):
        long_tag = "x" * 60
        original = post_entry(
            tenant=self.tenant,
            entry_date=date(2024, 3, 2),
            concept="Imported",
            source_tag=long_tag,
            source_id="18",
            lines=[
                {"account": "1001", "debit": "5.00"},
                {"account": "4001", "credit": "5.00"},
            ],
        )

        with self.assertRaises(PostingValidationError) as ctx:
            reverse_entry(tenant=self.tenant, entry_id=original.entry_id)
        self.assertEqual(ctx.exception.code, "VALIDATION")

        self.assertFalse(JournalEntry.objects.filter(reversal_of_id=original.entry_id).exists())
        self.assertEqual(JournalEntry.objects.filter(tenant=self.tenant).count(), 2)
