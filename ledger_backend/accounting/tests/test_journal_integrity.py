# accounting/tests/test_journal_integrity.py

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal

from django.core.exceptions import ValidationError
from django.test import TestCase

from accounting.models import Counter, JournalEntry, JournalLine
from accounting.services.account_ref import AccountRef
from accounting.services.chart_service import deactivate_account
from accounting.services.exceptions import (
    ImbalancedEntryError,
    PostingValidationError,
    UnknownAccountError,
)
from accounting.services.journal_entry_service import post_entry
from tenants.services.provisioning import provision_tenant


def _sale_lines(amount="100.00"):
    return [
        {"account": "1001", "debit": amount, "memo": "Collected"},
        {"account": "4001", "credit": amount, "memo": "Income"},
    ]


class PostEntryTests(TestCase):
    def setUp(self):
        self.tenant = provision_tenant(name="Acme", slug="acme").tenant

    def _post(self, **overrides):
        payload = {
            "tenant": self.tenant,
            "entry_date": date(2024, 3, 10),
            "concept": "Test sale",
            "source_tag": "income",
            "source_id": "A1",
            "lines": _sale_lines(),
        }
        payload.update(overrides)
        return post_entry(**payload)

    def test_balanced_entry_persists_header_and_lines(self):
        result = self._post()

        entry = JournalEntry.objects.get(pk=result.entry_id)
        self.assertEqual(entry.tenant_id, self.tenant.pk)
        self.assertEqual(entry.number, "2024-0001")
        self.assertEqual(result.sequence_number, 1)
        self.assertEqual(result.fiscal_year, 2024)
        self.assertEqual(entry.source_tag, "income")
        self.assertEqual(entry.source_id, "A1")

        lines = list(entry.lines.order_by("line_no"))
        self.assertEqual([ln.line_no for ln in lines], [1, 2])
        self.assertEqual(lines[0].account.code, "1001")
        self.assertEqual(lines[0].debit, Decimal("100.00"))
        self.assertEqual(lines[0].credit, Decimal("0.00"))
        self.assertEqual(lines[1].account.code, "4001")
        self.assertEqual(lines[1].credit, Decimal("100.00"))

    def test_numbers_increase_within_the_year(self):
        first = self._post(source_id="A1")
        second = self._post(source_id="A2")
        other_year = self._post(source_id="A3", entry_date=date(2025, 1, 2))

        self.assertEqual(first.number, "2024-0001")
        self.assertEqual(second.number, "2024-0002")
        self.assertEqual(other_year.number, "2025-0001")

    def test_accepts_iso_string_and_datetime_dates(self):
        by_string = self._post(entry_date="2024-05-01")
        by_datetime = self._post(entry_date=datetime(2024, 5, 2, 9, 30))

        self.assertEqual(JournalEntry.objects.get(pk=by_string.entry_id).entry_date, date(2024, 5, 1))
        self.assertEqual(JournalEntry.objects.get(pk=by_datetime.entry_id).entry_date, date(2024, 5, 2))

    def test_amounts_are_rounded_to_cents(self):
        result = self._post(
            lines=[
                {"account": "1001", "debit": "10.005"},
                {"account": "4001", "credit": "10.01"},
            ]
        )
        debits = JournalLine.objects.filter(entry_id=result.entry_id).values_list("debit", flat=True)
        self.assertIn(Decimal("10.01"), list(debits))

    def test_imbalanced_entry_writes_nothing(self):
        with self.assertRaises(ImbalancedEntryError) as ctx:
            self._post(
                lines=[
                    {"account": "1001", "debit": "100.00"},
                    {"account": "4001", "credit": "90.00"},
                ]
            )

        self.assertEqual(ctx.exception.code, "IMBALANCED_ENTRY")
        self.assertEqual(ctx.exception.total_debit, Decimal("100.00"))
        self.assertEqual(ctx.exception.total_credit, Decimal("90.00"))
        self.assertFalse(JournalEntry.objects.exists())
        self.assertFalse(Counter.objects.exists())

    def test_one_cent_difference_is_rejected(self):
        with self.assertRaises(ImbalancedEntryError):
            self._post(
                lines=[
                    {"account": "1001", "debit": "100.00"},
                    {"account": "4001", "credit": "99.99"},
                ]
            )

    def test_unknown_accounts_are_all_reported(self):
        with self.assertRaises(UnknownAccountError) as ctx:
            self._post(
                lines=[
                    {"account": "1999", "debit": "5.00"},
                    {"account": "4999", "credit": "5.00"},
                ]
            )

        self.assertEqual(ctx.exception.code, "UNKNOWN_ACCOUNT")
        self.assertEqual(
            {ref.code for ref in ctx.exception.missing},
            {"1999", "4999"},
        )
        self.assertFalse(JournalEntry.objects.exists())

    def test_imbalance_is_checked_before_account_resolution(self):
        with self.assertRaises(ImbalancedEntryError):
            self._post(
                lines=[
                    {"account": "1999", "debit": "5.00"},
                    {"account": "4001", "credit": "4.00"},
                ]
            )

    def test_inactive_account_is_rejected(self):
        deactivate_account(tenant=self.tenant, code="4001")

        with self.assertRaises(UnknownAccountError):
            self._post()

    def test_other_tenant_account_is_rejected(self):
        other = provision_tenant(name="Other", slug="other").tenant
        foreign_cash = other.accounts.get(code="1001")

        with self.assertRaises(UnknownAccountError):
            self._post(
                lines=[
                    {"account": AccountRef.by_id(foreign_cash.pk), "debit": "10.00"},
                    {"account": "4001", "credit": "10.00"},
                ]
            )

    def test_line_validation(self):
        bad_line_sets = [
            [],
            [{"account": "1001", "debit": "10.00", "credit": "10.00"}],
            [{"account": "1001"}, {"account": "4001"}],
            [{"account": "1001", "debit": "-5.00"}, {"account": "4001", "credit": "-5.00"}],
            [{"account": "1001", "debit": "abc"}, {"account": "4001", "credit": "1.00"}],
            [{"debit": "1.00"}, {"account": "4001", "credit": "1.00"}],
            [{"account": 3.5, "debit": "1.00"}, {"account": "4001", "credit": "1.00"}],
        ]
        for lines in bad_line_sets:
            with self.subTest(lines=lines):
                with self.assertRaises(PostingValidationError) as ctx:
                    self._post(lines=lines)
                self.assertEqual(ctx.exception.code, "VALIDATION")

        self.assertFalse(JournalEntry.objects.exists())

    def test_header_validation(self):
        for overrides in (
            {"concept": "  "},
            {"source_tag": ""},
            {"entry_date": "not-a-date"},
            {"tenant": None},
        ):
            with self.subTest(overrides=overrides):
                with self.assertRaises(PostingValidationError):
                    self._post(**overrides)

    def test_values_beyond_column_limits_are_rejected_before_writing(self):
        for overrides in (
            {"source_id": "9" * 129},
            {"source_tag": "t" * 65},
            {"lines": _sale_lines("1000000000000.00")},
            {"lines": _sale_lines("1e40")},
        ):
            with self.subTest(overrides=overrides):
                with self.assertRaises(PostingValidationError) as ctx:
                    self._post(**overrides)
                self.assertEqual(ctx.exception.code, "VALIDATION")

        self.assertFalse(JournalEntry.objects.exists())
        self.assertFalse(Counter.objects.exists())

    def test_values_at_column_limits_are_accepted(self):
        result = self._post(source_id="9" * 128, source_tag="t" * 64)

        entry = JournalEntry.objects.get(pk=result.entry_id)
        self.assertEqual(len(entry.source_id), 128)
        self.assertEqual(len(entry.source_tag), 64)


class JournalImmutabilityTests(TestCase):
    def setUp(self):
        self.tenant = provision_tenant(name="Acme", slug="acme").tenant
        result = post_entry(
            tenant=self.tenant,
            entry_date=date(2024, 1, 5),
            concept="Opening sale",
            source_tag="income",
            source_id="X1",
            lines=_sale_lines("50.00"),
        )
        self.entry = JournalEntry.objects.get(pk=result.entry_id)

    def test_entry_cannot_be_updated(self):
        self.entry.concept = "Edited"
        with self.assertRaises(ValidationError):
            self.entry.save()

    def test_entry_cannot_be_deleted(self):
        with self.assertRaises(ValidationError):
            self.entry.delete()

    def test_lines_cannot_be_updated_or_deleted(self):
        line = self.entry.lines.first()
        line.debit = Decimal("999.00")

        with self.assertRaises(ValidationError):
            line.save()
        with self.assertRaises(ValidationError):
            line.delete()

        line.refresh_from_db()
        self.assertEqual(line.debit + line.credit, Decimal("50.00"))
