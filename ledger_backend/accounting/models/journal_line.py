# accounting/models/journal_line.py

"""
======================================================
PATH: accounting/models/journal_line.py
======================================================
JOURNAL LINE MODEL

One debit OR credit posting to a single account, in entry order.

Guarantees:
- Immutable once created (no updates, no deletes)
- debit >= 0, credit >= 0, and exactly one side carries value
- account is always a resolved FK (never a free-form code)
"""

from __future__ import annotations

from decimal import Decimal

from django.core.exceptions import ValidationError
from django.db import models
from django.db.models import Q

from accounting.models.account import Account
from accounting.models.journal import JournalEntry


class JournalLine(models.Model):
    entry = models.ForeignKey(
        JournalEntry,
        on_delete=models.PROTECT,
        related_name="lines",
    )

    line_no = models.PositiveIntegerField()

    account = models.ForeignKey(
        Account,
        on_delete=models.PROTECT,
        related_name="journal_lines",
    )

    debit = models.DecimalField(
        max_digits=14,
        decimal_places=2,
        default=Decimal("0.00"),
    )
    credit = models.DecimalField(
        max_digits=14,
        decimal_places=2,
        default=Decimal("0.00"),
    )

    memo = models.CharField(max_length=255, blank=True, default="")

    class Meta:
        verbose_name = "Journal Line"
        verbose_name_plural = "Journal Lines"
        ordering = ["entry_id", "line_no"]
        indexes = [
            models.Index(fields=["account"]),
            models.Index(fields=["entry", "line_no"]),
        ]
        constraints = [
            models.UniqueConstraint(
                fields=["entry", "line_no"],
                name="uniq_journal_line_no",
            ),
            models.CheckConstraint(
                condition=(
                    Q(debit__gt=0, credit=0) | Q(debit=0, credit__gt=0)
                ),
                name="chk_journal_line_one_side",
            ),
        ]

    def __str__(self):
        side = "DR" if self.debit > 0 else "CR"
        amount = self.debit if self.debit > 0 else self.credit
        return f"{side} {amount} → {self.account}"

    def clean(self):
        debit = self.debit or Decimal("0.00")
        credit = self.credit or Decimal("0.00")

        if debit < 0 or credit < 0:
            raise ValidationError("Debit or credit cannot be negative")
        if (debit > 0) == (credit > 0):
            raise ValidationError("A journal line must carry exactly one of debit/credit")

        if self.entry_id and self.account_id:
            if self.account.tenant_id != self.entry.tenant_id:
                raise ValidationError("Journal line account belongs to a different tenant")

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise ValidationError("JournalLine records are immutable and cannot be modified")

        self.full_clean()
        return super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise ValidationError("JournalLine records are immutable and cannot be deleted")
