# accounting/models/journal.py

"""
======================================================
PATH: accounting/models/journal.py
======================================================
JOURNAL ENTRY MODEL

Represents a single accounting transaction (journal header).

Guarantees:
- Immutable once created (no updates, no deletes)
- number ("<year>-<seq:04>") is unique per tenant
- (tenant, fiscal_year, sequence_number) is unique
- source_tag + source_id point at the originating BUSINESS record
  (reversals keep the original business source_id; the link to the
  reversed entry is reversal_of)
"""

from __future__ import annotations

from django.core.exceptions import ValidationError
from django.db import models
from django.db.models import Q


class JournalEntry(models.Model):
    tenant = models.ForeignKey(
        "tenants.Tenant",
        on_delete=models.PROTECT,
        related_name="journal_entries",
    )

    entry_date = models.DateField(help_text="Accounting effective date")

    concept = models.TextField(help_text="Narrative description of the journal entry")

    source_tag = models.CharField(
        max_length=64,
        help_text="Originating event kind (income, expense, inventory, ...)",
    )
    source_id = models.CharField(
        max_length=128,
        blank=True,
        default="",
        help_text="Identifier of the originating business record",
    )

    fiscal_year = models.PositiveIntegerField()
    sequence_number = models.PositiveIntegerField()
    number = models.CharField(max_length=20)

    reversal_of = models.ForeignKey(
        "self",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="reversals",
    )

    created_at = models.DateTimeField(
        auto_now_add=True,
        help_text="Timestamp when the journal entry was created",
    )

    class Meta:
        ordering = ["-entry_date", "-created_at"]
        indexes = [
            models.Index(fields=["tenant", "entry_date"]),
            models.Index(fields=["tenant", "source_tag", "source_id"]),
            models.Index(fields=["created_at"]),
        ]
        constraints = [
            models.UniqueConstraint(
                fields=["tenant", "number"],
                name="uniq_journal_tenant_number",
            ),
            models.UniqueConstraint(
                fields=["tenant", "fiscal_year", "sequence_number"],
                name="uniq_journal_tenant_year_sequence",
            ),
            models.CheckConstraint(
                condition=~Q(concept=""),
                name="chk_journal_concept_not_blank",
            ),
            models.CheckConstraint(
                condition=~Q(source_tag=""),
                name="chk_journal_source_tag_not_blank",
            ),
            models.CheckConstraint(
                condition=Q(sequence_number__gte=1),
                name="chk_journal_sequence_positive",
            ),
        ]
        verbose_name = "Journal Entry"
        verbose_name_plural = "Journal Entries"

    def __str__(self):
        return f"JournalEntry {self.number} – {self.entry_date}"

    def clean(self):
        self.concept = (self.concept or "").strip()
        self.source_tag = (self.source_tag or "").strip()
        self.source_id = str(self.source_id or "").strip()

        if not self.concept:
            raise ValidationError("Journal entry concept is required")
        if not self.source_tag:
            raise ValidationError("Journal entry source_tag is required")

        if self.reversal_of_id and self.reversal_of.tenant_id != self.tenant_id:
            raise ValidationError("A reversal must belong to the same tenant")

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise ValidationError("JournalEntry records are immutable once created")

        self.full_clean()
        return super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise ValidationError("JournalEntry records are immutable and cannot be deleted")
