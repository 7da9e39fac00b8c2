# accounting/models/posting_intent.py

"""
======================================================
PATH: accounting/models/posting_intent.py
======================================================
POSTING INTENT

Phase-1 marker of the two-phase posting protocol:
  (1) intent(PENDING) is committed before the ledger is touched
  (2) entry + intent(POSTED) are written in ONE transaction

An intent left PENDING means the process died between (1) and (2);
reconcile_postings() resolves it to POSTED (entry found) or ORPHANED.

Idempotency:
- At most one PENDING/POSTED intent per (tenant, source_tag, source_id).
- FAILED / ORPHANED intents do not block a new attempt.
"""

from __future__ import annotations

from django.db import models
from django.db.models import Q


class PostingIntent(models.Model):
    class Status(models.TextChoices):
        PENDING = "pending", "Pending"
        POSTED = "posted", "Posted"
        FAILED = "failed", "Failed"
        ORPHANED = "orphaned", "Orphaned"

    tenant = models.ForeignKey(
        "tenants.Tenant",
        on_delete=models.PROTECT,
        related_name="posting_intents",
    )

    source_tag = models.CharField(max_length=64)
    source_id = models.CharField(max_length=128)

    status = models.CharField(
        max_length=16,
        choices=Status.choices,
        default=Status.PENDING,
        db_index=True,
    )

    journal_entry = models.ForeignKey(
        "accounting.JournalEntry",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="posting_intents",
    )

    last_error = models.TextField(blank=True, default="")

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["tenant", "source_tag", "source_id"]),
            models.Index(fields=["status", "created_at"]),
        ]
        constraints = [
            models.UniqueConstraint(
                fields=["tenant", "source_tag", "source_id"],
                condition=Q(status__in=["pending", "posted"]),
                name="uniq_live_posting_intent_per_source",
            ),
            models.CheckConstraint(
                condition=~Q(status="posted") | Q(journal_entry__isnull=False),
                name="chk_posted_intent_has_entry",
            ),
        ]

    def __str__(self):
        return f"{self.source_tag}:{self.source_id} [{self.status}]"
