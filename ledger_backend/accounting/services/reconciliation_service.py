# accounting/services/reconciliation_service.py

"""
POSTING RECONCILIATION (OUT-OF-BAND JOB)

Resolves PENDING posting intents older than the stale threshold:
- an entry exists for (tenant, source_tag, source_id) -> link it, mark POSTED
- no entry                                            -> mark ORPHANED

RULES:
- Never posts or re-posts anything (re-posting an orphan is a human decision).
- Each intent is resolved under a row lock, so two concurrent runs cannot
  both flip the same intent.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta

from django.conf import settings
from django.db import transaction
from django.utils import timezone

from accounting.models.journal import JournalEntry
from accounting.models.posting_intent import PostingIntent

logger = logging.getLogger(__name__)


@dataclass
class ReconciliationReport:
    checked: int = 0
    linked: int = 0
    orphaned: int = 0
    orphaned_sources: list[str] = field(default_factory=list)


def _stale_cutoff(*, older_than: timedelta | None, now: datetime | None) -> datetime:
    if older_than is None:
        older_than = timedelta(minutes=getattr(settings, "LEDGER_POSTING_STALE_MINUTES", 15))
    return (now or timezone.now()) - older_than


def _resolve_one(intent_id: int, report: ReconciliationReport) -> None:
    with transaction.atomic():
        intent = (
            PostingIntent.objects.select_for_update()
            .filter(pk=intent_id, status=PostingIntent.Status.PENDING)
            .first()
        )
        if intent is None:
            return

        report.checked += 1

        entry = (
            JournalEntry.objects.filter(
                tenant_id=intent.tenant_id,
                source_tag=intent.source_tag,
                source_id=intent.source_id,
            )
            .order_by("-created_at", "-pk")
            .first()
        )

        if entry is not None:
            intent.status = PostingIntent.Status.POSTED
            intent.journal_entry = entry
            intent.save(update_fields=["status", "journal_entry", "updated_at"])
            report.linked += 1
            logger.info(
                "Pending posting intent linked to existing entry",
                extra={
                    "tenant": str(intent.tenant_id),
                    "source_tag": intent.source_tag,
                    "source_id": intent.source_id,
                    "entry_id": entry.pk,
                },
            )
            return

        intent.status = PostingIntent.Status.ORPHANED
        intent.last_error = "No journal entry found during reconciliation"
        intent.save(update_fields=["status", "last_error", "updated_at"])
        report.orphaned += 1
        report.orphaned_sources.append(f"{intent.source_tag}:{intent.source_id}")
        logger.warning(
            "Posting intent orphaned",
            extra={
                "tenant": str(intent.tenant_id),
                "source_tag": intent.source_tag,
                "source_id": intent.source_id,
            },
        )


def reconcile_postings(
    *,
    tenant=None,
    older_than: timedelta | None = None,
    now: datetime | None = None,
) -> ReconciliationReport:
    cutoff = _stale_cutoff(older_than=older_than, now=now)

    qs = PostingIntent.objects.filter(
        status=PostingIntent.Status.PENDING,
        created_at__lte=cutoff,
    )
    if tenant is not None:
        qs = qs.filter(tenant=tenant)

    report = ReconciliationReport()
    for intent_id in qs.order_by("created_at").values_list("pk", flat=True):
        _resolve_one(intent_id, report)

    return report
