# accounting/services/posting_intent_service.py

"""
======================================================
PATH: accounting/services/posting_intent_service.py
======================================================
TWO-PHASE POSTING PROTOCOL

For business records that live OUTSIDE this ledger (income, expense
payments, collections ...), "create record -> post entry -> link record"
cannot be one transaction. We make the gap explicit:

  Phase 1  open_intent()      PENDING intent, committed on its own
  Phase 2  post_entry() + complete_intent() in ONE transaction
  Failure  fail_intent() records the error, then the error is re-raised

A PENDING intent that outlives LEDGER_POSTING_STALE_MINUTES means the
process died between phases; reconciliation_service deals with it.

IMPORTANT:
- Call post_with_intent() outside of any caller transaction so phase 1
  survives a crash in phase 2.
- Nothing here retries a failed posting.
"""

from __future__ import annotations

import logging

from django.db import IntegrityError, transaction

from accounting.models.posting_intent import PostingIntent
from accounting.services.exceptions import IdempotencyError, PostingValidationError
from accounting.services.journal_entry_service import PostingResult, post_entry

logger = logging.getLogger(__name__)

ERROR_MAX_LENGTH = 2000


def open_intent(*, tenant, source_tag: str, source_id) -> PostingIntent:
    source_tag = (source_tag or "").strip()
    source_id = str(source_id or "").strip()
    if not source_tag or not source_id:
        raise PostingValidationError("source_tag and source_id are required")

    live = PostingIntent.objects.filter(
        tenant=tenant,
        source_tag=source_tag,
        source_id=source_id,
        status__in=[PostingIntent.Status.PENDING, PostingIntent.Status.POSTED],
    ).first()
    if live is not None:
        raise IdempotencyError(
            f"Business record {source_tag}:{source_id} is already {live.status}"
        )

    try:
        with transaction.atomic():
            return PostingIntent.objects.create(
                tenant=tenant,
                source_tag=source_tag,
                source_id=source_id,
                status=PostingIntent.Status.PENDING,
            )
    except IntegrityError as exc:
        raise IdempotencyError(
            f"Business record {source_tag}:{source_id} is already being posted"
        ) from exc


def complete_intent(intent: PostingIntent, *, entry_id: int) -> PostingIntent:
    intent.status = PostingIntent.Status.POSTED
    intent.journal_entry_id = entry_id
    intent.last_error = ""
    intent.save(update_fields=["status", "journal_entry", "last_error", "updated_at"])
    return intent


def fail_intent(intent: PostingIntent, *, error: Exception) -> PostingIntent:
    intent.status = PostingIntent.Status.FAILED
    intent.last_error = f"{getattr(error, 'code', type(error).__name__)}: {error}"[:ERROR_MAX_LENGTH]
    intent.save(update_fields=["status", "last_error", "updated_at"])
    return intent


def post_with_intent(
    *,
    tenant,
    entry_date,
    concept: str,
    source_tag: str,
    source_id,
    lines: list,
) -> PostingResult:
    intent = open_intent(tenant=tenant, source_tag=source_tag, source_id=source_id)

    try:
        with transaction.atomic():
            result = post_entry(
                tenant=tenant,
                entry_date=entry_date,
                concept=concept,
                source_tag=source_tag,
                source_id=source_id,
                lines=lines,
            )
            complete_intent(intent, entry_id=result.entry_id)
    except Exception as exc:
        fail_intent(intent, error=exc)
        logger.error(
            "Posting failed",
            extra={
                "tenant": str(tenant.pk),
                "source_tag": intent.source_tag,
                "source_id": intent.source_id,
                "error_code": getattr(exc, "code", type(exc).__name__),
            },
        )
        raise

    return result
