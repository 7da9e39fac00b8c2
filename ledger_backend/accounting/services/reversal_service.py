# accounting/services/reversal_service.py

"""
======================================================
PATH: accounting/services/reversal_service.py
======================================================
REVERSAL ENGINE

reverse_entry() posts a compensating entry for a prior one.

Lookup:
- by entry_id, OR
- by (source_tag, source_id) -> latest entry with that exact source

The reversal entry:
- swaps debit/credit on EVERY line (same accounts, same order)
- prefixes concept and line memos with "Reversal:"
- is dated today (unless reversal_date is given) and gets a fresh number
- carries source_tag "<original>_reversal" and the ORIGINAL business
  source_id, so every cancellation traces back to one business record
- points at the reversed entry through reversal_of

The original entry is never touched. Nothing found -> NO_JOURNAL_ENTRY,
and the caller must not mark its business record canceled.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from django.utils import timezone

from accounting.models.journal import JournalEntry
from accounting.services.account_ref import AccountRef
from accounting.services.exceptions import NoJournalEntryError, PostingValidationError
from accounting.services.journal_entry_service import SOURCE_TAG_MAX_LENGTH, post_entry

logger = logging.getLogger(__name__)

REVERSAL_PREFIX = "Reversal:"
REVERSAL_TAG_SUFFIX = "_reversal"


@dataclass(frozen=True)
class ReversalResult:
    reversal_entry_id: int
    sequence_number: int
    number: str
    original_entry_id: int


def reversal_source_tag(source_tag: str) -> str:
    tag = f"{source_tag}{REVERSAL_TAG_SUFFIX}"
    if len(tag) > SOURCE_TAG_MAX_LENGTH:
        raise PostingValidationError(
            f"Reversal tag for {source_tag!r} would exceed {SOURCE_TAG_MAX_LENGTH} characters"
        )
    return tag


def locate_entry(*, tenant, entry_id=None, source_tag=None, source_id=None) -> JournalEntry:
    qs = JournalEntry.objects.filter(tenant=tenant)

    if entry_id is not None:
        entry = qs.filter(pk=entry_id).first()
        if entry is None:
            raise NoJournalEntryError(f"Journal entry {entry_id} not found")
        return entry

    source_tag = str(source_tag or "").strip()
    source_id = str(source_id or "").strip()
    if not source_tag or not source_id:
        raise PostingValidationError(
            "Provide entry_id, or both source_tag and source_id"
        )

    entry = (
        qs.filter(source_tag=source_tag, source_id=source_id)
        .order_by("-created_at", "-pk")
        .first()
    )
    if entry is None:
        raise NoJournalEntryError(
            f"No journal entry found for source {source_tag}:{source_id}"
        )
    return entry


def build_reversal_lines(entry: JournalEntry) -> list[dict]:
    return [
        {
            "account": AccountRef.by_id(line.account_id),
            "debit": line.credit,
            "credit": line.debit,
            "memo": f"{REVERSAL_PREFIX} {line.memo or entry.concept}",
        }
        for line in entry.lines.order_by("line_no")
    ]


def reverse_entry(
    *,
    tenant,
    entry_id=None,
    source_tag=None,
    source_id=None,
    reversal_date=None,
) -> ReversalResult:
    original = locate_entry(
        tenant=tenant,
        entry_id=entry_id,
        source_tag=source_tag,
        source_id=source_id,
    )

    lines = build_reversal_lines(original)
    if not lines:
        raise NoJournalEntryError(f"Journal entry {original.number} has no lines to reverse")

    # Accounts deactivated since the original posting must still be reversible.
    result = post_entry(
        tenant=tenant,
        entry_date=reversal_date or timezone.localdate(),
        concept=f"{REVERSAL_PREFIX} {original.concept}",
        source_tag=reversal_source_tag(original.source_tag),
        source_id=original.source_id,
        lines=lines,
        reversal_of=original,
        allow_inactive_accounts=True,
    )

    logger.info(
        "Journal entry reversed",
        extra={
            "tenant": str(tenant.pk),
            "original_entry_id": original.pk,
            "original_number": original.number,
            "reversal_entry_id": result.entry_id,
            "reversal_number": result.number,
        },
    )

    return ReversalResult(
        reversal_entry_id=result.entry_id,
        sequence_number=result.sequence_number,
        number=result.number,
        original_entry_id=original.pk,
    )
