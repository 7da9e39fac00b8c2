# accounting/services/journal_query_service.py

"""
JOURNAL QUERIES (READ-ONLY)

Lookups the request layer needs around posted entries:
- list_entries()          header list, newest first
- get_entry()             one entry + ordered lines (NO_JOURNAL_ENTRY if missing)
- find_entry_by_source()  latest entry for a business record, or None
- journal_details()       flattened lines with optional account filters + totals
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal

from accounting.models.journal import JournalEntry
from accounting.models.journal_line import JournalLine
from accounting.services.exceptions import BalanceServiceError, NoJournalEntryError

ZERO = Decimal("0.00")


def _date_window(qs, *, start: date | None, end: date | None, prefix: str = ""):
    if start is not None and end is not None and start > end:
        raise BalanceServiceError("start must be on or before end")
    if start is not None:
        qs = qs.filter(**{f"{prefix}entry_date__gte": start})
    if end is not None:
        qs = qs.filter(**{f"{prefix}entry_date__lte": end})
    return qs


def list_entries(*, tenant, start: date | None = None, end: date | None = None, source_tag: str | None = None):
    qs = JournalEntry.objects.filter(tenant=tenant)
    qs = _date_window(qs, start=start, end=end)

    source_tag = (source_tag or "").strip()
    if source_tag:
        qs = qs.filter(source_tag=source_tag)

    return qs.order_by("-entry_date", "-fiscal_year", "-sequence_number")


def get_entry(*, tenant, entry_id) -> JournalEntry:
    entry = (
        JournalEntry.objects.filter(tenant=tenant, pk=entry_id)
        .prefetch_related("lines__account")
        .first()
    )
    if entry is None:
        raise NoJournalEntryError(f"Journal entry {entry_id} not found")
    return entry


def find_entry_by_source(*, tenant, source_tag: str, source_id) -> JournalEntry | None:
    source_tag = (source_tag or "").strip()
    source_id = str(source_id or "").strip()
    if not source_tag or not source_id:
        return None

    return (
        JournalEntry.objects.filter(
            tenant=tenant, source_tag=source_tag, source_id=source_id
        )
        .order_by("-created_at", "-pk")
        .first()
    )


def journal_details(
    *,
    tenant,
    start: date | None = None,
    end: date | None = None,
    account_prefix: str | None = None,
    account_code: str | None = None,
) -> dict:
    """
    Flattened journal lines, chronological.

    account_code wins over account_prefix when both are given.
    """
    qs = JournalLine.objects.filter(entry__tenant=tenant).select_related("entry", "account")
    qs = _date_window(qs, start=start, end=end, prefix="entry__")

    account_code = (account_code or "").strip()
    account_prefix = (account_prefix or "").strip()
    if account_code:
        qs = qs.filter(account__code=account_code)
    elif account_prefix:
        qs = qs.filter(account__code__startswith=account_prefix)

    rows = []
    total_debit = ZERO
    total_credit = ZERO

    for line in qs.order_by("entry__entry_date", "entry__fiscal_year", "entry__sequence_number", "line_no"):
        total_debit += line.debit
        total_credit += line.credit
        rows.append(
            {
                "entry_id": line.entry_id,
                "number": line.entry.number,
                "entry_date": line.entry.entry_date,
                "concept": line.entry.concept,
                "source_tag": line.entry.source_tag,
                "source_id": line.entry.source_id,
                "line_no": line.line_no,
                "account_code": line.account.code,
                "account_name": line.account.name,
                "debit": line.debit,
                "credit": line.credit,
                "memo": line.memo,
            }
        )

    return {
        "lines": rows,
        "totals": {"debit": total_debit, "credit": total_credit},
    }
