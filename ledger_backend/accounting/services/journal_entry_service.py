# accounting/services/journal_entry_service.py

"""
======================================================
PATH: accounting/services/journal_entry_service.py
======================================================
JOURNAL ENTRY SERVICE (LEDGER POSTER)

This module is the ONLY place allowed to:
- Create JournalEntry
- Create JournalLine
- Enforce debit == credit
- Draw a journal sequence number
- Guarantee atomicity

Everything else (income/expense adapters, inventory, reversals) must pass
through post_entry().

Order of checks (nothing is written until all pass):
1) VALIDATION        shape of input, amounts, one side per line
2) IMBALANCED_ENTRY  Σdebit vs Σcredit (cent-rounded)
3) UNKNOWN_ACCOUNT   every ref resolves in the tenant's chart
4) sequence number + header + lines in ONE transaction

RULES:
- Never auto-balances, never merges or drops lines.
- Does not touch the originating business record (caller's job).
- Creation failures surface to the caller; nothing is retried here.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from django.db import transaction
from django.utils import timezone
from django.utils.dateparse import parse_date

from accounting.models.journal import JournalEntry
from accounting.models.journal_line import JournalLine
from accounting.services.account_ref import AccountRef
from accounting.services.account_resolver import resolve_accounts
from accounting.services.exceptions import (
    ImbalancedEntryError,
    PostingValidationError,
)
from accounting.services.sequence_service import format_entry_number, next_sequence

logger = logging.getLogger(__name__)

TWOPLACES = Decimal("0.01")
ZERO = Decimal("0.00")
BALANCE_TOLERANCE = Decimal("0.01")
MEMO_MAX_LENGTH = 255
SOURCE_TAG_MAX_LENGTH = 64
SOURCE_ID_MAX_LENGTH = 128
# JournalLine debit/credit columns are max_digits=14, decimal_places=2.
MAX_LINE_AMOUNT = Decimal("999999999999.99")


@dataclass(frozen=True)
class PostingResult:
    entry_id: int
    sequence_number: int
    number: str
    fiscal_year: int


def _money(value, *, field_name: str) -> Decimal:
    if value is None or value == "":
        return ZERO
    if isinstance(value, bool):
        raise PostingValidationError(f"Invalid money value for {field_name}: {value!r}")

    if isinstance(value, Decimal):
        amt = value
    else:
        try:
            amt = Decimal(str(value))
        except (InvalidOperation, ValueError, TypeError) as exc:
            raise PostingValidationError(
                f"Invalid money value for {field_name}: {value!r}"
            ) from exc

    if not amt.is_finite():
        raise PostingValidationError(f"Invalid money value for {field_name}: {value!r}")

    try:
        return amt.quantize(TWOPLACES, rounding=ROUND_HALF_UP)
    except InvalidOperation as exc:
        raise PostingValidationError(f"Money value out of range for {field_name}: {value!r}") from exc


def _as_date(value) -> date:
    if isinstance(value, datetime):
        if timezone.is_aware(value):
            return timezone.localtime(value).date()
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        parsed = parse_date(value.strip())
        if parsed is not None:
            return parsed
    raise PostingValidationError(f"Invalid entry date: {value!r}")


def _require_text(value, *, field_name: str, max_length: int | None = None) -> str:
    text = str(value or "").strip()
    if not text:
        raise PostingValidationError(f"{field_name} is required")
    _check_length(text, field_name=field_name, max_length=max_length)
    return text


def _check_length(text: str, *, field_name: str, max_length: int | None) -> None:
    if max_length is not None and len(text) > max_length:
        raise PostingValidationError(
            f"{field_name} is longer than {max_length} characters ({len(text)})"
        )


def _normalize_lines(lines) -> list[dict]:
    if not isinstance(lines, (list, tuple)) or not lines:
        raise PostingValidationError("Journal entry must contain at least one line")

    normalized: list[dict] = []
    for idx, line in enumerate(lines, start=1):
        if not isinstance(line, dict):
            raise PostingValidationError(f"Line {idx}: each line must be a dict")

        if line.get("account") is None:
            raise PostingValidationError(f"Line {idx}: account is required")
        ref = AccountRef.coerce(line["account"])

        debit = _money(line.get("debit"), field_name=f"line {idx} debit")
        credit = _money(line.get("credit"), field_name=f"line {idx} credit")

        if debit < 0 or credit < 0:
            raise PostingValidationError(f"Line {idx}: debit or credit cannot be negative")
        if debit > 0 and credit > 0:
            raise PostingValidationError(f"Line {idx}: a line cannot have both debit and credit")
        if debit == 0 and credit == 0:
            raise PostingValidationError(f"Line {idx}: a line must have either debit or credit")
        if max(debit, credit) > MAX_LINE_AMOUNT:
            raise PostingValidationError(f"Line {idx}: amount exceeds {MAX_LINE_AMOUNT}")

        memo = str(line.get("memo") or "").strip()[:MEMO_MAX_LENGTH]

        normalized.append({"ref": ref, "debit": debit, "credit": credit, "memo": memo})

    return normalized


def _assert_balanced(normalized: list[dict]) -> tuple[Decimal, Decimal]:
    total_debit = sum((ln["debit"] for ln in normalized), ZERO)
    total_credit = sum((ln["credit"] for ln in normalized), ZERO)

    if abs(total_debit - total_credit) >= BALANCE_TOLERANCE:
        raise ImbalancedEntryError(
            f"Journal entry not balanced: debits={total_debit} credits={total_credit}",
            total_debit=total_debit,
            total_credit=total_credit,
        )
    return total_debit, total_credit


def post_entry(
    *,
    tenant,
    entry_date,
    concept: str,
    source_tag: str,
    source_id="",
    lines: list,
    reversal_of: JournalEntry | None = None,
    allow_inactive_accounts: bool = False,
) -> PostingResult:
    if tenant is None or getattr(tenant, "pk", None) is None:
        raise PostingValidationError("tenant is required")

    entry_day = _as_date(entry_date)
    concept = _require_text(concept, field_name="concept")
    source_tag = _require_text(
        source_tag, field_name="source_tag", max_length=SOURCE_TAG_MAX_LENGTH
    )
    source_id = str(source_id or "").strip()
    _check_length(source_id, field_name="source_id", max_length=SOURCE_ID_MAX_LENGTH)

    normalized = _normalize_lines(lines)
    total_debit, _ = _assert_balanced(normalized)

    accounts = resolve_accounts(
        tenant=tenant,
        refs=[ln["ref"] for ln in normalized],
        include_inactive=allow_inactive_accounts,
    )

    year = entry_day.year

    with transaction.atomic():
        seq = next_sequence(tenant=tenant, year=year)
        number = format_entry_number(year, seq)

        entry = JournalEntry.objects.create(
            tenant=tenant,
            entry_date=entry_day,
            concept=concept,
            source_tag=source_tag,
            source_id=source_id,
            fiscal_year=year,
            sequence_number=seq,
            number=number,
            reversal_of=reversal_of,
        )

        JournalLine.objects.bulk_create(
            [
                JournalLine(
                    entry=entry,
                    line_no=line_no,
                    account=accounts[ln["ref"]],
                    debit=ln["debit"],
                    credit=ln["credit"],
                    memo=ln["memo"],
                )
                for line_no, ln in enumerate(normalized, start=1)
            ]
        )

    logger.info(
        "Journal entry posted",
        extra={
            "tenant": str(tenant.pk),
            "entry_id": entry.pk,
            "number": number,
            "source_tag": source_tag,
            "source_id": source_id,
            "amount": str(total_debit),
            "lines": len(normalized),
        },
    )

    return PostingResult(
        entry_id=entry.pk,
        sequence_number=seq,
        number=number,
        fiscal_year=year,
    )
