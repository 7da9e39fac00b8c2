# accounting/services/sequence_service.py

"""
======================================================
PATH: accounting/services/sequence_service.py
======================================================
JOURNAL SEQUENCE GENERATOR

next_sequence(tenant=..., year=...) -> int

Guarantees:
- Counter key is "journal-<year>", scoped to the tenant
- Increment-and-fetch is a single UPDATE seq = seq + 1 (row lock held until
  the surrounding transaction ends), never read-then-write
- N concurrent callers get N distinct, strictly increasing numbers
- When called inside the posting transaction, a rolled-back entry rolls
  back its number too (no gaps)

First use of a key races on INSERT; the loser of the unique (tenant, key)
constraint falls back to the UPDATE path.
"""

from __future__ import annotations

from django.db import IntegrityError, transaction
from django.db.models import F

from accounting.models.counter import Counter
from accounting.services.exceptions import PostingValidationError


def journal_counter_key(year: int) -> str:
    return f"journal-{int(year)}"


def format_entry_number(year: int, seq: int) -> str:
    return f"{int(year)}-{int(seq):04d}"


def _increment(*, tenant, key: str) -> int:
    return Counter.objects.filter(tenant=tenant, key=key).update(seq=F("seq") + 1)


def next_sequence(*, tenant, year: int) -> int:
    if tenant is None or getattr(tenant, "pk", None) is None:
        raise PostingValidationError("tenant is required")
    if isinstance(year, bool) or not isinstance(year, int) or year < 1:
        raise PostingValidationError(f"Invalid year: {year!r}")

    key = journal_counter_key(year)

    with transaction.atomic():
        if not _increment(tenant=tenant, key=key):
            try:
                with transaction.atomic():
                    Counter.objects.create(tenant=tenant, key=key, seq=1)
                return 1
            except IntegrityError:
                _increment(tenant=tenant, key=key)

        return (
            Counter.objects.filter(tenant=tenant, key=key)
            .values_list("seq", flat=True)
            .get()
        )
