# accounting/services/cash_flow_service.py

"""
CASH FLOW SUMMARY (READ-ONLY)

Direct-method view over the cash-like accounts (CASH + BANK roles):

  opening  = balance of cash accounts before start
  inflows  = Σ debits to cash accounts in [start, end]
  outflows = Σ credits to cash accounts in [start, end]
  closing  = opening + inflows - outflows

movements lists every cash line of the period, chronologically, with the
entry that produced it.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal

from accounting.models.journal_line import JournalLine
from accounting.services.account_resolver import BANK, CASH, semantic_code
from accounting.services.balance_service import get_balances

ZERO = Decimal("0.00")


def cash_account_codes() -> list[str]:
    return [semantic_code(CASH), semantic_code(BANK)]


def get_cash_flow(*, tenant, start: date, end: date, codes=None) -> dict:
    codes = list(codes) if codes else cash_account_codes()

    balances = get_balances(tenant=tenant, start=start, end=end, codes=codes)

    opening = sum((b["opening"] for b in balances.values()), ZERO)
    inflows = sum((b["period_debit"] for b in balances.values()), ZERO)
    outflows = sum((b["period_credit"] for b in balances.values()), ZERO)

    lines = (
        JournalLine.objects.filter(
            entry__tenant=tenant,
            account__code__in=codes,
            entry__entry_date__gte=start,
            entry__entry_date__lte=end,
        )
        .select_related("entry", "account")
        .order_by("entry__entry_date", "entry__fiscal_year", "entry__sequence_number", "line_no")
    )

    movements = [
        {
            "entry_id": line.entry_id,
            "number": line.entry.number,
            "entry_date": line.entry.entry_date,
            "concept": line.entry.concept,
            "account_code": line.account.code,
            "inflow": line.debit,
            "outflow": line.credit,
        }
        for line in lines
    ]

    return {
        "start": start,
        "end": end,
        "accounts": codes,
        "opening": opening,
        "inflows": inflows,
        "outflows": outflows,
        "net": inflows - outflows,
        "closing": opening + inflows - outflows,
        "movements": movements,
    }
