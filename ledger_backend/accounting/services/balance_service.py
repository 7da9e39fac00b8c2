# accounting/services/balance_service.py

"""
BALANCE & REPORTING SERVICE (AUTHORITATIVE)

Read-only ledger aggregation helpers.

RULES:
- READ-ONLY: no writes, ever
- JournalLine is the single source of truth
- Accounting timeline uses JournalEntry.entry_date
- Tenant-scoped: never mix tenants
- Sign convention comes from account_nature (first digit of the code),
  not from the stored account_type
- No snapshot isolation: a report may or may not include an entry posted
  while it runs

get_balances():
  opening = natural balance of entries dated < start
  period  = debit / credit sums of entries dated in [start, end]
  closing = opening + natural(period)
Every code seen in EITHER window is reported; requested codes with no
activity are zero-filled.
"""

from __future__ import annotations

from datetime import date
from decimal import ROUND_HALF_UP, Decimal

from django.db.models import Sum
from django.db.models.functions import Coalesce

from accounting.models.account import Account
from accounting.models.journal_line import JournalLine
from accounting.services.account_nature import nature_for_code, natural_balance
from accounting.services.exceptions import BalanceServiceError

TWOPLACES = Decimal("0.01")
ZERO = Decimal("0.00")


def _q2(v) -> Decimal:
    return Decimal(str(v or "0.00")).quantize(TWOPLACES, rounding=ROUND_HALF_UP)


def _require_tenant(tenant) -> None:
    if tenant is None or getattr(tenant, "pk", None) is None:
        raise BalanceServiceError("tenant is required")


def _require_date(value, *, field_name: str) -> date:
    if not isinstance(value, date):
        raise BalanceServiceError(f"{field_name} must be a date")
    return value


def _normalize_codes(codes) -> list[str] | None:
    if codes is None:
        return None
    if isinstance(codes, str):
        codes = [codes]
    out = [str(c).strip() for c in codes if str(c or "").strip()]
    return list(dict.fromkeys(out))


def _lines_for_tenant(*, tenant, codes: list[str] | None):
    qs = JournalLine.objects.filter(entry__tenant=tenant)
    if codes is not None:
        qs = qs.filter(account__code__in=codes)
    return qs


def _sums_by_code(qs) -> dict[str, tuple[Decimal, Decimal]]:
    rows = qs.order_by().values("account__code").annotate(
        debit_total=Coalesce(Sum("debit"), ZERO),
        credit_total=Coalesce(Sum("credit"), ZERO),
    )
    return {
        r["account__code"]: (_q2(r["debit_total"]), _q2(r["credit_total"]))
        for r in rows
    }


def get_balances(*, tenant, start, end, codes=None) -> dict[str, dict]:
    _require_tenant(tenant)
    start = _require_date(start, field_name="start")
    end = _require_date(end, field_name="end")
    if start > end:
        raise BalanceServiceError("start must be on or before end")

    wanted = _normalize_codes(codes)
    lines = _lines_for_tenant(tenant=tenant, codes=wanted)

    historical = _sums_by_code(lines.filter(entry__entry_date__lt=start))
    period = _sums_by_code(
        lines.filter(entry__entry_date__gte=start, entry__entry_date__lte=end)
    )

    all_codes = set(historical) | set(period)
    if wanted:
        all_codes |= set(wanted)

    names = dict(
        Account.objects.filter(tenant=tenant, code__in=all_codes).values_list("code", "name")
    )

    results: dict[str, dict] = {}
    for code in sorted(all_codes):
        h_debit, h_credit = historical.get(code, (ZERO, ZERO))
        p_debit, p_credit = period.get(code, (ZERO, ZERO))

        opening = _q2(natural_balance(code, h_debit, h_credit))
        closing = _q2(opening + natural_balance(code, p_debit, p_credit))

        results[code] = {
            "code": code,
            "name": names.get(code, ""),
            "nature": nature_for_code(code),
            "opening": opening,
            "period_debit": p_debit,
            "period_credit": p_credit,
            "closing": closing,
        }

    return results


def get_account_balance(*, tenant, code: str, as_of: date | None = None) -> Decimal:
    """
    Natural balance of one account, optionally up to (and including) as_of.
    """
    _require_tenant(tenant)
    code = (code or "").strip()
    if not code:
        raise BalanceServiceError("Account code is required")

    qs = _lines_for_tenant(tenant=tenant, codes=[code])
    if as_of is not None:
        qs = qs.filter(entry__entry_date__lte=_require_date(as_of, field_name="as_of"))

    debit, credit = _sums_by_code(qs).get(code, (ZERO, ZERO))
    return _q2(natural_balance(code, debit, credit))


def get_trial_balance(*, tenant, as_of: date | None = None) -> dict:
    """
    Bulk trial balance (no N+1).

    Every account of the tenant's chart is listed (active or not, so
    historical activity on deactivated accounts still shows up).
    """
    _require_tenant(tenant)

    accounts = list(
        Account.objects.filter(tenant=tenant)
        .only("id", "code", "name", "account_type")
        .order_by("code")
    )

    qs = JournalLine.objects.filter(entry__tenant=tenant)
    if as_of is not None:
        qs = qs.filter(entry__entry_date__lte=_require_date(as_of, field_name="as_of"))

    rows = qs.order_by().values("account_id").annotate(
        debit_total=Coalesce(Sum("debit"), ZERO),
        credit_total=Coalesce(Sum("credit"), ZERO),
    )
    totals_by_id = {
        r["account_id"]: (_q2(r["debit_total"]), _q2(r["credit_total"])) for r in rows
    }

    results = []
    total_debit = ZERO
    total_credit = ZERO

    for acc in accounts:
        debit, credit = totals_by_id.get(acc.id, (ZERO, ZERO))
        total_debit += debit
        total_credit += credit

        results.append(
            {
                "account_id": acc.id,
                "code": acc.code,
                "name": acc.name,
                "account_type": acc.account_type,
                "nature": nature_for_code(acc.code),
                "debit_total": debit,
                "credit_total": credit,
                "balance": _q2(natural_balance(acc.code, debit, credit)),
            }
        )

    total_debit = _q2(total_debit)
    total_credit = _q2(total_credit)

    return {
        "as_of": as_of,
        "accounts": results,
        "totals": {
            "debit": total_debit,
            "credit": total_credit,
            "balanced": total_debit == total_credit,
        },
    }
