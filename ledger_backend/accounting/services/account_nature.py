# accounting/services/account_nature.py

"""
ACCOUNT NATURE (SIGN CONVENTION)

The ONLY place that decides whether an account reads debit-positive or
credit-positive. Classification is by the first character of the code:

    1 assets, 5 costs, 6 expenses      -> DEBIT  (balance = debit - credit)
    2 liabilities, 3 equity, 4 income  -> CREDIT (balance = credit - debit)

Any other leading digit (7 taxes, 8/9 memo) falls back to DEBIT.
"""

from __future__ import annotations

from decimal import Decimal

DEBIT = "debit"
CREDIT = "credit"

NATURE_BY_FIRST_DIGIT = {
    "1": DEBIT,
    "2": CREDIT,
    "3": CREDIT,
    "4": CREDIT,
    "5": DEBIT,
    "6": DEBIT,
}

DEFAULT_NATURE = DEBIT


def nature_for_code(code: str) -> str:
    code = (code or "").strip()
    if not code:
        return DEFAULT_NATURE
    return NATURE_BY_FIRST_DIGIT.get(code[0], DEFAULT_NATURE)


def natural_balance(code: str, debit: Decimal, credit: Decimal) -> Decimal:
    if nature_for_code(code) == CREDIT:
        return credit - debit
    return debit - credit
