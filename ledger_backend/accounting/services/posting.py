# accounting/services/posting.py

"""
======================================================
PATH: accounting/services/posting.py
======================================================
POSTING ADAPTERS

Map business events -> journal lines, then post them through the
two-phase protocol (posting_intent_service.post_with_intent).

This module should remain a thin adapter:
- It DOES NOT persist business records (callers own those).
- It DOES decide which accounts a business event touches.
- It NEVER builds an unbalanced entry; if it cannot balance, it raises
  VALIDATION before anything is written.

Events:
- post_income()                 sale / service income (cash or on credit, optional discount)
- post_expense_payment()        expense paid by cash / bank / on account / card
- post_receivable_collection()  customer pays an open receivable
- post_supplier_payment()       we pay an open payable
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from accounting.services.account_ref import AccountRef
from accounting.services.account_resolver import (
    ACCOUNTS_PAYABLE,
    BANK,
    CASH,
    CREDIT_CARDS,
    OPERATING_EXPENSES,
    RECEIVABLES,
    SALES_DISCOUNT,
    SALES_REVENUE,
    semantic_ref,
)
from accounting.services.exceptions import PostingValidationError
from accounting.services.journal_entry_service import PostingResult
from accounting.services.posting_intent_service import post_with_intent

TWOPLACES = Decimal("0.01")
ZERO = Decimal("0.00")

SOURCE_INCOME = "income"
SOURCE_EXPENSE = "expense"
SOURCE_RECEIVABLE_COLLECTION = "receivable_collection"
SOURCE_SUPPLIER_PAYMENT = "supplier_payment"

PAYMENT_CASH = "cash"
PAYMENT_CREDIT = "credit"


def _money(v, *, field_name: str) -> Decimal:
    if v is None or v == "":
        return ZERO
    try:
        amt = Decimal(str(v))
    except (InvalidOperation, ValueError, TypeError) as exc:
        raise PostingValidationError(f"{field_name} must be a valid amount") from exc
    if not amt.is_finite():
        raise PostingValidationError(f"{field_name} must be a valid amount")
    return amt.quantize(TWOPLACES, rounding=ROUND_HALF_UP)


def _positive(v, *, field_name: str) -> Decimal:
    amt = _money(v, field_name=field_name)
    if amt <= ZERO:
        raise PostingValidationError(f"{field_name} must be > 0")
    return amt


def _resolve_ref_for_method(method: str) -> AccountRef:
    """
    Resolve the settlement account for a payment method.

    Mapping:
    - cash                  -> Cash
    - bank / transfer       -> Bank
    - credit / on_account   -> Accounts Payable
    - card / credit_card    -> Credit Cards Payable
    """
    m = (method or "").strip().lower()
    if m == "cash":
        return semantic_ref(CASH)
    if m in ("bank", "transfer"):
        return semantic_ref(BANK)
    if m in ("credit", "on_account"):
        return semantic_ref(ACCOUNTS_PAYABLE)
    if m in ("card", "credit_card"):
        return semantic_ref(CREDIT_CARDS)

    raise PostingValidationError(f"Unsupported payment method: {method!r}")


def _resolve_cash_or_bank(method: str) -> AccountRef:
    m = (method or "cash").strip().lower()
    if m == "cash":
        return semantic_ref(CASH)
    if m in ("bank", "transfer", "card"):
        return semantic_ref(BANK)
    raise PostingValidationError(f"Unsupported receipt method: {method!r}")


def _ref_or_default(code: str | None, semantic_key: str) -> AccountRef:
    code = (code or "").strip()
    return AccountRef.by_code(code) if code else semantic_ref(semantic_key)


def _debit(account, amount: Decimal, memo: str = "") -> dict:
    return {"account": account, "debit": amount, "credit": ZERO, "memo": memo}


def _credit(account, amount: Decimal, memo: str = "") -> dict:
    return {"account": account, "debit": ZERO, "credit": amount, "memo": memo}


# ============================================================
# INCOME
# ============================================================


def build_income_lines(
    *,
    total,
    discount=None,
    payment_type: str = PAYMENT_CASH,
    paid_amount=None,
    method: str = "cash",
    income_account_code: str | None = None,
) -> list[dict]:
    """
    total    gross amount before discount
    discount optional, 0 <= discount <= total
    net      total - discount

    cash   : DR cash/bank net
    credit : DR cash/bank paid (if any), DR receivables pending
    always : DR sales discount (if any), CR income total
    """
    total = _positive(total, field_name="total")
    discount = _money(discount, field_name="discount")
    if discount < ZERO or discount > total:
        raise PostingValidationError("discount must be between 0 and total")

    net = total - discount
    settlement = _resolve_cash_or_bank(method)
    payment_type = (payment_type or PAYMENT_CASH).strip().lower()

    lines: list[dict] = []

    if discount > ZERO:
        lines.append(_debit(semantic_ref(SALES_DISCOUNT), discount, "Discount"))

    if payment_type == PAYMENT_CASH:
        if net > ZERO:
            lines.append(_debit(settlement, net, "Collected"))
    elif payment_type == PAYMENT_CREDIT:
        paid = _money(paid_amount, field_name="paid_amount")
        if paid < ZERO or paid > net:
            raise PostingValidationError("paid_amount must be between 0 and the net amount")
        pending = net - paid
        if paid > ZERO:
            lines.append(_debit(settlement, paid, "Collected"))
        if pending > ZERO:
            lines.append(_debit(semantic_ref(RECEIVABLES), pending, "Pending collection"))
    else:
        raise PostingValidationError(f"Unsupported payment_type: {payment_type!r}")

    lines.append(_credit(_ref_or_default(income_account_code, SALES_REVENUE), total, "Income"))
    return lines


def post_income(
    *,
    tenant,
    income_id,
    entry_date,
    concept: str,
    total,
    discount=None,
    payment_type: str = PAYMENT_CASH,
    paid_amount=None,
    method: str = "cash",
    income_account_code: str | None = None,
) -> PostingResult:
    lines = build_income_lines(
        total=total,
        discount=discount,
        payment_type=payment_type,
        paid_amount=paid_amount,
        method=method,
        income_account_code=income_account_code,
    )
    return post_with_intent(
        tenant=tenant,
        entry_date=entry_date,
        concept=concept,
        source_tag=SOURCE_INCOME,
        source_id=income_id,
        lines=lines,
    )


# ============================================================
# EXPENSES
# ============================================================


def post_expense_payment(
    *,
    tenant,
    expense_id,
    entry_date,
    concept: str,
    amount,
    method: str = "cash",
    expense_account_code: str | None = None,
) -> PostingResult:
    amt = _positive(amount, field_name="amount")

    lines = [
        _debit(_ref_or_default(expense_account_code, OPERATING_EXPENSES), amt, concept),
        _credit(_resolve_ref_for_method(method), amt, concept),
    ]

    return post_with_intent(
        tenant=tenant,
        entry_date=entry_date,
        concept=concept,
        source_tag=SOURCE_EXPENSE,
        source_id=expense_id,
        lines=lines,
    )


# ============================================================
# RECEIVABLES / PAYABLES SETTLEMENT
# ============================================================


def post_receivable_collection(
    *,
    tenant,
    collection_id,
    entry_date,
    amount,
    method: str = "cash",
    concept: str = "",
) -> PostingResult:
    amt = _positive(amount, field_name="amount")
    concept = (concept or "").strip() or f"Receivable collection {collection_id}"

    lines = [
        _debit(_resolve_cash_or_bank(method), amt, concept),
        _credit(semantic_ref(RECEIVABLES), amt, concept),
    ]

    return post_with_intent(
        tenant=tenant,
        entry_date=entry_date,
        concept=concept,
        source_tag=SOURCE_RECEIVABLE_COLLECTION,
        source_id=collection_id,
        lines=lines,
    )


def post_supplier_payment(
    *,
    tenant,
    payment_id,
    entry_date,
    amount,
    method: str = "cash",
    concept: str = "",
) -> PostingResult:
    amt = _positive(amount, field_name="amount")
    concept = (concept or "").strip() or f"Supplier payment {payment_id}"

    lines = [
        _debit(semantic_ref(ACCOUNTS_PAYABLE), amt, concept),
        _credit(_resolve_cash_or_bank(method), amt, concept),
    ]

    return post_with_intent(
        tenant=tenant,
        entry_date=entry_date,
        concept=concept,
        source_tag=SOURCE_SUPPLIER_PAYMENT,
        source_id=payment_id,
        lines=lines,
    )
