# accounting/services/account_resolver.py

"""
PATH: accounting/services/account_resolver.py

ACCOUNT RESOLVER (AUTHORITATIVE)

This module answers two questions:
1) "Which code plays this role?"  (semantic key -> code, from settings)
2) "Which Account rows do these refs point at?"  (tenant-scoped, bulk)

Design goals:
- deterministic
- tenant-safe (never resolves across tenants)
- hard-fail on missing setup (so we don't post to wrong accounts)
- one query per ref kind (no N+1 when resolving a whole entry)
"""

from __future__ import annotations

import logging
from typing import Iterable

from django.conf import settings

from accounting.models.account import Account
from accounting.services.account_ref import AccountRef
from accounting.services.exceptions import (
    AccountResolutionError,
    UnknownAccountError,
)

logger = logging.getLogger(__name__)

# Semantic roles used by posting adapters and the inventory engine.
CASH = "CASH"
BANK = "BANK"
RECEIVABLES = "RECEIVABLES"
INVENTORY = "INVENTORY"
ACCOUNTS_PAYABLE = "ACCOUNTS_PAYABLE"
CREDIT_CARDS = "CREDIT_CARDS"
SALES_REVENUE = "SALES_REVENUE"
SALES_DISCOUNT = "SALES_DISCOUNT"
COGS = "COGS"
OPERATING_EXPENSES = "OPERATING_EXPENSES"


def semantic_code(semantic_key: str) -> str:
    semantic_key = (semantic_key or "").strip().upper()
    if not semantic_key:
        raise AccountResolutionError("semantic_key is required")

    codes = getattr(settings, "LEDGER_ACCOUNT_CODES", {}) or {}
    code = (codes.get(semantic_key) or "").strip()
    if not code:
        raise AccountResolutionError(
            f"Missing mapping for semantic key '{semantic_key}'. "
            "Set LEDGER_ACCOUNT_CODES (or LEDGER_CODE_<KEY>) in settings."
        )
    return code


def semantic_ref(semantic_key: str) -> AccountRef:
    return AccountRef.by_code(semantic_code(semantic_key))


def resolve_accounts(
    *,
    tenant,
    refs: Iterable[AccountRef],
    include_inactive: bool = False,
) -> dict[AccountRef, Account]:
    """
    Resolve every ref against the tenant's chart.

    Raises UnknownAccountError listing ALL missing refs (not just the first),
    so callers can fix a whole entry in one pass.
    """
    refs = list(dict.fromkeys(refs))
    codes = [r.code for r in refs if r.code is not None]
    ids = [r.account_id for r in refs if r.account_id is not None]

    base = Account.objects.filter(tenant=tenant)
    if not include_inactive:
        base = base.filter(is_active=True)

    by_code = {a.code: a for a in base.filter(code__in=codes)} if codes else {}
    by_id = {a.pk: a for a in base.filter(pk__in=ids)} if ids else {}

    resolved: dict[AccountRef, Account] = {}
    missing: list[AccountRef] = []

    for ref in refs:
        acc = by_code.get(ref.code) if ref.code is not None else by_id.get(ref.account_id)
        if acc is None:
            missing.append(ref)
        else:
            resolved[ref] = acc

    if missing:
        labels = ", ".join(str(r) for r in missing)
        logger.error(
            "Account resolution failed",
            extra={"tenant": str(getattr(tenant, "pk", tenant)), "missing": labels},
        )
        raise UnknownAccountError(
            f"Unknown or inactive account(s) for tenant: {labels}",
            missing=missing,
        )

    return resolved


def get_account(*, tenant, ref, include_inactive: bool = False) -> Account:
    ref = AccountRef.coerce(ref)
    return resolve_accounts(tenant=tenant, refs=[ref], include_inactive=include_inactive)[ref]


def get_account_by_semantic_key(*, tenant, semantic_key: str) -> Account:
    return get_account(tenant=tenant, ref=semantic_ref(semantic_key))
