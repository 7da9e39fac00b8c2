# accounting/services/chart_service.py

"""
======================================================
PATH: accounting/services/chart_service.py
======================================================
CHART OF ACCOUNTS SERVICE

- seed_default_chart(): idempotent default chart for a tenant.
  Creates missing default accounts and leaves existing ones alone, so a
  deactivated or renamed default account stays that way. reset=True
  restores the default name and re-activates it (type never changes).
- create_account() / deactivate_account() / list_accounts()

Accounts are never deleted: journal lines PROTECT them. Deactivated
accounts cannot receive new postings (resolver treats them as unknown).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from django.core.exceptions import ValidationError
from django.db import IntegrityError, transaction

from accounting.models.account import Account
from accounting.models.chart import ChartOfAccounts
from accounting.services.exceptions import (
    AccountingServiceError,
    PostingValidationError,
    UnknownAccountError,
)

logger = logging.getLogger(__name__)

DEFAULT_CHART_NAME = "Default Chart"

DEFAULT_ACCOUNTS = [
    ("1001", "Cash", Account.AccountType.ASSET),
    ("1002", "Banks", Account.AccountType.ASSET),
    ("1101", "Customers", Account.AccountType.ASSET),
    ("1201", "Inventory", Account.AccountType.ASSET),
    ("2001", "Accounts Payable", Account.AccountType.LIABILITY),
    ("2101", "Credit Cards Payable", Account.AccountType.LIABILITY),
    ("3001", "Capital", Account.AccountType.EQUITY),
    ("4001", "Sales", Account.AccountType.INCOME),
    ("4002", "Sales Discounts", Account.AccountType.INCOME),
    ("5001", "Cost of Sales", Account.AccountType.EXPENSE),
    ("6001", "Operating Expenses", Account.AccountType.EXPENSE),
    ("7001", "Taxes", Account.AccountType.EXPENSE),
]


@dataclass(frozen=True)
class SeedResult:
    chart: ChartOfAccounts
    created: int
    updated: int


def get_chart(*, tenant) -> ChartOfAccounts:
    chart, _ = ChartOfAccounts.objects.get_or_create(
        tenant=tenant,
        defaults={"name": DEFAULT_CHART_NAME},
    )
    return chart


@transaction.atomic
def seed_default_chart(*, tenant, reset: bool = False) -> SeedResult:
    chart = get_chart(tenant=tenant)

    created_count = 0
    updated_count = 0

    for code, name, account_type in DEFAULT_ACCOUNTS:
        acc, acc_created = Account.objects.get_or_create(
            tenant=tenant,
            code=code,
            defaults={
                "chart": chart,
                "name": name,
                "account_type": account_type,
                "is_active": True,
            },
        )

        if acc_created:
            created_count += 1
            continue
        if not reset:
            continue

        needs_update = False
        if acc.name != name:
            acc.name = name
            needs_update = True
        if not acc.is_active:
            acc.is_active = True
            needs_update = True

        if needs_update:
            acc.save(update_fields=["name", "is_active", "updated_at"])
            updated_count += 1
            logger.info(
                "Default account reset",
                extra={"tenant": str(tenant.pk), "code": code},
            )

    return SeedResult(chart=chart, created=created_count, updated=updated_count)


def create_account(
    *,
    tenant,
    code: str,
    name: str,
    account_type: str,
    parent_code: str = "",
) -> Account:
    if account_type not in Account.AccountType.values:
        raise PostingValidationError(f"Invalid account_type: {account_type!r}")

    code = (code or "").strip()
    if Account.objects.filter(tenant=tenant, code=code).exists():
        raise AccountingServiceError(f"Account code {code} already exists for this tenant")

    try:
        with transaction.atomic():
            acc = Account.objects.create(
                tenant=tenant,
                chart=get_chart(tenant=tenant),
                code=code,
                name=name,
                account_type=account_type,
                parent_code=parent_code or "",
            )
    except ValidationError as exc:
        raise PostingValidationError("; ".join(exc.messages)) from exc
    except IntegrityError as exc:
        raise AccountingServiceError(
            f"Account code {code} already exists for this tenant"
        ) from exc

    logger.info(
        "Account created",
        extra={"tenant": str(tenant.pk), "code": acc.code, "account_type": acc.account_type},
    )
    return acc


def deactivate_account(*, tenant, code: str) -> Account:
    acc = Account.objects.filter(tenant=tenant, code=(code or "").strip()).first()
    if acc is None:
        raise UnknownAccountError(f"Unknown account code: {code}", missing=[code])

    if acc.is_active:
        acc.is_active = False
        acc.save(update_fields=["is_active", "updated_at"])
        logger.info(
            "Account deactivated",
            extra={"tenant": str(tenant.pk), "code": acc.code},
        )
    return acc


def list_accounts(*, tenant, active_only: bool = False):
    qs = Account.objects.filter(tenant=tenant)
    if active_only:
        qs = qs.filter(is_active=True)
    return qs.order_by("code")
