# accounting/models/account.py

from __future__ import annotations

from django.core.exceptions import ValidationError
from django.core.validators import RegexValidator
from django.db import models
from django.db.models import Q

from accounting.models.chart import ChartOfAccounts

# The first character drives the balance nature, so it must be a digit.
account_code_validator = RegexValidator(
    regex=r"^[0-9][0-9A-Za-z.\-]*$",
    message="Account code must start with a digit (e.g. 1001, 1001.01)",
)


class Account(models.Model):
    """
    Represents a single account within a tenant's Chart of Accounts.

    Guarantees:
    - Account codes are unique per tenant
    - Code + name are normalized (trimmed)
    - code and account_type are fixed once created
    - parent_code (sub-accounts) must point at an existing account of the same tenant
    """

    class AccountType(models.TextChoices):
        ASSET = "asset", "Asset"
        LIABILITY = "liability", "Liability"
        EQUITY = "equity", "Equity"
        INCOME = "income", "Income"
        EXPENSE = "expense", "Expense"
        MEMO = "memo", "Memo"

    tenant = models.ForeignKey(
        "tenants.Tenant",
        on_delete=models.PROTECT,
        related_name="accounts",
    )

    chart = models.ForeignKey(
        ChartOfAccounts,
        on_delete=models.PROTECT,
        related_name="accounts",
    )

    code = models.CharField(max_length=20, validators=[account_code_validator])
    name = models.CharField(max_length=150)

    account_type = models.CharField(
        max_length=20,
        choices=AccountType.choices,
    )

    parent_code = models.CharField(max_length=20, blank=True, default="")

    is_active = models.BooleanField(default=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["code"]
        verbose_name = "Account"
        verbose_name_plural = "Accounts"
        indexes = [
            models.Index(fields=["tenant", "code"]),
            models.Index(fields=["tenant", "account_type"]),
            models.Index(fields=["is_active"]),
        ]
        constraints = [
            models.UniqueConstraint(
                fields=["tenant", "code"],
                name="uniq_account_tenant_code",
            ),
            models.CheckConstraint(
                condition=~Q(code=""),
                name="chk_account_code_not_blank",
            ),
            models.CheckConstraint(
                condition=~Q(name=""),
                name="chk_account_name_not_blank",
            ),
        ]

    def __str__(self):
        return f"{self.code} – {self.name}"

    def clean(self):
        self.code = (self.code or "").strip()
        self.name = (self.name or "").strip()
        self.parent_code = (self.parent_code or "").strip()

        if not self.code:
            raise ValidationError("Account code is required")
        if not self.name:
            raise ValidationError("Account name is required")

        if self.chart_id and self.tenant_id and self.chart.tenant_id != self.tenant_id:
            raise ValidationError("Account chart belongs to a different tenant")

        if not self._state.adding:
            prev = (
                Account.objects.filter(pk=self.pk)
                .values("code", "account_type")
                .first()
            )
            if prev and prev["code"] != self.code:
                raise ValidationError({"code": "Account code cannot be changed"})
            if prev and prev["account_type"] != self.account_type:
                raise ValidationError(
                    {"account_type": "Account type cannot be changed"}
                )

        if self.parent_code:
            if self.parent_code == self.code:
                raise ValidationError(
                    {"parent_code": "An account cannot be its own parent"}
                )
            if not Account.objects.filter(
                tenant_id=self.tenant_id, code=self.parent_code
            ).exists():
                raise ValidationError(
                    {"parent_code": f"Parent account {self.parent_code} does not exist"}
                )

    def save(self, *args, **kwargs):
        if self.chart_id and not self.tenant_id:
            self.tenant_id = self.chart.tenant_id

        self.full_clean()
        return super().save(*args, **kwargs)
