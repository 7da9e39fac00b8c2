# accounting/models/chart.py

from __future__ import annotations

from django.core.exceptions import ValidationError
from django.db import models


class ChartOfAccounts(models.Model):
    """
    The Chart of Accounts of ONE tenant.

    Rules:
    - Exactly one chart per tenant (OneToOne).
    - Accounts hang off the chart; the tenant FK on Account is kept in sync
      so tenant-scoped uniqueness can be enforced by the database.
    """

    tenant = models.OneToOneField(
        "tenants.Tenant",
        on_delete=models.PROTECT,
        related_name="chart",
    )

    name = models.CharField(max_length=100)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = "Chart of Accounts"
        verbose_name_plural = "Charts of Accounts"
        ordering = ["name"]

    def __str__(self):
        return f"{self.name} ({self.tenant_id})"

    def clean(self):
        self.name = (self.name or "").strip()
        if not self.name:
            raise ValidationError({"name": "Chart name is required"})

    def save(self, *args, **kwargs):
        self.full_clean()
        return super().save(*args, **kwargs)
