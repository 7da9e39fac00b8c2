# accounting/models/counter.py

"""
JOURNAL COUNTER

Source of truth for journal sequence numbers.

Rules:
- Keyed by (tenant, key), e.g. key="journal-2026"
- seq is ONLY mutated through sequence_service.next_sequence()
  (single UPDATE ... SET seq = seq + 1, never read-then-write)
"""

from __future__ import annotations

from django.db import models


class Counter(models.Model):
    tenant = models.ForeignKey(
        "tenants.Tenant",
        on_delete=models.PROTECT,
        related_name="counters",
    )

    key = models.CharField(max_length=64)
    seq = models.PositiveBigIntegerField(default=0)

    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        constraints = [
            models.UniqueConstraint(
                fields=["tenant", "key"],
                name="uniq_counter_tenant_key",
            ),
        ]

    def __str__(self):
        return f"{self.key}={self.seq}"
