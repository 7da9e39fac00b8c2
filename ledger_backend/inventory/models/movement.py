# inventory/models/movement.py

"""
INVENTORY MOVEMENT

One stock event for one product, with its own cost.

GUARANTEES:
- Created ONCE; quantity / cost / product / date never change afterwards
- Only the status + ledger-link fields may be updated, and status goes
  ACTIVE -> CANCELED exactly once (terminal)
- Never deleted (cancellation is the only undo)

Quantity sign:
- INBOUND / OUTBOUND: quantity > 0 (direction comes from the type)
- ADJUSTMENT: signed, non-zero (+ found stock, - shrinkage)
"""

import uuid

from django.core.exceptions import ValidationError
from django.db import models
from django.db.models import Q

from .product import Product


class InventoryMovement(models.Model):
    class MovementType(models.TextChoices):
        INBOUND = "inbound", "Inbound (purchase)"
        OUTBOUND = "outbound", "Outbound (sale)"
        ADJUSTMENT = "adjustment", "Adjustment"

    class Status(models.TextChoices):
        ACTIVE = "active", "Active"
        CANCELED = "canceled", "Canceled"

    class PaymentTerms(models.TextChoices):
        CASH = "cash", "Cash"
        BANK = "bank", "Bank"
        CREDIT = "credit", "On credit (accounts payable)"

    # Fields that may change after creation (cancellation + ledger linking).
    MUTABLE_FIELDS = frozenset(
        {"status", "journal_entry", "reversal_entry", "cancel_reason", "canceled_at"}
    )

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    tenant = models.ForeignKey(
        "tenants.Tenant",
        on_delete=models.PROTECT,
        related_name="inventory_movements",
    )

    product = models.ForeignKey(
        Product,
        on_delete=models.PROTECT,
        related_name="movements",
    )

    movement_date = models.DateField()
    movement_type = models.CharField(max_length=16, choices=MovementType.choices)

    quantity = models.IntegerField()

    unit_cost = models.DecimalField(max_digits=14, decimal_places=4)
    total_cost = models.DecimalField(max_digits=14, decimal_places=2)

    payment_terms = models.CharField(
        max_length=16,
        choices=PaymentTerms.choices,
        blank=True,
        default="",
        help_text="Settlement account selector for INBOUND movements.",
    )

    status = models.CharField(
        max_length=16,
        choices=Status.choices,
        default=Status.ACTIVE,
        db_index=True,
    )

    journal_entry = models.ForeignKey(
        "accounting.JournalEntry",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="+",
    )
    reversal_entry = models.ForeignKey(
        "accounting.JournalEntry",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="+",
    )

    note = models.CharField(max_length=255, blank=True, default="")
    cancel_reason = models.CharField(max_length=255, blank=True, default="")
    canceled_at = models.DateTimeField(null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["movement_date", "created_at"]
        indexes = [
            models.Index(fields=["tenant", "product", "status"]),
            models.Index(fields=["tenant", "movement_date"]),
            models.Index(fields=["movement_type"]),
        ]
        constraints = [
            models.CheckConstraint(
                condition=(
                    Q(movement_type="adjustment", quantity__lt=0)
                    | Q(quantity__gt=0)
                ),
                name="chk_movement_quantity_sign",
            ),
            models.CheckConstraint(
                condition=Q(unit_cost__gte=0) & Q(total_cost__gte=0),
                name="chk_movement_cost_non_negative",
            ),
        ]

    def clean(self):
        if self.quantity is None or self.quantity == 0:
            raise ValidationError("quantity must be non-zero")
        if self.movement_type != self.MovementType.ADJUSTMENT and self.quantity < 0:
            raise ValidationError(f"{self.movement_type} quantity must be greater than zero")

        if self.product_id and self.tenant_id and self.product.tenant_id != self.tenant_id:
            raise ValidationError("Product belongs to a different tenant")

        if self.unit_cost is not None and self.unit_cost < 0:
            raise ValidationError("unit_cost cannot be negative")
        if self.total_cost is not None and self.total_cost < 0:
            raise ValidationError("total_cost cannot be negative")

    def save(self, *args, **kwargs):
        if self._state.adding:
            self.full_clean()
            return super().save(*args, **kwargs)

        update_fields = kwargs.get("update_fields")
        if not update_fields or not set(update_fields) <= self.MUTABLE_FIELDS:
            raise ValidationError(
                "InventoryMovement is immutable except for status and ledger links"
            )

        prev_status = (
            InventoryMovement.objects.filter(pk=self.pk)
            .values_list("status", flat=True)
            .first()
        )
        if prev_status == self.Status.CANCELED:
            raise ValidationError("Canceled movements cannot be modified")

        return super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise ValidationError(
            "InventoryMovement records are immutable and cannot be deleted"
        )

    @property
    def signed_quantity(self) -> int:
        if self.movement_type == self.MovementType.OUTBOUND:
            return -int(self.quantity)
        return int(self.quantity)

    @property
    def is_canceled(self) -> bool:
        return self.status == self.Status.CANCELED

    def __str__(self):
        product_name = getattr(self.product, "name", "Product")
        return f"{product_name} | {self.movement_type} | {self.quantity} [{self.status}]"
