# inventory/services/valuation_service.py

"""
======================================================
PATH: inventory/services/valuation_service.py
======================================================
INVENTORY VALUATION ENGINE

record_movement()  -> movement + (optionally) its journal entry, one transaction
cancel_movement()  -> reversal of the OWNED entry + status CANCELED
get_stock()        -> Σinbound - Σoutbound + Σadjustment (ACTIVE movements)
get_valuation()    -> stock × average inbound cost (ACTIVE inbound movements)
list_movements()   -> filtered movement list (type, status, product, date window)
get_movement_entry() -> the OWNED journal entry of a movement, or None

Cost rules:
- unit cost priority: explicit unit_cost -> total_cost / quantity -> product.purchase_cost
- cost is re-derived per movement; there is NO running cost layer, so an
  outbound movement is costed with its own resolved unit cost
- resulting cost must be >= 0; a zero-cost movement posts no entry (warning)

Ledger lines:
- INBOUND : DR Inventory / CR Cash | Bank | Accounts Payable (payment_terms)
- OUTBOUND: DR COGS      / CR Inventory
- ADJUSTMENT: quantity only, never posted

Ownership:
- An entry belongs to this engine iff source_tag == "inventory" and
  source_id == str(movement.id). Only owned entries are ever reversed.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from django.db import transaction
from django.db.models import Case, F, IntegerField, Sum, When
from django.db.models.functions import Coalesce
from django.utils import timezone
from django.utils.dateparse import parse_date

from accounting.services.account_resolver import (
    ACCOUNTS_PAYABLE,
    BANK,
    CASH,
    COGS,
    INVENTORY,
    resolve_accounts,
    semantic_ref,
)
from accounting.services.journal_entry_service import post_entry
from accounting.services.journal_query_service import find_entry_by_source
from accounting.services.reversal_service import reverse_entry
from inventory.models import InventoryMovement, Product
from inventory.services.exceptions import (
    InventoryValidationError,
    MovementAlreadyCanceledError,
    MovementNotFoundError,
)

logger = logging.getLogger(__name__)

INVENTORY_SOURCE_TAG = "inventory"

TWOPLACES = Decimal("0.01")
FOURPLACES = Decimal("0.0001")
ZERO = Decimal("0.00")

ZERO_COST_WARNING = "Movement has zero cost; no journal entry was posted"
NO_OWNED_ENTRY_WARNING = "Movement had no inventory journal entry; canceled without reversal"

PAYMENT_TERMS_TO_ROLE = {
    InventoryMovement.PaymentTerms.CASH: CASH,
    InventoryMovement.PaymentTerms.BANK: BANK,
    InventoryMovement.PaymentTerms.CREDIT: ACCOUNTS_PAYABLE,
}


@dataclass(frozen=True)
class MovementResult:
    movement_id: str
    entry_id: int | None = None
    warning: str | None = None


@dataclass(frozen=True)
class CancelResult:
    movement_id: str
    reversal_id: int | None = None
    warning: str | None = None


# ------------------------------------------------------------
# INPUT HELPERS
# ------------------------------------------------------------


def _to_int(value, *, field_name="value") -> int:
    if value is None or value == "":
        raise InventoryValidationError(f"{field_name} is required")
    if isinstance(value, bool):
        raise InventoryValidationError(f"{field_name} must be an integer")
    try:
        number = Decimal(str(value).strip())
    except (InvalidOperation, ValueError, TypeError) as exc:
        raise InventoryValidationError(f"{field_name} must be an integer") from exc
    # 2.5 must fail, not become 2.
    if not number.is_finite() or number != number.to_integral_value():
        raise InventoryValidationError(f"{field_name} must be an integer")
    return int(number)


def _to_optional_decimal(value, *, field_name="value") -> Decimal | None:
    if value is None or value == "":
        return None
    try:
        amt = Decimal(str(value))
    except (InvalidOperation, ValueError, TypeError) as exc:
        raise InventoryValidationError(f"{field_name} must be a valid decimal") from exc
    if not amt.is_finite():
        raise InventoryValidationError(f"{field_name} must be a valid decimal")
    if amt < 0:
        raise InventoryValidationError(f"{field_name} cannot be negative")
    return amt


def _require_tenant(tenant) -> None:
    if tenant is None or getattr(tenant, "pk", None) is None:
        raise InventoryValidationError("tenant is required")


def _get_product(*, tenant, product) -> Product:
    if isinstance(product, Product):
        if product.tenant_id != tenant.pk:
            raise InventoryValidationError("Product belongs to a different tenant")
        return product

    found = Product.objects.filter(tenant=tenant, pk=product).first() if product else None
    if found is None:
        raise InventoryValidationError(f"Unknown product: {product}")
    return found


def _validate_quantity(movement_type: str, quantity) -> int:
    qty = _to_int(quantity, field_name="quantity")
    if movement_type == InventoryMovement.MovementType.ADJUSTMENT:
        if qty == 0:
            raise InventoryValidationError("adjustment quantity must be non-zero")
    elif qty <= 0:
        raise InventoryValidationError("quantity must be greater than zero")
    return qty


# ------------------------------------------------------------
# COST RESOLUTION
# ------------------------------------------------------------


def resolve_cost(*, product: Product, quantity: int, unit_cost=None, total_cost=None) -> tuple[Decimal, Decimal]:
    """
    Returns (unit_cost, total_cost) for a movement of |quantity| units.
    """
    units = abs(int(quantity))
    if units == 0:
        raise InventoryValidationError("quantity must be non-zero")

    explicit_unit = _to_optional_decimal(unit_cost, field_name="unit_cost")
    explicit_total = _to_optional_decimal(total_cost, field_name="total_cost")

    if explicit_unit is not None and explicit_unit > 0:
        unit = explicit_unit
        total = explicit_unit * units
    elif explicit_total is not None and explicit_total > 0:
        unit = explicit_total / units
        total = explicit_total
    else:
        unit = Decimal(str(product.purchase_cost or "0"))
        total = unit * units

    if unit < 0 or total < 0:
        raise InventoryValidationError("Resolved cost cannot be negative")

    return (
        unit.quantize(FOURPLACES, rounding=ROUND_HALF_UP),
        total.quantize(TWOPLACES, rounding=ROUND_HALF_UP),
    )


def build_movement_lines(*, movement_type: str, total: Decimal, payment_terms: str, memo: str) -> list[dict]:
    if movement_type == InventoryMovement.MovementType.INBOUND:
        role = PAYMENT_TERMS_TO_ROLE.get(payment_terms)
        if role is None:
            raise InventoryValidationError(f"Unsupported payment_terms: {payment_terms!r}")
        return [
            {"account": semantic_ref(INVENTORY), "debit": total, "memo": memo},
            {"account": semantic_ref(role), "credit": total, "memo": memo},
        ]

    if movement_type == InventoryMovement.MovementType.OUTBOUND:
        return [
            {"account": semantic_ref(COGS), "debit": total, "memo": memo},
            {"account": semantic_ref(INVENTORY), "credit": total, "memo": memo},
        ]

    return []


# ------------------------------------------------------------
# RECORD / CANCEL
# ------------------------------------------------------------


def record_movement(
    *,
    tenant,
    movement_type: str,
    product,
    quantity,
    unit_cost=None,
    total_cost=None,
    payment_terms: str = InventoryMovement.PaymentTerms.CASH,
    movement_date=None,
    note: str = "",
) -> MovementResult:
    _require_tenant(tenant)

    movement_type = (movement_type or "").strip().lower()
    if movement_type not in InventoryMovement.MovementType.values:
        raise InventoryValidationError(f"Unsupported movement_type: {movement_type!r}")

    product = _get_product(tenant=tenant, product=product)
    qty = _validate_quantity(movement_type, quantity)
    unit, total = resolve_cost(
        product=product, quantity=qty, unit_cost=unit_cost, total_cost=total_cost
    )

    payment_terms = (payment_terms or "").strip().lower()
    if movement_type != InventoryMovement.MovementType.INBOUND:
        payment_terms = ""
    elif payment_terms not in PAYMENT_TERMS_TO_ROLE:
        raise InventoryValidationError(f"Unsupported payment_terms: {payment_terms!r}")

    movement_date = movement_date or timezone.localdate()
    memo = f"{product.name} x{abs(qty)} @ {unit}"

    lines = []
    warning = None
    if movement_type != InventoryMovement.MovementType.ADJUSTMENT:
        if total > ZERO:
            lines = build_movement_lines(
                movement_type=movement_type,
                total=total,
                payment_terms=payment_terms,
                memo=memo,
            )
            # Fail on UNKNOWN_ACCOUNT before the movement exists.
            resolve_accounts(tenant=tenant, refs=[ln["account"] for ln in lines])
        else:
            warning = ZERO_COST_WARNING

    with transaction.atomic():
        movement = InventoryMovement.objects.create(
            tenant=tenant,
            product=product,
            movement_date=movement_date,
            movement_type=movement_type,
            quantity=qty,
            unit_cost=unit,
            total_cost=total,
            payment_terms=payment_terms,
            note=(note or "").strip()[:255],
        )

        entry_id = None
        if lines:
            result = post_entry(
                tenant=tenant,
                entry_date=movement_date,
                concept=f"Inventory {movement_type}: {product.name}",
                source_tag=INVENTORY_SOURCE_TAG,
                source_id=str(movement.id),
                lines=lines,
            )
            entry_id = result.entry_id
            movement.journal_entry_id = entry_id
            movement.save(update_fields=["journal_entry"])

    if warning:
        logger.warning(
            "Inventory movement recorded without journal entry",
            extra={"tenant": str(tenant.pk), "movement_id": str(movement.id), "reason": warning},
        )

    return MovementResult(movement_id=str(movement.id), entry_id=entry_id, warning=warning)


def _owned_entry(*, tenant, movement: InventoryMovement):
    source_id = str(movement.id)

    linked = movement.journal_entry
    if (
        linked is not None
        and linked.tenant_id == tenant.pk
        and linked.source_tag == INVENTORY_SOURCE_TAG
        and linked.source_id == source_id
    ):
        return linked

    return find_entry_by_source(
        tenant=tenant, source_tag=INVENTORY_SOURCE_TAG, source_id=source_id
    )


def cancel_movement(*, tenant, movement_id, reason: str = "") -> CancelResult:
    _require_tenant(tenant)

    with transaction.atomic():
        movement = (
            InventoryMovement.objects.select_for_update()
            .filter(tenant=tenant, pk=movement_id)
            .first()
        )
        if movement is None:
            raise MovementNotFoundError(f"Inventory movement {movement_id} not found")

        if movement.is_canceled:
            raise MovementAlreadyCanceledError(
                f"Inventory movement {movement_id} is already canceled"
            )

        reversal_id = None
        warning = None

        entry = _owned_entry(tenant=tenant, movement=movement)
        if entry is not None:
            reversal_id = reverse_entry(tenant=tenant, entry_id=entry.pk).reversal_entry_id
            movement.reversal_entry_id = reversal_id
        else:
            warning = NO_OWNED_ENTRY_WARNING

        movement.status = InventoryMovement.Status.CANCELED
        movement.canceled_at = timezone.now()
        movement.cancel_reason = (reason or "").strip()[:255]
        movement.save(
            update_fields=["status", "canceled_at", "cancel_reason", "reversal_entry"]
        )

    log_extra = {
        "tenant": str(tenant.pk),
        "movement_id": str(movement.id),
        "reversal_id": reversal_id,
    }
    if warning:
        logger.warning("Inventory movement canceled without reversal", extra=log_extra)
    else:
        logger.info("Inventory movement canceled", extra=log_extra)

    return CancelResult(movement_id=str(movement.id), reversal_id=reversal_id, warning=warning)


# ------------------------------------------------------------
# MOVEMENT LOOKUPS
# ------------------------------------------------------------


def _to_optional_date(value, *, field_name: str) -> date | None:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    parsed = parse_date(str(value).strip())
    if parsed is None:
        raise InventoryValidationError(f"{field_name} must be a date (YYYY-MM-DD)")
    return parsed


def _choice(value, choices, *, field_name: str) -> str | None:
    value = (value or "").strip().lower()
    if not value:
        return None
    if value not in choices.values:
        raise InventoryValidationError(f"Unknown {field_name}: {value}")
    return value


def list_movements(
    *,
    tenant,
    movement_type=None,
    status=None,
    start=None,
    end=None,
    product=None,
):
    """
    Movements of one tenant, oldest first, optionally narrowed by type,
    status, product and an inclusive movement_date window.
    """
    _require_tenant(tenant)

    movement_type = _choice(
        movement_type, InventoryMovement.MovementType, field_name="movement type"
    )
    status = _choice(status, InventoryMovement.Status, field_name="status")
    start = _to_optional_date(start, field_name="start")
    end = _to_optional_date(end, field_name="end")
    if start is not None and end is not None and start > end:
        raise InventoryValidationError("start must be on or before end")

    qs = InventoryMovement.objects.filter(tenant=tenant).select_related("product")
    if movement_type:
        qs = qs.filter(movement_type=movement_type)
    if status:
        qs = qs.filter(status=status)
    if product is not None:
        qs = qs.filter(product=_get_product(tenant=tenant, product=product))
    if start is not None:
        qs = qs.filter(movement_date__gte=start)
    if end is not None:
        qs = qs.filter(movement_date__lte=end)

    return qs.order_by("movement_date", "created_at")


def get_movement_entry(*, tenant, movement_id):
    """
    The inventory journal entry of a movement, or None when it never posted
    one (adjustment, zero cost). Entries of other sources are never returned.
    """
    _require_tenant(tenant)

    movement = (
        InventoryMovement.objects.select_related("journal_entry")
        .filter(tenant=tenant, pk=movement_id)
        .first()
    )
    if movement is None:
        raise MovementNotFoundError(f"Inventory movement {movement_id} not found")

    return _owned_entry(tenant=tenant, movement=movement)


# ------------------------------------------------------------
# STOCK + VALUATION
# ------------------------------------------------------------


def _active_movements(*, tenant, product: Product):
    return InventoryMovement.objects.filter(
        tenant=tenant,
        product=product,
        status=InventoryMovement.Status.ACTIVE,
    )


def get_stock(*, tenant, product) -> int:
    _require_tenant(tenant)
    product = _get_product(tenant=tenant, product=product)

    agg = _active_movements(tenant=tenant, product=product).aggregate(
        stock=Coalesce(
            Sum(
                Case(
                    When(
                        movement_type=InventoryMovement.MovementType.OUTBOUND,
                        then=-F("quantity"),
                    ),
                    default=F("quantity"),
                    output_field=IntegerField(),
                )
            ),
            0,
        )
    )
    return int(agg["stock"] or 0)


def get_valuation(*, tenant, product) -> dict:
    """
    value = stock × (Σ inbound total_cost / Σ inbound quantity)

    No active inbound movements -> average cost 0 (value 0).
    """
    _require_tenant(tenant)
    product = _get_product(tenant=tenant, product=product)

    stock = get_stock(tenant=tenant, product=product)

    inbound = _active_movements(tenant=tenant, product=product).filter(
        movement_type=InventoryMovement.MovementType.INBOUND
    ).aggregate(
        qty=Coalesce(Sum("quantity"), 0),
        cost=Coalesce(Sum("total_cost"), ZERO),
    )

    inbound_qty = int(inbound["qty"] or 0)
    inbound_cost = Decimal(str(inbound["cost"] or "0"))

    average_cost = (inbound_cost / inbound_qty) if inbound_qty else ZERO
    value = Decimal(stock) * average_cost

    return {
        "product_id": str(product.pk),
        "stock": stock,
        "average_cost": average_cost.quantize(FOURPLACES, rounding=ROUND_HALF_UP),
        "value": value.quantize(TWOPLACES, rounding=ROUND_HALF_UP),
    }
