# inventory/tests/test_valuation.py

from __future__ import annotations

from datetime import date
from decimal import Decimal

from django.core.exceptions import ValidationError
from django.test import TestCase

from accounting.models import JournalEntry
from accounting.services.balance_service import get_account_balance
from accounting.services.chart_service import deactivate_account
from accounting.services.exceptions import UnknownAccountError
from accounting.services.journal_entry_service import post_entry
from inventory.models import InventoryMovement, Product
from inventory.services.exceptions import (
    InventoryValidationError,
    MovementAlreadyCanceledError,
    MovementNotFoundError,
)
from inventory.services.valuation_service import (
    INVENTORY_SOURCE_TAG,
    NO_OWNED_ENTRY_WARNING,
    ZERO_COST_WARNING,
    cancel_movement,
    get_movement_entry,
    get_stock,
    get_valuation,
    list_movements,
    record_movement,
    resolve_cost,
)
from tenants.services.provisioning import provision_tenant


def _rows(entry_id):
    return list(
        JournalEntry.objects.get(pk=entry_id)
        .lines.order_by("line_no")
        .values_list("account__code", "debit", "credit")
    )


class InventoryTestBase(TestCase):
    def setUp(self):
        self.tenant = provision_tenant(name="Acme", slug="acme").tenant
        self.product = Product.objects.create(
            tenant=self.tenant,
            sku="WID-1",
            name="Widget",
            purchase_cost=Decimal("4.00"),
            sale_price=Decimal("9.00"),
        )

    def _inbound(self, qty=10, unit_cost="5.00", **kwargs):
        return record_movement(
            tenant=self.tenant,
            movement_type="inbound",
            product=self.product,
            quantity=qty,
            unit_cost=unit_cost,
            movement_date=date(2024, 3, 1),
            **kwargs,
        )


class ResolveCostTests(InventoryTestBase):
    def test_priority(self):
        self.assertEqual(
            resolve_cost(product=self.product, quantity=4, unit_cost="2.50", total_cost="100"),
            (Decimal("2.5000"), Decimal("10.00")),
        )
        self.assertEqual(
            resolve_cost(product=self.product, quantity=4, total_cost="10.00"),
            (Decimal("2.5000"), Decimal("10.00")),
        )
        self.assertEqual(
            resolve_cost(product=self.product, quantity=-3),
            (Decimal("4.0000"), Decimal("12.00")),
        )

    def test_zero_unit_cost_falls_through(self):
        self.assertEqual(
            resolve_cost(product=self.product, quantity=2, unit_cost="0", total_cost="7.00"),
            (Decimal("3.5000"), Decimal("7.00")),
        )

    def test_negative_cost_is_rejected(self):
        with self.assertRaises(InventoryValidationError) as ctx:
            resolve_cost(product=self.product, quantity=2, unit_cost="-1")
        self.assertEqual(ctx.exception.code, "VALIDATION")


class RecordMovementTests(InventoryTestBase):
    def test_inbound_posts_inventory_against_cash(self):
        result = self._inbound()

        movement = InventoryMovement.objects.get(pk=result.movement_id)
        self.assertEqual(movement.total_cost, Decimal("50.00"))
        self.assertEqual(movement.journal_entry_id, result.entry_id)
        self.assertIsNone(result.warning)

        entry = JournalEntry.objects.get(pk=result.entry_id)
        self.assertEqual(entry.source_tag, INVENTORY_SOURCE_TAG)
        self.assertEqual(entry.source_id, result.movement_id)
        self.assertEqual(
            _rows(result.entry_id),
            [
                ("1201", Decimal("50.00"), Decimal("0.00")),
                ("1001", Decimal("0.00"), Decimal("50.00")),
            ],
        )

    def test_inbound_settlement_follows_payment_terms(self):
        for terms, code in (("bank", "1002"), ("credit", "2001")):
            with self.subTest(terms=terms):
                result = self._inbound(qty=1, unit_cost="3.00", payment_terms=terms)
                self.assertEqual(_rows(result.entry_id)[1][0], code)

    def test_outbound_posts_cogs(self):
        self._inbound()
        result = record_movement(
            tenant=self.tenant,
            movement_type="outbound",
            product=self.product,
            quantity=4,
            unit_cost="5.00",
            movement_date=date(2024, 3, 2),
        )

        self.assertEqual(
            _rows(result.entry_id),
            [
                ("5001", Decimal("20.00"), Decimal("0.00")),
                ("1201", Decimal("0.00"), Decimal("20.00")),
            ],
        )
        self.assertEqual(get_stock(tenant=self.tenant, product=self.product), 6)
        self.assertEqual(get_account_balance(tenant=self.tenant, code="1201"), Decimal("30.00"))

    def test_adjustment_changes_stock_without_posting(self):
        self._inbound()
        result = record_movement(
            tenant=self.tenant,
            movement_type="adjustment",
            product=self.product,
            quantity=-2,
        )

        self.assertIsNone(result.entry_id)
        self.assertEqual(get_stock(tenant=self.tenant, product=self.product), 8)
        self.assertEqual(JournalEntry.objects.filter(tenant=self.tenant).count(), 1)

    def test_zero_cost_records_movement_with_warning(self):
        free = Product.objects.create(tenant=self.tenant, sku="FREE", name="Sample")

        result = record_movement(
            tenant=self.tenant,
            movement_type="inbound",
            product=free,
            quantity=3,
        )

        self.assertIsNone(result.entry_id)
        self.assertEqual(result.warning, ZERO_COST_WARNING)
        self.assertEqual(get_stock(tenant=self.tenant, product=free), 3)
        self.assertFalse(JournalEntry.objects.exists())

    def test_unknown_account_persists_nothing(self):
        deactivate_account(tenant=self.tenant, code="1201")

        with self.assertRaises(UnknownAccountError):
            self._inbound()

        self.assertFalse(InventoryMovement.objects.exists())
        self.assertFalse(JournalEntry.objects.exists())

    def test_input_validation(self):
        cases = [
            {"movement_type": "teleport", "quantity": 1},
            {"movement_type": "inbound", "quantity": 0},
            {"movement_type": "outbound", "quantity": -1},
            {"movement_type": "adjustment", "quantity": 0},
            {"movement_type": "inbound", "quantity": "x"},
            {"movement_type": "inbound", "quantity": 1, "payment_terms": "barter"},
            {"movement_type": "inbound", "quantity": 1, "unit_cost": "-3"},
        ]
        for kwargs in cases:
            with self.subTest(kwargs=kwargs):
                with self.assertRaises(InventoryValidationError):
                    record_movement(tenant=self.tenant, product=self.product, **kwargs)

        self.assertFalse(InventoryMovement.objects.exists())

    def test_fractional_quantity_is_rejected(self):
        for quantity in (2.5, "2.5", Decimal("1.1"), float("nan")):
            with self.subTest(quantity=quantity):
                with self.assertRaises(InventoryValidationError) as ctx:
                    self._inbound(qty=quantity)
                self.assertEqual(ctx.exception.code, "VALIDATION")

        self.assertFalse(InventoryMovement.objects.exists())
        self.assertFalse(JournalEntry.objects.filter(tenant=self.tenant).exists())

    def test_integral_quantity_in_other_forms_is_accepted(self):
        for quantity in ("3", 3.0, Decimal("3.00")):
            with self.subTest(quantity=quantity):
                recorded = self._inbound(qty=quantity)
                self.assertEqual(InventoryMovement.objects.get(pk=recorded.movement_id).quantity, 3)

    def test_product_of_another_tenant_is_rejected(self):
        other = provision_tenant(name="Other", slug="other").tenant

        with self.assertRaises(InventoryValidationError):
            record_movement(tenant=other, movement_type="inbound", product=self.product, quantity=1)

    def test_movement_core_fields_are_immutable(self):
        movement = InventoryMovement.objects.get(pk=self._inbound().movement_id)

        movement.quantity = 99
        with self.assertRaises(ValidationError):
            movement.save()
        with self.assertRaises(ValidationError):
            movement.delete()


class CancelMovementTests(InventoryTestBase):
    def test_cancel_reverses_owned_entry_once(self):
        recorded = self._inbound()

        result = cancel_movement(tenant=self.tenant, movement_id=recorded.movement_id, reason="Wrong supplier")

        movement = InventoryMovement.objects.get(pk=recorded.movement_id)
        self.assertTrue(movement.is_canceled)
        self.assertEqual(movement.cancel_reason, "Wrong supplier")
        self.assertEqual(movement.reversal_entry_id, result.reversal_id)
        self.assertIsNotNone(movement.canceled_at)

        reversal = JournalEntry.objects.get(pk=result.reversal_id)
        self.assertEqual(reversal.reversal_of_id, recorded.entry_id)
        self.assertEqual(reversal.source_tag, "inventory_reversal")
        self.assertEqual(get_account_balance(tenant=self.tenant, code="1201"), Decimal("0.00"))
        self.assertEqual(get_stock(tenant=self.tenant, product=self.product), 0)

        with self.assertRaises(MovementAlreadyCanceledError):
            cancel_movement(tenant=self.tenant, movement_id=recorded.movement_id)

        self.assertEqual(
            JournalEntry.objects.filter(reversal_of_id=recorded.entry_id).count(), 1
        )

    def test_cancel_without_owned_entry_warns(self):
        recorded = record_movement(
            tenant=self.tenant,
            movement_type="adjustment",
            product=self.product,
            quantity=5,
        )

        result = cancel_movement(tenant=self.tenant, movement_id=recorded.movement_id)

        self.assertIsNone(result.reversal_id)
        self.assertEqual(result.warning, NO_OWNED_ENTRY_WARNING)
        self.assertTrue(InventoryMovement.objects.get(pk=recorded.movement_id).is_canceled)

    def test_foreign_entry_is_never_reversed(self):
        recorded = record_movement(
            tenant=self.tenant,
            movement_type="adjustment",
            product=self.product,
            quantity=5,
        )
        # an entry with the right source_id but another engine's tag
        post_entry(
            tenant=self.tenant,
            entry_date=date(2024, 3, 1),
            concept="Manual",
            source_tag="manual",
            source_id=recorded.movement_id,
            lines=[
                {"account": "1201", "debit": "1.00"},
                {"account": "3001", "credit": "1.00"},
            ],
        )

        result = cancel_movement(tenant=self.tenant, movement_id=recorded.movement_id)

        self.assertIsNone(result.reversal_id)
        self.assertFalse(JournalEntry.objects.filter(reversal_of__isnull=False).exists())

    def test_unknown_movement(self):
        other = provision_tenant(name="Other", slug="other").tenant
        recorded = self._inbound()

        with self.assertRaises(MovementNotFoundError):
            cancel_movement(tenant=other, movement_id=recorded.movement_id)


class MovementLookupTests(InventoryTestBase):
    def setUp(self):
        super().setUp()
        self.first = self._inbound(qty=10)
        self.second = record_movement(
            tenant=self.tenant,
            movement_type="outbound",
            product=self.product,
            quantity=2,
            unit_cost="5.00",
            movement_date=date(2024, 3, 5),
        )
        self.third = record_movement(
            tenant=self.tenant,
            movement_type="adjustment",
            product=self.product,
            quantity=-1,
            movement_date=date(2024, 3, 9),
        )
        cancel_movement(tenant=self.tenant, movement_id=self.second.movement_id)

    def _ids(self, **filters):
        return [str(m.id) for m in list_movements(tenant=self.tenant, **filters)]

    def test_filters(self):
        first, second, third = (
            self.first.movement_id,
            self.second.movement_id,
            self.third.movement_id,
        )
        cases = [
            ({}, [first, second, third]),
            ({"movement_type": "outbound"}, [second]),
            ({"status": "active"}, [first, third]),
            ({"status": "CANCELED"}, [second]),
            ({"start": date(2024, 3, 5)}, [second, third]),
            ({"end": "2024-03-05"}, [first, second]),
            ({"start": date(2024, 3, 2), "end": date(2024, 3, 8)}, [second]),
            ({"movement_type": "adjustment", "status": "active"}, [third]),
        ]
        for filters, expected in cases:
            with self.subTest(filters=filters):
                self.assertEqual(self._ids(**filters), expected)

    def test_filter_by_product(self):
        other = Product.objects.create(tenant=self.tenant, sku="GAD-1", name="Gadget")
        record_movement(tenant=self.tenant, movement_type="adjustment", product=other, quantity=4)

        self.assertEqual(len(self._ids(product=other)), 1)
        self.assertEqual(len(self._ids(product=self.product)), 3)

    def test_other_tenant_sees_nothing(self):
        other = provision_tenant(name="Other", slug="other").tenant
        self.assertEqual(list(list_movements(tenant=other)), [])

    def test_invalid_filters(self):
        for filters in (
            {"movement_type": "teleport"},
            {"status": "lost"},
            {"start": "March"},
            {"start": date(2024, 3, 9), "end": date(2024, 3, 1)},
        ):
            with self.subTest(filters=filters):
                with self.assertRaises(InventoryValidationError) as ctx:
                    list_movements(tenant=self.tenant, **filters)
                self.assertEqual(ctx.exception.code, "VALIDATION")

    def test_entry_of_posted_movement(self):
        entry = get_movement_entry(tenant=self.tenant, movement_id=self.first.movement_id)
        self.assertEqual(entry.pk, self.first.entry_id)

    def test_unposted_movement_has_no_entry(self):
        self.assertIsNone(get_movement_entry(tenant=self.tenant, movement_id=self.third.movement_id))

    def test_entry_found_by_source_when_not_linked(self):
        posted = post_entry(
            tenant=self.tenant,
            entry_date=date(2024, 3, 9),
            concept="Shrinkage",
            source_tag=INVENTORY_SOURCE_TAG,
            source_id=self.third.movement_id,
            lines=[
                {"account": "5001", "debit": "5.00"},
                {"account": "1201", "credit": "5.00"},
            ],
        )

        entry = get_movement_entry(tenant=self.tenant, movement_id=self.third.movement_id)
        self.assertEqual(entry.pk, posted.entry_id)

    def test_foreign_entry_is_not_returned(self):
        post_entry(
            tenant=self.tenant,
            entry_date=date(2024, 3, 9),
            concept="Manual",
            source_tag="manual",
            source_id=self.third.movement_id,
            lines=[
                {"account": "1201", "debit": "1.00"},
                {"account": "3001", "credit": "1.00"},
            ],
        )

        self.assertIsNone(get_movement_entry(tenant=self.tenant, movement_id=self.third.movement_id))

    def test_unknown_movement(self):
        other = provision_tenant(name="Other", slug="other").tenant

        with self.assertRaises(MovementNotFoundError) as ctx:
            get_movement_entry(tenant=other, movement_id=self.first.movement_id)
        self.assertEqual(ctx.exception.code, "NOT_FOUND")


class ValuationTests(InventoryTestBase):
    def test_average_of_active_inbound_movements(self):
        self._inbound(qty=10, unit_cost="5.00")
        self._inbound(qty=10, unit_cost="7.00")
        record_movement(
            tenant=self.tenant,
            movement_type="outbound",
            product=self.product,
            quantity=5,
            unit_cost="6.00",
        )

        valuation = get_valuation(tenant=self.tenant, product=self.product)

        self.assertEqual(valuation["stock"], 15)
        self.assertEqual(valuation["average_cost"], Decimal("6.0000"))
        self.assertEqual(valuation["value"], Decimal("90.00"))

    def test_canceled_movements_are_excluded(self):
        self._inbound(qty=10, unit_cost="5.00")
        expensive = self._inbound(qty=10, unit_cost="9.00")
        cancel_movement(tenant=self.tenant, movement_id=expensive.movement_id)

        valuation = get_valuation(tenant=self.tenant, product=self.product)

        self.assertEqual(valuation["stock"], 10)
        self.assertEqual(valuation["value"], Decimal("50.00"))

    def test_no_inbound_means_zero_value(self):
        valuation = get_valuation(tenant=self.tenant, product=self.product)
        self.assertEqual(valuation["stock"], 0)
        self.assertEqual(valuation["value"], Decimal("0.00"))
