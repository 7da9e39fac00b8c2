# inventory/admin.py

from django.contrib import admin

from inventory.models import InventoryMovement, Product


@admin.register(Product)
class ProductAdmin(admin.ModelAdmin):
    list_display = ("sku", "name", "tenant", "purchase_cost", "sale_price", "is_active")
    list_filter = ("is_active", "tenant")
    search_fields = ("sku", "name")
    ordering = ("tenant", "name")
    readonly_fields = ("created_at", "updated_at")


@admin.register(InventoryMovement)
class InventoryMovementAdmin(admin.ModelAdmin):
    """
    Movements are created and canceled through valuation_service only.
    """

    list_display = (
        "movement_date",
        "product",
        "movement_type",
        "quantity",
        "total_cost",
        "status",
        "journal_entry",
        "reversal_entry",
        "tenant",
    )
    list_filter = ("movement_type", "status", "tenant")
    search_fields = ("product__sku", "product__name", "note")
    ordering = ("-movement_date", "-created_at")

    def has_add_permission(self, request, obj=None):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False
