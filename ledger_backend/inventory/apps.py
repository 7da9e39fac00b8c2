# inventory/apps.py

"""
INVENTORY APP CONFIG

Inventory valuation engine:
- Products (purchase cost, sale price)
- Inventory movements (inbound / outbound / adjustment) with per-movement cost
- Ledger posting + reversal on cancellation
"""

from django.apps import AppConfig


class InventoryConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "inventory"
    verbose_name = "Inventory"
