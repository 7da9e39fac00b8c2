# tenants/apps.py

"""
TENANTS APP CONFIG

Every ledger record (chart, accounts, entries, counters, inventory)
is scoped to exactly one Tenant.
"""

from django.apps import AppConfig


class TenantsConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "tenants"
    verbose_name = "Tenants"
