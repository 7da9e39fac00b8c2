# accounting/apps.py

"""
ACCOUNTING APP CONFIG

Double-entry ledger core:
- Chart of accounts (tenant-scoped)
- Journal entries + lines (append-only)
- Journal counters (per tenant + fiscal year)
- Posting intents (two-phase posting for external business records)
"""

from django.apps import AppConfig


class AccountingConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "accounting"
    verbose_name = "Accounting"
