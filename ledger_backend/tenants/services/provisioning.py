# tenants/services/provisioning.py

"""
======================================================
PATH: tenants/services/provisioning.py
======================================================
TENANT PROVISIONING

provision_tenant() is the single entrypoint for bringing a tenant online:
- Creates (or fetches) the Tenant by slug
- Seeds the default Chart of Accounts (idempotent; existing accounts are
  left untouched unless reset_defaults=True)

Safe to run multiple times.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from django.core.exceptions import ValidationError
from django.db import transaction

from accounting.services.chart_service import seed_default_chart
from tenants.models import Tenant

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProvisioningResult:
    tenant: Tenant
    tenant_created: bool
    accounts_created: int
    accounts_updated: int


@transaction.atomic
def provision_tenant(*, name: str, slug: str, reset_defaults: bool = False) -> ProvisioningResult:
    slug = (slug or "").strip().lower()
    name = (name or "").strip()
    if not slug:
        raise ValidationError("slug is required")

    tenant, created = Tenant.objects.get_or_create(
        slug=slug,
        defaults={"name": name or slug},
    )

    if not tenant.is_active:
        raise ValidationError(f"Tenant '{slug}' is inactive")

    seeded = seed_default_chart(tenant=tenant, reset=reset_defaults)

    logger.info(
        "Tenant provisioned",
        extra={
            "tenant": tenant.slug,
            "tenant_created": created,
            "accounts_created": seeded.created,
            "accounts_updated": seeded.updated,
        },
    )

    return ProvisioningResult(
        tenant=tenant,
        tenant_created=created,
        accounts_created=seeded.created,
        accounts_updated=seeded.updated,
    )
