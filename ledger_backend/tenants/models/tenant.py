# tenants/models/tenant.py

import uuid

from django.core.exceptions import ValidationError
from django.db import models
from django.db.models import Q


class Tenant(models.Model):
    """
    Represents one business (bookkeeping owner).

    Guarantees:
    - slug is unique and normalized (lowercase, trimmed)
    - A tenant owns exactly one Chart of Accounts (seeded at provisioning)
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    name = models.CharField(max_length=255)
    slug = models.SlugField(max_length=64, unique=True)

    is_active = models.BooleanField(default=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["name"]
        constraints = [
            models.CheckConstraint(
                condition=~Q(slug=""),
                name="chk_tenant_slug_not_blank",
            ),
        ]

    def __str__(self):
        return f"{self.name} ({self.slug})"

    def clean(self):
        self.name = (self.name or "").strip()
        self.slug = (self.slug or "").strip().lower()

        if not self.name:
            raise ValidationError({"name": "Tenant name is required"})
        if not self.slug:
            raise ValidationError({"slug": "Tenant slug is required"})

    def save(self, *args, **kwargs):
        self.full_clean()
        return super().save(*args, **kwargs)
