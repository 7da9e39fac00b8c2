# tenants/models/__init__.py

from tenants.models.tenant import Tenant

__all__ = ["Tenant"]
