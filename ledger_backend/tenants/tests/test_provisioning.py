# tenants/tests/test_provisioning.py

from io import StringIO

from django.core.exceptions import ValidationError
from django.core.management import call_command
from django.test import TestCase

from accounting.models import Account, ChartOfAccounts
from accounting.services.chart_service import DEFAULT_ACCOUNTS
from tenants.models import Tenant
from tenants.services.provisioning import provision_tenant


class ProvisionTenantTests(TestCase):
    def test_new_tenant_gets_default_chart(self):
        result = provision_tenant(name="Acme Shop", slug="  Acme ")

        self.assertTrue(result.tenant_created)
        self.assertEqual(result.tenant.slug, "acme")
        self.assertEqual(result.accounts_created, len(DEFAULT_ACCOUNTS))
        self.assertTrue(ChartOfAccounts.objects.filter(tenant=result.tenant).exists())

        codes = set(Account.objects.filter(tenant=result.tenant).values_list("code", flat=True))
        self.assertEqual(codes, {code for code, _, _ in DEFAULT_ACCOUNTS})

    def test_running_twice_changes_nothing(self):
        provision_tenant(name="Acme", slug="acme")
        again = provision_tenant(name="Acme", slug="acme")

        self.assertFalse(again.tenant_created)
        self.assertEqual((again.accounts_created, again.accounts_updated), (0, 0))
        self.assertEqual(Tenant.objects.count(), 1)

    def test_inactive_tenant_is_refused(self):
        tenant = provision_tenant(name="Acme", slug="acme").tenant
        tenant.is_active = False
        tenant.save()

        with self.assertRaises(ValidationError):
            provision_tenant(name="Acme", slug="acme")

    def test_slug_is_required(self):
        with self.assertRaises(ValidationError):
            provision_tenant(name="Nameless", slug=" ")

    def test_seed_command(self):
        out = StringIO()
        call_command("seed_default_chart", "--tenant", "corner-store", "--name", "Corner Store", stdout=out)

        tenant = Tenant.objects.get(slug="corner-store")
        self.assertEqual(tenant.name, "Corner Store")
        self.assertEqual(tenant.accounts.count(), len(DEFAULT_ACCOUNTS))
        self.assertIn("seeded", out.getvalue())

    def test_seed_command_reset(self):
        tenant = provision_tenant(name="Acme", slug="acme").tenant
        Account.objects.filter(tenant=tenant, code="1002").update(is_active=False)

        call_command("seed_default_chart", "--tenant", "acme", stdout=StringIO())
        self.assertFalse(Account.objects.get(tenant=tenant, code="1002").is_active)

        out = StringIO()
        call_command("seed_default_chart", "--tenant", "acme", "--reset", stdout=out)
        self.assertTrue(Account.objects.get(tenant=tenant, code="1002").is_active)
        self.assertIn("1 updated", out.getvalue())
