# accounting/management/commands/seed_default_chart.py

from django.core.management.base import BaseCommand, CommandError

from tenants.services.provisioning import provision_tenant


class Command(BaseCommand):
    help = "Provision a tenant (if needed) and seed its default Chart of Accounts"

    def add_arguments(self, parser):
        parser.add_argument("--tenant", dest="slug", required=True, help="Tenant slug")
        parser.add_argument("--name", dest="name", default="", help="Tenant name (new tenants only)")
        parser.add_argument(
            "--reset",
            action="store_true",
            help="Restore default account names and re-activate deactivated defaults",
        )

    def handle(self, *args, **options):
        slug = (options.get("slug") or "").strip().lower()
        if not slug:
            raise CommandError("--tenant is required")

        self.stdout.write(f"Seeding default Chart of Accounts for '{slug}'...")

        result = provision_tenant(
            name=options.get("name") or slug,
            slug=slug,
            reset_defaults=options.get("reset", False),
        )

        state = "created" if result.tenant_created else "existing"
        self.stdout.write(
            self.style.SUCCESS(
                f"✔ Tenant '{result.tenant.slug}' ({state}) seeded "
                f"({result.accounts_created} new accounts, {result.accounts_updated} updated)."
            )
        )
