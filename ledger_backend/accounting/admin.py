# accounting/admin.py

from django.contrib import admin

from accounting.models import (
    Account,
    ChartOfAccounts,
    Counter,
    JournalEntry,
    JournalLine,
    PostingIntent,
)


class ReadOnlyAdminMixin:
    def has_add_permission(self, request, obj=None):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


# ============================================================
# CHART OF ACCOUNTS
# ============================================================


@admin.register(ChartOfAccounts)
class ChartOfAccountsAdmin(admin.ModelAdmin):
    list_display = ("name", "tenant", "created_at", "updated_at")
    search_fields = ("name", "tenant__slug")
    readonly_fields = ("created_at", "updated_at")
    ordering = ("name",)


# ============================================================
# ACCOUNT
# ============================================================


@admin.register(Account)
class AccountAdmin(admin.ModelAdmin):
    list_display = ("code", "name", "account_type", "parent_code", "tenant", "is_active")
    list_filter = ("account_type", "is_active", "tenant")
    search_fields = ("code", "name")
    ordering = ("tenant", "code")
    readonly_fields = ("created_at", "updated_at")

    fieldsets = (
        ("Account Identity", {"fields": ("tenant", "chart", "code", "name", "account_type", "parent_code")}),
        ("Status", {"fields": ("is_active",)}),
        ("System Fields", {"fields": ("created_at", "updated_at")}),
    )

    def get_readonly_fields(self, request, obj=None):
        if obj is not None:
            return self.readonly_fields + ("tenant", "chart", "code", "account_type")
        return self.readonly_fields


# ============================================================
# JOURNAL (STRICTLY IMMUTABLE)
# ============================================================


class JournalLineInline(ReadOnlyAdminMixin, admin.TabularInline):
    model = JournalLine
    extra = 0
    fields = ("line_no", "account", "debit", "credit", "memo")
    readonly_fields = fields
    ordering = ("line_no",)


@admin.register(JournalEntry)
class JournalEntryAdmin(ReadOnlyAdminMixin, admin.ModelAdmin):
    list_display = ("number", "entry_date", "concept", "source_tag", "source_id", "tenant", "reversal_of")
    list_filter = ("source_tag", "entry_date", "tenant")
    search_fields = ("number", "concept", "source_id")
    ordering = ("-entry_date", "-sequence_number")
    inlines = [JournalLineInline]
    readonly_fields = (
        "tenant",
        "number",
        "fiscal_year",
        "sequence_number",
        "entry_date",
        "concept",
        "source_tag",
        "source_id",
        "reversal_of",
        "created_at",
    )


@admin.register(Counter)
class CounterAdmin(ReadOnlyAdminMixin, admin.ModelAdmin):
    list_display = ("tenant", "key", "seq", "updated_at")
    list_filter = ("tenant",)


@admin.register(PostingIntent)
class PostingIntentAdmin(ReadOnlyAdminMixin, admin.ModelAdmin):
    list_display = ("source_tag", "source_id", "status", "journal_entry", "tenant", "created_at")
    list_filter = ("status", "source_tag", "tenant")
    search_fields = ("source_id",)
    ordering = ("-created_at",)
