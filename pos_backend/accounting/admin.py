# accounting/admin.py

from django.contrib import admin, messages
from django.core.exceptions import ValidationError

from accounting.models.account import Account
from accounting.models.fiscal_year import FiscalYear
from accounting.models.journal import JournalEntry, JournalLine
from accounting.models.recurring import RecurringJournalEntry, RecurringJournalEntryLine
from accounting.services.exceptions import AccountingServiceError
from accounting.services.fiscal_years import close_fiscal_year
from accounting.services.ledger_service import post_entry, reverse_entry, void_entry
from accounting.services.recurring_service import run_now, toggle_active


def _run_each(modeladmin, request, queryset, action, verb: str) -> None:
    """Apply `action` per object; one failure does not stop the batch."""
    done = 0
    for obj in queryset:
        try:
            action(obj)
            done += 1
        except (AccountingServiceError, ValidationError) as exc:
            modeladmin.message_user(request, f"Could not {verb} {obj}: {exc}", level=messages.ERROR)

    if done:
        modeladmin.message_user(request, f"{verb.capitalize()}: {done} item(s)", level=messages.SUCCESS)


# ============================================================
# ACCOUNT
# ============================================================


@admin.register(Account)
class AccountAdmin(admin.ModelAdmin):
    list_display = (
        "code",
        "name",
        "name_local",
        "account_type",
        "subtype",
        "is_primary",
        "is_system",
        "is_active",
    )
    list_filter = ("account_type", "subtype", "is_system", "is_active")
    search_fields = ("code", "name", "name_local")
    ordering = ("code",)
    readonly_fields = ("is_system", "created_at", "updated_at")

    fieldsets = (
        (
            "Account Identity",
            {
                "fields": ("code", "name", "name_local", "description"),
            },
        ),
        (
            "Classification",
            {
                "fields": ("account_type", "subtype", "is_primary"),
            },
        ),
        (
            "Balance & Status",
            {
                "fields": ("opening_balance", "is_active", "is_system"),
            },
        ),
        (
            "System Fields",
            {
                "fields": ("created_at", "updated_at"),
            },
        ),
    )

    def get_actions(self, request):
        # Bulk delete bypasses Account.delete() (system account guard).
        actions = super().get_actions(request)
        actions.pop("delete_selected", None)
        return actions

    def has_delete_permission(self, request, obj=None):
        if obj is not None and obj.is_system:
            return False
        return super().has_delete_permission(request, obj)


# ============================================================
# FISCAL YEAR
# ============================================================


@admin.register(FiscalYear)
class FiscalYearAdmin(admin.ModelAdmin):
    list_display = ("name", "start_date", "end_date", "is_current", "is_closed", "closed_at")
    list_filter = ("is_closed", "is_current")
    search_fields = ("name",)
    ordering = ("-start_date",)
    readonly_fields = ("is_closed", "closed_at", "closed_by", "closing_entry", "created_at", "updated_at")
    actions = ("close_selected",)

    @admin.action(description="Close selected fiscal years")
    def close_selected(self, request, queryset):
        _run_each(
            self,
            request,
            queryset.filter(is_closed=False).order_by("start_date"),
            lambda fy: close_fiscal_year(fy, actor=request.user),
            "close",
        )

    def has_delete_permission(self, request, obj=None):
        return False


# ============================================================
# JOURNAL ENTRY (HISTORY IS READ-ONLY)
# ============================================================


class JournalLineInline(admin.TabularInline):
    model = JournalLine
    extra = 0
    fields = ("line_order", "account", "description", "debit", "credit")
    readonly_fields = fields
    ordering = ("line_order", "id")

    def has_add_permission(self, request, obj=None):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


@admin.register(JournalEntry)
class JournalEntryAdmin(admin.ModelAdmin):
    list_display = (
        "entry_number",
        "entry_date",
        "description",
        "reference",
        "source",
        "status",
        "total_debit",
        "total_credit",
    )
    list_filter = ("status", "source", "fiscal_year", "entry_date")
    search_fields = ("entry_number", "description", "reference", "source_id")
    ordering = ("-entry_date", "-entry_number")
    inlines = (JournalLineInline,)
    actions = ("post_selected", "void_selected", "reverse_selected")

    readonly_fields = (
        "entry_number",
        "entry_date",
        "fiscal_year",
        "reference",
        "description",
        "status",
        "source",
        "source_type",
        "source_id",
        "idempotency_key",
        "created_by",
        "posted_by",
        "posted_at",
        "voided_by",
        "voided_at",
        "void_reason",
        "total_debit",
        "total_credit",
        "created_at",
    )

    @admin.action(description="Post selected draft entries")
    def post_selected(self, request, queryset):
        _run_each(
            self,
            request,
            queryset.filter(status=JournalEntry.DRAFT),
            lambda entry: post_entry(entry, actor=request.user),
            "post",
        )

    @admin.action(description="Void selected entries")
    def void_selected(self, request, queryset):
        _run_each(
            self,
            request,
            queryset.exclude(status=JournalEntry.VOID),
            lambda entry: void_entry(entry, reason="Voided from admin", actor=request.user),
            "void",
        )

    @admin.action(description="Reverse selected posted entries")
    def reverse_selected(self, request, queryset):
        _run_each(
            self,
            request,
            queryset.filter(status=JournalEntry.POSTED),
            lambda entry: reverse_entry(entry, actor=request.user),
            "reverse",
        )

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


# ============================================================
# RECURRING TEMPLATES
# ============================================================


class RecurringJournalEntryLineInline(admin.TabularInline):
    model = RecurringJournalEntryLine
    extra = 2
    fields = ("line_order", "account", "description", "debit", "credit")
    ordering = ("line_order", "id")


@admin.register(RecurringJournalEntry)
class RecurringJournalEntryAdmin(admin.ModelAdmin):
    list_display = (
        "name",
        "frequency",
        "next_run_date",
        "last_run_date",
        "occurrences",
        "max_occurrences",
        "is_active",
    )
    list_filter = ("frequency", "is_active")
    search_fields = ("name", "description")
    ordering = ("next_run_date",)
    readonly_fields = ("last_run_date", "occurrences", "created_at", "updated_at")
    inlines = (RecurringJournalEntryLineInline,)
    actions = ("run_selected_now", "toggle_selected")

    @admin.action(description="Run selected templates now")
    def run_selected_now(self, request, queryset):
        _run_each(
            self,
            request,
            queryset,
            lambda template: run_now(template, actor=request.user),
            "run",
        )

    @admin.action(description="Toggle active / inactive")
    def toggle_selected(self, request, queryset):
        _run_each(self, request, queryset, toggle_active, "toggle")

    def save_model(self, request, obj, form, change):
        if not change and obj.created_by_id is None:
            obj.created_by = request.user
        super().save_model(request, obj, form, change)
