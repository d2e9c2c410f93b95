from django.contrib import admin
from ..models import ChartOfAccount


# Register `ChartOfAccount` model
@admin.register(ChartOfAccount)
class ChartOfAccountAdmin(admin.ModelAdmin):
    # show key accounting fields
    list_display = ("code", "name", "type", "subtype", "balance", "is_active")
    list_filter = ("type", "is_active")
    search_fields = ("code", "name", "subtype")
    ordering = ("code",)
    # balance is maintained by postings and the nightly task
    readonly_fields = ("balance",)
    fieldsets = (
        (
            None,
            {
                "fields": (
                    "code",
                    "name",
                    "type",
                    "subtype",
                    "description",
                    "is_active",
                    "balance",
                )
            },
        ),
    )
