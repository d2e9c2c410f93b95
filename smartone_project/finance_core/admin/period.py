from django.contrib import admin

from ..models import FinancialPeriod


# Register `FinancialPeriod` model
@admin.register(FinancialPeriod)
class FinancialPeriodAdmin(admin.ModelAdmin):
    list_display = ("id", "name", "type", "start_date", "end_date", "status")
    list_filter = ("type", "status", "year")
    search_fields = ("name",)
