from django.contrib import admin
from django.core.exceptions import PermissionDenied

"""Base admin for append-only finance records (payments, cash-book rows, audit log)."""
class ReadOnlyAdmin(admin.ModelAdmin):
    list_per_page = 50
    # candidates for the sidebar date filter, most specific first
    date_filter_fields = ("payment_date", "date", "created_at")

    # every column is display-only
    def get_readonly_fields(self, request, obj=None):
        return [f.name for f in self.model._meta.fields]

    # Rows are written by the services, never typed in
    def has_add_permission(self, request):
        return False

    def has_delete_permission(self, request, obj=None):
        return False

    # The change form doubles as a detail page
    def has_change_permission(self, request, obj=None):
        return request.method in ("GET", "HEAD")

    def save_model(self, request, obj, form, change):
        raise PermissionDenied("Finance records are append-only.")

    # No bulk actions (delete_selected included)
    def get_actions(self, request):
        return {}

    def get_list_filter(self, request):
        possible = {f.name for f in self.model._meta.fields}
        filters = [c for c in ("type", "action", "payment_method") if c in possible]
        # one date filter, the most specific one the model has
        for candidate in self.date_filter_fields:
            if candidate in possible:
                filters.append(candidate)
                break
        return tuple(filters)
