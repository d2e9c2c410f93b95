from django.contrib import admin
from django.urls import include, path

urlpatterns = [
    path("admin/", admin.site.urls),
    # JSON API consumed by the dashboard
    path("api/finance/", include("finance_core.urls")),
]
