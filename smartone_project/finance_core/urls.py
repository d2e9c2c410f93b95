from django.urls import path
from . import views

app_name = "finance_core"

urlpatterns = [
    # Accounts payable
    path("payable", views.payable, name="payable"),
    path("payable/<int:bill_id>", views.bill_detail, name="bill-detail"),
    path("payable/<int:bill_id>/payment", views.bill_payment, name="bill-payment"),
    # Master data
    path("vendors", views.vendors, name="vendors"),
    path("chart-of-accounts", views.chart_of_accounts, name="chart-of-accounts"),
    path("periods", views.period_list, name="periods"),
    path("periods/<int:period_id>", views.period_detail, name="period-detail"),
    # Ledger
    path("ledger/journal-entries", views.journal_entries, name="journal-entries"),
    path("ledger/journal-entries/post", views.post_journal_entry, name="post-journal-entry"),
    path("reports/trial-balance", views.trial_balance, name="trial-balance"),
    path("reports/income-statement", views.income_statement, name="income-statement"),
]
