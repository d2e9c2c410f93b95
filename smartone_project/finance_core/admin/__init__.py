from .account import ChartOfAccountAdmin
from .actions import cancel_bills, post_journal_entries
from .auditlog import AuditLogAdmin
from .bill import BillAdmin, FinancialTransactionAdmin, PaymentAdmin, VendorAdmin
from .inlines import (AttachmentInline, BillItemInline, JournalEntryItemInline,
                      PaymentInline)
from .journal import JournalEntryAdmin, JournalEntryItemAdmin
from .period import FinancialPeriodAdmin
