from .account import ChartOfAccount
from .auditlog import AuditLog
from .bill import Attachment, Bill, BillItem, derive_payment_status
from .journal import JournalEntry, JournalEntryItem
from .payment import FinancialTransaction, Payment
from .period import FinancialPeriod
from .vendor import Vendor
