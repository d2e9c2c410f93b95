from .bills import cancel_bill, create_bill, get_bill, update_bill
from .numbering import generate_bill_number, generate_entry_number
from .payment import apply_bill_payment, derive_payment_status
from .posting import (create_journal_entry, post_bill_to_journal,
                      post_journal_entry, resolve_ap_account)
from .periods import resolve_period
from .reporting import income_statement, payable_summary, trial_balance
