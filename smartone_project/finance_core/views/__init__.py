from .ledger import (income_statement, journal_entries, post_journal_entry,
                     trial_balance)
from .master import chart_of_accounts, period_detail, period_list, vendors
from .payable import bill_detail, bill_payment, payable
