class FinanceError(Exception):
    """Base class for errors the finance API reports to clients.

    ``status_code`` is the HTTP status the handler answers with and
    ``error`` the short label placed in the ``error`` key of the body.
    """

    status_code = 500
    error = "Internal server error"

    def __init__(self, message=None, details=None):
        super().__init__(message or self.error)
        self.message = message or self.error
        self.details = details

    def as_dict(self):
        body = {"error": self.error, "message": self.message}
        if self.details:
            body["details"] = self.details
        return body


# ---------- 400 ----------
class RequestValidationError(FinanceError):
    """Missing or invalid request fields"""
    status_code = 400
    error = "Validation error"


class InvalidAmount(RequestValidationError):
    error = "Invalid payment amount"


class BillStateError(RequestValidationError):
    """Operation not allowed for the bill's current status"""
    error = "Invalid bill status"


class ConflictError(FinanceError):
    status_code = 400
    error = "Conflict"


class DuplicateBillNumber(ConflictError):
    error = "Bill number already exists"


class DuplicateAccountCode(ConflictError):
    error = "Account code already exists"


class OverlappingPeriod(ConflictError):
    error = "The date range overlaps with an existing period"


class UnbalancedJournalError(FinanceError):
    """Raised when a JournalEntry fails double-entry balance check."""
    status_code = 400
    error = "Journal entry is not balanced"


class AlreadyPostedDifferentPayload(ConflictError):
    """Raised when a JournalEntry already posted with different payload """
    error = "Journal entry already posted"


# ---------- 404 ----------
class NotFoundError(FinanceError):
    status_code = 404
    error = "Not found"


class VendorNotFound(NotFoundError):
    error = "Vendor not found"


class BillNotFound(NotFoundError):
    error = "Bill not found"


class PeriodNotFound(NotFoundError):
    error = "Financial period not found"


class JournalEntryNotFound(NotFoundError):
    error = "Journal entry not found"


class AccountNotFound(NotFoundError):
    error = "Account not found"


# ---------- 500 ----------
class ConfigurationError(FinanceError):
    """Books are not set up to accept the posting"""
    status_code = 500
    error = "Configuration error"


class NoOpenPeriod(ConfigurationError):
    error = "No open financial period"


class MissingAPAccount(ConfigurationError):
    error = "Accounts payable account not configured"
