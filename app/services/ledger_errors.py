"""
Commission & Withdrawal ledger errors.

Every expected business outcome that is not a success is one of these.
They carry the HTTP status the API answers with, a stable machine-readable
code and a human message; the API layer renders them as
{"success": false, "code": ..., "message": ...}.
"""

from typing import Dict, Optional


class LedgerError(Exception):
    """Base class for expected, recoverable ledger failures."""
    status_code = 400
    code = "LedgerError"

    def __init__(self, message: str, details: Optional[Dict] = None, code: Optional[str] = None):
        self.message = message
        self.details = details or {}
        if code:
            self.code = code
        super().__init__(self.message)

    def to_dict(self) -> Dict:
        body = {"success": False, "code": self.code, "message": self.message}
        if self.details:
            body["details"] = self.details
        return body


# ---------------------------------------------------------------------------
# Taxonomy
# ---------------------------------------------------------------------------

class LedgerNotFoundError(LedgerError):
    status_code = 404
    code = "NotFound"


class LedgerConflictError(LedgerError):
    status_code = 409
    code = "Conflict"


class LedgerInvalidInputError(LedgerError):
    status_code = 400
    code = "InvalidInput"


class LedgerForbiddenError(LedgerError):
    status_code = 403
    code = "Forbidden"


class InsufficientBalanceError(LedgerError):
    status_code = 400
    code = "InsufficientBalance"


# ---------------------------------------------------------------------------
# Named failures
# ---------------------------------------------------------------------------

class PaymentNotFoundError(LedgerNotFoundError):
    code = "PaymentNotFound"


class ProjectNotFoundError(LedgerNotFoundError):
    code = "ProjectNotFound"


class WithdrawalNotFoundError(LedgerNotFoundError):
    code = "WithdrawalNotFound"


class AlreadyGeneratedError(LedgerConflictError):
    code = "AlreadyGenerated"


class AlreadyProcessedError(LedgerConflictError):
    code = "AlreadyProcessed"


class ProjectAlreadyCompletedError(LedgerConflictError):
    code = "ProjectAlreadyCompleted"


class PaymentNotReceivedError(LedgerInvalidInputError):
    code = "PaymentNotReceived"


class MissingFieldsError(LedgerInvalidInputError):
    code = "MissingFields"


class BelowMinimumError(LedgerInvalidInputError):
    code = "BelowMinimum"


class InvalidStatusError(LedgerInvalidInputError):
    code = "InvalidStatus"
