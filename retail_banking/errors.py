"""
Banking Error Taxonomy

Domain-specific errors raised by the account repository, the transfer engine
and the query service. Each class carries a ``kind`` tag that the transfer
engine returns in its typed results and the API maps to an HTTP status.
"""


class BankingError(Exception):
    """Base class for all business rule violations"""
    kind = "banking_error"
    retryable = False

    def __init__(self, message: str = ""):
        super().__init__(message or self.kind)
        self.message = message or self.kind


class InvalidRequest(BankingError):
    """Malformed or missing fields, or a transfer to the same account"""
    kind = "invalid_request"


class InvalidAmount(BankingError):
    """Non-positive, non-numeric, or too precise for the currency"""
    kind = "invalid_amount"


class NotAuthorized(BankingError):
    """Acting principal does not own the resource"""
    kind = "not_authorized"


class NotFound(BankingError):
    kind = "not_found"


class InsufficientFunds(BankingError):
    """Balance would go negative"""
    kind = "insufficient_funds"


class Conflict(BankingError):
    """
    Concurrent modification detected by the optimistic version check.
    Safe to retry once with fresh reads.
    """
    kind = "conflict"
    retryable = True


class TransferFailed(BankingError):
    """Atomic commit could not complete; nothing was applied"""
    kind = "transfer_failed"

