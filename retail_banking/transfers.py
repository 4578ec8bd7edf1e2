"""
Transfer Engine Module

Validates a transfer request against current account state and commits the
transaction record, the debit and the credit as one unit of work. Every
outcome is returned as a typed TransferResult; errors never escape
``TransferEngine.transfer`` as exceptions.
"""

from decimal import Decimal
from dataclasses import dataclass
from typing import Any, Optional

from .accounts import Account, AccountRepository
from .audit import AuditTrail, AuditEventType
from .currency import Currency, has_valid_precision, to_decimal
from .errors import (
    BankingError, Conflict, InsufficientFunds, InvalidAmount,
    InvalidRequest, NotAuthorized, NotFound, TransferFailed
)
from .storage import StorageInterface
from .transactions import Transaction, TransactionLog, TransactionType
from .logging_config import get_logger, log_action


DEFAULT_DESCRIPTION = "Transfer between accounts"


@dataclass
class TransferRequest:
    """Transfer intent collected by the presentation layer"""
    from_account_id: Optional[str]
    to_account_id: Optional[str]
    amount: Any  # str, int or Decimal; validated by the engine
    acting_principal: str
    description: Optional[str] = None


@dataclass(frozen=True)
class TransferError:
    """Tagged error returned instead of raising"""
    kind: str
    message: str
    retryable: bool = False

    @classmethod
    def from_exception(cls, error: BankingError) -> 'TransferError':
        return cls(kind=error.kind, message=error.message, retryable=error.retryable)


@dataclass(frozen=True)
class TransferResult:
    transaction: Optional[Transaction] = None
    error: Optional[TransferError] = None

    @property
    def ok(self) -> bool:
        return self.error is None


class TransferEngine:
    """
    Moves money between two accounts

    No deduplication: each call that passes validation creates a new
    transaction. Nothing is retried internally; a Conflict result is safe
    for the caller to resubmit once.
    """

    def __init__(
        self,
        storage: StorageInterface,
        account_repository: AccountRepository,
        transaction_log: TransactionLog,
        audit_trail: Optional[AuditTrail] = None,
        default_currency: Currency = Currency.USD,
        max_transfer_amount: Optional[Decimal] = None,
        default_description: str = DEFAULT_DESCRIPTION
    ):
        self.storage = storage
        self.accounts = account_repository
        self.transaction_log = transaction_log
        self.audit_trail = audit_trail
        self.default_currency = default_currency
        self.max_transfer_amount = max_transfer_amount
        self.default_description = default_description
        self.logger = get_logger("retail_banking.transfers")

    def transfer(self, request: TransferRequest) -> TransferResult:
        """
        Validate and apply a transfer

        Args:
            request: Transfer intent with the acting principal

        Returns:
            TransferResult with the completed Transaction, or a TransferError
            whose kind is one of invalid_request, invalid_amount,
            not_authorized, not_found, insufficient_funds, conflict or
            transfer_failed
        """
        attempted_commit = False
        try:
            amount, source, destination = self._validate(request)
            attempted_commit = True
            transaction = self._commit(request, amount, source, destination)
        except BankingError as e:
            return self._reject(request, e, attempted_commit)
        except Exception as e:
            # Anything unexpected before the commit is still reported as a failure
            self.logger.exception("Unexpected error during transfer")
            return self._reject(request, TransferFailed(f"Transfer could not be completed: {e}"), True)

        log_action(
            self.logger, "info", "Transfer completed",
            user_id=request.acting_principal, action="transfer",
            resource=f"transaction:{transaction.id}",
            extra={
                "from_account": transaction.from_account_id,
                "to_account": transaction.to_account_id,
                "amount": str(transaction.amount),
                "currency": transaction.currency.code
            }
        )
        self._audit(
            AuditEventType.TRANSFER_COMPLETED,
            entity_type="transaction",
            entity_id=transaction.id,
            metadata={
                "from_account": transaction.from_account_id,
                "to_account": transaction.to_account_id,
                "amount": transaction.amount,
                "currency": transaction.currency.code
            },
            user_id=request.acting_principal
        )

        return TransferResult(transaction=transaction)

    def _validate(self, request: TransferRequest):
        """Fail-fast checks, in order; returns the parsed amount and both accounts"""
        if not request.from_account_id or not request.to_account_id:
            raise InvalidRequest("Both source and destination accounts are required")
        if request.from_account_id == request.to_account_id:
            raise InvalidRequest("Cannot transfer to the same account")
        if not request.acting_principal:
            raise InvalidRequest("Acting principal is required")

        amount = self._parse_amount(request.amount, self._currency_of(request.from_account_id))

        try:
            source = self.accounts.get_account(request.from_account_id)
        except NotFound:
            # Unknown and foreign accounts look the same to the caller
            raise NotAuthorized("You cannot transfer from this account")
        if source.owner_id != request.acting_principal:
            raise NotAuthorized("You cannot transfer from this account")

        destination = self.accounts.get_account(request.to_account_id)
        if destination.currency != source.currency:
            raise InvalidRequest(
                f"Cannot transfer {source.currency.code} to a "
                f"{destination.currency.code} account"
            )

        if source.balance < amount:
            raise InsufficientFunds("Insufficient funds")

        return amount, source, destination

    def _currency_of(self, account_id: str) -> Currency:
        """Source currency for precision checks; the default if the account is unknown"""
        try:
            return self.accounts.get_account(account_id).currency
        except NotFound:
            return self.default_currency

    def _parse_amount(self, raw_amount: Any, currency: Currency) -> Decimal:
        try:
            amount = to_decimal(raw_amount)
        except ValueError:
            raise InvalidAmount(f"Invalid amount: {raw_amount!r}")

        if amount <= Decimal('0'):
            raise InvalidAmount("Amount must be positive")
        if not has_valid_precision(amount, currency):
            raise InvalidAmount(
                f"Amount has more than {currency.precision} decimal places for {currency.code}"
            )
        if self.max_transfer_amount is not None and amount > self.max_transfer_amount:
            raise InvalidAmount(f"Amount exceeds the transfer limit of {self.max_transfer_amount}")
        return amount

    def _commit(
        self,
        request: TransferRequest,
        amount: Decimal,
        source: Account,
        destination: Account
    ) -> Transaction:
        """Insert the record, debit and credit as one unit of work"""
        try:
            with self.storage.atomic():
                transaction = self.transaction_log.record(
                    transaction_type=TransactionType.TRANSFER,
                    amount=amount,
                    currency=source.currency,
                    description=request.description or self.default_description,
                    from_account_id=source.id,
                    to_account_id=destination.id
                )
                self.accounts.apply_balance_delta(source.id, -amount, source.version)
                self.accounts.apply_balance_delta(destination.id, amount, destination.version)
                transaction.complete()
                self.transaction_log.save(transaction)
        except (Conflict, InsufficientFunds):
            raise
        except Exception as e:
            raise TransferFailed(f"Transfer could not be completed: {e}") from e

        return transaction

    def _reject(self, request: TransferRequest, error: BankingError, attempted_commit: bool) -> TransferResult:
        """Log a failed transfer and turn it into a result"""
        failed = isinstance(error, TransferFailed)
        log_action(
            self.logger, "error" if failed else "warning",
            f"Transfer {error.kind}: {error.message}",
            user_id=request.acting_principal, action="transfer",
            extra={
                "from_account": request.from_account_id,
                "to_account": request.to_account_id,
                "amount": str(request.amount),
                "error": error.kind
            }
        )
        self._audit(
            AuditEventType.TRANSFER_FAILED if attempted_commit else AuditEventType.TRANSFER_REJECTED,
            entity_type="transfer",
            entity_id=request.from_account_id or "",
            metadata={
                "to_account": request.to_account_id,
                "amount": str(request.amount),
                "error": error.kind,
                "message": error.message
            },
            user_id=request.acting_principal
        )
        return TransferResult(error=TransferError.from_exception(error))

    def _audit(self, event_type: AuditEventType, **fields) -> None:
        """
        Write an audit event after the outcome is settled

        The transfer has already committed or rolled back at this point, so a
        failing audit store is logged and the typed result is still returned.
        """
        if not self.audit_trail:
            return
        try:
            self.audit_trail.log_event(event_type=event_type, **fields)
        except Exception:
            self.logger.exception(
                "Audit write failed",
                extra={"action": "audit", "extra": {"event_type": event_type.value}}
            )
