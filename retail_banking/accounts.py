"""
Account Repository Module

Read and write access to retail account balances, scoped by owner. Balances
are changed only through ``apply_balance_delta``, a single conditional update
guarded by the account's version number, so callers never read a balance,
compute a new one and write it back themselves.
"""

from decimal import Decimal
from datetime import datetime, timezone
from dataclasses import dataclass, replace
from typing import Any, Dict, List, Optional
from enum import Enum
import secrets
import uuid

from .currency import Currency, has_valid_precision, to_decimal
from .storage import StorageInterface, StorageRecord
from .audit import AuditTrail, AuditEventType
from .errors import Conflict, InsufficientFunds, InvalidAmount, NotAuthorized, NotFound
from .transactions import TransactionLog, TransactionStatus, TransactionType
from .logging_config import get_logger, log_action


class AccountType(Enum):
    """Retail account products"""
    CHECKING = "checking"
    SAVINGS = "savings"


@dataclass
class Account(StorageRecord):
    """
    Retail bank account

    ``version`` increases by one on every balance change and is the
    optimistic concurrency token for ``apply_balance_delta``.
    """
    owner_id: str
    account_number: str
    account_type: AccountType
    currency: Currency
    balance: Decimal = Decimal('0')
    version: int = 0

    def __post_init__(self):
        if self.balance < Decimal('0'):
            raise ValueError("Account balance cannot be negative")

    @property
    def label(self) -> str:
        """Display label, e.g. 'checking CHK-12345678'"""
        return f"{self.account_type.value} {self.account_number}"

    def to_dict(self) -> Dict[str, Any]:
        result = super().to_dict()
        result['account_type'] = self.account_type.value
        result['currency'] = self.currency.code
        return result

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Account':
        data['account_type'] = AccountType(data['account_type'])
        data['currency'] = Currency[data['currency']]
        data['balance'] = Decimal(data['balance'])
        return super().from_dict(data)


class AccountRepository:
    """
    Owner-scoped access to accounts and their balances
    """

    def __init__(
        self,
        storage: StorageInterface,
        transaction_log: TransactionLog,
        audit_trail: Optional[AuditTrail] = None
    ):
        self.storage = storage
        self.transaction_log = transaction_log
        self.audit_trail = audit_trail
        self.table_name = "accounts"
        self.logger = get_logger("retail_banking.accounts")

    def open_account(
        self,
        owner_id: str,
        account_type: AccountType,
        currency: Currency,
        account_number: Optional[str] = None,
        initial_balance: Any = Decimal('0')
    ) -> Account:
        """
        Open a new account (out-of-band provisioning)

        A positive opening balance is recorded as a completed deposit in the
        same unit of work as the account itself.

        Args:
            owner_id: Principal that owns the account
            account_type: Checking or savings
            currency: Account currency
            account_number: Display number (generated if not provided)
            initial_balance: Opening deposit, zero by default

        Returns:
            Created Account
        """
        try:
            opening_balance = to_decimal(initial_balance)
        except ValueError as e:
            raise InvalidAmount(str(e))
        if opening_balance < 0 or not has_valid_precision(opening_balance, currency):
            raise InvalidAmount(f"Invalid opening balance: {initial_balance}")

        now = datetime.now(timezone.utc)
        account = Account(
            id=str(uuid.uuid4()),
            created_at=now,
            updated_at=now,
            owner_id=owner_id,
            account_number=account_number or self._generate_account_number(account_type),
            account_type=account_type,
            currency=currency,
            balance=opening_balance
        )

        with self.storage.atomic():
            self.storage.save(self.table_name, account.id, account.to_dict())
            if opening_balance > 0:
                self.transaction_log.record(
                    transaction_type=TransactionType.DEPOSIT,
                    amount=opening_balance,
                    currency=currency,
                    description="Opening deposit",
                    from_account_id=account.id,
                    status=TransactionStatus.COMPLETED
                )

        log_action(
            self.logger, "info", "Account opened",
            user_id=owner_id, action="open_account", resource=f"account:{account.id}",
            extra={"account_type": account_type.value, "currency": currency.code}
        )
        if self.audit_trail:
            self.audit_trail.log_event(
                event_type=AuditEventType.ACCOUNT_OPENED,
                entity_type="account",
                entity_id=account.id,
                metadata={
                    "account_number": account.account_number,
                    "account_type": account_type.value,
                    "currency": currency.code,
                    "opening_balance": opening_balance
                },
                user_id=owner_id
            )

        return account

    def list_accounts(self, owner_id: str, principal: str) -> List[Account]:
        """
        Get all accounts owned by ``owner_id`` in creation order

        Raises:
            NotAuthorized: If the principal asks for someone else's accounts
        """
        if owner_id != principal:
            raise NotAuthorized("Cannot list accounts of another user")

        accounts_data = self.storage.find(self.table_name, {"owner_id": owner_id})
        accounts = [Account.from_dict(data) for data in accounts_data]
        accounts.sort(key=lambda a: (a.created_at, a.account_number))
        return accounts

    def get_account(self, account_id: str) -> Account:
        """
        Get account by ID

        Raises:
            NotFound: If no such account exists
        """
        account_dict = self.storage.load(self.table_name, account_id) if account_id else None
        if not account_dict:
            raise NotFound(f"Account {account_id} not found")
        return Account.from_dict(account_dict)

    def total_balance(self, owner_id: str, principal: str) -> Dict[str, Decimal]:
        """Sum of the owner's balances per currency code"""
        totals: Dict[str, Decimal] = {}
        for account in self.list_accounts(owner_id, principal):
            code = account.currency.code
            totals[code] = totals.get(code, Decimal('0')) + account.balance
        return totals

    def apply_balance_delta(
        self,
        account_id: str,
        delta: Decimal,
        expected_version: int
    ) -> Account:
        """
        Atomically adjust a balance if the account is unchanged since it was read

        Args:
            account_id: Account to adjust
            delta: Signed amount, negative for debits
            expected_version: Version observed when the account was read

        Returns:
            The updated Account

        Raises:
            NotFound: If the account does not exist
            Conflict: If the account changed since ``expected_version``
            InsufficientFunds: If the balance would become negative
        """
        with self.storage.atomic():
            account = self.get_account(account_id)
            if account.version != expected_version:
                raise Conflict(
                    f"Account {account_id} changed concurrently "
                    f"(expected version {expected_version}, found {account.version})"
                )

            new_balance = account.balance + delta
            if new_balance < Decimal('0'):
                raise InsufficientFunds(f"Insufficient funds in account {account.account_number}")

            updated = replace(
                account,
                balance=new_balance,
                version=account.version + 1,
                updated_at=datetime.now(timezone.utc)
            )
            swapped = self.storage.compare_and_swap(
                self.table_name,
                account_id,
                {"version": expected_version},
                updated.to_dict()
            )
            if not swapped:
                raise Conflict(f"Account {account_id} changed concurrently")

        self.logger.debug(
            "Balance updated",
            extra={"resource": f"account:{account_id}",
                   "extra": {"delta": str(delta), "version": updated.version}}
        )
        return updated

    def _generate_account_number(self, account_type: AccountType) -> str:
        """Generate a unique display account number"""
        prefix = "SAV" if account_type == AccountType.SAVINGS else "CHK"
        while True:
            candidate = f"{prefix}-{secrets.randbelow(10 ** 8):08d}"
            if not self.storage.find(self.table_name, {"account_number": candidate}):
                return candidate
