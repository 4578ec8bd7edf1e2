"""
Transaction Records Module

Immutable transaction records and the log that persists them. A record is
written once and afterwards only its status may move from PENDING to a
terminal state (COMPLETED or FAILED).
"""

from decimal import Decimal
from datetime import datetime, timezone
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional
from enum import Enum
import uuid

from .currency import Currency
from .storage import StorageInterface, StorageRecord


class TransactionType(Enum):
    """Types of ledger entries"""
    TRANSFER = "transfer"      # Between two accounts
    DEPOSIT = "deposit"        # Money entering one account, no counterparty
    WITHDRAWAL = "withdrawal"  # Reserved


class TransactionStatus(Enum):
    """States of a transaction"""
    PENDING = "pending"      # Pre-commit marker, never visible outside a unit of work
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self != TransactionStatus.PENDING


@dataclass
class Transaction(StorageRecord):
    """
    Ledger entry moving ``amount`` out of ``from_account_id``

    ``to_account_id`` is None for entries without a counterparty account
    such as deposits; those are displayed against ``from_account_id``.
    """
    transaction_type: TransactionType
    from_account_id: Optional[str]
    to_account_id: Optional[str]
    amount: Decimal
    currency: Currency
    description: str
    status: TransactionStatus = TransactionStatus.PENDING
    sequence: int = 0  # Insertion order, breaks created_at ties

    def __post_init__(self):
        if not self.from_account_id and not self.to_account_id:
            raise ValueError("Transaction must reference at least one account")

        if self.from_account_id and self.from_account_id == self.to_account_id:
            raise ValueError("Transaction cannot move money to the same account")

        if self.amount <= Decimal('0'):
            raise ValueError("Transaction amount must be positive")

    @property
    def is_transfer(self) -> bool:
        return self.transaction_type == TransactionType.TRANSFER

    @property
    def is_completed(self) -> bool:
        return self.status == TransactionStatus.COMPLETED

    def account_ids(self) -> List[str]:
        """IDs of every account this entry names"""
        return [a for a in (self.from_account_id, self.to_account_id) if a]

    def complete(self) -> None:
        """Finalize a pending transaction"""
        self._transition(TransactionStatus.COMPLETED)

    def fail(self) -> None:
        """Mark a pending transaction as failed"""
        self._transition(TransactionStatus.FAILED)

    def _transition(self, new_status: TransactionStatus) -> None:
        if self.status.is_terminal:
            raise ValueError(
                f"Transaction {self.id} is already {self.status.value}"
            )
        self.status = new_status
        self.updated_at = datetime.now(timezone.utc)

    def to_dict(self) -> Dict[str, Any]:
        result = super().to_dict()
        result['transaction_type'] = self.transaction_type.value
        result['currency'] = self.currency.code
        result['status'] = self.status.value
        return result

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Transaction':
        data['transaction_type'] = TransactionType(data['transaction_type'])
        data['currency'] = Currency[data['currency']]
        data['status'] = TransactionStatus(data['status'])
        data['amount'] = Decimal(data['amount'])
        return super().from_dict(data)


class TransactionLog:
    """Persists transaction records in the ledger store"""

    def __init__(self, storage: StorageInterface):
        self.storage = storage
        self.table_name = "transactions"

    def record(
        self,
        transaction_type: TransactionType,
        amount: Decimal,
        currency: Currency,
        description: str,
        from_account_id: Optional[str],
        to_account_id: Optional[str] = None,
        status: TransactionStatus = TransactionStatus.PENDING
    ) -> Transaction:
        """
        Insert a new transaction record

        Args:
            transaction_type: Kind of entry
            amount: Positive amount
            currency: Currency of the amount
            description: Free text shown in history
            from_account_id: Source account
            to_account_id: Destination account, None for deposits
            status: Initial status

        Returns:
            The stored Transaction
        """
        now = datetime.now(timezone.utc)

        with self.storage.atomic():
            transaction = Transaction(
                id=str(uuid.uuid4()),
                created_at=now,
                updated_at=now,
                transaction_type=transaction_type,
                from_account_id=from_account_id,
                to_account_id=to_account_id,
                amount=amount,
                currency=currency,
                description=description,
                status=status,
                sequence=self.storage.count(self.table_name) + 1
            )
            self.save(transaction)

        return transaction

    def save(self, transaction: Transaction) -> None:
        self.storage.save(self.table_name, transaction.id, transaction.to_dict())

    def get_transaction(self, transaction_id: str) -> Optional[Transaction]:
        """Get transaction by ID"""
        data = self.storage.load(self.table_name, transaction_id)
        if data:
            return Transaction.from_dict(data)
        return None

    def find_for_accounts(self, account_ids: Iterable[str]) -> List[Transaction]:
        """All transactions naming any of the accounts as source or destination"""
        ids = set(account_ids)
        if not ids:
            return []
        records = self.storage.find_where(
            self.table_name,
            lambda r: r.get('from_account_id') in ids or r.get('to_account_id') in ids
        )
        return [Transaction.from_dict(data) for data in records]

    def count(self) -> int:
        return self.storage.count(self.table_name)
