"""
Transaction Query Service

Builds a principal's transaction history: every entry touching one of their
accounts, newest first, with display labels and a direction relative to the
owner.
"""

from decimal import Decimal
from dataclasses import dataclass
from typing import Dict, List, Optional
from enum import Enum

from .accounts import Account, AccountRepository
from .errors import NotFound
from .transactions import Transaction, TransactionLog


UNKNOWN_ACCOUNT_LABEL = "Unknown Account"


class TransactionDirection(Enum):
    OUTGOING = "outgoing"
    INCOMING = "incoming"


@dataclass(frozen=True)
class TransactionView:
    """A transaction as seen by one owner"""
    transaction: Transaction
    direction: TransactionDirection
    from_label: str
    to_label: Optional[str]

    @property
    def signed_amount(self) -> Decimal:
        """Negative for money leaving the owner, positive otherwise"""
        if self.direction == TransactionDirection.OUTGOING:
            return -self.transaction.amount
        return self.transaction.amount


class TransactionQueryService:
    """Read-only history queries"""

    def __init__(self, account_repository: AccountRepository, transaction_log: TransactionLog):
        self.account_repository = account_repository
        self.transaction_log = transaction_log

    def list_transactions(self, owner_id: str, principal: str) -> List[TransactionView]:
        """
        Get every transaction touching the owner's accounts, newest first

        Ties on created_at fall back to insertion order, latest first.

        Raises:
            NotAuthorized: If the principal asks for someone else's history
        """
        accounts = {
            account.id: account
            for account in self.account_repository.list_accounts(owner_id, principal)
        }

        transactions = self.transaction_log.find_for_accounts(accounts.keys())
        transactions.sort(key=lambda t: (t.created_at, t.sequence), reverse=True)

        return [self._to_view(transaction, accounts) for transaction in transactions]

    def get_transaction(self, transaction_id: str, principal: str) -> TransactionView:
        """
        Get one transaction touching the principal's accounts

        Raises:
            NotFound: If no such transaction exists or it touches none of
                the principal's accounts
        """
        accounts = {
            account.id: account
            for account in self.account_repository.list_accounts(principal, principal)
        }
        transaction = self.transaction_log.get_transaction(transaction_id)
        if transaction is None or not any(a in accounts for a in transaction.account_ids()):
            raise NotFound(f"Transaction {transaction_id} not found")
        return self._to_view(transaction, accounts)

    def _to_view(self, transaction: Transaction, owned: Dict[str, Account]) -> TransactionView:
        if transaction.is_transfer and transaction.from_account_id in owned:
            direction = TransactionDirection.OUTGOING
        else:
            direction = TransactionDirection.INCOMING

        to_label = None
        if transaction.to_account_id:
            to_label = self._label(transaction.to_account_id, owned)

        return TransactionView(
            transaction=transaction,
            direction=direction,
            from_label=self._label(transaction.from_account_id, owned),
            to_label=to_label
        )

    @staticmethod
    def _label(account_id: Optional[str], owned: Dict[str, Account]) -> str:
        account = owned.get(account_id) if account_id else None
        return account.label if account else UNKNOWN_ACCOUNT_LABEL
