"""
Test suite for the transaction query service

Tests ordering, direction, labels and owner scoping of transaction history.
"""

import pytest
from decimal import Decimal
from datetime import datetime, timedelta, timezone

from retail_banking.storage import InMemoryStorage
from retail_banking.currency import Currency
from retail_banking.errors import NotAuthorized, NotFound
from retail_banking.transactions import (
    Transaction, TransactionLog, TransactionStatus, TransactionType
)
from retail_banking.accounts import AccountRepository, AccountType
from retail_banking.history import (
    TransactionDirection, TransactionQueryService, UNKNOWN_ACCOUNT_LABEL
)
from retail_banking.transfers import TransferEngine, TransferRequest


class TestTransactionQueryService:
    """Test TransactionQueryService functionality"""

    def setup_method(self):
        """Set up test environment"""
        self.storage = InMemoryStorage()
        self.transaction_log = TransactionLog(self.storage)
        self.repository = AccountRepository(self.storage, self.transaction_log)
        self.engine = TransferEngine(self.storage, self.repository, self.transaction_log)
        self.service = TransactionQueryService(self.repository, self.transaction_log)

        self.alice_checking = self.repository.open_account(
            "alice", AccountType.CHECKING, Currency.USD,
            account_number="CHK-00000001", initial_balance="100.00"
        )
        self.alice_savings = self.repository.open_account(
            "alice", AccountType.SAVINGS, Currency.USD,
            account_number="SAV-00000002"
        )
        self.bob_checking = self.repository.open_account(
            "bob", AccountType.CHECKING, Currency.USD,
            account_number="CHK-00000003", initial_balance="50.00"
        )

    def _transfer(self, source, destination, amount, principal):
        result = self.engine.transfer(TransferRequest(source.id, destination.id, amount, principal))
        assert result.ok
        return result.transaction

    def _store(self, created_at, **fields):
        transaction = Transaction(
            id=fields.pop("id"),
            created_at=created_at,
            updated_at=created_at,
            transaction_type=TransactionType.TRANSFER,
            amount=Decimal('1.00'),
            currency=Currency.USD,
            description="manual",
            status=TransactionStatus.COMPLETED,
            **fields
        )
        self.transaction_log.save(transaction)
        return transaction

    def test_history_newest_first(self):
        """Test that history is ordered newest first"""
        first = self._transfer(self.alice_checking, self.bob_checking, "10.00", "alice")
        second = self._transfer(self.bob_checking, self.alice_checking, "5.00", "bob")

        views = self.service.list_transactions("alice", "alice")

        # Two transfers and alice's opening deposit
        assert [v.transaction.id for v in views][:2] == [second.id, first.id]
        assert views[-1].transaction.transaction_type == TransactionType.DEPOSIT
        assert len(views) == 3

    def test_created_at_ties_break_by_insertion_order(self):
        """Test that entries with equal timestamps keep the latest insert first"""
        stamp = datetime(2024, 1, 1, tzinfo=timezone.utc)
        older = self._store(stamp, id="T-1", from_account_id=self.alice_checking.id,
                            to_account_id=self.bob_checking.id, sequence=10)
        newer = self._store(stamp, id="T-2", from_account_id=self.alice_checking.id,
                            to_account_id=self.bob_checking.id, sequence=11)
        latest = self._store(stamp + timedelta(seconds=1), id="T-0",
                             from_account_id=self.bob_checking.id,
                             to_account_id=self.alice_checking.id, sequence=9)

        ids = [v.transaction.id for v in self.service.list_transactions("bob", "bob")]

        assert ids.index(latest.id) < ids.index(newer.id) < ids.index(older.id)

    def test_direction_and_labels(self):
        """Test direction and counterparty labels from each side"""
        transaction = self._transfer(self.alice_checking, self.bob_checking, "30.00", "alice")

        alice_view = next(
            v for v in self.service.list_transactions("alice", "alice")
            if v.transaction.id == transaction.id
        )
        assert alice_view.direction == TransactionDirection.OUTGOING
        assert alice_view.signed_amount == Decimal('-30.00')
        assert alice_view.from_label == "checking CHK-00000001"
        assert alice_view.to_label == UNKNOWN_ACCOUNT_LABEL

        bob_view = next(
            v for v in self.service.list_transactions("bob", "bob")
            if v.transaction.id == transaction.id
        )
        assert bob_view.direction == TransactionDirection.INCOMING
        assert bob_view.signed_amount == Decimal('30.00')
        assert bob_view.from_label == UNKNOWN_ACCOUNT_LABEL
        assert bob_view.to_label == "checking CHK-00000003"

    def test_transfer_between_own_accounts_is_outgoing(self):
        transaction = self._transfer(self.alice_checking, self.alice_savings, "20.00", "alice")

        view = self.service.get_transaction(transaction.id, "alice")

        assert view.direction == TransactionDirection.OUTGOING
        assert view.from_label == "checking CHK-00000001"
        assert view.to_label == "savings SAV-00000002"

    def test_deposit_is_incoming(self):
        """Test that an opening deposit shows as incoming with no destination"""
        views = self.service.list_transactions("bob", "bob")

        assert len(views) == 1
        deposit = views[0]
        assert deposit.direction == TransactionDirection.INCOMING
        assert deposit.signed_amount == Decimal('50.00')
        assert deposit.from_label == "checking CHK-00000003"
        assert deposit.to_label is None

    def test_empty_history(self):
        assert self.service.list_transactions("carol", "carol") == []

    def test_history_of_another_user(self):
        with pytest.raises(NotAuthorized):
            self.service.list_transactions("alice", "bob")

    def test_get_transaction(self):
        """Test single lookup from both parties and from an outsider"""
        transaction = self._transfer(self.alice_checking, self.bob_checking, "1.00", "alice")

        assert self.service.get_transaction(transaction.id, "alice").transaction.id == transaction.id
        assert self.service.get_transaction(transaction.id, "bob").direction == TransactionDirection.INCOMING

        with pytest.raises(NotFound):
            self.service.get_transaction(transaction.id, "carol")
        with pytest.raises(NotFound):
            self.service.get_transaction("missing", "alice")
