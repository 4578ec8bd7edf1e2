"""
Tests for demo data seeding
"""

from decimal import Decimal

from retail_banking.api.deps import BankingSystem
from retail_banking.config import BankingConfig
from retail_banking.seed import DEMO_PRINCIPALS, seed_demo_data


class TestSeedDemoData:
    """Test the demo seeding helper"""

    def setup_method(self):
        self.system = BankingSystem(config=BankingConfig(storage_backend="memory"))

    def test_seed_opens_accounts_and_runs_transfers(self):
        seeded = seed_demo_data(self.system)

        assert set(seeded) == set(DEMO_PRINCIPALS)
        assert all(len(accounts) == 2 for accounts in seeded.values())

        history = self.system.transaction_query_service.list_transactions("demo-alice", "demo-alice")
        assert len([v for v in history if v.transaction.is_transfer]) == 3

        totals = [
            self.system.account_repository.total_balance(p, p)["USD"] for p in DEMO_PRINCIPALS
        ]
        assert sum(totals) == Decimal('13000.00')

    def test_seed_is_idempotent(self):
        seed_demo_data(self.system)
        seed_demo_data(self.system)

        accounts = self.system.account_repository.list_accounts("demo-bob", "demo-bob")
        assert len(accounts) == 2
