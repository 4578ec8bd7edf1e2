"""
Demo data seeding

Opens a pair of accounts for two demo principals and runs a few transfers
between them so the history endpoints have something to show.

Run with: python -m retail_banking.seed
"""

from decimal import Decimal
from typing import Dict, List

from .accounts import Account, AccountType
from .currency import Currency
from .transfers import TransferRequest
from .logging_config import get_logger, setup_logging


DEMO_PRINCIPALS = ["demo-alice", "demo-bob"]

logger = get_logger("retail_banking.seed")


def seed_demo_data(system) -> Dict[str, List[Account]]:
    """
    Open demo accounts and run sample transfers

    Does nothing if the demo principals already have accounts.

    Returns:
        Accounts per demo principal
    """
    repository = system.account_repository
    existing = {
        principal: repository.list_accounts(principal, principal)
        for principal in DEMO_PRINCIPALS
    }
    if any(existing.values()):
        logger.info("Demo data already present, skipping seed")
        return existing

    seeded: Dict[str, List[Account]] = {}
    for principal in DEMO_PRINCIPALS:
        seeded[principal] = [
            repository.open_account(principal, AccountType.CHECKING, Currency.USD,
                                    initial_balance=Decimal('1500.00')),
            repository.open_account(principal, AccountType.SAVINGS, Currency.USD,
                                    initial_balance=Decimal('5000.00')),
        ]

    alice_checking, alice_savings = seeded["demo-alice"]
    bob_checking = seeded["demo-bob"][0]
    sample_transfers = [
        TransferRequest(alice_savings.id, alice_checking.id, "250.00", "demo-alice", "Monthly top-up"),
        TransferRequest(alice_checking.id, bob_checking.id, "42.50", "demo-alice", "Dinner"),
        TransferRequest(bob_checking.id, alice_checking.id, "12.00", "demo-bob", None),
    ]
    for request in sample_transfers:
        result = system.transfer_engine.transfer(request)
        if not result.ok:
            logger.warning(f"Demo transfer rejected: {result.error.kind}")

    logger.info("Seeded demo data", extra={"extra": {"principals": DEMO_PRINCIPALS}})
    return {
        principal: repository.list_accounts(principal, principal)
        for principal in DEMO_PRINCIPALS
    }


if __name__ == "__main__":
    from .api.deps import BankingSystem, issue_token

    setup_logging()
    banking_system = BankingSystem()
    seed_demo_data(banking_system)
    for principal in DEMO_PRINCIPALS:
        print(f"{principal}: {issue_token(principal, banking_system.config)}")
    banking_system.close()
