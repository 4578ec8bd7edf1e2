"""
Retail Banking Transfer Core

Account balances, transaction history and atomic transfers between accounts,
with Decimal money math and optimistic concurrency on every balance change.
"""

__version__ = "1.0.0"
