"""
Pydantic schemas for API requests and responses
"""

from typing import Dict, List, Optional
from pydantic import BaseModel, Field

from ..accounts import Account
from ..currency import format_amount
from ..history import TransactionView
from ..transactions import Transaction


class TransferRequestModel(BaseModel):
    from_account_id: str
    to_account_id: str
    amount: str = Field(..., description="Decimal amount as string, e.g. '30.00'")
    description: Optional[str] = None


class AccountModel(BaseModel):
    id: str
    account_number: str
    account_type: str
    balance: str = Field(..., description="Decimal amount as string")
    currency: str
    created_at: str

    @classmethod
    def from_account(cls, account: Account) -> 'AccountModel':
        return cls(
            id=account.id,
            account_number=account.account_number,
            account_type=account.account_type.value,
            balance=format_amount(account.balance, account.currency),
            currency=account.currency.code,
            created_at=account.created_at.isoformat()
        )


class AccountListResponse(BaseModel):
    accounts: List[AccountModel]
    total_balance: Dict[str, str] = Field(..., description="Sum of balances per currency")


class TransactionModel(BaseModel):
    id: str
    from_account_id: Optional[str]
    to_account_id: Optional[str]
    amount: str
    currency: str
    transaction_type: str
    description: str
    status: str
    created_at: str

    @classmethod
    def from_transaction(cls, transaction: Transaction) -> 'TransactionModel':
        return cls(
            id=transaction.id,
            from_account_id=transaction.from_account_id,
            to_account_id=transaction.to_account_id,
            amount=format_amount(transaction.amount, transaction.currency),
            currency=transaction.currency.code,
            transaction_type=transaction.transaction_type.value,
            description=transaction.description,
            status=transaction.status.value,
            created_at=transaction.created_at.isoformat()
        )


class TransactionViewModel(TransactionModel):
    direction: str
    signed_amount: str
    from_label: str
    to_label: Optional[str]

    @classmethod
    def from_view(cls, view: TransactionView) -> 'TransactionViewModel':
        base = TransactionModel.from_transaction(view.transaction)
        return cls(
            **base.model_dump(),
            direction=view.direction.value,
            signed_amount=format_amount(view.signed_amount, view.transaction.currency),
            from_label=view.from_label,
            to_label=view.to_label
        )


class TransactionListResponse(BaseModel):
    transactions: List[TransactionViewModel]
