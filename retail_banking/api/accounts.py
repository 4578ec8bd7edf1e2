"""
Account endpoints
"""

from fastapi import APIRouter, Depends

from .deps import BankingSystem, get_banking_system, get_current_principal
from .errors import from_banking_error
from .schemas import AccountListResponse, AccountModel
from ..currency import Currency, format_amount
from ..errors import BankingError, NotFound


router = APIRouter()


@router.get("", response_model=AccountListResponse)
async def list_accounts(
    principal: str = Depends(get_current_principal),
    system: BankingSystem = Depends(get_banking_system)
):
    """List the caller's accounts with total balance per currency"""
    repository = system.account_repository
    try:
        accounts = repository.list_accounts(principal, principal)
        totals = repository.total_balance(principal, principal)
    except BankingError as e:
        raise from_banking_error(e)

    return AccountListResponse(
        accounts=[AccountModel.from_account(account) for account in accounts],
        total_balance={
            code: format_amount(total, Currency[code]) for code, total in totals.items()
        }
    )


@router.get("/{account_id}", response_model=AccountModel)
async def get_account(
    account_id: str,
    principal: str = Depends(get_current_principal),
    system: BankingSystem = Depends(get_banking_system)
):
    """Get one of the caller's accounts"""
    try:
        account = system.account_repository.get_account(account_id)
    except BankingError as e:
        raise from_banking_error(e)

    # Someone else's account is reported as missing
    if account.owner_id != principal:
        raise from_banking_error(NotFound(f"Account {account_id} not found"))
    return AccountModel.from_account(account)
