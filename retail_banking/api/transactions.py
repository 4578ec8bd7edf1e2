"""
Transaction history endpoints
"""

from fastapi import APIRouter, Depends

from .deps import BankingSystem, get_banking_system, get_current_principal
from .errors import from_banking_error
from .schemas import TransactionListResponse, TransactionViewModel
from ..errors import BankingError


router = APIRouter()


@router.get("", response_model=TransactionListResponse)
async def list_transactions(
    principal: str = Depends(get_current_principal),
    system: BankingSystem = Depends(get_banking_system)
):
    """Get the caller's transaction history, newest first"""
    try:
        views = system.transaction_query_service.list_transactions(principal, principal)
    except BankingError as e:
        raise from_banking_error(e)

    return TransactionListResponse(
        transactions=[TransactionViewModel.from_view(view) for view in views]
    )


@router.get("/{transaction_id}", response_model=TransactionViewModel)
async def get_transaction(
    transaction_id: str,
    principal: str = Depends(get_current_principal),
    system: BankingSystem = Depends(get_banking_system)
):
    """Get a single transaction touching one of the caller's accounts"""
    try:
        view = system.transaction_query_service.get_transaction(transaction_id, principal)
    except BankingError as e:
        raise from_banking_error(e)

    return TransactionViewModel.from_view(view)
