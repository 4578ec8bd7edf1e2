"""
Transfer endpoints
"""

from fastapi import APIRouter, Depends, status

from .deps import BankingSystem, get_banking_system, get_current_principal
from .errors import error_response
from .schemas import TransactionModel, TransferRequestModel
from ..transfers import TransferRequest
from ..logging_config import get_logger


router = APIRouter()
logger = get_logger("retail_banking.api.transfers")


@router.post("", status_code=status.HTTP_201_CREATED, response_model=TransactionModel)
async def create_transfer(
    request: TransferRequestModel,
    principal: str = Depends(get_current_principal),
    system: BankingSystem = Depends(get_banking_system)
):
    """
    Move money out of one of the caller's accounts

    A conflict from a concurrent update is resubmitted once with fresh
    reads; every other error is returned to the caller as is.
    """
    transfer_request = TransferRequest(
        from_account_id=request.from_account_id,
        to_account_id=request.to_account_id,
        amount=request.amount,
        description=request.description,
        acting_principal=principal
    )

    result = system.transfer_engine.transfer(transfer_request)
    if not result.ok and result.error.retryable:
        logger.info("Retrying transfer after conflict", extra={"user_id": principal})
        result = system.transfer_engine.transfer(transfer_request)

    if not result.ok:
        raise error_response(result.error.kind, result.error.message)

    return TransactionModel.from_transaction(result.transaction)
