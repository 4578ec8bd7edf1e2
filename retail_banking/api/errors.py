"""
Translation of banking error kinds to HTTP responses
"""

from fastapi import HTTPException, status

from ..errors import (
    BankingError, Conflict, InsufficientFunds, InvalidAmount,
    InvalidRequest, NotAuthorized, NotFound, TransferFailed
)


HTTP_STATUS_BY_KIND = {
    InvalidRequest.kind: status.HTTP_400_BAD_REQUEST,
    InvalidAmount.kind: status.HTTP_400_BAD_REQUEST,
    NotAuthorized.kind: status.HTTP_403_FORBIDDEN,
    NotFound.kind: status.HTTP_404_NOT_FOUND,
    Conflict.kind: status.HTTP_409_CONFLICT,
    InsufficientFunds.kind: status.HTTP_422_UNPROCESSABLE_ENTITY,
    TransferFailed.kind: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


def error_response(kind: str, message: str) -> HTTPException:
    """Build the HTTPException for an error kind, body {"error", "message"}"""
    return HTTPException(
        status_code=HTTP_STATUS_BY_KIND.get(kind, status.HTTP_400_BAD_REQUEST),
        detail={"error": kind, "message": message}
    )


def from_banking_error(error: BankingError) -> HTTPException:
    return error_response(error.kind, error.message)
