"""
Dependencies: the wired banking system and the authenticated principal
"""

from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import Optional

import jwt
from fastapi import Depends, HTTPException
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from ..storage import StorageInterface, InMemoryStorage, SQLiteStorage
from ..audit import AuditTrail
from ..accounts import AccountRepository
from ..currency import Currency
from ..history import TransactionQueryService
from ..transactions import TransactionLog
from ..transfers import TransferEngine
from ..config import BankingConfig, get_config


class BankingSystem:
    """Transfer core with all components initialized"""

    def __init__(self, config: Optional[BankingConfig] = None, storage: Optional[StorageInterface] = None):
        self.config = config or get_config()

        if storage is not None:
            self.storage = storage
        elif self.config.storage_backend == "memory":
            self.storage = InMemoryStorage()
        else:
            self.storage = SQLiteStorage(
                self.config.database_path,
                timeout=self.config.database_timeout_seconds
            )

        self.audit_trail = AuditTrail(self.storage) if self.config.enable_audit_logging else None
        self.transaction_log = TransactionLog(self.storage)
        self.account_repository = AccountRepository(
            self.storage, self.transaction_log, self.audit_trail
        )
        self.transfer_engine = TransferEngine(
            self.storage,
            self.account_repository,
            self.transaction_log,
            self.audit_trail,
            default_currency=Currency.from_code(self.config.default_currency),
            max_transfer_amount=Decimal(self.config.max_transfer_amount),
            default_description=self.config.default_transfer_description
        )
        self.transaction_query_service = TransactionQueryService(
            self.account_repository, self.transaction_log
        )

    def close(self) -> None:
        self.storage.close()


_banking_system: Optional[BankingSystem] = None


def get_banking_system() -> BankingSystem:
    """Lazily created process-wide system; tests override this dependency"""
    global _banking_system
    if _banking_system is None:
        _banking_system = BankingSystem()
    return _banking_system


security = HTTPBearer(auto_error=False)


def issue_token(principal: str, config: Optional[BankingConfig] = None) -> str:
    """Sign a bearer token for a principal (development and tests)"""
    config = config or get_config()
    now = datetime.now(timezone.utc)
    payload = {
        "sub": principal,
        "iat": now,
        "exp": now + timedelta(minutes=config.jwt_expiry_minutes)
    }
    return jwt.encode(payload, config.jwt_secret, algorithm=config.jwt_algorithm)


def get_current_principal(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    system: BankingSystem = Depends(get_banking_system)
) -> str:
    """Dependency that validates the bearer JWT and returns its subject"""
    if not credentials:
        raise HTTPException(status_code=401, detail="Not authenticated")
    try:
        payload = jwt.decode(
            credentials.credentials,
            system.config.jwt_secret,
            algorithms=[system.config.jwt_algorithm]
        )
    except jwt.ExpiredSignatureError:
        raise HTTPException(status_code=401, detail="Token expired")
    except jwt.InvalidTokenError:
        raise HTTPException(status_code=401, detail="Invalid token")

    principal = payload.get("sub")
    if not principal:
        raise HTTPException(status_code=401, detail="Invalid token")
    return principal
