"""
Configuration Management Module

Provides centralized configuration using pydantic-settings for environment-based configuration.
"""

from pydantic_settings import BaseSettings
from typing import Optional


class BankingConfig(BaseSettings):
    """Retail banking transfer core configuration"""

    # Storage configuration
    storage_backend: str = "sqlite"  # sqlite or memory
    database_path: str = "retail_banking.db"
    database_timeout_seconds: float = 5.0  # Busy timeout; the unit of work rolls back past it

    # API configuration
    api_host: str = "0.0.0.0"
    api_port: int = 8090

    # Security configuration
    jwt_secret: str = "change-me-in-production"
    jwt_algorithm: str = "HS256"
    jwt_expiry_minutes: int = 60

    # Logging configuration
    log_level: str = "INFO"
    log_file: Optional[str] = None  # If None, logs to stdout

    # Business rules configuration
    default_currency: str = "USD"
    max_transfer_amount: str = "100000.00"
    default_transfer_description: str = "Transfer between accounts"

    # Feature flags
    enable_audit_logging: bool = True
    seed_demo_data: bool = False

    class Config:
        env_prefix = "RETAIL_BANKING_"
        env_file = ".env"
        case_sensitive = False


# Global configuration instance
config = BankingConfig()


def get_config() -> BankingConfig:
    """Get global configuration instance"""
    return config


def reload_config() -> BankingConfig:
    """Reload configuration from environment"""
    global config
    config = BankingConfig()
    return config
