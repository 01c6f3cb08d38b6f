"""
Configuration Management Module

Provides centralized configuration using pydantic-settings for environment-based configuration.
"""

from typing import Dict

from pydantic_settings import BaseSettings


class LedgerConfig(BaseSettings):
    """Account ledger service configuration"""

    # Database configuration
    database_url: str = "sqlite:///account_ledger.db"  # memory://, sqlite:///path, postgresql://...
    database_echo: bool = False  # Log every statement at DEBUG

    # API configuration
    api_host: str = "0.0.0.0"
    api_port: int = 8091

    # Logging configuration
    log_level: str = "INFO"
    log_format: str = "json"  # json or text

    # Customer service configuration
    customer_service_url: str = ""  # Empty = in-process directory
    customer_service_timeout: float = 2.0
    customer_service_api_key: str = ""
    customers: Dict[int, str] = {}  # Seeds the in-process directory, e.g. LEDGER_CUSTOMERS='{"1": "Jose Lema"}'

    # Ledger rules
    allow_movement_deletion: bool = True  # False forbids hard deletes of settled movements
    system_initiator: str = "SYSTEM"  # initiated_by recorded on engine-created entries

    class Config:
        env_prefix = "LEDGER_"
        env_file = ".env"
        case_sensitive = False


# Global configuration instance
config = LedgerConfig()


def get_config() -> LedgerConfig:
    """Get global configuration instance"""
    return config


def reload_config() -> LedgerConfig:
    """Reload configuration from environment"""
    global config
    config = LedgerConfig()
    return config
