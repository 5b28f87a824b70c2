"""
Contract Validation Module

Модуль для валидации JSON конфигураций ledger (JSON Schema + Pydantic).
"""

from .validators import (
    ContractValidator,
    FeeConfigValidator,
    LedgerSettingsValidator,
    SchemaLoader,
    load_fee_config,
    load_ledger_settings,
    load_ledger_settings_file,
    validate_fee_config,
    validate_ledger_settings,
)

__all__ = [
    # Classes
    "SchemaLoader",
    "ContractValidator",
    "FeeConfigValidator",
    "LedgerSettingsValidator",
    # Functions
    "validate_fee_config",
    "validate_ledger_settings",
    "load_fee_config",
    "load_ledger_settings",
    "load_ledger_settings_file",
]
