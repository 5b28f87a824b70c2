"""
Domain models and value objects.

Contains fundamental domain entities: addresses, token units, FeeConfig, LedgerSettings.
"""

from src.core.domain.address import (
    DEAD_ADDRESS,
    ZERO_ADDRESS,
    derive_address,
    is_zero_address,
    normalize_address,
    require_non_zero,
)
from src.core.domain.fee_config import FeeConfig
from src.core.domain.ledger_settings import LedgerSettings
from src.core.domain.units import (
    BPS_DENOMINATOR,
    NATIVE_DECIMALS,
    TOKEN_DECIMALS_DEFAULT,
    UINT256_MAX,
    bps_of,
    format_units,
    parse_ether,
    parse_units,
    validate_amount,
    validate_bps,
)

__all__ = [
    # Address module
    "ZERO_ADDRESS",
    "DEAD_ADDRESS",
    "normalize_address",
    "is_zero_address",
    "require_non_zero",
    "derive_address",
    # Units module
    "BPS_DENOMINATOR",
    "NATIVE_DECIMALS",
    "TOKEN_DECIMALS_DEFAULT",
    "UINT256_MAX",
    "parse_units",
    "format_units",
    "parse_ether",
    "bps_of",
    "validate_bps",
    "validate_amount",
    # Settings models
    "FeeConfig",
    "LedgerSettings",
]
