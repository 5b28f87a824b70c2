"""
LedgerSettings — Параметры развёртывания taxed ledger

Immutable Pydantic модель, совместимая с JSON Schema
(contracts/schema/ledger_settings.json).
"""

from pydantic import BaseModel, Field, field_validator

from src.core.domain.fee_config import FeeConfig
from src.core.domain.units import TOKEN_DECIMALS_DEFAULT, UINT256_MAX


class LedgerSettings(BaseModel):
    """
    Параметры токена.

    Значения по умолчанию соответствуют развёрнутому токену:
    1 000 000 000 токенов, 9 знаков, auto-swap при 100 000 накопленных токенов.
    """

    name: str = Field("Pawthereum", min_length=1, description="Имя токена")
    symbol: str = Field("PAWTH", min_length=1, max_length=11, description="Тикер")
    decimals: int = Field(TOKEN_DECIMALS_DEFAULT, ge=0, le=36, description="Десятичные знаки")
    total_supply_tokens: int = Field(
        1_000_000_000, gt=0, description="Эмиссия в whole tokens (минтится owner'у)"
    )
    fee_config: FeeConfig = Field(default_factory=FeeConfig, description="Налоги")
    swap_threshold_tokens: int = Field(
        100_000, ge=0, description="Порог auto-swap накопленных налогов (whole tokens)"
    )
    swap_enabled: bool = Field(True, description="Включён ли auto-swap")
    tax_active: bool = Field(True, description="Налоги активны с момента развёртывания")

    model_config = {"frozen": True}

    @field_validator("total_supply_tokens")
    @classmethod
    def validate_supply_fits_uint256(cls, v: int, info) -> int:
        """Эмиссия в base units должна помещаться в uint256."""
        decimals = info.data.get("decimals", TOKEN_DECIMALS_DEFAULT)
        if v * 10**decimals > UINT256_MAX:
            raise ValueError(f"total supply {v} with {decimals} decimals exceeds uint256")
        return v

    @property
    def total_supply(self) -> int:
        """Эмиссия в base units."""
        return self.total_supply_tokens * 10**self.decimals

    @property
    def swap_threshold(self) -> int:
        """Порог auto-swap в base units."""
        return self.swap_threshold_tokens * 10**self.decimals
