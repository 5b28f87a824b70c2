"""
FeeConfig — Модель конфигурации налогов токена

Immutable Pydantic модель: проценты налогов в basis points и флаг
налогообложения обычных (wallet → wallet) переводов.
Полная совместимость с JSON Schema (contracts/schema/fee_config.json).

Все изменения создают новый экземпляр через with_fees(), который
повторно проходит всю валидацию.
"""

from pydantic import BaseModel, Field, ValidationError, model_validator

from src.core.domain.units import BPS_DENOMINATOR
from src.core.errors import InvalidConfigurationError


# =============================================================================
# FEE CONFIG MODEL
# =============================================================================


class FeeConfig(BaseModel):
    """
    Конфигурация налогов.

    Распределение налога:
    - liquidity_fee_bps: на каждом taxed transfer, накапливается в токенах для auto-liquidity
    - buy_fee_bps / sell_fee_bps: только на buy / sell
      * treasury_share_bps от него свапается в native и уходит в Treasury
      * остаток отправляется в burn sink

    Инвариант: max(buy, sell) + liquidity <= 10000 (не более 100% с одного перевода).
    """

    buy_fee_bps: int = Field(
        700, strict=True, ge=0, le=BPS_DENOMINATOR, description="Налог на buy (bps)"
    )
    sell_fee_bps: int = Field(
        700, strict=True, ge=0, le=BPS_DENOMINATOR, description="Налог на sell (bps)"
    )
    liquidity_fee_bps: int = Field(
        200, strict=True, ge=0, le=BPS_DENOMINATOR, description="Налог auto-liquidity (bps)"
    )
    treasury_share_bps: int = Field(
        5000,
        strict=True,
        ge=0,
        le=BPS_DENOMINATOR,
        description="Доля buy/sell налога, отправляемая в Treasury (bps от налога)",
    )
    tax_ordinary_transfers: bool = Field(
        True, description="Облагать ли обычные переводы liquidity налогом"
    )

    model_config = {"frozen": True}

    @model_validator(mode="after")
    def validate_aggregate(self) -> "FeeConfig":
        """Проверка суммарного налога на один перевод (не более 100%)."""
        aggregate = self.max_aggregate_bps()
        if aggregate > BPS_DENOMINATOR:
            raise ValueError(
                f"aggregate fee {aggregate} bps exceeds {BPS_DENOMINATOR} bps "
                f"(buy={self.buy_fee_bps}, sell={self.sell_fee_bps}, "
                f"liquidity={self.liquidity_fee_bps})"
            )
        return self

    def max_aggregate_bps(self) -> int:
        """Максимальный суммарный налог на один перевод."""
        return max(self.buy_fee_bps, self.sell_fee_bps) + self.liquidity_fee_bps

    def with_fees(self, **changes) -> "FeeConfig":
        """
        Новый FeeConfig с изменёнными полями.

        model_copy(update=...) не валидирует, поэтому модель собирается заново.

        Raises:
            InvalidConfigurationError: Если новая конфигурация невалидна
        """
        try:
            return FeeConfig(**{**self.model_dump(), **changes})
        except ValidationError as e:
            raise InvalidConfigurationError(f"Invalid fee configuration: {e}") from e
