"""
Тесты Pydantic моделей конфигурации

Проверяет:
- FeeConfig: defaults, диапазоны, инвариант суммарного налога, immutability, with_fees
- LedgerSettings: defaults, base units, вложенный fee_config, uint256 лимит
"""

import pytest
from pydantic import ValidationError

from src.core.domain import FeeConfig, LedgerSettings
from src.core.errors import InvalidConfigurationError


class TestFeeConfig:
    """Тесты FeeConfig"""

    def test_defaults(self) -> None:
        config = FeeConfig()

        assert config.buy_fee_bps == 700
        assert config.sell_fee_bps == 700
        assert config.liquidity_fee_bps == 200
        assert config.treasury_share_bps == 5000
        assert config.tax_ordinary_transfers is True
        assert config.max_aggregate_bps() == 900

    def test_aggregate_at_limit_allowed(self) -> None:
        config = FeeConfig(buy_fee_bps=9_800, sell_fee_bps=500, liquidity_fee_bps=200)
        assert config.max_aggregate_bps() == 10_000

    def test_aggregate_above_limit_rejected(self) -> None:
        with pytest.raises(ValidationError, match="aggregate fee"):
            FeeConfig(buy_fee_bps=500, sell_fee_bps=9_900, liquidity_fee_bps=200)

    @pytest.mark.parametrize("field", ["buy_fee_bps", "sell_fee_bps", "liquidity_fee_bps", "treasury_share_bps"])
    def test_negative_rejected(self, field) -> None:
        with pytest.raises(ValidationError):
            FeeConfig(**{field: -1})

    def test_above_denominator_rejected(self) -> None:
        with pytest.raises(ValidationError):
            FeeConfig(treasury_share_bps=10_001)

    def test_strict_int(self) -> None:
        """Строки и float не приводятся к bps"""
        with pytest.raises(ValidationError):
            FeeConfig(buy_fee_bps="700")
        with pytest.raises(ValidationError):
            FeeConfig(sell_fee_bps=7.5)

    def test_frozen(self) -> None:
        config = FeeConfig()
        with pytest.raises(ValidationError):
            config.buy_fee_bps = 100

    def test_with_fees_returns_new_instance(self) -> None:
        config = FeeConfig()
        updated = config.with_fees(sell_fee_bps=1_000)

        assert updated.sell_fee_bps == 1_000
        assert config.sell_fee_bps == 700
        assert updated.buy_fee_bps == config.buy_fee_bps

    def test_with_fees_invalid_raises_configuration_error(self) -> None:
        config = FeeConfig()
        with pytest.raises(InvalidConfigurationError):
            config.with_fees(liquidity_fee_bps=9_500)

    def test_with_fees_rejects_bool_for_bps(self) -> None:
        with pytest.raises(InvalidConfigurationError):
            FeeConfig().with_fees(buy_fee_bps=True)


class TestLedgerSettings:
    """Тесты LedgerSettings"""

    def test_defaults(self) -> None:
        settings = LedgerSettings()

        assert settings.name == "Pawthereum"
        assert settings.symbol == "PAWTH"
        assert settings.decimals == 9
        assert settings.total_supply == 10**18
        assert settings.swap_threshold == 100_000 * 10**9
        assert settings.tax_active is True
        assert settings.fee_config == FeeConfig()

    def test_nested_fee_config_from_dict(self) -> None:
        settings = LedgerSettings.model_validate(
            {"fee_config": {"buy_fee_bps": 100, "sell_fee_bps": 200, "liquidity_fee_bps": 0}}
        )

        assert settings.fee_config.sell_fee_bps == 200
        assert settings.fee_config.liquidity_fee_bps == 0

    def test_nested_invalid_fee_config(self) -> None:
        with pytest.raises(ValidationError):
            LedgerSettings.model_validate(
                {"fee_config": {"buy_fee_bps": 9_000, "sell_fee_bps": 0, "liquidity_fee_bps": 2_000}}
            )

    def test_zero_supply_rejected(self) -> None:
        with pytest.raises(ValidationError):
            LedgerSettings(total_supply_tokens=0)

    def test_supply_overflow_rejected(self) -> None:
        with pytest.raises(ValidationError, match="uint256"):
            LedgerSettings(decimals=36, total_supply_tokens=10**50)

    def test_custom_decimals_scale_units(self) -> None:
        settings = LedgerSettings(decimals=18, total_supply_tokens=1_000, swap_threshold_tokens=1)

        assert settings.total_supply == 1_000 * 10**18
        assert settings.swap_threshold == 10**18
