"""
TokenUnits — Централизованный модуль конверсии единиц

Единственный допустимый способ преобразований между:
- whole tokens / whole native (человеческие единицы)
- base units (целые числа, хранимые в ledger)
- basis points (1 bps = 0.01%, 10000 bps = 100%)

ЗАПРЕЩЕНО использовать float для сумм в ledger: все суммы — int в base units,
все округления — floor (integer division).
"""

from decimal import Decimal
from typing import Final


# =============================================================================
# КОНСТАНТЫ
# =============================================================================

# Знаменатель basis points
BPS_DENOMINATOR: Final[int] = 10_000

# Десятичные знаки нативной валюты (wei)
NATIVE_DECIMALS: Final[int] = 18

# Десятичные знаки токена по умолчанию
TOKEN_DECIMALS_DEFAULT: Final[int] = 9

# Максимальное значение uint256 (infinite allowance)
UINT256_MAX: Final[int] = 2**256 - 1


# =============================================================================
# БАЗОВЫЕ КОНВЕРТЕРЫ
# =============================================================================


def parse_units(amount: int | str | Decimal, decimals: int) -> int:
    """
    Конверсия: человеческие единицы → base units.

    Args:
        amount: Сумма в whole units (например, '100000000' или '0.01')
        decimals: Количество десятичных знаков

    Returns:
        Сумма в base units (int)

    Raises:
        ValueError: Если сумма отрицательна или имеет больше знаков, чем decimals
    """
    value = Decimal(str(amount)) * (Decimal(10) ** decimals)
    if value < 0:
        raise ValueError(f"Amount cannot be negative: {amount}")
    if value != value.to_integral_value():
        raise ValueError(f"Amount {amount} has more than {decimals} decimals")
    return int(value)


def format_units(amount: int, decimals: int) -> Decimal:
    """
    Конверсия: base units → человеческие единицы (для логов и отчётов).
    """
    return Decimal(amount) / (Decimal(10) ** decimals)


def parse_ether(amount: int | str | Decimal) -> int:
    """Конверсия нативной валюты: whole → wei."""
    return parse_units(amount, NATIVE_DECIMALS)


# =============================================================================
# BASIS POINTS
# =============================================================================


def bps_of(amount: int, bps: int) -> int:
    """
    Доля суммы в basis points с округлением вниз.

    fee = floor(amount * bps / 10000); остаток округления остаётся у плательщика.

    Args:
        amount: Сумма в base units
        bps: Доля в basis points [0, 10000]

    Returns:
        floor(amount * bps / 10000)
    """
    validate_amount(amount)
    validate_bps(bps)
    return amount * bps // BPS_DENOMINATOR


# =============================================================================
# ВАЛИДАЦИЯ
# =============================================================================


def validate_bps(bps: int, name: str = "bps") -> None:
    """
    Проверка диапазона basis points.

    Raises:
        ValueError: Если значение не int или вне [0, 10000]
    """
    if isinstance(bps, bool) or not isinstance(bps, int):
        raise ValueError(f"{name} must be an integer, got {bps!r}")
    if bps < 0 or bps > BPS_DENOMINATOR:
        raise ValueError(f"{name} must be within [0, {BPS_DENOMINATOR}], got {bps}")


def validate_amount(amount: int, name: str = "amount") -> None:
    """
    Проверка суммы в base units.

    Raises:
        ValueError: Если сумма не int, отрицательна или больше uint256
    """
    if isinstance(amount, bool) or not isinstance(amount, int):
        raise ValueError(f"{name} must be an integer, got {amount!r}")
    if amount < 0:
        raise ValueError(f"{name} cannot be negative: {amount}")
    if amount > UINT256_MAX:
        raise ValueError(f"{name} exceeds uint256: {amount}")
