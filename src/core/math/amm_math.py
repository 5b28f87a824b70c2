"""
AMM Math — Целочисленные формулы constant-product пула

Стандартная семантика x·y=k (Uniswap V2 / PancakeSwap):

ФОРМУЛЫ:
    amount_in_with_fee = amount_in * (10000 - fee_bps)
    amount_out = amount_in_with_fee * reserve_out
                 / (reserve_in * 10000 + amount_in_with_fee)

    quote(amount_a) = amount_a * reserve_b / reserve_a

    first liquidity = isqrt(amount_a * amount_b) - MINIMUM_LIQUIDITY
    next liquidity  = min(amount_a * supply / reserve_a, amount_b * supply / reserve_b)

КРИТИЧЕСКИЕ ИНВАРИАНТЫ:
1. Все операции целочисленные, округление вниз (в пользу пула)
2. Нулевые резервы/входы → ValueError (router превращает в revert)
3. Все операции детерминированы и воспроизводимы
"""

import math
from typing import Final

from src.core.domain.units import BPS_DENOMINATOR


# =============================================================================
# КОНСТАНТЫ
# =============================================================================

# Swap fee PancakeSwap V2: 0.25%
SWAP_FEE_BPS_DEFAULT: Final[int] = 25

# LP токены, навсегда заблокированные при первом mint
MINIMUM_LIQUIDITY: Final[int] = 1_000


# =============================================================================
# SWAP
# =============================================================================


def get_amount_out(
    amount_in: int,
    reserve_in: int,
    reserve_out: int,
    fee_bps: int = SWAP_FEE_BPS_DEFAULT,
) -> int:
    """
    Output свапа при заданных резервах.

    Args:
        amount_in: Вход в base units
        reserve_in: Резерв входного актива
        reserve_out: Резерв выходного актива
        fee_bps: Swap fee в basis points

    Returns:
        Output в base units (округление вниз)

    Raises:
        ValueError: INSUFFICIENT_INPUT_AMOUNT / INSUFFICIENT_LIQUIDITY

    Examples:
        >>> get_amount_out(1000, 1_000_000, 1_000_000)
        996
    """
    if amount_in <= 0:
        raise ValueError("INSUFFICIENT_INPUT_AMOUNT")
    if reserve_in <= 0 or reserve_out <= 0:
        raise ValueError("INSUFFICIENT_LIQUIDITY")

    amount_in_with_fee = amount_in * (BPS_DENOMINATOR - fee_bps)
    numerator = amount_in_with_fee * reserve_out
    denominator = reserve_in * BPS_DENOMINATOR + amount_in_with_fee
    return numerator // denominator


def quote(amount_a: int, reserve_a: int, reserve_b: int) -> int:
    """
    Эквивалентная сумма актива B по текущему соотношению резервов (без fee).

    Raises:
        ValueError: INSUFFICIENT_AMOUNT / INSUFFICIENT_LIQUIDITY
    """
    if amount_a <= 0:
        raise ValueError("INSUFFICIENT_AMOUNT")
    if reserve_a <= 0 or reserve_b <= 0:
        raise ValueError("INSUFFICIENT_LIQUIDITY")
    return amount_a * reserve_b // reserve_a


# =============================================================================
# LIQUIDITY
# =============================================================================


def liquidity_to_mint(
    amount_a: int,
    amount_b: int,
    reserve_a: int,
    reserve_b: int,
    total_supply: int,
) -> int:
    """
    Количество LP токенов для депозита (amount_a, amount_b).

    Первый депозит: isqrt(a*b) - MINIMUM_LIQUIDITY, последующие —
    пропорционально меньшей из долей.

    Raises:
        ValueError: INSUFFICIENT_LIQUIDITY_MINTED
    """
    if total_supply == 0:
        liquidity = math.isqrt(amount_a * amount_b) - MINIMUM_LIQUIDITY
    else:
        liquidity = min(
            amount_a * total_supply // reserve_a,
            amount_b * total_supply // reserve_b,
        )

    if liquidity <= 0:
        raise ValueError("INSUFFICIENT_LIQUIDITY_MINTED")
    return liquidity


def optimal_liquidity_amounts(
    amount_a_desired: int,
    amount_b_desired: int,
    reserve_a: int,
    reserve_b: int,
) -> tuple[int, int]:
    """
    Суммы депозита, сохраняющие соотношение резервов.

    Пустой пул принимает desired суммы как есть.

    Returns:
        (amount_a, amount_b) — не больше desired по каждому активу
    """
    if reserve_a == 0 and reserve_b == 0:
        return amount_a_desired, amount_b_desired

    amount_b_optimal = quote(amount_a_desired, reserve_a, reserve_b)
    if amount_b_optimal <= amount_b_desired:
        return amount_a_desired, amount_b_optimal

    amount_a_optimal = quote(amount_b_desired, reserve_b, reserve_a)
    return amount_a_optimal, amount_b_desired
