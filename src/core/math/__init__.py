"""
Core math modules

Целочисленные примитивы constant-product AMM (floor rounding, без float).
"""

from src.core.math.amm_math import (
    MINIMUM_LIQUIDITY,
    SWAP_FEE_BPS_DEFAULT,
    get_amount_out,
    liquidity_to_mint,
    optimal_liquidity_amounts,
    quote,
)

__all__ = [
    "MINIMUM_LIQUIDITY",
    "SWAP_FEE_BPS_DEFAULT",
    "get_amount_out",
    "quote",
    "liquidity_to_mint",
    "optimal_liquidity_amounts",
]
