"""Treasury — buy-back-and-burn и rescue на multisig."""

from .buy_back_and_burn import BuyBackAndBurnTreasury, TreasuryStorage

__all__ = [
    "BuyBackAndBurnTreasury",
    "TreasuryStorage",
]
