"""
Fee Engine — Классификация переводов и расчёт налога

Чистые функции без состояния: ledger передаёт сюда множество pair-адресов
и текущий FeeConfig, получает разбивку налога.

КЛАССИФИКАЦИЯ (по явному множеству pair-адресов):
    from ∈ pairs, to ∉ pairs → BUY      (buy_fee + liquidity_fee)
    to ∈ pairs               → SELL     (sell_fee + liquidity_fee)
    иначе                    → ORDINARY (liquidity_fee или 0)

ФОРМУЛЫ:
    total_fee = floor(amount * fee_bps / 10000),  fee_bps = сумма применимых bps
    liquidity = floor(total_fee * liquidity_bps / fee_bps)
    category  = total_fee - liquidity
    treasury  = floor(category * treasury_share_bps / 10000)
    burn      = category - treasury
    net       = amount - total_fee

КРИТИЧЕСКИЕ ИНВАРИАНТЫ:
1. net + total_fee == amount (ни создания, ни потери стоимости)
2. liquidity + treasury + burn == total_fee
3. Остаток округления остаётся у отправителя (net округляется вверх)
"""

from dataclasses import dataclass
from enum import Enum
from typing import AbstractSet

from src.core.domain.fee_config import FeeConfig
from src.core.domain.units import BPS_DENOMINATOR, bps_of, validate_amount


class TransferKind(str, Enum):
    """Тип перевода."""

    BUY = "buy"
    SELL = "sell"
    ORDINARY = "ordinary"


@dataclass(frozen=True)
class FeeBreakdown:
    """Разбивка налога одного перевода."""

    kind: TransferKind
    amount: int
    fee_bps: int

    total_fee: int
    liquidity: int
    treasury: int
    burn: int

    @property
    def net(self) -> int:
        """Сумма, получаемая получателем."""
        return self.amount - self.total_fee


def classify_transfer(sender: str, recipient: str, pairs: AbstractSet[str]) -> TransferKind:
    """
    Классификация перевода по членству адресов в множестве pair.

    Args:
        sender: Адрес отправителя
        recipient: Адрес получателя
        pairs: Множество распознанных liquidity pair

    Returns:
        BUY / SELL / ORDINARY
    """
    if recipient in pairs:
        return TransferKind.SELL
    if sender in pairs:
        return TransferKind.BUY
    return TransferKind.ORDINARY


def applicable_fees(kind: TransferKind, config: FeeConfig) -> tuple[int, int]:
    """
    Применимые налоги для типа перевода.

    Returns:
        (category_bps, liquidity_bps): налог категории (buy/sell) и liquidity налог
    """
    if kind == TransferKind.BUY:
        return config.buy_fee_bps, config.liquidity_fee_bps
    if kind == TransferKind.SELL:
        return config.sell_fee_bps, config.liquidity_fee_bps
    if config.tax_ordinary_transfers:
        return 0, config.liquidity_fee_bps
    return 0, 0


def compute_fee_breakdown(amount: int, kind: TransferKind, config: FeeConfig) -> FeeBreakdown:
    """
    Расчёт налога перевода.

    Args:
        amount: Сумма перевода в base units
        kind: Тип перевода
        config: Текущая конфигурация налогов

    Returns:
        FeeBreakdown, где liquidity + treasury + burn == total_fee

    Raises:
        ValueError: Если amount невалиден
    """
    validate_amount(amount)
    category_bps, liquidity_bps = applicable_fees(kind, config)
    fee_bps = category_bps + liquidity_bps

    if fee_bps == 0 or amount == 0:
        return FeeBreakdown(
            kind=kind, amount=amount, fee_bps=fee_bps,
            total_fee=0, liquidity=0, treasury=0, burn=0,
        )

    total_fee = bps_of(amount, fee_bps)
    liquidity = total_fee * liquidity_bps // fee_bps
    category = total_fee - liquidity
    treasury = category * config.treasury_share_bps // BPS_DENOMINATOR
    burn = category - treasury

    return FeeBreakdown(
        kind=kind,
        amount=amount,
        fee_bps=fee_bps,
        total_fee=total_fee,
        liquidity=liquidity,
        treasury=treasury,
        burn=burn,
    )
