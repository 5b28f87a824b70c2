"""
TaxedLedger — Токен с налогом на переводы

Balance ledger с фиксированной эмиссией. На каждом taxed переводе налог
(fee_engine) распределяется:
- liquidity доля → баланс контракта, накопитель auto-liquidity
- treasury доля → баланс контракта, накопитель для swap в native → Treasury
- burn доля → burn sink

Auto-swap (swap_and_liquify) — рекурсивный вызов в AMM изнутри перевода,
защищён флагом in_swap: пока внешний перевод не завершён, вложенные
переводы контракта не облагаются налогом и не запускают новый swap.
Порядок checks-effects-interactions: накопители обнуляются ДО вызова router.

КРИТИЧЕСКИЕ ИНВАРИАНТЫ:
1. sum(balances) == total_supply в любой точке наблюдения
2. received + fee == amount для каждого перевода
3. initial liquidity создаётся ровно один раз и только при выключенных налогах
"""

from dataclasses import dataclass, field
from typing import Dict, Optional, Set, Tuple
import logging

from src.access.role_gate import Role, RoleGate
from src.amm.router_client import AmmRouterClient, RouterClientConfig, RouterProtocol
from src.chain.runtime import Chain, Contract, transactional
from src.core.domain.address import DEAD_ADDRESS, ZERO_ADDRESS, normalize_address, require_non_zero
from src.core.domain.fee_config import FeeConfig
from src.core.domain.ledger_settings import LedgerSettings
from src.core.domain.units import UINT256_MAX, validate_amount
from src.core.errors import (
    InsufficientAllowanceError,
    InsufficientBalanceError,
    InvalidConfigurationError,
)
from src.ledger.fee_engine import FeeBreakdown, TransferKind, classify_transfer, compute_fee_breakdown
from src.ledger.tax_state_machine import TaxEvent, TaxState, TaxStateMachine, derive_state

logger = logging.getLogger(__name__)


@dataclass
class LedgerStorage:
    """Мутируемое состояние ledger (снапшотится транзакцией)."""

    owner: str
    fee_config: FeeConfig
    tax_active: bool
    swap_threshold: int
    swap_enabled: bool
    treasury: str = ZERO_ADDRESS

    balances: Dict[str, int] = field(default_factory=dict)
    allowances: Dict[Tuple[str, str], int] = field(default_factory=dict)
    fee_exempt: Set[str] = field(default_factory=set)
    pairs: Set[str] = field(default_factory=set)

    lp_seeded: bool = False
    lp_pair: str = ZERO_ADDRESS

    # Накопители налогов (токены на балансе контракта)
    liquidity_tokens_pending: int = 0
    treasury_tokens_pending: int = 0

    # Guard auto-swap
    in_swap: bool = False


class TaxedLedger(Contract):
    """Токен с налогом buy/sell/liquidity, auto-liquidity и отправкой налога в Treasury."""

    def __init__(
        self,
        chain: Chain,
        deployer: str,
        router: RouterProtocol,
        settings: Optional[LedgerSettings] = None,
        treasury: str = ZERO_ADDRESS,
        burn_sink: str = DEAD_ADDRESS,
        router_config: Optional[RouterClientConfig] = None,
    ):
        """
        Args:
            chain: среда исполнения
            deployer: owner токена, получает всю эмиссию
            router: AMM router (RouterProtocol)
            settings: параметры токена (опционально, используются default)
            treasury: получатель native доли налога (можно задать позже)
            burn_sink: адрес burn sink
            router_config: конфигурация router client
        """
        settings = settings or LedgerSettings()
        owner = normalize_address(deployer)
        self._storage = LedgerStorage(
            owner=owner,
            fee_config=settings.fee_config,
            tax_active=settings.tax_active,
            swap_threshold=settings.swap_threshold,
            swap_enabled=settings.swap_enabled,
        )
        super().__init__(chain, owner)

        # Immutable параметры
        self.name = settings.name
        self.symbol = settings.symbol
        self.decimals = settings.decimals
        self.total_supply = settings.total_supply
        self.burn_sink = require_non_zero(burn_sink, "burn sink")
        self.router = AmmRouterClient(chain, router, self.address, router_config)

        self._owner_gate = RoleGate(Role.OWNER, lambda: self._storage.owner)
        self._tax_state_machine = TaxStateMachine()

        s = self._storage
        if treasury != ZERO_ADDRESS:
            s.treasury = require_non_zero(treasury, "treasury")
        s.fee_exempt.update({self.address, self.burn_sink})
        s.balances[owner] = self.total_supply
        self.emit("Transfer", sender=ZERO_ADDRESS, recipient=owner, amount=self.total_supply)
        logger.info(
            f"{self.symbol} deployed at {self.address}: supply={self.total_supply}, owner={owner}"
        )

    # =========================================================================
    # VIEWS
    # =========================================================================

    @property
    def owner(self) -> str:
        return self._storage.owner

    @property
    def treasury(self) -> str:
        return self._storage.treasury

    @property
    def fee_config(self) -> FeeConfig:
        return self._storage.fee_config

    @property
    def tax_active(self) -> bool:
        return self._storage.tax_active

    @property
    def lp_pair(self) -> str:
        return self._storage.lp_pair

    @property
    def tax_state(self) -> TaxState:
        return derive_state(self._storage.lp_seeded, self._storage.tax_active)

    @property
    def liquidity_tokens_pending(self) -> int:
        return self._storage.liquidity_tokens_pending

    @property
    def treasury_tokens_pending(self) -> int:
        return self._storage.treasury_tokens_pending

    @property
    def swap_threshold(self) -> int:
        return self._storage.swap_threshold

    @property
    def swap_enabled(self) -> bool:
        return self._storage.swap_enabled

    def balance_of(self, account: str) -> int:
        return self._storage.balances.get(normalize_address(account), 0)

    def allowance(self, owner: str, spender: str) -> int:
        return self._storage.allowances.get((normalize_address(owner), normalize_address(spender)), 0)

    def is_fee_exempt(self, account: str) -> bool:
        return normalize_address(account) in self._storage.fee_exempt

    def is_pair(self, account: str) -> bool:
        return normalize_address(account) in self._storage.pairs

    def sum_of_balances(self) -> int:
        return sum(self._storage.balances.values())

    def circulating_supply(self) -> int:
        """Эмиссия без баланса burn sink."""
        return self.total_supply - self.balance_of(self.burn_sink)

    def preview_fee(self, sender: str, recipient: str, amount: int) -> Optional[FeeBreakdown]:
        """Налог, который был бы удержан с перевода (None если перевод не облагается)."""
        sender, recipient = normalize_address(sender), normalize_address(recipient)
        if not self._is_taxed(sender, recipient):
            return None
        kind = classify_transfer(sender, recipient, self._storage.pairs)
        return compute_fee_breakdown(amount, kind, self._storage.fee_config)

    # =========================================================================
    # TOKEN STANDARD
    # =========================================================================

    @transactional
    def transfer(self, sender: str, recipient: str, amount: int) -> bool:
        self._transfer(sender, recipient, amount)
        return True

    @transactional
    def approve(self, owner: str, spender: str, amount: int) -> bool:
        self._approve(owner, spender, amount)
        return True

    @transactional
    def increase_allowance(self, owner: str, spender: str, added: int) -> bool:
        validate_amount(added, "added")
        current = self.allowance(owner, spender)
        if current + added > UINT256_MAX:
            raise InvalidConfigurationError(
                f"Increased allowance overflows uint256: {current} + {added}"
            )
        self._approve(owner, spender, current + added)
        return True

    @transactional
    def decrease_allowance(self, owner: str, spender: str, subtracted: int) -> bool:
        validate_amount(subtracted, "subtracted")
        current = self.allowance(owner, spender)
        if subtracted > current:
            raise InsufficientAllowanceError(
                f"Decreased allowance below zero: {current} - {subtracted}"
            )
        self._approve(owner, spender, current - subtracted)
        return True

    @transactional
    def transfer_from(self, spender: str, owner: str, recipient: str, amount: int) -> bool:
        validate_amount(amount)
        current = self.allowance(owner, spender)
        if current != UINT256_MAX:
            if amount > current:
                raise InsufficientAllowanceError(
                    f"Transfer amount {amount} exceeds allowance {current} of {spender}"
                )
            self._approve(owner, spender, current - amount)
        self._transfer(owner, recipient, amount)
        return True

    def receive(self, sender: str, amount: int) -> None:
        # Native от router во время swap_and_liquify
        logger.debug(f"{self.symbol} received {amount} wei from {sender}")

    # =========================================================================
    # TRANSFER ENGINE
    # =========================================================================

    def _is_taxed(self, sender: str, recipient: str) -> bool:
        s = self._storage
        return (
            s.tax_active
            and not s.in_swap
            and sender not in s.fee_exempt
            and recipient not in s.fee_exempt
        )

    def _transfer(self, sender: str, recipient: str, amount: int) -> None:
        validate_amount(amount)
        sender = require_non_zero(sender, "sender")
        recipient = require_non_zero(recipient, "recipient")
        s = self._storage

        balance = s.balances.get(sender, 0)
        if amount > balance:
            raise InsufficientBalanceError(
                f"Transfer amount {amount} exceeds balance {balance} of {sender}"
            )

        breakdown: Optional[FeeBreakdown] = None
        if self._is_taxed(sender, recipient):
            kind = classify_transfer(sender, recipient, s.pairs)
            if kind != TransferKind.BUY and self._should_swap():
                self._swap_and_liquify()
            breakdown = compute_fee_breakdown(amount, kind, s.fee_config)

        received = amount if breakdown is None else breakdown.net
        s.balances[sender] = balance - amount
        s.balances[recipient] = s.balances.get(recipient, 0) + received
        self.emit("Transfer", sender=sender, recipient=recipient, amount=received)

        if breakdown is not None and breakdown.total_fee > 0:
            self._collect_fee(sender, breakdown)

    def _collect_fee(self, sender: str, breakdown: FeeBreakdown) -> None:
        s = self._storage
        retained = breakdown.liquidity + breakdown.treasury
        if retained > 0:
            s.balances[self.address] = s.balances.get(self.address, 0) + retained
            s.liquidity_tokens_pending += breakdown.liquidity
            s.treasury_tokens_pending += breakdown.treasury
            self.emit("Transfer", sender=sender, recipient=self.address, amount=retained)
        if breakdown.burn > 0:
            s.balances[self.burn_sink] = s.balances.get(self.burn_sink, 0) + breakdown.burn
            self.emit("Transfer", sender=sender, recipient=self.burn_sink, amount=breakdown.burn)

        logger.debug(
            f"{breakdown.kind.value} fee {breakdown.total_fee} ({breakdown.fee_bps} bps) from {sender}: "
            f"liquidity={breakdown.liquidity}, treasury={breakdown.treasury}, burn={breakdown.burn}"
        )

    def _approve(self, owner: str, spender: str, amount: int) -> None:
        validate_amount(amount)
        owner = require_non_zero(owner, "owner")
        spender = require_non_zero(spender, "spender")
        self._storage.allowances[(owner, spender)] = amount
        self.emit("Approval", owner=owner, spender=spender, amount=amount)

    # =========================================================================
    # AUTO-LIQUIDITY
    # =========================================================================

    def _swappable_pending(self) -> int:
        s = self._storage
        treasury_part = s.treasury_tokens_pending if s.treasury != ZERO_ADDRESS else 0
        return s.liquidity_tokens_pending + treasury_part

    def _should_swap(self) -> bool:
        s = self._storage
        pending = self._swappable_pending()
        return (
            s.lp_seeded
            and s.swap_enabled
            and not s.in_swap
            and pending > 0
            and pending >= s.swap_threshold
        )

    def _swap_and_liquify(self) -> None:
        """Swap накопленных налогов в native, auto-liquidity и отправка доли Treasury."""
        s = self._storage
        liquidity_tokens = s.liquidity_tokens_pending
        treasury_tokens = s.treasury_tokens_pending if s.treasury != ZERO_ADDRESS else 0

        # Effects до interactions
        s.liquidity_tokens_pending = 0
        s.treasury_tokens_pending -= treasury_tokens
        s.in_swap = True
        try:
            half = liquidity_tokens // 2
            other_half = liquidity_tokens - half
            tokens_to_swap = half + treasury_tokens
            if tokens_to_swap == 0:
                s.liquidity_tokens_pending += other_half
                return

            native_before = self.native_balance
            self._approve(self.address, self.router.router_address, tokens_to_swap + other_half)
            self.router.sell_token(self.address, tokens_to_swap, 0, to=self.address)
            native_received = self.native_balance - native_before

            native_for_liquidity = native_received * half // tokens_to_swap
            native_for_treasury = native_received - native_for_liquidity

            tokens_added = native_added = 0
            if other_half > 0 and native_for_liquidity > 0:
                tokens_added, native_added, _ = self.router.add_liquidity(
                    self.address, other_half, native_for_liquidity, to=s.owner
                )
            # Неиспользованные токены возвращаются в накопитель, native — в Treasury
            s.liquidity_tokens_pending += other_half - tokens_added
            native_for_treasury += native_for_liquidity - native_added

            if native_for_treasury > 0 and s.treasury != ZERO_ADDRESS:
                self.chain.send_native(self.address, s.treasury, native_for_treasury)

            self.emit(
                "SwapAndLiquify",
                tokens_swapped=tokens_to_swap,
                native_received=native_received,
                tokens_into_liquidity=tokens_added,
                native_into_liquidity=native_added,
                native_to_treasury=native_for_treasury if s.treasury != ZERO_ADDRESS else 0,
            )
            logger.info(
                f"swap_and_liquify: swapped {tokens_to_swap} tokens for {native_received} wei, "
                f"liquidity +{tokens_added}/{native_added}, treasury +{native_for_treasury} wei"
            )
        finally:
            s.in_swap = False

    @transactional
    def manual_swap(self, caller: str) -> None:
        """Ручной запуск swap_and_liquify независимо от порога (owner-only)."""
        self._owner_gate.require(caller, "manual_swap")
        if not self._storage.lp_seeded:
            raise InvalidConfigurationError("Liquidity is not seeded yet")
        if self._swappable_pending() == 0:
            raise InsufficientBalanceError("No pending fee tokens to swap")
        self._swap_and_liquify()

    # =========================================================================
    # INITIAL LIQUIDITY
    # =========================================================================

    @transactional
    def init_lp(self, sender: str, value: int) -> str:
        """
        Создание первой liquidity: весь свободный баланс токена контракта + value native.

        Owner-only, один раз, только при выключенных налогах. Созданный pair
        навсегда регистрируется как распознанный.

        Returns:
            Адрес pair
        """
        self._owner_gate.require(sender, "init_lp")
        s = self._storage
        result = self._tax_state_machine.evaluate_transition(
            s.lp_seeded, s.tax_active, TaxEvent.SEED_LIQUIDITY
        )
        if not result.allowed:
            raise InvalidConfigurationError(result.details)

        validate_amount(value, "value")
        if value == 0:
            raise InvalidConfigurationError("Initial liquidity requires native currency")
        token_amount = self.balance_of(self.address) - s.liquidity_tokens_pending - s.treasury_tokens_pending
        if token_amount <= 0:
            raise InsufficientBalanceError("Contract holds no tokens for initial liquidity")

        self.chain.move_native(sender, self.address, value)
        s.lp_seeded = True

        self._approve(self.address, self.router.router_address, token_amount)
        tokens_added, native_added, liquidity = self.router.add_liquidity(
            self.address, token_amount, value, to=s.owner
        )
        pair = self.router.pair_address()
        s.pairs.add(pair)
        s.lp_pair = pair

        self.emit("LiquiditySeeded", pair=pair, tokens=tokens_added, native=native_added, liquidity=liquidity)
        logger.info(
            f"Initial liquidity seeded: pair={pair}, tokens={tokens_added}, "
            f"native={native_added}, LP={liquidity} ({result.transition_reason})"
        )
        return pair

    # =========================================================================
    # ADMINISTRATION (owner-only)
    # =========================================================================

    @transactional
    def set_tax_active(self, caller: str, active: bool) -> None:
        self._owner_gate.require(caller, "set_tax_active")
        s = self._storage
        event = TaxEvent.ENABLE_TAX if active else TaxEvent.DISABLE_TAX
        result = self._tax_state_machine.evaluate_transition(s.lp_seeded, s.tax_active, event)
        if not result.allowed:
            raise InvalidConfigurationError(result.details)
        s.tax_active = result.new_tax_active
        self.emit("TaxActiveUpdated", active=s.tax_active)
        logger.info(f"Tax active set to {s.tax_active}: {result.details}")

    def _update_fees(self, caller: str, operation: str, **changes) -> None:
        self._owner_gate.require(caller, operation)
        s = self._storage
        s.fee_config = s.fee_config.with_fees(**changes)
        self.emit("FeeConfigUpdated", **s.fee_config.model_dump())
        logger.info(f"{operation}: {changes}, aggregate={s.fee_config.max_aggregate_bps()} bps")

    @transactional
    def set_buy_fee(self, caller: str, bps: int) -> None:
        self._update_fees(caller, "set_buy_fee", buy_fee_bps=bps)

    @transactional
    def set_sell_fee(self, caller: str, bps: int) -> None:
        self._update_fees(caller, "set_sell_fee", sell_fee_bps=bps)

    @transactional
    def set_liquidity_fee(self, caller: str, bps: int) -> None:
        self._update_fees(caller, "set_liquidity_fee", liquidity_fee_bps=bps)

    @transactional
    def set_treasury_share(self, caller: str, bps: int) -> None:
        self._update_fees(caller, "set_treasury_share", treasury_share_bps=bps)

    @transactional
    def set_tax_ordinary_transfers(self, caller: str, enabled: bool) -> None:
        self._update_fees(caller, "set_tax_ordinary_transfers", tax_ordinary_transfers=enabled)

    @transactional
    def set_fee_exempt(self, caller: str, account: str, exempt: bool) -> None:
        self._owner_gate.require(caller, "set_fee_exempt")
        account = require_non_zero(account, "account")
        if not exempt and account == self.address:
            raise InvalidConfigurationError("Ledger contract must stay fee exempt")
        if exempt:
            self._storage.fee_exempt.add(account)
        else:
            self._storage.fee_exempt.discard(account)
        self.emit("FeeExemptUpdated", account=account, exempt=exempt)
        logger.info(f"Fee exemption of {account} set to {exempt}")

    @transactional
    def set_pair(self, caller: str, pair: str, recognized: bool) -> None:
        self._owner_gate.require(caller, "set_pair")
        pair = require_non_zero(pair, "pair")
        if not recognized and pair == self._storage.lp_pair:
            raise InvalidConfigurationError("Initial liquidity pair cannot be removed")
        if recognized:
            self._storage.pairs.add(pair)
        else:
            self._storage.pairs.discard(pair)
        self.emit("PairUpdated", pair=pair, recognized=recognized)
        logger.info(f"Pair {pair} recognized={recognized}")

    @transactional
    def set_treasury(self, caller: str, treasury: str) -> None:
        self._owner_gate.require(caller, "set_treasury")
        self._storage.treasury = require_non_zero(treasury, "treasury")
        self.emit("TreasuryUpdated", treasury=self._storage.treasury)
        logger.info(f"Treasury set to {self._storage.treasury}")

    @transactional
    def set_swap_threshold(self, caller: str, threshold: int) -> None:
        self._owner_gate.require(caller, "set_swap_threshold")
        validate_amount(threshold, "threshold")
        if threshold > self.total_supply:
            raise InvalidConfigurationError(f"Swap threshold {threshold} exceeds total supply")
        self._storage.swap_threshold = threshold
        self.emit("SwapThresholdUpdated", threshold=threshold)

    @transactional
    def set_swap_enabled(self, caller: str, enabled: bool) -> None:
        self._owner_gate.require(caller, "set_swap_enabled")
        self._storage.swap_enabled = enabled
        self.emit("SwapEnabledUpdated", enabled=enabled)

    @transactional
    def rescue_native(self, caller: str) -> int:
        """Остаток native на контракте → Treasury (owner-only, получатель фиксирован)."""
        self._owner_gate.require(caller, "rescue_native")
        treasury = self._storage.treasury
        if treasury == ZERO_ADDRESS:
            raise InvalidConfigurationError("Treasury is not set")
        amount = self.native_balance
        if amount > 0:
            self.chain.send_native(self.address, treasury, amount)
        logger.info(f"Rescued {amount} wei from {self.symbol} to treasury {treasury}")
        return amount

    @transactional
    def transfer_ownership(self, caller: str, new_owner: str) -> None:
        self._owner_gate.require(caller, "transfer_ownership")
        previous = self._storage.owner
        self._storage.owner = require_non_zero(new_owner, "new owner")
        self.emit("OwnershipTransferred", previous=previous, new_owner=self._storage.owner)
        logger.info(f"Ownership transferred: {previous} → {self._storage.owner}")
