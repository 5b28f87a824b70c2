"""Local Router — in-process constant-product AMM (Uniswap V2 / PancakeSwap V2 семантика).

Коллаборатор для симуляций и тестов, стандартная x·y=k модель:
- LocalFactory: реестр pair по паре адресов
- LocalPair: резервы native/token, LP учёт, k-invariant
- LocalRouter: quote, swap (exact и fee-on-transfer варианты), add liquidity

Ограничения:
- Только pair вида native(WETH)/token; native хранится как нативный баланс pair
- Swap path строго из двух адресов
"""

from dataclasses import dataclass, field
from typing import Dict, List, Tuple
import logging

from src.chain.runtime import Chain, Contract, nonreentrant, transactional
from src.core.domain.address import ZERO_ADDRESS, derive_address, normalize_address
from src.core.errors import ExternalCallError, SlippageError
from src.core.math.amm_math import (
    MINIMUM_LIQUIDITY,
    SWAP_FEE_BPS_DEFAULT,
    get_amount_out,
    liquidity_to_mint,
    optimal_liquidity_amounts,
)
from src.core.domain.units import BPS_DENOMINATOR

logger = logging.getLogger(__name__)


# =============================================================================
# PAIR
# =============================================================================


@dataclass
class PairStorage:
    reserve_native: int = 0
    reserve_token: int = 0
    lp_total_supply: int = 0
    lp_balances: Dict[str, int] = field(default_factory=dict)


class LocalPair(Contract):
    """Pool native/token."""

    def __init__(self, chain: Chain, factory: str, weth: str, token: str, fee_bps: int):
        self._storage = PairStorage()
        super().__init__(chain, factory)
        self.factory = normalize_address(factory)
        self.weth = normalize_address(weth)
        self.token = normalize_address(token)
        self.fee_bps = fee_bps

    def _token(self):
        return self.chain.get_contract(self.token)

    def get_reserves(self) -> Tuple[int, int]:
        """(reserve_native, reserve_token)."""
        return self._storage.reserve_native, self._storage.reserve_token

    def reserves_for(self, asset_in: str) -> Tuple[int, int]:
        """(reserve_in, reserve_out) для входного актива."""
        asset_in = normalize_address(asset_in)
        if asset_in == self.weth:
            return self._storage.reserve_native, self._storage.reserve_token
        if asset_in == self.token:
            return self._storage.reserve_token, self._storage.reserve_native
        raise ExternalCallError(f"Pair {self.address}: unknown asset {asset_in}")

    def lp_balance_of(self, account: str) -> int:
        return self._storage.lp_balances.get(normalize_address(account), 0)

    @property
    def lp_total_supply(self) -> int:
        return self._storage.lp_total_supply

    def receive(self, sender: str, amount: int) -> None:
        # Native приходит только в составе mint/swap через router
        pass

    @transactional
    @nonreentrant
    def mint(self, to: str) -> int:
        """Mint LP за депозит, уже переведённый на баланс pair."""
        s = self._storage
        balance_native = self.native_balance
        balance_token = self._token().balance_of(self.address)
        amount_native = balance_native - s.reserve_native
        amount_token = balance_token - s.reserve_token

        try:
            liquidity = liquidity_to_mint(
                amount_native, amount_token, s.reserve_native, s.reserve_token, s.lp_total_supply
            )
        except ValueError as e:
            raise ExternalCallError(f"Pair {self.address}: {e}") from e

        if s.lp_total_supply == 0:
            s.lp_balances[ZERO_ADDRESS] = MINIMUM_LIQUIDITY
            s.lp_total_supply = MINIMUM_LIQUIDITY

        to = normalize_address(to)
        s.lp_balances[to] = s.lp_balances.get(to, 0) + liquidity
        s.lp_total_supply += liquidity
        self._update(balance_native, balance_token)

        self.emit("Mint", sender=to, amount_native=amount_native, amount_token=amount_token)
        return liquidity

    @transactional
    @nonreentrant
    def swap(self, native_out: int, token_out: int, to: str) -> None:
        """Выдача output; вход уже должен лежать на балансе pair."""
        s = self._storage
        if native_out <= 0 and token_out <= 0:
            raise ExternalCallError("INSUFFICIENT_OUTPUT_AMOUNT")
        if native_out >= s.reserve_native or token_out >= s.reserve_token:
            raise ExternalCallError("INSUFFICIENT_LIQUIDITY")

        token = self._token()
        if token_out > 0:
            token.transfer(self.address, to, token_out)
        if native_out > 0:
            self.chain.send_native(self.address, to, native_out)

        balance_native = self.native_balance
        balance_token = token.balance_of(self.address)
        native_in = max(balance_native - (s.reserve_native - native_out), 0)
        token_in = max(balance_token - (s.reserve_token - token_out), 0)
        if native_in <= 0 and token_in <= 0:
            raise ExternalCallError("INSUFFICIENT_INPUT_AMOUNT")

        # k-invariant с учётом swap fee
        adjusted_native = balance_native * BPS_DENOMINATOR - native_in * self.fee_bps
        adjusted_token = balance_token * BPS_DENOMINATOR - token_in * self.fee_bps
        if adjusted_native * adjusted_token < s.reserve_native * s.reserve_token * BPS_DENOMINATOR**2:
            raise ExternalCallError("K")

        self._update(balance_native, balance_token)
        self.emit(
            "Swap",
            native_in=native_in,
            token_in=token_in,
            native_out=native_out,
            token_out=token_out,
            to=normalize_address(to),
        )

    def _update(self, balance_native: int, balance_token: int) -> None:
        self._storage.reserve_native = balance_native
        self._storage.reserve_token = balance_token
        self.emit("Sync", reserve_native=balance_native, reserve_token=balance_token)


# =============================================================================
# FACTORY
# =============================================================================


@dataclass
class FactoryStorage:
    pairs: Dict[str, str] = field(default_factory=dict)


class LocalFactory(Contract):
    """Реестр pair native/token."""

    def __init__(self, chain: Chain, deployer: str, fee_bps: int = SWAP_FEE_BPS_DEFAULT):
        self._storage = FactoryStorage()
        super().__init__(chain, deployer)
        self.weth = derive_address(f"weth:{self.address}")
        self.fee_bps = fee_bps

    @staticmethod
    def _key(token_a: str, token_b: str) -> str:
        a, b = sorted((normalize_address(token_a), normalize_address(token_b)))
        return f"{a}:{b}"

    def get_pair(self, token_a: str, token_b: str) -> str:
        return self._storage.pairs.get(self._key(token_a, token_b), ZERO_ADDRESS)

    @transactional
    def create_pair(self, token_a: str, token_b: str) -> str:
        token_a, token_b = normalize_address(token_a), normalize_address(token_b)
        if token_a == token_b:
            raise ExternalCallError("IDENTICAL_ADDRESSES")
        if self.weth not in (token_a, token_b):
            raise ExternalCallError("Local factory supports only native/token pairs")
        key = self._key(token_a, token_b)
        if key in self._storage.pairs:
            raise ExternalCallError("PAIR_EXISTS")

        token = token_b if token_a == self.weth else token_a
        pair = LocalPair(self.chain, self.address, self.weth, token, self.fee_bps)
        self._storage.pairs[key] = pair.address
        logger.info(f"Pair created: native/{token} at {pair.address}")
        self.emit("PairCreated", token=token, pair=pair.address)
        return pair.address


# =============================================================================
# ROUTER
# =============================================================================


class LocalRouter(Contract):
    """Router поверх LocalFactory (RouterProtocol)."""

    def __init__(self, chain: Chain, deployer: str, factory: LocalFactory):
        super().__init__(chain, deployer)
        self._factory = factory

    @classmethod
    def deploy(cls, chain: Chain, deployer: str, fee_bps: int = SWAP_FEE_BPS_DEFAULT) -> "LocalRouter":
        """Развёртывание factory + router."""
        factory = LocalFactory(chain, deployer, fee_bps)
        return cls(chain, deployer, factory)

    def factory(self) -> str:
        return self._factory.address

    def weth(self) -> str:
        return self._factory.weth

    # -------------------------------------------------------------------------
    # Quotes
    # -------------------------------------------------------------------------

    def _pair(self, token_a: str, token_b: str) -> LocalPair:
        address = self._factory.get_pair(token_a, token_b)
        if address == ZERO_ADDRESS:
            raise ExternalCallError(f"PAIR_NOT_FOUND: {token_a}/{token_b}")
        return self.chain.get_contract(address)

    def get_amounts_out(self, amount_in: int, path: List[str]) -> List[int]:
        """Цепочка output по path при текущих резервах."""
        if len(path) < 2:
            raise ExternalCallError("INVALID_PATH")
        amounts = [amount_in]
        for asset_in, asset_out in zip(path, path[1:]):
            reserve_in, reserve_out = self._pair(asset_in, asset_out).reserves_for(asset_in)
            try:
                amounts.append(get_amount_out(amounts[-1], reserve_in, reserve_out, self._factory.fee_bps))
            except ValueError as e:
                raise ExternalCallError(f"Router: {e}") from e
        return amounts

    # -------------------------------------------------------------------------
    # Swaps
    # -------------------------------------------------------------------------

    def _ensure(self, deadline: int) -> None:
        if deadline < self.chain.timestamp:
            raise ExternalCallError("EXPIRED")

    def _native_path(self, path: List[str], native_first: bool) -> Tuple[str, str]:
        if len(path) != 2:
            raise ExternalCallError("Local router supports only two-asset paths")
        native, token = (path[0], path[1]) if native_first else (path[1], path[0])
        if normalize_address(native) != self.weth():
            raise ExternalCallError("INVALID_PATH")
        return normalize_address(native), normalize_address(token)

    @transactional
    def swap_exact_eth_for_tokens(
        self, sender: str, value: int, amount_out_min: int, path: List[str], to: str, deadline: int
    ) -> List[int]:
        self._ensure(deadline)
        native, token = self._native_path(path, native_first=True)
        amounts = self.get_amounts_out(value, path)
        if amounts[-1] < amount_out_min:
            raise SlippageError(
                f"INSUFFICIENT_OUTPUT_AMOUNT: {amounts[-1]} < min {amount_out_min}"
            )
        pair = self._pair(native, token)
        self.chain.move_native(sender, pair.address, value)
        pair.swap(0, amounts[-1], to)
        return amounts

    @transactional
    def swap_exact_eth_for_tokens_supporting_fee_on_transfer_tokens(
        self, sender: str, value: int, amount_out_min: int, path: List[str], to: str, deadline: int
    ) -> None:
        self._ensure(deadline)
        native, token_address = self._native_path(path, native_first=True)
        token = self.chain.get_contract(token_address)
        pair = self._pair(native, token_address)

        self.chain.move_native(sender, pair.address, value)
        balance_before = token.balance_of(to)

        reserve_in, reserve_out = pair.reserves_for(native)
        amount_input = pair.native_balance - reserve_in
        try:
            amount_out = get_amount_out(amount_input, reserve_in, reserve_out, self._factory.fee_bps)
        except ValueError as e:
            raise ExternalCallError(f"Router: {e}") from e
        pair.swap(0, amount_out, to)

        received = token.balance_of(to) - balance_before
        if received < amount_out_min:
            raise SlippageError(f"INSUFFICIENT_OUTPUT_AMOUNT: {received} < min {amount_out_min}")

    @transactional
    def swap_exact_tokens_for_eth_supporting_fee_on_transfer_tokens(
        self, sender: str, amount_in: int, amount_out_min: int, path: List[str], to: str, deadline: int
    ) -> None:
        self._ensure(deadline)
        native, token_address = self._native_path(path, native_first=False)
        token = self.chain.get_contract(token_address)
        pair = self._pair(native, token_address)

        token.transfer_from(self.address, sender, pair.address, amount_in)

        reserve_in, reserve_out = pair.reserves_for(token_address)
        amount_input = token.balance_of(pair.address) - reserve_in
        try:
            amount_out = get_amount_out(amount_input, reserve_in, reserve_out, self._factory.fee_bps)
        except ValueError as e:
            raise ExternalCallError(f"Router: {e}") from e
        if amount_out < amount_out_min:
            raise SlippageError(f"INSUFFICIENT_OUTPUT_AMOUNT: {amount_out} < min {amount_out_min}")
        pair.swap(amount_out, 0, to)

    # -------------------------------------------------------------------------
    # Liquidity
    # -------------------------------------------------------------------------

    @transactional
    def add_liquidity_eth(
        self,
        sender: str,
        value: int,
        token: str,
        amount_token_desired: int,
        amount_token_min: int,
        amount_eth_min: int,
        to: str,
        deadline: int,
    ) -> Tuple[int, int, int]:
        self._ensure(deadline)
        token = normalize_address(token)
        if self._factory.get_pair(self.weth(), token) == ZERO_ADDRESS:
            self._factory.create_pair(self.weth(), token)
        pair = self._pair(self.weth(), token)

        reserve_native, reserve_token = pair.get_reserves()
        try:
            amount_token, amount_eth = optimal_liquidity_amounts(
                amount_token_desired, value, reserve_token, reserve_native
            )
        except ValueError as e:
            raise ExternalCallError(f"Router: {e}") from e
        if amount_token < amount_token_min:
            raise SlippageError(f"INSUFFICIENT_A_AMOUNT: {amount_token} < min {amount_token_min}")
        if amount_eth < amount_eth_min:
            raise SlippageError(f"INSUFFICIENT_B_AMOUNT: {amount_eth} < min {amount_eth_min}")

        self.chain.get_contract(token).transfer_from(self.address, sender, pair.address, amount_token)
        # Излишек value не списывается с sender (эквивалент refund)
        self.chain.move_native(sender, pair.address, amount_eth)
        liquidity = pair.mint(to)
        return amount_token, amount_eth, liquidity
