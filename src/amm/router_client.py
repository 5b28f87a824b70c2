"""AMM Router Client — тонкая граница вызовов внешнего router.

Router — внешний коллаборатор со стандартной constant-product семантикой:
- revert (SlippageError) если output ниже минимума
- иначе доставка exact-or-better

Client не хранит состояния: строит path (native ↔ token), вычисляет
deadline от часов chain и делегирует вызов router'у. Ошибки router
пробрасываются без изменений и откатывают всю внешнюю операцию.
"""

from dataclasses import dataclass
from typing import List, Protocol, Tuple
import logging

from src.core.domain.address import normalize_address

logger = logging.getLogger(__name__)


class RouterProtocol(Protocol):
    """Интерфейс router (Uniswap V2 / PancakeSwap V2)."""

    address: str

    def factory(self) -> str: ...

    def weth(self) -> str: ...

    def get_amounts_out(self, amount_in: int, path: List[str]) -> List[int]: ...

    def swap_exact_eth_for_tokens(
        self, sender: str, value: int, amount_out_min: int, path: List[str], to: str, deadline: int
    ) -> List[int]: ...

    def swap_exact_eth_for_tokens_supporting_fee_on_transfer_tokens(
        self, sender: str, value: int, amount_out_min: int, path: List[str], to: str, deadline: int
    ) -> None: ...

    def swap_exact_tokens_for_eth_supporting_fee_on_transfer_tokens(
        self, sender: str, amount_in: int, amount_out_min: int, path: List[str], to: str, deadline: int
    ) -> None: ...

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
    ) -> Tuple[int, int, int]: ...


@dataclass(frozen=True)
class RouterClientConfig:
    """Конфигурация router client."""

    # Окно deadline от текущего времени chain (сек)
    deadline_window_sec: int = 300


class AmmRouterClient:
    """Stateless client router'а для пары native ↔ token."""

    def __init__(self, chain, router: RouterProtocol, token: str, config: RouterClientConfig | None = None):
        """
        Args:
            chain: Chain (источник времени для deadline)
            router: router, реализующий RouterProtocol
            token: адрес токена
            config: конфигурация (опционально, используется default)
        """
        self.chain = chain
        self.router = router
        self.token = normalize_address(token)
        self.config = config or RouterClientConfig()

    @property
    def router_address(self) -> str:
        return self.router.address

    @property
    def weth(self) -> str:
        return self.router.weth()

    def native_to_token_path(self) -> List[str]:
        return [self.weth, self.token]

    def token_to_native_path(self) -> List[str]:
        return [self.token, self.weth]

    def deadline(self) -> int:
        return self.chain.timestamp + self.config.deadline_window_sec

    def quote_native_to_token(self, native_amount_in: int) -> int:
        """Ожидаемый output токена за native_amount_in при текущих резервах."""
        return self.router.get_amounts_out(native_amount_in, self.native_to_token_path())[-1]

    def quote_token_to_native(self, token_amount_in: int) -> int:
        """Ожидаемый output native за token_amount_in при текущих резервах."""
        return self.router.get_amounts_out(token_amount_in, self.token_to_native_path())[-1]

    def buy_token(self, sender: str, native_amount_in: int, amount_out_min: int, to: str) -> None:
        """Swap native → token (fee-on-transfer вариант), output доставляется на `to`."""
        logger.debug(f"buy_token: {native_amount_in} wei → token (min {amount_out_min}) to {to}")
        self.router.swap_exact_eth_for_tokens_supporting_fee_on_transfer_tokens(
            sender=sender,
            value=native_amount_in,
            amount_out_min=amount_out_min,
            path=self.native_to_token_path(),
            to=to,
            deadline=self.deadline(),
        )

    def sell_token(self, sender: str, token_amount_in: int, amount_out_min: int, to: str) -> None:
        """Swap token → native (fee-on-transfer вариант); sender должен дать allowance router'у."""
        logger.debug(f"sell_token: {token_amount_in} token → native (min {amount_out_min}) to {to}")
        self.router.swap_exact_tokens_for_eth_supporting_fee_on_transfer_tokens(
            sender=sender,
            amount_in=token_amount_in,
            amount_out_min=amount_out_min,
            path=self.token_to_native_path(),
            to=to,
            deadline=self.deadline(),
        )

    def add_liquidity(
        self,
        sender: str,
        token_amount: int,
        native_amount: int,
        to: str,
        token_amount_min: int = 0,
        native_amount_min: int = 0,
    ) -> Tuple[int, int, int]:
        """Добавление liquidity native/token.

        Returns:
            (amount_token, amount_native, liquidity) фактически внесённые суммы и LP
        """
        logger.debug(f"add_liquidity: {token_amount} token + {native_amount} wei, LP to {to}")
        return self.router.add_liquidity_eth(
            sender=sender,
            value=native_amount,
            token=self.token,
            amount_token_desired=token_amount,
            amount_token_min=token_amount_min,
            amount_eth_min=native_amount_min,
            to=to,
            deadline=self.deadline(),
        )

    def pair_address(self) -> str:
        """Адрес pair native/token у factory router'а (ZERO_ADDRESS если не создан)."""
        factory = self.chain.get_contract(self.router.factory())
        return factory.get_pair(self.weth, self.token)
