"""
BuyBackAndBurnTreasury — Treasury выкупа и сжигания токена

Принимает native (налоговая доля ledger и произвольные депозиты) и по
вызову любого аккаунта выкупает токен на весь native баланс через AMM,
доставляя output напрямую на burn sink.

Роли:
- owner (deployer, immutable): rescue_token → ВСЕГДА на multisig
- multisig (ротируется только самим multisig): rescue_eth → на multisig, set_multisig

Все мутирующие операции под nonreentrant lock.
"""

from dataclasses import dataclass
from typing import Optional
import logging

from src.access.role_gate import Role, RoleGate
from src.amm.router_client import AmmRouterClient, RouterClientConfig, RouterProtocol
from src.chain.runtime import Chain, Contract, nonreentrant, transactional
from src.core.domain.address import normalize_address, require_non_zero
from src.core.domain.units import validate_amount
from src.core.errors import InsufficientBalanceError, InvalidConfigurationError, SlippageError

logger = logging.getLogger(__name__)


@dataclass
class TreasuryStorage:
    multisig: str


class BuyBackAndBurnTreasury(Contract):
    """Treasury: buy-back-and-burn + rescue на multisig."""

    def __init__(
        self,
        chain: Chain,
        deployer: str,
        token: str,
        weth: str,
        burn_sink: str,
        router: RouterProtocol,
        multisig: str,
        router_config: Optional[RouterClientConfig] = None,
    ):
        """
        Args:
            chain: среда исполнения
            deployer: owner treasury
            token: адрес выкупаемого токена
            weth: wrapped native, должен совпадать с weth router'а
            burn_sink: получатель выкупленных токенов
            router: AMM router
            multisig: получатель rescue операций

        Raises:
            InvalidAddressError: Если любой адрес нулевой
            InvalidConfigurationError: Если weth не совпадает с router
        """
        # Все проверки до регистрации на chain
        self._storage = TreasuryStorage(multisig=require_non_zero(multisig, "multisig"))
        self.token = require_non_zero(token, "token")
        self.weth = require_non_zero(weth, "weth")
        self.burn_sink = require_non_zero(burn_sink, "burn sink")
        self.router = AmmRouterClient(chain, router, self.token, router_config)
        if self.router.weth != self.weth:
            raise InvalidConfigurationError(
                f"WETH {self.weth} does not match router WETH {self.router.weth}"
            )

        super().__init__(chain, deployer)
        self.owner = self.deployer
        self._owner_gate = RoleGate(Role.OWNER, lambda: self.owner)
        self._multisig_gate = RoleGate(Role.MULTISIG, lambda: self._storage.multisig)

    @property
    def multisig(self) -> str:
        return self._storage.multisig

    def receive(self, sender: str, amount: int) -> None:
        self.emit("Deposit", sender=sender, amount=amount)
        logger.info(f"Treasury received {amount} wei from {sender}")

    # =========================================================================
    # BUY BACK AND BURN
    # =========================================================================

    def calculate_buy_back_and_burn(self, native_amount_in: int, min_out: int = 0) -> int:
        """
        Ожидаемое количество сжигаемых токенов за native_amount_in.

        Read-only: возвращает оценку router (get_amounts_out) и не меняет
        состояние. В отличие от простой оценки, проверяет min_out заранее:
        при min_out > 0 ошибка поднимается до любой транзакции. При
        min_out = 0 результат совпадает с чистой оценкой router.

        Raises:
            SlippageError: Если quote меньше min_out
        """
        validate_amount(native_amount_in, "native_amount_in")
        validate_amount(min_out, "min_out")
        quote = self.router.quote_native_to_token(native_amount_in)
        if quote < min_out:
            raise SlippageError(f"Quoted output {quote} is below minimum {min_out}")
        return quote

    @transactional
    @nonreentrant
    def buy_back_and_burn(self, caller: str, min_out: int = 0) -> int:
        """
        Выкуп токена на весь native баланс с доставкой на burn sink.

        Публичная операция: вызвать может любой аккаунт, получатель
        зафиксирован, поэтому вызывающий не может извлечь стоимость.

        Returns:
            Количество сожжённых токенов (прирост баланса burn sink)

        Raises:
            InsufficientBalanceError: Если native баланс нулевой
            SlippageError: Если output меньше min_out
        """
        validate_amount(min_out, "min_out")
        spent = self.native_balance
        if spent == 0:
            raise InsufficientBalanceError("Treasury has no native balance to buy back")

        token = self.chain.get_contract(self.token)
        burn_before = token.balance_of(self.burn_sink)
        self.router.buy_token(self.address, spent, min_out, to=self.burn_sink)
        burned = token.balance_of(self.burn_sink) - burn_before

        self.emit("BuyBackAndBurn", caller=normalize_address(caller), spent=spent, burned=burned)
        logger.info(f"Buy back and burn by {caller}: spent {spent} wei, burned {burned} tokens")
        return burned

    # =========================================================================
    # RESCUE
    # =========================================================================

    @transactional
    @nonreentrant
    def rescue_token(self, caller: str, token: str) -> int:
        """Весь баланс `token` → multisig (owner-only)."""
        self._owner_gate.require(caller, "rescue_token")
        contract = self.chain.get_contract(require_non_zero(token, "token"))
        amount = contract.balance_of(self.address)
        contract.transfer(self.address, self._storage.multisig, amount)
        self.emit("TokenRescued", token=contract.address, amount=amount, to=self._storage.multisig)
        logger.info(f"Rescued {amount} of {contract.address} to multisig {self._storage.multisig}")
        return amount

    @transactional
    @nonreentrant
    def rescue_eth(self, caller: str) -> int:
        """Весь native баланс → multisig (multisig-only)."""
        self._multisig_gate.require(caller, "rescue_eth")
        amount = self.native_balance
        if amount > 0:
            self.chain.send_native(self.address, self._storage.multisig, amount)
        self.emit("NativeRescued", amount=amount, to=self._storage.multisig)
        logger.info(f"Rescued {amount} wei to multisig {self._storage.multisig}")
        return amount

    @transactional
    @nonreentrant
    def set_multisig(self, caller: str, new_multisig: str) -> None:
        """Ротация multisig (только текущий multisig)."""
        self._multisig_gate.require(caller, "set_multisig")
        previous = self._storage.multisig
        self._storage.multisig = require_non_zero(new_multisig, "multisig")
        self.emit("MultisigUpdated", previous=previous, multisig=self._storage.multisig)
        logger.info(f"Multisig rotated: {previous} → {self._storage.multisig}")
