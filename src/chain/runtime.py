"""Chain Runtime — детерминированная in-process среда исполнения контрактов.

Модель исполнения:
- Каждая мутирующая операция — атомарная единица работы (transaction)
- Все операции сериализованы глобальным re-entrant lock
- Внешний вызов либо завершается и возвращает управление, либо бросает
  исключение, и вся операция откатывается (all-or-nothing)
- Нет фоновых потоков, таймаутов и отмены

Состояние:
- Балансы нативной валюты (wei, int)
- Реестр контрактов по адресу
- Журнал событий (append-only, откатывается вместе с операцией)
"""

from contextlib import contextmanager
from dataclasses import dataclass, field
from functools import wraps
from typing import Any, Dict, Iterator, List, Optional
import copy
import logging
import threading

from src.core.domain.address import derive_address, normalize_address, require_non_zero
from src.core.domain.units import validate_amount
from src.core.errors import ExternalCallError, InsufficientBalanceError, ReentrancyError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ChainEvent:
    """Событие, записанное контрактом в журнал."""

    block_number: int
    emitter: str
    name: str
    args: Dict[str, Any] = field(default_factory=dict)


class Chain:
    """In-process chain: нативные балансы, контракты, транзакции, события.

    Транзакции вложенные: снапшот делает только внешняя транзакция,
    вложенные вызовы (контракт → контракт) работают в её рамках.
    """

    def __init__(self, start_timestamp: int = 1_700_000_000):
        self._lock = threading.RLock()
        self._depth = 0
        self._native: Dict[str, int] = {}
        self._contracts: Dict[str, Any] = {}
        self._nonces: Dict[str, int] = {}
        self._events: List[ChainEvent] = []
        self.block_number = 0
        self.timestamp = start_timestamp

    # -------------------------------------------------------------------------
    # Accounts
    # -------------------------------------------------------------------------

    def create_account(self, label: str, native_balance: int = 0) -> str:
        """Создание внешнего аккаунта (EOA) с детерминированным адресом."""
        address = derive_address(f"account:{label}")
        if native_balance:
            self.fund(address, native_balance)
        return address

    def fund(self, address: str, amount: int) -> None:
        """Начисление нативной валюты (genesis allocation)."""
        validate_amount(amount)
        address = normalize_address(address)
        self._native[address] = self._native.get(address, 0) + amount

    def balance(self, address: str) -> int:
        """Баланс нативной валюты."""
        return self._native.get(normalize_address(address), 0)

    # -------------------------------------------------------------------------
    # Contracts
    # -------------------------------------------------------------------------

    def nonce(self, deployer: str) -> int:
        """Количество контрактов, развёрнутых аккаунтом."""
        return self._nonces.get(normalize_address(deployer), 0)

    def register(self, contract: Any, deployer: str) -> str:
        """Регистрация контракта; адрес = keccak(deployer, nonce)."""
        deployer = normalize_address(deployer)
        nonce = self._nonces.get(deployer, 0)
        self._nonces[deployer] = nonce + 1
        address = derive_address(f"contract:{deployer}:{nonce}")
        self._contracts[address] = contract
        logger.debug(f"Contract {type(contract).__name__} deployed at {address} by {deployer}")
        return address

    def get_contract(self, address: str) -> Any:
        """Контракт по адресу.

        Raises:
            ExternalCallError: Если по адресу нет контракта
        """
        address = normalize_address(address)
        contract = self._contracts.get(address)
        if contract is None:
            raise ExternalCallError(f"No contract deployed at {address}")
        return contract

    def is_contract(self, address: str) -> bool:
        return normalize_address(address) in self._contracts

    # -------------------------------------------------------------------------
    # Native value
    # -------------------------------------------------------------------------

    def move_native(self, sender: str, to: str, amount: int) -> None:
        """Перевод нативной валюты без вызова receive hook (payable вызов)."""
        validate_amount(amount)
        sender = normalize_address(sender)
        to = require_non_zero(to, "native recipient")
        balance = self._native.get(sender, 0)
        if amount > balance:
            raise InsufficientBalanceError(
                f"Native transfer {amount} exceeds balance {balance} of {sender}"
            )
        self._native[sender] = balance - amount
        self._native[to] = self._native.get(to, 0) + amount

    def send_native(self, sender: str, to: str, amount: int) -> None:
        """Перевод нативной валюты; контракт-получатель вызывается через receive()."""
        with self.transaction():
            self.move_native(sender, to, amount)
            to = normalize_address(to)
            contract = self._contracts.get(to)
            if contract is not None:
                contract.receive(sender=normalize_address(sender), amount=amount)

    # -------------------------------------------------------------------------
    # Events
    # -------------------------------------------------------------------------

    def emit(self, emitter: str, name: str, **args: Any) -> ChainEvent:
        event = ChainEvent(block_number=self.block_number, emitter=emitter, name=name, args=args)
        self._events.append(event)
        return event

    def events(self, name: Optional[str] = None, emitter: Optional[str] = None) -> List[ChainEvent]:
        """События журнала с фильтром по имени и/или эмиттеру."""
        return [
            e
            for e in self._events
            if (name is None or e.name == name) and (emitter is None or e.emitter == emitter)
        ]

    # -------------------------------------------------------------------------
    # Transactions
    # -------------------------------------------------------------------------

    @contextmanager
    def transaction(self) -> Iterator["Chain"]:
        """Атомарная единица работы.

        Внешняя транзакция снимает снапшот (нативные балансы, события,
        storage всех контрактов) и при любом исключении восстанавливает его.
        Успешная внешняя транзакция закрывает блок.
        """
        with self._lock:
            if self._depth > 0:
                self._depth += 1
                try:
                    yield self
                finally:
                    self._depth -= 1
                return

            snapshot = self._snapshot()
            self._depth = 1
            try:
                yield self
            except Exception as e:
                self._restore(snapshot)
                logger.warning(f"Transaction reverted: {type(e).__name__}: {e}")
                raise
            else:
                self.block_number += 1
                self.timestamp += 12
            finally:
                self._depth = 0

    def _snapshot(self) -> Dict[str, Any]:
        return {
            "native": dict(self._native),
            "nonces": dict(self._nonces),
            "registry": dict(self._contracts),
            "events": list(self._events),
            "contracts": {
                address: contract.snapshot_state()
                for address, contract in self._contracts.items()
            },
        }

    def _restore(self, snapshot: Dict[str, Any]) -> None:
        self._native = snapshot["native"]
        self._nonces = snapshot["nonces"]
        self._contracts = snapshot["registry"]
        self._events = snapshot["events"]
        for address, state in snapshot["contracts"].items():
            self._contracts[address].restore_state(state)


def transactional(method):
    """Декоратор: метод контракта исполняется внутри Chain.transaction()."""

    @wraps(method)
    def wrapper(self, *args, **kwargs):
        with self.chain.transaction():
            return method(self, *args, **kwargs)

    return wrapper


def nonreentrant(method):
    """Декоратор: повторный вход в любой nonreentrant метод контракта запрещён.

    Флаг общий для всех nonreentrant методов экземпляра и снимается в finally,
    поэтому откат транзакции его не затрагивает.
    """

    @wraps(method)
    def wrapper(self, *args, **kwargs):
        if self._entered:
            raise ReentrancyError(f"{type(self).__name__}.{method.__name__}: reentrant call")
        self._entered = True
        try:
            return method(self, *args, **kwargs)
        finally:
            self._entered = False

    return wrapper


class Contract:
    """Базовый класс контракта.

    Мутируемое состояние живёт только в self._storage (dataclass) — это то,
    что снапшотится и откатывается транзакцией. Immutable параметры
    хранятся обычными атрибутами.
    """

    _storage: Any = None
    _entered: bool = False

    def __init__(self, chain: Chain, deployer: str):
        self.chain = chain
        self.deployer = normalize_address(deployer)
        self.address = chain.register(self, self.deployer)

    def snapshot_state(self) -> Any:
        return copy.deepcopy(self._storage)

    def restore_state(self, state: Any) -> None:
        self._storage = state

    def receive(self, sender: str, amount: int) -> None:
        """Приём нативной валюты: по умолчанию контракт не принимает платежи."""
        raise ExternalCallError(f"{type(self).__name__} at {self.address} cannot receive native currency")

    def emit(self, name: str, **args: Any) -> ChainEvent:
        return self.chain.emit(self.address, name, **args)

    @property
    def native_balance(self) -> int:
        return self.chain.balance(self.address)


__all__ = [
    "Chain",
    "ChainEvent",
    "Contract",
    "nonreentrant",
    "transactional",
]
