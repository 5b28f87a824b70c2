"""Role Gate — двухролевой контроль доступа (owner / multisig).

Каждая привилегированная операция проверяет вызывающего ровно против одной роли:
- OWNER: конфигурация, налоги, rescue токенов (получатель всегда multisig)
- MULTISIG: вывод нативной валюты, ротация самого multisig

Иерархии нет: owner НЕ может выполнять операции multisig и наоборот.
"""

from dataclasses import dataclass
from enum import Enum
import logging

from src.core.domain.address import normalize_address
from src.core.errors import AuthorizationError

logger = logging.getLogger(__name__)


class Role(str, Enum):
    """Роль principal."""

    OWNER = "OWNER"
    MULTISIG = "MULTISIG"


@dataclass(frozen=True)
class AccessCheckResult:
    """Результат проверки доступа."""

    allowed: bool
    block_reason: str

    # Входные параметры для диагностики
    role: Role
    caller: str
    operation: str

    details: str


class RoleGate:
    """Gate проверки вызывающего против одной роли.

    Principal роли читается через callable, чтобы gate видел текущий
    multisig после ротации.
    """

    def __init__(self, role: Role, principal):
        """
        Args:
            role: проверяемая роль
            principal: callable без аргументов, возвращающий текущий адрес роли
        """
        self.role = role
        self._principal = principal

    @property
    def principal(self) -> str:
        return self._principal()

    def evaluate(self, caller: str, operation: str) -> AccessCheckResult:
        """Проверка caller против роли.

        Args:
            caller: адрес вызывающего (msg.sender)
            operation: имя операции (для диагностики)

        Returns:
            AccessCheckResult с решением о допуске
        """
        caller = normalize_address(caller)
        principal = self.principal

        if caller != principal:
            return AccessCheckResult(
                allowed=False,
                block_reason=f"caller_not_{self.role.value.lower()}",
                role=self.role,
                caller=caller,
                operation=operation,
                details=f"{operation}: caller {caller} is not {self.role.value} {principal}",
            )

        return AccessCheckResult(
            allowed=True,
            block_reason="",
            role=self.role,
            caller=caller,
            operation=operation,
            details=f"PASS: {operation} by {self.role.value}",
        )

    def require(self, caller: str, operation: str) -> AccessCheckResult:
        """Проверка с исключением.

        Raises:
            AuthorizationError: если caller не является principal роли
        """
        result = self.evaluate(caller, operation)
        if not result.allowed:
            logger.warning(f"Access denied: {result.details}")
            raise AuthorizationError(result.details)
        return result
