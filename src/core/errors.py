"""
Errors — Таксономия ошибок ledger/treasury

Каждая ошибка откатывает всю операцию целиком (см. Chain.transaction):
частичного применения изменений не бывает, повторы — забота вызывающего.

- AuthorizationError: вызывающий не является требуемым principal (owner/multisig)
- InsufficientBalanceError: сумма превышает доступный баланс
- SlippageError: AMM не может выдать минимально допустимый output
- InvalidConfigurationError: невалидная конфигурация (fees > 100%, zero address, повторный seed)
- ExternalCallError: сбой внешнего вызова (router, token)
- ReentrancyError: повторный вход в защищённую операцию
"""


class LedgerError(Exception):
    """Базовая ошибка для всех операций ledger/treasury."""

    pass


class AuthorizationError(LedgerError):
    """Вызывающий не является требуемым principal."""

    pass


class InsufficientBalanceError(LedgerError):
    """Сумма transfer/swap/rescue превышает доступный баланс."""

    pass


class InsufficientAllowanceError(InsufficientBalanceError):
    """Сумма transfer_from превышает allowance spender'а."""

    pass


class SlippageError(LedgerError):
    """
    AMM не может выдать минимально допустимый output.

    Вызывающий должен повторить операцию с новыми параметрами.
    """

    pass


class InvalidConfigurationError(LedgerError):
    """Невалидная конфигурация, отклоняется до любой мутации."""

    pass


class InvalidAddressError(InvalidConfigurationError):
    """Zero address или невалидный формат адреса."""

    pass


class ExternalCallError(LedgerError):
    """Сбой вызова внешнего контракта (router, pair, token)."""

    pass


class ReentrancyError(LedgerError):
    """Повторный вход в операцию под non-reentrant lock."""

    pass
