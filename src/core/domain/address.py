"""
Address — Адреса аккаунтов и контрактов

Единственный допустимый способ нормализации адресов в системе:
все адреса хранятся в EIP-55 checksum форме (eth_utils).

ЗАПРЕЩЕНО сравнивать адреса в разных регистрах без normalize_address.
"""

from typing import Final

from eth_utils import is_address, keccak, to_checksum_address

from src.core.errors import InvalidAddressError


# =============================================================================
# WELL-KNOWN ADDRESSES
# =============================================================================

# Нулевой адрес: невалиден как получатель
ZERO_ADDRESS: Final[str] = "0x0000000000000000000000000000000000000000"

# Burn sink: адрес без приватного ключа, токены там выведены из обращения
DEAD_ADDRESS: Final[str] = "0x000000000000000000000000000000000000dEaD"


# =============================================================================
# NORMALIZATION
# =============================================================================


def normalize_address(value: str) -> str:
    """
    Нормализация адреса в checksum форму.

    Args:
        value: Адрес в hex форме (любой регистр)

    Returns:
        EIP-55 checksum адрес

    Raises:
        InvalidAddressError: Если строка не является адресом
    """
    if not isinstance(value, str) or not is_address(value):
        raise InvalidAddressError(f"Invalid address: {value!r}")
    return to_checksum_address(value)


def is_zero_address(value: str) -> bool:
    """Проверка на нулевой адрес (без исключения для невалидной строки)."""
    return isinstance(value, str) and value.lower() == ZERO_ADDRESS


def require_non_zero(value: str, name: str = "address") -> str:
    """
    Нормализация адреса с запретом zero address.

    Raises:
        InvalidAddressError: Если адрес невалиден или равен ZERO_ADDRESS
    """
    address = normalize_address(value)
    if address == ZERO_ADDRESS:
        raise InvalidAddressError(f"{name} cannot be the zero address")
    return address


def derive_address(seed: str) -> str:
    """
    Детерминированный адрес из произвольной строки.

    Последние 20 байт keccak256(seed), как у адресов EVM.
    """
    return to_checksum_address("0x" + keccak(text=seed)[-20:].hex())
