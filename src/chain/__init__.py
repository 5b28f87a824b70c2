"""Chain — in-process среда исполнения контрактов.

- Chain: нативные балансы, реестр контрактов, журнал событий
- Chain.transaction(): атомарная единица работы с откатом при ошибке
- Contract: базовый класс контракта со снапшотируемым storage
"""

from .runtime import (
    Chain,
    ChainEvent,
    Contract,
    nonreentrant,
    transactional,
)

__all__ = [
    "Chain",
    "ChainEvent",
    "Contract",
    "nonreentrant",
    "transactional",
]
