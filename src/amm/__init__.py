"""AMM — граница вызовов внешнего router и локальная constant-product реализация.

- AmmRouterClient: stateless client router'а (path, deadline, делегирование)
- LocalRouter / LocalFactory / LocalPair: x·y=k router для симуляций и тестов
"""

from .local_router import LocalFactory, LocalPair, LocalRouter
from .router_client import AmmRouterClient, RouterClientConfig, RouterProtocol

__all__ = [
    "AmmRouterClient",
    "RouterClientConfig",
    "RouterProtocol",
    "LocalFactory",
    "LocalPair",
    "LocalRouter",
]
