"""Тесты локального constant-product router и AmmRouterClient.

Coverage:
- Создание pair и первая liquidity
- Quote и исполнение swap native ↔ token
- Slippage и deadline
- AmmRouterClient: пути, deadline, делегирование
"""

import pytest

from src.amm import AmmRouterClient, RouterClientConfig
from src.core.domain import ZERO_ADDRESS, parse_ether
from src.core.errors import ExternalCallError, SlippageError
from src.core.math import MINIMUM_LIQUIDITY


class TestPoolSeeding:
    """Pool после init_lp."""

    def test_pair_registered(self, deployment):
        d = deployment
        factory = d.chain.get_contract(d.router.factory())

        assert d.ledger.lp_pair != ZERO_ADDRESS
        assert factory.get_pair(d.router.weth(), d.ledger.address) == d.ledger.lp_pair
        assert d.ledger.is_pair(d.ledger.lp_pair)

    def test_reserves_match_seed(self, deployment):
        d = deployment
        reserve_native, reserve_token = d.pair.get_reserves()

        assert reserve_native == parse_ether(1)
        assert reserve_token == d.tokens(100_000_000)
        assert d.pair.native_balance == reserve_native
        assert d.ledger.balance_of(d.pair.address) == reserve_token

    def test_lp_minted_to_owner(self, deployment):
        d = deployment
        pair = d.pair

        assert pair.lp_balance_of(d.owner) > 0
        assert pair.lp_balance_of(ZERO_ADDRESS) == MINIMUM_LIQUIDITY
        assert pair.lp_total_supply == pair.lp_balance_of(d.owner) + MINIMUM_LIQUIDITY

    def test_create_pair_twice_rejected(self, deployment):
        d = deployment
        factory = d.chain.get_contract(d.router.factory())

        with pytest.raises(ExternalCallError, match="PAIR_EXISTS"):
            factory.create_pair(d.router.weth(), d.ledger.address)


class TestSwaps:
    """Swap через router."""

    def test_exact_eth_for_tokens_matches_quote(self, deployment):
        d = deployment
        d.ledger.set_tax_active(d.owner, False)
        path = [d.router.weth(), d.ledger.address]
        expected = d.router.get_amounts_out(parse_ether("0.1"), path)[-1]

        amounts = d.router.swap_exact_eth_for_tokens(
            sender=d.alice, value=parse_ether("0.1"), amount_out_min=expected,
            path=path, to=d.alice, deadline=d.deadline(),
        )

        assert amounts[-1] == expected
        assert d.ledger.balance_of(d.alice) == expected

    def test_swap_moves_reserves(self, deployment):
        d = deployment
        native_before, token_before = d.pair.get_reserves()

        d.buy(d.alice, parse_ether("0.5"))

        native_after, token_after = d.pair.get_reserves()
        assert native_after == native_before + parse_ether("0.5")
        assert token_after < token_before
        assert native_after * token_after >= native_before * token_before

    def test_sell_pays_native(self, deployment):
        d = deployment
        d.ledger.set_tax_active(d.owner, False)
        d.ledger.transfer(d.owner, d.alice, d.tokens(1_000_000))
        native_before = d.chain.balance(d.alice)

        d.sell(d.alice, d.tokens(1_000_000))

        assert d.chain.balance(d.alice) > native_before
        assert d.ledger.balance_of(d.alice) == 0

    def test_min_out_violation_reverts(self, deployment):
        d = deployment
        path = [d.router.weth(), d.ledger.address]
        expected = d.router.get_amounts_out(parse_ether("0.1"), path)[-1]
        native_before = d.chain.balance(d.alice)

        with pytest.raises(SlippageError):
            d.router.swap_exact_eth_for_tokens(
                sender=d.alice, value=parse_ether("0.1"), amount_out_min=expected + 1,
                path=path, to=d.alice, deadline=d.deadline(),
            )

        assert d.chain.balance(d.alice) == native_before
        assert d.ledger.balance_of(d.alice) == 0

    def test_fee_on_transfer_min_out_counts_received(self, deployment):
        """С налогом 9% получатель получает меньше quote → min_out = quote откатывает swap."""
        d = deployment
        path = [d.router.weth(), d.ledger.address]
        expected = d.router.get_amounts_out(parse_ether("0.1"), path)[-1]

        with pytest.raises(SlippageError):
            d.router.swap_exact_eth_for_tokens_supporting_fee_on_transfer_tokens(
                sender=d.alice, value=parse_ether("0.1"), amount_out_min=expected,
                path=path, to=d.alice, deadline=d.deadline(),
            )

    def test_expired_deadline(self, deployment):
        d = deployment
        with pytest.raises(ExternalCallError, match="EXPIRED"):
            d.router.swap_exact_eth_for_tokens(
                sender=d.alice, value=1, amount_out_min=0,
                path=[d.router.weth(), d.ledger.address], to=d.alice,
                deadline=d.chain.timestamp - 1,
            )

    def test_invalid_path(self, deployment):
        d = deployment
        with pytest.raises(ExternalCallError, match="INVALID_PATH"):
            d.router.get_amounts_out(1, [d.router.weth()])

    def test_unknown_pair(self, deployment):
        d = deployment
        with pytest.raises(ExternalCallError, match="PAIR_NOT_FOUND"):
            d.router.get_amounts_out(1, [d.router.weth(), d.alice])


class TestAmmRouterClient:
    """AmmRouterClient поверх LocalRouter."""

    def test_paths(self, deployment):
        d = deployment
        client = AmmRouterClient(d.chain, d.router, d.ledger.address)

        assert client.native_to_token_path() == [d.router.weth(), d.ledger.address]
        assert client.token_to_native_path() == [d.ledger.address, d.router.weth()]
        assert client.router_address == d.router.address

    def test_deadline_window(self, deployment):
        d = deployment
        client = AmmRouterClient(d.chain, d.router, d.ledger.address, RouterClientConfig(deadline_window_sec=60))
        assert client.deadline() == d.chain.timestamp + 60

    def test_quote_matches_router(self, deployment):
        d = deployment
        client = AmmRouterClient(d.chain, d.router, d.ledger.address)
        expected = d.router.get_amounts_out(12345, [d.router.weth(), d.ledger.address])[-1]

        assert client.quote_native_to_token(12345) == expected

    def test_pair_address(self, deployment):
        d = deployment
        client = AmmRouterClient(d.chain, d.router, d.ledger.address)
        assert client.pair_address() == d.ledger.lp_pair

    def test_buy_token_to_recipient(self, deployment):
        d = deployment
        d.ledger.set_tax_active(d.owner, False)
        client = AmmRouterClient(d.chain, d.router, d.ledger.address)
        expected = client.quote_native_to_token(parse_ether("0.01"))

        client.buy_token(d.alice, parse_ether("0.01"), expected, to=d.bob)

        assert d.ledger.balance_of(d.bob) == expected

    def test_slippage_propagates(self, deployment):
        d = deployment
        client = AmmRouterClient(d.chain, d.router, d.ledger.address)
        d.ledger.transfer(d.owner, d.alice, d.tokens(1_000))
        d.ledger.approve(d.alice, d.router.address, d.tokens(1_000))

        with pytest.raises(SlippageError):
            client.sell_token(d.alice, d.tokens(100), parse_ether(1), to=d.alice)
