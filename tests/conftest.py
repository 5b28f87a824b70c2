"""Общие fixtures: chain, AMM router, ledger и treasury в засеянном состоянии.

Последовательность развёртывания повторяет боевую:
tax off → 100 000 000 токенов на контракт → init_lp(1 native) →
liquidity fee 200 bps → tax on.
"""

from dataclasses import dataclass

import pytest

from src.amm import LocalPair, LocalRouter
from src.chain import Chain
from src.core.domain import DEAD_ADDRESS, parse_ether, parse_units
from src.ledger import TaxedLedger
from src.treasury import BuyBackAndBurnTreasury


@dataclass
class Deployment:
    chain: Chain
    owner: str
    multisig: str
    alice: str
    bob: str
    router: LocalRouter
    ledger: TaxedLedger
    treasury: BuyBackAndBurnTreasury

    def tokens(self, amount) -> int:
        return parse_units(amount, self.ledger.decimals)

    @property
    def pair(self) -> LocalPair:
        return self.chain.get_contract(self.ledger.lp_pair)

    def deadline(self) -> int:
        return self.chain.timestamp + 300

    def buy(self, account: str, native_amount: int) -> None:
        """Покупка токена через router (fee-on-transfer вариант)."""
        self.router.swap_exact_eth_for_tokens_supporting_fee_on_transfer_tokens(
            sender=account,
            value=native_amount,
            amount_out_min=0,
            path=[self.router.weth(), self.ledger.address],
            to=account,
            deadline=self.deadline(),
        )

    def sell(self, account: str, token_amount: int) -> None:
        """Продажа токена через router (fee-on-transfer вариант)."""
        self.ledger.approve(account, self.router.address, token_amount)
        self.router.swap_exact_tokens_for_eth_supporting_fee_on_transfer_tokens(
            sender=account,
            amount_in=token_amount,
            amount_out_min=0,
            path=[self.ledger.address, self.router.weth()],
            to=account,
            deadline=self.deadline(),
        )


@pytest.fixture
def chain():
    return Chain()


@pytest.fixture
def undeployed(chain):
    """Ledger и treasury сразу после развёртывания (liquidity не засеяна)."""
    owner = chain.create_account("owner", parse_ether(1_000))
    multisig = chain.create_account("multisig", parse_ether(10))
    alice = chain.create_account("alice", parse_ether(100))
    bob = chain.create_account("bob", parse_ether(100))

    router = LocalRouter.deploy(chain, owner)
    ledger = TaxedLedger(chain, owner, router)
    treasury = BuyBackAndBurnTreasury(
        chain, owner, ledger.address, router.weth(), DEAD_ADDRESS, router, multisig
    )
    ledger.set_treasury(owner, treasury.address)

    return Deployment(
        chain=chain,
        owner=owner,
        multisig=multisig,
        alice=alice,
        bob=bob,
        router=router,
        ledger=ledger,
        treasury=treasury,
    )


@pytest.fixture
def deployment(undeployed):
    """Засеянный pool и активные налоги."""
    d = undeployed
    d.ledger.set_tax_active(d.owner, False)
    d.ledger.transfer(d.owner, d.ledger.address, d.tokens(100_000_000))
    d.ledger.init_lp(d.owner, parse_ether(1))
    d.ledger.set_liquidity_fee(d.owner, 200)
    d.ledger.set_tax_active(d.owner, True)
    return d
