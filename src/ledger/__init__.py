"""Ledger — токен с налогом на переводы.

- fee_engine: классификация переводов и разбивка налога
- tax_state_machine: seed liquidity / переключение налогов
- taxed_ledger: сам токен (TaxedLedger)
"""

from .fee_engine import (
    FeeBreakdown,
    TransferKind,
    applicable_fees,
    classify_transfer,
    compute_fee_breakdown,
)
from .tax_state_machine import (
    TaxEvent,
    TaxState,
    TaxStateMachine,
    TaxTransitionResult,
    derive_state,
)
from .taxed_ledger import LedgerStorage, TaxedLedger

__all__ = [
    "FeeBreakdown",
    "TransferKind",
    "applicable_fees",
    "classify_transfer",
    "compute_fee_breakdown",
    "TaxEvent",
    "TaxState",
    "TaxStateMachine",
    "TaxTransitionResult",
    "derive_state",
    "LedgerStorage",
    "TaxedLedger",
]
