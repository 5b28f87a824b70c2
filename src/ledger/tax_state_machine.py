"""Tax State Machine — состояния налоговой подсистемы ledger.

States:
- UNINITIALIZED: liquidity ещё не засеяна (tax_active переключается свободно)
- SEEDED_TAX_OFF: pair создан, налоги выключены
- SEEDED_TAX_ON: pair создан, налоги включены

Transitions:
- SEED_LIQUIDITY: UNINITIALIZED → SEEDED_*, ровно один раз и только при tax off
  (иначе initial seed обложил бы налогом сам себя)
- ENABLE_TAX / DISABLE_TAX: свободное переключение в любом состоянии
"""

from dataclasses import dataclass
from enum import Enum


class TaxState(str, Enum):
    """Состояние налоговой подсистемы."""

    UNINITIALIZED = "UNINITIALIZED"
    SEEDED_TAX_OFF = "SEEDED_TAX_OFF"
    SEEDED_TAX_ON = "SEEDED_TAX_ON"


class TaxEvent(str, Enum):
    """Событие налоговой подсистемы."""

    SEED_LIQUIDITY = "SEED_LIQUIDITY"
    ENABLE_TAX = "ENABLE_TAX"
    DISABLE_TAX = "DISABLE_TAX"


@dataclass(frozen=True)
class TaxTransitionResult:
    """Результат перехода налоговой подсистемы."""

    allowed: bool
    new_state: TaxState
    new_tax_active: bool

    transition_occurred: bool
    transition_reason: str
    previous_state: TaxState

    details: str


def derive_state(lp_seeded: bool, tax_active: bool) -> TaxState:
    """Состояние по флагам ledger."""
    if not lp_seeded:
        return TaxState.UNINITIALIZED
    return TaxState.SEEDED_TAX_ON if tax_active else TaxState.SEEDED_TAX_OFF


class TaxStateMachine:
    """State machine налоговой подсистемы.

    Stateless: текущие флаги передаются на вход, ledger сам применяет
    результат к своему storage.
    """

    def evaluate_transition(
        self,
        lp_seeded: bool,
        tax_active: bool,
        event: TaxEvent,
    ) -> TaxTransitionResult:
        """Оценка перехода.

        Args:
            lp_seeded: засеяна ли liquidity
            tax_active: активны ли налоги
            event: событие

        Returns:
            TaxTransitionResult; allowed=False для запрещённого перехода
        """
        current_state = derive_state(lp_seeded, tax_active)

        # 1. Seed liquidity
        if event == TaxEvent.SEED_LIQUIDITY:
            if lp_seeded:
                return self._reject(
                    current_state, tax_active,
                    reason="already_seeded",
                    details="Liquidity already seeded: initial LP can be created only once",
                )
            if tax_active:
                return self._reject(
                    current_state, tax_active,
                    reason="tax_active_during_seed",
                    details="Taxes must be disabled before seeding liquidity",
                )
            return self._create_result(
                new_state=TaxState.SEEDED_TAX_OFF,
                new_tax_active=False,
                previous_state=current_state,
                transition_reason="liquidity_seeded",
                details=f"{current_state.value} → {TaxState.SEEDED_TAX_OFF.value}",
            )

        # 2. Tax toggle
        new_tax_active = event == TaxEvent.ENABLE_TAX
        new_state = derive_state(lp_seeded, new_tax_active)
        reason = "tax_enabled" if new_tax_active else "tax_disabled"
        if new_tax_active == tax_active:
            reason = "no_transition"

        return self._create_result(
            new_state=new_state,
            new_tax_active=new_tax_active,
            previous_state=current_state,
            transition_reason=reason,
            details=f"tax_active: {tax_active} → {new_tax_active}, state={new_state.value}",
        )

    def _reject(
        self,
        current_state: TaxState,
        tax_active: bool,
        reason: str,
        details: str,
    ) -> TaxTransitionResult:
        return TaxTransitionResult(
            allowed=False,
            new_state=current_state,
            new_tax_active=tax_active,
            transition_occurred=False,
            transition_reason=reason,
            previous_state=current_state,
            details=details,
        )

    def _create_result(
        self,
        new_state: TaxState,
        new_tax_active: bool,
        previous_state: TaxState,
        transition_reason: str,
        details: str,
    ) -> TaxTransitionResult:
        """Создание результата разрешённого перехода."""
        return TaxTransitionResult(
            allowed=True,
            new_state=new_state,
            new_tax_active=new_tax_active,
            transition_occurred=transition_reason != "no_transition",
            transition_reason=transition_reason,
            previous_state=previous_state,
            details=details,
        )
