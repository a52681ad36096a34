"""
State Machines

고정자산, 전기된 문서 등 엔티티의 상태 전이 관리.
"""

import logging
from enum import Enum

from core.types import AssetStatus, PaymentStatus

logger = logging.getLogger(__name__)


class StateMachineError(Exception):
    """상태 전이 오류"""
    pass


class StateMachine:
    """상태 머신 기본 클래스

    Args:
        initial_state: 초기 상태
        transitions: 허용된 전이 {from_state: [to_states]}
        name: 상태 머신 이름 (로깅용)
    """

    def __init__(
        self,
        initial_state: str | Enum,
        transitions: dict[str, list[str]],
        name: str = "StateMachine",
    ):
        self._state = initial_state.value if isinstance(initial_state, Enum) else initial_state
        self._transitions = transitions
        self._name = name
        self._history: list[tuple[str, str]] = []

    @property
    def state(self) -> str:
        """현재 상태"""
        return self._state

    def can_transition(self, to_state: str | Enum) -> bool:
        """전이 가능 여부 확인

        Args:
            to_state: 목표 상태

        Returns:
            전이 가능하면 True
        """
        target = to_state.value if isinstance(to_state, Enum) else to_state
        allowed = self._transitions.get(self._state, [])
        return target in allowed

    def transition(self, to_state: str | Enum) -> str:
        """상태 전이

        Args:
            to_state: 목표 상태

        Returns:
            새로운 상태

        Raises:
            StateMachineError: 허용되지 않은 전이
        """
        target = to_state.value if isinstance(to_state, Enum) else to_state

        if not self.can_transition(target):
            allowed = self._transitions.get(self._state, [])
            raise StateMachineError(
                f"{self._name}: Cannot transition from {self._state} to {target}. "
                f"Allowed: {allowed}"
            )

        old_state = self._state
        self._state = target
        self._history.append((old_state, target))

        logger.debug(
            f"{self._name}: {old_state} → {target}",
        )

        return target

    @property
    def history(self) -> list[tuple[str, str]]:
        """전이 이력"""
        return self._history.copy()


class AssetStateMachine(StateMachine):
    """고정자산 생애주기

    전이 규칙:
    - ACTIVE → FULLY_DEPRECIATED: 감가상각누계액이 상각 기준액에 도달
    - ACTIVE → DISPOSED: 명시적 처분
    - FULLY_DEPRECIATED → DISPOSED: 명시적 처분
    DISPOSED는 종료 상태.
    """

    TRANSITIONS: dict[str, list[str]] = {
        "ACTIVE": ["FULLY_DEPRECIATED", "DISPOSED"],
        "FULLY_DEPRECIATED": ["DISPOSED"],
    }

    def __init__(self, initial_state: str | AssetStatus = AssetStatus.ACTIVE):
        super().__init__(
            initial_state=initial_state,
            transitions=self.TRANSITIONS,
            name="AssetStateMachine",
        )

    @property
    def can_depreciate(self) -> bool:
        """ACTIVE 자산만 감가상각 이벤트 생성"""
        return self._state == "ACTIVE"


class PaymentStateMachine(StateMachine):
    """입금 기록에 따른 인보이스 결제 상태

    전이 규칙:
    - unpaid/invoice → partial | paid | overpaid
    - partial → partial | paid | overpaid
    - paid → overpaid
    - overpaid → overpaid: 추가 입금은 고객 선수금(Customer Credits)으로
    void는 종료 상태 (취소된 인보이스는 입금 불가).
    """

    TRANSITIONS: dict[str, list[str]] = {
        "unpaid": ["partial", "paid", "overpaid"],
        "invoice": ["partial", "paid", "overpaid"],
        "partial": ["partial", "paid", "overpaid"],
        "paid": ["overpaid"],
        "overpaid": ["overpaid"],
        "void": [],
    }

    def __init__(self, initial_state: str | PaymentStatus = PaymentStatus.UNPAID):
        super().__init__(
            initial_state=initial_state,
            transitions=self.TRANSITIONS,
            name="PaymentStateMachine",
        )
