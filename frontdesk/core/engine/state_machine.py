"""
frontdesk/core/engine/state_machine.py

状态机引擎 - 校验预订、房间、身份核验流程的状态转换

存储层只用 StateMachineConfig.ensure_transition 做写前校验；
身份核验闸门用 StateMachine 逐步驱动一次核验。
"""
from typing import Dict, List, NamedTuple, Optional, Tuple
from dataclasses import dataclass, field
from datetime import datetime
import logging

from frontdesk.core.errors import InvalidTransitionError

logger = logging.getLogger(__name__)


class StateTransition(NamedTuple):
    """一条允许的转换：from_state --trigger--> to_state"""

    from_state: str
    to_state: str
    trigger: str


@dataclass
class StateMachineConfig:
    """
    状态机定义

    Attributes:
        name: 实体名（出现在 InvalidTransitionError 中）
        states: 全部状态
        transitions: 允许的转换
        initial_state: 新实体的状态
        final_states: 终态
    """

    name: str
    states: List[str]
    transitions: List[StateTransition]
    initial_state: str
    final_states: List[str] = field(default_factory=list)
    _by_states: Dict[Tuple[str, str], StateTransition] = field(init=False, repr=False)
    _by_trigger: Dict[Tuple[str, str], StateTransition] = field(init=False, repr=False)

    def __post_init__(self):
        self._by_states = {(t.from_state, t.to_state): t for t in self.transitions}
        self._by_trigger = {(t.from_state, t.trigger): t for t in self.transitions}

    def find_transition(self, from_state: str, to_state: str) -> Optional[StateTransition]:
        return self._by_states.get((from_state, to_state))

    def find_trigger(self, from_state: str, trigger: str) -> Optional[StateTransition]:
        return self._by_trigger.get((from_state, trigger))

    def is_valid_transition(self, from_state: str, to_state: str) -> bool:
        return (from_state, to_state) in self._by_states

    def ensure_transition(self, from_state: str, to_state: str) -> StateTransition:
        """
        校验转换，不合法时抛出 InvalidTransitionError

        存储层在写入新状态前调用，状态不能跳跃也不能原地重写。
        """
        transition = self.find_transition(from_state, to_state)
        if transition is None:
            raise InvalidTransitionError(self.name, from_state, to_state)
        return transition


@dataclass
class TransitionRecord:
    """已发生的一次转换"""

    transition: StateTransition
    occurred_at: datetime


class StateMachine:
    """
    单个实体的状态机实例

    Example:
        >>> machine = StateMachine(VERIFICATION_LIFECYCLE)
        >>> machine.fire("start_scan")
        'scan_pending'
    """

    def __init__(self, config: StateMachineConfig, initial_state: Optional[str] = None):
        self.config = config
        self._current_state = initial_state if initial_state is not None else config.initial_state
        self._history: List[TransitionRecord] = []

    @property
    def current_state(self) -> str:
        return self._current_state

    @property
    def is_final(self) -> bool:
        return self._current_state in self.config.final_states

    def can_fire(self, trigger: str) -> bool:
        return self.config.find_trigger(self._current_state, trigger) is not None

    def fire(self, trigger: str) -> str:
        """
        执行触发动作并返回新状态

        Raises:
            InvalidTransitionError: 当前状态下没有该触发动作
        """
        transition = self.config.find_trigger(self._current_state, trigger)
        if transition is None:
            raise InvalidTransitionError(self.config.name, self._current_state, trigger)

        self._current_state = transition.to_state
        self._history.append(TransitionRecord(transition, datetime.now()))
        logger.debug(
            f"{self.config.name}: {transition.from_state} -> {transition.to_state} ({trigger})"
        )
        return self._current_state

    def get_history(self) -> List[TransitionRecord]:
        return list(self._history)


__all__ = [
    "StateTransition",
    "StateMachineConfig",
    "TransitionRecord",
    "StateMachine",
]
