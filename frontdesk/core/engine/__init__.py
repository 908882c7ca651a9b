"""
core/engine - 状态转换校验与入账后对账

    >>> from frontdesk.core.engine import StateMachine, reconciliation_log
"""
from frontdesk.core.engine.state_machine import (
    StateTransition,
    StateMachineConfig,
    TransitionRecord,
    StateMachine,
)
from frontdesk.core.engine.reconciliation import (
    ReconciliationIssue,
    ReconciliationLog,
    reconciliation_log,
)

__all__ = [
    "StateTransition",
    "StateMachineConfig",
    "TransitionRecord",
    "StateMachine",
    "ReconciliationIssue",
    "ReconciliationLog",
    "reconciliation_log",
]
