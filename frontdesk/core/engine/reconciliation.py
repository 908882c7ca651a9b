"""
core/engine/reconciliation.py

对账日志引擎 - 记录"不可逆动作之后的入账失败"

房卡已交到客人手中、结算已确认之后，如果房态/房卡/记录写入失败，
不向客人报错，而是写入对账日志，由员工线下修复。
"""
from typing import Dict, Any, Optional, List
from dataclasses import dataclass, field
from datetime import datetime
from collections import deque
import logging
import threading
import uuid

logger = logging.getLogger(__name__)


@dataclass
class ReconciliationIssue:
    """
    对账问题条目

    Attributes:
        issue_id: 唯一标识
        flow: 所属流程（check_in / check_out）
        step: 失败的步骤（如 "mark_room_occupied"）
        reservation_id: 关联预订
        room_number: 关联房间
        card_id: 关联房卡
        error: 错误描述
        created_at: 记录时间
        resolved: 是否已处理
        resolved_by: 处理人
        resolved_at: 处理时间
        extra: 额外信息
    """

    issue_id: str
    flow: str
    step: str
    reservation_id: Optional[str]
    room_number: Optional[str]
    card_id: Optional[str]
    error: str
    created_at: datetime
    resolved: bool = False
    resolved_by: Optional[str] = None
    resolved_at: Optional[datetime] = None
    extra: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        """转换为字典"""
        return {
            "issue_id": self.issue_id,
            "flow": self.flow,
            "step": self.step,
            "reservation_id": self.reservation_id,
            "room_number": self.room_number,
            "card_id": self.card_id,
            "error": self.error,
            "created_at": self.created_at.isoformat(),
            "resolved": self.resolved,
            "resolved_by": self.resolved_by,
            "resolved_at": self.resolved_at.isoformat() if self.resolved_at else None,
            "extra": self.extra,
        }


class ReconciliationLog:
    """
    对账日志 - 线程安全，内存存储（保留最近 max_issues 条）

    Example:
        >>> log = ReconciliationLog()
        >>> log.record("check_in", "mark_room_occupied", error="PMS API error: 503",
        ...            reservation_id="RSV-1", room_number="1205")
        >>> log.list_open()
    """

    def __init__(self, max_issues: int = 1000):
        self._issues: deque = deque(maxlen=max_issues)
        self._lock = threading.Lock()

    def record(
        self,
        flow: str,
        step: str,
        error: str,
        reservation_id: Optional[str] = None,
        room_number: Optional[str] = None,
        card_id: Optional[str] = None,
        extra: Optional[Dict[str, Any]] = None,
    ) -> ReconciliationIssue:
        """记录一条对账问题"""
        issue = ReconciliationIssue(
            issue_id=f"REC-{uuid.uuid4().hex[:10]}",
            flow=flow,
            step=step,
            reservation_id=reservation_id,
            room_number=room_number,
            card_id=card_id,
            error=error,
            created_at=datetime.now(),
            extra=extra or {},
        )
        with self._lock:
            self._issues.append(issue)

        logger.error(
            f"Reconciliation needed [{issue.issue_id}] {flow}.{step}: "
            f"reservation={reservation_id} room={room_number} card={card_id} error={error}"
        )
        return issue

    def get(self, issue_id: str) -> Optional[ReconciliationIssue]:
        with self._lock:
            for issue in self._issues:
                if issue.issue_id == issue_id:
                    return issue
        return None

    def list_all(self) -> List[ReconciliationIssue]:
        with self._lock:
            return list(self._issues)

    def list_open(self) -> List[ReconciliationIssue]:
        """获取未处理的问题"""
        with self._lock:
            return [i for i in self._issues if not i.resolved]

    def resolve(self, issue_id: str, resolved_by: str) -> Optional[ReconciliationIssue]:
        """标记问题已处理，不存在时返回 None"""
        with self._lock:
            for issue in self._issues:
                if issue.issue_id == issue_id:
                    issue.resolved = True
                    issue.resolved_by = resolved_by
                    issue.resolved_at = datetime.now()
                    logger.info(f"Reconciliation issue {issue_id} resolved by {resolved_by}")
                    return issue
        return None

    def clear(self) -> None:
        """清空日志（用于测试）"""
        with self._lock:
            self._issues.clear()


# 全局对账日志实例
reconciliation_log = ReconciliationLog()


__all__ = [
    "ReconciliationIssue",
    "ReconciliationLog",
    "reconciliation_log",
]
