"""
前台流程基类 - 入住、退房与客房服务共用的对话、通知与对账入口
"""
import logging
from typing import Any, Dict, List, Optional

from frontdesk.config import Settings, settings as default_settings
from frontdesk.core.engine.reconciliation import (
    ReconciliationIssue, ReconciliationLog, reconciliation_log,
)
from frontdesk.models.ontology import RoomType
from frontdesk.models.session import FrontDeskSession
from frontdesk.notification.notifier import StaffNotifier
from frontdesk.pms.interfaces import FrontDeskCollaborators
from frontdesk.services.conversation import GuestConversation

logger = logging.getLogger(__name__)

ROOM_TYPE_LABELS = {
    RoomType.STANDARD: "标准间",
    RoomType.DELUXE: "豪华房",
    RoomType.SUITE: "套房",
    RoomType.PRESIDENTIAL: "总统套房",
}


class FrontDeskFlow:
    """
    前台流程基类

    Attributes:
        collaborators: 启动时选定的协作方
        conversation: 客人对话端口
        notifier: 员工通知
        session: 会话状态（入住写入，客房服务读取，退房清空）
        reconciliation: 对账日志
    """

    flow_name = "front_desk"

    def __init__(
        self,
        collaborators: FrontDeskCollaborators,
        conversation: GuestConversation,
        notifier: StaffNotifier,
        session: Optional[FrontDeskSession] = None,
        reconciliation: Optional[ReconciliationLog] = None,
        settings: Optional[Settings] = None,
    ):
        self.collaborators = collaborators
        self.conversation = conversation
        self.notifier = notifier
        self.session = session if session is not None else FrontDeskSession()
        self.reconciliation = reconciliation if reconciliation is not None else reconciliation_log
        self.settings = settings or default_settings

    def _say(self, text: str) -> None:
        self.conversation.send_message(text)

    def _ask(self, prompt: str) -> str:
        """等待客人回复，超时抛出 ReplyTimeout"""
        reply = self.conversation.wait_for_reply(prompt, timeout=self.settings.REPLY_TIMEOUT_SECONDS)
        return reply.strip()

    def _notify_staff(self, recipient: str, message: str, extra: Optional[Dict[str, Any]] = None) -> None:
        self.notifier.notify(recipient, message, subject=f"[{self.flow_name}] 前台通知", extra=extra)

    def _reconcile(
        self,
        issues: List[ReconciliationIssue],
        step: str,
        error: Exception,
        reservation_id: Optional[str] = None,
        room_number: Optional[str] = None,
        card_id: Optional[str] = None,
    ) -> ReconciliationIssue:
        """记录入账后的不一致，并通知值班经理"""
        issue = self.reconciliation.record(
            self.flow_name,
            step,
            error=f"{type(error).__name__}: {error}",
            reservation_id=reservation_id,
            room_number=room_number,
            card_id=card_id,
        )
        issues.append(issue)
        self._notify_staff(
            self.settings.DUTY_MANAGER,
            f"需要人工对账：{step} 失败（预订 {reservation_id}，房间 {room_number}，房卡 {card_id}）",
            extra={"issue_id": issue.issue_id},
        )
        return issue
