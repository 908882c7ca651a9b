"""
员工通知 - 发出即忘

通知失败只记录日志，绝不阻塞面向客人的流程。
"""
import logging
from typing import Dict, Optional

from frontdesk.config import Settings
from frontdesk.core.notification.channel import NotificationChannelRegistry
from frontdesk.notification.channels import LogChannel, WebhookChannel

logger = logging.getLogger(__name__)


class StaffNotifier:
    """通过所有已注册渠道通知员工"""

    def __init__(self, registry: NotificationChannelRegistry):
        self.registry = registry

    def notify(self, recipient: str, message: str, subject: str = "前台通知",
               extra: Optional[Dict] = None) -> bool:
        """
        发送通知

        Returns:
            至少一个渠道发送成功时为 True
        """
        delivered = self.registry.broadcast(recipient, subject, message, extra)
        if not delivered:
            logger.error(f"Staff notification to {recipient} was not delivered: {subject}: {message}")
            return False
        logger.debug(f"Staff notification to {recipient} delivered via {delivered}")
        return True


def build_staff_notifier(settings: Settings) -> StaffNotifier:
    """按配置注册通知渠道"""
    registry = NotificationChannelRegistry()
    registry.register(LogChannel())
    if settings.STAFF_WEBHOOK_URL:
        registry.register(WebhookChannel(settings.STAFF_WEBHOOK_URL))
    return StaffNotifier(registry)
