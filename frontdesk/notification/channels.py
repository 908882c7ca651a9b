"""
员工通知渠道 - 日志渠道与 Webhook 渠道
"""
import logging
from datetime import datetime
from typing import Dict, List, Optional

import httpx

from frontdesk.core.notification.channel import INotificationChannel

logger = logging.getLogger(__name__)


class LogChannel(INotificationChannel):
    """日志渠道：写入应用日志，同时保留最近的消息便于排查"""

    def __init__(self, keep_last: int = 200):
        self._keep_last = keep_last
        self.sent: List[Dict] = []

    def send(
        self,
        recipient: str,
        subject: str,
        content: str,
        extra: Optional[Dict] = None,
    ) -> bool:
        logger.warning(f"[staff:{recipient}] {subject}: {content}")
        self.sent.append({
            "recipient": recipient,
            "subject": subject,
            "content": content,
            "extra": extra or {},
            "sent_at": datetime.now(),
        })
        del self.sent[:-self._keep_last]
        return True

    def get_channel_type(self) -> str:
        return "log"


class WebhookChannel(INotificationChannel):
    """Webhook 渠道：POST JSON 到员工群机器人等地址"""

    def __init__(self, url: str, timeout: int = 5, client: Optional[httpx.Client] = None):
        self.url = url
        self.timeout = timeout
        self.http = client or httpx.Client()

    def send(
        self,
        recipient: str,
        subject: str,
        content: str,
        extra: Optional[Dict] = None,
    ) -> bool:
        """发送 Webhook 消息

        Args:
            recipient: 接收方（值班经理、技术支持等）
            subject: 消息标题
            content: 消息内容
            extra: 附加字段，原样放入 payload
        """
        payload = {
            "recipient": recipient,
            "subject": subject,
            "content": content,
            "extra": extra or {},
        }
        try:
            response = self.http.post(self.url, json=payload, timeout=self.timeout)
            if response.status_code >= 400:
                logger.error(f"Webhook to {recipient} returned HTTP {response.status_code}")
                return False
            logger.info(f"Webhook sent to {recipient}: {subject}")
            return True
        except httpx.HTTPError as e:
            logger.error(f"Failed to send webhook to {recipient}: {e}")
            return False

    def get_channel_type(self) -> str:
        return "webhook"
