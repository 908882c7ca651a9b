"""
员工通知渠道接口 - 与业务无关的发送抽象

frontdesk.notification 实现具体渠道（日志、Webhook）；
注册表负责把一条员工通知广播到所有渠道，单个渠道失败不影响其他渠道。
"""
import logging
from abc import ABC, abstractmethod
from typing import Dict, List, Optional

logger = logging.getLogger(__name__)


class INotificationChannel(ABC):
    """通知渠道接口"""

    @abstractmethod
    def send(
        self,
        recipient: str,
        subject: str,
        content: str,
        extra: Optional[Dict] = None,
    ) -> bool:
        """发送一条员工通知

        Args:
            recipient: 接收方（duty-manager、tech-support 等角色标识）
            subject: 标题，通常带流程名
            content: 正文
            extra: 关联的预订号、房间号、对账编号等

        Returns:
            渠道是否确认送达
        """

    @abstractmethod
    def get_channel_type(self) -> str:
        """渠道类型标识，同类型只保留一个"""


class NotificationChannelRegistry:
    """通知渠道注册表，启动时按配置注册"""

    def __init__(self) -> None:
        self._channels: Dict[str, INotificationChannel] = {}

    def register(self, channel: INotificationChannel) -> None:
        self._channels[channel.get_channel_type()] = channel

    def get_all_channels(self) -> List[INotificationChannel]:
        return list(self._channels.values())

    def broadcast(
        self,
        recipient: str,
        subject: str,
        content: str,
        extra: Optional[Dict] = None,
    ) -> List[str]:
        """
        通过所有渠道发送

        Returns:
            送达的渠道类型列表；渠道抛出的异常只记录日志
        """
        delivered = []
        for channel_type, channel in self._channels.items():
            try:
                if channel.send(recipient, subject, content, extra):
                    delivered.append(channel_type)
            except Exception as e:
                logger.error(f"Notification channel {channel_type} failed for {recipient}: {e}")
        return delivered
