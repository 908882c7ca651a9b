"""
通知渠道抽象层 - 仅定义接口，frontdesk.notification 实现具体渠道
"""
from frontdesk.core.notification.channel import INotificationChannel, NotificationChannelRegistry

__all__ = ["INotificationChannel", "NotificationChannelRegistry"]
