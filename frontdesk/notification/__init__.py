"""
员工通知渠道实现
"""
from frontdesk.notification.channels import LogChannel, WebhookChannel
from frontdesk.notification.notifier import StaffNotifier, build_staff_notifier

__all__ = ["LogChannel", "WebhookChannel", "StaffNotifier", "build_staff_notifier"]
