"""
frontdesk.core - 域无关的框架层

包含状态机、对账日志、通知渠道抽象和异常定义。
"""
