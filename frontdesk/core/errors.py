"""
core/errors.py

前台流程异常定义

"未找到" 不是异常：查询返回 None / 空列表。
身份核验失败、账单异议、入账后不一致属于流程结果，不会抛出到编排器之外。
"""
from typing import Any, Dict, Optional


class FrontDeskError(Exception):
    """
    前台流程异常基类

    Attributes:
        message: 错误信息（面向日志）
        details: 附加上下文
    """

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "error": type(self).__name__,
            "message": self.message,
            "details": self.details,
        }


class TransportError(FrontDeskError):
    """后端不可达或返回非成功状态（区别于正常的"未找到"）"""

    def __init__(self, message: str, status_code: Optional[int] = None,
                 details: Optional[Dict[str, Any]] = None):
        self.status_code = status_code
        super().__init__(message, details)


class CapacityError(FrontDeskError):
    """指定房型当前没有可用房间"""

    def __init__(self, room_type: str):
        self.room_type = room_type
        super().__init__(f"No available {room_type} room", {"room_type": room_type})


class ScanError(FrontDeskError):
    """证件扫描设备故障或读取失败"""


class FaceServiceError(FrontDeskError):
    """人脸比对服务故障"""


class InvalidSelectionError(FrontDeskError, ValueError):
    """预订序号选择超出范围 - 调用方错误，不重试"""

    def __init__(self, ordinal: Any, count: int):
        self.ordinal = ordinal
        self.count = count
        super().__init__(
            f"Invalid reservation selection {ordinal!r}, expected 1..{count}",
            {"ordinal": ordinal, "count": count},
        )


class InvalidTransitionError(FrontDeskError, ValueError):
    """状态机不允许的状态转换"""

    def __init__(self, machine: str, from_state: str, to_state: str):
        self.machine = machine
        self.from_state = from_state
        self.to_state = to_state
        super().__init__(
            f"{machine}: transition {from_state} -> {to_state} is not allowed",
            {"machine": machine, "from_state": from_state, "to_state": to_state},
        )


class ReplyTimeout(FrontDeskError):
    """等待客人回复超时"""

    def __init__(self, prompt: str, timeout: Optional[float]):
        self.prompt = prompt
        self.timeout = timeout
        super().__init__(f"No reply to {prompt!r} within {timeout}s")


__all__ = [
    "FrontDeskError",
    "TransportError",
    "CapacityError",
    "ScanError",
    "FaceServiceError",
    "InvalidSelectionError",
    "InvalidTransitionError",
    "ReplyTimeout",
]
