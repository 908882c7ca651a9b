"""
客房服务

流程：确定房间（会话中有在住信息时直接使用，否则询问房间号并核对在住）
      → 编号菜单选择服务 → 补充描述 → 创建工单 → 通知值班经理 → 写入会话

服务类型只按菜单序号确定，不对客人的自由文本做分类。
"""
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple, Union

from frontdesk.core.errors import ReplyTimeout, TransportError
from frontdesk.models.ontology import ServicePriority, ServiceType
from frontdesk.models.schemas import ServiceOrder
from frontdesk.services.base import FrontDeskFlow
from frontdesk.services.reservation_resolver import ReservationResolver

logger = logging.getLogger(__name__)

DEFAULT_GUEST_NAME = "住客"

# 菜单序号 -> (服务类型, 优先级)
SERVICE_MENU = {
    "1": (ServiceType.CLEANING, ServicePriority.NORMAL),
    "2": (ServiceType.REPAIR, ServicePriority.HIGH),
    "3": (ServiceType.DINING, ServicePriority.NORMAL),
    "4": (ServiceType.SUPPLIES, ServicePriority.LOW),
    "5": (ServiceType.OTHER, ServicePriority.NORMAL),
}

SERVICE_TYPE_LABELS = {
    ServiceType.CLEANING: "🧹 客房清洁",
    ServiceType.REPAIR: "🔧 设施维修",
    ServiceType.DINING: "🍽️ 送餐服务",
    ServiceType.SUPPLIES: "🧴 补充用品",
    ServiceType.OTHER: "📋 其他需求",
}

PRIORITY_LABELS = {
    ServicePriority.LOW: "低",
    ServicePriority.NORMAL: "普通",
    ServicePriority.HIGH: "⚡ 高",
    ServicePriority.URGENT: "🔴 紧急",
}

MENU_TEXT = (
    "请问您需要以下哪种服务？\n\n"
    "1️⃣ 🧹 客房清洁\n"
    "2️⃣ 🔧 设施维修（空调/热水/电视等）\n"
    "3️⃣ 🍽️ 送餐服务\n"
    "4️⃣ 🧴 补充用品（毛巾/洗漱用品/拖鞋等）\n"
    "5️⃣ 💬 其他需求"
)


def estimated_wait(order: ServiceOrder) -> str:
    """预计响应时间"""
    if order.priority == ServicePriority.URGENT:
        return "10分钟"
    if order.priority == ServicePriority.HIGH:
        return "15分钟"
    if order.service_type == ServiceType.DINING:
        return "30分钟"
    if order.service_type == ServiceType.CLEANING:
        return "20分钟"
    return "15分钟"


class RoomServiceStatus(str, Enum):
    """客房服务结果"""
    CREATED = "created"
    NOT_FOUND = "not_found"                # 房间无人入住
    INVALID_SELECTION = "invalid_selection"
    SYSTEM_UNAVAILABLE = "system_unavailable"
    ABANDONED = "abandoned"                # 客人未回复


@dataclass
class RoomServiceResult:
    status: RoomServiceStatus
    room_number: Optional[str] = None
    order: Optional[ServiceOrder] = None

    @property
    def succeeded(self) -> bool:
        return self.status == RoomServiceStatus.CREATED


class RoomServiceService(FrontDeskFlow):
    """客房服务：读取入住时写入的会话，为在住客人创建服务工单"""

    flow_name = "room_service"

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.resolver = ReservationResolver(self.collaborators.reservations)

    def run(self) -> RoomServiceResult:
        """与客人完成一次客房服务对话"""
        if self.session.current_room is not None:
            room_number = self.session.current_room.room_number
            guest = self.session.current_guest
            guest_name = guest.name if guest is not None else DEFAULT_GUEST_NAME
            self._say(f"🏨 {room_number} 房间的客人您好！请问需要什么服务？")
        else:
            self._say("🏨 您好！请问您的房间号是多少？")
            try:
                room_number = self._ask("房间号：")
            except ReplyTimeout:
                return self._abandoned()
            located = self._locate(room_number)
            if isinstance(located, RoomServiceResult):
                return located
            room_number, guest_name = located
        return self.request_service(room_number, guest_name)

    def _locate(self, room_number: str) -> Union[RoomServiceResult, Tuple[str, str]]:
        """按房间号核对在住客人，返回 (房间号, 客人姓名) 或提前结束的结果"""
        try:
            occupancy = self.resolver.find_occupancy(room_number)
        except TransportError as e:
            return self._system_unavailable("find_occupancy", e, room_number)
        if occupancy is None:
            self._say(f"❌ 未查询到 {room_number} 房间的入住信息。请确认房间号，或联系前台。")
            return RoomServiceResult(status=RoomServiceStatus.NOT_FOUND, room_number=room_number)
        return occupancy.card.room_number, occupancy.guest.name

    def request_service(self, room_number: str, guest_name: str = DEFAULT_GUEST_NAME) -> RoomServiceResult:
        """为指定房间选择服务并创建工单"""
        self._say(MENU_TEXT)
        try:
            choice = self._ask("您的需求：")
        except ReplyTimeout:
            return self._abandoned(room_number)
        if choice not in SERVICE_MENU:
            logger.info(f"Room service selection rejected: {choice!r}")
            self._say("选择无效，请输入 1-5 之间的序号重新提交需求。")
            return RoomServiceResult(status=RoomServiceStatus.INVALID_SELECTION, room_number=room_number)
        service_type, priority = SERVICE_MENU[choice]

        description = self._ask_details(service_type)
        try:
            order = self.collaborators.reservations.create_service_order(
                room_number, guest_name, service_type, priority, description
            )
        except TransportError as e:
            return self._system_unavailable("create_service_order", e, room_number)

        self._notify_staff(
            self.settings.DUTY_MANAGER,
            f"新服务工单 {order.order_id}：房间 {room_number}（{guest_name}），"
            f"{SERVICE_TYPE_LABELS[service_type]}，优先级 {PRIORITY_LABELS[priority]}，{description}",
            extra={"order_id": order.order_id, "room_number": room_number, "priority": priority.value},
        )
        self.session.last_service_order = order

        self._say(
            "✅ 已为您创建服务工单\n\n"
            f"📋 工单号：{order.order_id}\n"
            f"🏷️ 类型：{SERVICE_TYPE_LABELS[service_type]}\n"
            f"⚡ 优先级：{PRIORITY_LABELS[priority]}\n"
            f"📝 描述：{description}\n\n"
            f"我已通知相关部门，{estimated_wait(order)}内会有工作人员处理。"
        )
        logger.info(f"Room service order {order.order_id} created for room {room_number}")
        return RoomServiceResult(status=RoomServiceStatus.CREATED, room_number=room_number, order=order)

    def _ask_details(self, service_type: ServiceType) -> str:
        # 未补充描述时以服务类型作为描述
        self._say("请详细描述一下您的需求，以便我们更好地为您服务：")
        try:
            details = self._ask("详细描述：")
        except ReplyTimeout:
            details = ""
        return details or SERVICE_TYPE_LABELS[service_type].split(" ", 1)[1]

    def _system_unavailable(self, step: str, error: TransportError,
                            room_number: Optional[str] = None) -> RoomServiceResult:
        logger.error(f"Room service {step} failed: {error}")
        self._notify_staff(self.settings.TECH_SUPPORT, f"客房服务 {step} 后端不可用：{error}")
        self._say("⚠️ 工单系统暂时不可用，已通知工作人员，请稍候。")
        return RoomServiceResult(status=RoomServiceStatus.SYSTEM_UNAVAILABLE, room_number=room_number)

    def _abandoned(self, room_number: Optional[str] = None) -> RoomServiceResult:
        logger.info("Room service abandoned: no reply from guest")
        return RoomServiceResult(status=RoomServiceStatus.ABANDONED, room_number=room_number)
