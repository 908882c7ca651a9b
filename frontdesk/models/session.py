"""
前台会话状态 - 一次对话内的临时交接数据

入住成功后写入，客房服务读取其中的房间与客人，并记下最近一张工单；退房后显式清空。
不持久化。
"""
from dataclasses import dataclass
from typing import Optional

from frontdesk.models.schemas import Guest, Room, Reservation, RoomCard, ServiceOrder


@dataclass
class FrontDeskSession:
    """
    会话状态

    Attributes:
        current_guest: 当前客人
        current_room: 当前房间
        current_reservation: 当前预订
        active_card: 当前有效房卡
        last_service_order: 最近一次创建的客房服务工单
    """

    current_guest: Optional[Guest] = None
    current_room: Optional[Room] = None
    current_reservation: Optional[Reservation] = None
    active_card: Optional[RoomCard] = None
    last_service_order: Optional[ServiceOrder] = None

    @property
    def has_stay(self) -> bool:
        """会话中是否有在住信息"""
        return self.current_room is not None and self.current_reservation is not None

    def clear(self) -> None:
        """清空会话中的在住信息"""
        self.current_guest = None
        self.current_room = None
        self.current_reservation = None
        self.active_card = None
        self.last_service_order = None
