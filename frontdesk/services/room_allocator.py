"""
房间分配与房卡服务

assign_room 依赖存储层的原子 "查找 + 占用"，不在本地缓存可用房态；
房态更新与房卡发放/注销是两个独立调用。
"""
import logging
from datetime import date
from typing import Dict, Union

from frontdesk.models.ontology import RoomStatus, RoomType
from frontdesk.models.schemas import Guest, Room, RoomAvailability, RoomCard
from frontdesk.pms.interfaces import RoomStore

logger = logging.getLogger(__name__)


class RoomAllocator:
    """房间分配与房卡服务"""

    def __init__(self, store: RoomStore):
        self.store = store

    def assign_room(self, room_type: RoomType) -> Room:
        """
        分配一间指定房型的可用房间

        Raises:
            CapacityError: 该房型没有可用房间（不自动重试）
        """
        room = self.store.assign_room(room_type)
        logger.info(f"Assigned room {room.room_number} for {room_type.value}")
        return room

    def issue_card(self, room: Room, guest: Guest, expires_at: date) -> RoomCard:
        """发放房卡，有效期至离店日期"""
        return self.store.issue_card(room.room_number, guest.id, expires_at)

    def revoke_card(self, card: Union[RoomCard, str]) -> None:
        """注销房卡，重复注销不报错"""
        card_id = card.card_id if isinstance(card, RoomCard) else card
        self.store.revoke_card(card_id)

    def mark_occupied(self, room_number: str) -> Room:
        return self._set_status(room_number, RoomStatus.OCCUPIED)

    def mark_cleaning(self, room_number: str) -> Room:
        return self._set_status(room_number, RoomStatus.CLEANING)

    def _set_status(self, room_number: str, status: RoomStatus) -> Room:
        # 已处于目标状态时视为完成，便于对账后重放
        room = self.store.get_room(room_number)
        if room is not None and room.status == status:
            return room
        return self.store.set_room_status(room_number, status)

    def availability(self) -> Dict[str, RoomAvailability]:
        """按房型统计可用房间"""
        return self.store.get_availability()
