"""
pms/interfaces.py

协作方接口定义 - 出入住编排依赖的外部能力

- ReservationStore: 客人 / 预订 / 消费 / 出入住记录 / 客房服务工单
- RoomStore: 房间 / 房卡
- IdentityService: 证件扫描 / 人脸比对

所有方法在后端不可达时抛出 TransportError；"未找到" 返回 None 或空列表。
实现（内存夹具、SQL 数据库、HTTP 服务）在进程启动时一次性选定，
调用处不做任何分支判断。
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Dict, List, Optional

from frontdesk.models.ontology import (
    ChargeCategory, ReservationStatus, RoomStatus, RoomType, ServicePriority, ServiceType,
)
from frontdesk.models.schemas import (
    ChargeItem, CheckInRecord, CheckOutRecord, FaceVerifyResult, IdScanResult,
    Occupancy, Reservation, ReservationLookup, Room, RoomAvailability, RoomCard, ServiceOrder,
)


class ReservationStore(ABC):
    """预订存储"""

    @abstractmethod
    def find_by_guest_name(self, name: str) -> ReservationLookup:
        """按客人姓名（精确匹配）查询客人及其 confirmed 状态的预订"""

    @abstractmethod
    def find_by_room(self, room_number: str) -> Optional[Occupancy]:
        """按房间号查询在住客人、checked_in 状态的预订和有效房卡，无人入住返回 None"""

    @abstractmethod
    def get_reservation(self, reservation_id: str) -> Optional[Reservation]:
        """按预订号查询"""

    @abstractmethod
    def set_reservation_status(self, reservation_id: str, status: ReservationStatus) -> Reservation:
        """更新预订状态，不合法的转换抛出 InvalidTransitionError"""

    @abstractmethod
    def append_check_in_record(self, record: CheckInRecord) -> None:
        """写入入住记录"""

    @abstractmethod
    def append_check_out_record(self, record: CheckOutRecord) -> None:
        """写入退房记录"""

    @abstractmethod
    def list_charges(self, room_number: str) -> List[ChargeItem]:
        """查询房间的额外消费"""

    @abstractmethod
    def add_charge(self, room_number: str, category: ChargeCategory,
                   amount: Decimal, description: str = "") -> ChargeItem:
        """追加一笔消费"""

    @abstractmethod
    def create_service_order(self, room_number: str, guest_name: str, service_type: ServiceType,
                             priority: ServicePriority, description: str = "") -> ServiceOrder:
        """创建一张 pending 状态的客房服务工单，工单号形如 SVC-0801"""

    @abstractmethod
    def list_service_orders(self, room_number: str) -> List[ServiceOrder]:
        """按创建时间查询房间的客房服务工单"""


class RoomStore(ABC):
    """房间与房卡存储"""

    @abstractmethod
    def assign_room(self, room_type: RoomType) -> Room:
        """
        原子地找到一间该房型的 available 房间并置为 reserved

        没有可用房间时抛出 CapacityError。
        """

    @abstractmethod
    def get_room(self, room_number: str) -> Optional[Room]:
        """按房间号查询"""

    @abstractmethod
    def list_rooms(self) -> List[Room]:
        """查询所有房间"""

    @abstractmethod
    def set_room_status(self, room_number: str, status: RoomStatus) -> Room:
        """更新房间状态，不合法的转换抛出 InvalidTransitionError"""

    @abstractmethod
    def issue_card(self, room_number: str, guest_id: str, expires_at: date) -> RoomCard:
        """发放房卡"""

    @abstractmethod
    def revoke_card(self, card_id: str) -> None:
        """注销房卡（幂等）"""

    @abstractmethod
    def get_active_card(self, room_number: str) -> Optional[RoomCard]:
        """查询房间当前有效房卡"""

    def get_availability(self) -> Dict[str, RoomAvailability]:
        """按房型统计房间总数与可用数"""
        result: Dict[str, RoomAvailability] = {}
        for room in self.list_rooms():
            stats = result.setdefault(room.room_type.value, RoomAvailability())
            stats.total += 1
            if room.status == RoomStatus.AVAILABLE:
                stats.available += 1
        return result


class IdentityService(ABC):
    """身份核验服务"""

    @abstractmethod
    def scan_document(self) -> IdScanResult:
        """扫描身份证，设备/读取故障抛出 ScanError"""

    @abstractmethod
    def match_face(self, reference_photo: str) -> FaceVerifyResult:
        """将摄像头画面与证件照比对，服务故障抛出 FaceServiceError"""


@dataclass
class FrontDeskCollaborators:
    """进程启动时选定的一组协作方实现"""

    reservations: ReservationStore
    rooms: RoomStore
    identity: IdentityService


__all__ = [
    "ReservationStore",
    "RoomStore",
    "IdentityService",
    "FrontDeskCollaborators",
]
