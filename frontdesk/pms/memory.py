"""
pms/memory.py

内存版 PMS - 本地开发与测试夹具

预订存储与房间存储共享同一份 InMemoryPmsState，
assign_room 在锁内完成 "查找 + 占用"，避免并发会话分到同一间房。
"""
import logging
import threading
import uuid
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from typing import Dict, List, Optional

from frontdesk.core.errors import CapacityError
from frontdesk.models.lifecycle import RESERVATION_LIFECYCLE, ROOM_LIFECYCLE
from frontdesk.models.ontology import (
    ChargeCategory, ReservationStatus, RoomStatus, RoomType, ServicePriority, ServiceType,
)
from frontdesk.models.schemas import (
    ChargeItem, CheckInRecord, CheckOutRecord, FaceVerifyResult, Guest, IdScanResult,
    Occupancy, Reservation, ReservationLookup, Room, RoomCard, ServiceOrder,
)
from frontdesk.pms.interfaces import IdentityService, ReservationStore, RoomStore

logger = logging.getLogger(__name__)


@dataclass
class InMemoryPmsState:
    """内存 PMS 数据"""

    guests: Dict[str, Guest] = field(default_factory=dict)
    reservations: Dict[str, Reservation] = field(default_factory=dict)
    rooms: Dict[str, Room] = field(default_factory=dict)
    cards: Dict[str, RoomCard] = field(default_factory=dict)
    charges: List[ChargeItem] = field(default_factory=list)
    check_in_records: List[CheckInRecord] = field(default_factory=list)
    check_out_records: List[CheckOutRecord] = field(default_factory=list)
    service_orders: List[ServiceOrder] = field(default_factory=list)
    card_counter: int = 1000
    service_order_counter: int = 800
    lock: threading.RLock = field(default_factory=threading.RLock)

    def add_guest(self, guest: Guest) -> Guest:
        self.guests[guest.id] = guest
        return guest

    def add_reservation(self, reservation: Reservation) -> Reservation:
        self.reservations[reservation.reservation_id] = reservation
        return reservation

    def add_room(self, room: Room) -> Room:
        self.rooms[room.room_number] = room
        return room

    def add_card(self, card: RoomCard) -> RoomCard:
        self.cards[card.card_id] = card
        return card


class InMemoryReservationStore(ReservationStore):
    """内存版预订存储"""

    def __init__(self, state: InMemoryPmsState):
        self.state = state

    def find_by_guest_name(self, name: str) -> ReservationLookup:
        with self.state.lock:
            guest = next((g for g in self.state.guests.values() if g.name == name), None)
            if guest is None:
                return ReservationLookup()
            reservations = [
                r.model_copy() for r in self.state.reservations.values()
                if r.guest_id == guest.id and r.status == ReservationStatus.CONFIRMED
            ]
            reservations.sort(key=lambda r: (r.check_in_date, r.reservation_id))
            return ReservationLookup(guest=guest.model_copy(), reservations=reservations)

    def find_by_room(self, room_number: str) -> Optional[Occupancy]:
        with self.state.lock:
            card = next(
                (c for c in self.state.cards.values()
                 if c.room_number == room_number and c.is_active),
                None,
            )
            if card is None:
                return None
            guest = self.state.guests.get(card.guest_id)
            reservation = self._reservation_for_card(card)
            if guest is None or reservation is None:
                return None
            return Occupancy(guest=guest.model_copy(), reservation=reservation.model_copy(),
                             card=card.model_copy())

    def _reservation_for_card(self, card: RoomCard) -> Optional[Reservation]:
        # 有入住记录时只认记录里的预订；完全没有记录才退回到该客人唯一的在住预订
        records = [r for r in self.state.check_in_records if r.card_id == card.card_id]
        if records:
            for record in reversed(records):
                reservation = self.state.reservations.get(record.reservation_id)
                if reservation and reservation.status == ReservationStatus.CHECKED_IN:
                    return reservation
            return None
        in_house = [
            r for r in self.state.reservations.values()
            if r.guest_id == card.guest_id and r.status == ReservationStatus.CHECKED_IN
        ]
        return in_house[0] if len(in_house) == 1 else None

    def get_reservation(self, reservation_id: str) -> Optional[Reservation]:
        with self.state.lock:
            reservation = self.state.reservations.get(reservation_id)
            return reservation.model_copy() if reservation else None

    def set_reservation_status(self, reservation_id: str, status: ReservationStatus) -> Reservation:
        with self.state.lock:
            reservation = self.state.reservations.get(reservation_id)
            if reservation is None:
                raise ValueError(f"预订不存在: {reservation_id}")
            RESERVATION_LIFECYCLE.ensure_transition(reservation.status.value, status.value)
            reservation.status = status
            logger.info(f"Reservation {reservation_id} -> {status.value}")
            return reservation.model_copy()

    def append_check_in_record(self, record: CheckInRecord) -> None:
        with self.state.lock:
            self.state.check_in_records.append(record.model_copy())
        logger.info(f"Check-in recorded: room {record.room_number}, guest {record.guest_id}")

    def append_check_out_record(self, record: CheckOutRecord) -> None:
        with self.state.lock:
            self.state.check_out_records.append(record.model_copy())
        logger.info(f"Check-out recorded: room {record.room_number}, guest {record.guest_id}")

    def list_charges(self, room_number: str) -> List[ChargeItem]:
        with self.state.lock:
            return [c.model_copy() for c in self.state.charges if c.room_number == room_number]

    def add_charge(self, room_number: str, category: ChargeCategory,
                   amount: Decimal, description: str = "") -> ChargeItem:
        item = ChargeItem(
            id=f"CHG-{uuid.uuid4().hex[:8]}",
            room_number=room_number,
            category=category,
            description=description,
            amount=Decimal(amount),
            charged_at=datetime.now(),
        )
        with self.state.lock:
            self.state.charges.append(item)
        return item.model_copy()

    def create_service_order(self, room_number: str, guest_name: str, service_type: ServiceType,
                             priority: ServicePriority, description: str = "") -> ServiceOrder:
        with self.state.lock:
            self.state.service_order_counter += 1
            order = ServiceOrder(
                order_id=f"SVC-{self.state.service_order_counter:04d}",
                room_number=room_number,
                guest_name=guest_name,
                service_type=service_type,
                priority=priority,
                description=description,
                created_at=datetime.now(),
            )
            self.state.service_orders.append(order)
        logger.info(f"Service order {order.order_id} created: room {room_number}, {service_type.value}")
        return order.model_copy()

    def list_service_orders(self, room_number: str) -> List[ServiceOrder]:
        with self.state.lock:
            return [o.model_copy() for o in self.state.service_orders if o.room_number == room_number]


class InMemoryRoomStore(RoomStore):
    """内存版房间与房卡存储"""

    def __init__(self, state: InMemoryPmsState):
        self.state = state

    def assign_room(self, room_type: RoomType) -> Room:
        with self.state.lock:
            candidates = sorted(
                (r for r in self.state.rooms.values()
                 if r.room_type == room_type and r.status == RoomStatus.AVAILABLE),
                key=lambda r: r.room_number,
            )
            if not candidates:
                raise CapacityError(room_type.value)
            room = candidates[0]
            room.status = RoomStatus.RESERVED
            logger.info(f"Room {room.room_number} assigned ({room_type.value})")
            return room.model_copy()

    def get_room(self, room_number: str) -> Optional[Room]:
        with self.state.lock:
            room = self.state.rooms.get(room_number)
            return room.model_copy() if room else None

    def list_rooms(self) -> List[Room]:
        with self.state.lock:
            return [r.model_copy() for r in sorted(self.state.rooms.values(), key=lambda r: r.room_number)]

    def set_room_status(self, room_number: str, status: RoomStatus) -> Room:
        with self.state.lock:
            room = self.state.rooms.get(room_number)
            if room is None:
                raise ValueError(f"房间不存在: {room_number}")
            ROOM_LIFECYCLE.ensure_transition(room.status.value, status.value)
            room.status = status
            logger.info(f"Room {room_number} -> {status.value}")
            return room.model_copy()

    def issue_card(self, room_number: str, guest_id: str, expires_at: date) -> RoomCard:
        with self.state.lock:
            if room_number not in self.state.rooms:
                raise ValueError(f"房间不存在: {room_number}")
            self.state.card_counter += 1
            card = RoomCard(
                card_id=f"CARD-{self.state.card_counter}",
                room_number=room_number,
                guest_id=guest_id,
                issued_at=datetime.now(),
                expires_at=expires_at,
                is_active=True,
            )
            self.state.cards[card.card_id] = card
        logger.info(f"Room card issued: {card.card_id} for room {room_number}")
        return card.model_copy()

    def revoke_card(self, card_id: str) -> None:
        with self.state.lock:
            card = self.state.cards.get(card_id)
            if card is None:
                raise ValueError(f"房卡不存在: {card_id}")
            card.is_active = False
        logger.info(f"Room card revoked: {card_id}")

    def get_active_card(self, room_number: str) -> Optional[RoomCard]:
        with self.state.lock:
            for card in self.state.cards.values():
                if card.room_number == room_number and card.is_active:
                    return card.model_copy()
        return None


class MockIdentityService(IdentityService):
    """
    模拟身份核验服务

    scan_results 按顺序返回；元素为异常时抛出，用于模拟读卡失败。
    队列耗尽后重复最后一个结果。
    """

    def __init__(self, scan_results=None, face_result=None):
        self._scan_results = list(scan_results or [default_scan_result()])
        self._face_result = face_result if face_result is not None else default_face_result()
        self.scan_calls = 0
        self.face_calls: List[str] = []

    def scan_document(self) -> IdScanResult:
        index = min(self.scan_calls, len(self._scan_results) - 1)
        self.scan_calls += 1
        result = self._scan_results[index]
        if isinstance(result, Exception):
            raise result
        return result

    def match_face(self, reference_photo: str) -> FaceVerifyResult:
        self.face_calls.append(reference_photo)
        if isinstance(self._face_result, Exception):
            raise self._face_result
        return self._face_result


def default_scan_result(name: str = "张伟") -> IdScanResult:
    return IdScanResult(
        success=True,
        name=name,
        id_number="110101199001011234",
        gender="male",
        birth_date=date(1990, 1, 1),
        address="北京市东城区XX街道XX号",
        photo_base64="MOCK_PHOTO_BASE64_DATA",
        expiry_date=date(2030, 12, 31),
    )


def default_face_result() -> FaceVerifyResult:
    return FaceVerifyResult(
        is_match=True,
        match_score=96.5,
        live_detection=True,
        captured_photo_base64="MOCK_CAPTURED_FACE_BASE64",
    )


__all__ = [
    "InMemoryPmsState",
    "InMemoryReservationStore",
    "InMemoryRoomStore",
    "MockIdentityService",
    "default_scan_result",
    "default_face_result",
]
