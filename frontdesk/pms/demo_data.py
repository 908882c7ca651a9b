"""
演示数据 - 本地开发时的客人、预订、房间

在住房间（1203、1502）同时带有在住预订、有效房卡和入住记录，
保证 "房卡有效 ⇔ 房间 occupied" 在初始数据上也成立。
"""
import logging
from datetime import date, datetime
from decimal import Decimal
from typing import List

from sqlalchemy.orm import Session

from frontdesk.models.ontology import (
    ChargeCategory, ChargeItemModel, CheckInRecordModel, GuestModel, GuestTier,
    ReservationModel, ReservationSource, ReservationStatus, RoomCardModel, RoomModel,
    RoomStatus, RoomType,
)
from frontdesk.models.schemas import (
    ChargeItem, CheckInRecord, Guest, Reservation, Room, RoomCard,
)
from frontdesk.pms.memory import InMemoryPmsState

logger = logging.getLogger(__name__)

OPERATOR = "agent:hotel-front-desk"


def demo_guests() -> List[Guest]:
    return [
        Guest(id="G001", name="张伟", phone="13800138001", id_number="110***1234",
              tier=GuestTier.GOLD, registered_at=datetime(2025, 6, 15, 10, 0)),
        Guest(id="G002", name="李娟", phone="13900139002", id_number="310***5678",
              tier=GuestTier.NORMAL, registered_at=datetime(2025, 11, 20, 14, 0)),
        Guest(id="G003", name="王磊", phone="13700137003", id_number="440***9012",
              tier=GuestTier.SILVER, registered_at=datetime(2026, 1, 10, 8, 0)),
        Guest(id="G004", name="陈静", phone="13600136004", id_number="320***3456",
              tier=GuestTier.NORMAL, registered_at=datetime(2026, 2, 1, 9, 0)),
        Guest(id="G005", name="刘洋", phone="13500135005", id_number="510***7890",
              tier=GuestTier.PLATINUM, registered_at=datetime(2025, 3, 8, 16, 0)),
    ]


def demo_reservations() -> List[Reservation]:
    return [
        Reservation(reservation_id="RSV-20260225-001", guest_id="G001", guest_name="张伟",
                    room_type=RoomType.DELUXE, check_in_date=date(2026, 2, 25),
                    check_out_date=date(2026, 2, 28), total_price=Decimal("1680"),
                    source=ReservationSource.ONLINE, special_requests="高层，远离电梯",
                    created_at=datetime(2026, 2, 20, 12, 0)),
        Reservation(reservation_id="RSV-20260225-002", guest_id="G002", guest_name="李娟",
                    room_type=RoomType.STANDARD, check_in_date=date(2026, 2, 25),
                    check_out_date=date(2026, 2, 26), total_price=Decimal("388"),
                    source=ReservationSource.OTA, created_at=datetime(2026, 2, 24, 18, 0)),
        Reservation(reservation_id="RSV-20260226-001", guest_id="G003", guest_name="王磊",
                    room_type=RoomType.SUITE, check_in_date=date(2026, 2, 26),
                    check_out_date=date(2026, 3, 1), total_price=Decimal("4760"),
                    source=ReservationSource.PHONE, special_requests="需要婴儿床",
                    created_at=datetime(2026, 2, 22, 9, 0)),
        Reservation(reservation_id="RSV-20260224-003", guest_id="G004", guest_name="陈静",
                    room_type=RoomType.STANDARD, check_in_date=date(2026, 2, 24),
                    check_out_date=date(2026, 2, 25), status=ReservationStatus.CHECKED_IN,
                    total_price=Decimal("388"), source=ReservationSource.ONLINE,
                    created_at=datetime(2026, 2, 18, 11, 0)),
        Reservation(reservation_id="RSV-20260223-004", guest_id="G005", guest_name="刘洋",
                    room_type=RoomType.SUITE, check_in_date=date(2026, 2, 23),
                    check_out_date=date(2026, 2, 26), status=ReservationStatus.CHECKED_IN,
                    total_price=Decimal("3840"), source=ReservationSource.PHONE,
                    created_at=datetime(2026, 2, 10, 15, 0)),
    ]


def demo_rooms() -> List[Room]:
    return [
        # 标准间
        Room(room_number="1201", floor=12, room_type=RoomType.STANDARD, status=RoomStatus.AVAILABLE,
             price=Decimal("388"), features=["city-view"]),
        Room(room_number="1202", floor=12, room_type=RoomType.STANDARD, status=RoomStatus.AVAILABLE,
             price=Decimal("388"), features=["garden-view"]),
        Room(room_number="1203", floor=12, room_type=RoomType.STANDARD, status=RoomStatus.OCCUPIED,
             price=Decimal("388"), features=["city-view"]),
        # 豪华房
        Room(room_number="1205", floor=12, room_type=RoomType.DELUXE, status=RoomStatus.AVAILABLE,
             price=Decimal("560"), features=["city-view", "balcony"]),
        Room(room_number="1208", floor=12, room_type=RoomType.DELUXE, status=RoomStatus.AVAILABLE,
             price=Decimal("560"), features=["lake-view", "bathtub"]),
        Room(room_number="1210", floor=12, room_type=RoomType.DELUXE, status=RoomStatus.CLEANING,
             price=Decimal("560"), features=["city-view", "balcony"]),
        # 套房
        Room(room_number="1501", floor=15, room_type=RoomType.SUITE, status=RoomStatus.AVAILABLE,
             price=Decimal("1280"), features=["lake-view", "living-room", "bathtub"]),
        Room(room_number="1502", floor=15, room_type=RoomType.SUITE, status=RoomStatus.OCCUPIED,
             price=Decimal("1280"), features=["city-view", "living-room"]),
        # 总统套房
        Room(room_number="1801", floor=18, room_type=RoomType.PRESIDENTIAL, status=RoomStatus.AVAILABLE,
             price=Decimal("3880"), features=["panorama", "living-room", "study", "jacuzzi"]),
    ]


def demo_cards() -> List[RoomCard]:
    return [
        RoomCard(card_id="CARD-0901", room_number="1203", guest_id="G004",
                 issued_at=datetime(2026, 2, 24, 15, 10), expires_at=date(2026, 2, 25)),
        RoomCard(card_id="CARD-0902", room_number="1502", guest_id="G005",
                 issued_at=datetime(2026, 2, 23, 14, 30), expires_at=date(2026, 2, 26)),
    ]


def demo_check_in_records() -> List[CheckInRecord]:
    return [
        CheckInRecord(reservation_id="RSV-20260224-003", guest_id="G004", room_number="1203",
                      card_id="CARD-0901", id_verified=True, face_verified=True,
                      check_in_time=datetime(2026, 2, 24, 15, 10), operated_by=OPERATOR),
        CheckInRecord(reservation_id="RSV-20260223-004", guest_id="G005", room_number="1502",
                      card_id="CARD-0902", id_verified=True, face_verified=True,
                      check_in_time=datetime(2026, 2, 23, 14, 30), operated_by=OPERATOR),
    ]


def demo_charges() -> List[ChargeItem]:
    return [
        ChargeItem(id="CHG-0001", room_number="1203", category=ChargeCategory.MINIBAR,
                   description="矿泉水 x2、坚果", amount=Decimal("68"),
                   charged_at=datetime(2026, 2, 24, 22, 15)),
        ChargeItem(id="CHG-0002", room_number="1502", category=ChargeCategory.RESTAURANT,
                   description="送餐：晚餐套餐", amount=Decimal("258"),
                   charged_at=datetime(2026, 2, 24, 19, 40)),
    ]


def seed_memory(state: InMemoryPmsState) -> InMemoryPmsState:
    """向内存 PMS 写入演示数据"""
    with state.lock:
        for guest in demo_guests():
            state.add_guest(guest)
        for reservation in demo_reservations():
            state.add_reservation(reservation)
        for room in demo_rooms():
            state.add_room(room)
        for card in demo_cards():
            state.add_card(card)
        state.check_in_records.extend(demo_check_in_records())
        state.charges.extend(demo_charges())
    return state


def seed_database(db: Session) -> bool:
    """向 PMS 数据库写入演示数据，已有数据时跳过"""
    if db.query(GuestModel).first() is not None:
        return False

    db.add_all(GuestModel(**g.model_dump()) for g in demo_guests())
    db.add_all(RoomModel(**r.model_dump()) for r in demo_rooms())
    db.flush()
    db.add_all(ReservationModel(**r.model_dump()) for r in demo_reservations())
    db.add_all(RoomCardModel(**c.model_dump()) for c in demo_cards())
    db.flush()
    db.add_all(CheckInRecordModel(**r.model_dump()) for r in demo_check_in_records())
    db.add_all(ChargeItemModel(**c.model_dump()) for c in demo_charges())
    db.commit()
    logger.info("Demo PMS data seeded")
    return True
