"""
pms/sql.py

SQL 版 PMS - 基于 SQLAlchemy 的酒店登记系统存储

每次调用打开独立的会话：一次入住/退房流程跨越整段对话，
不持有长事务。数据库异常统一转换为 TransportError。
"""
import logging
import uuid
from contextlib import contextmanager
from datetime import date, datetime
from decimal import Decimal
from typing import Iterator, List, Optional

from sqlalchemy import func, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from frontdesk.core.errors import CapacityError, TransportError
from frontdesk.models.lifecycle import RESERVATION_LIFECYCLE, ROOM_LIFECYCLE
from frontdesk.models.ontology import (
    ChargeCategory, ChargeItemModel, CheckInRecordModel, CheckOutRecordModel, GuestModel,
    ReservationModel, ReservationStatus, RoomCardModel, RoomModel, RoomStatus, RoomType,
    ServiceOrderModel, ServicePriority, ServiceType,
)
from frontdesk.models.schemas import (
    ChargeItem, CheckInRecord, CheckOutRecord, Guest, Occupancy, Reservation,
    ReservationLookup, Room, RoomCard, ServiceOrder,
)
from frontdesk.pms.interfaces import ReservationStore, RoomStore

logger = logging.getLogger(__name__)

SERVICE_ORDER_BASE = 800


class _SqlStore:
    """SQL 存储基类：会话管理与异常转换"""

    def __init__(self, session_factory):
        self._session_factory = session_factory

    @contextmanager
    def _session(self) -> Iterator[Session]:
        db = self._session_factory()
        try:
            yield db
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"PMS database error: {e}")
            raise TransportError(f"PMS database error: {e}") from e
        finally:
            db.close()


class SqlReservationStore(_SqlStore, ReservationStore):
    """SQL 版预订存储"""

    def find_by_guest_name(self, name: str) -> ReservationLookup:
        with self._session() as db:
            guest = db.execute(
                select(GuestModel).where(GuestModel.name == name).order_by(GuestModel.id)
            ).scalars().first()
            if guest is None:
                return ReservationLookup()
            reservations = db.execute(
                select(ReservationModel).where(
                    ReservationModel.guest_id == guest.id,
                    ReservationModel.status == ReservationStatus.CONFIRMED,
                ).order_by(ReservationModel.check_in_date, ReservationModel.reservation_id)
            ).scalars().all()
            return ReservationLookup(
                guest=Guest.model_validate(guest),
                reservations=[Reservation.model_validate(r) for r in reservations],
            )

    def find_by_room(self, room_number: str) -> Optional[Occupancy]:
        with self._session() as db:
            card = db.execute(
                select(RoomCardModel).where(
                    RoomCardModel.room_number == room_number,
                    RoomCardModel.is_active.is_(True),
                ).order_by(RoomCardModel.issued_at.desc())
            ).scalars().first()
            if card is None:
                return None
            guest = db.get(GuestModel, card.guest_id)
            reservation = self._reservation_for_card(db, card)
            if guest is None or reservation is None:
                return None
            return Occupancy(
                guest=Guest.model_validate(guest),
                reservation=Reservation.model_validate(reservation),
                card=RoomCard.model_validate(card),
            )

    def _reservation_for_card(self, db: Session, card: RoomCardModel) -> Optional[ReservationModel]:
        # 有入住记录时只认记录里的预订；完全没有记录才退回到该客人唯一的在住预订
        recorded_ids = db.execute(
            select(CheckInRecordModel.reservation_id).where(CheckInRecordModel.card_id == card.card_id)
        ).scalars().all()
        if recorded_ids:
            return db.execute(
                select(ReservationModel).where(
                    ReservationModel.reservation_id.in_(recorded_ids),
                    ReservationModel.status == ReservationStatus.CHECKED_IN,
                )
            ).scalars().first()
        in_house = db.execute(
            select(ReservationModel).where(
                ReservationModel.guest_id == card.guest_id,
                ReservationModel.status == ReservationStatus.CHECKED_IN,
            )
        ).scalars().all()
        return in_house[0] if len(in_house) == 1 else None

    def get_reservation(self, reservation_id: str) -> Optional[Reservation]:
        with self._session() as db:
            reservation = db.get(ReservationModel, reservation_id)
            return Reservation.model_validate(reservation) if reservation else None

    def set_reservation_status(self, reservation_id: str, status: ReservationStatus) -> Reservation:
        with self._session() as db:
            reservation = db.get(ReservationModel, reservation_id)
            if reservation is None:
                raise ValueError(f"预订不存在: {reservation_id}")
            RESERVATION_LIFECYCLE.ensure_transition(reservation.status.value, status.value)
            reservation.status = status
            db.commit()
            db.refresh(reservation)
            logger.info(f"Reservation {reservation_id} -> {status.value}")
            return Reservation.model_validate(reservation)

    def append_check_in_record(self, record: CheckInRecord) -> None:
        with self._session() as db:
            db.add(CheckInRecordModel(**record.model_dump()))
            db.commit()
        logger.info(f"Check-in recorded: room {record.room_number}, guest {record.guest_id}")

    def append_check_out_record(self, record: CheckOutRecord) -> None:
        with self._session() as db:
            db.add(CheckOutRecordModel(**record.model_dump()))
            db.commit()
        logger.info(f"Check-out recorded: room {record.room_number}, guest {record.guest_id}")

    def list_charges(self, room_number: str) -> List[ChargeItem]:
        with self._session() as db:
            items = db.execute(
                select(ChargeItemModel)
                .where(ChargeItemModel.room_number == room_number)
                .order_by(ChargeItemModel.charged_at)
            ).scalars().all()
            return [ChargeItem.model_validate(c) for c in items]

    def add_charge(self, room_number: str, category: ChargeCategory,
                   amount: Decimal, description: str = "") -> ChargeItem:
        with self._session() as db:
            item = ChargeItemModel(
                id=f"CHG-{uuid.uuid4().hex[:8]}",
                room_number=room_number,
                category=category,
                description=description,
                amount=Decimal(amount),
                charged_at=datetime.now(),
            )
            db.add(item)
            db.commit()
            db.refresh(item)
            return ChargeItem.model_validate(item)

    def create_service_order(self, room_number: str, guest_name: str, service_type: ServiceType,
                             priority: ServicePriority, description: str = "") -> ServiceOrder:
        with self._session() as db:
            # 工单号按已有数量顺延；两台自助机撞号时主键冲突，按 TransportError 处理
            existing = db.execute(select(func.count()).select_from(ServiceOrderModel)).scalar_one()
            order = ServiceOrderModel(
                order_id=f"SVC-{SERVICE_ORDER_BASE + existing + 1:04d}",
                room_number=room_number,
                guest_name=guest_name,
                service_type=service_type,
                priority=priority,
                description=description,
                created_at=datetime.now(),
            )
            db.add(order)
            db.commit()
            db.refresh(order)
            logger.info(f"Service order {order.order_id} created: room {room_number}, {service_type.value}")
            return ServiceOrder.model_validate(order)

    def list_service_orders(self, room_number: str) -> List[ServiceOrder]:
        with self._session() as db:
            orders = db.execute(
                select(ServiceOrderModel)
                .where(ServiceOrderModel.room_number == room_number)
                .order_by(ServiceOrderModel.created_at, ServiceOrderModel.order_id)
            ).scalars().all()
            return [ServiceOrder.model_validate(o) for o in orders]


class SqlRoomStore(_SqlStore, RoomStore):
    """SQL 版房间与房卡存储"""

    def assign_room(self, room_type: RoomType) -> Room:
        with self._session() as db:
            candidates = db.execute(
                select(RoomModel.room_number).where(
                    RoomModel.room_type == room_type,
                    RoomModel.status == RoomStatus.AVAILABLE,
                ).order_by(RoomModel.room_number)
            ).scalars().all()
            for room_number in candidates:
                # 条件更新：只有仍为 available 时才占用，并发会话抢到同一行时 rowcount 为 0
                result = db.execute(
                    update(RoomModel)
                    .where(
                        RoomModel.room_number == room_number,
                        RoomModel.status == RoomStatus.AVAILABLE,
                    )
                    .values(status=RoomStatus.RESERVED)
                )
                if result.rowcount == 1:
                    db.commit()
                    room = db.get(RoomModel, room_number)
                    logger.info(f"Room {room_number} assigned ({room_type.value})")
                    return Room.model_validate(room)
                db.rollback()
        raise CapacityError(room_type.value)

    def get_room(self, room_number: str) -> Optional[Room]:
        with self._session() as db:
            room = db.get(RoomModel, room_number)
            return Room.model_validate(room) if room else None

    def list_rooms(self) -> List[Room]:
        with self._session() as db:
            rooms = db.execute(select(RoomModel).order_by(RoomModel.room_number)).scalars().all()
            return [Room.model_validate(r) for r in rooms]

    def set_room_status(self, room_number: str, status: RoomStatus) -> Room:
        with self._session() as db:
            room = db.get(RoomModel, room_number)
            if room is None:
                raise ValueError(f"房间不存在: {room_number}")
            ROOM_LIFECYCLE.ensure_transition(room.status.value, status.value)
            room.status = status
            db.commit()
            db.refresh(room)
            logger.info(f"Room {room_number} -> {status.value}")
            return Room.model_validate(room)

    def issue_card(self, room_number: str, guest_id: str, expires_at: date) -> RoomCard:
        with self._session() as db:
            if db.get(RoomModel, room_number) is None:
                raise ValueError(f"房间不存在: {room_number}")
            card = RoomCardModel(
                card_id=f"CARD-{uuid.uuid4().hex[:8].upper()}",
                room_number=room_number,
                guest_id=guest_id,
                issued_at=datetime.now(),
                expires_at=expires_at,
                is_active=True,
            )
            db.add(card)
            db.commit()
            db.refresh(card)
            logger.info(f"Room card issued: {card.card_id} for room {room_number}")
            return RoomCard.model_validate(card)

    def revoke_card(self, card_id: str) -> None:
        with self._session() as db:
            card = db.get(RoomCardModel, card_id)
            if card is None:
                raise ValueError(f"房卡不存在: {card_id}")
            if card.is_active:
                card.is_active = False
                db.commit()
        logger.info(f"Room card revoked: {card_id}")

    def get_active_card(self, room_number: str) -> Optional[RoomCard]:
        with self._session() as db:
            card = db.execute(
                select(RoomCardModel).where(
                    RoomCardModel.room_number == room_number,
                    RoomCardModel.is_active.is_(True),
                )
            ).scalars().first()
            return RoomCard.model_validate(card) if card else None


__all__ = ["SqlReservationStore", "SqlRoomStore"]
